from dataclasses import dataclass
from typing import Optional

from loguru import logger

from portal.api.client import PortalAPIError


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a store action, shown to the user as is."""

    success: bool
    error: Optional[str] = None
    message: Optional[str] = None


def describe_error(error: PortalAPIError, fallback: str) -> str:
    """Display string for a remote failure.

    Server messages win; transport faults and bare error responses get the
    action's fallback text.
    """
    return error.message or fallback


def log_failure(action: str, error: PortalAPIError) -> None:
    logger.warning(f"{action} failed (status={error.status}): {error}")

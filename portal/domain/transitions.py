"""Appointment status transition rules."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

from .enums import AppointmentStatus

StatusLike = Union[AppointmentStatus, str]

ALLOWED_TRANSITIONS: Mapping[AppointmentStatus, Tuple[AppointmentStatus, ...]] = (
    MappingProxyType(
        {
            AppointmentStatus.SCHEDULED: (
                AppointmentStatus.CONFIRMED,
                AppointmentStatus.CANCELLED,
            ),
            AppointmentStatus.CONFIRMED: (
                AppointmentStatus.IN_PROGRESS,
                AppointmentStatus.CANCELLED,
            ),
            AppointmentStatus.IN_PROGRESS: (
                AppointmentStatus.COMPLETED,
                AppointmentStatus.NO_SHOW,
            ),
            AppointmentStatus.COMPLETED: (AppointmentStatus.SCHEDULED,),
            AppointmentStatus.CANCELLED: (AppointmentStatus.SCHEDULED,),
            AppointmentStatus.NO_SHOW: (AppointmentStatus.SCHEDULED,),
        },
    )
)


def _coerce(status: StatusLike | None) -> Optional[AppointmentStatus]:
    if isinstance(status, AppointmentStatus):
        return status
    try:
        return AppointmentStatus(status)
    except ValueError:
        return None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of checking one status change."""

    current: str
    requested: str
    allowed: bool
    allowed_statuses: Tuple[AppointmentStatus, ...]

    @property
    def message(self) -> Optional[str]:
        """User-facing denial reason, None when the change is allowed."""
        if self.allowed:
            return None
        choices = ", ".join(status.value for status in self.allowed_statuses)
        return (
            f'Cannot change status from "{self.current}" to "{self.requested}". '
            f"Allowed transitions: {choices or 'none'}"
        )


def allowed_transitions(status: StatusLike | None) -> Tuple[AppointmentStatus, ...]:
    """Statuses reachable from ``status`` in one step.

    Unknown statuses reach nothing.
    """
    current = _coerce(status)
    if current is None:
        return ()
    return ALLOWED_TRANSITIONS.get(current, ())


def is_allowed(current: StatusLike | None, requested: StatusLike | None) -> bool:
    """Check whether ``current`` may move to ``requested``."""
    target = _coerce(requested)
    return target is not None and target in allowed_transitions(current)


def check_transition(
    current: StatusLike | None,
    requested: StatusLike | None,
) -> TransitionResult:
    """Check a status change and describe why it is denied.

    Args:
        current: Status the appointment is in now
        requested: Status the user asked for

    Returns:
        Transition result; ``allowed_statuses`` is filled for denials too
    """
    return TransitionResult(
        current=str(current),
        requested=str(requested),
        allowed=is_allowed(current, requested),
        allowed_statuses=allowed_transitions(current),
    )

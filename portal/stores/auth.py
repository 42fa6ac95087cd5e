"""Session state of the logged in user."""

from typing import Optional

from loguru import logger

from portal.api.client import PortalAPIClient, PortalAPIError
from portal.api.constants import AUTH_ERROR_STATUSES
from portal.api.models import Doctor, LoginRequest, RegisterRequest

from .base import ActionResult, describe_error, log_failure


class AuthStore:
    """Who is logged in, and the actions that change it."""

    def __init__(self, client: PortalAPIClient) -> None:
        self._client = client
        self.user: Optional[Doctor] = None
        self.is_authenticated = False
        self.is_loading = False
        self.is_checking_auth = True
        self.error: Optional[str] = None

    async def login(self, email: str, password: str) -> ActionResult:
        """Log in with email and password."""
        self.is_loading = True
        self.error = None
        try:
            response = await self._client.login(
                LoginRequest(email=email, password=password),
            )
        except PortalAPIError as e:
            log_failure("Login", e)
            self.error = describe_error(e, "Login failed. Please try again.")
            self.is_authenticated = False
            self.is_loading = False
            return ActionResult(success=False, error=self.error)

        self.user = response.user
        self.is_authenticated = True
        self.is_loading = False
        logger.info(f"Logged in as {response.user.email}")
        return ActionResult(success=True)

    async def register(self, payload: RegisterRequest) -> ActionResult:
        """Register a new account and log into it."""
        self.is_loading = True
        self.error = None
        try:
            response = await self._client.register(payload)
        except PortalAPIError as e:
            log_failure("Registration", e)
            self.error = describe_error(e, "Registration failed. Please try again.")
            self.is_authenticated = False
            self.is_loading = False
            return ActionResult(success=False, error=self.error)

        self.user = response.user
        self.is_authenticated = True
        self.is_loading = False
        return ActionResult(success=True)

    async def logout(self) -> None:
        """Log out; local state is cleared even if the request fails."""
        self.is_loading = True
        try:
            await self._client.logout()
        except PortalAPIError as e:
            log_failure("Logout", e)
        finally:
            self.user = None
            self.is_authenticated = False
            self.error = None
            self.is_loading = False

    async def check_auth(self) -> None:
        """Refresh the current user from the session cookie.

        Only authentication errors log the user out; network and server
        errors keep the existing state.
        """
        self.is_checking_auth = True
        try:
            user = await self._client.get_profile()
        except PortalAPIError as e:
            log_failure("Session check", e)
            if e.status in AUTH_ERROR_STATUSES:
                self.user = None
                self.is_authenticated = False
            self.is_checking_auth = False
            return

        self.user = user
        self.is_authenticated = True
        self.is_checking_auth = False

    def set_user(self, user: Doctor) -> None:
        """Replace the current user, e.g. after a profile update."""
        self.user = user
        self.is_authenticated = True

    def clear_error(self) -> None:
        self.error = None

"""Session state holder.

Replaces a process-wide "current user" with an explicit context passed to
whoever needs it. The context starts `pending` and settles to
`authenticated` or `anonymous` once resolution finishes.
"""

import logging
from enum import Enum

from app.core.exceptions import LoginInProgressError
from app.services.session_resolver import ResolvedUser

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Login realizado com sucesso! Bem-vindo(a)."


class SessionStatus(str, Enum):
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionContext:
    """
    Resolved user plus the lifecycle of resolution and login.

    Attributes:
        status: Current resolution status
        user: Resolved user when authenticated
        notices: User-facing notices queued during the request
    """

    def __init__(self):
        self.status = SessionStatus.PENDING
        self.user: ResolvedUser | None = None
        self.notices: list[str] = []
        self._login_error: str | None = None
        self._login_in_flight = False

    @property
    def is_resolving(self) -> bool:
        return self.status == SessionStatus.PENDING

    @property
    def login_in_flight(self) -> bool:
        return self._login_in_flight

    def begin_resolution(self) -> None:
        self.status = SessionStatus.PENDING

    def complete_resolution(self, user: ResolvedUser | None) -> None:
        self.user = user
        self.status = SessionStatus.AUTHENTICATED if user else SessionStatus.ANONYMOUS

    def fail_resolution(self) -> None:
        """Resolution failed: drop whatever was held and fall back to anonymous."""
        self.user = None
        self.status = SessionStatus.ANONYMOUS

    def begin_login(self) -> None:
        """
        Start a login attempt, clearing any previous user.

        Raises:
            LoginInProgressError: If a login is already running
        """
        if self._login_in_flight:
            raise LoginInProgressError()
        self._login_in_flight = True
        self._login_error = None
        self.user = None
        self.status = SessionStatus.PENDING

    def complete_login(self, user: ResolvedUser) -> None:
        self._login_in_flight = False
        self.user = user
        self.status = SessionStatus.AUTHENTICATED
        self.notices.append(WELCOME_MESSAGE)

    def fail_login(self, message: str | None = None) -> None:
        self._login_in_flight = False
        self.user = None
        self.status = SessionStatus.ANONYMOUS
        if message:
            self._login_error = message

    def pop_login_error(self) -> str | None:
        """Return the login error once, then forget it."""
        message, self._login_error = self._login_error, None
        return message

    def clear(self) -> None:
        self.user = None
        self.status = SessionStatus.ANONYMOUS

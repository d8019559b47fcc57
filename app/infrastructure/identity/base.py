"""Identity store contract.

The identity store owns credentials and sessions. The rest of the service
only sees `Identity` and `RawSession` values and the typed errors of
`app.core.exceptions` (`AuthError`, `IdentityStoreUnavailableError`).
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime

from pydantic import BaseModel


class Identity(BaseModel):
    """Principal registered in the identity store."""

    id: str
    email: str


class RawSession(BaseModel):
    """Session issued by the identity store, before profile resolution."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    identity_id: str
    email: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """A session is expired once `expires_at <= now`."""
        return self.expires_at <= (now or datetime.now(UTC))


class IdentityStore(ABC):
    """Operations the directory needs from an identity provider."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> RawSession:
        """Exchange credentials for a session. Raises AuthError on rejection."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Identity:
        """Create an identity. Raises AuthError if the email is taken."""

    @abstractmethod
    async def refresh_session(self, session: RawSession) -> RawSession:
        """Return a fresh session for an expired one."""

    @abstractmethod
    async def sign_out(self, session: RawSession) -> None:
        """Invalidate a session."""

    @abstractmethod
    async def load_session(self, access_token: str, refresh_token: str | None = None) -> RawSession:
        """Decode bearer tokens into a session. Expired tokens still decode."""

    @abstractmethod
    async def delete_identity(self, identity_id: str) -> None:
        """Remove an identity (registration compensation)."""

    @abstractmethod
    async def request_password_reset(self, email: str) -> bool:
        """
        Send password recovery instructions to `email`.

        Returns False when no identity uses the email. Callers must not
        expose that distinction to the requester.
        """

    @abstractmethod
    async def update_password(self, identity_id: str, password: str) -> None:
        """Replace the password of an identity."""

    async def close(self) -> None:
        """Release client resources."""
        return None

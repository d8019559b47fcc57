"""FastAPI dependencies for service injection."""

from fastapi import Request

from app.infrastructure.identity.base import IdentityStore
from app.services.notification_service import NotificationDispatcher


def get_identity_store(request: Request) -> IdentityStore:
    """
    Identity store stored in app.state by the application lifespan.

    Raises:
        RuntimeError: If the lifespan did not initialize it
    """
    identity_store = getattr(request.app.state, "identity_store", None)
    if identity_store is None:
        raise RuntimeError(
            "Identity store not initialized. "
            "Ensure the application lifespan properly initializes app.state.identity_store"
        )
    return identity_store


def get_notifier(request: Request) -> NotificationDispatcher | None:
    """Notification dispatcher, or None when notifications are not configured."""
    return getattr(request.app.state, "notifier", None)

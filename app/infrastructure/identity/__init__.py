"""Identity store package (Keycloak)."""

from app.infrastructure.identity.base import Identity, IdentityStore, RawSession
from app.infrastructure.identity.keycloak_store import (
    KeycloakIdentityStore,
    close_identity_store,
    get_identity_store,
    initialize_identity_store,
    map_keycloak_error,
)

__all__ = [
    "Identity",
    "IdentityStore",
    "KeycloakIdentityStore",
    "RawSession",
    "close_identity_store",
    "get_identity_store",
    "initialize_identity_store",
    "map_keycloak_error",
]

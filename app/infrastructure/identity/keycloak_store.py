"""Keycloak implementation of the identity store.

Uses the async API of python-keycloak: `KeycloakOpenID` for the password
grant, refresh, logout and token decoding, and `KeycloakAdmin` (service
account) for user creation, deletion and password recovery.
"""

import json
import logging
from datetime import UTC, datetime, timedelta

from jwcrypto.jwt import JWTExpired
from keycloak import KeycloakAdmin, KeycloakOpenID
from keycloak.exceptions import KeycloakConnectionError, KeycloakError
from opentelemetry import trace

from app.core.config import settings
from app.core.exceptions import AuthError, AuthErrorKind, IdentityStoreUnavailableError
from app.infrastructure.identity.base import Identity, IdentityStore, RawSession

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _error_text(error: KeycloakError) -> str:
    """Extract a readable message from a Keycloak error payload."""
    message = error.error_message
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    message = str(message or "")
    try:
        payload = json.loads(message)
    except ValueError:
        return message
    if isinstance(payload, dict):
        parts = [
            str(payload[key])
            for key in ("error", "error_description", "errorMessage")
            if payload.get(key)
        ]
        return " ".join(parts) or message
    return message


def map_keycloak_error(error: KeycloakError) -> AuthError | IdentityStoreUnavailableError:
    """
    Translate a python-keycloak error into a domain error.

    Connection failures and 5xx answers are transient (unavailable);
    everything else is an AuthError classified by its message.
    """
    code = error.response_code
    text = _error_text(error)
    if isinstance(error, KeycloakConnectionError) or code is None or code >= 500:
        return IdentityStoreUnavailableError(detail=f"Keycloak unavailable: {text or code}")
    if code == 409:
        return AuthError.from_identity_message(f"user exists: {text}")
    if code == 429:
        return AuthError.from_identity_message(f"too many requests: {text}")
    return AuthError.from_identity_message(text)


class KeycloakIdentityStore(IdentityStore):
    def __init__(
        self,
        server_url: str | None = None,
        realm_name: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
    ):
        self.server_url = server_url or settings.KEYCLOAK_SERVER_URL
        self.realm_name = realm_name or settings.KEYCLOAK_REALM
        self.client_id = client_id or settings.KEYCLOAK_CLIENT_ID
        self.client_secret = client_secret or settings.KEYCLOAK_CLIENT_SECRET

        self.openid = KeycloakOpenID(
            server_url=self.server_url,
            client_id=self.client_id,
            realm_name=self.realm_name,
            client_secret_key=self.client_secret,
        )
        self.admin = KeycloakAdmin(
            server_url=self.server_url,
            realm_name=self.realm_name,
            client_id=self.client_id,
            client_secret_key=self.client_secret,
            verify=True,
        )

    @property
    def expected_issuer(self) -> str:
        return f"{self.server_url.rstrip('/')}/realms/{self.realm_name}"

    def _session_from_token_response(self, tokens: dict, claims: dict) -> RawSession:
        expires_in = int(tokens.get("expires_in", 0))
        return RawSession(
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            expires_at=datetime.now(UTC) + timedelta(seconds=expires_in),
            identity_id=claims["sub"],
            email=claims.get("email"),
        )

    async def _decode(self, access_token: str) -> dict:
        """Decode a token, returning claims even when it is expired."""
        try:
            return await self.openid.a_decode_token(access_token, validate=True)
        except JWTExpired:
            logger.debug("Access token expired, decoding claims without validation")
            return await self.openid.a_decode_token(access_token, validate=False)

    async def sign_in(self, email: str, password: str) -> RawSession:
        with tracer.start_as_current_span("keycloak_sign_in") as span:
            try:
                tokens = await self.openid.a_token(username=email, password=password)
                claims = await self._decode(tokens["access_token"])
            except KeycloakError as e:
                mapped = map_keycloak_error(e)
                span.set_attribute("auth.error", True)
                span.set_attribute("auth.error_type", type(mapped).__name__)
                logger.warning(f"Keycloak sign-in failed for {email}: {_error_text(e)}")
                raise mapped from e

            span.set_attribute("auth.user_id", claims["sub"])
            return self._session_from_token_response(tokens, claims)

    async def sign_up(self, email: str, password: str) -> Identity:
        with tracer.start_as_current_span("keycloak_sign_up") as span:
            payload = {
                "email": email,
                "username": email,
                "enabled": True,
                "emailVerified": False,
                "credentials": [{"type": "password", "value": password, "temporary": False}],
            }
            try:
                user_id = await self.admin.a_create_user(payload, exist_ok=False)
            except KeycloakError as e:
                mapped = map_keycloak_error(e)
                span.set_attribute("auth.error", True)
                logger.warning(f"Keycloak sign-up failed for {email}: {_error_text(e)}")
                raise mapped from e

            span.set_attribute("auth.user_id", user_id)
            logger.info(f"Identity created in Keycloak: {user_id}")
            return Identity(id=user_id, email=email)

    async def refresh_session(self, session: RawSession) -> RawSession:
        with tracer.start_as_current_span("keycloak_refresh_session") as span:
            span.set_attribute("auth.user_id", session.identity_id)
            if not session.refresh_token:
                raise AuthError(
                    kind=AuthErrorKind.INVALID_SESSION,
                    user_message="Sua sessão expirou. Entre novamente.",
                    raw_message="missing refresh token",
                )
            try:
                tokens = await self.openid.a_refresh_token(session.refresh_token)
                claims = await self._decode(tokens["access_token"])
            except KeycloakError as e:
                span.set_attribute("auth.error", True)
                raise map_keycloak_error(e) from e
            return self._session_from_token_response(tokens, claims)

    async def sign_out(self, session: RawSession) -> None:
        with tracer.start_as_current_span("keycloak_sign_out") as span:
            span.set_attribute("auth.user_id", session.identity_id)
            if not session.refresh_token:
                return
            try:
                await self.openid.a_logout(session.refresh_token)
            except KeycloakError as e:
                span.set_attribute("auth.error", True)
                raise map_keycloak_error(e) from e

    async def load_session(self, access_token: str, refresh_token: str | None = None) -> RawSession:
        with tracer.start_as_current_span("keycloak_load_session") as span:
            try:
                claims = await self._decode(access_token)
            except KeycloakError as e:
                raise map_keycloak_error(e) from e
            except Exception as e:
                logger.error(f"Token decoding failed: {e}")
                span.set_attribute("auth.error", True)
                raise AuthError(
                    kind=AuthErrorKind.INVALID_SESSION,
                    user_message="Sua sessão expirou. Entre novamente.",
                    raw_message=str(e),
                ) from e

            # Issuer varies between localhost and container hostnames in development
            iss = claims.get("iss")
            if not settings.DEBUG and iss != self.expected_issuer:
                logger.error(f"Invalid issuer in token: {iss}. Expected: {self.expected_issuer}")
                raise AuthError(
                    kind=AuthErrorKind.INVALID_SESSION,
                    user_message="Sua sessão expirou. Entre novamente.",
                    raw_message=f"unexpected issuer {iss}",
                )

            span.set_attribute("auth.user_id", claims["sub"])
            return RawSession(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=datetime.fromtimestamp(int(claims.get("exp", 0)), tz=UTC),
                identity_id=claims["sub"],
                email=claims.get("email"),
            )

    async def delete_identity(self, identity_id: str) -> None:
        with tracer.start_as_current_span("keycloak_delete_identity") as span:
            span.set_attribute("auth.user_id", identity_id)
            try:
                await self.admin.a_delete_user(identity_id)
            except KeycloakError as e:
                span.set_attribute("auth.error", True)
                raise map_keycloak_error(e) from e
            logger.info(f"Identity deleted from Keycloak: {identity_id}")

    async def request_password_reset(self, email: str) -> bool:
        with tracer.start_as_current_span("keycloak_request_password_reset") as span:
            try:
                user_id = await self.admin.a_get_user_id(email)
                if user_id is None:
                    span.set_attribute("auth.user_found", False)
                    logger.info(f"Password reset requested for unknown email {email}")
                    return False

                span.set_attribute("auth.user_id", user_id)
                await self.admin.a_send_update_account(
                    user_id=user_id,
                    payload=["UPDATE_PASSWORD"],
                    client_id=self.client_id,
                )
            except KeycloakError as e:
                span.set_attribute("auth.error", True)
                raise map_keycloak_error(e) from e

            logger.info(f"Password reset email sent to {user_id}")
            return True

    async def update_password(self, identity_id: str, password: str) -> None:
        with tracer.start_as_current_span("keycloak_update_password") as span:
            span.set_attribute("auth.user_id", identity_id)
            try:
                await self.admin.a_set_user_password(
                    user_id=identity_id, password=password, temporary=False
                )
            except KeycloakError as e:
                span.set_attribute("auth.error", True)
                raise map_keycloak_error(e) from e
            logger.info(f"Password updated for {identity_id}")


# Module-level singleton, initialized by the application lifespan

_identity_store: IdentityStore | None = None


def get_identity_store() -> IdentityStore:
    """
    Get the identity store initialized at startup.

    Raises:
        RuntimeError: If the application lifespan has not run
    """
    if _identity_store is None:
        raise RuntimeError(
            "Identity store not initialized. Ensure the application lifespan has started properly."
        )
    return _identity_store


async def initialize_identity_store(store: IdentityStore | None = None) -> IdentityStore:
    """Create (or install) the singleton identity store."""
    global _identity_store
    _identity_store = store or KeycloakIdentityStore()
    return _identity_store


async def close_identity_store() -> None:
    global _identity_store
    if _identity_store is not None:
        await _identity_store.close()
        _identity_store = None

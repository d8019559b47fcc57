import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability, GateOutcome, authorize
from app.core.database import get_session
from app.core.dependencies import get_identity_store
from app.core.exceptions import DenyReason, NotApprovedOrBlockedError
from app.core.session_state import SessionContext
from app.infrastructure.identity.base import IdentityStore, RawSession
from app.services.session_resolver import ResolvedUser, resolve_session

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

REFRESH_TOKEN_HEADER = "X-Refresh-Token"
ACCESS_TOKEN_HEADER = "X-Access-Token"

# Anonymous requests are allowed through; the gate decides
security_scheme = HTTPBearer(auto_error=False)


async def extract_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)] = None,
) -> str | None:
    """
    Extract the access token.

    Token extraction priority:
    1. Authorization header: Bearer <token>
    2. Cookie: auth_token

    Returns:
        The token, or None for anonymous requests
    """
    if credentials:
        logger.debug("Token extracted from Authorization header")
        return credentials.credentials

    token = request.cookies.get("auth_token")
    if token:
        logger.debug("Token extracted from cookie")
        return token

    return None


async def get_raw_session(
    request: Request,
    token: Annotated[str | None, Depends(extract_token)],
    identity_store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> RawSession | None:
    """Decode the bearer token (and optional refresh token) into a raw session."""
    if token is None:
        return None
    refresh_token = request.headers.get(REFRESH_TOKEN_HEADER)
    return await identity_store.load_session(token, refresh_token)


async def get_session_context(
    request: Request,
    response: Response,
    raw_session: Annotated[RawSession | None, Depends(get_raw_session)],
    db: Annotated[AsyncSession, Depends(get_session)],
    identity_store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> SessionContext:
    """
    Resolve the request's session into a SessionContext.

    When the session had to be refreshed, the new tokens are returned in the
    X-Access-Token and X-Refresh-Token response headers.
    """
    with tracer.start_as_current_span("get_session_context") as span:
        context = SessionContext()
        context.begin_resolution()
        try:
            user = await resolve_session(raw_session, identity_store=identity_store, db=db)
        except Exception as e:
            context.fail_resolution()
            span.set_attribute("auth.error", True)
            span.set_attribute("auth.error_detail", str(e))
            raise
        context.complete_resolution(user)

        if user is not None:
            span.set_attribute("auth.user_id", user.id)
            span.set_attribute("auth.role", user.role.value)
            if raw_session is not None and user.session.access_token != raw_session.access_token:
                response.headers[ACCESS_TOKEN_HEADER] = user.session.access_token
                if user.session.refresh_token:
                    response.headers[REFRESH_TOKEN_HEADER] = user.session.refresh_token
                span.add_event("session_refreshed")

        request.state.session_context = context
        return context


def require_capability(capability: Capability):
    """
    Dependency factory for capability checks.

    Examples:
        @router.get("/admin/data")
        async def data(user: ResolvedUser = Depends(require_capability(Capability.ADMIN_ONLY))):
            ...

    Deny reasons map to 401 (unauthenticated) or 403 (wrong role, not yet
    approved, blocked).
    """

    async def capability_checker(
        context: Annotated[SessionContext, Depends(get_session_context)],
    ) -> ResolvedUser:
        with tracer.start_as_current_span("check_capability") as span:
            span.set_attribute("auth.capability", capability.value)
            decision = authorize(context, capability)
            span.set_attribute("auth.outcome", decision.outcome.value)

            if decision.outcome == GateOutcome.PENDING:
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Session resolution in progress",
                    headers={"Retry-After": "1"},
                )

            if decision.outcome == GateOutcome.DENY:
                reason = decision.reason
                span.set_attribute("auth.access_denied", True)
                span.set_attribute("auth.deny_reason", reason.value)
                user_id = context.user.id if context.user else "anonymous"
                logger.warning(f"Access denied for {user_id} to {capability.value}: {reason.value}")

                if reason == DenyReason.UNAUTHENTICATED:
                    raise HTTPException(
                        status_code=status.HTTP_401_UNAUTHORIZED,
                        detail="Authentication required",
                        headers={"WWW-Authenticate": "Bearer"},
                    )
                if reason in (DenyReason.NOT_YET_APPROVED, DenyReason.BLOCKED):
                    raise NotApprovedOrBlockedError(user_id, reason)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Access denied. Required capability: {capability.value}",
                )

            span.set_attribute("auth.access_granted", True)
            return context.user

    return capability_checker


get_current_user = require_capability(Capability.ANY_AUTHENTICATED)
get_current_admin = require_capability(Capability.ADMIN_ONLY)
get_current_professional = require_capability(Capability.PROFESSIONAL_ONLY)

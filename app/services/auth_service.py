"""Login, logout and password recovery flows.

A login attempt signs in against the identity store and resolves the
profile, under a deadline. Timeouts and identity store outages are retried
with linear backoff; invalid credentials, a missing profile and a
not-approved professional are final on first occurrence. A session opened
by a failed attempt is signed out before the next attempt starts.
"""

import logging
from dataclasses import dataclass

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Capability, authorize_user
from app.core.config import settings
from app.core.exceptions import (
    GENERIC_LOGIN_MESSAGE,
    NOT_APPROVED_MESSAGE,
    AuthError,
    DataIntegrityError,
    DenyReason,
    IdentityStoreUnavailableError,
    OperationTimeoutError,
)
from app.core.retry import SleepFunc, retry_with_linear_backoff, with_deadline
from app.core.session_state import WELCOME_MESSAGE, SessionContext
from app.infrastructure.identity.base import IdentityStore, RawSession
from app.services.session_resolver import ResolvedUser, resolve_session

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

RETRYABLE_LOGIN_ERRORS = (OperationTimeoutError, IdentityStoreUnavailableError)

PASSWORD_RESET_SENT_MESSAGE = "Se o email existir, as instruções foram enviadas!"
PASSWORD_UPDATED_MESSAGE = "Sua senha foi atualizada com sucesso."


@dataclass
class LoginResult:
    success: bool
    user: ResolvedUser | None = None
    error: str | None = None
    message: str | None = None


async def _safe_sign_out(identity_store: IdentityStore, session: RawSession) -> None:
    try:
        await identity_store.sign_out(session)
    except Exception as e:
        logger.warning(f"Sign-out of {session.identity_id} failed: {e}")


async def login(
    email: str,
    password: str,
    *,
    identity_store: IdentityStore,
    db: AsyncSession,
    context: SessionContext,
    timeout: float | None = None,
    max_attempts: int | None = None,
    base_delay: float | None = None,
    sleep: SleepFunc | None = None,
) -> LoginResult:
    """
    Log a user in.

    Args:
        email: Login email
        password: Password
        identity_store: Identity store to sign in against
        db: Database session
        context: Session context updated with the outcome
        timeout: Per-attempt deadline (defaults to settings)
        max_attempts: Attempts for transient failures (defaults to settings)
        base_delay: Backoff unit in seconds (defaults to settings)
        sleep: Sleep coroutine used between attempts

    Returns:
        LoginResult; on failure `message` is the text to show the user

    Raises:
        LoginInProgressError: Another login is running on this context
    """
    timeout = timeout if timeout is not None else settings.LOGIN_TIMEOUT_SECONDS
    max_attempts = max_attempts or settings.LOGIN_MAX_ATTEMPTS
    base_delay = base_delay if base_delay is not None else settings.LOGIN_RETRY_BASE_DELAY

    context.begin_login()

    with tracer.start_as_current_span("login") as span:
        signed_in: list[RawSession] = []

        async def sign_in_and_resolve() -> ResolvedUser:
            raw = await identity_store.sign_in(email, password)
            signed_in.append(raw)
            return await resolve_session(raw, identity_store=identity_store, db=db)

        async def attempt() -> ResolvedUser:
            issued = len(signed_in)
            try:
                return await with_deadline(sign_in_and_resolve, timeout, operation_name="login")
            except Exception:
                # A failed attempt must not leave its session open
                for stale in signed_in[issued:]:
                    await _safe_sign_out(identity_store, stale)
                raise

        try:
            user = await retry_with_linear_backoff(
                attempt,
                max_attempts=max_attempts,
                base_delay=base_delay,
                retry_on=RETRYABLE_LOGIN_ERRORS,
                sleep=sleep,
            )
        except AuthError as e:
            logger.info(f"Login rejected for {email}: {e.kind.value}")
            span.set_attribute("auth.error", e.kind.value)
            context.fail_login(e.user_message)
            return LoginResult(success=False, error=e.kind.value, message=e.user_message)
        except OperationTimeoutError as e:
            logger.warning(f"Login for {email} timed out after {max_attempts} attempts")
            span.set_attribute("auth.error", "timeout")
            context.fail_login(e.user_message)
            return LoginResult(success=False, error="timeout", message=e.user_message)
        except DataIntegrityError as e:
            span.set_attribute("auth.error", "profile_not_found")
            context.fail_login(e.user_message)
            return LoginResult(success=False, error="profile_not_found", message=e.user_message)
        except IdentityStoreUnavailableError as e:
            logger.error(f"Identity store unavailable during login for {email}: {e}")
            span.set_attribute("auth.error", "unavailable")
            context.fail_login(GENERIC_LOGIN_MESSAGE)
            return LoginResult(success=False, error="unavailable", message=GENERIC_LOGIN_MESSAGE)
        except Exception as e:
            logger.error(f"Unexpected login failure for {email}: {e}", exc_info=True)
            span.record_exception(e)
            context.fail_login(GENERIC_LOGIN_MESSAGE)
            return LoginResult(success=False, error="internal", message=GENERIC_LOGIN_MESSAGE)

        span.set_attribute("auth.user_id", user.id)
        span.set_attribute("auth.role", user.role.value)

        if user.is_professional:
            decision = authorize_user(user, Capability.PROFESSIONAL_ONLY)
            if not decision.allowed:
                reason = decision.reason or DenyReason.NOT_YET_APPROVED
                logger.info(f"Login of {user.id} refused: {reason.value}")
                span.set_attribute("auth.error", reason.value)
                await _safe_sign_out(identity_store, user.session)
                context.fail_login(NOT_APPROVED_MESSAGE)
                return LoginResult(success=False, error=reason.value, message=NOT_APPROVED_MESSAGE)

        context.complete_login(user)
        logger.info(f"User logged in: {user.id} ({user.role.value})")
        return LoginResult(success=True, user=user, message=WELCOME_MESSAGE)


async def logout(identity_store: IdentityStore, context: SessionContext) -> None:
    """Sign out the context's session (failures are logged) and clear the context."""
    user = context.user
    if user is not None:
        await _safe_sign_out(identity_store, user.session)
        logger.info(f"User logged out: {user.id}")
    context.clear()


async def request_password_reset(email: str, identity_store: IdentityStore) -> str:
    """
    Ask the identity store to email recovery instructions.

    The returned message is the same whether or not the email is registered,
    and refusals from the identity store are only logged. Outages propagate.
    """
    with tracer.start_as_current_span("request_password_reset") as span:
        try:
            sent = await identity_store.request_password_reset(email)
        except AuthError as e:
            logger.warning(f"Password reset for {email} refused: {e.kind.value}")
            span.set_attribute("auth.error", e.kind.value)
            sent = False
        span.set_attribute("auth.reset_sent", sent)
        return PASSWORD_RESET_SENT_MESSAGE


async def update_password(identity_store: IdentityStore, user: ResolvedUser, password: str) -> str:
    """Set a new password for the signed-in user."""
    with tracer.start_as_current_span("update_password") as span:
        span.set_attribute("auth.user_id", user.id)
        await identity_store.update_password(user.id, password)
        logger.info(f"Password changed by {user.id}")
        return PASSWORD_UPDATED_MESSAGE

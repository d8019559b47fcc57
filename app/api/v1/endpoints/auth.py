"""Authentication endpoints: login, registration, logout, current user, passwords."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.dependencies import get_identity_store, get_notifier
from app.core.exceptions import ERROR_TYPE_BASE, RFC9457Exception
from app.core.security import get_current_user, get_session_context
from app.core.session_state import SessionContext
from app.infrastructure.identity.base import IdentityStore
from app.schemas import create_responses
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetRequest,
    PasswordUpdate,
    RegistrationResponse,
    SessionTokens,
)
from app.schemas.professional import ProfessionalRegistration
from app.services import auth_service, registration_service
from app.services.notification_service import NotificationDispatcher
from app.services.session_resolver import ResolvedUser

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_ERROR_STATUS = {
    "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
    "timeout": status.HTTP_504_GATEWAY_TIMEOUT,
    "profile_not_found": status.HTTP_409_CONFLICT,
    "not_yet_approved": status.HTTP_403_FORBIDDEN,
    "blocked": status.HTTP_403_FORBIDDEN,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_current_user(user: ResolvedUser) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role,
        full_name=user.professional.full_name if user.professional else None,
        approval_status=user.approval.status if user.approval else None,
        is_blocked=user.is_blocked,
        is_approved=user.is_approved,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="Signs in, resolves the profile and refuses professionals not yet approved",
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
    identity_store: IdentityStore = Depends(get_identity_store),
) -> LoginResponse:
    context = SessionContext()
    result = await auth_service.login(
        credentials.email,
        credentials.password,
        identity_store=identity_store,
        db=db,
        context=context,
    )
    if not result.success:
        error = result.error or "internal"
        raise RFC9457Exception(
            status_code=LOGIN_ERROR_STATUS.get(error, status.HTTP_401_UNAUTHORIZED),
            title="Login Failed",
            detail=context.pop_login_error() or result.message,
            type=f"{ERROR_TYPE_BASE}/login/{error.replace('_', '-')}",
            instance="/api/v1/auth/login",
        )

    user = result.user
    return LoginResponse(
        success=True,
        message=context.notices[-1] if context.notices else result.message,
        user=to_current_user(user),
        session=SessionTokens(
            access_token=user.session.access_token,
            refresh_token=user.session.refresh_token,
            expires_at=user.session.expires_at,
        ),
    )


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a professional",
    responses={**create_responses()},
)
async def register(
    registration: ProfessionalRegistration,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    identity_store: IdentityStore = Depends(get_identity_store),
    notifier: NotificationDispatcher | None = Depends(get_notifier),
) -> RegistrationResponse:
    """
    Create the identity, the profile, the pending record and the first
    pending approval decision. The professional can log in once approved.
    """
    record = await registration_service.register_professional(
        db,
        identity_store,
        registration,
        notifier=notifier,
        background_tasks=background_tasks,
    )
    return RegistrationResponse(
        id=record.id,
        email=registration.email,
        approval_status=record.approval_status,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def logout(
    context: SessionContext = Depends(get_session_context),
    current_user: ResolvedUser = Depends(get_current_user),
    identity_store: IdentityStore = Depends(get_identity_store),
) -> None:
    await auth_service.logout(identity_store, context)


@router.get("/me", response_model=CurrentUser, summary="Current user")
async def me(current_user: ResolvedUser = Depends(get_current_user)) -> CurrentUser:
    return to_current_user(current_user)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request password recovery",
    description="Always answers the same way so that registered emails cannot be discovered",
)
async def forgot_password(
    body: PasswordResetRequest,
    identity_store: IdentityStore = Depends(get_identity_store),
) -> MessageResponse:
    message = await auth_service.request_password_reset(body.email, identity_store)
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password",
    responses={**create_responses()},
)
async def reset_password(
    body: PasswordUpdate,
    current_user: ResolvedUser = Depends(get_current_user),
    identity_store: IdentityStore = Depends(get_identity_store),
) -> MessageResponse:
    message = await auth_service.update_password(identity_store, current_user, body.password)
    return MessageResponse(message=message)

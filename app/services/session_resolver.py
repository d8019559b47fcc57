"""Session resolution.

Turns a raw identity store session into a `ResolvedUser`: the identity, its
role, the professional record and the latest approval decision. An expired
session is refreshed before any profile lookup.
"""

import logging
from datetime import datetime

from opentelemetry import trace
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProfileNotFoundError
from app.infrastructure.identity.base import IdentityStore, RawSession
from app.models.approval import ApprovalStatus
from app.models.profile import UserRole
from app.services import profile_repository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ApprovalSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: ApprovalStatus
    is_blocked: bool


class ProfessionalSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    approval_status: ApprovalStatus
    is_blocked: bool
    public_page_active: bool


class ResolvedUser(BaseModel):
    """Authenticated identity enriched with role and approval state."""

    id: str
    email: str
    role: UserRole
    professional: ProfessionalSnapshot | None = None
    approval: ApprovalSnapshot | None = None
    session: RawSession

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_professional(self) -> bool:
        return self.role == UserRole.PROFESSIONAL

    @property
    def is_approved(self) -> bool:
        """A professional without any decision is never approved."""
        return self.approval is not None and self.approval.status == ApprovalStatus.APPROVED

    @property
    def is_blocked(self) -> bool:
        """Blocked if either the decision flag or the record projection says so."""
        decision_blocked = self.approval is not None and self.approval.is_blocked
        record_blocked = self.professional is not None and self.professional.is_blocked
        return decision_blocked or record_blocked


async def resolve_session(
    raw_session: RawSession | None,
    *,
    identity_store: IdentityStore,
    db: AsyncSession,
    now: datetime | None = None,
) -> ResolvedUser | None:
    """
    Resolve a raw session into a user.

    Args:
        raw_session: Session from the identity store, or None
        identity_store: Used to refresh an expired session
        db: Database session
        now: Reference time for the expiry check

    Returns:
        The resolved user, or None when there is no session

    Raises:
        AuthError / IdentityStoreUnavailableError: Refresh failed
        ProfileNotFoundError: The identity has no profile row
    """
    if raw_session is None:
        return None

    with tracer.start_as_current_span("resolve_session") as span:
        span.set_attribute("auth.user_id", raw_session.identity_id)

        session = raw_session
        if session.is_expired(now):
            span.add_event("session_expired")
            logger.info(f"Session of {session.identity_id} expired, refreshing")
            session = await identity_store.refresh_session(session)
            span.set_attribute("auth.session_refreshed", True)

        profile = await profile_repository.get_profile(db, session.identity_id)
        if profile is None:
            logger.error(f"Authenticated identity {session.identity_id} has no profile")
            span.set_attribute("auth.profile_missing", True)
            raise ProfileNotFoundError(session.identity_id)

        role = UserRole(profile.role)
        span.set_attribute("auth.role", role.value)

        professional = None
        approval = None
        if role == UserRole.PROFESSIONAL:
            record = await profile_repository.get_professional_record(db, profile.id)
            if record is not None:
                professional = ProfessionalSnapshot.model_validate(record)
            decision = await profile_repository.get_latest_decision(db, profile.id)
            if decision is not None:
                approval = ApprovalSnapshot.model_validate(decision)
                span.set_attribute("approval.status", approval.status.value)

        return ResolvedUser(
            id=profile.id,
            email=profile.email,
            role=role,
            professional=professional,
            approval=approval,
            session=session,
        )

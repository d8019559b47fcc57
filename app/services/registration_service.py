"""Registration and approval workflow for dental professionals.

States: pending -> approved, pending -> rejected. Rejected professionals can
be approved later. Blocking is an orthogonal flag. The latest approval
decision is authoritative; the record's `approval_status` and `is_blocked`
columns are projections written in the same transaction.

Notifications and domain events go out after the commit and never undo it.
"""

import logging
from datetime import UTC, datetime
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple

from fastapi import BackgroundTasks
from opentelemetry import trace
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.events import (
    PROFESSIONAL_APPROVED,
    PROFESSIONAL_BLOCKED,
    PROFESSIONAL_REGISTERED,
    PROFESSIONAL_REJECTED,
    PROFESSIONAL_UNBLOCKED,
    publish_event,
)
from app.core.exceptions import (
    ApprovalDecisionNotFoundError,
    ProfessionalNotFoundError,
    RegistrationFailedError,
    RegistrationValidationError,
)
from app.infrastructure.identity.base import Identity, IdentityStore
from app.models.approval import ApprovalDecision, ApprovalStatus
from app.models.professional import ProfessionalRecord
from app.models.profile import Profile, UserRole
from app.schemas.professional import ProfessionalRegistration
from app.services import field_config_service, profile_repository
from app.services.directory_service import visible_professionals_query
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Attributes a professional may change on their own record
SELF_EDITABLE_FIELDS = {
    "phone_number",
    "specialty1",
    "specialty2",
    "mobile_phone",
    "mobile_phone2",
    "landline_phone",
    "whatsapp_phone",
    "city",
    "neighborhood",
    "office_cep1",
    "office_street1",
    "office_number1",
    "office_complement1",
    "office_neighborhood1",
    "office_city1",
    "office_state1",
    "office_cep2",
    "office_street2",
    "office_number2",
    "office_complement2",
    "office_neighborhood2",
    "office_city2",
    "office_state2",
    "accepts_insurance",
    "insurance_names",
    "instagram",
    "facebook",
    "website",
    "linkedin",
    "telegram",
    "tiktok",
}


class ProfessionalView(NamedTuple):
    """A professional record with its login email and latest decision."""

    record: ProfessionalRecord
    email: str | None
    decision: ApprovalDecision | None = None


async def _get_record_or_404(db: AsyncSession, professional_id: str) -> ProfessionalRecord:
    record = await profile_repository.get_professional_record(db, professional_id)
    if record is None:
        raise ProfessionalNotFoundError(
            professional_id, instance=f"/api/v1/admin/professionals/{professional_id}"
        )
    return record


async def _get_decision_or_404(db: AsyncSession, professional_id: str) -> ApprovalDecision:
    decision = await profile_repository.get_latest_decision(db, professional_id)
    if decision is None:
        raise ApprovalDecisionNotFoundError(professional_id)
    return decision


async def _email_of(db: AsyncSession, professional_id: str) -> str | None:
    return await db.scalar(select(Profile.email).where(Profile.id == professional_id))


async def _after_commit(
    background_tasks: BackgroundTasks | None,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> None:
    """Run a post-commit side effect, after the response when background tasks are given."""
    if background_tasks is not None:
        background_tasks.add_task(func, *args, **kwargs)
    else:
        await func(*args, **kwargs)


async def register_professional(
    db: AsyncSession,
    identity_store: IdentityStore,
    registration: ProfessionalRegistration,
    notifier: NotificationDispatcher | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> ProfessionalRecord:
    """
    Register a professional.

    Creates the identity, then the profile, the pending record and the first
    pending decision in one transaction. If the transaction fails the
    identity is deleted again. Never retried.

    Raises:
        RegistrationValidationError: Active required fields are missing
        AuthError: The identity store refused the sign-up
        RegistrationFailedError: The database transaction failed
    """
    with tracer.start_as_current_span("register_professional") as span:
        data = registration.model_dump(exclude={"password"})
        missing = await field_config_service.missing_required_fields(db, data)
        if missing:
            span.set_attribute("registration.missing_fields", ",".join(missing))
            raise RegistrationValidationError(missing)

        identity: Identity = await identity_store.sign_up(registration.email, registration.password)
        span.set_attribute("professional.id", identity.id)

        record_data = registration.record_fields()
        try:
            profile_repository.insert_profile(
                db, identity.id, registration.email, UserRole.PROFESSIONAL.value
            )
            await db.flush()
            record = profile_repository.insert_professional_record(db, identity.id, record_data)
            await db.flush()
            profile_repository.insert_approval_decision(db, identity.id)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Registration of {identity.id} failed, removing identity: {e}")
            span.record_exception(e)
            try:
                await identity_store.delete_identity(identity.id)
            except Exception as cleanup_error:
                logger.error(
                    f"Compensation failed, identity {identity.id} left without profile: "
                    f"{cleanup_error}"
                )
            raise RegistrationFailedError() from e

        await db.refresh(record)
        logger.info(f"Professional registered: {identity.id}")

        await _after_commit(
            background_tasks, _announce_registration, record, registration.email, notifier
        )
        return record


async def _announce_registration(
    record: ProfessionalRecord, email: str, notifier: NotificationDispatcher | None
) -> None:
    await publish_event(
        PROFESSIONAL_REGISTERED,
        {"professional_id": record.id, "full_name": record.full_name},
    )
    if notifier is not None:
        await notifier.notify_registration(record, email)


async def approve(
    db: AsyncSession,
    professional_id: str,
    reviewer_id: str | None = None,
    notifier: NotificationDispatcher | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> ProfessionalRecord:
    """
    Approve a professional.

    Updates the latest decision and the record projection together. The
    public listing flag is left untouched. Calling it again is harmless.

    With `background_tasks` the event and the notification are sent after
    the response; otherwise they are awaited before returning.

    Raises:
        ProfessionalNotFoundError / ApprovalDecisionNotFoundError
    """
    return await _decide(
        db, professional_id, ApprovalStatus.APPROVED, reviewer_id, notifier, background_tasks
    )


async def reject(
    db: AsyncSession,
    professional_id: str,
    reviewer_id: str | None = None,
    notifier: NotificationDispatcher | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> ProfessionalRecord:
    """Reject a professional; the rejection is persisted and notified."""
    return await _decide(
        db, professional_id, ApprovalStatus.REJECTED, reviewer_id, notifier, background_tasks
    )


async def _decide(
    db: AsyncSession,
    professional_id: str,
    status: ApprovalStatus,
    reviewer_id: str | None,
    notifier: NotificationDispatcher | None,
    background_tasks: BackgroundTasks | None,
) -> ProfessionalRecord:
    with tracer.start_as_current_span(f"{status.value}_professional") as span:
        span.set_attribute("professional.id", professional_id)
        record = await _get_record_or_404(db, professional_id)
        decision = await _get_decision_or_404(db, professional_id)
        previous = decision.status

        profile_repository.update_approval_decision(
            decision,
            status=status.value,
            reviewed_at=datetime.now(UTC),
            reviewed_by=reviewer_id,
        )
        profile_repository.update_professional_record(record, {"approval_status": status.value})
        await db.commit()
        await db.refresh(record)

        span.set_attribute("approval.previous_status", previous)
        span.set_attribute("approval.status", status.value)
        logger.info(f"Professional {professional_id}: {previous} -> {status.value}")

        email = await _email_of(db, professional_id)
        await _after_commit(
            background_tasks,
            _announce_decision,
            record,
            email,
            status == ApprovalStatus.APPROVED,
            reviewer_id,
            notifier,
        )
        return record


async def _announce_decision(
    record: ProfessionalRecord,
    email: str | None,
    approved: bool,
    reviewer_id: str | None,
    notifier: NotificationDispatcher | None,
) -> None:
    await publish_event(
        PROFESSIONAL_APPROVED if approved else PROFESSIONAL_REJECTED,
        {"professional_id": record.id, "reviewed_by": reviewer_id},
    )
    if notifier is not None:
        await notifier.notify_decision(record, email, approved=approved)


async def toggle_block(
    db: AsyncSession,
    professional_id: str,
    blocked: bool,
    reviewer_id: str | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> ProfessionalRecord:
    """Set the block flag on the latest decision and the record together."""
    with tracer.start_as_current_span("toggle_block_professional") as span:
        span.set_attribute("professional.id", professional_id)
        span.set_attribute("professional.blocked", blocked)
        record = await _get_record_or_404(db, professional_id)
        decision = await _get_decision_or_404(db, professional_id)

        profile_repository.update_approval_decision(
            decision,
            is_blocked=blocked,
            reviewed_at=datetime.now(UTC),
            reviewed_by=reviewer_id,
        )
        profile_repository.update_professional_record(record, {"is_blocked": blocked})
        await db.commit()
        await db.refresh(record)

        logger.info(f"Professional {professional_id} {'blocked' if blocked else 'unblocked'}")
        await _after_commit(
            background_tasks,
            publish_event,
            PROFESSIONAL_BLOCKED if blocked else PROFESSIONAL_UNBLOCKED,
            {"professional_id": professional_id, "reviewed_by": reviewer_id},
        )
        return record


async def set_public_page_active(
    db: AsyncSession, professional_id: str, active: bool
) -> ProfessionalRecord:
    record = await _get_record_or_404(db, professional_id)
    record.public_page_active = active
    await db.commit()
    await db.refresh(record)
    logger.info(f"Public page of {professional_id} {'activated' if active else 'deactivated'}")
    return record


async def update_own_profile(
    db: AsyncSession, professional_id: str, changes: dict[str, Any]
) -> ProfessionalRecord:
    """
    Apply a professional's edits to their own record.

    Only contact, office, specialty, insurance and social fields are
    accepted; approval state and listing flags are ignored.
    """
    with tracer.start_as_current_span("update_own_profile") as span:
        span.set_attribute("professional.id", professional_id)
        record = await _get_record_or_404(db, professional_id)
        allowed = {key: value for key, value in changes.items() if key in SELF_EDITABLE_FIELDS}
        ignored = set(changes) - set(allowed)
        if ignored:
            logger.warning(f"Ignoring non-editable fields for {professional_id}: {sorted(ignored)}")

        profile_repository.update_professional_record(record, allowed)
        await db.commit()
        await db.refresh(record)
        span.set_attribute("professional.updated_fields", ",".join(sorted(allowed)))
        return record


async def list_pending(db: AsyncSession) -> list[ProfessionalView]:
    """Professionals whose record is still pending, oldest first."""
    result = await db.execute(
        select(ProfessionalRecord, Profile.email)
        .join(Profile, Profile.id == ProfessionalRecord.id)
        .where(ProfessionalRecord.approval_status == ApprovalStatus.PENDING.value)
        .order_by(ProfessionalRecord.created_at.asc())
    )
    return [ProfessionalView(record, email) for record, email in result.all()]


async def list_professionals(
    db: AsyncSession,
    name: str | None = None,
    approval_status: ApprovalStatus | None = None,
    is_blocked: bool | None = None,
    public_page_active: bool | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[ProfessionalView], int]:
    """
    Admin listing with filters.

    Returns:
        (page of professionals, total matching)
    """
    with tracer.start_as_current_span("list_professionals") as span:
        conditions = []
        if name:
            pattern = f"%{name}%"
            conditions.append(
                or_(ProfessionalRecord.full_name.ilike(pattern), Profile.email.ilike(pattern))
            )
        if approval_status is not None:
            conditions.append(ProfessionalRecord.approval_status == approval_status.value)
        if is_blocked is not None:
            conditions.append(ProfessionalRecord.is_blocked.is_(is_blocked))
        if public_page_active is not None:
            conditions.append(ProfessionalRecord.public_page_active.is_(public_page_active))

        base = (
            select(ProfessionalRecord, Profile.email)
            .join(Profile, Profile.id == ProfessionalRecord.id)
            .where(*conditions)
        )
        total = await db.scalar(select(func.count()).select_from(base.subquery()))
        result = await db.execute(
            base.order_by(ProfessionalRecord.full_name).offset(skip).limit(limit)
        )
        views = [ProfessionalView(record, email) for record, email in result.all()]
        span.set_attribute("professionals.total", total or 0)
        return views, total or 0


async def get_professional_detail(db: AsyncSession, professional_id: str) -> ProfessionalView:
    record = await _get_record_or_404(db, professional_id)
    decision = await profile_repository.get_latest_decision(db, professional_id)
    email = await _email_of(db, professional_id)
    return ProfessionalView(record, email, decision)


async def dashboard_counts(db: AsyncSession) -> dict[str, int]:
    """Counts shown on the admin dashboard."""
    status_rows = await db.execute(
        select(ProfessionalRecord.approval_status, func.count()).group_by(
            ProfessionalRecord.approval_status
        )
    )
    by_status = {status: count for status, count in status_rows.all()}

    blocked = await db.scalar(
        select(func.count())
        .select_from(ProfessionalRecord)
        .where(ProfessionalRecord.is_blocked.is_(True))
    )
    visible = await db.scalar(
        select(func.count()).select_from(visible_professionals_query().subquery())
    )
    return {
        "total": sum(by_status.values()),
        "pending": by_status.get(ApprovalStatus.PENDING.value, 0),
        "approved": by_status.get(ApprovalStatus.APPROVED.value, 0),
        "rejected": by_status.get(ApprovalStatus.REJECTED.value, 0),
        "blocked": blocked or 0,
        "visible": visible or 0,
    }

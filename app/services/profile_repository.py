"""Data access for profiles, professional records and the approval ledger."""

import logging
from typing import Any

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.approval import ApprovalDecision, ApprovalStatus
from app.models.professional import ProfessionalRecord
from app.models.profile import Profile

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def get_profile(db: AsyncSession, profile_id: str) -> Profile | None:
    with tracer.start_as_current_span("get_profile") as span:
        span.set_attribute("profile.id", profile_id)
        result = await db.execute(select(Profile).where(Profile.id == profile_id))
        profile = result.scalar_one_or_none()
        span.set_attribute("profile.found", profile is not None)
        return profile


async def get_professional_record(db: AsyncSession, professional_id: str) -> ProfessionalRecord | None:
    result = await db.execute(
        select(ProfessionalRecord).where(ProfessionalRecord.id == professional_id)
    )
    return result.scalar_one_or_none()


async def get_latest_decision(db: AsyncSession, professional_id: str) -> ApprovalDecision | None:
    """Most recent decision by creation time, ties broken by id."""
    result = await db.execute(
        select(ApprovalDecision)
        .where(ApprovalDecision.professional_id == professional_id)
        .order_by(ApprovalDecision.created_at.desc(), ApprovalDecision.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def insert_profile(db: AsyncSession, profile_id: str, email: str, role: str) -> Profile:
    """Stage a profile; the caller owns the transaction."""
    profile = Profile(id=profile_id, email=email, role=role)
    db.add(profile)
    return profile


def insert_professional_record(
    db: AsyncSession, professional_id: str, data: dict[str, Any]
) -> ProfessionalRecord:
    """Stage a new record in its initial state (pending, unlisted, unblocked)."""
    record = ProfessionalRecord(
        id=professional_id,
        **data,
        approval_status=ApprovalStatus.PENDING.value,
        is_blocked=False,
        public_page_active=False,
    )
    db.add(record)
    return record


def insert_approval_decision(
    db: AsyncSession,
    professional_id: str,
    status: ApprovalStatus = ApprovalStatus.PENDING,
) -> ApprovalDecision:
    decision = ApprovalDecision(
        professional_id=professional_id,
        status=status.value,
        is_blocked=False,
    )
    db.add(decision)
    return decision


def update_approval_decision(decision: ApprovalDecision, **changes: Any) -> ApprovalDecision:
    for key, value in changes.items():
        setattr(decision, key, value)
    return decision


def update_professional_record(
    record: ProfessionalRecord, changes: dict[str, Any]
) -> ProfessionalRecord:
    for key, value in changes.items():
        setattr(record, key, value)
    return record

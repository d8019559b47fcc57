"""Public directory: visibility filter and search.

A professional is visible iff the latest approval decision is approved and
unblocked, the record is unblocked, and the admin listing toggle is on.
"""

import logging

from opentelemetry import trace
from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.approval import ApprovalDecision, ApprovalStatus
from app.models.professional import ProfessionalRecord

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def is_visible(record: ProfessionalRecord, latest_decision: ApprovalDecision | None) -> bool:
    """Visibility predicate for a record and its latest decision."""
    if latest_decision is None:
        return False
    return (
        latest_decision.status == ApprovalStatus.APPROVED.value
        and not latest_decision.is_blocked
        and not record.is_blocked
        and record.public_page_active
    )


def visible_professionals_query() -> Select:
    """
    SELECT of visible professional records.

    Each record is joined to its latest decision, ranked by creation time
    then id.
    """
    ranked = select(
        ApprovalDecision.professional_id.label("professional_id"),
        ApprovalDecision.status.label("status"),
        ApprovalDecision.is_blocked.label("is_blocked"),
        func.row_number()
        .over(
            partition_by=ApprovalDecision.professional_id,
            order_by=(ApprovalDecision.created_at.desc(), ApprovalDecision.id.desc()),
        )
        .label("rn"),
    ).subquery("ranked_decisions")

    return (
        select(ProfessionalRecord)
        .join(ranked, ranked.c.professional_id == ProfessionalRecord.id)
        .where(
            and_(
                ranked.c.rn == 1,
                ranked.c.status == ApprovalStatus.APPROVED.value,
                ranked.c.is_blocked.is_(False),
                ProfessionalRecord.is_blocked.is_(False),
                ProfessionalRecord.public_page_active.is_(True),
            )
        )
    )


async def search_visible_professionals(
    db: AsyncSession,
    name: str | None = None,
    specialty: str | None = None,
    city: str | None = None,
    neighborhood: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[ProfessionalRecord], int]:
    """
    Search the public directory.

    Returns:
        (page of visible records ordered by name, total matching)
    """
    with tracer.start_as_current_span("search_visible_professionals") as span:
        query = visible_professionals_query()
        if name:
            query = query.where(ProfessionalRecord.full_name.ilike(f"%{name}%"))
        if specialty:
            query = query.where(
                or_(
                    ProfessionalRecord.specialty1 == specialty,
                    ProfessionalRecord.specialty2 == specialty,
                )
            )
        if city:
            query = query.where(
                or_(
                    ProfessionalRecord.office_city1.ilike(f"%{city}%"),
                    ProfessionalRecord.city.ilike(f"%{city}%"),
                )
            )
        if neighborhood:
            query = query.where(
                or_(
                    ProfessionalRecord.office_neighborhood1.ilike(f"%{neighborhood}%"),
                    ProfessionalRecord.neighborhood.ilike(f"%{neighborhood}%"),
                )
            )

        total = await db.scalar(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(ProfessionalRecord.full_name).offset(skip).limit(limit)
        )
        records = list(result.scalars().all())

        span.set_attribute("search.total", total or 0)
        span.set_attribute("search.returned", len(records))
        return records, total or 0


async def get_visible_professional(
    db: AsyncSession, professional_id: str
) -> ProfessionalRecord | None:
    """A visible professional by id; None for unknown and hidden ones alike."""
    result = await db.execute(
        visible_professionals_query().where(ProfessionalRecord.id == professional_id)
    )
    return result.scalar_one_or_none()

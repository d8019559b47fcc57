"""Admin endpoints for professional review.

- Dashboard counts, pending queue and filtered listing
- Approve / reject (persisted; the notification is sent after the response)
- Block / unblock and the public listing toggle
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.dependencies import get_notifier
from app.core.security import get_current_admin
from app.models.approval import ApprovalStatus
from app.schemas.professional import (
    ApprovalDecisionResponse,
    BlockUpdate,
    DashboardResponse,
    ProfessionalDetailResponse,
    ProfessionalListItem,
    ProfessionalListResponse,
    ProfessionalResponse,
    PublicPageUpdate,
)
from app.services import registration_service
from app.services.notification_service import NotificationDispatcher
from app.services.registration_service import ProfessionalView
from app.services.session_resolver import ResolvedUser

logger = logging.getLogger(__name__)

router = APIRouter()


def _list_item(view: ProfessionalView) -> ProfessionalListItem:
    return ProfessionalListItem.model_validate(view.record).model_copy(update={"email": view.email})


def _response(record, email: str | None = None) -> ProfessionalResponse:
    return ProfessionalResponse.model_validate(record).model_copy(update={"email": email})


@router.get("/dashboard", response_model=DashboardResponse, summary="Dashboard counts")
async def dashboard(
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> DashboardResponse:
    counts = await registration_service.dashboard_counts(db)
    return DashboardResponse(**counts)


@router.get("/pending", response_model=list[ProfessionalListItem], summary="Pending registrations")
async def list_pending(
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> list[ProfessionalListItem]:
    views = await registration_service.list_pending(db)
    return [_list_item(view) for view in views]


@router.get("", response_model=ProfessionalListResponse, summary="All professionals")
async def list_professionals(
    name: str | None = Query(None, max_length=255, description="Part of the name or email"),
    approval_status: ApprovalStatus | None = Query(None),
    is_blocked: bool | None = Query(None),
    public_page_active: bool | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalListResponse:
    views, total = await registration_service.list_professionals(
        db,
        name=name,
        approval_status=approval_status,
        is_blocked=is_blocked,
        public_page_active=public_page_active,
        skip=skip,
        limit=limit,
    )
    return ProfessionalListResponse(
        items=[_list_item(view) for view in views],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{professional_id}",
    response_model=ProfessionalDetailResponse,
    summary="Professional detail with the latest decision",
)
async def get_professional(
    professional_id: str,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalDetailResponse:
    view = await registration_service.get_professional_detail(db, professional_id)
    latest = (
        ApprovalDecisionResponse.model_validate(view.decision) if view.decision is not None else None
    )
    return ProfessionalDetailResponse.model_validate(view.record).model_copy(
        update={"email": view.email, "latest_decision": latest}
    )


@router.post(
    "/{professional_id}/approve",
    response_model=ProfessionalResponse,
    summary="Approve a professional",
)
async def approve_professional(
    professional_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: NotificationDispatcher | None = Depends(get_notifier),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalResponse:
    """
    Approve a professional.

    The public listing toggle is not changed; use the public-page endpoint.
    """
    record = await registration_service.approve(
        db,
        professional_id,
        reviewer_id=current_user.id,
        notifier=notifier,
        background_tasks=background_tasks,
    )
    return _response(record)


@router.post(
    "/{professional_id}/reject",
    response_model=ProfessionalResponse,
    summary="Reject a professional",
)
async def reject_professional(
    professional_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: NotificationDispatcher | None = Depends(get_notifier),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalResponse:
    record = await registration_service.reject(
        db,
        professional_id,
        reviewer_id=current_user.id,
        notifier=notifier,
        background_tasks=background_tasks,
    )
    return _response(record)


@router.put(
    "/{professional_id}/block",
    response_model=ProfessionalResponse,
    summary="Block or unblock a professional",
)
async def set_blocked(
    professional_id: str,
    body: BlockUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalResponse:
    record = await registration_service.toggle_block(
        db,
        professional_id,
        body.blocked,
        reviewer_id=current_user.id,
        background_tasks=background_tasks,
    )
    return _response(record)


@router.put(
    "/{professional_id}/public-page",
    response_model=ProfessionalResponse,
    summary="Show or hide the public page",
)
async def set_public_page(
    professional_id: str,
    body: PublicPageUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> ProfessionalResponse:
    record = await registration_service.set_public_page_active(db, professional_id, body.active)
    return _response(record)

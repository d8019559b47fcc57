"""Self-service endpoints of an approved professional."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_professional
from app.schemas.professional import ProfessionalResponse, ProfessionalUpdate
from app.services import registration_service
from app.services.session_resolver import ResolvedUser

router = APIRouter()


@router.get("/me", response_model=ProfessionalResponse, summary="My professional profile")
async def get_my_profile(
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_professional),
) -> ProfessionalResponse:
    view = await registration_service.get_professional_detail(db, current_user.id)
    return ProfessionalResponse.model_validate(view.record).model_copy(update={"email": view.email})


@router.patch("/me", response_model=ProfessionalResponse, summary="Update my profile")
async def update_my_profile(
    changes: ProfessionalUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_professional),
) -> ProfessionalResponse:
    """
    Update contact, office, specialty, insurance and social fields.

    Changes apply immediately, without admin review.
    """
    record = await registration_service.update_own_profile(
        db, current_user.id, changes.model_dump(exclude_unset=True)
    )
    return ProfessionalResponse.model_validate(record).model_copy(
        update={"email": current_user.email}
    )

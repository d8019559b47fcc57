"""Admin endpoints for the registration form configuration and specialties."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_admin
from app.models.field_config import FieldCategory
from app.schemas import create_responses
from app.schemas.field_config import (
    FieldConfigResponse,
    FieldConfigUpdate,
    SpecialtyCreate,
    SpecialtyResponse,
)
from app.services import field_config_service, specialty_service
from app.services.session_resolver import ResolvedUser

router = APIRouter()
specialties_router = APIRouter()


@router.get("", response_model=list[FieldConfigResponse], summary="Registration form fields")
async def list_field_configs(
    category: FieldCategory | None = None,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> list[FieldConfigResponse]:
    configs = await field_config_service.list_field_configs(db, category=category)
    return [FieldConfigResponse.model_validate(config) for config in configs]


@router.patch("/{field_id}", response_model=FieldConfigResponse, summary="Update a form field")
async def update_field_config(
    field_id: str,
    changes: FieldConfigUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> FieldConfigResponse:
    config = await field_config_service.update_field_config(
        db, field_id, changes.model_dump(exclude_unset=True)
    )
    return FieldConfigResponse.model_validate(config)


@specialties_router.post(
    "",
    response_model=SpecialtyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a specialty",
    responses={**create_responses()},
)
async def add_specialty(
    specialty: SpecialtyCreate,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> SpecialtyResponse:
    created = await specialty_service.add_specialty(db, specialty.name)
    return SpecialtyResponse.model_validate(created)


@specialties_router.delete(
    "/{specialty_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a specialty",
)
async def remove_specialty(
    specialty_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: ResolvedUser = Depends(get_current_admin),
) -> None:
    await specialty_service.remove_specialty(db, specialty_id)

"""Public directory endpoints.

Only visible professionals are exposed: approved, unblocked and listed. A
hidden professional answers 404, exactly like an unknown id.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.exceptions import ProfessionalNotFoundError
from app.schemas.field_config import SpecialtyResponse
from app.schemas.professional import DirectoryEntry, DirectoryListResponse
from app.services import directory_service, specialty_service

router = APIRouter()


@router.get(
    "/professionals",
    response_model=DirectoryListResponse,
    summary="Search the directory",
)
async def search_professionals(
    name: str | None = Query(None, max_length=255, description="Part of the name"),
    specialty: str | None = Query(None, max_length=100),
    city: str | None = Query(None, max_length=100),
    neighborhood: str | None = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> DirectoryListResponse:
    records, total = await directory_service.search_visible_professionals(
        db,
        name=name,
        specialty=specialty,
        city=city,
        neighborhood=neighborhood,
        skip=skip,
        limit=limit,
    )
    return DirectoryListResponse(
        items=[DirectoryEntry.model_validate(record) for record in records],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/professionals/{professional_id}",
    response_model=DirectoryEntry,
    summary="Public profile of a professional",
)
async def get_professional(
    professional_id: str,
    db: AsyncSession = Depends(get_session),
) -> DirectoryEntry:
    record = await directory_service.get_visible_professional(db, professional_id)
    if record is None:
        raise ProfessionalNotFoundError(
            professional_id, instance=f"/api/v1/directory/professionals/{professional_id}"
        )
    return DirectoryEntry.model_validate(record)


@router.get("/specialties", response_model=list[SpecialtyResponse], summary="Specialty catalog")
async def list_specialties(db: AsyncSession = Depends(get_session)) -> list[SpecialtyResponse]:
    specialties = await specialty_service.list_specialties(db)
    return [SpecialtyResponse.model_validate(s) for s in specialties]

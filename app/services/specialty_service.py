"""Specialty catalog managed by admins."""

import logging

from opentelemetry import trace
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, SpecialtyNotFoundError
from app.models.specialty import Specialty

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_SPECIALTIES = [
    "Sem Especialidade",
    "Acupuntura",
    "Cirurgia e Traumatologia Bucomaxilofacial",
    "Dentística",
    "Disfunção Temporomandibular e Dor Orofacial",
    "Endodontia",
    "Estomatologia",
    "Harmonização Orofacial",
    "Homeopatia",
    "Implantodontia",
    "Odontogeriatria",
    "Odontologia do Esporte",
    "Odontologia do Trabalho",
    "Odontologia Hospitalar",
    "Odontologia Legal",
    "Odontologia para Pacientes com Necessidades Especiais",
    "Odontopediatria",
    "Ortodontia",
    "Ortopedia Funcional dos Maxilares",
    "Patologia Oral e Maxilofacial",
    "Periodontia",
    "Prótese Bucomaxilofacial",
    "Prótese Dentária",
    "Radiologia Odontológica e Imaginologia",
    "Saúde Coletiva",
]


async def list_specialties(db: AsyncSession) -> list[Specialty]:
    result = await db.execute(select(Specialty).order_by(Specialty.name))
    return list(result.scalars().all())


async def seed_default_specialties(db: AsyncSession) -> int:
    """Populate an empty catalog with the default specialties."""
    count = await db.scalar(select(func.count()).select_from(Specialty))
    if count:
        return 0
    db.add_all([Specialty(name=name) for name in DEFAULT_SPECIALTIES])
    await db.commit()
    logger.info(f"Seeded {len(DEFAULT_SPECIALTIES)} specialties")
    return len(DEFAULT_SPECIALTIES)


async def add_specialty(db: AsyncSession, name: str) -> Specialty:
    """
    Add a specialty. Names are unique, case-insensitively.

    Raises:
        ConflictError: The name already exists
    """
    with tracer.start_as_current_span("add_specialty") as span:
        name = name.strip()
        span.set_attribute("specialty.name", name)
        existing = await db.scalar(
            select(Specialty).where(func.lower(Specialty.name) == name.lower())
        )
        if existing is not None:
            raise ConflictError(
                detail=f"Specialty '{name}' already exists",
                instance="/api/v1/admin/specialties",
            )

        specialty = Specialty(name=name)
        db.add(specialty)
        await db.commit()
        await db.refresh(specialty)
        logger.info(f"Specialty added: {name}")
        return specialty


async def remove_specialty(db: AsyncSession, specialty_id: int) -> None:
    """
    Remove a specialty from the catalog.

    Professionals keep the value they registered with.

    Raises:
        SpecialtyNotFoundError: Unknown id
    """
    specialty = await db.get(Specialty, specialty_id)
    if specialty is None:
        raise SpecialtyNotFoundError(specialty_id)
    await db.delete(specialty)
    await db.commit()
    logger.info(f"Specialty removed: {specialty.name}")

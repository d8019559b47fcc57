"""Registration form field configuration."""

import logging
from typing import Any

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import FieldConfigNotFoundError
from app.models.field_config import FieldCategory, FieldConfig

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# (name, label, category, required, display_order)
DEFAULT_FIELD_CONFIGS: list[tuple[str, str, FieldCategory, bool, int]] = [
    ("full_name", "Nome Completo", FieldCategory.PERSONAL, True, 1),
    ("email", "Email", FieldCategory.PERSONAL, True, 2),
    ("phone_number", "Telefone", FieldCategory.PERSONAL, True, 3),
    ("birth_date", "Data de Nascimento", FieldCategory.PERSONAL, True, 4),
    ("city", "Cidade", FieldCategory.PERSONAL, True, 5),
    ("cro_number", "Número do CRO", FieldCategory.PERSONAL, True, 6),
    ("cro_state", "Estado/UF do CRO", FieldCategory.PERSONAL, True, 7),
    ("cro_file_url", "Documento CRO", FieldCategory.PERSONAL, True, 8),
    ("landline_phone", "Telefone Fixo", FieldCategory.PERSONAL, False, 9),
    ("mobile_phone", "Celular", FieldCategory.PERSONAL, False, 10),
    ("office_street1", "Endereço do Consultório Principal", FieldCategory.ADDRESS, True, 1),
    ("office_cep1", "CEP do Consultório Principal", FieldCategory.ADDRESS, True, 2),
    ("office_street2", "Endereço do Consultório Secundário", FieldCategory.ADDRESS, False, 3),
    ("office_cep2", "CEP do Consultório Secundário", FieldCategory.ADDRESS, False, 4),
    ("specialty1", "Especialidade 1", FieldCategory.SPECIALTY, True, 1),
    ("specialty2", "Especialidade 2", FieldCategory.SPECIALTY, False, 2),
]

EDITABLE_ATTRIBUTES = {"label", "required", "active", "display_order"}


async def seed_default_field_configs(db: AsyncSession) -> int:
    """
    Insert the default configuration for fields not yet configured.

    Existing rows are left untouched so admin changes survive restarts.

    Returns:
        Number of rows inserted
    """
    with tracer.start_as_current_span("seed_default_field_configs") as span:
        result = await db.execute(select(FieldConfig.name))
        existing = set(result.scalars().all())

        inserted = 0
        for name, label, category, required, order in DEFAULT_FIELD_CONFIGS:
            if name in existing:
                continue
            db.add(
                FieldConfig(
                    id=name,
                    name=name,
                    label=label,
                    category=category.value,
                    required=required,
                    active=True,
                    display_order=order,
                )
            )
            inserted += 1

        if inserted:
            await db.commit()
            logger.info(f"Seeded {inserted} field configurations")
        span.set_attribute("field_config.inserted", inserted)
        return inserted


async def list_field_configs(
    db: AsyncSession,
    category: FieldCategory | None = None,
    active_only: bool = False,
) -> list[FieldConfig]:
    query = select(FieldConfig)
    if category is not None:
        query = query.where(FieldConfig.category == category.value)
    if active_only:
        query = query.where(FieldConfig.active.is_(True))
    query = query.order_by(FieldConfig.category, FieldConfig.display_order)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_field_config(db: AsyncSession, field_id: str, changes: dict[str, Any]) -> FieldConfig:
    """
    Update label, required, active or display order of a field.

    Raises:
        FieldConfigNotFoundError: Unknown id
    """
    with tracer.start_as_current_span("update_field_config") as span:
        span.set_attribute("field_config.id", field_id)
        config = await db.get(FieldConfig, field_id)
        if config is None:
            raise FieldConfigNotFoundError(field_id)

        for key, value in changes.items():
            if key in EDITABLE_ATTRIBUTES and value is not None:
                setattr(config, key, value)

        await db.commit()
        await db.refresh(config)
        logger.info(f"Field configuration {config.name} updated: {sorted(changes)}")
        return config


async def required_field_names(db: AsyncSession) -> list[str]:
    """Names of the fields that are both active and required."""
    result = await db.execute(
        select(FieldConfig.name)
        .where(FieldConfig.active.is_(True), FieldConfig.required.is_(True))
        .order_by(FieldConfig.category, FieldConfig.display_order)
    )
    return list(result.scalars().all())


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


async def missing_required_fields(db: AsyncSession, data: dict[str, Any]) -> list[str]:
    """Active required fields that are absent or blank in `data`."""
    required = await required_field_names(db)
    return [name for name in required if _is_blank(data.get(name))]

"""Registration form field configuration."""

import uuid
from enum import Enum

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class FieldCategory(str, Enum):
    PERSONAL = "personal"
    ADDRESS = "address"
    SPECIALTY = "specialty"


class FieldConfig(Base):
    """
    One configurable field of the registration form.

    `name` is the attribute name on ProfessionalRecord. Active and required
    fields are mandatory at registration.
    """

    __tablename__ = "field_configurations"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    required: Mapped[bool] = mapped_column(nullable=False, default=False)
    active: Mapped[bool] = mapped_column(nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<FieldConfig(name='{self.name}', required={self.required}, active={self.active})>"

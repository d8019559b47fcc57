"""Profile model: maps an identity to its role."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class UserRole(str, Enum):
    """Roles of the directory."""

    PROFESSIONAL = "professional"
    ADMIN = "admin"


class Profile(Base):
    """
    One row per identity.

    The id is the identity store's user id. The role is set at creation and
    never changes.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Identity store user id",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email",
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.PROFESSIONAL.value,
        comment="professional | admin",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"

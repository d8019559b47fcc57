"""Approval ledger.

A professional has one or more decisions; the one with the greatest
`created_at` (ties broken by id) is authoritative.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ApprovalDecision(Base):
    """Administrative decision about a professional registration."""

    __tablename__ = "pending_approvals"
    __table_args__ = (
        Index("ix_pending_approvals_professional_created", "professional_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    professional_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("professional_profiles.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStatus.PENDING.value,
        comment="pending | approved | rejected",
    )
    is_blocked: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        comment="Canonical block flag",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Admin profile id",
    )

    def __repr__(self) -> str:
        return (
            f"<ApprovalDecision(id={self.id}, professional_id={self.professional_id}, "
            f"status='{self.status}', blocked={self.is_blocked})>"
        )

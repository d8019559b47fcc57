"""ProfessionalRecord model for registered dentists.

Besides the identity fields, the record carries the CRO registration
(Conselho Regional de Odontologia), up to two specialties and two offices,
contact channels and social links. `approval_status` and `is_blocked` are
projections of the latest approval decision and are written in the same
transaction as the decision.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class ProfessionalRecord(Base):
    """Public and administrative data of a dental professional."""

    __tablename__ = "professional_profiles"

    id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("profiles.id"),
        primary_key=True,
        comment="Same id as the profile",
    )

    # Personal
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # CRO registration
    cro_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        comment="CRO registration number",
    )
    cro_state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    cro_file_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="URL of the uploaded CRO document",
    )

    # Specialties
    specialty1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    specialty2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Contact
    mobile_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    mobile_phone2: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    landline_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    whatsapp_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    neighborhood: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Main office
    office_cep1: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    office_street1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    office_number1: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    office_complement1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    office_neighborhood1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    office_city1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    office_state1: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    # Second office
    office_cep2: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    office_street2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    office_number2: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    office_complement2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    office_neighborhood2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    office_city2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    office_state2: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    # Insurance
    accepts_insurance: Mapped[bool] = mapped_column(nullable=False, default=False)
    insurance_names: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Accepted insurance plans",
    )

    # Social links
    instagram: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facebook: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    linkedin: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telegram: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tiktok: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Consents
    data_sharing_consent: Mapped[bool] = mapped_column(nullable=False, default=False)
    rules_acceptance: Mapped[bool] = mapped_column(nullable=False, default=False)

    # Workflow projections
    approval_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        comment="Projection of the latest approval decision",
    )
    is_blocked: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        comment="Projection of the latest decision's block flag",
    )
    public_page_active: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        comment="Admin toggle for the public listing",
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
        return (
            f"<ProfessionalRecord(id={self.id}, name='{self.full_name}', "
            f"status='{self.approval_status}')>"
        )

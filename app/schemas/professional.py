"""Pydantic schemas for professional records.

Registration input, self-service updates, public directory entries and
admin views.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from app.models.approval import ApprovalStatus
from app.schemas.utils import (
    Cep,
    Email,
    NonEmptyStr,
    NonNegativeInt,
    PhoneNumber,
    SocialLink,
    StateCode,
)


class ProfessionalContact(BaseModel):
    """Contact, office, insurance and social fields, shared by create and update."""

    phone_number: PhoneNumber | None = None
    mobile_phone: PhoneNumber | None = None
    mobile_phone2: PhoneNumber | None = None
    landline_phone: PhoneNumber | None = None
    whatsapp_phone: PhoneNumber | None = None
    city: str | None = Field(None, max_length=100)
    neighborhood: str | None = Field(None, max_length=100)

    specialty1: str | None = Field(None, max_length=100, examples=["Ortodontia"])
    specialty2: str | None = Field(None, max_length=100)

    office_cep1: Cep | None = None
    office_street1: str | None = Field(None, max_length=255)
    office_number1: str | None = Field(None, max_length=20)
    office_complement1: str | None = Field(None, max_length=100)
    office_neighborhood1: str | None = Field(None, max_length=100)
    office_city1: str | None = Field(None, max_length=100)
    office_state1: StateCode | None = None

    office_cep2: Cep | None = None
    office_street2: str | None = Field(None, max_length=255)
    office_number2: str | None = Field(None, max_length=20)
    office_complement2: str | None = Field(None, max_length=100)
    office_neighborhood2: str | None = Field(None, max_length=100)
    office_city2: str | None = Field(None, max_length=100)
    office_state2: StateCode | None = None

    accepts_insurance: bool = False
    insurance_names: list[str] = Field(default_factory=list)

    instagram: SocialLink | None = None
    facebook: SocialLink | None = None
    website: SocialLink | None = None
    linkedin: SocialLink | None = None
    telegram: SocialLink | None = None
    tiktok: SocialLink | None = None


class ProfessionalRegistration(ProfessionalContact):
    """Sign-up form of a professional."""

    email: Email
    password: str = Field(..., min_length=6, max_length=128)
    full_name: NonEmptyStr = Field(..., max_length=255, examples=["Ana Souza"])
    birth_date: date | None = None
    cro_number: str | None = Field(None, max_length=30, examples=["12345"])
    cro_state: StateCode | None = None
    cro_file_url: str | None = Field(None, description="URL of the uploaded CRO document")
    data_sharing_consent: bool = False
    rules_acceptance: bool = False

    def record_fields(self) -> dict[str, Any]:
        """Attributes stored on the professional record."""
        return self.model_dump(exclude={"email", "password"})


class ProfessionalUpdate(ProfessionalContact):
    """Self-service edit; only the fields sent are changed."""

    accepts_insurance: bool | None = None
    insurance_names: list[str] | None = None


class DirectoryEntry(BaseModel):
    """Public view of a visible professional."""

    id: str
    full_name: str
    specialty1: str | None = None
    specialty2: str | None = None
    cro_number: str | None = None
    cro_state: str | None = None
    city: str | None = None
    neighborhood: str | None = None
    office_street1: str | None = None
    office_number1: str | None = None
    office_complement1: str | None = None
    office_neighborhood1: str | None = None
    office_city1: str | None = None
    office_state1: str | None = None
    office_cep1: str | None = None
    office_street2: str | None = None
    office_number2: str | None = None
    office_neighborhood2: str | None = None
    office_city2: str | None = None
    office_state2: str | None = None
    mobile_phone: str | None = None
    landline_phone: str | None = None
    whatsapp_phone: str | None = None
    accepts_insurance: bool = False
    insurance_names: list[str] = Field(default_factory=list)
    instagram: str | None = None
    facebook: str | None = None
    website: str | None = None
    linkedin: str | None = None
    telegram: str | None = None
    tiktok: str | None = None

    model_config = {"from_attributes": True}


class DirectoryListResponse(BaseModel):
    items: list[DirectoryEntry]
    total: NonNegativeInt
    skip: NonNegativeInt
    limit: int


class ProfessionalResponse(ProfessionalContact):
    """Full record, for its owner and for admins."""

    id: str
    full_name: str
    email: str | None = None
    birth_date: date | None = None
    cro_number: str | None = None
    cro_state: str | None = None
    cro_file_url: str | None = None
    data_sharing_consent: bool
    rules_acceptance: bool
    approval_status: ApprovalStatus
    is_blocked: bool
    public_page_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ApprovalDecisionResponse(BaseModel):
    id: int
    status: ApprovalStatus
    is_blocked: bool
    created_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None

    model_config = {"from_attributes": True}


class ProfessionalDetailResponse(ProfessionalResponse):
    latest_decision: ApprovalDecisionResponse | None = None


class ProfessionalListItem(BaseModel):
    """Row of the admin listing."""

    id: str
    full_name: str
    email: str | None = None
    cro_number: str | None = None
    cro_state: str | None = None
    specialty1: str | None = None
    city: str | None = None
    approval_status: ApprovalStatus
    is_blocked: bool
    public_page_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfessionalListResponse(BaseModel):
    items: list[ProfessionalListItem]
    total: NonNegativeInt
    skip: NonNegativeInt
    limit: int


class BlockUpdate(BaseModel):
    blocked: bool


class PublicPageUpdate(BaseModel):
    active: bool


class DashboardResponse(BaseModel):
    total: NonNegativeInt
    pending: NonNegativeInt
    approved: NonNegativeInt
    rejected: NonNegativeInt
    blocked: NonNegativeInt
    visible: NonNegativeInt

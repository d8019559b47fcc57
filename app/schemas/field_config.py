"""Schemas for field configuration and the specialty catalog."""

from pydantic import BaseModel, Field

from app.models.field_config import FieldCategory
from app.schemas.utils import NonEmptyStr, NonNegativeInt


class FieldConfigResponse(BaseModel):
    id: str
    name: str
    label: str
    category: FieldCategory
    required: bool
    active: bool
    display_order: int

    model_config = {"from_attributes": True}


class FieldConfigUpdate(BaseModel):
    label: NonEmptyStr | None = Field(None, max_length=255)
    required: bool | None = None
    active: bool | None = None
    display_order: NonNegativeInt | None = None


class SpecialtyCreate(BaseModel):
    name: NonEmptyStr = Field(..., max_length=100, examples=["Ortodontia"])


class SpecialtyResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}

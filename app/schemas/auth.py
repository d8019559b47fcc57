"""Schemas of the authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from app.models.approval import ApprovalStatus
from app.models.profile import UserRole
from app.schemas.utils import Email


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    """Resolved user as exposed to the client."""

    id: str
    email: str
    role: UserRole
    full_name: str | None = None
    approval_status: ApprovalStatus | None = None
    is_blocked: bool = False
    is_approved: bool = False


class LoginResponse(BaseModel):
    success: bool
    message: str | None = Field(None, description="Welcome notice or error message")
    user: CurrentUser | None = None
    session: SessionTokens | None = None


class RegistrationResponse(BaseModel):
    id: str
    email: str
    approval_status: ApprovalStatus
    message: str = "Cadastro realizado com sucesso! Aguarde a aprovação do administrador."


class PasswordResetRequest(BaseModel):
    email: Email


class PasswordUpdate(BaseModel):
    """New password for the signed-in user, typed twice."""

    password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if v != info.data.get("password"):
            raise ValueError("As senhas não coincidem.")
        return v


class MessageResponse(BaseModel):
    message: str

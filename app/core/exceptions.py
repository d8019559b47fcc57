"""
RFC 9457 Problem Details for the directory API.

Domain errors of the session, login and approval flows. Every error keeps a
`user_message` (Portuguese, shown as-is by the frontend) next to the
problem detail, so callers never have to collapse distinct failures into a
single generic message.
"""

from enum import Enum

from fastapi_errors_rfc9457 import (
    ConflictError,
    InternalServerError,
    ProblemDetail,
    RFC9457Exception,
    ServiceUnavailableError,
)

ERROR_TYPE_BASE = "https://dental-directory.app/errors"

GENERIC_LOGIN_MESSAGE = "Ocorreu um erro durante o login. Tente novamente."
TIMEOUT_MESSAGE = "O login demorou muito para responder. Por favor, tente novamente."
PROFILE_NOT_FOUND_MESSAGE = (
    "Não foi possível localizar o perfil deste usuário. Contate o administrador."
)
NOT_APPROVED_MESSAGE = "Seu cadastro ainda não foi aprovado ou está bloqueado."


class AuthErrorKind(str, Enum):
    """Known identity store failures."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    USER_ALREADY_REGISTERED = "user_already_registered"
    RATE_LIMITED = "rate_limited"
    INVALID_SESSION = "invalid_session"
    UNKNOWN = "unknown"


# Ordered: the first matching substring wins
AUTH_MESSAGE_MAP: list[tuple[str, AuthErrorKind, str]] = [
    ("invalid user credentials", AuthErrorKind.INVALID_CREDENTIALS, "Email ou senha incorretos."),
    ("invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS, "Email ou senha incorretos."),
    (
        "account is not fully set up",
        AuthErrorKind.EMAIL_NOT_CONFIRMED,
        "Confirme seu email antes de entrar.",
    ),
    ("email not confirmed", AuthErrorKind.EMAIL_NOT_CONFIRMED, "Confirme seu email antes de entrar."),
    (
        "user exists",
        AuthErrorKind.USER_ALREADY_REGISTERED,
        "Já existe um cadastro com este email.",
    ),
    (
        "already registered",
        AuthErrorKind.USER_ALREADY_REGISTERED,
        "Já existe um cadastro com este email.",
    ),
    (
        "too many requests",
        AuthErrorKind.RATE_LIMITED,
        "Muitas tentativas. Aguarde alguns minutos e tente novamente.",
    ),
    (
        "rate limit",
        AuthErrorKind.RATE_LIMITED,
        "Muitas tentativas. Aguarde alguns minutos e tente novamente.",
    ),
    (
        "session not active",
        AuthErrorKind.INVALID_SESSION,
        "Sua sessão expirou. Entre novamente.",
    ),
    ("token is not active", AuthErrorKind.INVALID_SESSION, "Sua sessão expirou. Entre novamente."),
    ("invalid_grant", AuthErrorKind.INVALID_CREDENTIALS, "Email ou senha incorretos."),
]


class AuthError(RFC9457Exception):
    """
    Identity store rejected the request (credentials, confirmation, rate limit).

    Attributes:
        kind: Classified failure
        user_message: Message shown to the user
        raw_message: Message returned by the identity store
    """

    def __init__(
        self,
        kind: AuthErrorKind = AuthErrorKind.UNKNOWN,
        user_message: str = GENERIC_LOGIN_MESSAGE,
        raw_message: str | None = None,
        instance: str | None = None,
    ):
        self.kind = kind
        self.user_message = user_message
        self.raw_message = raw_message
        super().__init__(
            status_code=429 if kind == AuthErrorKind.RATE_LIMITED else 401,
            title="Authentication Failed",
            detail=user_message,
            type=f"{ERROR_TYPE_BASE}/auth/{kind.value}",
            instance=instance,
        )

    @classmethod
    def from_identity_message(cls, message: str | None, instance: str | None = None) -> "AuthError":
        """
        Build an AuthError from a raw identity store message.

        Unknown messages get the generic fallback.
        """
        lowered = (message or "").lower()
        for needle, kind, user_message in AUTH_MESSAGE_MAP:
            if needle in lowered:
                return cls(kind=kind, user_message=user_message, raw_message=message, instance=instance)
        return cls(raw_message=message, instance=instance)


class OperationTimeoutError(RFC9457Exception):
    """An enveloped operation missed its deadline."""

    def __init__(self, operation: str = "operation", timeout: float | None = None):
        self.operation = operation
        self.timeout = timeout
        self.user_message = TIMEOUT_MESSAGE
        super().__init__(
            status_code=504,
            title="Operation Timeout",
            detail=TIMEOUT_MESSAGE,
            type=f"{ERROR_TYPE_BASE}/timeout",
        )

    def __str__(self) -> str:
        return f"{self.operation} timed out after {self.timeout}s"


class IdentityStoreUnavailableError(ServiceUnavailableError):
    """
    Identity store unreachable or failing with a server error.

    Transient: the login flow retries it.
    """

    def __init__(
        self,
        detail: str = "Identity store is unavailable",
        instance: str | None = None,
        retry_after: int | None = None,
    ):
        self.user_message = GENERIC_LOGIN_MESSAGE
        super().__init__(
            detail=detail,
            retry_after=retry_after,
            instance=instance,
        )


class DataIntegrityError(RFC9457Exception):
    """Stored state violates an invariant (e.g. identity without profile)."""

    def __init__(self, detail: str, user_message: str = PROFILE_NOT_FOUND_MESSAGE):
        self.user_message = user_message
        super().__init__(
            status_code=409,
            title="Data Integrity Error",
            detail=detail,
            type=f"{ERROR_TYPE_BASE}/data-integrity",
        )


class ProfileNotFoundError(DataIntegrityError):
    """Authenticated identity has no profile row."""

    def __init__(self, identity_id: str):
        self.identity_id = identity_id
        super().__init__(detail=f"No profile for authenticated identity {identity_id}")


class DenyReason(str, Enum):
    """Why the authorization gate refused a capability."""

    UNAUTHENTICATED = "unauthenticated"
    WRONG_ROLE = "wrong_role"
    NOT_YET_APPROVED = "not_yet_approved"
    BLOCKED = "blocked"


class NotApprovedOrBlockedError(RFC9457Exception):
    """Professional authenticated but is not approved or is blocked."""

    def __init__(self, professional_id: str, reason: DenyReason):
        self.professional_id = professional_id
        self.reason = reason
        self.user_message = NOT_APPROVED_MESSAGE
        super().__init__(
            status_code=403,
            title="Professional Not Approved",
            detail=NOT_APPROVED_MESSAGE,
            type=f"{ERROR_TYPE_BASE}/{reason.value.replace('_', '-')}",
        )


class LoginInProgressError(ConflictError):
    """A login is already running on this session context."""

    def __init__(self):
        self.user_message = "Login já em andamento."
        super().__init__(detail="A login attempt is already in progress")


class ProfessionalNotFoundError(RFC9457Exception):
    """Professional record does not exist (or is hidden from the caller)."""

    def __init__(self, professional_id: str, instance: str | None = None):
        self.professional_id = professional_id
        super().__init__(
            status_code=404,
            title="Not Found",
            detail=f"Professional {professional_id} not found",
            type=f"{ERROR_TYPE_BASE}/not-found",
            instance=instance,
        )


class ApprovalDecisionNotFoundError(RFC9457Exception):
    """No approval decision exists for the professional."""

    def __init__(self, professional_id: str):
        self.professional_id = professional_id
        super().__init__(
            status_code=404,
            title="Not Found",
            detail=f"No approval decision for professional {professional_id}",
            type=f"{ERROR_TYPE_BASE}/not-found",
            instance=f"/api/v1/admin/professionals/{professional_id}",
        )


class FieldConfigNotFoundError(RFC9457Exception):
    """Field configuration entry does not exist."""

    def __init__(self, field_id: str):
        super().__init__(
            status_code=404,
            title="Not Found",
            detail=f"Field configuration {field_id} not found",
            type=f"{ERROR_TYPE_BASE}/not-found",
            instance=f"/api/v1/admin/field-configs/{field_id}",
        )


class SpecialtyNotFoundError(RFC9457Exception):
    """Specialty does not exist in the catalog."""

    def __init__(self, specialty_id: int):
        super().__init__(
            status_code=404,
            title="Not Found",
            detail=f"Specialty {specialty_id} not found",
            type=f"{ERROR_TYPE_BASE}/not-found",
            instance=f"/api/v1/admin/specialties/{specialty_id}",
        )


class RegistrationValidationError(RFC9457Exception):
    """Registration is missing active required fields."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(
            status_code=422,
            title="Registration Validation Failed",
            detail=f"Missing required fields: {', '.join(missing_fields)}",
            type=f"{ERROR_TYPE_BASE}/registration-validation",
            instance="/api/v1/auth/register",
        )


class RegistrationFailedError(InternalServerError):
    """Registration could not be persisted after the identity was created."""

    def __init__(self, detail: str = "Registration could not be completed"):
        super().__init__(detail=detail, instance="/api/v1/auth/register")


__all__ = [
    "ApprovalDecisionNotFoundError",
    "AuthError",
    "AuthErrorKind",
    "ConflictError",
    "DataIntegrityError",
    "DenyReason",
    "FieldConfigNotFoundError",
    "IdentityStoreUnavailableError",
    "LoginInProgressError",
    "NotApprovedOrBlockedError",
    "OperationTimeoutError",
    "ProblemDetail",
    "ProfessionalNotFoundError",
    "ProfileNotFoundError",
    "RFC9457Exception",
    "RegistrationFailedError",
    "RegistrationValidationError",
    "ServiceUnavailableError",
    "SpecialtyNotFoundError",
]

"""
RFC 9457 rendering of the directory's domain errors.
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient
from fastapi_errors_rfc9457 import RFC9457Config, setup_rfc9457_handlers

from app.core.exceptions import (
    NOT_APPROVED_MESSAGE,
    TIMEOUT_MESSAGE,
    AuthError,
    DenyReason,
    NotApprovedOrBlockedError,
    OperationTimeoutError,
    ProfessionalNotFoundError,
    ProfileNotFoundError,
    RegistrationValidationError,
)

app = FastAPI()
setup_rfc9457_handlers(
    app,
    config=RFC9457Config(
        base_url="about:blank",
        include_trace_id=True,
        expose_internal_errors=False,
        include_error_pages=False,
    ),
)


@app.get("/test/invalid-credentials")
async def endpoint_invalid_credentials():
    raise AuthError.from_identity_message("Invalid user credentials")


@app.get("/test/timeout")
async def endpoint_timeout():
    raise OperationTimeoutError(operation="login", timeout=30)


@app.get("/test/not-approved")
async def endpoint_not_approved():
    raise NotApprovedOrBlockedError("pro-1", DenyReason.NOT_YET_APPROVED)


@app.get("/test/profile-missing")
async def endpoint_profile_missing():
    raise ProfileNotFoundError("kc-user-1")


@app.get("/test/professional-missing")
async def endpoint_professional_missing():
    raise ProfessionalNotFoundError("pro-404")


@app.get("/test/registration-invalid")
async def endpoint_registration_invalid():
    raise RegistrationValidationError(["cro_number"])


client = TestClient(app, raise_server_exceptions=False)


class TestDomainProblemDetails:
    def test_invalid_credentials(self):
        response = client.get("/test/invalid-credentials")

        assert response.status_code == 401
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["detail"] == "Email ou senha incorretos."

    def test_timeout(self):
        response = client.get("/test/timeout")

        assert response.status_code == 504
        assert response.json()["detail"] == TIMEOUT_MESSAGE

    def test_not_approved(self):
        response = client.get("/test/not-approved")

        assert response.status_code == 403
        assert response.json()["detail"] == NOT_APPROVED_MESSAGE

    def test_profile_missing_is_conflict(self):
        assert client.get("/test/profile-missing").status_code == 409

    def test_professional_missing(self):
        assert client.get("/test/professional-missing").status_code == 404

    def test_registration_invalid(self):
        response = client.get("/test/registration-invalid")

        assert response.status_code == 422
        assert "cro_number" in response.json()["detail"]

"""Tests for the domain errors and their RFC 9457 mapping."""

import pytest

from app.core.exceptions import (
    GENERIC_LOGIN_MESSAGE,
    NOT_APPROVED_MESSAGE,
    PROFILE_NOT_FOUND_MESSAGE,
    TIMEOUT_MESSAGE,
    AuthError,
    AuthErrorKind,
    DataIntegrityError,
    DenyReason,
    IdentityStoreUnavailableError,
    LoginInProgressError,
    NotApprovedOrBlockedError,
    OperationTimeoutError,
    ProfileNotFoundError,
    RegistrationValidationError,
    RFC9457Exception,
)


class TestAuthErrorMapping:
    @pytest.mark.parametrize(
        "raw_message,kind,user_message",
        [
            ("Invalid user credentials", AuthErrorKind.INVALID_CREDENTIALS, "Email ou senha incorretos."),
            ("Invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS, "Email ou senha incorretos."),
            ("Email not confirmed", AuthErrorKind.EMAIL_NOT_CONFIRMED, "Confirme seu email antes de entrar."),
            (
                "Account is not fully set up",
                AuthErrorKind.EMAIL_NOT_CONFIRMED,
                "Confirme seu email antes de entrar.",
            ),
            ("User already registered", AuthErrorKind.USER_ALREADY_REGISTERED, None),
            ("Too many requests", AuthErrorKind.RATE_LIMITED, None),
        ],
    )
    def test_known_messages_are_classified(self, raw_message, kind, user_message):
        error = AuthError.from_identity_message(raw_message)

        assert error.kind == kind
        assert error.raw_message == raw_message
        if user_message:
            assert error.user_message == user_message

    def test_unknown_message_falls_back_to_generic(self):
        error = AuthError.from_identity_message("something odd happened")

        assert error.kind == AuthErrorKind.UNKNOWN
        assert error.user_message == GENERIC_LOGIN_MESSAGE

    def test_none_message_falls_back_to_generic(self):
        assert AuthError.from_identity_message(None).kind == AuthErrorKind.UNKNOWN

    def test_rate_limited_maps_to_429(self):
        assert AuthError.from_identity_message("rate limit exceeded").status_code == 429

    def test_invalid_credentials_maps_to_401(self):
        error = AuthError.from_identity_message("Invalid user credentials")

        assert isinstance(error, RFC9457Exception)
        assert error.status_code == 401


class TestTaxonomy:
    def test_timeout_is_distinct_from_auth_errors(self):
        error = OperationTimeoutError(operation="login", timeout=30)

        assert not isinstance(error, AuthError)
        assert error.status_code == 504
        assert error.user_message == TIMEOUT_MESSAGE
        assert "30" in str(error)

    def test_identity_store_unavailable_is_503(self):
        assert IdentityStoreUnavailableError().status_code == 503

    def test_profile_not_found_is_a_data_integrity_error(self):
        error = ProfileNotFoundError("abc")

        assert isinstance(error, DataIntegrityError)
        assert error.identity_id == "abc"
        assert error.status_code == 409
        assert error.user_message == PROFILE_NOT_FOUND_MESSAGE

    @pytest.mark.parametrize("reason", [DenyReason.NOT_YET_APPROVED, DenyReason.BLOCKED])
    def test_not_approved_or_blocked_is_403(self, reason):
        error = NotApprovedOrBlockedError("pro-1", reason)

        assert error.status_code == 403
        assert error.reason == reason
        assert error.user_message == NOT_APPROVED_MESSAGE

    def test_login_in_progress_is_409(self):
        assert LoginInProgressError().status_code == 409

    def test_registration_validation_lists_missing_fields(self):
        error = RegistrationValidationError(["cro_number", "specialty1"])

        assert error.status_code == 422
        assert error.missing_fields == ["cro_number", "specialty1"]

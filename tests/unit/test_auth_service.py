"""Login and logout flow tests against the in-memory database and fake identity store."""

import asyncio
from unittest.mock import patch

import pytest

from app.core.exceptions import (
    GENERIC_LOGIN_MESSAGE,
    NOT_APPROVED_MESSAGE,
    PROFILE_NOT_FOUND_MESSAGE,
    TIMEOUT_MESSAGE,
    AuthError,
    IdentityStoreUnavailableError,
    LoginInProgressError,
)
from app.core.session_state import WELCOME_MESSAGE, SessionContext, SessionStatus
from app.models import ApprovalStatus
from app.services import auth_service, profile_repository


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def context():
    return SessionContext()


async def _login(email, identity_store, db, context, sleep, **kwargs):
    options = {"timeout": 1.0, "max_attempts": 3, "base_delay": 1.0}
    options.update(kwargs)
    return await auth_service.login(
        email,
        "secret123",
        identity_store=identity_store,
        db=db,
        context=context,
        sleep=sleep,
        **options,
    )


class TestLoginSuccess:
    @pytest.mark.asyncio
    async def test_approved_professional_logs_in(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)

        result = await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert result.success is True
        assert result.message == WELCOME_MESSAGE
        assert result.user.id == professional_id
        assert context.status == SessionStatus.AUTHENTICATED
        assert context.user.id == professional_id
        assert context.notices == [WELCOME_MESSAGE]
        assert context.login_in_flight is False

    @pytest.mark.asyncio
    async def test_admin_logs_in_without_approval(
        self, db_session, identity_store, make_admin, context, sleep
    ):
        await make_admin()

        result = await _login("admin@example.com", identity_store, db_session, context, sleep)

        assert result.success is True
        assert result.user.is_admin
        assert result.user.approval is None

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried_with_one_welcome(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        identity_store.sign_in_errors = [
            IdentityStoreUnavailableError(),
            IdentityStoreUnavailableError(),
        ]

        result = await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert result.success is True
        assert identity_store.sign_in_calls == 3
        assert sleep.delays == [1.0, 2.0]
        assert context.notices.count(WELCOME_MESSAGE) == 1


class TestLoginFailures:
    @pytest.mark.asyncio
    async def test_invalid_credentials_are_not_retried(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)

        result = await auth_service.login(
            "pro1@example.com",
            "wrong-password",
            identity_store=identity_store,
            db=db_session,
            context=context,
            timeout=1.0,
            max_attempts=3,
            base_delay=1.0,
            sleep=sleep,
        )

        assert result.success is False
        assert result.error == "invalid_credentials"
        assert result.message == "Email ou senha incorretos."
        assert identity_store.sign_in_calls == 1
        assert sleep.delays == []
        assert context.status == SessionStatus.ANONYMOUS

    @pytest.mark.asyncio
    async def test_timeout_on_last_attempt_reports_timeout(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        identity_store.sign_in_errors = [
            IdentityStoreUnavailableError(),
            IdentityStoreUnavailableError(),
        ]
        identity_store.sign_in_delays = [0, 0, 1.0]

        result = await _login(
            "pro1@example.com", identity_store, db_session, context, sleep, timeout=0.05
        )

        assert result.success is False
        assert result.error == "timeout"
        assert result.message == TIMEOUT_MESSAGE
        assert identity_store.sign_in_calls == 3
        assert context.pop_login_error() == TIMEOUT_MESSAGE
        assert context.notices == []

    @pytest.mark.asyncio
    async def test_timed_out_attempts_sign_out_their_sessions(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)

        async def slow_get_profile(db, identity_id):
            await asyncio.sleep(0.2)

        with patch.object(profile_repository, "get_profile", slow_get_profile):
            result = await _login(
                "pro1@example.com", identity_store, db_session, context, sleep, timeout=0.05
            )

        assert result.error == "timeout"
        assert identity_store.sign_in_calls == 3
        assert identity_store.sessions == {}
        assert identity_store.signed_out == [professional_id] * 3

    @pytest.mark.asyncio
    async def test_success_after_timeout_keeps_only_the_winning_session(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        real_get_profile = profile_repository.get_profile
        calls = {"n": 0}

        async def first_call_slow(db, identity_id):
            calls["n"] += 1
            if calls["n"] == 1:
                await asyncio.sleep(0.2)
            return await real_get_profile(db, identity_id)

        with patch.object(profile_repository, "get_profile", first_call_slow):
            result = await _login(
                "pro1@example.com", identity_store, db_session, context, sleep, timeout=0.05
            )

        assert result.success is True
        assert list(identity_store.sessions) == [result.user.session.access_token]

    @pytest.mark.asyncio
    async def test_identity_store_outage_gives_generic_message(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        identity_store.sign_in_errors = [IdentityStoreUnavailableError()] * 3

        result = await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert result.error == "unavailable"
        assert result.message == GENERIC_LOGIN_MESSAGE
        assert identity_store.sign_in_calls == 3

    @pytest.mark.asyncio
    async def test_pending_professional_is_signed_out(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        professional_id = await make_professional(status=ApprovalStatus.PENDING)

        result = await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert result.success is False
        assert result.error == "not_yet_approved"
        assert result.message == NOT_APPROVED_MESSAGE
        assert identity_store.signed_out == [professional_id]
        assert context.user is None
        assert context.status == SessionStatus.ANONYMOUS
        assert context.pop_login_error() == NOT_APPROVED_MESSAGE
        assert context.pop_login_error() is None

    @pytest.mark.asyncio
    async def test_blocked_professional_is_signed_out(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED, blocked=True)

        result = await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert result.error == "blocked"
        assert result.message == NOT_APPROVED_MESSAGE
        assert identity_store.signed_out == [professional_id]

    @pytest.mark.asyncio
    async def test_missing_profile_signs_out_and_reports(
        self, db_session, identity_store, context, sleep
    ):
        identity_store.add_user("orphan-1", "orphan@example.com")

        result = await _login("orphan@example.com", identity_store, db_session, context, sleep)

        assert result.error == "profile_not_found"
        assert result.message == PROFILE_NOT_FOUND_MESSAGE
        assert identity_store.signed_out == ["orphan-1"]
        assert identity_store.sign_in_calls == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_gives_generic_message(
        self, db_session, identity_store, context, sleep
    ):
        identity_store.sign_in_errors = [RuntimeError("boom")]

        result = await _login("anyone@example.com", identity_store, db_session, context, sleep)

        assert result.error == "internal"
        assert result.message == GENERIC_LOGIN_MESSAGE
        assert context.login_in_flight is False

    @pytest.mark.asyncio
    async def test_concurrent_login_is_refused(self, db_session, identity_store, context, sleep):
        context.begin_login()

        with pytest.raises(LoginInProgressError):
            await _login("pro1@example.com", identity_store, db_session, context, sleep)

        assert identity_store.sign_in_calls == 0


class TestPasswordRecovery:
    @pytest.mark.asyncio
    async def test_known_and_unknown_emails_get_the_same_answer(self, identity_store):
        identity_store.add_user("pro-1", "pro1@example.com")

        known = await auth_service.request_password_reset("pro1@example.com", identity_store)
        unknown = await auth_service.request_password_reset("nobody@example.com", identity_store)

        assert known == unknown == auth_service.PASSWORD_RESET_SENT_MESSAGE
        assert identity_store.reset_requests == ["pro1@example.com"]

    @pytest.mark.asyncio
    async def test_identity_store_refusal_is_not_revealed(self, identity_store):
        identity_store.reset_error = AuthError.from_identity_message("too many requests")

        message = await auth_service.request_password_reset("pro1@example.com", identity_store)

        assert message == auth_service.PASSWORD_RESET_SENT_MESSAGE

    @pytest.mark.asyncio
    async def test_identity_store_outage_propagates(self, identity_store):
        identity_store.reset_error = IdentityStoreUnavailableError()

        with pytest.raises(IdentityStoreUnavailableError):
            await auth_service.request_password_reset("pro1@example.com", identity_store)

    @pytest.mark.asyncio
    async def test_new_password_is_used_on_next_login(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        await _login("pro1@example.com", identity_store, db_session, context, sleep)

        message = await auth_service.update_password(identity_store, context.user, "nova-senha")

        assert message == auth_service.PASSWORD_UPDATED_MESSAGE
        assert identity_store.users["pro1@example.com"][1] == "nova-senha"


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_signs_out_and_clears(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)
        await _login("pro1@example.com", identity_store, db_session, context, sleep)

        await auth_service.logout(identity_store, context)

        assert identity_store.signed_out == [professional_id]
        assert context.user is None
        assert context.status == SessionStatus.ANONYMOUS

    @pytest.mark.asyncio
    async def test_logout_clears_even_if_sign_out_fails(
        self, db_session, identity_store, make_professional, context, sleep
    ):
        await make_professional(status=ApprovalStatus.APPROVED)
        await _login("pro1@example.com", identity_store, db_session, context, sleep)
        identity_store.sign_out_error = AuthError.from_identity_message("Session not active")

        await auth_service.logout(identity_store, context)

        assert context.user is None

"""HTTP tests of the directory API through the ASGI transport."""

from unittest.mock import AsyncMock, patch

import pytest

from app.core.dependencies import get_notifier
from app.core.exceptions import NOT_APPROVED_MESSAGE, TIMEOUT_MESSAGE
from app.core.security import ACCESS_TOKEN_HEADER
from app.core.session_state import WELCOME_MESSAGE
from app.main import app
from app.models import ApprovalStatus
from app.services.auth_service import LoginResult
from app.services.notification_service import NotificationDispatcher

API = "/api/v1"


def bearer(session) -> dict[str, str]:
    return {"Authorization": f"Bearer {session.access_token}"}


@pytest.fixture
async def admin_headers(make_admin, identity_store):
    admin_id = await make_admin()
    return bearer(identity_store.issue_session(admin_id, "admin@example.com"))


class TestDirectoryEndpoints:
    @pytest.mark.asyncio
    async def test_search_lists_only_visible(self, api_client, make_professional):
        await make_professional(
            status=ApprovalStatus.APPROVED, public_page_active=True, full_name="Ana Souza"
        )
        await make_professional(status=ApprovalStatus.PENDING, public_page_active=True)

        response = await api_client.get(f"{API}/directory/professionals")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["full_name"] == "Ana Souza"
        assert "email" not in body["items"][0]

    @pytest.mark.asyncio
    async def test_hidden_professional_detail_is_404(self, api_client, make_professional):
        professional_id = await make_professional(public_page_active=True)

        response = await api_client.get(f"{API}/directory/professionals/{professional_id}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_visible_professional_detail(self, api_client, make_professional):
        professional_id = await make_professional(
            status=ApprovalStatus.APPROVED, public_page_active=True
        )

        response = await api_client.get(f"{API}/directory/professionals/{professional_id}")

        assert response.status_code == 200
        assert response.json()["id"] == professional_id


class TestAuthEndpoints:
    @pytest.mark.asyncio
    async def test_login_success_returns_tokens_and_welcome(self, api_client, make_professional):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)

        response = await api_client.post(
            f"{API}/auth/login", json={"email": "pro1@example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == WELCOME_MESSAGE
        assert body["user"]["id"] == professional_id
        assert body["user"]["is_approved"] is True
        assert body["session"]["access_token"]

    @pytest.mark.asyncio
    async def test_login_wrong_password_is_401(self, api_client, make_professional):
        await make_professional(status=ApprovalStatus.APPROVED)

        response = await api_client.post(
            f"{API}/auth/login", json={"email": "pro1@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Email ou senha incorretos."

    @pytest.mark.asyncio
    async def test_login_pending_professional_is_403(
        self, api_client, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.PENDING)

        response = await api_client.post(
            f"{API}/auth/login", json={"email": "pro1@example.com", "password": "secret123"}
        )

        assert response.status_code == 403
        assert response.json()["detail"] == NOT_APPROVED_MESSAGE
        assert identity_store.signed_out == [professional_id]

    @pytest.mark.asyncio
    async def test_login_timeout_is_504(self, api_client):
        result = LoginResult(success=False, error="timeout", message=TIMEOUT_MESSAGE)
        with patch("app.api.v1.endpoints.auth.auth_service.login", new=AsyncMock(return_value=result)):
            response = await api_client.post(
                f"{API}/auth/login", json={"email": "pro1@example.com", "password": "secret123"}
            )

        assert response.status_code == 504
        assert response.json()["detail"] == TIMEOUT_MESSAGE

    @pytest.mark.asyncio
    async def test_register_creates_pending_professional(self, api_client, seeded_db):
        response = await api_client.post(
            f"{API}/auth/register",
            json={
                "email": "ana.souza@clinica.com.br",
                "password": "segredo123",
                "full_name": "Ana Souza",
                "phone_number": "(11) 98765-4321",
                "birth_date": "1985-04-12",
                "city": "São Paulo",
                "cro_number": "12345",
                "cro_state": "SP",
                "cro_file_url": "https://files.example.com/cro/12345.pdf",
                "office_street1": "Av. Paulista, 1000",
                "office_cep1": "01310-100",
                "specialty1": "Ortodontia",
            },
        )

        assert response.status_code == 201
        assert response.json()["approval_status"] == "pending"

    @pytest.mark.asyncio
    async def test_register_missing_fields_is_422(self, api_client, seeded_db):
        response = await api_client.post(
            f"{API}/auth/register",
            json={
                "email": "ana.souza@clinica.com.br",
                "password": "segredo123",
                "full_name": "Ana Souza",
            },
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_me_requires_authentication(self, api_client):
        response = await api_client.get(f"{API}/auth/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_with_expired_session_returns_refreshed_token(
        self, api_client, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.PENDING)
        expired = identity_store.issue_session(professional_id, "pro1@example.com", expired=True)

        response = await api_client.get(f"{API}/auth/me", headers=bearer(expired))

        assert response.status_code == 200
        assert response.json()["approval_status"] == "pending"
        assert response.headers[ACCESS_TOKEN_HEADER] != expired.access_token

    @pytest.mark.asyncio
    async def test_logout(self, api_client, make_admin, identity_store):
        admin_id = await make_admin()
        session = identity_store.issue_session(admin_id, "admin@example.com")

        response = await api_client.post(f"{API}/auth/logout", headers=bearer(session))

        assert response.status_code == 204
        assert identity_store.signed_out == [admin_id]


    @pytest.mark.asyncio
    async def test_forgot_password_does_not_reveal_registration(
        self, api_client, make_professional, identity_store
    ):
        await make_professional(status=ApprovalStatus.APPROVED)

        known = await api_client.post(
            f"{API}/auth/forgot-password", json={"email": "pro1@example.com"}
        )
        unknown = await api_client.post(
            f"{API}/auth/forgot-password", json={"email": "nobody@example.com"}
        )

        assert known.status_code == unknown.status_code == 202
        assert known.json() == unknown.json()
        assert identity_store.reset_requests == ["pro1@example.com"]

    @pytest.mark.asyncio
    async def test_reset_password_requires_authentication(self, api_client):
        response = await api_client.post(
            f"{API}/auth/reset-password",
            json={"password": "nova-senha", "confirm_password": "nova-senha"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_reset_password_rejects_mismatch(self, api_client, make_admin, identity_store):
        admin_id = await make_admin()
        session = identity_store.issue_session(admin_id, "admin@example.com")

        response = await api_client.post(
            f"{API}/auth/reset-password",
            headers=bearer(session),
            json={"password": "nova-senha", "confirm_password": "outra-senha"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_reset_password_updates_identity(self, api_client, make_admin, identity_store):
        admin_id = await make_admin()
        session = identity_store.issue_session(admin_id, "admin@example.com")

        response = await api_client.post(
            f"{API}/auth/reset-password",
            headers=bearer(session),
            json={"password": "nova-senha", "confirm_password": "nova-senha"},
        )

        assert response.status_code == 200
        assert identity_store.users["admin@example.com"] == (admin_id, "nova-senha")


class TestProfessionalEndpoints:
    @pytest.mark.asyncio
    async def test_pending_professional_is_forbidden(
        self, api_client, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.PENDING)
        session = identity_store.issue_session(professional_id)

        response = await api_client.get(f"{API}/professionals/me", headers=bearer(session))

        assert response.status_code == 403
        assert response.json()["detail"] == NOT_APPROVED_MESSAGE

    @pytest.mark.asyncio
    async def test_approved_professional_edits_own_profile(
        self, api_client, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)
        session = identity_store.issue_session(professional_id, "pro1@example.com")

        response = await api_client.patch(
            f"{API}/professionals/me",
            headers=bearer(session),
            json={"office_city1": "Campinas", "instagram": "@dra.ana"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["office_city1"] == "Campinas"
        assert body["instagram"] == "@dra.ana"
        assert body["approval_status"] == "approved"


class TestAdminEndpoints:
    @pytest.mark.asyncio
    async def test_professional_cannot_use_admin_endpoints(
        self, api_client, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)
        session = identity_store.issue_session(professional_id)

        response = await api_client.get(
            f"{API}/admin/professionals/dashboard", headers=bearer(session)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_approve_then_list_publicly(self, api_client, admin_headers, make_professional):
        professional_id = await make_professional(public_page_active=True)

        response = await api_client.post(
            f"{API}/admin/professionals/{professional_id}/approve", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["approval_status"] == "approved"
        public = await api_client.get(f"{API}/directory/professionals/{professional_id}")
        assert public.status_code == 200

    @pytest.mark.asyncio
    async def test_block_hides_professional(self, api_client, admin_headers, make_professional):
        professional_id = await make_professional(
            status=ApprovalStatus.APPROVED, public_page_active=True
        )

        response = await api_client.put(
            f"{API}/admin/professionals/{professional_id}/block",
            headers=admin_headers,
            json={"blocked": True},
        )

        assert response.status_code == 200
        assert response.json()["is_blocked"] is True
        public = await api_client.get(f"{API}/directory/professionals/{professional_id}")
        assert public.status_code == 404

    @pytest.mark.asyncio
    async def test_blocked_professional_loses_own_area(
        self, api_client, admin_headers, make_professional, identity_store
    ):
        professional_id = await make_professional(status=ApprovalStatus.APPROVED)
        session = identity_store.issue_session(professional_id, "pro1@example.com")

        before = await api_client.get(f"{API}/professionals/me", headers=bearer(session))
        assert before.status_code == 200

        await api_client.put(
            f"{API}/admin/professionals/{professional_id}/block",
            headers=admin_headers,
            json={"blocked": True},
        )
        response = await api_client.get(f"{API}/professionals/me", headers=bearer(session))

        assert response.status_code == 403
        assert response.json()["type"].endswith("/blocked")
        assert response.json()["detail"] == NOT_APPROVED_MESSAGE

    @pytest.mark.asyncio
    async def test_each_approval_sends_one_notification(
        self, api_client, admin_headers, make_professional
    ):
        professional_id = await make_professional(public_page_active=True)
        notifier = AsyncMock(spec=NotificationDispatcher)
        app.dependency_overrides[get_notifier] = lambda: notifier

        for expected in (1, 2):
            response = await api_client.post(
                f"{API}/admin/professionals/{professional_id}/approve", headers=admin_headers
            )
            assert response.status_code == 200
            assert notifier.notify_decision.await_count == expected

        assert notifier.notify_decision.await_args.kwargs["approved"] is True

    @pytest.mark.asyncio
    async def test_detail_includes_latest_decision(
        self, api_client, admin_headers, make_professional
    ):
        professional_id = await make_professional(status=ApprovalStatus.REJECTED)

        response = await api_client.get(
            f"{API}/admin/professionals/{professional_id}", headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "pro1@example.com"
        assert body["latest_decision"]["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_unknown_professional_is_404(self, api_client, admin_headers):
        response = await api_client.post(
            f"{API}/admin/professionals/missing/approve", headers=admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_dashboard(self, api_client, admin_headers, make_professional):
        await make_professional()
        await make_professional(status=ApprovalStatus.APPROVED, public_page_active=True)

        response = await api_client.get(
            f"{API}/admin/professionals/dashboard", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["pending"] == 1
        assert response.json()["visible"] == 1

    @pytest.mark.asyncio
    async def test_field_config_toggle(self, api_client, admin_headers, seeded_db):
        response = await api_client.patch(
            f"{API}/admin/field-configs/cro_file_url",
            headers=admin_headers,
            json={"required": False},
        )

        assert response.status_code == 200
        assert response.json()["required"] is False

    @pytest.mark.asyncio
    async def test_duplicate_specialty_is_conflict(self, api_client, admin_headers):
        first = await api_client.post(
            f"{API}/admin/specialties", headers=admin_headers, json={"name": "Ortodontia"}
        )
        second = await api_client.post(
            f"{API}/admin/specialties", headers=admin_headers, json={"name": "ortodontia"}
        )

        assert first.status_code == 201
        assert second.status_code == 409

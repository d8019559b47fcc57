"""Outbound notifications about registrations and approval decisions.

Webhook delivery is best-effort: failures are logged and never reach the
caller. Each call performs at most one POST.
"""

import logging

import httpx
from opentelemetry import trace

from app.core.config import settings
from app.models.professional import ProfessionalRecord

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def contact_phone(record: ProfessionalRecord) -> str | None:
    """First phone number available on the record."""
    return (
        record.mobile_phone
        or record.whatsapp_phone
        or record.phone_number
        or record.landline_phone
    )


class NotificationDispatcher:
    """
    Posts JSON notifications to the configured webhooks.

    Example:
        ```python
        dispatcher = NotificationDispatcher(approval_url="https://hooks.example.com/approval")
        await dispatcher.notify_decision(record, "ana@example.com", approved=True)
        await dispatcher.close()
        ```
    """

    def __init__(
        self,
        approval_url: str | None = None,
        registration_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if approval_url is None and settings.NOTIFICATION_APPROVAL_WEBHOOK_URL:
            approval_url = str(settings.NOTIFICATION_APPROVAL_WEBHOOK_URL)
        if registration_url is None and settings.NOTIFICATION_REGISTRATION_WEBHOOK_URL:
            registration_url = str(settings.NOTIFICATION_REGISTRATION_WEBHOOK_URL)
        self.approval_url = approval_url
        self.registration_url = registration_url
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def _post(self, url: str | None, payload: dict, kind: str) -> bool:
        if not url:
            logger.debug(f"No webhook configured for {kind} notifications")
            return False

        with tracer.start_as_current_span(f"notify_{kind}") as span:
            span.set_attribute("notification.kind", kind)
            try:
                client = await self._get_client()
                response = await client.post(url, json=payload)
                response.raise_for_status()
            except Exception as e:
                logger.warning(f"{kind} notification failed: {e}")
                span.set_attribute("notification.error", True)
                span.record_exception(e)
                return False

            span.add_event("notification_sent")
            return True

    async def notify_decision(
        self, record: ProfessionalRecord, email: str | None, approved: bool
    ) -> bool:
        """Notify an approval (`approved=True`) or rejection (`approved=False`)."""
        payload = {
            "name": record.full_name,
            "phone": contact_phone(record),
            "email": email,
            "approved": approved,
        }
        return await self._post(self.approval_url, payload, "approval" if approved else "rejection")

    async def notify_registration(self, record: ProfessionalRecord, email: str | None) -> bool:
        payload = {
            "name": record.full_name,
            "phone": contact_phone(record),
            "email": email,
        }
        return await self._post(self.registration_url, payload, "registration")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

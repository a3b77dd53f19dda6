"""
HTTP delivery channel.

Push goes to the OneSignal REST API, SMS and e-mail to HTTP gateways. Every
call is bounded by ``request_timeout`` and transport errors are retried a
few times before giving up with ``NotificationError``.
"""

import logging
from datetime import datetime
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from interpreter_booking.core.contracts import NotificationChannel
from interpreter_booking.core.exceptions import NotificationError
from interpreter_booking.core.models import Recipient
from interpreter_booking.notifications.config import (
    NotificationSettings,
    get_notification_settings,
)

logger = logging.getLogger(__name__)


def build_user_tags(recipients: list[Recipient]) -> list[dict[str, str]]:
    """
    OneSignal tag filter matching any of the recipients by e-mail.

    Tags are joined with ``OR`` operators: [tag, OR, tag, ...].
    """
    tags: list[dict[str, str]] = []
    for recipient in recipients:
        if tags:
            tags.append({"operator": "OR"})
        tags.append({"key": "email", "relation": "=", "value": recipient.email})
    return tags


class HttpNotificationChannel(NotificationChannel):
    """
    Push, SMS and e-mail over HTTP.

    When a sub-channel is not configured its messages are only logged.

    Usage:
        async with HttpNotificationChannel() as channel:
            await channel.send_sms("+46700000000", "Hej!")
    """

    def __init__(
        self,
        settings: NotificationSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_notification_settings()
        self.client = client
        self._owns_client = client is None

    @property
    def name(self) -> str:
        return "http"

    async def __aenter__(self) -> "HttpNotificationChannel":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def start(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.settings.request_timeout)
            self._owns_client = True
        return self.client

    async def close(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=0.5, max=5),
        reraise=True,
    )
    async def _post(
        self, url: str, json: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        client = await self.start()
        response = await client.post(url, json=json, headers=headers)
        response.raise_for_status()
        return response

    async def _deliver(
        self,
        channel: str,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str],
        recipient: str,
    ) -> None:
        try:
            await self._post(url, body, headers)
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                channel, f"HTTP {e.response.status_code} from gateway", recipient
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(channel, f"Request failed: {e}", recipient) from e

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------

    def build_push_body(
        self,
        recipients: list[Recipient],
        payload: dict[str, Any],
        send_after: datetime | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "app_id": self.settings.onesignal_app_id,
            "tags": build_user_tags(recipients),
            "headings": {"en": self.settings.push_title},
            "contents": payload.get("contents", {}),
            "data": payload.get("data", {}),
            "ios_badgeType": "Increase",
            "ios_badgeCount": 1,
            "android_sound": payload.get("android_sound", "default"),
            "ios_sound": payload.get("ios_sound", "default"),
        }
        if send_after is not None:
            body["send_after"] = send_after.strftime("%Y-%m-%d %H:%M:%S")
        return body

    async def send_push(
        self,
        recipients: list[Recipient],
        payload: dict[str, Any],
        send_after: datetime | None = None,
    ) -> None:
        if not recipients:
            return
        target = ", ".join(r.email for r in recipients)
        if not self.settings.is_enabled:
            logger.info(f"Push disabled, not sending to {target}")
            return

        body = self.build_push_body(recipients, payload, send_after)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.settings.onesignal_api_key}",
        }
        await self._deliver("push", self.settings.onesignal_url, body, headers, target)
        logger.debug(f"Push sent to {target}")

    # -------------------------------------------------------------------------
    # SMS
    # -------------------------------------------------------------------------

    async def send_sms(self, to: str, message: str) -> None:
        if not self.settings.sms_api_url:
            logger.info(f"SMS gateway not configured, not sending to {to}")
            return

        body = {"from": self.settings.sms_sender_number, "to": to, "message": message}
        headers = {"Authorization": f"Bearer {self.settings.sms_api_key or ''}"}
        await self._deliver("sms", self.settings.sms_api_url, body, headers, to)

    # -------------------------------------------------------------------------
    # E-mail
    # -------------------------------------------------------------------------

    async def send_email(
        self, to: Recipient, subject: str, template: str, data: dict[str, Any]
    ) -> None:
        if not self.settings.mail_api_url:
            logger.info(f"Mail API not configured, not sending '{subject}' to {to.email}")
            return

        body = {
            "from": self.settings.mail_sender,
            "to": {"email": to.email, "name": to.name},
            "subject": subject,
            "template": template,
            "data": data,
        }
        headers = {"Authorization": f"Bearer {self.settings.mail_api_key or ''}"}
        await self._deliver("email", self.settings.mail_api_url, body, headers, to.email)

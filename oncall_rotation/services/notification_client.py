# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Notification client — inter-service communication.
Email and SMS go out through the platform notification-service over HTTP.
Unlike a fire-and-forget sender, every failure is raised as ChannelError so
the dispatch engine can record it per recipient.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import ChannelError, ConfigurationError
from oncall_rotation.core.logging import get_logger
from oncall_rotation.metrics.prometheus import NOTIFICATIONS_SENT

logger = get_logger(__name__)


@dataclass
class ChannelResult:
    ok: bool
    id: Optional[str] = None


class NotificationClient:
    """Outbound email / SMS channel."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url if self._base_url is not None else settings.NOTIFICATION_SERVICE_URL

    def ensure_configured(self) -> None:
        """Fail closed before a real dispatch if there is nowhere to send."""
        if not self.base_url:
            raise ConfigurationError("NOTIFICATION_SERVICE_URL is not configured")

    def send_email(
        self,
        to: list[str],
        cc: list[str],
        subject: str,
        html: str,
        reference: str = "oncall",
    ) -> ChannelResult:
        if not to:
            raise ChannelError("No email recipients", channel="email")
        return self._post(
            channel="email",
            recipient=", ".join(to),
            message=html,
            reference=reference,
            metadata={"to": to, "cc": cc, "subject": subject},
        )

    def send_sms(self, to: str, text: str, reference: str = "oncall") -> ChannelResult:
        return self._post(
            channel="sms",
            recipient=to,
            message=f"{settings.SMS_SENDER_ID}: {text}",
            reference=reference,
            metadata={},
        )

    def _post(
        self,
        channel: str,
        recipient: str,
        message: str,
        reference: str,
        metadata: dict[str, Any],
    ) -> ChannelResult:
        self.ensure_configured()
        try:
            with httpx.Client(
                timeout=self._timeout or settings.NOTIFICATION_TIMEOUT,
                transport=self._transport,
            ) as client:
                resp = client.post(
                    f"{self.base_url}/api/v1/notify",
                    json={
                        "channel": channel,
                        "recipient": recipient,
                        "message": message,
                        "incident_id": reference,
                        "metadata": metadata,
                    },
                )
        except httpx.HTTPError as exc:
            NOTIFICATIONS_SENT.labels(channel=channel, status="failed").inc()
            logger.warning("Notification failed: channel=%s, error=%s", channel, exc)
            raise ChannelError(f"{channel} send failed: {exc}", channel, recipient) from exc

        if resp.status_code >= 300:
            NOTIFICATIONS_SENT.labels(channel=channel, status="failed").inc()
            logger.warning(
                "Notification rejected: channel=%s, status=%d, body=%s",
                channel, resp.status_code, resp.text[:200],
            )
            raise ChannelError(
                f"{channel} send rejected with HTTP {resp.status_code}", channel, recipient
            )

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if body.get("status", "sent") != "sent":
            NOTIFICATIONS_SENT.labels(channel=channel, status="failed").inc()
            raise ChannelError(
                f"{channel} delivery reported status '{body.get('status')}'", channel, recipient
            )

        NOTIFICATIONS_SENT.labels(channel=channel, status="sent").inc()
        logger.info(
            "Notification sent: recipient=%s, channel=%s, status=%d",
            recipient, channel, resp.status_code,
        )
        return ChannelResult(ok=True, id=body.get("id"))

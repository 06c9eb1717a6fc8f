"""HTTP client for pushing fulfillment events to the notification microservice."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

EVENTS_PATH = "/api/campusmart/v1/notification/notifications/fulfillment-events"


class NotificationClient:
    """Fire-and-forget sender for booking and delivery events.

    Failures are logged and swallowed: a notification must never undo a
    booking that is already committed.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        configured_base = base_url if base_url is not None else settings.NOTIFICATION_SERVICE_URL
        self._base_url = configured_base.rstrip("/") if configured_base else ""
        self._timeout = timeout or settings.NOTIFICATION_SERVICE_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    def send_booking_event(self, event: str, payload: Dict[str, Any]) -> None:
        self._post_event({"entity": "booking", "event": event, **payload})

    def send_delivery_event(self, event: str, payload: Dict[str, Any]) -> None:
        self._post_event({"entity": "delivery", "event": event, **payload})

    def _post_event(self, body: Dict[str, Any]) -> None:
        if not self.is_configured:
            logger.info(
                "Notification service URL not configured; skipping %s %s event",
                body.get("entity"),
                body.get("event"),
            )
            return

        url = f"{self._base_url}{EVENTS_PATH}"

        try:
            response = httpx.post(url, json=body, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Notification service returned HTTP %s for %s %s event: %s",
                exc.response.status_code,
                body.get("entity"),
                body.get("event"),
                exc.response.text,
            )
        except httpx.RequestError as exc:
            logger.warning("Failed to reach notification service: %s", exc)


__all__ = ["NotificationClient"]

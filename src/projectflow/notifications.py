"""Webhook notifications for project and task events.

Controllers call the notifier after a successful save. Delivery is
best-effort: a failed delivery, including one to a malformed URL, is
logged and reported as ``False`` and never raised, so it cannot undo
or fail the write that triggered it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

import httpx

from projectflow.config import NotificationConfig
from projectflow.logging import get_logger

logger = get_logger(__name__)


class NotificationEventType(str, Enum):
    """Types of events sent to the notification webhook."""

    PROJECT_STATUS_CHANGED = "project_status_changed"
    TASK_STATUS_UPDATED = "task_status_updated"


@dataclass
class NotificationPayload:
    """Standard payload format for notification webhooks."""

    event_type: NotificationEventType
    timestamp: datetime
    project_id: UUID | None = None
    task_id: UUID | None = None
    recipient_id: UUID | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert payload to dictionary for JSON serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "project_id": str(self.project_id) if self.project_id else None,
            "task_id": str(self.task_id) if self.task_id else None,
            "recipient_id": str(self.recipient_id) if self.recipient_id else None,
            "data": self.data,
        }


class WebhookNotifier:
    """Sends notification payloads to a configured webhook."""

    def __init__(self, config: NotificationConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, payload: NotificationPayload) -> bool:
        """Send payload to the webhook.

        Returns True if delivered (or notifications are disabled), False otherwise.
        """
        if not self.config.enabled or not self.config.webhook_url:
            self.logger.debug("notifications_disabled", event_type=payload.event_type.value)
            return True

        try:
            client = await self._get_client()
            headers = {"Content-Type": "application/json"}
            if self.config.auth_header:
                headers["Authorization"] = self.config.auth_header

            response = await client.post(
                self.config.webhook_url,
                json=payload.to_dict(),
                headers=headers,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            self.logger.error(
                "notification_webhook_error",
                event_type=payload.event_type.value,
                error=str(e),
            )
            return False

        if response.is_success:
            self.logger.info(
                "notification_sent",
                event_type=payload.event_type.value,
                status_code=response.status_code,
            )
            return True

        self.logger.warning(
            "notification_webhook_failed",
            event_type=payload.event_type.value,
            status_code=response.status_code,
            response_text=response.text[:200],
        )
        return False

    async def notify_project_status_changed(
        self,
        project_id: UUID,
        old_status: str,
        new_status: str,
        actor: UUID,
        progress: int | None = None,
    ) -> bool:
        """Notify that a project's status changed."""
        payload = NotificationPayload(
            event_type=NotificationEventType.PROJECT_STATUS_CHANGED,
            timestamp=datetime.now(timezone.utc),
            project_id=project_id,
            data={
                "old_status": old_status,
                "new_status": new_status,
                "actor": str(actor),
                "progress": progress,
            },
        )
        return await self.send(payload)

    async def notify_task_status_updated(
        self,
        recipient_id: UUID,
        project_id: UUID,
        task_id: UUID,
        title: str,
        status: str,
    ) -> bool:
        """Notify a user (normally the project head) of a task status update."""
        payload = NotificationPayload(
            event_type=NotificationEventType.TASK_STATUS_UPDATED,
            timestamp=datetime.now(timezone.utc),
            project_id=project_id,
            task_id=task_id,
            recipient_id=recipient_id,
            data={
                "title": title,
                "status": status,
                "message": f'Task "{title}" status updated to {status}',
            },
        )
        return await self.send(payload)

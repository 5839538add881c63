"""Integration tests for the notification webhook client."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from uuid import uuid4

import httpx
import pytest
import respx

from projectflow.config import NotificationConfig
from projectflow.notifications import (
    NotificationEventType,
    NotificationPayload,
    WebhookNotifier,
)

WEBHOOK_URL = "https://hooks.example.com/projectflow"


@pytest.fixture
def enabled_config() -> NotificationConfig:
    return NotificationConfig(enabled=True, webhook_url=WEBHOOK_URL)


def make_payload() -> NotificationPayload:
    return NotificationPayload(
        event_type=NotificationEventType.PROJECT_STATUS_CHANGED,
        timestamp=datetime.now(timezone.utc),
        project_id=uuid4(),
        data={"new_status": "completed"},
    )


def test_payload_to_dict() -> None:
    """Verify payload serialization."""
    project_id = uuid4()
    task_id = uuid4()
    recipient_id = uuid4()
    timestamp = datetime.now(timezone.utc)

    payload = NotificationPayload(
        event_type=NotificationEventType.TASK_STATUS_UPDATED,
        timestamp=timestamp,
        project_id=project_id,
        task_id=task_id,
        recipient_id=recipient_id,
        data={"status": "review"},
    )

    assert payload.to_dict() == {
        "event_type": "task_status_updated",
        "timestamp": timestamp.isoformat(),
        "project_id": str(project_id),
        "task_id": str(task_id),
        "recipient_id": str(recipient_id),
        "data": {"status": "review"},
    }


def test_payload_to_dict_with_nulls() -> None:
    payload = NotificationPayload(
        event_type=NotificationEventType.PROJECT_STATUS_CHANGED,
        timestamp=datetime.now(timezone.utc),
    )

    result = payload.to_dict()

    assert result["project_id"] is None
    assert result["task_id"] is None
    assert result["recipient_id"] is None
    assert result["data"] == {}


@respx.mock
@pytest.mark.asyncio
async def test_send_success(enabled_config: NotificationConfig) -> None:
    route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))
    notifier = WebhookNotifier(enabled_config)

    result = await notifier.send(make_payload())
    await notifier.close()

    assert result is True
    assert route.called


@respx.mock
@pytest.mark.asyncio
async def test_send_failure_status(enabled_config: NotificationConfig) -> None:
    respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(500, text="Internal Error"))
    notifier = WebhookNotifier(enabled_config)

    result = await notifier.send(make_payload())
    await notifier.close()

    assert result is False


@respx.mock
@pytest.mark.asyncio
async def test_send_network_error(enabled_config: NotificationConfig) -> None:
    respx.post(WEBHOOK_URL).mock(side_effect=httpx.ConnectError("Connection failed"))
    notifier = WebhookNotifier(enabled_config)

    result = await notifier.send(make_payload())
    await notifier.close()

    assert result is False


@pytest.mark.asyncio
async def test_send_invalid_url_is_reported_not_raised() -> None:
    notifier = WebhookNotifier(
        NotificationConfig(enabled=True, webhook_url="https://hooks.example.com:notaport/x")
    )

    result = await notifier.send(make_payload())
    await notifier.close()

    assert result is False


@respx.mock
@pytest.mark.asyncio
async def test_disabled_notifier_sends_nothing() -> None:
    route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))
    notifier = WebhookNotifier(NotificationConfig(enabled=False, webhook_url=WEBHOOK_URL))

    result = await notifier.send(make_payload())

    assert result is True
    assert not route.called


@respx.mock
@pytest.mark.asyncio
async def test_auth_header_is_sent() -> None:
    route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))
    notifier = WebhookNotifier(
        NotificationConfig(enabled=True, webhook_url=WEBHOOK_URL, auth_header="Bearer s3cret")
    )

    await notifier.send(make_payload())
    await notifier.close()

    assert route.calls.last.request.headers["Authorization"] == "Bearer s3cret"


@respx.mock
@pytest.mark.asyncio
async def test_notify_project_status_changed(enabled_config: NotificationConfig) -> None:
    route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(204))
    notifier = WebhookNotifier(enabled_config)
    project_id = uuid4()
    actor = uuid4()

    result = await notifier.notify_project_status_changed(
        project_id=project_id,
        old_status="in_progress",
        new_status="completed",
        actor=actor,
        progress=100,
    )
    await notifier.close()

    assert result is True
    body = json.loads(route.calls.last.request.content)
    assert body["event_type"] == "project_status_changed"
    assert body["project_id"] == str(project_id)
    assert body["data"] == {
        "old_status": "in_progress",
        "new_status": "completed",
        "actor": str(actor),
        "progress": 100,
    }


@respx.mock
@pytest.mark.asyncio
async def test_notify_task_status_updated(enabled_config: NotificationConfig) -> None:
    route = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))
    notifier = WebhookNotifier(enabled_config)
    head_id = uuid4()

    await notifier.notify_task_status_updated(
        recipient_id=head_id,
        project_id=uuid4(),
        task_id=uuid4(),
        title="Write API docs",
        status="review",
    )
    await notifier.close()

    body = json.loads(route.calls.last.request.content)
    assert body["recipient_id"] == str(head_id)
    assert body["data"]["message"] == 'Task "Write API docs" status updated to review'

"""Integration tests for task API endpoints."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient


def as_user(user_id: UUID) -> dict[str, str]:
    return {"X-User-ID": str(user_id)}


@pytest.fixture
async def project_id(client: AsyncClient, head_id: UUID, member_id: UUID) -> str:
    response = await client.post(
        "/projects/",
        json={
            "name": "Data Platform",
            "start_date": "2026-01-05",
            "end_date": "2026-09-30",
            "member_ids": [str(member_id)],
        },
        headers=as_user(head_id),
    )
    assert response.status_code == 201
    return response.json()["id"]


async def create_task(
    client: AsyncClient, project_id: str, head_id: UUID, **fields: Any
) -> dict[str, Any]:
    response = await client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "Ingest events", **fields},
        headers=as_user(head_id),
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_task_defaults_to_actor_assignee(
    client: AsyncClient, project_id: str, head_id: UUID
) -> None:
    task = await create_task(client, project_id, head_id)

    assert task["assigned_to"] == str(head_id)
    assert task["priority"] == "medium"
    assert task["project_head_id"] == str(head_id)


@pytest.mark.asyncio
async def test_my_tasks_sorted_by_priority_then_due_date(
    client: AsyncClient, project_id: str, head_id: UUID, member_id: UUID
) -> None:
    await create_task(client, project_id, head_id, title="low", priority="low",
                      assigned_to=str(member_id))
    await create_task(client, project_id, head_id, title="high-late", priority="high",
                      due_date="2026-05-01", assigned_to=str(member_id))
    await create_task(client, project_id, head_id, title="high-soon", priority="high",
                      due_date="2026-02-01", assigned_to=str(member_id))
    await create_task(client, project_id, head_id, title="not mine")

    response = await client.get("/tasks/mine", headers=as_user(member_id))

    assert response.status_code == 200
    assert [t["title"] for t in response.json()] == ["high-soon", "high-late", "low"]


@pytest.mark.asyncio
async def test_get_task_permissions(
    client: AsyncClient, project_id: str, head_id: UUID, member_id: UUID, outsider_id: UUID
) -> None:
    task = await create_task(client, project_id, head_id, assigned_to=str(outsider_id))
    url = f"/tasks/{task['id']}"

    # The assignee can see the task without being a project member
    assert (await client.get(url, headers=as_user(outsider_id))).status_code == 200
    assert (await client.get(url, headers=as_user(member_id))).status_code == 200
    assert (await client.get(url, headers=as_user(head_id))).status_code == 200
    assert (await client.get(url, headers=as_user(uuid4()))).status_code == 403


@pytest.mark.asyncio
async def test_get_task_not_found(client: AsyncClient, head_id: UUID) -> None:
    response = await client.get(f"/tasks/{uuid4()}", headers=as_user(head_id))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_assignee_updates_status_and_head_is_notified(
    client: AsyncClient,
    project_id: str,
    head_id: UUID,
    member_id: UUID,
    notifier: AsyncMock,
) -> None:
    task = await create_task(client, project_id, head_id, assigned_to=str(member_id))

    response = await client.patch(
        f"/tasks/{task['id']}/status",
        json={"status": "review", "comment": "PR is up"},
        headers=as_user(member_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "review"
    assert body["comments"][0]["content"] == "PR is up"
    assert body["history"][0]["status"] == "review"
    assert body["history"][0]["updated_by"] == str(member_id)

    notifier.notify_task_status_updated.assert_awaited_once()
    call = notifier.notify_task_status_updated.await_args.kwargs
    assert call["recipient_id"] == head_id
    assert call["status"] == "review"
    assert call["title"] == "Ingest events"


@pytest.mark.asyncio
async def test_head_update_does_not_notify(
    client: AsyncClient,
    project_id: str,
    head_id: UUID,
    member_id: UUID,
    notifier: AsyncMock,
) -> None:
    task = await create_task(client, project_id, head_id, assigned_to=str(member_id))

    response = await client.patch(
        f"/tasks/{task['id']}/status",
        json={"status": "completed"},
        headers=as_user(head_id),
    )

    assert response.status_code == 200
    assert response.json()["comments"] == []
    notifier.notify_task_status_updated.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_member_cannot_update_status(
    client: AsyncClient, project_id: str, head_id: UUID, member_id: UUID
) -> None:
    task = await create_task(client, project_id, head_id)

    response = await client.patch(
        f"/tasks/{task['id']}/status",
        json={"status": "completed"},
        headers=as_user(member_id),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invalid_task_status(
    client: AsyncClient, project_id: str, head_id: UUID
) -> None:
    task = await create_task(client, project_id, head_id)

    response = await client.patch(
        f"/tasks/{task['id']}/status",
        json={"status": "blocked"},
        headers=as_user(head_id),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_task_updates_leave_project_status(
    client: AsyncClient, project_id: str, head_id: UUID
) -> None:
    task = await create_task(client, project_id, head_id)

    await client.patch(
        f"/tasks/{task['id']}/status",
        json={"status": "completed"},
        headers=as_user(head_id),
    )
    project = (await client.get(f"/projects/{project_id}", headers=as_user(head_id))).json()

    assert project["status"] == "planning"
    assert project["progress"] == 0


@pytest.mark.asyncio
async def test_project_creator_can_view_task(
    client: AsyncClient, head_id: UUID, member_id: UUID
) -> None:
    creator_id = uuid4()
    created = await client.post(
        "/projects/",
        json={
            "name": "Delegated",
            "start_date": "2026-01-05",
            "end_date": "2026-09-30",
            "project_head_id": str(head_id),
        },
        headers=as_user(creator_id),
    )
    assert created.status_code == 201
    task = await create_task(
        client, created.json()["id"], creator_id, assigned_to=str(member_id)
    )

    response = await client.get(f"/tasks/{task['id']}", headers=as_user(creator_id))

    assert response.status_code == 200
    assert response.json()["project_head_id"] == str(head_id)

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from conftest import column_of, create_project, create_task, deactivate_column, project_columns, timeline_actions
from kanban_api.db import SessionLocal
from kanban_api.kanban.moves import ColumnNotFound, MoveResult, TaskNotFound, Unknown, UpdateConflict, move_task_safe
from kanban_api.models import TaskTimeline
from kanban_api.routers import tasks as tasks_router


@pytest.mark.anyio
async def test_move_task_writes_one_moved_entry(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"], title="Ship it")
  assert t["columnId"] == cols["To Do"]["id"]

  res = await client.post(
    f"/tasks/{t['id']}/move",
    json={"columnId": cols["In Progress"]["id"], "sortOrder": 3},
    headers={"X-User-Email": "Dev@Example.com"},
  )
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["success"] is True
  assert body["task_id"] == t["id"]
  assert body["from_column"] == "To Do"
  assert body["to_column"] == "In Progress"
  assert body["message"] == "Task moved successfully"

  moved = (await client.get(f"/tasks/{t['id']}")).json()
  assert moved["columnId"] == cols["In Progress"]["id"]
  assert moved["sortOrder"] == 3

  async with SessionLocal() as db:
    res = await db.execute(select(TaskTimeline).where(TaskTimeline.task_id == t["id"], TaskTimeline.action == "moved"))
    entries = res.scalars().all()
  assert len(entries) == 1
  entry = entries[0]
  assert entry.id == body["timeline_id"]
  assert entry.user_email == "dev@example.com"
  assert entry.details["from_column"] == "To Do"
  assert entry.details["to_column"] == "In Progress"
  assert entry.details["from_column_id"] == cols["To Do"]["id"]
  assert entry.details["to_column_id"] == cols["In Progress"]["id"]
  assert entry.details["sort_order"] == 3


@pytest.mark.anyio
async def test_move_within_same_column_only_changes_sort_order(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])

  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": cols["To Do"]["id"], "sortOrder": 5})
  assert res.status_code == 200, res.text
  assert res.json()["from_column"] == res.json()["to_column"] == "To Do"
  assert await column_of(t["id"]) == cols["To Do"]["id"]


@pytest.mark.anyio
async def test_move_inactive_task_fails_without_timeline_entry(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])
  res = await client.patch(f"/tasks/{t['id']}", json={"status": "completed"})
  assert res.status_code == 200, res.text
  before = await timeline_actions(t["id"])

  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": cols["Done"]["id"]})
  assert res.status_code == 404
  detail = res.json()["detail"]
  assert detail["success"] is False
  assert detail["error_kind"] == "task_not_found"
  assert detail["message"] == "Task move failed"
  assert await timeline_actions(t["id"]) == before
  assert await column_of(t["id"]) == cols["To Do"]["id"]


@pytest.mark.anyio
async def test_move_to_inactive_column_leaves_task_in_place(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])
  await deactivate_column(cols["Review"]["id"])

  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": cols["Review"]["id"], "sortOrder": 1})
  assert res.status_code == 404
  detail = res.json()["detail"]
  assert detail["error_kind"] == "column_not_found"
  assert cols["Review"]["id"] in detail["error"]
  assert await column_of(t["id"]) == cols["To Do"]["id"]
  assert "moved" not in await timeline_actions(t["id"])


@pytest.mark.anyio
async def test_move_to_active_column_of_another_project_succeeds(client: AsyncClient) -> None:
  p1 = await create_project(client, "Alpha")
  p2 = await create_project(client, "Beta")
  other = await project_columns(client, p2["id"])
  t = await create_task(client, p1["id"])

  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": other["Done"]["id"]})
  assert res.status_code == 200, res.text
  assert res.json()["success"] is True
  assert res.json()["to_column"] == "Done"
  assert await column_of(t["id"]) == other["Done"]["id"]
  assert (await timeline_actions(t["id"])).count("moved") == 1


@pytest.mark.anyio
async def test_move_task_safe_reports_typed_errors(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])
  missing = str(uuid.uuid4())

  async with SessionLocal() as db:
    r1 = await move_task_safe(db, task_id=missing, new_column_id=cols["Done"]["id"], new_sort_order=0)
  assert r1.success is False
  assert isinstance(r1.error, TaskNotFound)
  assert r1.to_json() == {
    "success": False,
    "error": f"Task not found or not active: {missing}",
    "error_kind": "task_not_found",
    "task_id": missing,
    "message": "Task move failed",
  }

  async with SessionLocal() as db:
    r2 = await move_task_safe(db, task_id=t["id"], new_column_id="not-a-uuid", new_sort_order=0)
  assert r2.success is False
  assert isinstance(r2.error, ColumnNotFound)
  assert await column_of(t["id"]) == cols["To Do"]["id"]


@pytest.mark.anyio
async def test_database_error_is_reported_as_unknown_and_rolled_back(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])
  out_of_range = 2**31

  async with SessionLocal() as db:
    r = await move_task_safe(db, task_id=t["id"], new_column_id=cols["Done"]["id"], new_sort_order=out_of_range)
  assert r.success is False
  assert isinstance(r.error, Unknown)
  assert r.to_json()["error_kind"] == "unknown"
  assert await column_of(t["id"]) == cols["To Do"]["id"]
  assert "moved" not in await timeline_actions(t["id"])

  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": cols["Done"]["id"], "sortOrder": out_of_range})
  assert res.status_code == 500
  assert res.json()["detail"]["error_kind"] == "unknown"
  assert "moved" not in await timeline_actions(t["id"])


@pytest.mark.anyio
async def test_update_conflict_maps_to_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  t = await create_task(client, p["id"])

  async def _conflicting_move(db, *, task_id, new_column_id, new_sort_order, user_email):
    return MoveResult(success=False, task_id=task_id, message="Task move failed", error=UpdateConflict(task_id))

  monkeypatch.setattr(tasks_router, "move_task_safe", _conflicting_move)
  res = await client.post(f"/tasks/{t['id']}/move", json={"columnId": cols["Done"]["id"]})
  assert res.status_code == 409
  detail = res.json()["detail"]
  assert detail["error_kind"] == "update_conflict"
  assert detail["error"] == f"Failed to update task: {t['id']}"

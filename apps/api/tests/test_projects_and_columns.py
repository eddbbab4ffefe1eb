from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import create_project, create_task, project_columns


@pytest.mark.anyio
async def test_create_project_adds_default_columns(client: AsyncClient) -> None:
  p = await create_project(client, "  Roadmap  ")
  assert p["name"] == "Roadmap"

  res = await client.get(f"/projects/{p['id']}/columns")
  assert res.status_code == 200, res.text
  cols = res.json()
  assert [c["name"] for c in cols] == ["To Do", "In Progress", "Review", "Done"]
  assert [c["sortOrder"] for c in cols] == [1, 2, 3, 4]
  assert [c["color"] for c in cols] == ["#6B7280", "#3B82F6", "#F59E0B", "#10B981"]
  assert all(c["isActive"] for c in cols)


@pytest.mark.anyio
async def test_project_name_is_unique_case_insensitive(client: AsyncClient) -> None:
  await create_project(client, "Roadmap")
  res = await client.post("/projects", json={"name": "roadmap"})
  assert res.status_code == 409
  assert res.json()["detail"] == "Project name already exists"


@pytest.mark.anyio
async def test_unknown_project_is_404(client: AsyncClient) -> None:
  assert (await client.get("/projects/not-a-uuid")).status_code == 404
  assert (await client.get("/projects/00000000-0000-0000-0000-000000000000/columns")).status_code == 404


@pytest.mark.anyio
async def test_create_column_appends_after_last(client: AsyncClient) -> None:
  p = await create_project(client)
  res = await client.post(f"/projects/{p['id']}/columns", json={"name": "Blocked", "color": "#EF4444"})
  assert res.status_code == 200, res.text
  assert res.json()["sortOrder"] == 5

  dup = await client.post(f"/projects/{p['id']}/columns", json={"name": "blocked"})
  assert dup.status_code == 409


@pytest.mark.anyio
async def test_column_with_active_tasks_cannot_be_deactivated(client: AsyncClient) -> None:
  p = await create_project(client)
  cols = await project_columns(client, p["id"])
  await create_task(client, p["id"])

  res = await client.patch(f"/columns/{cols['To Do']['id']}", json={"isActive": False})
  assert res.status_code == 400
  assert res.json()["detail"] == "Column has active tasks; move them first"

  res = await client.patch(f"/columns/{cols['Review']['id']}", json={"isActive": False})
  assert res.status_code == 200, res.text
  assert res.json()["isActive"] is False

  active = await client.get(f"/projects/{p['id']}/columns")
  assert "Review" not in [c["name"] for c in active.json()]
  everything = await client.get(f"/projects/{p['id']}/columns", params={"includeInactive": "true"})
  assert "Review" in [c["name"] for c in everything.json()]

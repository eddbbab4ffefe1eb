from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import create_project, create_task


@pytest.mark.anyio
async def test_comments_are_listed_oldest_first_and_logged_on_timeline(client: AsyncClient) -> None:
  p = await create_project(client)
  t = await create_task(client, p["id"])

  first = await client.post(
    f"/tasks/{t['id']}/comments", json={"comment": "  Looks good  "}, headers={"X-User-Email": "Rev@Example.com"}
  )
  assert first.status_code == 200, first.text
  assert first.json()["comment"] == "Looks good"
  assert first.json()["userEmail"] == "rev@example.com"

  second = await client.post(f"/tasks/{t['id']}/comments", json={"comment": "Shipped"})
  assert second.status_code == 200, second.text
  assert second.json()["userEmail"] == "system"

  listed = (await client.get(f"/tasks/{t['id']}/comments")).json()
  assert [c["comment"] for c in listed] == ["Looks good", "Shipped"]

  timeline = (await client.get(f"/tasks/{t['id']}/timeline")).json()
  commented = [e for e in timeline if e["action"] == "commented"]
  assert [e["details"]["comment_id"] for e in commented] == [second.json()["id"], first.json()["id"]]


@pytest.mark.anyio
async def test_blank_comment_and_unknown_task_are_rejected(client: AsyncClient) -> None:
  p = await create_project(client)
  t = await create_task(client, p["id"])

  res = await client.post(f"/tasks/{t['id']}/comments", json={"comment": "   "})
  assert res.status_code == 400
  assert (await client.get(f"/tasks/{t['id']}/comments")).json() == []

  res = await client.post("/tasks/00000000-0000-0000-0000-000000000000/comments", json={"comment": "hi"})
  assert res.status_code == 404
  assert res.json()["detail"] == "Task not found"

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from conftest import (
  create_project,
  create_task,
  drop_stats_unique_index,
  hide_stats_view,
  restore_stats_unique_index,
  restore_stats_view,
)
from kanban_api.db import SessionLocal
from kanban_api.kanban.stats import (
  STATS_VIEW,
  Failed,
  RefreshedConcurrently,
  RefreshedFullWithFallback,
  StatsRefreshError,
  get_project_stats,
  list_project_stats,
  refresh_project_kanban_stats,
)


@pytest.mark.anyio
async def test_refresh_has_one_row_per_project_including_empty(client: AsyncClient) -> None:
  busy = await create_project(client, "Busy")
  empty = await create_project(client, "Empty")
  await create_task(client, busy["id"], title="a", priority="urgent")
  await create_task(client, busy["id"], title="b")

  res = await client.post("/rpc/refresh_project_kanban_stats")
  assert res.status_code == 200, res.text
  assert res.json()["strategy"] in ("concurrent", "full_fallback")

  rows = (await client.get("/stats/projects")).json()
  assert sorted(r["projectId"] for r in rows) == sorted([busy["id"], empty["id"]])

  by_id = {r["projectId"]: r for r in rows}
  assert by_id[busy["id"]]["totalTasks"] == 2
  assert by_id[busy["id"]]["activeTasks"] == 2
  assert by_id[busy["id"]]["urgentTasks"] == 1
  assert by_id[busy["id"]]["totalColumns"] == 4
  assert by_id[busy["id"]]["lastTaskUpdate"] is not None

  e = by_id[empty["id"]]
  assert e["totalTasks"] == 0
  assert e["activeTasks"] == 0
  assert e["urgentTasks"] == 0
  assert e["overdueTasks"] == 0
  assert e["totalCategories"] == 0
  assert e["lastTaskUpdate"] is None


@pytest.mark.anyio
async def test_overdue_counts_only_active_tasks_due_in_past(client: AsyncClient) -> None:
  p = await create_project(client)
  past = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()
  future = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
  await create_task(client, p["id"], title="late", dueDate=past)
  await create_task(client, p["id"], title="later", dueDate=future)
  done = await create_task(client, p["id"], title="late but done", dueDate=past)
  res = await client.patch(f"/tasks/{done['id']}", json={"status": "completed"})
  assert res.status_code == 200, res.text

  async with SessionLocal() as db:
    await refresh_project_kanban_stats(db)
  async with SessionLocal() as db:
    s = await get_project_stats(db, p["id"])
  assert s is not None
  assert s.overdue_tasks == 1
  assert s.total_tasks == 3
  assert s.active_tasks == 2


@pytest.mark.anyio
async def test_refresh_uses_concurrent_path_when_index_present(client: AsyncClient) -> None:
  await create_project(client)
  async with SessionLocal() as db:
    outcome = await refresh_project_kanban_stats(db)
  assert isinstance(outcome, RefreshedConcurrently)


@pytest.mark.anyio
async def test_refresh_falls_back_without_unique_index(client: AsyncClient) -> None:
  p = await create_project(client)
  await drop_stats_unique_index()
  try:
    async with SessionLocal() as db:
      outcome = await refresh_project_kanban_stats(db)
    assert isinstance(outcome, RefreshedFullWithFallback)
    assert outcome.strategy == "full_fallback"
    assert outcome.cause

    async with SessionLocal() as db:
      rows = await list_project_stats(db)
    assert [r.project_id for r in rows] == [p["id"]]
  finally:
    await restore_stats_unique_index()


@pytest.mark.anyio
async def test_stats_for_unknown_project_is_404(client: AsyncClient) -> None:
  res = await client.get("/stats/projects/not-a-uuid")
  assert res.status_code == 404
  assert res.json()["detail"] == "Stats not found"


@pytest.mark.anyio
async def test_refresh_raises_when_both_strategies_fail(client: AsyncClient) -> None:
  await create_project(client)
  await hide_stats_view()
  try:
    async with SessionLocal() as db:
      with pytest.raises(StatsRefreshError) as excinfo:
        await refresh_project_kanban_stats(db)
    err = excinfo.value
    assert isinstance(err.outcome, Failed)
    assert err.outcome.strategy == "failed"
    assert STATS_VIEW in err.outcome.cause
    assert STATS_VIEW in err.concurrent_cause

    res = await client.post("/rpc/refresh_project_kanban_stats")
    assert res.status_code == 500
    detail = res.json()["detail"]
    assert detail["message"] == "Stats refresh failed"
    assert STATS_VIEW in detail["cause"]
    assert detail["concurrentCause"]
  finally:
    await restore_stats_view()

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete, select, text

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from kanban_api.config import settings
from kanban_api.db import SessionLocal, engine
from kanban_api.kanban.stats import STATS_UNIQUE_INDEX, STATS_VIEW
from kanban_api.main import app
from kanban_api.models import JiraUserMapping, KanbanColumn, Project, TaskTimeline


def _require_test_db() -> None:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. kanban_test)."
    )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture(scope="session", autouse=True)
def _migrated_schema() -> None:
  _require_test_db()
  cfg = Config(str(ROOT / "alembic.ini"))
  cfg.set_main_option("script_location", str(ROOT / "alembic"))
  command.upgrade(cfg, "head")


async def _reset_db() -> None:
  async with SessionLocal() as db:
    # Tasks, columns, categories and timeline rows cascade from projects.
    await db.execute(delete(Project))
    await db.execute(delete(JiraUserMapping))
    await db.commit()
  await engine.dispose()


@pytest.fixture(autouse=True)
async def _clean_between_tests() -> None:
  _require_test_db()
  await _reset_db()
  yield
  await _reset_db()


@pytest.fixture
async def client() -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


async def create_project(client: AsyncClient, name: str = "Alpha") -> dict:
  res = await client.post("/projects", json={"name": name})
  assert res.status_code == 200, res.text
  return res.json()


async def project_columns(client: AsyncClient, project_id: str) -> dict[str, dict]:
  res = await client.get(f"/projects/{project_id}/columns")
  assert res.status_code == 200, res.text
  return {c["name"]: c for c in res.json()}


async def create_task(client: AsyncClient, project_id: str, **fields) -> dict:
  payload = {"title": "Task", **fields}
  res = await client.post(f"/projects/{project_id}/tasks", json=payload)
  assert res.status_code == 200, res.text
  return res.json()


async def timeline_actions(task_id: str) -> list[str]:
  async with SessionLocal() as db:
    res = await db.execute(
      select(TaskTimeline.action).where(TaskTimeline.task_id == task_id).order_by(TaskTimeline.created_at.asc())
    )
    return list(res.scalars().all())


async def column_of(task_id: str) -> str:
  async with SessionLocal() as db:
    res = await db.execute(text("SELECT column_id::text FROM kanban_tasks WHERE id = :id"), {"id": task_id})
    return res.scalar_one()


async def deactivate_column(column_id: str) -> None:
  async with SessionLocal() as db:
    col = (await db.execute(select(KanbanColumn).where(KanbanColumn.id == column_id))).scalar_one()
    col.is_active = False
    await db.commit()


async def drop_stats_unique_index() -> None:
  async with SessionLocal() as db:
    await db.execute(text(f"DROP INDEX IF EXISTS {STATS_UNIQUE_INDEX}"))
    await db.commit()


async def restore_stats_unique_index() -> None:
  async with SessionLocal() as db:
    await db.execute(text(f"CREATE UNIQUE INDEX IF NOT EXISTS {STATS_UNIQUE_INDEX} ON {STATS_VIEW} (project_id)"))
    await db.commit()


async def hide_stats_view() -> None:
  async with SessionLocal() as db:
    await db.execute(text(f"ALTER MATERIALIZED VIEW {STATS_VIEW} RENAME TO {STATS_VIEW}_hidden"))
    await db.commit()


async def restore_stats_view() -> None:
  async with SessionLocal() as db:
    await db.execute(text(f"ALTER MATERIALIZED VIEW IF EXISTS {STATS_VIEW}_hidden RENAME TO {STATS_VIEW}"))
    await db.commit()

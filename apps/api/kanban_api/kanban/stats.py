"""Project kanban statistics (materialized view) refresh and reads.

The view is created by migration 0002. A refresh first tries
``REFRESH MATERIALIZED VIEW CONCURRENTLY`` (needs the unique index on
``project_id`` and a populated view) inside a savepoint, then falls back to a
blocking full refresh. Both paths replace the view contents wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import ProjectKanbanStats

logger = structlog.get_logger(__name__)

STATS_VIEW = "project_kanban_stats"
STATS_UNIQUE_INDEX = "idx_project_kanban_stats_project_id_unique"


@dataclass(frozen=True)
class RefreshedConcurrently:
  strategy = "concurrent"


@dataclass(frozen=True)
class RefreshedFullWithFallback:
  cause: str
  strategy = "full_fallback"


@dataclass(frozen=True)
class Failed:
  cause: str
  strategy = "failed"


RefreshOutcome = RefreshedConcurrently | RefreshedFullWithFallback


class StatsRefreshError(Exception):
  def __init__(self, outcome: Failed, *, concurrent_cause: str) -> None:
    super().__init__(f"Stats refresh failed: {outcome.cause}")
    self.outcome = outcome
    self.concurrent_cause = concurrent_cause


def _error_text(exc: BaseException) -> str:
  message = str(exc).strip()
  if message:
    return f"{exc.__class__.__name__}: {message}"
  return exc.__class__.__name__


async def refresh_project_kanban_stats(db: AsyncSession) -> RefreshOutcome:
  try:
    async with db.begin_nested():
      await db.execute(text(f"REFRESH MATERIALIZED VIEW CONCURRENTLY {STATS_VIEW}"))
  except Exception as exc:
    concurrent_cause = _error_text(exc)
  else:
    await db.commit()
    logger.info("stats_refreshed", strategy=RefreshedConcurrently.strategy)
    return RefreshedConcurrently()

  logger.warning("stats_concurrent_refresh_failed", cause=concurrent_cause)
  try:
    await db.execute(text(f"REFRESH MATERIALIZED VIEW {STATS_VIEW}"))
    await db.commit()
  except Exception as exc:
    await db.rollback()
    outcome = Failed(cause=_error_text(exc))
    logger.error("stats_refresh_failed", cause=outcome.cause, concurrent_cause=concurrent_cause)
    raise StatsRefreshError(outcome, concurrent_cause=concurrent_cause) from exc

  logger.info("stats_refreshed", strategy=RefreshedFullWithFallback.strategy, cause=concurrent_cause)
  return RefreshedFullWithFallback(cause=concurrent_cause)


async def list_project_stats(db: AsyncSession) -> list[ProjectKanbanStats]:
  res = await db.execute(select(ProjectKanbanStats).order_by(ProjectKanbanStats.project_name.asc()))
  return list(res.scalars().all())


async def get_project_stats(db: AsyncSession, project_id: str) -> ProjectKanbanStats | None:
  res = await db.execute(select(ProjectKanbanStats).where(ProjectKanbanStats.project_id == project_id))
  return res.scalar_one_or_none()

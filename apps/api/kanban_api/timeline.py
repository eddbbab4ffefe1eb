from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import TaskTimeline


async def write_timeline(
  db: AsyncSession,
  *,
  task_id: str,
  action: str,
  user_email: str,
  details: dict[str, Any] | None = None,
) -> TaskTimeline:
  entry = TaskTimeline(
    task_id=task_id,
    user_email=user_email,
    action=action,
    details=jsonable_encoder(details or {}),
  )
  db.add(entry)
  await db.flush()
  return entry


async def list_task_timeline(db: AsyncSession, *, task_id: str) -> list[TaskTimeline]:
  res = await db.execute(
    select(TaskTimeline)
    .where(TaskTimeline.task_id == task_id)
    .order_by(TaskTimeline.created_at.desc(), TaskTimeline.id.desc())
  )
  return list(res.scalars().all())

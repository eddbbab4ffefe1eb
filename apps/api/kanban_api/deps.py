from __future__ import annotations

from fastapi import Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.config import settings
from kanban_api.db import SessionLocal
from kanban_api.models import KanbanColumn, KanbanTask, Project, is_uuid


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


async def get_actor_email(x_user_email: str | None = Header(default=None)) -> str:
  email = (x_user_email or "").strip().lower()
  return email or settings.default_actor_email


async def get_project_or_404(project_id: str, db: AsyncSession) -> Project:
  if not is_uuid(project_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
  res = await db.execute(select(Project).where(Project.id == project_id))
  p = res.scalar_one_or_none()
  if not p:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
  return p


async def get_column_or_404(column_id: str, db: AsyncSession) -> KanbanColumn:
  if not is_uuid(column_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Column not found")
  res = await db.execute(select(KanbanColumn).where(KanbanColumn.id == column_id))
  c = res.scalar_one_or_none()
  if not c:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Column not found")
  return c


async def get_task_or_404(task_id: str, db: AsyncSession) -> KanbanTask:
  if not is_uuid(task_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
  res = await db.execute(select(KanbanTask).where(KanbanTask.id == task_id))
  t = res.scalar_one_or_none()
  if not t:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
  return t

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_column_or_404, get_db, get_project_or_404
from kanban_api.models import KanbanColumn, KanbanTask
from kanban_api.schemas import ColumnCreateIn, ColumnOut, ColumnUpdateIn

router = APIRouter(tags=["columns"])


def _column_out(c: KanbanColumn) -> ColumnOut:
  return ColumnOut(
    id=c.id,
    projectId=c.project_id,
    name=c.name,
    description=c.description,
    color=c.color,
    sortOrder=c.sort_order,
    isActive=c.is_active,
  )


async def _name_taken(db: AsyncSession, *, project_id: str, name: str, exclude_id: str | None = None) -> bool:
  q = select(KanbanColumn.id).where(KanbanColumn.project_id == project_id, func.lower(KanbanColumn.name) == name.lower())
  if exclude_id:
    q = q.where(KanbanColumn.id != exclude_id)
  res = await db.execute(q)
  return res.first() is not None


@router.get("/projects/{project_id}/columns", response_model=list[ColumnOut])
async def list_columns(project_id: str, includeInactive: bool = False, db: AsyncSession = Depends(get_db)) -> list[ColumnOut]:
  await get_project_or_404(project_id, db)
  q = select(KanbanColumn).where(KanbanColumn.project_id == project_id)
  if not includeInactive:
    q = q.where(KanbanColumn.is_active.is_(True))
  res = await db.execute(q.order_by(KanbanColumn.sort_order.asc(), KanbanColumn.name.asc()))
  return [_column_out(c) for c in res.scalars().all()]


@router.post("/projects/{project_id}/columns", response_model=ColumnOut)
async def create_column(project_id: str, payload: ColumnCreateIn, db: AsyncSession = Depends(get_db)) -> ColumnOut:
  await get_project_or_404(project_id, db)
  name = payload.name.strip()
  if not name:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
  if await _name_taken(db, project_id=project_id, name=name):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Column name already exists")

  res = await db.execute(select(func.max(KanbanColumn.sort_order)).where(KanbanColumn.project_id == project_id))
  max_pos = res.scalar_one()
  c = KanbanColumn(
    project_id=project_id,
    name=name,
    description=payload.description,
    color=payload.color,
    sort_order=(max_pos + 1) if max_pos is not None else 1,
  )
  db.add(c)
  await db.commit()
  return _column_out(c)


@router.patch("/columns/{column_id}", response_model=ColumnOut)
async def update_column(column_id: str, payload: ColumnUpdateIn, db: AsyncSession = Depends(get_db)) -> ColumnOut:
  c = await get_column_or_404(column_id, db)

  if payload.name is not None:
    name = payload.name.strip()
    if not name:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    if await _name_taken(db, project_id=c.project_id, name=name, exclude_id=c.id):
      raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Column name already exists")
    c.name = name
  if payload.description is not None:
    c.description = payload.description
  if payload.color is not None:
    c.color = payload.color
  if payload.isActive is not None and payload.isActive != c.is_active:
    if not payload.isActive:
      tres = await db.execute(
        select(func.count()).select_from(KanbanTask).where(KanbanTask.column_id == c.id, KanbanTask.status == "active")
      )
      if (tres.scalar_one() or 0) > 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Column has active tasks; move them first")
    c.is_active = payload.isActive

  await db.commit()
  return _column_out(c)

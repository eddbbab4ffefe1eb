from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_db, get_project_or_404
from kanban_api.models import KanbanColumn, Project
from kanban_api.schemas import ProjectCreateIn, ProjectOut

router = APIRouter(prefix="/projects", tags=["projects"])

DEFAULT_COLUMNS = [
  ("To Do", "Tasks that need to be started", "#6B7280"),
  ("In Progress", "Tasks currently being worked on", "#3B82F6"),
  ("Review", "Tasks ready for review", "#F59E0B"),
  ("Done", "Completed tasks", "#10B981"),
]


def _name_key(name: str) -> str:
  return (name or "").strip().lower()


def _project_out(p: Project) -> ProjectOut:
  return ProjectOut(id=p.id, name=p.name, description=p.description, createdAt=p.created_at, updatedAt=p.updated_at)


@router.get("", response_model=list[ProjectOut])
async def list_projects(db: AsyncSession = Depends(get_db)) -> list[ProjectOut]:
  res = await db.execute(select(Project).order_by(Project.name.asc()))
  return [_project_out(p) for p in res.scalars().all()]


@router.post("", response_model=ProjectOut)
async def create_project(payload: ProjectCreateIn, db: AsyncSession = Depends(get_db)) -> ProjectOut:
  name = payload.name.strip()
  if not name:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
  key = _name_key(name)
  exists = await db.execute(select(Project.id).where(Project.name_key == key))
  if exists.scalar_one_or_none():
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project name already exists")

  p = Project(name=name, name_key=key, description=payload.description)
  db.add(p)
  await db.flush()

  # default columns
  for idx, (col_name, description, color) in enumerate(DEFAULT_COLUMNS, start=1):
    db.add(KanbanColumn(project_id=p.id, name=col_name, description=description, color=color, sort_order=idx))

  await db.commit()
  return _project_out(p)


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(project_id: str, db: AsyncSession = Depends(get_db)) -> ProjectOut:
  p = await get_project_or_404(project_id, db)
  return _project_out(p)

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_db
from kanban_api.kanban.stats import get_project_stats, list_project_stats
from kanban_api.models import ProjectKanbanStats, is_uuid
from kanban_api.schemas import ProjectStatsOut

router = APIRouter(prefix="/stats", tags=["stats"])


def _stats_out(s: ProjectKanbanStats) -> ProjectStatsOut:
  return ProjectStatsOut(
    projectId=s.project_id,
    projectName=s.project_name,
    totalTasks=s.total_tasks,
    activeTasks=s.active_tasks,
    urgentTasks=s.urgent_tasks,
    overdueTasks=s.overdue_tasks,
    totalColumns=s.total_columns,
    totalCategories=s.total_categories,
    lastTaskUpdate=s.last_task_update,
  )


@router.get("/projects", response_model=list[ProjectStatsOut])
async def list_stats(db: AsyncSession = Depends(get_db)) -> list[ProjectStatsOut]:
  return [_stats_out(s) for s in await list_project_stats(db)]


@router.get("/projects/{project_id}", response_model=ProjectStatsOut)
async def get_stats(project_id: str, db: AsyncSession = Depends(get_db)) -> ProjectStatsOut:
  s = await get_project_stats(db, project_id) if is_uuid(project_id) else None
  if not s:
    # The view may simply not have been refreshed since the project was created.
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stats not found")
  return _stats_out(s)

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_actor_email, get_db, get_project_or_404, get_task_or_404
from kanban_api.kanban.moves import ColumnNotFound, TaskNotFound, UpdateConflict, move_task_safe
from kanban_api.models import KanbanColumn, KanbanTask, TaskTimeline, is_uuid
from kanban_api.schemas import TaskCreateIn, TaskMoveIn, TaskOut, TaskUpdateIn, TimelineEntryOut
from kanban_api.timeline import list_task_timeline, write_timeline

router = APIRouter(tags=["tasks"])


def _task_out(t: KanbanTask) -> TaskOut:
  return TaskOut(
    id=t.id,
    projectId=t.project_id,
    columnId=t.column_id,
    title=t.title,
    description=t.description,
    priority=t.priority,
    status=t.status,
    estimatedHours=t.estimated_hours,
    dueDate=t.due_date,
    assignedTo=t.assigned_to,
    createdBy=t.created_by,
    jiraTicketKey=t.jira_ticket_key,
    sortOrder=t.sort_order,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
  )


def _timeline_out(e: TaskTimeline) -> TimelineEntryOut:
  return TimelineEntryOut(
    id=e.id,
    taskId=e.task_id,
    userEmail=e.user_email,
    action=e.action,
    details=e.details or {},
    createdAt=e.created_at,
  )


async def _pick_target_column(project_id: str, column_id: str | None, db: AsyncSession) -> KanbanColumn:
  q = select(KanbanColumn).where(KanbanColumn.project_id == project_id, KanbanColumn.is_active.is_(True))
  if column_id:
    if not is_uuid(column_id):
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid columnId")
    res = await db.execute(q.where(KanbanColumn.id == column_id))
    col = res.scalar_one_or_none()
    if not col:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid columnId")
    return col
  res = await db.execute(q.order_by(KanbanColumn.sort_order.asc()).limit(1))
  col = res.scalar_one_or_none()
  if not col:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project has no active columns")
  return col


@router.get("/projects/{project_id}/tasks", response_model=list[TaskOut])
async def list_tasks(
  project_id: str,
  status_filter: str = Query(default="active", alias="status"),
  db: AsyncSession = Depends(get_db),
) -> list[TaskOut]:
  await get_project_or_404(project_id, db)
  q = select(KanbanTask).join(KanbanColumn, KanbanColumn.id == KanbanTask.column_id).where(KanbanTask.project_id == project_id)
  if status_filter != "all":
    q = q.where(KanbanTask.status == status_filter)
  res = await db.execute(q.order_by(KanbanColumn.sort_order.asc(), KanbanTask.sort_order.asc(), KanbanTask.created_at.asc()))
  return [_task_out(t) for t in res.scalars().all()]


@router.post("/projects/{project_id}/tasks", response_model=TaskOut)
async def create_task(
  project_id: str,
  payload: TaskCreateIn,
  actor: str = Depends(get_actor_email),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  await get_project_or_404(project_id, db)
  col = await _pick_target_column(project_id, payload.columnId, db)

  res = await db.execute(select(func.max(KanbanTask.sort_order)).where(KanbanTask.column_id == col.id))
  max_order = res.scalar_one()
  t = KanbanTask(
    project_id=project_id,
    column_id=col.id,
    title=payload.title.strip(),
    description=payload.description,
    priority=payload.priority,
    estimated_hours=payload.estimatedHours,
    due_date=payload.dueDate,
    assigned_to=(payload.assignedTo or "").strip().lower() or None,
    jira_ticket_key=payload.jiraTicketKey,
    created_by=actor,
    status="active",
    sort_order=(max_order + 1) if max_order is not None else 0,
  )
  db.add(t)
  await db.flush()
  await write_timeline(db, task_id=t.id, action="created", user_email=actor, details={"column_id": col.id, "column": col.name})
  await db.commit()
  return _task_out(t)


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: str, db: AsyncSession = Depends(get_db)) -> TaskOut:
  t = await get_task_or_404(task_id, db)
  return _task_out(t)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
  task_id: str,
  payload: TaskUpdateIn,
  actor: str = Depends(get_actor_email),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  t = await get_task_or_404(task_id, db)
  fields = payload.model_fields_set
  changed: list[str] = []

  if "title" in fields and payload.title is not None:
    t.title = payload.title.strip()
    changed.append("title")
  if "description" in fields:
    t.description = payload.description
    changed.append("description")
  if "priority" in fields and payload.priority is not None:
    t.priority = payload.priority
    changed.append("priority")
  if "status" in fields and payload.status is not None:
    if payload.status == "active" and t.status != "active":
      cres = await db.execute(select(KanbanColumn.is_active).where(KanbanColumn.id == t.column_id))
      if not cres.scalar_one_or_none():
        # Active tasks must sit in an active column.
        col = await _pick_target_column(t.project_id, None, db)
        res = await db.execute(select(func.max(KanbanTask.sort_order)).where(KanbanTask.column_id == col.id))
        max_order = res.scalar_one()
        t.column_id = col.id
        t.sort_order = (max_order + 1) if max_order is not None else 0
        changed.append("column_id")
    t.status = payload.status
    changed.append("status")
  if "estimatedHours" in fields:
    t.estimated_hours = payload.estimatedHours
    changed.append("estimated_hours")
  if "dueDate" in fields:
    t.due_date = payload.dueDate
    changed.append("due_date")
  if "assignedTo" in fields:
    t.assigned_to = (payload.assignedTo or "").strip().lower() or None
    changed.append("assigned_to")
  if "jiraTicketKey" in fields:
    t.jira_ticket_key = payload.jiraTicketKey
    changed.append("jira_ticket_key")

  if changed:
    await write_timeline(db, task_id=t.id, action="updated", user_email=actor, details={"fields": changed})
  await db.commit()
  return _task_out(t)


@router.post("/tasks/{task_id}/move")
async def move_task(
  task_id: str,
  payload: TaskMoveIn,
  actor: str = Depends(get_actor_email),
  db: AsyncSession = Depends(get_db),
) -> dict:
  result = await move_task_safe(
    db,
    task_id=task_id,
    new_column_id=payload.columnId,
    new_sort_order=payload.sortOrder,
    user_email=actor,
  )
  if result.success:
    return result.to_json()
  if isinstance(result.error, (TaskNotFound, ColumnNotFound)):
    code = status.HTTP_404_NOT_FOUND
  elif isinstance(result.error, UpdateConflict):
    code = status.HTTP_409_CONFLICT
  else:
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
  raise HTTPException(status_code=code, detail=result.to_json())


@router.get("/tasks/{task_id}/timeline", response_model=list[TimelineEntryOut])
async def get_task_timeline(task_id: str, db: AsyncSession = Depends(get_db)) -> list[TimelineEntryOut]:
  await get_task_or_404(task_id, db)
  entries = await list_task_timeline(db, task_id=task_id)
  return [_timeline_out(e) for e in entries]

"""Safe task relocation between kanban columns.

``move_task_safe`` moves a task and appends one ``moved`` timeline entry in a
single transaction. It never raises: every failure is rolled back and
reported through ``MoveResult`` with a typed ``error`` so callers can branch
on the kind of failure instead of parsing messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import KanbanColumn, KanbanTask, is_uuid, utcnow
from kanban_api.timeline import write_timeline

logger = structlog.get_logger(__name__)

MOVE_OK_MESSAGE = "Task moved successfully"
MOVE_FAILED_MESSAGE = "Task move failed"


class MoveError(Exception):
  kind = "unknown"


class TaskNotFound(MoveError):
  kind = "task_not_found"

  def __init__(self, task_id: str) -> None:
    super().__init__(f"Task not found or not active: {task_id}")
    self.task_id = task_id


class ColumnNotFound(MoveError):
  kind = "column_not_found"

  def __init__(self, column_id: str) -> None:
    super().__init__(f"Target column not found or not active: {column_id}")
    self.column_id = column_id


class UpdateConflict(MoveError):
  kind = "update_conflict"

  def __init__(self, task_id: str) -> None:
    super().__init__(f"Failed to update task: {task_id}")
    self.task_id = task_id


class Unknown(MoveError):
  kind = "unknown"

  def __init__(self, cause: BaseException) -> None:
    message = str(cause).strip() or cause.__class__.__name__
    super().__init__(message)
    self.cause = cause


@dataclass(frozen=True)
class MoveResult:
  success: bool
  task_id: str
  message: str
  from_column: str | None = None
  to_column: str | None = None
  timeline_id: str | None = None
  error: MoveError | None = None

  @property
  def error_kind(self) -> str | None:
    return self.error.kind if self.error else None

  def to_json(self) -> dict[str, Any]:
    if self.success:
      return {
        "success": True,
        "task_id": self.task_id,
        "from_column": self.from_column,
        "to_column": self.to_column,
        "timeline_id": self.timeline_id,
        "message": self.message,
      }
    return {
      "success": False,
      "error": str(self.error) if self.error else None,
      "error_kind": self.error_kind,
      "task_id": self.task_id,
      "message": self.message,
    }


async def _column_name(db: AsyncSession, column_id: str | None) -> str | None:
  if not column_id:
    return None
  res = await db.execute(select(KanbanColumn.name).where(KanbanColumn.id == column_id))
  return res.scalar_one_or_none()


async def _move(
  db: AsyncSession,
  *,
  task_id: str,
  new_column_id: str,
  new_sort_order: int,
  user_email: str,
) -> MoveResult:
  if not is_uuid(task_id):
    raise TaskNotFound(task_id)
  res = await db.execute(
    select(KanbanTask).where(KanbanTask.id == task_id, KanbanTask.status == "active").with_for_update()
  )
  task = res.scalar_one_or_none()
  if not task:
    raise TaskNotFound(task_id)

  if not is_uuid(new_column_id):
    raise ColumnNotFound(new_column_id)
  cres = await db.execute(select(KanbanColumn).where(KanbanColumn.id == new_column_id, KanbanColumn.is_active.is_(True)))
  to_col = cres.scalar_one_or_none()
  if not to_col:
    raise ColumnNotFound(new_column_id)

  from_column_id = task.column_id
  from_column = await _column_name(db, from_column_id)
  to_column = to_col.name

  ures = await db.execute(
    update(KanbanTask)
    .where(KanbanTask.id == task_id, KanbanTask.status == "active")
    .values(column_id=new_column_id, sort_order=new_sort_order, updated_at=utcnow())
    .execution_options(synchronize_session="fetch")
  )
  if not ures.rowcount:
    raise UpdateConflict(task_id)

  # Names and ids are snapshotted so the entry stays accurate after renames or deletes.
  entry = await write_timeline(
    db,
    task_id=task_id,
    action="moved",
    user_email=user_email,
    details={
      "from_column": from_column,
      "to_column": to_column,
      "from_column_id": from_column_id,
      "to_column_id": new_column_id,
      "sort_order": new_sort_order,
    },
  )
  return MoveResult(
    success=True,
    task_id=task_id,
    message=MOVE_OK_MESSAGE,
    from_column=from_column,
    to_column=to_column,
    timeline_id=entry.id,
  )


async def move_task_safe(
  db: AsyncSession,
  *,
  task_id: str,
  new_column_id: str,
  new_sort_order: int,
  user_email: str = "system",
) -> MoveResult:
  try:
    result = await _move(
      db,
      task_id=task_id,
      new_column_id=new_column_id,
      new_sort_order=new_sort_order,
      user_email=user_email,
    )
    await db.commit()
  except Exception as exc:
    await db.rollback()
    err = exc if isinstance(exc, MoveError) else Unknown(exc)
    logger.warning("task_move_failed", task_id=task_id, to_column_id=new_column_id, error_kind=err.kind, error=str(err))
    return MoveResult(success=False, task_id=task_id, message=MOVE_FAILED_MESSAGE, error=err)

  logger.info(
    "task_moved",
    task_id=task_id,
    from_column=result.from_column,
    to_column=result.to_column,
    sort_order=new_sort_order,
    actor=user_email,
  )
  return result

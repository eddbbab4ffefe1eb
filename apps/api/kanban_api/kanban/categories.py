from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import CategoryOption, KanbanTask, ProjectCategory, TaskCategoryMapping, is_uuid
from kanban_api.timeline import write_timeline

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CategorySelection:
  category_id: str
  category_option_id: str | None = None
  is_primary: bool = False
  sort_order: int = 0


@dataclass(frozen=True)
class CategoryUpdateResult:
  success: bool
  task_id: str
  message: str
  categories_count: int = 0
  error: str | None = None

  def to_json(self) -> dict[str, Any]:
    if self.success:
      return {
        "success": True,
        "message": self.message,
        "task_id": self.task_id,
        "categories_count": self.categories_count,
      }
    return {"success": False, "error": self.error, "task_id": self.task_id, "message": self.message}


def normalize_option_id(raw: object) -> str | None:
  if raw is None:
    return None
  s = str(raw).strip()
  if not s or s.lower() == "null":
    return None
  return s


async def update_task_categories(
  db: AsyncSession,
  *,
  task_id: str,
  categories: list[CategorySelection],
  user_email: str = "system",
) -> CategoryUpdateResult:
  """Replace every category mapping of a task in one transaction.

  Failures are rolled back and reported in the result, the same way task
  moves report them.
  """
  try:
    tres = await db.execute(select(KanbanTask).where(KanbanTask.id == task_id))
    task = tres.scalar_one_or_none()
    if not task:
      raise LookupError(f"Task not found: {task_id}")

    wanted = {c.category_id for c in categories}
    if wanted:
      cres = await db.execute(
        select(ProjectCategory.id).where(ProjectCategory.id.in_(wanted), ProjectCategory.project_id == task.project_id)
      )
      known = set(cres.scalars().all())
      missing = sorted(wanted - known)
      if missing:
        raise LookupError(f"Category not found in project: {missing[0]}")

    chosen = [
      (normalize_option_id(c.category_option_id), c.category_id)
      for c in categories
      if normalize_option_id(c.category_option_id)
    ]
    if chosen:
      ores = await db.execute(
        select(CategoryOption.id, CategoryOption.category_id).where(
          CategoryOption.id.in_([o for o, _ in chosen if is_uuid(o)])
        )
      )
      owners = dict(ores.all())
      for option_id, category_id in chosen:
        if owners.get(option_id) != category_id:
          raise LookupError(f"Option {option_id} does not belong to category {category_id}")

    await db.execute(delete(TaskCategoryMapping).where(TaskCategoryMapping.task_id == task_id))
    for c in categories:
      db.add(
        TaskCategoryMapping(
          task_id=task_id,
          category_id=c.category_id,
          category_option_id=normalize_option_id(c.category_option_id),
          is_primary=bool(c.is_primary),
          sort_order=int(c.sort_order or 0),
        )
      )
    await db.flush()
    await write_timeline(
      db,
      task_id=task_id,
      action="categories_updated",
      user_email=user_email,
      details={"category_ids": [c.category_id for c in categories]},
    )
    await db.commit()
  except Exception as exc:
    await db.rollback()
    logger.warning("task_categories_update_failed", task_id=task_id, error=str(exc))
    return CategoryUpdateResult(success=False, task_id=task_id, message="Task categories update failed", error=str(exc))

  logger.info("task_categories_updated", task_id=task_id, categories_count=len(categories))
  return CategoryUpdateResult(
    success=True,
    task_id=task_id,
    message="Task categories updated successfully",
    categories_count=len(categories),
  )


async def get_task_categories(db: AsyncSession, *, task_id: str) -> list[dict[str, Any]]:
  res = await db.execute(
    select(TaskCategoryMapping, ProjectCategory, CategoryOption)
    .join(ProjectCategory, ProjectCategory.id == TaskCategoryMapping.category_id)
    .outerjoin(CategoryOption, CategoryOption.id == TaskCategoryMapping.category_option_id)
    .where(TaskCategoryMapping.task_id == task_id)
    .order_by(TaskCategoryMapping.sort_order.asc(), ProjectCategory.name.asc())
  )
  out: list[dict[str, Any]] = []
  for m, cat, opt in res.all():
    out.append(
      {
        "mappingId": m.id,
        "categoryId": cat.id,
        "categoryName": cat.name,
        "categoryColor": cat.color,
        "categoryOptionId": m.category_option_id,
        "optionName": opt.option_name if opt else None,
        "optionValue": opt.option_value if opt else None,
        "isPrimary": m.is_primary,
        "sortOrder": m.sort_order,
      }
    )
  return out

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_actor_email, get_db, get_project_or_404, get_task_or_404
from kanban_api.kanban.categories import CategorySelection, get_task_categories, update_task_categories
from kanban_api.models import CategoryOption, ProjectCategory, is_uuid
from kanban_api.schemas import (
  CategoryCreateIn,
  CategoryOptionCreateIn,
  CategoryOptionOut,
  CategoryOut,
  TaskCategoriesUpdateIn,
)

router = APIRouter(tags=["categories"])


def _option_value(name: str) -> str:
  s = re.sub(r"[^a-z0-9]+", "_", (name or "").strip().lower())
  return s.strip("_") or "option"


def _option_out(o: CategoryOption) -> CategoryOptionOut:
  return CategoryOptionOut(
    id=o.id,
    categoryId=o.category_id,
    optionName=o.option_name,
    optionValue=o.option_value,
    sortOrder=o.sort_order,
    isActive=o.is_active,
  )


def _category_out(c: ProjectCategory, options: list[CategoryOption] | None = None) -> CategoryOut:
  return CategoryOut(
    id=c.id,
    projectId=c.project_id,
    name=c.name,
    description=c.description,
    color=c.color,
    sortOrder=c.sort_order,
    isActive=c.is_active,
    options=[_option_out(o) for o in (options or [])],
  )


@router.get("/projects/{project_id}/categories", response_model=list[CategoryOut])
async def list_categories(project_id: str, db: AsyncSession = Depends(get_db)) -> list[CategoryOut]:
  await get_project_or_404(project_id, db)
  res = await db.execute(
    select(ProjectCategory)
    .where(ProjectCategory.project_id == project_id, ProjectCategory.is_active.is_(True))
    .order_by(ProjectCategory.sort_order.asc(), ProjectCategory.name.asc())
  )
  return [_category_out(c) for c in res.scalars().all()]


@router.get("/projects/{project_id}/categories/options", response_model=list[CategoryOut])
async def list_categories_with_options(project_id: str, db: AsyncSession = Depends(get_db)) -> list[CategoryOut]:
  await get_project_or_404(project_id, db)
  cres = await db.execute(
    select(ProjectCategory)
    .where(ProjectCategory.project_id == project_id, ProjectCategory.is_active.is_(True))
    .order_by(ProjectCategory.sort_order.asc(), ProjectCategory.name.asc())
  )
  cats = cres.scalars().all()
  by_cat: dict[str, list[CategoryOption]] = {c.id: [] for c in cats}
  if by_cat:
    ores = await db.execute(
      select(CategoryOption)
      .where(CategoryOption.category_id.in_(list(by_cat.keys())), CategoryOption.is_active.is_(True))
      .order_by(CategoryOption.sort_order.asc(), CategoryOption.option_name.asc())
    )
    for o in ores.scalars().all():
      by_cat[o.category_id].append(o)
  return [_category_out(c, by_cat[c.id]) for c in cats]


@router.post("/projects/{project_id}/categories", response_model=CategoryOut)
async def create_category(project_id: str, payload: CategoryCreateIn, db: AsyncSession = Depends(get_db)) -> CategoryOut:
  await get_project_or_404(project_id, db)
  name = payload.name.strip()
  if not name:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
  exists = await db.execute(
    select(ProjectCategory.id).where(ProjectCategory.project_id == project_id, func.lower(ProjectCategory.name) == name.lower())
  )
  if exists.first() is not None:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category name already exists")

  res = await db.execute(select(func.max(ProjectCategory.sort_order)).where(ProjectCategory.project_id == project_id))
  max_pos = res.scalar_one()
  c = ProjectCategory(
    project_id=project_id,
    name=name,
    description=payload.description,
    color=payload.color,
    sort_order=(max_pos + 1) if max_pos is not None else 0,
  )
  db.add(c)
  await db.commit()
  return _category_out(c)


@router.post("/categories/{category_id}/options", response_model=CategoryOptionOut)
async def create_category_option(
  category_id: str,
  payload: CategoryOptionCreateIn,
  db: AsyncSession = Depends(get_db),
) -> CategoryOptionOut:
  if not is_uuid(category_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
  cres = await db.execute(select(ProjectCategory).where(ProjectCategory.id == category_id))
  if not cres.scalar_one_or_none():
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

  name = payload.optionName.strip()
  value = (payload.optionValue or "").strip() or _option_value(name)
  exists = await db.execute(
    select(CategoryOption.id).where(CategoryOption.category_id == category_id, CategoryOption.option_value == value)
  )
  if exists.first() is not None:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Option already exists")

  res = await db.execute(select(func.max(CategoryOption.sort_order)).where(CategoryOption.category_id == category_id))
  max_pos = res.scalar_one()
  o = CategoryOption(
    category_id=category_id,
    option_name=name,
    option_value=value,
    sort_order=(max_pos + 1) if max_pos is not None else 0,
  )
  db.add(o)
  await db.commit()
  return _option_out(o)


@router.get("/tasks/{task_id}/categories")
async def list_task_categories(task_id: str, db: AsyncSession = Depends(get_db)) -> list[dict]:
  await get_task_or_404(task_id, db)
  return await get_task_categories(db, task_id=task_id)


@router.put("/tasks/{task_id}/categories")
async def replace_task_categories(
  task_id: str,
  payload: TaskCategoriesUpdateIn,
  actor: str = Depends(get_actor_email),
  db: AsyncSession = Depends(get_db),
) -> dict:
  await get_task_or_404(task_id, db)
  result = await update_task_categories(
    db,
    task_id=task_id,
    categories=[
      CategorySelection(
        category_id=c.categoryId,
        category_option_id=c.categoryOptionId,
        is_primary=c.isPrimary,
        sort_order=c.sortOrder,
      )
      for c in payload.categories
    ],
    user_email=actor,
  )
  if not result.success:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.to_json())
  return result.to_json()

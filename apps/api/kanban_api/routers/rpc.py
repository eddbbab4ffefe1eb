"""Stored-procedure style endpoints.

These keep the call shape of the kanban database procedures: positional
``p_*`` arguments in, the procedure's JSON out.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.config import settings
from kanban_api.deps import get_db
from kanban_api.kanban.moves import move_task_safe
from kanban_api.kanban.stats import refresh_project_kanban_stats
from kanban_api.schemas import MoveTaskRpcIn

router = APIRouter(prefix="/rpc", tags=["rpc"])


@router.post("/move_kanban_task_safe")
async def rpc_move_kanban_task_safe(payload: MoveTaskRpcIn, db: AsyncSession = Depends(get_db)) -> dict:
  # Always 200: callers branch on the "success" flag.
  result = await move_task_safe(
    db,
    task_id=str(payload.p_task_id),
    new_column_id=str(payload.p_new_column_id),
    new_sort_order=payload.p_new_sort_order,
    user_email=(payload.p_user_email or "").strip() or settings.default_actor_email,
  )
  return result.to_json()


@router.post("/refresh_project_kanban_stats")
async def rpc_refresh_project_kanban_stats(db: AsyncSession = Depends(get_db)) -> dict:
  outcome = await refresh_project_kanban_stats(db)
  return {"strategy": outcome.strategy}

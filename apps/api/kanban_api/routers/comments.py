from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_actor_email, get_db, get_task_or_404
from kanban_api.models import TaskComment
from kanban_api.schemas import CommentCreateIn, CommentOut
from kanban_api.timeline import write_timeline

router = APIRouter(tags=["comments"])
logger = structlog.get_logger(__name__)


def _comment_out(c: TaskComment) -> CommentOut:
  return CommentOut(
    id=c.id,
    taskId=c.task_id,
    userEmail=c.user_email,
    comment=c.comment,
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


@router.get("/tasks/{task_id}/comments", response_model=list[CommentOut])
async def list_comments(task_id: str, db: AsyncSession = Depends(get_db)) -> list[CommentOut]:
  await get_task_or_404(task_id, db)
  res = await db.execute(
    select(TaskComment).where(TaskComment.task_id == task_id).order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
  )
  return [_comment_out(c) for c in res.scalars().all()]


@router.post("/tasks/{task_id}/comments", response_model=CommentOut)
async def create_comment(
  task_id: str,
  payload: CommentCreateIn,
  actor: str = Depends(get_actor_email),
  db: AsyncSession = Depends(get_db),
) -> CommentOut:
  t = await get_task_or_404(task_id, db)
  body = payload.comment.strip()
  if not body:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="comment is required")

  c = TaskComment(task_id=t.id, user_email=actor, comment=body)
  db.add(c)
  await db.flush()
  await write_timeline(db, task_id=t.id, action="commented", user_email=actor, details={"comment_id": c.id})
  await db.commit()
  logger.info("task_commented", task_id=t.id, comment_id=c.id, actor=actor)
  return _comment_out(c)

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def is_uuid(value: object) -> bool:
  try:
    uuid.UUID(str(value))
  except (TypeError, ValueError):
    return False
  return True


class Base(DeclarativeBase):
  pass


class Project(Base):
  __tablename__ = "projects"

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  name: Mapped[str] = mapped_column(String(255), nullable=False)
  name_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class KanbanColumn(Base):
  __tablename__ = "kanban_columns"
  __table_args__ = (UniqueConstraint("project_id", "name", name="ux_kanban_columns_project_name"),)

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  project_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
  )
  name: Mapped[str] = mapped_column(String(255), nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  color: Mapped[str] = mapped_column(String(7), nullable=False, default="#10B981")
  sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class ProjectCategory(Base):
  __tablename__ = "project_categories"
  __table_args__ = (UniqueConstraint("project_id", "name", name="ux_project_categories_project_name"),)

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  project_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
  )
  name: Mapped[str] = mapped_column(String(255), nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  color: Mapped[str] = mapped_column(String(7), nullable=False, default="#3B82F6")
  sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class CategoryOption(Base):
  __tablename__ = "category_options"
  __table_args__ = (UniqueConstraint("category_id", "option_value", name="ux_category_options_category_value"),)

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  category_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("project_categories.id", ondelete="CASCADE"), nullable=False, index=True
  )
  option_name: Mapped[str] = mapped_column(String(255), nullable=False)
  option_value: Mapped[str] = mapped_column(String(255), nullable=False)
  sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class KanbanTask(Base):
  __tablename__ = "kanban_tasks"

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  title: Mapped[str] = mapped_column(String(500), nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  project_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
  )
  column_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("kanban_columns.id", ondelete="CASCADE"), nullable=False, index=True
  )
  priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")  # low | medium | high | urgent
  estimated_hours: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
  due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  jira_ticket_key: Mapped[str | None] = mapped_column(String(50), nullable=True)
  created_by: Mapped[str] = mapped_column(String(255), nullable=False)
  assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
  status: Mapped[str] = mapped_column(String(50), nullable=False, default="active", index=True)  # active | completed | archived
  sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TaskCategoryMapping(Base):
  __tablename__ = "task_category_mappings"
  __table_args__ = (UniqueConstraint("task_id", "category_id", name="ux_task_category_mappings_task_category"),)

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  task_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False, index=True
  )
  category_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("project_categories.id", ondelete="CASCADE"), nullable=False
  )
  category_option_id: Mapped[str | None] = mapped_column(
    UUID(as_uuid=False), ForeignKey("category_options.id", ondelete="SET NULL"), nullable=True
  )
  is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TaskTimeline(Base):
  """Append-only; rows are inserted and read, never updated."""

  __tablename__ = "task_timeline"

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  task_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False, index=True
  )
  user_email: Mapped[str] = mapped_column(String(255), nullable=False)
  action: Mapped[str] = mapped_column(String(100), nullable=False)
  details: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class TaskComment(Base):
  __tablename__ = "task_comments"

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  task_id: Mapped[str] = mapped_column(
    UUID(as_uuid=False), ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False, index=True
  )
  user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  comment: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class ProjectKanbanStats(Base):
  """Read-only mapping over the project_kanban_stats materialized view."""

  __tablename__ = "project_kanban_stats"
  # Created by migration 0002 as a materialized view; never part of create_all.
  __table_args__ = {"info": {"is_view": True}}

  project_id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
  project_name: Mapped[str] = mapped_column(String(255))
  total_tasks: Mapped[int] = mapped_column(Integer)
  active_tasks: Mapped[int] = mapped_column(Integer)
  urgent_tasks: Mapped[int] = mapped_column(Integer)
  overdue_tasks: Mapped[int] = mapped_column(Integer)
  total_columns: Mapped[int] = mapped_column(Integer)
  total_categories: Mapped[int] = mapped_column(Integer)
  last_task_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class JiraUserMapping(Base):
  __tablename__ = "jira_user_mappings"
  __table_args__ = (
    UniqueConstraint(
      "user_email",
      "jira_project_key",
      "integration_user_email",
      name="ux_jira_user_mappings_user_project_owner",
    ),
  )

  id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
  user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  jira_assignee_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  jira_reporter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
  jira_project_key: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
  integration_user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

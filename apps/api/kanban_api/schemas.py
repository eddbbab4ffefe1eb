from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import field_validator

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Priority = Literal["low", "medium", "high", "urgent"]
TaskStatus = Literal["active", "completed", "archived"]


def _parse_dt_utc(value: object) -> object:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    if _DATE_ONLY_RE.fullmatch(s):
      dt = datetime.fromisoformat(s)
    else:
      dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
  else:
    return value

  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


class ProjectCreateIn(BaseModel):
  name: str = Field(min_length=1, max_length=255)
  description: str | None = None


class ProjectOut(BaseModel):
  id: str
  name: str
  description: str | None = None
  createdAt: datetime
  updatedAt: datetime


class ColumnCreateIn(BaseModel):
  name: str = Field(min_length=1, max_length=255)
  description: str | None = None
  color: str = Field(default="#10B981", pattern=r"^#[0-9A-Fa-f]{6}$")


class ColumnUpdateIn(BaseModel):
  name: str | None = Field(default=None, min_length=1, max_length=255)
  description: str | None = None
  color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
  isActive: bool | None = None


class ColumnOut(BaseModel):
  id: str
  projectId: str
  name: str
  description: str | None = None
  color: str
  sortOrder: int
  isActive: bool


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=1, max_length=500)
  description: str | None = None
  columnId: str | None = None
  priority: Priority = "medium"
  estimatedHours: Decimal | None = Field(default=None, ge=0, lt=1000)
  dueDate: datetime | None = None
  assignedTo: str | None = None
  jiraTicketKey: str | None = Field(default=None, max_length=50)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=1, max_length=500)
  description: str | None = None
  priority: Priority | None = None
  status: TaskStatus | None = None
  estimatedHours: Decimal | None = Field(default=None, ge=0, lt=1000)
  dueDate: datetime | None = None
  assignedTo: str | None = None
  jiraTicketKey: str | None = Field(default=None, max_length=50)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskOut(BaseModel):
  id: str
  projectId: str
  columnId: str
  title: str
  description: str | None = None
  priority: str
  status: str
  estimatedHours: Decimal | None = None
  dueDate: datetime | None = None
  assignedTo: str | None = None
  createdBy: str
  jiraTicketKey: str | None = None
  sortOrder: int
  createdAt: datetime
  updatedAt: datetime


class TaskMoveIn(BaseModel):
  columnId: str
  sortOrder: int = Field(default=0, ge=0)


class TimelineEntryOut(BaseModel):
  id: str
  taskId: str
  userEmail: str
  action: str
  details: dict[str, Any] = Field(default_factory=dict)
  createdAt: datetime


class CategoryCreateIn(BaseModel):
  name: str = Field(min_length=1, max_length=255)
  description: str | None = None
  color: str = Field(default="#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryOptionCreateIn(BaseModel):
  optionName: str = Field(min_length=1, max_length=255)
  optionValue: str | None = Field(default=None, max_length=255)


class CategoryOptionOut(BaseModel):
  id: str
  categoryId: str
  optionName: str
  optionValue: str
  sortOrder: int
  isActive: bool


class CategoryOut(BaseModel):
  id: str
  projectId: str
  name: str
  description: str | None = None
  color: str
  sortOrder: int
  isActive: bool
  options: list[CategoryOptionOut] = Field(default_factory=list)


class TaskCategoryIn(BaseModel):
  categoryId: str
  categoryOptionId: str | None = None
  isPrimary: bool = False
  sortOrder: int = 0


class TaskCategoriesUpdateIn(BaseModel):
  categories: list[TaskCategoryIn] = Field(default_factory=list)


class ProjectStatsOut(BaseModel):
  projectId: str
  projectName: str
  totalTasks: int
  activeTasks: int
  urgentTasks: int
  overdueTasks: int
  totalColumns: int
  totalCategories: int
  lastTaskUpdate: datetime | None = None


class JiraUserMappingIn(BaseModel):
  userEmail: str = Field(min_length=3, max_length=255)
  jiraAssigneeName: str = Field(min_length=1, max_length=255)
  jiraReporterName: str | None = Field(default=None, max_length=255)
  jiraProjectKey: str | None = Field(default=None, max_length=50)
  integrationUserEmail: str = Field(min_length=3, max_length=255)


class JiraUserMappingOut(BaseModel):
  id: str
  userEmail: str
  jiraAssigneeName: str
  jiraReporterName: str | None = None
  jiraProjectKey: str | None = None
  integrationUserEmail: str
  createdAt: datetime
  updatedAt: datetime


class MoveTaskRpcIn(BaseModel):
  p_task_id: UUID
  p_new_column_id: UUID
  p_new_sort_order: int
  p_user_email: str | None = None


class CommentCreateIn(BaseModel):
  comment: str = Field(min_length=1, max_length=20000)


class CommentOut(BaseModel):
  id: str
  taskId: str
  userEmail: str
  comment: str
  createdAt: datetime
  updatedAt: datetime

"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

_UPDATED_AT_TABLES = [
  "projects",
  "kanban_columns",
  "project_categories",
  "category_options",
  "kanban_tasks",
  "task_category_mappings",
]


def _id() -> sa.Column:
  return sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _created_at() -> sa.Column:
  return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _updated_at() -> sa.Column:
  return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
  op.create_table(
    "projects",
    _id(),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("name_key", sa.String(255), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    _created_at(),
    _updated_at(),
  )
  op.create_index("ix_projects_name_key", "projects", ["name_key"], unique=True)

  op.create_table(
    "kanban_columns",
    _id(),
    sa.Column("project_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("color", sa.String(7), nullable=False, server_default="#10B981"),
    sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    _created_at(),
    _updated_at(),
    sa.UniqueConstraint("project_id", "name", name="ux_kanban_columns_project_name"),
  )
  op.create_index("ix_kanban_columns_project_id", "kanban_columns", ["project_id"])

  op.create_table(
    "project_categories",
    _id(),
    sa.Column("project_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("color", sa.String(7), nullable=False, server_default="#3B82F6"),
    sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    _created_at(),
    _updated_at(),
    sa.UniqueConstraint("project_id", "name", name="ux_project_categories_project_name"),
  )
  op.create_index("ix_project_categories_project_id", "project_categories", ["project_id"])

  op.create_table(
    "category_options",
    _id(),
    sa.Column(
      "category_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("project_categories.id", ondelete="CASCADE"), nullable=False
    ),
    sa.Column("option_name", sa.String(255), nullable=False),
    sa.Column("option_value", sa.String(255), nullable=False),
    sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    _created_at(),
    _updated_at(),
    sa.UniqueConstraint("category_id", "option_value", name="ux_category_options_category_value"),
  )
  op.create_index("ix_category_options_category_id", "category_options", ["category_id"])

  op.create_table(
    "kanban_tasks",
    _id(),
    sa.Column("title", sa.String(500), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("project_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
    sa.Column(
      "column_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("kanban_columns.id", ondelete="CASCADE"), nullable=False
    ),
    sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
    sa.Column("estimated_hours", sa.Numeric(5, 2), nullable=True),
    sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("jira_ticket_key", sa.String(50), nullable=True),
    sa.Column("created_by", sa.String(255), nullable=False),
    sa.Column("assigned_to", sa.String(255), nullable=True),
    sa.Column("status", sa.String(50), nullable=False, server_default="active"),
    sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    _created_at(),
    _updated_at(),
  )
  op.create_index("ix_kanban_tasks_project_id", "kanban_tasks", ["project_id"])
  op.create_index("ix_kanban_tasks_column_id", "kanban_tasks", ["column_id"])
  op.create_index("ix_kanban_tasks_status", "kanban_tasks", ["status"])
  op.create_index("ix_kanban_tasks_column_sort", "kanban_tasks", ["column_id", "sort_order"])

  op.create_table(
    "task_category_mappings",
    _id(),
    sa.Column("task_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False),
    sa.Column(
      "category_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("project_categories.id", ondelete="CASCADE"), nullable=False
    ),
    sa.Column(
      "category_option_id",
      postgresql.UUID(as_uuid=False),
      sa.ForeignKey("category_options.id", ondelete="SET NULL"),
      nullable=True,
    ),
    sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    _created_at(),
    _updated_at(),
    sa.UniqueConstraint("task_id", "category_id", name="ux_task_category_mappings_task_category"),
  )
  op.create_index("ix_task_category_mappings_task_id", "task_category_mappings", ["task_id"])

  op.create_table(
    "task_timeline",
    _id(),
    sa.Column("task_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False),
    sa.Column("user_email", sa.String(255), nullable=False),
    sa.Column("action", sa.String(100), nullable=False),
    sa.Column("details", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
    _created_at(),
  )
  op.create_index("ix_task_timeline_task_id", "task_timeline", ["task_id"])
  op.create_index("ix_task_timeline_task_created", "task_timeline", ["task_id", "created_at"])

  op.execute(
    """
    CREATE OR REPLACE FUNCTION update_updated_at_column()
    RETURNS TRIGGER AS $$
    BEGIN
      NEW.updated_at = NOW();
      RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """
  )
  for table in _UPDATED_AT_TABLES:
    op.execute(
      f"CREATE TRIGGER update_{table}_updated_at BEFORE UPDATE ON {table} "
      "FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()"
    )


def downgrade() -> None:
  for table in reversed(_UPDATED_AT_TABLES):
    op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")
  op.drop_table("task_timeline")
  op.drop_table("task_category_mappings")
  op.drop_table("kanban_tasks")
  op.drop_table("category_options")
  op.drop_table("project_categories")
  op.drop_table("kanban_columns")
  op.drop_table("projects")
  op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

"""task comments

Revision ID: 0004_task_comments
Revises: 0003_jira_user_mappings
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0004_task_comments"
down_revision = "0003_jira_user_mappings"
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "task_comments",
    sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
    sa.Column("task_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("kanban_tasks.id", ondelete="CASCADE"), nullable=False),
    sa.Column("user_email", sa.String(255), nullable=False),
    sa.Column("comment", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
  )
  op.create_index("ix_task_comments_task_id", "task_comments", ["task_id"])
  op.create_index("ix_task_comments_user_email", "task_comments", ["user_email"])
  op.execute(
    "CREATE TRIGGER update_task_comments_updated_at BEFORE UPDATE ON task_comments "
    "FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()"
  )


def downgrade() -> None:
  op.execute("DROP TRIGGER IF EXISTS update_task_comments_updated_at ON task_comments")
  op.drop_table("task_comments")

"""jira user mappings

Revision ID: 0003_jira_user_mappings
Revises: 0002_project_kanban_stats
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0003_jira_user_mappings"
down_revision = "0002_project_kanban_stats"
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "jira_user_mappings",
    sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
    sa.Column("user_email", sa.String(255), nullable=False),
    sa.Column("jira_assignee_name", sa.String(255), nullable=False),
    sa.Column("jira_reporter_name", sa.String(255), nullable=True),
    sa.Column("jira_project_key", sa.String(50), nullable=True),
    sa.Column("integration_user_email", sa.String(255), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.UniqueConstraint(
      "user_email",
      "jira_project_key",
      "integration_user_email",
      name="ux_jira_user_mappings_user_project_owner",
    ),
  )
  op.create_index("ix_jira_user_mappings_user_email", "jira_user_mappings", ["user_email"])
  op.create_index("ix_jira_user_mappings_jira_assignee_name", "jira_user_mappings", ["jira_assignee_name"])
  op.create_index("ix_jira_user_mappings_jira_project_key", "jira_user_mappings", ["jira_project_key"])
  op.create_index("ix_jira_user_mappings_integration_user_email", "jira_user_mappings", ["integration_user_email"])
  op.execute(
    "CREATE TRIGGER update_jira_user_mappings_updated_at BEFORE UPDATE ON jira_user_mappings "
    "FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()"
  )


def downgrade() -> None:
  op.execute("DROP TRIGGER IF EXISTS update_jira_user_mappings_updated_at ON jira_user_mappings")
  op.drop_table("jira_user_mappings")

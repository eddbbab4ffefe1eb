"""project kanban stats materialized view

Revision ID: 0002_project_kanban_stats
Revises: 0001_init
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op


revision = "0002_project_kanban_stats"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.execute(
    """
    CREATE MATERIALIZED VIEW project_kanban_stats AS
    SELECT
      p.id AS project_id,
      p.name AS project_name,
      COUNT(DISTINCT kt.id)::int AS total_tasks,
      COUNT(DISTINCT CASE WHEN kt.status = 'active' THEN kt.id END)::int AS active_tasks,
      COUNT(DISTINCT CASE WHEN kt.priority = 'urgent' THEN kt.id END)::int AS urgent_tasks,
      COUNT(DISTINCT CASE WHEN kt.due_date < NOW() AND kt.status = 'active' THEN kt.id END)::int AS overdue_tasks,
      COUNT(DISTINCT kc.id)::int AS total_columns,
      COUNT(DISTINCT pc.id)::int AS total_categories,
      MAX(kt.updated_at) AS last_task_update
    FROM projects p
    LEFT JOIN kanban_tasks kt ON p.id = kt.project_id
    LEFT JOIN kanban_columns kc ON p.id = kc.project_id AND kc.is_active = true
    LEFT JOIN project_categories pc ON p.id = pc.project_id AND pc.is_active = true
    GROUP BY p.id, p.name
    WITH DATA
    """
  )
  # Required by REFRESH MATERIALIZED VIEW CONCURRENTLY.
  op.execute("CREATE UNIQUE INDEX idx_project_kanban_stats_project_id_unique ON project_kanban_stats (project_id)")
  op.execute("CREATE INDEX idx_project_kanban_stats_active_tasks ON project_kanban_stats (active_tasks)")
  op.execute("CREATE INDEX idx_project_kanban_stats_urgent_tasks ON project_kanban_stats (urgent_tasks)")


def downgrade() -> None:
  op.execute("DROP MATERIALIZED VIEW IF EXISTS project_kanban_stats")

"""Projects, ledgers and staffing.

Revision ID: 0001_billing_ledger
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_billing_ledger"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0", **kwargs)


def _hours(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(8, 2), nullable=False, server_default="0")


def upgrade() -> None:
    # users (read-only here; provisioned by the account service)
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="employee"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('administrator', 'team-lead', 'employee')", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("project_name", sa.String(200), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("client_email", sa.Text(), nullable=True),
        sa.Column("client_phone", sa.Text(), nullable=True),
        sa.Column("project_platform", sa.Text(), nullable=True),
        sa.Column("priority", sa.Text(), nullable=False, server_default="medium"),
        sa.Column("payment_schedule", sa.Text(), nullable=False, server_default="upfront"),
        sa.Column("scope_policy", sa.Text(), nullable=True),
        sa.Column("technologies", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category", sa.Text(), nullable=False),
        _money("fixed_amount"),
        _money("hourly_rate"),
        _hours("estimated_hours"),
        _hours("actual_hours"),
        _money("total_amount"),
        _money("paid_amount"),
        _money("pending_amount"),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("client_status", sa.Text(), nullable=True),
        sa.Column("team_lead_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("visible_to_team_leads", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("category IN ('fixed', 'hourly', 'milestone')", name="ck_projects_category"),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'in-progress', 'on-hold', 'completed', 'cancelled')",
            name="ck_projects_status",
        ),
        sa.CheckConstraint("progress BETWEEN 0 AND 100", name="ck_projects_progress"),
    )
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_team_lead_id", "projects", ["team_lead_id"])

    op.create_table(
        "milestones",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deliverables", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_milestones_amount_positive"),
    )
    op.create_index("ix_milestones_project_id", "milestones", ["project_id"])

    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.Text(), nullable=False, server_default="bank-transfer"),
        sa.Column("transaction_id", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "milestone_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("milestones.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("added_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )
    op.create_index("ix_payments_project_id", "payments", ["project_id"])

    op.create_table(
        "time_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("hours", sa.Numeric(8, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("task_type", sa.Text(), nullable=False, server_default="development"),
        sa.Column("added_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("hours > 0", name="ck_time_entries_hours_positive"),
    )
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"])

    op.create_table(
        "project_employee_assignments",
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index(
        "ix_project_employee_assignments_user_id", "project_employee_assignments", ["user_id"]
    )


def downgrade() -> None:
    op.drop_table("project_employee_assignments")
    op.drop_table("time_entries")
    op.drop_table("payments")
    op.drop_table("milestones")
    op.drop_index("ix_projects_team_lead_id", table_name="projects")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

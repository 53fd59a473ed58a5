"""Project groups.

Revision ID: 0002_project_groups
Revises: 0001_billing_ledger
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0002_project_groups"
down_revision: Union[str, None] = "0001_billing_ledger"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "project_groups",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("group_code", sa.String(50), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column(
            "main_project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("pricing_model", sa.Text(), nullable=False, server_default="fixed"),
        sa.Column("total_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "pricing_model IN ('fixed', 'hourly', 'milestone')", name="ck_project_groups_pricing_model"
        ),
        sa.CheckConstraint("total_value >= 0", name="ck_project_groups_total_value"),
    )
    op.create_index("ix_project_groups_group_code", "project_groups", ["group_code"], unique=True)

    op.create_table(
        "project_group_members",
        sa.Column(
            "group_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("project_groups.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_project_group_members_project_id", "project_group_members", ["project_id"])


def downgrade() -> None:
    op.drop_index("ix_project_group_members_project_id", table_name="project_group_members")
    op.drop_table("project_group_members")
    op.drop_index("ix_project_groups_group_code", table_name="project_groups")
    op.drop_table("project_groups")

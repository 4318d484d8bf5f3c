"""Create learning logs

Revision ID: 4f2a9c7d1e03
Revises:
Create Date: 2025-05-12 09:14:37.402118

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f2a9c7d1e03"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "learning_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("reflection", sa.Text(), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_learning_logs_created_at_id", "learning_logs", ["created_at", "id"], unique=False
    )

    op.create_table(
        "learning_log_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("log_id", sa.String(length=36), nullable=False),
        sa.Column("tag", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["log_id"], ["learning_logs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_learning_log_tags_log_id"), "learning_log_tags", ["log_id"], unique=False
    )
    op.create_index(op.f("ix_learning_log_tags_tag"), "learning_log_tags", ["tag"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_learning_log_tags_tag"), table_name="learning_log_tags")
    op.drop_index(op.f("ix_learning_log_tags_log_id"), table_name="learning_log_tags")
    op.drop_table("learning_log_tags")
    op.drop_index("ix_learning_logs_created_at_id", table_name="learning_logs")
    op.drop_table("learning_logs")

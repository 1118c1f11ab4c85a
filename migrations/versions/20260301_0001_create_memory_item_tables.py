"""Create memory item and review history tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20260301_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "memory_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column(
            "scheduling_scheme",
            sa.String(length=16),
            server_default=sa.text("'adaptive'"),
            nullable=False,
        ),
        sa.Column("easiness_factor", sa.Float(), nullable=True),
        sa.Column("interval", sa.Integer(), nullable=True),
        sa.Column("repetition", sa.Integer(), nullable=True),
        sa.Column("lapse_count", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=16), server_default=sa.text("'active'"), nullable=False),
        sa.Column("next_review_date", sa.Date(), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archive_at", sa.Date(), nullable=True),
        sa.Column("delete_at", sa.Date(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_memory_items_user_id_next_review_date",
        "memory_items",
        ("user_id", "next_review_date"),
    )
    op.create_index("ix_memory_items_status", "memory_items", ("status",))

    op.create_table(
        "review_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("memory_item_id", sa.Integer(), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("performance", sa.String(length=16), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("interval_after", sa.Integer(), nullable=False),
        sa.Column("easiness_after", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(
            ("memory_item_id",),
            ("memory_items.id",),
            name="fk_review_history_memory_item_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_review_history_memory_item_id",
        "review_history",
        ("memory_item_id",),
    )


def downgrade() -> None:
    op.drop_index("ix_review_history_memory_item_id", table_name="review_history")
    op.drop_table("review_history")
    op.drop_index("ix_memory_items_status", table_name="memory_items")
    op.drop_index("ix_memory_items_user_id_next_review_date", table_name="memory_items")
    op.drop_table("memory_items")

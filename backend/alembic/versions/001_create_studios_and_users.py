"""Create studios and users tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema: `studios` (listings) and `users` (accounts).
How:   PostgreSQL server defaults (gen_random_uuid, CURRENT_TIMESTAMP) and a
       GIN full-text index matching the listing search expression in
       aloka/services/studio_query.py.

Rollback: downgrade() drops both tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Must stay identical to the expression TextMatch compiles to on PostgreSQL,
# otherwise the planner cannot use the index
TEXT_SEARCH_EXPRESSION = (
    "to_tsvector('english', studio_name || ' ' || description || ' ' || city)"
)


def upgrade() -> None:
    op.create_table(
        "studios",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
            comment="Opaque studio identifier",
        ),
        sa.Column("studio_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("state", sa.String(120), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column(
            "per_hour_charge",
            sa.Float(),
            nullable=False,
            comment="Hourly rate; never negative",
        ),
        sa.Column("max_distance", sa.Float(), nullable=False, server_default=sa.text("50")),
        sa.Column(
            "rating",
            sa.Float(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Average rating in [0, 5]",
        ),
        sa.Column("services", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("equipment", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "images",
            sa.JSON(),
            nullable=True,
            comment="[{url, caption?}]; NULL is read back as []",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "deleted_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="Soft-delete tombstone; NULL while the studio exists",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("per_hour_charge >= 0", name="ck_studios_per_hour_charge_non_negative"),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_studios_rating_range"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Fixed listing order: rating DESC, created_at DESC
    op.create_index(
        "idx_studios_listing_sort",
        "studios",
        [sa.text("rating DESC"), sa.text("created_at DESC")],
    )

    op.execute(
        f"CREATE INDEX idx_studios_text_search ON studios USING GIN ({TEXT_SEARCH_EXPRESSION})"
    )

    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(100), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default=sa.text("'client'")),
        sa.Column("avatar", sa.String(1000), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("idx_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    """Drop both tables. All studio and account data is lost."""
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
    op.execute("DROP INDEX IF EXISTS idx_studios_text_search")
    op.drop_index("idx_studios_listing_sort", table_name="studios")
    op.drop_table("studios")

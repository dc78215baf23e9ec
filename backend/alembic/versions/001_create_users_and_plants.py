"""Create users and plants tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema: accounts and their plant records.
How:   Serial integer keys; plants.user_id references users.id and is
       indexed for the per-user listing.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "username",
            sa.Text(),
            nullable=False,
            comment="Login name, unique across all users",
        ),
        # Holds a passlib hash, never plaintext
        sa.Column(
            "password",
            sa.Text(),
            nullable=False,
            comment="Salted one-way hash (passlib); plaintext is never stored",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "plants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            nullable=False,
            comment="Owning user; never reassigned",
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("scientific_name", sa.Text(), nullable=False),
        sa.Column(
            "image_url",
            sa.Text(),
            nullable=False,
            comment="External URL or embedded data URI, stored as submitted",
        ),
        sa.Column("habitat", sa.Text(), nullable=False),
        sa.Column("care_tips", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this record was created (UTC)",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # Every listing filters on the owner
    op.create_index("idx_plants_user_id", "plants", ["user_id"])


def downgrade() -> None:
    """Drop both tables. Destructive: all accounts and plants are lost."""
    op.drop_index("idx_plants_user_id", table_name="plants")
    op.drop_table("plants")
    op.drop_table("users")

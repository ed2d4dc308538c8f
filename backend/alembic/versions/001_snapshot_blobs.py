"""snapshot blobs

Revision ID: 001_snapshot_blobs
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "001_snapshot_blobs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- snapshot_blobs: one JSON array per collection ---
    op.create_table(
        "snapshot_blobs",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("snapshot_blobs")

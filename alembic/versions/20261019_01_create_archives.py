"""Create archives table."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "archives",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("upload", sa.DateTime(), nullable=False),
        sa.Column("expiration", sa.DateTime(), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_archives"),
        sa.UniqueConstraint("name", name="uq_archives_name"),
    )
    op.create_index("ix_archives_expiration", "archives", ["expiration"])
    op.create_index("ix_archives_token", "archives", ["token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_archives_token", table_name="archives")
    op.drop_index("ix_archives_expiration", table_name="archives")
    op.drop_table("archives")

"""track groups with messages left to purge

Revision ID: 7c4e2a91b5d3
Revises: 3b1f6c2d9a10
Create Date: 2026-10-19 09:30:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "7c4e2a91b5d3"
down_revision: Union[str, Sequence[str], None] = "3b1f6c2d9a10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add groups.purge_pending."""
    with op.batch_alter_table("groups") as batch_op:
        batch_op.add_column(
            sa.Column("purge_pending", sa.Boolean(), nullable=False, server_default=sa.false())
        )
        batch_op.create_index("ix_groups_purge_pending", ["purge_pending"])


def downgrade() -> None:
    """Drop groups.purge_pending."""
    with op.batch_alter_table("groups") as batch_op:
        batch_op.drop_index("ix_groups_purge_pending")
        batch_op.drop_column("purge_pending")

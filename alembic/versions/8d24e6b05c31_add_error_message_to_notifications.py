"""add error_message to notifications

Revision ID: 8d24e6b05c31
Revises: 3f1a9c2e7b10
Create Date: 2026-10-19 09:30:02.118764

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8d24e6b05c31"
down_revision: Union[str, Sequence[str], None] = "3f1a9c2e7b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "notifications",
        sa.Column("error_message", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_column("notifications", "error_message")

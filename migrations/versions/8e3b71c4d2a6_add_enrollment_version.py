"""add enrollment version

Revision ID: 8e3b71c4d2a6
Revises: 5a1c0e2f9b3d
Create Date: 2026-10-19 09:41:07.125904

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8e3b71c4d2a6"
down_revision: Union[str, None] = "5a1c0e2f9b3d"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "enrollments",
        sa.Column("version_id", sa.Integer(), server_default="1", nullable=False),
    )


def downgrade() -> None:
    op.drop_column("enrollments", "version_id")

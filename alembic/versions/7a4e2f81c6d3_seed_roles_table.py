"""seed roles table

Revision ID: 7a4e2f81c6d3
Revises: 3c1d9a7e5b20
Create Date: 2026-10-19 10:20:03.870114

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '7a4e2f81c6d3'
down_revision: Union[str, Sequence[str], None] = '3c1d9a7e5b20'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute(
        """
        INSERT INTO roles (name)
        VALUES ('ORGANIZER'), ('STAFF'), ('ATTENDEE')
        ON CONFLICT (name) DO NOTHING
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DELETE FROM roles WHERE name IN ('ORGANIZER', 'STAFF', 'ATTENDEE')")

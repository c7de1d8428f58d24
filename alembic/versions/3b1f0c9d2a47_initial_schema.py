"""Initial schema - users, zones, properties, listings, media, taxonomy, messages, audit logs

Revision ID: 3b1f0c9d2a47
Revises: 
Create Date: 2026-10-17 09:12:44.301552

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3b1f0c9d2a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: create all tables from current models."""
    from ddproperty.database import Base
    from ddproperty import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    """Downgrade schema: drop all tables."""
    from ddproperty.database import Base
    from ddproperty import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)

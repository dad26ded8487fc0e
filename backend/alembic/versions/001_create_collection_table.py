"""Create the document collection table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the table for the configured collection (DB_COLLECTION).
How:   Columns mirror simplecrud/models/document.py: surrogate id, unique
       request path, JSON document (JSONB on PostgreSQL).

Rollback: downgrade() drops the table (all documents are lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from simplecrud.config import settings

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    collection = settings.db_collection
    op.create_table(
        collection,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column(
            "document",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        # at most one document per request path
        sa.UniqueConstraint("path", name=f"uq_{collection}_path"),
    )


def downgrade() -> None:
    op.drop_table(settings.db_collection)

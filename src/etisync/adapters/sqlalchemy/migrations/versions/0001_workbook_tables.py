"""Create the workbook tables.

Revision ID: 0001_workbook_tables
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

from alembic import op

from etisync.adapters.sqlalchemy.mappings import create_all_tables, metadata

revision = "0001_workbook_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    create_all_tables(op.get_bind())


def downgrade() -> None:
    metadata.drop_all(op.get_bind(), checkfirst=True)

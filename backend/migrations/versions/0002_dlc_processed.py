"""add processed marker to dlc products

Revision ID: 0002_dlc_processed
Revises: 0001_initial_schema
Create Date: 2025-10-20
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

revision = '0002_dlc_processed'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade():
    insp = inspect(op.get_bind())
    cols = [c['name'] for c in insp.get_columns('dlc_products')]
    with op.batch_alter_table('dlc_products') as batch:
        if 'processed_by' not in cols:
            batch.add_column(sa.Column('processed_by', sa.Integer(), nullable=True))
        if 'processed_at' not in cols:
            batch.add_column(sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True))


def downgrade():
    with op.batch_alter_table('dlc_products') as batch:
        batch.drop_column('processed_at')
        batch.drop_column('processed_by')

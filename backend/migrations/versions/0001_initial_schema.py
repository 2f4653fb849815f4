"""initial schema: stores, users, tasks, dlc products, audit logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-02
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    op.create_table('stores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('color', sa.String(length=16), nullable=True, server_default='#1976D2'),
        _updated_at(),
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False, unique=True),
        sa.Column('email', sa.String(length=128), nullable=True, unique=True),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='employee'),
        sa.Column('password_changed', sa.Boolean(), nullable=True, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('1')),
        _updated_at(),
    )
    op.create_index('ix_users_username', 'users', ['username'])

    op.create_table('user_stores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('user_id', 'store_id', name='uq_user_store'),
    )

    op.create_table('tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('assigned_to', sa.Text(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_by', sa.Integer(), nullable=True),
        _updated_at(),
    )
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_store_id', 'tasks', ['store_id'])

    op.create_table('dlc_products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('gencode', sa.String(length=32), nullable=True),
        sa.Column('supplier_name', sa.String(length=128), nullable=True),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('date_type', sa.String(length=8), nullable=False, server_default='dlc'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='unité'),
        sa.Column('location', sa.String(length=64), nullable=False, server_default='Magasin'),
        sa.Column('alert_threshold', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='en_cours'),
        sa.Column('stock_epuise', sa.Boolean(), nullable=True, server_default=sa.text('0')),
        sa.Column('stock_epuise_by', sa.Integer(), nullable=True),
        sa.Column('stock_epuise_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('validated_by', sa.Integer(), nullable=True),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        _updated_at(),
    )
    op.create_index('ix_dlc_products_status', 'dlc_products', ['status'])
    op.create_index('ix_dlc_products_store_id', 'dlc_products', ['store_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('dlc_products')
    op.drop_table('tasks')
    op.drop_table('user_stores')
    op.drop_table('users')
    op.drop_table('stores')

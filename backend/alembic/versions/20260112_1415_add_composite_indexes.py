"""Add composite indexes for common query patterns

Revision ID: 20260112_1415
Revises: 3f1c2a7d9b10
Create Date: 2026-01-12 14:15:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20260112_1415'
down_revision = '3f1c2a7d9b10'
branch_labels = None
depends_on = None


def upgrade():
    """Add composite indexes for common query patterns."""

    # Products: is_deleted + created_at (default catalog listing)
    op.create_index(
        'ix_products_deleted_created',
        'products',
        ['is_deleted', 'created_at'],
        unique=False
    )

    # Products: created_by + is_deleted (products per creator)
    op.create_index(
        'ix_products_creator_deleted',
        'products',
        ['created_by', 'is_deleted'],
        unique=False
    )

    # Audit logs: product_id + timestamp (history of one product)
    op.create_index(
        'ix_audit_logs_product_timestamp',
        'audit_logs',
        ['product_id', sa.text('timestamp DESC')],
        unique=False
    )

    # Audit logs: user_id + timestamp (activity of one user)
    op.create_index(
        'ix_audit_logs_user_timestamp',
        'audit_logs',
        ['user_id', sa.text('timestamp DESC')],
        unique=False
    )


def downgrade():
    """Remove composite indexes."""
    op.drop_index('ix_audit_logs_user_timestamp', table_name='audit_logs')
    op.drop_index('ix_audit_logs_product_timestamp', table_name='audit_logs')
    op.drop_index('ix_products_creator_deleted', table_name='products')
    op.drop_index('ix_products_deleted_created', table_name='products')

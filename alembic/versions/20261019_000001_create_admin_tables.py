"""Create flat lifecycle tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Creates flat_requests, flats, setup_codes and admin_audit.
Timestamps are epoch milliseconds (BIGINT).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the admin tables."""
    op.create_table(
        'flat_requests',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('flat_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('note', sa.Text(), server_default='', nullable=True),
        sa.Column('status', sa.String(16), server_default='PENDING', nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_flat_requests_status', 'flat_requests', ['status'])

    op.create_table(
        'flats',
        sa.Column('flat_id', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), server_default='ACTIVE', nullable=False),
        sa.Column('pin_hash', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('strike_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('ban_until', sa.BigInteger(), nullable=True),
        sa.Column('requires_admin_revoke', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
        sa.Column('last_login_at', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('flat_id'),
    )

    op.create_table(
        'setup_codes',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('flat_id', sa.Text(), nullable=False),
        sa.Column('code_hash', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.BigInteger(), nullable=False),
        sa.Column('used_at', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['flat_id'],
            ['flats.flat_id'],
            name='fk_setup_codes_flat_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_setup_codes_flat_id', 'setup_codes', ['flat_id'])
    op.create_index('ix_setup_codes_expires_at', 'setup_codes', ['expires_at'])

    op.create_table(
        'admin_audit',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('meta_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Drop the admin tables."""
    op.drop_table('admin_audit')
    op.drop_index('ix_setup_codes_expires_at', table_name='setup_codes')
    op.drop_index('ix_setup_codes_flat_id', table_name='setup_codes')
    op.drop_table('setup_codes')
    op.drop_table('flats')
    op.drop_index('ix_flat_requests_status', table_name='flat_requests')
    op.drop_table('flat_requests')

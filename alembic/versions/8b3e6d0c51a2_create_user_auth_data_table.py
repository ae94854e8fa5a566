"""Create user_auth_data table

Revision ID: 8b3e6d0c51a2
Revises: 4f1c2a9d7e3b
Create Date: 2026-10-19 09:20:03.540771

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8b3e6d0c51a2'
down_revision: Union[str, None] = '4f1c2a9d7e3b'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user_auth_data',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('provider_user_id', sa.String(length=64), nullable=True),
        sa.Column('provider_access_token', postgresql.BYTEA(), nullable=True),
        sa.Column('provider_refresh_token', postgresql.BYTEA(), nullable=True),
        sa.Column('provider_expires_in', sa.Integer(), nullable=True),
        sa.Column('provider_scope', sa.Text(), nullable=True),
        sa.Column('provider_token_type', sa.String(length=32), nullable=True),
        sa.Column('provider_status', sa.String(length=32), nullable=True),
        sa.Column('provider_last_sync', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_auth_data_user_id', 'user_auth_data', ['user_id'], unique=True)
    op.create_index(
        'ix_user_auth_data_provider_user_id', 'user_auth_data', ['provider_user_id'], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_user_auth_data_provider_user_id', table_name='user_auth_data')
    op.drop_index('ix_user_auth_data_user_id', table_name='user_auth_data')
    op.drop_table('user_auth_data')

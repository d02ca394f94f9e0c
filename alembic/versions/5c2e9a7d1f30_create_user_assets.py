"""create user_assets

Revision ID: 5c2e9a7d1f30
Revises: 
Create Date: 2026-10-19 09:12:44.118203

One row per purchase lot. qty is decremented on sale; lots at zero keep
their selling price/date and make up the sale history.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c2e9a7d1f30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user_assets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('asset_type', sa.String(length=16), nullable=False),
        sa.Column('symbol', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('buy_price', sa.Numeric(20, 8), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=True),
        sa.Column('current_price', sa.Numeric(20, 8), nullable=True),
        sa.Column('current_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('selling_price', sa.Numeric(20, 8), nullable=True),
        sa.Column('selling_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_user_assets_id', 'user_assets', ['id'])
    op.create_index('ix_user_assets_asset_type', 'user_assets', ['asset_type'])
    op.create_index('ix_user_assets_symbol', 'user_assets', ['symbol'])


def downgrade() -> None:
    op.drop_index('ix_user_assets_symbol', table_name='user_assets')
    op.drop_index('ix_user_assets_asset_type', table_name='user_assets')
    op.drop_index('ix_user_assets_id', table_name='user_assets')
    op.drop_table('user_assets')

"""Reference tables for the landed-cost engine

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates 3 tables:
- tariffs (duty component and cumulative rates per product code)
- exemptions (products subject to conformity certification)
- port_fees (per-tonne port and municipal levy rates)
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'tariffs',
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('raw_code', sa.String(length=64), nullable=False),
        sa.Column('short_code', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('customs_duty', sa.Float(), nullable=False),
        sa.Column('statistical_tax', sa.Float(), nullable=False),
        sa.Column('community_levy', sa.Float(), nullable=False),
        sa.Column('solidarity_levy', sa.Float(), nullable=False),
        sa.Column('other_levy', sa.Float(), nullable=False),
        sa.Column('consumption_tax', sa.Float(), nullable=False),
        sa.Column('rrr', sa.Float(), nullable=False),
        sa.Column('rcp', sa.Float(), nullable=False),
        sa.Column('cumulative_without_tax', sa.Float(), nullable=False),
        sa.Column('cumulative_with_tax', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('code')
    )
    op.create_index('ix_tariffs_short_code', 'tariffs', ['short_code'])

    op.create_table(
        'exemptions',
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('raw_code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('exempt', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('code')
    )

    op.create_table(
        'port_fees',
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('port_rate_per_tonne', sa.Float(), nullable=False),
        sa.Column('municipal_rate_per_tonne', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('category')
    )


def downgrade() -> None:
    op.drop_table('port_fees')
    op.drop_table('exemptions')
    op.drop_index('ix_tariffs_short_code', table_name='tariffs')
    op.drop_table('tariffs')

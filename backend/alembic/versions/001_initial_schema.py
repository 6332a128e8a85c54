"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2025-10-01 00:00:00.000000

Initial database schema for Invest Journal: journals and user profiles.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Create investment_journals table
    op.create_table(
        'investment_journals',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False, comment='Owning user account'),
        sa.Column('date', sa.Date(), nullable=False, comment='Journal date'),
        sa.Column('total_assets', sa.Numeric(precision=20, scale=2), nullable=False, server_default='0',
                  comment='Total assets in local currency at save time'),
        sa.Column('evaluation', sa.Numeric(precision=20, scale=2), nullable=False, server_default='0',
                  comment='User-entered evaluation gain/loss'),
        sa.Column('foreign_stocks', sa.JSON(), nullable=True),
        sa.Column('domestic_stocks', sa.JSON(), nullable=True),
        sa.Column('cryptocurrency', sa.JSON(), nullable=True),
        sa.Column('cash', sa.JSON(), nullable=True),
        sa.Column('psychology_check', sa.JSON(), nullable=True),
        sa.Column('bull_market_checklist', sa.JSON(), nullable=True),
        sa.Column('bear_market_checklist', sa.JSON(), nullable=True),
        sa.Column('trades', sa.Text(), nullable=True),
        sa.Column('market_issues', sa.Text(), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_investment_journals_user_id', 'investment_journals', ['user_id'])
    op.create_index('ix_investment_journals_user_date', 'investment_journals', ['user_id', 'date'])

    # Create user_profiles table
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False,
                  comment='Account identifier supplied by the auth layer'),
        sa.Column('nickname', sa.String(length=50), nullable=True),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment="Whether other users may read this user's journals"),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_profiles_user_id', 'user_profiles', ['user_id'], unique=True)
    op.create_index('ix_user_profiles_nickname', 'user_profiles', ['nickname'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_user_profiles_nickname', table_name='user_profiles')
    op.drop_index('ix_user_profiles_user_id', table_name='user_profiles')
    op.drop_table('user_profiles')

    op.drop_index('ix_investment_journals_user_date', table_name='investment_journals')
    op.drop_index('ix_investment_journals_user_id', table_name='investment_journals')
    op.drop_table('investment_journals')

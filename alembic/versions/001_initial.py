"""Migration initiale - Comptes, transactions et comité

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Créer les types ENUM (avec vérification d'existence)
    op.execute("DO $$ BEGIN CREATE TYPE userrole AS ENUM ('admin', 'cashier'); EXCEPTION WHEN duplicate_object THEN null; END $$;")
    op.execute("DO $$ BEGIN CREATE TYPE fundtype AS ENUM ('mosque', 'imam'); EXCEPTION WHEN duplicate_object THEN null; END $$;")
    op.execute("DO $$ BEGIN CREATE TYPE imagestate AS ENUM ('pending', 'committed'); EXCEPTION WHEN duplicate_object THEN null; END $$;")

    # Table users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', postgresql.ENUM('admin', 'cashier', name='userrole', create_type=False), nullable=False),
        sa.Column('pin_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('idx_user_role_active', 'users', ['role', 'is_active'])

    # Table transactions
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('purpose', sa.Text(), nullable=False),
        sa.Column('fund', postgresql.ENUM('mosque', 'imam', name='fundtype', create_type=False), nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='positive_amount'),
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('idx_transaction_fund', 'transactions', ['fund'])
    op.create_index('idx_transaction_date', 'transactions', ['transaction_date', 'created_at'])

    # Table committee_members
    op.create_table(
        'committee_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('designation', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('image_key', sa.String(length=255), nullable=True),
        sa.Column('image_state', postgresql.ENUM('pending', 'committed', name='imagestate', create_type=False), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_committee_members_id', 'committee_members', ['id'])
    op.create_index('idx_committee_active_created', 'committee_members', ['is_active', 'created_at'])
    op.create_index('idx_committee_image_state', 'committee_members', ['image_state'])


def downgrade() -> None:
    # Supprimer les tables dans l'ordre inverse
    op.drop_table('committee_members')
    op.drop_table('transactions')
    op.drop_table('users')

    # Supprimer les types ENUM
    op.execute("DROP TYPE IF EXISTS imagestate")
    op.execute("DROP TYPE IF EXISTS fundtype")
    op.execute("DROP TYPE IF EXISTS userrole")

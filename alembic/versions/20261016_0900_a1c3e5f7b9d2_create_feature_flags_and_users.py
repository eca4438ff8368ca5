"""create feature_flags and users

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-16 09:00:00.000000+00:00

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
            comment='Timestamp of record creation',
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
            comment='Timestamp of last update',
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        'feature_flags',
        sa.Column('id', sa.Uuid(), nullable=False, comment='UUID v7 primary key (time-sortable)'),
        sa.Column(
            'name',
            sa.String(length=100),
            nullable=False,
            comment='Unique flag key, immutable after creation',
        ),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column(
            'env',
            sa.String(length=20),
            nullable=False,
            comment='Environment the flag is active in',
        ),
        sa.Column('version', sa.String(length=50), nullable=False),
        sa.Column('percentage', sa.Integer(), nullable=False),
        sa.Column('users', JSONType, nullable=False, comment='User ids that are always enabled'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('activates_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deactivates_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'dependencies',
            JSONType,
            nullable=False,
            comment='Flag names that must all be enabled',
        ),
        sa.Column('group', sa.String(length=100), nullable=True),
        sa.Column(
            'rate_limit',
            sa.Integer(),
            nullable=True,
            comment='Max evaluations per user per window',
        ),
        sa.Column('fallback_flag', sa.String(length=100), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('metadata', JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_feature_flags')),
    )
    op.create_index(op.f('ix_feature_flags_name'), 'feature_flags', ['name'], unique=True)
    op.create_index(op.f('ix_feature_flags_group'), 'feature_flags', ['group'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False, comment='UUID v7 primary key (time-sortable)'),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, comment='Lowercased login email'),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_feature_flags_group'), table_name='feature_flags')
    op.drop_index(op.f('ix_feature_flags_name'), table_name='feature_flags')
    op.drop_table('feature_flags')

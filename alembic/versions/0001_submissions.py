"""submissions table

Revision ID: 0001_submissions
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


revision: str = '0001_submissions'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'submissions',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('variant', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('source', sa.String(length=120), nullable=False),
        sa.Column('parent_name', sa.String(length=200), nullable=True),
        sa.Column('child_name', sa.String(length=200), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('child_age', sa.Integer(), nullable=True),
        sa.Column('last_step', sa.Integer(), nullable=False),
        sa.Column('answers', JSONType, nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('band', sa.String(length=32), nullable=True),
        sa.Column('band_label', sa.String(length=64), nullable=True),
        sa.Column('band_description', sa.Text(), nullable=True),
        sa.Column('primary_instrument', sa.String(length=32), nullable=True),
        sa.Column('secondary_instruments', JSONType, nullable=True),
        sa.Column('action_plan', JSONType, nullable=True),
        sa.Column('action_plan_source', sa.String(length=16), nullable=True),
        sa.Column('insights', JSONType, nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('digest_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status in ('partial', 'complete')", name='ck_submissions_status'),
        sa.CheckConstraint(
            "action_plan_source is null or action_plan_source in ('fallback', 'generated')",
            name='ck_submissions_action_plan_source',
        ),
    )
    op.create_index('ix_submissions_status_created_at', 'submissions', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_submissions_status_created_at', table_name='submissions')
    op.drop_table('submissions')

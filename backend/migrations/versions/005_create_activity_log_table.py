"""Create activity_log table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19 09:40:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '005'
down_revision = '004'
branch_labels = None
depends_on = None


def upgrade():
    """Create the append-only activity trail."""
    op.create_table(
        'activity_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('subject_type', sa.Text(), nullable=False),
        sa.Column('subject_id', sa.Uuid(), nullable=True),
        sa.Column('subject_name', sa.Text(), nullable=True),
        sa.Column('detail', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activity_log_subject', 'activity_log', ['subject_type', 'subject_id', 'created_at'])


def downgrade():
    """Drop activity_log table."""
    op.drop_index('ix_activity_log_subject', table_name='activity_log')
    op.drop_table('activity_log')

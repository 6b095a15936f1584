"""Create document_retention and retention_trigger_log tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '004'
down_revision = '003'
branch_labels = None
depends_on = None


def upgrade():
    """Create policy applications and the trigger audit log."""

    op.create_table(
        'document_retention',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('policy_id', sa.Uuid(), nullable=False),
        sa.Column('retention_start_date', sa.DateTime(), nullable=False),
        # Null while awaiting a trigger
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('original_expiration_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_days', sa.Integer(), nullable=False),
        sa.Column('trigger_event_id', sa.Uuid(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['policy_id'], ['retention_policy.id']),
        sa.ForeignKeyConstraint(['trigger_event_id'], ['retention_trigger_event.id']),
    )
    op.create_index('ix_document_retention_document_id', 'document_retention', ['document_id', 'status'])

    op.create_table(
        'retention_trigger_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('document_retention_id', sa.Uuid(), nullable=False),
        sa.Column('trigger_event_id', sa.Uuid(), nullable=False),
        sa.Column('trigger_type', sa.String(32), nullable=False),
        sa.Column('previous_expiration_date', sa.DateTime(), nullable=True),
        sa.Column('new_expiration_date', sa.DateTime(), nullable=True),
        sa.Column('triggered_by', sa.Uuid(), nullable=True),
        sa.Column('triggered_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_retention_id'], ['document_retention.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['trigger_event_id'], ['retention_trigger_event.id']),
    )


def downgrade():
    """Drop retention application tables."""
    op.drop_table('retention_trigger_log')
    op.drop_index('ix_document_retention_document_id', table_name='document_retention')
    op.drop_table('document_retention')

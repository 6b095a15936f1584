"""Create state_transition_rule and state_transition_log tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19 09:20:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade():
    """Create the lifecycle rule table and the append-only transition log."""

    # Rows are seeded by backend/scripts/seed_transition_rules.py
    op.create_table(
        'state_transition_rule',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('from_state', sa.String(32), nullable=False),
        sa.Column('to_state', sa.String(32), nullable=False),
        sa.Column('requires_classification', sa.Boolean(), nullable=False),
        sa.Column('requires_retention_policy', sa.Boolean(), nullable=False),
        sa.Column('requires_approval', sa.Boolean(), nullable=False),
        sa.Column('required_role', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('from_state', 'to_state', name='uq_state_transition_rule_edge'),
    )

    op.create_table(
        'state_transition_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('from_state', sa.String(32), nullable=False),
        sa.Column('to_state', sa.String(32), nullable=False),
        sa.Column('transitioned_by', sa.Uuid(), nullable=True),
        sa.Column('transitioned_at', sa.DateTime(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('rule_id', sa.Uuid(), nullable=True),
        sa.Column('is_system_action', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_state_transition_log_document_id', 'state_transition_log', ['document_id', 'transitioned_at']
    )


def downgrade():
    """Drop lifecycle tables."""
    op.drop_index('ix_state_transition_log_document_id', table_name='state_transition_log')
    op.drop_table('state_transition_log')
    op.drop_table('state_transition_rule')

"""Create retention_policy, retention_trigger_event and classification tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create policy, trigger definition and file plan tables."""

    op.create_table(
        'retention_policy',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('retention_days', sa.Integer(), nullable=False),
        # Enum names: CREATION, DECLARED_RECORD, EVENT_BASED
        sa.Column('retention_basis', sa.String(32), nullable=False),
        sa.Column('expiration_action', sa.String(16), nullable=False),

        # Applicable-policy scope (all null = catch-all)
        sa.Column('folder_id', sa.Uuid(), nullable=True),
        sa.Column('classification_id', sa.Uuid(), nullable=True),
        sa.Column('document_type_id', sa.Uuid(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),

        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'retention_trigger_event',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('policy_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('trigger_type', sa.String(32), nullable=False),
        sa.Column('metadata_field_name', sa.Text(), nullable=True),
        sa.Column('metadata_field_value', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['policy_id'], ['retention_policy.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_retention_trigger_event_policy_id', 'retention_trigger_event', ['policy_id'])

    op.create_table(
        'classification',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('default_retention_policy_id', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['parent_id'], ['classification.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['default_retention_policy_id'], ['retention_policy.id'], ondelete='SET NULL'),
    )


def downgrade():
    """Drop file plan, trigger definition and policy tables."""
    op.drop_table('classification')
    op.drop_index('ix_retention_trigger_event_policy_id', table_name='retention_trigger_event')
    op.drop_table('retention_trigger_event')
    op.drop_table('retention_policy')

"""Create document, metadata, version and working copy tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:10:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    """Create the document aggregate tables."""

    op.create_table(
        'document',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('folder_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('extension', sa.Text(), nullable=True),

        # Published content pointer
        sa.Column('content_type', sa.Text(), nullable=True),
        sa.Column('storage_path', sa.Text(), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('integrity_hash', sa.Text(), nullable=True),
        sa.Column('hash_algorithm', sa.Text(), nullable=True),
        sa.Column('integrity_verified_at', sa.DateTime(), nullable=True),

        # Version pointer
        sa.Column('current_version', sa.Integer(), nullable=False),
        sa.Column('current_major_version', sa.Integer(), nullable=False),
        sa.Column('current_minor_version', sa.Integer(), nullable=False),
        sa.Column('current_version_id', sa.Uuid(), nullable=True),

        # Lifecycle
        sa.Column('state', sa.String(32), nullable=False),
        sa.Column('previous_state', sa.String(32), nullable=True),
        sa.Column('state_changed_at', sa.DateTime(), nullable=True),
        sa.Column('state_changed_by', sa.Uuid(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by', sa.Uuid(), nullable=True),
        sa.Column('disposed_at', sa.DateTime(), nullable=True),
        sa.Column('disposed_by', sa.Uuid(), nullable=True),

        # Checkout
        sa.Column('is_checked_out', sa.Boolean(), nullable=False),
        sa.Column('checked_out_by', sa.Uuid(), nullable=True),
        sa.Column('checked_out_at', sa.DateTime(), nullable=True),

        # Legal hold
        sa.Column('is_on_legal_hold', sa.Boolean(), nullable=False),
        sa.Column('legal_hold_id', sa.Uuid(), nullable=True),
        sa.Column('legal_hold_applied_at', sa.DateTime(), nullable=True),
        sa.Column('legal_hold_applied_by', sa.Uuid(), nullable=True),

        # Classification and retention
        sa.Column('classification_id', sa.Uuid(), nullable=True),
        sa.Column('importance_id', sa.Uuid(), nullable=True),
        sa.Column('document_type_id', sa.Uuid(), nullable=True),
        sa.Column('retention_policy_id', sa.Uuid(), nullable=True),

        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('modified_by', sa.Uuid(), nullable=True),
        sa.Column('modified_at', sa.DateTime(), nullable=True),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['classification_id'], ['classification.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['retention_policy_id'], ['retention_policy.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_document_folder_id', 'document', ['folder_id'])
    op.create_index('ix_document_checked_out', 'document', ['is_checked_out', 'checked_out_at'])

    op.create_table(
        'document_metadata',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('content_type_id', sa.Uuid(), nullable=True),
        sa.Column('field_id', sa.Uuid(), nullable=False),
        sa.Column('field_name', sa.Text(), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('numeric_value', sa.Numeric(18, 4), nullable=True),
        sa.Column('date_value', sa.DateTime(), nullable=True),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        # One current value per field
        sa.UniqueConstraint('document_id', 'field_id', name='uq_document_metadata_field'),
    )
    op.create_index('ix_document_metadata_document_id', 'document_metadata', ['document_id'])

    op.create_table(
        'document_version',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('major_version', sa.Integer(), nullable=False),
        sa.Column('minor_version', sa.Integer(), nullable=False),
        sa.Column('version_label', sa.Text(), nullable=False),
        sa.Column('version_type', sa.String(16), nullable=False),

        sa.Column('storage_path', sa.Text(), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('integrity_hash', sa.Text(), nullable=True),
        sa.Column('hash_algorithm', sa.Text(), nullable=True),
        sa.Column('integrity_verified_at', sa.DateTime(), nullable=True),
        sa.Column('content_type', sa.Text(), nullable=True),
        sa.Column('original_file_name', sa.Text(), nullable=True),

        sa.Column('is_content_changed', sa.Boolean(), nullable=False),
        sa.Column('is_metadata_changed', sa.Boolean(), nullable=False),
        sa.Column('previous_version_id', sa.Uuid(), nullable=True),
        sa.Column('change_description', sa.Text(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),

        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['previous_version_id'], ['document_version.id']),
        # Concurrent mints of the same number fail here
        sa.UniqueConstraint('document_id', 'version_number', name='uq_document_version_number'),
    )
    op.create_index('ix_document_version_document_id', 'document_version', ['document_id'])

    op.create_table(
        'document_version_metadata',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_version_id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('content_type_id', sa.Uuid(), nullable=True),
        sa.Column('field_id', sa.Uuid(), nullable=False),
        sa.Column('field_name', sa.Text(), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('numeric_value', sa.Numeric(18, 4), nullable=True),
        sa.Column('date_value', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_version_id'], ['document_version.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_document_version_metadata_version_id', 'document_version_metadata', ['document_version_id']
    )

    op.create_table(
        'document_working_copy',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('checked_out_by', sa.Uuid(), nullable=False),
        sa.Column('checked_out_at', sa.DateTime(), nullable=False),

        # Draft content
        sa.Column('draft_storage_path', sa.Text(), nullable=True),
        sa.Column('draft_size', sa.BigInteger(), nullable=True),
        sa.Column('draft_content_type', sa.Text(), nullable=True),
        sa.Column('draft_original_file_name', sa.Text(), nullable=True),
        sa.Column('draft_integrity_hash', sa.Text(), nullable=True),
        sa.Column(
            'draft_metadata_json',
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'),
            nullable=True,
        ),

        # Draft document properties
        sa.Column('draft_name', sa.Text(), nullable=True),
        sa.Column('draft_description', sa.Text(), nullable=True),
        sa.Column('draft_classification_id', sa.Uuid(), nullable=True),
        sa.Column('draft_importance_id', sa.Uuid(), nullable=True),
        sa.Column('draft_document_type_id', sa.Uuid(), nullable=True),

        sa.Column('last_modified_at', sa.DateTime(), nullable=True),
        sa.Column('auto_save_enabled', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        # At most one working copy per document
        sa.UniqueConstraint('document_id', name='uq_document_working_copy_document_id'),
    )


def downgrade():
    """Drop the document aggregate tables."""
    op.drop_table('document_working_copy')
    op.drop_index('ix_document_version_metadata_version_id', table_name='document_version_metadata')
    op.drop_table('document_version_metadata')
    op.drop_index('ix_document_version_document_id', table_name='document_version')
    op.drop_table('document_version')
    op.drop_index('ix_document_metadata_document_id', table_name='document_metadata')
    op.drop_table('document_metadata')
    op.drop_index('ix_document_checked_out', table_name='document')
    op.drop_index('ix_document_folder_id', table_name='document')
    op.drop_table('document')

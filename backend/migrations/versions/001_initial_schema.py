"""Create role, permission, user, publication, moderation and settings tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _publication_columns(file_required=True):
    """Columns shared by publication and deleted_publication.

    An archive row has no file_path when the file was already gone at delete time.
    """
    return [
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('original_filename', sa.Text(), nullable=False),
        sa.Column('file_path', sa.Text(), nullable=not file_required),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('mime_type', sa.Text(), server_default='application/pdf', nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('day', sa.Integer(), nullable=False),
        sa.Column('page', sa.Integer(), nullable=True),
    ]


def upgrade():
    # Roles and permissions
    op.create_table(
        'permission',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('group', sa.Text(), server_default='general', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_permission_name'),
    )

    op.create_table(
        'role',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_role_name'),
        sa.UniqueConstraint('slug', name='uq_role_slug'),
    )

    op.create_table(
        'permission_role',
        sa.Column('permission_id', sa.Uuid(), nullable=False),
        sa.Column('role_id', sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint('permission_id', 'role_id'),
        sa.ForeignKeyConstraint(['permission_id'], ['permission.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='CASCADE'),
    )

    # Users
    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('role_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('department', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name='ck_user_status'),
    )
    op.create_index('ix_user_role_id', 'user', ['role_id'])

    # Audit trail
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=True),
        sa.Column('entity_id', sa.Uuid(), nullable=True),
        sa.Column('metadata_json', _json(), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['actor_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'])

    # Publications
    op.create_table(
        'publication',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_publication_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_publication_date', 'publication', ['year', 'month', 'day'])
    op.create_index('ix_publication_duplicate_key', 'publication', ['original_filename', 'file_size'])

    op.create_table(
        'pending_submission',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('original_filename', sa.Text(), nullable=False),
        sa.Column('file_path', sa.Text(), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('mime_type', sa.Text(), server_default='application/pdf', nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('month', sa.Integer(), nullable=True),
        sa.Column('day', sa.Integer(), nullable=True),
        sa.Column('page', sa.Integer(), nullable=True),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('verified_by', sa.Uuid(), nullable=True),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('publication_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['verified_by'], ['user.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['publication_id'], ['publication.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name='ck_pending_submission_status'
        ),
        sa.CheckConstraint(
            "(status = 'pending' AND verified_by IS NULL AND verified_at IS NULL)"
            " OR (status <> 'pending' AND verified_by IS NOT NULL AND verified_at IS NOT NULL)",
            name='ck_pending_submission_verification'
        ),
    )
    op.create_index('ix_pending_submission_status', 'pending_submission', ['status'])
    op.create_index(
        'ix_pending_submission_duplicate_key',
        'pending_submission',
        ['original_filename', 'file_size'],
    )

    op.create_table(
        'deleted_publication',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('original_id', sa.Uuid(), nullable=False),
        *_publication_columns(file_required=False),
        sa.Column('deleted_by', sa.Uuid(), nullable=True),
        sa.Column('deleted_reason', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('original_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('original_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['deleted_by'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_deleted_publication_deleted_at', 'deleted_publication', ['deleted_at'])

    # Editable application settings
    op.create_table(
        'app_setting',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('key', sa.Text(), nullable=False),
        sa.Column('value', _json(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key', name='uq_app_setting_key'),
    )


def downgrade():
    op.drop_table('app_setting')

    op.drop_index('ix_deleted_publication_deleted_at', table_name='deleted_publication')
    op.drop_table('deleted_publication')

    op.drop_index('ix_pending_submission_duplicate_key', table_name='pending_submission')
    op.drop_index('ix_pending_submission_status', table_name='pending_submission')
    op.drop_table('pending_submission')

    op.drop_index('ix_publication_duplicate_key', table_name='publication')
    op.drop_index('ix_publication_date', table_name='publication')
    op.drop_table('publication')

    op.drop_index('ix_audit_log_entity', table_name='audit_log')
    op.drop_index('ix_audit_log_created_at', table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index('ix_user_role_id', table_name='user')
    op.drop_table('user')

    op.drop_table('permission_role')
    op.drop_table('role')
    op.drop_table('permission')

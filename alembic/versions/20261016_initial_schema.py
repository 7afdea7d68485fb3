"""Initial Baby Tracker schema

Revision ID: 3f1a6c0d9b24
Revises:
Create Date: 2026-10-16

Creates families with their settings, caretakers and setup invitations,
babies and the five activity log tables, medicines, notification history
and the email provider configuration.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from baby_tracker.models.base import GUID


# revision identifiers, used by Alembic.
revision: str = '3f1a6c0d9b24'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _audit_columns(soft_delete: bool = True) -> list:
    columns = [
        sa.Column('id', GUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]
    if soft_delete:
        columns.append(sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def _activity_columns() -> list:
    return [
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        sa.Column('baby_id', GUID(), sa.ForeignKey('babies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('caretaker_id', GUID(), sa.ForeignKey('caretakers.id', ondelete='SET NULL'), nullable=True),
    ]


def _activity_indexes(table: str, time_column: str) -> None:
    with op.batch_alter_table(table, schema=None) as batch_op:
        batch_op.create_index(f'ix_{table}_family_id', ['family_id'], unique=False)
        batch_op.create_index(f'ix_{table}_baby_id', ['baby_id'], unique=False)
        batch_op.create_index(f'ix_{table}_{time_column}', [time_column], unique=False)


def upgrade() -> None:
    op.create_table('families',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    with op.batch_alter_table('families', schema=None) as batch_op:
        batch_op.create_index('idx_family_active', ['is_active'], unique=False)

    op.create_table('settings',
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False),
        sa.Column('family_name', sa.String(length=100), nullable=False),
        sa.Column('security_pin', sa.String(length=10), nullable=False),
        sa.Column('default_bottle_unit', sa.String(length=10), nullable=False),
        sa.Column('default_solids_unit', sa.String(length=10), nullable=False),
        sa.Column('default_height_unit', sa.String(length=10), nullable=False),
        sa.Column('default_weight_unit', sa.String(length=10), nullable=False),
        sa.Column('default_temp_unit', sa.String(length=10), nullable=False),
        sa.Column('activity_settings', JSON_TYPE, nullable=True),
        sa.Column('enable_debug_timer', sa.Boolean(), nullable=False),
        sa.Column('enable_debug_timezone', sa.Boolean(), nullable=False),
        sa.Column('notification_enabled', sa.Boolean(), nullable=False),
        sa.Column('hermes_api_endpoint', sa.String(length=255), nullable=True),
        sa.Column('hermes_api_key', sa.Text(), nullable=True),
        sa.Column('notification_title', sa.String(length=255), nullable=False),
        sa.Column('notification_feed_subtitle', sa.String(length=255), nullable=False),
        sa.Column('notification_feed_body', sa.Text(), nullable=False),
        sa.Column('notification_diaper_subtitle', sa.String(length=255), nullable=False),
        sa.Column('notification_diaper_body', sa.Text(), nullable=False),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('family_id'),
    )

    op.create_table('caretakers',
        sa.Column('login_id', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('inactive', sa.Boolean(), nullable=False),
        sa.Column('security_pin', sa.String(length=10), nullable=False),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('caretakers', schema=None) as batch_op:
        batch_op.create_index('idx_caretaker_family', ['family_id'], unique=False)
        batch_op.create_index('idx_caretaker_login', ['login_id'], unique=False)
        batch_op.create_index('idx_caretaker_deleted', ['deleted_at'], unique=False)

    op.create_table('family_setups',
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', GUID(), sa.ForeignKey('caretakers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=True),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
        sa.UniqueConstraint('family_id'),
    )

    op.create_table('babies',
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('birth_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('inactive', sa.Boolean(), nullable=False),
        sa.Column('feed_warning_time', sa.String(length=5), nullable=False),
        sa.Column('diaper_warning_time', sa.String(length=5), nullable=False),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('babies', schema=None) as batch_op:
        batch_op.create_index('idx_baby_family', ['family_id'], unique=False)
        batch_op.create_index('idx_baby_deleted', ['deleted_at'], unique=False)

    op.create_table('medicines',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('typical_dose_size', sa.Float(), nullable=True),
        sa.Column('unit_abbr', sa.String(length=10), nullable=True),
        sa.Column('dose_min_time', sa.String(length=5), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('medicines', schema=None) as batch_op:
        batch_op.create_index('ix_medicines_family_id', ['family_id'], unique=False)

    op.create_table('feed_logs',
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('feed_duration', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.Column('unit_abbr', sa.String(length=10), nullable=True),
        sa.Column('side', sa.String(length=5), nullable=True),
        sa.Column('food', sa.String(length=255), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('feed_logs', 'time')

    op.create_table('diaper_logs',
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('condition', sa.String(length=50), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('diaper_logs', 'time')

    op.create_table('sleep_logs',
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('quality', sa.String(length=20), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('sleep_logs', 'start_time')

    op.create_table('medicine_logs',
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('dose_amount', sa.Float(), nullable=False),
        sa.Column('unit_abbr', sa.String(length=10), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('medicine_id', GUID(), sa.ForeignKey('medicines.id', ondelete='CASCADE'), nullable=False),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('medicine_logs', 'time')
    with op.batch_alter_table('medicine_logs', schema=None) as batch_op:
        batch_op.create_index('ix_medicine_logs_medicine_id', ['medicine_id'], unique=False)

    op.create_table('measurements',
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('measurements', 'date')

    op.create_table('notification_logs',
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('baby_id', GUID(), sa.ForeignKey('babies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('notification_logs', schema=None) as batch_op:
        batch_op.create_index('ix_notification_logs_family_id', ['family_id'], unique=False)
        batch_op.create_index('idx_notification_baby_type_sent', ['baby_id', 'type', 'sent_at'], unique=False)

    op.create_table('email_config',
        sa.Column('provider_type', sa.String(length=20), nullable=False),
        sa.Column('sendgrid_api_key', sa.Text(), nullable=True),
        sa.Column('smtp2go_api_key', sa.Text(), nullable=True),
        sa.Column('server_address', sa.String(length=255), nullable=True),
        sa.Column('port', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('password', sa.Text(), nullable=True),
        sa.Column('enable_tls', sa.Boolean(), nullable=False),
        sa.Column('allow_self_signed_cert', sa.Boolean(), nullable=False),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    for table in (
        'email_config',
        'notification_logs',
        'measurements',
        'medicine_logs',
        'sleep_logs',
        'diaper_logs',
        'feed_logs',
        'medicines',
        'babies',
        'family_setups',
        'caretakers',
        'settings',
        'families',
    ):
        op.drop_table(table)

"""Bath logs, notes and setup claims

Revision ID: a7c2e95d1f08
Revises: 3f1a6c0d9b24
Create Date: 2026-10-16

Adds the bath and note activity logs, and the setup_claims table that
lets only one first-run setup create a family.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from baby_tracker.models.base import GUID


# revision identifiers, used by Alembic.
revision: str = 'a7c2e95d1f08'
down_revision: Union[str, None] = '3f1a6c0d9b24'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


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


def _activity_indexes(table: str) -> None:
    with op.batch_alter_table(table, schema=None) as batch_op:
        batch_op.create_index(f'ix_{table}_family_id', ['family_id'], unique=False)
        batch_op.create_index(f'ix_{table}_baby_id', ['baby_id'], unique=False)
        batch_op.create_index(f'ix_{table}_time', ['time'], unique=False)


def upgrade() -> None:
    op.create_table('bath_logs',
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('soap_used', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('shampoo_used', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('notes', sa.Text(), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('bath_logs')

    op.create_table('notes',
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        *_activity_columns(),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    _activity_indexes('notes')

    op.create_table('setup_claims',
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('family_id', GUID(), sa.ForeignKey('families.id', ondelete='SET NULL'), nullable=True),
        *_audit_columns(soft_delete=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )


def downgrade() -> None:
    for table in ('setup_claims', 'notes', 'bath_logs'):
        op.drop_table(table)

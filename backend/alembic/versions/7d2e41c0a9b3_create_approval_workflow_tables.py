"""create_approval_workflow_tables

Revision ID: 7d2e41c0a9b3
Revises:
Create Date: 2026-10-19 09:12:41.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7d2e41c0a9b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        _id_column(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('permissions', sa.JSON(), server_default='{}', nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_department_id', 'users', ['department_id'])

    op.create_table(
        'departments',
        _id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('head_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['head_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_foreign_key(
        'fk_users_department_id_departments', 'users', 'departments', ['department_id'], ['id']
    )

    op.create_table(
        'request_forms',
        _id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(18, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('requested_by_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id']),
        sa.ForeignKeyConstraint(['requested_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_request_forms_department_id', 'request_forms', ['department_id'])
    op.create_index('ix_request_forms_requested_by_id', 'request_forms', ['requested_by_id'])

    op.create_table(
        'projects',
        _id_column(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('budget', sa.Numeric(18, 2), nullable=True),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(50), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id']),
        sa.ForeignKeyConstraint(['manager_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_projects_department_id', 'projects', ['department_id'])

    op.create_table(
        'payrolls',
        _id_column(),
        sa.Column('period_month', sa.Integer(), nullable=False),
        sa.Column('period_year', sa.Integer(), nullable=False),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(50), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'payroll_entries',
        _id_column(),
        sa.Column('payroll_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('gross_pay', sa.Numeric(18, 2), nullable=False),
        sa.Column('net_pay', sa.Numeric(18, 2), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['payroll_id'], ['payrolls.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payroll_entries_payroll_id', 'payroll_entries', ['payroll_id'])

    op.create_table(
        'payments',
        _id_column(),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('total_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('method', sa.String(30), nullable=False),
        sa.Column('requires_approval', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'approvals',
        _id_column(),
        sa.Column('parent_kind', sa.String(20), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('level', sa.String(50), nullable=False),
        sa.Column('origin', sa.String(20), nullable=False),
        sa.Column('approver_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('added_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('action_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('can_add_approvers', sa.Boolean(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['approver_id'], ['users.id']),
        sa.ForeignKeyConstraint(['added_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_approvals_parent', 'approvals', ['parent_kind', 'parent_id', 'sequence'])
    op.create_index('ix_approvals_approver_id', 'approvals', ['approver_id'])
    op.create_index(
        'uq_approvals_pending_approver_per_level',
        'approvals',
        ['parent_kind', 'parent_id', 'level', 'approver_id'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'audit_logs',
        _id_column(),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('before_state', sa.Text(), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_index('uq_approvals_pending_approver_per_level', table_name='approvals')
    op.drop_table('approvals')
    op.drop_table('payments')
    op.drop_table('payroll_entries')
    op.drop_table('payrolls')
    op.drop_table('projects')
    op.drop_table('request_forms')
    op.drop_constraint('fk_users_department_id_departments', 'users', type_='foreignkey')
    op.drop_table('departments')
    op.drop_table('users')

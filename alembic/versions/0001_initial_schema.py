"""Esquema inicial: roles, áreas, usuarios, documentos, derivaciones y logs

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DOCUMENT_STATUSES = (
    'RECIBIDO', 'PENDIENTE', 'EN_PROCESO', 'COMPLETADO', 'ARCHIVADO', 'RECHAZADO',
)

LOG_TABLES = (
    'user_logs',
    'document_logs',
    'area_logs',
    'role_logs',
    'permission_logs',
    'mesa_partes_logs',
    'derivation_logs',
    'request_logs',
    'intrusion_detection_logs',
    'export_logs',
    'backup_logs',
)


def _log_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('event_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
    ]


def upgrade() -> None:
    # ── roles ─────────────────────────────────────────
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('description', sa.String(255), nullable=True),
    )

    # ── areas ─────────────────────────────────────────
    op.create_table(
        'areas',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('area_type', sa.String(30), nullable=False, server_default='ESPECIALIZADA'),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_areas_code', 'areas', ['code'])

    # ── users ─────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('cip_code', sa.String(20), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('area_id', sa.Integer(), sa.ForeignKey('areas.id'), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('rank', sa.String(50), nullable=True),
        sa.Column('is_blocked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_access', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_cip_code', 'users', ['cip_code'])
    op.create_index('ix_users_role_id', 'users', ['role_id'])
    op.create_index('ix_users_area_id', 'users', ['area_id'])

    # ── documents ─────────────────────────────────────
    document_status = postgresql.ENUM(*DOCUMENT_STATUSES, name='documentstatus', create_type=False)
    document_status.create(op.get_bind(), checkfirst=True)
    derivation_status = postgresql.ENUM('PENDIENTE', 'COMPLETADO', name='derivationstatus', create_type=False)
    derivation_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('registry_number', sa.String(50), nullable=False, unique=True),
        sa.Column('office_number', sa.String(100), nullable=True),
        sa.Column('document_date', sa.Date(), nullable=False),
        sa.Column('origin', sa.String(150), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
        sa.Column('current_area_id', sa.Integer(), sa.ForeignKey('areas.id'), nullable=False),
        sa.Column('status', document_status, nullable=False, server_default='RECIBIDO'),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_documents_registry_number', 'documents', ['registry_number'])
    op.create_index('idx_documents_area_status', 'documents', ['current_area_id', 'status'])

    # ── document_status_changes ───────────────────────
    op.create_table(
        'document_status_changes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id'), nullable=False),
        sa.Column('previous_status', document_status, nullable=True),
        sa.Column('new_status', document_status, nullable=False),
        sa.Column('observation', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_document_status_changes_document_id', 'document_status_changes', ['document_id'])

    # ── derivations ───────────────────────────────────
    op.create_table(
        'derivations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id'), nullable=False),
        sa.Column('origin_area_id', sa.Integer(), sa.ForeignKey('areas.id'), nullable=False),
        sa.Column('destination_area_id', sa.Integer(), sa.ForeignKey('areas.id'), nullable=False),
        sa.Column('derived_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('derived_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('received_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'status',
            derivation_status,
            nullable=False,
            server_default='PENDIENTE',
        ),
        sa.Column('observation', sa.Text(), nullable=True),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('urgent', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('idx_derivations_document_time', 'derivations', ['document_id', 'derived_at'])

    # ── tablas de log (INSERT-only) ───────────────────
    for table in LOG_TABLES:
        columns = _log_columns()
        if table == 'export_logs':
            columns += [
                sa.Column('exported_data_type', sa.String(50), nullable=False),
                sa.Column('date_from', sa.DateTime(timezone=True), nullable=True),
                sa.Column('date_to', sa.DateTime(timezone=True), nullable=True),
                sa.Column('file_name', sa.String(255), nullable=False),
            ]
        op.create_table(table, *columns)
        op.create_index(f'ix_{table}_event_type', table, ['event_type'])
        op.create_index(f'ix_{table}_event_at', table, ['event_at'])
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])


def downgrade() -> None:
    for table in reversed(LOG_TABLES):
        op.drop_table(table)
    op.drop_table('derivations')
    op.drop_table('document_status_changes')
    op.drop_table('documents')
    op.drop_table('users')
    op.drop_table('areas')
    op.drop_table('roles')
    postgresql.ENUM(name='derivationstatus').drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name='documentstatus').drop(op.get_bind(), checkfirst=True)

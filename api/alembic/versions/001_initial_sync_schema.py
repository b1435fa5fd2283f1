"""initial_sync_schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column('id', sa.String(length=36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('data_models'):
        op.create_table('data_models',
        _uuid_pk(),
        sa.Column('space_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('external_schema', sa.String(length=255), nullable=True),
        sa.Column('external_table', sa.String(length=255), nullable=True),
        sa.Column('external_primary_key', sa.String(length=255), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sync_status', sa.String(length=50), nullable=True),
        _created_at(),
        )
        op.create_index('ix_data_models_space_id', 'data_models', ['space_id'])

    if not inspector.has_table('data_model_attributes'):
        op.create_table('data_model_attributes',
        _uuid_pk(),
        sa.Column('data_model_id', sa.String(length=36), sa.ForeignKey('data_models.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False, server_default='text'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        )
        op.create_index('ix_data_model_attributes_data_model_id', 'data_model_attributes', ['data_model_id'])

    if not inspector.has_table('data_records'):
        op.create_table('data_records',
        _uuid_pk(),
        sa.Column('data_model_id', sa.String(length=36), sa.ForeignKey('data_models.id', ondelete='CASCADE'), nullable=False),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        )
        op.create_index('ix_data_records_data_model_id', 'data_records', ['data_model_id'])

    if not inspector.has_table('data_record_values'):
        op.create_table('data_record_values',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('data_record_id', sa.String(length=36), sa.ForeignKey('data_records.id', ondelete='CASCADE'), nullable=False),
        sa.Column('attribute_id', sa.String(length=36), sa.ForeignKey('data_model_attributes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.UniqueConstraint('data_record_id', 'attribute_id', name='uq_record_attribute'),
        )
        op.create_index('ix_data_record_values_data_record_id', 'data_record_values', ['data_record_id'])
        op.create_index('ix_data_record_values_attribute_id', 'data_record_values', ['attribute_id'])

    if not inspector.has_table('external_connections'):
        op.create_table('external_connections',
        _uuid_pk(),
        sa.Column('space_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('connection_type', sa.String(length=20), nullable=False),
        sa.Column('db_type', sa.String(length=50), nullable=True),
        sa.Column('host', sa.String(length=255), nullable=True),
        sa.Column('port', sa.Integer(), nullable=True),
        sa.Column('database', sa.String(length=255), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('password', sa.String(length=255), nullable=True),
        sa.Column('api_url', sa.Text(), nullable=True),
        sa.Column('api_method', sa.String(length=10), nullable=True),
        sa.Column('api_headers', sa.JSON(), nullable=True),
        sa.Column('api_auth_type', sa.String(length=20), nullable=True),
        sa.Column('api_auth_token', sa.Text(), nullable=True),
        sa.Column('api_auth_username', sa.String(length=255), nullable=True),
        sa.Column('api_auth_password', sa.String(length=255), nullable=True),
        sa.Column('api_auth_apikey_name', sa.String(length=255), nullable=True),
        sa.Column('api_auth_apikey_value', sa.Text(), nullable=True),
        sa.Column('api_body', sa.Text(), nullable=True),
        sa.Column('api_response_path', sa.String(length=255), nullable=True),
        _created_at(),
        )
        op.create_index('ix_external_connections_space_id', 'external_connections', ['space_id'])

    if not inspector.has_table('data_sync_schedules'):
        op.create_table('data_sync_schedules',
        _uuid_pk(),
        sa.Column('space_id', sa.String(length=36), nullable=False),
        sa.Column('data_model_id', sa.String(length=36), sa.ForeignKey('data_models.id'), nullable=False),
        sa.Column('external_connection_id', sa.String(length=36), sa.ForeignKey('external_connections.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('schedule_type', sa.String(length=20), nullable=False, server_default='MANUAL'),
        sa.Column('schedule_config', sa.JSON(), nullable=True),
        sa.Column('sync_strategy', sa.String(length=20), nullable=False, server_default='FULL_REFRESH'),
        sa.Column('incremental_key', sa.String(length=255), nullable=True),
        sa.Column('incremental_timestamp_column', sa.String(length=255), nullable=True),
        sa.Column('clear_existing_data', sa.Boolean(), server_default=sa.false(), nullable=True),
        sa.Column('source_query', sa.Text(), nullable=True),
        sa.Column('data_mapping', sa.JSON(), nullable=True),
        sa.Column('max_records_per_sync', sa.Integer(), nullable=True),
        sa.Column('rate_limit_per_minute', sa.Integer(), nullable=True),
        sa.Column('retry_enabled', sa.Boolean(), nullable=True),
        sa.Column('max_retries', sa.Integer(), nullable=True),
        sa.Column('retry_delay_seconds', sa.Float(), nullable=True),
        sa.Column('retry_backoff_multiplier', sa.Float(), nullable=True),
        sa.Column('current_retry_count', sa.Integer(), server_default='0', nullable=True),
        sa.Column('notify_on_success', sa.Boolean(), nullable=True),
        sa.Column('notify_on_failure', sa.Boolean(), nullable=True),
        sa.Column('notification_emails', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column('last_run_status', sa.String(length=20), server_default='PENDING', nullable=True),
        sa.Column('last_run_error', sa.Text(), nullable=True),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_run_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_data_sync_schedules_space_id', 'data_sync_schedules', ['space_id'])
        op.create_index('ix_data_sync_schedules_data_model_id', 'data_sync_schedules', ['data_model_id'])
        op.create_index('ix_data_sync_schedules_last_run_status', 'data_sync_schedules', ['last_run_status'])
        op.create_index('ix_data_sync_schedules_next_run_at', 'data_sync_schedules', ['next_run_at'])

    if not inspector.has_table('data_sync_validation_rules'):
        op.create_table('data_sync_validation_rules',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sync_schedule_id', sa.String(length=36), sa.ForeignKey('data_sync_schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('field_name', sa.String(length=255), nullable=False),
        sa.Column('rule_type', sa.String(length=20), nullable=False),
        sa.Column('rule_config', sa.JSON(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        _created_at(),
        )
        op.create_index('ix_data_sync_validation_rules_sync_schedule_id', 'data_sync_validation_rules', ['sync_schedule_id'])

    if not inspector.has_table('data_sync_recovery_actions'):
        op.create_table('data_sync_recovery_actions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sync_schedule_id', sa.String(length=36), sa.ForeignKey('data_sync_schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('error_pattern', sa.Text(), nullable=True),
        sa.Column('recovery_action', sa.String(length=30), nullable=False),
        sa.Column('recovery_config', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        _created_at(),
        )
        op.create_index('ix_data_sync_recovery_actions_sync_schedule_id', 'data_sync_recovery_actions', ['sync_schedule_id'])

    if not inspector.has_table('data_sync_alerts'):
        op.create_table('data_sync_alerts',
        _uuid_pk(),
        sa.Column('sync_schedule_id', sa.String(length=36), sa.ForeignKey('data_sync_schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('alert_type', sa.String(length=50), nullable=False),
        sa.Column('alert_config', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        _created_at(),
        )
        op.create_index('ix_data_sync_alerts_sync_schedule_id', 'data_sync_alerts', ['sync_schedule_id'])

    if not inspector.has_table('data_sync_alert_history'):
        op.create_table('data_sync_alert_history',
        _uuid_pk(),
        sa.Column('alert_id', sa.String(length=36), nullable=False),
        sa.Column('sync_schedule_id', sa.String(length=36), nullable=False),
        sa.Column('alert_type', sa.String(length=50), nullable=False),
        sa.Column('severity', sa.String(length=20), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        _created_at(),
        )
        op.create_index('ix_data_sync_alert_history_alert_id', 'data_sync_alert_history', ['alert_id'])
        op.create_index('ix_data_sync_alert_history_sync_schedule_id', 'data_sync_alert_history', ['sync_schedule_id'])

    if not inspector.has_table('data_sync_executions'):
        op.create_table('data_sync_executions',
        _uuid_pk(),
        sa.Column('sync_schedule_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('records_fetched', sa.Integer(), server_default='0', nullable=True),
        sa.Column('records_processed', sa.Integer(), server_default='0', nullable=True),
        sa.Column('records_inserted', sa.Integer(), server_default='0', nullable=True),
        sa.Column('records_updated', sa.Integer(), server_default='0', nullable=True),
        sa.Column('records_deleted', sa.Integer(), server_default='0', nullable=True),
        sa.Column('records_failed', sa.Integer(), server_default='0', nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('error_details', sa.JSON(), nullable=True),
        sa.Column('execution_log', sa.JSON(), nullable=True),
        sa.Column('duration_ms', sa.Integer(), server_default='0', nullable=True),
        )
        op.create_index('ix_data_sync_executions_sync_schedule_id', 'data_sync_executions', ['sync_schedule_id'])
        op.create_index('ix_data_sync_executions_status', 'data_sync_executions', ['status'])
        op.create_index('ix_data_sync_executions_started_at', 'data_sync_executions', ['started_at'])

    if not inspector.has_table('workflows'):
        op.create_table('workflows',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('data_model_id', sa.String(length=36), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='ACTIVE', nullable=True),
        )
        op.create_index('ix_workflows_data_model_id', 'workflows', ['data_model_id'])

    if not inspector.has_table('data_sync_workflow_triggers'):
        op.create_table('data_sync_workflow_triggers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('workflow_id', sa.String(length=36), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sync_schedule_id', sa.String(length=36), nullable=False),
        sa.Column('trigger_on_success', sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column('trigger_on_failure', sa.Boolean(), server_default=sa.false(), nullable=True),
        )
        op.create_index('ix_data_sync_workflow_triggers_sync_schedule_id', 'data_sync_workflow_triggers', ['sync_schedule_id'])

    if not inspector.has_table('workflow_schedules'):
        op.create_table('workflow_schedules',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('workflow_id', sa.String(length=36), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('trigger_on_sync', sa.Boolean(), server_default=sa.false(), nullable=True),
        sa.Column('trigger_on_sync_schedule_id', sa.String(length=36), nullable=True),
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # Orden inverso por las foreign keys
    for table in (
        'workflow_schedules',
        'data_sync_workflow_triggers',
        'workflows',
        'data_sync_executions',
        'data_sync_alert_history',
        'data_sync_alerts',
        'data_sync_recovery_actions',
        'data_sync_validation_rules',
        'data_sync_schedules',
        'external_connections',
        'data_record_values',
        'data_records',
        'data_model_attributes',
        'data_models',
    ):
        if inspector.has_table(table):
            op.drop_table(table)

"""initial reportbot schema: routes, loans, documents, users, report configs, execution logs

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-03-02 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c3d4e5f6a7b8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # routes / locations
    op.create_table('routes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('locations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('route_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['route_id'], ['routes.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('name'),
        sa.PrimaryKeyConstraint('id')
    )

    # personal_data / loans / document_photos
    op.create_table('personal_data',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('full_name', sa.String(length=300), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('loans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('borrower_id', sa.Integer(), nullable=True),
        sa.Column('route_id', sa.Integer(), nullable=True),
        sa.Column('requested_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount_given', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('sign_date', sa.DateTime(), nullable=False),
        sa.Column('finished_date', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['borrower_id'], ['personal_data.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['route_id'], ['routes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_loans_sign_date', 'loans', ['sign_date'])
    op.create_table('loan_collaterals',
        sa.Column('loan_id', sa.Integer(), nullable=False),
        sa.Column('personal_data_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['loan_id'], ['loans.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['personal_data_id'], ['personal_data.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('loan_id', 'personal_data_id')
    )
    op.create_table('document_photos',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('loan_id', sa.Integer(), nullable=False),
        sa.Column('subject', sa.Enum('CLIENT', 'GUARANTOR', name='documentsubject'), nullable=False),
        sa.Column('document_type', sa.String(length=50), nullable=False),
        sa.Column('is_error', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_missing', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('error_description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['loan_id'], ['loans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # users / telegram_users
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=300), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('email'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('telegram_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chat_id', sa.String(length=100), nullable=False),
        sa.Column('username', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('platform_user_id', sa.Integer(), nullable=True),
        sa.Column('registered_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['platform_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('chat_id'),
        sa.PrimaryKeyConstraint('id')
    )

    # report_configs
    op.create_table('report_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('report_type', sa.String(length=50), nullable=False),
        sa.Column('schedule_days', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('schedule_hour', sa.Integer(), nullable=False, server_default='9'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('report_config_routes',
        sa.Column('report_config_id', sa.Integer(), nullable=False),
        sa.Column('route_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['report_config_id'], ['report_configs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['route_id'], ['routes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('report_config_id', 'route_id')
    )
    op.create_table('report_config_recipients',
        sa.Column('report_config_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['report_config_id'], ['report_configs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('report_config_id', 'user_id')
    )

    # app_settings
    op.create_table('app_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=1000), nullable=False),
        sa.Column('value_type', sa.String(length=20), nullable=False, server_default='string'),
        sa.Column('category', sa.String(length=50), nullable=False, server_default='general'),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('key'),
        sa.PrimaryKeyConstraint('id')
    )

    # report_execution_logs / delivery_logs
    op.create_table('report_execution_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('report_config_id', sa.Integer(), nullable=True),
        sa.Column('config_name', sa.String(length=200), nullable=False),
        sa.Column('report_type', sa.String(length=50), nullable=False),
        sa.Column('execution_type', sa.Enum('AUTOMATIC', 'MANUAL', name='executiontype'), nullable=False),
        sa.Column('status', sa.Enum('SUCCESS', 'PARTIAL', 'ERROR', name='executionstatus'), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('error_details', sa.Text(), nullable=True),
        sa.Column('recipients_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('successful_deliveries', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failed_deliveries', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('recipients_without_endpoint', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Float(), nullable=False, server_default='0'),
        sa.Column('next_execution_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['report_config_id'], ['report_configs.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('delivery_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('execution_log_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('user_name', sa.String(length=200), nullable=False),
        sa.Column('chat_id', sa.String(length=100), nullable=True),
        sa.Column('status', sa.Enum('SENT', 'FAILED', 'NO_ENDPOINT', name='deliverystatus'), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('response_time_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['execution_log_id'], ['report_execution_logs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('delivery_logs')
    op.drop_table('report_execution_logs')
    op.drop_table('app_settings')
    op.drop_table('report_config_recipients')
    op.drop_table('report_config_routes')
    op.drop_table('report_configs')
    op.drop_table('telegram_users')
    op.drop_table('users')
    op.drop_table('document_photos')
    op.drop_table('loan_collaterals')
    op.drop_index('ix_loans_sign_date', table_name='loans')
    op.drop_table('loans')
    op.drop_table('personal_data')
    op.drop_table('locations')
    op.drop_table('routes')

    # PostgreSQL enum 타입 정리
    for enum_name in ('deliverystatus', 'executionstatus', 'executiontype', 'documentsubject'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)

"""initial schema: events, publication_logs, platform_configs

Revision ID: 001_initial_schema
Revises: 
Create Date: 2025-01-15 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

# SQLAlchemy stores enum member names
event_type_enum = postgresql.ENUM('VIRTUAL', 'LIVE', 'HYBRID', name='eventtype', create_type=False)
platform_enum = postgresql.ENUM('MEETUP', 'EVENTBRITE', 'FACEBOOK', 'SPONTACTS', name='platform', create_type=False)
method_enum = postgresql.ENUM('API', 'AUTOMATION', name='integrationmethod', create_type=False)
publication_status_enum = postgresql.ENUM(
    'IDLE', 'PENDING', 'SUCCESS', 'FAILED', 'VERIFIED',
    name='publicationstatus',
    create_type=False,
)
connection_status_enum = postgresql.ENUM(
    'CONNECTED', 'DISCONNECTED', 'TESTING',
    name='connectionstatus',
    create_type=False,
)

ENUMS = [event_type_enum, platform_enum, method_enum, publication_status_enum, connection_status_enum]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('time', sa.Time(), nullable=True),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('organizer', sa.String(length=200), nullable=True),
        sa.Column('url', sa.String(length=1000), nullable=True),
        sa.Column('price', sa.String(length=100), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('image_urls', sa.JSON(), nullable=True),
        sa.Column('event_type', event_type_enum, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'publication_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('event_id', sa.Uuid(), nullable=False),
        sa.Column('platform', platform_enum, nullable=False),
        sa.Column('method', method_enum, nullable=False),
        sa.Column('status', publication_status_enum, nullable=True),
        sa.Column('platform_event_id', sa.String(length=200), nullable=True),
        sa.Column('create_error', sa.JSON(), nullable=True),
        sa.Column('verify_error', sa.JSON(), nullable=True),
        sa.Column('screenshot_ref', sa.String(length=500), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_publication_logs_event_id'), 'publication_logs', ['event_id'], unique=False)

    op.create_table(
        'platform_configs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('platform', platform_enum, nullable=False),
        sa.Column('api_enabled', sa.Boolean(), nullable=True),
        sa.Column('api_key', sa.Text(), nullable=True),
        sa.Column('client_id', sa.String(length=200), nullable=True),
        sa.Column('client_secret', sa.Text(), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('api_settings', sa.JSON(), nullable=True),
        sa.Column('automation_enabled', sa.Boolean(), nullable=True),
        sa.Column('username', sa.String(length=200), nullable=True),
        sa.Column('password', sa.Text(), nullable=True),
        sa.Column('session_blob', sa.JSON(), nullable=True),
        sa.Column('automation_settings', sa.JSON(), nullable=True),
        sa.Column('connection_status', connection_status_enum, nullable=True),
        sa.Column('last_tested_at', sa.DateTime(), nullable=True),
        sa.Column('connection_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_platform_configs_platform'), 'platform_configs', ['platform'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_platform_configs_platform'), table_name='platform_configs')
    op.drop_table('platform_configs')
    op.drop_index(op.f('ix_publication_logs_event_id'), table_name='publication_logs')
    op.drop_table('publication_logs')
    op.drop_table('events')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)

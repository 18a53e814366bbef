"""Initial schema: users, devices, pitches, notifications, connections

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('surname', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='founder'),
        sa.Column('language', sa.String(), nullable=False, server_default='en'),
        sa.Column('scheduling_url', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('push_notifications_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create devices table
    op.create_table(
        'devices',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('push_token', sa.String(), nullable=False),
        sa.Column('platform', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('push_token')
    )
    op.create_index(op.f('ix_devices_user_id'), 'devices', ['user_id'], unique=False)

    # Create pitches table
    op.create_table(
        'pitches',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('pitch_deck_url', sa.String(), nullable=True),
        sa.Column('deck_share_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pitches_owner_id'), 'pitches', ['owner_id'], unique=False)

    # Create pitch_reviews table
    op.create_table(
        'pitch_reviews',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('pitch_id', sa.String(), nullable=False),
        sa.Column('reviewer_id', sa.String(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['pitch_id'], ['pitches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pitch_reviews_pitch_id'), 'pitch_reviews', ['pitch_id'], unique=False)
    op.create_index(op.f('ix_pitch_reviews_reviewer_id'), 'pitch_reviews', ['reviewer_id'], unique=False)

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('actor_id', sa.String(), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('template_key', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='unread'),
        sa.Column('action_status', sa.String(), nullable=True),
        sa.Column('decision', sa.String(), nullable=True),
        sa.Column('family', sa.String(), nullable=True),
        sa.Column('reference_model', sa.String(), nullable=True),
        sa.Column('reference_id', sa.String(), nullable=True),
        sa.Column('reference_key', sa.String(), nullable=False, server_default=''),
        sa.Column('participants_key', sa.String(), nullable=True),
        sa.Column('payload_value', sa.String(), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index('ix_notifications_user_created', 'notifications', ['user_id', 'created_at'], unique=False)
    # One pending request per user pair, family and referenced object
    op.create_index(
        'uq_notifications_pending_request',
        'notifications',
        ['participants_key', 'family', 'reference_key'],
        unique=True,
        postgresql_where=sa.text("action_status = 'required' AND NOT deleted"),
    )

    # Create user_connections table
    op.create_table(
        'user_connections',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_low_id', sa.String(), nullable=False),
        sa.Column('user_high_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_low_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_high_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_low_id', 'user_high_id', 'type', name='uq_user_connection_pair_type'),
        sa.CheckConstraint('user_low_id < user_high_id', name='ck_user_connection_ordered_pair')
    )
    op.create_index(op.f('ix_user_connections_user_low_id'), 'user_connections', ['user_low_id'], unique=False)
    op.create_index(op.f('ix_user_connections_user_high_id'), 'user_connections', ['user_high_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_user_connections_user_high_id'), table_name='user_connections')
    op.drop_index(op.f('ix_user_connections_user_low_id'), table_name='user_connections')
    op.drop_table('user_connections')
    op.drop_index('uq_notifications_pending_request', table_name='notifications')
    op.drop_index('ix_notifications_user_created', table_name='notifications')
    op.drop_index(op.f('ix_notifications_user_id'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index(op.f('ix_pitch_reviews_reviewer_id'), table_name='pitch_reviews')
    op.drop_index(op.f('ix_pitch_reviews_pitch_id'), table_name='pitch_reviews')
    op.drop_table('pitch_reviews')
    op.drop_index(op.f('ix_pitches_owner_id'), table_name='pitches')
    op.drop_table('pitches')
    op.drop_index(op.f('ix_devices_user_id'), table_name='devices')
    op.drop_table('devices')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')

"""Initial schema: users, profiles, interests, activities, notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone', name='uq_users_phone'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),

        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(20), nullable=False),
        sa.Column('marital_status', sa.String(30), nullable=True),
        sa.Column('height_cm', sa.Integer(), nullable=True),
        sa.Column('religion', sa.String(100), nullable=True),
        sa.Column('mother_tongue', sa.String(100), nullable=True),
        sa.Column('highest_qualification', sa.String(200), nullable=True),
        sa.Column('profession', sa.String(200), nullable=True),
        sa.Column('income', sa.String(50), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('city', sa.String(200), nullable=True),
        sa.Column('address', sa.String(300), nullable=True),
        sa.Column('photos', sa.JSON(), nullable=True),
        sa.Column('about', sa.Text(), nullable=True),

        sa.Column('is_complete', sa.Boolean(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=True),
        sa.Column('profile_score', sa.Integer(), nullable=True),

        # Privacy
        sa.Column('show_photos', sa.Boolean(), nullable=True),
        sa.Column('show_contact', sa.Boolean(), nullable=True),
        sa.Column('show_income', sa.Boolean(), nullable=True),
        sa.Column('show_location', sa.Boolean(), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=True),
        sa.Column('who_can_contact', sa.String(20), nullable=True),
        sa.Column('blocked_users', sa.JSON(), nullable=True),

        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'interests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('from_user_id', sa.Uuid(), nullable=False),
        sa.Column('to_user_id', sa.Uuid(), nullable=False),
        sa.Column('pair_key', sa.String(73), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('message', sa.String(500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('from_user_id <> to_user_id', name='interest_not_self_check'),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pair_key'),
    )
    op.create_index('ix_interests_to_user_status', 'interests', ['to_user_id', 'status'])
    op.create_index('ix_interests_from_user_status', 'interests', ['from_user_id', 'status'])
    op.create_index('ix_interests_status_created', 'interests', ['status', 'created_at'])

    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('target_id', sa.Uuid(), nullable=True),
        sa.Column('target_model', sa.String(30), nullable=True),
        sa.Column('description', sa.String(300), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(300), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activities_type', 'activities', ['type'])
    op.create_index('ix_activities_user_created', 'activities', ['user_id', 'created_at'])
    op.create_index('ix_activities_target_type', 'activities', ['target_id', 'type'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('reference_id', sa.Uuid(), nullable=True),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('ix_activities_target_type', table_name='activities')
    op.drop_index('ix_activities_user_created', table_name='activities')
    op.drop_index('ix_activities_type', table_name='activities')
    op.drop_table('activities')

    op.drop_index('ix_interests_status_created', table_name='interests')
    op.drop_index('ix_interests_from_user_status', table_name='interests')
    op.drop_index('ix_interests_to_user_status', table_name='interests')
    op.drop_table('interests')

    op.drop_table('profiles')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

"""initial schema: users, events, attendees, revoked tokens

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

user_role_enum = sa.Enum('user', 'organizer', 'admin', name='userrole')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', user_role_enum, nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('ticket_price', sa.Float(), nullable=False),
        sa.Column('dynamic_pricing', sa.Boolean(), nullable=False),
        sa.Column('attendees_count', sa.Integer(), nullable=False),
        sa.Column('ratings', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('capacity > 0', name='ck_event_capacity_positive'),
        sa.CheckConstraint('ticket_price >= 0', name='ck_event_price_non_negative'),
        sa.CheckConstraint(
            'attendees_count <= capacity', name='ck_event_attendees_within_capacity'
        ),
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_name', 'events', ['name'])
    op.create_index('ix_events_date', 'events', ['date'])
    op.create_index('ix_events_created_by', 'events', ['created_by'])
    op.create_index('idx_event_creator_date', 'events', ['created_by', 'date'])

    op.create_table(
        'event_attendees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'event_id',
            sa.Integer(),
            sa.ForeignKey('events.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_attendee'),
    )
    op.create_index('ix_event_attendees_event_id', 'event_attendees', ['event_id'])
    op.create_index('ix_event_attendees_user_id', 'event_attendees', ['user_id'])

    op.create_table(
        'revoked_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_revoked_tokens_token', 'revoked_tokens', ['token'], unique=True)
    op.create_index('ix_revoked_tokens_expires_at', 'revoked_tokens', ['expires_at'])


def downgrade() -> None:
    op.drop_table('revoked_tokens')
    op.drop_table('event_attendees')
    op.drop_table('events')
    op.drop_table('users')
    user_role_enum.drop(op.get_bind(), checkfirst=True)

"""Initial schema

Revision ID: 3f1c9a7be2d4
Revises:
Create Date: 2026-10-17 10:12:41.503228

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7be2d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table('user',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('avatar_url', sa.String(length=1000), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('suspended', sa.Boolean(), nullable=False),
        sa.Column('suspended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('suspended_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table('auth_session',
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('token')
    )
    op.create_index('ix_auth_session_user_id', 'auth_session', ['user_id'])

    op.create_table('book',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('author', sa.String(length=200), nullable=False),
        sa.Column('isbn', sa.String(length=20), nullable=True),
        sa.Column('genre', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.String(length=1000), nullable=True),
        sa.Column('condition', sa.String(length=20), nullable=False),
        sa.Column('borrowable', sa.Boolean(), nullable=False),
        sa.Column('flagged', sa.Boolean(), nullable=False),
        sa.Column('flagged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('flagged_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['owner_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_book_owner_id', 'book', ['owner_id'])

    op.create_table('borrow_request',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('book_id', sa.String(length=36), nullable=False),
        sa.Column('borrower_id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('request_message', sa.Text(), nullable=True),
        sa.Column('response_message', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('handover_method', sa.String(length=20), nullable=True),
        sa.Column('handover_address', sa.Text(), nullable=True),
        sa.Column('handover_datetime', sa.DateTime(timezone=True), nullable=True),
        sa.Column('handover_instructions', sa.Text(), nullable=True),
        sa.Column('handover_tracking', sa.String(length=255), nullable=True),
        sa.Column('handover_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('return_method', sa.String(length=20), nullable=True),
        sa.Column('return_address', sa.Text(), nullable=True),
        sa.Column('return_datetime', sa.DateTime(timezone=True), nullable=True),
        sa.Column('return_instructions', sa.Text(), nullable=True),
        sa.Column('return_tracking', sa.String(length=255), nullable=True),
        sa.Column('return_initiated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['book_id'], ['book.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['borrower_id'], ['user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_borrow_request_book_id', 'borrow_request', ['book_id'])
    op.create_index('ix_borrow_request_borrower_id', 'borrow_request', ['borrower_id'])
    op.create_index('ix_borrow_request_owner_id', 'borrow_request', ['owner_id'])
    op.create_index('ix_borrow_request_status', 'borrow_request', ['status'])

    op.create_table('review',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('book_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['book_id'], ['book.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'user_id', name='uix_review_book_user'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range')
    )
    op.create_index('ix_review_book_id', 'review', ['book_id'])
    op.create_index('ix_review_user_id', 'review', ['user_id'])

    op.create_table('notification',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notification_user_id', 'notification', ['user_id'])

    op.create_table('message',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('borrow_request_id', sa.String(length=36), nullable=False),
        sa.Column('sender_id', sa.String(length=36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('read_by_owner', sa.Boolean(), nullable=False),
        sa.Column('read_by_borrower', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['borrow_request_id'], ['borrow_request.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_message_borrow_request_id', 'message', ['borrow_request_id'])

    op.create_table('community',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(length=1000), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        sa.Column('requires_approval', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('community_member',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('community_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['community_id'], ['community.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('community_id', 'user_id', name='uix_community_member_community_user')
    )
    op.create_index('ix_community_member_community_id', 'community_member', ['community_id'])
    op.create_index('ix_community_member_user_id', 'community_member', ['user_id'])

    op.create_table('book_community',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('book_id', sa.String(length=36), nullable=False),
        sa.Column('community_id', sa.String(length=36), nullable=False),
        sa.Column('added_by', sa.String(length=36), nullable=True),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['book.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['community_id'], ['community.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['added_by'], ['user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'community_id', name='uix_book_community_book_community')
    )
    op.create_index('ix_book_community_book_id', 'book_community', ['book_id'])
    op.create_index('ix_book_community_community_id', 'book_community', ['community_id'])

    op.create_table('community_activity',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('community_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['community_id'], ['community.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_community_activity_community_id', 'community_activity', ['community_id'])

    op.create_table('community_invitation',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('community_id', sa.String(length=36), nullable=False),
        sa.Column('inviter_id', sa.String(length=36), nullable=False),
        sa.Column('invitee_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['community_id'], ['community.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inviter_id'], ['user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invitee_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('community_id', 'invitee_id', name='uix_community_invitation_community_invitee')
    )
    op.create_index('ix_community_invitation_community_id', 'community_invitation', ['community_id'])
    op.create_index('ix_community_invitation_invitee_id', 'community_invitation', ['invitee_id'])


def downgrade() -> None:
    # Children first so foreign keys never dangle
    op.drop_table('community_invitation')
    op.drop_table('community_activity')
    op.drop_table('book_community')
    op.drop_table('community_member')
    op.drop_table('community')
    op.drop_table('message')
    op.drop_table('notification')
    op.drop_table('review')
    op.drop_table('borrow_request')
    op.drop_table('book')
    op.drop_table('auth_session')
    op.drop_table('user')

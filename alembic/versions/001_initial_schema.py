"""Initial schema - profiles, rooms, chat messages, flagged messages

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the SafeChat safety schema:
- profiles: Students and teachers (teacher email receives alerts)
- rooms: Classrooms owned by a teacher
- chat_messages: Conversation history, including system safety advice
- flagged_messages: Concerns escalated for teacher review
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('country_code', sa.String(8), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
    )

    # Create rooms table
    op.create_table(
        'rooms',
        sa.Column('room_id', sa.String(64), nullable=False),
        sa.Column('room_name', sa.String(200), nullable=False),
        sa.Column('teacher_id', sa.String(64), nullable=False),
        sa.Column('chatbot_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('room_id'),
        sa.ForeignKeyConstraint(['teacher_id'], ['profiles.user_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_rooms_teacher_id', 'rooms', ['teacher_id'])

    # Create chat_messages table
    op.create_table(
        'chat_messages',
        sa.Column('message_id', sa.String(64), nullable=False),
        sa.Column('room_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('chatbot_id', sa.String(64), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('metadata', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('message_id'),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.room_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_chat_messages_room_id', 'chat_messages', ['room_id'])
    op.create_index('ix_chat_messages_user_id', 'chat_messages', ['user_id'])
    # Composite index for the context window query
    op.create_index(
        'ix_chat_messages_context',
        'chat_messages',
        ['room_id', 'user_id', 'chatbot_id', 'created_at'],
    )

    # Create flagged_messages table
    op.create_table(
        'flagged_messages',
        sa.Column('flag_id', sa.String(64), nullable=False),
        sa.Column('message_id', sa.String(64), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('teacher_id', sa.String(64), nullable=False),
        sa.Column('room_id', sa.String(64), nullable=False),
        sa.Column('concern_type', sa.String(32), nullable=False),
        sa.Column('concern_level', sa.Integer(), nullable=False),
        sa.Column('analysis_explanation', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('flag_id'),
        sa.ForeignKeyConstraint(['message_id'], ['chat_messages.message_id'], ondelete='CASCADE'),
        sa.CheckConstraint('concern_level >= 0 AND concern_level <= 5', name='ck_flagged_messages_level'),
    )
    op.create_index('ix_flagged_messages_message_id', 'flagged_messages', ['message_id'])
    op.create_index('ix_flagged_messages_student_id', 'flagged_messages', ['student_id'])
    op.create_index('ix_flagged_messages_room_id', 'flagged_messages', ['room_id'])
    # Teacher dashboard: pending concerns per teacher
    op.create_index(
        'ix_flagged_messages_teacher_status',
        'flagged_messages',
        ['teacher_id', 'status'],
    )


def downgrade() -> None:
    op.drop_table('flagged_messages')
    op.drop_table('chat_messages')
    op.drop_table('rooms')
    op.drop_table('profiles')

"""Initial migration - create all base tables

Revision ID: 0_initial
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── chapters table ────────────────────────────────────────────────
    op.create_table(
        'chapters',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # ── topics table ──────────────────────────────────────────────────
    op.create_table(
        'topics',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('chapter_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_topics_chapter_id', 'topics', ['chapter_id'])

    # ── questions table ───────────────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('topic_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('time_limit', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.String(50), nullable=True, server_default='medium'),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_questions_topic_id', 'questions', ['topic_id'])

    # ── question_items table ──────────────────────────────────────────
    op.create_table(
        'question_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('question_id', sa.Uuid(), nullable=False),
        sa.Column('item_text', sa.Text(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('correct_position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('question_id', 'correct_position', name='uq_question_item_position'),
    )
    op.create_index('ix_question_items_question_id', 'question_items', ['question_id'])

    # ── quiz_sessions table ───────────────────────────────────────────
    op.create_table(
        'quiz_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('topic_id', sa.Uuid(), nullable=False),
        sa.Column('student_session_id', sa.String(255), nullable=False),
        sa.Column('student_nickname', sa.String(255), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_question_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_score', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('max_possible_score', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_quiz_sessions_topic_id', 'quiz_sessions', ['topic_id'])
    op.create_index('ix_quiz_sessions_student_session_id', 'quiz_sessions', ['student_session_id'])

    # ── quiz_session_questions table ──────────────────────────────────
    op.create_table(
        'quiz_session_questions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('quiz_session_id', sa.Uuid(), nullable=False),
        sa.Column('question_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['quiz_session_id'], ['quiz_sessions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.UniqueConstraint('quiz_session_id', 'position', name='uq_session_question_position'),
    )
    op.create_index(
        'ix_quiz_session_questions_quiz_session_id', 'quiz_session_questions', ['quiz_session_id']
    )

    # ── student_answers table ─────────────────────────────────────────
    op.create_table(
        'student_answers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('question_id', sa.Uuid(), nullable=False),
        sa.Column('student_session_id', sa.String(255), nullable=False),
        sa.Column('quiz_session_id', sa.Uuid(), nullable=False),
        sa.Column('question_index', sa.Integer(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_score', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('max_possible_score', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('time_taken', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['quiz_session_id'], ['quiz_sessions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint(
            'quiz_session_id', 'question_index', name='uq_answer_session_question_index'
        ),
    )
    op.create_index('ix_student_answers_question_id', 'student_answers', ['question_id'])
    op.create_index('ix_student_answers_student_session_id', 'student_answers', ['student_session_id'])
    op.create_index('ix_student_answers_quiz_session_id', 'student_answers', ['quiz_session_id'])

    # ── student_answer_items table ────────────────────────────────────
    op.create_table(
        'student_answer_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_answer_id', sa.Uuid(), nullable=False),
        sa.Column('question_item_id', sa.Uuid(), nullable=False),
        sa.Column('submitted_position', sa.Integer(), nullable=False),
        sa.Column('correct_position', sa.Integer(), nullable=False),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('points_earned', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('max_points', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['student_answer_id'], ['student_answers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_item_id'], ['question_items.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_student_answer_items_student_answer_id', 'student_answer_items', ['student_answer_id']
    )


def downgrade() -> None:
    # Drop all tables in reverse order
    op.drop_table('student_answer_items')
    op.drop_table('student_answers')
    op.drop_table('quiz_session_questions')
    op.drop_table('quiz_sessions')
    op.drop_table('question_items')
    op.drop_table('questions')
    op.drop_table('topics')
    op.drop_table('chapters')

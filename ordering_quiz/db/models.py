"""SQLAlchemy ORM models for the ordering quiz.

Tables
------
- chapters                – top-level grouping of topics
- topics                  – ordered list of questions a student takes as one quiz
- questions               – one ordering question (linked to topic)
- question_items          – orderable items with their correct position
- quiz_sessions           – one student's attempt at one topic
- quiz_session_questions  – question order snapshotted when the session starts
- student_answers         – per-question grading audit record
- student_answer_items    – per-item grading audit record

The content tables (chapters → question_items) are written by the authoring
tools and only read here.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ordering_quiz.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


# ── Content ───────────────────────────────────────────────────────────────────


class Chapter(Base):
    __tablename__ = "chapters"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    topics: Mapped[list["Topic"]] = relationship(
        back_populates="chapter", cascade="all, delete-orphan"
    )


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    chapter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("chapters.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    chapter: Mapped["Chapter"] = relationship(back_populates="topics")
    questions: Mapped[list["Question"]] = relationship(
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    topic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("topics.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(50), default="medium")
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    topic: Mapped["Topic"] = relationship(back_populates="questions")
    items: Mapped[list["QuestionItem"]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="QuestionItem.correct_position",
    )


class QuestionItem(Base):
    __tablename__ = "question_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    item_text: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_position: Mapped[int] = mapped_column(Integer)  # 1-indexed
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    question: Mapped["Question"] = relationship(back_populates="items")

    __table_args__ = (
        UniqueConstraint(
            "question_id", "correct_position", name="uq_question_item_position"
        ),
    )


# ── Quiz sessions ─────────────────────────────────────────────────────────────


class QuizSession(Base):
    __tablename__ = "quiz_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    topic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("topics.id", ondelete="CASCADE"), index=True
    )
    student_session_id: Mapped[str] = mapped_column(String(255), index=True)
    student_nickname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    current_question_index: Mapped[int] = mapped_column(Integer, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    total_score: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    max_possible_score: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0")
    )
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    version: Mapped[int] = mapped_column(Integer, default=0)

    questions: Mapped[list["QuizSessionQuestion"]] = relationship(
        back_populates="quiz_session",
        cascade="all, delete-orphan",
        order_by="QuizSessionQuestion.position",
    )
    answers: Mapped[list["StudentAnswer"]] = relationship(
        back_populates="quiz_session",
        cascade="all, delete-orphan",
        order_by="StudentAnswer.question_index",
    )


class QuizSessionQuestion(Base):
    """Join table between QuizSession and Question with the snapshotted ordering."""

    __tablename__ = "quiz_session_questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    quiz_session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quiz_sessions.id", ondelete="CASCADE"), index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("questions.id"))
    position: Mapped[int] = mapped_column(Integer)  # 0-indexed

    quiz_session: Mapped["QuizSession"] = relationship(back_populates="questions")

    __table_args__ = (
        UniqueConstraint("quiz_session_id", "position", name="uq_session_question_position"),
    )


# ── Grading audit ─────────────────────────────────────────────────────────────


class StudentAnswer(Base):
    """Graded submission for one question of a quiz session."""

    __tablename__ = "student_answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    student_session_id: Mapped[str] = mapped_column(String(255), index=True)
    quiz_session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quiz_sessions.id", ondelete="CASCADE"), index=True
    )
    question_index: Mapped[int] = mapped_column(Integer)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    total_score: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    max_possible_score: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0")
    )
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    time_taken: Mapped[int | None] = mapped_column(Integer, nullable=True)

    quiz_session: Mapped["QuizSession"] = relationship(back_populates="answers")
    items: Mapped[list["StudentAnswerItem"]] = relationship(
        back_populates="student_answer",
        cascade="all, delete-orphan",
        order_by="StudentAnswerItem.submitted_position",
    )

    # At most one committed submission per (session, question index)
    __table_args__ = (
        UniqueConstraint(
            "quiz_session_id", "question_index", name="uq_answer_session_question_index"
        ),
    )


class StudentAnswerItem(Base):
    """Per-item grading of a StudentAnswer."""

    __tablename__ = "student_answer_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid)
    student_answer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("student_answers.id", ondelete="CASCADE"), index=True
    )
    question_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("question_items.id", ondelete="CASCADE")
    )
    submitted_position: Mapped[int] = mapped_column(Integer)
    correct_position: Mapped[int] = mapped_column(Integer)
    distance: Mapped[int] = mapped_column(Integer)
    points_earned: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    max_points: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    student_answer: Mapped["StudentAnswer"] = relationship(back_populates="items")
    question_item: Mapped["QuestionItem"] = relationship("QuestionItem")

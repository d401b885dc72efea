"""Persistence for quiz sessions and their grading audit records.

``update_session`` is the single write path for an existing session. It runs
the caller's *mutation* against the current state while holding the
session's serialization point, then commits the returned state and audit
record together. A writer that lost a race gets :class:`SubmissionConflict`
and nothing is written.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordering_quiz.core.domain import AnswerRecord, ItemScore
from ordering_quiz.core.errors import NotFound, SubmissionConflict
from ordering_quiz.db import models
from ordering_quiz.db.session import storage_errors
from ordering_quiz.services.ledger import QuizSessionState, SessionUpdate
from ordering_quiz.services.scoring import feedback_for, round_points, summarise

logger = logging.getLogger(__name__)

Mutation = Callable[[QuizSessionState], SessionUpdate]


class SessionStore(Protocol):
    def create_session(self, state: QuizSessionState) -> uuid.UUID: ...

    def load_session(self, session_id: uuid.UUID) -> QuizSessionState | None: ...

    def update_session(self, session_id: uuid.UUID, mutation: Mutation) -> SessionUpdate: ...

    def append_answer_record(self, session_id: uuid.UUID, record: AnswerRecord) -> None: ...

    def list_answer_records(self, session_id: uuid.UUID) -> list[AnswerRecord]: ...


def _session_not_found(session_id: uuid.UUID) -> NotFound:
    return NotFound("Quiz session not found", details={"session_id": str(session_id)})


def _check_transition(current: QuizSessionState, change: SessionUpdate) -> None:
    if change.state.id != current.id or change.state.version != current.version + 1:
        raise SubmissionConflict(
            "Quiz session changed concurrently",
            details={"session_id": str(current.id)},
        )


# ── In-memory ─────────────────────────────────────────────────────────────────


class InMemorySessionStore:
    """Dict-backed store with one lock per session."""

    def __init__(self) -> None:
        self._sessions: dict[uuid.UUID, QuizSessionState] = {}
        self._answers: dict[uuid.UUID, list[AnswerRecord]] = {}
        self._locks: dict[uuid.UUID, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create_session(self, state: QuizSessionState) -> uuid.UUID:
        with self._registry_lock:
            self._sessions[state.id] = state
            self._answers[state.id] = []
            self._locks[state.id] = threading.Lock()
        return state.id

    def load_session(self, session_id: uuid.UUID) -> QuizSessionState | None:
        return self._sessions.get(session_id)

    def update_session(self, session_id: uuid.UUID, mutation: Mutation) -> SessionUpdate:
        lock = self._locks.get(session_id)
        if lock is None:
            raise _session_not_found(session_id)
        with lock:
            current = self._sessions[session_id]
            change = mutation(current)
            _check_transition(current, change)
            if change.answer is not None:
                self._append(session_id, change.answer)
            self._sessions[session_id] = change.state
            return change

    def append_answer_record(self, session_id: uuid.UUID, record: AnswerRecord) -> None:
        lock = self._locks.get(session_id)
        if lock is None:
            raise _session_not_found(session_id)
        with lock:
            self._append(session_id, record)

    def _append(self, session_id: uuid.UUID, record: AnswerRecord) -> None:
        answers = self._answers[session_id]
        if any(a.question_index == record.question_index for a in answers):
            raise SubmissionConflict(
                "Question was already answered",
                details={"session_id": str(session_id), "question_index": record.question_index},
            )
        answers.append(record)

    def list_answer_records(self, session_id: uuid.UUID) -> list[AnswerRecord]:
        return sorted(self._answers.get(session_id, []), key=lambda a: a.question_index)


# ── SQLAlchemy ────────────────────────────────────────────────────────────────


def answer_record_from_audit(answer: models.StudentAnswer) -> AnswerRecord:
    """Rebuild a graded answer from its audit rows, regenerating feedback text."""
    item_results = [
        ItemScore(
            item_id=item.question_item_id,
            item_text=item.question_item.item_text,
            submitted_position=item.submitted_position,
            correct_position=item.correct_position,
            distance=item.distance,
            points_earned=round_points(item.points_earned),
            max_points=round_points(item.max_points),
            feedback=feedback_for(
                item.submitted_position,
                item.correct_position,
                item.question_item.item_text,
            ),
        )
        for item in answer.items
    ]
    return AnswerRecord(
        question_id=answer.question_id,
        question_index=answer.question_index,
        result=summarise(item_results),
        submitted_at=answer.submitted_at,
        time_taken=answer.time_taken,
    )


def _to_state(row: models.QuizSession) -> QuizSessionState:
    return QuizSessionState(
        id=row.id,
        topic_id=row.topic_id,
        owner_id=row.student_session_id,
        question_ids=tuple(q.question_id for q in row.questions),
        started_at=row.started_at,
        nickname=row.student_nickname,
        current_question_index=row.current_question_index,
        total_score=round_points(row.total_score),
        max_possible_score=round_points(row.max_possible_score),
        percentage=round_points(row.percentage),
        is_completed=row.is_completed,
        completed_at=row.completed_at,
        version=row.version,
    )


class SqlSessionStore:
    """Store backed by the ``quiz_sessions`` and ``student_answers*`` tables.

    Submissions are serialized three ways: ``SELECT ... FOR UPDATE`` on the
    session row (ignored by SQLite), a compare-and-set on ``version``, and the
    unique (session, question index) constraint on ``student_answers``.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, state: QuizSessionState) -> uuid.UUID:
        row = models.QuizSession(
            id=state.id,
            topic_id=state.topic_id,
            student_session_id=state.owner_id,
            student_nickname=state.nickname,
            started_at=state.started_at,
            current_question_index=state.current_question_index,
            total_questions=state.total_questions,
            total_score=state.total_score,
            max_possible_score=state.max_possible_score,
            percentage=state.percentage,
            is_completed=state.is_completed,
            version=state.version,
        )
        row.questions = [
            models.QuizSessionQuestion(question_id=question_id, position=position)
            for position, question_id in enumerate(state.question_ids)
        ]
        try:
            with storage_errors("create_session"):
                self.db.add(row)
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return state.id

    def load_session(self, session_id: uuid.UUID) -> QuizSessionState | None:
        with storage_errors("load_session"):
            row = (
                self.db.query(models.QuizSession)
                .filter(models.QuizSession.id == session_id)
                .populate_existing()
                .first()
            )
            return _to_state(row) if row else None

    def update_session(self, session_id: uuid.UUID, mutation: Mutation) -> SessionUpdate:
        try:
            with storage_errors("update_session"):
                row = (
                    self.db.query(models.QuizSession)
                    .filter(models.QuizSession.id == session_id)
                    .with_for_update()
                    .populate_existing()
                    .first()
                )
                if row is None:
                    raise _session_not_found(session_id)
                current = _to_state(row)
                change = mutation(current)
                _check_transition(current, change)

                new = change.state
                result = self.db.execute(
                    update(models.QuizSession)
                    .where(
                        models.QuizSession.id == session_id,
                        models.QuizSession.version == current.version,
                    )
                    .values(
                        current_question_index=new.current_question_index,
                        total_score=new.total_score,
                        max_possible_score=new.max_possible_score,
                        percentage=new.percentage,
                        is_completed=new.is_completed,
                        completed_at=new.completed_at,
                        version=new.version,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise SubmissionConflict(
                        "Quiz session changed concurrently",
                        details={"session_id": str(session_id)},
                    )
                if change.answer is not None:
                    self._add_answer(new, change.answer)
                self.db.flush()
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Duplicate submission for session %s rejected", session_id)
            raise SubmissionConflict(
                "Question was already answered",
                details={"session_id": str(session_id)},
            ) from e
        except Exception:
            self.db.rollback()
            raise
        return change

    def append_answer_record(self, session_id: uuid.UUID, record: AnswerRecord) -> None:
        state = self.load_session(session_id)
        if state is None:
            raise _session_not_found(session_id)
        try:
            with storage_errors("append_answer_record"):
                self._add_answer(state, record)
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SubmissionConflict(
                "Question was already answered",
                details={"session_id": str(session_id), "question_index": record.question_index},
            ) from e
        except Exception:
            self.db.rollback()
            raise

    def _add_answer(self, state: QuizSessionState, record: AnswerRecord) -> None:
        result = record.result
        answer = models.StudentAnswer(
            question_id=record.question_id,
            student_session_id=state.owner_id,
            quiz_session_id=state.id,
            question_index=record.question_index,
            submitted_at=record.submitted_at,
            total_score=result.total_score,
            max_possible_score=result.max_possible_score,
            percentage=result.percentage,
            time_taken=record.time_taken,
        )
        answer.items = [
            models.StudentAnswerItem(
                question_item_id=item.item_id,
                submitted_position=item.submitted_position,
                correct_position=item.correct_position,
                distance=item.distance,
                points_earned=item.points_earned,
                max_points=item.max_points,
            )
            for item in result.item_results
        ]
        self.db.add(answer)

    def list_answer_records(self, session_id: uuid.UUID) -> list[AnswerRecord]:
        with storage_errors("list_answer_records"):
            answers = (
                self.db.query(models.StudentAnswer)
                .filter(models.StudentAnswer.quiz_session_id == session_id)
                .order_by(models.StudentAnswer.question_index.asc())
                .all()
            )
            return [answer_record_from_audit(answer) for answer in answers]

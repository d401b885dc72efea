"""Quiz-session state machine.

A session moves ``IN_PROGRESS`` → ``COMPLETED`` one graded question at a time.
The rules live here as pure functions over an immutable
:class:`QuizSessionState`; stores persist the values these functions return
and are responsible for serializing concurrent transitions.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal

from ordering_quiz.core.domain import AnswerRecord, GradingResult
from ordering_quiz.core.errors import AlreadyCompleted, EmptyTopic, SubmissionConflict
from ordering_quiz.services.scoring import percentage_of, round_points

_ZERO = Decimal("0.00")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class QuizSessionState:
    """One student's attempt at one topic.

    ``question_ids`` is the ordered snapshot taken at start; later edits to the
    topic do not change it. ``version`` increases by one on every committed
    transition and is what optimistic writers compare against.
    """

    id: uuid.UUID
    topic_id: uuid.UUID
    owner_id: str
    question_ids: tuple[uuid.UUID, ...]
    started_at: datetime
    nickname: str | None = None
    current_question_index: int = 0
    total_score: Decimal = _ZERO
    max_possible_score: Decimal = _ZERO
    percentage: Decimal = _ZERO
    is_completed: bool = False
    completed_at: datetime | None = None
    version: int = 0

    @property
    def total_questions(self) -> int:
        return len(self.question_ids)

    @property
    def status(self) -> SessionStatus:
        return SessionStatus.COMPLETED if self.is_completed else SessionStatus.IN_PROGRESS

    @property
    def current_question_id(self) -> uuid.UUID | None:
        if self.is_completed:
            return None
        return self.question_ids[self.current_question_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index == self.total_questions - 1

    def owned_by(self, owner_id: str) -> bool:
        return self.owner_id == owner_id


@dataclass(frozen=True, slots=True)
class QuestionGraded:
    """Event: the question at ``question_index`` was graded."""

    question_id: uuid.UUID
    question_index: int
    result: GradingResult
    time_taken: int | None = None
    at: datetime = field(default_factory=_utcnow)

    def to_record(self) -> AnswerRecord:
        return AnswerRecord(
            question_id=self.question_id,
            question_index=self.question_index,
            result=self.result,
            submitted_at=self.at,
            time_taken=self.time_taken,
        )


@dataclass(frozen=True, slots=True)
class SessionUpdate:
    """What a store must commit atomically: the new state and its audit record."""

    state: QuizSessionState
    answer: AnswerRecord | None = None


def new_session(
    topic_id: uuid.UUID,
    owner_id: str,
    question_ids: Sequence[uuid.UUID],
    nickname: str | None = None,
    session_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> QuizSessionState:
    """Create the initial ``IN_PROGRESS`` state, refusing empty topics."""
    if not question_ids:
        raise EmptyTopic("Topic has no questions", details={"topic_id": str(topic_id)})
    return QuizSessionState(
        id=session_id or uuid.uuid4(),
        topic_id=topic_id,
        owner_id=owner_id,
        question_ids=tuple(question_ids),
        started_at=now or _utcnow(),
        nickname=nickname,
    )


def ensure_open(state: QuizSessionState, question_index: int) -> None:
    """Raise unless *question_index* is the question the session is waiting for.

    Raises:
        AlreadyCompleted: The session has no open question left.
        SubmissionConflict: *question_index* was already graded (or is not
            open yet), typically a retried or racing submission.
    """
    if state.is_completed:
        raise AlreadyCompleted("Quiz already completed", details={"session_id": str(state.id)})
    if question_index != state.current_question_index:
        message = (
            "Question was already answered"
            if question_index < state.current_question_index
            else "Question is not open yet"
        )
        raise SubmissionConflict(
            message,
            details={
                "session_id": str(state.id),
                "question_index": question_index,
                "current_question_index": state.current_question_index,
            },
        )


def advance(state: QuizSessionState, event: QuestionGraded) -> QuizSessionState:
    """Apply one graded question and return the next state.

    The percentage is always recomputed from the running totals rather than
    averaged over questions.
    """
    ensure_open(state, event.question_index)

    next_index = state.current_question_index + 1
    total = round_points(state.total_score + event.result.total_score)
    maximum = round_points(state.max_possible_score + event.result.max_possible_score)
    completed = next_index >= state.total_questions
    return replace(
        state,
        current_question_index=next_index,
        total_score=total,
        max_possible_score=maximum,
        percentage=percentage_of(total, maximum),
        is_completed=completed,
        completed_at=event.at if completed else None,
        version=state.version + 1,
    )

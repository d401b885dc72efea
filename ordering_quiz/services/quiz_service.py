"""Quiz attempt lifecycle: start → current question → submit-and-advance → results.

Composes the scoring engine with the session ledger. Every operation takes
the caller's owner id; a session owned by someone else is reported exactly
like a missing one.
"""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from ordering_quiz.core.domain import (
    AnswerRecord,
    GradingResult,
    QuestionInfo,
    QuestionItem,
    ScoreSummary,
    ShuffledItem,
    TopicInfo,
)
from ordering_quiz.core.errors import AlreadyCompleted, NotFound
from ordering_quiz.services.content import ContentSource
from ordering_quiz.services.ledger import (
    QuestionGraded,
    QuizSessionState,
    SessionUpdate,
    advance,
    ensure_open,
    new_session,
)
from ordering_quiz.services.scoring import grade_submission, score_summary
from ordering_quiz.services.session_store import SessionStore

logger = logging.getLogger(__name__)


# ── Results passed back to callers ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class StartedQuiz:
    session: QuizSessionState
    topic: TopicInfo


@dataclass(frozen=True, slots=True)
class CurrentQuestion:
    """The question to answer now, or only the session when it is complete."""

    session: QuizSessionState
    topic: TopicInfo | None
    question: QuestionInfo | None = None
    items: tuple[ShuffledItem, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.session.is_completed


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    question: QuestionInfo | None
    record: AnswerRecord
    session: QuizSessionState

    @property
    def result(self) -> GradingResult:
        return self.record.result


@dataclass(frozen=True, slots=True)
class QuestionResult:
    record: AnswerRecord
    question: QuestionInfo | None


@dataclass(frozen=True, slots=True)
class QuizResults:
    session: QuizSessionState
    topic: TopicInfo | None
    summary: ScoreSummary
    questions: tuple[QuestionResult, ...]


# ── Presentation shuffle ──────────────────────────────────────────────────────


def shuffle_items(items: Sequence[QuestionItem], rng: random.Random) -> tuple[ShuffledItem, ...]:
    """Return the items in random order with ``correct_position`` stripped."""
    shuffled = list(items)
    rng.shuffle(shuffled)
    return tuple(ShuffledItem(id=i.id, text=i.text, image_url=i.image_url) for i in shuffled)


def seeded_rng(session: QuizSessionState) -> random.Random:
    """Shuffle source stable for one (session, question index) pair.

    Re-fetching the current question therefore shows the same order.
    """
    return random.Random(f"{session.id}:{session.current_question_index}")


def _not_found(session_id: uuid.UUID) -> NotFound:
    return NotFound("Quiz session not found", details={"session_id": str(session_id)})


class QuizService:
    """Orchestrates one student's quiz attempts over the given collaborators.

    Args:
        content: Content collaborator. Item sets read through it are the
            grading key and must be authoritative.
        store: Session storage collaborator.
        rng_factory: Shuffle source for a given session state; defaults to
            :func:`seeded_rng`.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        content: ContentSource,
        store: SessionStore,
        rng_factory: Callable[[QuizSessionState], random.Random] = seeded_rng,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.content = content
        self.store = store
        self.rng_factory = rng_factory
        self.clock = clock

    # ── start ────────────────────────────────────────────────────────────

    def start(
        self, topic_id: uuid.UUID, owner_id: str, nickname: str | None = None
    ) -> StartedQuiz:
        """Create a new attempt with the topic's current question order as its snapshot."""
        topic = self.content.get_topic(topic_id)
        if topic is None:
            raise NotFound("Topic not found", details={"topic_id": str(topic_id)})

        question_ids = self.content.get_ordered_question_ids(topic_id)
        state = new_session(
            topic_id=topic_id,
            owner_id=owner_id,
            question_ids=question_ids,
            nickname=nickname,
            now=self.clock(),
        )
        self.store.create_session(state)
        logger.info(
            "Quiz session %s started on topic %s (%d questions)",
            state.id, topic_id, state.total_questions,
        )
        return StartedQuiz(session=state, topic=topic)

    # ── current question ─────────────────────────────────────────────────

    def current_question(self, session_id: uuid.UUID, owner_id: str) -> CurrentQuestion:
        session = self._load_owned(session_id, owner_id)
        topic = self.content.get_topic(session.topic_id)
        if session.is_completed:
            return CurrentQuestion(session=session, topic=topic)

        question_id = session.current_question_id
        question = self.content.get_question(question_id)
        items = self._items_for(question_id)
        return CurrentQuestion(
            session=session,
            topic=topic,
            question=question,
            items=shuffle_items(items, self.rng_factory(session)),
        )

    # ── submit ───────────────────────────────────────────────────────────

    def submit_and_advance(
        self,
        session_id: uuid.UUID,
        owner_id: str,
        submitted_order: Sequence[uuid.UUID],
        time_taken: int | None = None,
        question_index: int | None = None,
    ) -> SubmissionOutcome:
        """Grade the current question and move the session forward by one.

        Not idempotent: once a question index has been graded, any further
        submission for it is rejected with :class:`SubmissionConflict`.

        Args:
            question_index: The question the client is answering. When
                omitted, a submission made entirely of an earlier question's
                item ids is treated as a repeat of that question.
        """

        def mutation(state: QuizSessionState) -> SessionUpdate:
            if not state.owned_by(owner_id):
                raise _not_found(session_id)
            if state.is_completed:
                raise AlreadyCompleted("Quiz already completed", details={"session_id": str(session_id)})

            question_id = state.current_question_id
            items = self._items_for(question_id)
            if question_index is None:
                index = self._inferred_index(state, items, submitted_order)
            else:
                index = question_index
            ensure_open(state, index)

            result = grade_submission(items, submitted_order)
            event = QuestionGraded(
                question_id=question_id,
                question_index=index,
                result=result,
                time_taken=time_taken,
                at=self.clock(),
            )
            return SessionUpdate(state=advance(state, event), answer=event.to_record())

        change = self.store.update_session(session_id, mutation)
        session = change.state
        record = change.answer
        logger.info(
            "Session %s question %d graded %s/%s",
            session_id, record.question_index,
            record.result.total_score, record.result.max_possible_score,
        )
        if session.is_completed:
            logger.info("Session %s completed with %s%%", session_id, session.percentage)

        return SubmissionOutcome(
            question=self.content.get_question(record.question_id),
            record=record,
            session=session,
        )

    # ── results ──────────────────────────────────────────────────────────

    def results(self, session_id: uuid.UUID, owner_id: str) -> QuizResults:
        """Running totals plus every graded question so far, in question order."""
        session = self._load_owned(session_id, owner_id)
        records = self.store.list_answer_records(session_id)
        return QuizResults(
            session=session,
            topic=self.content.get_topic(session.topic_id),
            summary=score_summary(session.percentage),
            questions=tuple(
                QuestionResult(record=r, question=self.content.get_question(r.question_id))
                for r in records
            ),
        )

    # ── helpers ──────────────────────────────────────────────────────────

    def _load_owned(self, session_id: uuid.UUID, owner_id: str) -> QuizSessionState:
        session = self.store.load_session(session_id)
        if session is None or not session.owned_by(owner_id):
            raise _not_found(session_id)
        return session

    def _inferred_index(
        self,
        state: QuizSessionState,
        current_items: Sequence[QuestionItem],
        submitted_order: Sequence[uuid.UUID],
    ) -> int:
        """The question *submitted_order* answers when the client did not say.

        Ids that all belong to an already graded question mark a repeated
        submission of it; anything else is an attempt at the current question.
        """
        submitted = set(submitted_order)
        if not submitted or submitted <= {i.id for i in current_items}:
            return state.current_question_index
        for index in range(state.current_question_index - 1, -1, -1):
            earlier = self.content.get_question_items(state.question_ids[index])
            if submitted <= {i.id for i in earlier}:
                return index
        return state.current_question_index

    def _items_for(self, question_id: uuid.UUID) -> list[QuestionItem]:
        items = self.content.get_question_items(question_id)
        if not items:
            # The snapshotted question was removed from the topic after start
            raise NotFound("Question no longer available", details={"question_id": str(question_id)})
        return items

"""Quiz session routes.

Flow:
  1. POST /api/quiz/start              → create a session for a topic
  2. GET  /api/quiz/{id}/current       → current question, items shuffled
  3. POST /api/quiz/{id}/submit        → grade it and move to the next question
  4. GET  /api/quiz/{id}/results       → running totals and graded questions

All routes require the X-Student-Session header; sessions owned by another
student answer 404.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status

from ordering_quiz.api.deps import get_quiz_service, get_student_session_id
from ordering_quiz.core.domain import AnswerRecord, QuestionInfo
from ordering_quiz.schemas.quiz import (
    CurrentQuestionRead,
    ItemResultRead,
    QuestionRead,
    QuestionResultRead,
    QuizProgressRead,
    QuizResultsRead,
    QuizStartRequest,
    QuizStartResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
    ScoreSummaryRead,
    ShuffledItemRead,
    TopicRead,
)
from ordering_quiz.services.ledger import QuizSessionState
from ordering_quiz.services.quiz_service import QuizService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/start", response_model=QuizStartResponse, status_code=status.HTTP_201_CREATED)
def start_quiz(
    body: QuizStartRequest,
    student_session_id: str = Depends(get_student_session_id),
    service: QuizService = Depends(get_quiz_service),
):
    """Start a new quiz session on a topic. Each call creates an independent session."""
    started = service.start(body.topic_id, student_session_id, body.student_nickname)
    return QuizStartResponse(
        quiz_session_id=started.session.id,
        topic=TopicRead(
            id=started.topic.id,
            name=started.topic.name,
            chapter_name=started.topic.chapter_name,
        ),
        total_questions=started.session.total_questions,
        current_question_index=started.session.current_question_index,
    )


@router.get("/{session_id}/current", response_model=CurrentQuestionRead)
def get_current_question(
    session_id: uuid.UUID,
    student_session_id: str = Depends(get_student_session_id),
    service: QuizService = Depends(get_quiz_service),
):
    """Get the question to answer now, or a completion marker."""
    current = service.current_question(session_id, student_session_id)
    session = current.session
    read = CurrentQuestionRead(
        quiz_session_id=session.id,
        is_completed=session.is_completed,
        topic_name=current.topic.name if current.topic else None,
        chapter_name=current.topic.chapter_name if current.topic else None,
        current_question_index=session.current_question_index,
        total_questions=session.total_questions,
    )
    if current.is_completed:
        read.message = "Quiz already completed"
        return read

    question = current.question
    read.is_last_question = session.is_last_question
    read.question = QuestionRead(
        id=session.current_question_id,
        title=question.title if question else "",
        description=question.description if question else None,
        difficulty=question.difficulty if question else None,
        time_limit=question.time_limit if question else None,
        items=[
            ShuffledItemRead(id=i.id, text=i.text, image_url=i.image_url)
            for i in current.items
        ],
    )
    return read


@router.post("/{session_id}/submit", response_model=QuizSubmitResponse)
def submit_answer(
    session_id: uuid.UUID,
    body: QuizSubmitRequest,
    student_session_id: str = Depends(get_student_session_id),
    service: QuizService = Depends(get_quiz_service),
):
    """Submit the ordering for the current question and advance.

    A repeated submission for an already graded question returns 409
    (``submission_conflict``), whether or not ``question_index`` is sent.
    """
    outcome = service.submit_and_advance(
        session_id,
        student_session_id,
        body.submitted_order,
        time_taken=body.time_taken,
        question_index=body.question_index,
    )
    return QuizSubmitResponse(
        question_result=_question_result(outcome.record, outcome.question),
        quiz_progress=_progress(outcome.session),
    )


@router.get("/{session_id}/results", response_model=QuizResultsRead)
def get_results(
    session_id: uuid.UUID,
    student_session_id: str = Depends(get_student_session_id),
    service: QuizService = Depends(get_quiz_service),
):
    """Get running totals and every graded question so far."""
    results = service.results(session_id, student_session_id)
    session = results.session
    return QuizResultsRead(
        quiz_session_id=session.id,
        topic_name=results.topic.name if results.topic else None,
        chapter_name=results.topic.chapter_name if results.topic else None,
        total_score=float(session.total_score),
        max_possible_score=float(session.max_possible_score),
        percentage=float(session.percentage),
        total_questions=session.total_questions,
        answered_questions=len(results.questions),
        is_completed=session.is_completed,
        started_at=session.started_at,
        completed_at=session.completed_at,
        student_nickname=session.nickname,
        summary=ScoreSummaryRead(
            tier=results.summary.tier,
            message=results.summary.message,
            encouragement=results.summary.encouragement,
        ),
        question_results=[_question_result(q.record, q.question) for q in results.questions],
    )


# ── Internal helpers ──────────────────────────────────────────────────────────


def _question_result(record: AnswerRecord, question: QuestionInfo | None) -> QuestionResultRead:
    result = record.result
    return QuestionResultRead(
        question_id=record.question_id,
        question_index=record.question_index,
        question_title=question.title if question else None,
        explanation=question.explanation if question else None,
        score=float(result.total_score),
        max_score=float(result.max_possible_score),
        percentage=float(result.percentage),
        time_taken=record.time_taken,
        item_results=[
            ItemResultRead(
                item_id=item.item_id,
                text=item.item_text,
                your_position=item.submitted_position,
                correct_position=item.correct_position,
                distance=item.distance,
                points_earned=float(item.points_earned),
                max_points=float(item.max_points),
                feedback=item.feedback,
            )
            for item in result.item_results
        ],
    )


def _progress(session: QuizSessionState) -> QuizProgressRead:
    return QuizProgressRead(
        current_question_index=session.current_question_index,
        total_questions=session.total_questions,
        running_score=float(session.total_score),
        running_max_score=float(session.max_possible_score),
        running_percentage=float(session.percentage),
        is_completed=session.is_completed,
    )

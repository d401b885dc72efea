"""Read views over a student's own graded answers."""

import uuid

from sqlalchemy.orm import Session, selectinload

from ordering_quiz.core.errors import NotFound
from ordering_quiz.db.models import Chapter, Question, StudentAnswer, StudentAnswerItem, Topic
from ordering_quiz.db.session import storage_errors
from ordering_quiz.schemas.answers import AnswerDetailRead, AnswerHistoryRead
from ordering_quiz.schemas.quiz import ItemResultRead, ScoreSummaryRead
from ordering_quiz.services.scoring import score_summary
from ordering_quiz.services.session_store import answer_record_from_audit


def _answer_columns():
    return (
        StudentAnswer,
        Question.title.label("question_title"),
        Question.description.label("question_description"),
        Question.explanation.label("explanation"),
        Topic.name.label("topic_name"),
        Chapter.name.label("chapter_name"),
    )


def _history_read(row) -> AnswerHistoryRead:
    answer = row.StudentAnswer
    return AnswerHistoryRead(
        id=answer.id,
        quiz_session_id=answer.quiz_session_id,
        question_id=answer.question_id,
        question_title=row.question_title,
        topic_name=row.topic_name,
        chapter_name=row.chapter_name,
        question_index=answer.question_index,
        score=float(answer.total_score),
        max_score=float(answer.max_possible_score),
        percentage=float(answer.percentage),
        time_taken=answer.time_taken,
        submitted_at=answer.submitted_at,
    )


def answer_history(db: Session, owner_id: str, limit: int = 50) -> list[AnswerHistoryRead]:
    """Every answer *owner_id* submitted, newest first, across all sessions."""
    with storage_errors("answer_history"):
        rows = (
            db.query(*_answer_columns())
            .join(Question, StudentAnswer.question_id == Question.id)
            .join(Topic, Question.topic_id == Topic.id)
            .outerjoin(Chapter, Topic.chapter_id == Chapter.id)
            .filter(StudentAnswer.student_session_id == owner_id)
            .order_by(StudentAnswer.submitted_at.desc(), StudentAnswer.question_index.desc())
            .limit(limit)
            .all()
        )
        return [_history_read(row) for row in rows]


def answer_detail(db: Session, owner_id: str, answer_id: uuid.UUID) -> AnswerDetailRead:
    """One graded answer with its item breakdown.

    Answers that belong to another student are reported as missing.
    """
    with storage_errors("answer_detail"):
        row = (
            db.query(*_answer_columns())
            .join(Question, StudentAnswer.question_id == Question.id)
            .join(Topic, Question.topic_id == Topic.id)
            .outerjoin(Chapter, Topic.chapter_id == Chapter.id)
            .options(selectinload(StudentAnswer.items).selectinload(StudentAnswerItem.question_item))
            .filter(
                StudentAnswer.id == answer_id,
                StudentAnswer.student_session_id == owner_id,
            )
            .first()
        )
        if row is None:
            raise NotFound("Answer not found", details={"answer_id": str(answer_id)})
        result = answer_record_from_audit(row.StudentAnswer).result

    summary = score_summary(result.percentage)
    return AnswerDetailRead(
        **_history_read(row).model_dump(),
        question_description=row.question_description,
        explanation=row.explanation,
        summary=ScoreSummaryRead(
            tier=summary.tier,
            message=summary.message,
            encouragement=summary.encouragement,
        ),
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

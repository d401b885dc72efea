"""Per-question statistics aggregated from the grading audit tables."""

import uuid
from decimal import Decimal

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ordering_quiz.core.errors import NotFound
from ordering_quiz.db.models import Question, QuestionItem, StudentAnswer, StudentAnswerItem
from ordering_quiz.db.session import storage_errors
from ordering_quiz.schemas.stats import ItemStatsRead, QuestionStatsOverview, QuestionStatsRead
from ordering_quiz.services.scoring import round_points


def _two_dp(value) -> float | None:
    if value is None:
        return None
    return float(round_points(Decimal(str(value))))


def question_stats(db: Session, question_id: uuid.UUID) -> QuestionStatsRead:
    """Summarise every graded submission of one question.

    Item rows are ordered by average distance, highest first, so the items
    students struggle with most lead the list.
    """
    with storage_errors("question_stats"):
        if db.query(Question.id).filter(Question.id == question_id).first() is None:
            raise NotFound("Question not found", details={"question_id": str(question_id)})

        overview = (
            db.query(
                func.count(StudentAnswer.id).label("total_attempts"),
                func.avg(StudentAnswer.percentage).label("average_score"),
                func.max(StudentAnswer.percentage).label("highest_score"),
                func.min(StudentAnswer.percentage).label("lowest_score"),
                func.coalesce(
                    func.sum(case((StudentAnswer.percentage == 100, 1), else_=0)), 0
                ).label("perfect_scores"),
            )
            .filter(StudentAnswer.question_id == question_id)
            .one()
        )

        avg_distance = func.avg(StudentAnswerItem.distance)
        item_rows = (
            db.query(
                QuestionItem.id,
                QuestionItem.item_text,
                QuestionItem.correct_position,
                avg_distance.label("avg_distance"),
                func.sum(case((StudentAnswerItem.distance == 0, 1), else_=0)).label("correct_count"),
                func.count(StudentAnswerItem.id).label("total_count"),
            )
            .join(StudentAnswerItem, StudentAnswerItem.question_item_id == QuestionItem.id)
            .filter(QuestionItem.question_id == question_id)
            .group_by(QuestionItem.id, QuestionItem.item_text, QuestionItem.correct_position)
            .order_by(avg_distance.desc(), QuestionItem.correct_position.asc())
            .all()
        )

    return QuestionStatsRead(
        question_id=question_id,
        overview=QuestionStatsOverview(
            total_attempts=overview.total_attempts,
            average_score=_two_dp(overview.average_score),
            highest_score=_two_dp(overview.highest_score),
            lowest_score=_two_dp(overview.lowest_score),
            perfect_scores=int(overview.perfect_scores or 0),
        ),
        item_stats=[
            ItemStatsRead(
                item_id=row.id,
                item_text=row.item_text,
                correct_position=row.correct_position,
                avg_distance=_two_dp(row.avg_distance) or 0.0,
                correct_count=int(row.correct_count or 0),
                total_count=row.total_count,
            )
            for row in item_rows
        ],
    )

"""Question statistics routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ordering_quiz.db.session import get_db
from ordering_quiz.schemas.stats import QuestionStatsRead
from ordering_quiz.services.stats import question_stats

router = APIRouter()


@router.get("/{question_id}/stats", response_model=QuestionStatsRead)
def get_question_stats(question_id: uuid.UUID, db: Session = Depends(get_db)):
    """Attempt overview and most-misplaced items for one question."""
    return question_stats(db, question_id)

"""Graded answer history schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from ordering_quiz.schemas.quiz import ItemResultRead, ScoreSummaryRead


class AnswerHistoryRead(BaseModel):
    id: uuid.UUID
    quiz_session_id: uuid.UUID
    question_id: uuid.UUID
    question_title: str
    topic_name: str | None = None
    chapter_name: str | None = None
    question_index: int
    score: float
    max_score: float
    percentage: float
    time_taken: int | None = None
    submitted_at: datetime


class AnswerDetailRead(AnswerHistoryRead):
    """GET /api/answers/{id}: one graded answer with per-item feedback."""

    question_description: str | None = None
    explanation: str | None = None
    summary: ScoreSummaryRead
    item_results: list[ItemResultRead]

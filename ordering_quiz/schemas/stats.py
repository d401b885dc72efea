"""Per-question statistics schemas."""

import uuid

from pydantic import BaseModel


class QuestionStatsOverview(BaseModel):
    total_attempts: int
    average_score: float | None = None
    highest_score: float | None = None
    lowest_score: float | None = None
    perfect_scores: int


class ItemStatsRead(BaseModel):
    """How well students place one item; most misplaced items come first."""

    item_id: uuid.UUID
    item_text: str
    correct_position: int
    avg_distance: float
    correct_count: int
    total_count: int


class QuestionStatsRead(BaseModel):
    question_id: uuid.UUID
    overview: QuestionStatsOverview
    item_stats: list[ItemStatsRead] = []

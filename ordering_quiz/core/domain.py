"""Immutable domain values passed between the scoring engine, ledger and stores."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class QuestionItem:
    """One orderable unit of a question, tagged with its 1-indexed correct position."""

    id: uuid.UUID
    text: str
    correct_position: int
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class ShuffledItem:
    """An item as shown to a student: no grading key."""

    id: uuid.UUID
    text: str
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class ItemScore:
    item_id: uuid.UUID
    item_text: str
    submitted_position: int
    correct_position: int
    distance: int
    points_earned: Decimal
    max_points: Decimal
    feedback: str


@dataclass(frozen=True, slots=True)
class GradingResult:
    item_results: tuple[ItemScore, ...]
    total_score: Decimal
    max_possible_score: Decimal
    percentage: Decimal


@dataclass(frozen=True, slots=True)
class ScoreSummary:
    tier: str
    message: str
    encouragement: str


@dataclass(frozen=True, slots=True)
class TopicInfo:
    id: uuid.UUID
    name: str
    chapter_name: str | None = None


@dataclass(frozen=True, slots=True)
class QuestionInfo:
    id: uuid.UUID
    title: str
    description: str | None = None
    explanation: str | None = None
    difficulty: str | None = None
    time_limit: int | None = None


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """Audit record of one graded question within a quiz session."""

    question_id: uuid.UUID
    question_index: int
    result: GradingResult
    submitted_at: datetime
    time_taken: int | None = None

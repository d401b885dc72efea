"""Quiz session schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class QuizStartRequest(BaseModel):
    """POST /api/quiz/start."""

    topic_id: uuid.UUID
    student_nickname: str | None = Field(default=None, max_length=255)


class TopicRead(BaseModel):
    id: uuid.UUID
    name: str
    chapter_name: str | None = None


class QuizStartResponse(BaseModel):
    quiz_session_id: uuid.UUID
    topic: TopicRead
    total_questions: int
    current_question_index: int


class ShuffledItemRead(BaseModel):
    """Item shown to the student; never carries its correct position."""

    id: uuid.UUID
    text: str
    image_url: str | None = None


class QuestionRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    difficulty: str | None = None
    time_limit: int | None = None
    items: list[ShuffledItemRead]


class CurrentQuestionRead(BaseModel):
    """GET /api/quiz/{id}/current: ``question`` is None once the quiz is complete."""

    quiz_session_id: uuid.UUID
    is_completed: bool
    topic_name: str | None = None
    chapter_name: str | None = None
    current_question_index: int
    total_questions: int
    is_last_question: bool = False
    question: QuestionRead | None = None
    message: str | None = None


class QuizSubmitRequest(BaseModel):
    """POST /api/quiz/{id}/submit: item ids in the order the student placed them."""

    submitted_order: list[uuid.UUID] = Field(min_length=1)
    time_taken: int | None = Field(default=None, ge=0)  # seconds
    # Index of the question being answered, as shown by /current
    question_index: int | None = Field(default=None, ge=0)


class ItemResultRead(BaseModel):
    item_id: uuid.UUID
    text: str
    your_position: int
    correct_position: int
    distance: int
    points_earned: float
    max_points: float
    feedback: str


class QuestionResultRead(BaseModel):
    question_id: uuid.UUID
    question_index: int
    question_title: str | None = None
    explanation: str | None = None
    score: float
    max_score: float
    percentage: float
    time_taken: int | None = None
    item_results: list[ItemResultRead]


class QuizProgressRead(BaseModel):
    current_question_index: int
    total_questions: int
    running_score: float
    running_max_score: float
    running_percentage: float
    is_completed: bool


class QuizSubmitResponse(BaseModel):
    question_result: QuestionResultRead
    quiz_progress: QuizProgressRead


class ScoreSummaryRead(BaseModel):
    tier: str
    message: str
    encouragement: str


class QuizResultsRead(BaseModel):
    """GET /api/quiz/{id}/results: valid mid-quiz as well as after completion."""

    quiz_session_id: uuid.UUID
    topic_name: str | None = None
    chapter_name: str | None = None
    total_score: float
    max_possible_score: float
    percentage: float
    total_questions: int
    answered_questions: int
    is_completed: bool
    started_at: datetime
    completed_at: datetime | None = None
    student_nickname: str | None = None
    summary: ScoreSummaryRead
    question_results: list[QuestionResultRead] = []

"""Pydantic schemas, re-exported for convenience."""

from ordering_quiz.schemas.common import ErrorResponse  # noqa: F401
from ordering_quiz.schemas.quiz import (  # noqa: F401
    CurrentQuestionRead,
    QuizResultsRead,
    QuizStartRequest,
    QuizStartResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
)
from ordering_quiz.schemas.stats import (  # noqa: F401
    ItemStatsRead,
    QuestionStatsOverview,
    QuestionStatsRead,
)
from ordering_quiz.schemas.auth import StudentSessionToken  # noqa: F401
from ordering_quiz.schemas.answers import AnswerDetailRead, AnswerHistoryRead  # noqa: F401

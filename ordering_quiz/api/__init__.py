"""API route package: imports all routers for main.py."""

from ordering_quiz.api.health import router as health_router  # noqa: F401
from ordering_quiz.api.auth import router as auth_router  # noqa: F401
from ordering_quiz.api.quiz import router as quiz_router  # noqa: F401
from ordering_quiz.api.questions import router as questions_router  # noqa: F401
from ordering_quiz.api.answers import router as answers_router  # noqa: F401

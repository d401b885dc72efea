"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from ordering_quiz.config import settings
from ordering_quiz.core.errors import QuizError, StorageUnavailable
from ordering_quiz.schemas.common import ErrorResponse
from ordering_quiz.api import (
    health_router,
    auth_router,
    quiz_router,
    questions_router,
    answers_router,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Ordering quiz backend starting…")
    yield
    logger.info("Ordering quiz backend shut down")


app = FastAPI(
    title="Ordering Quiz API",
    description="Proximity-scored ordering quizzes",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Errors ────────────────────────────────────────────────────────────────────


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"Retry-After": "1"} if isinstance(exc, StorageUnavailable) else None
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(quiz_router, prefix="/api/quiz", tags=["Quiz"])
app.include_router(questions_router, prefix="/api/questions", tags=["Questions"])
app.include_router(answers_router, prefix="/api/answers", tags=["Answers"])


@app.get("/")
async def root():
    return {
        "name": "Ordering Quiz API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }

"""FastAPI dependencies shared across routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from ordering_quiz.config import settings
from ordering_quiz.core.security import decode_student_session_token
from ordering_quiz.db.session import get_db
from ordering_quiz.services.content import ContentSource, SqlContentSource
from ordering_quiz.services.content_cache import CachedContentSource
from ordering_quiz.services.quiz_service import QuizService
from ordering_quiz.services.session_store import SqlSessionStore

student_session_header = APIKeyHeader(name="X-Student-Session", auto_error=False)


def get_student_session_id(token: str | None = Depends(student_session_header)) -> str:
    """Validate the X-Student-Session token and return the owner id, or 401."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing student session",
        )
    student_session_id = decode_student_session_token(token)
    if student_session_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired student session",
        )
    return student_session_id


def get_content_source(db: Session = Depends(get_db)) -> ContentSource:
    source = SqlContentSource(db)
    if settings.CONTENT_CACHE_ENABLED:
        return CachedContentSource(source)
    return source


def get_quiz_service(
    db: Session = Depends(get_db),
    content: ContentSource = Depends(get_content_source),
) -> QuizService:
    return QuizService(content=content, store=SqlSessionStore(db))

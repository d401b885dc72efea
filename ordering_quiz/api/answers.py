"""Graded answer history routes.

Both routes read the caller's X-Student-Session owner; answers from other
students never appear in the history and answer 404 on detail.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ordering_quiz.api.deps import get_student_session_id
from ordering_quiz.db.session import get_db
from ordering_quiz.schemas.answers import AnswerDetailRead, AnswerHistoryRead
from ordering_quiz.services.answers import answer_detail, answer_history

router = APIRouter()


@router.get("/history", response_model=list[AnswerHistoryRead])
def get_answer_history(
    limit: int = Query(50, ge=1, le=200),
    student_session_id: str = Depends(get_student_session_id),
    db: Session = Depends(get_db),
):
    """List the caller's graded answers, newest first."""
    return answer_history(db, student_session_id, limit=limit)


@router.get("/{answer_id}", response_model=AnswerDetailRead)
def get_answer(
    answer_id: uuid.UUID,
    student_session_id: str = Depends(get_student_session_id),
    db: Session = Depends(get_db),
):
    return answer_detail(db, student_session_id, answer_id)

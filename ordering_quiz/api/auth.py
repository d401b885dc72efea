"""Student session identity routes."""

from fastapi import APIRouter

from ordering_quiz.core.security import create_student_session_token
from ordering_quiz.schemas.auth import StudentSessionToken

router = APIRouter()


@router.get("/session", response_model=StudentSessionToken)
def new_student_session():
    """Issue a fresh anonymous student session for the X-Student-Session header."""
    token, student_session_id = create_student_session_token()
    return StudentSessionToken(session_token=token, student_session_id=student_session_id)

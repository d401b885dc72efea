"""Student session identity schemas."""

from pydantic import BaseModel


class StudentSessionToken(BaseModel):
    """Signed student-session identity, sent back in the X-Student-Session header."""

    session_token: str
    student_session_id: str
    token_type: str = "student_session"

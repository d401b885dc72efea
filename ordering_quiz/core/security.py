"""Signed student-session identities.

Students are anonymous: a student session is just a random id. Handing it out
as a signed JWT means the quiz routes only trust ids this service issued.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from ordering_quiz.config import settings

_TOKEN_TYPE = "student_session"


def create_student_session_token(
    student_session_id: str | None = None, expires_delta: timedelta | None = None
) -> tuple[str, str]:
    """Issue a token for *student_session_id* (a fresh UUID by default).

    Returns:
        ``(token, student_session_id)``
    """
    student_session_id = student_session_id or str(uuid.uuid4())
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.STUDENT_SESSION_EXPIRE_MINUTES)
    )
    to_encode = {"sub": student_session_id, "type": _TOKEN_TYPE, "exp": expire}
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, student_session_id


def decode_student_session_token(token: str) -> str | None:
    """Return the student-session id carried by *token*, or None if it is invalid/expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != _TOKEN_TYPE:
        return None
    return payload.get("sub")

"""Shared pytest fixtures for backend tests."""

import os

# Settings are read at import time; keep tests off Redis and Postgres
os.environ.setdefault("CONTENT_CACHE_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ordering_quiz.db.session import Base, get_db
from ordering_quiz.db.models import Chapter, Question, QuestionItem, Topic
from ordering_quiz.main import app
from ordering_quiz.services.content import InMemoryContentSource
from ordering_quiz.services.quiz_service import QuizService
from ordering_quiz.services.session_store import InMemorySessionStore


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_topic(db: Session):
    """Factory: persist a topic whose questions are given as item texts in correct order.

    Returns ``(topic, questions)``; each question's ``items`` are sorted by
    correct position.
    """

    def _make(*item_lists: list[str], name: str = "Sequences") -> tuple[Topic, list[Question]]:
        chapter = Chapter(name="Chapter 1")
        topic = Topic(chapter=chapter, name=name)
        questions = []
        for order_index, texts in enumerate(item_lists):
            question = Question(
                topic=topic,
                title=f"Question {order_index + 1}",
                explanation=f"Explanation {order_index + 1}",
                order_index=order_index,
            )
            question.items = [
                QuestionItem(item_text=text, correct_position=position)
                for position, text in enumerate(texts, start=1)
            ]
            questions.append(question)
        db.add(chapter)
        db.commit()
        for question in questions:
            db.refresh(question)
        db.refresh(topic)
        return topic, questions

    return _make


# ── In-memory quiz core ───────────────────────────────────────────────────────


@pytest.fixture
def content() -> InMemoryContentSource:
    return InMemoryContentSource()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(content: InMemoryContentSource, store: InMemorySessionStore) -> QuizService:
    return QuizService(content=content, store=store)

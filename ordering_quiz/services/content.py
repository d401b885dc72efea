"""Read access to authored content (topics, questions, items).

The quiz core only ever reads content. ``SqlContentSource`` reads the content
tables; ``InMemoryContentSource`` backs tests and local tooling.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.orm import Session

from ordering_quiz.core.domain import QuestionInfo, QuestionItem, TopicInfo
from ordering_quiz.db import models
from ordering_quiz.db.session import storage_errors


class ContentSource(Protocol):
    def get_topic(self, topic_id: uuid.UUID) -> TopicInfo | None: ...

    def get_ordered_question_ids(self, topic_id: uuid.UUID) -> list[uuid.UUID]: ...

    def get_question(self, question_id: uuid.UUID) -> QuestionInfo | None: ...

    def get_question_items(self, question_id: uuid.UUID) -> list[QuestionItem]: ...


class SqlContentSource:
    """Content collaborator backed by the SQLAlchemy content tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_topic(self, topic_id: uuid.UUID) -> TopicInfo | None:
        with storage_errors("get_topic"):
            topic = self.db.query(models.Topic).filter(models.Topic.id == topic_id).first()
            if topic is None:
                return None
            return TopicInfo(
                id=topic.id,
                name=topic.name,
                chapter_name=topic.chapter.name if topic.chapter else None,
            )

    def get_ordered_question_ids(self, topic_id: uuid.UUID) -> list[uuid.UUID]:
        with storage_errors("get_ordered_question_ids"):
            rows = (
                self.db.query(models.Question.id)
                .filter(models.Question.topic_id == topic_id)
                .order_by(models.Question.order_index.asc(), models.Question.created_at.asc())
                .all()
            )
        return [row.id for row in rows]

    def get_question(self, question_id: uuid.UUID) -> QuestionInfo | None:
        with storage_errors("get_question"):
            q = self.db.query(models.Question).filter(models.Question.id == question_id).first()
        if q is None:
            return None
        return QuestionInfo(
            id=q.id,
            title=q.title,
            description=q.description,
            explanation=q.explanation,
            difficulty=q.difficulty,
            time_limit=q.time_limit,
        )

    def get_question_items(self, question_id: uuid.UUID) -> list[QuestionItem]:
        with storage_errors("get_question_items"):
            rows = (
                self.db.query(models.QuestionItem)
                .filter(models.QuestionItem.question_id == question_id)
                .order_by(models.QuestionItem.correct_position.asc())
                .all()
            )
        return [
            QuestionItem(
                id=row.id,
                text=row.item_text,
                correct_position=row.correct_position,
                image_url=row.image_url,
            )
            for row in rows
        ]


class InMemoryContentSource:
    """Dict-backed content collaborator."""

    def __init__(self) -> None:
        self.topics: dict[uuid.UUID, TopicInfo] = {}
        self.topic_questions: dict[uuid.UUID, list[uuid.UUID]] = {}
        self.questions: dict[uuid.UUID, QuestionInfo] = {}
        self.items: dict[uuid.UUID, list[QuestionItem]] = {}

    def add_topic(self, name: str, chapter_name: str | None = None) -> TopicInfo:
        topic = TopicInfo(id=uuid.uuid4(), name=name, chapter_name=chapter_name)
        self.topics[topic.id] = topic
        self.topic_questions[topic.id] = []
        return topic

    def add_question(
        self, topic_id: uuid.UUID, title: str, item_texts: Sequence[str], **extra
    ) -> QuestionInfo:
        """Append a question whose items are given in their correct order."""
        question = QuestionInfo(id=uuid.uuid4(), title=title, **extra)
        self.questions[question.id] = question
        self.items[question.id] = [
            QuestionItem(id=uuid.uuid4(), text=text, correct_position=position)
            for position, text in enumerate(item_texts, start=1)
        ]
        self.topic_questions[topic_id].append(question.id)
        return question

    def get_topic(self, topic_id: uuid.UUID) -> TopicInfo | None:
        return self.topics.get(topic_id)

    def get_ordered_question_ids(self, topic_id: uuid.UUID) -> list[uuid.UUID]:
        return list(self.topic_questions.get(topic_id, []))

    def get_question(self, question_id: uuid.UUID) -> QuestionInfo | None:
        return self.questions.get(question_id)

    def get_question_items(self, question_id: uuid.UUID) -> list[QuestionItem]:
        return list(self.items.get(question_id, []))

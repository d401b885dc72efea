"""Redis-backed read-through cache for content listings.

Only display metadata and topic question listings are cached. Item sets,
which carry ``correct_position``, are always read from the authoritative
source so grading can never see a stale answer key.

Content writers must call :func:`invalidate_topic` (or
:func:`invalidate_all`) after changing a topic.
"""

import json
import logging
import uuid
from typing import Any

import redis

from ordering_quiz.config import settings
from ordering_quiz.core.domain import QuestionInfo, QuestionItem, TopicInfo
from ordering_quiz.services.content import ContentSource

logger = logging.getLogger(__name__)

_PREFIX = "content_cache"
_pool: redis.ConnectionPool | None = None


def _get_redis() -> redis.Redis:
    """Return a Redis client backed by a shared connection pool."""
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            max_connections=10,
            socket_timeout=1,
            socket_connect_timeout=1,
        )
    return redis.Redis(connection_pool=_pool)


def _key(kind: str, entity_id: uuid.UUID) -> str:
    return f"{_PREFIX}:{kind}:{entity_id}"


def cache_get(key: str) -> Any | None:
    """Return the cached JSON value for *key* (None on miss, error or disabled)."""
    if not settings.CONTENT_CACHE_ENABLED:
        return None
    try:
        raw = _get_redis().get(key)
        if raw:
            logger.debug("Content cache HIT: %s", key)
            return json.loads(raw)
        logger.debug("Content cache MISS: %s", key)
        return None
    except Exception as e:
        logger.warning("Content cache read failed (non-fatal): %s", e)
        return None


def cache_set(key: str, value: Any, ttl: int | None = None) -> None:
    if not settings.CONTENT_CACHE_ENABLED:
        return
    try:
        _get_redis().setex(key, ttl or settings.CONTENT_CACHE_TTL_SECONDS, json.dumps(value))
    except Exception as e:
        logger.warning("Content cache write failed (non-fatal): %s", e)


def invalidate_topic(topic_id: uuid.UUID) -> None:
    """Drop the cached listing and metadata of one topic."""
    try:
        _get_redis().delete(_key("topic", topic_id), _key("topic_questions", topic_id))
        logger.info("Content cache invalidated for topic %s", topic_id)
    except Exception as e:
        logger.warning("Content cache invalidation failed (non-fatal): %s", e)


def invalidate_all() -> None:
    """Drop every cached content entry."""
    try:
        r = _get_redis()
        keys = list(r.scan_iter(match=f"{_PREFIX}:*"))
        if keys:
            r.delete(*keys)
        logger.info("Content cache invalidated: %d keys removed", len(keys))
    except Exception as e:
        logger.warning("Content cache invalidation failed (non-fatal): %s", e)


class CachedContentSource:
    """Wrap a :class:`ContentSource` with the read-through cache."""

    def __init__(self, source: ContentSource):
        self.source = source

    def get_topic(self, topic_id: uuid.UUID) -> TopicInfo | None:
        key = _key("topic", topic_id)
        hit = cache_get(key)
        if hit is not None:
            return TopicInfo(
                id=uuid.UUID(hit["id"]), name=hit["name"], chapter_name=hit["chapter_name"]
            )
        topic = self.source.get_topic(topic_id)
        if topic is not None:
            cache_set(
                key, {"id": str(topic.id), "name": topic.name, "chapter_name": topic.chapter_name}
            )
        return topic

    def get_ordered_question_ids(self, topic_id: uuid.UUID) -> list[uuid.UUID]:
        key = _key("topic_questions", topic_id)
        hit = cache_get(key)
        if hit is not None:
            return [uuid.UUID(question_id) for question_id in hit]
        question_ids = self.source.get_ordered_question_ids(topic_id)
        if question_ids:
            cache_set(key, [str(question_id) for question_id in question_ids])
        return question_ids

    def get_question(self, question_id: uuid.UUID) -> QuestionInfo | None:
        return self.source.get_question(question_id)

    def get_question_items(self, question_id: uuid.UUID) -> list[QuestionItem]:
        # Never cached: this is the answer key
        return self.source.get_question_items(question_id)

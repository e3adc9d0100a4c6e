"""In-memory TTL cache for learner word views.

Read paths cache batch summaries and word counts here; the generation
engine calls `invalidate` / `invalidate_batch` after persisting new words.
"""

import logging
import time
from typing import Any, Callable, Protocol

from vocabatch.config import settings

logger = logging.getLogger(__name__)

LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")


class CacheInvalidationHook(Protocol):
    def invalidate(self, learner_id: int) -> None: ...

    def invalidate_batch(self, learner_id: int, level: str, batch_number: int) -> None: ...


def user_words_key(learner_id: int, level: str | None = None) -> str:
    return f"user_words:{learner_id}" + (f":{level}" if level else "")


def learned_words_key(learner_id: int) -> str:
    return f"learned_words:{learner_id}"


def word_count_key(learner_id: int, level: str) -> str:
    return f"word_count:{learner_id}:{level}"


def batch_key(learner_id: int, level: str, batch_number: int) -> str:
    return f"batch:{learner_id}:{level}:{batch_number}"


def batch_stats_key(learner_id: int, level: str) -> str:
    return f"batch_stats:{learner_id}:{level}"


class WordCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic, max_batches: int | None = None):
        self._items: dict[str, tuple[Any, float]] = {}
        self._clock = clock
        self.max_batches = max_batches or settings.words_per_level // settings.words_per_batch

    def set(self, key: str, value: Any, ttl: float = 3600) -> None:
        self._items[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> Any | None:
        item = self._items.get(key)
        if item is None:
            return None
        value, expiry = item
        if self._clock() > expiry:
            del self._items[key]
            return None
        return value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def cleanup(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expiry) in self._items.items() if now > expiry]
        for key in expired:
            del self._items[key]
        return len(expired)

    def invalidate(self, learner_id: int) -> None:
        self.delete(user_words_key(learner_id))
        self.delete(learned_words_key(learner_id))
        for level in LEVELS:
            self.delete(user_words_key(learner_id, level))
            self.delete(word_count_key(learner_id, level))
            self.delete(batch_stats_key(learner_id, level))
            for batch_number in range(1, self.max_batches + 1):
                self.delete(batch_key(learner_id, level, batch_number))
        logger.debug(f"Invalidated cached views for learner {learner_id}")

    def invalidate_batch(self, learner_id: int, level: str, batch_number: int) -> None:
        self.delete(batch_key(learner_id, level, batch_number))
        self.delete(batch_stats_key(learner_id, level))
        self.delete(user_words_key(learner_id, level))
        self.delete(learned_words_key(learner_id))

    def stats(self) -> dict:
        return {"type": "memory", "size": len(self._items)}

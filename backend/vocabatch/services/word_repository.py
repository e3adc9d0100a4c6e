"""Word persistence behind an async interface.

The engine depends only on the WordRepository protocol. SqlWordRepository
runs short synchronous SQLAlchemy sessions in a worker thread, one session
per call, so concurrent generation runs never share a session.

The (learner, language, level, original) uniqueness constraint lives in the
database; a violation comes back as PersistResult.DUPLICATE rather than an
exception so one duplicate never aborts the rest of a batch.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Protocol

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vocabatch.models import Word, word_key
from vocabatch.schemas import VocabularyWord

logger = logging.getLogger(__name__)


class PersistResult(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    ERROR = "error"


class WordRepository(Protocol):
    async def find_existing(self, learner_id: int, level: str, language: str) -> list[VocabularyWord]: ...

    async def count(
        self,
        learner_id: int,
        level: str,
        language: str,
        batch_number: int | None = None,
        learned_only: bool = False,
    ) -> int: ...

    async def count_by_batch(self, learner_id: int, level: str, language: str) -> dict[int, int]: ...

    async def create(self, learner_id: int, word: VocabularyWord) -> PersistResult: ...


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SqlWordRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def find_existing(self, learner_id: int, level: str, language: str) -> list[VocabularyWord]:
        def _query():
            with self._session_factory() as db:
                rows = (
                    db.query(Word)
                    .filter(
                        Word.learner_id == learner_id,
                        Word.proficiency_level == level,
                        Word.learning_language == language,
                    )
                    .order_by(Word.id)
                    .all()
                )
                return [VocabularyWord.model_validate(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def count(
        self,
        learner_id: int,
        level: str,
        language: str,
        batch_number: int | None = None,
        learned_only: bool = False,
    ) -> int:
        def _query():
            with self._session_factory() as db:
                q = db.query(func.count(Word.id)).filter(
                    Word.learner_id == learner_id,
                    Word.proficiency_level == level,
                    Word.learning_language == language,
                )
                if batch_number is not None:
                    q = q.filter(Word.batch_number == batch_number)
                if learned_only:
                    q = q.filter(Word.learned == True)  # noqa: E712
                return q.scalar() or 0

        return await asyncio.to_thread(_query)

    async def count_by_batch(self, learner_id: int, level: str, language: str) -> dict[int, int]:
        def _query():
            with self._session_factory() as db:
                rows = (
                    db.query(Word.batch_number, func.count(Word.id))
                    .filter(
                        Word.learner_id == learner_id,
                        Word.proficiency_level == level,
                        Word.learning_language == language,
                    )
                    .group_by(Word.batch_number)
                    .all()
                )
                return {batch: cnt for batch, cnt in rows}

        return await asyncio.to_thread(_query)

    async def create(self, learner_id: int, word: VocabularyWord) -> PersistResult:
        def _insert():
            with self._session_factory() as db:
                db.add(Word(
                    learner_id=learner_id,
                    original=word.original,
                    original_key=word_key(word.original),
                    translation=word.translation,
                    learned=word.learned,
                    proficiency_level=word.proficiency_level,
                    learning_language=word.learning_language,
                    native_language=word.native_language,
                    batch_number=word.batch_number,
                    source=word.source,
                ))
                try:
                    db.commit()
                except IntegrityError as e:
                    db.rollback()
                    if _is_unique_violation(e):
                        return PersistResult.DUPLICATE
                    logger.warning(f"Integrity error creating word {word.original!r}: {e.orig}")
                    return PersistResult.ERROR
                except SQLAlchemyError:
                    db.rollback()
                    logger.exception(f"Error creating word {word.original!r}")
                    return PersistResult.ERROR
                return PersistResult.CREATED

        return await asyncio.to_thread(_insert)


class InMemoryWordRepository:
    """Dict-backed repository with the same uniqueness semantics as the database."""

    def __init__(self):
        self.words: dict[int, list[VocabularyWord]] = {}
        self.fail_on: set[str] = set()

    def _scope(self, learner_id: int, level: str, language: str) -> list[VocabularyWord]:
        return [
            w for w in self.words.get(learner_id, [])
            if w.proficiency_level == level and w.learning_language == language
        ]

    def add(self, learner_id: int, word: VocabularyWord) -> None:
        self.words.setdefault(learner_id, []).append(word)

    async def find_existing(self, learner_id: int, level: str, language: str) -> list[VocabularyWord]:
        return list(self._scope(learner_id, level, language))

    async def count(
        self,
        learner_id: int,
        level: str,
        language: str,
        batch_number: int | None = None,
        learned_only: bool = False,
    ) -> int:
        words = self._scope(learner_id, level, language)
        if batch_number is not None:
            words = [w for w in words if w.batch_number == batch_number]
        if learned_only:
            words = [w for w in words if w.learned]
        return len(words)

    async def count_by_batch(self, learner_id: int, level: str, language: str) -> dict[int, int]:
        counts: dict[int, int] = {}
        for w in self._scope(learner_id, level, language):
            counts[w.batch_number] = counts.get(w.batch_number, 0) + 1
        return counts

    async def create(self, learner_id: int, word: VocabularyWord) -> PersistResult:
        if word_key(word.original) in self.fail_on:
            return PersistResult.ERROR
        scope = self._scope(learner_id, word.proficiency_level, word.learning_language)
        if any(word_key(w.original) == word_key(word.original) for w in scope):
            return PersistResult.DUPLICATE
        self.add(learner_id, word)
        return PersistResult.CREATED

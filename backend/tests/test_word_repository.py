import asyncio

import pytest

from vocabatch.models import Learner, Word
from vocabatch.schemas import VocabularyWord
from vocabatch.services.word_repository import (
    InMemoryWordRepository,
    PersistResult,
    SqlWordRepository,
)


def _word(original, batch=1, level="A1", language="Spanish", learned=False):
    return VocabularyWord(
        original=original,
        translation="t",
        learned=learned,
        proficiency_level=level,
        learning_language=language,
        native_language="English",
        batch_number=batch,
    )


@pytest.fixture
def learner_id(db_session):
    learner = Learner(learning_language="Spanish", native_language="English", proficiency_level="A1")
    db_session.add(learner)
    db_session.commit()
    return learner.id


@pytest.fixture
def sql_repo(session_factory):
    return SqlWordRepository(session_factory)


class TestSqlWordRepository:
    def test_create_and_find(self, sql_repo, learner_id):
        assert asyncio.run(sql_repo.create(learner_id, _word("hola"))) == PersistResult.CREATED
        assert asyncio.run(sql_repo.create(learner_id, _word("agua", batch=2))) == PersistResult.CREATED

        existing = asyncio.run(sql_repo.find_existing(learner_id, "A1", "Spanish"))
        assert [w.original for w in existing] == ["hola", "agua"]

    def test_unknown_learner_is_an_error_not_a_duplicate(self, sql_repo, learner_id):
        assert asyncio.run(sql_repo.create(learner_id + 1, _word("hola"))) == PersistResult.ERROR
        assert asyncio.run(sql_repo.count(learner_id + 1, "A1", "Spanish")) == 0
        assert existing[1].batch_number == 2

    def test_case_variant_is_duplicate(self, sql_repo, learner_id, db_session):
        asyncio.run(sql_repo.create(learner_id, _word("Hola")))
        assert asyncio.run(sql_repo.create(learner_id, _word(" hola "))) == PersistResult.DUPLICATE
        assert db_session.query(Word).count() == 1

    def test_same_word_allowed_in_other_scope(self, sql_repo, learner_id):
        asyncio.run(sql_repo.create(learner_id, _word("hola")))
        assert asyncio.run(sql_repo.create(learner_id, _word("hola", level="A2"))) == PersistResult.CREATED
        assert asyncio.run(sql_repo.create(learner_id, _word("hola", language="Portuguese"))) == PersistResult.CREATED

    def test_duplicate_does_not_block_later_inserts(self, sql_repo, learner_id):
        results = [
            asyncio.run(sql_repo.create(learner_id, _word(o)))
            for o in ("uno", "UNO", "dos")
        ]
        assert results == [PersistResult.CREATED, PersistResult.DUPLICATE, PersistResult.CREATED]

    def test_count_filters(self, sql_repo, learner_id):
        for original, batch, learned in [("a1", 1, True), ("a2", 1, False), ("b1", 2, True)]:
            asyncio.run(sql_repo.create(learner_id, _word(original, batch=batch, learned=learned)))

        assert asyncio.run(sql_repo.count(learner_id, "A1", "Spanish")) == 3
        assert asyncio.run(sql_repo.count(learner_id, "A1", "Spanish", batch_number=1)) == 2
        assert asyncio.run(sql_repo.count(learner_id, "A1", "Spanish", learned_only=True)) == 2
        assert asyncio.run(sql_repo.count(learner_id, "B1", "Spanish")) == 0
        assert asyncio.run(sql_repo.count_by_batch(learner_id, "A1", "Spanish")) == {1: 2, 2: 1}


class TestInMemoryWordRepository:
    def test_same_uniqueness_semantics(self):
        repo = InMemoryWordRepository()
        assert asyncio.run(repo.create(1, _word("Hola"))) == PersistResult.CREATED
        assert asyncio.run(repo.create(1, _word("HOLA"))) == PersistResult.DUPLICATE
        assert asyncio.run(repo.create(1, _word("hola", level="A2"))) == PersistResult.CREATED
        assert asyncio.run(repo.create(2, _word("hola"))) == PersistResult.CREATED

    def test_forced_errors(self):
        repo = InMemoryWordRepository()
        repo.fail_on.add("roto")
        assert asyncio.run(repo.create(1, _word("Roto"))) == PersistResult.ERROR
        assert asyncio.run(repo.count(1, "A1", "Spanish")) == 0

    def test_counts(self):
        repo = InMemoryWordRepository()
        repo.add(1, _word("a", batch=1, learned=True))
        repo.add(1, _word("b", batch=2))
        assert asyncio.run(repo.count(1, "A1", "Spanish", learned_only=True)) == 1
        assert asyncio.run(repo.count_by_batch(1, "A1", "Spanish")) == {1: 1, 2: 1}

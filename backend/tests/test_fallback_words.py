import asyncio
import random
from datetime import timedelta

import pytest

from fakes import FakeClock, FakeProvider, RecordingSleep, numbered_words, words_json
from vocabatch.schemas import GeneratedWord
from vocabatch.services.fallback_catalog import emergency_words, static_words
from vocabatch.services.fallback_words import (
    FallbackCache,
    FallbackCacheEntry,
    FallbackWordProvider,
    build_cultural_prompt,
    cache_multiplier,
    cache_ttl,
)
from vocabatch.services.generation_client import GenerationClient
from vocabatch.services.language_profiles import get_profile
from vocabatch.services.quota_tracker import QuotaTracker


def _provider_words(prefix, count=100):
    return lambda prompt, task_type: words_json(numbered_words(prefix, count))


def _fallback(provider, clock=None, sleep=None):
    clock = clock or FakeClock()
    client = GenerationClient(provider, QuotaTracker(clock=clock))
    return FallbackWordProvider(
        client,
        clock=clock,
        rng=random.Random(7),
        sleep=sleep or RecordingSleep(),
    )


def _catalog_words(language, level, count):
    return [GeneratedWord(original=o, translation=t) for o, t in static_words(language, level)[:count]]


def _originals(words):
    return [w.original for w in words]


class TestCachePolicy:
    @pytest.mark.parametrize("language,level,expected", [
        ("Spanish", "A1", 2.5),
        ("Japanese", "A1", 3.0),
        ("Vietnamese", "A1", 3.5),
        ("Spanish", "B1", 3.75),
        ("Chinese", "B1", 5.0),
    ])
    def test_multiplier(self, language, level, expected):
        assert cache_multiplier(level, get_profile(language)) == pytest.approx(expected)

    def test_multiplier_unknown_language(self):
        assert cache_multiplier("A1", None) == 2.0

    @pytest.mark.parametrize("language,rate,hours", [
        ("Spanish", 0.4, 12),
        ("Japanese", 0.4, 12),
        ("Spanish", 0.6, 24),
        ("Japanese", 0.85, 60),
        ("Spanish", 1.0, 72),
        ("Chinese", 1.0, 96),
        ("Vietnamese", 0.95, 90),
    ])
    def test_ttl(self, language, rate, hours):
        assert cache_ttl(rate, get_profile(language)) == timedelta(hours=hours)

    def test_ttl_bounds(self):
        for rate in (0.0, 0.3, 0.5, 0.7, 0.9, 1.0):
            for language in ("Spanish", "Chinese", "Vietnamese", "Klingon"):
                ttl = cache_ttl(rate, get_profile(language))
                assert timedelta(hours=12) <= ttl <= timedelta(days=7)


class TestFallbackCache:
    def test_expired_entry_is_never_served(self):
        clock = FakeClock()
        cache = FallbackCache()
        cache.set("Spanish", "A1", FallbackCacheEntry(
            words=[], generated_at=clock.now, expires_at=clock.now + timedelta(hours=1),
        ))
        assert cache.get("Spanish", "A1", clock.now) is not None

        clock.advance(hours=1)
        assert cache.get("Spanish", "A1", clock.now) is None
        assert len(cache) == 0


def test_cultural_prompt_includes_language_framework():
    existing = [GeneratedWord(original="sakura", translation="cherry blossom")]
    prompt = build_cultural_prompt("Japanese", "English", "A1", 30, existing)
    assert "Generate 30" in prompt
    assert "Linguistic framework for Japanese" in prompt
    assert "Word order: SOV" in prompt
    assert "sakura" in prompt
    assert "Basic greetings and politeness" in prompt


def test_cultural_prompt_truncates_exclusion_list():
    existing = [GeneratedWord(original=f"word{i:04d}", translation="x") for i in range(500)]
    prompt = build_cultural_prompt("Spanish", "English", "A1", 30, existing)
    assert "word0000" in prompt
    assert "word0499" not in prompt


class TestStaticTier:
    def test_static_catalog_covers_request_without_provider(self):
        provider = FakeProvider()
        fallback = _fallback(provider)

        words = asyncio.run(fallback.get_words("Spanish", "A1", 10))

        assert len(words) == 10
        catalog = {o for o, _ in static_words("Spanish", "A1")}
        assert set(_originals(words)) <= catalog
        assert provider.calls == []

    def test_excludes_existing_words(self):
        fallback = _fallback(FakeProvider())
        existing = _catalog_words("Turkish", "A1", 45)

        words = asyncio.run(fallback.get_words("Turkish", "A1", 5, existing))

        assert len(words) == 5
        assert not set(_originals(words)) & set(_originals(existing))

    def test_partial_static_merged_with_dynamic(self):
        provider = FakeProvider(default=_provider_words("mot"))
        fallback = _fallback(provider)
        existing = _catalog_words("French", "A1", 45)

        words = asyncio.run(fallback.get_words("French", "A1", 10, existing))

        assert len(words) == 10
        remaining_static = {o for o, _ in static_words("French", "A1")[45:]}
        assert remaining_static <= set(_originals(words))
        assert len(provider.calls_for("fallback_vocabulary")) == 1

    def test_partial_static_kept_when_provider_rate_limited(self):
        provider = FakeProvider(default=Exception("429 Too Many Requests"))
        fallback = _fallback(provider)
        existing = _catalog_words("French", "A1", 45)

        words = asyncio.run(fallback.get_words("French", "A1", 10, existing))

        assert len(words) == 5
        assert set(_originals(words)) == {o for o, _ in static_words("French", "A1")[45:]}
        # The refresh stops at the first rate limit and no English words are mixed in
        assert len(provider.calls) == 1
        assert fallback.client.quota.exhausted is True


class TestDynamicTier:
    def test_generates_and_caches(self):
        provider = FakeProvider(default=_provider_words("kotoba"))
        fallback = _fallback(provider)

        words = asyncio.run(fallback.get_words("Japanese", "A1", 10))

        assert len(words) == 10
        assert provider.calls[0]["task_type"] == "fallback_vocabulary"
        assert provider.calls[0]["temperature"] == 0.3
        assert "Generate 100" in provider.calls[0]["prompt"]
        [stats] = fallback.cache_stats()
        assert stats.key == "Japanese-A1"
        assert stats.word_count == 100
        assert stats.expires_at - stats.generated_at == timedelta(hours=84)

    def test_serves_from_cache_within_ttl(self):
        clock = FakeClock()
        provider = FakeProvider(default=_provider_words("kotoba"))
        fallback = _fallback(provider, clock)

        first = asyncio.run(fallback.get_words("Japanese", "A1", 10))
        clock.advance(hours=80)
        second = asyncio.run(fallback.get_words("Japanese", "A1", 10, first))

        assert len(provider.calls) == 1
        assert not set(_originals(first)) & set(_originals(second))

    def test_expired_cache_triggers_regeneration(self):
        clock = FakeClock()
        provider = FakeProvider(default=_provider_words("kotoba"))
        fallback = _fallback(provider, clock)

        asyncio.run(fallback.get_words("Japanese", "A1", 10))
        clock.advance(hours=84)
        asyncio.run(fallback.get_words("Japanese", "A1", 10))

        assert len(provider.calls) == 2

    def test_low_yield_gets_short_ttl(self):
        provider = FakeProvider(default=_provider_words("kotoba", 30))
        fallback = _fallback(provider)

        asyncio.run(fallback.get_cached_or_generate("Japanese", "English", "A1", 40))

        # Same 30 words every call, 30 of the 120 requested
        [stats] = fallback.cache_stats()
        assert stats.word_count == 30
        assert stats.expires_at - stats.generated_at == timedelta(hours=12)
        assert len(provider.calls) == 3

    def test_counts_against_quota_even_when_exhausted(self):
        provider = FakeProvider(default=_provider_words("kotoba"))
        fallback = _fallback(provider)
        fallback.client.quota.exhausted = True

        words = asyncio.run(fallback.get_words("Japanese", "A1", 5))

        assert len(words) == 5
        assert fallback.client.quota.request_count == 1


class TestEmergencyTier:
    def test_translates_emergency_words(self):
        def respond(prompt, task_type):
            if task_type == "translation":
                return words_json([("konnichiwa", "hello"), ("mizu", "water")])
            raise ConnectionError("provider down")

        provider = FakeProvider(default=respond)
        fallback = _fallback(provider)

        words = asyncio.run(fallback.get_words("Japanese", "A1", 5))

        assert _originals(words) == ["konnichiwa", "mizu"]
        assert len(provider.calls_for("fallback_vocabulary")) == 3
        assert len(provider.calls_for("translation")) == 1

    def test_translation_skips_words_the_learner_already_has(self):
        translated = [("konnichiwa", "hello"), ("sayonara", "goodbye"), ("arigatou", "thank you"),
                      ("onegai", "please"), ("hai", "yes"), ("iie", "no")]

        def respond(prompt, task_type):
            if task_type == "translation":
                return words_json(translated)
            raise ConnectionError("provider down")

        provider = FakeProvider(default=respond)
        fallback = _fallback(provider)
        existing = [GeneratedWord(original=o, translation=t) for o, t in translated[:3]]

        words = asyncio.run(fallback.get_words("Japanese", "A1", 3, existing))

        assert _originals(words) == ["onegai", "hai", "iie"]
        prompt = provider.calls_for("translation")[0]["prompt"]
        assert all(o in prompt for o, _ in emergency_words("A1"))

    def test_raw_english_when_translation_fails(self):
        provider = FakeProvider(default=Exception("RESOURCE_EXHAUSTED"))
        fallback = _fallback(provider)

        words = asyncio.run(fallback.get_words("Japanese", "A1", 5))

        assert len(words) == 5
        assert set(_originals(words)) <= {o for o, _ in emergency_words("A1")}

    def test_english_learner_skips_translation(self):
        provider = FakeProvider(default=ConnectionError("down"))
        fallback = _fallback(provider)

        words = asyncio.run(fallback.get_words("English", "A2", 3))

        assert len(words) == 3
        assert provider.calls_for("translation") == []

    def test_nothing_left_anywhere(self):
        provider = FakeProvider(default=ConnectionError("down"))
        fallback = _fallback(provider)
        existing = [GeneratedWord(original=o, translation=t) for o, t in emergency_words("B1")]

        assert asyncio.run(fallback.get_words("English", "B1", 5, existing)) == []


class TestCacheOperations:
    def test_prewarm_most_complex_first(self):
        provider = FakeProvider(default=_provider_words("w"))
        sleep = RecordingSleep()
        fallback = _fallback(provider, sleep=sleep)

        warmed = asyncio.run(fallback.prewarm_cache(["Spanish", "Vietnamese"], levels=("A1",)))

        assert warmed == 2
        assert "Vietnamese" in provider.calls[0]["prompt"]
        assert {s.key for s in fallback.cache_stats()} == {"Spanish-A1", "Vietnamese-A1"}
        assert sleep.delays == []

    def test_prewarm_pauses_between_chunks(self):
        provider = FakeProvider(default=_provider_words("w"))
        sleep = RecordingSleep()
        fallback = _fallback(provider, sleep=sleep)
        languages = ["Spanish", "French", "German", "Italian", "Japanese", "Korean"]

        warmed = asyncio.run(fallback.prewarm_cache(languages, levels=("A1",), pause=2.0))

        assert warmed == 6
        assert sleep.delays == [2.0]

    def test_prewarm_survives_failures(self):
        provider = FakeProvider(default=ConnectionError("down"))
        fallback = _fallback(provider)

        assert asyncio.run(fallback.prewarm_cache(["Spanish"], levels=("A1",))) == 0

    def test_warm_for_learners_by_priority(self):
        provider = FakeProvider(default=_provider_words("w"))
        sleep = RecordingSleep()
        fallback = _fallback(provider, sleep=sleep)

        asyncio.run(fallback.warm_for_learners([
            {"language": "Spanish", "level": "A1", "priority": 1},
            {"language": "French", "level": "A2", "priority": 3},
        ]))

        assert "French" in provider.calls[0]["prompt"]
        assert sleep.delays == [1.0]
        assert len(fallback.cache_stats()) == 2

    def test_clear_cache(self):
        fallback = _fallback(FakeProvider(default=_provider_words("w")))
        asyncio.run(fallback.get_words("Japanese", "A1", 5))
        fallback.clear_cache()
        assert fallback.cache_stats() == []

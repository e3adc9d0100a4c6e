"""Fallback word provider for when the primary generation path cannot deliver.

Resolution order, each tier engaged only if the previous one falls short:
1. Static catalog for (language, level), served without a provider call.
2. Dynamic cache of provider-generated words from a cultural prompt template,
   cached per (language, level) with a TTL that depends on yield and
   language complexity (12h to 7 days).
3. Emergency English set, translated on demand for other languages; the raw
   English words are the last resort. This tier only runs when the static
   catalog had nothing left for the pair, so a partial static batch is never
   padded with English words.

Partial results from each tier are merged, never discarded. `get_words`
never raises.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Sequence

from vocabatch.schemas import FallbackCacheEntryOut, FallbackWord
from vocabatch.services.deduplication import HasOriginal, filter_exact
from vocabatch.services.fallback_catalog import emergency_words, static_words
from vocabatch.services.generation_client import GenerationClient
from vocabatch.services.language_profiles import (
    LANGUAGE_PROFILES,
    DIFFICULTY_NOTES,
    LanguageProfile,
    get_profile,
    script_instructions,
    vocabulary_categories,
)

logger = logging.getLogger(__name__)

LEVEL_CACHE_FACTORS = {"A1": 1.0, "A2": 1.2, "B1": 1.5, "B2": 2.0, "C1": 2.5, "C2": 3.0}
MAX_CACHE_MULTIPLIER = 5.0
MIN_CACHE_REFRESH = 100
REFRESH_ATTEMPTS = 3
MIN_CACHE_TTL = timedelta(hours=12)
MAX_CACHE_TTL = timedelta(days=7)
MAX_EXCLUSION_CHARS = 800
PREWARM_BATCH_SIZE = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FallbackCacheEntry:
    words: list[FallbackWord]
    generated_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass
class FallbackCache:
    """Per-(language, level) TTL cache. Concurrent refreshes are last-write-wins."""

    entries: dict[tuple[str, str], FallbackCacheEntry] = field(default_factory=dict)

    def get(self, language: str, level: str, now: datetime) -> FallbackCacheEntry | None:
        entry = self.entries.get((language, level))
        if entry is None:
            return None
        if entry.is_expired(now):
            del self.entries[(language, level)]
            return None
        return entry

    def set(self, language: str, level: str, entry: FallbackCacheEntry) -> None:
        self.entries[(language, level)] = entry

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)


def cache_multiplier(level: str, profile: LanguageProfile | None) -> float:
    """How many words to cache per requested word, between 2x and 5x."""
    multiplier = 2.0
    if profile:
        if profile.has_tones:
            multiplier += 1
        if profile.has_genders:
            multiplier += 0.5
        if not profile.is_latin:
            multiplier += 1
        if profile.family == "Sino-Tibetan":
            multiplier += 1
        if len(profile.complexity_factors) > 3:
            multiplier += 0.5
    multiplier *= LEVEL_CACHE_FACTORS.get(level, 1.0)
    return min(multiplier, MAX_CACHE_MULTIPLIER)


def cache_ttl(success_rate: float, profile: LanguageProfile | None) -> timedelta:
    """Trust window for a refreshed entry; lower yield means a shorter window."""
    if success_rate < 0.5:
        return MIN_CACHE_TTL
    hours = 24
    if success_rate > 0.8:
        hours = 48
    if success_rate > 0.9:
        hours = 72
    if profile:
        if not profile.is_latin:
            hours += 12
        if profile.has_tones:
            hours += 12
        if len(profile.complexity_factors) > 3:
            hours += 6
    return min(timedelta(hours=hours), MAX_CACHE_TTL)


def build_cultural_prompt(
    learning_language: str,
    native_language: str,
    level: str,
    count: int,
    existing_words: Sequence[HasOriginal] = (),
) -> str:
    profile = get_profile(learning_language)
    categories = "\n".join(f"{i}. {c}" for i, c in enumerate(vocabulary_categories(level), start=1))
    exclusion = ", ".join(w.original for w in existing_words)[:MAX_EXCLUSION_CHARS] or "None provided"

    framework = ""
    if profile:
        framework = f"""
Linguistic framework for {learning_language}:
- Language family: {profile.family}
- Script: {profile.script}
- Text direction: {"right-to-left" if profile.rtl else "left-to-right"}
- Word order: {profile.word_order}
- Grammatical gender: {"yes" if profile.has_genders else "no"}
- Tonal: {"yes, include tone marks" if profile.has_tones else "no"}
- Regional variants: {", ".join(profile.regions)}
- Key challenges: {", ".join(profile.complexity_factors)}
"""

    return f"""You are a linguist specializing in {learning_language} pedagogy. Generate {count} \
authentic, high-frequency {learning_language} vocabulary words for {level} learners, \
with translations in {native_language}.
{framework}
Vocabulary themes (select from these):
{categories}

Difficulty for {level}: {DIFFICULTY_NOTES.get(level, DIFFICULTY_NOTES["A1"])}

Avoid these existing words:
{exclusion}

Orthography:
- {script_instructions(profile)}
- Use forms understood across regions

Respond ONLY with a JSON array:
[
  {{"original": "{learning_language} word", "translation": "{native_language} meaning"}}
]"""


def _as_fallback(words) -> list[FallbackWord]:
    return [FallbackWord(original=w.original, translation=w.translation) for w in words]


class FallbackWordProvider:
    def __init__(
        self,
        client: GenerationClient,
        cache: FallbackCache | None = None,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
        generation_batch_size: int = 100,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.cache = cache if cache is not None else FallbackCache()
        self._clock = clock
        self._rng = rng or random.Random()
        self.generation_batch_size = generation_batch_size
        self._sleep = sleep

    async def get_words(
        self,
        learning_language: str,
        level: str,
        count: int,
        existing: Sequence[HasOriginal] = (),
        native_language: str = "English",
    ) -> list[FallbackWord]:
        if count <= 0:
            return []
        logger.info(f"Requesting {count} fallback words for {learning_language} {level}")
        collected: list[FallbackWord] = []

        collected += self._static_tier(learning_language, level, count, existing)
        had_static = bool(collected)
        if len(collected) >= count:
            logger.info(f"Using {count} static fallback words for {learning_language} {level}")
            return collected[:count]

        try:
            dynamic = await self.get_cached_or_generate(
                learning_language, native_language, level, count - len(collected),
                [*existing, *collected],
            )
        except Exception:
            logger.exception(f"Dynamic fallback failed for {learning_language} {level}")
            dynamic = []
        collected += filter_exact(dynamic, [*existing, *collected])
        if len(collected) >= count or had_static:
            if len(collected) < count:
                logger.warning(
                    f"Fallback for {learning_language} {level} delivered {len(collected)}/{count} words"
                )
            return collected[:count]

        try:
            emergency = await self._emergency_tier(
                learning_language, native_language, level, count - len(collected),
                [*existing, *collected],
            )
        except Exception:
            logger.exception("Emergency fallback failed")
            emergency = []
        collected += emergency
        if len(collected) < count:
            logger.warning(
                f"Fallback for {learning_language} {level} delivered {len(collected)}/{count} words"
            )
        return collected[:count]

    def _static_tier(
        self, language: str, level: str, count: int, existing: Sequence[HasOriginal],
    ) -> list[FallbackWord]:
        catalog = [FallbackWord(original=o, translation=t) for o, t in static_words(language, level)]
        available = filter_exact(catalog, existing)
        self._rng.shuffle(available)
        return available[:count]

    async def get_cached_or_generate(
        self,
        learning_language: str,
        native_language: str,
        level: str,
        count: int,
        existing: Sequence[HasOriginal] = (),
    ) -> list[FallbackWord]:
        now = self._clock()
        entry = self.cache.get(learning_language, level, now)
        cached: list[FallbackWord] = []
        if entry:
            cached = entry.words
            available = filter_exact(cached, existing)
            if len(available) >= count:
                logger.info(f"Using cached fallback words for {learning_language} {level}")
                return available[:count]
            logger.info(
                f"Cache has only {len(available)}/{count} usable words for "
                f"{learning_language} {level}, refreshing"
            )

        profile = get_profile(learning_language)
        requested = max(int(count * cache_multiplier(level, profile)), MIN_CACHE_REFRESH)
        per_call = min(requested, self.generation_batch_size)

        fresh: list[FallbackWord] = []
        for attempt in range(1, REFRESH_ATTEMPTS + 1):
            prompt = build_cultural_prompt(
                learning_language, native_language, level, per_call, [*existing, *fresh],
            )
            result = await self.client.generate_from_prompt(
                prompt, [*existing, *fresh], task_type="fallback_vocabulary", temperature=0.3,
            )
            if not result.ok:
                self.client.quota.check_status(result.error)
                logger.warning(f"Cache refresh attempt {attempt} failed: {result.error}")
                if result.error.is_rate_limited:
                    break
                continue
            fresh += filter_exact(_as_fallback(result.words), fresh)
            if len(fresh) >= requested or len(filter_exact(fresh, existing)) >= count:
                break

        if fresh:
            merged = fresh + filter_exact(cached, fresh)
            success_rate = min(1.0, len(fresh) / requested)
            ttl = cache_ttl(success_rate, profile)
            self.cache.set(learning_language, level, FallbackCacheEntry(
                words=merged, generated_at=now, expires_at=now + ttl,
            ))
            logger.info(
                f"Cached {len(merged)} {learning_language} {level} words "
                f"(yield {success_rate:.0%}, expires in {ttl.total_seconds() / 3600:.0f}h)"
            )
            return filter_exact(merged, existing)[:count]

        return filter_exact(cached, existing)[:count]

    async def _emergency_tier(
        self,
        learning_language: str,
        native_language: str,
        level: str,
        count: int,
        existing: Sequence[HasOriginal],
    ) -> list[FallbackWord]:
        english = [FallbackWord(original=o, translation=t) for o, t in emergency_words(level)]

        if learning_language != "English":
            # Whole list: known translations are filtered out afterwards
            result = await self.client.translate(english, learning_language, native_language)
            if result.ok:
                translated = filter_exact(_as_fallback(result.words), existing)
                if translated:
                    logger.info(f"Using {len(translated)} translated emergency words for {learning_language}")
                    return translated[:count]
            else:
                self.client.quota.check_status(result.error)
                logger.warning(f"Emergency translation failed: {result.error}")

        available = filter_exact(english, existing)
        self._rng.shuffle(available)
        if available:
            logger.info(f"Using {min(count, len(available))} English emergency words as final fallback")
        return available[:count]

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Fallback word cache cleared")

    def cache_stats(self) -> list[FallbackCacheEntryOut]:
        return [
            FallbackCacheEntryOut(
                key=f"{language}-{level}",
                word_count=len(entry.words),
                generated_at=entry.generated_at,
                expires_at=entry.expires_at,
            )
            for (language, level), entry in self.cache.entries.items()
        ]

    async def prewarm_cache(
        self,
        languages: Sequence[str] = (),
        levels: Sequence[str] = ("A1", "A2", "B1"),
        native_language: str = "English",
        pause: float = 2.0,
    ) -> int:
        """Fill the cache, most complex languages first, five at a time.

        Returns the number of (language, level) pairs that ended up cached.
        """
        targets = list(languages) or list(LANGUAGE_PROFILES)
        targets.sort(key=lambda lang: _prewarm_priority(get_profile(lang)), reverse=True)
        logger.info(f"Pre-warming fallback cache for {len(targets)} languages: {', '.join(targets)}")

        for i in range(0, len(targets), PREWARM_BATCH_SIZE):
            chunk = targets[i:i + PREWARM_BATCH_SIZE]
            jobs = [
                self._warm_one(lang, native_language, level,
                               int(cache_multiplier(level, get_profile(lang)) * 25))
                for lang in chunk
                for level in levels
            ]
            await asyncio.gather(*jobs)
            if i + PREWARM_BATCH_SIZE < len(targets):
                await self._sleep(pause)

        warmed = sum(
            1 for lang in targets for level in levels
            if self.cache.get(lang, level, self._clock()) is not None
        )
        logger.info(f"Pre-warming complete: {warmed} entries cached")
        return warmed

    async def warm_for_learners(
        self,
        preferences: Sequence[dict],
        native_language: str = "English",
        pause: float = 1.0,
    ) -> None:
        """Warm cache entries for learner (language, level, priority) preferences."""
        ordered = sorted(preferences, key=lambda p: p.get("priority", 0), reverse=True)
        for i, pref in enumerate(ordered):
            words = max(pref.get("priority", 0) * 25, 50)
            await self._warm_one(pref["language"], native_language, pref["level"], words)
            if i + 1 < len(ordered):
                await self._sleep(pause)

    async def _warm_one(self, language: str, native_language: str, level: str, count: int) -> None:
        try:
            await self.get_cached_or_generate(language, native_language, level, count, [])
        except Exception:
            logger.exception(f"Failed to pre-warm {language} {level}")


def _prewarm_priority(profile: LanguageProfile | None) -> int:
    if profile is None:
        return 0
    return (
        len(profile.complexity_factors)
        + (2 if profile.has_tones else 0)
        + (0 if profile.is_latin else 1)
    )


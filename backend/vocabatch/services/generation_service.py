"""Vocabulary batch generation: produce the next batch of exactly
WORDS_PER_BATCH unique words for a learner.

One run per learner at a time. A run:
1. reads the learner's existing words for the (language, level) scope,
2. picks a source: the AI provider, or the fallback provider when the
   vocabulary is large or the quota is exhausted/low,
3. retries with exponential backoff, switching to fallback as soon as a
   rate limit marks the quota exhausted,
4. persists each surviving word individually (duplicates are counted, not
   fatal),
5. backfills with fresh AI words when duplicates left the batch short,
6. invalidates cached word views and writes one generation log entry.

`generate_next_batch` never raises; every failure is folded into the
returned BatchOutcome.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from vocabatch.config import Settings, settings
from vocabatch.schemas import (
    BatchOutcome,
    GeneratedWord,
    GenerationStatusOut,
    LearnerProfile,
    VocabularyWord,
)
from vocabatch.services.batch_integrity import batches_per_level, current_batch_number
from vocabatch.services.deduplication import HasOriginal, select_filter
from vocabatch.services.fallback_words import FallbackWordProvider
from vocabatch.services.generation_client import GenerationClient
from vocabatch.services.generation_log import log_generation
from vocabatch.services.quota_tracker import QuotaTracker
from vocabatch.services.word_cache import CacheInvalidationHook
from vocabatch.services.word_repository import PersistResult, WordRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 8.0

    def delay(self, attempt: int) -> float:
        """Backoff before the next attempt, after `attempt` (1-based) failed."""
        return min(self.base_delay * self.multiplier ** attempt, self.max_delay)


@dataclass(frozen=True)
class GenerationConfig:
    words_per_batch: int = 50
    words_per_level: int = 1000
    generation_batch_size: int = 100
    min_generation_request: int = 25
    min_quota_remaining: int = 2
    large_vocabulary_threshold: int = 200
    advanced_dedup_threshold: int = 150
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    backfill_retries: int = 3

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "GenerationConfig":
        return cls(
            words_per_batch=s.words_per_batch,
            words_per_level=s.words_per_level,
            generation_batch_size=s.generation_batch_size,
            min_generation_request=s.min_generation_request,
            min_quota_remaining=s.min_quota_remaining,
            large_vocabulary_threshold=s.large_vocabulary_threshold,
            advanced_dedup_threshold=s.advanced_dedup_threshold,
            retry=RetryPolicy(
                max_attempts=s.max_generation_retries,
                base_delay=s.retry_base_delay,
                multiplier=s.retry_multiplier,
                max_delay=s.retry_max_delay,
            ),
            backfill_retries=s.backfill_retries,
        )


class GenerationLocks:
    """Per-learner in-flight flags.

    `acquire` checks and sets without awaiting in between, so on a single
    event loop two runs for the same learner can never both get the lock.
    """

    def __init__(self):
        self._active: set[int] = set()

    def acquire(self, learner_id: int) -> bool:
        if learner_id in self._active:
            return False
        self._active.add(learner_id)
        return True

    def release(self, learner_id: int) -> None:
        self._active.discard(learner_id)

    def is_locked(self, learner_id: int) -> bool:
        return learner_id in self._active

    def __len__(self) -> int:
        return len(self._active)


@dataclass
class _Run:
    learner: LearnerProfile
    batch_number: int = 0
    method: str = "ai"
    words_needed: int = 0
    current: int = 0
    created: int = 0
    duplicates: int = 0
    errors: int = 0
    attempts: int = 0
    existing: list[VocabularyWord] = field(default_factory=list)


class GenerationService:
    def __init__(
        self,
        repository: WordRepository,
        client: GenerationClient,
        fallback: FallbackWordProvider,
        quota: QuotaTracker,
        cache_hook: CacheInvalidationHook | None = None,
        config: GenerationConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.repository = repository
        self.client = client
        self.fallback = fallback
        self.quota = quota
        self.cache_hook = cache_hook
        self.config = config or GenerationConfig.from_settings()
        self.locks = GenerationLocks()
        self._sleep = sleep

    @property
    def active_generations(self) -> int:
        return len(self.locks)

    def is_valid_batch_number(self, batch_number: int) -> bool:
        return 1 <= batch_number <= batches_per_level(self.config.words_per_level, self.config.words_per_batch)

    def status(self) -> GenerationStatusOut:
        return GenerationStatusOut(
            quota=self.quota.status(),
            fallback_cache_size=len(self.fallback.cache),
            fallback_cache_entries=self.fallback.cache_stats(),
            active_generations=self.active_generations,
        )

    async def generate_next_batch(
        self,
        learner: LearnerProfile,
        batch_number: int | None = None,
    ) -> BatchOutcome:
        if batch_number is not None and not self.is_valid_batch_number(batch_number):
            logger.warning(f"Batch {batch_number} is out of range for learner {learner.learner_id}")
            return BatchOutcome(
                status="no_words_available",
                batch_number=batch_number,
                quota_status=self.quota.status(),
                message=f"Batch {batch_number} does not exist at this level",
            )
        if not self.locks.acquire(learner.learner_id):
            logger.info(f"Generation already in progress for learner {learner.learner_id}")
            return BatchOutcome(
                status="in_progress",
                quota_status=self.quota.status(),
                message="Generation already in progress for this learner",
            )

        run = _Run(learner=learner)
        try:
            return await self._generate(run, batch_number)
        except Exception as e:
            logger.exception(f"Batch generation failed for learner {learner.learner_id}")
            outcome = self._outcome(run, run.current + run.created, message=f"Generation failed: {e}")
            self._log(run, outcome)
            return outcome
        finally:
            self.locks.release(learner.learner_id)

    async def _generate(self, run: _Run, batch_number: int | None) -> BatchOutcome:
        learner = run.learner
        cfg = self.config
        scope = (learner.learner_id, learner.proficiency_level, learner.learning_language)

        if batch_number is None:
            learned = await self.repository.count(*scope, learned_only=True)
            batch_number = current_batch_number(learned, cfg.words_per_batch, cfg.words_per_level)
        run.batch_number = batch_number

        current = await self.repository.count(*scope, batch_number=batch_number)
        run.current = current
        run.words_needed = cfg.words_per_batch - current
        if run.words_needed <= 0:
            logger.info(f"Batch {batch_number} for learner {learner.learner_id} already complete")
            return self._outcome(run, current, message="Batch already complete")

        run.existing = await self.repository.find_existing(*scope)
        use_fallback = self._should_use_fallback(len(run.existing))
        if use_fallback:
            run.method = "fallback"
        logger.info(
            f"Generating {run.words_needed} words for learner {learner.learner_id} "
            f"({learner.learning_language} {learner.proficiency_level}, batch {batch_number}) "
            f"via {run.method}, {len(run.existing)} existing"
        )

        words = await self._collect(run, use_fallback)
        if not words:
            words = await self._exhaustion_guard(run)

        if not words:
            logger.error(
                f"No words available for learner {learner.learner_id} "
                f"{learner.learning_language} {learner.proficiency_level}"
            )
            outcome = self._outcome(
                run, current, status="no_words_available",
                message="No words could be generated from any source",
            )
            self._log(run, outcome)
            return outcome

        await self._persist(run, words)

        if run.created < run.words_needed and run.duplicates > 0:
            await self._backfill(run)

        if run.created:
            self._invalidate_cache(run)

        final_size = await self.repository.count(*scope, batch_number=batch_number)
        outcome = self._outcome(run, final_size)
        self._log(run, outcome)
        return outcome

    def _should_use_fallback(self, vocabulary_size: int) -> bool:
        cfg = self.config
        if vocabulary_size > cfg.large_vocabulary_threshold:
            logger.info(f"Large vocabulary ({vocabulary_size} words), using fallback source")
            return True
        if self.quota.check_status():
            logger.info("Quota exhausted, using fallback source")
            return True
        if self.quota.remaining_estimate() < cfg.min_quota_remaining:
            logger.info("Quota nearly exhausted, using fallback source")
            return True
        return False

    def _request_size(self, needed: int) -> int:
        cfg = self.config
        return min(max(needed * 2, cfg.min_generation_request), cfg.generation_batch_size)

    def _filter(
        self, run: _Run, candidates: Sequence[GeneratedWord], exclude: Sequence[HasOriginal],
    ) -> list[GeneratedWord]:
        return select_filter(
            candidates,
            exclude,
            advanced_threshold=self.config.advanced_dedup_threshold,
            language=run.learner.learning_language,
        )

    async def _collect(self, run: _Run, use_fallback: bool) -> list[GeneratedWord]:
        learner = run.learner
        policy = self.config.retry
        words: list[GeneratedWord] = []

        for attempt in range(1, policy.max_attempts + 1):
            run.attempts = attempt
            remaining = run.words_needed - len(words)
            exclude = [*run.existing, *words]

            if use_fallback:
                candidates = await self._fallback_words(run, remaining, exclude)
            else:
                result = await self.client.generate(
                    learner.learning_language,
                    learner.native_language,
                    learner.proficiency_level,
                    self._request_size(remaining),
                    exclude,
                    run.batch_number,
                )
                if not result.ok:
                    if self.quota.check_status(result.error):
                        logger.warning(
                            f"Quota exhausted on attempt {attempt}, switching to fallback"
                        )
                        use_fallback = True
                        run.method = "fallback"
                        candidates = await self._fallback_words(run, remaining, exclude)
                    else:
                        logger.warning(
                            f"Generation attempt {attempt}/{policy.max_attempts} failed: {result.error}"
                        )
                        if attempt < policy.max_attempts:
                            await self._sleep(policy.delay(attempt))
                        continue
                else:
                    candidates = result.words

            survivors = self._filter(run, candidates, exclude)[:remaining]
            words += survivors
            logger.info(
                f"Attempt {attempt}: {len(survivors)}/{len(candidates)} candidates survived dedup"
            )
            if survivors:
                break
            if attempt < policy.max_attempts:
                await self._sleep(policy.delay(attempt))

        return words

    async def _fallback_words(
        self, run: _Run, count: int, exclude: Sequence[HasOriginal],
    ) -> list[GeneratedWord]:
        learner = run.learner
        return await self.fallback.get_words(
            learner.learning_language,
            learner.proficiency_level,
            count,
            exclude,
            learner.native_language,
        )

    async def _exhaustion_guard(self, run: _Run) -> list[GeneratedWord]:
        """Last attempt after the retry loop produced nothing."""
        logger.warning(
            f"All attempts failed for learner {run.learner.learner_id}, trying fallback once more"
        )
        candidates = await self._fallback_words(run, run.words_needed, run.existing)
        survivors = self._filter(run, candidates, run.existing)[:run.words_needed]
        if survivors:
            run.method = "fallback"
        return survivors

    async def _persist(self, run: _Run, words: Sequence[GeneratedWord]) -> None:
        learner = run.learner
        source = run.method
        for word in words:
            result = await self.repository.create(learner.learner_id, VocabularyWord(
                original=word.original,
                translation=word.translation,
                proficiency_level=learner.proficiency_level,
                learning_language=learner.learning_language,
                native_language=learner.native_language,
                batch_number=run.batch_number,
                source=source,
            ))
            if result == PersistResult.CREATED:
                run.created += 1
            elif result == PersistResult.DUPLICATE:
                run.duplicates += 1
                logger.info(f"Skipped duplicate word {word.original!r}")
            else:
                run.errors += 1
                logger.warning(f"Failed to persist word {word.original!r}")

    async def _backfill(self, run: _Run) -> None:
        """Replace words the store rejected as duplicates. AI provider only."""
        learner = run.learner
        scope = (learner.learner_id, learner.proficiency_level, learner.learning_language)
        logger.info(
            f"Backfilling {run.words_needed - run.created} words lost to duplicates "
            f"for learner {learner.learner_id}"
        )

        for attempt in range(1, self.config.backfill_retries + 1):
            gap = run.words_needed - run.created
            if gap <= 0:
                break
            run.existing = await self.repository.find_existing(*scope)
            result = await self.client.generate(
                learner.learning_language,
                learner.native_language,
                learner.proficiency_level,
                self._request_size(gap),
                run.existing,
                run.batch_number,
            )
            if not result.ok:
                if self.quota.check_status(result.error):
                    logger.warning("Quota exhausted during backfill, stopping")
                    break
                if attempt < self.config.backfill_retries:
                    await self._sleep(self.config.retry.delay(attempt))
                continue
            survivors = self._filter(run, result.words, run.existing)[:gap]
            await self._persist(run, survivors)

    def _invalidate_cache(self, run: _Run) -> None:
        if self.cache_hook is None:
            return
        learner_id = run.learner.learner_id
        try:
            self.cache_hook.invalidate(learner_id)
            self.cache_hook.invalidate_batch(learner_id, run.learner.proficiency_level, run.batch_number)
        except Exception:
            logger.exception(f"Cache invalidation failed for learner {learner_id}")

    def _outcome(
        self,
        run: _Run,
        final_size: int,
        status: str | None = None,
        message: str = "",
    ) -> BatchOutcome:
        is_complete = final_size >= self.config.words_per_batch
        if status is None:
            if is_complete:
                status = "completed"
            elif run.created:
                status = "partial"
            else:
                status = "no_words_available"
        return BatchOutcome(
            status=status,
            batch_number=run.batch_number,
            generated_count=run.created,
            duplicates_skipped=run.duplicates,
            persistence_errors=run.errors,
            final_batch_size=final_size,
            is_complete=is_complete,
            generation_method=run.method,
            quota_status=self.quota.status(),
            message=message,
        )

    def _log(self, run: _Run, outcome: BatchOutcome) -> None:
        log_generation(
            "batch_generation",
            learner_id=run.learner.learner_id,
            batch_number=run.batch_number,
            method=run.method,
            language=run.learner.learning_language,
            level=run.learner.proficiency_level,
            status=outcome.status,
            words_needed=run.words_needed,
            generated=run.created,
            duplicates=run.duplicates,
            errors=run.errors,
            attempts=run.attempts,
            final_batch_size=outcome.final_batch_size,
        )

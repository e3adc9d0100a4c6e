"""Batch size invariants and batch/level bookkeeping.

A batch may only be shown to a learner once it holds exactly
WORDS_PER_BATCH words. The review mode for already-learned words is the one
consumer allowed to show an incomplete batch.
"""

import math
from typing import Mapping

from vocabatch.config import settings
from vocabatch.schemas import BatchStatus, BatchSummary, BatchValidation


def batches_per_level(words_per_level: int | None = None, words_per_batch: int | None = None) -> int:
    words_per_level = words_per_level or settings.words_per_level
    words_per_batch = words_per_batch or settings.words_per_batch
    return math.ceil(words_per_level / words_per_batch)


def validate_batch_integrity(
    actual_word_count: int,
    batch_number: int,
    words_per_batch: int | None = None,
) -> BatchValidation:
    expected = words_per_batch or settings.words_per_batch
    return BatchValidation(
        batch_number=batch_number,
        is_valid=actual_word_count == expected,
        expected_words=expected,
        actual_words=actual_word_count,
        words_needed=max(0, expected - actual_word_count),
    )


def can_expose_batch(validation: BatchValidation, review_mode: bool = False) -> bool:
    return validation.is_valid or review_mode


def current_batch_number(
    learned_in_level: int,
    words_per_batch: int | None = None,
    words_per_level: int | None = None,
) -> int:
    """Batch the learner should be working on, given words learned at this level."""
    words_per_batch = words_per_batch or settings.words_per_batch
    completed = learned_in_level // words_per_batch
    return min(completed + 1, batches_per_level(words_per_level, words_per_batch))


def batch_progress(learned_in_batch: int, words_per_batch: int | None = None) -> dict:
    words_per_batch = words_per_batch or settings.words_per_batch
    return {
        "percentage": min(100.0, learned_in_batch / words_per_batch * 100),
        "words_remaining": max(0, words_per_batch - learned_in_batch),
        "is_completed": learned_in_batch >= words_per_batch,
    }


def summarize_batches(
    level: str,
    counts_by_batch: Mapping[int, int],
    max_batches: int = 5,
    words_per_batch: int | None = None,
) -> BatchSummary:
    statuses = []
    for batch_number in range(1, max_batches + 1):
        count = counts_by_batch.get(batch_number, 0)
        validation = validate_batch_integrity(count, batch_number, words_per_batch)
        statuses.append(BatchStatus(
            batch_number=batch_number,
            validation=validation,
            exists=count > 0,
            ready_for_display=can_expose_batch(validation),
        ))

    complete = [s for s in statuses if s.validation.is_valid]
    incomplete = [s for s in statuses if s.exists and not s.validation.is_valid]
    return BatchSummary(
        level=level,
        total_batches_checked=max_batches,
        complete_batches=len(complete),
        incomplete_batches=len(incomplete),
        batches=statuses,
        ready_batches=[s.batch_number for s in complete],
        needs_attention=[
            {"batch_number": s.batch_number, "words_needed": s.validation.words_needed}
            for s in incomplete
        ],
    )

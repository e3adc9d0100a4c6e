"""Estimate of remaining calls to the generation provider's free tier.

The tracker is a heuristic: the provider is the only authority on quota, so
`remaining_estimate()` is used to prefer fallback sources early, never to
refuse a call. The one hard signal is a rate-limit error from the provider,
which marks the window exhausted until it rolls over.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from vocabatch.schemas import QuotaStatus
from vocabatch.services.llm import ProviderError, is_rate_limit_message

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuotaTracker:
    def __init__(
        self,
        free_tier_limit: int = 1500,
        window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.free_tier_limit = free_tier_limit
        self.window = window
        self._clock = clock
        self.request_count = 0
        self.exhausted = False
        self.reset_at = clock() + window

    def _roll_window(self) -> None:
        now = self._clock()
        if now > self.reset_at:
            if self.exhausted or self.request_count:
                logger.info(f"Quota window reset after {self.request_count} requests")
            self.request_count = 0
            self.exhausted = False
            self.reset_at = now + self.window

    def check_status(self, error: BaseException | None = None) -> bool:
        """Return True when the provider quota is considered exhausted.

        A supplied error that carries a rate-limit signal marks the current
        window exhausted.
        """
        self._roll_window()
        if error is not None and _signals_rate_limit(error):
            if not self.exhausted:
                logger.warning(f"Provider quota exhausted after {self.request_count} requests: {error}")
            self.exhausted = True
            return True
        return self.exhausted

    def increment(self) -> None:
        self._roll_window()
        self.request_count += 1

    def remaining_estimate(self) -> int:
        self._roll_window()
        return max(0, self.free_tier_limit - self.request_count)

    def status(self) -> QuotaStatus:
        self._roll_window()
        return QuotaStatus(
            request_count=self.request_count,
            remaining_estimate=max(0, self.free_tier_limit - self.request_count),
            exhausted=self.exhausted,
            reset_at=self.reset_at,
        )


def _signals_rate_limit(error: BaseException) -> bool:
    if isinstance(error, ProviderError):
        return error.is_rate_limited
    if getattr(error, "status_code", None) == 429:
        return True
    return is_rate_limit_message(str(error))

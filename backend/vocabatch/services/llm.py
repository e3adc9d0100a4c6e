"""LLM service using LiteLLM with multi-model fallback.

Vocabulary generation: Gemini Flash (free tier, quota-limited) → GPT fallback
→ Claude Haiku tertiary. Only providers with a configured key are tried.

Failures are surfaced as ProviderError with an explicit kind so callers never
have to inspect error messages themselves. Substring matching on provider
messages is still the last resort for rate-limit detection, since some
providers only report quota exhaustion in free text.
"""

import json
import os
import re
import time
from datetime import datetime
from enum import Enum
from pathlib import Path

import litellm

from vocabatch.config import settings

litellm.set_verbose = False


class ProviderErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    EMPTY = "empty"


class LLMError(Exception):
    pass


class ProviderError(LLMError):
    def __init__(self, message: str, kind: ProviderErrorKind, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.kind == ProviderErrorKind.RATE_LIMITED


class AllProvidersFailed(ProviderError):
    pass


RATE_LIMIT_MARKERS = ("429", "quota", "too many requests", "rate limit", "resource_exhausted")

MODELS = [
    {
        "name": "gemini",
        "model": "gemini/gemini-2.0-flash",
        "key_env": "GEMINI_KEY",
        "key_setting": "gemini_key",
    },
    {
        "name": "openai",
        "model": "gpt-4o-mini",
        "key_env": "OPENAI_KEY",
        "key_setting": "openai_key",
    },
    {
        "name": "anthropic",
        "model": "claude-haiku-4-5",
        "key_env": "ANTHROPIC_API_KEY",
        "key_setting": "anthropic_api_key",
    },
]


def is_rate_limit_message(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def classify_error(exc: BaseException) -> ProviderError:
    """Map any provider exception onto a ProviderError with an explicit kind.

    Structured signals (exception type, status code) win over message text.
    """
    if isinstance(exc, ProviderError):
        return exc
    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None
    if isinstance(exc, litellm.RateLimitError) or status_code == 429:
        return ProviderError(str(exc), ProviderErrorKind.RATE_LIMITED, status_code or 429)
    if is_rate_limit_message(str(exc)):
        return ProviderError(str(exc), ProviderErrorKind.RATE_LIMITED, status_code)
    if isinstance(exc, (json.JSONDecodeError, ValueError)):
        return ProviderError(str(exc), ProviderErrorKind.MALFORMED, status_code)
    return ProviderError(str(exc), ProviderErrorKind.TRANSPORT, status_code)


def _get_api_key(model_config: dict) -> str | None:
    """Get API key from settings or environment."""
    key = getattr(settings, model_config["key_setting"], "")
    if key:
        return key
    return os.environ.get(model_config["key_env"], "") or None


def _log_call(
    log_dir: Path,
    model: str,
    success: bool,
    response_time: float,
    error: str | None = None,
    prompt_length: int = 0,
    task_type: str | None = None,
) -> None:
    """Append a log entry for the LLM call."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"llm_calls_{datetime.now():%Y-%m-%d}.jsonl"
    entry = {
        "ts": datetime.now().isoformat(),
        "event": "llm_call",
        "model": model,
        "success": success,
        "response_time_s": round(response_time, 2),
        "error": error,
        "prompt_length": prompt_length,
    }
    if task_type:
        entry["task_type"] = task_type
    with open(log_file, "a") as f:
        f.write(json.dumps(entry) + "\n")


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text


async def complete(
    prompt: str,
    system_prompt: str = "",
    temperature: float = 0.7,
    timeout: int | None = None,
    model_override: str | None = None,
    task_type: str | None = None,
) -> str:
    """Call the LLM with automatic fallback across providers and return raw text.

    When model_override is provided (e.g. "gemini", "openai", "anthropic"),
    only that specific model is tried, with no fallback to others.

    Raises AllProvidersFailed. Its kind is RATE_LIMITED when any provider
    reported quota exhaustion, TRANSPORT otherwise.
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})

    if model_override:
        models_to_try = [m for m in MODELS if m["name"] == model_override]
        if not models_to_try:
            raise LLMError(f"Unknown model override: {model_override}")
    else:
        models_to_try = MODELS

    timeout = timeout or settings.provider_timeout
    errors: list[ProviderError] = []

    for model_config in models_to_try:
        api_key = _get_api_key(model_config)
        if not api_key:
            continue

        start = time.time()
        try:
            response = await litellm.acompletion(
                model=model_config["model"],
                messages=messages,
                temperature=temperature,
                timeout=timeout,
                api_key=api_key,
            )
            elapsed = time.time() - start
            content = response.choices[0].message.content or ""
            _log_call(
                settings.log_dir,
                model_config["model"],
                True,
                elapsed,
                prompt_length=len(prompt),
                task_type=task_type,
            )
            return content

        except Exception as e:
            elapsed = time.time() - start
            classified = classify_error(e)
            errors.append(classified)
            _log_call(
                settings.log_dir,
                model_config["model"],
                False,
                elapsed,
                error=f"{classified.kind.value}: {e}",
                prompt_length=len(prompt),
                task_type=task_type,
            )

    if not errors:
        raise AllProvidersFailed("No LLM provider configured", ProviderErrorKind.TRANSPORT)

    rate_limited = [e for e in errors if e.is_rate_limited]
    kind = ProviderErrorKind.RATE_LIMITED if rate_limited else ProviderErrorKind.TRANSPORT
    status_code = rate_limited[0].status_code if rate_limited else errors[-1].status_code
    summary = "; ".join(str(e) for e in errors)
    raise AllProvidersFailed(f"All LLM providers failed: {summary}", kind, status_code)


class LiteLLMProvider:
    """Text generation provider backed by the module-level fallback chain."""

    def __init__(self, model_override: str | None = None, timeout: int | None = None):
        self.model_override = model_override
        self.timeout = timeout

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        task_type: str | None = None,
    ) -> str:
        return await complete(
            prompt,
            temperature=temperature,
            timeout=self.timeout,
            model_override=self.model_override,
            task_type=task_type,
        )

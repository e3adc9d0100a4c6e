"""One round-trip to the text generation provider for vocabulary words.

The client builds the prompt, counts the call against the quota tracker,
extracts the first JSON array from the reply and drops exact duplicates of
the learner's existing words. It never raises: every failure comes back as
a GenerationResult carrying a ProviderError with an explicit kind, so the
orchestrator can branch on the kind instead of catching exceptions.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence

from vocabatch.schemas import GeneratedWord
from vocabatch.services.deduplication import HasOriginal, filter_exact
from vocabatch.services.language_profiles import get_profile, script_instructions
from vocabatch.services.llm import ProviderError, ProviderErrorKind, classify_error, strip_code_fences
from vocabatch.services.quota_tracker import QuotaTracker

logger = logging.getLogger(__name__)

CATEGORY_DISTRIBUTION = {
    "Nouns": 35,
    "Verbs": 30,
    "Adjectives": 20,
    "Function words and expressions": 15,
}


class TextGenerationProvider(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        task_type: str | None = None,
    ) -> str: ...


@dataclass
class GenerationResult:
    words: list[GeneratedWord] = field(default_factory=list)
    error: ProviderError | None = None
    raw_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def build_generation_prompt(
    learning_language: str,
    native_language: str,
    level: str,
    count: int,
    existing_words: Sequence[HasOriginal],
    batch_number: int,
    exclusion_list_limit: int = 200,
) -> str:
    """Learner-facing vocabulary prompt.

    Small vocabularies get an explicit exclusion list. Past
    `exclusion_list_limit` words the list would bloat the prompt, so the model
    is instead told to reach for more distinct, advanced vocabulary.
    """
    profile = get_profile(learning_language)
    distribution = "\n".join(f"- {name} ({pct}%)" for name, pct in CATEGORY_DISTRIBUTION.items())

    if not existing_words:
        exclusion = "The learner has no vocabulary yet at this level."
    elif len(existing_words) <= exclusion_list_limit:
        listed = ", ".join(w.original for w in existing_words)
        exclusion = f"Do NOT include any of these words the learner already has: {listed}"
    else:
        exclusion = (
            f"The learner already knows {len(existing_words)} {level} words. "
            "Generate maximally distinct, less common vocabulary: avoid the most frequent "
            f"{level} words, inflected forms of basic words, and alternate spellings."
        )

    return f"""You are an expert {learning_language} curriculum designer. Generate {count} unique \
{learning_language} vocabulary items for {level} learners, with translations in {native_language}.
This is batch {batch_number} of the learner's {level} course.

Word category distribution:
{distribution}

Duplicate avoidance:
- Every item must be different from every other item in your list
- {exclusion}

Script and orthography:
- {script_instructions(profile)}
- Use current, widely understood spellings; no archaic variants
- Give base forms (infinitive verbs, singular nouns) unless a phrase is more natural

Respond ONLY with a JSON array, no commentary:
[
  {{"original": "{learning_language} word", "translation": "{native_language} translation"}}
]"""


def build_translation_prompt(
    english_words: Sequence[HasOriginal],
    target_language: str,
    native_language: str,
) -> str:
    listed = ", ".join(w.original for w in english_words)
    return f"""Translate these English words to {target_language}:
{listed}

Requirements:
- Standard, widely understood {target_language} equivalents
- Proper {target_language} orthography
- Give the meaning in {native_language}

Respond ONLY with a JSON array:
[
  {{"original": "{target_language} word", "translation": "{native_language} meaning"}}
]"""


def extract_json_array(text: str) -> list:
    """Return the first well-formed JSON array embedded in text."""
    text = strip_code_fences(text or "")
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    raise ProviderError("No JSON array in provider response", ProviderErrorKind.MALFORMED)


def parse_words(text: str) -> list[GeneratedWord]:
    items = extract_json_array(text)
    if not items:
        raise ProviderError("Provider returned an empty word list", ProviderErrorKind.EMPTY)
    words = []
    for item in items:
        if not isinstance(item, dict):
            continue
        original = item.get("original")
        translation = item.get("translation")
        if not isinstance(original, str) or not isinstance(translation, str):
            continue
        if not original.strip() or not translation.strip():
            continue
        words.append(GeneratedWord(original=original.strip(), translation=translation.strip()))
    if not words:
        raise ProviderError("Provider word list has no usable entries", ProviderErrorKind.MALFORMED)
    return words


class GenerationClient:
    def __init__(
        self,
        provider: TextGenerationProvider,
        quota: QuotaTracker,
        exclusion_list_limit: int = 200,
    ):
        self.provider = provider
        self.quota = quota
        self.exclusion_list_limit = exclusion_list_limit

    async def generate(
        self,
        learning_language: str,
        native_language: str,
        level: str,
        count: int,
        existing_words: Sequence[HasOriginal],
        batch_number: int,
    ) -> GenerationResult:
        prompt = build_generation_prompt(
            learning_language,
            native_language,
            level,
            count,
            existing_words,
            batch_number,
            self.exclusion_list_limit,
        )
        return await self.generate_from_prompt(prompt, existing_words, task_type="vocabulary")

    async def generate_from_prompt(
        self,
        prompt: str,
        existing_words: Iterable[HasOriginal] = (),
        task_type: str = "vocabulary",
        temperature: float = 0.7,
    ) -> GenerationResult:
        self.quota.increment()
        try:
            text = await self.provider.complete(prompt, temperature=temperature, task_type=task_type)
            words = parse_words(text)
        except Exception as e:
            error = classify_error(e)
            logger.warning(f"Generation ({task_type}) failed [{error.kind.value}]: {error}")
            return GenerationResult(error=error)

        surviving = filter_exact(words, existing_words)
        logger.info(f"Generation ({task_type}): {len(surviving)}/{len(words)} words survived exact filter")
        return GenerationResult(words=surviving, raw_count=len(words))

    async def translate(
        self,
        english_words: Sequence[HasOriginal],
        target_language: str,
        native_language: str,
    ) -> GenerationResult:
        prompt = build_translation_prompt(english_words, target_language, native_language)
        return await self.generate_from_prompt(prompt, task_type="translation", temperature=0.2)

"""Duplicate filtering for generated vocabulary.

Two strategies, chosen by the size of the learner's existing vocabulary:
1. Exact: case-insensitive comparison of the original form.
2. Advanced: normalized comparison (case-fold, diacritic-fold, whitespace)
   plus stem and edit-distance heuristics. Generators tend to resurface
   inflected forms and alternate spellings once a vocabulary grows large,
   which exact matching misses.

All functions are pure; words are any objects with an `original` attribute.
"""

import re
import unicodedata
from typing import Iterable, Protocol, Sequence, TypeVar


class HasOriginal(Protocol):
    original: str


W = TypeVar("W", bound=HasOriginal)

COMMON_SUFFIXES = ("s", "es", "ed", "ing", "er", "est", "ly")

# Lookalike characters produced by OCR-ish or sloppy generations
LOOKALIKES = {
    ("0", "o"), ("1", "l"), ("1", "i"), ("5", "s"), ("3", "e"),
}

GERMAN_FOLDS = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}

_WHITESPACE = re.compile(r"\s+")
_APOSTROPHES = re.compile(r"[‘’ʼ`]")
_QUOTES = re.compile(r"[“”«»]")


def exact_key(word: str) -> str:
    return (word or "").strip().casefold()


def normalize_word(word: str) -> str:
    """Case-fold, strip combining marks, unify quotes and collapse whitespace."""
    if not word or not isinstance(word, str):
        return ""
    text = unicodedata.normalize("NFD", word.casefold())
    text = "".join(c for c in text if unicodedata.category(c) != "Mn")
    text = text.replace("ـ", "")  # tatweel
    text = _APOSTROPHES.sub("'", text)
    text = _QUOTES.sub('"', text)
    text = _WHITESPACE.sub(" ", text)
    return unicodedata.normalize("NFC", text).strip()


def normalize_word_for_language(word: str, language: str | None) -> str:
    """Language-aware normalization. German umlauts fold to their digraphs
    before the generic diacritic strip so "Mädchen" and "Maedchen" collide."""
    if language and language.lower() in ("german", "de"):
        lowered = (word or "").casefold()
        for src, dst in GERMAN_FOLDS.items():
            lowered = lowered.replace(src, dst)
        return normalize_word(lowered)
    return normalize_word(word)


def normalized_forms(word: str, language: str | None = None) -> set[str]:
    """Every normalized spelling of a word. German keeps both the digraph
    and the stripped-umlaut form, so "Mädchen" matches "Maedchen" and "Madchen"."""
    forms = {normalize_word_for_language(word, language)}
    if language and language.lower() in ("german", "de"):
        forms.add(normalize_word(word))
    forms.discard("")
    return forms


def strip_common_suffixes(word: str) -> str:
    for suffix in COMMON_SUFFIXES:
        if word.endswith(suffix) and len(word) > len(suffix) + 2:
            return word[: -len(suffix)]
    return word


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def word_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] from edit distance over normalized forms."""
    na, nb = normalize_word(a), normalize_word(b)
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    if longest == 0:
        return 1.0
    return 1 - levenshtein_distance(na, nb) / longest


def _is_lookalike(c1: str, c2: str) -> bool:
    return (c1, c2) in LOOKALIKES or (c2, c1) in LOOKALIKES


def _simple_variation(a: str, b: str) -> bool:
    """At most one non-lookalike character difference over the shared prefix.

    Words shorter than four characters never qualify; "on" and "in" are
    different words, not variants.
    """
    if abs(len(a) - len(b)) > 1 or min(len(a), len(b)) < 4:
        return False
    differences = 0
    for c1, c2 in zip(a, b):
        if c1 != c2 and not _is_lookalike(c1, c2):
            differences += 1
            if differences > 1:
                return False
    return True


def are_duplicates(a: str, b: str, language: str | None = None) -> bool:
    forms_a = normalized_forms(a, language)
    forms_b = normalized_forms(b, language)
    if not forms_a or not forms_b:
        return False
    if forms_a & forms_b:
        return True
    na = normalize_word_for_language(a, language)
    nb = normalize_word_for_language(b, language)
    stem_a, stem_b = strip_common_suffixes(na), strip_common_suffixes(nb)
    if stem_a == stem_b and len(stem_a) > 3:
        return True
    return _simple_variation(na, nb)


def similarity_threshold(existing_count: int) -> float:
    """Stricter (lower) threshold as the vocabulary grows."""
    if existing_count > 300:
        return 0.70
    if existing_count > 200:
        return 0.75
    if existing_count > 100:
        return 0.80
    return 0.85


def filter_exact(candidates: Iterable[W], existing: Iterable[HasOriginal]) -> list[W]:
    """Drop candidates whose original matches an existing word, ignoring case.

    Repeats within the candidate list are dropped too (first one wins).
    """
    seen = {exact_key(w.original) for w in existing}
    surviving = []
    for word in candidates:
        key = exact_key(word.original)
        if not key or key in seen:
            continue
        seen.add(key)
        surviving.append(word)
    return surviving


def filter_advanced(
    candidates: Iterable[W],
    existing: Sequence[HasOriginal],
    existing_count: int | None = None,
    language: str | None = None,
) -> list[W]:
    """Drop exact and near-duplicates of existing words and of each other."""
    if existing_count is None:
        existing_count = len(existing)
    threshold = similarity_threshold(existing_count)

    existing_norm = [normalize_word_for_language(w.original, language) for w in existing]
    existing_norm = [n for n in existing_norm if n]
    existing_forms = set().union(*(normalized_forms(w.original, language) for w in existing))
    existing_stems = {strip_common_suffixes(n) for n in existing_norm}

    surviving: list[W] = []
    accepted_norm: list[str] = []
    accepted_forms: set[str] = set()
    for word in candidates:
        norm = normalize_word_for_language(word.original, language)
        forms = normalized_forms(word.original, language)
        if not norm or forms & existing_forms or forms & accepted_forms:
            continue
        stem = strip_common_suffixes(norm)
        if len(stem) > 3 and stem in existing_stems:
            continue
        if _near_any(norm, existing_norm, threshold) or _near_any(norm, accepted_norm, threshold):
            continue
        surviving.append(word)
        accepted_norm.append(norm)
        accepted_forms |= forms
    return surviving


def _near_any(norm: str, others: Sequence[str], threshold: float) -> bool:
    for other in others:
        if are_duplicates(norm, other):
            return True
        longest = max(len(norm), len(other))
        # Edit distance is at least the length difference
        if longest and abs(len(norm) - len(other)) / longest > 1 - threshold:
            continue
        if longest and 1 - levenshtein_distance(norm, other) / longest >= threshold:
            return True
    return False


def select_filter(
    candidates: Iterable[W],
    existing: Sequence[HasOriginal],
    advanced_threshold: int = 150,
    language: str | None = None,
) -> list[W]:
    """Exact filtering for small vocabularies, advanced above the threshold."""
    if len(existing) > advanced_threshold:
        return filter_advanced(candidates, existing, len(existing), language)
    return filter_exact(candidates, existing)

"""Linguistic metadata per learning language.

Feeds the cultural fallback prompt and sizes the fallback cache: tonal,
non-Latin-script and gendered languages are harder to generate well, so
their cache refreshes ask for more words and are trusted for longer.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LanguageProfile:
    code: str
    family: str
    script: str
    rtl: bool
    regions: tuple[str, ...]
    word_order: str
    has_genders: bool
    has_tones: bool
    complexity_factors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_latin(self) -> bool:
        return self.script == "Latin"

    @property
    def complexity(self) -> int:
        return (
            len(self.complexity_factors)
            + (2 if self.has_tones else 0)
            + (1 if self.has_genders else 0)
            + (0 if self.is_latin else 1)
        )

    @property
    def features(self) -> list[str]:
        features = []
        if self.has_tones:
            features.append("Tonal")
        if self.has_genders:
            features.append("Gendered")
        if not self.is_latin:
            features.append("Non-Latin Script")
        return features + list(self.complexity_factors)


LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    "English": LanguageProfile(
        "en", "Germanic", "Latin", False, ("North America", "UK", "Australia", "Global"),
        "SVO", False, False, ("irregular verbs", "phrasal verbs", "idioms"),
    ),
    "Spanish": LanguageProfile(
        "es", "Romance", "Latin", False, ("Latin America", "Spain", "US Hispanic"),
        "SVO", True, False, ("gender agreement", "subjunctive mood", "ser vs estar"),
    ),
    "French": LanguageProfile(
        "fr", "Romance", "Latin", False, ("France", "Quebec", "Francophone Africa"),
        "SVO", True, False, ("liaison", "gender agreement", "formal vs informal"),
    ),
    "German": LanguageProfile(
        "de", "Germanic", "Latin", False, ("Germany", "Austria", "Switzerland"),
        "V2", True, False, ("case system", "compound words", "separable verbs"),
    ),
    "Italian": LanguageProfile(
        "it", "Romance", "Latin", False, ("Italy", "San Marino", "Vatican"),
        "SVO", True, False, ("gender agreement", "double consonants", "verb conjugations"),
    ),
    "Portuguese": LanguageProfile(
        "pt", "Romance", "Latin", False, ("Brazil", "Portugal", "Lusophone Africa"),
        "SVO", True, False, ("nasal sounds", "gender agreement", "continuous aspect"),
    ),
    "Russian": LanguageProfile(
        "ru", "Slavic", "Cyrillic", False, ("Russia", "Former Soviet States"),
        "SVO flexible", True, False, ("case system", "aspect pairs", "palatalization"),
    ),
    "Chinese": LanguageProfile(
        "zh", "Sino-Tibetan", "Chinese characters", False,
        ("China", "Taiwan", "Singapore", "Chinese diaspora"),
        "SVO", False, True, ("tones", "characters", "measure words"),
    ),
    "Japanese": LanguageProfile(
        "ja", "Japonic", "Hiragana/Katakana/Kanji", False, ("Japan",),
        "SOV", False, False, ("keigo (politeness)", "three scripts", "particles"),
    ),
    "Korean": LanguageProfile(
        "ko", "Koreanic", "Hangul", False, ("South Korea", "North Korea"),
        "SOV", False, False, ("honorifics", "sound changes", "agglutination"),
    ),
    "Arabic": LanguageProfile(
        "ar", "Semitic", "Arabic", True, ("Middle East", "North Africa", "Gulf States"),
        "VSO", True, False, ("root system", "vowel patterns", "definite article"),
    ),
    "Hindi": LanguageProfile(
        "hi", "Indo-European", "Devanagari", False, ("India", "Indian diaspora"),
        "SOV", True, False, ("gender system", "postpositions", "honorifics"),
    ),
    "Bengali": LanguageProfile(
        "bn", "Indo-European", "Bengali", False, ("Bangladesh", "West Bengal"),
        "SOV", False, False, ("conjunct consonants", "vowel harmony", "classifier system"),
    ),
    "Turkish": LanguageProfile(
        "tr", "Turkic", "Latin", False, ("Turkey", "Turkish diaspora"),
        "SOV", False, False, ("vowel harmony", "agglutination", "lack of gender"),
    ),
    "Dutch": LanguageProfile(
        "nl", "Germanic", "Latin", False, ("Netherlands", "Belgium", "Suriname"),
        "V2", True, False, ("gender system", "separable verbs", "diminutives"),
    ),
    "Swedish": LanguageProfile(
        "sv", "Germanic", "Latin", False, ("Sweden", "Finland Swedish"),
        "V2", True, False, ("pitch accent", "definite article suffix", "two genders"),
    ),
    "Persian": LanguageProfile(
        "fa", "Indo-European", "Persian", True, ("Iran", "Afghanistan", "Tajikistan"),
        "SOV", False, False, ("ezafe construction", "compound verbs", "no grammatical gender"),
    ),
    "Indonesian": LanguageProfile(
        "id", "Austronesian", "Latin", False, ("Indonesia", "Indonesian diaspora"),
        "SVO", False, False, ("affixation", "reduplication", "no verb conjugation"),
    ),
    "Swahili": LanguageProfile(
        "sw", "Niger-Congo", "Latin", False, ("East Africa", "Tanzania", "Kenya"),
        "SVO", False, False, ("noun classes", "agglutination", "Arabic loanwords"),
    ),
    "Greek": LanguageProfile(
        "el", "Indo-European", "Greek", False, ("Greece", "Cyprus", "Greek diaspora"),
        "SVO", True, False, ("case system", "verb aspects", "three genders"),
    ),
    "Vietnamese": LanguageProfile(
        "vi", "Austroasiatic", "Latin", False, ("Vietnam", "Vietnamese diaspora"),
        "SVO", False, True, ("six tones", "classifiers", "pronoun hierarchy", "Sino-Vietnamese vocabulary"),
    ),
}

VOCABULARY_CATEGORIES: dict[str, list[str]] = {
    "A1": [
        "Basic greetings and politeness", "Family and relationships", "Numbers and time",
        "Colors and basic adjectives", "Body parts and health", "Food and drinks",
        "Home and furniture", "Weather", "Transportation", "Basic emotions",
    ],
    "A2": [
        "Shopping and money", "Travel and directions", "Work and professions",
        "Education and school", "Hobbies and leisure", "Technology basics",
        "Restaurant and dining", "Clothing and fashion", "Nature and animals",
        "Daily routines and activities",
    ],
    "B1": [
        "Media and entertainment", "Environment and sustainability", "Culture and traditions",
        "Sports and fitness", "Health and medicine", "Business and economy",
        "Politics and society", "Arts and creativity", "Relationships",
        "Personal development",
    ],
    "B2": [
        "Abstract concepts and ideas", "Professional terminology", "Academic subjects",
        "Scientific concepts", "Philosophy and ethics", "Global issues",
        "Technology and innovation", "Psychology and emotions", "Legal and formal language",
        "Advanced cultural references",
    ],
    "C1": [
        "Specialized technical vocabulary", "Literary and artistic expression",
        "Complex social issues", "Advanced academic discourse", "Nuanced emotional vocabulary",
        "Idioms and colloquialisms", "Professional jargon", "Sophisticated argumentation",
        "Cultural nuances and subtleties", "Advanced metaphorical language",
    ],
}

DIFFICULTY_NOTES: dict[str, str] = {
    "A1": "Concrete, everyday vocabulary; simple, common words; basic communication needs",
    "A2": "Practical life situations; extended basic vocabulary; simple descriptions",
    "B1": "Introduction of abstract concepts; opinions and preferences; workplace basics",
    "B2": "Complex ideas; specialized terminology; nuanced expression",
    "C1": "Sophisticated vocabulary; idiomatic expressions; academic terminology",
    "C2": "Rare and literary vocabulary; fine register distinctions; idioms",
}


def get_profile(language: str) -> LanguageProfile | None:
    return LANGUAGE_PROFILES.get(language)


def vocabulary_categories(level: str) -> list[str]:
    return VOCABULARY_CATEGORIES.get(level) or VOCABULARY_CATEGORIES["C1" if level == "C2" else "A1"]


def script_instructions(profile: LanguageProfile | None) -> str:
    script = profile.script if profile else "Latin"
    if script == "Chinese characters":
        return "Use simplified Chinese characters with pinyin romanization"
    if script in ("Arabic", "Persian"):
        return "Use proper Arabic script with diacritics where necessary"
    if script == "Cyrillic":
        return "Use standard Cyrillic script"
    if script == "Devanagari":
        return "Use proper Devanagari script"
    if profile and profile.has_tones:
        return "Use standard orthography including all tone marks"
    return "Use standard orthography with proper accent marks"


def language_support_report() -> dict:
    by_complexity = sorted(
        (
            {"language": name, "complexity": p.complexity, "features": p.features}
            for name, p in LANGUAGE_PROFILES.items()
        ),
        key=lambda row: row["complexity"],
        reverse=True,
    )
    scripts: dict[str, list[str]] = {}
    families: dict[str, list[str]] = {}
    for name, p in LANGUAGE_PROFILES.items():
        scripts.setdefault(p.script, []).append(name)
        families.setdefault(p.family, []).append(name)
    return {
        "total_languages": len(LANGUAGE_PROFILES),
        "supported_languages": list(LANGUAGE_PROFILES),
        "languages_by_complexity": by_complexity,
        "script_types": scripts,
        "language_families": families,
    }

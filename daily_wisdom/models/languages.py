"""
Supported languages. English is the base language every translation derives from.
"""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class LanguageConfig:
    code: str
    name: str


SUPPORTED_LANGUAGES: Dict[str, LanguageConfig] = {
    "en": LanguageConfig("en", "English"),
    "es": LanguageConfig("es", "Spanish"),
    "fr": LanguageConfig("fr", "French"),
    "de": LanguageConfig("de", "German"),
    "pt": LanguageConfig("pt", "Portuguese"),
    "it": LanguageConfig("it", "Italian"),
    "nl": LanguageConfig("nl", "Dutch"),
    "ru": LanguageConfig("ru", "Russian"),
    "ja": LanguageConfig("ja", "Japanese"),
    "zh": LanguageConfig("zh", "Chinese"),
    "ko": LanguageConfig("ko", "Korean"),
    "ar": LanguageConfig("ar", "Arabic"),
}

BASE_LANGUAGE = "en"


def is_supported(code: str) -> bool:
    return code in SUPPORTED_LANGUAGES


def language_name(code: str) -> str:
    return SUPPORTED_LANGUAGES[code].name


def translation_targets() -> List[str]:
    """Every supported language except the base one, in declaration order."""
    return [code for code in SUPPORTED_LANGUAGES if code != BASE_LANGUAGE]

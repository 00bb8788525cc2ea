# wikicontent/services/localization.py
from typing import Dict, List, Mapping, Optional

from wikicontent.config import LANGUAGE_LABELS, SUPPORTED_LANGUAGES, DEFAULT_LANGUAGE


def is_valid_language_code(code: Optional[str]) -> bool:
    return isinstance(code, str) and code in SUPPORTED_LANGUAGES

def normalize_language(code: Optional[str]) -> str:
    """
    Handles casing and whitespace issues (' JP ' -> 'jp').
    Unknown codes fall back to the default language.
    """
    if not code:
        return DEFAULT_LANGUAGE
    clean_code = code.strip().lower()
    return clean_code if clean_code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE

def get_localized_value(localized: Optional[Mapping[str, Optional[str]]], language: str = DEFAULT_LANGUAGE) -> str:
    """
    Returns the value for the requested language, falling back to English
    when the translation is missing or empty, and to '' when neither exists.
    Plain strings are returned unchanged.
    """
    if localized is None:
        return ""
    if isinstance(localized, str):
        return localized
    value = localized.get(language)
    if value:
        return value
    return localized.get("en") or ""

def get_all_translations(localized: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """Resolves every supported language, each with English fallback."""
    return {lang: get_localized_value(localized, lang) for lang in SUPPORTED_LANGUAGES}

def get_language_options() -> List[Dict[str, str]]:
    """Language picker entries in supported-language order."""
    return [{"code": lang, "label": LANGUAGE_LABELS.get(lang, lang)} for lang in SUPPORTED_LANGUAGES]

# wikicontent/config.py
import os
import re
from typing import Pattern, Dict, Tuple, Optional

# --- CONTENT SOURCE CONFIGURATION ---
# Local directory holding one dataset file per collection.
CONTENT_DATA_DIR: str = os.getenv("CONTENT_DATA_DIR", os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"))
# When set, datasets are fetched over HTTP from this base URL instead of the local directory.
CONTENT_BASE_URL: Optional[str] = os.getenv("CONTENT_BASE_URL") or None


# --- LOGGING ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# --- HTTP CLIENT ---
DEFAULT_TIMEOUT: float = float(os.getenv("DEFAULT_TIMEOUT", "10.0"))
RETRY_ATTEMPTS: int = int(os.getenv("RETRY_ATTEMPTS", "3"))
RETRY_BACKOFF_FACTOR: float = float(os.getenv("RETRY_BACKOFF_FACTOR", "0.5"))
MAX_CONCURRENT_FETCHES: int = int(os.getenv("MAX_CONCURRENT_FETCHES", "4"))


# --- LANGUAGES ---
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")
SUPPORTED_LANGUAGES: Tuple[str, ...] = ("en", "jp", "cn", "tw", "kr")
LANGUAGE_LABELS: Dict[str, str] = {
    "en": "English",
    "jp": "日本語",
    "cn": "简体中文",
    "tw": "繁體中文",
    "kr": "한국어",
}


# --- SEARCH & LISTING ---
SEARCH_DEFAULT_LIMIT: int = int(os.getenv("SEARCH_DEFAULT_LIMIT", "24"))
SEARCH_MAX_LIMIT: int = 10000
ITEMS_PER_PAGE: int = int(os.getenv("ITEMS_PER_PAGE", "24"))
DEFAULT_SORT: str = "newest"


# --- PRECOMPILED REGEX ---
UNIQUE_KEY_RE: Pattern[str] = re.compile(r'^[a-z0-9-]+$')
# YYYY-MM-DD, optionally followed by a time component (ISO 8601).
ISO_DATE_RE: Pattern[str] = re.compile(r'^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$')
# Separator used by CSV datasets for list columns.
ARRAY_SEPARATOR: str = "|"


# --- DETAIL PAGE ROUTES ---
# Maps a content type to the path prefix of its detail page, used in search results.
DETAIL_ROUTE_PREFIXES: Dict[str, str] = {
    "character": "/girls",
    "swimsuit": "/swimsuits",
    "event": "/events",
    "gacha": "/gachas",
    "guide": "/guides",
    "item": "/items",
    "episode": "/episodes",
    "tool": "/tools",
    "accessory": "/accessories",
    "mission": "/missions",
    "quiz": "/quizzes",
}

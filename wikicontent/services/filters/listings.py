# wikicontent/services/filters/listings.py
"""
Per-collection wiring of the filter engine: which preset a listing uses,
which record fields back its status/type/rarity/tag filters, and its
collection specific search and sort rules.
"""
from typing import Any, Callable, Dict, List, Optional

from wikicontent.config import DEFAULT_LANGUAGE
from wikicontent.models import ContentType, DIFFICULTY_ORDER, RARITY_ORDER
from wikicontent.services.filters.presets import FilterPreset
from wikicontent.services.filters.state import UnifiedFilterState
from wikicontent.services.filters.unified_filter import UnifiedFilterOptions


def _name_search(language: str) -> Callable[[Any, str], bool]:
    """Matches the localized name or the unique key."""
    def search(item: Any, term: str) -> bool:
        needle = term.casefold()
        return needle in item.display_name(language).casefold() or needle in item.unique_key.casefold()
    return search

def _compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)

def _end_date_comparator(a: Any, b: Any) -> int:
    return _compare(a.end_date, b.end_date)

def _accessory_rarity_comparator(a: Any, b: Any) -> int:
    return RARITY_ORDER.get(b.rarity, 0) - RARITY_ORDER.get(a.rarity, 0)

def _quiz_difficulty(descending: bool) -> Callable[[Any, Any], int]:
    def comparator(a: Any, b: Any) -> int:
        result = DIFFICULTY_ORDER.get(a.difficulty, 0) - DIFFICULTY_ORDER.get(b.difficulty, 0)
        return -result if descending else result
    return comparator

def _listing_settings(content_type: ContentType, language: str) -> Dict[str, Any]:
    settings: Dict[ContentType, Dict[str, Any]] = {
        ContentType.CHARACTER: {
            "preset": FilterPreset.CHARACTERS,
            "custom_search_fn": _name_search(language),
            "rarity_field": "type",
        },
        ContentType.SWIMSUIT: {
            "preset": FilterPreset.SWIMSUITS,
            "search_fields": ["name", "title", "character", "unique_key"],
        },
        ContentType.EVENT: {
            "preset": FilterPreset.EVENTS,
            "custom_search_fn": _name_search(language),
            "status_field": "event_status",
            "type_field": "type",
            "custom_sort_functions": {"ending-soon": _end_date_comparator},
        },
        ContentType.GACHA: {
            "preset": FilterPreset.GACHAS,
            "custom_search_fn": _name_search(language),
            "status_field": "gacha_status",
            "date_field": "start_date",
            "custom_sort_functions": {"ending-soon": _end_date_comparator},
        },
        ContentType.ITEM: {
            "preset": FilterPreset.ITEMS,
            "type_field": "type",
        },
        ContentType.GUIDE: {
            "preset": FilterPreset.GUIDES,
            "search_fields": ["localized_title", "localized_summary", "topics", "unique_key"],
            "type_field": "difficulty",
            "tag_field": "topics",
        },
        ContentType.EPISODE: {
            "preset": FilterPreset.EPISODES,
            "status_field": "episode_status",
            "type_field": "type",
        },
        ContentType.TOOL: {
            "preset": FilterPreset.TOOLS,
            "search_fields": ["localized_title", "localized_summary", "unique_key"],
        },
        ContentType.ACCESSORY: {
            "preset": FilterPreset.ACCESSORIES,
            "rarity_field": "rarity",
            "type_field": "obtain_method",
            "tag_field": "character_ids",
            "custom_sort_functions": {"rarity-high": _accessory_rarity_comparator},
        },
        ContentType.MISSION: {
            "preset": FilterPreset.MISSIONS,
            "type_field": "type",
        },
        ContentType.QUIZ: {
            "preset": FilterPreset.QUIZZES,
            "type_field": "difficulty",
            "custom_sort_functions": {
                "difficulty-asc": _quiz_difficulty(descending=False),
                "difficulty-desc": _quiz_difficulty(descending=True),
            },
        },
    }
    return settings[content_type]

def build_listing_options(
    content_type: ContentType,
    data: List[Any],
    language: str = DEFAULT_LANGUAGE,
    initial_state: Optional[UnifiedFilterState] = None,
    items_per_page: Optional[int] = None,
) -> UnifiedFilterOptions:
    options: Dict[str, Any] = dict(_listing_settings(content_type, language))
    options.update({"data": data, "language": language, "initial_state": initial_state})
    if items_per_page is not None:
        options["items_per_page"] = items_per_page
    return UnifiedFilterOptions(**options)

def build_festival_options(
    data: List[Any],
    language: str = DEFAULT_LANGUAGE,
    initial_state: Optional[UnifiedFilterState] = None,
) -> UnifiedFilterOptions:
    return UnifiedFilterOptions(
        preset=FilterPreset.FESTIVALS,
        data=data,
        language=language,
        initial_state=initial_state,
        custom_search_fn=_name_search(language),
        status_field="event_status",
        date_field="start_date",
        custom_sort_functions={"ending-soon": _end_date_comparator},
    )

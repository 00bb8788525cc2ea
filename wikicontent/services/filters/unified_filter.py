import math
import re
from datetime import date, datetime
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import QueryParams

from wikicontent.config import DEFAULT_LANGUAGE, ITEMS_PER_PAGE
from wikicontent.models import DIFFICULTY_ORDER, RARITY_ORDER
from wikicontent.services.common import parse_date
from wikicontent.services.filters.presets import (
    CustomFilterConfig, FilterPreset, ResolvedFilterConfig, get_resolved_config,
)
from wikicontent.services.filters.state import ALL_CATEGORIES, DateRange, StatRange, UnifiedFilterState
from wikicontent.services.filters.url_state import serialize_filter_state
from wikicontent.services.localization import get_localized_value

FieldGetter = Union[str, Callable[[Any], Any]]
Comparator = Callable[[Any, Any], int]

# 'pow-high' -> stats.POW descending
STAT_SORT_RE = re.compile(r'^(pow|tec|stm|apl)-high$')


class UnifiedFilterOptions(BaseModel):
    """How a listing page wires its data into the filter engine."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    preset: FilterPreset = FilterPreset.DEFAULT
    data: List[Any] = Field(default_factory=list)
    custom_config: Optional[CustomFilterConfig] = None
    search_fields: List[str] = Field(default_factory=lambda: ["name", "title", "summary", "unique_key"])
    custom_search_fn: Optional[Callable[[Any, str], bool]] = None
    custom_sort_functions: Dict[str, Comparator] = Field(default_factory=dict)
    category_field: FieldGetter = "category"
    tag_field: FieldGetter = "tags"
    rarity_field: FieldGetter = "rarity"
    status_field: FieldGetter = "status"
    type_field: FieldGetter = "type"
    date_field: Optional[FieldGetter] = None
    language: str = DEFAULT_LANGUAGE
    default_sort: Optional[str] = None
    items_per_page: int = Field(ITEMS_PER_PAGE, ge=1)
    initial_state: Optional[UnifiedFilterState] = None


def resolve_field(item: Any, field: FieldGetter) -> Any:
    """Reads a value by callable or dotted path ('stats.POW') from models and dicts."""
    if callable(field):
        return field(item)
    value = item
    for part in field.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value

def _as_text(value: Any, language: str) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return get_localized_value(value, language)
    if isinstance(value, (list, tuple, set)):
        return " ".join(_as_text(v, language) for v in value)
    return str(value)

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    try:
        return parse_date(value)
    except ValueError:
        return None

def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]

def _display_name(item: Any, language: str) -> str:
    if hasattr(item, "display_name"):
        return item.display_name(language)
    return _as_text(resolve_field(item, "name") or resolve_field(item, "title"), language)


class FilterHandlers(NamedTuple):
    set_search: Callable[[str], None]
    set_category: Callable[[str], None]
    toggle_tag: Callable[[str], None]
    set_tags: Callable[[Sequence[str]], None]
    set_sort: Callable[[str], None]
    set_rarity: Callable[[Optional[str]], None]
    set_status: Callable[[Optional[str]], None]
    set_type: Callable[[Optional[str]], None]
    set_date_range: Callable[..., None]
    set_stat_range: Callable[..., None]
    set_boolean_filter: Callable[[str, Optional[bool]], None]
    set_page: Callable[[int], None]
    clear_filters: Callable[[], None]


class UnifiedFilter:
    """
    Filter, sort and paginate one listing.

    Filters apply in a fixed order, each narrowing the previous result:
    text search, category/type/status/rarity equality, tag overlap, numeric
    ranges, date range, then boolean flags. Sorting is stable so ties keep
    their input order. Any filter change sends the listing back to page 1.
    """

    def __init__(self, options: UnifiedFilterOptions):
        self.options = options
        self.config: ResolvedFilterConfig = get_resolved_config(options.preset, options.custom_config)
        self.default_sort: str = options.default_sort or self.config.default_sort
        self._state = options.initial_state or UnifiedFilterState(sort=self.default_sort)
        self._filtered: Optional[List[Any]] = None
        self.handlers = FilterHandlers(
            set_search=self.set_search,
            set_category=self.set_category,
            toggle_tag=self.toggle_tag,
            set_tags=self.set_tags,
            set_sort=self.set_sort,
            set_rarity=self.set_rarity,
            set_status=self.set_status,
            set_type=self.set_type,
            set_date_range=self.set_date_range,
            set_stat_range=self.set_stat_range,
            set_boolean_filter=self.set_boolean_filter,
            set_page=self.set_page,
            clear_filters=self.clear_filters,
        )

    # --- STATE ---

    @property
    def state(self) -> UnifiedFilterState:
        return self._state

    def _update(self, reset_page: bool = True, **changes: Any) -> None:
        values = self._state.model_dump()
        values.update(changes)
        if reset_page:
            values["page"] = 1
        self._state = UnifiedFilterState.model_validate(values)
        self._filtered = None

    def set_search(self, search: str) -> None:
        self._update(search=search or "")

    def set_category(self, category: str) -> None:
        self._update(category=category or ALL_CATEGORIES)

    def toggle_tag(self, tag: str) -> None:
        tags = list(self._state.tags)
        if tag in tags:
            tags.remove(tag)
        else:
            tags.append(tag)
        self._update(tags=tags)

    def set_tags(self, tags: Sequence[str]) -> None:
        self._update(tags=list(dict.fromkeys(tags)))

    def set_sort(self, sort: str) -> None:
        self._update(sort=sort or self.default_sort)

    def set_rarity(self, rarity: Optional[str]) -> None:
        self._update(rarity=rarity or None)

    def set_status(self, status: Optional[str]) -> None:
        self._update(status=status or None)

    def set_type(self, type_value: Optional[str]) -> None:
        self._update(type=type_value or None)

    def set_date_range(self, start: Optional[date] = None, end: Optional[date] = None) -> None:
        self._update(date_range=DateRange(start=start, end=end).model_dump())

    def set_stat_range(self, key: str, min_value: Optional[float] = None, max_value: Optional[float] = None) -> None:
        """Passing neither bound removes the range."""
        ranges = {k: v.model_dump() for k, v in self._state.stat_ranges.items()}
        ranges[key] = StatRange(min=min_value, max=max_value).model_dump()
        self._update(stat_ranges=ranges)

    def set_boolean_filter(self, key: str, value: Optional[bool]) -> None:
        """None removes the flag."""
        flags = dict(self._state.boolean_filters)
        if value is None:
            flags.pop(key, None)
        else:
            flags[key] = value
        self._update(boolean_filters=flags)

    def set_page(self, page: int) -> None:
        self._update(reset_page=False, page=min(max(page, 1), self.total_pages))

    def clear_filters(self) -> None:
        """Back to the default state, keeping the current sort."""
        self._state = UnifiedFilterState(sort=self._state.sort)
        self._filtered = None

    # --- RESULTS ---

    @property
    def filtered_data(self) -> List[Any]:
        if self._filtered is None:
            self._filtered = self._sort(self._apply_filters(list(self.options.data)))
        return list(self._filtered)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered_data) / self.options.items_per_page))

    @property
    def page_data(self) -> List[Any]:
        size = self.options.items_per_page
        start = (self._state.page - 1) * size
        return self.filtered_data[start:start + size]

    @property
    def active_filter_count(self) -> int:
        return self._state.active_filter_count()

    def to_query_params(self) -> QueryParams:
        return serialize_filter_state(self._state, self.default_sort)

    # --- FILTERING ---

    def _apply_filters(self, items: List[Any]) -> List[Any]:
        state = self._state
        options = self.options
        language = options.language

        if state.search.strip():
            term = state.search.strip()
            if options.custom_search_fn is not None:
                items = [item for item in items if options.custom_search_fn(item, term)]
            else:
                needle = term.casefold()
                items = [
                    item for item in items
                    if any(needle in _as_text(resolve_field(item, f), language).casefold() for f in options.search_fields)
                ]

        equality_filters = (
            (options.category_field, state.category if state.category != ALL_CATEGORIES else None),
            (options.type_field, state.type),
            (options.status_field, state.status),
            (options.rarity_field, state.rarity),
        )
        for field, expected in equality_filters:
            if expected is not None:
                items = [item for item in items if _as_text(resolve_field(item, field), language) == expected]

        if state.tags:
            wanted = set(state.tags)
            items = [item for item in items if wanted & set(_as_list(resolve_field(item, options.tag_field)))]

        range_fields = {r.key: r.field for r in self.config.range_filters}
        for key, stat_range in state.stat_ranges.items():
            field = range_fields.get(key, key)
            items = [item for item in items if self._in_range(_as_number(resolve_field(item, field)), stat_range)]

        if state.date_range is not None:
            date_field = options.date_field
            if date_field is None:
                date_field = self.config.date_range_filter.field if self.config.date_range_filter else "start_date"
            items = [item for item in items if self._in_date_range(_as_datetime(resolve_field(item, date_field)), state.date_range)]

        boolean_fields = {b.key: b.field for b in self.config.boolean_filters}
        for key, expected in state.boolean_filters.items():
            field = boolean_fields.get(key, key)
            items = [item for item in items if bool(resolve_field(item, field)) == expected]

        return items

    @staticmethod
    def _in_range(value: Optional[float], stat_range: StatRange) -> bool:
        if value is None:
            return False
        if stat_range.min is not None and value < stat_range.min:
            return False
        if stat_range.max is not None and value > stat_range.max:
            return False
        return True

    @staticmethod
    def _in_date_range(value: Optional[datetime], date_range: DateRange) -> bool:
        if value is None:
            return False
        day = value.date()
        if date_range.start is not None and day < date_range.start:
            return False
        if date_range.end is not None and day > date_range.end:
            return False
        return True

    # --- SORTING ---

    def _sort(self, items: List[Any]) -> List[Any]:
        sort = self._state.sort
        comparator = self.options.custom_sort_functions.get(sort)
        if comparator is not None:
            return sorted(items, key=cmp_to_key(comparator))

        language = self.options.language
        if sort == "newest":
            return self._sorted_by(items, self._recency, descending=True)
        if sort == "oldest":
            return self._sorted_by(items, self._recency)
        if sort == "a-z":
            return self._sorted_by(items, lambda item: _display_name(item, language).casefold())
        if sort == "z-a":
            return self._sorted_by(items, lambda item: _display_name(item, language).casefold(), descending=True)
        if sort == "rarity-high":
            return self._sorted_by(
                items, lambda item: RARITY_ORDER.get(_as_text(resolve_field(item, self.options.rarity_field), language)),
                descending=True,
            )
        if sort == "ending-soon":
            return self._sorted_by(items, lambda item: _as_datetime(resolve_field(item, "end_date")))
        if sort == "rate-high":
            return self._sorted_by(items, lambda item: _as_number(resolve_field(item, "rates.ssr")), descending=True)
        if sort in ("difficulty-asc", "difficulty-desc"):
            return self._sorted_by(
                items, lambda item: DIFFICULTY_ORDER.get(_as_text(resolve_field(item, "difficulty"), language)),
                descending=sort == "difficulty-desc",
            )
        if sort == "popular":
            return self._sorted_by(items, self._stat_total, descending=True)
        stat_sort = STAT_SORT_RE.match(sort)
        if stat_sort:
            field = f"stats.{stat_sort.group(1).upper()}"
            return self._sorted_by(items, lambda item: _as_number(resolve_field(item, field)), descending=True)
        # Unknown sort keys keep the input order.
        return items

    @staticmethod
    def _sorted_by(items: List[Any], key: Callable[[Any], Any], descending: bool = False) -> List[Any]:
        """Stable sort; items without a value always go last."""
        with_value = [(key(item), item) for item in items]
        present = [(value, item) for value, item in with_value if value is not None]
        missing = [item for value, item in with_value if value is None]
        present.sort(key=lambda pair: pair[0], reverse=descending)
        return [item for _, item in present] + missing

    def _recency(self, item: Any) -> Optional[datetime]:
        if self.options.date_field is not None:
            return _as_datetime(resolve_field(item, self.options.date_field))
        return _as_datetime(resolve_field(item, "updated_at")) or _as_datetime(resolve_field(item, "start_date"))

    @staticmethod
    def _stat_total(item: Any) -> Optional[float]:
        stats = resolve_field(item, "stats")
        if not isinstance(stats, dict) or not stats:
            return None
        return sum(_as_number(value) or 0 for value in stats.values())


def use_unified_filter(options: UnifiedFilterOptions) -> UnifiedFilter:
    """
    Builds a filter for a listing. The returned object exposes `state`,
    `handlers`, `filtered_data`, `active_filter_count` and `config`, and
    stays live: calling a handler updates everything else.
    """
    return UnifiedFilter(options)

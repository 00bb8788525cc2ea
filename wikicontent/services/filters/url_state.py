"""
Round trip between UnifiedFilterState and URL query parameters.

Only non-default values are written, keys are emitted in alphabetical order,
and `deserialize_filter_state(serialize_filter_state(s)) == s` for every
state. Reading never raises: malformed values fall back to their defaults.
"""
from datetime import date
from typing import Dict, List, Mapping, Optional, Tuple, Union

from starlette.datastructures import QueryParams

from wikicontent.config import DEFAULT_SORT
from wikicontent.services.filters.presets import ResolvedFilterConfig
from wikicontent.services.filters.state import ALL_CATEGORIES, DateRange, StatRange, UnifiedFilterState

PARAM_SEARCH = "q"
PARAM_CATEGORY = "category"
PARAM_TAGS = "tags"
PARAM_SORT = "sort"
PARAM_RARITY = "rarity"
PARAM_STATUS = "status"
PARAM_TYPE = "type"
PARAM_START_DATE = "startDate"
PARAM_END_DATE = "endDate"
PARAM_PAGE = "page"
MIN_PREFIX = "min_"
MAX_PREFIX = "max_"
FLAG_PREFIX = "flag_"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))

def serialize_filter_state(state: UnifiedFilterState, default_sort: str = DEFAULT_SORT) -> QueryParams:
    pairs: List[Tuple[str, str]] = []
    if state.search:
        pairs.append((PARAM_SEARCH, state.search))
    if state.category != ALL_CATEGORIES:
        pairs.append((PARAM_CATEGORY, state.category))
    for tag in state.tags:
        pairs.append((PARAM_TAGS, tag))
    if state.sort != default_sort:
        pairs.append((PARAM_SORT, state.sort))
    if state.rarity:
        pairs.append((PARAM_RARITY, state.rarity))
    if state.status:
        pairs.append((PARAM_STATUS, state.status))
    if state.type:
        pairs.append((PARAM_TYPE, state.type))
    if state.date_range is not None:
        if state.date_range.start is not None:
            pairs.append((PARAM_START_DATE, state.date_range.start.isoformat()))
        if state.date_range.end is not None:
            pairs.append((PARAM_END_DATE, state.date_range.end.isoformat()))
    for key, stat_range in state.stat_ranges.items():
        if stat_range.min is not None:
            pairs.append((f"{MIN_PREFIX}{key}", _format_number(stat_range.min)))
        if stat_range.max is not None:
            pairs.append((f"{MAX_PREFIX}{key}", _format_number(stat_range.max)))
    for key, enabled in state.boolean_filters.items():
        pairs.append((f"{FLAG_PREFIX}{key}", "true" if enabled else "false"))
    if state.page != 1:
        pairs.append((PARAM_PAGE, str(state.page)))

    # Stable sort keeps repeated tags in their original order.
    pairs.sort(key=lambda pair: pair[0])
    return QueryParams(pairs)

def to_query_string(state: UnifiedFilterState, default_sort: str = DEFAULT_SORT) -> str:
    """'?rarity=SSR&sort=a-z', or '' for the default state."""
    query = str(serialize_filter_state(state, default_sort))
    return f"?{query}" if query else ""


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None

def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    # Reject nan and infinities.
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number

def _parse_page(value: Optional[str]) -> int:
    if not value:
        return 1
    try:
        page = int(value)
    except ValueError:
        return 1
    return page if page >= 1 else 1

def _allowed(value: Optional[str], options: list) -> Optional[str]:
    """Drops values outside a non-empty option list."""
    if not value:
        return None
    if options and value not in {option.value for option in options}:
        return None
    return value

def deserialize_filter_state(
    params: Union[QueryParams, Mapping[str, str], str],
    default_sort: str = DEFAULT_SORT,
    config: Optional[ResolvedFilterConfig] = None,
) -> UnifiedFilterState:
    if not isinstance(params, QueryParams):
        if isinstance(params, str):
            params = params[1:] if params.startswith("?") else params
        params = QueryParams(params)

    sort = params.get(PARAM_SORT) or default_sort
    if config is not None and sort not in config.sort_values():
        sort = default_sort

    stat_ranges: Dict[str, Dict[str, float]] = {}
    boolean_filters: Dict[str, bool] = {}
    range_keys = {r.key for r in config.range_filters} if config is not None else None
    flag_keys = {b.key for b in config.boolean_filters} if config is not None else None

    for key, value in params.multi_items():
        if key.startswith(MIN_PREFIX) or key.startswith(MAX_PREFIX):
            bound = "min" if key.startswith(MIN_PREFIX) else "max"
            stat_key = key[len(MIN_PREFIX) if bound == "min" else len(MAX_PREFIX):]
            number = _parse_number(value)
            if not stat_key or number is None or (range_keys is not None and stat_key not in range_keys):
                continue
            stat_ranges.setdefault(stat_key, {})[bound] = number
        elif key.startswith(FLAG_PREFIX):
            flag_key = key[len(FLAG_PREFIX):]
            if not flag_key or value not in ("true", "false") or (flag_keys is not None and flag_key not in flag_keys):
                continue
            boolean_filters[flag_key] = value == "true"

    start = _parse_date(params.get(PARAM_START_DATE))
    end = _parse_date(params.get(PARAM_END_DATE))
    if config is not None and config.date_range_filter is None:
        start = end = None

    return UnifiedFilterState(
        search=params.get(PARAM_SEARCH) or "",
        category=params.get(PARAM_CATEGORY) or ALL_CATEGORIES,
        tags=params.getlist(PARAM_TAGS),
        sort=sort,
        rarity=_allowed(params.get(PARAM_RARITY), config.rarities if config else []),
        status=_allowed(params.get(PARAM_STATUS), config.statuses if config else []),
        type=_allowed(params.get(PARAM_TYPE), config.types if config else []),
        date_range=DateRange(start=start, end=end) if (start or end) else None,
        stat_ranges={key: StatRange(**bounds) for key, bounds in stat_ranges.items()},
        boolean_filters=boolean_filters,
        page=_parse_page(params.get(PARAM_PAGE)),
    )

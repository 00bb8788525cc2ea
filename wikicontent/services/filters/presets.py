"""
Filter presets for every listing page, and the merge of a preset with
caller supplied overrides.

Labels are translation keys; the UI layer resolves them.
"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from wikicontent.config import DEFAULT_SORT


class FilterPreset(str, Enum):
    CHARACTERS = "characters"
    SWIMSUITS = "swimsuits"
    EVENTS = "events"
    FESTIVALS = "festivals"
    GACHAS = "gachas"
    ITEMS = "items"
    GUIDES = "guides"
    EPISODES = "episodes"
    TOOLS = "tools"
    ACCESSORIES = "accessories"
    MISSIONS = "missions"
    QUIZZES = "quizzes"
    DEFAULT = "default"


class FilterOption(BaseModel):
    value: str
    label: str

class RangeFilter(BaseModel):
    key: str
    label: str
    min: float
    max: float
    step: float = 1
    field: str = Field(..., description="Dotted path to the numeric value, e.g. 'stats.POW'.")

class BooleanFilter(BaseModel):
    key: str
    label: str
    field: str

class DateRangeFilter(BaseModel):
    key: str
    label: str
    field: str = "start_date"

class PresetConfig(BaseModel):
    preset: FilterPreset
    sort_options: List[FilterOption]
    rarities: Optional[List[FilterOption]] = None
    statuses: Optional[List[FilterOption]] = None
    types: Optional[List[FilterOption]] = None
    range_filters: Optional[List[RangeFilter]] = None
    boolean_filters: Optional[List[BooleanFilter]] = None
    date_range_filter: Optional[DateRangeFilter] = None
    default_sort: Optional[str] = None

class CustomFilterConfig(BaseModel):
    """Per-page overrides; every field set here replaces the preset's value."""
    sort_options: Optional[List[FilterOption]] = None
    rarities: Optional[List[FilterOption]] = None
    statuses: Optional[List[FilterOption]] = None
    types: Optional[List[FilterOption]] = None
    range_filters: Optional[List[RangeFilter]] = None
    boolean_filters: Optional[List[BooleanFilter]] = None
    date_range_filter: Optional[DateRangeFilter] = None
    default_sort: Optional[str] = None

class ResolvedFilterConfig(BaseModel):
    preset: FilterPreset
    sort_options: List[FilterOption]
    rarities: List[FilterOption] = Field(default_factory=list)
    statuses: List[FilterOption] = Field(default_factory=list)
    types: List[FilterOption] = Field(default_factory=list)
    range_filters: List[RangeFilter] = Field(default_factory=list)
    boolean_filters: List[BooleanFilter] = Field(default_factory=list)
    date_range_filter: Optional[DateRangeFilter] = None
    default_sort: str = DEFAULT_SORT
    has_advanced_filters: bool = False

    def sort_values(self) -> List[str]:
        return [option.value for option in self.sort_options]


def _options(*pairs) -> List[FilterOption]:
    return [FilterOption(value=value, label=label) for value, label in pairs]

def _stat_ranges(maximum: float, step: float) -> List[RangeFilter]:
    return [
        RangeFilter(key=stat.lower(), label=stat, min=0, max=maximum, step=step, field=f"stats.{stat}")
        for stat in ("POW", "TEC", "STM")
    ]

DEFAULT_SORT_OPTIONS = _options(
    ("newest", "sort.newest"),
    ("oldest", "sort.oldest"),
    ("a-z", "sort.az"),
    ("z-a", "sort.za"),
    ("popular", "sort.popular"),
)
RARITY_OPTIONS = _options(("SSR", "rarity.ssr"), ("SR", "rarity.sr"), ("R", "rarity.r"))
EVENT_STATUS_OPTIONS = _options(("Active", "status.active"), ("Upcoming", "status.upcoming"), ("Ended", "status.ended"))
DIFFICULTY_OPTIONS = _options(("Easy", "difficulty.easy"), ("Medium", "difficulty.medium"), ("Hard", "difficulty.hard"))

PRESET_CONFIGS: Dict[FilterPreset, PresetConfig] = {
    FilterPreset.CHARACTERS: PresetConfig(
        preset=FilterPreset.CHARACTERS,
        sort_options=_options(
            ("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za"), ("popular", "sort.popular"),
            ("pow-high", "POW ↓"), ("tec-high", "TEC ↓"), ("stm-high", "STM ↓"),
        ),
        range_filters=_stat_ranges(100, 5),
    ),
    FilterPreset.SWIMSUITS: PresetConfig(
        preset=FilterPreset.SWIMSUITS,
        sort_options=_options(
            ("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za"), ("rarity-high", "filter.rarityHigh"),
            ("pow-high", "POW ↓"), ("tec-high", "TEC ↓"), ("stm-high", "STM ↓"),
        ),
        rarities=RARITY_OPTIONS,
        range_filters=_stat_ranges(5000, 100),
    ),
    FilterPreset.EVENTS: PresetConfig(
        preset=FilterPreset.EVENTS,
        sort_options=_options(
            ("newest", "sort.newest"), ("ending-soon", "filter.endingSoon"), ("a-z", "sort.az"), ("z-a", "sort.za"),
        ),
        statuses=EVENT_STATUS_OPTIONS,
        types=_options(("Main", "eventType.main"), ("Daily", "eventType.daily"), ("Event", "eventType.event")),
        date_range_filter=DateRangeFilter(key="eventDate", label="filter.dateRange"),
    ),
    FilterPreset.FESTIVALS: PresetConfig(
        preset=FilterPreset.FESTIVALS,
        sort_options=_options(
            ("newest", "sort.newest"), ("ending-soon", "filter.endingSoon"), ("a-z", "sort.az"), ("z-a", "sort.za"),
        ),
        statuses=EVENT_STATUS_OPTIONS,
        date_range_filter=DateRangeFilter(key="festivalDate", label="filter.dateRange"),
    ),
    FilterPreset.GACHAS: PresetConfig(
        preset=FilterPreset.GACHAS,
        sort_options=_options(
            ("newest", "sort.newest"), ("ending-soon", "filter.endingSoon"), ("rate-high", "filter.rateHigh"),
            ("a-z", "sort.az"),
        ),
        statuses=_options(("Active", "status.active"), ("Coming Soon", "status.comingSoon"), ("Ended", "status.ended")),
        boolean_filters=[BooleanFilter(key="stepUp", label="filter.stepUpOnly", field="step_up")],
        range_filters=[RangeFilter(key="ssrRate", label="filter.ssrRate", min=0, max=10, step=0.5, field="rates.ssr")],
    ),
    FilterPreset.ITEMS: PresetConfig(
        preset=FilterPreset.ITEMS,
        sort_options=_options(("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za")),
        types=_options(
            ("Decoration", "itemType.decoration"), ("Consumable", "itemType.consumable"), ("Material", "itemType.material"),
        ),
    ),
    FilterPreset.GUIDES: PresetConfig(
        preset=FilterPreset.GUIDES,
        sort_options=_options(
            ("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za"),
            ("difficulty-asc", "filter.difficultyAsc"), ("difficulty-desc", "filter.difficultyDesc"),
        ),
        types=DIFFICULTY_OPTIONS,
    ),
    FilterPreset.EPISODES: PresetConfig(
        preset=FilterPreset.EPISODES,
        sort_options=_options(("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za")),
        statuses=_options(
            ("Available", "status.available"), ("Coming Soon", "status.comingSoon"), ("Limited", "status.limited"),
        ),
        types=_options(
            ("Character", "filters.character"), ("Gravure", "filters.gravure"), ("Event", "filters.event"),
            ("Extra", "filters.extra"), ("Bromide", "filters.bromide"),
        ),
    ),
    FilterPreset.TOOLS: PresetConfig(
        preset=FilterPreset.TOOLS,
        sort_options=_options(("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za")),
    ),
    FilterPreset.ACCESSORIES: PresetConfig(
        preset=FilterPreset.ACCESSORIES,
        sort_options=_options(
            ("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za"), ("rarity-high", "filter.rarityHigh"),
        ),
        rarities=RARITY_OPTIONS + _options(("N", "rarity.n")),
        types=_options(
            ("Event", "obtainMethod.event"), ("Gacha", "obtainMethod.gacha"), ("Shop", "obtainMethod.shop"),
            ("Quest", "obtainMethod.quest"), ("Login", "obtainMethod.login"),
        ),
    ),
    FilterPreset.MISSIONS: PresetConfig(
        preset=FilterPreset.MISSIONS,
        sort_options=_options(("newest", "sort.newest"), ("a-z", "sort.az"), ("z-a", "sort.za")),
        types=_options(
            ("Daily", "missionType.daily"), ("Weekly", "missionType.weekly"), ("Event", "missionType.event"),
            ("Owner", "missionType.owner"),
        ),
    ),
    FilterPreset.QUIZZES: PresetConfig(
        preset=FilterPreset.QUIZZES,
        sort_options=_options(
            ("newest", "sort.newest"), ("a-z", "sort.az"),
            ("difficulty-asc", "quiz.sortDifficultyAsc"), ("difficulty-desc", "quiz.sortDifficultyDesc"),
        ),
        types=DIFFICULTY_OPTIONS,
    ),
    FilterPreset.DEFAULT: PresetConfig(preset=FilterPreset.DEFAULT, sort_options=DEFAULT_SORT_OPTIONS),
}


def get_preset_config(preset: FilterPreset) -> PresetConfig:
    """Unknown presets resolve to the default preset."""
    try:
        return PRESET_CONFIGS[FilterPreset(preset)]
    except ValueError:
        return PRESET_CONFIGS[FilterPreset.DEFAULT]

def merge_configs(preset_config: PresetConfig, custom_config: Optional[CustomFilterConfig] = None) -> ResolvedFilterConfig:
    """
    Field-wise merge: a value set on the custom config wins over the preset,
    which wins over the empty default.
    """
    custom = custom_config or CustomFilterConfig()

    def pick(field_name: str):
        custom_value = getattr(custom, field_name)
        if custom_value is not None:
            return custom_value
        return getattr(preset_config, field_name)

    sort_options = pick("sort_options") or list(DEFAULT_SORT_OPTIONS)
    range_filters = pick("range_filters") or []
    boolean_filters = pick("boolean_filters") or []
    date_range_filter = pick("date_range_filter")

    default_sort = pick("default_sort")
    if not default_sort:
        values = [option.value for option in sort_options]
        default_sort = DEFAULT_SORT if DEFAULT_SORT in values or not values else values[0]

    return ResolvedFilterConfig(
        preset=preset_config.preset,
        sort_options=sort_options,
        rarities=pick("rarities") or [],
        statuses=pick("statuses") or [],
        types=pick("types") or [],
        range_filters=range_filters,
        boolean_filters=boolean_filters,
        date_range_filter=date_range_filter,
        default_sort=default_sort,
        has_advanced_filters=bool(range_filters or boolean_filters or date_range_filter is not None),
    )

def get_resolved_config(preset: FilterPreset, custom_config: Optional[CustomFilterConfig] = None) -> ResolvedFilterConfig:
    return merge_configs(get_preset_config(preset), custom_config)

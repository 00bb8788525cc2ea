from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from wikicontent.config import DEFAULT_SORT

ALL_CATEGORIES = "all"


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None

    def is_empty(self) -> bool:
        return self.start is None and self.end is None


class StatRange(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    min: Optional[float] = None
    max: Optional[float] = None

    def is_empty(self) -> bool:
        return self.min is None and self.max is None


class UnifiedFilterState(BaseModel):
    """
    Everything a listing page can filter, sort and paginate by. The state is
    never mutated; handlers replace it with an updated copy.
    """
    model_config = ConfigDict(frozen=True)

    search: str = ""
    category: str = ALL_CATEGORIES
    tags: List[str] = Field(default_factory=list)
    sort: str = DEFAULT_SORT
    rarity: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    date_range: Optional[DateRange] = None
    stat_ranges: Dict[str, StatRange] = Field(default_factory=dict)
    boolean_filters: Dict[str, bool] = Field(default_factory=dict)
    page: int = Field(1, ge=1)

    # Empty values are indistinguishable from "no filter"; keep one canonical form.
    @field_validator("category")
    @classmethod
    def default_empty_category(cls, value: str) -> str:
        return value or ALL_CATEGORIES

    @field_validator("sort")
    @classmethod
    def default_empty_sort(cls, value: str) -> str:
        return value or DEFAULT_SORT

    @field_validator("rarity", "status", "type")
    @classmethod
    def drop_empty_choice(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: List[str]) -> List[str]:
        tags: List[str] = []
        for tag in value:
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @field_validator("date_range")
    @classmethod
    def drop_empty_date_range(cls, value: Optional[DateRange]) -> Optional[DateRange]:
        if value is not None and value.is_empty():
            return None
        return value

    @field_validator("stat_ranges")
    @classmethod
    def drop_empty_stat_ranges(cls, value: Dict[str, StatRange]) -> Dict[str, StatRange]:
        return {key: stat_range for key, stat_range in value.items() if key and not stat_range.is_empty()}

    @field_validator("boolean_filters")
    @classmethod
    def drop_unnamed_flags(cls, value: Dict[str, bool]) -> Dict[str, bool]:
        return {key: enabled for key, enabled in value.items() if key}

    def active_filter_count(self) -> int:
        """Number of active filters; sort order and page don't count."""
        count = 0
        if self.search.strip():
            count += 1
        if self.category != ALL_CATEGORIES:
            count += 1
        count += len(self.tags)
        count += sum(1 for value in (self.rarity, self.status, self.type) if value)
        if self.date_range is not None:
            count += 1
        count += len(self.stat_ranges)
        count += len(self.boolean_filters)
        return count

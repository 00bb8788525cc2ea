from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wikicontent.config import ISO_DATE_RE, UNIQUE_KEY_RE
from wikicontent.services.localization import get_localized_value

# Language code -> text. Always carries an 'en' entry.
LocalizedString = Dict[str, str]

# -ENUMS for validation and type safety
class ContentType(str, Enum):
    CHARACTER = "character"
    EVENT = "event"
    SWIMSUIT = "swimsuit"
    ITEM = "item"
    GUIDE = "guide"
    GACHA = "gacha"
    EPISODE = "episode"
    TOOL = "tool"
    ACCESSORY = "accessory"
    MISSION = "mission"
    QUIZ = "quiz"

    @property
    def collection(self) -> str:
        return COLLECTION_NAMES[self]

    @classmethod
    def from_collection(cls, name: str) -> "ContentType":
        """Accepts either the singular type ('event') or the collection name ('events')."""
        for content_type, collection in COLLECTION_NAMES.items():
            if name == collection or name == content_type.value:
                return content_type
        raise ValueError(f"Unknown content type: {name}")

COLLECTION_NAMES: Dict[ContentType, str] = {
    ContentType.CHARACTER: "characters",
    ContentType.EVENT: "events",
    ContentType.SWIMSUIT: "swimsuits",
    ContentType.ITEM: "items",
    ContentType.GUIDE: "guides",
    ContentType.GACHA: "gachas",
    ContentType.EPISODE: "episodes",
    ContentType.TOOL: "tools",
    ContentType.ACCESSORY: "accessories",
    ContentType.MISSION: "missions",
    ContentType.QUIZ: "quizzes",
}

class ContentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class Rarity(str, Enum):
    SSR = "SSR"
    SR = "SR"
    R = "R"
    N = "N"

class EventType(str, Enum):
    MAIN = "Main"
    DAILY = "Daily"
    EVENT = "Event"

class EventStatus(str, Enum):
    ACTIVE = "Active"
    UPCOMING = "Upcoming"
    ENDED = "Ended"

class GachaStatus(str, Enum):
    ACTIVE = "Active"
    COMING_SOON = "Coming Soon"
    ENDED = "Ended"

class EpisodeType(str, Enum):
    CHARACTER = "Character"
    GRAVURE = "Gravure"
    EVENT = "Event"
    EXTRA = "Extra"
    BROMIDE = "Bromide"

class EpisodeStatus(str, Enum):
    AVAILABLE = "Available"
    COMING_SOON = "Coming Soon"
    LIMITED = "Limited"

class ItemType(str, Enum):
    ACCESSORY = "Accessory"
    DECORATION = "Decoration"
    CONSUMABLE = "Consumable"
    MATERIAL = "Material"

class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

class MissionType(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    EVENT = "Event"
    OWNER = "Owner"

class ObtainMethod(str, Enum):
    EVENT = "Event"
    GACHA = "Gacha"
    SHOP = "Shop"
    QUEST = "Quest"
    LOGIN = "Login"

# Higher is rarer; used by the rarity sorts.
RARITY_ORDER: Dict[str, int] = {"SSR": 4, "SR": 3, "R": 2, "N": 1}
DIFFICULTY_ORDER: Dict[str, int] = {"Easy": 1, "Medium": 2, "Hard": 3}


# --- CONTENT RECORDS ---

class ContentRecord(BaseModel):
    """
    Fields shared by every content type. Records are immutable once parsed;
    enum fields are stored as their plain string values.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True, extra="ignore")

    id: int = Field(..., gt=0)
    unique_key: str = Field(..., min_length=1)
    updated_at: Optional[str] = None
    title: str = ""
    summary: str = ""
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    status: Optional[ContentStatus] = None
    related_ids: List[str] = Field(default_factory=list)
    image: Optional[str] = None

    @field_validator("unique_key")
    @classmethod
    def check_unique_key(cls, value: str) -> str:
        if not UNIQUE_KEY_RE.match(value):
            raise ValueError("unique_key must contain only lowercase letters, digits and dashes")
        return value

    @field_validator("updated_at")
    @classmethod
    def check_updated_at(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not ISO_DATE_RE.match(value):
            raise ValueError("updated_at must be an ISO date (YYYY-MM-DD)")
        return value

    def display_name(self, language: str = "en") -> str:
        """The human-readable name in the given language, English as fallback."""
        name = getattr(self, "name", None)
        if name:
            resolved = get_localized_value(name, language)
            if resolved:
                return resolved
        return self.title

    def localized_titles(self) -> List[str]:
        """Every non-empty translation of the display name."""
        name = getattr(self, "name", None) or {}
        values = [value for value in name.values() if value]
        if self.title and self.title not in values:
            values.append(self.title)
        return values


class LocalizedRecord(ContentRecord):
    """A record whose display name comes from a localized `name` field."""
    name: LocalizedString

    @field_validator("name")
    @classmethod
    def check_name(cls, value: LocalizedString) -> LocalizedString:
        if not value.get("en"):
            raise ValueError("name requires a non-empty English value")
        return value


class SwimsuitSkill(BaseModel):
    name: LocalizedString
    description: LocalizedString


class Character(LocalizedRecord):
    updated_at: str
    type: Rarity
    stats: Dict[str, float] = Field(default_factory=dict)
    age: Optional[LocalizedString] = None
    birthday: Optional[LocalizedString] = None
    height: Optional[LocalizedString] = None
    measurements: Optional[LocalizedString] = None
    blood_type: Optional[LocalizedString] = None
    job: Optional[LocalizedString] = None
    hobby: Optional[LocalizedString] = None
    food: Optional[LocalizedString] = None
    color: Optional[LocalizedString] = None
    cast: Optional[LocalizedString] = None


class Swimsuit(LocalizedRecord):
    updated_at: str
    rarity: Rarity
    character_id: str = Field(..., min_length=1)
    character: str = ""
    stats: Dict[str, float] = Field(default_factory=dict)
    skills: List[SwimsuitSkill] = Field(default_factory=list)
    max_level: Optional[int] = None
    base_pow: Optional[int] = None
    max_pow: Optional[int] = None
    base_tec: Optional[int] = None
    max_tec: Optional[int] = None
    base_stm: Optional[int] = None
    max_stm: Optional[int] = None
    base_apl: Optional[int] = None
    max_apl: Optional[int] = None
    pow_growth: Optional[float] = None
    tec_growth: Optional[float] = None
    stm_growth: Optional[float] = None
    apl_growth: Optional[float] = None


class Event(LocalizedRecord):
    updated_at: str
    description: Optional[LocalizedString] = None
    type: EventType
    event_status: EventStatus
    start_date: datetime
    end_date: datetime
    rewards: List[str] = Field(default_factory=list)
    how_to_participate: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    gacha_ids: List[str] = Field(default_factory=list)
    episode_ids: List[str] = Field(default_factory=list)
    mission_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_date_order(self) -> "Event":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Item(LocalizedRecord):
    updated_at: str
    description: Optional[LocalizedString] = None
    type: ItemType
    rarity: Rarity


class Guide(ContentRecord):
    updated_at: str
    localized_title: LocalizedString
    localized_summary: LocalizedString
    content_ref: Optional[str] = None
    difficulty: Difficulty
    read_time: Optional[str] = None
    topics: List[str] = Field(default_factory=list)

    def display_name(self, language: str = "en") -> str:
        return get_localized_value(self.localized_title, language) or self.title

    def localized_titles(self) -> List[str]:
        values = [value for value in self.localized_title.values() if value]
        if self.title and self.title not in values:
            values.append(self.title)
        return values


class Gacha(LocalizedRecord):
    gacha_status: GachaStatus
    start_date: datetime
    end_date: datetime
    rates: Dict[str, float] = Field(default_factory=lambda: {"ssr": 3.0, "sr": 17.0, "r": 80.0})
    pity_at: int = 100
    step_up: bool = False
    featured_swimsuits: List[str] = Field(default_factory=list)
    featured_characters: List[str] = Field(default_factory=list)


class Episode(LocalizedRecord):
    updated_at: str
    description: Optional[LocalizedString] = None
    type: EpisodeType
    episode_status: EpisodeStatus
    release_version: Optional[str] = None
    release_date: Optional[datetime] = None
    character_ids: List[str] = Field(default_factory=list)


class Tool(Guide):
    difficulty: Optional[Difficulty] = None
    windows_path: Optional[str] = None
    version: Optional[str] = None


class Accessory(LocalizedRecord):
    updated_at: str
    description: Optional[LocalizedString] = None
    effect: Optional[LocalizedString] = None
    rarity: Rarity
    obtain_method: Optional[ObtainMethod] = None
    obtain_source: Optional[str] = None
    character_ids: List[str] = Field(default_factory=list)
    stats: Optional[Dict[str, float]] = None


class Mission(LocalizedRecord):
    updated_at: str
    description: Optional[LocalizedString] = None
    type: MissionType
    event_id: Optional[str] = None
    objectives: List[str] = Field(default_factory=list)
    rewards: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)


class Quiz(LocalizedRecord):
    description: Optional[LocalizedString] = None
    difficulty: Difficulty = Field(Difficulty.EASY, validate_default=True)
    time_limit: int = 0
    question_count: int = 0
    questions_ref: str = ""


class RecordValidationIssue(BaseModel):
    """A dataset row that was dropped during parsing."""
    content_type: str
    row: int
    field: str
    message: str
    value: Optional[Any] = None


class ParseMetrics(BaseModel):
    row_count: int
    record_count: int
    parse_time_ms: float


# --- SEARCH ---

class SearchResult(BaseModel):
    type: ContentType
    id: int
    unique_key: str
    title: str
    subtitle: Optional[str] = None
    image: Optional[str] = None
    badge: Optional[str] = None
    url: str
    score: int
    item: Dict[str, Any]

class SearchResults(BaseModel):
    results: List[SearchResult]
    total: int
    has_more: bool
    search_time: float = Field(..., description="Time spent searching, in milliseconds.")

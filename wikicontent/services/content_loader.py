import asyncio
import csv
import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from wikicontent.dedup import RequestDeduplicator
from wikicontent.exceptions import ContentLoadError
from wikicontent.logging_setup import logger
from wikicontent.models import (
    Accessory, Character, ContentRecord, ContentType, Episode, Event, EventType, Gacha, Guide, Item,
    Mission, ParseMetrics, Quiz, RecordValidationIssue, Swimsuit, Tool,
)
from wikicontent.services.common import parse_csv, parse_json_records
from wikicontent.sources import ContentSource
from wikicontent.store import ContentCache

from wikicontent.services.entities.character import process_characters
from wikicontent.services.entities.event import process_events
from wikicontent.services.entities.swimsuit import process_swimsuits
from wikicontent.services.entities.item import process_items
from wikicontent.services.entities.guide import process_guides
from wikicontent.services.entities.gacha import process_gachas
from wikicontent.services.entities.episode import process_episodes
from wikicontent.services.entities.tool import process_tools
from wikicontent.services.entities.accessory import process_accessories
from wikicontent.services.entities.mission import process_missions
from wikicontent.services.entities.quiz import process_quizzes

Processor = Callable[[List[Dict[str, Any]]], Tuple[List[ContentRecord], List[RecordValidationIssue]]]

class CollectionSpec(NamedTuple):
    filename: str
    fmt: str  # "csv" or "json"
    processor: Processor

CONTENT_REGISTRY: Dict[ContentType, CollectionSpec] = {
    ContentType.CHARACTER: CollectionSpec("characters.csv", "csv", process_characters),
    ContentType.EVENT: CollectionSpec("events.csv", "csv", process_events),
    ContentType.SWIMSUIT: CollectionSpec("swimsuits.csv", "csv", process_swimsuits),
    ContentType.ITEM: CollectionSpec("items.csv", "csv", process_items),
    ContentType.GUIDE: CollectionSpec("guides.csv", "csv", process_guides),
    ContentType.GACHA: CollectionSpec("gachas.csv", "csv", process_gachas),
    ContentType.EPISODE: CollectionSpec("episodes.csv", "csv", process_episodes),
    ContentType.TOOL: CollectionSpec("tools.csv", "csv", process_tools),
    ContentType.ACCESSORY: CollectionSpec("accessories.csv", "csv", process_accessories),
    ContentType.MISSION: CollectionSpec("missions.csv", "csv", process_missions),
    ContentType.QUIZ: CollectionSpec("quizzes.json", "json", process_quizzes),
}

INITIALIZE_KEY = "initialize"


class ContentLoader:
    """
    Loads, validates and caches the wiki's content collections.

    Every collection is loaded at most once at a time: concurrent callers
    share the same in-flight task through the deduplicator, and a collection
    only becomes visible in the cache after it has been parsed completely.
    """

    def __init__(
        self,
        source: ContentSource,
        cache: Optional[ContentCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None,
    ):
        self.source = source
        self.cache = cache if cache is not None else ContentCache()
        self.deduplicator = deduplicator if deduplicator is not None else RequestDeduplicator()
        self._validation_errors: Dict[ContentType, List[RecordValidationIssue]] = {}
        self._parse_metrics: Dict[ContentType, ParseMetrics] = {}

    # --- LOADING ---

    @property
    def is_initialized(self) -> bool:
        return all(self.cache.has(content_type.collection) for content_type in ContentType)

    async def initialize(self) -> None:
        """
        Loads every collection. Safe to call repeatedly and concurrently; once
        everything is cached this returns without touching the source.
        """
        if self.is_initialized:
            return
        await asyncio.shield(self.deduplicator.dedupe(INITIALIZE_KEY, self._initialize_missing))

    async def _initialize_missing(self) -> None:
        missing = [t for t in ContentType if not self.cache.has(t.collection)]
        logger.info(f"Initializing content: {len(missing)} collection(s) to load")
        start_time = time.perf_counter()

        results = await asyncio.gather(*(self.load(t) for t in missing), return_exceptions=True)

        failures: List[ContentLoadError] = []
        for content_type, result in zip(missing, results):
            if isinstance(result, ContentLoadError):
                logger.error(f"Failed to load {content_type.collection}: {result.cause}")
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
        if failures:
            raise failures[0]

        logger.info(
            "Content initialized",
            extra={"collections": len(missing), "elapsed_ms": f"{(time.perf_counter() - start_time) * 1000:.2f}"},
        )

    async def load(self, content_type: ContentType) -> List[ContentRecord]:
        """Loads one collection on demand, returning the cached copy when present."""
        content_type = ContentType(content_type)
        cached = self.cache.get(content_type.collection)
        if cached is not None:
            return list(cached)
        task = self.deduplicator.dedupe(
            f"content:{content_type.collection}",
            lambda: self._load_collection(content_type),
        )
        return list(await asyncio.shield(task))

    async def _load_collection(self, content_type: ContentType) -> List[ContentRecord]:
        entry = CONTENT_REGISTRY[content_type]
        logger.info(f"Loading {content_type.collection} from {entry.filename}...")

        try:
            raw_text = await self.source.fetch(entry.filename)
        except Exception as e:
            raise ContentLoadError(content_type.value, e) from e

        start_time = time.perf_counter()
        try:
            rows = parse_csv(raw_text) if entry.fmt == "csv" else parse_json_records(raw_text)
        except (csv.Error, ValueError) as e:
            raise ContentLoadError(content_type.value, e) from e
        if not rows:
            raise ContentLoadError(content_type.value, ValueError(f"{entry.filename} contains no rows"))

        records, issues = entry.processor(rows)
        parse_time_ms = (time.perf_counter() - start_time) * 1000

        for issue in issues:
            logger.warning(
                f"Dropped invalid {content_type.value} row {issue.row}: {issue.field}: {issue.message}",
                extra={"content_type": content_type.value, "row": issue.row, "field": issue.field},
            )

        self._validation_errors[content_type] = issues
        self._parse_metrics[content_type] = ParseMetrics(
            row_count=len(rows), record_count=len(records), parse_time_ms=round(parse_time_ms, 3)
        )
        # Publish only the fully parsed collection.
        self.cache.set(content_type.collection, tuple(records))
        logger.info(
            f"Parsed {content_type.collection}: {len(records)}/{len(rows)} rows in {parse_time_ms:.2f}ms"
        )
        return records

    async def load_characters(self) -> List[Character]:
        return await self.load(ContentType.CHARACTER)

    async def load_events(self) -> List[Event]:
        return await self.load(ContentType.EVENT)

    async def load_swimsuits(self) -> List[Swimsuit]:
        return await self.load(ContentType.SWIMSUIT)

    async def load_items(self) -> List[Item]:
        return await self.load(ContentType.ITEM)

    async def load_guides(self) -> List[Guide]:
        return await self.load(ContentType.GUIDE)

    async def load_gachas(self) -> List[Gacha]:
        return await self.load(ContentType.GACHA)

    async def load_episodes(self) -> List[Episode]:
        return await self.load(ContentType.EPISODE)

    async def load_tools(self) -> List[Tool]:
        return await self.load(ContentType.TOOL)

    async def load_accessories(self) -> List[Accessory]:
        return await self.load(ContentType.ACCESSORY)

    async def load_missions(self) -> List[Mission]:
        return await self.load(ContentType.MISSION)

    async def load_quizzes(self) -> List[Quiz]:
        return await self.load(ContentType.QUIZ)

    def invalidate(self, content_type: ContentType) -> None:
        """Drops one collection so the next load refetches it."""
        content_type = ContentType(content_type)
        self.cache.invalidate(content_type.collection)
        self._validation_errors.pop(content_type, None)
        self._parse_metrics.pop(content_type, None)

    def clear_cache(self) -> None:
        """Forgets every collection and in-flight request; in-flight tasks still run to completion."""
        self.cache.clear()
        self.deduplicator.clear_all()
        self._validation_errors.clear()
        self._parse_metrics.clear()

    # --- GETTERS ---

    def get_collection(self, content_type: ContentType) -> List[ContentRecord]:
        """The cached collection, or an empty list when it isn't loaded."""
        return list(self.cache.get(ContentType(content_type).collection, ()))

    def get_characters(self) -> List[Character]:
        return self.get_collection(ContentType.CHARACTER)

    def get_events(self) -> List[Event]:
        return self.get_collection(ContentType.EVENT)

    def get_swimsuits(self) -> List[Swimsuit]:
        return self.get_collection(ContentType.SWIMSUIT)

    def get_items(self) -> List[Item]:
        return self.get_collection(ContentType.ITEM)

    def get_guides(self) -> List[Guide]:
        return self.get_collection(ContentType.GUIDE)

    def get_gachas(self) -> List[Gacha]:
        return self.get_collection(ContentType.GACHA)

    def get_episodes(self) -> List[Episode]:
        return self.get_collection(ContentType.EPISODE)

    def get_tools(self) -> List[Tool]:
        return self.get_collection(ContentType.TOOL)

    def get_accessories(self) -> List[Accessory]:
        return self.get_collection(ContentType.ACCESSORY)

    def get_missions(self) -> List[Mission]:
        return self.get_collection(ContentType.MISSION)

    def get_quizzes(self) -> List[Quiz]:
        return self.get_collection(ContentType.QUIZ)

    def get_festivals(self) -> List[Event]:
        """Festivals are the main events."""
        return [event for event in self.get_events() if event.type == EventType.MAIN.value]

    # --- LOOKUPS ---

    @staticmethod
    def _find_by_unique_key(records: Sequence[ContentRecord], unique_key: str) -> Optional[ContentRecord]:
        for record in records:
            if record.unique_key == unique_key:
                return record
        return None

    def get_by_unique_key(self, content_type: ContentType, unique_key: str) -> Optional[ContentRecord]:
        return self._find_by_unique_key(self.cache.get(ContentType(content_type).collection, ()), unique_key)

    def get_by_id(self, content_type: ContentType, record_id: int) -> Optional[ContentRecord]:
        for record in self.cache.get(ContentType(content_type).collection, ()):
            if record.id == record_id:
                return record
        return None

    def get_character_by_unique_key(self, unique_key: str) -> Optional[Character]:
        return self.get_by_unique_key(ContentType.CHARACTER, unique_key)

    def get_event_by_unique_key(self, unique_key: str) -> Optional[Event]:
        return self.get_by_unique_key(ContentType.EVENT, unique_key)

    def get_swimsuit_by_unique_key(self, unique_key: str) -> Optional[Swimsuit]:
        return self.get_by_unique_key(ContentType.SWIMSUIT, unique_key)

    def get_item_by_unique_key(self, unique_key: str) -> Optional[Item]:
        return self.get_by_unique_key(ContentType.ITEM, unique_key)

    def get_guide_by_unique_key(self, unique_key: str) -> Optional[Guide]:
        return self.get_by_unique_key(ContentType.GUIDE, unique_key)

    def get_gacha_by_unique_key(self, unique_key: str) -> Optional[Gacha]:
        return self.get_by_unique_key(ContentType.GACHA, unique_key)

    def get_episode_by_unique_key(self, unique_key: str) -> Optional[Episode]:
        return self.get_by_unique_key(ContentType.EPISODE, unique_key)

    def get_tool_by_unique_key(self, unique_key: str) -> Optional[Tool]:
        return self.get_by_unique_key(ContentType.TOOL, unique_key)

    def get_accessory_by_unique_key(self, unique_key: str) -> Optional[Accessory]:
        return self.get_by_unique_key(ContentType.ACCESSORY, unique_key)

    def get_mission_by_unique_key(self, unique_key: str) -> Optional[Mission]:
        return self.get_by_unique_key(ContentType.MISSION, unique_key)

    def get_quiz_by_unique_key(self, unique_key: str) -> Optional[Quiz]:
        return self.get_by_unique_key(ContentType.QUIZ, unique_key)

    def get_festival_by_unique_key(self, unique_key: str) -> Optional[Event]:
        return self._find_by_unique_key(self.get_festivals(), unique_key)

    # --- COLLECTION HELPERS ---

    @staticmethod
    def get_related_content(record: ContentRecord, candidates: Sequence[ContentRecord]) -> List[ContentRecord]:
        """Candidates whose unique_key appears in the record's related_ids."""
        if not record.related_ids:
            return []
        related = set(record.related_ids)
        return [candidate for candidate in candidates if candidate.unique_key in related]

    @staticmethod
    def get_content_by_category(records: Sequence[ContentRecord], category: str) -> List[ContentRecord]:
        return [record for record in records if record.category == category]

    @staticmethod
    def get_content_by_tag(records: Sequence[ContentRecord], tag: str) -> List[ContentRecord]:
        return [record for record in records if tag in record.tags]

    def get_validation_errors(self, content_type: Optional[ContentType] = None) -> List[RecordValidationIssue]:
        if content_type is not None:
            return list(self._validation_errors.get(ContentType(content_type), []))
        return [issue for issues in self._validation_errors.values() for issue in issues]

    def get_parse_metrics(self) -> Dict[str, ParseMetrics]:
        return {content_type.collection: metrics for content_type, metrics in self._parse_metrics.items()}

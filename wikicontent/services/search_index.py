import time
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from wikicontent.config import DEFAULT_LANGUAGE, DETAIL_ROUTE_PREFIXES, SEARCH_DEFAULT_LIMIT, SUPPORTED_LANGUAGES
from wikicontent.exceptions import SearchIndexNotReadyError
from wikicontent.logging_setup import logger
from wikicontent.models import ContentRecord, ContentType, SearchResult, SearchResults
from wikicontent.services.content_loader import ContentLoader
from wikicontent.services.localization import normalize_language
from wikicontent.textual_manipulation import index_terms, normalize_text, tokenize

# Relevance tiers, highest wins.
SCORE_EXACT = 4
SCORE_PREFIX = 3
SCORE_SUBSTRING = 2
SCORE_SECONDARY = 1

TYPE_ORDER: Dict[ContentType, int] = {content_type: position for position, content_type in enumerate(ContentType)}


def _secondary_texts(record: ContentRecord) -> List[str]:
    """Non-title text that should still make a record findable."""
    texts: List[str] = [record.unique_key.replace("-", " ")]
    texts.extend(record.tags)
    for attribute in ("character", "topics", "type", "rarity", "event_status", "gacha_status",
                      "episode_status", "difficulty", "obtain_method"):
        value = getattr(record, attribute, None)
        if isinstance(value, str):
            texts.append(value)
        elif isinstance(value, list):
            texts.extend(str(v) for v in value)
    localized_summary = getattr(record, "localized_summary", None)
    if localized_summary:
        texts.extend(v for v in localized_summary.values() if v)
    elif record.summary:
        texts.append(record.summary)
    return texts


class SearchIndex:
    """
    Inverted index for one content type: term -> positions of the records
    containing it. Terms include every forward prefix of every token.
    """

    def __init__(self, content_type: ContentType):
        self.content_type = content_type
        self.records: List[ContentRecord] = []
        self.terms: Dict[str, Set[int]] = defaultdict(set)
        self.record_tokens: List[Set[str]] = []
        self.titles: List[List[str]] = []

    def add(self, record: ContentRecord) -> None:
        position = len(self.records)
        self.records.append(record)

        titles = record.localized_titles()
        for lang in SUPPORTED_LANGUAGES:
            titles.append(record.display_name(lang))
        normalized_titles = list(dict.fromkeys(t for t in (normalize_text(title) for title in titles) if t))
        # Scored as token sequences; punctuation never changes the tier.
        title_texts = (" ".join(tokenize(title)) for title in normalized_titles)
        self.titles.append(list(dict.fromkeys(t for t in title_texts if t)))

        texts = normalized_titles + _secondary_texts(record)
        terms = index_terms(texts)
        self.record_tokens.append(terms)
        for term in terms:
            self.terms[term].add(position)

    def candidates(self, query_tokens: Sequence[str]) -> Set[int]:
        found: Set[int] = set()
        for token in query_tokens:
            found |= self.terms.get(token, set())
        return found

    def __len__(self) -> int:
        return len(self.records)


def _score(query_text: str, titles: Iterable[str]) -> int:
    best = SCORE_SECONDARY
    for title in titles:
        if title == query_text:
            return SCORE_EXACT
        if title.startswith(query_text):
            best = max(best, SCORE_PREFIX)
        elif query_text in title:
            best = max(best, SCORE_SUBSTRING)
    return best


# Type specific (subtitle, badge) pair for each search result.
RESULT_DECORATORS: Dict[ContentType, Callable[[ContentRecord], Tuple[Optional[str], Optional[str]]]] = {
    ContentType.CHARACTER: lambda r: (None, r.type),
    ContentType.SWIMSUIT: lambda r: (r.character or None, r.rarity),
    ContentType.EVENT: lambda r: (r.type, r.event_status),
    ContentType.GACHA: lambda r: (None, r.gacha_status),
    ContentType.GUIDE: lambda r: (f"{r.difficulty} • {r.read_time}" if r.read_time else r.difficulty, r.difficulty),
    ContentType.ITEM: lambda r: (r.type, r.rarity),
    ContentType.EPISODE: lambda r: (r.type, r.episode_status),
    ContentType.TOOL: lambda r: (r.version, None),
    ContentType.ACCESSORY: lambda r: (r.obtain_method, r.rarity),
    ContentType.MISSION: lambda r: (r.type, None),
    ContentType.QUIZ: lambda r: (r.difficulty, r.difficulty),
}


class SearchIndexService:
    """
    Full-text search over every loaded content type.

    `build_indexes` replaces the whole index set in one assignment, so a
    search never sees a half-built index. Concurrent rebuilds are not
    coordinated; the last one to finish wins.
    """

    def __init__(self, loader: ContentLoader):
        self.loader = loader
        self._indexes: Dict[ContentType, SearchIndex] = {}

    @property
    def is_ready(self) -> bool:
        return bool(self._indexes)

    async def build_indexes(self, types: Optional[Iterable[ContentType]] = None) -> None:
        if types is None:
            if not self.loader.is_initialized:
                raise SearchIndexNotReadyError("Content must be loaded before building search indexes.")
            targets = list(ContentType)
            new_indexes: Dict[ContentType, SearchIndex] = {}
        else:
            targets = [ContentType(t) for t in types]
            new_indexes = dict(self._indexes)
            missing = [t.collection for t in targets if not self.loader.cache.has(t.collection)]
            if missing:
                raise SearchIndexNotReadyError(f"Collections not loaded: {', '.join(missing)}")

        start_time = time.perf_counter()
        for content_type in targets:
            index = SearchIndex(content_type)
            for record in self.loader.get_collection(content_type):
                index.add(record)
            new_indexes[content_type] = index

        self._indexes = new_indexes
        logger.info(
            f"Search indexes built for {len(targets)} type(s) in {(time.perf_counter() - start_time) * 1000:.2f}ms",
            extra={"documents": sum(len(index) for index in new_indexes.values())},
        )

    def clear_indexes(self) -> None:
        self._indexes = {}

    def _ranked_matches(self, query: str, types: Optional[Iterable[ContentType]]) -> List[Tuple[ContentType, ContentRecord, int]]:
        query_tokens = tokenize(query)
        if not query_tokens:
            return []
        query_text = " ".join(query_tokens)
        selected = [ContentType(t) for t in types] if types else list(ContentType)

        scored = []
        for content_type in selected:
            index = self._indexes.get(content_type)
            if index is None:
                continue
            for position in index.candidates(query_tokens):
                record_tokens = index.record_tokens[position]
                matched = sum(1 for token in query_tokens if token in record_tokens)
                score = _score(query_text, index.titles[position])
                sort_key = (-score, -matched, TYPE_ORDER[content_type], position)
                scored.append((sort_key, content_type, index.records[position], score))

        scored.sort(key=lambda entry: entry[0])
        return [(content_type, record, score) for _, content_type, record, score in scored]

    def search(
        self,
        query: str,
        limit: int = SEARCH_DEFAULT_LIMIT,
        offset: int = 0,
        types: Optional[Iterable[ContentType]] = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> SearchResults:
        """
        Ranked search across the selected types. Exact title matches come
        first, then title prefixes, title substrings and finally matches on
        tags and other secondary fields.
        """
        start_time = time.perf_counter()
        language = normalize_language(language)
        limit = max(limit, 0)
        offset = max(offset, 0)

        matches = self._ranked_matches(query or "", types)
        page = matches[offset:offset + limit]
        results = [self._to_result(content_type, record, score, language) for content_type, record, score in page]

        return SearchResults(
            results=results,
            total=len(matches),
            has_more=offset + limit < len(matches),
            search_time=round((time.perf_counter() - start_time) * 1000, 3),
        )

    def get_type_counts(self, query: str) -> Dict[str, int]:
        """Number of matches per content type, plus 'all'."""
        query_tokens = tokenize(query or "")
        counts: Dict[str, int] = {}
        for content_type in ContentType:
            index = self._indexes.get(content_type)
            counts[content_type.value] = len(index.candidates(query_tokens)) if index and query_tokens else 0
        counts["all"] = sum(counts.values())
        return counts

    @staticmethod
    def _to_result(content_type: ContentType, record: ContentRecord, score: int, language: str) -> SearchResult:
        subtitle, badge = RESULT_DECORATORS[content_type](record)
        return SearchResult(
            type=content_type,
            id=record.id,
            unique_key=record.unique_key,
            title=record.display_name(language),
            subtitle=subtitle,
            image=record.image,
            badge=badge,
            url=f"{DETAIL_ROUTE_PREFIXES[content_type.value]}/{record.unique_key}",
            score=score,
            item=record.model_dump(mode="json"),
        )

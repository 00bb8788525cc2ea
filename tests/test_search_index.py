import asyncio

import pytest

from wikicontent.exceptions import SearchIndexNotReadyError
from wikicontent.models import ContentType
from wikicontent.services.search_index import (
    SCORE_EXACT, SCORE_PREFIX, SCORE_SECONDARY, SCORE_SUBSTRING, SearchIndexService,
)


class TestSearchRanking:
    """Tests for ranked search results."""

    def test_character_search_ranks_exact_before_partial(self, search_service):
        results = search_service.search("kasumi", types=[ContentType.CHARACTER])

        assert {r.type for r in results.results} == {"character"}
        assert [r.unique_key for r in results.results] == ["kasumi", "kasumi-alpha", "mist-kasumi"]
        assert [r.score for r in results.results] == [SCORE_EXACT, SCORE_PREFIX, SCORE_SUBSTRING]
        assert results.total == 3
        assert results.has_more is False

    def test_all_types_are_searched_by_default(self, search_service):
        results = search_service.search("kasumi")
        keys = [(r.type, r.unique_key) for r in results.results]
        assert keys == [
            ("character", "kasumi"),
            ("character", "kasumi-alpha"),
            ("gacha", "kasumi-summer-gacha"),
            ("character", "mist-kasumi"),
            ("swimsuit", "venus-wave"),
            ("swimsuit", "blooming-lotus"),
        ]
        assert results.results[-1].score == SCORE_SECONDARY

    def test_query_matching_more_tokens_wins(self, search_service):
        results = search_service.search("kasumi alpha", types=[ContentType.CHARACTER])
        assert results.results[0].unique_key == "kasumi-alpha"
        assert results.results[0].score == SCORE_EXACT

    @pytest.mark.parametrize("query", ["Kasumi!", "  kasumi... ", "kasumi-alpha"])
    def test_punctuation_does_not_lower_the_tier(self, search_service, query):
        results = search_service.search(query, types=[ContentType.CHARACTER])
        assert results.results[0].score == SCORE_EXACT

    @pytest.mark.parametrize("query", ["kas", "KASUMI", "ＫＡＳＵＭＩ", "kásumi"])
    def test_prefix_case_and_width_variants(self, search_service, query):
        results = search_service.search(query, types=[ContentType.CHARACTER])
        assert results.results[0].unique_key == "kasumi"

    def test_japanese_title_matches_and_localizes(self, search_service):
        results = search_service.search("かすみ", types=["character"], language="jp")
        assert [r.unique_key for r in results.results] == ["kasumi"]
        assert results.results[0].title == "かすみ"

    def test_empty_query_returns_nothing(self, search_service):
        results = search_service.search("   ")
        assert results.results == []
        assert results.total == 0


class TestSearchResults:
    """Tests for result shape and paging."""

    def test_result_fields(self, search_service):
        kasumi = search_service.search("kasumi", types=[ContentType.CHARACTER]).results[0]
        assert kasumi.url == "/girls/kasumi"
        assert kasumi.badge == "SSR"
        assert kasumi.title == "Kasumi"
        assert kasumi.item["unique_key"] == "kasumi"

        gacha = search_service.search("summer gacha", types=[ContentType.GACHA]).results[0]
        assert gacha.url == "/gachas/kasumi-summer-gacha"
        assert gacha.badge == "Active"

    def test_limit_and_offset(self, search_service):
        first_page = search_service.search("kasumi", limit=2)
        assert len(first_page.results) == 2
        assert first_page.total == 6
        assert first_page.has_more is True

        last_page = search_service.search("kasumi", limit=2, offset=5)
        assert [r.unique_key for r in last_page.results] == ["blooming-lotus"]
        assert last_page.has_more is False
        assert last_page.search_time >= 0

    def test_type_counts(self, search_service):
        counts = search_service.get_type_counts("kasumi")
        assert counts["character"] == 3
        assert counts["swimsuit"] == 2
        assert counts["gacha"] == 1
        assert counts["event"] == 0
        assert counts["all"] == 6
        assert search_service.get_type_counts("")["all"] == 0


class TestIndexLifecycle:
    """Tests for building and clearing indexes."""

    def test_build_requires_loaded_content(self, loader):
        service = SearchIndexService(loader)
        with pytest.raises(SearchIndexNotReadyError):
            asyncio.run(service.build_indexes())
        assert not service.is_ready

    def test_partial_rebuild_picks_up_reloaded_collection(self, search_service, loaded_loader, source):
        source.files["characters.csv"] = source.files["characters.csv"].replace("Mist Kasumi", "Mist Ayane")
        loaded_loader.invalidate(ContentType.CHARACTER)

        async def reload():
            await loaded_loader.load_characters()
            await search_service.build_indexes(types=[ContentType.CHARACTER])

        asyncio.run(reload())
        results = search_service.search("kasumi", types=[ContentType.CHARACTER]).results
        # Only the unique key still mentions kasumi.
        assert results[-1].unique_key == "mist-kasumi"
        assert results[-1].score == SCORE_SECONDARY
        assert results[-1].title == "Mist Ayane"
        # Other types keep their existing index.
        assert search_service.get_type_counts("kasumi")["gacha"] == 1

    def test_clear_indexes(self, search_service):
        search_service.clear_indexes()
        assert not search_service.is_ready
        assert search_service.search("kasumi").total == 0

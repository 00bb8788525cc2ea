import asyncio

import pytest

from conftest import FakeSource, build_datasets, to_csv
from wikicontent.exceptions import ContentLoadError
from wikicontent.models import ContentType
from wikicontent.services.content_loader import CONTENT_REGISTRY, ContentLoader
from wikicontent.store import ContentCache


class TestInitialize:
    """Tests for loading every collection."""

    def test_concurrent_initialize_fetches_each_dataset_once(self, source):
        loader = ContentLoader(source)

        async def scenario():
            await asyncio.gather(loader.initialize(), loader.initialize())
            return await asyncio.gather(loader.load_events(), loader.load_events())

        first, second = asyncio.run(scenario())
        assert len(first) == 12
        assert first == second
        assert source.fetch_counts["events.csv"] == 1
        assert all(count == 1 for count in source.fetch_counts.values())
        assert loader.is_initialized

    def test_initialize_after_load_does_not_refetch(self, loaded_loader, source):
        asyncio.run(loaded_loader.initialize())
        assert sum(source.fetch_counts.values()) == len(CONTENT_REGISTRY)

    def test_failed_collection_raises_and_others_stay_cached(self, datasets):
        source = FakeSource(datasets, failing=["events.csv"])
        loader = ContentLoader(source)

        with pytest.raises(ContentLoadError) as exc_info:
            asyncio.run(loader.initialize())

        assert exc_info.value.content_type == "event"
        assert isinstance(exc_info.value.cause, OSError)
        assert not loader.is_initialized
        assert loader.get_events() == []
        assert len(loader.get_characters()) == 5

        # Only the failed collection is fetched again on retry.
        source.failing.clear()
        asyncio.run(loader.initialize())
        assert loader.is_initialized
        assert source.fetch_counts["events.csv"] == 2
        assert source.fetch_counts["characters.csv"] == 1

    def test_empty_dataset_is_a_load_error(self):
        source = FakeSource(build_datasets({"missions.csv": "id,unique_key,name_en\n"}))
        loader = ContentLoader(source)
        with pytest.raises(ContentLoadError, match="no rows"):
            asyncio.run(loader.load(ContentType.MISSION))
        assert not loader.cache.has("missions")

    def test_malformed_json_is_a_load_error(self):
        source = FakeSource(build_datasets({"quizzes.json": "{not json"}))
        loader = ContentLoader(source)
        with pytest.raises(ContentLoadError):
            asyncio.run(loader.load_quizzes())


class TestRecordValidation:
    """Bad rows are dropped and reported, never raised."""

    def test_row_without_unique_key_is_dropped(self, loaded_loader):
        items = loaded_loader.get_items()
        assert [item.unique_key for item in items] == ["power-drink", "gold-seashell"]

        issues = loaded_loader.get_validation_errors(ContentType.ITEM)
        assert len(issues) == 1
        assert issues[0].field == "unique_key"
        assert issues[0].row == 3

    def test_parse_metrics_count_rows_and_records(self, loaded_loader):
        metrics = loaded_loader.get_parse_metrics()
        assert metrics["items"].row_count == 3
        assert metrics["items"].record_count == 2
        assert metrics["events"].record_count == 12

    def test_duplicate_unique_key_keeps_first(self):
        rows = [
            {"id": 1, "unique_key": "daily-login", "name_en": "First", "type": "Daily", "updated_at": "2024-01-01"},
            {"id": 2, "unique_key": "daily-login", "name_en": "Second", "type": "Daily", "updated_at": "2024-01-02"},
        ]
        loader = ContentLoader(FakeSource(build_datasets({"missions.csv": to_csv(rows)})))
        missions = asyncio.run(loader.load_missions())
        assert [m.title for m in missions] == ["First"]
        assert loader.get_validation_errors(ContentType.MISSION)[0].value == "daily-login"

    def test_all_rows_invalid_yields_empty_collection(self):
        rows = [{"id": 1, "unique_key": "Bad Key", "name_en": "Broken", "type": "Daily", "updated_at": "2024-01-01"}]
        loader = ContentLoader(FakeSource(build_datasets({"missions.csv": to_csv(rows)})))
        assert asyncio.run(loader.load_missions()) == []
        assert loader.cache.has("missions")


class TestGettersAndLookups:
    """Tests for the synchronous accessors."""

    def test_getters_are_empty_before_loading(self, loader):
        assert loader.get_characters() == []
        assert loader.get_by_unique_key(ContentType.CHARACTER, "kasumi") is None

    def test_lookup_by_unique_key_and_id(self, loaded_loader):
        kasumi = loaded_loader.get_character_by_unique_key("kasumi")
        assert kasumi.display_name("jp") == "かすみ"
        assert loaded_loader.get_by_id(ContentType.CHARACTER, 1) == kasumi
        assert loaded_loader.get_by_id(ContentType.CHARACTER, 999) is None
        assert loaded_loader.get_gacha_by_unique_key("kasumi-summer-gacha") is not None
        assert loaded_loader.get_quiz_by_unique_key("character-trivia").difficulty == "Medium"

    def test_festivals_are_main_events(self, loaded_loader):
        festivals = loaded_loader.get_festivals()
        assert [f.unique_key for f in festivals] == ["event-3", "event-6", "event-9", "event-12"]
        assert loaded_loader.get_festival_by_unique_key("event-3") is not None
        assert loaded_loader.get_festival_by_unique_key("event-1") is None

    def test_returned_lists_are_copies(self, loaded_loader):
        loaded_loader.get_characters().clear()
        assert len(loaded_loader.get_characters()) == 5

    def test_related_category_and_tag_helpers(self, loaded_loader):
        characters = loaded_loader.get_characters()
        kasumi = loaded_loader.get_character_by_unique_key("kasumi")
        related = ContentLoader.get_related_content(kasumi, characters)
        assert [r.unique_key for r in related] == ["ayane", "kasumi-alpha"]
        assert len(ContentLoader.get_content_by_category(characters, "Characters")) == 5
        assert [c.unique_key for c in ContentLoader.get_content_by_tag(characters, "Ninja")] == ["kasumi", "ayane"]


class TestCacheControl:
    """Tests for invalidation."""

    def test_invalidate_refetches_one_collection(self, loaded_loader, source):
        loaded_loader.invalidate(ContentType.CHARACTER)
        assert not loaded_loader.is_initialized
        asyncio.run(loaded_loader.load_characters())
        assert source.fetch_counts["characters.csv"] == 2
        assert source.fetch_counts["events.csv"] == 1

    def test_clear_cache_forgets_everything(self, loaded_loader):
        loaded_loader.clear_cache()
        assert loaded_loader.cache.size() == 0
        assert loaded_loader.get_validation_errors() == []
        assert loaded_loader.get_parse_metrics() == {}

    def test_shared_cache_is_used(self, source):
        cache = ContentCache()
        loader = ContentLoader(source, cache=cache)
        asyncio.run(loader.load(ContentType.EVENT))
        assert cache.has("events")
        assert len(cache.get("events")) == 12

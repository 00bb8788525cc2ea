"""
Pytest fixtures for the wiki content tests: an in-memory content source
that counts fetches, small datasets for every collection, and a loaded
loader / search service built on top of them.
"""
import asyncio
import csv
import io
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

import orjson
import pytest

from wikicontent.services.content_loader import ContentLoader
from wikicontent.services.search_index import SearchIndexService


def to_csv(rows: List[Dict[str, Any]]) -> str:
    """Writes dict rows as CSV; the header is the union of every row's keys."""
    fieldnames: List[str] = []
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, restval="")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


class FakeSource:
    """
    In-memory ContentSource. Every fetch yields to the event loop first so
    concurrent callers really overlap.
    """

    def __init__(self, files: Dict[str, str], failing: Optional[Iterable[str]] = None, delay: float = 0.01):
        self.files = dict(files)
        self.failing = set(failing or ())
        self.delay = delay
        self.fetch_counts: Counter = Counter()

    async def fetch(self, filename: str) -> str:
        self.fetch_counts[filename] += 1
        await asyncio.sleep(self.delay)
        if filename in self.failing:
            raise OSError(f"{filename} is unavailable")
        return self.files[filename]


def character_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "kasumi", "name_en": "Kasumi", "name_jp": "かすみ", "type": "SSR",
         "stats": '{"POW": 85, "TEC": 92, "STM": 78}', "updated_at": "2024-05-01",
         "related_ids": "ayane|kasumi-alpha", "tags": "Ninja"},
        {"id": 2, "unique_key": "ayane", "name_en": "Ayane", "name_jp": "あやね", "type": "SSR",
         "stats": '{"POW": 80, "TEC": 95, "STM": 70}', "updated_at": "2024-04-20", "tags": "Ninja"},
        {"id": 3, "unique_key": "kasumi-alpha", "name_en": "Kasumi Alpha", "type": "SR",
         "stats": '{"POW": 70, "TEC": 75, "STM": 72}', "updated_at": "2024-03-15"},
        {"id": 4, "unique_key": "mist-kasumi", "name_en": "Mist Kasumi", "type": "R",
         "stats": '{"POW": 50, "TEC": 55, "STM": 60}', "updated_at": "2024-02-01"},
        {"id": 5, "unique_key": "honoka", "name_en": "Honoka", "type": "SSR",
         "updated_at": "2024-05-10"},
    ]

def event_rows(count: int = 12) -> List[Dict[str, Any]]:
    rows = []
    for index in range(1, count + 1):
        rows.append({
            "id": index,
            "unique_key": f"event-{index}",
            "name_en": f"Event {index}",
            "type": "Main" if index % 3 == 0 else "Event",
            "event_status": "Ended" if index < 6 else "Active",
            "start_date": f"2024-{index:02d}-01",
            "end_date": f"2024-{index:02d}-20",
            "updated_at": f"2024-{index:02d}-01",
        })
    return rows

def swimsuit_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "venus-wave", "name_en": "Venus Wave", "rarity": "SSR", "character_id": "kasumi",
         "stats": '{"POW": 3200, "TEC": 2800, "STM": 2600}', "updated_at": "2024-05-02"},
        {"id": 2, "unique_key": "blooming-lotus", "name_en": "Blooming Lotus", "rarity": "SSR", "character_id": "kasumi",
         "stats": '{"POW": 3000, "TEC": 2900, "STM": 2500}', "updated_at": "2024-04-02"},
        {"id": 3, "unique_key": "violet-tide", "name_en": "Violet Tide", "rarity": "SR", "character_id": "ayane",
         "stats": '{"POW": 2100, "TEC": 2500, "STM": 1900}', "updated_at": "2024-04-22"},
        {"id": 4, "unique_key": "coral-reef", "name_en": "Coral Reef", "rarity": "SSR", "character_id": "honoka",
         "stats": '{"POW": 3100, "TEC": 2700, "STM": 2900}', "updated_at": "2024-01-12"},
    ]

def item_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "power-drink", "name_en": "Power Drink", "type": "Consumable", "rarity": "R",
         "updated_at": "2024-02-10"},
        {"id": 2, "unique_key": "", "name_en": "Nameless Shell", "type": "Material", "rarity": "SR",
         "updated_at": "2024-03-05"},
        {"id": 3, "unique_key": "gold-seashell", "name_en": "Gold Seashell", "type": "Material", "rarity": "SSR",
         "updated_at": "2024-04-01"},
    ]

def guide_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "beginner-guide", "title_en": "Beginner Guide", "summary_en": "First steps",
         "difficulty": "Easy", "topics": "Basics|Gems", "updated_at": "2024-01-15"},
    ]

def gacha_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "slug": "kasumi-summer-gacha", "name_en": "Kasumi Summer Gacha", "gacha_status": "Active",
         "start_date": "2024-07-01", "end_date": "2024-07-15", "rates_ssr": "3.5", "step_up": "true"},
        {"id": 2, "unique_key": "standard-gacha", "name_en": "Standard Gacha", "gacha_status": "Active",
         "start_date": "2024-01-01T00:00:00Z", "end_date": "2025-12-31", "step_up": "false"},
    ]

def episode_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "ayane-episode-1", "name_en": "Ayane's Summer", "type": "Character",
         "episode_status": "Available", "character_ids": "ayane", "updated_at": "2024-07-01"},
    ]

def tool_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "damage-calculator", "title_en": "Damage Calculator", "summary_en": "Estimate appeal",
         "version": "2.1", "updated_at": "2024-05-05"},
    ]

def accessory_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "lotus-hairpin", "name_en": "Lotus Hairpin", "rarity": "SSR", "obtain_method": "Gacha",
         "stats": '{"TEC": 120}', "updated_at": "2024-07-01"},
        {"id": 2, "unique_key": "shell-bracelet", "name_en": "Shell Bracelet", "rarity": "N", "obtain_method": "Shop",
         "stats": "{broken", "updated_at": "2024-02-01"},
    ]

def mission_rows() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "daily-login", "name_en": "Daily Login", "type": "Daily", "updated_at": "2024-01-01"},
    ]

def quiz_records() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "unique_key": "character-trivia", "name": {"en": "Character Trivia", "jp": "キャラクタークイズ"},
         "description": {"en": "How well do you know the girls?"}, "difficulty": "Medium",
         "tags": ["Trivia"], "time_limit": 120, "question_count": 10, "status": "published"},
    ]


def build_datasets(overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Raw dataset files keyed by filename; `overrides` replaces single files."""
    datasets = {
        "characters.csv": to_csv(character_rows()),
        "events.csv": to_csv(event_rows()),
        "swimsuits.csv": to_csv(swimsuit_rows()),
        "items.csv": to_csv(item_rows()),
        "guides.csv": to_csv(guide_rows()),
        "gachas.csv": to_csv(gacha_rows()),
        "episodes.csv": to_csv(episode_rows()),
        "tools.csv": to_csv(tool_rows()),
        "accessories.csv": to_csv(accessory_rows()),
        "missions.csv": to_csv(mission_rows()),
        "quizzes.json": orjson.dumps(quiz_records()).decode(),
    }
    datasets.update(overrides or {})
    return datasets


@pytest.fixture
def datasets():
    return build_datasets()

@pytest.fixture
def source(datasets):
    return FakeSource(datasets)

@pytest.fixture
def loader(source):
    return ContentLoader(source)

@pytest.fixture
def loaded_loader(loader):
    asyncio.run(loader.initialize())
    return loader

@pytest.fixture
def search_service(loaded_loader):
    service = SearchIndexService(loaded_loader)
    asyncio.run(service.build_indexes())
    return service

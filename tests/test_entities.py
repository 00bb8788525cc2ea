from datetime import datetime

import pytest

from wikicontent.models import ContentType, Gacha
from wikicontent.services.common import (
    humanize_key, localized_from_row, parse_array, parse_boolean, parse_csv, parse_date, parse_int, parse_json_records,
)
from wikicontent.services.entities.accessory import process_accessories
from wikicontent.services.entities.character import process_characters, transform_character
from wikicontent.services.entities.event import process_events
from wikicontent.services.entities.gacha import process_gachas
from wikicontent.services.entities.guide import process_guides
from wikicontent.services.entities.quiz import process_quizzes
from wikicontent.services.entities.swimsuit import process_swimsuits


class TestParsingHelpers:
    """Tests for the low level dataset parsers."""

    def test_parse_csv_trims_and_skips_blank_rows(self):
        text = "\ufeffid , unique_key,name_en\n1, kasumi ,Kasumi\n,,\n2,ayane,\"Ayane, the ninja\"\n"
        rows = parse_csv(text)
        assert rows == [
            {"id": "1", "unique_key": "kasumi", "name_en": "Kasumi"},
            {"id": "2", "unique_key": "ayane", "name_en": "Ayane, the ninja"},
        ]

    def test_parse_json_records_accepts_wrapped_payload(self):
        assert parse_json_records('{"data": [{"id": 1}, 5]}') == [{"id": 1}]
        with pytest.raises(ValueError):
            parse_json_records('{"id": 1}')

    @pytest.mark.parametrize("value, expected", [
        ("a|b| c ", ["a", "b", "c"]),
        ('["x", "y"]', ["x", "y"]),
        (["x", ""], ["x"]),
        ("", []),
        (None, []),
    ])
    def test_parse_array(self, value, expected):
        assert parse_array(value) == expected

    def test_scalar_parsers(self):
        assert parse_int("42") == 42
        assert parse_int("3.0") == 3
        assert parse_int("") is None
        assert parse_boolean("TRUE") is True
        assert parse_boolean("no") is False
        assert humanize_key("marie-rose") == "Marie Rose"

    def test_parse_date_normalizes_to_naive_utc(self):
        assert parse_date("2024-07-01") == datetime(2024, 7, 1)
        assert parse_date("2024-07-01T09:00:00+09:00") == datetime(2024, 7, 1, 0, 0)
        assert parse_date("") is None
        with pytest.raises(ValueError):
            parse_date("07/01/2024")

    def test_localized_from_row_falls_back_to_bare_column(self):
        row = {"name": "Kasumi", "name_cn": "霞"}
        assert localized_from_row(row, "name") == {"en": "Kasumi", "jp": "Kasumi", "cn": "霞"}
        assert localized_from_row({}, "name") == {"en": ""}


class TestCharacterRows:
    """Tests for character dataset rows."""

    def test_transform_builds_localized_profile(self):
        fields = transform_character({
            "id": "1", "unique_key": "kasumi", "name_en": "Kasumi", "name_jp": "かすみ", "type": "SSR",
            "stats": '{"POW": 85}', "birthday_en": "February 23", "updated_at": "2024-05-01",
        })
        assert fields["title"] == "Kasumi"
        assert fields["summary"] == "Kasumi - SSR Character"
        assert fields["tags"] == ["Stats"]
        assert fields["name"]["jp"] == "かすみ"
        assert fields["birthday"] == {"en": "February 23"}
        assert fields["age"] is None

    def test_invalid_rarity_is_reported(self):
        records, issues = process_characters([
            {"id": "1", "unique_key": "kasumi", "name_en": "Kasumi", "type": "UR", "updated_at": "2024-05-01"},
        ])
        assert records == []
        assert issues[0].field == "type"
        assert issues[0].value == "UR"

    def test_broken_stats_json_drops_the_row(self):
        records, issues = process_characters([
            {"id": "1", "unique_key": "kasumi", "name_en": "Kasumi", "type": "SSR", "stats": "{oops",
             "updated_at": "2024-05-01"},
        ])
        assert records == []
        assert issues[0].field == "record"

    def test_missing_english_name_is_reported(self):
        records, issues = process_characters([
            {"id": "1", "unique_key": "kasumi", "name_jp": "かすみ", "type": "SSR", "updated_at": "2024-05-01"},
        ])
        assert records == []
        assert issues[0].field == "name"


class TestOtherEntities:
    """Tests for the remaining content types."""

    def test_event_end_before_start_is_dropped(self):
        records, issues = process_events([
            {"id": "1", "unique_key": "backwards", "name_en": "Backwards", "type": "Main", "event_status": "Ended",
             "start_date": "2024-07-10", "end_date": "2024-07-01", "updated_at": "2024-07-01"},
        ])
        assert records == []
        assert len(issues) == 1

    def test_swimsuit_skills_and_character(self):
        records, _ = process_swimsuits([
            {"id": "1", "unique_key": "venus-wave", "name_en": "Venus Wave", "rarity": "SSR", "character_id": "marie-rose",
             "skill1_name_en": "Wave Appeal", "skill1_desc_en": "Boosts appeal", "skill3_name_en": "Last Push",
             "max_pow": "3200", "pow_growth": "22.5", "updated_at": "2024-05-02"},
        ])
        swimsuit = records[0]
        assert swimsuit.character == "Marie Rose"
        assert [skill.name["en"] for skill in swimsuit.skills] == ["Wave Appeal", "Last Push"]
        assert swimsuit.max_pow == 3200
        assert swimsuit.pow_growth == 22.5

    def test_gacha_slug_and_defaults(self):
        records, issues = process_gachas([
            {"id": "1", "slug": "standard-gacha", "name_en": "Standard", "gacha_status": "Active",
             "start_date": "2024-01-01", "end_date": "2024-12-31"},
        ])
        assert issues == []
        gacha: Gacha = records[0]
        assert gacha.unique_key == "standard-gacha"
        assert gacha.rates == {"ssr": 3.0, "sr": 17.0, "r": 80.0}
        assert gacha.pity_at == 100
        assert gacha.step_up is False

    def test_guide_uses_topics_as_tags(self):
        records, _ = process_guides([
            {"id": "1", "unique_key": "basics", "title_en": "Basics", "title_jp": "基本", "summary_en": "Start here",
             "difficulty": "Easy", "topics": "Gems|Stats", "updated_at": "2024-01-15"},
        ])
        guide = records[0]
        assert guide.tags == ["Gems", "Stats"]
        assert guide.display_name("jp") == "基本"
        assert guide.display_name("kr") == "Basics"

    def test_accessory_keeps_record_when_stats_are_broken(self):
        records, issues = process_accessories([
            {"id": "1", "unique_key": "shell-bracelet", "name_en": "Shell Bracelet", "rarity": "N",
             "stats": "{broken", "updated_at": "2024-02-01"},
        ])
        assert issues == []
        assert records[0].stats is None

    def test_quiz_json_rows(self):
        records, issues = process_quizzes([
            {"id": 7, "unique_key": "trivia", "name": {"en": "Trivia", "jp": "クイズ"}, "tags": ["Fun"]},
        ])
        assert issues == []
        quiz = records[0]
        assert quiz.id == 7
        assert quiz.difficulty == "Easy"
        assert quiz.status == "draft"
        assert quiz.tags == ["Fun"]
        assert quiz.display_name("jp") == "クイズ"


def test_records_are_immutable():
    records, _ = process_characters([
        {"id": "1", "unique_key": "kasumi", "name_en": "Kasumi", "type": "SSR", "updated_at": "2024-05-01"},
    ])
    with pytest.raises(Exception):
        records[0].title = "Changed"
    assert ContentType.from_collection("characters") is ContentType.CHARACTER
    assert ContentType.from_collection("character") is ContentType.CHARACTER

import pytest

from wikicontent.services.localization import (
    get_all_translations, get_language_options, get_localized_value, is_valid_language_code,
    normalize_language,
)
from wikicontent.textual_manipulation import forward_prefixes, normalize_text, tokenize


class TestLocalization:
    """Tests for language resolution with English fallback."""

    def test_missing_translation_falls_back_to_english(self):
        assert get_localized_value({"en": "Title"}, "jp") == "Title"

    def test_empty_translation_falls_back_to_english(self):
        assert get_localized_value({"en": "Title", "jp": ""}, "jp") == "Title"

    def test_requested_language_wins(self):
        assert get_localized_value({"en": "Title", "jp": "タイトル"}, "jp") == "タイトル"

    def test_nothing_to_fall_back_to(self):
        assert get_localized_value({"jp": "タイトル"}, "cn") == ""
        assert get_localized_value(None, "en") == ""
        assert get_localized_value("plain", "jp") == "plain"

    @pytest.mark.parametrize("code, expected", [(" JP ", "jp"), ("kr", "kr"), ("fr", "en"), (None, "en")])
    def test_normalize_language(self, code, expected):
        assert normalize_language(code) == expected

    def test_language_codes(self):
        assert is_valid_language_code("tw")
        assert not is_valid_language_code("TW")
        assert get_all_translations({"en": "Hi", "jp": "やあ"}) == {
            "en": "Hi", "jp": "やあ", "cn": "Hi", "tw": "Hi", "kr": "Hi",
        }

    def test_language_options_follow_supported_order(self):
        options = get_language_options()
        assert [option["code"] for option in options] == ["en", "jp", "cn", "tw", "kr"]
        assert options[1] == {"code": "jp", "label": "日本語"}


class TestTextNormalization:
    """Tests for search text normalization."""

    def test_case_width_and_diacritics_fold_together(self):
        assert normalize_text("Kasumi") == normalize_text("ＫＡＳＵＭＩ") == normalize_text("kásumi") == "kasumi"

    def test_tokenize_splits_on_punctuation(self):
        assert tokenize("Kasumi's  Summer-Festival!") == ["kasumi", "s", "summer", "festival"]
        assert tokenize("   ") == []

    def test_forward_prefixes(self):
        assert forward_prefixes("kas") == ["k", "ka", "kas"]

"""Tests for utils/strings.py — import payload cleaning."""
import json

import pytest

from utils.strings import clean_import_item, safe_int, sanitize_json_text


class TestSanitizeJsonText:
    def test_tabs_become_spaces(self):
        assert sanitize_json_text('{"a":\t1}') == '{"a": 1}'

    def test_control_chars_removed(self):
        assert sanitize_json_text('["Rat\x00\x1f"]') == '["Rat"]'

    def test_newlines_kept(self):
        assert sanitize_json_text("[\r\n1,\n2]") == "[\r\n1,\n2]"

    def test_result_parses(self):
        raw = '[{"speciesName": "Mouse\x07", "count":\t"3"}]\n'
        assert json.loads(sanitize_json_text(raw)) == [{"speciesName": "Mouse", "count": "3"}]


class TestSafeInt:
    @pytest.mark.parametrize("val,expected", [
        (3, 3), ("3", 3), (" 12 ", 12), (4.0, 4), ("-2", -2),
    ])
    def test_valid(self, val, expected):
        assert safe_int(val) == expected

    @pytest.mark.parametrize("val", [None, "", "three", 2.5, True, [1]])
    def test_invalid_returns_default(self, val):
        assert safe_int(val) is None
        assert safe_int(val, default=0) == 0


class TestCleanImportItem:
    def test_trims_strings(self):
        item = clean_import_item({"speciesName": "  Rat ", "strainName": "Wistar\n"})
        assert item == {"speciesName": "Rat", "strainName": "Wistar"}

    def test_coerces_count(self):
        assert clean_import_item({"count": " 5 "})["count"] == 5

    def test_leaves_bad_count_for_validation(self):
        assert clean_import_item({"count": "many"})["count"] == "many"

    def test_non_strings_untouched(self):
        item = clean_import_item({"count": 2, "extra": None, "flag": True})
        assert item == {"count": 2, "extra": None, "flag": True}

    def test_does_not_mutate_input(self):
        raw = {"sex": " male "}
        clean_import_item(raw)
        assert raw == {"sex": " male "}

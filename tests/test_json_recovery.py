"""
Tests for the LLM JSON recovery parser.
"""
import json

from src.infrastructure.json_recovery import (
    balance_brackets,
    extract_days,
    parse_balanced,
    parse_strict,
    recover_json,
    strip_code_fences,
)


FULL_DRAFT = (
    '{"days":[{"dayNumber":1,"theme":"Pink City","places":['
    '{"place_name":"Hawa Mahal","city":"Jaipur","category":"attraction","duration":90,"estimatedCost":200}]},'
    '{"dayNumber":2,"theme":"Forts","places":['
    '{"place_name":"Amber Fort","city":"Jaipur","category":"landmark","duration":180,"estimatedCost":500}]}]}'
)


class TestStripCodeFences:

    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('Here:\n```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unterminated_fence(self):
        assert strip_code_fences('```json\n{"a": 1') == '{"a": 1'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestStrategies:

    def test_strict_accepts_objects_only(self):
        assert parse_strict('{"a": 1}') == {"a": 1}
        assert parse_strict("[1, 2]") is None
        assert parse_strict("{not json") is None

    def test_truncated_response_equals_closed_response(self):
        """Dropping the trailing ]} and repairing gives the same object."""
        truncated = FULL_DRAFT[:-2]

        assert parse_strict(truncated) is None
        assert parse_balanced(truncated) == json.loads(FULL_DRAFT)

    def test_unterminated_string_is_closed(self):
        assert balance_brackets('{"days":[{"theme":"Heri') == '{"days":[{"theme":"Heri"}]}'

    def test_trailing_comma_is_dropped(self):
        assert parse_balanced('{"days":[{"a":1},') == {"days": [{"a": 1}]}

    def test_brackets_inside_strings_are_ignored(self):
        repaired = balance_brackets('{"days":[{"theme":"a ] b {"')
        assert json.loads(repaired) == {"days": [{"theme": "a ] b {"}]}

    def test_balanced_text_is_not_reparsed(self):
        assert parse_balanced('{"a": oops}') is None

    def test_extract_days_keeps_complete_objects(self):
        text = '{"days":[{"dayNumber":1,"places":[]},{"dayNumber":2,"places":[{"place_name":"Amb'
        assert extract_days(text) == {"days": [{"dayNumber": 1, "places": []}]}

    def test_extract_days_without_days_array(self):
        assert extract_days('{"itinerary": [') is None


class TestRecoverJson:

    def test_valid_json(self):
        assert recover_json(FULL_DRAFT) == json.loads(FULL_DRAFT)

    def test_fenced_and_truncated(self):
        text = "```json\n" + FULL_DRAFT[:-3]
        recovered = recover_json(text)

        assert recovered is not None
        assert [day["dayNumber"] for day in recovered["days"]] == [1, 2]

    def test_dangling_key_falls_back_to_partial_extraction(self):
        text = '{"days":[{"dayNumber":1,"places":[]},{"dayNumber":2,"theme":'
        assert recover_json(text) == {"days": [{"dayNumber": 1, "places": []}]}

    def test_unrecoverable(self):
        assert recover_json("Sorry, I cannot help with that.") is None
        assert recover_json("") is None

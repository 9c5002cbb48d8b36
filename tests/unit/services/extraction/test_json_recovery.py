"""Unit tests for JSON recovery helpers."""

import pytest

from medparse.services.extraction.json_recovery import (
    parse_direct,
    recover_json,
    strip_code_fences,
)
from medparse.utils.exceptions import UnparsableResponseError


class TestStripCodeFences:
    def test_removes_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_removes_bare_fence(self):
        assert strip_code_fences('```\n[1, 2]\n```') == "[1, 2]"

    def test_leaves_plain_content(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestParseDirect:
    def test_parses_trimmed_json(self):
        assert parse_direct('\n  {"healthScore": 82}\n') == {"healthScore": 82}

    def test_prose_raises(self):
        with pytest.raises(UnparsableResponseError):
            parse_direct("The patient is fine.")


class TestRecoverJson:
    def test_fenced_json_with_prose(self):
        content = 'Here is the result:\n```json\n{"summary": "良好", "healthScore": 80}\n```\nThanks!'

        assert recover_json(content) == {"summary": "良好", "healthScore": 80}

    def test_first_balanced_object_wins(self):
        content = 'A {"a": {"b": 1}} and then {"c": 2}'

        assert recover_json(content) == {"a": {"b": 1}}

    def test_braces_inside_strings_do_not_count(self):
        content = 'Result: {"note": "use } carefully", "n": 1} end'

        assert recover_json(content) == {"note": "use } carefully", "n": 1}

    def test_escaped_quotes_inside_strings(self):
        content = 'x {"quote": "he said \\"}\\"", "n": 2} y'

        assert recover_json(content) == {"quote": 'he said "}"', "n": 2}

    def test_array_payload(self):
        assert recover_json('Indicators: [{"name": "WBC"}] done') == [{"name": "WBC"}]

    def test_bracketed_aside_before_object(self):
        content = 'Note [see below]\n{"summary": "ok"}'

        assert recover_json(content) == {"summary": "ok"}

    def test_unclosed_object_raises(self):
        with pytest.raises(UnparsableResponseError):
            recover_json('{"a": {"b": 1}')

    def test_mismatched_brackets_raise(self):
        with pytest.raises(UnparsableResponseError):
            recover_json('{"a": "x", "b": [1, 2}]}')

    def test_no_opening_raises(self):
        with pytest.raises(UnparsableResponseError):
            recover_json("no structure here")

    def test_empty_raises(self):
        with pytest.raises(UnparsableResponseError):
            recover_json("")

"""
Unit tests for method-config template resolution.
"""

import copy

import pytest

from service_gateway.app.domain.models import CallVars
from service_gateway.app.domain.templates import evaluate, parse_leading_int, resolve, stringify


class TestEvaluate:
    """Test cases for the closed expression set."""

    def test_pagination_offset(self):
        """Test the offset expression used by paginated backends."""
        assert evaluate("((page||1)-1)*(limit||20)", {"page": 3, "limit": 20}) == 40

    def test_whitespace_is_ignored(self):
        assert evaluate(" ( (page || 1) - 1 ) * ( limit || 20 ) ", {"page": 2, "limit": 15}) == 15

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("page", 1),
            ("page||1", 1),
            ("limit", 20),
            ("limit||20", 20),
            ("pageSize", 20),
            ("(page||1)-1", 0),
            ("((page||1)-1)*(limit||20)", 0),
            ("parseInt(id)", 0),
            ("keyword", ""),
            ("id", ""),
            ("ids", ""),
        ],
    )
    def test_defaults_with_empty_vars(self, expression, expected):
        assert evaluate(expression, {}) == expected

    def test_numeric_strings_are_coerced_for_arithmetic(self):
        assert evaluate("(page||1)-1", {"page": "4"}) == 3

    def test_unparsable_page_falls_back_to_default(self):
        assert evaluate("page", {"page": "abc"}) == 1

    def test_parse_int_of_id(self):
        assert evaluate("parseInt(id)", {"id": "3778678"}) == 3778678
        assert evaluate("parseInt(id)", {"id": "12abc"}) == 12
        assert evaluate("parseInt(id)", {"id": "abc"}) == 0

    def test_unknown_expression_uses_literal_lookup(self):
        assert evaluate("quality", {"quality": "flac"}) == "flac"

    def test_unknown_expression_is_never_evaluated(self):
        """Test that code-like expressions resolve to an empty string."""
        assert evaluate("__import__('os').getcwd()", {}) == ""
        assert evaluate("page+1", {"page": 2}) == ""

    def test_accepts_call_vars(self):
        call_vars = CallVars(keyword="jay", page=2, limit=30, page_size=50)
        assert evaluate("keyword", call_vars) == "jay"
        assert evaluate("((page||1)-1)*(limit||20)", call_vars) == 30
        assert evaluate("pageSize", call_vars) == 50


class TestResolve:
    """Test cases for recursive resolution."""

    def test_id_placeholder_stays_a_string(self):
        assert resolve("{{id}}", {"id": "42"}) == "42"

    def test_full_placeholder_preserves_numbers(self):
        assert resolve("{{((page||1)-1)*(limit||20)}}", {"page": 3, "limit": 20}) == 40

    def test_interpolation_inside_text(self):
        assert resolve("MUSIC_{{id}}", {"id": "99"}) == "MUSIC_99"
        assert resolve("p={{page}}&n={{limit}}", {"page": 2}) == "p=2&n=20"

    def test_interpolation_of_missing_values_is_empty(self):
        assert resolve("q={{nothing}}!", {}) == "q=!"

    def test_nested_structures(self):
        template = {
            "req": {
                "module": "music.search.SearchCgiService",
                "param": {
                    "query": "{{keyword}}",
                    "page_num": "{{page}}",
                    "num_per_page": "{{limit}}",
                    "flags": ["{{keyword}}", 7, None, True],
                },
            }
        }

        resolved = resolve(template, {"keyword": "hello", "page": 2, "limit": 10})

        assert resolved == {
            "req": {
                "module": "music.search.SearchCgiService",
                "param": {
                    "query": "hello",
                    "page_num": 2,
                    "num_per_page": 10,
                    "flags": ["hello", 7, None, True],
                },
            }
        }

    def test_literal_without_braces_is_untouched(self):
        assert resolve("((page||1)-1)*(limit||20)", {"page": 3}) == "((page||1)-1)*(limit||20)"

    def test_resolution_is_idempotent_and_does_not_mutate(self):
        template = {"offset": "{{((page||1)-1)*(limit||20)}}", "s": "{{keyword}}", "list": ["{{id}}"]}
        original = copy.deepcopy(template)
        call_vars = {"keyword": "k", "page": 2, "limit": 5, "id": "7"}

        first = resolve(template, call_vars)
        second = resolve(template, call_vars)

        assert first == second
        assert template == original


class TestHelpers:
    """Test cases for coercion helpers."""

    def test_stringify(self):
        assert stringify(None) == ""
        assert stringify(True) == "true"
        assert stringify(False) == "false"
        assert stringify(40.0) == "40"
        assert stringify(2.5) == "2.5"

    def test_parse_leading_int(self):
        assert parse_leading_int("  -7x") == -7
        assert parse_leading_int(None) == 0
        assert parse_leading_int(12.9) == 12

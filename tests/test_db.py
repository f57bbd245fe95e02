"""Tests for the Postgres query builders (no database needed)."""

from decimal import Decimal

from backend.app.db import _like_pattern, _search_conditions


class TestLikePattern:
    """Test ILIKE substring patterns."""

    def test_plain_text_wrapped(self):
        assert _like_pattern("casa") == "%casa%"

    def test_wildcards_escaped(self):
        """% and _ in user text match literally."""
        assert _like_pattern("50%_off") == "%50\\%\\_off%"

    def test_backslash_escaped_first(self):
        """A user backslash cannot escape the wildcard that follows it."""
        assert _like_pattern("a\\%") == "%a\\\\\\%%"


class TestSearchConditions:
    """Test WHERE clause and parameter numbering."""

    def test_no_criteria(self):
        assert _search_conditions(None, None, None, None) == ("TRUE", [])

    def test_all_criteria_numbered_in_order(self):
        where, params = _search_conditions(
            "casa", "medellin", Decimal(100), Decimal(200)
        )
        assert where == (
            "name ILIKE $1 AND address ILIKE $2 AND price >= $3 AND price <= $4"
        )
        assert params == ["%casa%", "%medellin%", Decimal(100), Decimal(200)]

    def test_skipped_criteria_leave_no_gaps(self):
        """Numbering follows the criteria actually present."""
        where, params = _search_conditions(None, "centro", None, Decimal(500))
        assert where == "address ILIKE $1 AND price <= $2"
        assert params == ["%centro%", Decimal(500)]

    def test_empty_text_is_a_criterion(self):
        """An empty filter matches everything but is still a parameter."""
        where, params = _search_conditions("", None, None, None)
        assert where == "name ILIKE $1"
        assert params == ["%%"]

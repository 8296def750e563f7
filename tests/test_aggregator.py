"""
Tests for token aggregation and coverage.

Author: Tokenscope Team
"""

import pytest

from tokenscope.models import TokenOccurrence
from tokenscope.services.aggregator import TokenAggregator, compute_coverage


def _occurrence(token_name: str, file_path: str, line: int = 1, format_name: str = "css-variables"):
    return TokenOccurrence(
        file_path=file_path,
        line=line,
        column=0,
        context="",
        matched_text=f"var(--{token_name}",
        format_name=format_name,
        token_name=token_name,
    )


class TestAggregate:
    """Tests for TokenAggregator.aggregate."""

    def test_groups_by_token_name(self):
        """Occurrences of the same token are merged across files."""
        per_file = {
            "a.css": [_occurrence("color-primary", "a.css"), _occurrence("spacing-md", "a.css")],
            "b.css": [_occurrence("color-primary", "b.css"), _occurrence("color-primary", "b.css", line=2)],
        }

        results = TokenAggregator().aggregate(per_file)

        primary = results[0]
        assert primary.token_name == "color-primary"
        assert primary.total_count == 3
        assert primary.files == ("a.css", "b.css")
        assert primary.category == "color"
        assert primary.token_type == "css-variables"

    def test_count_is_not_deduplicated_by_file(self):
        """Several occurrences in one file all count."""
        per_file = {"a.css": [_occurrence("gap", "a.css"), _occurrence("gap", "a.css", line=5)]}

        (result,) = TokenAggregator().aggregate(per_file)

        assert result.total_count == 2
        assert result.files == ("a.css",)

    def test_order_count_descending_then_name(self):
        """Ties in count are broken by token name ascending."""
        occurrences = [
            _occurrence("zeta", "a.css"),
            _occurrence("alpha", "a.css"),
            _occurrence("mid", "a.css"),
            _occurrence("mid", "b.css"),
        ]

        results = TokenAggregator().aggregate(occurrences)

        assert [r.token_name for r in results] == ["mid", "alpha", "zeta"]

    def test_token_type_from_first_occurrence(self):
        """The format of the first occurrence names the token type."""
        occurrences = [
            _occurrence("primary", "a.scss", format_name="scss-variables"),
            _occurrence("primary", "b.js", format_name="js-tokens"),
        ]

        (result,) = TokenAggregator().aggregate(occurrences)

        assert result.token_type == "scss-variables"

    def test_empty_input(self):
        """No occurrences, no results."""
        assert TokenAggregator().aggregate({}) == []


class TestComputeCoverage:
    """Tests for the coverage formula."""

    @pytest.mark.parametrize("unique,total,expected", [
        (0, 0, 0),
        (5, 0, 100),
        (1, 4, 25),
        (3, 3, 100),
        (2, 3, 67),
        (1, 8, 12),
    ])
    def test_formula(self, unique, total, expected):
        """round(unique / max(total, 1) * 100)."""
        assert compute_coverage(unique, total) == expected

    def test_always_in_range(self):
        """Coverage never leaves [0, 100]."""
        for unique in range(0, 20):
            for total in range(0, 20):
                assert 0 <= compute_coverage(unique, total) <= 100

"""
Tests for design pattern detection.

Author: Tokenscope Team
"""

import pytest

from tokenscope.config import PatternDefinition
from tokenscope.constants import PatternScope
from tokenscope.exceptions import ConfigurationError
from tokenscope.services.pattern_detector import (
    PatternDetector,
    classify_complexity,
    split_rule_blocks,
)

CARD_SCSS = """\
.card {
  background: $color-surface;
  padding: $spacing-md;
  box-shadow: $shadow-1;
}

.badge {
  color: $color-surface;
}
"""

BANNER_SCSS = """\
.banner {
  background: $color-surface;
  padding: $spacing-md;
  box-shadow: $shadow-1;
}
"""


class TestComplexity:
    """Tests for complexity tiers."""

    @pytest.mark.parametrize("count,tier", [
        (0, "simple"), (2, "simple"),
        (3, "medium"), (5, "medium"),
        (6, "complex"), (12, "complex"),
    ])
    def test_thresholds(self, count, tier):
        """<=2 simple, 3..5 medium, >5 complex."""
        assert classify_complexity(count) == tier


class TestSplitRuleBlocks:
    """Tests for top-level block splitting."""

    def test_top_level_blocks_with_lines(self):
        """Each top-level block records the line of its opening brace."""
        blocks = split_rule_blocks(CARD_SCSS)

        assert [b.line for b in blocks] == [1, 7]
        assert "$shadow-1" in blocks[0].text
        assert "$shadow-1" not in blocks[1].text

    def test_nested_blocks_stay_inside(self):
        """Nested rules belong to their enclosing block."""
        blocks = split_rule_blocks(".a { .b { x: 1; } y: 2; }")

        assert len(blocks) == 1


class TestTokenCombinations:
    """Tests for token-combination patterns."""

    def test_file_scope(self):
        """Each file containing every token is one site."""
        definition = PatternDefinition(name="Surface", tokens=["color-surface", "spacing-md"])
        contents = {"card.scss": CARD_SCSS, "banner.scss": BANNER_SCSS, "plain.css": "a { }"}

        (result,) = PatternDetector([definition]).detect_patterns(
            contents, {"color-surface", "spacing-md", "shadow-1"}
        )

        assert result.pattern_name == "Surface"
        assert result.usage_count == 2
        assert result.locations == ("banner.scss", "card.scss")
        assert result.token_dependencies == ("color-surface", "spacing-md")
        assert result.complexity == "simple"

    def test_block_scope(self):
        """Only blocks holding every token qualify, located as path:line."""
        definition = PatternDefinition(
            name="Elevated",
            tokens=["color-surface", "spacing-md", "shadow-1"],
            scope=PatternScope.BLOCK,
        )

        (result,) = PatternDetector([definition]).detect_patterns(
            {"card.scss": CARD_SCSS}, {"color-surface", "spacing-md", "shadow-1"}
        )

        assert result.locations == ("card.scss:1",)
        assert result.usage_count == 1
        assert result.complexity == "medium"

    def test_unknown_token_never_satisfied(self):
        """A token the scan did not find blocks the pattern."""
        definition = PatternDefinition(name="Surface", tokens=["color-surface", "spacing-md"])

        results = PatternDetector([definition]).detect_patterns({"card.scss": CARD_SCSS}, {"color-surface"})

        assert results == []

    def test_token_name_boundaries(self):
        """spacing-md does not match inside spacing-md-lg."""
        definition = PatternDefinition(name="Gap", tokens=["spacing-md"])

        results = PatternDetector([definition]).detect_patterns(
            {"a.scss": "a { gap: $spacing-md-lg; }"}, {"spacing-md"}
        )

        assert results == []


class TestSignatures:
    """Tests for component signature patterns."""

    def test_signature_counts_matches_and_collects_tokens(self):
        """Every signature match is a site; tokens of matching files are dependencies."""
        definition = PatternDefinition(name="Button", signature=r"<Button|btn-")
        contents = {
            "App.jsx": '<Button color={tokens.color.primary} />\n<Button />',
            "styles.css": ".btn-primary { color: var(--color-primary); }",
            "other.css": ".x { margin: var(--spacing-md); }",
        }

        (result,) = PatternDetector([definition]).detect_patterns(
            contents,
            {"color-primary", "color.primary", "spacing-md"},
        )

        assert result.usage_count == 3
        assert result.locations == ("App.jsx", "styles.css")
        assert result.token_dependencies == ("color-primary", "color.primary")

    def test_signature_is_case_insensitive(self):
        """Signatures ignore case."""
        definition = PatternDefinition(name="Modal", signature=r"\.modal")

        (result,) = PatternDetector([definition]).detect_patterns({"m.css": ".MODAL {}"}, set())

        assert result.usage_count == 1
        assert result.complexity == "simple"

    def test_results_sorted_by_usage(self):
        """Patterns are ordered by usage count, then name."""
        detector = PatternDetector([
            PatternDefinition(name="Card", signature=r"\.card"),
            PatternDefinition(name="Button", signature=r"btn-"),
            PatternDefinition(name="Alert", signature=r"\.alert"),
        ])

        results = detector.detect_patterns({"a.css": ".card .btn-a .btn-b .alert"}, set())

        assert [r.pattern_name for r in results] == ["Button", "Alert", "Card"]


class TestPatternDefinition:
    """Tests for pattern definition validation."""

    def test_requires_tokens_or_signature(self):
        """An empty definition is a configuration error."""
        with pytest.raises(ConfigurationError):
            PatternDefinition(name="Empty")

    def test_invalid_signature(self):
        """An invalid signature regex is a configuration error."""
        with pytest.raises(ConfigurationError):
            PatternDefinition(name="Broken", signature="(")

"""
Tests for extracting token changes from parsed diffs.

Author: Tokenscope Team
"""

import pytest

from tokenscope.config import GitConfig, TokenFormat
from tokenscope.constants import DeltaType
from tokenscope.models import DiffLine, FileDiff
from tokenscope.services.delta_extractor import TokenDeltaExtractor


@pytest.fixture
def extractor():
    return TokenDeltaExtractor(GitConfig().assignment_formats)


def _added(number, text):
    return DiffLine(number=number, text=text, new_position=number)


def _removed(number, text, new_position=None):
    return DiffLine(number=number, text=text, new_position=new_position or number)


class TestExtract:
    """Tests for TokenDeltaExtractor.extract."""

    def test_added_token(self, extractor):
        """A token only on the added side is added."""
        file_diff = FileDiff(added=(_added(4, "  --spacing-lg: 32px;"),))

        (change,) = extractor.extract(file_diff)

        assert change.token_name == "spacing-lg"
        assert change.old_value is None
        assert change.new_value == "32px"
        assert change.line_number == 4
        assert change.change_type == DeltaType.ADDED

    def test_updated_token(self, extractor):
        """A token on both sides with different values is updated."""
        file_diff = FileDiff(
            added=(_added(3, "  --spacing-lg: 32px;"),),
            removed=(_removed(3, "  --spacing-lg: 24px;"),),
        )

        (change,) = extractor.extract(file_diff)

        assert change.token_name == "spacing-lg"
        assert change.old_value == "24px"
        assert change.new_value == "32px"
        assert change.change_type == DeltaType.UPDATED

    def test_removed_token_uses_new_position(self, extractor):
        """Removed tokens report the new-file position of the removal."""
        file_diff = FileDiff(removed=(_removed(9, "$color-legacy: #000;", new_position=7),))

        (change,) = extractor.extract(file_diff)

        assert change.change_type == DeltaType.REMOVED
        assert change.old_value == "#000"
        assert change.new_value is None
        assert change.line_number == 7

    def test_moved_line_is_not_a_change(self, extractor):
        """Same name and value on both sides produces nothing."""
        file_diff = FileDiff(
            added=(_added(10, "  --radius-md: 4px;"),),
            removed=(_removed(2, "  --radius-md: 4px;"),),
        )

        assert extractor.extract(file_diff) == []

    def test_one_entry_per_token(self, extractor):
        """Duplicates on one side collapse to a single change."""
        file_diff = FileDiff(
            added=(_added(1, "$gap: 4px;"), _added(5, "$gap: 8px;")),
            removed=(_removed(1, "$gap: 2px;"),),
        )

        changes = extractor.extract(file_diff)

        assert len(changes) == 1
        assert changes[0].old_value == "2px"

    def test_json_and_js_forms(self, extractor):
        """JSON entries and exported constants are recognized."""
        file_diff = FileDiff(added=(
            _added(2, '  "color.brand": "#FF0000",'),
            _added(8, "export const SPACING_XS = '2px';"),
        ))

        changes = {c.token_name: c for c in extractor.extract(file_diff)}

        assert changes["color.brand"].new_value == "#FF0000"
        assert changes["SPACING_XS"].new_value == "2px"

    def test_non_assignment_lines_ignored(self, extractor):
        """Lines without an assignment form produce nothing."""
        file_diff = FileDiff(added=(_added(1, "// tweak spacing"), _added(2, ".a { color: red }")))

        assert extractor.extract(file_diff) == []

    def test_first_matching_format_wins(self):
        """Formats are tried in order on each line."""
        first = TokenFormat(name="first", pattern=r"(\w+)=(\w+)")
        second = TokenFormat(name="second", pattern=r"(\w+)=(\w+)", strip_prefix="a")

        (change,) = TokenDeltaExtractor([first, second]).extract(FileDiff(added=(_added(1, "abc=1"),)))

        assert change.token_name == "abc"

    def test_single_group_formats_skipped(self):
        """Formats without a value group cannot describe assignments."""
        name_only = TokenFormat(name="names", pattern=r"\$([\w-]+)")

        extractor = TokenDeltaExtractor([name_only])

        assert extractor.assignment_formats == []

"""
Token Delta Extractor - Infer token value changes from a file diff.

Each added and removed line is tried against the assignment formats in
order; the first format that matches a line wins. Names are then paired
across both sides of the diff:

    removed + added, values differ  -> updated
    added only                      -> added
    removed only                    -> removed
    removed + added, same value     -> no change (the line only moved)

Author: Tokenscope Team
"""

import logging
from typing import Iterable, Optional

from ..config import TokenFormat
from ..models import DiffLine, FileDiff, TokenChange

logger = logging.getLogger(__name__)


class TokenDeltaExtractor:
    """Produces TokenChange entries from parsed diff lines."""

    def __init__(self, assignment_formats: Iterable[TokenFormat]):
        self.assignment_formats = [f for f in assignment_formats if f.has_value_group]

    def parse_assignment(self, text: str) -> Optional[tuple[str, str]]:
        """Return ``(name, value)`` for the first format matching a line."""
        for fmt in self.assignment_formats:
            m = fmt.regex.search(text)
            if m:
                name = fmt.clean_name(m.group(1))
                if name:
                    return name, m.group(2).strip()
        return None

    def extract(self, file_diff: FileDiff) -> list[TokenChange]:
        """
        Extract one TokenChange per token name from a file diff.

        Line numbers refer to the new file version: the added line's number,
        or the position a removed line sat at.
        """
        removed = self._assignments(file_diff.removed)
        added = self._assignments(file_diff.added)

        changes = []
        for name, (new_value, line) in added.items():
            old = removed.get(name)
            if old is None:
                changes.append(TokenChange(name, None, new_value, line.number))
            elif old[0] != new_value:
                changes.append(TokenChange(name, old[0], new_value, line.number))

        for name, (old_value, line) in removed.items():
            if name not in added:
                changes.append(TokenChange(name, old_value, None, line.new_position))

        changes.sort(key=lambda c: (c.line_number, c.token_name))
        return changes

    def _assignments(self, lines: Iterable[DiffLine]) -> dict[str, tuple[str, DiffLine]]:
        found: dict[str, tuple[str, DiffLine]] = {}
        for line in lines:
            assignment = self.parse_assignment(line.text)
            if assignment is None:
                continue
            name, value = assignment
            # First assignment of a name on each side wins
            found.setdefault(name, (value, line))
        return found

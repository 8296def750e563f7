"""
Git Diff Parser - Turn unified diff text into added and removed lines.

Line numbers come from hunk headers (``@@ -a,b +c,d @@``):

- ``+`` lines are numbered by the new-file counter
- ``-`` lines are numbered by the old-file counter
- context lines advance both counters
- ``\\ No newline at end of file`` markers are ignored

Every line also records the new-file position it sits at, so a removed
line can be reported against the new version of the file.

Author: Tokenscope Team
"""

import re

from ..models import DiffLine, FileDiff

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class GitDiffParser:
    """Parser for unified diffs as produced by ``git show`` and ``git diff``."""

    def parse_diff(self, raw_diff: str) -> FileDiff:
        """
        Parse the diff of a single file.

        Lines before the first hunk header (``diff --git``, ``index``,
        ``---``/``+++`` headers) are skipped.
        """
        added: list[DiffLine] = []
        removed: list[DiffLine] = []
        old_line = new_line = 0
        # Lines still expected in the current hunk; both zero outside a hunk
        old_remaining = new_remaining = 0

        # Only "\n" ends a diff line; form feeds and other separators are content
        for line in raw_diff.split("\n"):
            line = line.removesuffix("\r")
            header = HUNK_HEADER.match(line)
            if header:
                old_line = int(header.group(1))
                old_remaining = int(header.group(2) or 1)
                new_line = int(header.group(3))
                new_remaining = int(header.group(4) or 1)
                continue

            if line.startswith("\\") or (old_remaining <= 0 and new_remaining <= 0):
                continue

            if line.startswith("+"):
                added.append(DiffLine(number=new_line, text=line[1:], new_position=new_line))
                new_line += 1
                new_remaining -= 1
            elif line.startswith("-"):
                removed.append(DiffLine(number=old_line, text=line[1:], new_position=max(new_line, 1)))
                old_line += 1
                old_remaining -= 1
            else:
                old_line += 1
                new_line += 1
                old_remaining -= 1
                new_remaining -= 1

        return FileDiff(added=tuple(added), removed=tuple(removed))

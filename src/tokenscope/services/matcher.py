"""
Token Matcher Service - Extract token occurrences from file content.

Applies configured token formats (regexes with a name group and an optional
value group) to file content. Matching is a pure function of
(content, format), so files can be matched concurrently.

For each match the matcher records:
- 1-based line (one plus the newlines before the match offset)
- 0-based column (offset from the last preceding newline)
- Up to 40 characters of context on either side, newlines collapsed

Example Usage:
    matcher = TokenMatcher()
    occurrences = matcher.match_file("src/button.scss", content, config.scan.token_formats)

Author: Tokenscope Team
"""

import logging
import re
from typing import Iterable, Optional

from ..config import TokenFormat
from ..constants import CATEGORY_INDICATORS, CONTEXT_RADIUS, TokenCategory
from ..models import TokenOccurrence

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"[\r\n]+")


def infer_category(token_name: str, file_path: Optional[str] = None) -> str:
    """
    Infer a token's category from its name, then from its file path.

    Indicators are tested in CATEGORY_INDICATORS order and the first hit
    wins, so "font-size" is typography and "border-color" is color.

    Args:
        token_name: Token name to classify
        file_path: Optional path consulted when the name has no indicator

    Returns:
        Category value, "misc" when nothing matches
    """
    for candidate in (token_name, file_path):
        if not candidate:
            continue
        lowered = candidate.lower()
        for category, indicators in CATEGORY_INDICATORS:
            if any(indicator in lowered for indicator in indicators):
                return category.value
    return TokenCategory.MISC.value


class TokenMatcher:
    """Regex-driven extraction of token occurrences."""

    def __init__(self, context_radius: int = CONTEXT_RADIUS):
        self.context_radius = context_radius

    def match(self, content: str, fmt: TokenFormat, file_path: str = "") -> list[TokenOccurrence]:
        """
        Find every occurrence of a format's pattern in content.

        Args:
            content: Full file content
            fmt: Token format to apply
            file_path: Path recorded on each occurrence

        Returns:
            Occurrences in match order
        """
        occurrences = []
        line = 1
        line_start = 0
        scanned_to = 0

        for m in fmt.regex.finditer(content):
            start = m.start()

            # Advance the line counter incrementally instead of recounting from 0
            newlines = content.count("\n", scanned_to, start)
            if newlines:
                line += newlines
                line_start = content.rfind("\n", scanned_to, start) + 1
            scanned_to = start

            token_name = fmt.clean_name(m.group(1) or "")
            if not token_name:
                continue

            occurrences.append(TokenOccurrence(
                file_path=file_path,
                line=line,
                column=start - line_start,
                context=self._context(content, start, m.end()),
                matched_text=m.group(0),
                format_name=fmt.name,
                token_name=token_name,
            ))

        return occurrences

    def match_file(
        self,
        file_path: str,
        content: str,
        formats: Iterable[TokenFormat],
    ) -> list[TokenOccurrence]:
        """
        Apply every format that handles this file's extension.

        Occurrences are grouped by format, in format order.
        """
        occurrences: list[TokenOccurrence] = []
        for fmt in formats:
            if fmt.applies_to(file_path):
                occurrences.extend(self.match(content, fmt, file_path))

        if occurrences:
            logger.debug(
                "Tokens matched",
                extra={"file": file_path, "occurrences": len(occurrences)},
            )
        return occurrences

    def _context(self, content: str, start: int, end: int) -> str:
        window = content[max(0, start - self.context_radius):min(len(content), end + self.context_radius)]
        return _WHITESPACE_RUN.sub(" ", window).strip()

"""
Pattern Detector Service - Find design patterns in scanned content.

A design pattern is either:

1. **A token combination**: every token of the definition occurs within the
   same file (scope ``file``) or the same top-level brace-delimited rule
   block (scope ``block``). Each qualifying file or block is one site.
2. **A component signature**: a case-insensitive regex such as
   ``<Button|btn-``. Each signature match is one site, and the pattern's
   dependencies are the known tokens used in the files it matched in.

Complexity is derived from the number of token dependencies:
    <= 2 simple, 3..5 medium, > 5 complex

Example Usage:
    detector = PatternDetector(config.patterns.definitions)
    patterns = detector.detect_patterns(contents, {"color-primary", "spacing-md"})

Author: Tokenscope Team
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ..config import PatternDefinition
from ..constants import (
    MEDIUM_MAX_DEPENDENCIES,
    SIMPLE_MAX_DEPENDENCIES,
    PatternComplexity,
    PatternScope,
)
from ..models import PatternUsageResult

logger = logging.getLogger(__name__)


def classify_complexity(dependency_count: int) -> str:
    """Map a dependency count to its complexity tier."""
    if dependency_count <= SIMPLE_MAX_DEPENDENCIES:
        return PatternComplexity.SIMPLE.value
    if dependency_count <= MEDIUM_MAX_DEPENDENCIES:
        return PatternComplexity.MEDIUM.value
    return PatternComplexity.COMPLEX.value


@dataclass
class RuleBlock:
    """A top-level ``{...}`` block and the line its opening brace is on."""
    line: int
    text: str


def split_rule_blocks(content: str) -> list[RuleBlock]:
    """
    Split content into top-level brace-delimited blocks.

    Nested blocks stay inside their enclosing block. An unclosed block runs
    to the end of the content.
    """
    blocks = []
    depth = 0
    start = 0
    line = 1
    start_line = 1

    for index, char in enumerate(content):
        if char == "\n":
            line += 1
        elif char == "{":
            if depth == 0:
                start = index
                start_line = line
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                blocks.append(RuleBlock(line=start_line, text=content[start:index + 1]))

    if depth > 0:
        blocks.append(RuleBlock(line=start_line, text=content[start:]))
    return blocks


class PatternDetector:
    """Detects configured design patterns across a repository's files."""

    def __init__(self, definitions: Iterable[PatternDefinition]):
        self.definitions = list(definitions)
        self._token_regex_cache: dict[str, re.Pattern] = {}

    def detect_patterns(
        self,
        per_file_content: Mapping[str, str],
        known_token_names: Iterable[str],
        per_file_tokens: Optional[Mapping[str, set[str]]] = None,
    ) -> list[PatternUsageResult]:
        """
        Detect every configured pattern.

        Args:
            per_file_content: Relative file path to file content
            known_token_names: Tokens found by the scan; other tokens can
                               never satisfy a pattern
            per_file_tokens: Optional precomputed token names per file,
                             used instead of searching the content

        Returns:
            Patterns with at least one site, by usage count descending
            then name
        """
        known = set(known_token_names)
        results = []

        for definition in self.definitions:
            if definition.tokens:
                result = self._detect_combination(definition, per_file_content, known, per_file_tokens)
            else:
                result = self._detect_signature(definition, per_file_content, known, per_file_tokens)
            if result is not None:
                results.append(result)

        results.sort(key=lambda r: (-r.usage_count, r.pattern_name))
        logger.debug("Patterns detected", extra={"patterns": len(results)})
        return results

    def _detect_combination(
        self,
        definition: PatternDefinition,
        per_file_content: Mapping[str, str],
        known: set[str],
        per_file_tokens: Optional[Mapping[str, set[str]]],
    ) -> Optional[PatternUsageResult]:
        required = list(dict.fromkeys(definition.tokens))
        if not all(token in known for token in required):
            return None

        locations = []
        for path in sorted(per_file_content):
            content = per_file_content[path]
            if definition.scope == PatternScope.FILE:
                if per_file_tokens is not None and path in per_file_tokens:
                    present = per_file_tokens[path]
                    satisfied = all(token in present for token in required)
                else:
                    satisfied = all(self._occurs(token, content) for token in required)
                if satisfied:
                    locations.append(path)
            else:
                for block in split_rule_blocks(content):
                    if all(self._occurs(token, block.text) for token in required):
                        locations.append(f"{path}:{block.line}")

        if not locations:
            return None

        return PatternUsageResult(
            pattern_name=definition.name,
            token_dependencies=tuple(required),
            usage_count=len(locations),
            locations=tuple(locations),
            complexity=classify_complexity(len(required)),
        )

    def _detect_signature(
        self,
        definition: PatternDefinition,
        per_file_content: Mapping[str, str],
        known: set[str],
        per_file_tokens: Optional[Mapping[str, set[str]]],
    ) -> Optional[PatternUsageResult]:
        usage_count = 0
        locations = []
        dependencies: set[str] = set()

        for path in sorted(per_file_content):
            content = per_file_content[path]
            matches = sum(1 for _ in definition.signature_regex.finditer(content))
            if not matches:
                continue

            usage_count += matches
            locations.append(path)
            if per_file_tokens is not None and path in per_file_tokens:
                dependencies.update(per_file_tokens[path] & known)
            else:
                dependencies.update(token for token in known if self._occurs(token, content))

        if not usage_count:
            return None

        return PatternUsageResult(
            pattern_name=definition.name,
            token_dependencies=tuple(sorted(dependencies)),
            usage_count=usage_count,
            locations=tuple(locations),
            complexity=classify_complexity(len(dependencies)),
        )

    def _occurs(self, token_name: str, text: str) -> bool:
        regex = self._token_regex_cache.get(token_name)
        if regex is None:
            regex = re.compile(rf"(?<!\w){re.escape(token_name)}(?![\w-])")
            self._token_regex_cache[token_name] = regex
        return regex.search(text) is not None

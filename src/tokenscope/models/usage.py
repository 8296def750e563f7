"""
Token Usage Models - Results of scanning repositories for token references.

This module defines the data produced by a usage scan:

1. **TokenOccurrence**: one textual appearance of a token in a file
2. **TokenUsageResult**: all occurrences of one token, aggregated
3. **PatternUsageResult**: one detected design pattern
4. **ScanSummary** / **ScanResult**: the outcome for one repository

Data Flow:
    File content → TokenMatcher → TokenOccurrence
                                      ↓
                             TokenAggregator → TokenUsageResult
                                      ↓
              RepositoryScanOrchestrator → ScanResult → scan report JSON

All models are frozen: once built they are never mutated.

Author: Tokenscope Team
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..config import RepositoryTarget


@dataclass(frozen=True)
class TokenOccurrence:
    """
    One match of a token format inside a file.

    Attributes:
        file_path: Path relative to the repository root
        line: 1-based line of the match start
        column: 0-based column of the match start
        context: Text surrounding the match
        matched_text: Full text matched by the format pattern
        format_name: Name of the format that produced the match
        token_name: Cleaned token name extracted from the match
    """

    file_path: str
    line: int
    column: int
    context: str
    matched_text: str
    format_name: str
    token_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "context": self.context,
            "matched_text": self.matched_text,
            "format_name": self.format_name,
            "token_name": self.token_name,
        }


@dataclass(frozen=True)
class TokenUsageResult:
    """Aggregated usage of a single token across a repository."""

    token_name: str
    token_type: str
    occurrences: tuple[TokenOccurrence, ...]
    files: tuple[str, ...]
    category: str

    @property
    def total_count(self) -> int:
        return len(self.occurrences)

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_name": self.token_name,
            "token_type": self.token_type,
            "category": self.category,
            "total_count": self.total_count,
            "files": list(self.files),
            "occurrences": [o.to_dict() for o in self.occurrences],
        }


@dataclass(frozen=True)
class PatternUsageResult:
    """A design pattern found in a repository."""

    pattern_name: str
    token_dependencies: tuple[str, ...]
    usage_count: int
    locations: tuple[str, ...]
    complexity: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_name": self.pattern_name,
            "token_dependencies": list(self.token_dependencies),
            "usage_count": self.usage_count,
            "locations": list(self.locations),
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class ScanSummary:
    """Headline numbers for one repository scan."""

    total_files: int = 0
    scanned_files: int = 0
    tokens_found: int = 0
    unique_tokens: int = 0
    most_used_token: str = ""
    coverage_percentage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "scanned_files": self.scanned_files,
            "tokens_found": self.tokens_found,
            "unique_tokens": self.unique_tokens,
            "most_used_token": self.most_used_token,
            "coverage_percentage": self.coverage_percentage,
        }


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of scanning one repository.

    A repository that could not be prepared still gets a ScanResult: empty
    token and pattern lists and the failure in ``errors``.
    """

    repository: RepositoryTarget
    scan_date: datetime
    tokens_found: tuple[TokenUsageResult, ...] = ()
    total_usage: int = 0
    coverage: int = 0
    patterns: tuple[PatternUsageResult, ...] = ()
    errors: tuple[str, ...] = ()
    summary: ScanSummary = field(default_factory=ScanSummary)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository.model_dump(mode="json"),
            "scan_date": self.scan_date.isoformat(),
            "tokens_found": [t.to_dict() for t in self.tokens_found],
            "total_usage": self.total_usage,
            "coverage": self.coverage,
            "patterns": [p.to_dict() for p in self.patterns],
            "errors": list(self.errors),
            "summary": self.summary.to_dict(),
        }

"""
Data models for Tokenscope.

- **TokenOccurrence**, **TokenUsageResult**, **PatternUsageResult**,
  **ScanSummary**, **ScanResult**: output of usage scans.
- **DiffLine**, **FileDiff**: parsed diff lines.
- **TokenChange**, **GitChange**, **CommitInfo**: output of change detection.
- **ScanPointer**: persisted last processed commit.
- **TokenDelta**: flattened token change for the notification layer.
"""

from .git import CommitInfo, DiffLine, FileDiff, GitChange, ScanPointer, TokenChange, TokenDelta
from .usage import (
    PatternUsageResult,
    ScanResult,
    ScanSummary,
    TokenOccurrence,
    TokenUsageResult,
)

__all__ = [
    "TokenOccurrence",
    "TokenUsageResult",
    "PatternUsageResult",
    "ScanSummary",
    "ScanResult",
    "DiffLine",
    "FileDiff",
    "TokenChange",
    "GitChange",
    "CommitInfo",
    "ScanPointer",
    "TokenDelta",
]

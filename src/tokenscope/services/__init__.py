"""
Services Layer for Tokenscope.

Each service encapsulates one step of usage scanning or change detection:

**TokenMatcher**:
    Applies token format regexes to file content and records every
    occurrence with line, column and context.

**FileEnumerator**:
    Selects scan candidates with include/exclude globs, always skipping
    VCS metadata, build output and dependency directories.

**TokenAggregator**:
    Groups occurrences per token and computes coverage.

**PatternDetector**:
    Finds configured token combinations and component signatures.

**RepositoryScanOrchestrator**:
    Drives repositories through the scan pipeline with per-file and
    per-repository failure isolation.

**ScanReportService**:
    Writes JSON scan reports and loads the most recent one.

**GitClient**:
    Runs the git executable with timeouts.

**GitDiffParser** / **TokenDeltaExtractor**:
    Turn a file diff into added/removed lines, then into token changes.

**GitChangeDetector**:
    Walks commit history since the stored commit pointer.

**DesignSystemChangeService**:
    Outward interface flattening detected commits into token deltas.

Usage:
    from tokenscope.services import RepositoryScanOrchestrator, DesignSystemChangeService

    results = RepositoryScanOrchestrator().scan_all_repositories()
    changes = DesignSystemChangeService().perform_incremental_scan(Path("design-system"))

Author: Tokenscope Team
"""

from .aggregator import TokenAggregator, compute_coverage
from .change_detector import DetectorState, GitChangeDetector
from .change_service import DesignSystemChangeService, IncrementalScanResult
from .delta_extractor import TokenDeltaExtractor
from .diff_parser import GitDiffParser
from .file_enumerator import FileEnumerator
from .git_client import GitClient
from .matcher import TokenMatcher, infer_category
from .pattern_detector import PatternDetector
from .pointer_store import FilePointerStore, InMemoryPointerStore, PointerStore
from .report import ScanReportService
from .scanner import RepositoryScanOrchestrator

__all__ = [
    # Usage scanning
    "TokenMatcher",
    "infer_category",
    "FileEnumerator",
    "TokenAggregator",
    "compute_coverage",
    "PatternDetector",
    "RepositoryScanOrchestrator",
    "ScanReportService",
    # Change detection
    "GitClient",
    "GitDiffParser",
    "TokenDeltaExtractor",
    "GitChangeDetector",
    "DetectorState",
    "PointerStore",
    "FilePointerStore",
    "InMemoryPointerStore",
    # Outward interface
    "DesignSystemChangeService",
    "IncrementalScanResult",
]

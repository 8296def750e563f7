"""
Repository Scan Orchestrator - Token usage scans across repositories.

Drives each repository through the scan pipeline:

    prepare checkout → enumerate files → match tokens per file
        → aggregate → detect patterns → coverage → ScanResult

Failure isolation:
- A file that cannot be read or is binary is recorded in the repository's
  ``errors`` and skipped
- A repository that cannot be prepared gets a ScanResult with empty
  results and the error; the rest of the batch continues

Concurrency:
- Repositories are scanned in a thread pool bounded by ``scan.max_workers``
- Files of one repository are matched in a pool bounded by
  ``scan.file_workers``; aggregation runs afterwards on the collected
  results only

Example Usage:
    orchestrator = RepositoryScanOrchestrator()
    results = orchestrator.scan_all(config.repositories)

Author: Tokenscope Team
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..config import Config, RepositoryTarget, get_config
from ..exceptions import FileAccessError, RepositoryPrepareError, VersionControlToolError
from ..logging import log_operation_end, log_operation_start
from ..models import ScanResult, ScanSummary, TokenOccurrence
from .aggregator import TokenAggregator, compute_coverage
from .file_enumerator import FileEnumerator
from .git_client import GitClient
from .matcher import TokenMatcher
from .pattern_detector import PatternDetector
from .report import ScanReportService

logger = logging.getLogger(__name__)

# Bytes inspected for NUL characters when deciding a file is binary
BINARY_SNIFF_BYTES = 8192


@dataclass
class FileScan:
    """Outcome of matching one file."""
    relative_path: str
    content: Optional[str] = None
    occurrences: list[TokenOccurrence] = field(default_factory=list)
    error: Optional[str] = None


class RepositoryScanOrchestrator:
    """Scans repositories for design token usage."""

    def __init__(
        self,
        config: Optional[Config] = None,
        git_client: Optional[GitClient] = None,
        report_service: Optional[ScanReportService] = None,
    ):
        self.config = config or get_config()
        self.git = git_client or GitClient(
            timeout_seconds=self.config.git.timeout_seconds,
            clone_timeout_seconds=self.config.git.clone_timeout_seconds,
        )
        self.report_service = report_service or ScanReportService(self.config.scan.output_path)
        self.enumerator = FileEnumerator()
        self.matcher = TokenMatcher()
        self.aggregator = TokenAggregator()
        self.pattern_detector = PatternDetector(self.config.patterns.definitions)

    # ------------------------------------------------------------------
    # Checkouts
    # ------------------------------------------------------------------

    def prepare_checkout(self, target: RepositoryTarget) -> Path:
        """
        Get a local checkout for a repository target.

        Local paths are used in place. Remote URLs are cloned once into
        ``local_path`` (or ``<data_dir>/repos/<name>``); an existing clone is
        fetched and its branch checked out instead of being cloned again.

        Raises:
            RepositoryPrepareError: The checkout is missing or git failed
        """
        if not target.is_remote:
            path = Path(target.url).expanduser()
            if not path.is_dir():
                raise RepositoryPrepareError(target.name, f"local path {path} does not exist")
            return path.resolve()

        checkout = Path(target.local_path or self.config.repos_dir / target.name).expanduser()

        if checkout.exists():
            if not self.git.is_repository(checkout):
                raise RepositoryPrepareError(target.name, f"{checkout} exists but is not a git checkout")
            try:
                self.git.update(checkout, target.branch)
            except VersionControlToolError as e:
                # The existing checkout is still scannable, just possibly stale
                logger.warning(
                    "Could not update checkout, scanning existing files",
                    extra={"repository": target.name, "error": str(e)},
                )
            return checkout.resolve()

        try:
            self.git.clone(target.url, checkout, target.branch)
        except VersionControlToolError as e:
            raise RepositoryPrepareError(target.name, e.reason) from e
        return checkout.resolve()

    # ------------------------------------------------------------------
    # Single repository
    # ------------------------------------------------------------------

    def read_file(self, path: Path, relative_path: str) -> str:
        """
        Read a candidate file as UTF-8 text.

        Raises:
            FileAccessError: Unreadable, too large, or binary
        """
        try:
            size = path.stat().st_size
            if size > self.config.scan.max_file_bytes:
                raise FileAccessError(relative_path, f"file too large ({size} bytes)")
            data = path.read_bytes()
        except OSError as e:
            raise FileAccessError(relative_path, e.strerror or str(e)) from e

        if b"\x00" in data[:BINARY_SNIFF_BYTES]:
            raise FileAccessError(relative_path, "binary file")
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FileAccessError(relative_path, f"not valid UTF-8 ({e.reason})") from e

    def _scan_file(self, repo_path: Path, path: Path) -> FileScan:
        relative_path = path.relative_to(repo_path).as_posix()
        try:
            content = self.read_file(path, relative_path)
        except FileAccessError as e:
            logger.debug("Skipping file", extra={"file": relative_path, "reason": e.reason})
            return FileScan(relative_path=relative_path, error=e.message)

        occurrences = self.matcher.match_file(relative_path, content, self.config.scan.token_formats)
        return FileScan(relative_path=relative_path, content=content, occurrences=occurrences)

    def scan_repository(self, target: RepositoryTarget) -> ScanResult:
        """
        Scan one repository.

        Never raises for repository or file failures; they are reported in
        the result's ``errors``.
        """
        scan_date = datetime.now(timezone.utc)
        start = log_operation_start(logger, "Repository scan", repository=target.name)

        try:
            repo_path = self.prepare_checkout(target)
            files = self.enumerator.list_files(
                repo_path,
                self.config.scan.include_patterns,
                self.config.scan.exclude_patterns,
                formats=self.config.scan.token_formats,
            )
        except (RepositoryPrepareError, OSError) as e:
            log_operation_end(logger, "Repository scan", start, success=False, repository=target.name, error=str(e))
            return ScanResult(repository=target, scan_date=scan_date, errors=(str(e),))

        # executor.map keeps file order, so results are reproducible
        with ThreadPoolExecutor(max_workers=self.config.scan.file_workers) as executor:
            file_scans = list(executor.map(lambda p: self._scan_file(repo_path, p), files))

        errors = [fs.error for fs in file_scans if fs.error]
        per_file_occurrences = {fs.relative_path: fs.occurrences for fs in file_scans if fs.error is None}
        per_file_content = {fs.relative_path: fs.content for fs in file_scans if fs.content is not None}

        tokens = self.aggregator.aggregate(per_file_occurrences)
        total_usage = sum(t.total_count for t in tokens)
        coverage = compute_coverage(len(tokens), total_usage)

        patterns = self.pattern_detector.detect_patterns(
            per_file_content,
            {t.token_name for t in tokens},
            per_file_tokens={
                path: {o.token_name for o in occurrences}
                for path, occurrences in per_file_occurrences.items()
            },
        )

        summary = ScanSummary(
            total_files=len(files),
            scanned_files=len(per_file_occurrences),
            tokens_found=total_usage,
            unique_tokens=len(tokens),
            most_used_token=tokens[0].token_name if tokens else "",
            coverage_percentage=coverage,
        )

        log_operation_end(
            logger, "Repository scan", start,
            repository=target.name,
            files=len(files),
            tokens=total_usage,
            unique_tokens=len(tokens),
            errors=len(errors),
        )

        return ScanResult(
            repository=target,
            scan_date=scan_date,
            tokens_found=tuple(tokens),
            total_usage=total_usage,
            coverage=coverage,
            patterns=tuple(patterns),
            errors=tuple(errors),
            summary=summary,
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def scan_all(self, targets: Iterable[RepositoryTarget]) -> list[ScanResult]:
        """Scan repositories independently, returning results in target order."""
        target_list = list(targets)
        if not target_list:
            return []

        start = log_operation_start(logger, "Batch scan", repositories=len(target_list))
        with ThreadPoolExecutor(max_workers=self.config.scan.max_workers) as executor:
            results = list(executor.map(self.scan_repository, target_list))

        failed = sum(1 for r in results if r.errors and not r.summary.total_files)
        log_operation_end(
            logger, "Batch scan", start,
            repositories=len(results),
            failed=failed,
        )
        return results

    def scan_all_repositories(
        self,
        targets: Optional[Iterable[RepositoryTarget]] = None,
        write_report: bool = True,
    ) -> list[ScanResult]:
        """
        Scan the given targets (default: every configured repository) and
        write the JSON scan report.
        """
        results = self.scan_all(self.config.repositories if targets is None else targets)
        if write_report and results:
            report_path = self.report_service.write_report(results)
            logger.info("Scan report written", extra={"report": str(report_path)})
        return results

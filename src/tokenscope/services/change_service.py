"""
Design System Change Service - Outward interface for change detection.

Wraps GitChangeDetector for the notification layer:

- ``perform_incremental_scan``: commits since the last pass, advancing the
  pointer; git failures become an unsuccessful result instead of raising
- ``get_recent_changes``: time-bounded preview that never touches the pointer

Both flatten each commit's per-file token changes into TokenDelta records.
A token file added without any recognizable assignments still yields one
delta named after the file, so new token files are announced.

Author: Tokenscope Team
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from ..config import GitConfig, get_config
from ..constants import ChangeKind, DeltaType
from ..exceptions import TokenscopeError
from ..logging import log_operation_end, log_operation_start
from ..models import CommitInfo, TokenDelta
from .change_detector import GitChangeDetector
from .matcher import infer_category
from .pointer_store import PointerStore

logger = logging.getLogger(__name__)

NEW_TOKEN_FILE_VALUE = "New token file"


@dataclass(frozen=True)
class IncrementalScanResult:
    """Outcome of one change detection call."""

    commits: tuple[CommitInfo, ...] = ()
    token_changes: tuple[TokenDelta, ...] = ()
    success: bool = True
    message: str = ""
    scan_id: str = field(default_factory=lambda: f"scan-{int(time.time() * 1000)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_id": self.scan_id,
            "success": self.success,
            "message": self.message,
            "commits": [c.to_dict() for c in self.commits],
            "token_changes": [t.to_dict() for t in self.token_changes],
        }


def flatten_commits(commits: list[CommitInfo]) -> list[TokenDelta]:
    """Flatten commits into token deltas, in commit and file order."""
    deltas = []
    for commit in commits:
        for change in commit.changes:
            if change.token_changes:
                for token_change in change.token_changes:
                    deltas.append(TokenDelta(
                        change_type=token_change.change_type,
                        token_name=token_change.token_name,
                        category=infer_category(token_change.token_name, change.file_path),
                        file_path=change.file_path,
                        commit_hash=commit.hash,
                        description=f"{commit.message} (by {commit.author})",
                        old_value=token_change.old_value,
                        new_value=token_change.new_value,
                        affected_files=(change.file_path,),
                    ))
            elif change.kind == ChangeKind.ADDED:
                token_name = Path(change.file_path).stem
                deltas.append(TokenDelta(
                    change_type=DeltaType.ADDED,
                    token_name=token_name,
                    category=infer_category(token_name, change.file_path),
                    file_path=change.file_path,
                    commit_hash=commit.hash,
                    description=f"New token file added (by {commit.author})",
                    new_value=NEW_TOKEN_FILE_VALUE,
                    affected_files=(change.file_path,),
                ))
    return deltas


class DesignSystemChangeService:
    """Incremental and preview change detection for design-system repositories."""

    def __init__(
        self,
        config: Optional[GitConfig] = None,
        pointer_store: Optional[PointerStore] = None,
        detector_factory: Optional[Callable[[Path], GitChangeDetector]] = None,
    ):
        self.config = config or get_config().git
        self.pointer_store = pointer_store
        self._detector_factory = detector_factory or self._default_detector
        self._detectors: dict[Path, GitChangeDetector] = {}
        self._detectors_lock = threading.Lock()

    def _default_detector(self, repo_path: Path) -> GitChangeDetector:
        return GitChangeDetector(repo_path, pointer_store=self.pointer_store, config=self.config)

    def detector_for(self, repo_path: Path) -> GitChangeDetector:
        """The detector bound to a repository path, created on first use."""
        key = Path(repo_path).expanduser().resolve()
        with self._detectors_lock:
            detector = self._detectors.get(key)
            if detector is None:
                detector = self._detectors[key] = self._detector_factory(key)
            return detector

    def perform_incremental_scan(
        self,
        repo_path: Path,
        cancel_event: Optional[threading.Event] = None,
    ) -> IncrementalScanResult:
        """
        Detect changes since the last successful pass.

        Never raises for git failures or cancellation: the result is marked
        unsuccessful and the pointer stays where it was.
        """
        start = log_operation_start(logger, "Incremental scan", repo_path=str(repo_path))

        try:
            commits = self.detector_for(repo_path).get_changes_since_last_scan(cancel_event)
        except (TokenscopeError, OSError) as e:
            log_operation_end(logger, "Incremental scan", start, success=False, error=str(e))
            return IncrementalScanResult(success=False, message=f"Scan failed: {e}")

        deltas = flatten_commits(commits)
        if commits:
            message = f"Found {len(commits)} commit(s) with {len(deltas)} token changes"
        else:
            message = "Scan completed successfully - no new changes found"

        log_operation_end(
            logger, "Incremental scan", start,
            commits=len(commits), token_changes=len(deltas),
        )
        return IncrementalScanResult(
            commits=tuple(commits),
            token_changes=tuple(deltas),
            success=True,
            message=message,
        )

    def get_recent_changes(self, repo_path: Path, hours: Optional[int] = None) -> IncrementalScanResult:
        """Preview commits of the last ``hours`` hours without touching the pointer."""
        if hours is None:
            hours = self.config.recent_hours

        try:
            commits = self.detector_for(repo_path).get_recent_changes(hours)
        except TokenscopeError as e:
            logger.error("Failed to get recent changes", extra={"repo_path": str(repo_path), "error": str(e)})
            return IncrementalScanResult(success=False, message=f"Failed to get recent changes: {e}")

        deltas = flatten_commits(commits)
        logger.info(
            "Recent changes collected",
            extra={"hours": hours, "commits": len(commits), "token_changes": len(deltas)},
        )
        return IncrementalScanResult(
            commits=tuple(commits),
            token_changes=tuple(deltas),
            success=True,
            message=f"Found {len(commits)} recent commit(s) with {len(deltas)} token changes",
        )

    def reset_pointer(self, repo_path: Path) -> None:
        self.detector_for(repo_path).reset_pointer()

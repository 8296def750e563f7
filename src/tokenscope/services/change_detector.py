"""
Git Change Detector - Incremental discovery of committed token changes.

The detector owns the "last processed commit" pointer of one repository
path and walks the history between that pointer and HEAD:

    IDLE -> COMPUTING_RANGE -> WALKING_COMMITS -> DONE_SUCCESS
                                               -> DONE_FAILURE

For each commit in the range (oldest first) the files it touched are
filtered by the token-file heuristic, each relevant file's diff is parsed
and token value changes are extracted.

Pointer contract:
- Read once at the start of a pass
- Written as HEAD only after the whole range was processed and the pass
  was not cancelled
- Any git failure or cancellation leaves it untouched, so the next pass
  retries the same range (at-least-once delivery)
- Rewound only through ``reset_pointer``

Passes against the same repository path are serialized with a per-path lock.

Example Usage:
    detector = GitChangeDetector(Path("~/src/design-system"))
    for commit in detector.get_changes_since_last_scan():
        print(commit.short_hash, commit.message)

Author: Tokenscope Team
"""

import dataclasses
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config import GitConfig, get_config
from ..constants import BootstrapMode
from ..exceptions import DetectionCancelledError, TokenscopeError
from ..models import CommitInfo, GitChange, ScanPointer
from .delta_extractor import TokenDeltaExtractor
from .diff_parser import GitDiffParser
from .git_client import GitClient
from .pointer_store import FilePointerStore, PointerStore

logger = logging.getLogger(__name__)


class DetectorState(str, Enum):
    """Lifecycle of a detection pass."""
    IDLE = "idle"
    COMPUTING_RANGE = "computing_range"
    WALKING_COMMITS = "walking_commits"
    DONE_SUCCESS = "done_success"
    DONE_FAILURE = "done_failure"


_path_locks: dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def lock_for_path(repo_path: Path) -> threading.Lock:
    """The process-wide lock serializing detector passes on a repository path."""
    key = str(Path(repo_path).expanduser().resolve())
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


class GitChangeDetector:
    """Walks a repository's history for token changes since the last pass."""

    def __init__(
        self,
        repo_path: Path,
        git_client: Optional[GitClient] = None,
        pointer_store: Optional[PointerStore] = None,
        config: Optional[GitConfig] = None,
    ):
        self.config = config or get_config().git
        self.repo_path = Path(repo_path).expanduser().resolve()
        self.git = git_client or GitClient(
            timeout_seconds=self.config.timeout_seconds,
            clone_timeout_seconds=self.config.clone_timeout_seconds,
        )
        self.pointer_store = pointer_store or FilePointerStore(self.config.state_dir)
        self.diff_parser = GitDiffParser()
        self.extractor = TokenDeltaExtractor(self.config.assignment_formats)
        self.state = DetectorState.IDLE
        self._indicators = tuple(i.lower() for i in self.config.token_file_indicators)

    def is_token_file(self, file_path: str) -> bool:
        """Check whether a path looks like it defines design tokens."""
        lowered = file_path.lower()
        return any(indicator in lowered for indicator in self._indicators)

    def get_changes_since_last_scan(
        self,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[CommitInfo]:
        """
        Get commits since the stored pointer and advance the pointer to HEAD.

        Returns an empty list without writing anything when HEAD equals the
        pointer or has no commits after it (HEAD checked out behind the
        pointer).

        Raises:
            VersionControlToolError: A git invocation failed or timed out
            DetectionCancelledError: ``cancel_event`` was set mid-walk
        """
        with lock_for_path(self.repo_path):
            pointer = self.pointer_store.load_pointer(self.repo_path)
            commits, new_pointer = self.detect_since(pointer, cancel_event=cancel_event)

            if new_pointer != pointer:
                try:
                    self.pointer_store.save_pointer(new_pointer)
                except OSError:
                    self.state = DetectorState.DONE_FAILURE
                    raise
            return commits

    def detect_since(
        self,
        pointer: Optional[ScanPointer],
        head: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> tuple[list[CommitInfo], ScanPointer]:
        """
        Walk the range after ``pointer`` up to ``head`` without persisting anything.

        Args:
            pointer: Last processed commit, or None to bootstrap
            head: Commit to stop at; resolved from HEAD when omitted
            cancel_event: Checked between commits

        Returns:
            Commits oldest first, and the pointer to store once they have
            been handled
        """
        self.state = DetectorState.COMPUTING_RANGE
        try:
            if head is None:
                head = self.git.rev_parse_head(self.repo_path)
            new_pointer = ScanPointer(commit=head, repo_path=str(self.repo_path))

            if pointer is not None and pointer.commit == head:
                logger.debug("No new commits", extra={"repo_path": str(self.repo_path), "head": head})
                self.state = DetectorState.DONE_SUCCESS
                return [], pointer

            if pointer is None:
                logger.info(
                    "No commit pointer, bootstrapping",
                    extra={"repo_path": str(self.repo_path), "bootstrap": self.config.bootstrap.value},
                )
                if self.config.bootstrap == BootstrapMode.LATEST_COMMIT:
                    range_commits = self.git.log(self.repo_path, head, max_count=1)
                else:
                    range_commits = self.git.log(self.repo_path, head)
            else:
                range_commits = self.git.log(self.repo_path, f"{pointer.commit}..{head}")
                if not range_commits:
                    logger.warning(
                        "HEAD is not ahead of the commit pointer, keeping pointer",
                        extra={"repo_path": str(self.repo_path), "head": head, "pointer": pointer.commit},
                    )
                    self.state = DetectorState.DONE_SUCCESS
                    return [], pointer

            self.state = DetectorState.WALKING_COMMITS
            commits = self._walk(range_commits, cancel_event)
        except TokenscopeError:
            self.state = DetectorState.DONE_FAILURE
            raise

        self.state = DetectorState.DONE_SUCCESS
        logger.info(
            "Change detection completed",
            extra={"repo_path": str(self.repo_path), "commits": len(commits), "head": head[:8]},
        )
        return commits, new_pointer

    def get_recent_changes(self, hours: Optional[int] = None) -> list[CommitInfo]:
        """
        Get commits of the last ``hours`` hours, oldest first.

        Never reads or writes the pointer; results may overlap with commits
        already returned by ``get_changes_since_last_scan``.
        """
        if hours is None:
            hours = self.config.recent_hours
        return self._walk(self.git.log_since_hours(self.repo_path, hours), None)

    def reset_pointer(self) -> None:
        """Forget the stored pointer so the next pass bootstraps again."""
        with lock_for_path(self.repo_path):
            self.pointer_store.clear_pointer(self.repo_path)
            self.state = DetectorState.IDLE
        logger.info("Commit pointer reset", extra={"repo_path": str(self.repo_path)})

    def _walk(
        self,
        commits: list[CommitInfo],
        cancel_event: Optional[threading.Event],
    ) -> list[CommitInfo]:
        walked = []
        for commit in commits:
            if cancel_event is not None and cancel_event.is_set():
                raise DetectionCancelledError(
                    "Change detection cancelled",
                    {"repo_path": str(self.repo_path), "processed": str(len(walked))},
                )
            walked.append(dataclasses.replace(commit, changes=tuple(self._commit_changes(commit.hash))))
        return walked

    def _commit_changes(self, commit_hash: str) -> list[GitChange]:
        changes = []
        for kind, file_path in self.git.changed_files(self.repo_path, commit_hash):
            if not self.is_token_file(file_path):
                continue

            diff = self.git.file_diff(self.repo_path, commit_hash, file_path)
            token_changes = self.extractor.extract(self.diff_parser.parse_diff(diff))
            changes.append(GitChange(
                kind=kind,
                file_path=file_path,
                diff=diff,
                token_changes=tuple(token_changes),
            ))
        return changes

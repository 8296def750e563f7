"""
Git Client - Thin wrapper around the ``git`` executable.

Every history, diff and checkout operation goes through this class, and
every invocation carries a timeout. Failures of any kind (missing
executable, timeout, non-zero exit status) are raised as
VersionControlToolError so callers handle a single exception type.

Author: Tokenscope Team
"""

import logging
import os
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from ..constants import (
    DEFAULT_CLONE_TIMEOUT_SECONDS,
    DEFAULT_GIT_TIMEOUT_SECONDS,
    GIT_FIELD_SEPARATOR,
    GIT_RECORD_SEPARATOR,
    ChangeKind,
)
from ..exceptions import VersionControlToolError
from ..models import CommitInfo

logger = logging.getLogger(__name__)

LOG_FORMAT = "%H%x1f%an%x1f%aI%x1f%s%x1e"

_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "M": ChangeKind.MODIFIED,
    "T": ChangeKind.MODIFIED,
    "R": ChangeKind.MODIFIED,
    "C": ChangeKind.MODIFIED,
}


class GitClient:
    """Runs git commands against local repositories."""

    def __init__(
        self,
        timeout_seconds: int = DEFAULT_GIT_TIMEOUT_SECONDS,
        clone_timeout_seconds: int = DEFAULT_CLONE_TIMEOUT_SECONDS,
        executable: str = "git",
    ):
        self.timeout_seconds = timeout_seconds
        self.clone_timeout_seconds = clone_timeout_seconds
        self.executable = executable

    def run(self, args: list[str], cwd: Optional[Path] = None, timeout: Optional[int] = None) -> str:
        """
        Run a git command and return its standard output.

        Raises:
            VersionControlToolError: On a missing executable, timeout or
                                     non-zero exit status
        """
        command = [self.executable, "-c", "core.quotepath=off", *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout or self.timeout_seconds,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise VersionControlToolError(command, f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise VersionControlToolError(command, str(e)) from e

        if result.returncode != 0:
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            raise VersionControlToolError(command, reason)

        return result.stdout

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def rev_parse_head(self, repo_path: Path) -> str:
        """Resolve the full hash of HEAD."""
        return self.run(["rev-parse", "HEAD"], cwd=repo_path).strip()

    def log(
        self,
        repo_path: Path,
        revision_range: str = "HEAD",
        since: Optional[datetime] = None,
        max_count: Optional[int] = None,
    ) -> list[CommitInfo]:
        """
        List commits oldest first, without their changes.

        Args:
            repo_path: Repository to read
            revision_range: ``HEAD`` or ``<from>..<to>``
            since: Only commits after this moment
            max_count: Limit to the newest N commits of the range
        """
        args = ["log", f"--format={LOG_FORMAT}"]
        if max_count is None:
            # --reverse is applied after --max-count, so only use it unbounded
            args.append("--reverse")
        else:
            args.append(f"--max-count={max_count}")
        if since is not None:
            args.append(f"--since={since.isoformat()}")
        args.append(revision_range)

        commits = _parse_log(self.run(args, cwd=repo_path))
        if max_count is not None:
            commits.reverse()
        return commits

    def log_since_hours(self, repo_path: Path, hours: int) -> list[CommitInfo]:
        """Commits of the last ``hours`` hours, oldest first."""
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        return self.log(repo_path, since=since)

    def changed_files(self, repo_path: Path, commit: str) -> list[tuple[ChangeKind, str]]:
        """
        Files touched by a commit, relative to its first parent.

        Root commits are compared against the empty tree. Renames and copies
        are reported as modifications of the destination path. Output is
        NUL-separated so paths arrive unquoted.
        """
        output = self.run(
            ["diff-tree", "--no-commit-id", "--root", "-r", "-z", "--name-status", commit],
            cwd=repo_path,
        )
        return _parse_name_status(output)

    def file_diff(self, repo_path: Path, commit: str, file_path: str) -> str:
        """Unified diff of one file in one commit."""
        return self.run(
            ["--literal-pathspecs", "show", "--format=", "--no-color", "--no-ext-diff", commit, "--", file_path],
            cwd=repo_path,
        )

    # ------------------------------------------------------------------
    # Checkouts
    # ------------------------------------------------------------------

    def is_repository(self, path: Path) -> bool:
        return (Path(path) / ".git").exists()

    def clone(self, url: str, destination: Path, branch: Optional[str] = None) -> None:
        """Shallow-clone a repository into ``destination``."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        args = ["clone", "--depth", "1"]
        if branch:
            args += ["--branch", branch]
        args += [url, str(destination)]

        logger.info("Cloning repository", extra={"url": url, "destination": str(destination)})
        self.run(args, timeout=self.clone_timeout_seconds)

    def update(self, repo_path: Path, branch: str) -> None:
        """Fetch a branch of an existing checkout and check it out."""
        logger.info("Updating checkout", extra={"repo_path": str(repo_path), "branch": branch})
        self.run(["fetch", "--depth", "1", "origin", branch], cwd=repo_path, timeout=self.clone_timeout_seconds)
        self.run(["checkout", "-B", branch, "FETCH_HEAD"], cwd=repo_path)


def _parse_log(output: str) -> list[CommitInfo]:
    commits = []
    for record in output.split(GIT_RECORD_SEPARATOR):
        record = record.strip("\n")
        if not record.strip():
            continue
        fields = record.split(GIT_FIELD_SEPARATOR)
        if len(fields) < 4:
            logger.warning("Skipping malformed git log record", extra={"record": record[:80]})
            continue
        commit_hash, author, date, message = fields[0].strip(), fields[1], fields[2], fields[3]
        commits.append(CommitInfo(hash=commit_hash, author=author, date=date, message=message))
    return commits


def _parse_name_status(output: str) -> list[tuple[ChangeKind, str]]:
    changes = []
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        status = fields[i].strip()
        i += 1
        if not status:
            continue
        # R and C entries carry "old\0new"; the destination is last
        path_count = 2 if status[:1] in ("R", "C") else 1
        paths = fields[i:i + path_count]
        i += path_count
        kind = _STATUS_KINDS.get(status[:1])
        if kind is None or len(paths) < path_count:
            continue
        changes.append((kind, paths[-1]))
    return changes

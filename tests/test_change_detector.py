"""
Tests for incremental git change detection.

Tests cover:
- Bootstrap modes when no pointer exists
- Pointer advance only after a full, successful pass
- No-op short circuit when HEAD equals the pointer
- Failures and cancellation leaving the pointer untouched
- Recent-change previews never touching the pointer
- End-to-end walk against a real temporary repository

Author: Tokenscope Team
"""

import shutil
import subprocess
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tokenscope.config import GitConfig
from tokenscope.constants import BootstrapMode, ChangeKind, DeltaType
from tokenscope.exceptions import DetectionCancelledError, VersionControlToolError
from tokenscope.models import CommitInfo, ScanPointer
from tokenscope.services.change_detector import DetectorState, GitChangeDetector
from tokenscope.services.git_client import GitClient
from tokenscope.services.pointer_store import FilePointerStore, InMemoryPointerStore, PointerStore

SPACING_ADDED = """\
diff --git a/tokens/spacing.css b/tokens/spacing.css
--- /dev/null
+++ b/tokens/spacing.css
@@ -0,0 +1,3 @@
+:root {
+  --spacing-lg: 24px;
+}
"""

SPACING_UPDATED = """\
diff --git a/tokens/spacing.css b/tokens/spacing.css
--- a/tokens/spacing.css
+++ b/tokens/spacing.css
@@ -1,3 +1,3 @@
 :root {
-  --spacing-lg: 24px;
+  --spacing-lg: 32px;
 }
"""


def _commit(commit_hash: str, message: str = "update tokens") -> CommitInfo:
    return CommitInfo(hash=commit_hash, author="Dana", date="2026-10-19T10:00:00+00:00", message=message)


@pytest.fixture
def repo_path(tmp_path):
    path = tmp_path / "design-system"
    path.mkdir()
    return path


@pytest.fixture
def git():
    client = MagicMock(spec=GitClient)
    client.rev_parse_head.return_value = "c2"
    client.log.return_value = [_commit("c1", "add spacing"), _commit("c2", "bump spacing")]
    client.changed_files.side_effect = lambda repo, commit: {
        "c1": [(ChangeKind.ADDED, "tokens/spacing.css"), (ChangeKind.ADDED, "README.md")],
        "c2": [(ChangeKind.MODIFIED, "tokens/spacing.css")],
        "c3": [(ChangeKind.MODIFIED, "docs/guide.md")],
    }[commit]
    client.file_diff.side_effect = lambda repo, commit, path: {
        "c1": SPACING_ADDED,
        "c2": SPACING_UPDATED,
    }[commit]
    return client


@pytest.fixture
def store():
    return InMemoryPointerStore()


@pytest.fixture
def detector(repo_path, git, store):
    return GitChangeDetector(repo_path, git_client=git, pointer_store=store, config=GitConfig())


class TestBootstrap:
    """Tests for the first pass, without a pointer."""

    def test_all_history_by_default(self, detector, git, store, repo_path):
        """The whole history up to HEAD is walked oldest first."""
        commits = detector.get_changes_since_last_scan()

        git.log.assert_called_once_with(detector.repo_path, "c2")
        assert [c.hash for c in commits] == ["c1", "c2"]
        assert store.load_pointer(repo_path) == ScanPointer(commit="c2", repo_path=str(detector.repo_path))
        assert detector.state == DetectorState.DONE_SUCCESS

    def test_latest_commit_bootstrap(self, repo_path, git, store):
        """latest_commit bootstrap only asks for one commit."""
        git.log.return_value = [_commit("c2")]
        detector = GitChangeDetector(
            repo_path, git_client=git, pointer_store=store,
            config=GitConfig(bootstrap=BootstrapMode.LATEST_COMMIT),
        )

        commits = detector.get_changes_since_last_scan()

        git.log.assert_called_once_with(detector.repo_path, "c2", max_count=1)
        assert [c.hash for c in commits] == ["c2"]

    def test_token_changes_are_extracted(self, detector):
        """Only token files are kept, with their extracted changes."""
        first, second = detector.get_changes_since_last_scan()

        assert [c.file_path for c in first.changes] == ["tokens/spacing.css"]
        (added,) = first.changes[0].token_changes
        assert added.token_name == "spacing-lg"
        assert added.new_value == "24px"
        assert added.change_type == DeltaType.ADDED

        (updated,) = second.changes[0].token_changes
        assert (updated.old_value, updated.new_value) == ("24px", "32px")
        assert updated.change_type == DeltaType.UPDATED
        assert updated.line_number == 2
        assert second.changes[0].kind == ChangeKind.MODIFIED


class TestIncremental:
    """Tests for passes with an existing pointer."""

    def test_second_call_is_noop(self, detector, git, store, repo_path):
        """With no new commits the second call returns [] and keeps the pointer."""
        detector.get_changes_since_last_scan()
        pointer_before = store.load_pointer(repo_path)
        git.log.reset_mock()

        assert detector.get_changes_since_last_scan() == []
        assert store.load_pointer(repo_path) == pointer_before
        git.log.assert_not_called()

    def test_noop_never_writes(self, repo_path, git):
        """HEAD equal to the pointer does not save anything."""
        store = MagicMock(spec=PointerStore)
        store.load_pointer.return_value = ScanPointer(commit="c2", repo_path=str(repo_path))
        detector = GitChangeDetector(repo_path, git_client=git, pointer_store=store, config=GitConfig())

        assert detector.get_changes_since_last_scan() == []
        store.save_pointer.assert_not_called()

    def test_range_starts_after_pointer(self, detector, git, store, repo_path):
        """The walk covers pointer (exclusive) to HEAD (inclusive)."""
        store.save_pointer(ScanPointer(commit="c1", repo_path=str(repo_path)))
        git.rev_parse_head.return_value = "c3"
        git.log.return_value = [_commit("c2"), _commit("c3")]

        commits = detector.get_changes_since_last_scan()

        git.log.assert_called_once_with(detector.repo_path, "c1..c3")
        assert [c.hash for c in commits] == ["c2", "c3"]
        assert commits[1].changes == ()
        assert store.load_pointer(repo_path).commit == "c3"

    def test_git_failure_keeps_pointer(self, detector, git, store, repo_path):
        """A failing git call mid-walk leaves the pointer where it was."""
        store.save_pointer(ScanPointer(commit="c0", repo_path=str(repo_path)))
        git.file_diff.side_effect = VersionControlToolError(["git", "show"], "timed out after 30s")

        with pytest.raises(VersionControlToolError):
            detector.get_changes_since_last_scan()

        assert store.load_pointer(repo_path).commit == "c0"
        assert detector.state == DetectorState.DONE_FAILURE

    def test_head_behind_pointer_keeps_pointer(self, detector, git, store, repo_path):
        """An empty range after a checkout of an older commit never rewinds."""
        store.save_pointer(ScanPointer(commit="c3", repo_path=str(repo_path)))
        git.rev_parse_head.return_value = "c1"
        git.log.return_value = []

        assert detector.get_changes_since_last_scan() == []
        assert store.load_pointer(repo_path).commit == "c3"
        assert detector.state == DetectorState.DONE_SUCCESS

    def test_launch_failure_marks_failure(self, detector, git, store, repo_path):
        """A git process that cannot start fails the pass."""
        store.save_pointer(ScanPointer(commit="c0", repo_path=str(repo_path)))
        git.rev_parse_head.side_effect = VersionControlToolError(["git", "rev-parse"], "Permission denied")

        with pytest.raises(VersionControlToolError):
            detector.get_changes_since_last_scan()

        assert detector.state == DetectorState.DONE_FAILURE
        assert store.load_pointer(repo_path).commit == "c0"

    def test_cancellation_keeps_pointer(self, detector, store, repo_path):
        """A cancelled pass raises and never writes the pointer."""
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(DetectionCancelledError):
            detector.get_changes_since_last_scan(cancel_event=cancel)

        assert store.load_pointer(repo_path) is None
        assert detector.state == DetectorState.DONE_FAILURE

    def test_detect_since_is_pure(self, repo_path, git):
        """detect_since returns the next pointer without persisting it."""
        store = MagicMock(spec=PointerStore)
        detector = GitChangeDetector(repo_path, git_client=git, pointer_store=store, config=GitConfig())

        commits, pointer = detector.detect_since(None)

        assert len(commits) == 2
        assert pointer.commit == "c2"
        store.load_pointer.assert_not_called()
        store.save_pointer.assert_not_called()


class TestRecentAndReset:
    """Tests for read-only previews and explicit rewinds."""

    def test_recent_changes_never_touch_pointer(self, repo_path, git):
        """Previews neither read nor write the pointer."""
        store = MagicMock(spec=PointerStore)
        git.log_since_hours.return_value = [_commit("c1"), _commit("c2")]
        detector = GitChangeDetector(repo_path, git_client=git, pointer_store=store, config=GitConfig())

        for hours in (1, 24, 24 * 365):
            commits = detector.get_recent_changes(hours)
            assert [c.hash for c in commits] == ["c1", "c2"]

        store.load_pointer.assert_not_called()
        store.save_pointer.assert_not_called()
        store.clear_pointer.assert_not_called()

    def test_recent_changes_default_window(self, detector, git):
        """The configured window is used when no hours are given."""
        git.log_since_hours.return_value = []

        detector.get_recent_changes()

        git.log_since_hours.assert_called_once_with(detector.repo_path, 24)

    def test_recent_changes_zero_hours(self, detector, git):
        """An explicit zero window is passed through, not replaced by the default."""
        git.log_since_hours.return_value = []

        detector.get_recent_changes(0)

        git.log_since_hours.assert_called_once_with(detector.repo_path, 0)

    def test_reset_pointer(self, detector, store, repo_path):
        """Reset forgets the pointer so the next pass bootstraps."""
        detector.get_changes_since_last_scan()

        detector.reset_pointer()

        assert store.load_pointer(repo_path) is None
        assert len(detector.get_changes_since_last_scan()) == 2


class TestTokenFileHeuristic:
    """Tests for token file classification."""

    @pytest.mark.parametrize("path,expected", [
        ("tokens/spacing.css", True),
        ("src/foundations/base.scss", True),
        ("styles/_variables.scss", True),
        ("theme/dark.json", True),
        ("Colors.scss", True),
        ("README.md", False),
        ("src/components/Button.tsx", False),
    ])
    def test_is_token_file(self, detector, path, expected):
        assert detector.is_token_file(path) is expected


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-c", "user.name=Dana", "-c", "user.email=dana@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=repo, check=True, capture_output=True,
    )


@pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
class TestRealRepository:
    """End-to-end detection against a temporary git repository."""

    def test_incremental_walk(self, tmp_path):
        """Bootstrap, no-op, then a commit without token changes."""
        repo = tmp_path / "design-system"
        repo.mkdir()
        tokens = repo / "tokens"
        tokens.mkdir()

        _git(repo, "init")
        (tokens / "spacing.css").write_text(":root {\n  --spacing-lg: 24px;\n}\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-m", "Add spacing tokens")
        (tokens / "spacing.css").write_text(":root {\n  --spacing-lg: 32px;\n}\n")
        _git(repo, "commit", "-am", "Bump large spacing")

        store = FilePointerStore(tmp_path / "state")
        detector = GitChangeDetector(repo, pointer_store=store, config=GitConfig(state_dir=tmp_path / "state"))

        first, second = detector.get_changes_since_last_scan()
        assert first.message == "Add spacing tokens"
        assert first.changes[0].kind == ChangeKind.ADDED
        assert first.changes[0].token_changes[0].new_value == "24px"
        (updated,) = second.changes[0].token_changes
        assert (updated.token_name, updated.old_value, updated.new_value) == ("spacing-lg", "24px", "32px")
        assert len(second.short_hash) == 8

        pointer = store.load_pointer(repo)
        assert detector.get_changes_since_last_scan() == []
        assert store.load_pointer(repo) == pointer

        detector.get_recent_changes(24)
        assert store.load_pointer(repo) == pointer

        (repo / "README.md").write_text("docs\n")
        _git(repo, "add", "README.md")
        _git(repo, "commit", "-m", "Docs")

        (docs_commit,) = detector.get_changes_since_last_scan()
        assert docs_commit.message == "Docs"
        assert docs_commit.changes == ()
        assert store.load_pointer(repo).commit == docs_commit.hash

    def test_checkout_behind_pointer(self, tmp_path):
        """Checking out an older commit leaves the pointer at the newest processed one."""
        repo = tmp_path / "design-system"
        repo.mkdir()
        _git(repo, "init")
        for value in ("8px", "16px", "24px"):
            (repo / "tokens.css").write_text(f":root {{\n  --gap: {value};\n}}\n")
            _git(repo, "add", ".")
            _git(repo, "commit", "-m", f"gap {value}")

        store = FilePointerStore(tmp_path / "state")
        detector = GitChangeDetector(repo, pointer_store=store, config=GitConfig(state_dir=tmp_path / "state"))
        assert len(detector.get_changes_since_last_scan()) == 3
        pointer = store.load_pointer(repo)

        _git(repo, "checkout", "-q", "HEAD~2")

        assert detector.get_changes_since_last_scan() == []
        assert store.load_pointer(repo) == pointer

    def test_quoted_path(self, tmp_path):
        """A token file whose name git would quote keeps its real path and diff."""
        repo = tmp_path / "design-system"
        repo.mkdir()
        _git(repo, "init")
        (repo / 'tokens "v2".css').write_text(":root {\n  --radius-sm: 2px;\n}\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-m", "Add radius tokens")

        detector = GitChangeDetector(
            repo,
            pointer_store=InMemoryPointerStore(),
            config=GitConfig(state_dir=tmp_path / "state"),
        )

        (commit,) = detector.get_changes_since_last_scan()
        (change,) = commit.changes
        assert change.file_path == 'tokens "v2".css'
        assert [(t.token_name, t.new_value) for t in change.token_changes] == [("radius-sm", "2px")]

"""
Git Change Models - Commits and token deltas found in design-system history.

1. **DiffLine** / **FileDiff**: added and removed lines of one file's diff
2. **TokenChange**: a token whose value changed in a file diff
3. **GitChange**: one token-relevant file touched by a commit
4. **CommitInfo**: one commit with its token-relevant changes
5. **ScanPointer**: last processed commit for a repository path
6. **TokenDelta**: flattened change handed to the notification layer

Author: Tokenscope Team
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..constants import SHORT_HASH_LENGTH, ChangeKind, DeltaType


@dataclass(frozen=True)
class DiffLine:
    """
    An added or removed line in a diff.

    Attributes:
        number: Line number in the file version the line belongs to
                (new file for added lines, old file for removed lines)
        text: Line content without the +/- marker
        new_position: Line in the new file version the change sits at
    """

    number: int
    text: str
    new_position: int


@dataclass(frozen=True)
class FileDiff:
    """Added and removed lines of one file's diff, in diff order."""

    added: tuple[DiffLine, ...] = ()
    removed: tuple[DiffLine, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


@dataclass(frozen=True)
class TokenChange:
    """
    A change to a single token's value inside one file diff.

    ``old_value`` is None for additions, ``new_value`` is None for removals.
    """

    token_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    line_number: int

    @property
    def change_type(self) -> DeltaType:
        if self.old_value is not None and self.new_value is not None:
            return DeltaType.UPDATED
        if self.new_value is not None:
            return DeltaType.ADDED
        return DeltaType.REMOVED

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_name": self.token_name,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "line_number": self.line_number,
            "change_type": self.change_type.value,
        }


@dataclass(frozen=True)
class GitChange:
    """A token-relevant file added, modified or deleted by a commit."""

    kind: ChangeKind
    file_path: str
    diff: Optional[str] = None
    token_changes: Optional[tuple[TokenChange, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "file_path": self.file_path,
            "diff": self.diff,
            "token_changes": (
                [c.to_dict() for c in self.token_changes]
                if self.token_changes is not None else None
            ),
        }


@dataclass(frozen=True)
class CommitInfo:
    """A commit in the design-system repository and its token-relevant changes."""

    hash: str
    author: str
    date: str
    message: str
    changes: tuple[GitChange, ...] = ()

    @property
    def short_hash(self) -> str:
        return self.hash[:SHORT_HASH_LENGTH]

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "short_hash": self.short_hash,
            "author": self.author,
            "date": self.date,
            "message": self.message,
            "changes": [c.to_dict() for c in self.changes],
        }


@dataclass(frozen=True)
class ScanPointer:
    """Last processed commit of a repository path."""

    commit: str
    repo_path: str

    def to_dict(self) -> dict[str, str]:
        return {"commit": self.commit, "repo_path": self.repo_path}

    @classmethod
    def from_dict(cls, data: dict) -> "ScanPointer":
        return cls(commit=data["commit"], repo_path=data["repo_path"])


@dataclass(frozen=True)
class TokenDelta:
    """A token change flattened out of its commit, ready for announcement."""

    change_type: DeltaType
    token_name: str
    category: str
    file_path: str
    commit_hash: str
    description: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    affected_files: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "token_name": self.token_name,
            "category": self.category,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "file_path": self.file_path,
            "affected_files": list(self.affected_files),
            "commit_hash": self.commit_hash,
            "description": self.description,
        }

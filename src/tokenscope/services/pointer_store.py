"""
Pointer Store - Persistence for the last processed commit.

The change detector only needs two operations, ``load_pointer`` and
``save_pointer``, plus ``clear_pointer`` for explicit rewinds. The JSON file
store keeps one small file per repository path under the state directory:

    ~/.tokenscope/state/pointer_design-system-3f2a9c1b04d2.json
    {"commit": "<hash>", "repo_path": "/abs/path/design-system"}

Author: Tokenscope Team
"""

import hashlib
import json
import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..constants import DEFAULT_STATE_DIRECTORY
from ..models import ScanPointer

logger = logging.getLogger(__name__)


def repository_key(repo_path: Path) -> str:
    """Stable key for a repository path: readable name plus a path digest."""
    resolved = Path(repo_path).expanduser().resolve()
    digest = hashlib.sha1(str(resolved).encode("utf-8")).hexdigest()[:12]
    name = re.sub(r"[^\w.-]+", "_", resolved.name) or "repo"
    return f"{name}-{digest}"


class PointerStore(ABC):
    """Where the last processed commit of a repository is kept."""

    @abstractmethod
    def load_pointer(self, repo_path: Path) -> Optional[ScanPointer]:
        """Return the stored pointer, or None when there is none."""
        pass

    @abstractmethod
    def save_pointer(self, pointer: ScanPointer) -> None:
        """Persist a pointer, replacing any previous one for its path."""
        pass

    @abstractmethod
    def clear_pointer(self, repo_path: Path) -> None:
        """Forget the pointer of a repository path."""
        pass


class FilePointerStore(PointerStore):
    """Pointer store backed by one JSON file per repository path."""

    def __init__(self, state_dir: Optional[Path] = None):
        self.state_dir = Path(state_dir) if state_dir else DEFAULT_STATE_DIRECTORY

    def _get_pointer_path(self, repo_path: Path) -> Path:
        return self.state_dir / f"pointer_{repository_key(repo_path)}.json"

    def load_pointer(self, repo_path: Path) -> Optional[ScanPointer]:
        pointer_path = self._get_pointer_path(repo_path)
        if not pointer_path.exists():
            return None

        try:
            with open(pointer_path, encoding="utf-8") as f:
                return ScanPointer.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            # An unreadable pointer means the history gets processed again
            logger.warning(
                "Ignoring unreadable commit pointer",
                extra={"pointer_file": str(pointer_path), "error": str(e)},
            )
            return None

    def save_pointer(self, pointer: ScanPointer) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        pointer_path = self._get_pointer_path(Path(pointer.repo_path))

        # Write then rename so readers never see a partial file
        temp_path = pointer_path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(pointer.to_dict(), f, indent=2)
        os.replace(temp_path, pointer_path)

        logger.debug("Commit pointer saved", extra={"commit": pointer.commit, "repo_path": pointer.repo_path})

    def clear_pointer(self, repo_path: Path) -> None:
        self._get_pointer_path(repo_path).unlink(missing_ok=True)


class InMemoryPointerStore(PointerStore):
    """Pointer store kept in process memory."""

    def __init__(self):
        self._pointers: dict[str, ScanPointer] = {}
        self._lock = threading.Lock()

    def load_pointer(self, repo_path: Path) -> Optional[ScanPointer]:
        with self._lock:
            return self._pointers.get(repository_key(repo_path))

    def save_pointer(self, pointer: ScanPointer) -> None:
        with self._lock:
            self._pointers[repository_key(Path(pointer.repo_path))] = pointer

    def clear_pointer(self, repo_path: Path) -> None:
        with self._lock:
            self._pointers.pop(repository_key(repo_path), None)

"""
File Enumerator Service - Select scan candidates in a repository.

Resolves include and exclude globs against a repository checkout. Globs are
matched against paths relative to the repository root, with "/" separators,
one path segment at a time:

- ``**`` matches zero or more directories
- ``*``, ``?`` and ``[...]`` match within a single segment
- ``{a,b}`` expands to alternatives before matching

Exclude always wins over include, and version-control metadata, build
output and dependency directories are never descended into.

Author: Tokenscope Team
"""

import logging
import os
import re
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Optional

from ..config import TokenFormat
from ..constants import ALWAYS_EXCLUDED_DIRS

logger = logging.getLogger(__name__)

_BRACE_GROUP = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """
    Expand ``{a,b}`` alternatives, innermost groups first.

    >>> expand_braces("**/*.{css,scss}")
    ['**/*.css', '**/*.scss']
    """
    m = _BRACE_GROUP.search(pattern)
    if not m:
        return [pattern]

    expanded = []
    for alternative in m.group(1).split(","):
        expanded.extend(expand_braces(pattern[:m.start()] + alternative + pattern[m.end():]))
    return expanded


def _match_segments(path_parts: list[str], pattern_parts: list[str]) -> bool:
    if not pattern_parts:
        return not path_parts

    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        # Zero directories, or consume one and try again
        if _match_segments(path_parts, rest):
            return True
        return bool(path_parts) and _match_segments(path_parts[1:], pattern_parts)

    if not path_parts:
        return False
    return fnmatchcase(path_parts[0], head) and _match_segments(path_parts[1:], rest)


class GlobPattern:
    """A compiled glob: brace alternatives split into segment lists."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._alternatives = [
            [part for part in alt.strip("/").split("/") if part]
            for alt in expand_braces(pattern.replace("\\", "/"))
        ]

    def matches(self, relative_path: str) -> bool:
        parts = relative_path.split("/")
        return any(_match_segments(parts, alt) for alt in self._alternatives)

    def __repr__(self) -> str:
        return f"GlobPattern({self.pattern!r})"


class FileEnumerator:
    """Lists the files of a repository that should be scanned."""

    def __init__(self, always_excluded_dirs: Iterable[str] = ALWAYS_EXCLUDED_DIRS):
        self.always_excluded_dirs = frozenset(always_excluded_dirs)

    def list_files(
        self,
        repo_path: Path,
        include_globs: Iterable[str],
        exclude_globs: Iterable[str],
        formats: Optional[Iterable[TokenFormat]] = None,
    ) -> list[Path]:
        """
        List scan candidates in a repository.

        Args:
            repo_path: Repository root
            include_globs: Globs a file must match at least one of
            exclude_globs: Globs removing matched files
            formats: When given, files no format handles are dropped

        Returns:
            Absolute paths, sorted by relative path
        """
        repo_path = Path(repo_path)
        includes = [GlobPattern(p) for p in include_globs]
        excludes = [GlobPattern(p) for p in exclude_globs]
        format_list = list(formats) if formats is not None else None

        selected: list[str] = []
        for relative_path in self._walk(repo_path):
            if not any(g.matches(relative_path) for g in includes):
                continue
            if any(g.matches(relative_path) for g in excludes):
                continue
            if format_list is not None and not any(f.applies_to(relative_path) for f in format_list):
                continue
            selected.append(relative_path)

        selected.sort()
        logger.debug(
            "Files enumerated",
            extra={"repo_path": str(repo_path), "files": len(selected)},
        )
        return [repo_path / relative_path for relative_path in selected]

    def _walk(self, repo_path: Path) -> Iterable[str]:
        for dirpath, dirnames, filenames in os.walk(repo_path):
            # Prune in place so excluded trees are never descended
            dirnames[:] = [d for d in dirnames if d not in self.always_excluded_dirs]

            relative_dir = Path(dirpath).relative_to(repo_path).as_posix()
            for filename in filenames:
                if relative_dir == ".":
                    yield filename
                else:
                    yield f"{relative_dir}/{filename}"

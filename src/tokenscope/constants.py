"""
Constants and Configuration Values for Tokenscope.

This module centralizes the magic strings, numbers and ordered lookup
tables used throughout the application:

1. Single source of truth for all constants
2. Category and token-file indicator tables in their exact priority order
3. Safety exclusions applied to every file enumeration
4. Thresholds for pattern complexity tiers

Usage:
    from tokenscope.constants import (
        CATEGORY_INDICATORS,
        CONTEXT_RADIUS,
        TokenCategory,
    )

Naming Conventions:
    - ALL_CAPS for constants
    - Grouped by category with clear section headers

Author: Tokenscope Team
"""

from enum import Enum
from pathlib import Path


# ============================================================================
# Application Metadata
# ============================================================================

APPLICATION_NAME = "Tokenscope"
APPLICATION_VERSION = "1.0.0"


# ============================================================================
# File System Paths
# ============================================================================

DEFAULT_DATA_DIRECTORY = Path.home() / ".tokenscope"
DEFAULT_STATE_DIRECTORY = DEFAULT_DATA_DIRECTORY / "state"
DEFAULT_LOG_DIRECTORY = DEFAULT_DATA_DIRECTORY / "logs"
DEFAULT_REPORT_DIRECTORY = Path("scan-reports")

REPORT_FILE_PREFIX = "token-scan-"
REPORT_FILE_SUFFIX = ".json"


# ============================================================================
# Token Categories
# ============================================================================

class TokenCategory(str, Enum):
    """Categories a design token can be assigned to."""

    COLOR = "color"
    TYPOGRAPHY = "typography"
    SPACING = "spacing"
    SIZING = "sizing"
    BREAKPOINT = "breakpoint"
    SHADOW = "shadow"
    BORDER = "border"
    ANIMATION = "animation"
    FOUNDATION = "foundation"
    COMPONENT = "component"
    MISC = "misc"


# Tested top to bottom; the first indicator found in the name (or path) wins.
# Order matters: "font-size" is typography, not sizing.
CATEGORY_INDICATORS: tuple[tuple[TokenCategory, tuple[str, ...]], ...] = (
    (TokenCategory.COLOR, ("color",)),
    (TokenCategory.TYPOGRAPHY, ("typography", "font")),
    (TokenCategory.SPACING, ("spacing", "space")),
    (TokenCategory.SIZING, ("size", "sizing")),
    (TokenCategory.BREAKPOINT, ("breakpoint", "media")),
    (TokenCategory.SHADOW, ("shadow", "elevation")),
    (TokenCategory.BORDER, ("border", "radius")),
    (TokenCategory.ANIMATION, ("animation", "transition")),
    (TokenCategory.FOUNDATION, ("foundation",)),
    (TokenCategory.COMPONENT, ("component",)),
)


# ============================================================================
# Matching
# ============================================================================

# Characters of context kept on each side of a match
CONTEXT_RADIUS = 40

# Files larger than this are reported and skipped
DEFAULT_MAX_FILE_BYTES = 2_000_000


# ============================================================================
# File Enumeration Safety Defaults
# ============================================================================

# Directory names that are never scanned, whatever the include patterns say
ALWAYS_EXCLUDED_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    "vendor",
    "dist",
    "build",
    "out",
    "coverage",
    ".next",
    "__pycache__",
    ".venv",
    "venv",
})


# ============================================================================
# Pattern Complexity
# ============================================================================

class PatternComplexity(str, Enum):
    """Complexity tier of a detected design pattern."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


# <= SIMPLE_MAX_DEPENDENCIES is simple, <= MEDIUM_MAX_DEPENDENCIES is medium
SIMPLE_MAX_DEPENDENCIES = 2
MEDIUM_MAX_DEPENDENCIES = 5


class PatternScope(str, Enum):
    """Boundary inside which pattern tokens must co-occur."""

    FILE = "file"
    BLOCK = "block"


# ============================================================================
# Git Change Detection
# ============================================================================

class ChangeKind(str, Enum):
    """Kind of change git reports for a file in a commit."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class DeltaType(str, Enum):
    """Kind of change inferred for a single token."""

    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class BootstrapMode(str, Enum):
    """What an incremental scan processes when no pointer exists yet."""

    ALL_HISTORY = "all_history"
    LATEST_COMMIT = "latest_commit"


# Path substrings that mark a file as token-relevant
TOKEN_FILE_INDICATORS: tuple[str, ...] = (
    "token",
    "foundation",
    "variable",
    "theme",
    "color",
    "spacing",
    "typography",
    "size",
)

DEFAULT_GIT_TIMEOUT_SECONDS = 30
DEFAULT_CLONE_TIMEOUT_SECONDS = 300
DEFAULT_RECENT_HOURS = 24
SHORT_HASH_LENGTH = 8

# Field and record separators for `git log --format`
GIT_FIELD_SEPARATOR = "\x1f"
GIT_RECORD_SEPARATOR = "\x1e"


# ============================================================================
# Reporting
# ============================================================================

TOP_TOKENS_LIMIT = 10

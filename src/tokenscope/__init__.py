"""
Tokenscope - Design Token Usage Scanning and Change Detection.

Tracks how design tokens (named style constants such as colors, spacing and
typography) are used across a fleet of repositories, and detects when the
central design-system repository changes them.

Key Features:
    - **Multi-format Matching**: SCSS variables, CSS custom properties,
      JS token objects, styled-components themes and token JSON
    - **Usage Statistics**: Per-token counts, files, categories and coverage
    - **Pattern Detection**: Token combinations and component signatures
    - **Incremental Change Detection**: Walks design-system commits since the
      last processed one and extracts token value changes from diffs
    - **Failure Isolation**: Unreadable files and unreachable repositories are
      reported, never fatal

Quick Start:
    1. Install: pip install tokenscope
    2. Scan: tokenscope --config tokenscope.json scan
    3. Changes: tokenscope --config tokenscope.json changes

Architecture:
    - services/: Matching, enumeration, aggregation, scanning, git walking
    - models/: Frozen result types
    - config.py: Pydantic configuration with JSON file support
    - cli.py: Click command line interface

Author: Tokenscope Team
"""

__version__ = "1.0.0"
__author__ = "Tokenscope Team"
__description__ = "Design token usage scanning and change detection"

# Public API
from tokenscope.constants import (
    APPLICATION_NAME,
    APPLICATION_VERSION,
    BootstrapMode,
    ChangeKind,
    DeltaType,
    TokenCategory,
)

from tokenscope.logging import (
    get_logger,
    setup_logging,
)

__all__ = [
    # Metadata
    "__version__",
    "__author__",
    "__description__",

    # Constants
    "APPLICATION_NAME",
    "APPLICATION_VERSION",
    "BootstrapMode",
    "ChangeKind",
    "DeltaType",
    "TokenCategory",

    # Logging
    "get_logger",
    "setup_logging",
]

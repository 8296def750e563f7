"""
Configuration Module for Tokenscope.

This module provides the configuration system for Tokenscope, including
token formats, repository targets, scan behavior, git change detection and
pattern definitions.

The configuration follows a hierarchical structure:
    - TokenFormat: One regex describing how a token is referenced
    - RepositoryTarget: One repository to scan
    - PatternDefinition: A named combination of tokens or a component signature
    - ScanConfig: File selection, formats and worker limits for usage scans
    - GitConfig: Timeouts, pointer storage and bootstrap for change detection
    - PatternConfig: Pattern definitions used by the pattern detector
    - Config: Main configuration aggregating all sub-configs

Example Usage:
    >>> from tokenscope.config import get_config, set_config, Config
    >>> config = Config.from_file(Path("tokenscope.json"))
    >>> set_config(config)
    >>> current_config = get_config()

Author: Tokenscope Team
"""

import json
import logging
import os
import re
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .constants import (
    DEFAULT_CLONE_TIMEOUT_SECONDS,
    DEFAULT_DATA_DIRECTORY,
    DEFAULT_GIT_TIMEOUT_SECONDS,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_RECENT_HOURS,
    DEFAULT_REPORT_DIRECTORY,
    DEFAULT_STATE_DIRECTORY,
    TOKEN_FILE_INDICATORS,
    BootstrapMode,
    PatternScope,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REPOSITORIES_ENV_VAR = "TOKENSCOPE_REPOSITORIES"


class TokenFormat(BaseModel):
    """
    One way of referencing design tokens in source files.

    The pattern must have one or two capture groups: the token name and,
    optionally, its value. It is compiled once at construction.

    Attributes:
        name: Format identifier, recorded on every occurrence
        pattern: Regular expression source
        file_extensions: Extensions (without dot) the format applies to;
                         empty means every file
        description: Human description
        strip_prefix: Leading delimiter removed from the captured name
    """

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str
    file_extensions: list[str] = Field(default_factory=list)
    description: str = ""
    strip_prefix: str = ""

    _regex: re.Pattern = PrivateAttr()

    def model_post_init(self, __context) -> None:
        try:
            regex = re.compile(self.pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid pattern for token format {self.name!r}: {e}",
                {"pattern": self.pattern},
            ) from e

        if regex.groups not in (1, 2):
            raise ConfigurationError(
                f"Token format {self.name!r} must have one or two capture groups, "
                f"found {regex.groups}",
                {"pattern": self.pattern},
            )
        self._regex = regex

    @property
    def regex(self) -> re.Pattern:
        """Compiled pattern."""
        return self._regex

    @property
    def has_value_group(self) -> bool:
        return self._regex.groups == 2

    def applies_to(self, file_path: str) -> bool:
        """Check whether this format handles a file, based on its extension."""
        if not self.file_extensions:
            return True
        extension = PurePosixPath(file_path.replace("\\", "/")).suffix.lstrip(".").lower()
        return extension in {ext.lstrip(".").lower() for ext in self.file_extensions}

    def clean_name(self, raw_name: str) -> str:
        """Strip the configured prefix and surrounding whitespace from a captured name."""
        name = raw_name.strip()
        if self.strip_prefix and name.startswith(self.strip_prefix):
            name = name[len(self.strip_prefix):]
        return name


class RepositoryKind(str, Enum):
    """Kind of product a repository ships."""

    WEBSITE = "website"
    MOBILE_APP = "mobile-app"
    DESKTOP_APP = "desktop-app"
    EMAIL = "email"
    SOCIAL = "social"


class RepositoryTarget(BaseModel):
    """
    A repository to scan for token usage.

    Attributes:
        url: Remote git URL, or a local filesystem path
        name: Logical repository name
        team: Owning team
        kind: Repository kind
        branch: Branch to check out for remote repositories
        local_path: Checkout location for remote repositories
    """

    model_config = ConfigDict(frozen=True)

    url: str
    name: str
    team: str = "unassigned"
    kind: RepositoryKind = RepositoryKind.WEBSITE
    branch: str = "main"
    local_path: Optional[Path] = None

    @property
    def is_remote(self) -> bool:
        """True when the url has to be cloned rather than read in place."""
        return "://" in self.url or self.url.startswith("git@")


class PatternDefinition(BaseModel):
    """
    A named design pattern to detect.

    Either ``tokens`` (a combination that must co-occur) or ``signature``
    (a component regex) must be given.

    Attributes:
        name: Pattern name
        tokens: Token names that make up the pattern
        signature: Case-insensitive regex marking a component usage site
        scope: Boundary the tokens must co-occur in (file or block)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    tokens: list[str] = Field(default_factory=list)
    signature: Optional[str] = None
    scope: PatternScope = PatternScope.FILE

    _signature_regex: Optional[re.Pattern] = PrivateAttr(default=None)

    def model_post_init(self, __context) -> None:
        if not self.tokens and not self.signature:
            raise ConfigurationError(
                f"Pattern {self.name!r} needs either tokens or a signature"
            )
        if self.signature:
            try:
                self._signature_regex = re.compile(self.signature, re.IGNORECASE)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid signature for pattern {self.name!r}: {e}",
                    {"signature": self.signature},
                ) from e

    @property
    def signature_regex(self) -> Optional[re.Pattern]:
        return self._signature_regex


def _default_token_formats() -> list[TokenFormat]:
    return [
        TokenFormat(
            name="scss-variables",
            pattern=r"\$([A-Za-z_][\w-]*)",
            file_extensions=["scss", "sass"],
            description="SCSS/Sass variables ($cds-*, $primary, ...)",
        ),
        TokenFormat(
            name="css-variables",
            pattern=r"var\(\s*--([\w-]+)",
            file_extensions=["css", "scss", "sass", "less", "html", "vue", "svelte", "jsx", "tsx"],
            description="CSS custom property references",
        ),
        TokenFormat(
            name="js-tokens",
            pattern=r"\b(?:tokens|canonTokens|canonTheme|designTokens)\.([A-Za-z0-9_.-]+)",
            file_extensions=["js", "jsx", "ts", "tsx", "vue"],
            description="JavaScript token objects",
        ),
        TokenFormat(
            name="styled-components",
            pattern=r"\$\{(?:props\s*=>\s*)?(?:props\.)?theme\.([^}]+)\}",
            file_extensions=["js", "jsx", "ts", "tsx"],
            description="Styled components theme references",
        ),
        TokenFormat(
            name="design-token-json",
            pattern=r'"([\w.-]*token[\w.-]*)"\s*:',
            file_extensions=["json"],
            description="Design token JSON keys",
        ),
    ]


def _default_assignment_formats() -> list[TokenFormat]:
    return [
        TokenFormat(
            name="scss-assignment",
            pattern=r"\$([\w-]+)\s*:\s*([^;]+);",
            description="SCSS variable declaration",
        ),
        TokenFormat(
            name="css-custom-property",
            pattern=r"--([\w-]+)\s*:\s*([^;]+);",
            description="CSS custom property declaration",
        ),
        TokenFormat(
            name="json-token",
            pattern=r'"([\w.-]+)"\s*:\s*"([^"]+)"',
            description="JSON token entry",
        ),
        TokenFormat(
            name="js-export",
            pattern=r"export\s+const\s+(\w+)\s*=\s*['\"]([^'\"]+)['\"]",
            description="JavaScript/TypeScript exported constant",
        ),
    ]


def _default_pattern_definitions() -> list[PatternDefinition]:
    return [
        PatternDefinition(name="Button", signature=r"class.*button|<Button|btn-"),
        PatternDefinition(name="Card", signature=r"class.*card|<Card|\.card"),
        PatternDefinition(name="Modal", signature=r"class.*modal|<Modal|\.modal"),
        PatternDefinition(name="Form", signature=r"class.*form|<Form|\.form"),
        PatternDefinition(name="Navigation", signature=r"class.*nav|<Nav|\.nav"),
    ]


class ScanConfig(BaseModel):
    """
    Configuration for token usage scans.

    Attributes:
        token_formats: Formats tried against every candidate file
        include_patterns: Globs selecting candidate files
        exclude_patterns: Globs removing candidates (exclude always wins)
        output_path: Directory for JSON scan reports
        max_workers: Repositories scanned in parallel
        file_workers: Files matched in parallel within one repository
        max_file_bytes: Larger files are reported and skipped
    """

    token_formats: list[TokenFormat] = Field(default_factory=_default_token_formats)

    include_patterns: list[str] = Field(
        default=[
            "**/*.{css,scss,sass,less}",
            "**/*.{js,jsx,ts,tsx}",
            "**/*.{html,vue,svelte}",
            "**/*.json",
        ],
        description="Glob patterns selecting files to scan",
    )

    exclude_patterns: list[str] = Field(
        default=[
            "**/*.test.*",
            "**/*.spec.*",
            "**/*.min.*",
            "**/storybook-static/**",
            "**/legacy/**",
            "**/deprecated/**",
            "**/package-lock.json",
        ],
        description="Glob patterns removing files from the scan",
    )

    output_path: Path = Field(
        default=DEFAULT_REPORT_DIRECTORY,
        description="Directory for scan reports",
    )

    max_workers: int = Field(default=4, ge=1, description="Parallel repository scans")
    file_workers: int = Field(default=8, ge=1, description="Parallel file matchers per repository")
    max_file_bytes: int = Field(default=DEFAULT_MAX_FILE_BYTES, ge=1)


class GitConfig(BaseModel):
    """
    Configuration for git change detection.

    Attributes:
        timeout_seconds: Timeout for every git invocation
        clone_timeout_seconds: Timeout for clone and fetch
        state_dir: Directory holding commit pointer files
        bootstrap: What to process when no pointer exists yet
        token_file_indicators: Path substrings marking token files
        assignment_formats: Two-group patterns recognizing token assignments
        recent_hours: Default window for recent-change previews
    """

    timeout_seconds: int = Field(default=DEFAULT_GIT_TIMEOUT_SECONDS, ge=1)
    clone_timeout_seconds: int = Field(default=DEFAULT_CLONE_TIMEOUT_SECONDS, ge=1)
    state_dir: Path = Field(default=DEFAULT_STATE_DIRECTORY)
    bootstrap: BootstrapMode = Field(default=BootstrapMode.ALL_HISTORY)
    token_file_indicators: list[str] = Field(default_factory=lambda: list(TOKEN_FILE_INDICATORS))
    assignment_formats: list[TokenFormat] = Field(default_factory=_default_assignment_formats)
    recent_hours: int = Field(default=DEFAULT_RECENT_HOURS, ge=1)


class PatternConfig(BaseModel):
    """Configuration for design pattern detection."""

    definitions: list[PatternDefinition] = Field(default_factory=_default_pattern_definitions)


class Config(BaseModel):
    """
    Main configuration for Tokenscope.

    Attributes:
        scan: Usage scan configuration
        git: Change detection configuration
        patterns: Pattern detection configuration
        repositories: Repositories to scan, in order
        design_system_path: Local checkout of the design-system repository
        data_dir: Root for clones and other local state

    Example:
        >>> config = Config(
        ...     repositories=[RepositoryTarget(url="./web", name="web", team="Marketing")],
        ...     design_system_path=Path("./design-system"),
        ... )
    """

    scan: ScanConfig = Field(default_factory=ScanConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    repositories: list[RepositoryTarget] = Field(default_factory=list)
    design_system_path: Optional[Path] = None
    data_dir: Path = Field(default=DEFAULT_DATA_DIRECTORY)

    @property
    def repos_dir(self) -> Path:
        """Directory remote repositories are cloned into."""
        return self.data_dir / "repos"

    def repositories_for_team(self, team: str) -> list[RepositoryTarget]:
        """
        Get the repositories owned by a team.

        Team names compare case-insensitively with spaces and dashes
        treated alike ("Design System" == "design-system").
        """
        wanted = _normalize_team(team)
        return [repo for repo in self.repositories if _normalize_team(repo.team) == wanted]

    @classmethod
    def load_default(cls) -> "Config":
        """Load the default configuration, honoring environment overrides."""
        return _apply_environment(cls())

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """
        Load configuration from a JSON file.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

        return _apply_environment(config)


def _normalize_team(team: str) -> str:
    return re.sub(r"[\s_-]+", "-", team.strip().lower())


def _apply_environment(config: Config) -> Config:
    """Override repositories from TOKENSCOPE_REPOSITORIES when it holds valid JSON."""
    raw = os.environ.get(REPOSITORIES_ENV_VAR)
    if not raw:
        return config

    try:
        repositories = [RepositoryTarget.model_validate(item) for item in json.loads(raw)]
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        logger.warning(
            f"Invalid {REPOSITORIES_ENV_VAR} environment variable, using configured repositories",
            extra={"error": str(e)},
        )
        return config

    return config.model_copy(update={"repositories": repositories})


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Creates a default configuration if none has been set.
    """
    global _config
    if _config is None:
        _config = Config.load_default()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration to None."""
    global _config
    _config = None

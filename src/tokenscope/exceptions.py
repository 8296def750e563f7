"""Exception hierarchy for Tokenscope.

Every failure raised by the scanning and change detection core derives from
``TokenscopeError`` and carries a human-readable message plus optional
key/value details. The scanner attaches these messages to the result they
concern instead of letting them escape; the change detector lets them
propagate so the caller can decide whether to alert.
"""

from typing import Optional


class TokenscopeError(Exception):
    """Base exception for all Tokenscope errors."""

    def __init__(self, message: str, details: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(TokenscopeError):
    """Malformed token format, pattern definition or configuration file."""


class FileAccessError(TokenscopeError):
    """A candidate file could not be read or is not text."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"Error scanning {file_path}: {reason}", {"file": file_path})
        self.file_path = file_path
        self.reason = reason


class RepositoryPrepareError(TokenscopeError):
    """Clone, fetch or checkout of a repository failed."""

    def __init__(self, repository: str, reason: str):
        super().__init__(
            f"Failed to prepare repository {repository}: {reason}",
            {"repository": repository},
        )
        self.repository = repository
        self.reason = reason


class VersionControlToolError(TokenscopeError):
    """A git invocation failed, was not found, or timed out."""

    def __init__(self, command: list[str], reason: str):
        super().__init__(
            f"git command failed: {' '.join(command)}: {reason}",
        )
        self.command = command
        self.reason = reason


class DetectionCancelledError(TokenscopeError):
    """A change detection pass was cancelled before completing."""

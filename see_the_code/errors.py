"""Error types for extraction, loading and the CLI.

``ParseError`` and ``CodeMapLoadError`` are raised by the core and handled by
its callers; the ``CLIError`` family carries a category, a recovery
suggestion and the exit code the CLI terminates with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ParseError(Exception):
    """A single source file could not be parsed.

    Scoped to one file: generation reports it and continues with the
    remaining files.
    """

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"Parse error in {file_path}: {message}")

    def __reduce__(self):
        return (ParseError, (self.file_path, self.message))


class CodeMapLoadError(Exception):
    """The persisted code map could not be fetched, read or decoded."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Failed to load code map from {location}: {reason}")

    def __reduce__(self):
        return (CodeMapLoadError, (self.location, self.reason))


class ErrorCategory(Enum):
    """Categories of CLI errors for organization and handling."""

    CONFIGURATION = "configuration"  # Invalid config file or options
    FILE_SYSTEM = "file_system"  # Path issues, permissions
    VALIDATION = "validation"  # Broken code map
    RUNTIME = "runtime"  # Unexpected errors


@dataclass
class CLIError(Exception):
    """Base class for structured CLI errors with recovery suggestions.

    Attributes:
        category: Error category for grouping.
        message: Human-readable error message.
        suggestion: Optional actionable recovery suggestion.
        details: Optional additional details dict.
        exit_code: Exit code to use when this error causes termination.
    """

    category: ErrorCategory
    message: str
    suggestion: str | None = None
    details: dict[str, Any] | None = field(default_factory=dict)
    exit_code: int = 1

    def __post_init__(self) -> None:
        """Initialize the exception with the message."""
        super().__init__(self.message)

    def format(self, use_color: bool = True) -> str:
        """Format the error for display.

        Args:
            use_color: Whether to include ANSI color codes.

        Returns:
            Formatted error string with suggestion if available.
        """
        red = "\033[91m" if use_color else ""
        cyan = "\033[96m" if use_color else ""
        dim = "\033[2m" if use_color else ""
        reset = "\033[0m" if use_color else ""

        lines = [f"{red}Error:{reset} {self.message}"]

        if self.suggestion:
            lines.append(f"{cyan}Suggestion:{reset} {self.suggestion}")

        if self.details:
            for key, value in self.details.items():
                lines.append(f"{dim}  {key}: {value}{reset}")

        return "\n".join(lines)

    def __str__(self) -> str:
        """Return the formatted error message."""
        return self.format(use_color=False)


class CodeMapNotFoundError(CLIError):
    """Error when the code map file to validate does not exist."""

    def __init__(self, path: str):
        super().__init__(
            category=ErrorCategory.FILE_SYSTEM,
            message=f"Code map file not found: {path}",
            suggestion="Generate one first with: see-the-code generate -o <file>",
            details={"path": path},
            exit_code=1,
        )


class InvalidCodeMapError(CLIError):
    """Error when the code map file is not a JSON object of records."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            category=ErrorCategory.VALIDATION,
            message=f"Invalid code map {path}: {reason}",
            suggestion="Regenerate the code map with: see-the-code generate",
            details={"path": path},
            exit_code=1,
        )


class ConfigFileError(CLIError):
    """Error when an explicitly requested config file cannot be used."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            category=ErrorCategory.CONFIGURATION,
            message=f"Cannot load config file {path}: {reason}",
            suggestion="Check that the file is valid JSON (see .see-the-code.json)",
            details={"path": path},
            exit_code=1,
        )


class PlaywrightMissingError(CLIError):
    """Error when a URL is annotated without Playwright installed."""

    def __init__(self) -> None:
        super().__init__(
            category=ErrorCategory.RUNTIME,
            message="Playwright is required to capture live pages",
            suggestion=(
                "Install with: pip install playwright && playwright install chromium"
            ),
            details=None,
            exit_code=1,
        )

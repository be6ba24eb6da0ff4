"""Output reporters for generation, validation and annotation results.

This module formats results for terminal display, with ANSI colors when
the output stream is a TTY.
"""

import sys
from typing import TextIO

from .generator import GenerationResult
from .runtime.overlay import MatchedElement
from .validator import ValidationResult


class CLIReporter:
    """CLI reporter with color-coded output.

    Colors: red=errors, yellow=warnings, green=success.

    Example output:
        Selectors found: 42 in 3 files (118ms)
        WARN Duplicate selector ".card" at src/B.tsx:4 (kept ".card" at src/A.tsx:7)
        ERROR Parse error in src/Broken.tsx: syntax error at line 3, column 9
    """

    RED = "\033[0;31m"
    YELLOW = "\033[1;33m"
    GREEN = "\033[0;32m"
    BLUE = "\033[0;34m"
    RESET = "\033[0m"
    DIM = "\033[2m"

    def __init__(self, stream: TextIO = sys.stderr, use_color: bool | None = None):
        """Initialize the CLI reporter.

        Args:
            stream: Output stream (default: stderr).
            use_color: Whether to use ANSI colors. Auto-detects if None.
        """
        self.stream = stream
        if use_color is None:
            self.use_color = hasattr(stream, "isatty") and stream.isatty()
        else:
            self.use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        if self.use_color:
            return f"{color}{text}{self.RESET}"
        return text

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def report_generation(self, result: GenerationResult, output: str | None = None) -> None:
        """Output a generation summary.

        Args:
            result: Generation result to report.
            output: Where the map was written, None for dry runs.
        """
        for duplicate in result.duplicates:
            self._print(f"{self._paint('WARN', self.YELLOW)} {duplicate.describe()}")
        for error in result.errors:
            self._print(f"{self._paint('ERROR', self.RED)} {error}")

        summary = (
            f"Selectors found: {result.selector_count} in "
            f"{result.files_processed} files ({result.duration_ms:.0f}ms)"
        )
        self._print(self._paint(summary, self.GREEN if not result.has_errors else self.YELLOW))
        if result.errors:
            self._print(f"Errors: {len(result.errors)}")
        if output:
            self._print(f"Code map written to {output}")

    def report_validation(self, result: ValidationResult) -> None:
        """Output validation errors, warnings and a summary.

        Args:
            result: Validation result to report.
        """
        for error in result.errors:
            self._print(f"{self._paint('ERROR', self.RED)} {error}")
        for warning in result.warnings:
            self._print(f"{self._paint('WARN', self.YELLOW)} {warning}")

        self._print(f"\nTotal selectors: {result.total_selectors}")
        self._print(f"Files referenced: {result.files_referenced}")
        if result.is_valid:
            self._print(self._paint("Code map is valid", self.GREEN))
        else:
            self._print(
                self._paint(f"Code map is invalid ({len(result.errors)} errors)", self.RED)
            )

    def report_matches(self, matches: list[MatchedElement], total_selectors: int) -> None:
        """Output one line per annotated element.

        Args:
            matches: Registry entries from the overlay.
            total_selectors: Size of the loaded code map.
        """
        dim = self.DIM if self.use_color else ""
        reset = self.RESET if self.use_color else ""
        for entry in matches:
            tier = entry.match.tier.value
            self._print(
                f"{self._paint(str(entry.match.location), self.BLUE)} "
                f"<{entry.element.name}> {entry.match.selector} {dim}[{tier}]{reset}"
            )
        self._print(
            f"\n{len(matches)} element(s) annotated from {total_selectors} selectors"
        )

"""Offline validation of a persisted code map against the workspace.

Each broken record (missing file, missing or out-of-range line) is an
error; duplicates and suspicious-but-possible lines are warnings and do
not fail validation.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .codemap_logging import LogCategory, get_category_logger
from .errors import CodeMapNotFoundError, InvalidCodeMapError
from .models import canonical_form

logger = get_category_logger(LogCategory.VALIDATE)


@dataclass
class ValidationResult:
    """Outcome of validating one code map file."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_selectors: int = 0
    files_referenced: int = 0

    @property
    def is_valid(self) -> bool:
        """Valid when no structural errors were found."""
        return not self.errors

    @property
    def exit_code(self) -> int:
        """Process exit code for the CLI."""
        return 0 if self.is_valid else 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "totalSelectors": self.total_selectors,
            "filesReferenced": self.files_referenced,
        }


class CodeMapValidator:
    """Checks every record of a code map against files on disk."""

    def __init__(self, workspace_root: Path | str | None = None):
        """Initialize the validator.

        Args:
            workspace_root: Directory relative record paths resolve against.
        """
        self.workspace_root = Path(workspace_root or ".").resolve()
        self._line_counts: dict[Path, int | None] = {}

    def validate_file(self, code_map_path: Path) -> ValidationResult:
        """Validate a code map file.

        Raises:
            CodeMapNotFoundError: If the file does not exist.
            InvalidCodeMapError: If the file is not a JSON object.
        """
        if not code_map_path.exists():
            raise CodeMapNotFoundError(str(code_map_path))

        raw_duplicates: list[str] = []

        def collect_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
            result: dict[str, Any] = {}
            for key, value in pairs:
                if key in result:
                    raw_duplicates.append(key)
                else:
                    result[key] = value
            return result

        try:
            data = json.loads(
                code_map_path.read_text(encoding="utf-8"), object_pairs_hook=collect_pairs
            )
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidCodeMapError(str(code_map_path), str(e)) from e

        if not isinstance(data, dict):
            raise InvalidCodeMapError(str(code_map_path), "expected a JSON object")

        result = self.validate(data)
        for selector in sorted(set(raw_duplicates)):
            count = raw_duplicates.count(selector) + 1
            result.warnings.append(
                f'Duplicate selector "{selector}" found in {count} locations'
            )
        return result

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate decoded code map data.

        Args:
            data: Selector -> record mapping as decoded from JSON.

        Returns:
            ValidationResult with errors, warnings and counts.
        """
        result = ValidationResult(total_selectors=len(data))
        files: set[str] = set()
        canonical_owners: dict[tuple, str] = {}

        if not data:
            result.warnings.append("Code map is empty")

        for selector, record in data.items():
            owner = canonical_owners.setdefault(canonical_form(selector), selector)
            if owner != selector:
                result.warnings.append(
                    f'Selector "{selector}" duplicates "{owner}" after normalization'
                )

            if (
                not isinstance(record, dict)
                or not record.get("file")
                or not isinstance(record["file"], str)
                or "line" not in record
            ):
                result.errors.append(f'Selector "{selector}" missing file or line')
                continue

            file_name = record["file"]
            line = record["line"]
            files.add(file_name)

            file_path = Path(file_name)
            if not file_path.is_absolute():
                file_path = self.workspace_root / file_path

            if not file_path.is_file():
                result.errors.append(
                    f'Selector "{selector}" references non-existent file: {file_name}'
                )
                continue

            if isinstance(line, bool) or not isinstance(line, int) or line < 1:
                result.errors.append(
                    f'Selector "{selector}" has invalid line number: {line!r}'
                )
                continue

            line_count = self._line_count(file_path)
            if line_count is None:
                result.warnings.append(
                    f'Could not validate line number for "{selector}": unreadable file'
                )
            elif line > line_count:
                result.errors.append(
                    f'Selector "{selector}" line {line} exceeds file length '
                    f"({line_count} lines) in {file_name}"
                )
            elif line == line_count:
                result.warnings.append(
                    f'Selector "{selector}" points at the last line of {file_name}'
                )

        result.files_referenced = len(files)
        logger.debug(
            f"Validated {result.total_selectors} selectors: "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _line_count(self, file_path: Path) -> int | None:
        if file_path not in self._line_counts:
            try:
                content = file_path.read_text(encoding="utf-8")
                self._line_counts[file_path] = len(content.splitlines())
            except (OSError, UnicodeDecodeError):
                self._line_counts[file_path] = None
        return self._line_counts[file_path]

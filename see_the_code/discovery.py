"""Component file discovery with gitignore-style ignore patterns."""

from collections.abc import Iterable
from pathlib import Path

import pathspec

from .codemap_logging import LogCategory, get_category_logger
from .config import GenerateConfig

logger = get_category_logger(LogCategory.GENERATE)


class IgnoreMatcher:
    """Gitignore-compatible pattern matcher using pathspec library.

    Paths are matched relative to a root directory, so ``node_modules``
    matches at any depth and ``**/*.test.*`` matches test files anywhere.
    """

    def __init__(self, root: Path, patterns: Iterable[str]):
        self.root = root.resolve()
        self._patterns = [
            p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")
        ]
        self._spec = (
            pathspec.PathSpec.from_lines(
                pathspec.patterns.GitWildMatchPattern, self._patterns
            )
            if self._patterns
            else None
        )

    def matches(self, path: Path) -> bool:
        """Check if a path should be ignored."""
        if self._spec is None:
            return False

        try:
            relative = path.resolve().relative_to(self.root)
        except ValueError:
            return False

        return self._spec.match_file(relative.as_posix())


def discover_files(config: GenerateConfig, base: Path | None = None) -> list[Path]:
    """Find component files under the configured inputs.

    An input that is a file is taken as-is; a directory is searched
    recursively for files matching the include globs, skipping ignored
    paths. Missing inputs are logged and skipped.

    Args:
        config: Generation configuration.
        base: Directory relative inputs are resolved against (default cwd).

    Returns:
        Sorted, de-duplicated absolute paths.
    """
    base = base or Path.cwd()
    files: set[Path] = set()

    for input_path in config.resolved_inputs(base):
        if not input_path.exists():
            logger.warning(f"Input path does not exist: {input_path}")
            continue

        if input_path.is_file():
            files.add(input_path)
            continue

        ignore = IgnoreMatcher(input_path, config.ignore)
        for pattern in config.include:
            for match in input_path.rglob(pattern):
                if match.is_file() and not ignore.matches(match):
                    files.add(match.resolve())

    return sorted(files)

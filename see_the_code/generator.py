"""
Code map generation: discovery, per-file extraction, deterministic merge.

Extraction can run in a process pool; the merge always happens afterwards,
sequentially, in lexicographic file order.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .aggregation import DuplicateSelector, aggregate
from .codemap_logging import LogCategory, get_category_logger
from .config import ExtractionOptions, GenerateConfig
from .discovery import discover_files
from .errors import ParseError
from .extraction.extractor import FileExtraction, extract_file
from .models import CodeMap

logger = get_category_logger(LogCategory.GENERATE)


def init_worker() -> None:
    """Initialize worker process with quiet logging."""
    logging.basicConfig(level=logging.ERROR)


def extract_file_worker(args: tuple[Path, Path, ExtractionOptions]) -> dict[str, Any]:
    """
    Worker function for extracting a single file.

    Args:
        args: Tuple of (file_path, workspace_root, options)

    Returns:
        Dictionary with the extraction or the parse error
    """
    file_path, workspace_root, options = args
    try:
        return {
            "status": "success",
            "file_path": str(file_path),
            "extraction": extract_file(file_path, workspace_root, options),
        }
    except ParseError as e:
        return {"status": "error", "file_path": str(file_path), "error": e}


@dataclass
class GenerationResult:
    """Outcome of one generation run."""

    code_map: CodeMap
    files_processed: int = 0
    errors: list[ParseError] = field(default_factory=list)
    duplicates: list[DuplicateSelector] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def selector_count(self) -> int:
        """Number of selectors in the merged map."""
        return len(self.code_map)

    @property
    def has_errors(self) -> bool:
        """Check if any file failed to parse."""
        return len(self.errors) > 0


class CodeMapGenerator:
    """Builds a code map from the configured component sources."""

    def __init__(self, config: GenerateConfig | None = None, base: Path | None = None):
        """Initialize the generator.

        Args:
            config: Generation configuration.
            base: Directory relative config paths are resolved against.
        """
        self.config = config or GenerateConfig()
        self.base = base or Path.cwd()
        self.workspace_root = self.config.resolved_workspace_root(self.base)

    def generate(self, files: list[Path] | None = None) -> GenerationResult:
        """Discover, extract and merge.

        Args:
            files: Explicit file list; discovered from the config when None.

        Returns:
            GenerationResult with the merged code map and statistics.
        """
        start_time = time.time()

        logger.info("Discovering files...")
        if files is None:
            files = discover_files(self.config, self.base)
        files = sorted(Path(f).resolve() for f in files)
        logger.info(f"Found {len(files)} files to process")

        if not files:
            logger.warning("No files found matching the criteria")
            return GenerationResult(code_map=CodeMap())

        extractions, errors = self._extract_all(files)

        for error in errors:
            logger.error(f"Error processing {error.file_path}: {error.message}")

        aggregation = aggregate(extractions, self.config.options.warn_on_duplicates)
        result = GenerationResult(
            code_map=aggregation.code_map,
            files_processed=len(extractions),
            errors=errors,
            duplicates=aggregation.duplicates,
            duration_ms=(time.time() - start_time) * 1000,
        )

        logger.info(f"Files processed: {result.files_processed}")
        logger.info(f"Selectors found: {result.selector_count}")
        if errors:
            logger.warning(f"Errors: {len(errors)}")

        return result

    def _extract_all(
        self, files: list[Path]
    ) -> tuple[list[FileExtraction], list[ParseError]]:
        """Extract every file, sequentially or in a process pool.

        Returned lists follow the input file order regardless of the
        order workers finish in.
        """
        jobs = [(f, self.workspace_root, self.config.options) for f in files]

        if self.config.workers > 1 and len(files) > 1:
            outcomes: dict[str, dict[str, Any]] = {}
            with ProcessPoolExecutor(
                max_workers=self.config.workers, initializer=init_worker
            ) as executor:
                futures = [executor.submit(extract_file_worker, job) for job in jobs]
                for future in as_completed(futures):
                    outcome = future.result()
                    outcomes[outcome["file_path"]] = outcome
            ordered = [outcomes[str(f)] for f in files]
        else:
            ordered = [extract_file_worker(job) for job in jobs]

        extractions: list[FileExtraction] = []
        errors: list[ParseError] = []
        for outcome in ordered:
            if outcome["status"] == "success":
                extraction = outcome["extraction"]
                extractions.append(extraction)
                if self.config.verbose:
                    logger.info(
                        f"  {extraction.file_path} ({extraction.selector_count} selectors)"
                    )
            else:
                errors.append(outcome["error"])

        return extractions, errors

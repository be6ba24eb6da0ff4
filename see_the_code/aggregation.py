"""Deterministic merge of per-file selector maps into one code map."""

from collections.abc import Iterable
from dataclasses import dataclass

from .codemap_logging import LogCategory, get_category_logger
from .extraction.extractor import FileExtraction
from .models import CodeMap, SelectorKind, SourceLocation, canonical_form

logger = get_category_logger(LogCategory.GENERATE)


@dataclass(frozen=True)
class DuplicateSelector:
    """A selector occurrence dropped because its canonical form was taken."""

    selector: str
    location: SourceLocation
    kept_selector: str
    kept_location: SourceLocation

    def describe(self) -> str:
        """One-line description naming both occurrences."""
        return (
            f'Duplicate selector "{self.selector}" at {self.location} '
            f'(kept "{self.kept_selector}" at {self.kept_location})'
        )


@dataclass
class AggregationResult:
    """The merged code map and the occurrences it dropped."""

    code_map: CodeMap
    duplicates: list[DuplicateSelector]


def aggregate(
    extractions: Iterable[FileExtraction], warn_on_duplicates: bool = True
) -> AggregationResult:
    """Merge per-file selector maps, first occurrence wins.

    Files are folded in lexicographic path order no matter what order they
    arrive in, and each file's keys in the order they were emitted, so the
    result is identical across runs and across worker counts.

    Args:
        extractions: Per-file extraction results, in any order.
        warn_on_duplicates: Log a warning for each dropped occurrence.

    Returns:
        AggregationResult with the merged map and dropped duplicates.
    """
    entries: dict[str, SourceLocation] = {}
    seen: dict[tuple[SelectorKind, str], str] = {}
    duplicates: list[DuplicateSelector] = []

    for extraction in sorted(extractions, key=lambda e: e.file_path):
        for selector, location in extraction.selectors.items():
            canonical = canonical_form(selector)
            kept = seen.get(canonical)
            if kept is None:
                seen[canonical] = selector
                entries[selector] = location
                continue

            duplicate = DuplicateSelector(
                selector=selector,
                location=location,
                kept_selector=kept,
                kept_location=entries[kept],
            )
            duplicates.append(duplicate)
            if warn_on_duplicates:
                logger.warning(duplicate.describe())

    return AggregationResult(code_map=CodeMap(entries), duplicates=duplicates)

"""
Shared fixtures for the see-the-code test suite.

Provides test fixtures for:
- Component workspaces written to temporary directories
- Parsing helpers for JSX/TSX snippets
- Sample code maps and documents for the runtime side
- Logger state isolation between tests
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from see_the_code.codemap_logging import ROOT_LOGGER_NAME
from see_the_code.config import ExtractionOptions
from see_the_code.extraction.extractor import SelectorExtractor
from see_the_code.extraction.parser import get_parser
from see_the_code.models import CodeMap, SourceLocation
from see_the_code.runtime.document import parse_document

# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Component workspace fixtures
# ---------------------------------------------------------------------------


BUTTON_TSX = """import React from 'react';

export function Button({ label, primary }: { label: string; primary?: boolean }) {
  return (
    <button className="btn btn-primary" data-testid="submit-button">
      {label}
    </button>
  );
}
"""

CARD_JSX = """export default function Card({ show, items }) {
  return (
    <div className="card" id="main-card">
      {show && <div className="modal">Details</div>}
      {items.map((item) => (
        <li className="card-item" key={item.id}>{item.name}</li>
      ))}
    </div>
  );
}
"""

HEADER_TSX = """export const Header = () => (
  <header className="site-header">
    <h1 className="title">See the code</h1>
  </header>
);
"""


@pytest.fixture()
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a file below tmp_path, creating parent directories."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def component_workspace(tmp_path: Path, write_file) -> Path:
    """A small React project with components and files that must be ignored."""
    write_file("src/components/Button.tsx", BUTTON_TSX)
    write_file("src/components/Card.jsx", CARD_JSX)
    write_file("src/layout/Header.tsx", HEADER_TSX)
    write_file(
        "src/components/Button.test.tsx",
        'export const t = () => <div className="test-only" />;\n',
    )
    write_file(
        "src/node_modules/lib/Thing.jsx",
        'export const Thing = () => <div className="vendored" />;\n',
    )
    write_file("src/utils/format.ts", "export const format = (x: string) => x;\n")
    return tmp_path


# ---------------------------------------------------------------------------
# Extraction helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def extract() -> Callable[..., dict[str, SourceLocation]]:
    """Parse a snippet and extract its selectors."""

    def _extract(
        content: str,
        file_name: str = "src/App.tsx",
        options: ExtractionOptions | None = None,
    ) -> dict[str, SourceLocation]:
        tree = get_parser().parse(content, Path(file_name))
        return SelectorExtractor(options).extract(tree, file_name, content)

    return _extract


# ---------------------------------------------------------------------------
# Runtime fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_code_map() -> CodeMap:
    """Code map covering every selector kind."""
    return CodeMap(
        {
            "button": SourceLocation("src/components/Button.tsx", 5),
            ".btn": SourceLocation("src/components/Button.tsx", 5),
            ".btn-primary": SourceLocation("src/components/Button.tsx", 5),
            '[data-testid="submit-button"]': SourceLocation(
                "src/components/Button.tsx", 5
            ),
            ".card": SourceLocation("src/components/Card.jsx", 3),
            "#main-card": SourceLocation("src/components/Card.jsx", 3),
            ".title": SourceLocation(
                "src/layout/Header.tsx", 3, inner_text="See the code"
            ),
        }
    )


SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head><title>Demo</title></head>
<body>
  <div class="card" id="main-card">
    <button class="btn btn-primary" data-testid="submit-button">Save</button>
    <h1 class="css-1x2y3z">See the code</h1>
    <span class="unrelated">nothing here</span>
  </div>
  <script>var x = 1;</script>
</body>
</html>
"""


@pytest.fixture()
def sample_document():
    """Parsed sample page matching sample_code_map."""
    return parse_document(SAMPLE_HTML)

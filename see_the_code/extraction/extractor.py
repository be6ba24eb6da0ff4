"""Selector extraction from parsed JSX/TSX files.

Walks every element of a component file and records the class, id,
data-attribute and element-type selectors it can render, each pointing
at the line of the element's opening tag.
"""

import html
import time
from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Node, Tree

from ..config import ExtractionOptions
from ..errors import ParseError
from ..hashing import selector_fingerprint
from ..models import SourceLocation, class_key, data_attribute_key, id_key
from .attributes import classify, class_tokens, literal_string
from .parser import get_parser, node_line, node_text

ELEMENT_NODE_TYPES = frozenset(["jsx_opening_element", "jsx_self_closing_element"])
CLASS_ATTRIBUTES = frozenset(["className", "class"])
STATIC_TEXT_NODE_TYPES = frozenset(["jsx_text", "html_character_reference"])

# Tag names starting with this are treated as internal components
INTERNAL_MARKER = "_"

# Longest static text recorded as innerText; matches the runtime text cap
MAX_INNER_TEXT_LENGTH = 100


@dataclass
class FileExtraction:
    """Selectors extracted from one file, in emission order."""

    file_path: str
    selectors: dict[str, SourceLocation] = field(default_factory=dict)
    parsing_time_ms: float = 0.0

    @property
    def selector_count(self) -> int:
        """Number of selectors found."""
        return len(self.selectors)


class SelectorExtractor:
    """Extract a selector -> location map from one parsed file.

    Traversal is a full walk of the syntax tree, so elements nested in
    ``&&``/``||`` operands, in either ternary branch (including chained
    and parenthesized ternaries) and in callbacks such as ``.map`` are all
    visited exactly like unconditionally rendered markup.
    """

    def __init__(self, options: ExtractionOptions | None = None):
        self.options = options or ExtractionOptions()

    def extract(self, tree: Tree, file_path: str, content: str) -> dict[str, SourceLocation]:
        """Extract selectors from a parsed file.

        Args:
            tree: Syntax tree of the file.
            file_path: Relative path recorded in each location.
            content: Raw file text the tree was parsed from.

        Returns:
            Ordered mapping of selector key to location; for a key seen
            more than once in the file the first occurrence is kept.
        """
        source = bytes(content, "utf8")
        selectors: dict[str, SourceLocation] = {}

        for node in self._walk(tree.root_node):
            if node.type in ELEMENT_NODE_TYPES:
                self._extract_element(node, file_path, content, source, selectors)

        return selectors

    def _walk(self, root: Node):
        """Yield nodes in document order."""
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def _extract_element(
        self,
        opening: Node,
        file_path: str,
        content: str,
        source: bytes,
        selectors: dict[str, SourceLocation],
    ) -> None:
        line = node_line(opening)
        if line is None or line < 1:
            return

        inner_text = (
            self._static_inner_text(opening, source)
            if self.options.include_inner_text
            else None
        )

        def emit(key: str) -> None:
            if key in selectors:
                return
            selectors[key] = SourceLocation(
                file=file_path,
                line=line,
                hash=(
                    selector_fingerprint(content, key, line)
                    if self.options.include_hashes
                    else None
                ),
                inner_text=inner_text,
            )

        if self.options.extract_element_types:
            tag = self._element_name(opening, source)
            if tag and not tag.startswith(INTERNAL_MARKER):
                emit(tag)

        for attr in opening.named_children:
            if attr.type != "jsx_attribute":
                continue
            parts = attr.named_children
            if not parts:
                continue
            name = node_text(parts[0], source)
            value = classify(parts[1] if len(parts) > 1 else None)

            if name in CLASS_ATTRIBUTES:
                for token in class_tokens(
                    value, source, self.options.handle_dynamic_classes
                ):
                    emit(class_key(token))
            elif name == "id":
                literal = literal_string(value, source)
                if literal:
                    emit(id_key(literal))
            elif name.startswith("data-") and self.options.extract_data_attributes:
                literal = literal_string(value, source)
                if literal is not None:
                    emit(data_attribute_key(name, literal))

    def _element_name(self, opening: Node, source: bytes) -> str | None:
        """Lowercased tag name; the trailing member of ``A.B`` references."""
        name_node = opening.child_by_field_name("name")
        if name_node is None:
            return None  # fragment
        if name_node.type == "jsx_namespace_name":
            return None
        name = node_text(name_node, source).rsplit(".", 1)[-1]
        return name.lower() or None

    def _static_inner_text(self, opening: Node, source: bytes) -> str | None:
        """Static text content of an element whose children are all text."""
        element = opening.parent
        if opening.type != "jsx_opening_element" or element is None:
            return None

        pieces: list[str] = []
        for child in element.named_children:
            if child.type in ("jsx_opening_element", "jsx_closing_element"):
                continue
            if child.type not in STATIC_TEXT_NODE_TYPES:
                return None
            pieces.append(html.unescape(node_text(child, source)))

        text = " ".join("".join(pieces).split())
        if not text or len(text) > MAX_INNER_TEXT_LENGTH:
            return None
        return text


def extract_file(
    file_path: Path, workspace_root: Path, options: ExtractionOptions
) -> FileExtraction:
    """Read, parse and extract one file.

    Module-level so it can run in worker processes.

    Raises:
        ParseError: If the file cannot be read as UTF-8 or has syntax errors.
    """
    start_time = time.time()
    relative = relative_path(file_path, workspace_root)

    try:
        content = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(relative, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise ParseError(relative, str(e)) from e

    tree = get_parser().parse(content, file_path, display_path=relative)
    selectors = SelectorExtractor(options).extract(tree, relative, content)

    return FileExtraction(
        file_path=relative,
        selectors=selectors,
        parsing_time_ms=(time.time() - start_time) * 1000,
    )


def relative_path(file_path: Path, workspace_root: Path) -> str:
    """Posix path of a file relative to the workspace root.

    Files outside the workspace keep their absolute path.
    """
    resolved = file_path.resolve()
    try:
        return resolved.relative_to(workspace_root.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()

"""Tree-sitter parsing for JSX and TSX component files."""

from pathlib import Path
from typing import Any

from tree_sitter import Language, Node, Parser, Tree

from ..errors import ParseError


class JSXParser:
    """Parse JSX/TSX source with tree-sitter.

    ``.tsx`` files use the TSX grammar from tree-sitter-typescript; every
    other supported extension uses the JavaScript grammar, which includes
    JSX.
    """

    SUPPORTED_EXTENSIONS = [".jsx", ".tsx", ".js"]

    def __init__(self) -> None:
        import tree_sitter_javascript as tsjs
        import tree_sitter_typescript as tsts

        self._js_parser = Parser(Language(tsjs.language()))
        self._tsx_parser = Parser(Language(tsts.language_tsx()))

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file."""
        return file_path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def parse_tree(self, content: str, file_path: Path) -> Tree:
        """Parse content with the grammar matching the file extension."""
        parser = (
            self._tsx_parser
            if file_path.suffix.lower() == ".tsx"
            else self._js_parser
        )
        return parser.parse(bytes(content, "utf8"))

    def parse(self, content: str, file_path: Path, display_path: str | None = None) -> Tree:
        """Parse a file and reject trees with syntax errors.

        Args:
            content: Raw file text.
            file_path: Path used to select the grammar.
            display_path: Path reported in errors (defaults to file_path).

        Returns:
            The tree-sitter syntax tree.

        Raises:
            ParseError: If the source contains syntax errors.
        """
        tree = self.parse_tree(content, file_path)
        if tree.root_node.has_error:
            error_node = self._first_error(tree.root_node)
            if error_node is not None:
                row, column = error_node.start_point
                reason = "missing token" if error_node.is_missing else "syntax error"
                message = f"{reason} at line {row + 1}, column {column + 1}"
            else:
                message = "syntax error"
            raise ParseError(display_path or str(file_path), message)
        return tree

    def _first_error(self, root: Node) -> Node | None:
        """Find the first ERROR or MISSING node in document order."""
        stack: list[Node] = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return None


_parser: JSXParser | None = None


def get_parser() -> JSXParser:
    """Return the process-wide parser, building it on first use.

    Parsers hold native handles and cannot be pickled, so each worker
    process builds its own.
    """
    global _parser
    if _parser is None:
        _parser = JSXParser()
    return _parser


def node_text(node: Node, source: bytes) -> str:
    """Extract text from tree-sitter node."""
    return source[node.start_byte : node.end_byte].decode("utf-8")


def node_line(node: Any) -> int | None:
    """1-based line of a node's start, or None when it has no position."""
    point = getattr(node, "start_point", None)
    if point is None:
        return None
    return point[0] + 1

"""Static selector extraction from JSX/TSX component sources."""

from .attributes import AttributeValue, AttributeValueKind, class_tokens, classify
from .extractor import FileExtraction, SelectorExtractor, extract_file, relative_path
from .parser import JSXParser, get_parser

__all__ = [
    "AttributeValue",
    "AttributeValueKind",
    "FileExtraction",
    "JSXParser",
    "SelectorExtractor",
    "class_tokens",
    "classify",
    "extract_file",
    "get_parser",
    "relative_path",
]

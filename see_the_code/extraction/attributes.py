"""Attribute value shapes and their class-token extraction rules.

A JSX attribute value is classified once into a closed set of kinds and
each kind has exactly one extraction rule, so no rule ever inspects a
node type it does not own.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

from tree_sitter import Node

from .parser import node_text


class AttributeValueKind(Enum):
    """Shapes a JSX attribute value can take."""

    STRING = "string"  # "btn primary"
    TEMPLATE = "template"  # `btn ${x}`
    ARRAY = "array"  # ['btn', 'primary']
    MEMBER = "member"  # styles.button
    EXPRESSION = "expression"  # anything else: calls, identifiers, ternaries
    ABSENT = "absent"  # boolean attribute with no value


@dataclass(frozen=True)
class AttributeValue:
    """A classified attribute value."""

    kind: AttributeValueKind
    node: Node | None


_KIND_BY_NODE_TYPE = {
    "string": AttributeValueKind.STRING,
    "template_string": AttributeValueKind.TEMPLATE,
    "array": AttributeValueKind.ARRAY,
    "member_expression": AttributeValueKind.MEMBER,
}


def unwrap_expression(node: Node | None) -> Node | None:
    """Strip ``{...}`` containers and parentheses around an expression."""
    while node is not None and node.type in ("jsx_expression", "parenthesized_expression"):
        inner = [child for child in node.named_children if child.type != "comment"]
        node = inner[0] if inner else None
    return node


def classify(value_node: Node | None) -> AttributeValue:
    """Classify the value node of a ``jsx_attribute``."""
    node = unwrap_expression(value_node)
    if node is None:
        return AttributeValue(AttributeValueKind.ABSENT, None)
    kind = _KIND_BY_NODE_TYPE.get(node.type, AttributeValueKind.EXPRESSION)
    return AttributeValue(kind, node)


def string_value(node: Node, source: bytes) -> str:
    """Contents of a string literal node without its quotes."""
    return node_text(node, source)[1:-1]


def literal_string(value: AttributeValue, source: bytes) -> str | None:
    """The value of a literal string attribute, None for any other shape."""
    if value.kind is AttributeValueKind.STRING and value.node is not None:
        return string_value(value.node, source)
    return None


def template_static_segments(node: Node, source: bytes) -> list[str]:
    """Static text of a template string, split at each interpolation."""
    segments: list[str] = []
    cursor = node.start_byte + 1  # opening backtick
    end = node.end_byte - 1  # closing backtick
    for child in node.children:
        if child.type == "template_substitution":
            segments.append(source[cursor : child.start_byte].decode("utf-8"))
            cursor = child.end_byte
    segments.append(source[cursor:end].decode("utf-8"))
    return segments


def _string_tokens(value: AttributeValue, source: bytes, dynamic: bool) -> Iterator[str]:
    yield from string_value(value.node, source).split()


def _template_tokens(value: AttributeValue, source: bytes, dynamic: bool) -> Iterator[str]:
    for segment in template_static_segments(value.node, source):
        yield from segment.split()


def _array_tokens(value: AttributeValue, source: bytes, dynamic: bool) -> Iterator[str]:
    for element in value.node.named_children:
        if element.type == "string":
            yield from string_value(element, source).split()


def _member_tokens(value: AttributeValue, source: bytes, dynamic: bool) -> Iterator[str]:
    # Only the property name is known here, not the class the style
    # module generates for it.
    if not dynamic:
        return
    prop = value.node.child_by_field_name("property")
    if prop is not None and prop.type == "property_identifier":
        yield node_text(prop, source)


def _no_tokens(value: AttributeValue, source: bytes, dynamic: bool) -> Iterator[str]:
    return iter(())


_CLASS_RULES: dict[AttributeValueKind, Callable[[AttributeValue, bytes, bool], Iterator[str]]] = {
    AttributeValueKind.STRING: _string_tokens,
    AttributeValueKind.TEMPLATE: _template_tokens,
    AttributeValueKind.ARRAY: _array_tokens,
    AttributeValueKind.MEMBER: _member_tokens,
    AttributeValueKind.EXPRESSION: _no_tokens,
    AttributeValueKind.ABSENT: _no_tokens,
}


def class_tokens(
    value: AttributeValue, source: bytes, handle_dynamic_classes: bool = False
) -> list[str]:
    """Class tokens a ``className`` value can contribute.

    Args:
        value: The classified attribute value.
        source: Raw file bytes the tree was parsed from.
        handle_dynamic_classes: Emit property names of member accesses.

    Returns:
        Non-empty tokens in source order.
    """
    rule = _CLASS_RULES[value.kind]
    return [token for token in rule(value, source, handle_dynamic_classes) if token]

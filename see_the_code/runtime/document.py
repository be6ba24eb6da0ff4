"""Element helpers over BeautifulSoup document trees.

The overlay owns a handful of namespaced classes; these helpers read an
element's classes, id, visible text and rendered box while ignoring
anything the overlay itself inserted.
"""

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString

from ..models import LayoutBox

# Overlay-owned roles; elements carrying these classes are never matched
WRAPPER_ROLE = "element-wrapper"
MARKER_ROLE = "badge"
FILE_INFO_ROLE = "file-info"
OVERLAY_ROLES = (WRAPPER_ROLE, MARKER_ROLE, FILE_INFO_ROLE)

TEXTLESS_TAGS = frozenset(["script", "style", "template", "noscript"])


def ns(namespace: str, name: str) -> str:
    """Prefix a class or attribute name with the overlay namespace."""
    return f"{namespace}-{name}"


def box_attribute(namespace: str) -> str:
    """Attribute a captured page stores each element's rendered box in."""
    return f"data-{namespace}-box"


def parse_document(markup: str) -> BeautifulSoup:
    """Parse HTML into a document tree."""
    return BeautifulSoup(markup, "html.parser")


def class_list(element: Tag) -> list[str]:
    """Class tokens of an element in attribute order."""
    value = element.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [token for token in value if token]


def has_class(element: Tag, name: str) -> bool:
    return name in class_list(element)


def add_class(element: Tag, name: str) -> None:
    classes = class_list(element)
    if name not in classes:
        element["class"] = classes + [name]


def remove_class(element: Tag, name: str) -> None:
    classes = class_list(element)
    if name in classes:
        remaining = [c for c in classes if c != name]
        if remaining:
            element["class"] = remaining
        else:
            del element["class"]


def element_id(element: Tag) -> str | None:
    """The element's id attribute, None when missing or blank."""
    value = element.get("id")
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip() or None if value else None


def is_overlay_node(element: Tag, namespace: str) -> bool:
    """True for wrappers, markers and marker contents the overlay inserted."""
    classes = class_list(element)
    return any(ns(namespace, role) in classes for role in OVERLAY_ROLES)


def visible_text(element: Tag, namespace: str) -> str:
    """Whitespace-collapsed text content, skipping overlay markers.

    Script, style and template contents and comments are not visible and
    are skipped as well.
    """
    pieces: list[str] = []

    def collect(node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                if child.name in TEXTLESS_TAGS or is_overlay_node(child, namespace):
                    continue
                collect(child)
            elif isinstance(child, NavigableString) and not isinstance(
                child, PreformattedString
            ):
                pieces.append(str(child))

    collect(element)
    return " ".join(" ".join(pieces).split())


def layout_box(element: Tag, namespace: str) -> LayoutBox | None:
    """Rendered box captured for the element, None when not measured."""
    raw = element.get(box_attribute(namespace))
    if not raw or not isinstance(raw, str):
        return None
    try:
        x, y, width, height = (float(part) for part in raw.split(","))
    except ValueError:
        return None
    return LayoutBox(x=x, y=y, width=width, height=height)

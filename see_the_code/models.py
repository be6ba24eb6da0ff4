"""Data models shared by the extraction and runtime halves.

This module defines the selector key grammar, the source location record
and the immutable code map that links selector keys to source lines.
"""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")


class SelectorKind(Enum):
    """The four disjoint selector key grammars."""

    CLASS = "class"  # .token
    ID = "id"  # #token
    DATA_ATTRIBUTE = "data"  # [data-name="value"]
    ELEMENT = "element"  # button


def selector_kind(key: str) -> SelectorKind:
    """Classify a selector key by its type prefix."""
    if key.startswith("."):
        return SelectorKind.CLASS
    if key.startswith("#"):
        return SelectorKind.ID
    if key.startswith("["):
        return SelectorKind.DATA_ATTRIBUTE
    return SelectorKind.ELEMENT


def bare_token(key: str) -> str:
    """Strip the type prefix from a selector key.

    ``.card`` -> ``card``, ``#main`` -> ``main``,
    ``[data-id="x"]`` -> ``data-id="x"``, ``button`` -> ``button``.
    """
    kind = selector_kind(key)
    if kind is SelectorKind.DATA_ATTRIBUTE:
        return key[1:-1] if key.endswith("]") else key[1:]
    if kind in (SelectorKind.CLASS, SelectorKind.ID):
        return key[1:]
    return key


def canonical_form(key: str) -> tuple[SelectorKind, str]:
    """Compute the canonical form of a key for duplicate detection.

    The type prefix is kept as the kind so that ``.x`` and ``#x`` never
    collapse; the body is kebab-cased and lower-cased so that
    ``.activeButton`` and ``.active-button`` do.
    """
    body = _CAMEL_BOUNDARY.sub(r"\1-\2", bare_token(key)).lower()
    return selector_kind(key), body


def class_key(token: str) -> str:
    """Build a class selector key."""
    return f".{token}"


def id_key(token: str) -> str:
    """Build an id selector key."""
    return f"#{token}"


def data_attribute_key(name: str, value: str) -> str:
    """Build a data-attribute selector key."""
    return f'[{name}="{value}"]'


@dataclass(frozen=True)
class SourceLocation:
    """Source location a selector key points back to.

    ``line`` is 1-based. ``hash`` and ``inner_text`` are optional
    enrichments and are left out of the serialized form when unset.
    """

    file: str
    line: int
    hash: str | None = None
    inner_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"file": self.file, "line": self.line}
        if self.hash is not None:
            result["hash"] = self.hash
        if self.inner_text is not None:
            result["innerText"] = self.inner_text
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceLocation":
        """Create from dictionary."""
        return cls(
            file=data["file"],
            line=data["line"],
            hash=data.get("hash"),
            inner_text=data.get("innerText"),
        )

    def __str__(self) -> str:
        """Return file:line format for easy navigation."""
        return f"{self.file}:{self.line}"


class CodeMap(Mapping[str, SourceLocation]):
    """Read-only mapping from selector key to source location.

    Iteration follows insertion order, which is the order the aggregation
    layer accepted keys in; runtime tie-breaks depend on it.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, SourceLocation] | None = None):
        self._entries: dict[str, SourceLocation] = dict(entries or {})

    def __getitem__(self, key: str) -> SourceLocation:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CodeMap):
            return list(self._entries.items()) == list(other._entries.items())
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._entries.items()))

    def __repr__(self) -> str:
        return f"CodeMap({len(self._entries)} selectors)"

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Convert to the persisted JSON object shape."""
        return {key: location.to_dict() for key, location in self._entries.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, dict[str, Any]]) -> "CodeMap":
        """Create from the persisted JSON object shape."""
        return cls(
            {key: SourceLocation.from_dict(value) for key, value in data.items()}
        )

    @property
    def files(self) -> set[str]:
        """Distinct files referenced by the map."""
        return {location.file for location in self._entries.values()}


@dataclass
class LayoutBox:
    """Rendered box of a runtime element."""

    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayoutBox":
        """Create from dictionary."""
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
        )

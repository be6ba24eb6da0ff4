"""Tiered matching of live elements against a code map.

Tiers, first success wins:

1. Structural: the element matches a selector key as a CSS selector.
2. Text identity: the element's short visible text equals a recorded
   ``innerText`` (case-insensitive).
3. Fuzzy: a class token or the id overlaps the bare token of any key.

Tiers 2 and 3 are heuristics and can be switched off independently.
"""

from dataclasses import dataclass
from enum import Enum

import soupsieve as sv
from bs4 import Tag

from ..codemap_logging import LogCategory, get_category_logger
from ..models import CodeMap, SelectorKind, SourceLocation, bare_token, selector_kind
from .document import class_list, element_id, visible_text

logger = get_category_logger(LogCategory.RUNTIME)

DEFAULT_TEXT_MAX_LENGTH = 100

# Errors soupsieve raises for selectors it cannot compile or evaluate
SELECTOR_ERRORS = (sv.SelectorSyntaxError, NotImplementedError, ValueError, TypeError)


def fuzzy_token(key: str) -> str:
    """Token of a key compared in the fuzzy tier.

    ``[data-testid="submit"]`` -> ``submit``; every other kind uses its
    bare token.
    """
    token = bare_token(key)
    if selector_kind(key) is SelectorKind.DATA_ATTRIBUTE and "=" in token:
        token = token.split("=", 1)[1].strip('"')
    return token


class MatchTier(Enum):
    """Strategy that produced a match."""

    STRUCTURAL = "structural"
    TEXT = "text"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class MatchResult:
    """A matched selector key, its record and the tier that found it."""

    selector: str
    location: SourceLocation
    tier: MatchTier


class RuntimeMatcher:
    """Find the source location of a live element."""

    def __init__(
        self,
        code_map: CodeMap,
        enable_inner_text_fallback: bool = True,
        enable_fuzzy_matching: bool = True,
        text_max_length: int = DEFAULT_TEXT_MAX_LENGTH,
        namespace: str = "see-the-code",
    ):
        """Initialize the matcher.

        Args:
            code_map: Selector map to match against.
            enable_inner_text_fallback: Enable the text-identity tier.
            enable_fuzzy_matching: Enable the fuzzy token tier.
            text_max_length: Longest element text the text tier considers.
            namespace: Overlay namespace; its classes and markers are ignored.
        """
        self.code_map = code_map
        self.enable_inner_text_fallback = enable_inner_text_fallback
        self.enable_fuzzy_matching = enable_fuzzy_matching
        self.text_max_length = text_max_length
        self.namespace = namespace
        self._compiled: dict[str, sv.SoupSieve | None] = {}

    def match(self, element: Tag) -> MatchResult | None:
        """Run the tiers in order and return the first match, if any."""
        result = self.match_structural(element)
        if result is None and self.enable_inner_text_fallback:
            result = self.match_text(element)
            if result is not None:
                logger.debug("Matched by innerText")
        if result is None and self.enable_fuzzy_matching:
            result = self.match_fuzzy(element)
            if result is not None:
                logger.debug("Matched by fuzzy selector")
        return result

    def match_structural(self, element: Tag) -> MatchResult | None:
        """First key, in map order, that the element matches as a selector."""
        for selector, location in self.code_map.items():
            compiled = self._compile(selector)
            if compiled is None:
                continue
            try:
                matched = compiled.match(element)
            except SELECTOR_ERRORS as e:
                logger.debug(f"Selector {selector!r} failed to evaluate: {e}")
                continue
            if matched:
                return MatchResult(selector, location, MatchTier.STRUCTURAL)
        return None

    def match_text(self, element: Tag) -> MatchResult | None:
        """First record whose innerText equals the element's visible text."""
        text = visible_text(element, self.namespace)
        if not text or len(text) > self.text_max_length:
            return None

        wanted = text.lower()
        for selector, location in self.code_map.items():
            if location.inner_text and location.inner_text.lower() == wanted:
                return MatchResult(selector, location, MatchTier.TEXT)
        return None

    def match_fuzzy(self, element: Tag) -> MatchResult | None:
        """Overlap between class tokens (then the id) and any key's bare token."""
        prefix = f"{self.namespace}-"
        tokens = [token for token in class_list(element) if not token.startswith(prefix)]
        identifier = element_id(element)
        if identifier:
            tokens.append(identifier)

        for token in tokens:
            result = self._fuzzy_scan(token)
            if result is not None:
                return result
        return None

    def _fuzzy_scan(self, token: str) -> MatchResult | None:
        for selector, location in self.code_map.items():
            key_token = fuzzy_token(selector)
            if key_token and (key_token in token or token in key_token):
                return MatchResult(selector, location, MatchTier.FUZZY)
        return None

    def _compile(self, selector: str) -> "sv.SoupSieve | None":
        """Compile a key once; keys that do not compile are remembered as None."""
        if selector not in self._compiled:
            try:
                self._compiled[selector] = sv.compile(selector)
            except SELECTOR_ERRORS as e:
                logger.debug(f"Invalid selector {selector!r}: {e}")
                self._compiled[selector] = None
        return self._compiled[selector]

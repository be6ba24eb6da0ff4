"""Live overlay controller.

Drives matching over a document tree, wraps matched elements and attaches
one marker to each, and reprocesses the document (debounced) when nodes
are added. All runtime state lives on a single OverlayController.
"""

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..codemap_logging import LogCategory, get_category_logger
from ..config import INTERACTION_MODES, NON_VISUAL_TAGS, OverlayConfig
from ..errors import CodeMapLoadError
from ..models import CodeMap, SourceLocation
from .debounce import ReprocessScheduler
from .document import (
    FILE_INFO_ROLE,
    MARKER_ROLE,
    WRAPPER_ROLE,
    add_class,
    has_class,
    is_overlay_node,
    layout_box,
    ns,
    remove_class,
)
from .editor import EditorLauncher
from .loader import fetch_code_map
from .matcher import MatchResult, RuntimeMatcher

logger = get_category_logger(LogCategory.OVERLAY)

MARKER_LABEL = "See the code"

MODE_CLASSES = {
    "click": None,
    "hover": "hover-mode",
    "always": "always-visible",
}

OVERLAY_CSS = """
.{ns}-badge {{
  position: absolute;
  top: 2px;
  right: 2px;
  background: rgba(0, 123, 255, 0.9);
  color: white;
  font-size: 10px;
  padding: 2px 6px;
  border-radius: 3px;
  cursor: pointer;
  z-index: 999999;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  white-space: nowrap;
  user-select: none;
}}
.{ns}-badge.{ns}-expanded {{
  padding: 4px 8px;
  max-width: 300px;
  white-space: normal;
  word-break: break-word;
}}
.{ns}-file-info {{ display: none; }}
.{ns}-badge.{ns}-expanded .{ns}-file-info {{
  display: block;
  margin-top: 2px;
  font-size: 9px;
}}
.{ns}-element-wrapper {{ position: relative; }}
.{ns}-badge.{ns}-hover-mode {{ opacity: 0; transition: opacity 0.2s ease; }}
.{ns}-element-wrapper:hover .{ns}-badge.{ns}-hover-mode {{ opacity: 1; }}
.{ns}-badge.{ns}-always-visible {{ opacity: 1; }}
.{ns}-debug-unmatched {{ outline: 2px solid red !important; outline-offset: 2px; }}
"""


class MarkerState(Enum):
    """Interaction state of a marker."""

    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


class Marker:
    """The clickable badge attached to one matched element.

    Starts collapsed; each activation toggles between collapsed and
    expanded, and expanding requests the editor to open the location.
    """

    def __init__(
        self,
        tag: Tag,
        location: SourceLocation,
        namespace: str,
        on_expand: Callable[[SourceLocation], Any] | None = None,
    ):
        self.tag = tag
        self.location = location
        self.namespace = namespace
        self.on_expand = on_expand
        self.state = MarkerState.COLLAPSED

    def activate(self) -> MarkerState:
        """Handle a click on the marker and return the new state."""
        expanded_class = ns(self.namespace, "expanded")
        if self.state is MarkerState.COLLAPSED:
            self.state = MarkerState.EXPANDED
            add_class(self.tag, expanded_class)
            if self.on_expand is not None:
                self.on_expand(self.location)
        else:
            self.state = MarkerState.COLLAPSED
            remove_class(self.tag, expanded_class)
        return self.state

    def set_mode(self, mode: str) -> None:
        """Swap the interaction-mode class on the badge."""
        for mode_class in MODE_CLASSES.values():
            if mode_class:
                remove_class(self.tag, ns(self.namespace, mode_class))
        mode_class = MODE_CLASSES.get(mode)
        if mode_class:
            add_class(self.tag, ns(self.namespace, mode_class))


@dataclass
class MutationRecord:
    """A subtree change reported by the host document."""

    added_nodes: list[Any] = field(default_factory=list)
    removed_nodes: list[Any] = field(default_factory=list)


@dataclass
class MatchedElement:
    """Registry entry for an element that received a marker."""

    element: Tag
    wrapper: Tag
    marker: Marker
    match: MatchResult


class OverlayController:
    """Owns the code map, the matcher, the registries and the reprocess timer."""

    def __init__(
        self,
        document: BeautifulSoup,
        config: OverlayConfig | None = None,
        launcher: EditorLauncher | None = None,
        base_path: Path | None = None,
    ):
        """Initialize the controller.

        Args:
            document: Document tree to annotate in place.
            config: Overlay configuration.
            launcher: Editor launcher; built from the config when None.
            base_path: Directory a relative codeMapUrl resolves against.
        """
        self.document = document
        self.config = config or OverlayConfig()
        self.launcher = launcher or EditorLauncher(
            workspace_root=self.config.workspace_root,
            editor=self.config.editor,
            enabled=self.config.open_in_editor,
        )
        self.base_path = base_path
        self.namespace = self.config.namespace

        self.code_map: CodeMap | None = None
        self.matcher: RuntimeMatcher | None = None
        self.inert = False
        self._matched: dict[int, MatchedElement] = {}
        self._unmatched: dict[int, Tag] = {}
        self._tier_counts: Counter = Counter()
        self._passes = 0
        self._scheduler = ReprocessScheduler(
            self._reprocess, delay=self.config.debounce_ms / 1000
        )

    @property
    def loaded(self) -> bool:
        return self.code_map is not None

    @property
    def matched_elements(self) -> list[MatchedElement]:
        """Registry entries in the order elements were matched."""
        return list(self._matched.values())

    def find_match(self, element: Tag) -> MatchedElement | None:
        """Registry entry for an element, if it was matched."""
        return self._matched.get(id(element))

    async def init(self) -> bool:
        """Load the code map, inject styles and run the first pass.

        Returns:
            True when the overlay is active, False when it went inert.
        """
        if self.inert or not await self.load():
            return False
        self._inject_styles()
        self.process_document()
        return True

    async def load(self) -> bool:
        """Load the code map from ``codeMapUrl``.

        Any failure is reported once and leaves the controller inert;
        nothing is raised to the caller.
        """
        if self.inert:
            return False
        location = self.config.code_map_url
        logger.debug(f"Loading code map from: {location}")
        try:
            code_map = await fetch_code_map(location, self.base_path)
        except CodeMapLoadError as e:
            logger.warning(
                f"{e}. Overlay will not function; "
                "check codeMapUrl or regenerate with: see-the-code generate"
            )
            self.inert = True
            return False

        self.code_map = code_map
        self.matcher = RuntimeMatcher(
            code_map,
            enable_inner_text_fallback=self.config.enable_inner_text_fallback,
            enable_fuzzy_matching=self.config.enable_fuzzy_matching,
            text_max_length=self.config.text_match_max_length,
            namespace=self.namespace,
        )
        logger.debug(f"Code map loaded: {len(code_map)} selectors")
        return True

    def process_document(self) -> int:
        """Run a full matching pass over the document.

        Returns:
            Number of elements newly matched in this pass.
        """
        if self.inert or self.matcher is None:
            return 0

        self._passes += 1
        before = len(self._matched)
        for element in list(self.document.find_all(True)):
            self.process_element(element)

        newly_matched = len(self._matched) - before
        logger.debug(
            f"Pass {self._passes}: matched {newly_matched} new elements, "
            f"{len(self._matched)} total"
        )
        if self.config.enable_debug and self._unmatched:
            logger.warning(f"Unmatched elements: {len(self._unmatched)}")
        return newly_matched

    def process_element(self, element: Tag) -> MatchedElement | None:
        """Match one element and attach its marker.

        Returns:
            The registry entry for a new match, None when the element is
            skipped, already matched or unmatched.
        """
        if self.inert or self.matcher is None:
            return None
        key = id(element)
        if key in self._matched or not self._is_candidate(element):
            return None

        result = self.matcher.match(element)
        if result is None:
            self._unmatched[key] = element
            if self.config.enable_debug:
                add_class(element, ns(self.namespace, "debug-unmatched"))
            return None

        if self._unmatched.pop(key, None) is not None:
            remove_class(element, ns(self.namespace, "debug-unmatched"))

        wrapper = self._ensure_wrapper(element)
        marker = self._create_marker(result.location)
        wrapper.append(marker.tag)

        entry = MatchedElement(element=element, wrapper=wrapper, marker=marker, match=result)
        self._matched[key] = entry
        self._tier_counts[result.tier.value] += 1
        logger.debug(f"Matched <{element.name}> to {result.location} via {result.selector}")
        return entry

    def notify_mutations(self, records: Iterable[MutationRecord]) -> bool:
        """React to document changes.

        Returns:
            True when a reprocessing pass was (re)scheduled.
        """
        if self.inert or self.matcher is None:
            return False
        if any(record.added_nodes for record in records):
            self._scheduler.schedule()
            return True
        return False

    def set_debug(self, enabled: bool) -> None:
        """Toggle highlighting of unmatched elements."""
        if self.inert:
            return
        self.config.enable_debug = enabled
        debug_class = ns(self.namespace, "debug-unmatched")
        for element in self._unmatched.values():
            if enabled:
                add_class(element, debug_class)
            else:
                remove_class(element, debug_class)

    def set_interaction_mode(self, mode: str) -> None:
        """Switch markers between click, hover and always-visible modes.

        Unknown modes are logged and ignored.
        """
        if self.inert:
            return
        if mode not in INTERACTION_MODES:
            logger.warning(
                f"Invalid interaction mode {mode!r}; expected one of {INTERACTION_MODES}"
            )
            return
        self.config.interaction_mode = mode
        for entry in self._matched.values():
            entry.marker.set_mode(mode)

    async def set_code_map_url(self, url: str) -> bool:
        """Point the overlay at another code map and reinitialize."""
        if self.inert:
            return False
        self.config.code_map_url = url
        return await self.reload()

    def set_workspace_root(self, path: str) -> None:
        """Set the root relative record paths resolve against when opening."""
        if self.inert:
            return
        self.config.workspace_root = path
        self.launcher.workspace_root = path

    async def reload(self) -> bool:
        """Remove every marker and wrapper, reload the map and reprocess."""
        if self.inert:
            return False
        self.clear()
        return await self.init()

    def clear(self) -> None:
        """Undo all annotations and reset the registries."""
        self._scheduler.cancel()
        debug_class = ns(self.namespace, "debug-unmatched")
        for entry in self._matched.values():
            entry.marker.tag.decompose()
            if entry.wrapper.parent is not None:
                entry.wrapper.unwrap()
        for element in self._unmatched.values():
            remove_class(element, debug_class)
        self._matched.clear()
        self._unmatched.clear()
        self._tier_counts.clear()
        self.code_map = None
        self.matcher = None

    def close(self) -> None:
        """Stop reacting to mutations; annotations stay in place."""
        self._scheduler.cancel()

    def get_stats(self) -> dict[str, Any]:
        """Get overlay statistics."""
        return {
            "loaded": self.loaded,
            "inert": self.inert,
            "totalSelectors": len(self.code_map) if self.code_map else 0,
            "matchedElements": len(self._matched),
            "unmatchedElements": len(self._unmatched),
            "passes": self._passes,
            "tiers": dict(self._tier_counts),
            "interactionMode": self.config.interaction_mode,
            "reprocess": self._scheduler.get_stats(),
        }

    def _reprocess(self) -> None:
        logger.debug("Reprocessing after document changes")
        self.process_document()

    def _is_candidate(self, element: Tag) -> bool:
        if element.name in NON_VISUAL_TAGS or is_overlay_node(element, self.namespace):
            return False
        if element.parent is None:
            return False
        box = layout_box(element, self.namespace)
        if box is not None and (
            box.width < self.config.min_element_size
            or box.height < self.config.min_element_size
        ):
            return False
        return True

    def _ensure_wrapper(self, element: Tag) -> Tag:
        wrapper_class = ns(self.namespace, WRAPPER_ROLE)
        parent = element.parent
        if isinstance(parent, Tag) and has_class(parent, wrapper_class):
            return parent
        wrapper = self.document.new_tag(
            "div", attrs={"class": wrapper_class, "style": "position: relative"}
        )
        return element.wrap(wrapper)

    def _create_marker(self, location: SourceLocation) -> Marker:
        tag = self.document.new_tag(
            "div",
            attrs={
                "class": ns(self.namespace, MARKER_ROLE),
                "title": str(location),
                f"data-{self.namespace}-file": location.file,
                f"data-{self.namespace}-line": str(location.line),
            },
        )
        tag.append(MARKER_LABEL)
        file_info = self.document.new_tag(
            "div", attrs={"class": ns(self.namespace, FILE_INFO_ROLE)}
        )
        file_info.string = str(location)
        tag.append(file_info)

        marker = Marker(tag, location, self.namespace, on_expand=self._open_location)
        marker.set_mode(self.config.interaction_mode)
        return marker

    def _open_location(self, location: SourceLocation) -> None:
        self.launcher.open(location.file, location.line)

    def _inject_styles(self) -> None:
        style_id = ns(self.namespace, "styles")
        existing = self.document.find(id=style_id)
        if existing is not None:
            existing.decompose()

        style = self.document.new_tag("style", attrs={"id": style_id})
        style.string = OVERLAY_CSS.format(ns=self.namespace)
        container = self.document.head or self.document.body or self.document
        container.append(style)

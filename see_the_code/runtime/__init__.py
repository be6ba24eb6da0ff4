"""Runtime half: matching live elements and driving the overlay."""

from .debounce import ReprocessScheduler
from .document import parse_document
from .editor import EditorLauncher, build_editor_uri
from .loader import fetch_code_map
from .matcher import MatchResult, MatchTier, RuntimeMatcher
from .overlay import (
    MatchedElement,
    Marker,
    MarkerState,
    MutationRecord,
    OverlayController,
)

__all__ = [
    "EditorLauncher",
    "Marker",
    "MarkerState",
    "MatchResult",
    "MatchTier",
    "MatchedElement",
    "MutationRecord",
    "OverlayController",
    "ReprocessScheduler",
    "RuntimeMatcher",
    "build_editor_uri",
    "fetch_code_map",
    "parse_document",
]

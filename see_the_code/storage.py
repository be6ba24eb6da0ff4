"""Persistence of code maps as flat JSON objects.

The on-disk shape is ``{"<selector>": {"file": ..., "line": ..., "hash"?: ...}}``
with keys in the order the aggregation layer accepted them.
"""

import json
from pathlib import Path
from typing import Any

from .errors import CodeMapLoadError
from .models import CodeMap


def dumps_code_map(code_map: CodeMap) -> str:
    """Serialize a code map to its JSON text."""
    return json.dumps(code_map.to_dict(), indent=2, ensure_ascii=False) + "\n"


def parse_code_map(data: Any, location: str) -> CodeMap:
    """Build a code map from decoded JSON.

    Raises:
        CodeMapLoadError: If the data is not an object of location records.
    """
    if not isinstance(data, dict):
        raise CodeMapLoadError(location, "expected a JSON object")
    try:
        return CodeMap.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise CodeMapLoadError(location, f"malformed record: {e}") from e


def loads_code_map(text: str, location: str = "<string>") -> CodeMap:
    """Deserialize a code map from JSON text.

    Raises:
        CodeMapLoadError: If the text is not a valid code map.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise CodeMapLoadError(location, f"invalid JSON: {e}") from e
    return parse_code_map(data, location)


def save_code_map(code_map: CodeMap, path: Path) -> Path:
    """Write a code map to disk, creating parent directories.

    Args:
        code_map: Map to persist.
        path: Destination file.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_code_map(code_map), encoding="utf-8")
    return path


def load_code_map(path: Path) -> CodeMap:
    """Read a code map from disk.

    Raises:
        CodeMapLoadError: If the file is missing, unreadable or malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CodeMapLoadError(str(path), str(e)) from e
    return loads_code_map(text, str(path))

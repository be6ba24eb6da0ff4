"""Open-in-editor side effect for activated markers."""

import re
import threading
import webbrowser
from collections.abc import Callable

from ..codemap_logging import LogCategory, get_category_logger

logger = get_category_logger(LogCategory.OVERLAY)

# URI scheme per supported editor; all accept file/<abs path>:<line>
EDITOR_SCHEMES = {
    "vscode": "vscode",
    "vscode-insiders": "vscode-insiders",
    "vscodium": "vscodium",
    "cursor": "cursor",
    "windsurf": "windsurf",
}

_ABSOLUTE_PATH = re.compile(r"^([A-Za-z]:|\\|/)")


def build_editor_uri(
    file: str,
    line: int,
    workspace_root: str | None = None,
    editor: str = "vscode",
) -> str:
    """Build the URI that opens ``file`` at ``line`` in an editor.

    Relative paths are joined onto the workspace root. Without a root the
    relative path is used as-is, which editors usually cannot resolve, so
    a warning is logged.

    Args:
        file: Record path, relative to the workspace root or absolute.
        line: 1-based line number.
        workspace_root: Absolute workspace directory.
        editor: Key of EDITOR_SCHEMES.

    Returns:
        URI such as ``vscode://file/home/me/app/src/App.tsx:12``.

    Raises:
        ValueError: If the editor is not supported.
    """
    scheme = EDITOR_SCHEMES.get(editor)
    if scheme is None:
        raise ValueError(
            f"Unsupported editor {editor!r}; expected one of {sorted(EDITOR_SCHEMES)}"
        )

    path = file
    if not _ABSOLUTE_PATH.match(file):
        if workspace_root:
            root = workspace_root.replace("\\", "/").rstrip("/")
            relative = file.replace("\\", "/").lstrip("/")
            path = f"{root}/{relative}"
        else:
            logger.warning(f"Workspace root not set, cannot resolve {file}")

    path = path.replace("\\", "/").lstrip("/")
    return f"{scheme}://file/{path}:{line}"


class EditorLauncher:
    """Opens editor URIs in the background without blocking the overlay."""

    def __init__(
        self,
        workspace_root: str | None = None,
        editor: str = "vscode",
        enabled: bool = True,
        opener: Callable[[str], object] | None = None,
    ):
        self.workspace_root = workspace_root
        self.editor = editor
        self.enabled = enabled
        self.opener = opener or webbrowser.open

    def open(self, file: str, line: int) -> threading.Thread | None:
        """Request the editor to open a location.

        Returns:
            The background thread doing the open, None when disabled or
            when no URI could be built.
        """
        if not self.enabled:
            return None
        try:
            uri = build_editor_uri(file, line, self.workspace_root, self.editor)
        except ValueError as e:
            logger.warning(f"Failed to open in editor: {e}")
            return None

        logger.debug(f"Opening: {uri}")
        thread = threading.Thread(target=self._open_uri, args=(uri,), daemon=True)
        thread.start()
        return thread

    def _open_uri(self, uri: str) -> None:
        try:
            self.opener(uri)
        except Exception as e:
            logger.warning(f"Failed to open {uri}: {e}")

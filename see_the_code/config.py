"""see-the-code configuration loader.

Loads and validates .see-the-code.json configuration files. The file holds
generator settings at the top level and overlay settings under "overlay".
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .codemap_logging import get_logger

logger = get_logger()

# Default configuration file name
CONFIG_FILENAME = ".see-the-code.json"

# Environment variable pointing at an explicit config file
CONFIG_ENV_VAR = "SEE_THE_CODE_CONFIG"

DEFAULT_IGNORE = [
    "node_modules",
    "dist",
    "build",
    ".next",
    ".git",
    "**/*.test.*",
    "**/*.spec.*",
]

DEFAULT_INCLUDE = ["*.tsx", "*.jsx"]

INTERACTION_MODES = ("click", "hover", "always")

NON_VISUAL_TAGS = frozenset(
    ["script", "style", "meta", "link", "head", "title", "noscript", "template", "html"]
)


@dataclass
class ExtractionOptions:
    """Toggles for the source extraction engine."""

    extract_element_types: bool = True
    extract_data_attributes: bool = True
    handle_dynamic_classes: bool = False
    warn_on_duplicates: bool = True
    include_hashes: bool = False
    include_inner_text: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "extractElementTypes": self.extract_element_types,
            "extractDataAttributes": self.extract_data_attributes,
            "handleDynamicClasses": self.handle_dynamic_classes,
            "warnOnDuplicates": self.warn_on_duplicates,
            "includeHashes": self.include_hashes,
            "includeInnerText": self.include_inner_text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractionOptions":
        """Create from dictionary."""
        return cls(
            extract_element_types=data.get("extractElementTypes", True),
            extract_data_attributes=data.get("extractDataAttributes", True),
            handle_dynamic_classes=data.get("handleDynamicClasses", False),
            warn_on_duplicates=data.get("warnOnDuplicates", True),
            include_hashes=data.get("includeHashes", False),
            include_inner_text=data.get("includeInnerText", False),
        )


@dataclass
class GenerateConfig:
    """Configuration for code map generation."""

    input: list[str] = field(default_factory=lambda: ["./src"])
    output: str = "./code-map.json"
    ignore: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    workspace_root: str = "./"
    workers: int = 1
    options: ExtractionOptions = field(default_factory=ExtractionOptions)
    verbose: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "input": self.input,
            "output": self.output,
            "ignore": self.ignore,
            "include": self.include,
            "workspaceRoot": self.workspace_root,
            "workers": self.workers,
            "options": self.options.to_dict(),
            "verbose": self.verbose,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerateConfig":
        """Create from dictionary."""
        raw_input = data.get("input", ["./src"])
        if isinstance(raw_input, str):
            raw_input = [raw_input]
        return cls(
            input=list(raw_input),
            output=data.get("output", "./code-map.json"),
            ignore=data.get("ignore", list(DEFAULT_IGNORE)),
            include=data.get("include", list(DEFAULT_INCLUDE)),
            workspace_root=data.get("workspaceRoot", "./"),
            workers=data.get("workers", 1),
            options=ExtractionOptions.from_dict(data.get("options", {})),
            verbose=data.get("verbose", False),
        )

    def resolved_inputs(self, base: Path) -> list[Path]:
        """Input paths resolved against a base directory."""
        return [(base / p).resolve() for p in self.input]

    def resolved_workspace_root(self, base: Path) -> Path:
        """Workspace root resolved against a base directory."""
        return (base / self.workspace_root).resolve()

    def resolved_output(self, base: Path) -> Path:
        """Output path resolved against a base directory."""
        return (base / self.output).resolve()


@dataclass
class OverlayConfig:
    """Configuration for the live overlay."""

    interaction_mode: str = "click"
    code_map_url: str = "./code-map.json"
    enable_debug: bool = False
    open_in_editor: bool = True
    editor: str = "vscode"
    workspace_root: str | None = None
    namespace: str = "see-the-code"
    enable_inner_text_fallback: bool = True
    enable_fuzzy_matching: bool = True
    debounce_ms: int = 500
    min_element_size: float = 10
    text_match_max_length: int = 100

    def __post_init__(self) -> None:
        if self.interaction_mode not in INTERACTION_MODES:
            logger.warning(
                f"Invalid interaction mode {self.interaction_mode!r}, using 'click'"
            )
            self.interaction_mode = "click"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "interactionMode": self.interaction_mode,
            "codeMapUrl": self.code_map_url,
            "enableDebug": self.enable_debug,
            "openInEditor": self.open_in_editor,
            "editor": self.editor,
            "workspaceRoot": self.workspace_root,
            "namespace": self.namespace,
            "enableInnerTextFallback": self.enable_inner_text_fallback,
            "enableFuzzyMatching": self.enable_fuzzy_matching,
            "debounceMs": self.debounce_ms,
            "minElementSize": self.min_element_size,
            "textMatchMaxLength": self.text_match_max_length,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OverlayConfig":
        """Create from dictionary."""
        return cls(
            interaction_mode=data.get("interactionMode", "click"),
            code_map_url=data.get("codeMapUrl", "./code-map.json"),
            enable_debug=data.get("enableDebug", False),
            open_in_editor=data.get("openInEditor", True),
            editor=data.get("editor", "vscode"),
            workspace_root=data.get("workspaceRoot"),
            namespace=data.get("namespace", "see-the-code"),
            enable_inner_text_fallback=data.get("enableInnerTextFallback", True),
            enable_fuzzy_matching=data.get("enableFuzzyMatching", True),
            debounce_ms=data.get("debounceMs", 500),
            min_element_size=data.get("minElementSize", 10),
            text_match_max_length=data.get("textMatchMaxLength", 100),
        )


@dataclass
class SeeTheCodeConfig:
    """Complete configuration: generator settings plus overlay settings."""

    generate: GenerateConfig = field(default_factory=GenerateConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = self.generate.to_dict()
        result["overlay"] = self.overlay.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SeeTheCodeConfig":
        """Create from dictionary."""
        return cls(
            generate=GenerateConfig.from_dict(data),
            overlay=OverlayConfig.from_dict(data.get("overlay", {})),
        )


class ConfigLoader:
    """Loader for see-the-code configuration."""

    def __init__(self, project_path: Path | None = None):
        """Initialize the config loader.

        Args:
            project_path: Path to the project root. Defaults to current directory.
        """
        self.project_path = Path(project_path) if project_path else Path.cwd()

    def load(self, config_path: Path | None = None) -> SeeTheCodeConfig:
        """Load configuration.

        Precedence (highest to lowest):
        1. Explicit config_path
        2. Environment variable SEE_THE_CODE_CONFIG
        3. .see-the-code.json in project root
        4. Default configuration

        An explicit or environment path that holds invalid JSON raises;
        an invalid project file only logs a warning.

        Args:
            config_path: Optional explicit path to config file.

        Returns:
            Loaded SeeTheCodeConfig instance.
        """
        if config_path and config_path.exists():
            return self._load_from_file(config_path)

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            env_config_path = Path(env_path)
            if env_config_path.exists():
                return self._load_from_file(env_config_path)

        project_config = self.project_path / CONFIG_FILENAME
        if project_config.exists():
            try:
                return self._load_from_file(project_config)
            except json.JSONDecodeError as e:
                logger.warning(f"Could not parse {CONFIG_FILENAME}: {e}")

        logger.debug("No see-the-code config found, using defaults")
        return SeeTheCodeConfig()

    def _load_from_file(self, config_path: Path) -> SeeTheCodeConfig:
        """Load configuration from a file.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON.
        """
        logger.debug(f"Loading see-the-code config from {config_path}")
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
        if not isinstance(data, dict):
            raise json.JSONDecodeError("Config root must be an object", content, 0)
        return SeeTheCodeConfig.from_dict(data)

    def save(self, config: SeeTheCodeConfig, config_path: Path | None = None) -> Path:
        """Save configuration to a file.

        Args:
            config: Configuration to save.
            config_path: Optional path. Defaults to project root.

        Returns:
            Path where config was saved.
        """
        if config_path is None:
            config_path = self.project_path / CONFIG_FILENAME

        content = json.dumps(config.to_dict(), indent=2)
        config_path.write_text(content, encoding="utf-8")
        logger.info(f"Saved see-the-code config to {config_path}")
        return config_path


def load_config(project_path: Path | None = None) -> SeeTheCodeConfig:
    """Convenience function to load configuration.

    Args:
        project_path: Optional project root path.

    Returns:
        Loaded SeeTheCodeConfig instance.
    """
    loader = ConfigLoader(project_path)
    return loader.load()

"""Configuration loading for parseme (.parseme.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".parseme.yml"

SUPPORTED_FILE_TYPES: tuple[str, ...] = ("ts", "tsx", "js", "jsx")
TRUNCATE_STRATEGIES: tuple[str, ...] = ("truncate", "split")

# Smallest per-document limits that still fit a truncation or part marker
# next to at least one character of content.
MIN_DOCUMENT_CHARS = 64
MIN_SPLIT_LINES = 4


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values are outside the supported set."""


@dataclass
class LimitsConfig:
    """Size limits applied while assembling the context bundle."""

    max_files_per_context: int = 5000
    max_lines_per_document: Optional[int] = None
    max_chars_per_document: Optional[int] = 50000
    truncate_strategy: str = "truncate"


@dataclass
class ParsemeConfig:
    """Effective settings for one pipeline run."""

    root: Path
    output_path: str = "PARSEME.md"
    context_dir: str = "parseme-context"
    exclude_patterns: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    analyze_file_types: List[str] = field(default_factory=lambda: list(SUPPORTED_FILE_TYPES))
    max_depth: int = 10
    include_git_info: bool = True
    use_git_for_files: bool = True
    git_timeout: float = 10.0
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    def validate(self) -> "ParsemeConfig":
        """Raise ConfigValidationError for unsupported values; return self otherwise."""
        invalid = [
            file_type for file_type in self.analyze_file_types if file_type not in SUPPORTED_FILE_TYPES
        ]
        if invalid:
            raise ConfigValidationError(
                f"Invalid file types: {', '.join(invalid)}. "
                f"Supported types are: {', '.join(SUPPORTED_FILE_TYPES)}"
            )
        if self.limits.truncate_strategy not in TRUNCATE_STRATEGIES:
            raise ConfigValidationError(
                f"Unknown truncate strategy '{self.limits.truncate_strategy}'. "
                f"Expected one of: {', '.join(TRUNCATE_STRATEGIES)}"
            )
        for name in ("max_files_per_context", "max_lines_per_document", "max_chars_per_document"):
            value = getattr(self.limits, name)
            if value is not None and value <= 0:
                raise ConfigValidationError(f"limits.{name} must be a positive integer")
        max_chars = self.limits.max_chars_per_document
        if max_chars is not None and max_chars < MIN_DOCUMENT_CHARS:
            raise ConfigValidationError(
                f"limits.max_chars_per_document must be at least {MIN_DOCUMENT_CHARS}"
            )
        max_lines = self.limits.max_lines_per_document
        if self.limits.truncate_strategy == "split" and max_lines is not None and max_lines < MIN_SPLIT_LINES:
            raise ConfigValidationError(
                f"limits.max_lines_per_document must be at least {MIN_SPLIT_LINES} when splitting"
            )
        if self.max_depth < 0:
            raise ConfigValidationError("max_depth must not be negative")
        if self.git_timeout <= 0:
            raise ConfigValidationError("git_timeout must be positive")
        return self

    def with_overrides(self, **overrides: Any) -> "ParsemeConfig":
        """Return a validated copy with keyword overrides applied; ``None`` values are ignored."""
        return _apply_overrides(self, overrides).validate()


def load_config(config_path: Path, **overrides: Any) -> ParsemeConfig:
    """Load configuration from disk, apply keyword overrides, and validate it.

    ``config_path`` may point at the repository root or at the config file
    itself. A missing file yields the defaults. Overrides use the attribute
    names of :class:`ParsemeConfig`; ``limits`` overrides may be given as a
    mapping or a :class:`LimitsConfig`.
    """
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    config = _from_mapping(root, data)
    if overrides:
        config = _apply_overrides(config, overrides)
    return config.validate()


def _from_mapping(root: Path, data: Dict[str, Any]) -> ParsemeConfig:
    config = ParsemeConfig(root=root)

    output_path = _as_str(data.get("output_path"))
    if output_path:
        config.output_path = output_path
    context_dir = _as_str(data.get("context_dir"))
    if context_dir:
        config.context_dir = context_dir

    config.exclude_patterns = _as_str_list(data.get("exclude_patterns"))
    config.include_patterns = _as_str_list(data.get("include_patterns"))

    file_types = _as_str_list(data.get("analyze_file_types"))
    if file_types:
        config.analyze_file_types = [item.lstrip(".").lower() for item in file_types]

    max_depth = _as_int(data.get("max_depth"))
    if max_depth is not None:
        config.max_depth = max_depth

    include_git = _as_bool(data.get("include_git_info"))
    if include_git is not None:
        config.include_git_info = include_git
    use_git = _as_bool(data.get("use_git_for_files"))
    if use_git is not None:
        config.use_git_for_files = use_git

    timeout = _as_float(data.get("git_timeout"))
    if timeout is not None:
        config.git_timeout = timeout

    config.limits = _limits_from_mapping(_as_dict(data.get("limits")))
    return config


def _limits_from_mapping(data: Dict[str, Any]) -> LimitsConfig:
    limits = LimitsConfig()
    if not data:
        return limits
    max_files = _as_int(data.get("max_files_per_context"))
    if max_files is not None:
        limits.max_files_per_context = max_files
    if "max_lines_per_document" in data:
        limits.max_lines_per_document = _as_int(data.get("max_lines_per_document"))
    if "max_chars_per_document" in data:
        limits.max_chars_per_document = _as_int(data.get("max_chars_per_document"))
    strategy = _as_str(data.get("truncate_strategy"))
    if strategy:
        limits.truncate_strategy = strategy.lower()
    return limits


def _apply_overrides(config: ParsemeConfig, overrides: Dict[str, Any]) -> ParsemeConfig:
    values = dict(overrides)
    limits = values.pop("limits", None)
    unknown = [key for key in values if key not in ParsemeConfig.__dataclass_fields__]
    if unknown:
        raise ConfigError(f"Unknown configuration options: {', '.join(sorted(unknown))}")
    if "root" in values and values["root"] is not None:
        values["root"] = Path(values["root"]).expanduser().resolve()
    updated = replace(config, **{key: value for key, value in values.items() if value is not None})
    if isinstance(limits, LimitsConfig):
        updated.limits = limits
    elif isinstance(limits, dict):
        updated.limits = replace(updated.limits, **limits)
    return updated


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigValidationError",
    "LimitsConfig",
    "ParsemeConfig",
    "SUPPORTED_FILE_TYPES",
    "TRUNCATE_STRATEGIES",
    "load_config",
]

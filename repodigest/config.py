"""Configuration loading for repodigest (.repodigest.yml)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import IndexerConfig

CONFIG_FILENAME = ".repodigest.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


def load_config(config_path: Path | str) -> IndexerConfig:
    """Load indexing settings; a missing file yields defaults for its directory."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return IndexerConfig(target_dir=str(root))

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    defaults = IndexerConfig(target_dir=str(root))
    max_files = _as_int(data.get("max_files"))
    max_workers = _as_int(data.get("max_workers"))
    include_tests = _as_bool(data.get("include_tests"))
    respect_gitignore = _as_bool(data.get("respect_gitignore"))

    try:
        return IndexerConfig(
            target_dir=str(root),
            ignore_patterns=tuple(_as_str_list(data.get("ignore_patterns"))),
            max_files=defaults.max_files if max_files is None else max_files,
            include_tests=defaults.include_tests if include_tests is None else include_tests,
            custom_stack_detectors=tuple(_as_str_list(data.get("custom_stack_detectors"))),
            max_workers=defaults.max_workers if max_workers is None else max_workers,
            respect_gitignore=(
                defaults.respect_gitignore if respect_gitignore is None else respect_gitignore
            ),
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid {CONFIG_FILENAME}: {exc}") from exc


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
    return loaded if loaded is not None else {}


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
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "load_config"]

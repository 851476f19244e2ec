"""Locate, read and validate analysis configuration files (TOML or JSON)."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import toml

from .config import CONFIG_FILENAMES, ToolConfig, coerce_config, merge_config, validate_config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PACKAGE_JSON_KEYS = ("rfd", "react-feature-discovery")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Legacy JSON keys that do not map by simple snake-casing
_KEY_ALIASES = {
    "root": "root_dir",
    "file_extensions": "extensions",
    "detect_h_o_cs": "detect_hocs",
}


def _snake(key: str) -> str:
    snake = _CAMEL_RE.sub("_", key).lower()
    return _KEY_ALIASES.get(snake, snake)


def normalize_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Accept both ``excludeDirs`` and ``exclude_dirs`` spellings at the top level."""
    return {_snake(k): v for k, v in raw.items()}


def find_config_file(root: Path) -> Optional[Path]:
    for filename in CONFIG_FILENAMES:
        candidate = root / filename
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a TOML or JSON config file into a raw mapping.

    Raises:
        ConfigurationError: unreadable file, bad syntax or unsupported extension.
    """
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    try:
        if suffix == ".toml":
            data = toml.loads(text)
        elif suffix == ".json":
            data = json.loads(text)
        else:
            raise ConfigurationError(f"Unsupported config file format: {suffix or path.name}")
    except (toml.TomlDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Malformed config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a table/object at top level")

    # rfd.toml may nest everything under [rfd]
    if suffix == ".toml" and isinstance(data.get("rfd"), dict):
        data = data["rfd"]
    return normalize_keys(data)


def load_package_json_config(root: Path) -> Dict[str, Any]:
    """Return the ``"rfd"`` section of ``package.json``, or ``{}``."""
    package_json = root / "package.json"
    if not package_json.is_file():
        return {}
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to parse %s: %s", package_json, exc)
        return {}
    for key in PACKAGE_JSON_KEYS:
        section = data.get(key)
        if isinstance(section, dict):
            return normalize_keys(section)
    return {}


def load_tool_config(
    root: Optional[Path] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ToolConfig:
    """Build the effective configuration: defaults < config file < overrides.

    Raises:
        ConfigurationError: if the merged raw configuration is malformed.
    """
    root = Path(root or Path.cwd()).resolve()

    if config_path is not None:
        file_config = load_config_file(Path(config_path))
        logger.debug("Loaded configuration from %s", config_path)
    else:
        found = find_config_file(root)
        if found is not None:
            file_config = load_config_file(found)
            logger.debug("Loaded configuration from %s", found)
        else:
            file_config = load_package_json_config(root)

    cli_config = {k: v for k, v in normalize_keys(overrides or {}).items() if v is not None}

    errors = validate_config(file_config) + validate_config(cli_config)
    if errors:
        raise ConfigurationError("Configuration validation failed:", errors)

    config = ToolConfig(root_dir=root)
    config = merge_config(config, coerce_config(file_config))
    config = merge_config(config, coerce_config(cli_config))

    if not Path(config.root_dir).is_absolute():
        config = merge_config(config, {"root_dir": (root / config.root_dir).resolve()})

    # Fail before scanning if any rule pattern cannot compile
    for rule in config.category_rules:
        rule.compiled()
    return config

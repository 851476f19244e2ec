"""Configuration defaults, the ToolConfig model and the field-by-field merge policy."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Union

from .category_rules import CategoryRule

CACHE_DIR_NAME = ".rfd-cache"

DEFAULT_EXCLUDE_DIRS: List[str] = [
    "node_modules",
    "dist",
    "build",
    ".git",
    ".kiro",
    "coverage",
    ".next",
    ".cache",
    "public",
    "attached_assets",
    CACHE_DIR_NAME,
]

DEFAULT_EXTENSIONS: List[str] = [".ts", ".tsx", ".js", ".jsx"]

DEFAULT_MODULE_TYPES: List[str] = ["common", "shared", "core", "feature", "other"]

OUTPUT_FORMATS = ("json", "dot")
# Accepted for compatibility with older config files, but unused
IGNORED_KEYS = (
    "file_patterns", "parallel", "cache_enabled", "cache_dir", "client_dirs", "server_dirs",
)
SEVERITIES = ("info", "warning", "error")

# Searched in order inside the analyzed root
CONFIG_FILENAMES = (".rfdrc.toml", "rfd.toml", ".rfdrc.json", "rfd.config.json")

DEFAULT_OUTPUT_PATH = os.environ.get("RFD_OUTPUT", "feature-catalog.json")


@dataclass
class EnvironmentPattern:
    name: str
    pattern: Union[str, Pattern[str]]
    message: str
    severity: str = "info"

    def compiled(self) -> Pattern[str]:
        return _compile(self.pattern)


@dataclass
class MigrationRule:
    name: str
    pattern: Union[str, Pattern[str]]
    message: str
    recommendation: str

    def compiled(self) -> Pattern[str]:
        return _compile(self.pattern)


def _compile(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


DEFAULT_ENVIRONMENT_PATTERNS: List[EnvironmentPattern] = [
    EnvironmentPattern(
        name="node-env",
        pattern=re.compile(r"process\.env\.NODE_ENV"),
        message="Uses NODE_ENV for environment detection",
        severity="info",
    ),
    EnvironmentPattern(
        name="env-vars",
        pattern=re.compile(r"process\.env\.\w+"),
        message="Uses environment variables",
        severity="info",
    ),
    EnvironmentPattern(
        name="platform-detection",
        pattern=re.compile(r"process\.platform"),
        message="Contains platform-specific code",
        severity="warning",
    ),
]


@dataclass
class ToolConfig:
    root_dir: Path = field(default_factory=Path.cwd)
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    custom_categories: Dict[str, CategoryRule] = field(default_factory=dict)
    module_types: List[str] = field(default_factory=lambda: list(DEFAULT_MODULE_TYPES))

    detect_react_patterns: bool = True
    detect_hooks: bool = True
    detect_contexts: bool = True
    detect_hocs: bool = True


    output_path: str = DEFAULT_OUTPUT_PATH
    output_formats: List[str] = field(default_factory=lambda: ["json"])

    environment_patterns: List[EnvironmentPattern] = field(
        default_factory=lambda: list(DEFAULT_ENVIRONMENT_PATTERNS)
    )
    custom_migration_rules: List[MigrationRule] = field(default_factory=list)

    @property
    def category_rules(self) -> List[CategoryRule]:
        return list(self.custom_categories.values())


# ------------------------------------------------------------------
# Merge policy
# ------------------------------------------------------------------

def _overwrite(_current: Any, new: Any) -> Any:
    return new


def _replace_list(_current: Any, new: Any) -> Any:
    return list(new)


def _shallow_merge(current: Any, new: Any) -> Any:
    merged = dict(current or {})
    merged.update(new)
    return merged


def _as_path(_current: Any, new: Any) -> Any:
    return Path(new)


# Every ToolConfig field must appear here; lists never deep-merge.
MERGE_TABLE: Dict[str, Callable[[Any, Any], Any]] = {
    "root_dir": _as_path,
    "exclude_dirs": _replace_list,
    "extensions": _replace_list,
    "custom_categories": _shallow_merge,
    "module_types": _replace_list,
    "detect_react_patterns": _overwrite,
    "detect_hooks": _overwrite,
    "detect_contexts": _overwrite,
    "detect_hocs": _overwrite,
    "output_path": _overwrite,
    "output_formats": _replace_list,
    # list elements (and their compiled patterns) are passed through by reference
    "environment_patterns": _replace_list,
    "custom_migration_rules": _replace_list,
}


def merge_config(base: ToolConfig, overrides: Optional[Mapping[str, Any]]) -> ToolConfig:
    """Return a new config with *overrides* applied through MERGE_TABLE.

    ``None`` values are skipped so unset CLI options never clobber file
    settings. Unknown keys are ignored here; ``validate_config`` reports them.
    """
    if not overrides:
        return replace(base)

    updates: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None or key not in MERGE_TABLE:
            continue
        updates[key] = MERGE_TABLE[key](getattr(base, key), value)
    return replace(base, **updates)


# ------------------------------------------------------------------
# Validation of raw (file / CLI) configuration
# ------------------------------------------------------------------

_STRING_LIST_FIELDS = ("exclude_dirs", "extensions", "module_types")
_BOOL_FIELDS = ("detect_react_patterns", "detect_hooks", "detect_contexts", "detect_hocs")


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _valid_regex(pattern: Any) -> bool:
    if isinstance(pattern, re.Pattern):
        return True
    if not isinstance(pattern, str) or not pattern:
        return False
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def validate_config(raw: Mapping[str, Any]) -> List[str]:
    """Check the shape of a raw configuration mapping. Returns error strings."""
    errors: List[str] = []
    known = {f.name for f in fields(ToolConfig)}

    for key in raw:
        if key not in known and key not in IGNORED_KEYS:
            errors.append(f"Unknown configuration key: {key}")

    if "root_dir" in raw and not isinstance(raw["root_dir"], (str, Path)):
        errors.append("root_dir must be a string")

    for key in _STRING_LIST_FIELDS:
        if key in raw and not _is_str_list(raw[key]):
            errors.append(f"{key} must be a list of strings")

    for key in _BOOL_FIELDS:
        if key in raw and not isinstance(raw[key], bool):
            errors.append(f"{key} must be a boolean")

    if "output_path" in raw and not isinstance(raw["output_path"], str):
        errors.append("output_path must be a string")

    if "output_formats" in raw:
        formats = raw["output_formats"]
        if not _is_str_list(formats):
            errors.append("output_formats must be a list of strings")
        else:
            for fmt in formats:
                if fmt not in OUTPUT_FORMATS:
                    errors.append(
                        f"Invalid output format: {fmt}. Must be one of: {', '.join(OUTPUT_FORMATS)}"
                    )

    if "custom_categories" in raw:
        categories = raw["custom_categories"]
        if not isinstance(categories, Mapping):
            errors.append("custom_categories must be a table/object")
        else:
            for name, rule in categories.items():
                errors.extend(_validate_category_rule(name, rule))

    if "environment_patterns" in raw:
        patterns = raw["environment_patterns"]
        if not isinstance(patterns, list):
            errors.append("environment_patterns must be a list")
        else:
            for entry in patterns:
                errors.extend(_validate_environment_pattern(entry))

    if "custom_migration_rules" in raw:
        rules = raw["custom_migration_rules"]
        if not isinstance(rules, list):
            errors.append("custom_migration_rules must be a list")
        else:
            for entry in rules:
                errors.extend(_validate_migration_rule(entry))

    return errors


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def _validate_category_rule(name: str, rule: Any) -> List[str]:
    errors: List[str] = []
    if not _valid_regex(_field(rule, "pattern")):
        errors.append(f"Category rule '{name}' must have a valid pattern")
    if not isinstance(_field(rule, "category"), str):
        errors.append(f"Category rule '{name}' must have a category (string)")
    priority = _field(rule, "priority")
    if not isinstance(priority, int) or isinstance(priority, bool):
        errors.append(f"Category rule '{name}' must have an integer priority")
    return errors


def _validate_environment_pattern(entry: Any) -> List[str]:
    errors: List[str] = []
    if not isinstance(_field(entry, "name"), str) or not _field(entry, "name"):
        errors.append("Each environment pattern must have a name (string)")
    if not _valid_regex(_field(entry, "pattern")):
        errors.append("Each environment pattern must have a valid pattern")
    if not isinstance(_field(entry, "message"), str) or not _field(entry, "message"):
        errors.append("Each environment pattern must have a message (string)")
    severity = _field(entry, "severity")
    if severity is not None and severity not in SEVERITIES:
        errors.append(f"Invalid severity: {severity}. Must be info, warning, or error")
    return errors


def _validate_migration_rule(entry: Any) -> List[str]:
    errors: List[str] = []
    for key in ("name", "message", "recommendation"):
        value = _field(entry, key)
        if not isinstance(value, str) or not value:
            errors.append(f"Each migration rule must have a {key} (string)")
    if not _valid_regex(_field(entry, "pattern")):
        errors.append("Each migration rule must have a valid pattern")
    return errors


def coerce_config(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn validated raw values (plain dicts) into the typed values ToolConfig holds."""
    coerced: Dict[str, Any] = dict(raw)

    if "custom_categories" in raw:
        coerced["custom_categories"] = {
            name: rule if isinstance(rule, CategoryRule) else CategoryRule(
                pattern=rule["pattern"],
                category=rule["category"],
                priority=rule["priority"],
                description=rule.get("description"),
            )
            for name, rule in raw["custom_categories"].items()
        }

    if "environment_patterns" in raw:
        coerced["environment_patterns"] = [
            p if isinstance(p, EnvironmentPattern) else EnvironmentPattern(
                name=p["name"],
                pattern=p["pattern"],
                message=p["message"],
                severity=p.get("severity", "info"),
            )
            for p in raw["environment_patterns"]
        ]

    if "custom_migration_rules" in raw:
        coerced["custom_migration_rules"] = [
            r if isinstance(r, MigrationRule) else MigrationRule(
                name=r["name"],
                pattern=r["pattern"],
                message=r["message"],
                recommendation=r["recommendation"],
            )
            for r in raw["custom_migration_rules"]
        ]

    return coerced

"""Path guards: analysis is read-only and writes are limited to report files."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PROTECTED_PATTERNS = [
    re.compile(r"node_modules", re.IGNORECASE),
    re.compile(r"(^|/)\.git(/|$)", re.IGNORECASE),
    re.compile(r"package\.json$", re.IGNORECASE),
    re.compile(r"package-lock\.json$", re.IGNORECASE),
    re.compile(r"yarn\.lock$", re.IGNORECASE),
    re.compile(r"pnpm-lock\.yaml$", re.IGNORECASE),
    re.compile(r"(^|/)\.env", re.IGNORECASE),
    re.compile(r"\.npmrc$", re.IGNORECASE),
    re.compile(r"\.yarnrc$", re.IGNORECASE),
]

SAFE_OUTPUT_EXTENSIONS = {".md", ".json", ".html", ".txt", ".dot"}

SYSTEM_DIRS = ("/bin", "/sbin", "/usr", "/etc", "/var", "/sys", "/proc")

PathLike = Union[str, Path]


@dataclass
class SafetyResult:
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def _posix(path: Path) -> str:
    return path.as_posix()


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def validate_root_directory(root_dir: PathLike) -> SafetyResult:
    resolved = Path(root_dir).resolve()
    if not resolved.exists():
        return SafetyResult(False, f"Directory does not exist: {root_dir}")
    if not resolved.is_dir():
        return SafetyResult(False, f"Path is not a directory: {root_dir}")
    if resolved == Path(resolved.anchor) or any(
        resolved == Path(d) or _is_within(resolved, Path(d)) for d in SYSTEM_DIRS
    ):
        return SafetyResult(False, "Cannot analyze system directories for safety reasons")
    if not os.access(resolved, os.R_OK | os.X_OK):
        return SafetyResult(False, f"Directory is not readable: {root_dir}")
    return SafetyResult(True)


def validate_read_path(file_path: PathLike, root_dir: PathLike) -> bool:
    """True if *file_path* lies inside *root_dir* and is not a protected file."""
    resolved = Path(file_path).resolve()
    root = Path(root_dir).resolve()
    if not _is_within(resolved, root):
        return False

    relative = _posix(resolved.relative_to(root))
    return not any(p.search(relative) for p in PROTECTED_PATTERNS)


def validate_output_path(output_path: PathLike, root_dir: PathLike) -> SafetyResult:
    resolved = Path(output_path).resolve()
    root = Path(root_dir).resolve()

    if not _is_within(resolved, root) and not _is_within(resolved, Path.cwd().resolve()):
        logger.warning("Output path %s is outside the project directory", resolved)

    target = _posix(resolved)
    for pattern in PROTECTED_PATTERNS:
        if pattern.search(target) or pattern.search(resolved.name):
            return SafetyResult(False, f"Cannot write to protected file: {resolved.name}")

    if resolved.suffix not in SAFE_OUTPUT_EXTENSIONS:
        allowed = ", ".join(sorted(SAFE_OUTPUT_EXTENSIONS))
        return SafetyResult(
            False, f"Unsafe output file extension: {resolved.suffix or '(none)'}. Allowed: {allowed}"
        )

    if resolved.is_dir():
        return SafetyResult(False, "Output path is a directory, not a file")
    if resolved.exists():
        logger.info("Output file exists and will be overwritten: %s", resolved)
    return SafetyResult(True)

"""Directory walker that turns a source tree into categorized FileRecords."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from .category_rules import CategoryRule, build_rules, categorize
from .config import ToolConfig
from .models import FileRecord

logger = logging.getLogger(__name__)


class FileScanner:
    """Scans the configured root and categorizes each surviving file."""

    def __init__(
        self,
        config: ToolConfig,
        rules: Optional[Sequence[CategoryRule]] = None,
    ) -> None:
        self.config = config
        self.root = Path(config.root_dir)
        self.exclude_dirs = set(config.exclude_dirs)
        self.extensions = {ext.lower() for ext in config.extensions}
        self.rules: List[CategoryRule] = (
            list(rules) if rules is not None else build_rules(config.category_rules)
        )
        self.errors: List[str] = []

    def scan(self) -> List[FileRecord]:
        """Walk the tree depth-first in sorted order and return every accepted file."""
        files: List[FileRecord] = []
        self._traverse(self.root, files)
        return files

    # ------------------------------------------------------------------

    def _traverse(self, directory: Path, files: List[FileRecord]) -> None:
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            message = f"Error scanning directory {directory}: {exc.strerror or exc}"
            logger.warning(message)
            self.errors.append(message)
            return

        for entry in entries:
            full_path = Path(entry.path)
            relative = full_path.relative_to(self.root).as_posix()
            try:
                # Links are never followed
                if entry.is_symlink():
                    message = f"Symlink skipped: {relative}"
                    logger.warning(message)
                    self.errors.append(message)
                elif entry.is_dir(follow_symlinks=False):
                    if self._should_exclude_directory(entry.name, relative):
                        continue
                    self._traverse(full_path, files)
                elif entry.is_file(follow_symlinks=False):
                    if self._should_include_file(entry.name):
                        files.append(self._create_record(full_path, relative, entry.name))
            except OSError as exc:
                message = f"Error reading {relative}: {exc.strerror or exc}"
                logger.warning(message)
                self.errors.append(message)

    def _should_exclude_directory(self, name: str, relative_path: str) -> bool:
        if name in self.exclude_dirs:
            return True
        return any(part in self.exclude_dirs for part in relative_path.split("/"))

    def _should_include_file(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.extensions

    def _create_record(self, full_path: Path, relative_path: str, name: str) -> FileRecord:
        size = full_path.stat().st_size
        return FileRecord(
            path=str(full_path),
            relative_path=relative_path,
            name=name,
            extension=os.path.splitext(name)[1],
            size=size,
            category=self.categorize_file(relative_path, name),
        )

    def categorize_file(self, relative_path: str, file_name: str) -> str:
        return categorize(relative_path, file_name, self.rules)

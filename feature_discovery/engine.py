"""Analysis pipeline: scan, extract, graph, describe, catalog."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .catalog_builder import CatalogBuilder
from .config import ToolConfig
from .dependency_analyzer import DependencyAnalyzer, detect_cycles
from .errors import AnalysisError, ErrorLog
from .graph_export import export_dot, export_json
from .metadata_extractor import MetadataExtractor
from .models import Dependencies, FeatureCatalog, FeatureMetadata, FileRecord
from .pattern_detector import PatternDetector
from .safety import validate_output_path, validate_read_path, validate_root_directory
from .scanner import FileScanner

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS = {"json": ".json", "dot": ".dot"}


class AnalysisEngine:
    """Runs one read-only analysis of ``config.root_dir``."""

    def __init__(self, config: ToolConfig, timestamp: Optional[str] = None):
        self.config = config
        self.root = Path(config.root_dir)
        self.timestamp = timestamp
        self.errors = ErrorLog()
        self.detector = PatternDetector()

    def analyze(self) -> FeatureCatalog:
        """Run the pipeline and return a fresh catalog.

        Recoverable problems (unreadable files, rejected paths, cycles) are
        recorded in ``self.errors``; only a bad root directory is fatal.

        Raises:
            AnalysisError: if the root directory is missing or unreadable.
        """
        check = validate_root_directory(self.root)
        if not check:
            self.errors.log("FILE_NOT_FOUND", check.error or "Invalid root directory", "error")
            raise AnalysisError(check.error or f"Invalid root directory: {self.root}")

        logger.info("Analyzing %s", self.root)
        try:
            return self._run()
        except Exception as exc:
            self.errors.log("UNEXPECTED_ERROR", f"Fatal error: {exc}", "error")
            raise

    def _run(self) -> FeatureCatalog:
        scanner = FileScanner(self.config)
        files = scanner.scan()
        for message in scanner.errors:
            self.errors.log("FILE_NOT_FOUND", message, "warning")
        logger.info("Found %d files", len(files))

        texts = self._read_files(files)

        analyzer = DependencyAnalyzer(str(self.root), files)
        all_dependencies: Dict[str, Dependencies] = {
            path: analyzer.analyze(text, path) for path, text in texts.items()
        }

        graph = analyzer.build_graph(files, all_dependencies)
        logger.info("Dependency graph: %d nodes, %d edges", graph.node_count, graph.edge_count)
        for cycle in detect_cycles(graph):
            loop = " -> ".join(cycle + [cycle[0]])
            self.errors.log(
                "CIRCULAR_DEPENDENCY",
                f"Circular dependency: {loop}",
                "info",
                file=cycle[0],
            )

        extractor = MetadataExtractor(
            self.config.environment_patterns,
            self.config.custom_migration_rules,
        )
        all_metadata: List[FeatureMetadata] = []
        for record in files:
            text = texts.get(record.relative_path)
            if text is None:
                continue
            patterns = None
            if self.config.detect_react_patterns:
                patterns = self.detector.summarize(text, self.config)
            all_metadata.append(extractor.extract(
                text,
                record.relative_path,
                record.category,
                all_dependencies[record.relative_path],
                patterns=patterns,
            ))

        builder = CatalogBuilder(self.root, self.config.module_types, timestamp=self.timestamp)
        catalog = builder.build(all_metadata, all_dependencies, graph)
        logger.info(
            "Catalog: %d pages, %d components, %d services",
            catalog.summary.pages,
            catalog.summary.components,
            catalog.summary.services,
        )
        return catalog

    def _read_files(self, files: List[FileRecord]) -> Dict[str, str]:
        """Read each accepted file once, keyed by relative path, in scan order."""
        texts: Dict[str, str] = {}
        for record in files:
            if not validate_read_path(record.path, self.root):
                self.errors.log(
                    "SECURITY_ERROR",
                    "File path failed safety validation",
                    "warning",
                    file=record.relative_path,
                )
                continue
            try:
                texts[record.relative_path] = Path(record.path).read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                self.errors.log(
                    "PARSE_ERROR",
                    f"File is not valid UTF-8: {exc.reason}",
                    "warning",
                    file=record.relative_path,
                )
            except OSError as exc:
                self.errors.log(
                    "FILE_NOT_FOUND",
                    f"Could not read file: {exc.strerror or exc}",
                    "warning",
                    file=record.relative_path,
                    suggestion="Check file permissions",
                )
        return texts

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def output_path_for(self, fmt: str) -> Path:
        """``feature-catalog.json`` + ``dot`` -> ``feature-catalog.dot``."""
        base = Path(self.config.output_path)
        if not base.is_absolute():
            base = Path.cwd() / base
        return base.with_suffix(FORMAT_EXTENSIONS[fmt])

    def write_outputs(self, catalog: FeatureCatalog) -> List[Path]:
        """Write every configured format; unsafe targets are skipped and recorded."""
        written: List[Path] = []
        for fmt in self.config.output_formats:
            target = self.output_path_for(fmt)
            check = validate_output_path(target, self.root)
            if not check:
                self.errors.log(
                    "SECURITY_ERROR",
                    f"Cannot write {fmt} output: {check.error}",
                    "error",
                    file=str(target),
                )
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            if fmt == "json":
                export_json(catalog, target)
            else:
                export_dot(catalog.dependency_graph, target)
            logger.info("Wrote %s output to %s", fmt, target)
            written.append(target)
        return written

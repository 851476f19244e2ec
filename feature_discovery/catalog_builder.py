"""CatalogBuilder for aggregating per-file analysis into a FeatureCatalog."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_MODULE_TYPES
from .models import (
    CatalogMetadata,
    CatalogSummary,
    CategorizedFeatures,
    Dependencies,
    DependencyGraph,
    Feature,
    FeatureCatalog,
    FeatureMetadata,
    MigrationChallenge,
    MigrationGuide,
)
from .technology_map import detect_technologies

logger = logging.getLogger(__name__)

LARGE_FILE_LOC = 500
HIGH_COUPLING_DEPENDENTS = 10

# category -> bucket; anything unlisted (module/config/context/server) lands in "modules"
CATEGORY_BUCKETS: Dict[str, str] = {
    "page": "pages",
    "component": "components",
    "service": "services",
    "hook": "hooks",
    "utility": "utilities",
    "type": "types",
}

BASE_RECOMMENDATIONS = (
    "Start by migrating type definitions and shared utilities first",
    "Migrate services and API integrations before UI components",
    "Test authentication and session management thoroughly in target environment",
    "Verify all environment variables are properly configured",
    "Run database migrations before deploying application code",
)


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. ``2024-01-01T00:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CatalogBuilder:
    """Builds the catalog, summary and migration guide from analyzed files."""

    def __init__(
        self,
        root_dir: Path,
        module_types: Optional[Sequence[str]] = None,
        timestamp: Optional[str] = None,
    ):
        """Initialize CatalogBuilder.

        Args:
            root_dir: Project root, used to read ``package.json``.
            module_types: Ordered module-type labels; the last one is the fallback.
            timestamp: Fixed ``generated_at`` value. Defaults to the current UTC time.
        """
        self.root_dir = Path(root_dir)
        self.module_types = list(module_types) if module_types else list(DEFAULT_MODULE_TYPES)
        self.timestamp = timestamp

    def build(
        self,
        all_metadata: Sequence[FeatureMetadata],
        all_dependencies: Mapping[str, Dependencies],
        graph: DependencyGraph,
    ) -> FeatureCatalog:
        """Aggregate everything into a FeatureCatalog.

        Args:
            all_metadata: One entry per analyzed file, in scan order.
            all_dependencies: Dependencies keyed by relative path.
            graph: The dependency graph for the same files.

        Returns:
            A new FeatureCatalog; none of the inputs are mutated.
        """
        features = self.create_features(all_metadata, all_dependencies, graph)
        categorized = self.group_by_category(features)
        summary = self.generate_summary(categorized, all_dependencies)
        metadata = self.create_metadata(graph.node_count, categorized.total)
        guide = self.create_migration_guide(categorized, graph)

        logger.debug(
            "Catalog built: %d features, %d external packages",
            categorized.total,
            len(summary.external_dependencies),
        )
        return FeatureCatalog(
            metadata=metadata,
            summary=summary,
            features=categorized,
            dependency_graph=graph,
            migration_guide=guide,
        )

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def create_features(
        self,
        all_metadata: Sequence[FeatureMetadata],
        all_dependencies: Mapping[str, Dependencies],
        graph: DependencyGraph,
    ) -> List[Feature]:
        features: List[Feature] = []
        for meta in all_metadata:
            deps = all_dependencies.get(meta.file_path) or Dependencies()
            node = graph.nodes.get(meta.file_path)
            features.append(Feature(
                name=meta.name,
                file_path=meta.file_path,
                category=meta.category,
                description=meta.description,
                dependencies=deps,
                exports=list(meta.exports),
                complexity=meta.complexity,
                migration_notes=list(meta.migration_notes),
                related_features=list(node.dependents) if node else [],
                props=meta.props,
                react_patterns=meta.react_patterns,
            ))
        return features

    def group_by_category(self, features: Sequence[Feature]) -> CategorizedFeatures:
        categorized = CategorizedFeatures()
        for feature in features:
            bucket = CATEGORY_BUCKETS.get(feature.category, "modules")
            if bucket == "components":
                feature.routes = [r.path for r in feature.dependencies.routes]
                feature.used_by = list(feature.related_features)
            elif bucket == "modules":
                feature.module_type = self.infer_module_type(feature.file_path)
            categorized.bucket(bucket).append(feature)
        return categorized

    def infer_module_type(self, file_path: str) -> str:
        lower = file_path.lower()
        for module_type in self.module_types:
            if module_type.lower() in lower:
                return module_type
        return self.module_types[-1] if self.module_types else "other"

    # ------------------------------------------------------------------
    # Summary / metadata
    # ------------------------------------------------------------------

    def generate_summary(
        self,
        features: CategorizedFeatures,
        all_dependencies: Mapping[str, Dependencies],
    ) -> CatalogSummary:
        packages = sorted({
            ext.package for deps in all_dependencies.values() for ext in deps.external
        })
        return CatalogSummary(
            pages=len(features.pages),
            components=len(features.components),
            services=len(features.services),
            hooks=len(features.hooks),
            utilities=len(features.utilities),
            types=len(features.types),
            modules=len(features.modules),
            external_dependencies=packages,
            key_technologies=detect_technologies(packages),
        )

    def create_metadata(self, total_files: int, total_features: int) -> CatalogMetadata:
        """``total_files`` counts every scanned file, including any that could not be read."""
        package_json = self.read_package_json()
        return CatalogMetadata(
            project_name=package_json.get("name") or "Unknown Project",
            generated_at=self.timestamp or utc_timestamp(),
            total_files=total_files,
            total_features=total_features,
            version=package_json.get("version") or "1.0.0",
        )

    def read_package_json(self) -> Dict[str, Any]:
        path = self.root_dir / "package.json"
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Migration guide
    # ------------------------------------------------------------------

    def create_migration_guide(
        self,
        features: CategorizedFeatures,
        graph: DependencyGraph,
    ) -> MigrationGuide:
        challenges = self.identify_challenges(features)
        return MigrationGuide(
            overview=self.migration_overview(features),
            recommendations=self.generate_recommendations(challenges),
            challenges=challenges,
            migration_order=self.suggest_migration_order(graph),
        )

    def migration_overview(self, features: CategorizedFeatures) -> str:
        return (
            f"This project contains {features.total} features across {len(features.pages)} pages, "
            f"{len(features.components)} components, {len(features.services)} services, "
            f"{len(features.hooks)} hooks, {len(features.utilities)} utilities, "
            f"{len(features.types)} type definitions, and {len(features.modules)} modules. "
            "The application follows a modern React architecture."
        )

    def identify_challenges(self, features: CategorizedFeatures) -> List[MigrationChallenge]:
        everything = features.all_features()
        challenges: List[MigrationChallenge] = []

        def with_note(fragment: str) -> List[Feature]:
            return [f for f in everything if any(fragment in note for note in f.migration_notes)]

        env_specific = with_note("environment")
        if env_specific:
            challenges.append(MigrationChallenge(
                feature="Environment Detection",
                challenge=f"{len(env_specific)} files contain environment-specific code",
                recommendation="Create environment abstraction layer and configuration management system",
            ))

        external = with_note("external service")
        if external:
            challenges.append(MigrationChallenge(
                feature="External Service Integration",
                challenge=f"{len(external)} files integrate with external services",
                recommendation="Ensure API keys and service configurations are properly migrated",
            ))

        database = with_note("database")
        if database:
            challenges.append(MigrationChallenge(
                feature="Database Operations",
                challenge=f"{len(database)} files perform database operations",
                recommendation="Verify database schema compatibility and run migrations in target environment",
            ))

        sessions = with_note("session")
        if sessions:
            challenges.append(MigrationChallenge(
                feature="Session Management",
                challenge=f"{len(sessions)} files use session management",
                recommendation="Configure session store (PostgreSQL or Redis) in target environment",
            ))

        large = [f for f in everything if f.complexity.lines_of_code > LARGE_FILE_LOC]
        if large:
            challenges.append(MigrationChallenge(
                feature="Code Complexity",
                challenge=f"{len(large)} files exceed {LARGE_FILE_LOC} lines of code",
                recommendation="Consider refactoring large files into smaller, more maintainable modules",
            ))

        coupled = [f for f in everything if len(f.related_features) > HIGH_COUPLING_DEPENDENTS]
        if coupled:
            challenges.append(MigrationChallenge(
                feature="High Coupling",
                challenge=(
                    f"{len(coupled)} files are used by more than "
                    f"{HIGH_COUPLING_DEPENDENTS} other files"
                ),
                recommendation="Stabilize the interfaces of heavily shared modules before migrating their dependents",
            ))

        return challenges

    def generate_recommendations(self, challenges: Sequence[MigrationChallenge]) -> List[str]:
        recommendations = list(BASE_RECOMMENDATIONS)
        flagged = {c.feature for c in challenges}
        if "Code Complexity" in flagged:
            recommendations.append(
                "Consider refactoring large files before migration to improve maintainability"
            )
        if "External Service Integration" in flagged:
            recommendations.append(
                "Create a checklist of all external service credentials and configurations"
            )
        if "High Coupling" in flagged:
            recommendations.append(
                "Migrate heavily shared modules early and keep their public exports unchanged"
            )
        return recommendations

    @staticmethod
    def suggest_migration_order(graph: DependencyGraph) -> List[str]:
        """Every node, least depended-upon first.

        This is a count heuristic, not a topological sort: ``sorted`` is
        stable, so ties (and any cycle members) keep node insertion order.
        """
        ordered = sorted(graph.nodes.values(), key=lambda node: len(node.dependents))
        return [node.file_path for node in ordered]

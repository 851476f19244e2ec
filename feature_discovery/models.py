"""Core data models shared by scanning, analysis, cataloging and diffing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

if TYPE_CHECKING:
    from .pattern_detector import PatternSummary

# Fixed category labels produced by the rule engine.
CATEGORIES = (
    "page",
    "component",
    "service",
    "hook",
    "utility",
    "type",
    "config",
    "context",
    "server",
    "module",
)

# Catalog buckets, in presentation order.
BUCKETS = ("pages", "components", "services", "hooks", "utilities", "types", "modules")

DependencyKind = Literal[
    "component", "hook", "utility", "type", "service", "context", "css", "dynamic"
]
EdgeKind = Literal["import", "route", "api"]
Severity = Literal["error", "warning", "info"]


@dataclass(frozen=True)
class FileRecord:
    """A scanned source file. Immutable once created."""
    path: str
    relative_path: str
    name: str
    extension: str
    size: int
    category: str


@dataclass
class InternalDependency:
    import_path: str
    resolved_path: Optional[str]
    imports: List[str] = field(default_factory=list)
    kind: DependencyKind = "component"

    @property
    def is_resolved(self) -> bool:
        return self.resolved_path is not None


@dataclass
class ExternalDependency:
    package: str
    imports: List[str] = field(default_factory=list)
    version: Optional[str] = None


@dataclass
class RouteReference:
    path: str
    component: str


@dataclass
class ApiReference:
    endpoint: str
    method: str
    description: Optional[str] = None


@dataclass
class Dependencies:
    """Everything one file references, split by reference family."""
    internal: List[InternalDependency] = field(default_factory=list)
    external: List[ExternalDependency] = field(default_factory=list)
    routes: List[RouteReference] = field(default_factory=list)
    apis: List[ApiReference] = field(default_factory=list)

    @property
    def dependency_count(self) -> int:
        """Combined internal and external reference count."""
        return len(self.internal) + len(self.external)

    def is_empty(self) -> bool:
        return not (self.internal or self.external or self.routes or self.apis)


@dataclass
class ExportInfo:
    name: str
    export_type: Literal["default", "named"]
    kind: str = "const"


@dataclass
class PropDefinition:
    name: str
    type: str
    required: bool = True
    description: Optional[str] = None


@dataclass
class ComplexityMetrics:
    lines_of_code: int
    dependencies: int


@dataclass
class FeatureMetadata:
    """Per-file metadata synthesized by the metadata extractor."""
    name: str
    file_path: str
    category: str
    description: str
    exports: List[ExportInfo] = field(default_factory=list)
    complexity: ComplexityMetrics = field(default_factory=lambda: ComplexityMetrics(0, 0))
    migration_notes: List[str] = field(default_factory=list)
    props: Optional[List[PropDefinition]] = None
    react_patterns: Optional[PatternSummary] = None


@dataclass
class Feature:
    """One analyzed file as it appears in the catalog."""
    name: str
    file_path: str
    category: str
    description: str
    dependencies: Dependencies = field(default_factory=Dependencies)
    exports: List[ExportInfo] = field(default_factory=list)
    complexity: ComplexityMetrics = field(default_factory=lambda: ComplexityMetrics(0, 0))
    migration_notes: List[str] = field(default_factory=list)
    related_features: List[str] = field(default_factory=list)
    # Component-only fields
    props: Optional[List[PropDefinition]] = None
    routes: Optional[List[str]] = None
    used_by: Optional[List[str]] = None
    # Module-only field
    module_type: Optional[str] = None
    react_patterns: Optional[PatternSummary] = None


@dataclass
class GraphNode:
    id: str
    file_path: str
    category: str
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)


@dataclass
class GraphEdge:
    source: str
    target: str
    kind: EdgeKind = "import"


@dataclass
class DependencyGraph:
    """File-level import graph keyed by relative path."""
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)

    def add_node(self, node: GraphNode) -> None:
        self.nodes[node.id] = node

    def add_edge(self, source: str, target: str, kind: EdgeKind = "import") -> GraphEdge:
        """Append an edge and update both adjacency lists in the same step.

        Raises:
            KeyError: if either endpoint is not a node of this graph.
        """
        src_node = self.nodes[source]
        dst_node = self.nodes[target]
        edge = GraphEdge(source=source, target=target, kind=kind)
        self.edges.append(edge)
        src_node.dependencies.append(target)
        dst_node.dependents.append(source)
        return edge

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


@dataclass
class CatalogMetadata:
    project_name: str
    generated_at: str
    total_files: int
    total_features: int
    version: str = "1.0.0"


@dataclass
class CatalogSummary:
    pages: int = 0
    components: int = 0
    services: int = 0
    hooks: int = 0
    utilities: int = 0
    types: int = 0
    modules: int = 0
    external_dependencies: List[str] = field(default_factory=list)
    key_technologies: List[str] = field(default_factory=list)


@dataclass
class CategorizedFeatures:
    pages: List[Feature] = field(default_factory=list)
    components: List[Feature] = field(default_factory=list)
    services: List[Feature] = field(default_factory=list)
    hooks: List[Feature] = field(default_factory=list)
    utilities: List[Feature] = field(default_factory=list)
    types: List[Feature] = field(default_factory=list)
    modules: List[Feature] = field(default_factory=list)

    def bucket(self, name: str) -> List[Feature]:
        if name not in BUCKETS:
            raise KeyError(f"Unknown feature bucket: {name}")
        return getattr(self, name)

    def all_features(self) -> List[Feature]:
        """Every feature, bucket by bucket."""
        result: List[Feature] = []
        for name in BUCKETS:
            result.extend(getattr(self, name))
        return result

    @property
    def total(self) -> int:
        return sum(len(getattr(self, name)) for name in BUCKETS)


@dataclass
class MigrationChallenge:
    feature: str
    challenge: str
    recommendation: str


@dataclass
class MigrationGuide:
    overview: str
    recommendations: List[str] = field(default_factory=list)
    challenges: List[MigrationChallenge] = field(default_factory=list)
    migration_order: List[str] = field(default_factory=list)


@dataclass
class FeatureCatalog:
    """Aggregated output of one analysis run."""
    metadata: CatalogMetadata
    summary: CatalogSummary
    features: CategorizedFeatures
    dependency_graph: DependencyGraph
    migration_guide: MigrationGuide


@dataclass
class AnalysisIssue:
    """A recoverable (or fatal) problem recorded during a run."""
    error_type: str
    severity: Severity
    message: str
    file: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.file}]" if self.file else ""
        return f"{self.error_type}{where}: {self.message}"


@dataclass
class FieldDiff:
    field: str
    old_value: Any
    new_value: Any


@dataclass
class FeatureChange:
    change_type: Literal["added", "removed", "modified"]
    feature: Feature
    diff: List[FieldDiff] = field(default_factory=list)


@dataclass
class DiffResult:
    """Structural comparison of two catalogs. Totals are derived, never stored."""
    timestamp: str
    source_a: str
    source_b: str
    changes: Dict[str, List[FeatureChange]] = field(
        default_factory=lambda: {name: [] for name in BUCKETS}
    )

    def _count(self, change_type: str) -> int:
        return sum(
            1 for bucket in self.changes.values() for c in bucket if c.change_type == change_type
        )

    @property
    def added(self) -> int:
        return self._count("added")

    @property
    def removed(self) -> int:
        return self._count("removed")

    @property
    def modified(self) -> int:
        return self._count("modified")

    @property
    def total(self) -> int:
        return self.added + self.removed + self.modified

    def paths(self, change_type: str) -> List[str]:
        """File paths of every change of *change_type*, across buckets."""
        return [
            c.feature.file_path
            for bucket in self.changes.values()
            for c in bucket
            if c.change_type == change_type
        ]

"""Catalog serialization (camelCase JSON) and DOT export of the dependency graph."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import (
    BUCKETS,
    ApiReference,
    CatalogMetadata,
    CatalogSummary,
    CategorizedFeatures,
    ComplexityMetrics,
    Dependencies,
    DependencyGraph,
    DiffResult,
    ExportInfo,
    ExternalDependency,
    Feature,
    FeatureCatalog,
    FeatureChange,
    GraphEdge,
    GraphNode,
    InternalDependency,
    MigrationChallenge,
    MigrationGuide,
    PropDefinition,
    RouteReference,
)
from .pattern_detector import ComponentInfo, ContextInfo, HookInfo, HOCInfo, PatternSummary


# ===================================================================
# To dict
# ===================================================================

def _dependencies_to_dict(deps: Dependencies) -> Dict[str, Any]:
    return {
        "internal": [
            {
                "importPath": d.import_path,
                "resolvedPath": d.resolved_path,
                "imports": list(d.imports),
                "type": d.kind,
            }
            for d in deps.internal
        ],
        "external": [
            {"package": d.package, "imports": list(d.imports), "version": d.version}
            for d in deps.external
        ],
        "routes": [{"path": r.path, "component": r.component} for r in deps.routes],
        "apis": [
            {"endpoint": a.endpoint, "method": a.method, "description": a.description}
            for a in deps.apis
        ],
    }


def _patterns_to_dict(summary: PatternSummary) -> Dict[str, Any]:
    return {
        "hooks": [{"name": h.name, "type": h.kind, "line": h.line} for h in summary.hooks],
        "components": [
            {"name": c.name, "type": c.kind, "isExported": c.is_exported, "line": c.line}
            for c in summary.components
        ],
        "contexts": [
            {
                "name": c.name,
                "hasProvider": c.has_provider,
                "hasConsumer": c.has_consumer,
                "line": c.line,
            }
            for c in summary.contexts
        ],
        "hocs": [
            {"name": h.name, "wrappedComponent": h.wrapped_component, "line": h.line}
            for h in summary.hocs
        ],
        "hasJsx": summary.has_jsx,
    }


def feature_to_dict(feature: Feature) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": feature.name,
        "filePath": feature.file_path,
        "category": feature.category,
        "description": feature.description,
        "dependencies": _dependencies_to_dict(feature.dependencies),
        "exports": [
            {"name": e.name, "type": e.export_type, "kind": e.kind} for e in feature.exports
        ],
        "complexity": {
            "linesOfCode": feature.complexity.lines_of_code,
            "dependencies": feature.complexity.dependencies,
        },
        "migrationNotes": list(feature.migration_notes),
        "relatedFeatures": list(feature.related_features),
    }
    if feature.props is not None:
        data["props"] = [
            {"name": p.name, "type": p.type, "required": p.required, "description": p.description}
            for p in feature.props
        ]
    if feature.routes is not None:
        data["routes"] = list(feature.routes)
    if feature.used_by is not None:
        data["usedBy"] = list(feature.used_by)
    if feature.module_type is not None:
        data["moduleType"] = feature.module_type
    if feature.react_patterns is not None:
        data["reactPatterns"] = _patterns_to_dict(feature.react_patterns)
    return data


def graph_to_dict(graph: DependencyGraph) -> Dict[str, Any]:
    return {
        "nodes": [
            {
                "key": key,
                "id": node.id,
                "filePath": node.file_path,
                "type": node.category,
                "dependencies": list(node.dependencies),
                "dependents": list(node.dependents),
            }
            for key, node in graph.nodes.items()
        ],
        "edges": [{"from": e.source, "to": e.target, "type": e.kind} for e in graph.edges],
    }


def catalog_to_dict(catalog: FeatureCatalog) -> Dict[str, Any]:
    meta = catalog.metadata
    summary = catalog.summary
    guide = catalog.migration_guide
    return {
        "metadata": {
            "projectName": meta.project_name,
            "generatedAt": meta.generated_at,
            "totalFiles": meta.total_files,
            "totalFeatures": meta.total_features,
            "version": meta.version,
        },
        "summary": {
            "pages": summary.pages,
            "components": summary.components,
            "services": summary.services,
            "hooks": summary.hooks,
            "utilities": summary.utilities,
            "types": summary.types,
            "modules": summary.modules,
            "externalDependencies": list(summary.external_dependencies),
            "keyTechnologies": list(summary.key_technologies),
        },
        "features": {
            bucket: [feature_to_dict(f) for f in catalog.features.bucket(bucket)]
            for bucket in BUCKETS
        },
        "dependencyGraph": graph_to_dict(catalog.dependency_graph),
        "migrationGuide": {
            "overview": guide.overview,
            "recommendations": list(guide.recommendations),
            "challenges": [
                {"feature": c.feature, "challenge": c.challenge, "recommendation": c.recommendation}
                for c in guide.challenges
            ],
            "migrationOrder": list(guide.migration_order),
        },
    }


def _change_to_dict(change: FeatureChange) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": change.change_type, "feature": feature_to_dict(change.feature)}
    if change.diff:
        data["diff"] = [
            {"field": d.field, "oldValue": d.old_value, "newValue": d.new_value}
            for d in change.diff
        ]
    return data


def diff_to_dict(diff: DiffResult) -> Dict[str, Any]:
    return {
        "timestamp": diff.timestamp,
        "sourceA": diff.source_a,
        "sourceB": diff.source_b,
        "summary": {
            "added": diff.added,
            "removed": diff.removed,
            "modified": diff.modified,
            "total": diff.total,
        },
        "changes": {
            bucket: [_change_to_dict(change) for change in changes]
            for bucket, changes in diff.changes.items()
        },
    }


# ===================================================================
# From dict
# ===================================================================

def _dependencies_from_dict(data: Optional[Dict[str, Any]]) -> Dependencies:
    data = data or {}
    return Dependencies(
        internal=[
            InternalDependency(
                import_path=d.get("importPath", ""),
                resolved_path=d.get("resolvedPath"),
                imports=list(d.get("imports", [])),
                kind=d.get("type", "component"),
            )
            for d in data.get("internal", [])
        ],
        external=[
            ExternalDependency(
                package=d.get("package", ""),
                imports=list(d.get("imports", [])),
                version=d.get("version"),
            )
            for d in data.get("external", [])
        ],
        routes=[
            RouteReference(path=r.get("path", ""), component=r.get("component", ""))
            for r in data.get("routes", [])
        ],
        apis=[
            ApiReference(
                endpoint=a.get("endpoint", ""),
                method=a.get("method", "GET"),
                description=a.get("description"),
            )
            for a in data.get("apis", [])
        ],
    )


def _patterns_from_dict(data: Dict[str, Any]) -> PatternSummary:
    return PatternSummary(
        hooks=[HookInfo(h["name"], h.get("type", "custom"), h.get("line", 0)) for h in data.get("hooks", [])],
        components=[
            ComponentInfo(c["name"], c.get("type", "function"), c.get("isExported", False), c.get("line", 0))
            for c in data.get("components", [])
        ],
        contexts=[
            ContextInfo(c["name"], c.get("hasProvider", False), c.get("hasConsumer", False), c.get("line", 0))
            for c in data.get("contexts", [])
        ],
        hocs=[
            HOCInfo(h["name"], h.get("line", 0), h.get("wrappedComponent"))
            for h in data.get("hocs", [])
        ],
        has_jsx=bool(data.get("hasJsx", False)),
    )


def feature_from_dict(data: Dict[str, Any]) -> Feature:
    complexity = data.get("complexity") or {}
    props = data.get("props")
    patterns = data.get("reactPatterns")
    return Feature(
        name=data.get("name", ""),
        file_path=data["filePath"],
        category=data.get("category", "module"),
        description=data.get("description", ""),
        dependencies=_dependencies_from_dict(data.get("dependencies")),
        exports=[
            ExportInfo(name=e.get("name", ""), export_type=e.get("type", "named"), kind=e.get("kind", "const"))
            for e in data.get("exports", [])
        ],
        complexity=ComplexityMetrics(
            lines_of_code=complexity.get("linesOfCode", 0),
            dependencies=complexity.get("dependencies", 0),
        ),
        migration_notes=list(data.get("migrationNotes", [])),
        related_features=list(data.get("relatedFeatures", [])),
        props=[
            PropDefinition(
                name=p.get("name", ""),
                type=p.get("type", ""),
                required=p.get("required", True),
                description=p.get("description"),
            )
            for p in props
        ] if props is not None else None,
        routes=data.get("routes"),
        used_by=data.get("usedBy"),
        module_type=data.get("moduleType"),
        react_patterns=_patterns_from_dict(patterns) if patterns is not None else None,
    )


def graph_from_dict(data: Optional[Dict[str, Any]]) -> DependencyGraph:
    """Rebuild a graph; adjacency comes from the stored node lists, not from replaying edges."""
    data = data or {}
    graph = DependencyGraph()
    for entry in data.get("nodes", []):
        node_id = entry.get("id") or entry["key"]
        graph.add_node(GraphNode(
            id=node_id,
            file_path=entry.get("filePath", node_id),
            category=entry.get("type", "module"),
            dependencies=list(entry.get("dependencies", [])),
            dependents=list(entry.get("dependents", [])),
        ))
    graph.edges = [
        GraphEdge(source=e["from"], target=e["to"], kind=e.get("type", "import"))
        for e in data.get("edges", [])
    ]
    return graph


def catalog_from_dict(data: Dict[str, Any]) -> FeatureCatalog:
    """Inverse of :func:`catalog_to_dict`; missing optional sections get defaults."""
    meta = data.get("metadata") or {}
    summary = data.get("summary") or {}
    guide = data.get("migrationGuide") or {}
    features = data.get("features") or {}

    categorized = CategorizedFeatures()
    for bucket in BUCKETS:
        categorized.bucket(bucket).extend(feature_from_dict(f) for f in features.get(bucket, []))

    return FeatureCatalog(
        metadata=CatalogMetadata(
            project_name=meta.get("projectName", "Unknown Project"),
            generated_at=meta.get("generatedAt", ""),
            total_files=meta.get("totalFiles", categorized.total),
            total_features=meta.get("totalFeatures", categorized.total),
            version=meta.get("version", "1.0.0"),
        ),
        summary=CatalogSummary(
            pages=summary.get("pages", len(categorized.pages)),
            components=summary.get("components", len(categorized.components)),
            services=summary.get("services", len(categorized.services)),
            hooks=summary.get("hooks", len(categorized.hooks)),
            utilities=summary.get("utilities", len(categorized.utilities)),
            types=summary.get("types", len(categorized.types)),
            modules=summary.get("modules", len(categorized.modules)),
            external_dependencies=list(summary.get("externalDependencies", [])),
            key_technologies=list(summary.get("keyTechnologies", [])),
        ),
        features=categorized,
        dependency_graph=graph_from_dict(data.get("dependencyGraph")),
        migration_guide=MigrationGuide(
            overview=guide.get("overview", ""),
            recommendations=list(guide.get("recommendations", [])),
            challenges=[
                MigrationChallenge(
                    feature=c.get("feature", ""),
                    challenge=c.get("challenge", ""),
                    recommendation=c.get("recommendation", ""),
                )
                for c in guide.get("challenges", [])
            ],
            migration_order=list(guide.get("migrationOrder", [])),
        ),
    )


# ===================================================================
# Files
# ===================================================================

def export_json(catalog: FeatureCatalog, output_file: Path, pretty: bool = True) -> None:
    payload = json.dumps(catalog_to_dict(catalog), indent=2 if pretty else None)
    output_file.write_text(payload, encoding="utf-8")


def load_catalog(path: Path) -> FeatureCatalog:
    """Read a catalog written by :func:`export_json`.

    Raises:
        ValueError: if the file is not valid JSON or lacks the catalog shape.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or "features" not in data:
        raise ValueError(f"{path} does not look like a feature catalog")
    try:
        return catalog_from_dict(data)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"{path} has a malformed catalog entry: {exc}") from exc


def export_diff_json(diff: DiffResult, output_file: Path) -> None:
    output_file.write_text(json.dumps(diff_to_dict(diff), indent=2), encoding="utf-8")


def export_dot(graph: DependencyGraph, output_file: Path, focus: str = "") -> None:
    output_file.write_text(graph_to_dot(graph, focus), encoding="utf-8")


def graph_to_dot(graph: DependencyGraph, focus: str = "") -> str:
    selected = _focused_subgraph(graph, focus)

    lines = ["digraph FeatureGraph {"]
    lines.append("  rankdir=LR;")

    for node_id in selected["nodes"]:
        node = graph.nodes[node_id]
        label = f"{_esc(node.category)}\\n{_esc(node_id)}"
        lines.append(f'  "{_esc(node_id)}" [label="{label}"];')

    for edge in selected["edges"]:
        lines.append(
            f'  "{_esc(edge.source)}" -> "{_esc(edge.target)}" [label="{_esc(edge.kind)}"];'
        )

    lines.append("}")
    return "\n".join(lines)


def _focused_subgraph(graph: DependencyGraph, focus: str) -> Dict[str, List]:
    edges = [e for e in graph.edges if e.source in graph.nodes and e.target in graph.nodes]
    if not focus:
        return {"nodes": list(graph.nodes.keys()), "edges": edges}

    focus_ids = {node_id for node_id in graph.nodes if focus in node_id}
    if not focus_ids:
        return {"nodes": list(graph.nodes.keys()), "edges": edges}

    edge_subset = [e for e in edges if e.source in focus_ids or e.target in focus_ids]
    node_subset = set(focus_ids)
    for e in edge_subset:
        node_subset.add(e.source)
        node_subset.add(e.target)
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')

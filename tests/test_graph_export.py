"""Tests for JSON and DOT serialization."""

import json
from pathlib import Path

import pytest

from feature_discovery.config import ToolConfig
from feature_discovery.engine import AnalysisEngine
from feature_discovery.graph_export import (
    catalog_from_dict,
    catalog_to_dict,
    export_dot,
    export_json,
    graph_to_dict,
    graph_to_dot,
    load_catalog,
)
from feature_discovery.models import DependencyGraph, FeatureCatalog, GraphNode


@pytest.fixture
def sample_catalog(sample_config: ToolConfig, fixed_timestamp: str) -> FeatureCatalog:
    return AnalysisEngine(sample_config, timestamp=fixed_timestamp).analyze()


def small_graph() -> DependencyGraph:
    graph = DependencyGraph()
    for node_id, category in (("src/App.tsx", "component"), ("src/pages/Home.tsx", "page"), ("src/x.ts", "module")):
        graph.add_node(GraphNode(id=node_id, file_path=node_id, category=category))
    graph.add_edge("src/App.tsx", "src/pages/Home.tsx")
    return graph


class TestCatalogJson:
    def test_top_level_shape(self, sample_catalog: FeatureCatalog):
        data = catalog_to_dict(sample_catalog)
        assert list(data) == ["metadata", "summary", "features", "dependencyGraph", "migrationGuide"]
        assert data["metadata"] == {
            "projectName": "sample-app",
            "generatedAt": "2024-01-01T00:00:00.000Z",
            "totalFiles": 9,
            "totalFeatures": 9,
            "version": "2.1.0",
        }
        assert list(data["features"]) == [
            "pages", "components", "services", "hooks", "utilities", "types", "modules",
        ]
        assert data["summary"]["keyTechnologies"] == ["Axios", "React", "React Router DOM"]

    def test_feature_optional_keys(self, sample_catalog: FeatureCatalog):
        data = catalog_to_dict(sample_catalog)
        button = next(f for f in data["features"]["components"] if f["name"] == "Button")
        assert button["usedBy"] == ["src/pages/Home.tsx"]
        assert button["routes"] == []
        assert button["props"][0] == {
            "name": "label", "type": "string", "required": True, "description": "Visible text",
        }
        assert "moduleType" not in button
        assert button["reactPatterns"]["hasJsx"] is True

        [theme] = data["features"]["modules"]
        assert theme["moduleType"] == "other"
        assert "usedBy" not in theme and "routes" not in theme

    def test_internal_dependency_keys(self, sample_catalog: FeatureCatalog):
        data = catalog_to_dict(sample_catalog)
        home = next(f for f in data["features"]["pages"] if f["name"] == "Home")
        assert home["dependencies"]["internal"][0] == {
            "importPath": "../components/Button",
            "resolvedPath": "src/components/Button.tsx",
            "imports": ["Button"],
            "type": "component",
        }

    def test_graph_dict(self):
        data = graph_to_dict(small_graph())
        assert data["nodes"][0] == {
            "key": "src/App.tsx",
            "id": "src/App.tsx",
            "filePath": "src/App.tsx",
            "type": "component",
            "dependencies": ["src/pages/Home.tsx"],
            "dependents": [],
        }
        assert data["edges"] == [{"from": "src/App.tsx", "to": "src/pages/Home.tsx", "type": "import"}]

    def test_reload_preserves_content(self, sample_catalog: FeatureCatalog, temp_dir: Path):
        target = temp_dir / "catalog.json"
        export_json(sample_catalog, target)
        reloaded = load_catalog(target)
        assert catalog_to_dict(reloaded) == catalog_to_dict(sample_catalog)
        assert reloaded.dependency_graph.nodes["src/pages/Home.tsx"].dependents == ["src/App.tsx"]

    def test_compact_output(self, sample_catalog: FeatureCatalog, temp_dir: Path):
        target = temp_dir / "catalog.json"
        export_json(sample_catalog, target, pretty=False)
        assert "\n" not in target.read_text()

    def test_minimal_dict_gets_defaults(self):
        catalog = catalog_from_dict({"features": {"pages": [{"filePath": "src/pages/A.tsx"}]}})
        assert catalog.metadata.project_name == "Unknown Project"
        assert catalog.summary.pages == 1
        assert catalog.features.pages[0].category == "module"
        assert catalog.features.pages[0].props is None


class TestLoadErrors:
    def test_invalid_json(self, temp_dir: Path):
        path = temp_dir / "bad.json"
        path.write_text("{nope")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_catalog(path)

    def test_wrong_shape(self, temp_dir: Path):
        path = temp_dir / "other.json"
        path.write_text(json.dumps({"name": "package"}))
        with pytest.raises(ValueError, match="does not look like a feature catalog"):
            load_catalog(path)

    def test_malformed_entry(self, temp_dir: Path):
        path = temp_dir / "broken.json"
        path.write_text(json.dumps({"features": {"pages": [{"name": "no path"}]}}))
        with pytest.raises(ValueError, match="malformed"):
            load_catalog(path)


class TestDot:
    def test_full_graph(self):
        dot = graph_to_dot(small_graph())
        lines = dot.splitlines()
        assert lines[0] == "digraph FeatureGraph {"
        assert lines[1] == "  rankdir=LR;"
        assert '  "src/App.tsx" [label="component\\nsrc/App.tsx"];' in lines
        assert '  "src/App.tsx" -> "src/pages/Home.tsx" [label="import"];' in lines
        assert lines[-1] == "}"

    def test_focus_limits_to_neighbourhood(self):
        dot = graph_to_dot(small_graph(), focus="Home")
        assert '"src/App.tsx"' in dot
        assert '"src/x.ts"' not in dot

    def test_unknown_focus_keeps_everything(self):
        assert '"src/x.ts"' in graph_to_dot(small_graph(), focus="nothing-matches")

    def test_quotes_are_escaped(self):
        graph = DependencyGraph()
        graph.add_node(GraphNode(id='src/we"ird.ts', file_path='src/we"ird.ts', category="module"))
        assert '"src/we\\"ird.ts"' in graph_to_dot(graph)

    def test_export_dot_writes_file(self, temp_dir: Path):
        target = temp_dir / "graph.dot"
        export_dot(small_graph(), target)
        assert target.read_text(encoding="utf-8").startswith("digraph FeatureGraph {")

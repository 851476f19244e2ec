"""Tests for import/route/API extraction and graph construction."""

from pathlib import Path
from typing import Dict, List

import pytest

from feature_discovery.category_rules import categorize
from feature_discovery.config import ToolConfig
from feature_discovery.dependency_analyzer import (
    DependencyAnalyzer,
    build_dependency_graph,
    detect_cycles,
    is_external,
    package_name,
    strip_comments,
)
from feature_discovery.models import Dependencies, FileRecord
from feature_discovery.scanner import FileScanner


def make_records(paths: List[str]) -> List[FileRecord]:
    records = []
    for relative in paths:
        name = relative.rsplit("/", 1)[-1]
        records.append(FileRecord(
            path=f"/project/{relative}",
            relative_path=relative,
            name=name,
            extension="." + name.rsplit(".", 1)[-1],
            size=0,
            category=categorize(relative, name),
        ))
    return records


PROJECT_FILES = [
    "src/App.tsx",
    "src/components/Button.tsx",
    "src/components/index.ts",
    "src/contexts/ThemeContext.tsx",
    "src/hooks/useAuth.ts",
    "src/pages/Home.tsx",
    "src/services/api/UserService.ts",
    "src/types/user.types.ts",
    "src/utils/format.ts",
    "shared/schema.ts",
]


@pytest.fixture
def analyzer() -> DependencyAnalyzer:
    return DependencyAnalyzer("/project", make_records(PROJECT_FILES))


class TestHelpers:
    def test_is_external(self):
        assert is_external("react")
        assert is_external("@tanstack/react-query")
        assert not is_external("./Button")
        assert not is_external("../utils")
        assert not is_external("/src/App")
        assert not is_external("@/utils/format")
        assert not is_external("~/hooks/useAuth")
        assert not is_external("@shared/schema")
        assert not is_external("@shared")

    def test_package_name(self):
        assert package_name("lodash/debounce") == "lodash"
        assert package_name("@testing-library/react") == "@testing-library/react"
        assert package_name("@mui/material/Button") == "@mui/material"
        assert package_name("react") == "react"

    def test_strip_comments_keeps_urls(self):
        code = "const u = 'http://example.com'; // trailing\n/* block\nimport x from 'y' */"
        stripped = strip_comments(code)
        assert "http://example.com" in stripped
        assert "trailing" not in stripped
        assert "import x" not in stripped

    def test_strip_comments_ignores_markers_inside_strings(self):
        code = "const g = \"src/*\";\nconst u = `a // b`;\n/* real */ x();\n"
        stripped = strip_comments(code)
        assert '"src/*"' in stripped
        assert "`a // b`" in stripped
        assert "real" not in stripped
        assert len(stripped) == len(code)


class TestAnalyze:
    def test_empty_and_non_string_input(self, analyzer: DependencyAnalyzer):
        for text in ("", "   \n", None, 42):
            assert analyzer.analyze(text, "src/x.ts").is_empty()

    def test_static_imports(self, analyzer: DependencyAnalyzer):
        code = (
            "import React, { useState, useEffect } from 'react';\n"
            "import * as fmt from '../utils/format';\n"
            "import type { User } from '../types/user.types';\n"
            "import { Button as Btn } from '../components/Button';\n"
        )
        deps = analyzer.analyze(code, "src/pages/Home.tsx")

        assert [(e.package, e.imports) for e in deps.external] == [
            ("react", ["React", "useState", "useEffect"]),
        ]
        assert [(d.import_path, d.resolved_path, d.imports, d.kind) for d in deps.internal] == [
            ("../utils/format", "src/utils/format.ts", ["* as fmt"], "utility"),
            ("../types/user.types", "src/types/user.types.ts", ["User"], "type"),
            ("../components/Button", "src/components/Button.tsx", ["Button"], "component"),
        ]
        assert deps.dependency_count == 4

    def test_side_effect_css_import(self, analyzer: DependencyAnalyzer):
        deps = analyzer.analyze("import './styles/app.css';\n", "src/App.tsx")
        [dep] = deps.internal
        assert dep.kind == "css"
        assert dep.resolved_path is None
        assert dep.imports == []

    def test_dynamic_import(self, analyzer: DependencyAnalyzer):
        code = "const Home = React.lazy(() => import('./pages/Home'));\n"
        [dep] = analyzer.analyze(code, "src/App.tsx").internal
        assert dep.kind == "dynamic"
        assert dep.resolved_path == "src/pages/Home.tsx"

    def test_require(self, analyzer: DependencyAnalyzer):
        code = (
            "const fs = require('fs');\n"
            "const { join, resolve } = require('path');\n"
            "require('./utils/format');\n"
        )
        deps = analyzer.analyze(code, "src/App.tsx")
        assert [(e.package, e.imports) for e in deps.external] == [
            ("fs", ["fs"]),
            ("path", ["join", "resolve"]),
        ]
        assert deps.internal[0].resolved_path == "src/utils/format.ts"

    def test_reexports(self, analyzer: DependencyAnalyzer):
        code = "export { Button } from './Button';\nexport * from '../hooks/useAuth';\n"
        deps = analyzer.analyze(code, "src/components/index.ts")
        assert [(d.resolved_path, d.imports) for d in deps.internal] == [
            ("src/components/Button.tsx", ["Button"]),
            ("src/hooks/useAuth.ts", ["*"]),
        ]

    def test_scoped_and_deep_packages(self, analyzer: DependencyAnalyzer):
        code = (
            "import { render } from '@testing-library/react';\n"
            "import debounce from 'lodash/debounce';\n"
        )
        deps = analyzer.analyze(code, "src/App.tsx")
        assert [e.package for e in deps.external] == ["@testing-library/react", "lodash"]

    def test_commented_imports_are_ignored(self, analyzer: DependencyAnalyzer):
        code = (
            "// import Old from './Old';\n"
            "/* import { gone } from 'gone-pkg'; */\n"
            "import { Button } from './components/Button';\n"
        )
        deps = analyzer.analyze(code, "src/App.tsx")
        assert deps.external == []
        assert [d.import_path for d in deps.internal] == ["./components/Button"]

    def test_comment_markers_in_strings_do_not_hide_imports(self, analyzer: DependencyAnalyzer):
        code = (
            'const g = "src/*";\n'
            'import { Button } from "./components/Button";\n'
            'import { format } from "./utils/format";\n'
            "/* real */\n"
        )
        deps = analyzer.analyze(code, "src/App.tsx")
        assert [d.import_path for d in deps.internal] == ["./components/Button", "./utils/format"]

    def test_unterminated_text_does_not_raise(self, analyzer: DependencyAnalyzer):
        deps = analyzer.analyze("import { a, from 'react\nexport const = ;", "src/App.tsx")
        assert isinstance(deps, Dependencies)


class TestResolution:
    @pytest.mark.parametrize(
        "specifier, from_file, expected",
        [
            ("./Button", "src/components/Card.tsx", "src/components/Button.tsx"),
            ("../hooks/useAuth", "src/pages/Home.tsx", "src/hooks/useAuth.ts"),
            ("./components", "src/App.tsx", "src/components/index.ts"),
            ("@/utils/format", "src/pages/Home.tsx", "src/utils/format.ts"),
            ("~/contexts/ThemeContext", "src/App.tsx", "src/contexts/ThemeContext.tsx"),
            ("@shared/schema", "server/index.ts", "shared/schema.ts"),
            ("/src/App", "src/pages/Home.tsx", "src/App.tsx"),
            ("./types/user.types.ts", "src/App.tsx", "src/types/user.types.ts"),
        ],
    )
    def test_resolves(self, analyzer: DependencyAnalyzer, specifier, from_file, expected):
        assert analyzer.resolve_import_path(specifier, from_file)[1] == expected

    def test_unresolved_returns_normalized_base(self, analyzer: DependencyAnalyzer):
        assert analyzer.resolve_import_path("../missing/Thing", "src/pages/Home.tsx") == (
            "src/missing/Thing",
            None,
        )


@pytest.mark.parametrize(
    "path, dynamic, expected",
    [
        ("src/hooks/useAuth.ts", False, "hook"),
        ("src/useWindowSize.ts", False, "hook"),
        ("src/contexts/ThemeContext.tsx", False, "context"),
        ("src/services/api/UserService.ts", False, "service"),
        ("src/types/user.types.ts", False, "type"),
        ("src/utils/format.ts", False, "utility"),
        ("src/lib/date.ts", False, "utility"),
        ("src/styles/app.css", False, "css"),
        ("src/pages/Home.tsx", True, "dynamic"),
        ("src/components/Button.tsx", False, "component"),
    ],
)
def test_infer_dependency_kind(path: str, dynamic: bool, expected: str):
    assert DependencyAnalyzer.infer_dependency_kind(path, "", dynamic) == expected


class TestRoutesAndApis:
    def test_jsx_routes(self, analyzer: DependencyAnalyzer):
        code = (
            "<Routes>\n"
            '  <Route path="/" element={<Home />} />\n'
            '  <Route path="/legacy" component={Legacy} />\n'
            "</Routes>\n"
        )
        routes = analyzer.analyze(code, "src/App.tsx").routes
        assert [(r.path, r.component) for r in routes] == [("/", "Home"), ("/legacy", "Legacy")]

    def test_route_objects(self, analyzer: DependencyAnalyzer):
        code = "const routes = [{ path: '/about', element: <About /> }, { path: '/x', component: X }];"
        routes = analyzer.analyze(code, "src/routes.tsx").routes
        assert [(r.path, r.component) for r in routes] == [("/about", "About"), ("/x", "X")]

    def test_server_and_client_calls(self, analyzer: DependencyAnalyzer):
        code = (
            "app.get('/api/users', list);\n"
            "router.delete('/api/users/:id', remove);\n"
            "await axios.post('/api/login', body);\n"
            "await fetch('/api/items');\n"
            "await fetch(`/api/items/${id}`, { method: 'delete' });\n"
        )
        apis = analyzer.analyze(code, "server/routes.ts").apis
        assert [(a.method, a.endpoint, a.description) for a in apis] == [
            ("GET", "/api/users", "route handler via app.get()"),
            ("DELETE", "/api/users/:id", "route handler via router.delete()"),
            ("POST", "/api/login", "client request via axios.post()"),
            ("GET", "/api/items", "client request via fetch()"),
            ("DELETE", "/api/items/${id}", "client request via fetch()"),
        ]


class TestGraph:
    def test_mutual_imports_form_two_edges_and_one_cycle(self):
        records = make_records(["a.tsx", "b.tsx"])
        analyzer = DependencyAnalyzer("/project", records)
        deps = {
            "a.tsx": analyzer.analyze("import B from './b';\n", "a.tsx"),
            "b.tsx": analyzer.analyze("import A from './a';\n", "b.tsx"),
        }
        assert deps["a.tsx"].internal[0].kind == "component"

        graph = analyzer.build_graph(records, deps)
        assert graph.node_count == 2
        assert graph.edge_count == 2
        assert graph.nodes["a.tsx"].dependencies == ["b.tsx"]
        assert graph.nodes["a.tsx"].dependents == ["b.tsx"]
        assert detect_cycles(graph) == [["a.tsx", "b.tsx"]]

    def test_each_resolved_reference_is_an_edge(self):
        records = make_records(["src/App.tsx", "src/pages/Home.tsx"])
        analyzer = DependencyAnalyzer("/project", records)
        code = "import Home from './pages/Home';\nimport { meta } from './pages/Home';\n"
        deps = {"src/App.tsx": analyzer.analyze(code, "src/App.tsx")}
        graph = build_dependency_graph(records, deps)
        assert len(deps["src/App.tsx"].internal) == 2
        assert graph.edge_count == 2
        assert graph.nodes["src/App.tsx"].dependencies == ["src/pages/Home.tsx", "src/pages/Home.tsx"]
        assert graph.nodes["src/pages/Home.tsx"].dependents == ["src/App.tsx", "src/App.tsx"]

    def test_unresolved_and_route_references_are_not_edges(self):
        records = make_records(["src/App.tsx", "src/pages/Home.tsx"])
        analyzer = DependencyAnalyzer("/project", records)
        code = "import './missing';\n<Route path=\"/\" element={<Home />} />\n"
        deps = {"src/App.tsx": analyzer.analyze(code, "src/App.tsx")}
        graph = build_dependency_graph(records, deps)
        assert graph.edge_count == 0
        assert graph.node_count == 2

    def test_edges_and_adjacency_agree(self, sample_project_path: Path):

        files = FileScanner(ToolConfig(root_dir=sample_project_path)).scan()
        local = DependencyAnalyzer(str(sample_project_path), files)
        deps: Dict[str, Dependencies] = {
            f.relative_path: local.analyze(Path(f.path).read_text(encoding="utf-8"), f.relative_path)
            for f in files
        }
        graph = local.build_graph(files, deps)

        assert graph.edge_count == 10
        for edge in graph.edges:
            assert edge.target in graph.nodes[edge.source].dependencies
            assert edge.source in graph.nodes[edge.target].dependents
        assert sum(len(n.dependencies) for n in graph.nodes.values()) == graph.edge_count
        assert detect_cycles(graph) == []

    def test_three_node_cycle(self):
        records = make_records(["a.ts", "b.ts", "c.ts"])
        analyzer = DependencyAnalyzer("/project", records)
        deps = {
            "a.ts": analyzer.analyze("import './b';", "a.ts"),
            "b.ts": analyzer.analyze("import './c';", "b.ts"),
            "c.ts": analyzer.analyze("import './a';", "c.ts"),
        }
        graph = build_dependency_graph(records, deps)
        assert detect_cycles(graph) == [["a.ts", "b.ts", "c.ts"]]


def test_sample_app_references(sample_project_path: Path):
    app = sample_project_path / "src" / "App.tsx"

    files = FileScanner(ToolConfig(root_dir=sample_project_path)).scan()
    deps = DependencyAnalyzer(str(sample_project_path), files).analyze(
        app.read_text(encoding="utf-8"), "src/App.tsx"
    )

    assert [e.package for e in deps.external] == ["react", "react-router-dom"]
    assert [(d.import_path, d.resolved_path, d.kind) for d in deps.internal] == [
        ("./pages/Home", "src/pages/Home.tsx", "component"),
        ("./contexts/ThemeContext", "src/contexts/ThemeContext.tsx", "context"),
        ("./styles/app.css", None, "css"),
        ("./pages/Settings", "src/pages/Settings.tsx", "dynamic"),
    ]
    assert [(r.path, r.component) for r in deps.routes] == [("/", "Home"), ("/settings", "Settings")]

"""Regex-based import/route/API extraction and dependency graph construction.

Every extractor is a pattern over the raw text. Malformed or partially
written files yield whatever references can be recognized; the worst case
is an empty ``Dependencies``.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .models import (
    ApiReference,
    Dependencies,
    DependencyGraph,
    ExternalDependency,
    FileRecord,
    GraphNode,
    InternalDependency,
    RouteReference,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolution tables
# ---------------------------------------------------------------------------

RESOLVE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")

STYLESHEET_EXTENSIONS: Tuple[str, ...] = (".css", ".scss", ".sass", ".less", ".styl")

# Alias prefix -> candidate base directories, tried in order
PATH_ALIASES: Dict[str, Tuple[str, ...]] = {
    "@/": ("client/src/", "src/", ""),
    "~/": ("src/", ""),
    "@shared/": ("shared/",),
}

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# String literals match first so "/*" or "//" inside them never opens a comment
_COMMENT_OR_STRING_RE = re.compile(
    r"(?P<string>'(?:\\.|[^'\\\n])*'"
    r'|"(?:\\.|[^"\\\n])*"'
    r"|`(?:\\.|[^`\\])*`)"
    r"|/\*.*?\*/"
    r"|(?<!:)//[^\n]*",
    re.DOTALL,
)

# import X from 'y' | import { a, b as c } from 'y' | import * as ns from 'y'
# import X, { a } from 'y' | import type { T } from 'y' | import 'y'
_STATIC_IMPORT_RE = re.compile(
    r"""(?<![\w$.])import\s+(?:type\s+)?"""
    r"""(?:(?P<clause>[^'";]*?)\s+from\s+)?"""
    r"""['"](?P<spec>[^'"\n]+)['"]"""
)

# export { a } from 'y' | export * from 'y' | export * as ns from 'y'
_REEXPORT_RE = re.compile(
    r"""(?<![\w$.])export\s+(?:type\s+)?"""
    r"""(?:\*(?:\s+as\s+(?P<ns>[\w$]+))?|\{(?P<named>[^}]*)\})\s*"""
    r"""from\s+['"](?P<spec>[^'"\n]+)['"]"""
)

# import('y'), including React.lazy(() => import('y'))
_DYNAMIC_IMPORT_RE = re.compile(r"""(?<![\w$.])import\s*\(\s*['"`](?P<spec>[^'"`\n]+)['"`]\s*\)""")

# const x = require('y') | const { a, b } = require('y') | require('y')
_REQUIRE_RE = re.compile(
    r"""(?:(?:const|let|var)\s+(?:(?P<name>[\w$]+)|\{(?P<names>[^}]*)\})\s*=\s*)?"""
    r"""(?<![\w$.])require\s*\(\s*['"](?P<spec>[^'"\n]+)['"]\s*\)"""
)

_NAMED_BLOCK_RE = re.compile(r"\{([^}]*)\}")
_NAMESPACE_RE = re.compile(r"\*\s+as\s+([\w$]+)")
_DEFAULT_NAME_RE = re.compile(r"^\s*([\w$]+)")

# <Route path="/x" component={X} /> and <Route path="/x" element={<X />} />
_ROUTE_TAG_RE = re.compile(r"<Route\b((?:[^<>]|<[^<>]*>)*)>")
_ROUTE_PATH_ATTR_RE = re.compile(r"""\bpath\s*=\s*\{?\s*["'`]([^"'`]+)["'`]""")
_ROUTE_COMPONENT_ATTR_RE = re.compile(
    r"""\b(?:component|element)\s*=\s*\{\s*(?:<\s*)?([A-Za-z_$][\w$.]*)"""
)
# { path: '/x', component: X } and { path: '/x', element: <X /> }
_ROUTE_OBJECT_RE = re.compile(
    r"""\{\s*path\s*:\s*["'`]([^"'`]+)["'`]\s*,\s*"""
    r"""(?:component|element|Component)\s*:\s*(?:<\s*)?([A-Za-z_$][\w$.]*)"""
)

# app.get('/api/x', ...) and axios.post('/api/x', ...)
_HTTP_VERB_CALL_RE = re.compile(
    r"""\b(?P<receiver>app|router|server|api|axios|http|client)\s*\.\s*"""
    r"""(?P<method>get|post|put|delete|patch)\s*\(\s*["'`](?P<endpoint>[^"'`]+)["'`]"""
)
_SERVER_RECEIVERS = {"app", "router", "server"}

# fetch('/api/x') and fetch('/api/x', { method: 'POST' })
_FETCH_RE = re.compile(
    r"""\bfetch\s*\(\s*["'`](?P<endpoint>[^"'`]+)["'`]"""
    r"""(?:\s*,\s*\{[^}]*?\bmethod\s*:\s*["'](?P<method>\w+)["'])?"""
)

_HOOK_BASENAME_RE = re.compile(r"^use[A-Z]")
_TYPE_PATH_RE = re.compile(r"(^|/)types?(/|\.|$)|\.types?\.|\.d\.ts$")


def _blank_comment(match: "re.Match[str]") -> str:
    if match.group("string") is not None:
        return match.group(0)
    return re.sub(r"[^\n]", " ", match.group(0))


def strip_comments(text: str) -> str:
    """Blank out comments, keeping string literals, offsets and line numbers intact."""
    return _COMMENT_OR_STRING_RE.sub(_blank_comment, text)


def is_external(specifier: str) -> bool:
    """Bare package specifiers are external; relative, absolute and aliased ones are not."""
    if specifier.startswith((".", "/")):
        return False
    if specifier == "@shared" or any(specifier.startswith(a) for a in PATH_ALIASES):
        return False
    return True


def package_name(specifier: str) -> str:
    """``@scope/pkg/sub`` -> ``@scope/pkg``; ``pkg/sub`` -> ``pkg``."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def _split_names(block: str) -> List[str]:
    names: List[str] = []
    for raw in block.split(","):
        name = raw.strip()
        if not name:
            continue
        if name.startswith("type "):
            name = name[len("type "):].strip()
        # keep the imported binding, not the local alias
        name = re.split(r"\s+as\s+", name)[0].strip()
        if name:
            names.append(name)
    return names


def _parse_import_clause(clause: Optional[str]) -> List[str]:
    if not clause:
        return []
    names: List[str] = []
    clause = clause.strip()
    if not clause.startswith(("{", "*")):
        match = _DEFAULT_NAME_RE.match(clause)
        if match:
            names.append(match.group(1))
    ns = _NAMESPACE_RE.search(clause)
    if ns:
        names.append(f"* as {ns.group(1)}")
    named = _NAMED_BLOCK_RE.search(clause)
    if named:
        names.extend(_split_names(named.group(1)))
    return names


class DependencyAnalyzer:
    """Extracts per-file references and resolves internal ones against the scanned set."""

    def __init__(self, root_dir: str, files: Iterable[FileRecord]) -> None:
        self.root_dir = root_dir
        self.file_map: Dict[str, FileRecord] = {f.relative_path: f for f in files}

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def analyze(self, file_text: str, file_path: str) -> Dependencies:
        """Extract every reference in *file_text*; never raises."""
        if not isinstance(file_text, str) or not file_text.strip():
            return Dependencies()
        try:
            return self._analyze(file_text, file_path)
        except Exception as exc:
            logger.debug("Dependency extraction failed for %s: %s", file_path, exc)
            return Dependencies()

    def _analyze(self, file_text: str, file_path: str) -> Dependencies:
        code = strip_comments(file_text)
        deps = Dependencies()

        for spec, imports, dynamic in self._collect_imports(code):
            if is_external(spec):
                deps.external.append(ExternalDependency(package=package_name(spec), imports=imports))
                continue
            normalized, resolved = self.resolve_import_path(spec, file_path)
            deps.internal.append(
                InternalDependency(
                    import_path=spec,
                    resolved_path=resolved,
                    imports=imports,
                    kind=self.infer_dependency_kind(resolved or normalized, spec, dynamic),
                )
            )

        deps.routes.extend(self.extract_routes(code))
        deps.apis.extend(self.extract_apis(code))
        return deps

    def _collect_imports(self, code: str) -> List[Tuple[str, List[str], bool]]:
        """All import-like references as (specifier, symbols, is_dynamic) in source order."""
        found: List[Tuple[int, str, List[str], bool]] = []

        for m in _STATIC_IMPORT_RE.finditer(code):
            found.append((m.start(), m.group("spec"), _parse_import_clause(m.group("clause")), False))

        for m in _REEXPORT_RE.finditer(code):
            if m.group("named") is not None:
                names = _split_names(m.group("named"))
            elif m.group("ns"):
                names = [f"* as {m.group('ns')}"]
            else:
                names = ["*"]
            found.append((m.start(), m.group("spec"), names, False))

        for m in _DYNAMIC_IMPORT_RE.finditer(code):
            found.append((m.start(), m.group("spec"), [], True))

        for m in _REQUIRE_RE.finditer(code):
            if m.group("name"):
                names = [m.group("name")]
            elif m.group("names") is not None:
                names = _split_names(m.group("names"))
            else:
                names = []
            found.append((m.start(), m.group("spec"), names, False))

        found.sort(key=lambda item: item[0])
        return [(spec.strip(), names, dynamic) for _, spec, names, dynamic in found if spec.strip()]

    def extract_routes(self, code: str) -> List[RouteReference]:
        routes: List[Tuple[int, RouteReference]] = []
        for tag in _ROUTE_TAG_RE.finditer(code):
            attrs = tag.group(1)
            path = _ROUTE_PATH_ATTR_RE.search(attrs)
            component = _ROUTE_COMPONENT_ATTR_RE.search(attrs)
            if path and component:
                routes.append((tag.start(), RouteReference(path=path.group(1), component=component.group(1))))
        for m in _ROUTE_OBJECT_RE.finditer(code):
            routes.append((m.start(), RouteReference(path=m.group(1), component=m.group(2))))
        routes.sort(key=lambda item: item[0])
        return [r for _, r in routes]

    def extract_apis(self, code: str) -> List[ApiReference]:
        apis: List[Tuple[int, ApiReference]] = []
        for m in _HTTP_VERB_CALL_RE.finditer(code):
            receiver = m.group("receiver")
            role = "route handler" if receiver in _SERVER_RECEIVERS else "client request"
            apis.append((
                m.start(),
                ApiReference(
                    endpoint=m.group("endpoint"),
                    method=m.group("method").upper(),
                    description=f"{role} via {receiver}.{m.group('method')}()",
                ),
            ))
        for m in _FETCH_RE.finditer(code):
            apis.append((
                m.start(),
                ApiReference(
                    endpoint=m.group("endpoint"),
                    method=(m.group("method") or "GET").upper(),
                    description="client request via fetch()",
                ),
            ))
        apis.sort(key=lambda item: item[0])
        return [a for _, a in apis]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _candidate_bases(self, specifier: str, from_file: str) -> List[str]:
        for alias, bases in PATH_ALIASES.items():
            if specifier.startswith(alias):
                rest = specifier[len(alias):]
                return [posixpath.normpath(base + rest) for base in bases]
        if specifier == "@shared":
            return ["shared"]
        if specifier.startswith("/"):
            return [posixpath.normpath(specifier.lstrip("/"))]
        directory = posixpath.dirname(from_file.replace("\\", "/"))
        return [posixpath.normpath(posixpath.join(directory, specifier))]

    def resolve_import_path(self, specifier: str, from_file: str) -> Tuple[str, Optional[str]]:
        """Resolve an internal specifier against the scanned file map.

        Tries, per candidate base: exact match, ``base + ext``, then
        ``base/index + ext``. Returns ``(normalized_base, resolved_or_None)``.
        """
        bases = self._candidate_bases(specifier, from_file)
        for base in bases:
            candidates = [base]
            candidates.extend(base + ext for ext in RESOLVE_EXTENSIONS)
            candidates.extend(f"{base}/index{ext}" for ext in RESOLVE_EXTENSIONS)
            for candidate in candidates:
                if candidate in self.file_map:
                    return base, candidate
        return bases[0], None

    @staticmethod
    def infer_dependency_kind(path: str, specifier: str = "", dynamic: bool = False) -> str:
        lower = path.lower()
        if lower.endswith(STYLESHEET_EXTENSIONS) or specifier.lower().endswith(STYLESHEET_EXTENSIONS):
            return "css"
        if dynamic:
            return "dynamic"
        basename = posixpath.basename(path)
        if "hook" in lower or _HOOK_BASENAME_RE.match(basename):
            return "hook"
        if "context" in lower:
            return "context"
        if "service" in lower or "api/" in lower or basename.lower().startswith("api."):
            return "service"
        if _TYPE_PATH_RE.search(lower):
            return "type"
        if "util" in lower or "lib/" in lower or "helper" in lower:
            return "utility"
        return "component"

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def build_graph(
        self,
        files: Sequence[FileRecord],
        all_dependencies: Mapping[str, Dependencies],
    ) -> DependencyGraph:
        return build_dependency_graph(files, all_dependencies)


def build_dependency_graph(
    files: Sequence[FileRecord],
    all_dependencies: Mapping[str, Dependencies],
) -> DependencyGraph:
    """Two flat passes: one node per file, then one edge per resolved reference.

    Repeated references from one file to the same target (e.g. a default and
    a named import split over two statements) each yield an edge. Route
    references name components rather than files and never become edges.
    No traversal happens here, so cyclic imports cannot cause recursion.
    """
    graph = DependencyGraph()
    for record in files:
        graph.add_node(GraphNode(
            id=record.relative_path,
            file_path=record.relative_path,
            category=record.category,
        ))

    for record in files:
        deps = all_dependencies.get(record.relative_path)
        if deps is None:
            continue

        for dep in deps.internal:
            target = dep.resolved_path
            if target is None or target not in graph.nodes:
                continue
            graph.add_edge(record.relative_path, target, "import")

    return graph


def detect_cycles(graph: DependencyGraph) -> List[List[str]]:
    """Find import cycles with an iterative depth-first search.

    Each cycle is returned once per discovery as the node path that closes
    it, e.g. ``["a.tsx", "b.tsx"]`` for a two-file loop.
    """
    visited: Set[str] = set()
    on_stack: Set[str] = set()
    cycles: List[List[str]] = []

    for start in graph.nodes:
        if start in visited:
            continue
        path: List[str] = [start]
        iterators = [iter(graph.nodes[start].dependencies)]
        visited.add(start)
        on_stack.add(start)

        while iterators:
            next_id = next(iterators[-1], None)
            if next_id is None:
                iterators.pop()
                on_stack.discard(path.pop())
                continue
            if next_id not in graph.nodes:
                continue
            if next_id in on_stack:
                cycles.append(path[path.index(next_id):])
            elif next_id not in visited:
                visited.add(next_id)
                on_stack.add(next_id)
                path.append(next_id)
                iterators.append(iter(graph.nodes[next_id].dependencies))

    return cycles

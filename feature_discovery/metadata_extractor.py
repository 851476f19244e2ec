"""Per-file metadata: display name, description, exports, props, complexity and migration notes."""

from __future__ import annotations

import posixpath
import re
from typing import List, Optional, Sequence

from .config import EnvironmentPattern, MigrationRule
from .models import (
    ComplexityMetrics,
    Dependencies,
    ExportInfo,
    FeatureMetadata,
    PropDefinition,
)
from .pattern_detector import PatternSummary

LARGE_FILE_LINES = 500
MAX_INTERNAL_DEPENDENCIES = 10

EXTERNAL_SERVICES = ("google-cloud", "anthropic", "ollama", "aws", "azure", "firebase")
STATE_MANAGEMENT_LIBS = ("@tanstack/react-query", "redux", "zustand", "jotai", "recoil")

CATEGORY_DESCRIPTIONS = {
    "page": "{name} page component for the application",
    "component": "{name} UI component",
    "hook": "Custom React hook: {name}",
    "service": "{name} service for API interactions",
    "utility": "Utility functions for {name}",
    "type": "Type definitions for {name}",
    "config": "Configuration for {name}",
    "context": "React Context: {name}",
    "server": "Server module: {name}",
}

_NAME_SPLIT_RE = re.compile(r"[-_.]")

_JSDOC_RE = re.compile(r"/\*\*[ \t]*(?:\r?\n[ \t]*\*(?!/)[ \t]*)*([^\s*][^\n]*?)\s*(?:\*/|\n)")
_LINE_COMMENT_RE = re.compile(r"^\s*//\s*(.+)", re.MULTILINE)

_DEFAULT_EXPORT_RE = re.compile(
    r"export\s+default\s+(?:async\s+)?(?:(?P<kind>function|class|const)\b\s*\*?\s*)?(?P<name>[\w$]+)?"
)
_NAMED_EXPORT_RE = re.compile(
    r"export\s+(?:declare\s+)?(?:async\s+)?"
    r"(?P<kind>const|let|var|function|class|interface|type|enum)\s+(?P<name>[\w$]+)"
)
_EXPORT_LIST_RE = re.compile(r"export\s+(?:type\s+)?\{([^}]+)\}")

_PROPS_BLOCK_RE = re.compile(r"(?:interface|type)\s+([\w$]*Props)\s*(?:=\s*)?\{([^}]*)\}")
_PROP_LINE_RE = re.compile(r"(?:readonly\s+)?([\w$]+)(\?)?\s*:\s*([^;\n]+)")
_PROP_DOC_RE = re.compile(r"/\*\*?\s*(.*?)\s*\*/")

_DATABASE_RE = re.compile(r"drizzle|prisma|\w*sql\b", re.IGNORECASE)
_SESSION_RE = re.compile(r"express-session|req\.session")
_FILESYSTEM_RE = re.compile(r"(?<![\w$.])fs\.|\breadFile|\bwriteFile")
_WEBSOCKET_RE = re.compile(r"\bWebSocket\b|['\"]ws['\"]|socket\.io")
_AUTH_RE = re.compile(r"bcrypt|passport|\bjwt\b|jsonwebtoken", re.IGNORECASE)


def feature_name(file_path: str) -> str:
    """``user-profile.tsx`` -> ``UserProfile``; ``user.types.ts`` -> ``UserTypes``."""
    stem = posixpath.splitext(posixpath.basename(file_path.replace("\\", "/")))[0]
    return "".join(part[:1].upper() + part[1:] for part in _NAME_SPLIT_RE.split(stem) if part)


class MetadataExtractor:
    """Turns one file's text and dependencies into a ``FeatureMetadata``."""

    def __init__(
        self,
        environment_patterns: Sequence[EnvironmentPattern] = (),
        custom_migration_rules: Sequence[MigrationRule] = (),
    ) -> None:
        self.environment_patterns = list(environment_patterns)
        self.custom_migration_rules = list(custom_migration_rules)

    def extract(
        self,
        text: str,
        file_path: str,
        category: str,
        dependencies: Dependencies,
        patterns: Optional[PatternSummary] = None,
    ) -> FeatureMetadata:
        return FeatureMetadata(
            name=feature_name(file_path),
            file_path=file_path,
            category=category,
            description=self.infer_description(text, file_path, category),
            exports=self.extract_exports(text),
            complexity=self.calculate_complexity(text, dependencies),
            migration_notes=self.generate_migration_notes(text, dependencies),
            props=self.extract_props(text),
            react_patterns=patterns,
        )

    # ------------------------------------------------------------------

    def infer_description(self, text: str, file_path: str, category: str) -> str:
        jsdoc = _JSDOC_RE.search(text)
        if jsdoc and jsdoc.group(1).strip():
            return jsdoc.group(1).strip()

        comment = _LINE_COMMENT_RE.search(text)
        if comment:
            return comment.group(1).strip()

        name = feature_name(file_path)
        return CATEGORY_DESCRIPTIONS.get(category, "{name} module").format(name=name)

    def extract_exports(self, text: str) -> List[ExportInfo]:
        exports: List[ExportInfo] = []

        for match in _DEFAULT_EXPORT_RE.finditer(text):
            exports.append(ExportInfo(
                name=match.group("name") or "default",
                export_type="default",
                kind=match.group("kind") or "const",
            ))

        for match in _NAMED_EXPORT_RE.finditer(text):
            kind = match.group("kind")
            exports.append(ExportInfo(
                name=match.group("name"),
                export_type="named",
                kind="const" if kind in ("let", "var") else kind,
            ))

        for match in _EXPORT_LIST_RE.finditer(text):
            for raw in match.group(1).split(","):
                name = re.split(r"\s+as\s+", raw.strip())[0].strip()
                if name.startswith("type "):
                    name = name[len("type "):].strip()
                if name:
                    exports.append(ExportInfo(name=name, export_type="named", kind="const"))

        return exports

    def extract_props(self, text: str) -> Optional[List[PropDefinition]]:
        """Members of every ``XProps`` interface or type literal, or None if there are none."""
        props: List[PropDefinition] = []
        for block in _PROPS_BLOCK_RE.finditer(text):
            pending_doc: Optional[str] = None
            for line in block.group(2).split("\n"):
                doc = _PROP_DOC_RE.search(line)
                code = _PROP_DOC_RE.sub("", line).split("//")[0]
                members = [m for m in map(_PROP_LINE_RE.search, code.split(";")) if m]
                if not members:
                    if doc:
                        pending_doc = doc.group(1)
                    continue
                for member in members:
                    props.append(PropDefinition(
                        name=member.group(1),
                        type=member.group(3).strip().rstrip(",").strip(),
                        required=not member.group(2),
                        description=doc.group(1) if doc else pending_doc,
                    ))
                pending_doc = None
        return props or None

    def calculate_complexity(self, text: str, dependencies: Dependencies) -> ComplexityMetrics:
        loc = 0
        for line in text.split("\n"):
            stripped = line.strip()
            if stripped and not stripped.startswith(("//", "/*")):
                loc += 1
        return ComplexityMetrics(lines_of_code=loc, dependencies=dependencies.dependency_count)

    def generate_migration_notes(self, text: str, dependencies: Dependencies) -> List[str]:
        notes: List[str] = []

        for pattern in self.environment_patterns:
            if pattern.compiled().search(text):
                notes.append(pattern.message)

        for rule in self.custom_migration_rules:
            if rule.compiled().search(text):
                notes.append(f"{rule.message} - {rule.recommendation}")

        packages = [dep.package for dep in dependencies.external]
        for service in EXTERNAL_SERVICES:
            if any(service in package for package in packages):
                notes.append(f"Integrates with external service: {service}")

        if _DATABASE_RE.search(text):
            notes.append("Contains database operations - ensure schema compatibility")
        if _SESSION_RE.search(text):
            notes.append("Uses session management - verify session store configuration")
        if _FILESYSTEM_RE.search(text):
            notes.append("Performs file system operations - ensure proper permissions")
        if _WEBSOCKET_RE.search(text):
            notes.append("Uses WebSocket connections - verify server configuration")

        for lib in STATE_MANAGEMENT_LIBS:
            if lib in packages:
                notes.append(f"Uses {lib} for state management")

        if _AUTH_RE.search(text):
            notes.append("Handles authentication - ensure security best practices")

        raw_lines = len(text.split("\n"))
        if raw_lines > LARGE_FILE_LINES:
            notes.append(
                f"Large file ({raw_lines} lines) - consider refactoring into smaller modules"
            )

        internal = len(dependencies.internal)
        if internal > MAX_INTERNAL_DEPENDENCIES:
            notes.append(
                f"High number of internal dependencies ({internal}) - may be tightly coupled"
            )

        return notes

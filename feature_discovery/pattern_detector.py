"""React idiom detection: hooks, components, contexts and higher-order components.

Each detector is independent and works on raw text. Comments are blanked out
(keeping newlines, so reported line numbers still match the file) before any
pattern runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .dependency_analyzer import strip_comments as blank_comments

if TYPE_CHECKING:
    from .config import ToolConfig

BUILTIN_HOOKS = frozenset({
    "useState",
    "useEffect",
    "useContext",
    "useReducer",
    "useCallback",
    "useMemo",
    "useRef",
    "useImperativeHandle",
    "useLayoutEffect",
    "useDebugValue",
    "useDeferredValue",
    "useTransition",
    "useId",
    "useSyncExternalStore",
})


_HOOK_CALL_RE = re.compile(r"(?<![\w$])(use[A-Z][\w$]*)\s*(?:<[^<>()]*>)?\s*\(")
_DECLARATION_BEFORE_RE = re.compile(r"\bfunction\s*\*?\s*$")

_FUNCTION_COMPONENT_RE = re.compile(
    r"(?P<export>export\s+(?:default\s+)?)?(?:async\s+)?function\s+(?P<name>[A-Z][\w$]*)\s*(?:<[^>]*>)?\s*\("
)
_ARROW_COMPONENT_RE = re.compile(
    r"(?P<export>export\s+)?(?:const|let)\s+(?P<name>[A-Z][\w$]*)\s*(?::\s*[^=;]+?)?=\s*"
    r"(?:(?:React\.)?(?:memo|forwardRef)\s*\(\s*)?(?:async\s+)?"
    r"(?:\([^)]*\)|[\w$]+)\s*(?::\s*[^=;]+?)?=>"
)
_CLASS_COMPONENT_RE = re.compile(
    r"(?P<export>export\s+(?:default\s+)?)?class\s+(?P<name>[A-Z][\w$]*)\s+extends\s+"
    r"(?:React\.)?(?:Component|PureComponent)\b"
)

_CREATE_CONTEXT_RE = re.compile(
    r"(?:const|let|var)\s+(?P<name>[A-Za-z_$][\w$]*)\s*(?::\s*[^=;]+?)?=\s*(?:React\.)?createContext\b"
)

_WITH_HOC_RE = re.compile(r"(?:export\s+)?(?:const|function)\s+(?P<name>with[A-Z][\w$]*)\s*[=(<]")
# const enhance = (Wrapped) => (props) => ...
_CURRIED_HOC_RE = re.compile(
    r"(?:export\s+)?const\s+(?P<name>[\w$]+)\s*=\s*(?:<[^>]*>\s*)?"
    r"\(\s*[A-Z][\w$]*[^)]*\)\s*(?::\s*[^=;]+?)?=>\s*\(?[^)=]*\)?\s*(?::\s*[^=;]+?)?=>"
)
_EXPORT_DEFAULT_WRAP_RE = re.compile(r"export\s+default\s+([\w$]+)\s*\(\s*([A-Z][\w$]*)\s*\)")

_JSX_PATTERNS = (
    re.compile(r"</[A-Za-z][\w.-]*\s*>"),
    re.compile(r"<[A-Za-z][\w.]*(?:\s[^<>]*)?/>"),
    re.compile(r"<>|</>"),
    re.compile(r"\bclassName\s*="),
    re.compile(r"\bon[A-Z]\w*\s*=\s*\{"),
)


@dataclass
class HookInfo:
    name: str
    kind: str  # "built-in" | "custom"
    line: int

    @property
    def is_builtin(self) -> bool:
        return self.kind == "built-in"


@dataclass
class ComponentInfo:
    name: str
    kind: str  # "function" | "arrow" | "class"
    is_exported: bool
    line: int


@dataclass
class ContextInfo:
    name: str
    has_provider: bool
    has_consumer: bool
    line: int


@dataclass
class HOCInfo:
    name: str
    line: int
    wrapped_component: Optional[str] = None


@dataclass
class PatternSummary:
    """All detector findings for one file."""
    hooks: List[HookInfo] = field(default_factory=list)
    components: List[ComponentInfo] = field(default_factory=list)
    contexts: List[ContextInfo] = field(default_factory=list)
    hocs: List[HOCInfo] = field(default_factory=list)
    has_jsx: bool = False

    def is_empty(self) -> bool:
        return not (self.hooks or self.components or self.contexts or self.hocs or self.has_jsx)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


class PatternDetector:
    """Recognizes React constructs in a single file's text."""

    def detect_hooks(self, text: str) -> List[HookInfo]:
        """Hook *calls*, one finding per distinct name at its first call site.

        ``function useThing(`` is a declaration, and ``const useState = 'x'``
        has no call syntax; neither is reported.
        """
        code = blank_comments(text or "")
        seen: Dict[str, HookInfo] = {}
        for match in _HOOK_CALL_RE.finditer(code):
            name = match.group(1)
            if name in seen:
                continue
            if _DECLARATION_BEFORE_RE.search(code[max(0, match.start() - 40):match.start()]):
                continue
            seen[name] = HookInfo(
                name=name,
                kind="built-in" if name in BUILTIN_HOOKS else "custom",
                line=_line_of(code, match.start()),
            )
        return list(seen.values())

    def detect_components(self, text: str) -> List[ComponentInfo]:
        code = blank_comments(text or "")
        found: Dict[str, tuple] = {}
        for kind, pattern in (
            ("function", _FUNCTION_COMPONENT_RE),
            ("arrow", _ARROW_COMPONENT_RE),
            ("class", _CLASS_COMPONENT_RE),
        ):
            for match in pattern.finditer(code):
                name = match.group("name")
                start = match.start("name")
                if name in found and found[name][0] <= start:
                    continue
                found[name] = (start, kind, bool(match.group("export")))

        components = [
            ComponentInfo(
                name=name,
                kind=kind,
                is_exported=exported or self._exported_elsewhere(code, name),
                line=_line_of(code, start),
            )
            for name, (start, kind, exported) in found.items()
        ]
        components.sort(key=lambda c: c.line)
        return components

    @staticmethod
    def _exported_elsewhere(code: str, name: str) -> bool:
        escaped = re.escape(name)
        if re.search(rf"export\s+default\s+{escaped}\s*;?\s*$", code, re.MULTILINE):
            return True
        return bool(re.search(rf"export\s*\{{[^}}]*\b{escaped}\b[^}}]*\}}", code))

    def detect_contexts(self, text: str) -> List[ContextInfo]:
        code = blank_comments(text or "")
        contexts: List[ContextInfo] = []
        for match in _CREATE_CONTEXT_RE.finditer(code):
            name = match.group("name")
            escaped = re.escape(name)
            contexts.append(ContextInfo(
                name=name,
                has_provider=f"{name}.Provider" in code,
                has_consumer=(
                    f"{name}.Consumer" in code
                    or re.search(rf"useContext\s*\(\s*{escaped}\s*\)", code) is not None
                ),
                line=_line_of(code, match.start("name")),
            ))
        return contexts

    def detect_hocs(self, text: str) -> List[HOCInfo]:
        code = blank_comments(text or "")
        hocs: Dict[str, HOCInfo] = {}
        for pattern in (_WITH_HOC_RE, _CURRIED_HOC_RE):
            for match in pattern.finditer(code):
                name = match.group("name")
                if name not in hocs:
                    hocs[name] = HOCInfo(name=name, line=_line_of(code, match.start("name")))

        for match in _EXPORT_DEFAULT_WRAP_RE.finditer(code):
            hoc = hocs.get(match.group(1))
            if hoc is not None and hoc.wrapped_component is None:
                hoc.wrapped_component = match.group(2)

        for hoc in hocs.values():
            if hoc.wrapped_component is not None:
                continue
            call = re.search(rf"(?<![\w$]){re.escape(hoc.name)}\s*\(\s*([A-Z][\w$]*)\s*\)", code)
            if call:
                hoc.wrapped_component = call.group(1)

        return sorted(hocs.values(), key=lambda h: h.line)

    def has_jsx(self, text: str) -> bool:
        code = blank_comments(text or "")
        return any(p.search(code) for p in _JSX_PATTERNS)

    def summarize(self, text: str, config: Optional["ToolConfig"] = None) -> PatternSummary:
        """Run the detectors enabled in *config* (all of them when it is None)."""
        summary = PatternSummary()
        if config is not None and not config.detect_react_patterns:
            return summary
        summary.components = self.detect_components(text)
        summary.has_jsx = self.has_jsx(text)
        if config is None or config.detect_hooks:
            summary.hooks = self.detect_hooks(text)
        if config is None or config.detect_contexts:
            summary.contexts = self.detect_contexts(text)
        if config is None or config.detect_hocs:
            summary.hocs = self.detect_hocs(text)
        return summary

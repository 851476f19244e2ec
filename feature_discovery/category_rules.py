"""Prioritized path rules that assign a category to every scanned file."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Union

from .errors import ConfigurationError

FALLBACK_CATEGORY = "module"


@dataclass
class CategoryRule:
    pattern: Union[str, Pattern[str]]
    category: str
    priority: int
    description: Optional[str] = None

    def compiled(self) -> Pattern[str]:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern
        try:
            return re.compile(self.pattern)
        except re.error as exc:
            raise ConfigurationError(
                f"Invalid category rule pattern {self.pattern!r} for '{self.category}': {exc}"
            ) from exc


DEFAULT_CATEGORY_RULES: List[CategoryRule] = [
    CategoryRule(
        re.compile(r"pages?/|routes?/.*\.(tsx|jsx)$"),
        "page", 10, "Page components and route handlers",
    ),
    CategoryRule(
        re.compile(r"contexts?/|\.context\.(ts|tsx|js|jsx)$"),
        "context", 9, "React Context providers and consumers",
    ),
    CategoryRule(
        re.compile(r"hooks?/|^use[A-Z]"),
        "hook", 8, "Custom React hooks",
    ),
    CategoryRule(
        re.compile(r"components?/|\.component\.(tsx|jsx)$"),
        "component", 7, "React components",
    ),
    CategoryRule(
        # api/ only at the tree root; nested api/ folders belong to their parent layer
        re.compile(r"server/|^api/|routes/.*\.(ts|js)$|middleware/"),
        "server", 7, "Server-side code, API routes, and middleware",
    ),
    CategoryRule(
        re.compile(r"services?/|\.service\.(ts|js)$"),
        "service", 6, "Service layer for API interactions",
    ),
    CategoryRule(
        re.compile(r"utils?/|lib/|helpers?/|\.util\.(ts|js)$"),
        "utility", 5, "Utility functions and helpers",
    ),
    CategoryRule(
        re.compile(r"types?/|\.types?\.(ts|tsx)$|\.d\.ts$|shared/.*\.(ts|tsx)$"),
        "type", 4, "Type definitions and interfaces",
    ),
    CategoryRule(
        re.compile(r"config/|\.config\.(ts|js)$"),
        "config", 3, "Configuration files",
    ),
    CategoryRule(
        re.compile(r"\.(tsx|jsx)$"),
        "component", 1, "Default React component",
    ),
    CategoryRule(
        re.compile(r"\.(ts|js)$"),
        "module", 0, "Generic module",
    ),
]


def build_rules(custom: Optional[Iterable[CategoryRule]] = None) -> List[CategoryRule]:
    """Defaults followed by *custom* rules, in registration order (unsorted)."""
    rules = list(DEFAULT_CATEGORY_RULES)
    if custom:
        rules.extend(custom)
    return rules


def sort_rules(rules: Sequence[CategoryRule]) -> List[CategoryRule]:
    # sorted() is stable, so equal priorities keep registration order
    return sorted(rules, key=lambda r: r.priority, reverse=True)


def categorize(
    relative_path: str,
    file_name: str,
    rules: Optional[Sequence[CategoryRule]] = None,
) -> str:
    """Return the category of the first matching rule, else ``"module"``.

    Each rule is tested against three forms independently: the combined
    ``path/name`` string, the lowercased relative path and the lowercased
    file name.
    """
    if rules is None:
        rules = DEFAULT_CATEGORY_RULES

    lower_path = relative_path.replace("\\", "/").lower()
    lower_name = file_name.lower()
    full_path = f"{lower_path}/{lower_name}"

    for rule in sort_rules(rules):
        regex = rule.compiled()
        if regex.search(full_path) or regex.search(lower_path) or regex.search(lower_name):
            return rule.category

    return FALLBACK_CATEGORY

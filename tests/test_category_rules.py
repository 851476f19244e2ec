"""Tests for the category rule engine."""

import re

import pytest

from feature_discovery.category_rules import (
    DEFAULT_CATEGORY_RULES,
    FALLBACK_CATEGORY,
    CategoryRule,
    build_rules,
    categorize,
    sort_rules,
)
from feature_discovery.errors import ConfigurationError


@pytest.mark.parametrize(
    "relative_path, expected",
    [
        ("src/pages/Dashboard.tsx", "page"),
        ("src/routes/index.tsx", "page"),
        ("src/contexts/AuthContext.tsx", "context"),
        ("src/state/auth.context.ts", "context"),
        ("src/hooks/useAuth.ts", "hook"),
        ("src/components/Button.tsx", "component"),
        ("server/index.ts", "server"),
        ("api/users.ts", "server"),
        ("src/middleware/auth.ts", "server"),
        ("src/services/api/UserService.ts", "service"),
        ("src/billing/invoice.service.ts", "service"),
        ("src/utils/format.ts", "utility"),
        ("src/lib/date.ts", "utility"),
        ("src/types/user.ts", "type"),
        ("src/models/user.types.ts", "type"),
        ("src/global.d.ts", "type"),
        ("config/app.ts", "config"),
        ("vite.config.ts", "config"),
        ("src/App.tsx", "component"),
        ("src/index.ts", "module"),
    ],
)
def test_default_rules(relative_path: str, expected: str):
    name = relative_path.rsplit("/", 1)[-1]
    assert categorize(relative_path, name) == expected


def test_unmatched_file_falls_back_to_module():
    assert categorize("scripts/build.mjs", "build.mjs") == FALLBACK_CATEGORY
    assert categorize("README", "README", []) == "module"


def test_windows_separators_are_normalized():
    assert categorize("src\\hooks\\useAuth.ts", "useAuth.ts") == "hook"


def test_nested_api_folder_belongs_to_parent_layer():
    """``services/api/`` is a service, not server code."""
    assert categorize("src/services/api/UserService.ts", "UserService.ts") == "service"


def test_higher_priority_wins_over_registration_order():
    rules = [
        CategoryRule(r"feature", "low", 1),
        CategoryRule(r"feature", "high", 50),
    ]
    assert categorize("src/feature/a.ts", "a.ts", rules) == "high"


def test_equal_priority_keeps_registration_order():
    rules = [
        CategoryRule(r"widgets/", "first", 5),
        CategoryRule(r"widgets/", "second", 5),
    ]
    assert categorize("src/widgets/a.ts", "a.ts", rules) == "first"
    assert [r.category for r in sort_rules(rules)] == ["first", "second"]


def test_custom_rule_competes_with_builtins():
    custom = CategoryRule(r"features/", "page", 20, "Feature folders")
    rules = build_rules([custom])
    assert categorize("src/features/billing/Invoice.tsx", "Invoice.tsx", rules) == "page"
    # Lower priority custom rule loses to the component rule
    weak = CategoryRule(r"components/", "type", 2)
    assert categorize("src/components/Card.tsx", "Card.tsx", build_rules([weak])) == "component"


def test_build_rules_appends_without_mutating_defaults():
    before = len(DEFAULT_CATEGORY_RULES)
    rules = build_rules([CategoryRule(r"x", "module", 0)])
    assert len(rules) == before + 1
    assert len(DEFAULT_CATEGORY_RULES) == before


def test_precompiled_pattern_passes_through():
    pattern = re.compile(r"widgets/")
    rule = CategoryRule(pattern, "component", 3)
    assert rule.compiled() is pattern


def test_invalid_pattern_raises_configuration_error():
    rule = CategoryRule(r"([unclosed", "component", 3)
    with pytest.raises(ConfigurationError):
        rule.compiled()
    with pytest.raises(ConfigurationError):
        categorize("src/a.ts", "a.ts", [rule])

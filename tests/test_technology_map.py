"""Tests for package -> technology mapping."""

from feature_discovery.technology_map import (
    TechnologyMapping,
    detect_technologies,
    match_technology,
    technologies_by_category,
)


def test_exact_match():
    assert match_technology("react").name == "React"
    assert match_technology("react-router-dom").name == "React Router DOM"
    assert match_technology("@tanstack/react-query").name == "TanStack Query"


def test_prefix_match_at_boundary():
    assert match_technology("@radix-ui/react-dialog").name == "Radix UI"
    assert match_technology("@tanstack/react-query-devtools").name == "TanStack Query"


def test_no_partial_word_match():
    assert match_technology("reactive-x") is None
    assert match_technology("expressive") is None
    assert match_technology("left-pad") is None


def test_detect_technologies_sorted_and_deduplicated():
    packages = ["react", "axios", "react-router-dom", "@emotion/react", "@emotion/styled", "react"]
    assert detect_technologies(packages) == [
        "Axios",
        "Emotion",
        "React",
        "React Router DOM",
    ]


def test_unknown_packages_are_dropped():
    assert detect_technologies(["left-pad", "is-odd"]) == []


def test_custom_mappings():
    custom = [TechnologyMapping("@acme/ui", "Acme UI", "styling")]
    assert detect_technologies(["@acme/ui", "react"], custom) == ["Acme UI", "React"]


def test_by_category():
    packages = ["react", "redux", "zustand", "vite"]
    assert technologies_by_category(packages, "state") == ["Redux", "Zustand"]
    assert technologies_by_category(packages, "build") == ["Vite"]
    assert technologies_by_category(packages, "database") == []

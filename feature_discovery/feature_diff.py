"""Structural comparison of two feature catalogs."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .catalog_builder import utc_timestamp
from .models import BUCKETS, DiffResult, Feature, FeatureCatalog, FeatureChange, FieldDiff


class FeatureDiff:
    """Matches features by file path, bucket by bucket."""

    def __init__(self, timestamp: Optional[str] = None):
        self.timestamp = timestamp

    def compare(self, catalog_a: FeatureCatalog, catalog_b: FeatureCatalog) -> DiffResult:
        """Compare *catalog_a* (before) with *catalog_b* (after).

        Args:
            catalog_a: Baseline catalog.
            catalog_b: Catalog to compare against the baseline.

        Returns:
            DiffResult whose totals are derived from its per-bucket change lists.
        """
        result = DiffResult(
            timestamp=self.timestamp or utc_timestamp(),
            source_a=catalog_a.metadata.project_name or "Source A",
            source_b=catalog_b.metadata.project_name or "Source B",
        )
        for bucket in BUCKETS:
            result.changes[bucket] = self.compare_bucket(
                catalog_a.features.bucket(bucket),
                catalog_b.features.bucket(bucket),
            )
        return result

    def compare_bucket(
        self,
        features_a: Sequence[Feature],
        features_b: Sequence[Feature],
    ) -> List[FeatureChange]:
        by_path_a: Dict[str, Feature] = {f.file_path: f for f in features_a}
        by_path_b: Dict[str, Feature] = {f.file_path: f for f in features_b}
        changes: List[FeatureChange] = []

        for path, feature in by_path_a.items():
            if path not in by_path_b:
                changes.append(FeatureChange(change_type="removed", feature=feature))

        for path, feature_b in by_path_b.items():
            feature_a = by_path_a.get(path)
            if feature_a is None:
                changes.append(FeatureChange(change_type="added", feature=feature_b))
                continue
            diffs = compare_features(feature_a, feature_b)
            if diffs:
                changes.append(FeatureChange(change_type="modified", feature=feature_b, diff=diffs))

        return changes


def compare_features(a: Feature, b: Feature) -> List[FieldDiff]:
    """Field-level differences between two versions of the same file."""
    diffs: List[FieldDiff] = []

    if a.description != b.description:
        diffs.append(FieldDiff("description", a.description, b.description))

    if len(a.exports) != len(b.exports):
        diffs.append(FieldDiff("exports", len(a.exports), len(b.exports)))

    deps_a = a.dependencies.dependency_count
    deps_b = b.dependencies.dependency_count
    if deps_a != deps_b:
        diffs.append(FieldDiff("dependencies", deps_a, deps_b))

    if a.complexity.lines_of_code != b.complexity.lines_of_code:
        diffs.append(FieldDiff("linesOfCode", a.complexity.lines_of_code, b.complexity.lines_of_code))

    return diffs

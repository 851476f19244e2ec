"""Exceptions and the per-run error log."""

from __future__ import annotations

import logging
from typing import List, Optional

from .models import AnalysisIssue, Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}


class FeatureDiscoveryError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(FeatureDiscoveryError):
    """Malformed configuration or rule shape. Raised before any scanning."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        if self.errors:
            message = message + "\n" + "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(message)


class AnalysisError(FeatureDiscoveryError):
    """A non-recoverable precondition failed (e.g. missing root directory)."""


class ErrorLog:
    """Accumulates recoverable issues for the caller and mirrors them to logging."""

    def __init__(self) -> None:
        self._issues: List[AnalysisIssue] = []

    def log(
        self,
        error_type: str,
        message: str,
        severity: Severity = "error",
        file: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> AnalysisIssue:
        issue = AnalysisIssue(
            error_type=error_type,
            severity=severity,
            message=message,
            file=file,
            suggestion=suggestion,
        )
        self._issues.append(issue)

        where = f" [{file}]" if file else ""
        logger.log(_LEVELS.get(severity, logging.ERROR), "%s%s %s", error_type, where, message)
        if suggestion:
            logger.log(_LEVELS.get(severity, logging.ERROR), "  suggestion: %s", suggestion)
        return issue

    @property
    def issues(self) -> List[AnalysisIssue]:
        return list(self._issues)

    def by_type(self, error_type: str) -> List[AnalysisIssue]:
        return [i for i in self._issues if i.error_type == error_type]

    def by_severity(self, severity: Severity) -> List[AnalysisIssue]:
        return [i for i in self._issues if i.severity == severity]

    @property
    def warnings(self) -> List[AnalysisIssue]:
        return self.by_severity("warning")

    def has_errors(self) -> bool:
        return any(i.severity == "error" for i in self._issues)

    def summary_markdown(self) -> str:
        """Render a short markdown summary of the recorded issues."""
        errors = self.by_severity("error")
        warnings = self.by_severity("warning")
        infos = self.by_severity("info")

        lines = [
            "## Analysis Errors and Warnings",
            "",
            f"- Errors: {len(errors)}",
            f"- Warnings: {len(warnings)}",
            f"- Info: {len(infos)}",
            "",
        ]
        for title, group in (("Errors", errors), ("Warnings", warnings)):
            if not group:
                continue
            lines.append(f"### {title}")
            lines.append("")
            for issue in group:
                where = f" in `{issue.file}`" if issue.file else ""
                lines.append(f"- **{issue.error_type}**{where}: {issue.message}")
                if issue.suggestion:
                    lines.append(f"  - Suggestion: {issue.suggestion}")
            lines.append("")
        return "\n".join(lines)

    def clear(self) -> None:
        self._issues.clear()

    def __len__(self) -> int:
        return len(self._issues)

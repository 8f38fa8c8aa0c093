"""Output formatters for CLI output.

This module provides formatters for displaying assignment reports and
rule tables as text or JSON.
"""

import json
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from worksort.classification.rules import RuleTables
from worksort.core.models import PassKind
from worksort.core.orchestrator import AssignmentReport


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Status colors
    SUCCESS = "\033[92m"  # Green
    FAILURE = "\033[91m"  # Red
    WARNING = "\033[93m"  # Yellow
    INFO = "\033[94m"     # Blue

    @classmethod
    def is_supported(cls) -> bool:
        """Check if terminal supports colors."""
        return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def colorize(text: str, color: str, force: bool = False) -> str:
    """Apply color to text if supported.

    Args:
        text: Text to colorize
        color: ANSI color code
        force: Force color even if not supported

    Returns:
        Colored text or plain text
    """
    if force or Colors.is_supported():
        return f"{color}{text}{Colors.RESET}"
    return text


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_report(self, report: AssignmentReport) -> str:
        """Format an assignment report."""
        pass

    @abstractmethod
    def format_rule_tables(self, tables: RuleTables) -> str:
        """Format rule tables."""
        pass

    @abstractmethod
    def format_issues(self, issues: list[str]) -> str:
        """Format validation issues."""
        pass


class TextFormatter(OutputFormatter):
    """Plain text formatter with optional colors."""

    def __init__(self, use_colors: bool = True, verbose: bool = False):
        """Initialize the text formatter.

        Args:
            use_colors: Whether to use ANSI colors
            verbose: Whether to show per-pass details
        """
        self.use_colors = use_colors and Colors.is_supported()
        self.verbose = verbose

    def _colorize(self, text: str, color: str) -> str:
        """Apply color if enabled."""
        if self.use_colors:
            return colorize(text, color, force=True)
        return text

    def format_report(self, report: AssignmentReport) -> str:
        """Format an assignment report."""
        lines = []

        if report.success:
            status = self._colorize("DRY RUN" if report.dry_run else "DONE", Colors.SUCCESS)
        else:
            status = self._colorize("FAILED", Colors.FAILURE)
        title = self._colorize(report.model_name or "model", Colors.BOLD)
        lines.append(f"{title} [{status}]")
        lines.append(f"  Eligible elements: {report.eligible_count}")
        lines.append(f"  Moved: {report.total_moved}")
        lines.append(f"  Unresolved: {report.unresolved_count}")

        if report.disposition is not None:
            if report.disposition.is_ignore:
                lines.append("  Unresolved pool: ignored")
            else:
                lines.append(f"  Unresolved pool: assigned to {report.disposition.bucket_name}")

        if self.verbose and report.result.pass_outcomes:
            lines.append("")
            lines.append(self._colorize("Passes:", Colors.BOLD))
            lines.append(
                f"  {'Pass':<26} {'Examined':>8} {'Moved':>6} {'Same':>6} {'Rejected':>8} {'Deferred':>8} {'Missing':>7}"
            )
            for pass_kind in PassKind:
                outcome = report.result.pass_outcomes.get(pass_kind)
                if outcome is None:
                    continue
                lines.append(
                    f"  {pass_kind.value:<26} {outcome.examined:>8} {outcome.moved:>6} "
                    f"{outcome.unchanged:>6} {outcome.rejected:>8} {outcome.superseded:>8} {outcome.missing:>7}"
                )

        if self.verbose and report.result.unavailable_evidence:
            lines.append("")
            lines.append("Unavailable evidence:")
            for facet, count in sorted(report.result.unavailable_evidence.items()):
                lines.append(f"  {facet}: {count}")

        lines.append("")
        lines.append(report.summary)

        if report.errors:
            lines.append("")
            lines.append(self._colorize("Errors:", Colors.FAILURE))
            for error in report.errors:
                lines.append(f"  - {error}")

        lines.append("")
        lines.append(self._colorize(f"Completed in {report.run_time_ms:.1f}ms", Colors.DIM))

        return "\n".join(lines)

    def format_rule_tables(self, tables: RuleTables) -> str:
        """Format rule tables for review."""
        lines = [self._colorize(f"Rule tables (version: {tables.version})", Colors.BOLD), ""]

        lines.append("Category table:")
        for category, bucket_name in tables.category_to_bucket.items():
            lines.append(f"  {category:<36} -> {bucket_name}")

        lines.append("")
        lines.append("Token rules (first match wins):")
        for rule in tables.token_rules:
            lines.append(f"  {rule.bucket_name:<24} {', '.join(rule.tokens)}")

        for domain in tables.domains:
            lines.append("")
            lines.append(f"Domain: {domain.name}")
            lines.append(f"  Categories: {', '.join(sorted(domain.categories))}")
            if domain.carrier_categories:
                lines.append(f"  Carriers: {', '.join(sorted(domain.carrier_categories))}")
            if domain.token_buckets:
                lines.append(f"  Token buckets: {', '.join(domain.token_buckets)}")
            if domain.mapping is not None:
                for rule in domain.mapping.rules:
                    keywords = list(rule.kind_keywords) + list(rule.label_keywords)
                    lines.append(f"  {rule.bucket_name:<24} {', '.join(dict.fromkeys(keywords))}")
                if domain.mapping.default_bucket:
                    lines.append(f"  {domain.mapping.default_bucket:<24} (default)")

        if tables.token_excluded_categories:
            lines.append("")
            lines.append(
                f"Excluded from token pass: {', '.join(sorted(tables.token_excluded_categories))}"
            )

        return "\n".join(lines)

    def format_issues(self, issues: list[str]) -> str:
        """Format validation issues."""
        if not issues:
            return self._colorize("Rule tables are valid.", Colors.SUCCESS)

        lines = [self._colorize(f"{len(issues)} issue(s) found:", Colors.WARNING)]
        for issue in issues:
            lines.append(f"  - {issue}")
        return "\n".join(lines)


class JsonFormatter(OutputFormatter):
    """JSON output formatter."""

    def __init__(self, indent: int = 2, compact: bool = False):
        """Initialize the JSON formatter.

        Args:
            indent: Indentation level
            compact: Whether to use compact output
        """
        self.indent = None if compact else indent

    def _serialize(self, obj: Any) -> Any:
        """Serialize an object for JSON output."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "value"):  # Enum
            return obj.value
        return str(obj)

    def format_report(self, report: AssignmentReport) -> str:
        """Format an assignment report as JSON."""
        result = report.result
        disposition = None
        if report.disposition is not None:
            disposition = {
                "kind": report.disposition.kind.value,
                "bucket": report.disposition.bucket_name,
            }

        data = {
            "run_id": result.run_id,
            "model": report.model_name,
            "success": report.success,
            "dry_run": report.dry_run,
            "started_at": report.started_at,
            "run_time_ms": report.run_time_ms,
            "eligible": report.eligible_count,
            "moved": report.total_moved,
            "unresolved": report.unresolved_count,
            "disposition": disposition,
            "assignment_counts": result.assignment_counts,
            "missing_buckets": result.missing_buckets,
            "passes": {
                kind.value: {
                    "examined": outcome.examined,
                    "moved": outcome.moved,
                    "unchanged": outcome.unchanged,
                    "rejected": outcome.rejected,
                    "superseded": outcome.superseded,
                    "missing": outcome.missing,
                }
                for kind, outcome in result.pass_outcomes.items()
            },
            "unavailable_evidence": result.unavailable_evidence,
            "summary": report.summary,
            "errors": report.errors,
        }
        return json.dumps(data, indent=self.indent, default=self._serialize)

    def format_rule_tables(self, tables: RuleTables) -> str:
        """Format rule tables as JSON."""
        return json.dumps(tables.to_dict(), indent=self.indent, default=self._serialize)

    def format_issues(self, issues: list[str]) -> str:
        """Format validation issues as JSON."""
        data = {"valid": not issues, "issues": issues}
        return json.dumps(data, indent=self.indent)


def format_report(
    report: AssignmentReport,
    as_json: bool = False,
    verbose: bool = False,
    use_colors: bool = True,
) -> str:
    """Format an assignment report.

    Args:
        report: Report to format
        as_json: Whether to output JSON
        verbose: Whether to include per-pass details (text only)
        use_colors: Whether to use ANSI colors (text only)

    Returns:
        Formatted string
    """
    if as_json:
        return JsonFormatter().format_report(report)
    return TextFormatter(use_colors=use_colors, verbose=verbose).format_report(report)


def format_rule_tables(tables: RuleTables, as_json: bool = False, use_colors: bool = True) -> str:
    """Format rule tables.

    Args:
        tables: Rule tables to format
        as_json: Whether to output JSON
        use_colors: Whether to use ANSI colors (text only)

    Returns:
        Formatted string
    """
    if as_json:
        return JsonFormatter().format_rule_tables(tables)
    return TextFormatter(use_colors=use_colors).format_rule_tables(tables)

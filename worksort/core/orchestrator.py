"""Assignment Orchestrator - coordinates one bucket-assignment run.

The orchestrator is responsible for:
- Building the classification engine from configuration
- Running the rule passes inside the host transaction
- Handing the unresolved pool to a resolution adapter
- Aggregating counts into a report with a plain-text summary
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import Config
from .logging_config import get_logger
from .models import ClassificationResult, Disposition
from .reporting import summarize


@dataclass
class AssignmentReport:
    """Result of a complete assignment run.

    Attributes:
        model_name: Name of the host model
        result: Counts, missing ledger and attribution
        eligible_count: Number of eligible elements examined
        unresolved_count: Elements no rule pass claimed
        disposition: Operator decision for the unresolved pool, if asked
        summary: Plain-text summary shown to the operator
        dry_run: Whether all writes were rolled back
        run_time_ms: Total duration in milliseconds
        started_at: Run start timestamp
        completed_at: Run completion timestamp
        errors: Any errors encountered during the run
    """

    model_name: str = ""
    result: ClassificationResult = field(default_factory=ClassificationResult)
    eligible_count: int = 0
    unresolved_count: int = 0
    disposition: Disposition | None = None
    summary: str = ""
    dry_run: bool = False
    run_time_ms: float = 0.0
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the run finished without errors."""
        return not self.errors

    @property
    def total_moved(self) -> int:
        return self.result.total_moved


def build_engine(config: Config) -> Any:
    """Create a classification engine from configuration.

    Args:
        config: Application configuration.

    Returns:
        ClassificationEngine using the configured rules file, or the
        built-in tables when none is configured.

    Raises:
        FileNotFoundError: If the configured rules file doesn't exist.
        ValueError: If the rules file is invalid.
    """
    from worksort.classification.engine import ClassificationEngine
    from worksort.classification.rules import default_rule_tables, load_rule_tables

    rules_path = config.rules_path
    tables = load_rule_tables(rules_path) if rules_path else default_rule_tables()

    return ClassificationEngine(
        rule_tables=tables,
        override_phase=config.engine.override_phase or None,
        override_bucket=config.engine.override_bucket or None,
        transaction_label=config.engine.transaction_label,
        remainder_label=config.engine.remainder_label,
    )


class AssignmentOrchestrator:
    """Runs the classification engine against a host model.

    Example:
        orchestrator = AssignmentOrchestrator(config)
        report = orchestrator.run(model, PromptResolutionAdapter())
        print(report.summary)
    """

    def __init__(self, config: Config, engine: Any = None) -> None:
        """Initialize the orchestrator.

        Args:
            config: Application configuration.
            engine: Classification engine. Built from config if omitted.
        """
        self.config = config
        self.engine = engine if engine is not None else build_engine(config)
        self.logger = get_logger("main")

    def run(self, host: Any, adapter: Any = None, dry_run: bool = False) -> AssignmentReport:
        """Run a complete assignment.

        Args:
            host: Host model to classify.
            adapter: Resolution adapter for the unresolved pool. Defaults to
                the one selected by config.resolution.
            dry_run: Roll back all writes and skip the unresolved prompt.

        Returns:
            AssignmentReport for the run. Host aborts are reported in
            errors instead of being raised.
        """
        from worksort.host.base import (
            BucketingUnavailableError,
            PreviewUnavailableError,
            TransactionAbortedError,
        )
        from worksort.ui.resolution import UnresolvedPool, adapter_from_config

        report = AssignmentReport(model_name=host.name, dry_run=dry_run, started_at=datetime.now())
        start_time = time.perf_counter()
        self.logger.info(f"Starting assignment run on '{host.name}'{' (dry run)' if dry_run else ''}")

        try:
            run = self.engine.classify_known(host, dry_run=dry_run)
        except BucketingUnavailableError as e:
            self.logger.error(f"Bucketing unavailable: {e}")
            report.errors.append(f"Model is not workshared: {e}")
            return self._finish(report, start_time)
        except PreviewUnavailableError as e:
            self.logger.error(f"Dry run unavailable: {e}")
            report.errors.append(f"Dry run not supported by this model: {e}")
            return self._finish(report, start_time)
        except TransactionAbortedError as e:
            self.logger.error(f"Classification transaction aborted: {e}")
            report.errors.append(f"Transaction aborted, no changes applied: {e}")
            return self._finish(report, start_time)

        report.result = run.result
        report.eligible_count = run.eligible_count
        report.unresolved_count = run.unresolved_count

        if run.unresolved and not dry_run:
            adapter = adapter or adapter_from_config(self.config)
            pool = UnresolvedPool.from_elements(run.unresolved, run.bucket_names)
            report.disposition = adapter.present_unresolved(pool)

            try:
                remainder = self.engine.resolve_remainder(host, run.unresolved, report.disposition)
            except TransactionAbortedError as e:
                self.logger.error(f"Remainder transaction aborted: {e}")
                report.errors.append(f"Unresolved assignment aborted, no changes applied: {e}")
            else:
                report.result.merge(remainder)

        return self._finish(report, start_time)

    def _finish(self, report: AssignmentReport, start_time: float) -> AssignmentReport:
        report.summary = summarize(report.result.assignment_counts, report.result.missing_buckets)
        report.run_time_ms = (time.perf_counter() - start_time) * 1000
        report.completed_at = datetime.now()

        self.logger.info(
            f"Run complete: {report.total_moved} moved, {report.unresolved_count} unresolved "
            f"in {report.run_time_ms:.1f}ms"
        )
        return report

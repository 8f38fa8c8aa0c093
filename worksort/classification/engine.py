"""Classification Engine - ordered bucket-assignment passes.

This module runs the pass pipeline over the eligible elements of a host
model and assigns each element to one bucket:

1. Secondary classification (domain carriers, e.g. pipes by system type)
2. Connectivity inheritance (fittings/accessories take their carrier's bucket)
3. Category table
4. Name tokens (domain-scoped where applicable)
5. Phase override (may re-claim)

Elements decided by a pass are claimed and skipped by later ordinary passes.
Whatever is left is returned as the unresolved pool, which the caller can
settle through resolve_remainder() once an operator has decided.
"""

import logging
from collections import defaultdict
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any

from worksort.classification.connectivity import ConnectivityResolver
from worksort.classification.context import RunContext
from worksort.classification.evidence import EvidenceExtractor, read_facet
from worksort.classification.registry import BucketRegistry
from worksort.classification.rules import RuleTables, default_rule_tables
from worksort.core.logging_config import log_assignment, log_pass_result
from worksort.core.models import (
    Bucket,
    ClassificationResult,
    Disposition,
    EnsureOutcome,
    Evidence,
    PassKind,
)
from worksort.host.base import (
    BucketingUnavailableError,
    HostModel,
    ModelElement,
    WriteRejectedError,
)

logger = logging.getLogger("worksort.classification.engine")

DEFAULT_OVERRIDE_PHASE = "Existing"
DEFAULT_OVERRIDE_BUCKET = "S2_Existing"
DEFAULT_TRANSACTION_LABEL = "Assign elements to worksets"
DEFAULT_REMAINDER_LABEL = "Assign skipped to workset"


@dataclass
class ClassificationRun:
    """Outcome of classify_known().

    Attributes:
        result: Counts, missing ledger and attribution for the run
        unresolved: Eligible elements no pass claimed
        bucket_names: Names of the live buckets, sorted
        eligible_count: Number of eligible elements examined
        dry_run: Whether the run's writes were rolled back
    """

    result: ClassificationResult
    unresolved: list[ModelElement] = field(default_factory=list)
    bucket_names: list[str] = field(default_factory=list)
    eligible_count: int = 0
    dry_run: bool = False

    @property
    def unresolved_count(self) -> int:
        return len(self.unresolved)


class ClassificationEngine:
    """Engine assigning host elements to buckets.

    The engine holds only configuration. All per-run state lives in a
    RunContext, so every pass can be run and tested on its own.

    Example:
        engine = ClassificationEngine(default_rule_tables())
        run = engine.classify_known(host)
        pool = UnresolvedPool.from_elements(run.unresolved, run.bucket_names)
        disposition = adapter.present_unresolved(pool)
        run.result.merge(engine.resolve_remainder(host, run.unresolved, disposition))
    """

    def __init__(
        self,
        rule_tables: RuleTables | None = None,
        override_phase: str | None = DEFAULT_OVERRIDE_PHASE,
        override_bucket: str | None = DEFAULT_OVERRIDE_BUCKET,
        transaction_label: str = DEFAULT_TRANSACTION_LABEL,
        remainder_label: str = DEFAULT_REMAINDER_LABEL,
        extractor: EvidenceExtractor | None = None,
        resolver: ConnectivityResolver | None = None,
    ) -> None:
        """Initialize the classification engine.

        Args:
            rule_tables: Category, token and domain tables.
            override_phase: Phase name that triggers the override pass.
            override_bucket: Bucket the override pass assigns.
            transaction_label: Label of the classification transaction.
            remainder_label: Label of the unresolved-pool transaction.
            extractor: Evidence extractor (one is created if omitted).
            resolver: Connectivity resolver (one is created if omitted).
        """
        self.rules = rule_tables or default_rule_tables()
        self.override_phase = override_phase
        self.override_bucket = override_bucket
        self.transaction_label = transaction_label
        self.remainder_label = remainder_label
        self.extractor = extractor or EvidenceExtractor()
        self.resolver = resolver or ConnectivityResolver()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def classify_known(self, host: HostModel, dry_run: bool = False) -> ClassificationRun:
        """Run passes 1-5 and collect the unresolved pool.

        The whole pipeline runs inside a single host transaction.

        Args:
            host: Host model to classify.
            dry_run: Run inside a scope that is rolled back afterwards.

        Returns:
            ClassificationRun with the result and the unresolved pool.

        Raises:
            BucketingUnavailableError: If the host has no bucket support.
            TransactionAbortedError: If the host transaction aborted.
        """
        if not host.supports_buckets():
            raise BucketingUnavailableError(f"{host.name} does not support buckets")

        self.extractor.reset()
        self.resolver.reset()
        registry = BucketRegistry(host.get_buckets())
        context = RunContext(registry=registry)

        scope = self._open_scope(host, self.transaction_label, dry_run)
        with scope:
            elements = host.get_eligible_elements()
            logger.info(
                f"Classifying {len(elements)} eligible elements against {len(registry)} buckets"
            )
            self.run_pipeline(context, elements)
            unresolved = self.collect_unresolved(context, elements)

        unavailable = self.unavailable_evidence()
        if unavailable:
            logger.debug(f"Unavailable evidence: {unavailable}")

        result = context.to_result(unavailable)
        logger.info(
            f"Classification complete: {result.total_moved} moved, "
            f"{sum(result.missing_buckets.values())} blocked by missing buckets, "
            f"{len(unresolved)} unresolved"
        )

        return ClassificationRun(
            result=result,
            unresolved=unresolved,
            bucket_names=registry.names(),
            eligible_count=len(elements),
            dry_run=dry_run,
        )

    def preview(self, host: HostModel) -> ClassificationRun:
        """Classify without keeping any writes."""
        return self.classify_known(host, dry_run=True)

    def resolve_remainder(
        self,
        host: HostModel,
        pool: list[ModelElement],
        disposition: Disposition,
    ) -> ClassificationResult:
        """Apply an operator disposition to the unresolved pool.

        "Ignore" changes nothing. "Assign all" moves every pool element to
        the chosen bucket inside its own transaction.

        Args:
            host: Host model the pool belongs to.
            pool: Unresolved elements from classify_known().
            disposition: Operator decision.

        Returns:
            ClassificationResult for the remainder step only.
        """
        context = RunContext(registry=BucketRegistry(host.get_buckets()))

        if disposition.is_ignore or not pool:
            logger.info(f"Unresolved pool left as is ({len(pool)} elements)")
            return context.to_result()

        bucket, found = context.registry.resolve(disposition.bucket_name)
        outcome = context.outcome(PassKind.REMAINDER)
        outcome.examined = len(pool)
        if not found:
            logger.warning(f"Chosen bucket does not exist: {disposition.bucket_name}")
            context.record_missing(disposition.bucket_name, PassKind.REMAINDER, len(pool))
            return context.to_result()

        with host.transaction(self.remainder_label):
            for element in pool:
                self.ensure_bucket(context, element, bucket, PassKind.REMAINDER)

        log_pass_result(PassKind.REMAINDER.value, outcome.examined, outcome.moved, outcome.missing)
        logger.info(f"Assigned {outcome.moved} unresolved elements to {bucket.name}")
        return context.to_result()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def run_pipeline(self, context: RunContext, elements: list[ModelElement]) -> None:
        """Run passes 1-5 in precedence order."""
        context.override_bound = self.find_override_bound(context, elements)
        passes = [
            (PassKind.SECONDARY_CLASSIFICATION, self.run_secondary_classification_pass),
            (PassKind.CONNECTIVITY, self.run_connectivity_pass),
            (PassKind.CATEGORY, self.run_category_pass),
            (PassKind.TOKEN, self.run_token_pass),
            (PassKind.OVERRIDE, self.run_override_pass),
        ]
        for pass_kind, run_pass in passes:
            run_pass(context, elements)
            outcome = context.outcome(pass_kind)
            log_pass_result(pass_kind.value, outcome.examined, outcome.moved, outcome.missing)
            logger.debug(
                f"{pass_kind.value}: examined={outcome.examined} moved={outcome.moved} "
                f"unchanged={outcome.unchanged} rejected={outcome.rejected} "
                f"superseded={outcome.superseded} "
                f"missing={outcome.missing}"
            )

    def run_secondary_classification_pass(
        self,
        context: RunContext,
        elements: list[ModelElement],
    ) -> None:
        """Pass 1: assign domain carriers by their system classification."""
        pass_kind = PassKind.SECONDARY_CLASSIFICATION
        outcome = context.outcome(pass_kind)

        for element in elements:
            if context.is_claimed(element.element_id):
                continue
            domain = self.rules.domain_for(element.category)
            if domain is None or domain.mapping is None or not domain.is_carrier(element.category):
                continue

            outcome.examined += 1
            evidence = self.extractor.extract(element)
            bucket_name = domain.mapping.map(evidence.secondary_classification)
            self._assign_by_name(context, element, bucket_name, pass_kind)

    def run_connectivity_pass(self, context: RunContext, elements: list[ModelElement]) -> None:
        """Pass 2: auxiliary domain elements inherit their carrier's bucket.

        The carrier's bucket is read live, so moves made by pass 1 are
        inherited. Without a carrier, the domain classification mapping is
        applied to the element itself.
        """
        pass_kind = PassKind.CONNECTIVITY
        outcome = context.outcome(pass_kind)

        for element in elements:
            if context.is_claimed(element.element_id):
                continue
            domain = self.rules.domain_for(element.category)
            if domain is None or domain.mapping is None or domain.is_carrier(element.category):
                continue

            outcome.examined += 1
            carrier = self.resolver.first_carrier(element, domain.carrier_categories)
            if carrier is not None:
                bucket = self._live_bucket(context, carrier)
                if bucket is not None:
                    self.ensure_bucket(context, element, bucket, pass_kind)
                    continue

            evidence = self.extractor.extract(element)
            bucket_name = domain.mapping.map(evidence.secondary_classification)
            self._assign_by_name(context, element, bucket_name, pass_kind)

    def run_category_pass(self, context: RunContext, elements: list[ModelElement]) -> None:
        """Pass 3: assign unclaimed elements by the category table."""
        pass_kind = PassKind.CATEGORY
        outcome = context.outcome(pass_kind)

        by_category: dict[str, list[ModelElement]] = defaultdict(list)
        for element in elements:
            by_category[element.category].append(element)

        for category, bucket_name in self.rules.category_to_bucket.items():
            members = [
                e for e in by_category.get(category, []) if not context.is_claimed(e.element_id)
            ]
            if not members:
                continue

            outcome.examined += len(members)
            bucket, found = context.registry.resolve(bucket_name)
            if not found:
                for element in members:
                    context.claim(element.element_id)
                context.record_missing(bucket_name, pass_kind, len(members))
                continue

            for element in members:
                self.ensure_bucket(context, element, bucket, pass_kind)

    def run_token_pass(self, context: RunContext, elements: list[ModelElement]) -> None:
        """Pass 4: match name tokens against the (domain-scoped) token table."""
        pass_kind = PassKind.TOKEN
        outcome = context.outcome(pass_kind)

        for element in elements:
            if context.is_claimed(element.element_id):
                continue
            if element.category in self.rules.token_excluded_categories:
                continue

            outcome.examined += 1
            evidence = self.extractor.extract(element)
            bucket_name = self.match_tokens(evidence)
            if bucket_name is None:
                continue
            self._assign_by_name(context, element, bucket_name, pass_kind)

    def run_override_pass(self, context: RunContext, elements: list[ModelElement]) -> None:
        """Pass 5: move elements in the override phase, regardless of claims."""
        pass_kind = PassKind.OVERRIDE
        outcome = context.outcome(pass_kind)
        if not self.override_phase or not self.override_bucket:
            return

        matching = [e for e in elements if self.is_override_phase(e)]
        if not matching:
            return

        outcome.examined += len(matching)
        bucket, found = context.registry.resolve(self.override_bucket)
        if not found:
            for element in matching:
                context.claim(element.element_id)
            context.record_missing(self.override_bucket, pass_kind, len(matching))
            return

        for element in matching:
            result = self.ensure_bucket(context, element, bucket, pass_kind)
            if result is EnsureOutcome.REJECTED and element.element_id in context.superseded:
                # claimed without a write, so it must surface as unresolved
                context.release(element.element_id)

    def find_override_bound(
        self,
        context: RunContext,
        elements: list[ModelElement],
    ) -> set[Any]:
        """Get IDs of elements whose final bucket the override pass decides.

        Empty when the override bucket does not exist, since then the
        override pass only records the missing bucket.
        """
        if not self.override_phase or not self.override_bucket:
            return set()
        if self.override_bucket not in context.registry:
            return set()
        return {e.element_id for e in elements if self.is_override_phase(e)}

    def unavailable_evidence(self) -> dict[str, int]:
        """Get unreadable-facet counts, with connector graph failures as "connectors"."""
        counts = dict(self.extractor.unavailable_counts)
        if self.resolver.failures:
            counts["connectors"] = self.resolver.failures
        return counts

    def collect_unresolved(
        self,
        context: RunContext,
        elements: list[ModelElement],
    ) -> list[ModelElement]:
        """Get the eligible elements no pass claimed."""
        return [e for e in elements if not context.is_claimed(e.element_id)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def ensure_bucket(
        self,
        context: RunContext,
        element: ModelElement,
        bucket: Bucket,
        pass_kind: PassKind,
    ) -> EnsureOutcome:
        """Make sure an element sits in a bucket.

        Already there: claimed, nothing written. Otherwise the bucket is
        written; on success the element is claimed and the move counted, on
        rejection the element stays unclaimed.

        Elements the override pass will move are only claimed by ordinary
        passes (the decided bucket is kept for connectivity), so a re-run
        does not move them twice.
        """
        outcome = context.outcome(pass_kind)
        if pass_kind.is_ordinary and element.element_id in context.override_bound:
            context.claim(element.element_id)
            context.superseded[element.element_id] = bucket
            outcome.superseded += 1
            return EnsureOutcome.SUPERSEDED

        current_id, ok = self.extractor.current_bucket_id(element)

        if ok and current_id == bucket.bucket_id:
            context.claim(element.element_id)
            outcome.unchanged += 1
            return EnsureOutcome.UNCHANGED

        try:
            written = element.write_bucket(bucket)
        except WriteRejectedError as e:
            logger.debug(f"Write rejected for {element.element_id}: {e}")
            written = False

        if not written:
            outcome.rejected += 1
            return EnsureOutcome.REJECTED

        context.claim(element.element_id)
        context.record_move(element.element_id, bucket.name, pass_kind, current_id)
        outcome.moved += 1
        log_assignment(pass_kind.value, str(element.element_id), bucket.name)
        return EnsureOutcome.MOVED

    def match_tokens(self, evidence: Evidence) -> str | None:
        """Find the bucket named by the first matching token rule."""
        return self.rules.match_tokens(evidence.category, evidence.name_fields)

    def is_override_phase(self, element: ModelElement) -> bool:
        if not self.override_phase:
            return False
        phase, ok = read_facet(element.read_phase)
        if not ok or not phase:
            return False
        return phase.strip().lower() == self.override_phase.strip().lower()

    def _assign_by_name(
        self,
        context: RunContext,
        element: ModelElement,
        bucket_name: str | None,
        pass_kind: PassKind,
    ) -> EnsureOutcome | None:
        """Resolve a bucket by name and ensure the element sits in it.

        Returns:
            The ensure outcome, or None if there was nothing to assign or
            the bucket is missing (element claimed and recorded).
        """
        if not bucket_name:
            return None

        bucket, found = context.registry.resolve(bucket_name)
        if not found:
            context.claim(element.element_id)
            context.record_missing(bucket_name, pass_kind)
            return None

        return self.ensure_bucket(context, element, bucket, pass_kind)

    def _live_bucket(self, context: RunContext, carrier: ModelElement) -> Bucket | None:
        if carrier.element_id in context.superseded:
            return context.superseded[carrier.element_id]
        bucket_id, ok = self.extractor.current_bucket_id(carrier)
        if not ok:
            return None
        return context.registry.get_by_id(bucket_id)

    @staticmethod
    def _open_scope(host: HostModel, label: str, dry_run: bool) -> AbstractContextManager[Any]:
        if dry_run:
            return host.rollback_scope(label)
        return host.transaction(label)


def create_default_engine(
    rule_tables: RuleTables | None = None,
    override_phase: str | None = DEFAULT_OVERRIDE_PHASE,
    override_bucket: str | None = DEFAULT_OVERRIDE_BUCKET,
) -> ClassificationEngine:
    """Create a classification engine with the production rule tables.

    Args:
        rule_tables: Optional replacement tables.
        override_phase: Phase sentinel for the override pass.
        override_bucket: Target bucket of the override pass.

    Returns:
        Configured ClassificationEngine.
    """
    return ClassificationEngine(
        rule_tables=rule_tables or default_rule_tables(),
        override_phase=override_phase,
        override_bucket=override_bucket,
    )

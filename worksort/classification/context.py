"""Run context - per-run state threaded through every pass.

Created fresh at the start of a run and discarded at its end. Only the
bucket writes on elements outlive it.
"""

from dataclasses import dataclass, field
from typing import Any

from worksort.classification.registry import BucketRegistry
from worksort.core.models import (
    Assignment,
    Bucket,
    ClassificationResult,
    PassKind,
    PassOutcome,
)


@dataclass
class RunContext:
    """Mutable state of one engine run.

    Attributes:
        registry: Bucket registry built from the live bucket universe
        claimed: IDs of elements decided by some pass
        assignment_counts: Bucket name -> counted moves
        assignments: Every counted move, in order
        pass_outcomes: Per-pass statistics
        override_bound: IDs of elements the override pass will move
        superseded: Bucket decided by an ordinary pass for override-bound elements
    """

    registry: BucketRegistry
    claimed: set[Any] = field(default_factory=set)
    override_bound: set[Any] = field(default_factory=set)
    superseded: dict[Any, Bucket] = field(default_factory=dict)
    assignment_counts: dict[str, int] = field(default_factory=dict)
    assignments: list[Assignment] = field(default_factory=list)
    pass_outcomes: dict[PassKind, PassOutcome] = field(default_factory=dict)

    def claim(self, element_id: Any) -> None:
        self.claimed.add(element_id)

    def release(self, element_id: Any) -> None:
        """Return an element to the unclaimed pool."""
        self.claimed.discard(element_id)
        self.superseded.pop(element_id, None)

    def is_claimed(self, element_id: Any) -> bool:
        return element_id in self.claimed

    def outcome(self, pass_kind: PassKind) -> PassOutcome:
        """Get (or create) the statistics record for a pass."""
        if pass_kind not in self.pass_outcomes:
            self.pass_outcomes[pass_kind] = PassOutcome(pass_kind=pass_kind)
        return self.pass_outcomes[pass_kind]

    def record_move(
        self,
        element_id: Any,
        bucket_name: str,
        pass_kind: PassKind,
        previous_bucket_id: Any = None,
    ) -> None:
        """Count a move into a bucket."""
        self.assignment_counts[bucket_name] = self.assignment_counts.get(bucket_name, 0) + 1
        self.assignments.append(
            Assignment(
                element_id=element_id,
                bucket_name=bucket_name,
                pass_kind=pass_kind,
                previous_bucket_id=previous_bucket_id,
            )
        )

    def record_missing(self, bucket_name: str, pass_kind: PassKind, count: int = 1) -> None:
        """Count elements that could not move because their bucket is missing."""
        self.registry.record_missing(bucket_name, count)
        self.outcome(pass_kind).missing += count

    def to_result(self, unavailable_evidence: dict[str, int] | None = None) -> ClassificationResult:
        """Freeze the context into a ClassificationResult."""
        return ClassificationResult(
            assignment_counts=dict(self.assignment_counts),
            missing_buckets=self.registry.missing,
            assignments=list(self.assignments),
            pass_outcomes=dict(self.pass_outcomes),
            unavailable_evidence=dict(unavailable_evidence or {}),
        )

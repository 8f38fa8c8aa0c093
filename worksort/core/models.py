"""Core data models for Worksort.

This module defines the enums and data classes shared by the
classification engine, the host adapters and the user interface.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any
from uuid import uuid4


class PassKind(Enum):
    """Rule passes of the classification pipeline, in precedence order.

    Passes:
        SECONDARY_CLASSIFICATION: Domain system classification (e.g. piping system type)
        CONNECTIVITY: Inherit the bucket of a directly connected carrier element
        CATEGORY: Category -> bucket table
        TOKEN: Name token heuristics
        OVERRIDE: Phase override, may re-claim elements
        REMAINDER: Operator disposition for the unresolved pool
    """

    SECONDARY_CLASSIFICATION = "secondary_classification"
    CONNECTIVITY = "connectivity"
    CATEGORY = "category"
    TOKEN = "token"
    OVERRIDE = "override"
    REMAINDER = "remainder"

    @property
    def is_ordinary(self) -> bool:
        """Ordinary passes respect the claim set."""
        return self in (
            PassKind.SECONDARY_CLASSIFICATION,
            PassKind.CONNECTIVITY,
            PassKind.CATEGORY,
            PassKind.TOKEN,
        )


class EnsureOutcome(Enum):
    """Outcome of ensuring an element sits in a target bucket."""

    UNCHANGED = auto()  # Already in the bucket, claimed
    MOVED = auto()  # Written, claimed and counted
    REJECTED = auto()  # Host refused the write, left unclaimed
    SUPERSEDED = auto()  # Claimed, the override pass writes the final bucket


class DispositionKind(Enum):
    """Operator choices for the unresolved pool."""

    ASSIGN_ALL = "assign_all"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Bucket:
    """A named target classification living in the host model (a workset)."""

    bucket_id: Any
    name: str


@dataclass(frozen=True)
class SystemClassification:
    """Secondary classification for connectivity-rich domains.

    Attributes:
        kind: Host classification enum text (e.g. "FireProtectionWet")
        label: Name of the system type (e.g. "Sprinkler Main")
    """

    kind: str = ""
    label: str = ""


@dataclass
class Evidence:
    """Normalized evidence read from one element.

    Attributes:
        element_id: Identifier of the element the evidence came from
        category: Coarse category tag (e.g. "OST_PipeFitting")
        category_label: Human-readable category name
        family_name: Family-level name
        type_name: Type-level name
        instance_name: Instance-level name
        secondary_classification: Domain system classification, if any
        phase: Lifecycle phase name, if any
        unavailable: Facets that could not be read
    """

    element_id: Any
    category: str = ""
    category_label: str = ""
    family_name: str = ""
    type_name: str = ""
    instance_name: str = ""
    secondary_classification: SystemClassification | None = None
    phase: str | None = None
    unavailable: list[str] = field(default_factory=list)

    @property
    def name_fields(self) -> list[str]:
        """Fields scanned by the token pass, in scan order."""
        return [self.family_name, self.type_name, self.instance_name, self.category_label]

    @property
    def display_label(self) -> str:
        """Best single label for showing the element to an operator."""
        for value in (self.family_name, self.type_name, self.instance_name):
            if value and value.strip():
                return value
        return ""


@dataclass
class Disposition:
    """Operator decision for the unresolved pool."""

    kind: DispositionKind
    bucket_name: str | None = None

    @classmethod
    def assign_all(cls, bucket_name: str) -> "Disposition":
        return cls(kind=DispositionKind.ASSIGN_ALL, bucket_name=bucket_name)

    @classmethod
    def ignore(cls) -> "Disposition":
        return cls(kind=DispositionKind.IGNORE)

    @property
    def is_ignore(self) -> bool:
        return self.kind == DispositionKind.IGNORE or not self.bucket_name


@dataclass
class Assignment:
    """A counted bucket move performed by one pass.

    Attributes:
        element_id: ID of the moved element
        bucket_name: Name of the bucket the element was moved to
        pass_kind: Pass that performed the move
        previous_bucket_id: Bucket ID before the move
    """

    element_id: Any
    bucket_name: str
    pass_kind: PassKind
    previous_bucket_id: Any = None


@dataclass
class PassOutcome:
    """Statistics for a single pass."""

    pass_kind: PassKind
    examined: int = 0
    moved: int = 0
    unchanged: int = 0
    rejected: int = 0
    superseded: int = 0
    missing: int = 0


@dataclass
class ClassificationResult:
    """Aggregated outcome of one or more engine phases.

    Attributes:
        assignment_counts: Bucket name -> number of elements moved into it
        missing_buckets: Requested bucket name -> elements that would have moved
        assignments: Every counted move, in execution order
        pass_outcomes: Per-pass statistics
        unavailable_evidence: Facet name -> number of elements it could not be read for
        run_id: Unique identifier for the run
        started_at: When the run started
    """

    assignment_counts: dict[str, int] = field(default_factory=dict)
    missing_buckets: dict[str, int] = field(default_factory=dict)
    assignments: list[Assignment] = field(default_factory=list)
    pass_outcomes: dict[PassKind, PassOutcome] = field(default_factory=dict)
    unavailable_evidence: dict[str, int] = field(default_factory=dict)
    run_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def total_moved(self) -> int:
        """Total number of counted moves."""
        return sum(self.assignment_counts.values())

    def moves_for(self, element_id: Any) -> list[Assignment]:
        """Get all moves recorded for an element."""
        return [a for a in self.assignments if a.element_id == element_id]

    def merge(self, other: "ClassificationResult") -> "ClassificationResult":
        """Fold another result into this one and return self."""
        for name, count in other.assignment_counts.items():
            self.assignment_counts[name] = self.assignment_counts.get(name, 0) + count
        for name, count in other.missing_buckets.items():
            self.missing_buckets[name] = self.missing_buckets.get(name, 0) + count
        for facet, count in other.unavailable_evidence.items():
            self.unavailable_evidence[facet] = self.unavailable_evidence.get(facet, 0) + count
        self.assignments.extend(other.assignments)
        self.pass_outcomes.update(other.pass_outcomes)
        return self

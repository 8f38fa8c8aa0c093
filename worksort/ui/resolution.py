"""Resolution adapters - operator decisions for the unresolved pool.

An adapter is shown the elements no pass could classify and answers with
a Disposition: assign them all to one bucket, or ignore them. The call is
synchronous; cancelling is the same as ignoring.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from worksort.classification.evidence import EvidenceExtractor
from worksort.core.config import Config
from worksort.core.models import Disposition, Evidence
from worksort.core.reporting import unresolved_labels
from worksort.host.base import ModelElement

logger = logging.getLogger("worksort.ui.resolution")


@dataclass
class UnresolvedPool:
    """The unresolved remainder, as presented to an operator.

    Attributes:
        elements: Unresolved element handles
        evidence: Evidence read from each element, same order
        bucket_names: Live bucket names the operator may choose from
    """

    elements: list[ModelElement] = field(default_factory=list)
    evidence: list[Evidence] = field(default_factory=list)
    bucket_names: list[str] = field(default_factory=list)

    @classmethod
    def from_elements(
        cls,
        elements: list[ModelElement],
        bucket_names: list[str],
        extractor: EvidenceExtractor | None = None,
    ) -> "UnresolvedPool":
        extractor = extractor or EvidenceExtractor()
        return cls(
            elements=list(elements),
            evidence=[extractor.extract(e) for e in elements],
            bucket_names=list(bucket_names),
        )

    @property
    def count(self) -> int:
        return len(self.elements)

    def labels(self, limit: int | None = 25) -> tuple[list[str], int]:
        """Get distinct family/type labels, capped at limit."""
        return unresolved_labels(self.evidence, limit)


class ResolutionAdapter(ABC):
    """Abstract base class for unresolved-pool resolution.

    Example:
        class DialogAdapter(ResolutionAdapter):
            def present_unresolved(self, pool):
                choice = show_dialog(pool.labels())
                return Disposition.assign_all(choice) if choice else Disposition.ignore()
    """

    @abstractmethod
    def present_unresolved(self, pool: UnresolvedPool) -> Disposition:
        """Present the pool and return the operator's decision."""
        pass


class IgnoreResolutionAdapter(ResolutionAdapter):
    """Always leaves the unresolved pool as it is."""

    def present_unresolved(self, pool: UnresolvedPool) -> Disposition:
        return Disposition.ignore()


class FixedBucketResolutionAdapter(ResolutionAdapter):
    """Assigns the whole pool to a preset bucket (batch mode)."""

    def __init__(self, bucket_name: str) -> None:
        self.bucket_name = bucket_name

    def present_unresolved(self, pool: UnresolvedPool) -> Disposition:
        if not pool.count:
            return Disposition.ignore()
        known = {name.lower() for name in pool.bucket_names}
        if pool.bucket_names and self.bucket_name.lower() not in known:
            logger.warning(f"Preset bucket not found in model: {self.bucket_name}")
        return Disposition.assign_all(self.bucket_name)


class PromptResolutionAdapter(ResolutionAdapter):
    """Text prompt resolution for the command line.

    Shows the pool size and a sample of distinct labels, then asks whether
    to assign everything to a bucket. End of input or an invalid answer is
    treated as "ignore".
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        label_limit: int = 25,
    ) -> None:
        self._input = input_func
        self._output = output_func
        self.label_limit = label_limit

    def present_unresolved(self, pool: UnresolvedPool) -> Disposition:
        if not pool.count:
            return Disposition.ignore()

        labels, total = pool.labels(self.label_limit)
        self._output(f"\nSkipped (unmapped/unchanged): {pool.count}")
        self._output(f"Distinct family/type names: {total}")
        for label in labels:
            self._output(f"  {label}")
        if total > len(labels):
            self._output("  ...")

        self._output("\n  1. Assign all skipped to a bucket...")
        self._output("  2. Ignore skipped items")
        choice = self._ask("Select option [2]: ")
        if choice != "1":
            return Disposition.ignore()

        if not pool.bucket_names:
            self._output("No buckets available.")
            return Disposition.ignore()

        self._output("")
        for i, name in enumerate(pool.bucket_names, 1):
            self._output(f"  {i:>3}. {name}")
        answer = self._ask("Bucket number or name: ")
        bucket_name = self._pick_bucket(answer, pool.bucket_names)
        if bucket_name is None:
            self._output("Invalid selection, skipped items ignored.")
            return Disposition.ignore()

        return Disposition.assign_all(bucket_name)

    def _ask(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            return ""

    @staticmethod
    def _pick_bucket(answer: str, bucket_names: list[str]) -> str | None:
        if not answer:
            return None
        if answer.isdigit():
            index = int(answer) - 1
            if 0 <= index < len(bucket_names):
                return bucket_names[index]
            return None
        for name in bucket_names:
            if name.lower() == answer.lower():
                return name
        return None


def adapter_from_config(config: Config) -> ResolutionAdapter:
    """Create the resolution adapter selected by config.resolution."""
    resolution = config.resolution
    if resolution.default_disposition == "ignore":
        return IgnoreResolutionAdapter()
    if resolution.default_disposition == "assign" and resolution.default_bucket:
        return FixedBucketResolutionAdapter(resolution.default_bucket)
    return PromptResolutionAdapter(label_limit=resolution.label_limit)

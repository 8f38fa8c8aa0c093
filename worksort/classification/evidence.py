"""Evidence Extractor - reads normalized evidence from element handles.

Every facet is read through a (value, ok) helper: a facet the host cannot
provide becomes an empty value and is listed on the evidence instead of
failing the element. Only HostError is treated as "no evidence"; anything
else is a programming error and propagates.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from worksort.core.models import Evidence, SystemClassification
from worksort.host.base import HostError, ModelElement

logger = logging.getLogger("worksort.classification.evidence")

T = TypeVar("T")

FACET_FAMILY = "family_name"
FACET_TYPE = "type_name"
FACET_INSTANCE = "instance_name"
FACET_CATEGORY_LABEL = "category_label"
FACET_CLASSIFICATION = "secondary_classification"
FACET_PHASE = "phase"
FACET_BUCKET = "current_bucket"


def read_facet(reader: Callable[[], T]) -> tuple[T | None, bool]:
    """Call a facet reader.

    Returns:
        (value, True) on success, (None, False) if the host could not
        provide the facet.
    """
    try:
        return reader(), True
    except HostError:
        return None, False


class EvidenceExtractor:
    """Extracts Evidence from ModelElement handles.

    Keeps per-facet counts of unavailable evidence so that a run can report
    aggregates instead of logging every element.

    Example:
        extractor = EvidenceExtractor()
        evidence = extractor.extract(element)
        print(evidence.family_name, evidence.unavailable)
    """

    def __init__(self) -> None:
        self.unavailable_counts: dict[str, int] = {}

    def extract(self, element: ModelElement) -> Evidence:
        """Read all facets of an element.

        Args:
            element: Element handle.

        Returns:
            Evidence with empty values for unreadable facets.
        """
        unavailable: list[str] = []

        def text(facet: str, reader: Callable[[], str | None]) -> str:
            value, ok = read_facet(reader)
            if not ok:
                self._note(facet, unavailable)
                return ""
            return value or ""

        classification, ok = read_facet(element.read_secondary_classification)
        if not ok:
            self._note(FACET_CLASSIFICATION, unavailable)
            classification = None

        phase, ok = read_facet(element.read_phase)
        if not ok:
            self._note(FACET_PHASE, unavailable)
            phase = None

        category = element.category or ""
        category_label = text(FACET_CATEGORY_LABEL, element.read_category_label) or category

        return Evidence(
            element_id=element.element_id,
            category=category,
            category_label=category_label,
            family_name=text(FACET_FAMILY, element.read_family_name),
            type_name=text(FACET_TYPE, element.read_type_name),
            instance_name=text(FACET_INSTANCE, element.read_instance_name),
            secondary_classification=self._normalize_classification(classification),
            phase=phase or None,
            unavailable=unavailable,
        )

    def current_bucket_id(self, element: ModelElement) -> tuple[Any, bool]:
        """Read the element's current bucket ID.

        Returns:
            (bucket_id, ok) pair.
        """
        value, ok = read_facet(element.read_current_bucket_id)
        if not ok:
            self.unavailable_counts[FACET_BUCKET] = self.unavailable_counts.get(FACET_BUCKET, 0) + 1
        return value, ok

    def reset(self) -> None:
        self.unavailable_counts.clear()

    def _note(self, facet: str, unavailable: list[str]) -> None:
        unavailable.append(facet)
        self.unavailable_counts[facet] = self.unavailable_counts.get(facet, 0) + 1

    @staticmethod
    def _normalize_classification(value: Any) -> SystemClassification | None:
        if value is None:
            return None
        if isinstance(value, SystemClassification):
            if not value.kind and not value.label:
                return None
            return value
        # Hosts may hand back a bare classification string
        text = str(value)
        return SystemClassification(kind=text) if text else None

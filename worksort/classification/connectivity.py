"""Connectivity Resolver - finds directly connected carrier elements.

Used to let fittings and accessories inherit the bucket of the run
element (pipe) they are connected to. Only one hop is followed.
"""

import logging
from collections.abc import Iterable

from worksort.host.base import HostError, ModelElement

logger = logging.getLogger("worksort.classification.connectivity")


class ConnectivityResolver:
    """Resolves one-hop carrier neighbours through the host connector graph.

    When several carriers are connected, enumeration order is preserved and
    callers take the first one. Directly connected carriers of one element
    share a bucket in practice, so no further tie-break is applied.
    """

    def __init__(self) -> None:
        self.failures = 0

    def reset(self) -> None:
        self.failures = 0

    def find_carriers(
        self,
        element: ModelElement,
        carrier_categories: Iterable[str],
    ) -> list[ModelElement]:
        """Find carriers directly connected to an element.

        Args:
            element: Element whose connectors are walked.
            carrier_categories: Categories that count as carriers.

        Returns:
            Connected carriers, de-duplicated, in enumeration order. Empty if
            the element has no connector capability or the graph cannot be read.
        """
        categories = set(carrier_categories)
        if not categories or not element.has_connectors():
            return []

        try:
            neighbours = element.connected_elements()
        except HostError as e:
            self.failures += 1
            logger.debug(f"Connector graph unavailable for {element.element_id}: {e}")
            return []

        carriers: list[ModelElement] = []
        seen = set()
        for other in neighbours:
            if other is None or other.element_id == element.element_id:
                continue
            if other.element_id in seen:
                continue
            if other.category in categories:
                seen.add(other.element_id)
                carriers.append(other)

        return carriers

    def first_carrier(
        self,
        element: ModelElement,
        carrier_categories: Iterable[str],
    ) -> ModelElement | None:
        """Get the first connected carrier, or None."""
        carriers = self.find_carriers(element, carrier_categories)
        return carriers[0] if carriers else None

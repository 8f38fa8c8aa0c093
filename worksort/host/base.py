"""Base interface for host model adapters.

The classification engine never talks to a concrete host model. It only
depends on the capability interfaces below, implemented by an adapter over
the real host (or by the in-memory model used for tests and snapshots).
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from worksort.core.models import Bucket, SystemClassification


class HostError(Exception):
    """Base class for failures reported by the host model."""


class FacetUnavailableError(HostError):
    """A facet could not be read from an element."""


class WriteRejectedError(HostError):
    """The host refused to change an element's bucket."""


class TransactionAbortedError(HostError):
    """The atomic mutation scope aborted; no changes persisted."""


class BucketingUnavailableError(HostError):
    """The host model does not support buckets (e.g. not workshared)."""


class PreviewUnavailableError(HostError):
    """The host model cannot run a scope that is always rolled back."""


class ModelElement(ABC):
    """Abstract element handle exposed by a host model.

    Facet readers are called on demand and may raise HostError when the
    facet is not available for the element. Implementations must not cache
    facets across writes.

    Subclasses must implement:
        - element_id / category properties
        - the read_* facet readers
        - write_bucket()
    """

    @property
    @abstractmethod
    def element_id(self) -> Any:
        """Stable unique identifier."""
        pass

    @property
    @abstractmethod
    def category(self) -> str:
        """Coarse static category tag."""
        pass

    @abstractmethod
    def read_family_name(self) -> str:
        pass

    @abstractmethod
    def read_type_name(self) -> str:
        pass

    @abstractmethod
    def read_instance_name(self) -> str:
        pass

    def read_category_label(self) -> str:
        """Return the display name of the element's category.

        Default implementation returns the category tag.
        """
        return self.category

    @abstractmethod
    def read_secondary_classification(self) -> "SystemClassification | None":
        """Return the domain system classification, or None if the element has none."""
        pass

    @abstractmethod
    def read_phase(self) -> str | None:
        """Return the name of the phase the element was created in."""
        pass

    @abstractmethod
    def read_current_bucket_id(self) -> Any:
        """Return the ID of the bucket the element currently sits in."""
        pass

    @abstractmethod
    def write_bucket(self, bucket: "Bucket") -> bool:
        """Move the element to a bucket.

        Returns:
            True if the write succeeded, False if the field is read-only.

        Raises:
            WriteRejectedError: If the host refused the change.
        """
        pass

    def has_connectors(self) -> bool:
        """Check if the element participates in the connectivity graph.

        Default implementation returns False.
        """
        return False

    def connected_elements(self) -> list["ModelElement"]:
        """Return elements directly linked through the element's connectors.

        Raises:
            HostError: If the connector graph cannot be read.
        """
        return []


class HostModel(ABC):
    """Abstract host model: the element store and bucket universe.

    Example:
        class RevitHost(HostModel):
            def get_eligible_elements(self):
                return [RevitElement(e) for e in collector]

            def get_buckets(self):
                return [Bucket(ws.Id, ws.Name) for ws in user_worksets]

            def transaction(self, label):
                return RevitTransaction(self.doc, label)
    """

    @property
    def name(self) -> str:
        """Human-readable model name."""
        return self.__class__.__name__

    @abstractmethod
    def get_eligible_elements(self) -> list[ModelElement]:
        """Return placed, writable elements.

        Only elements that are concretely instantiated (not types) and whose
        bucket field is writable may be returned.
        """
        pass

    @abstractmethod
    def get_buckets(self) -> list["Bucket"]:
        """Return the live bucket universe."""
        pass

    @abstractmethod
    def transaction(self, label: str) -> AbstractContextManager[Any]:
        """Open the atomic mutation scope.

        Changes made inside the scope persist only if it exits normally.

        Raises:
            TransactionAbortedError: If the scope could not be committed.
        """
        pass

    def rollback_scope(self, label: str) -> AbstractContextManager[Any]:
        """Open a mutation scope whose changes are always discarded.

        Used for dry runs.

        Raises:
            PreviewUnavailableError: If the host has no preview support.
        """
        raise PreviewUnavailableError(f"{self.name} does not support dry runs")

    def supports_buckets(self) -> bool:
        """Check if the model can hold buckets at all.

        Default implementation returns True.
        """
        return True

"""In-memory host model.

A complete implementation of the host boundary backed by plain Python
objects. Used by the test suite and by the command line, which reads and
writes model snapshots as JSON.
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from worksort.core.models import Bucket, SystemClassification
from worksort.host.base import (
    FacetUnavailableError,
    HostModel,
    ModelElement,
    TransactionAbortedError,
    WriteRejectedError,
)

logger = logging.getLogger("worksort.host.memory")

# Facet names accepted in MemoryElement.unreadable
FACET_NAMES = (
    "family_name",
    "type_name",
    "instance_name",
    "category_label",
    "secondary_classification",
    "phase",
    "current_bucket",
    "connectors",
)


@dataclass(eq=False)
class MemoryElement(ModelElement):
    """Element held in memory.

    Attributes:
        element_id: Unique identifier
        category: Category tag (e.g. "OST_PipeCurves")
        family_name: Family-level name
        type_name: Type-level name
        instance_name: Instance-level name
        category_label: Display name of the category (defaults to the tag)
        classification: System classification for domain carriers
        phase: Phase the element was created in
        bucket_id: ID of the bucket the element sits in
        connections: IDs of directly connected elements, in connector order
        locked: Writes are rejected (e.g. element borrowed by another user)
        read_only: The bucket field is read-only, writes return False
        eligible: Returned by get_eligible_elements()
        unreadable: Facets whose readers raise FacetUnavailableError
    """

    element_id: Any = None
    category: str = ""
    family_name: str = ""
    type_name: str = ""
    instance_name: str = ""
    category_label: str = ""
    classification: SystemClassification | None = None
    phase: str | None = None
    bucket_id: Any = None
    connections: list[Any] = field(default_factory=list)
    locked: bool = False
    read_only: bool = False
    eligible: bool = True
    unreadable: set[str] = field(default_factory=set)
    model: "MemoryModel | None" = field(default=None, repr=False)

    def _check(self, facet: str) -> None:
        if facet in self.unreadable:
            raise FacetUnavailableError(f"{facet} unavailable for element {self.element_id}")

    def read_family_name(self) -> str:
        self._check("family_name")
        return self.family_name

    def read_type_name(self) -> str:
        self._check("type_name")
        return self.type_name

    def read_instance_name(self) -> str:
        self._check("instance_name")
        return self.instance_name

    def read_category_label(self) -> str:
        self._check("category_label")
        return self.category_label or self.category

    def read_secondary_classification(self) -> SystemClassification | None:
        self._check("secondary_classification")
        return self.classification

    def read_phase(self) -> str | None:
        self._check("phase")
        return self.phase

    def read_current_bucket_id(self) -> Any:
        self._check("current_bucket")
        return self.bucket_id

    def write_bucket(self, bucket: Bucket) -> bool:
        if self.locked:
            raise WriteRejectedError(f"Element {self.element_id} is locked")
        if self.read_only:
            return False
        if self.model is not None:
            self.model.check_writable(self, bucket)
        self.bucket_id = bucket.bucket_id
        return True

    def has_connectors(self) -> bool:
        return bool(self.connections) or "connectors" in self.unreadable

    def connected_elements(self) -> list[ModelElement]:
        self._check("connectors")
        if self.model is None:
            return []
        return [
            self.model.elements[other_id]
            for other_id in self.connections
            if other_id in self.model.elements
        ]


class MemoryModel(HostModel):
    """Host model held in memory.

    Transactions snapshot every element's bucket on entry and restore it if
    the scope raises or does not commit. Each scope is recorded in
    `transactions` as (label, status).

    Example:
        model = MemoryModel(name="Tower A")
        pipework = model.add_bucket("M1_Pipework")
        model.add_element(MemoryElement(element_id=1, category="OST_PipeCurves"))
        with model.transaction("Assign"):
            model.elements[1].write_bucket(pipework)
    """

    def __init__(
        self,
        elements: list[MemoryElement] | None = None,
        buckets: list[Bucket] | None = None,
        workshared: bool = True,
        name: str = "memory",
    ) -> None:
        self._name = name
        self.workshared = workshared
        self.buckets: list[Bucket] = list(buckets or [])
        self.elements: dict[Any, MemoryElement] = {}
        self.transactions: list[tuple[str, str]] = []
        self.commit = True
        self.fail_commit = False
        self._open_scope: str | None = None

        for element in elements or []:
            self.add_element(element)

    @property
    def name(self) -> str:
        return self._name

    @property
    def in_transaction(self) -> bool:
        return self._open_scope is not None

    def add_element(self, element: MemoryElement) -> MemoryElement:
        """Add an element and attach it to this model."""
        if element.element_id in self.elements:
            raise ValueError(f"Duplicate element ID: {element.element_id}")
        element.model = self
        self.elements[element.element_id] = element
        return element

    def add_bucket(self, name: str, bucket_id: Any = None) -> Bucket:
        """Create a bucket. IDs are numbered from 1 when not given."""
        if bucket_id is None:
            numeric = [b.bucket_id for b in self.buckets if isinstance(b.bucket_id, int)]
            bucket_id = max(numeric, default=0) + 1
        bucket = Bucket(bucket_id=bucket_id, name=name)
        self.buckets.append(bucket)
        return bucket

    def bucket_named(self, name: str) -> Bucket | None:
        for bucket in self.buckets:
            if bucket.name.lower() == name.lower():
                return bucket
        return None

    def bucket_name_of(self, element_id: Any) -> str | None:
        """Get the name of the bucket an element currently sits in."""
        element = self.elements[element_id]
        for bucket in self.buckets:
            if bucket.bucket_id == element.bucket_id:
                return bucket.name
        return None

    def check_writable(self, element: MemoryElement, bucket: Bucket) -> None:
        """Reject writes outside a transaction or to unknown buckets."""
        if not self.in_transaction:
            raise WriteRejectedError("Model modification outside of a transaction")
        if all(b.bucket_id != bucket.bucket_id for b in self.buckets):
            raise WriteRejectedError(f"Unknown bucket: {bucket.name}")

    def snapshot_buckets(self) -> dict[Any, Any]:
        return {eid: e.bucket_id for eid, e in self.elements.items()}

    def restore_buckets(self, snapshot: dict[Any, Any]) -> None:
        for eid, bucket_id in snapshot.items():
            if eid in self.elements:
                self.elements[eid].bucket_id = bucket_id

    # HostModel interface

    def get_eligible_elements(self) -> list[ModelElement]:
        return [e for e in self.elements.values() if e.eligible]

    def get_buckets(self) -> list[Bucket]:
        return list(self.buckets)

    def supports_buckets(self) -> bool:
        return self.workshared

    def transaction(self, label: str):
        return self._scope(label, commit=self.commit)

    def rollback_scope(self, label: str):
        return self._scope(label, commit=False)

    @contextmanager
    def _scope(self, label: str, commit: bool) -> Iterator["MemoryModel"]:
        if self._open_scope is not None:
            raise TransactionAbortedError(
                f"Cannot start '{label}': transaction '{self._open_scope}' is open"
            )

        snapshot = self.snapshot_buckets()
        self._open_scope = label
        try:
            yield self
        except Exception as e:
            self.restore_buckets(snapshot)
            self.transactions.append((label, "aborted"))
            logger.warning(f"Transaction '{label}' rolled back: {e}")
            raise
        finally:
            self._open_scope = None

        if not commit:
            self.restore_buckets(snapshot)
            self.transactions.append((label, "rolled_back"))
            return

        if self.fail_commit:
            self.restore_buckets(snapshot)
            self.transactions.append((label, "aborted"))
            raise TransactionAbortedError(f"Transaction '{label}' failed to commit")

        self.transactions.append((label, "committed"))

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert the model to a dictionary for JSON serialization."""
        return {
            "name": self.name,
            "workshared": self.workshared,
            "buckets": [{"id": b.bucket_id, "name": b.name} for b in self.buckets],
            "elements": [_element_to_dict(e) for e in self.elements.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryModel":
        """Create a model from a dictionary."""
        model = cls(
            buckets=[Bucket(bucket_id=b["id"], name=b["name"]) for b in data.get("buckets", [])],
            workshared=data.get("workshared", True),
            name=data.get("name", "memory"),
        )
        for item in data.get("elements", []):
            model.add_element(_element_from_dict(item))
        return model


def _element_to_dict(element: MemoryElement) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": element.element_id,
        "category": element.category,
        "family": element.family_name,
        "type": element.type_name,
        "instance": element.instance_name,
        "bucket": element.bucket_id,
    }
    if element.category_label:
        data["category_label"] = element.category_label
    if element.classification is not None:
        data["classification"] = {
            "kind": element.classification.kind,
            "label": element.classification.label,
        }
    if element.phase is not None:
        data["phase"] = element.phase
    if element.connections:
        data["connections"] = list(element.connections)
    if element.locked:
        data["locked"] = True
    if element.read_only:
        data["read_only"] = True
    if not element.eligible:
        data["eligible"] = False
    if element.unreadable:
        data["unreadable"] = sorted(element.unreadable)
    return data


def _element_from_dict(data: dict[str, Any]) -> MemoryElement:
    classification = data.get("classification")
    if isinstance(classification, str):
        classification = SystemClassification(kind=classification)
    elif classification is not None:
        classification = SystemClassification(
            kind=classification.get("kind", ""),
            label=classification.get("label", ""),
        )

    unreadable = set(data.get("unreadable", []))
    unknown = unreadable - set(FACET_NAMES)
    if unknown:
        raise ValueError(f"Unknown facet names: {', '.join(sorted(unknown))}")

    return MemoryElement(
        element_id=data["id"],
        category=data["category"],
        family_name=data.get("family", ""),
        type_name=data.get("type", ""),
        instance_name=data.get("instance", ""),
        category_label=data.get("category_label", ""),
        classification=classification,
        phase=data.get("phase"),
        bucket_id=data.get("bucket"),
        connections=list(data.get("connections", [])),
        locked=data.get("locked", False),
        read_only=data.get("read_only", False),
        eligible=data.get("eligible", True),
        unreadable=unreadable,
    )


def load_model_snapshot(file_path: Path) -> MemoryModel:
    """Load a model snapshot from a JSON file.

    Args:
        file_path: Path to the snapshot file.

    Returns:
        MemoryModel built from the snapshot.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON is invalid or malformed.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Model snapshot not found: {file_path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in model snapshot: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Model snapshot must contain a JSON object")

    try:
        model = MemoryModel.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed model snapshot: {e}") from e

    logger.info(
        f"Loaded model '{model.name}' from {file_path} "
        f"({len(model.elements)} elements, {len(model.buckets)} buckets)"
    )
    return model


def save_model_snapshot(model: MemoryModel, file_path: Path) -> None:
    """Write a model snapshot to a JSON file."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(model.to_dict(), indent=2), encoding="utf-8")
    logger.debug(f"Saved model snapshot to {file_path}")

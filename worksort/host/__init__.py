"""Host model boundary and the in-memory host."""

from .base import (
    BucketingUnavailableError,
    FacetUnavailableError,
    HostError,
    HostModel,
    ModelElement,
    PreviewUnavailableError,
    TransactionAbortedError,
    WriteRejectedError,
)
from .memory import MemoryElement, MemoryModel, load_model_snapshot, save_model_snapshot

__all__ = [
    "HostError",
    "FacetUnavailableError",
    "WriteRejectedError",
    "TransactionAbortedError",
    "BucketingUnavailableError",
    "PreviewUnavailableError",
    "ModelElement",
    "HostModel",
    "MemoryElement",
    "MemoryModel",
    "load_model_snapshot",
    "save_model_snapshot",
]

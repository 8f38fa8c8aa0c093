"""Bucket Registry - resolves bucket names against the live model.

Built once per run from the host's bucket universe. Lookups are
case-insensitive; requested names that do not exist are counted in the
missing-bucket ledger.
"""

import logging
from typing import Any

from worksort.core.models import Bucket

logger = logging.getLogger("worksort.classification.registry")


class BucketRegistry:
    """Case-insensitive index over the buckets of one model.

    Example:
        registry = BucketRegistry(host.get_buckets())
        bucket, found = registry.resolve("M1_Pipework")
        if not found:
            registry.record_missing("M1_Pipework")
    """

    def __init__(self, buckets: list[Bucket]) -> None:
        self._by_name: dict[str, Bucket] = {}
        self._by_id: dict[Any, Bucket] = {}
        self._missing: dict[str, int] = {}
        self._missing_keys: dict[str, str] = {}

        for bucket in buckets:
            key = bucket.name.lower()
            if key in self._by_name:
                logger.warning(f"Duplicate bucket name ignored: {bucket.name}")
                continue
            self._by_name[key] = bucket
            self._by_id[bucket.bucket_id] = bucket

    def resolve(self, name: str | None) -> tuple[Bucket | None, bool]:
        """Resolve a bucket by name.

        Args:
            name: Requested bucket name (any case).

        Returns:
            (bucket, True) if the bucket exists, (None, False) otherwise.
        """
        if not name:
            return None, False
        bucket = self._by_name.get(name.strip().lower())
        return bucket, bucket is not None

    def get_by_id(self, bucket_id: Any) -> Bucket | None:
        return self._by_id.get(bucket_id)

    def record_missing(self, name: str, count: int = 1) -> None:
        """Count elements that would have moved to a bucket that does not exist.

        Names differing only in case share one ledger entry, reported under
        the spelling first requested.
        """
        if not name or count <= 0:
            return
        key = name.lower()
        display = self._missing_keys.setdefault(key, name)
        self._missing[display] = self._missing.get(display, 0) + count

    @property
    def missing(self) -> dict[str, int]:
        """Missing-bucket ledger: requested name -> element count."""
        return dict(self._missing)

    def names(self) -> list[str]:
        """Get all bucket names, sorted case-insensitively."""
        return sorted((b.name for b in self._by_name.values()), key=str.lower)

    def __contains__(self, name: str) -> bool:
        return self.resolve(name)[1]

    def __len__(self) -> int:
        return len(self._by_name)

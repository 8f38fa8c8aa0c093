"""Reporting - plain-text summaries of a bucket-assignment run."""

from collections.abc import Iterable

from worksort.core.models import Evidence

NOTHING_MOVED = "No elements were reassigned."
MISSING_HEADER = "Missing target buckets (no changes applied):"


def _by_name(items: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(items.items(), key=lambda kv: (kv[0].lower(), kv[0]))


def summarize(assignment_counts: dict[str, int], missing_buckets: dict[str, int]) -> str:
    """Summarize a run as count-by-bucket lines.

    Args:
        assignment_counts: Bucket name -> moved elements.
        missing_buckets: Requested bucket name -> elements blocked.

    Returns:
        One "<count> elements -> <bucket>" line per bucket, sorted by bucket
        name, followed by the missing-bucket section when non-empty.
    """
    moved = [(name, count) for name, count in _by_name(assignment_counts) if count > 0]

    lines = [f"{count} elements -> {name}" for name, count in moved]
    if not lines:
        lines.append(NOTHING_MOVED)

    missing = [(name, count) for name, count in _by_name(missing_buckets) if count > 0]
    if missing:
        lines.append("")
        lines.append(MISSING_HEADER)
        lines.extend(f"  {name}: {count}" for name, count in missing)

    return "\n".join(lines)


def unresolved_labels(evidence: Iterable[Evidence], limit: int | None = 25) -> tuple[list[str], int]:
    """Collect the distinct labels of unresolved elements.

    Args:
        evidence: Evidence of the unresolved elements.
        limit: Maximum number of labels returned (None for all).

    Returns:
        (labels, total_distinct) with labels sorted case-insensitively.
    """
    seen: dict[str, str] = {}
    for item in evidence:
        label = item.display_label.strip()
        if label:
            seen.setdefault(label.lower(), label)

    labels = sorted(seen.values(), key=str.lower)
    total = len(labels)
    if limit is not None:
        labels = labels[:limit]
    return labels, total

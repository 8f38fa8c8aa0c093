"""Tests for the bucket registry and run context."""

from worksort.classification.context import RunContext
from worksort.classification.registry import BucketRegistry
from worksort.core.models import Bucket, PassKind


def _registry() -> BucketRegistry:
    return BucketRegistry(
        [Bucket(1, "Workset1"), Bucket(2, "M1_Pipework"), Bucket(3, "e1_smallpower")]
    )


class TestBucketRegistry:
    """Tests for BucketRegistry."""

    def test_resolve_ignores_case(self) -> None:
        """Test names resolve regardless of case."""
        registry = _registry()

        bucket, found = registry.resolve("m1_PIPEWORK")

        assert found
        assert bucket == Bucket(2, "M1_Pipework")

    def test_resolve_missing(self) -> None:
        """Test unknown or empty names are not found."""
        registry = _registry()

        assert registry.resolve("Nope") == (None, False)
        assert registry.resolve("") == (None, False)
        assert registry.resolve(None) == (None, False)

    def test_get_by_id(self) -> None:
        """Test buckets can be looked up by ID."""
        registry = _registry()

        assert registry.get_by_id(3).name == "e1_smallpower"
        assert registry.get_by_id(99) is None

    def test_duplicate_names_keep_first(self) -> None:
        """Test a second bucket with the same name is ignored."""
        registry = BucketRegistry([Bucket(1, "Shared"), Bucket(2, "SHARED")])

        assert len(registry) == 1
        assert registry.resolve("shared")[0].bucket_id == 1

    def test_names_sorted(self) -> None:
        """Test names are sorted case-insensitively."""
        assert _registry().names() == ["e1_smallpower", "M1_Pipework", "Workset1"]

    def test_contains(self) -> None:
        """Test membership uses name resolution."""
        registry = _registry()

        assert "workset1" in registry
        assert "Workset2" not in registry

    def test_record_missing_merges_case(self) -> None:
        """Test ledger entries differing in case are merged."""
        registry = _registry()

        registry.record_missing("S2_Existing")
        registry.record_missing("s2_existing", 2)
        registry.record_missing("Other", 0)

        assert registry.missing == {"S2_Existing": 3}

    def test_missing_is_a_copy(self) -> None:
        """Test the ledger cannot be modified through the property."""
        registry = _registry()
        registry.record_missing("A")

        registry.missing["A"] = 100

        assert registry.missing == {"A": 1}


class TestRunContext:
    """Tests for RunContext."""

    def test_claims(self) -> None:
        """Test elements can be claimed once decided."""
        context = RunContext(registry=_registry())

        context.claim(7)

        assert context.is_claimed(7)
        assert not context.is_claimed(8)

    def test_release_drops_claim_and_superseded_bucket(self) -> None:
        """Test a released element is unclaimed again."""
        context = RunContext(registry=_registry())
        context.claim(7)
        context.superseded[7] = Bucket(1, "Workset1")

        context.release(7)

        assert not context.is_claimed(7)
        assert 7 not in context.superseded

    def test_record_move_counts_per_bucket(self) -> None:
        """Test moves are counted per bucket and attributed."""
        context = RunContext(registry=_registry())

        context.record_move(1, "M1_Pipework", PassKind.CATEGORY, previous_bucket_id=1)
        context.record_move(2, "M1_Pipework", PassKind.TOKEN)

        assert context.assignment_counts == {"M1_Pipework": 2}
        assert [a.pass_kind for a in context.assignments] == [PassKind.CATEGORY, PassKind.TOKEN]

    def test_record_missing_updates_ledger_and_outcome(self) -> None:
        """Test missing buckets are counted in the ledger and the pass outcome."""
        context = RunContext(registry=_registry())

        context.record_missing("S2_Existing", PassKind.OVERRIDE, 3)

        assert context.registry.missing == {"S2_Existing": 3}
        assert context.outcome(PassKind.OVERRIDE).missing == 3

    def test_to_result(self) -> None:
        """Test the context is frozen into a result."""
        context = RunContext(registry=_registry())
        context.record_move(1, "Workset1", PassKind.REMAINDER)
        context.record_missing("Nope", PassKind.REMAINDER)

        result = context.to_result({"phase": 2})

        assert result.assignment_counts == {"Workset1": 1}
        assert result.missing_buckets == {"Nope": 1}
        assert result.unavailable_evidence == {"phase": 2}
        assert result.total_moved == 1

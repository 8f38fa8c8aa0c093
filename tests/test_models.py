"""Tests for core data models."""

from worksort.core.models import (
    Assignment,
    ClassificationResult,
    Disposition,
    DispositionKind,
    Evidence,
    PassKind,
    PassOutcome,
)


class TestPassKind:
    """Tests for PassKind enum."""

    def test_ordinary_passes(self):
        """Test only the four rule passes respect the claim set."""
        ordinary = [kind for kind in PassKind if kind.is_ordinary]

        assert ordinary == [
            PassKind.SECONDARY_CLASSIFICATION,
            PassKind.CONNECTIVITY,
            PassKind.CATEGORY,
            PassKind.TOKEN,
        ]

    def test_values(self):
        """Test enum values used in reports."""
        assert PassKind.OVERRIDE.value == "override"
        assert PassKind.REMAINDER.value == "remainder"


class TestDisposition:
    """Tests for Disposition."""

    def test_assign_all(self):
        """Test an assign-all disposition carries its bucket."""
        disposition = Disposition.assign_all("Workset1")

        assert disposition.kind == DispositionKind.ASSIGN_ALL
        assert disposition.bucket_name == "Workset1"
        assert not disposition.is_ignore

    def test_ignore(self):
        """Test the ignore disposition."""
        assert Disposition.ignore().is_ignore

    def test_assign_without_bucket_is_ignore(self):
        """Test assigning to an empty name is treated as ignore."""
        assert Disposition.assign_all("").is_ignore


class TestEvidence:
    """Tests for Evidence."""

    def test_name_fields_order(self):
        """Test token fields are scanned family, type, instance, category label."""
        evidence = Evidence(
            element_id=1,
            category_label="Pipes",
            family_name="F",
            type_name="T",
            instance_name="I",
        )

        assert evidence.name_fields == ["F", "T", "I", "Pipes"]

    def test_display_label_empty(self):
        """Test an element without names has an empty label."""
        assert Evidence(element_id=1, category_label="Pipes").display_label == ""


class TestClassificationResult:
    """Tests for ClassificationResult."""

    def test_total_moved(self):
        """Test the total sums all bucket counts."""
        result = ClassificationResult(assignment_counts={"A": 2, "B": 3})

        assert result.total_moved == 5

    def test_moves_for(self):
        """Test moves can be looked up per element."""
        result = ClassificationResult(
            assignments=[
                Assignment(1, "A", PassKind.CATEGORY),
                Assignment(2, "B", PassKind.TOKEN),
                Assignment(1, "S2_Existing", PassKind.OVERRIDE),
            ]
        )

        assert [a.bucket_name for a in result.moves_for(1)] == ["A", "S2_Existing"]

    def test_merge(self):
        """Test merging adds counts and keeps both pass outcomes."""
        first = ClassificationResult(
            assignment_counts={"A": 1},
            missing_buckets={"X": 1},
            pass_outcomes={PassKind.CATEGORY: PassOutcome(PassKind.CATEGORY, moved=1)},
        )
        second = ClassificationResult(
            assignment_counts={"A": 2, "B": 1},
            missing_buckets={"X": 2},
            pass_outcomes={PassKind.REMAINDER: PassOutcome(PassKind.REMAINDER, moved=3)},
            unavailable_evidence={"phase": 1},
        )

        merged = first.merge(second)

        assert merged is first
        assert merged.assignment_counts == {"A": 3, "B": 1}
        assert merged.missing_buckets == {"X": 3}
        assert set(merged.pass_outcomes) == {PassKind.CATEGORY, PassKind.REMAINDER}
        assert merged.unavailable_evidence == {"phase": 1}

    def test_unique_run_ids(self):
        """Test each result gets its own run ID."""
        assert ClassificationResult().run_id != ClassificationResult().run_id

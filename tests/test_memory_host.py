"""Tests for the in-memory host model."""

import json

import pytest

from worksort.core.models import Bucket, SystemClassification
from worksort.host.base import (
    FacetUnavailableError,
    TransactionAbortedError,
    WriteRejectedError,
)
from worksort.host.memory import (
    MemoryElement,
    MemoryModel,
    load_model_snapshot,
    save_model_snapshot,
)


class TestMemoryElement:
    """Tests for MemoryElement."""

    def test_readers(self, model, place):
        """Test facet readers return the stored values."""
        element = place(model, 1, "OST_PipeCurves", family_name="Pipe Types", phase="New")

        assert element.read_family_name() == "Pipe Types"
        assert element.read_phase() == "New"
        assert element.read_category_label() == "OST_PipeCurves"
        assert element.read_current_bucket_id() == 1

    def test_unreadable_facet_raises(self, model, place):
        """Test unreadable facets raise FacetUnavailableError."""
        element = place(model, 1, "OST_Walls", unreadable={"type_name"})

        with pytest.raises(FacetUnavailableError):
            element.read_type_name()

    def test_write_inside_transaction(self, model, place):
        """Test a write inside a transaction moves the element."""
        element = place(model, 1, "OST_Walls")
        target = model.bucket_named("S1_SuperStructure")

        with model.transaction("Assign"):
            assert element.write_bucket(target) is True

        assert model.bucket_name_of(1) == "S1_SuperStructure"

    def test_write_outside_transaction_rejected(self, model, place):
        """Test writes outside a transaction are rejected."""
        element = place(model, 1, "OST_Walls")

        with pytest.raises(WriteRejectedError, match="outside of a transaction"):
            element.write_bucket(model.bucket_named("S1_SuperStructure"))

    def test_write_unknown_bucket_rejected(self, model, place):
        """Test writes to a bucket the model does not hold are rejected."""
        element = place(model, 1, "OST_Walls")

        with model.transaction("Assign"):
            with pytest.raises(WriteRejectedError, match="Unknown bucket"):
                element.write_bucket(Bucket(999, "Ghost"))

    def test_locked_element(self, model, place):
        """Test locked elements raise WriteRejectedError."""
        element = place(model, 1, "OST_Walls", locked=True)

        with model.transaction("Assign"):
            with pytest.raises(WriteRejectedError):
                element.write_bucket(model.bucket_named("S1_SuperStructure"))

    def test_read_only_element(self, model, place):
        """Test read-only elements refuse the write without raising."""
        element = place(model, 1, "OST_Walls", read_only=True)

        with model.transaction("Assign"):
            assert element.write_bucket(model.bucket_named("S1_SuperStructure")) is False

        assert model.bucket_name_of(1) == "Workset1"

    def test_connected_elements(self, model, place):
        """Test connections resolve to elements of the same model."""
        pipe = place(model, 1, "OST_PipeCurves")
        fitting = place(model, 2, "OST_PipeFitting", connections=[1, 42])

        assert fitting.has_connectors()
        assert fitting.connected_elements() == [pipe]
        assert not pipe.has_connectors()


class TestMemoryModel:
    """Tests for MemoryModel."""

    def test_add_bucket_numbers_ids(self):
        """Test bucket IDs are numbered from 1."""
        model = MemoryModel()

        first = model.add_bucket("A")
        second = model.add_bucket("B")

        assert (first.bucket_id, second.bucket_id) == (1, 2)

    def test_duplicate_element_id(self, model, place):
        """Test element IDs must be unique."""
        place(model, 1, "OST_Walls")

        with pytest.raises(ValueError, match="Duplicate element ID"):
            place(model, 1, "OST_Floors")

    def test_bucket_named_ignores_case(self, model):
        """Test bucket lookup by name ignores case."""
        assert model.bucket_named("m1_pipework").name == "M1_Pipework"
        assert model.bucket_named("Nope") is None

    def test_eligible_elements(self, model, place):
        """Test ineligible elements are not returned."""
        place(model, 1, "OST_Walls")
        place(model, 2, "OST_Walls", eligible=False)

        assert [e.element_id for e in model.get_eligible_elements()] == [1]

    def test_supports_buckets(self, model_factory):
        """Test bucket support follows worksharing."""
        assert model_factory().supports_buckets()
        assert not model_factory(workshared=False).supports_buckets()


class TestTransactions:
    """Tests for MemoryModel transaction scopes."""

    def test_commit(self, model, place):
        """Test a normal exit commits."""
        element = place(model, 1, "OST_Walls")

        with model.transaction("Assign"):
            element.write_bucket(model.bucket_named("M1_Pipework"))

        assert model.bucket_name_of(1) == "M1_Pipework"
        assert model.transactions == [("Assign", "committed")]

    def test_exception_rolls_back_and_propagates(self, model, place):
        """Test an exception restores buckets and is re-raised."""
        element = place(model, 1, "OST_Walls")

        with pytest.raises(RuntimeError):
            with model.transaction("Assign"):
                element.write_bucket(model.bucket_named("M1_Pipework"))
                raise RuntimeError("boom")

        assert model.bucket_name_of(1) == "Workset1"
        assert model.transactions == [("Assign", "aborted")]
        assert not model.in_transaction

    def test_rollback_scope(self, model, place):
        """Test a rollback scope always discards changes."""
        element = place(model, 1, "OST_Walls")

        with model.rollback_scope("Preview"):
            element.write_bucket(model.bucket_named("M1_Pipework"))
            assert model.bucket_name_of(1) == "M1_Pipework"

        assert model.bucket_name_of(1) == "Workset1"
        assert model.transactions == [("Preview", "rolled_back")]

    def test_commit_disabled(self, model, place):
        """Test transactions roll back when commits are disabled."""
        element = place(model, 1, "OST_Walls")
        model.commit = False

        with model.transaction("Assign"):
            element.write_bucket(model.bucket_named("M1_Pipework"))

        assert model.bucket_name_of(1) == "Workset1"

    def test_fail_commit(self, model, place):
        """Test a failing commit restores buckets and raises."""
        element = place(model, 1, "OST_Walls")
        model.fail_commit = True

        with pytest.raises(TransactionAbortedError):
            with model.transaction("Assign"):
                element.write_bucket(model.bucket_named("M1_Pipework"))

        assert model.bucket_name_of(1) == "Workset1"
        assert model.transactions == [("Assign", "aborted")]

    def test_nested_scope(self, model):
        """Test scopes cannot be nested."""
        with model.transaction("Outer"):
            with pytest.raises(TransactionAbortedError, match="is open"):
                with model.transaction("Inner"):
                    pass


class TestSnapshots:
    """Tests for model snapshot IO."""

    def test_save_and_load(self, tmp_path, model, place):
        """Test a snapshot preserves elements and buckets."""
        place(
            model, 1, "OST_PipeCurves",
            family_name="Pipe Types",
            classification=SystemClassification("Sanitary", "SVP"),
            phase="Existing",
            connections=[2],
            unreadable={"instance_name"},
        )
        place(model, 2, "OST_PipeFitting", bucket="M1_Pipework", locked=True, eligible=False)
        path = tmp_path / "model.json"

        save_model_snapshot(model, path)
        loaded = load_model_snapshot(path)

        assert loaded.name == "test-model"
        assert [b.name for b in loaded.buckets] == [b.name for b in model.buckets]
        pipe = loaded.elements[1]
        assert pipe.classification == SystemClassification("Sanitary", "SVP")
        assert pipe.phase == "Existing"
        assert pipe.connections == [2]
        assert pipe.unreadable == {"instance_name"}
        assert pipe.model is loaded
        assert loaded.bucket_name_of(2) == "M1_Pipework"
        assert loaded.elements[2].locked
        assert not loaded.elements[2].eligible

    def test_string_classification(self):
        """Test a bare string classification is accepted."""
        model = MemoryModel.from_dict(
            {"elements": [{"id": 1, "category": "OST_PipeCurves", "classification": "Sanitary"}]}
        )

        assert model.elements[1].classification == SystemClassification(kind="Sanitary")

    def test_missing_file(self, tmp_path):
        """Test a missing snapshot raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_model_snapshot(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        """Test invalid JSON raises ValueError."""
        path = tmp_path / "model.json"
        path.write_text("{")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_model_snapshot(path)

    def test_not_an_object(self, tmp_path):
        """Test a JSON array is rejected."""
        path = tmp_path / "model.json"
        path.write_text("[]")

        with pytest.raises(ValueError, match="JSON object"):
            load_model_snapshot(path)

    def test_element_without_category(self, tmp_path):
        """Test elements need an ID and a category."""
        path = tmp_path / "model.json"
        path.write_text(json.dumps({"elements": [{"id": 1}]}))

        with pytest.raises(ValueError, match="Malformed"):
            load_model_snapshot(path)

    def test_unknown_facet(self):
        """Test unknown unreadable facet names are rejected."""
        with pytest.raises(ValueError, match="Unknown facet"):
            MemoryModel.from_dict(
                {"elements": [{"id": 1, "category": "X", "unreadable": ["colour"]}]}
            )


class TestMemoryElementDefaults:
    """Tests for MemoryElement without a model."""

    def test_detached_element_writes(self):
        """Test a detached element accepts writes without a transaction."""
        element = MemoryElement(element_id=1, category="OST_Walls")

        assert element.write_bucket(Bucket(5, "Anything")) is True
        assert element.bucket_id == 5
        assert element.connected_elements() == []

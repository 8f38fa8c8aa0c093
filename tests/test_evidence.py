"""Tests for evidence extraction and connectivity resolution."""

from unittest.mock import Mock

import pytest

from worksort.classification.connectivity import ConnectivityResolver
from worksort.classification.evidence import EvidenceExtractor, read_facet
from worksort.core.models import SystemClassification
from worksort.host.base import FacetUnavailableError, HostError


class TestReadFacet:
    """Tests for read_facet."""

    def test_success(self) -> None:
        """Test a successful read returns (value, True)."""
        assert read_facet(lambda: "Pipe") == ("Pipe", True)

    def test_host_error(self) -> None:
        """Test host errors become (None, False)."""
        reader = Mock(side_effect=FacetUnavailableError("gone"))

        assert read_facet(reader) == (None, False)

    def test_programming_errors_propagate(self) -> None:
        """Test non-host errors are not swallowed."""
        reader = Mock(side_effect=AttributeError("bug"))

        with pytest.raises(AttributeError):
            read_facet(reader)


class TestEvidenceExtractor:
    """Tests for EvidenceExtractor."""

    def test_extract_all_facets(self, model, place) -> None:
        """Test every facet is read verbatim."""
        element = place(
            model, 1, "OST_PipeCurves",
            family_name="Pipe Types",
            type_name="Copper ",
            instance_name="Mark 12",
            category_label="Pipes",
            classification=SystemClassification("DomesticColdWater", "CWS"),
            phase="New Construction",
        )

        evidence = EvidenceExtractor().extract(element)

        assert evidence.element_id == 1
        assert evidence.category == "OST_PipeCurves"
        assert evidence.category_label == "Pipes"
        assert evidence.type_name == "Copper "
        assert evidence.secondary_classification.kind == "DomesticColdWater"
        assert evidence.phase == "New Construction"
        assert evidence.unavailable == []
        assert evidence.name_fields == ["Pipe Types", "Copper ", "Mark 12", "Pipes"]

    def test_unreadable_facets_degrade(self, model, place) -> None:
        """Test unreadable facets become empty and are listed."""
        element = place(
            model, 1, "OST_Walls",
            family_name="Basic Wall",
            unreadable={"family_name", "phase", "category_label"},
        )
        extractor = EvidenceExtractor()

        evidence = extractor.extract(element)

        assert evidence.family_name == ""
        assert evidence.phase is None
        assert evidence.category_label == "OST_Walls"
        assert set(evidence.unavailable) == {"family_name", "phase", "category_label"}
        assert extractor.unavailable_counts == {"family_name": 1, "phase": 1, "category_label": 1}

    def test_counts_accumulate_until_reset(self, model, place) -> None:
        """Test counts are aggregated across elements."""
        extractor = EvidenceExtractor()
        for element_id in (1, 2):
            extractor.extract(place(model, element_id, "OST_Walls", unreadable={"type_name"}))

        assert extractor.unavailable_counts == {"type_name": 2}
        extractor.reset()
        assert extractor.unavailable_counts == {}

    def test_bare_string_classification(self) -> None:
        """Test a plain string classification is normalized."""
        element = Mock()
        element.element_id = 5
        element.category = "OST_PipeCurves"
        element.read_family_name.return_value = ""
        element.read_type_name.return_value = ""
        element.read_instance_name.return_value = ""
        element.read_category_label.return_value = "Pipes"
        element.read_secondary_classification.return_value = "Sanitary"
        element.read_phase.return_value = ""

        evidence = EvidenceExtractor().extract(element)

        assert evidence.secondary_classification == SystemClassification(kind="Sanitary")
        assert evidence.phase is None

    def test_empty_classification_is_none(self, model, place) -> None:
        """Test an empty classification carries no evidence."""
        element = place(model, 1, "OST_PipeCurves", classification=SystemClassification())

        assert EvidenceExtractor().extract(element).secondary_classification is None

    def test_display_label(self, model, place) -> None:
        """Test the display label is the first non-blank name."""
        element = place(model, 1, "OST_GenericModel", family_name=" ", type_name="Box 600")

        assert EvidenceExtractor().extract(element).display_label == "Box 600"

    def test_current_bucket_id(self, model, place) -> None:
        """Test the current bucket is read through the facet helper."""
        extractor = EvidenceExtractor()
        readable = place(model, 1, "OST_Walls")
        unreadable = place(model, 2, "OST_Walls", unreadable={"current_bucket"})

        assert extractor.current_bucket_id(readable) == (1, True)
        assert extractor.current_bucket_id(unreadable) == (None, False)
        assert extractor.unavailable_counts == {"current_bucket": 1}


class TestConnectivityResolver:
    """Tests for ConnectivityResolver."""

    def test_finds_carriers_in_order(self, model, place) -> None:
        """Test carriers keep connector order and skip other categories."""
        place(model, 1, "OST_PipeCurves")
        place(model, 2, "OST_PipeAccessory")
        place(model, 3, "OST_PipeCurves")
        fitting = place(model, 4, "OST_PipeFitting", connections=[3, 2, 1])

        carriers = ConnectivityResolver().find_carriers(fitting, {"OST_PipeCurves"})

        assert [c.element_id for c in carriers] == [3, 1]

    def test_deduplicates_and_skips_self(self, model, place) -> None:
        """Test repeated neighbours and self-links are dropped."""
        place(model, 1, "OST_PipeCurves")
        pipe = place(model, 2, "OST_PipeCurves", connections=[1, 2, 1])

        carriers = ConnectivityResolver().find_carriers(pipe, {"OST_PipeCurves"})

        assert [c.element_id for c in carriers] == [1]

    def test_no_connectors(self, model, place) -> None:
        """Test elements without connectors have no carriers."""
        element = place(model, 1, "OST_PipeFitting")

        assert ConnectivityResolver().first_carrier(element, {"OST_PipeCurves"}) is None

    def test_no_carrier_categories(self, model, place) -> None:
        """Test nothing is walked without carrier categories."""
        place(model, 1, "OST_PipeCurves")
        element = place(model, 2, "OST_PipeFitting", connections=[1])

        assert ConnectivityResolver().find_carriers(element, set()) == []

    def test_unreadable_connectors(self, model, place) -> None:
        """Test connector failures mean no carriers."""
        element = place(model, 1, "OST_PipeFitting", unreadable={"connectors"})
        resolver = ConnectivityResolver()

        assert resolver.find_carriers(element, {"OST_PipeCurves"}) == []
        assert resolver.failures == 1

        resolver.reset()
        assert resolver.failures == 0

    def test_host_error_from_custom_element(self) -> None:
        """Test any HostError from the connector graph is absorbed."""
        element = Mock()
        element.element_id = 1
        element.has_connectors.return_value = True
        element.connected_elements.side_effect = HostError("graph unavailable")

        assert ConnectivityResolver().first_carrier(element, {"OST_PipeCurves"}) is None

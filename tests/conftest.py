"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

BUCKET_NAMES = [
    "Workset1",
    "QA1_LevelsGrids",
    "S1_SuperStructure",
    "S2_Existing",
    "E1_SmallPower",
    "M1_Pipework",
    "M1_Ventilation",
    "P1_Drainage",
    "P1_WaterServices",
    "P1_Condensate",
    "F1_SprinklerPipework",
    "Z1_MEPEquipment",
]


@pytest.fixture
def bucket_names():
    """Names of the buckets in the standard test model."""
    return list(BUCKET_NAMES)


@pytest.fixture
def model_factory():
    """Create in-memory models with a given bucket universe."""
    from worksort.host.memory import MemoryModel

    def _make(names=None, workshared=True):
        model = MemoryModel(name="test-model", workshared=workshared)
        for name in BUCKET_NAMES if names is None else names:
            model.add_bucket(name)
        return model

    return _make


@pytest.fixture
def model(model_factory):
    """Create the standard test model (no elements yet)."""
    return model_factory()


@pytest.fixture
def place():
    """Add an element to a model, placed in a bucket given by name."""
    from worksort.host.memory import MemoryElement

    def _place(model, element_id, category, bucket="Workset1", **fields):
        target = model.bucket_named(bucket) if bucket else None
        element = MemoryElement(
            element_id=element_id,
            category=category,
            bucket_id=target.bucket_id if target else None,
            **fields,
        )
        return model.add_element(element)

    return _place


@pytest.fixture
def engine():
    """Create a classification engine with the built-in tables."""
    from worksort.classification.engine import ClassificationEngine
    from worksort.classification.rules import default_rule_tables

    return ClassificationEngine(default_rule_tables())


@pytest.fixture
def simple_tables():
    """Create small rule tables with one category and two token rules."""
    from worksort.classification.rules import RuleTables, TokenRule

    return RuleTables(
        category_to_bucket={"CategoryX": "BucketA"},
        token_rules=[
            TokenRule("BucketPower", ["Outlet_"]),
            TokenRule("BucketOther", ["Wall"]),
        ],
        version="test",
    )

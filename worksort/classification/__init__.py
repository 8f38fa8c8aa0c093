"""Classification engine for assigning elements to buckets."""

from .connectivity import ConnectivityResolver
from .context import RunContext
from .engine import ClassificationEngine, ClassificationRun, create_default_engine
from .evidence import EvidenceExtractor, read_facet
from .registry import BucketRegistry
from .rules import (
    ClassificationMapping,
    DomainSpec,
    KeywordRule,
    RuleTables,
    TokenRule,
    default_rule_tables,
    load_rule_tables,
    save_rule_tables,
)

__all__ = [
    # Engine
    "ClassificationEngine",
    "ClassificationRun",
    "create_default_engine",
    "RunContext",
    # Evidence and connectivity
    "EvidenceExtractor",
    "read_facet",
    "ConnectivityResolver",
    # Buckets
    "BucketRegistry",
    # Rules
    "TokenRule",
    "KeywordRule",
    "ClassificationMapping",
    "DomainSpec",
    "RuleTables",
    "default_rule_tables",
    "load_rule_tables",
    "save_rule_tables",
]

"""Worksort - rule-based bucket (workset) assignment for model elements."""

__version__ = "0.1.0"

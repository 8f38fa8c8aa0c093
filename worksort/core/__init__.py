"""Core module - orchestration, models, and infrastructure."""

from .config import Config, get_default_config, load_config, save_config
from .logging_config import get_logger, setup_logging
from .models import (
    Assignment,
    Bucket,
    ClassificationResult,
    Disposition,
    DispositionKind,
    EnsureOutcome,
    Evidence,
    PassKind,
    PassOutcome,
    SystemClassification,
)
from .orchestrator import AssignmentOrchestrator, AssignmentReport, build_engine
from .reporting import summarize, unresolved_labels

__all__ = [
    # Models
    "PassKind",
    "EnsureOutcome",
    "DispositionKind",
    "Bucket",
    "SystemClassification",
    "Evidence",
    "Disposition",
    "Assignment",
    "PassOutcome",
    "ClassificationResult",
    # Config
    "Config",
    "load_config",
    "save_config",
    "get_default_config",
    "setup_logging",
    "get_logger",
    # Orchestration
    "AssignmentOrchestrator",
    "AssignmentReport",
    "build_engine",
    # Reporting
    "summarize",
    "unresolved_labels",
]

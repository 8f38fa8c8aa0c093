"""User interface modules - resolution adapters, CLI and GUI.

This package contains the user interface components:
- resolution: Adapters deciding what happens to the unresolved pool
- cli: Command-line interface with formatters and commands
- gui: Resolution dialog using PySide6/Qt6
"""

from .cli import (
    JsonFormatter,
    OutputFormatter,
    TextFormatter,
    format_report,
    format_rule_tables,
)
from .resolution import (
    FixedBucketResolutionAdapter,
    IgnoreResolutionAdapter,
    PromptResolutionAdapter,
    ResolutionAdapter,
    UnresolvedPool,
    adapter_from_config,
)

__all__ = [
    # Resolution
    "ResolutionAdapter",
    "UnresolvedPool",
    "IgnoreResolutionAdapter",
    "FixedBucketResolutionAdapter",
    "PromptResolutionAdapter",
    "adapter_from_config",
    # CLI Formatters
    "OutputFormatter",
    "TextFormatter",
    "JsonFormatter",
    "format_report",
    "format_rule_tables",
]

"""CLI module for Worksort."""

from worksort.ui.resolution import PromptResolutionAdapter

from .commands import (
    run_assign_command,
    run_config_command,
    run_rules_command,
)
from .formatters import (
    JsonFormatter,
    OutputFormatter,
    TextFormatter,
    format_report,
    format_rule_tables,
)

__all__ = [
    # Formatters
    "OutputFormatter",
    "TextFormatter",
    "JsonFormatter",
    "format_report",
    "format_rule_tables",
    # Resolution
    "PromptResolutionAdapter",
    # Commands
    "run_assign_command",
    "run_rules_command",
    "run_config_command",
]

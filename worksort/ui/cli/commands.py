"""CLI command implementations.

This module provides the command handlers for all CLI commands.
"""

import argparse
import json
from pathlib import Path

from worksort.classification.rules import (
    RuleTables,
    default_rule_tables,
    load_rule_tables,
    save_rule_tables,
)
from worksort.core.config import DEFAULT_CONFIG_FILE, Config, save_config
from worksort.core.logging_config import get_logger
from worksort.core.orchestrator import AssignmentOrchestrator
from worksort.host.memory import load_model_snapshot, save_model_snapshot
from worksort.ui.resolution import (
    FixedBucketResolutionAdapter,
    IgnoreResolutionAdapter,
    ResolutionAdapter,
)

from .formatters import JsonFormatter, TextFormatter, format_report, format_rule_tables

OVERWRITE_WARNING = (
    "This will reassign elements to buckets and may overwrite manual changes."
)


def _get_formatter(args: argparse.Namespace, config: Config) -> TextFormatter | JsonFormatter:
    """Get the appropriate formatter based on args and output config."""
    if getattr(args, "json", False):
        return JsonFormatter()
    return TextFormatter(use_colors=config.output.use_colors)


def _confirm(prompt: str) -> bool:
    try:
        response = input(prompt).strip().lower()
    except EOFError:
        return False
    return response == "y"


def _select_adapter(args: argparse.Namespace) -> ResolutionAdapter | None:
    """Get the resolution adapter requested on the command line, if any."""
    if getattr(args, "adapter", None) is not None:
        return args.adapter
    if getattr(args, "assign_unresolved", None):
        return FixedBucketResolutionAdapter(args.assign_unresolved)
    if getattr(args, "ignore_unresolved", False):
        return IgnoreResolutionAdapter()
    return None


def _load_tables(args: argparse.Namespace, config: Config) -> RuleTables:
    rules_path = getattr(args, "rules", None) or config.rules_path
    if rules_path:
        return load_rule_tables(Path(rules_path))
    return default_rule_tables()


def run_assign_command(args: argparse.Namespace, config: Config) -> int:
    """Execute the assign command.

    Args:
        args: Command-line arguments
        config: Configuration object

    Returns:
        Exit code
    """
    logger = get_logger("main")

    try:
        model = load_model_snapshot(args.model)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if args.rules:
        config.engine.rules_file = str(Path(args.rules).resolve())

    try:
        orchestrator = AssignmentOrchestrator(config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if not model.supports_buckets():
        print(f"Error: Model '{model.name}' is not workshared.")
        return 1

    needs_confirmation = config.output.require_confirmation and not args.yes and not args.dry_run
    if needs_confirmation:
        print(f"\nModel: {model.name} ({len(model.elements)} elements)")
        print(f"  ! {OVERWRITE_WARNING}")
        if not _confirm("\nProceed? [y/N] "):
            print("Cancelled.")
            return 0

    report = orchestrator.run(model, _select_adapter(args), dry_run=args.dry_run)

    committed = any(status == "committed" for _, status in model.transactions)
    if committed and not args.dry_run:
        save_model_snapshot(model, args.model)
        logger.info(f"Model snapshot updated: {args.model}")

    verbose = config.output.show_pass_details or getattr(args, "verbose", 0) > 0
    output = format_report(
        report,
        as_json=args.json,
        verbose=verbose,
        use_colors=config.output.use_colors,
    )

    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"Results written to {args.output}")
    else:
        print(output)

    return 0 if report.success else 1


def run_rules_command(args: argparse.Namespace, config: Config) -> int:
    """Execute the rules command.

    Args:
        args: Command-line arguments
        config: Configuration object

    Returns:
        Exit code
    """
    try:
        tables = _load_tables(args, config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if args.export:
        save_rule_tables(tables, args.export)
        print(f"Rule tables written to {args.export}")
        return 0

    if args.validate:
        issues = tables.validate()
        print(_get_formatter(args, config).format_issues(issues))
        return 1 if issues else 0

    if args.show:
        print(format_rule_tables(tables, as_json=args.json, use_colors=config.output.use_colors))
        return 0

    print("Use --show, --validate or --export PATH")
    return 1


def run_config_command(args: argparse.Namespace, config: Config) -> int:
    """Execute the config command.

    Args:
        args: Command-line arguments
        config: Configuration object

    Returns:
        Exit code
    """
    if args.init:
        save_config(config)
        print(f"Configuration saved to {config.config_dir / DEFAULT_CONFIG_FILE}")
        return 0

    if args.show:
        print(json.dumps(config.to_dict(), indent=2))
        issues = config.validate()
        if issues:
            print("\nConfiguration issues:")
            for issue in issues:
                print(f"  - {issue}")
            return 1
        return 0

    print("Use --init to create config or --show to display current config")
    return 1

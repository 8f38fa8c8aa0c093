#!/usr/bin/env python3
"""Worksort - rule-based workset assignment.

Entry point for the command-line interface.
"""

import argparse
import logging
import sys
from pathlib import Path

from worksort import __version__
from worksort.core.config import Config, load_config
from worksort.core.logging_config import setup_logging
from worksort.ui.cli.commands import (
    run_assign_command,
    run_config_command,
    run_rules_command,
)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="worksort",
        description="Assign model elements to worksets by rule",
        epilog="For more information, see the documentation.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase verbosity (use -vv for debug)",
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress console output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Assign command
    assign_parser = subparsers.add_parser("assign", help="Assign elements of a model to worksets")
    assign_parser.add_argument(
        "--model", "-m",
        type=Path,
        required=True,
        help="Path to the model snapshot (JSON)",
    )
    assign_parser.add_argument(
        "--rules",
        type=Path,
        help="Path to a rules file (defaults to the built-in tables)",
    )
    assign_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    unresolved = assign_parser.add_mutually_exclusive_group()
    unresolved.add_argument(
        "--assign-unresolved",
        metavar="WORKSET",
        help="Assign all unresolved elements to this workset",
    )
    unresolved.add_argument(
        "--ignore-unresolved",
        action="store_true",
        help="Leave unresolved elements where they are",
    )
    unresolved.add_argument(
        "--gui",
        action="store_true",
        help="Resolve unresolved elements in a dialog (requires PySide6)",
    )
    assign_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without saving anything",
    )
    assign_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    assign_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write results to file",
    )

    # Rules command
    rules_parser = subparsers.add_parser("rules", help="Inspect the rule tables")
    rules_parser.add_argument(
        "--rules",
        type=Path,
        help="Path to a rules file (defaults to the configured or built-in tables)",
    )
    rules_parser.add_argument(
        "--show",
        action="store_true",
        help="Show the rule tables",
    )
    rules_parser.add_argument(
        "--validate",
        action="store_true",
        help="Check the rule tables for problems",
    )
    rules_parser.add_argument(
        "--export",
        type=Path,
        metavar="PATH",
        help="Write the rule tables to a JSON file",
    )
    rules_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    # Config command
    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser


def get_log_level(verbose: int) -> int:
    """Get logging level from verbosity count."""
    if verbose >= 2:
        return logging.DEBUG
    elif verbose >= 1:
        return logging.INFO
    return logging.WARNING


def run_assign(args: argparse.Namespace, config: Config) -> int:
    """Execute the assign command, switching to the Qt dialog if requested."""
    if getattr(args, "gui", False):
        from worksort.ui.gui import QtResolutionAdapter, load_qt_widgets

        try:
            load_qt_widgets()
        except ImportError as e:
            print(f"Error: {e}")
            return 1
        args.adapter = QtResolutionAdapter(label_limit=config.resolution.label_limit)
    return run_assign_command(args, config)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    # Load configuration
    config = load_config(args.config) if args.config else load_config()

    # Setup logging
    log_level = get_log_level(args.verbose)
    setup_logging(
        config.logs_dir,
        log_level=log_level,
        console_output=not args.quiet,
    )

    # Ensure directories exist
    config.ensure_directories()

    # Execute command
    if args.command == "assign":
        return run_assign(args, config)
    elif args.command == "rules":
        return run_rules_command(args, config)
    elif args.command == "config":
        return run_config_command(args, config)
    elif args.command is None:
        parser.print_help()
        return 0
    else:
        print(f"Unknown command '{args.command}'")
        return 1


if __name__ == "__main__":
    sys.exit(main())

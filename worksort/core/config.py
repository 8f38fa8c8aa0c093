"""Configuration management for Worksort.

This module handles loading, saving, and validating configuration
from JSON files and environment variables.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Default paths
DEFAULT_CONFIG_DIR = Path(os.environ.get("WORKSORT_HOME", "~/.worksort"))
DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_RULES_FILE = "rules.json"
DEFAULT_LOGS_DIR = "logs"

VALID_DISPOSITIONS = ("prompt", "ignore", "assign")


@dataclass
class EngineConfig:
    """Configuration for the classification engine."""

    override_phase: str = "Existing"
    override_bucket: str = "S2_Existing"
    transaction_label: str = "Assign elements to worksets"
    remainder_label: str = "Assign skipped to workset"
    rules_file: str = ""  # Empty: use the built-in tables


@dataclass
class ResolutionConfig:
    """Configuration for handling the unresolved pool."""

    default_disposition: str = "prompt"  # prompt, ignore, assign
    default_bucket: str = ""  # Used when default_disposition is "assign"
    label_limit: int = 25  # Distinct labels shown to the operator


@dataclass
class OutputConfig:
    """Configuration for user-facing output."""

    require_confirmation: bool = True
    use_colors: bool = True
    show_pass_details: bool = False


@dataclass
class Config:
    """Main configuration container for Worksort.

    Attributes:
        config_dir: Base directory for all Worksort data
        logs_dir: Directory for log files
        engine: Classification engine configuration
        resolution: Unresolved pool configuration
        output: Output configuration
    """

    config_dir: Path = field(default_factory=lambda: DEFAULT_CONFIG_DIR.expanduser())
    logs_dir: Path = field(default_factory=lambda: Path(DEFAULT_LOGS_DIR))

    engine: EngineConfig = field(default_factory=EngineConfig)
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self) -> None:
        """Resolve relative paths to absolute paths."""
        if not self.logs_dir.is_absolute():
            self.logs_dir = self.config_dir / self.logs_dir

    @property
    def rules_path(self) -> Path | None:
        """Path of the custom rules file, if one is configured."""
        if not self.engine.rules_file:
            return None
        path = Path(self.engine.rules_file).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for directory in [self.config_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    def validate(self) -> list[str]:
        """Validate the configuration and return a list of issues."""
        issues = []
        if self.resolution.default_disposition not in VALID_DISPOSITIONS:
            issues.append(
                f"resolution.default_disposition must be one of {', '.join(VALID_DISPOSITIONS)}"
            )
        if self.resolution.default_disposition == "assign" and not self.resolution.default_bucket:
            issues.append("resolution.default_bucket is required when default_disposition is 'assign'")
        if self.resolution.label_limit < 0:
            issues.append("resolution.label_limit must not be negative")
        if bool(self.engine.override_phase) != bool(self.engine.override_bucket):
            issues.append("engine.override_phase and engine.override_bucket must be set together")
        return issues

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for JSON serialization."""
        return {
            "config_dir": str(self.config_dir),
            "logs_dir": str(self.logs_dir),
            "engine": {
                "override_phase": self.engine.override_phase,
                "override_bucket": self.engine.override_bucket,
                "transaction_label": self.engine.transaction_label,
                "remainder_label": self.engine.remainder_label,
                "rules_file": self.engine.rules_file,
            },
            "resolution": {
                "default_disposition": self.resolution.default_disposition,
                "default_bucket": self.resolution.default_bucket,
                "label_limit": self.resolution.label_limit,
            },
            "output": {
                "require_confirmation": self.output.require_confirmation,
                "use_colors": self.output.use_colors,
                "show_pass_details": self.output.show_pass_details,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create configuration from dictionary."""
        config = cls()

        if "config_dir" in data:
            config.config_dir = Path(data["config_dir"])
        if "logs_dir" in data:
            config.logs_dir = Path(data["logs_dir"])
        else:
            config.logs_dir = Path(DEFAULT_LOGS_DIR)

        if "engine" in data:
            engine_data = data["engine"]
            config.engine = EngineConfig(
                override_phase=engine_data.get("override_phase", "Existing"),
                override_bucket=engine_data.get("override_bucket", "S2_Existing"),
                transaction_label=engine_data.get(
                    "transaction_label", "Assign elements to worksets"
                ),
                remainder_label=engine_data.get("remainder_label", "Assign skipped to workset"),
                rules_file=engine_data.get("rules_file", ""),
            )

        if "resolution" in data:
            resolution_data = data["resolution"]
            config.resolution = ResolutionConfig(
                default_disposition=resolution_data.get("default_disposition", "prompt"),
                default_bucket=resolution_data.get("default_bucket", ""),
                label_limit=resolution_data.get("label_limit", 25),
            )

        if "output" in data:
            output_data = data["output"]
            config.output = OutputConfig(
                require_confirmation=output_data.get("require_confirmation", True),
                use_colors=output_data.get("use_colors", True),
                show_pass_details=output_data.get("show_pass_details", False),
            )

        # Re-run post_init to resolve paths
        config.__post_init__()

        return config


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Config object with loaded settings.

    Raises:
        json.JSONDecodeError: If config file contains invalid JSON.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_DIR.expanduser() / DEFAULT_CONFIG_FILE

    if not config_path.exists():
        return Config()

    with open(config_path, encoding="utf-8") as f:
        data = json.load(f)

    return Config.from_dict(data)


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Config object to save.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = config.config_dir / DEFAULT_CONFIG_FILE

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)


def get_default_config() -> Config:
    """Get the default configuration.

    Returns:
        A new Config object with default settings.
    """
    return Config()

"""Tests for configuration management."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

from worksort.core.config import (
    Config,
    EngineConfig,
    OutputConfig,
    ResolutionConfig,
    get_default_config,
    load_config,
    save_config,
)


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_default_values(self):
        """Test default engine configuration values."""
        config = EngineConfig()

        assert config.override_phase == "Existing"
        assert config.override_bucket == "S2_Existing"
        assert config.transaction_label == "Assign elements to worksets"
        assert config.remainder_label == "Assign skipped to workset"
        assert config.rules_file == ""


class TestResolutionConfig:
    """Tests for ResolutionConfig."""

    def test_default_values(self):
        """Test default resolution configuration values."""
        config = ResolutionConfig()

        assert config.default_disposition == "prompt"
        assert config.default_bucket == ""
        assert config.label_limit == 25


class TestOutputConfig:
    """Tests for OutputConfig."""

    def test_default_values(self):
        """Test default output configuration values."""
        config = OutputConfig()

        assert config.require_confirmation is True
        assert config.use_colors is True
        assert config.show_pass_details is False


class TestConfig:
    """Tests for main Config class."""

    def test_default_config(self):
        """Test default configuration creation."""
        config = Config()

        assert config.engine is not None
        assert config.resolution is not None
        assert config.output is not None
        assert config.logs_dir.is_absolute()
        assert config.rules_path is None

    def test_ensure_directories(self):
        """Test directory creation."""
        with TemporaryDirectory() as tmpdir:
            config = Config(config_dir=Path(tmpdir) / "worksort")
            config.ensure_directories()

            assert config.config_dir.exists()
            assert config.logs_dir.exists()
            assert config.logs_dir == config.config_dir / "logs"

    def test_rules_path_relative_to_config_dir(self):
        """Test a relative rules file is resolved against the config directory."""
        config = Config(config_dir=Path("/opt/worksort"))
        config.engine.rules_file = "rules.json"

        assert config.rules_path == Path("/opt/worksort/rules.json")

    def test_rules_path_absolute(self):
        """Test an absolute rules file is used as is."""
        config = Config(config_dir=Path("/opt/worksort"))
        config.engine.rules_file = "/etc/worksort/custom.json"

        assert config.rules_path == Path("/etc/worksort/custom.json")

    def test_validate_defaults(self):
        """Test the default configuration has no issues."""
        assert Config().validate() == []

    def test_validate_unknown_disposition(self):
        """Test an unknown disposition is reported."""
        config = Config()
        config.resolution.default_disposition = "later"

        issues = config.validate()

        assert len(issues) == 1
        assert "default_disposition" in issues[0]

    def test_validate_assign_without_bucket(self):
        """Test the assign disposition needs a bucket."""
        config = Config()
        config.resolution.default_disposition = "assign"

        assert any("default_bucket" in issue for issue in config.validate())

    def test_validate_override_pair(self):
        """Test override phase and bucket must be set together."""
        config = Config()
        config.engine.override_bucket = ""

        assert any("override_phase" in issue for issue in config.validate())

    def test_validate_disabled_override(self):
        """Test disabling the override entirely is valid."""
        config = Config()
        config.engine.override_phase = ""
        config.engine.override_bucket = ""

        assert config.validate() == []

    def test_to_dict(self):
        """Test configuration serialization to dictionary."""
        config = Config()
        data = config.to_dict()

        assert "config_dir" in data
        assert "engine" in data
        assert "resolution" in data
        assert "output" in data
        assert data["engine"]["override_bucket"] == "S2_Existing"
        assert data["resolution"]["default_disposition"] == "prompt"

    def test_from_dict(self):
        """Test configuration deserialization from dictionary."""
        data = {
            "engine": {"override_phase": "Demolished"},
            "resolution": {"default_disposition": "assign", "default_bucket": "Workset1"},
            "output": {"require_confirmation": False},
        }

        config = Config.from_dict(data)

        assert config.engine.override_phase == "Demolished"
        assert config.engine.override_bucket == "S2_Existing"
        assert config.resolution.default_disposition == "assign"
        assert config.resolution.default_bucket == "Workset1"
        assert config.output.require_confirmation is False
        assert config.output.use_colors is True

    def test_roundtrip(self):
        """Test configuration roundtrip through dict."""
        original = Config()
        original.engine.rules_file = "custom.json"
        original.resolution.label_limit = 10
        original.output.show_pass_details = True

        restored = Config.from_dict(original.to_dict())

        assert restored.engine.rules_file == "custom.json"
        assert restored.resolution.label_limit == 10
        assert restored.output.show_pass_details is True
        assert restored.config_dir == original.config_dir
        assert restored.logs_dir == original.logs_dir


class TestConfigFileOperations:
    """Tests for config file save/load operations."""

    def test_save_and_load_config(self):
        """Test saving and loading configuration from file."""
        with TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"

            config = Config(config_dir=Path(tmpdir))
            config.engine.override_bucket = "Z9_Existing"
            config.resolution.default_disposition = "ignore"
            save_config(config, config_path)

            assert config_path.exists()
            assert json.loads(config_path.read_text())["engine"]["override_bucket"] == "Z9_Existing"

            loaded = load_config(config_path)
            assert loaded.engine.override_bucket == "Z9_Existing"
            assert loaded.resolution.default_disposition == "ignore"

    def test_save_default_location(self):
        """Test saving without a path writes into the config directory."""
        with TemporaryDirectory() as tmpdir:
            config = Config(config_dir=Path(tmpdir) / "home")
            save_config(config)

            assert (config.config_dir / "config.json").exists()

    def test_load_nonexistent_returns_default(self):
        """Test loading from nonexistent file returns default config."""
        with TemporaryDirectory() as tmpdir:
            config = load_config(Path(tmpdir) / "nonexistent.json")

            assert config.engine.override_phase == "Existing"
            assert config.resolution.default_disposition == "prompt"

    def test_get_default_config(self):
        """Test get_default_config function."""
        config = get_default_config()

        assert isinstance(config, Config)
        assert config.output.require_confirmation is True

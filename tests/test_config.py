"""
Smoke tests for configuration loading, validation and CLI overrides.
"""

import io
import logging

from main import apply_cli_overrides, load_config, parse_args, validate_config
from ops.logging import setup_logging


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_missing_detection_section(self, valid_config):
        """Missing detection section fails validation."""
        del valid_config["detection"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection" in error.lower()

    def test_missing_paths_section(self, valid_config):
        del valid_config["paths"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "paths" in error.lower()

    def test_missing_log_level(self, valid_config):
        """Missing log_level fails validation."""
        del valid_config["log_level"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()

    def test_missing_log_path(self, valid_config):
        """Missing log_path fails validation."""
        del valid_config["log_path"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_path" in error.lower()

    def test_label_with_whitespace_rejected(self, valid_config):
        """A label must survive being written to and read back from a result record."""
        valid_config["detection"]["label"] = "light truck"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection.label" in error

    def test_empty_label_rejected(self, valid_config):
        valid_config["detection"]["label"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection.label" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_invalid_background_backend(self, valid_config):
        valid_config["detection"]["background"]["backend"] = "knn"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error

    def test_mog2_backend_valid(self, valid_config):
        valid_config["detection"]["background"]["backend"] = "mog2"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_scope(self, valid_config):
        valid_config["detection"]["background"]["scope"] = "folder"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "scope" in error

    def test_invalid_history(self, valid_config):
        valid_config["detection"]["background"]["history"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "history" in error

    def test_invalid_shadow_ratio(self, valid_config):
        valid_config["detection"]["background"]["shadow_ratio"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "shadow_ratio" in error

    def test_invalid_mask_threshold(self, valid_config):
        valid_config["detection"]["mask"]["threshold"] = 300

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "threshold" in error

    def test_invalid_kernel_shape(self, valid_config):
        valid_config["detection"]["morphology"]["kernel_shape"] = "hexagon"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "kernel_shape" in error

    def test_max_area_below_min_area(self, valid_config):
        valid_config["detection"]["filter"]["max_area"] = 1000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_area" in error

    def test_invalid_solidity(self, valid_config):
        valid_config["detection"]["filter"]["min_solidity"] = 2

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "min_solidity" in error

    def test_invalid_iou_threshold(self, valid_config):
        valid_config["evaluation"]["iou_threshold"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "iou_threshold" in error

    def test_invalid_label_map(self, valid_config):
        valid_config["evaluation"]["label_map"] = ["car"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "label_map" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        # Don't create config.yaml, only default.yaml exists
        config = load_config(config_path)

        assert config["detection"]["background"]["backend"] == "gmm"
        assert config["detection"]["filter"]["min_area"] == 1200
        assert config["paths"]["images_dir"] == "data/images"

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  background:
    scope: "image"
    history: 200
""")

        config = load_config(str(config_yaml))

        # Overridden values
        assert config["detection"]["background"]["scope"] == "image"
        assert config["detection"]["background"]["history"] == 200

        # Original values preserved
        assert config["detection"]["background"]["backend"] == "gmm"
        assert config["detection"]["background"]["var_threshold"] == 16.0

    def test_explicit_config_applied_last(self, temp_config_dir):
        """An explicit --config file overrides config.yaml."""
        (temp_config_dir / "config.yaml").write_text("""
evaluation:
  iou_threshold: 0.6
""")
        explicit = temp_config_dir / "experiment.yaml"
        explicit.write_text("""
evaluation:
  iou_threshold: 0.7
""")

        config = load_config(str(explicit))

        assert config["evaluation"]["iou_threshold"] == 0.7
        assert config["evaluation"]["label_map"] == {"car": "vehicle"}

    def test_default_yaml_validates(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestCommandLine:
    """Tests for argument parsing and overrides."""

    def test_subcommand_and_overrides(self, valid_config):
        args = parse_args(["run", "--input", "imgs", "--annotations", "ann", "--output", "out",
                           "--log-level", "DEBUG"])

        config = apply_cli_overrides(valid_config, args)

        assert args.command == "run"
        assert config["paths"]["images_dir"] == "imgs"
        assert config["paths"]["annotations_dir"] == "ann"
        assert config["paths"]["output_dir"] == "out"
        assert config["log_level"] == "DEBUG"

    def test_defaults_leave_config_untouched(self, valid_config):
        args = parse_args(["detect"])

        config = apply_cli_overrides(valid_config, args)

        assert args.config == "config/config.yaml"
        assert config["paths"]["images_dir"] == "data/images"


class TestSetupLogging:
    def test_writes_file_and_stream(self, tmp_path, restore_root_logger):
        stream = io.StringIO()
        log_path = tmp_path / "logs" / "app.log"

        logger = setup_logging(str(log_path), "INFO", stream=stream)
        logger.info("hello from test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from test" in stream.getvalue()
        assert " - INFO - " in stream.getvalue()
        assert "hello from test" in log_path.read_text()

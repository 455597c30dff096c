"""
Unit tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from hdlcd_tools.config import LoggingConfig, ToolsConfig, load_config


class TestConfig:
    """Test defaults and TOML loading."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = load_config()

        assert config.session.keepalive_interval_s == 60.0
        assert config.session.linger_s == 2.0
        assert config.logging.level == "WARNING"

    def test_load_file(self, tmp_path):
        """Test values read from a TOML file."""
        path = tmp_path / "hdlcd.toml"
        path.write_text('[session]\nlinger_s = 0.5\n\n[logging]\nlevel = "debug"\n')

        config = load_config(path)

        assert config.session.linger_s == 0.5
        assert config.session.keepalive_interval_s == 60.0
        assert config.logging.level == "DEBUG"

    def test_missing_file(self, tmp_path):
        """Test an explicitly named file must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path):
        """Test TOML syntax errors surface as ValueError."""
        path = tmp_path / "broken.toml"
        path.write_text("[session\n")

        with pytest.raises(ValueError):
            load_config(path)

    def test_negative_interval_rejected(self):
        """Test range validation."""
        with pytest.raises(ValidationError):
            ToolsConfig(session={"keepalive_interval_s": -1})

    def test_unknown_log_level_rejected(self):
        """Test log level validation."""
        with pytest.raises(ValidationError, match="Unknown log level"):
            LoggingConfig(level="chatty")

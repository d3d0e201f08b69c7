"""
Unit tests for configuration management.
"""

import pytest
from pydantic import ValidationError

from ssh_manage.config import (
    AppConfig,
    LoggingConfig,
    ProbeConfig,
    TokenConfig,
    get_config,
    reset_config,
    set_config,
)


class TestDefaults:
    """Test default values with an empty environment."""

    def test_app_config_defaults(self):
        config = AppConfig()

        assert config.database.connection_string == "sqlite:///./ssh_manage.db"
        assert config.database.echo is False
        assert config.logging.level == "WARNING"
        assert config.token.length == 64
        assert config.servers.ssh_username == "root"

    def test_probe_defaults(self):
        config = ProbeConfig()

        assert config.command == ["sudo", "/opt/heppy_ai/bin/ssh_check.sh"]
        assert config.timeout_seconds == 30
        assert config.success_marker == "OK"


class TestEnvironment:
    """Test values read from environment variables."""

    def test_database_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "mysql+pymysql://u:p@db/ssh")
        monkeypatch.setenv("DB_ECHO", "true")

        config = AppConfig.from_env()

        assert config.database.connection_string == "mysql+pymysql://u:p@db/ssh"
        assert config.database.echo is True

    def test_probe_command_is_split(self, monkeypatch):
        monkeypatch.setenv("SSH_CHECK_COMMAND", "/usr/bin/env 'ssh check.sh'")
        monkeypatch.setenv("SSH_CHECK_TIMEOUT", "2.5")

        config = ProbeConfig()

        assert config.command == ["/usr/bin/env", "ssh check.sh"]
        assert config.timeout_seconds == 2.5

    def test_token_length(self, monkeypatch):
        monkeypatch.setenv("TOKEN_LENGTH", "32")

        assert TokenConfig().length == 32

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert LoggingConfig().level == "DEBUG"


class TestValidation:
    """Test rejected configuration."""

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_empty_probe_command(self):
        with pytest.raises(ValidationError):
            ProbeConfig(command=[])

    def test_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            ProbeConfig(timeout_seconds=0)

    def test_token_length_minimum(self):
        with pytest.raises(ValidationError):
            TokenConfig(length=0)

    def test_token_length_maximum(self):
        assert TokenConfig(length=128).length == 128

        with pytest.raises(ValidationError):
            TokenConfig(length=129)


class TestGlobalConfig:
    """Test the global configuration accessors."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_and_reset(self):
        custom = AppConfig(token=TokenConfig(length=8))
        set_config(custom)

        assert get_config() is custom

        reset_config()
        assert get_config() is not custom

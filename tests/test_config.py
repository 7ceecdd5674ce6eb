"""Tests for settings resolution."""

import tempfile
from pathlib import Path

import pytest
import yaml

from post_catalog import config
from post_catalog.config import CONFIG_ENV_VAR, Settings, load_settings, load_yaml_config
from post_catalog.core.errors import ConfigError

SETTING_VARS = [
    "TELEGRAM_TOKEN",
    "TELEGRAM_CHAT_ID",
    "DATABASE_URL",
    "API_HOST",
    "API_PORT",
    "RELAY_CAPACITY",
    "STORE_WRITE_TIMEOUT",
    "STORE_QUERY_TIMEOUT",
    "LOG_LEVEL",
    CONFIG_ENV_VAR,
]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear setting variables and ignore any local .env file."""
    for name in SETTING_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "ENV_PATHS", [])


@pytest.fixture
def config_file():
    """Write a YAML settings file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "settings.yaml"

        def write(data) -> Path:
            path.write_text(yaml.safe_dump(data))
            return path

        yield write


class TestSettings:
    """Tests for the Settings dataclass."""

    def test_defaults(self) -> None:
        """Test built-in defaults."""
        settings = Settings()
        assert settings.relay_capacity == 100
        assert settings.api_port == 8080
        assert settings.store_write_timeout == 5.0
        assert settings.listener_enabled is False

    def test_from_dict_converts_types(self) -> None:
        """Test values are converted to the field types and keys are case-insensitive."""
        settings = Settings.from_dict({"TELEGRAM_CHAT_ID": "-100123", "relay_capacity": "5"})
        assert settings.telegram_chat_id == -100123
        assert settings.relay_capacity == 5

    def test_unknown_keys_ignored(self) -> None:
        """Test unrelated keys do not fail."""
        assert Settings.from_dict({"colour": "blue"}) == Settings()

    def test_invalid_value(self) -> None:
        """Test a non-numeric chat id raises ConfigError."""
        with pytest.raises(ConfigError, match="TELEGRAM_CHAT_ID"):
            Settings.from_dict({"telegram_chat_id": "not-a-number"})

    def test_listener_enabled(self) -> None:
        """Test the listener needs both token and chat id."""
        assert Settings(telegram_token="t", telegram_chat_id=1).listener_enabled
        assert not Settings(telegram_token="t").listener_enabled


class TestValidate:
    """Tests for Settings.validate."""

    def test_missing_token(self) -> None:
        """Test the token is required for listening."""
        with pytest.raises(ConfigError, match="TELEGRAM_TOKEN is required"):
            Settings(telegram_chat_id=1).validate()

    def test_missing_chat_id(self) -> None:
        """Test the chat id is required for listening."""
        with pytest.raises(ConfigError, match="TELEGRAM_CHAT_ID"):
            Settings(telegram_token="t").validate()

    def test_read_only_needs_no_credentials(self) -> None:
        """Test serving reads does not require Telegram settings."""
        Settings().validate(require_listener=False)

    def test_capacity_must_be_positive(self) -> None:
        """Test relay capacity is checked."""
        with pytest.raises(ConfigError, match="RELAY_CAPACITY"):
            Settings(relay_capacity=0).validate(require_listener=False)

    def test_timeouts_must_be_positive(self) -> None:
        """Test store timeouts are checked."""
        with pytest.raises(ConfigError):
            Settings(store_write_timeout=0).validate(require_listener=False)


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_only(self, clean_env) -> None:
        """Test nothing configured yields defaults."""
        assert load_settings() == Settings()

    def test_yaml_layer(self, clean_env, config_file) -> None:
        """Test values are read from the YAML file."""
        path = config_file({"relay_capacity": 20, "api_port": 9000})
        settings = load_settings(path)
        assert settings.relay_capacity == 20
        assert settings.api_port == 9000

    def test_yaml_from_env_var(self, clean_env, config_file, monkeypatch) -> None:
        """Test the YAML path can come from POST_CATALOG_CONFIG."""
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file({"log_level": "DEBUG"})))
        assert load_settings().log_level == "DEBUG"

    def test_env_overrides_yaml(self, clean_env, config_file, monkeypatch) -> None:
        """Test environment variables win over the YAML file."""
        path = config_file({"relay_capacity": 20, "telegram_token": "from-yaml"})
        monkeypatch.setenv("RELAY_CAPACITY", "7")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "-1001")

        settings = load_settings(path)
        assert settings.relay_capacity == 7
        assert settings.telegram_chat_id == -1001
        assert settings.telegram_token == "from-yaml"

    def test_invalid_env_value(self, clean_env, monkeypatch) -> None:
        """Test a malformed env value raises ConfigError."""
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "abc")
        with pytest.raises(ConfigError):
            load_settings()

    def test_missing_yaml(self, clean_env) -> None:
        """Test a missing config file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_yaml_config("/nonexistent/settings.yaml")

    def test_yaml_must_be_mapping(self, clean_env, config_file) -> None:
        """Test a YAML list is rejected."""
        with pytest.raises(ConfigError, match="mapping"):
            load_yaml_config(config_file(["a", "b"]))

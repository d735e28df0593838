"""Tests for configuration loading."""

import json

import pytest

from payeecore.config import AppConfig, ConfigManager
from payeecore.errors import ConfigurationError

ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "PAYEE_DEDUPE_PROVIDER",
    "PAYEE_DEDUPE_MODEL",
    "PAYEE_DEDUPE_HIGH_THRESHOLD",
    "PAYEE_DEDUPE_LOW_THRESHOLD",
    "PAYEE_DEDUPE_DISABLE_AI",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_config(tmp_path):
    def _write(data):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data) if not isinstance(data, str) else data)
        return str(path)
    return _write


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_defaults(self):
        config = ConfigManager().load()
        assert isinstance(config, AppConfig)
        assert config.detection.high_confidence_threshold == 95.0
        assert config.detection.enable_ai_judgment is True
        assert config.oracle.provider == "openai"
        assert config.oracle.api_key is None
        assert config.oracle.max_tokens == 300
        assert config.logging.format == "text"

    def test_load_is_cached(self):
        manager = ConfigManager()
        assert manager.load() is manager.load()
        assert manager.config is manager.load()

    def test_file_is_deep_merged(self, write_config):
        path = write_config({
            "detection": {"lowConfidenceThreshold": 70, "algorithmWeights": {"tokenSort": 0.6}},
            "oracle": {"provider": "anthropic", "temperature": 0.0},
        })
        config = ConfigManager(path).load()
        assert config.detection.low_confidence_threshold == 70.0
        assert config.detection.algorithm_weights.token_sort == 0.6
        assert config.detection.algorithm_weights.token_set == 0.4
        assert config.oracle.provider == "anthropic"
        assert config.oracle.temperature == 0.0
        assert config.oracle.max_tokens == 300

    def test_missing_file_uses_defaults(self, tmp_path):
        config = ConfigManager(str(tmp_path / "absent.json")).load()
        assert config.oracle.provider == "openai"

    def test_unreadable_file(self, write_config):
        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            ConfigManager(write_config("{broken")).load()

    def test_file_must_hold_object(self, write_config):
        with pytest.raises(ConfigurationError, match="must contain a JSON object"):
            ConfigManager(write_config([1, 2])).load()

    def test_unknown_oracle_key(self, write_config):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(write_config({"oracle": {"bogus": 1}})).load()
        assert exc_info.value.config_key == "oracle.bogus"

    def test_unknown_provider(self, write_config):
        with pytest.raises(ConfigurationError):
            ConfigManager(write_config({"oracle": {"provider": "cohere"}})).load()

    def test_invalid_detection_section(self, write_config):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(write_config({"detection": {"highConfidenceThreshold": 150}})).load()
        assert exc_info.value.config_key == "high_confidence_threshold"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PAYEE_DEDUPE_PROVIDER", "Anthropic")
        monkeypatch.setenv("PAYEE_DEDUPE_MODEL", "claude-test")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-test")
        monkeypatch.setenv("PAYEE_DEDUPE_HIGH_THRESHOLD", "90")
        monkeypatch.setenv("PAYEE_DEDUPE_LOW_THRESHOLD", "60.5")
        monkeypatch.setenv("PAYEE_DEDUPE_DISABLE_AI", "yes")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "JSON")

        config = ConfigManager().load()

        assert config.oracle.provider == "anthropic"
        assert config.oracle.model == "claude-test"
        assert config.oracle.api_key == "sk-ant-test"
        assert config.detection.high_confidence_threshold == 90.0
        assert config.detection.low_confidence_threshold == 60.5
        assert config.detection.enable_ai_judgment is False
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"

    def test_env_overrides_file(self, monkeypatch, write_config):
        monkeypatch.setenv("PAYEE_DEDUPE_HIGH_THRESHOLD", "85")
        path = write_config({"detection": {"high_confidence_threshold": 99}})
        assert ConfigManager(path).load().detection.high_confidence_threshold == 85.0

    def test_file_api_key_wins_over_env(self, monkeypatch, write_config):
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        path = write_config({"oracle": {"api_key": "from-file"}})
        assert ConfigManager(path).load().oracle.api_key == "from-file"

    def test_non_numeric_threshold(self, monkeypatch):
        monkeypatch.setenv("PAYEE_DEDUPE_LOW_THRESHOLD", "high")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager().load()
        assert exc_info.value.config_key == "low_confidence_threshold"

    def test_validate_requires_api_key_when_ai_enabled(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager().validate()
        assert exc_info.value.config_key == "oracle.api_key"

    def test_validate_passes_without_ai(self, monkeypatch):
        monkeypatch.setenv("PAYEE_DEDUPE_DISABLE_AI", "true")
        assert ConfigManager().validate() is True

    def test_validate_passes_with_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert ConfigManager().validate() is True

    def test_oracle_settings(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = ConfigManager().oracle_settings()
        assert settings == {
            "provider": "openai",
            "model": None,
            "api_key": "sk-test",
            "temperature": 0.1,
            "max_tokens": 300,
            "timeout": 30.0,
            "max_requests_per_minute": 60,
        }

    def test_save_template_round_trips(self, tmp_path):
        path = tmp_path / "template.json"
        ConfigManager().save_template(str(path))

        template = json.loads(path.read_text())
        assert template["oracle"]["api_key"] == "YOUR_OPENAI_API_KEY"
        assert template["detection"]["high_confidence_threshold"] == 95.0

        config = ConfigManager(str(path)).load()
        assert config.oracle.model == "gpt-4o-mini"
        assert config.detection.model_dump() == ConfigManager().load().detection.model_dump()

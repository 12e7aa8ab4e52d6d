"""Tests for configuration loading."""

import pytest
import yaml

from rehearsal_coach.services.configuration_manager import ConfigurationManager
from rehearsal_coach.utils.exceptions import ConfigurationError


def write_config(directory, data, name="config.yaml"):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_text(yaml.safe_dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ENVIRONMENT", "SCORING_API_KEY", "TEST_SCORING_KEY"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def make_manager(tmp_path) -> ConfigurationManager:
    return ConfigurationManager(str(tmp_path / "config"), env_file=str(tmp_path / ".env"))


class TestConfigurationManager:
    def test_defaults_without_files(self, tmp_path):
        manager = make_manager(tmp_path)
        manager.initialize()

        config = manager.get_config()
        assert config.performance.analysis_timeout == 120
        assert config.performance.question_count == 5
        assert config.ui.default_theme == "dark"
        assert config.scoring.name == "deepseek"

    def test_yaml_overrides_and_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_SCORING_KEY", "sk-test")
        write_config(tmp_path / "config", {
            "performance": {"analysis_timeout": 30},
            "storage": {"base_path": "custom"},
            "scoring": {"api_key": "${TEST_SCORING_KEY}", "model": "other-model"},
            "unknown_section": {"x": 1},
        })

        manager = make_manager(tmp_path)
        manager.initialize()

        config = manager.get_config()
        assert config.performance.analysis_timeout == 30
        assert config.performance.question_count == 5
        assert config.scoring.api_key == "sk-test"
        assert config.scoring.model == "other-model"
        assert manager.get_storage_config()["base_path"] == "custom"

    def test_environment_file_layering(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "testing")
        write_config(tmp_path / "config", {"performance": {"question_count": 3}})
        write_config(tmp_path / "config", {"performance": {"question_count": 2}}, name="config.testing.yaml")

        manager = make_manager(tmp_path)
        manager.initialize()

        assert manager.get_setting("performance.question_count") == 2

    def test_api_key_from_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text("SCORING_API_KEY=sk-from-dotenv\n", encoding="utf-8")

        manager = make_manager(tmp_path)
        manager.initialize()

        assert manager.get_config().scoring.api_key == "sk-from-dotenv"

    def test_invalid_theme_is_rejected(self, tmp_path):
        write_config(tmp_path / "config", {"ui": {"default_theme": "sepia"}})

        with pytest.raises(ConfigurationError):
            make_manager(tmp_path).initialize()

    def test_non_positive_timeout_is_rejected(self, tmp_path):
        write_config(tmp_path / "config", {"performance": {"analysis_timeout": 0}})

        with pytest.raises(ConfigurationError):
            make_manager(tmp_path).initialize()

    def test_get_setting_default(self, tmp_path):
        manager = make_manager(tmp_path)
        manager.initialize()

        assert manager.get_setting("ui.default_theme") == "dark"
        assert manager.get_setting("ui.missing", "fallback") == "fallback"

    def test_logging_kwargs(self, tmp_path):
        write_config(tmp_path / "config", {"logging": {"level": "DEBUG", "format": "json"}})
        manager = make_manager(tmp_path)
        manager.initialize()

        kwargs = manager.get_logging_config()

        assert kwargs["level"] == "DEBUG"
        assert kwargs["structured"] is True
        assert kwargs["enable_file"] is False

    def test_get_config_before_initialize(self, tmp_path):
        with pytest.raises(ConfigurationError):
            make_manager(tmp_path).get_config()

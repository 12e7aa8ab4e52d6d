"""Tests for application wiring and the CLI helpers."""

import asyncio

import pytest
import yaml
from click.testing import CliRunner

from rehearsal_coach.app import build_app
from rehearsal_coach.cli import cli, load_questions_file, write_transcript
from rehearsal_coach.models.enums import Stage, Theme
from rehearsal_coach.services.auth_gate import Credentials
from rehearsal_coach.services.configuration_manager import ConfigurationManager


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "config.yaml").write_text(yaml.safe_dump({
        "storage": {"base_path": str(tmp_path / "data")},
        "performance": {"analysis_timeout": 5},
        "logging": {"console_output": False},
    }), encoding="utf-8")
    return directory


@pytest.fixture
def app(config_dir, tmp_path):
    manager = ConfigurationManager(str(config_dir), env_file=str(tmp_path / ".env"))
    manager.initialize()
    return build_app(manager)


class TestRehearsalApp:
    def test_wiring_follows_config(self, app):
        assert app.orchestrator.analysis_timeout == 5
        assert app.orchestrator.machine is app.machine
        assert app.orchestrator.is_initialized
        assert app.orchestrator.health_status["analysis_in_flight"] is False
        assert app.theme_manager.theme == Theme.DARK

    def test_boot_login_logout(self, app):
        assert app.boot() == Stage.LANDING

        app.login(Credentials(email="ada@example.com"))
        assert app.machine.stage == Stage.DASHBOARD

        app.logout()
        assert app.machine.stage == Stage.LANDING
        assert app.auth_gate.get_current_user() is None

    def test_boot_resumes_stored_user(self, app):
        app.auth_gate.login(Credentials(email="ada@example.com"))

        assert app.boot() == Stage.DASHBOARD

    def test_close_releases_collaborators(self, app):
        asyncio.run(app.close())
        assert not app.orchestrator.is_initialized


class TestCliHelpers:
    def test_write_transcript(self, tmp_path):
        media = write_transcript(tmp_path / "recordings", "Q1: Why?\nA1: Because.")

        assert media.path.exists()
        assert media.content_type == "text/plain"
        assert media.size_bytes == media.path.stat().st_size

    def test_load_questions_file(self, tmp_path):
        questions_file = tmp_path / "questions.yaml"
        questions_file.write_text(yaml.safe_dump([
            {"question": "Walk me through your last project.", "type": "Behavioral"},
        ]), encoding="utf-8")

        questions = load_questions_file(str(questions_file))

        assert [q.text for q in questions] == ["Walk me through your last project."]


class TestCliCommands:
    def test_history_empty(self, config_dir):
        result = CliRunner().invoke(cli, ["--config", str(config_dir), "history"])

        assert result.exit_code == 0
        assert "No reports saved yet" in result.output

    def test_theme_toggle(self, config_dir, tmp_path):
        result = CliRunner().invoke(cli, ["--config", str(config_dir), "theme"])

        assert result.exit_code == 0
        assert "light" in result.output
        assert (tmp_path / "data" / "preferences.json").exists()

    def test_logout_without_user(self, config_dir):
        result = CliRunner().invoke(cli, ["--config", str(config_dir), "logout"])

        assert result.exit_code == 0
        assert "Nobody is signed in" in result.output

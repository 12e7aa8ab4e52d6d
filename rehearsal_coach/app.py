"""Wiring of the rehearsal core and its collaborators."""

from dataclasses import dataclass
from pathlib import Path

from .agents.analysis_orchestrator import AnalysisOrchestrator
from .flow.state_machine import StateMachine
from .models.enums import Stage, Theme
from .models.user import Identity
from .services.auth_gate import AuthGate, Credentials, FileAuthGate
from .services.configuration_manager import AppConfig, ConfigurationManager
from .services.preferences import PreferenceStore, ThemeManager
from .services.scoring_service import ChatCompletionCoach
from .services.storage_manager import FileHistoryStore, HistoryStore
from .utils.logging import get_logger

logger = get_logger("app")


@dataclass
class RehearsalApp:
    """The controller of one client: collaborators plus the stage machine that drives them."""

    config: AppConfig
    auth_gate: AuthGate
    history_store: HistoryStore
    coach: ChatCompletionCoach
    theme_manager: ThemeManager
    machine: StateMachine
    orchestrator: AnalysisOrchestrator

    def boot(self) -> Stage:
        """Resolve the stored identity and pick the initial stage."""
        stage = self.machine.initialize(self.auth_gate.get_current_user())
        logger.info(f"Booted at stage {stage.value}")
        return stage

    def login(self, credentials: Credentials) -> Identity:
        identity = self.auth_gate.login(credentials)
        self.machine.on_login(identity)
        return identity

    def logout(self) -> None:
        self.orchestrator.cancel_analysis()
        self.auth_gate.logout()
        self.machine.on_logout()

    @property
    def recordings_path(self) -> Path:
        return Path(self.config.storage.base_path) / "recordings"

    async def close(self) -> None:
        await self.orchestrator.cleanup()
        await self.coach.cleanup()


def build_app(config_manager: ConfigurationManager) -> RehearsalApp:
    """Create the collaborators described by the loaded configuration."""
    config = config_manager.get_config()
    storage = config_manager.get_storage_config()

    history_store = FileHistoryStore(**storage)
    auth_gate = FileAuthGate(base_path=storage["base_path"])
    preferences = PreferenceStore(str(Path(storage["base_path"]) / config.ui.preferences_file))
    theme_manager = ThemeManager(preferences, default=Theme(config.ui.default_theme))
    coach = ChatCompletionCoach(config.scoring)

    machine = StateMachine()
    orchestrator = AnalysisOrchestrator(
        machine=machine,
        scoring_service=coach,
        history_store=history_store,
        analysis_timeout=config.performance.analysis_timeout,
    )
    orchestrator.initialize()

    return RehearsalApp(
        config=config,
        auth_gate=auth_gate,
        history_store=history_store,
        coach=coach,
        theme_manager=theme_manager,
        machine=machine,
        orchestrator=orchestrator,
    )

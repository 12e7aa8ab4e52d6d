"""CLI interface for the Rehearsal Coach."""
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme as RichTheme

from .app import RehearsalApp, build_app
from .flow.diagnostics import DiagnosticKind
from .models.base import iso_timestamp
from .models.enums import Stage, Theme
from .models.interview import AnswerSet, CategoryScore, InterviewSettings, Question, RecordedMedia, Report
from .services.auth_gate import Credentials
from .services.configuration_manager import ConfigurationManager
from .utils.exceptions import AuthenticationError, RehearsalCoachError
from .utils.logging import get_logger, setup_logging

RICH_THEMES = {
    Theme.DARK: RichTheme({"accent": "bold cyan", "muted": "grey62", "good": "green", "bad": "bold red"}),
    Theme.LIGHT: RichTheme({"accent": "bold blue", "muted": "grey35", "good": "dark_green", "bad": "red3"}),
}

EXPERIENCE_LEVELS = ["Entry Level", "Mid Level", "Senior Level", "Lead"]
INTERVIEW_TYPES = ["Behavioral", "Technical", "Situational", "Mixed"]
DIFFICULTIES = ["Easy", "Medium", "Hard"]
DURATIONS = ["15 minutes", "30 minutes", "45 minutes"]

console = Console()
logger = get_logger("cli")


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "-c", type=click.Path(exists=True, file_okay=False), help="Configuration directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool):
    """Rehearsal Coach - mock interview rehearsal with scored feedback."""
    ctx.ensure_object(dict)

    try:
        config_manager = ConfigurationManager(config or "config")
        config_manager.initialize()

        logging_kwargs = config_manager.get_logging_config()
        if verbose:
            logging_kwargs["level"] = "DEBUG"
        setup_logging(**logging_kwargs)

        ctx.obj["config_manager"] = config_manager
        ctx.obj["app"] = build_app(config_manager)
        console.push_theme(RICH_THEMES[ctx.obj["app"].theme_manager.theme])
        logger.info("CLI initialized successfully")

    except RehearsalCoachError as e:
        console.print(f"[red]Failed to initialize: {e}[/red]")
        logger.error(f"CLI initialization failed: {e}")
        sys.exit(1)


@cli.command()
@click.option("--questions", "-q", "questions_file", type=click.Path(exists=True, dir_okay=False),
              help="YAML file with a fixed question list instead of generated questions")
@click.pass_context
def start(ctx: click.Context, questions_file: Optional[str]):
    """Start an interactive rehearsal."""
    app: RehearsalApp = ctx.obj["app"]
    fixed_questions = load_questions_file(questions_file) if questions_file else None
    asyncio.run(RehearsalShell(app, fixed_questions).run())


@cli.command()
@click.option("--limit", "-n", default=10, show_default=True, help="Number of reports to show")
@click.option("--report-id", "-r", help="Show a single report in full")
@click.pass_context
def history(ctx: click.Context, limit: int, report_id: Optional[str]):
    """Show saved rehearsal reports."""
    app: RehearsalApp = ctx.obj["app"]

    if report_id:
        report = asyncio.run(app.history_store.load_report(report_id))
        if report is None:
            console.print(f"[bad]No report found with id {report_id}[/bad]")
            sys.exit(1)
        display_report(report)
        return

    reports = asyncio.run(app.history_store.list_reports())
    if not reports:
        console.print("[muted]No reports saved yet.[/muted]")
        return
    console.print(history_table(reports[:limit]))


@cli.command()
@click.pass_context
def theme(ctx: click.Context):
    """Toggle between the light and dark theme."""
    app: RehearsalApp = ctx.obj["app"]
    new_theme = app.theme_manager.toggle()
    console.push_theme(RICH_THEMES[new_theme])
    console.print(f"[accent]Theme set to {new_theme.value}[/accent]")


@cli.command()
@click.pass_context
def logout(ctx: click.Context):
    """Sign out the stored user."""
    app: RehearsalApp = ctx.obj["app"]
    identity = app.auth_gate.get_current_user()
    if identity is None:
        console.print("[muted]Nobody is signed in.[/muted]")
        return
    app.machine.initialize(identity)
    app.logout()
    console.print(f"[accent]Signed out {identity.email}[/accent]")


class RehearsalShell:
    """Interactive loop that renders the current stage and feeds user input to the state machine."""

    def __init__(self, app: RehearsalApp, fixed_questions: Optional[List[Question]] = None):
        self.app = app
        self.machine = app.machine
        self.fixed_questions = fixed_questions
        self.draft_answers: AnswerSet = {}
        self._seen_diagnostics = 0
        self._handlers = {
            Stage.LANDING: self.landing,
            Stage.LOGIN: self.login,
            Stage.DASHBOARD: self.dashboard,
            Stage.PROFILE: self.profile,
            Stage.SETUP: self.setup,
            Stage.SESSION: self.session,
            Stage.REVIEW: self.review,
            Stage.REPORT: self.report,
        }

    async def run(self) -> None:
        self.app.boot()
        try:
            while True:
                self._show_new_diagnostics()
                handler = self._handlers[self.machine.stage]
                if not await handler():
                    break
        finally:
            await self.app.close()
        console.print("[muted]Goodbye.[/muted]")

    def _show_new_diagnostics(self) -> None:
        for diagnostic in self.machine.diagnostics[self._seen_diagnostics:]:
            style = "bad" if diagnostic.kind in (DiagnosticKind.SCORING_FAILURE,
                                                 DiagnosticKind.PERSISTENCE_FAILURE) else "muted"
            console.print(f"[{style}]{diagnostic.message}[/{style}]")
        self._seen_diagnostics = len(self.machine.diagnostics)

    # =========================================================================
    # STAGES
    # =========================================================================

    async def landing(self) -> bool:
        console.print(Panel.fit(
            "[accent]Rehearsal Coach[/accent]\n"
            "Practice interviews, answer generated questions and get scored feedback.",
            border_style="accent",
        ))
        choice = prompt_choice("[s]ign in or [q]uit", ["s", "q"])
        if choice == "q":
            return False
        self.machine.navigate(Stage.LOGIN)
        return True

    async def login(self) -> bool:
        email = click.prompt("E-mail (leave empty to go back)", default="", show_default=False).strip()
        if not email:
            self.machine.navigate(Stage.LANDING)
            return True
        name = click.prompt("Display name", default="", show_default=False)
        try:
            self.app.login(Credentials(email=email, name=name or None))
        except AuthenticationError as e:
            console.print(f"[bad]{e.message}[/bad]")
        return True

    async def dashboard(self) -> bool:
        identity = self.machine.identity
        console.print(f"\n[accent]Welcome back, {identity.name}![/accent]")

        reports = await self.app.history_store.list_reports()
        if reports:
            console.print(history_table(reports[:5], title="Recent rehearsals"))
        else:
            console.print("[muted]No rehearsals yet. Start your first one.[/muted]")

        choice = prompt_choice("[n]ew rehearsal, [p]rofile, [t]heme, [l]ogout or [q]uit", ["n", "p", "t", "l", "q"])
        if choice == "n":
            self.machine.navigate(Stage.SETUP)
        elif choice == "p":
            self.machine.navigate(Stage.PROFILE)
        elif choice == "t":
            console.push_theme(RICH_THEMES[self.app.theme_manager.toggle()])
        elif choice == "l":
            self.app.logout()
        else:
            return False
        return True

    async def profile(self) -> bool:
        identity = self.machine.identity
        body = f"Name:  {identity.name}\nEmail: {identity.email}"
        if identity.avatar_url:
            body += f"\nAvatar: {identity.avatar_url}"
        console.print(Panel(body, title="Profile", border_style="accent"))

        if prompt_choice("[b]ack or [l]ogout", ["b", "l"]) == "l":
            self.app.logout()
        else:
            self.machine.navigate(Stage.DASHBOARD)
        return True

    async def setup(self) -> bool:
        console.print(Panel.fit("Configure your rehearsal", border_style="accent"))
        try:
            settings = InterviewSettings(
                job_role=click.prompt("Job role", default="Software Engineer"),
                experience=click.prompt("Experience", type=click.Choice(EXPERIENCE_LEVELS), default="Mid Level"),
                interview_type=click.prompt("Interview type", type=click.Choice(INTERVIEW_TYPES), default="Mixed"),
                difficulty=click.prompt("Difficulty", type=click.Choice(DIFFICULTIES), default="Medium"),
                duration=click.prompt("Duration", type=click.Choice(DURATIONS), default="30 minutes"),
            )
        except ValidationError as e:
            console.print(f"[bad]Invalid settings: {e.errors()[0]['msg']}[/bad]")
            return True

        questions = self.fixed_questions
        if questions is None:
            count = self.app.config.performance.question_count
            try:
                with console.status("[accent]Generating questions...[/accent]", spinner="dots"):
                    questions = await self.app.coach.generate_questions(settings, count=count)
            except RehearsalCoachError as e:
                logger.error(f"Question generation failed: {e}")
                console.print(f"[bad]Could not generate questions: {e.message}[/bad]")
                if prompt_choice("[r]etry or [d]ashboard", ["r", "d"]) == "d":
                    self.machine.navigate(Stage.DASHBOARD)
                return True

        self.draft_answers = {}
        self.machine.complete_setup(settings, questions)
        return True

    async def session(self) -> bool:
        questions = self.machine.context.questions
        console.print(f"\n[accent]Rehearsal started: {len(questions)} questions.[/accent] "
                      "[muted]Answer out loud as you type; an empty line ends the answer.[/muted]")

        transcript = []
        for index, question in enumerate(questions):
            console.print(Panel(question.text, title=f"Question {index + 1} - {question.category.value}",
                                border_style="accent"))
            answer = read_multiline()
            self.draft_answers[index] = answer
            transcript.append(f"Q{index + 1}: {question.text}\nA{index + 1}: {answer}\n")

        media = await asyncio.to_thread(write_transcript, self.app.recordings_path, "\n".join(transcript))
        self.machine.complete_session(media)
        return True

    async def review(self) -> bool:
        if self.app.orchestrator.last_answers is not None and not self.draft_answers:
            self.draft_answers = dict(self.app.orchestrator.last_answers)

        table = Table(title="Review your answers")
        table.add_column("#", justify="right", style="muted")
        table.add_column("Question")
        table.add_column("Answer")
        for index, question in enumerate(self.machine.context.questions):
            answer = self.draft_answers.get(index, "")
            table.add_row(str(index + 1), question.text, answer or "[muted](no answer)[/muted]")
        console.print(table)

        choice = prompt_choice("[a]nalyze, [e]dit an answer or [d]ashboard", ["a", "e", "d"])
        if choice == "d":
            self.machine.navigate(Stage.DASHBOARD)
        elif choice == "e":
            number = click.prompt("Question number", type=click.IntRange(1, len(self.machine.context.questions)))
            self.draft_answers[number - 1] = read_multiline()
        else:
            await self._analyze()
        return True

    async def _analyze(self) -> None:
        with console.status("[accent]Analyzing your rehearsal...[/accent]", spinner="dots"):
            report = await self.app.orchestrator.start_analysis(self.draft_answers)
        if report is not None:
            self.draft_answers = {}

    async def report(self) -> bool:
        display_report(self.machine.context.report)
        if prompt_choice("[d]ashboard or [n]ew rehearsal", ["d", "n"]) == "n":
            self.machine.navigate(Stage.SETUP)
        else:
            self.machine.navigate(Stage.DASHBOARD)
        return True


# =========================================================================
# HELPERS
# =========================================================================

def prompt_choice(text: str, choices: List[str]) -> str:
    return click.prompt(text, type=click.Choice(choices, case_sensitive=False), show_choices=False).lower()


def read_multiline() -> str:
    lines = []
    while True:
        line = input("> ")
        if not line.strip():
            break
        lines.append(line)
    return "\n".join(lines)


def write_transcript(directory: Path, content: str) -> RecordedMedia:
    """Store the typed answers as the recording of this rehearsal."""
    directory.mkdir(parents=True, exist_ok=True)
    name = iso_timestamp().replace(":", "-")
    path = directory / f"{name}.txt"
    path.write_text(content, encoding="utf-8")
    return RecordedMedia(path=path, content_type="text/plain", size_bytes=path.stat().st_size)


def load_questions_file(file_path: str) -> List[Question]:
    """Load a question list from YAML: a list of {question, type} mappings."""
    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("questions", [])
    try:
        questions = [Question.model_validate(item) for item in data]
    except ValidationError as e:
        raise click.BadParameter(f"Invalid question in {file_path}: {e.errors()[0]['msg']}")
    if not questions:
        raise click.BadParameter(f"No questions found in {file_path}")
    return questions


def score_style(score: float) -> str:
    if score >= 75:
        return "good"
    if score >= 50:
        return "accent"
    return "bad"


def history_table(reports: List[Report], title: str = "Rehearsal history") -> Table:
    table = Table(title=title)
    table.add_column("Date", style="muted")
    table.add_column("Overall", justify="right")
    table.add_column("Report ID", style="muted")
    for report in reports:
        style = score_style(report.overall_score)
        table.add_row(report.date, f"[{style}]{report.overall_score:.0f}[/{style}]", report.id)
    return table


def display_report(report: Report) -> None:
    """Render a report with per-category scores and feedback."""
    style = score_style(report.overall_score)
    console.print(Panel(
        f"[{style}]Overall score: {report.overall_score:.0f}/100[/{style}]\n[muted]{report.date}[/muted]",
        title="Rehearsal report",
        border_style="accent",
    ))

    categories: Dict[str, CategoryScore] = {
        "Clarity of communication": report.clarity_of_communication,
        "Technical proficiency": report.technical_proficiency,
        "Behavioral competency": report.behavioral_competency,
        "Confidence and demeanor": report.confidence_and_demeanor,
    }
    table = Table(show_header=True)
    table.add_column("Category")
    table.add_column("Score", justify="right")
    table.add_column("Feedback")
    for label, category in categories.items():
        category_style = score_style(category.score)
        table.add_row(label, f"[{category_style}]{category.score:.0f}[/{category_style}]", category.feedback)
    console.print(table)

    if report.strengths:
        console.print(Panel("\n".join(f"- {s}" for s in report.strengths), title="Strengths", border_style="good"))
    if report.areas_for_improvement:
        console.print(Panel("\n".join(f"- {a}" for a in report.areas_for_improvement),
                            title="Areas for improvement", border_style="bad"))


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user. Goodbye![/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        logger.error(f"Unexpected CLI error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

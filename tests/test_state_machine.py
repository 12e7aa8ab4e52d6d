"""Tests for the stage state machine, session context and validator."""

import pytest

from rehearsal_coach.flow.diagnostics import DiagnosticKind
from rehearsal_coach.flow.session_context import SessionContext
from rehearsal_coach.flow.state_machine import StateMachine
from rehearsal_coach.flow.validator import validate_stage
from rehearsal_coach.models.enums import Stage
from rehearsal_coach.models.interview import Report
from rehearsal_coach.utils.exceptions import SessionError
from rehearsal_coach.utils.logging import get_correlation_id

from conftest import make_report_data


def _report() -> Report:
    return Report.from_data(make_report_data(), report_id="r1", date="2026-01-01T00:00:00.000Z")


class TestBoot:
    def test_boot_without_identity_lands(self):
        machine = StateMachine()
        assert machine.initialize(None) == Stage.LANDING
        assert not machine.is_authenticated
        assert machine.context.is_empty

    def test_boot_with_identity_opens_dashboard(self, identity):
        machine = StateMachine()
        assert machine.initialize(identity) == Stage.DASHBOARD
        assert machine.identity == identity
        assert get_correlation_id() == identity.email

    def test_login_moves_to_dashboard(self, identity):
        machine = StateMachine()
        machine.initialize(None)
        machine.navigate(Stage.LOGIN)
        assert machine.stage == Stage.LOGIN

        assert machine.on_login(identity) == Stage.DASHBOARD

    def test_unauthenticated_stage_redirects_to_landing(self):
        machine = StateMachine()
        machine.initialize(None)

        assert machine.navigate(Stage.DASHBOARD) == Stage.LANDING
        assert machine.diagnostics[-1].kind == DiagnosticKind.INVALID_STATE_ENTRY


class TestUserFlow:
    def test_setup_session_review(self, machine, settings, questions, media):
        """Dashboard through setup and session lands on review with the context filled."""
        assert machine.navigate(Stage.SETUP) == Stage.SETUP
        assert machine.complete_setup(settings, questions) == Stage.SESSION
        assert machine.context.settings == settings
        assert machine.context.questions == questions

        assert machine.complete_session(media) == Stage.REVIEW
        assert machine.context.recorded_media == media
        assert machine.diagnostics == []

    def test_entering_setup_wipes_context(self, reviewing_machine):
        reviewing_machine.context.report = _report()

        reviewing_machine.navigate(Stage.SETUP)

        assert reviewing_machine.stage == Stage.SETUP
        assert reviewing_machine.context.is_empty

    def test_leaving_setup_keeps_nothing_from_previous_attempt(self, reviewing_machine, settings, questions):
        reviewing_machine.navigate(Stage.DASHBOARD)
        reviewing_machine.navigate(Stage.SETUP)
        reviewing_machine.complete_setup(settings, questions[:1])

        assert reviewing_machine.context.recorded_media is None
        assert reviewing_machine.context.questions == questions[:1]

    def test_setup_without_questions_is_refused(self, machine, settings):
        machine.navigate(Stage.SETUP)

        assert machine.complete_setup(settings, []) == Stage.SETUP
        assert machine.context.settings is None
        assert machine.diagnostics[-1].kind == DiagnosticKind.REJECTED_TRANSITION

    def test_navigate_to_analyzing_is_refused(self, reviewing_machine):
        assert reviewing_machine.navigate(Stage.ANALYZING) == Stage.REVIEW
        assert reviewing_machine.diagnostics[-1].kind == DiagnosticKind.REJECTED_TRANSITION

    def test_profile_round_trip(self, machine):
        assert machine.navigate(Stage.PROFILE) == Stage.PROFILE
        assert machine.navigate(Stage.DASHBOARD) == Stage.DASHBOARD


class TestSelfHealing:
    def test_review_without_recording_redirects_to_dashboard(self, machine, settings, questions):
        """A review entry without a recording ends on dashboard with one diagnostic."""
        machine.navigate(Stage.SETUP)
        machine.complete_setup(settings, questions)

        assert machine.navigate(Stage.REVIEW) == Stage.DASHBOARD
        assert len(machine.diagnostics) == 1
        diagnostic = machine.diagnostics[0]
        assert diagnostic.kind == DiagnosticKind.INVALID_STATE_ENTRY
        assert diagnostic.from_stage == Stage.REVIEW
        assert diagnostic.to_stage == Stage.DASHBOARD

    def test_report_without_report_redirects_to_dashboard(self, reviewing_machine):
        assert reviewing_machine.navigate(Stage.REPORT) == Stage.DASHBOARD
        assert reviewing_machine.diagnostics[-1].to_stage == Stage.DASHBOARD

    def test_report_without_recording_redirects_to_dashboard(self, machine):
        machine.context.report = _report()

        assert machine.navigate(Stage.REPORT) == Stage.DASHBOARD

    def test_stage_setter_runs_validator(self, machine):
        machine.stage = Stage.REVIEW
        assert machine.stage == Stage.DASHBOARD

    def test_stage_setter_into_setup_wipes_context(self, reviewing_machine):
        reviewing_machine.stage = Stage.SETUP

        assert reviewing_machine.stage == Stage.SETUP
        assert reviewing_machine.context.is_empty

    def test_stage_setter_cannot_enter_analyzing(self, machine):
        machine.stage = Stage.ANALYZING

        assert machine.stage == Stage.DASHBOARD
        assert machine.diagnostics[-1].kind == DiagnosticKind.REJECTED_TRANSITION
        assert machine.navigate(Stage.PROFILE) == Stage.PROFILE

    def test_redirect_is_logged(self, machine, caplog):
        with caplog.at_level("WARNING", logger="flow.state_machine"):
            machine.navigate(Stage.REVIEW)

        assert "Entered review without a recording" in caplog.text

    def test_listeners_see_only_settled_stage(self, machine):
        seen = []
        machine.add_stage_listener(lambda old, new: seen.append((old, new)))

        machine.navigate(Stage.REVIEW)
        machine.navigate(Stage.PROFILE)

        assert seen == [(Stage.DASHBOARD, Stage.PROFILE)]


class TestAnalysisTransitions:
    def test_begin_analysis_requires_settings_and_questions(self, machine):
        with pytest.raises(SessionError):
            machine.begin_analysis()
        assert machine.stage == Stage.DASHBOARD

    def test_user_moves_refused_while_analyzing(self, reviewing_machine):
        reviewing_machine.begin_analysis()

        assert reviewing_machine.navigate(Stage.DASHBOARD) == Stage.ANALYZING
        assert reviewing_machine.navigate(Stage.SETUP) == Stage.ANALYZING
        assert reviewing_machine.context.recorded_media is not None
        assert reviewing_machine.diagnostics[-1].kind == DiagnosticKind.REJECTED_TRANSITION

    def test_finish_analysis_shows_report(self, reviewing_machine):
        reviewing_machine.begin_analysis()
        report = _report()

        assert reviewing_machine.finish_analysis(report) == Stage.REPORT
        assert reviewing_machine.context.report == report

    def test_abort_analysis_returns_to_review(self, reviewing_machine):
        reviewing_machine.begin_analysis()

        assert reviewing_machine.abort_analysis() == Stage.REVIEW
        assert reviewing_machine.context.ready_for_analysis

    def test_abort_outside_analyzing_keeps_stage(self, reviewing_machine):
        reviewing_machine.navigate(Stage.DASHBOARD)
        diagnostics = list(reviewing_machine.diagnostics)

        assert reviewing_machine.abort_analysis() == Stage.DASHBOARD
        assert reviewing_machine.diagnostics == diagnostics

    def test_abort_after_logout_stays_on_landing(self, reviewing_machine):
        reviewing_machine.begin_analysis()
        reviewing_machine.on_logout()

        assert reviewing_machine.abort_analysis() == Stage.LANDING
        assert not any(d.kind == DiagnosticKind.INVALID_STATE_ENTRY for d in reviewing_machine.diagnostics)

    def test_finish_requires_running_analysis(self, reviewing_machine):
        with pytest.raises(SessionError):
            reviewing_machine.finish_analysis(_report())
        assert reviewing_machine.context.report is None


class TestLogout:
    def test_logout_resets_everything(self, reviewing_machine):
        reviewing_machine.on_logout()

        assert reviewing_machine.stage == Stage.LANDING
        assert reviewing_machine.identity is None
        assert reviewing_machine.context.is_empty
        assert get_correlation_id() == ""

    def test_logout_allowed_while_analyzing(self, reviewing_machine):
        reviewing_machine.begin_analysis()

        assert reviewing_machine.on_logout() == Stage.LANDING


class TestSessionContext:
    def test_reset_is_idempotent(self, settings, questions, media):
        context = SessionContext(settings=settings, questions=list(questions), recorded_media=media)

        context.reset()
        assert context.is_empty
        context.reset()
        assert context.is_empty

    def test_ready_for_analysis(self, settings, questions):
        assert not SessionContext().ready_for_analysis
        assert not SessionContext(settings=settings).ready_for_analysis
        assert SessionContext(settings=settings, questions=list(questions)).ready_for_analysis


class TestValidator:
    def test_consistent_stages_pass(self, identity):
        for stage in (Stage.DASHBOARD, Stage.PROFILE, Stage.SETUP, Stage.SESSION):
            assert validate_stage(stage, identity, SessionContext()) is None

    def test_public_stages_need_no_identity(self):
        assert validate_stage(Stage.LANDING, None, SessionContext()) is None
        assert validate_stage(Stage.LOGIN, None, SessionContext()) is None

    def test_identity_checked_before_context(self):
        diagnostic = validate_stage(Stage.REVIEW, None, SessionContext())
        assert diagnostic.to_stage == Stage.LANDING

    def test_analyzing_without_prerequisites_redirects_to_setup(self, identity):
        diagnostic = validate_stage(Stage.ANALYZING, identity, SessionContext())

        assert diagnostic.kind == DiagnosticKind.MISSING_PREREQUISITE
        assert diagnostic.to_stage == Stage.SETUP

    def test_analyzing_with_settings_and_questions_passes(self, identity, settings, questions):
        context = SessionContext(settings=settings, questions=list(questions))

        assert validate_stage(Stage.ANALYZING, identity, context) is None

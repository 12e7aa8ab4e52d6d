"""Tests for the file-backed auth gate."""

import pytest

from rehearsal_coach.services.auth_gate import Credentials, FileAuthGate
from rehearsal_coach.utils.exceptions import AuthenticationError


@pytest.fixture
def gate(tmp_path) -> FileAuthGate:
    return FileAuthGate(base_path=str(tmp_path))


class TestFileAuthGate:
    def test_nobody_signed_in_initially(self, gate):
        assert gate.get_current_user() is None

    def test_login_persists_identity(self, gate, tmp_path):
        identity = gate.login(Credentials(email="Grace.Hopper@Example.com", name="Grace Hopper"))

        assert identity.email == "grace.hopper@example.com"
        assert FileAuthGate(base_path=str(tmp_path)).get_current_user() == identity

    def test_name_defaults_to_email_local_part(self, gate):
        identity = gate.login(Credentials(email="grace.hopper@example.com"))
        assert identity.name == "Grace Hopper"

    def test_invalid_email_is_rejected(self, gate):
        with pytest.raises(AuthenticationError):
            gate.login(Credentials(email="not-an-email"))
        assert gate.get_current_user() is None

    def test_logout_forgets_identity(self, gate):
        gate.login(Credentials(email="ada@example.com"))

        gate.logout()

        assert gate.get_current_user() is None

    def test_corrupt_identity_file_is_discarded(self, gate):
        gate.user_file.write_text("{broken", encoding="utf-8")

        assert gate.get_current_user() is None
        assert not gate.user_file.exists()

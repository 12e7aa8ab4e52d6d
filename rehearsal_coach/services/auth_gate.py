"""Identity resolution for the rehearsal shell."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models.user import Identity
from ..utils.exceptions import AuthenticationError, StorageError
from ..utils.logging import get_logger


@dataclass
class Credentials:
    """Login form input."""

    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthGate:
    """Abstract interface for identity resolution."""

    def get_current_user(self) -> Optional[Identity]:
        raise NotImplementedError

    def login(self, credentials: Credentials) -> Identity:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError


class FileAuthGate(AuthGate):
    """Keeps the signed-in identity in a JSON file so it survives restarts."""

    def __init__(self, base_path: str = "data", file_name: str = "current_user.json"):
        self.user_file = Path(base_path) / file_name
        self.logger = get_logger("auth_gate")

    def get_current_user(self) -> Optional[Identity]:
        """Return the stored identity, or None when nobody is signed in.

        A corrupt file is treated as signed out and removed.
        """
        if not self.user_file.exists():
            return None
        try:
            return Identity.model_validate_json(self.user_file.read_text(encoding="utf-8"))
        except (ValidationError, OSError) as e:
            self.logger.warning(f"Discarding unreadable identity file {self.user_file}: {e}")
            self.user_file.unlink(missing_ok=True)
            return None

    def login(self, credentials: Credentials) -> Identity:
        email = (credentials.email or "").strip()
        name = (credentials.name or "").strip() or email.partition("@")[0].replace(".", " ").title()
        try:
            identity = Identity(name=name, email=email, avatar_url=credentials.avatar_url)
        except ValidationError:
            raise AuthenticationError(f"Invalid e-mail address: {email!r}", auth_method="email")

        try:
            self.user_file.parent.mkdir(parents=True, exist_ok=True)
            self.user_file.write_text(json.dumps(identity.model_dump(by_alias=True)), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to persist identity: {e}", file_path=str(self.user_file))

        self.logger.info(f"Signed in {identity.email}")
        return identity

    def logout(self) -> None:
        self.user_file.unlink(missing_ok=True)
        self.logger.info("Signed out")

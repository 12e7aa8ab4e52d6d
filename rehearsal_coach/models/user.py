"""User identity model for the Rehearsal Coach."""

from typing import Optional

from pydantic import Field, field_validator

from .base import WireModel


class Identity(WireModel):
    """Authenticated user as resolved by the auth gate."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="E-mail address")
    avatar_url: Optional[str] = Field(default=None, description="Avatar reference")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
            raise ValueError(f"Invalid e-mail address: {v!r}")
        return v

"""Base model classes for the Rehearsal Coach."""

from datetime import datetime, timezone

from pydantic import BaseModel as PydanticBaseModel, ConfigDict


def to_camel(name: str) -> str:
    """Convert a snake_case field name to the camelCase wire name."""
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def iso_timestamp(moment: datetime = None) -> str:
    """Format a moment as an ISO-8601 UTC string with millisecond precision."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BaseModel(PydanticBaseModel):
    """Base model with common functionality."""

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        use_enum_values=False,
    )


class WireModel(BaseModel):
    """Model exchanged with the scoring provider and history files in camelCase."""

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> str:
        """Serialize with camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=2)

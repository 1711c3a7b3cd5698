"""Shared base model for persisted records."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


class RecordModel(BaseModel):
    """Pydantic model serialized with camelCase keys.

    Attributes are snake_case in Python; JSON payloads use camelCase and
    either spelling is accepted when validating.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Serialize to a JSON string."""
        return self.model_dump_json(by_alias=True)

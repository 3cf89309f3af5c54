"""Shared pydantic base for records exchanged with other tooling."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire.

    Records written to disk and job messages sent to workers are read by
    report viewers and worker scripts that expect camelCase keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        """Serialise using wire aliases, omitting unset optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

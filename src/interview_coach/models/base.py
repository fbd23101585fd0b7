"""Shared model configuration."""

import time

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names.

    Stored profiles and history records are read by other clients, so the
    JSON keys stay camelCase while Python attributes stay snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, omitting unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)

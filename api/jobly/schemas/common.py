from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Postgres integer columns are int4.
INT4_MAX = 2**31 - 1


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")


class PatchRequest(CamelRequest):
    """Every field optional; only fields the client actually sent are updated."""

    def to_update(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)

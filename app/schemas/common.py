"""Shared schema building blocks."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Settings documents are camelCase on the wire and in storage.

    Update bodies are partial: dump them with ``to_update()`` so unset
    fields are left untouched by the merge.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_update(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str] = []

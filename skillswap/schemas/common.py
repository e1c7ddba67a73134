"""Shared schema base: snake_case in Python, camelCase on the wire."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserSummary(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str


class SuccessResponse(CamelModel):
    success: bool = True

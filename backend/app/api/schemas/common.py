"""Shared schema base classes."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys and accepts either case on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorResponse(CamelModel):
    error: str
    user_message: str
    suggestions: List[str] = Field(default_factory=list)
    is_recoverable: bool = True


class DeleteResponse(CamelModel):
    id: str
    deleted: bool = True

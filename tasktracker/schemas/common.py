"""Shared schema base classes and the response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_serializer
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class ApiModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[DataT]):
    """Uniform response wrapper for every endpoint.

    Empty top-level members are left out of the serialized body; null values
    inside ``data`` are kept.
    """

    success: bool = True
    message: str | None = None
    data: DataT | None = None
    errors: list[str] | None = None
    count: int | None = None

    @model_serializer(mode="wrap")
    def _drop_empty_members(self, handler):
        body = handler(self)
        return {key: value for key, value in body.items() if value is not None}


class MessageResponse(BaseModel):
    """Envelope without a payload."""

    success: bool = True
    message: str

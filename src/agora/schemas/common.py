"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for resource schemas: read from ORM rows, rendered in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class _CompactModel(BaseModel):
    """Model whose unset (None) top-level keys are left out of the JSON."""

    @model_serializer(mode="wrap")
    def _drop_none(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class PageRef(BaseModel):
    """Descriptor of an adjacent page."""

    page: int
    limit: int


class Pagination(_CompactModel):
    """Links to the neighbouring pages of a listing, when they exist."""

    next: PageRef | None = None
    prev: PageRef | None = None


class ApiResponse(_CompactModel, Generic[T]):
    """Envelope wrapping every API response."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    count: int | None = None
    pagination: Pagination | None = None


def list_response(
    items: list[Any],
    *,
    pagination: dict[str, dict[str, int]] | None = None,
) -> dict[str, Any]:
    """Keyword arguments for a listing ``ApiResponse``."""
    payload: dict[str, Any] = {"data": items, "count": len(items)}
    if pagination is not None:
        payload["pagination"] = Pagination.model_validate(pagination)
    return payload


def api_field_names(model: type[BaseModel]) -> list[str]:
    """Return the camelCase field names a resource schema renders."""
    return [info.alias or name for name, info in model.model_fields.items()]

"""Parameterized filtering, sorting and pagination for list endpoints.

Query-string filters such as ``memberCount[gte]=10`` or ``author[in]=1,2``
are translated into SQLAlchemy comparison expressions against a whitelist of
columns. Values are coerced to the column's Python type and always bound as
parameters; nothing from the query string is spliced into SQL text.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from agora.core.errors import ValidationError
from agora.core.settings import settings

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})

FILTER_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_PARAM_PATTERN = re.compile(r"^(?P<field>[A-Za-z][A-Za-z0-9_]*)(?:\[(?P<op>[a-z]+)\])?$")

Columns = Mapping[str, InstrumentedAttribute[Any]]


def _coerce(column: InstrumentedAttribute[Any], raw: str, field: str) -> Any:
    python_type = column.type.python_type
    try:
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        return python_type(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid value for '{field}': {raw!r}") from exc


def build_filters(params: Iterable[tuple[str, str]], columns: Columns) -> list[Any]:
    """Translate query parameters into SQL filter expressions.

    Args:
        params: Raw ``(key, value)`` pairs from the query string.
        columns: Filterable API field names mapped to ORM columns.

    Returns:
        Expressions suitable for ``Select.where``.

    Raises:
        ValidationError: Unknown field or operator, or an uncoercible value.
    """
    clauses: list[Any] = []
    for key, raw in params:
        if key in RESERVED_PARAMS:
            continue
        match = _PARAM_PATTERN.match(key)
        if match is None or match.group("field") not in columns:
            raise ValidationError(f"Unknown filter parameter '{key}'")
        field = match.group("field")
        op = match.group("op")
        column = columns[field]

        if op is None:
            clauses.append(column == _coerce(column, raw, field))
        elif op == "in":
            values = [_coerce(column, part.strip(), field) for part in raw.split(",") if part.strip()]
            if not values:
                raise ValidationError(f"Filter '{key}' needs at least one value")
            clauses.append(column.in_(values))
        elif op in FILTER_OPERATORS:
            clauses.append(FILTER_OPERATORS[op](column, _coerce(column, raw, field)))
        else:
            raise ValidationError(f"Unknown filter operator '{op}'")
    return clauses


def build_ordering(sort: str | None, columns: Columns, default: Iterable[Any]) -> list[Any]:
    """Translate ``sort=-voteScore,createdAt`` into ORDER BY expressions."""
    if not sort:
        return list(default)
    ordering: list[Any] = []
    for token in sort.split(","):
        token = token.strip()
        if not token:
            continue
        descending = token.startswith("-")
        field = token.lstrip("-+")
        column = columns.get(field)
        if column is None:
            raise ValidationError(f"Cannot sort by '{field}'")
        ordering.append(column.desc() if descending else column.asc())
    return ordering or list(default)


def parse_select(select_param: str | None, allowed: Iterable[str]) -> list[str] | None:
    """Return the requested projection fields, or None for the full item."""
    if not select_param:
        return None
    allowed_fields = set(allowed)
    fields = [field.strip() for field in select_param.split(",") if field.strip()]
    unknown = [field for field in fields if field not in allowed_fields]
    if unknown:
        raise ValidationError(f"Cannot select field(s): {', '.join(unknown)}")
    return fields


def project(item: Mapping[str, Any], fields: list[str] | None) -> dict[str, Any]:
    """Keep only ``fields`` (and always ``id``) of a serialized item."""
    if fields is None:
        return dict(item)
    keep = {"id", *fields}
    return {key: value for key, value in item.items() if key in keep}


@dataclass(frozen=True)
class PageRequest:
    """1-based page number and page size."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(cls, page: int | None, limit: int | None) -> PageRequest:
        page = 1 if page is None else page
        limit = settings.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationError("page must be a positive integer")
        if limit < 1 or limit > settings.max_page_size:
            raise ValidationError(f"limit must be between 1 and {settings.max_page_size}")
        return cls(page=page, limit=limit)

    def pagination(self, total: int) -> dict[str, dict[str, int]]:
        """Return ``next``/``prev`` page descriptors for a result of ``total`` rows."""
        result: dict[str, dict[str, int]] = {}
        if self.page * self.limit < total:
            result["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.offset > 0:
            result["prev"] = {"page": self.page - 1, "limit": self.limit}
        return result


def paginate(
    db: Session,
    stmt: Select[Any],
    page: PageRequest,
    options: Iterable[Any] = (),
) -> tuple[list[Any], int]:
    """Run ``stmt`` for one page and return ``(items, total_matching_rows)``.

    Loader ``options`` are applied to the page query only, not to the count.
    """
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    page_stmt = stmt.options(*options).offset(page.offset).limit(page.limit)
    items = list(db.scalars(page_stmt))
    return items, total

"""Filtering, ordering and pagination over in-memory records.

Supports the subset of ``where`` clauses the entity operations build:

- ``{"name": "Customer"}``: equality on a record field
- ``{"name": {"in": [...]}}``: operators equals, in, not, gt, gte, lt, lte, contains
- ``{"app": {"id": "a1"}}``: relation by id, matched against ``appId``
- ``{"AND": [...]}``, ``{"OR": [...]}``, ``{"NOT": {...}}``: combinators
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from entityforge.core.errors import InvalidArgumentsError

T = TypeVar("T")

OPERATORS = {"equals", "in", "not", "gt", "gte", "lt", "lte", "contains"}


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    return [value]


def _match_value(value: Any, condition: Any) -> bool:
    if not isinstance(condition, Mapping):
        return value == condition

    unknown = set(condition) - OPERATORS
    if unknown:
        raise InvalidArgumentsError(f"Unsupported filter operators: {sorted(unknown)}")

    for op, operand in condition.items():
        if op == "equals" and value != operand:
            return False
        if op == "in" and value not in _as_list(operand):
            return False
        if op == "not" and _match_value(value, operand):
            return False
        if op == "contains" and not (isinstance(value, str) and str(operand) in value):
            return False
        if op in ("gt", "gte", "lt", "lte"):
            if value is None:
                return False
            try:
                if op == "gt" and not value > operand:
                    return False
                if op == "gte" and not value >= operand:
                    return False
                if op == "lt" and not value < operand:
                    return False
                if op == "lte" and not value <= operand:
                    return False
            except TypeError:
                raise InvalidArgumentsError(f"Cannot compare {value!r} with {operand!r}")
    return True


def matches(record: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    """Return True if ``record`` (a camelCase dict) satisfies ``where``."""
    if where is None:
        return True
    if not isinstance(where, Mapping):
        raise InvalidArgumentsError("Filter must be an object")

    for key, condition in where.items():
        if key == "AND":
            if not all(matches(record, c) for c in _as_list(condition)):
                return False
        elif key == "OR":
            if not any(matches(record, c) for c in _as_list(condition)):
                return False
        elif key == "NOT":
            if any(matches(record, c) for c in _as_list(condition)):
                return False
        elif key in record:
            if not _match_value(record[key], condition):
                return False
        elif isinstance(condition, Mapping) and f"{key}Id" in record:
            if set(condition) - {"id"}:
                raise InvalidArgumentsError(f"Only 'id' can be filtered on relation '{key}'")
            if "id" in condition and not _match_value(record[f"{key}Id"], condition["id"]):
                return False
        else:
            raise InvalidArgumentsError(f"Unknown filter field '{key}'")

    return True


def _order_specs(order_by: Any) -> list[tuple[str, bool]]:
    specs = []
    for clause in _as_list(order_by or []):
        if not isinstance(clause, Mapping):
            raise InvalidArgumentsError("orderBy entries must be objects")
        for field_name, direction in clause.items():
            if direction not in ("asc", "desc"):
                raise InvalidArgumentsError(f"Invalid sort direction '{direction}'")
            specs.append((field_name, direction == "desc"))
    return specs


def _page_bound(args: Mapping[str, Any], key: str) -> int | None:
    value = args.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentsError(f"'{key}' must be a non-negative integer")
    return value


def apply_query(
    records: Iterable[T],
    args: Mapping[str, Any] | None,
    to_dict: Callable[[T], dict[str, Any]],
) -> list[T]:
    """Filter, order and paginate records using ``where``/``orderBy``/``skip``/``take``.

    Raises:
        InvalidArgumentsError: If any of the query arguments is malformed
    """
    args = args or {}
    where = args.get("where")
    order_specs = _order_specs(args.get("orderBy"))
    skip = _page_bound(args, "skip") or 0
    take = _page_bound(args, "take")

    rows = [(record, to_dict(record)) for record in records]
    rows = [(record, row) for record, row in rows if matches(row, where)]

    # Stable sort, least significant key first
    for field_name, descending in reversed(order_specs):
        try:
            rows.sort(
                key=lambda item: (item[1].get(field_name) is None, item[1].get(field_name)),
                reverse=descending,
            )
        except TypeError:
            raise InvalidArgumentsError(f"Cannot order by '{field_name}'")

    result = [record for record, _ in rows]
    if take is not None:
        return result[skip:skip + take]
    return result[skip:]

"""Injection-safe SQL fragments for partial updates and company filters.

Values are always bound through asyncpg ``$n`` placeholders. Column names are
interpolated into the fragment, so callers must only pass field names drawn
from a closed set (the request schemas in ``jobly.schemas`` guarantee this).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jobly.services.errors import EmptyUpdateError, InvalidCriteriaError

COMPANY_COLUMNS: dict[str, str] = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

JOB_COLUMNS: dict[str, str] = {
    "companyHandle": "company_handle",
}

COMPANY_FILTER_KEYS = ("name", "minEmployees", "maxEmployees")


def sql_for_partial_update(
    data_to_update: Mapping[str, Any],
    js_to_sql: Mapping[str, str],
) -> tuple[str, list[Any]]:
    """Build the SET list of an UPDATE statement.

    >>> sql_for_partial_update({"numEmployees": 5, "name": "Acme"}, COMPANY_COLUMNS)
    ('"num_employees"=$1, "name"=$2', [5, 'Acme'])

    Placeholder ``$n`` always refers to ``values[n - 1]``; the caller appends
    its own key value as ``$len(values) + 1``.
    """
    if not data_to_update:
        raise EmptyUpdateError("no data to update")

    cols: list[str] = []
    values: list[Any] = []
    for field, value in data_to_update.items():
        values.append(value)
        cols.append(f'"{js_to_sql.get(field, field)}"=${len(values)}')

    return ", ".join(cols), values


def sql_for_company_filter(criteria: Mapping[str, Any]) -> tuple[str, list[Any]]:
    """Build the WHERE predicate for a company search.

    Recognizes ``name`` (case-insensitive substring), ``minEmployees`` and
    ``maxEmployees`` (inclusive). Other keys are ignored. Returns an empty
    predicate when nothing applies; the caller must then omit WHERE.
    """
    min_employees = criteria.get("minEmployees")
    max_employees = criteria.get("maxEmployees")
    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise InvalidCriteriaError("minEmployees cannot be greater than maxEmployees")

    conditions: list[str] = []
    values: list[Any] = []

    def bind(value: Any) -> str:
        values.append(value)
        return f"${len(values)}"

    for key, value in criteria.items():
        if value is None:
            continue
        if key == "minEmployees":
            conditions.append(f"num_employees >= {bind(value)}")
        elif key == "maxEmployees":
            conditions.append(f"num_employees <= {bind(value)}")
        elif key == "name":
            conditions.append(f"name ILIKE {bind(f'%{value}%')}")

    return " AND ".join(conditions), values

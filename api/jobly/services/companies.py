from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.services.database import Database, get_database
from jobly.services.errors import (
    RepositoryDuplicateError,
    RepositoryForbiddenFieldError,
    RepositoryNotFoundError,
)
from jobly.services.sql import COMPANY_COLUMNS, sql_for_company_filter, sql_for_partial_update

logger = logging.getLogger(__name__)

COMPANY_IMMUTABLE_FIELDS = ("handle",)

COMPANY_RETURNING_SQL = """
  handle,
  name,
  description,
  num_employees,
  logo_url
"""


class CompanyRepository:
    """Create, read, update and delete companies.

    Records use the external field names:
    ``{handle, name, description, numEmployees, logoUrl}``.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        handle = data["handle"]
        duplicate = await self.database.fetchrow(
            """
            select handle
            from companies
            where handle = $1
            """,
            handle,
        )
        if duplicate:
            raise RepositoryDuplicateError(f"duplicate company: {handle}")

        try:
            row = await self.database.fetchrow(
                f"""
                insert into companies (
                  handle,
                  name,
                  description,
                  num_employees,
                  logo_url
                )
                values ($1, $2, $3, $4, $5)
                returning {COMPANY_RETURNING_SQL}
                """,
                handle,
                data["name"],
                data["description"],
                data.get("numEmployees"),
                data.get("logoUrl"),
            )
        except pg_exc.UniqueViolationError as exc:
            # Concurrent create of the same handle, or a name already in use.
            raise self._duplicate_error(exc, handle=handle, name=data["name"]) from exc

        logger.info("company created handle=%s", handle)
        return self._company_row_to_dict(row)

    async def find_all(self) -> list[dict[str, Any]]:
        rows = await self.database.fetch(
            f"""
            select {COMPANY_RETURNING_SQL}
            from companies
            order by name
            """
        )
        return [self._company_row_to_dict(row) for row in rows]

    async def find_filtered(self, criteria: dict[str, Any]) -> list[dict[str, Any]]:
        """Companies matching ``{name, minEmployees, maxEmployees}``, ordered by name."""
        where_sql, values = sql_for_company_filter(criteria)
        where_clause = f"where {where_sql}" if where_sql else ""
        rows = await self.database.fetch(
            f"""
            select {COMPANY_RETURNING_SQL}
            from companies
            {where_clause}
            order by name
            """,
            *values,
        )
        return [self._company_row_to_dict(row) for row in rows]

    async def get(self, handle: str) -> dict[str, Any]:
        row = await self.database.fetchrow(
            f"""
            select {COMPANY_RETURNING_SQL}
            from companies
            where handle = $1
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"no company: {handle}")
        return self._company_row_to_dict(row)

    async def update(self, handle: str, data: dict[str, Any]) -> dict[str, Any]:
        """Partial update; only the fields present in ``data`` change.

        ``handle`` is the primary key and cannot be changed.
        """
        forbidden = [field for field in COMPANY_IMMUTABLE_FIELDS if field in data]
        if forbidden:
            raise RepositoryForbiddenFieldError(f"cannot update: {', '.join(forbidden)}")

        set_cols, values = sql_for_partial_update(data, COMPANY_COLUMNS)
        handle_token = f"${len(values) + 1}"

        try:
            row = await self.database.fetchrow(
                f"""
                update companies
                set {set_cols}
                where handle = {handle_token}
                returning {COMPANY_RETURNING_SQL}
                """,
                *values,
                handle,
            )
        except pg_exc.UniqueViolationError as exc:
            raise self._duplicate_error(exc, handle=handle, name=data.get("name")) from exc
        if not row:
            raise RepositoryNotFoundError(f"no company: {handle}")

        logger.info("company updated handle=%s fields=%s", handle, ",".join(data))
        return self._company_row_to_dict(row)

    async def remove(self, handle: str) -> None:
        row = await self.database.fetchrow(
            """
            delete from companies
            where handle = $1
            returning handle
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"no company: {handle}")
        logger.info("company removed handle=%s", handle)

    @staticmethod
    def _duplicate_error(
        exc: pg_exc.UniqueViolationError,
        *,
        handle: str,
        name: str | None,
    ) -> RepositoryDuplicateError:
        # companies_pkey guards the handle, companies_name_key the name.
        constraint = getattr(exc, "constraint_name", None) or ""
        if name is not None and not constraint.endswith("_pkey"):
            return RepositoryDuplicateError(f"duplicate company name: {name}")
        return RepositoryDuplicateError(f"duplicate company: {handle}")

    @staticmethod
    def _company_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "numEmployees": row["num_employees"],
            "logoUrl": row["logo_url"],
        }


@lru_cache
def get_company_repository() -> CompanyRepository:
    return CompanyRepository(get_database())

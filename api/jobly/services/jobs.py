from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.services.database import Database, get_database
from jobly.services.errors import (
    RepositoryForbiddenFieldError,
    RepositoryNotFoundError,
    RepositoryReferentialError,
    RepositoryValidationError,
)
from jobly.services.sql import JOB_COLUMNS, sql_for_partial_update

logger = logging.getLogger(__name__)

JOB_IMMUTABLE_FIELDS = ("id", "companyHandle")

JOB_RETURNING_SQL = """
  id,
  title,
  salary,
  equity,
  company_handle
"""


class JobRepository:
    """Create, read, update and delete jobs.

    Records use the external field names:
    ``{id, title, salary, equity, companyHandle}``; ``equity`` is a decimal string.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        company_handle = data["companyHandle"]
        company = await self.database.fetchrow(
            """
            select handle
            from companies
            where handle = $1
            """,
            company_handle,
        )
        if not company:
            raise RepositoryReferentialError(f"company {company_handle} doesn't exist")

        try:
            row = await self.database.fetchrow(
                f"""
                insert into jobs (
                  title,
                  salary,
                  equity,
                  company_handle
                )
                values ($1, $2, $3, $4)
                returning {JOB_RETURNING_SQL}
                """,
                data["title"],
                data.get("salary"),
                self._coerce_equity(data.get("equity")),
                company_handle,
            )
        except pg_exc.ForeignKeyViolationError as exc:
            # Company removed between the lookup and the insert.
            raise RepositoryReferentialError(f"company {company_handle} doesn't exist") from exc

        logger.info("job created id=%s company=%s", row["id"], company_handle)
        return self._job_row_to_dict(row)

    async def find_all(self) -> list[dict[str, Any]]:
        rows = await self.database.fetch(
            f"""
            select {JOB_RETURNING_SQL}
            from jobs
            order by title
            """
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def get(self, job_id: int) -> dict[str, Any]:
        try:
            row = await self.database.fetchrow(
                f"""
                select {JOB_RETURNING_SQL}
                from jobs
                where id = $1
                """,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"no job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        return self._job_row_to_dict(row)

    async def update(self, job_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Partial update of ``{title, salary, equity}``.

        ``id`` and ``companyHandle`` are immutable and rejected before any SQL runs.
        """
        forbidden = [field for field in JOB_IMMUTABLE_FIELDS if field in data]
        if forbidden:
            raise RepositoryForbiddenFieldError(f"cannot update: {', '.join(forbidden)}")

        if "equity" in data:
            data = {**data, "equity": self._coerce_equity(data["equity"])}
        set_cols, values = sql_for_partial_update(data, JOB_COLUMNS)
        id_token = f"${len(values) + 1}"

        try:
            row = await self.database.fetchrow(
                f"""
                update jobs
                set {set_cols}
                where id = {id_token}
                returning {JOB_RETURNING_SQL}
                """,
                *values,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            # Ids outside int4 cannot match a row.
            raise RepositoryNotFoundError(f"no job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"no job: {job_id}")

        logger.info("job updated id=%s fields=%s", job_id, ",".join(data))
        return self._job_row_to_dict(row)

    async def remove(self, job_id: int) -> None:
        try:
            row = await self.database.fetchrow(
                """
                delete from jobs
                where id = $1
                returning id
                """,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"no job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        logger.info("job removed id=%s", job_id)

    @staticmethod
    def _coerce_equity(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise RepositoryValidationError(f"equity must be numeric: {value!r}") from exc

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        equity = row["equity"]
        return {
            "id": int(row["id"]),
            "title": row["title"],
            "salary": row["salary"],
            "equity": str(equity) if equity is not None else None,
            "companyHandle": row["company_handle"],
        }


@lru_cache
def get_job_repository() -> JobRepository:
    return JobRepository(get_database())

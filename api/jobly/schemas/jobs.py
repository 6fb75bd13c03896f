from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import Field, field_validator

from jobly.schemas.common import INT4_MAX, CamelModel, CamelRequest, PatchRequest


def _validate_equity(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError("equity must be a numeric string") from exc
    if not amount.is_finite() or amount < 0 or amount > 1:
        raise ValueError("equity must be between 0 and 1.0")
    return value


class JobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company_handle: str


class JobCreateRequest(CamelRequest):
    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0, le=INT4_MAX)
    equity: str | None = None
    company_handle: str = Field(min_length=1, max_length=25)

    @field_validator("equity")
    @classmethod
    def _check_equity(cls, value: str | None) -> str | None:
        return _validate_equity(value)


class JobPatchRequest(PatchRequest):
    """``id`` and ``companyHandle`` are immutable and rejected as unknown fields."""

    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0, le=INT4_MAX)
    equity: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("equity")
    @classmethod
    def _check_equity(cls, value: str | None) -> str | None:
        return _validate_equity(value)


class JobEnvelope(CamelModel):
    job: JobOut


class JobListOut(CamelModel):
    jobs: list[JobOut]


class JobDeletedOut(CamelModel):
    deleted: int

from typing import Any

from pydantic import Field, field_validator

from jobly.schemas.common import INT4_MAX, CamelModel, CamelRequest, PatchRequest


class CompanyOut(CamelModel):
    handle: str
    name: str
    description: str
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyCreateRequest(CamelRequest):
    handle: str = Field(min_length=1, max_length=25, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(min_length=1)
    description: str
    num_employees: int | None = Field(default=None, ge=0, le=INT4_MAX)
    logo_url: str | None = None


class CompanyPatchRequest(PatchRequest):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0, le=INT4_MAX)
    logo_url: str | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value


class CompanyEnvelope(CamelModel):
    company: CompanyOut


class CompanyListOut(CamelModel):
    companies: list[CompanyOut]


class CompanyDeletedOut(CamelModel):
    deleted: str

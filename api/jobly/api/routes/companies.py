from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.security import ensure_admin
from jobly.schemas.common import INT4_MAX
from jobly.schemas.companies import (
    CompanyCreateRequest,
    CompanyDeletedOut,
    CompanyEnvelope,
    CompanyListOut,
    CompanyOut,
    CompanyPatchRequest,
)
from jobly.services.companies import get_company_repository
from jobly.services.errors import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post(
    "",
    response_model=CompanyEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(ensure_admin)],
)
async def create_company(
    payload: CompanyCreateRequest,
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.create(payload.model_dump(by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.get("", response_model=CompanyListOut)
async def list_companies(
    name: str | None = Query(default=None, min_length=1),
    min_employees: int | None = Query(default=None, ge=0, le=INT4_MAX, alias="minEmployees"),
    max_employees: int | None = Query(default=None, ge=0, le=INT4_MAX, alias="maxEmployees"),
    repository=Depends(get_company_repository),
) -> CompanyListOut:
    criteria = {
        key: value
        for key, value in (("name", name), ("minEmployees", min_employees), ("maxEmployees", max_employees))
        if value is not None
    }
    try:
        if criteria:
            rows = await repository.find_filtered(criteria)
        else:
            rows = await repository.find_all()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyListOut(companies=[CompanyOut(**row) for row in rows])


@router.get("/{handle}", response_model=CompanyEnvelope)
async def get_company(handle: str, repository=Depends(get_company_repository)) -> CompanyEnvelope:
    try:
        row = await repository.get(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.patch("/{handle}", response_model=CompanyEnvelope, dependencies=[Depends(ensure_admin)])
async def patch_company(
    handle: str,
    payload: CompanyPatchRequest,
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.update(handle, payload.to_update())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.delete("/{handle}", response_model=CompanyDeletedOut, dependencies=[Depends(ensure_admin)])
async def delete_company(handle: str, repository=Depends(get_company_repository)) -> CompanyDeletedOut:
    try:
        await repository.remove(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyDeletedOut(deleted=handle)

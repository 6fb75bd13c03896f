from __future__ import annotations

from itertools import count
from typing import Any

import asyncpg  # type: ignore[import-untyped]
import pytest
from fastapi.testclient import TestClient

from jobly.core.config import Settings, get_settings
from jobly.core.security import create_token
from jobly.main import app
from jobly.services.errors import (
    RepositoryForbiddenFieldError,
    RepositoryNotFoundError,
    RepositoryReferentialError,
)
from jobly.services.jobs import JOB_IMMUTABLE_FIELDS, JobRepository, get_job_repository
from jobly.services.sql import sql_for_partial_update

SETTINGS = Settings(secret_key="test-secret")
ADMIN_HEADERS = {"Authorization": f"Bearer {create_token('admin1', True, SETTINGS)}"}
USER_HEADERS = {"Authorization": f"Bearer {create_token('u1', False, SETTINGS)}"}


class FakeJobRepository:
    def __init__(self) -> None:
        self._ids = count(1)
        self.company_handles = {"c1", "c2", "c3"}
        self.jobs: dict[int, dict[str, Any]] = {}
        for title, salary, equity, handle in (
            ("testjob1", 50000, "0", "c1"),
            ("testjob2", 150000, "0.045", "c2"),
        ):
            job_id = next(self._ids)
            self.jobs[job_id] = {
                "id": job_id,
                "title": title,
                "salary": salary,
                "equity": equity,
                "companyHandle": handle,
            }

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        if data["companyHandle"] not in self.company_handles:
            raise RepositoryReferentialError(f"company {data['companyHandle']} doesn't exist")
        job_id = next(self._ids)
        self.jobs[job_id] = {"id": job_id, **data}
        return self.jobs[job_id]

    async def find_all(self) -> list[dict[str, Any]]:
        return sorted(self.jobs.values(), key=lambda row: row["title"])

    async def get(self, job_id: int) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        return self.jobs[job_id]

    async def update(self, job_id: int, data: dict[str, Any]) -> dict[str, Any]:
        if any(field in data for field in JOB_IMMUTABLE_FIELDS):
            raise RepositoryForbiddenFieldError("cannot update immutable field")
        sql_for_partial_update(data, {})
        job = await self.get(job_id)
        job.update(data)
        return job

    async def remove(self, job_id: int) -> None:
        await self.get(job_id)
        del self.jobs[job_id]


class Int4Database:
    """Rejects integer arguments that do not fit a Postgres int4, as asyncpg does."""

    async def fetchrow(self, query: str, *values: Any) -> None:
        for position, value in enumerate(values, start=1):
            if isinstance(value, int) and not -(2**31) <= value < 2**31:
                message = f"invalid input for query argument ${position}: {value} (value out of int32 range)"
                raise asyncpg.DataError(message)
        return None


@pytest.fixture
def fake_repo() -> FakeJobRepository:
    return FakeJobRepository()


@pytest.fixture
def client(fake_repo: FakeJobRepository) -> TestClient:
    app.dependency_overrides[get_settings] = lambda: SETTINGS
    app.dependency_overrides[get_job_repository] = lambda: fake_repo

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


NEW_JOB = {"title": "newJob", "salary": 100000, "equity": "0.001", "companyHandle": "c1"}


def test_create_job_as_admin(client: TestClient) -> None:
    response = client.post("/jobs", json=NEW_JOB, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    body = response.json()
    assert body == {"job": {**NEW_JOB, "id": body["job"]["id"]}}
    assert isinstance(body["job"]["id"], int) and body["job"]["id"] > 0


@pytest.mark.parametrize("headers", [{}, USER_HEADERS])
def test_create_job_rejects_anonymous_and_non_admin(client: TestClient, headers: dict[str, str]) -> None:
    assert client.post("/jobs", json=NEW_JOB, headers=headers).status_code == 401


def test_create_job_non_admin_with_bad_body_is_unauthorized(client: TestClient) -> None:
    assert client.post("/jobs", json={"salary": 10}, headers=USER_HEADERS).status_code == 401


@pytest.mark.parametrize(
    "payload",
    [
        {"salary": 10},
        {"title": 17, "salary": "not-a-salary", "companyHandle": "c1"},
        {"title": "valid title", "equity": "1.1", "companyHandle": "c1"},
        {"title": "valid title", "equity": "lots", "companyHandle": "c1"},
        {"title": "valid title", "equity": "-0.1", "companyHandle": "c1"},
        {"title": "valid title", "salary": -1, "companyHandle": "c1"},
        {"title": "valid title", "salary": 3_000_000_000, "companyHandle": "c1"},
    ],
)
def test_create_job_invalid_body_is_bad_request(client: TestClient, payload: dict[str, Any]) -> None:
    assert client.post("/jobs", json=payload, headers=ADMIN_HEADERS).status_code == 400


def test_create_job_for_missing_company_is_bad_request(client: TestClient) -> None:
    response = client.post("/jobs", json={**NEW_JOB, "companyHandle": "scam"}, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert "scam" in response.json()["detail"]


def test_equity_of_exactly_one_is_accepted(client: TestClient) -> None:
    response = client.post("/jobs", json={**NEW_JOB, "equity": "1.0"}, headers=ADMIN_HEADERS)
    assert response.status_code == 201


def test_list_jobs_anonymous(client: TestClient) -> None:
    response = client.get("/jobs")
    assert response.status_code == 200
    assert [job["title"] for job in response.json()["jobs"]] == ["testjob1", "testjob2"]


def test_get_job(client: TestClient) -> None:
    response = client.get("/jobs/1")
    assert response.status_code == 200
    assert response.json() == {
        "job": {"id": 1, "title": "testjob1", "salary": 50000, "equity": "0", "companyHandle": "c1"}
    }


def test_get_missing_job_is_not_found(client: TestClient) -> None:
    assert client.get("/jobs/0").status_code == 404


def test_patch_job_null_salary(client: TestClient) -> None:
    response = client.patch("/jobs/1", json={"salary": None}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json() == {
        "job": {"id": 1, "title": "testjob1", "salary": None, "equity": "0", "companyHandle": "c1"}
    }


def test_patch_job_requires_admin(client: TestClient) -> None:
    assert client.patch("/jobs/1", json={"title": "x"}, headers=USER_HEADERS).status_code == 401


@pytest.mark.parametrize(
    "payload",
    [{"id": 0}, {"companyHandle": "moo"}, {}, {"title": None}, {"equity": "2"}, {"salary": 3_000_000_000}],
)
def test_patch_job_invalid_body_is_bad_request(
    client: TestClient,
    fake_repo: FakeJobRepository,
    payload: dict[str, Any],
) -> None:
    response = client.patch("/jobs/1", json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert fake_repo.jobs[1]["title"] == "testjob1"
    assert fake_repo.jobs[1]["companyHandle"] == "c1"


def test_patch_missing_job_is_not_found(client: TestClient) -> None:
    assert client.patch("/jobs/0", json={"title": "x"}, headers=ADMIN_HEADERS).status_code == 404


def test_delete_job_as_admin(client: TestClient, fake_repo: FakeJobRepository) -> None:
    response = client.delete("/jobs/1", headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json() == {"deleted": 1}
    assert 1 not in fake_repo.jobs


def test_delete_job_requires_admin(client: TestClient) -> None:
    assert client.delete("/jobs/1", headers=USER_HEADERS).status_code == 401


def test_delete_missing_job_is_not_found(client: TestClient) -> None:
    assert client.delete("/jobs/0", headers=ADMIN_HEADERS).status_code == 404


@pytest.mark.parametrize(
    ("method", "kwargs"),
    [
        ("get", {}),
        ("patch", {"json": {"title": "x"}, "headers": ADMIN_HEADERS}),
        ("delete", {"headers": ADMIN_HEADERS}),
    ],
)
def test_job_id_beyond_integer_column_is_not_found(method: str, kwargs: dict[str, Any]) -> None:
    app.dependency_overrides[get_settings] = lambda: SETTINGS
    app.dependency_overrides[get_job_repository] = lambda: JobRepository(Int4Database())
    try:
        with TestClient(app) as test_client:
            response = test_client.request(method, "/jobs/3000000000", **kwargs)
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 404
    assert response.json() == {"detail": "no job: 3000000000"}

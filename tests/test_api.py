from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from repoverse.domain.exceptions import UserNotFoundError
from repoverse.infrastructure.json_cache_store import JsonCacheStore
from repoverse.interface import dependencies
from repoverse.interface.app import create_app
from repoverse.interface.dependencies import get_use_case
from repoverse.services.fetch_repositories import FetchRepositoriesUseCase
from repoverse.services.generate_universe import GenerateUniverseUseCase
from repoverse.services.procedural_mapping import LANGUAGE_COLORS
from repoverse.services.rate_budget import RateBudgetScheduler

from conftest import FakeClock, FakeSource, make_raw_repo


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(
        [
            make_raw_repo("A", language="Python", stargazers_count=3, created_at="2020-03-01T00:00:00Z"),
            make_raw_repo("B", language="Rust", created_at="2022-03-01T00:00:00Z"),
        ]
    )


@pytest.fixture
def client(source, tmp_path):
    clock = FakeClock()
    fetcher = FetchRepositoriesUseCase(
        source,
        JsonCacheStore(tmp_path, clock=clock),
        RateBudgetScheduler(source, batch_delay=0),
        clock=clock,
    )
    app = create_app()
    app.dependency_overrides[get_use_case] = lambda: GenerateUniverseUseCase(fetcher, clock=clock)
    return TestClient(app)


def test_universe_payload(client) -> None:
    resp = client.get("/universe/octocat", params={"year": 2021, "mode": "all"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["username"] == "octocat"
    assert body["year"] == 2021
    assert body["filter_mode"] == "all"
    assert body["is_demo"] is False
    assert body["stats"]["total_repos"] == 1
    assert [b["record"]["name"] for b in body["bodies"]] == ["A"]
    assert body["bodies"][0]["record"]["metrics"] == "measured"
    assert body["bodies"][0]["visual"]["color"] == LANGUAGE_COLORS["Python"]


def test_unknown_user_returns_404_envelope(client, source) -> None:
    source.list_error = UserNotFoundError("User 'ghost' not found.")

    resp = client.get("/universe/ghost")

    assert resp.status_code == 404
    assert resp.json() == {
        "status": "error",
        "code": "USER_NOT_FOUND",
        "message": "User 'ghost' not found.",
    }


@pytest.mark.parametrize(
    "path",
    ["/universe/-bad-", "/universe/octocat?year=1999", "/universe/octocat?mode=sometimes"],
)
def test_invalid_requests_return_422(client, path) -> None:
    resp = client.get(path)

    assert resp.status_code == 422
    assert resp.json()["status"] == "error"


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_future_year_reports_the_year_it_filtered(client) -> None:
    body = client.get("/universe/octocat", params={"year": 2030, "mode": "all"}).json()

    assert body["year"] == 2024
    assert body["stats"]["total_repos"] == 2


def test_requests_share_one_orchestrator_and_filter() -> None:
    async def wiring():
        await dependencies.startup()
        try:
            first, second = dependencies.get_use_case(), dependencies.get_use_case()
            return (
                first is not second,
                first._fetcher is second._fetcher,
                first._filter is second._filter,
            )
        finally:
            await dependencies.shutdown()

    assert asyncio.run(wiring()) == (True, True, True)

"""Tests for feature_service.features.router — REST API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from feature_service.app import _lifespan, create_app
from feature_service.features.router import _get_store
from feature_service.features.store import FeatureStore
from feature_service.settings import FeatureServiceSettings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

BASE = "/features"
LOCUS = "HLA-A"
TERM = "SO:0001217"


async def _create_feature(client: AsyncClient, **kwargs: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "locus": kwargs.get("locus", LOCUS),
        "term": kwargs.get("term", TERM),
        "rank": kwargs.get("rank", 1),
        "sequence": kwargs.get("sequence", "ACGT"),
    }
    resp = await client.post(BASE, json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _error(resp: Any) -> dict[str, Any]:
    return resp.json()["error"]


# ======================================================================
# POST /features
# ======================================================================


class TestCreateFeature:
    async def test_create_returns_feature(self, client: AsyncClient) -> None:
        data = await _create_feature(client)
        assert data["locus"] == LOCUS
        assert data["term"] == TERM
        assert data["rank"] == 1
        assert data["sequence"] == "ACGT"
        assert data["accession"] >= 1

    async def test_create_without_sequence_omits_it(self, client: AsyncClient) -> None:
        resp = await client.post(BASE, json={"locus": LOCUS, "term": TERM, "rank": 2})
        assert resp.status_code == 200
        assert "sequence" not in resp.json()

    async def test_missing_body(self, client: AsyncClient) -> None:
        resp = await client.post(BASE)
        assert resp.status_code == 400
        assert _error(resp)["code"] == "INVALID_INPUT"
        assert _error(resp)["message"] == "a request body must be provided"

    async def test_null_body(self, client: AsyncClient) -> None:
        resp = await client.post(
            BASE,
            content=b"null",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert _error(resp)["message"] == "a request body must be provided"

    @pytest.mark.parametrize(
        ("body", "message"),
        [
            ({}, "locus must be provided"),
            ({"locus": "", "term": TERM, "rank": 1}, "locus must be provided"),
            ({"locus": LOCUS, "rank": 1}, "term must be provided"),
            ({"locus": LOCUS, "term": TERM}, "rank must be provided and at least 1"),
            ({"locus": LOCUS, "term": TERM, "rank": 0}, "rank must be provided and at least 1"),
        ],
    )
    async def test_invalid_body(
        self,
        client: AsyncClient,
        body: dict[str, Any],
        message: str,
    ) -> None:
        resp = await client.post(BASE, json=body)
        assert resp.status_code == 400
        assert _error(resp)["message"] == message

    async def test_non_integer_rank_is_422(self, client: AsyncClient) -> None:
        resp = await client.post(BASE, json={"locus": LOCUS, "term": TERM, "rank": "first"})
        assert resp.status_code == 422
        assert _error(resp)["code"] == "VALIDATION_ERROR"


# ======================================================================
# GET /features?locus=&term=&rank=&accession=
# ======================================================================


class TestGetFeatureByQuery:
    async def test_round_trip(self, client: AsyncClient) -> None:
        created = await _create_feature(client)
        resp = await client.get(
            BASE,
            params={
                "locus": LOCUS,
                "term": TERM,
                "rank": 1,
                "accession": created["accession"],
            },
        )
        assert resp.status_code == 200
        assert resp.json() == created

    async def test_not_found_is_empty_200(self, client: AsyncClient) -> None:
        resp = await client.get(
            BASE,
            params={"locus": LOCUS, "term": TERM, "rank": 1, "accession": 12345},
        )
        assert resp.status_code == 200
        assert resp.content == b""

    @pytest.mark.parametrize(
        ("params", "message"),
        [
            ({}, "locus must be provided"),
            ({"locus": LOCUS}, "term must be provided"),
            ({"locus": LOCUS, "term": TERM}, "rank must be provided and at least 1"),
            ({"locus": LOCUS, "term": TERM, "rank": 1}, "accession must be provided and at least 1"),
            (
                {"locus": LOCUS, "term": TERM, "rank": 0, "accession": 0},
                "rank must be provided and at least 1",
            ),
        ],
    )
    async def test_invalid_query(
        self,
        client: AsyncClient,
        params: dict[str, Any],
        message: str,
    ) -> None:
        resp = await client.get(BASE, params=params)
        assert resp.status_code == 400
        assert _error(resp)["message"] == message

    async def test_uri_locus_with_slashes(self, client: AsyncClient) -> None:
        locus = "http://example.org/locus/HLA-A"
        created = await _create_feature(client, locus=locus)
        resp = await client.get(
            BASE,
            params={
                "locus": locus,
                "term": TERM,
                "rank": 1,
                "accession": created["accession"],
            },
        )
        assert resp.status_code == 200
        assert resp.json() == created


# ======================================================================
# GET /features/{locus}[/{term}[/{rank}[/{accession}]]]
# ======================================================================


class TestListFeatures:
    async def test_list_empty(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_list_by_locus(self, client: AsyncClient) -> None:
        exon = await _create_feature(client, term="exon")
        intron = await _create_feature(client, term="intron")
        await _create_feature(client, locus="HLA-B")
        resp = await client.get(f"{BASE}/{LOCUS}")
        assert resp.status_code == 200
        assert resp.json() == [exon, intron]

    async def test_list_by_term(self, client: AsyncClient) -> None:
        exon = await _create_feature(client, term="exon")
        await _create_feature(client, term="intron")
        resp = await client.get(f"{BASE}/{LOCUS}/exon")
        assert resp.status_code == 200
        assert resp.json() == [exon]

    async def test_list_by_rank(self, client: AsyncClient) -> None:
        await _create_feature(client, rank=1)
        second = await _create_feature(client, rank=2)
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/2")
        assert resp.status_code == 200
        assert resp.json() == [second]

    async def test_list_by_rank_invalid(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/0")
        assert resp.status_code == 400
        assert _error(resp)["message"] == "rank must be provided and at least 1"
        assert _error(resp)["details"] == {"field": "rank"}

    async def test_list_by_rank_not_integer(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/one")
        assert resp.status_code == 422


class TestGetFeatureByPath:
    async def test_round_trip(self, client: AsyncClient) -> None:
        created = await _create_feature(client)
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/1/{created['accession']}")
        assert resp.status_code == 200
        assert resp.json() == created

    async def test_not_found_is_empty_200(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/1/999")
        assert resp.status_code == 200
        assert resp.content == b""

    async def test_invalid_accession(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/1/0")
        assert resp.status_code == 400
        assert _error(resp)["message"] == "accession must be provided and at least 1"

    async def test_repeated_lookup_is_idempotent(self, client: AsyncClient) -> None:
        created = await _create_feature(client)
        url = f"{BASE}/{LOCUS}/{TERM}/1/{created['accession']}"
        first = await client.get(url)
        second = await client.get(url)
        assert first.json() == second.json()


# ======================================================================
# Integer widths of rank and accession
# ======================================================================

MAX_RANK = 2**31 - 1
MAX_ACCESSION = 2**63 - 1


class TestIntegerBounds:
    async def test_path_accession_too_large(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/1/{MAX_ACCESSION + 1}")
        assert resp.status_code == 422
        assert _error(resp)["code"] == "VALIDATION_ERROR"

    async def test_path_rank_too_large(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/{MAX_RANK + 1}")
        assert resp.status_code == 422
        assert _error(resp)["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("rank", [MAX_RANK + 1, 2**63])
    async def test_create_rank_too_large(self, client: AsyncClient, rank: int) -> None:
        resp = await client.post(BASE, json={"locus": LOCUS, "term": TERM, "rank": rank})
        assert resp.status_code == 422
        assert _error(resp)["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize(
        "params",
        [
            {"locus": LOCUS, "term": TERM, "rank": 1, "accession": MAX_ACCESSION + 1},
            {"locus": LOCUS, "term": TERM, "rank": MAX_RANK + 1, "accession": 1},
        ],
    )
    async def test_query_too_large(self, client: AsyncClient, params: dict[str, Any]) -> None:
        resp = await client.get(BASE, params=params)
        assert resp.status_code == 422

    async def test_largest_accession_is_a_miss(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/1/{MAX_ACCESSION}")
        assert resp.status_code == 200
        assert resp.content == b""

    async def test_largest_rank_lists_empty(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/{MAX_RANK}")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_create_with_largest_rank(self, client: AsyncClient) -> None:
        created = await _create_feature(client, rank=MAX_RANK)
        assert created["rank"] == MAX_RANK


# ======================================================================
# explicit_404 not-found policy
# ======================================================================


@pytest.fixture
async def strict_client() -> AsyncGenerator[AsyncClient, None]:
    settings = FeatureServiceSettings(
        database_url="sqlite+aiosqlite://",
        not_found_policy="explicit_404",
    )
    app = create_app(settings)
    async with _lifespan(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


class TestExplicitNotFoundPolicy:
    async def test_query_miss_is_404(self, strict_client: AsyncClient) -> None:
        resp = await strict_client.get(
            BASE,
            params={"locus": LOCUS, "term": TERM, "rank": 1, "accession": 7},
        )
        assert resp.status_code == 404
        assert _error(resp)["code"] == "FEATURE_NOT_FOUND"

    async def test_path_miss_is_404(self, strict_client: AsyncClient) -> None:
        resp = await strict_client.get(f"{BASE}/{LOCUS}/{TERM}/1/7")
        assert resp.status_code == 404

    async def test_hit_is_unaffected(self, strict_client: AsyncClient) -> None:
        created = await _create_feature(strict_client)
        resp = await strict_client.get(f"{BASE}/{LOCUS}/{TERM}/1/{created['accession']}")
        assert resp.status_code == 200
        assert resp.json() == created


# ======================================================================
# Store failures
# ======================================================================


class TestStoreFailure:
    async def test_store_error_is_503(self, app: FastAPI, client: AsyncClient) -> None:
        failing = AsyncMock(spec=FeatureStore)
        failing.find_by_locus.side_effect = OperationalError(
            "SELECT", {}, ConnectionError("connection refused")
        )
        app.dependency_overrides[_get_store] = lambda: failing
        try:
            resp = await client.get(f"{BASE}/{LOCUS}")
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 503
        assert _error(resp)["code"] == "STORE_UNAVAILABLE"
        assert "connection refused" not in resp.text

    async def test_validation_runs_before_store(self, app: FastAPI, client: AsyncClient) -> None:
        failing = AsyncMock(spec=FeatureStore)
        app.dependency_overrides[_get_store] = lambda: failing
        try:
            resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/0")
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 400
        failing.find_by_locus_term_rank.assert_not_awaited()


class TestRequestId:
    async def test_echoes_request_id(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}", headers={"x-request-id": "req-42"})
        assert resp.headers["x-request-id"] == "req-42"

    async def test_error_body_carries_request_id(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/{LOCUS}/{TERM}/0", headers={"x-request-id": "req-43"})
        assert _error(resp)["request_id"] == "req-43"

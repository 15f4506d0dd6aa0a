"""HTTP tests for the jobs API, run in-process through httpx's ASGI transport."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from freelance_escrow.config import Settings
from freelance_escrow.main import create_app
from helpers import CLIENT, ESCROW, FREELANCER, STRANGER


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "storage_backend": "memory",
        "lock_backend": "local",
        "escrow_address": ESCROW,
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(_settings())
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create(client: httpx.AsyncClient, amount: int = 10_000_000) -> dict:
    response = await client.post(
        "/api/jobs",
        json={"title": "Landing page", "amount": amount, "clientAddress": CLIENT},
    )
    assert response.status_code == 201
    return response.json()


async def _accepted(client: httpx.AsyncClient) -> str:
    job = await _create(client)
    response = await client.post(
        f"/api/jobs/{job['id']}/accept", json={"freelancerAddress": FREELANCER}
    )
    assert response.status_code == 200
    return job["id"]


class TestHealth:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    async def test_ok(self, client: httpx.AsyncClient, path: str) -> None:
        response = await client.get(path)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["storage"] == "memory"
        assert body["locks"] == "local"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_camel_case(self, client: httpx.AsyncClient) -> None:
        job = await _create(client)

        assert job["status"] == "OPEN"
        assert job["clientAddress"] == CLIENT
        assert job["freelancerAddress"] is None
        assert job["currency"] == "XTZ"
        assert job["escrow"] == {"depositedAmount": 0, "transactionRefs": []}
        assert job["version"] == 1
        assert "createdAt" in job

    @pytest.mark.asyncio
    async def test_snake_case_body_accepted(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/jobs", json={"title": "Logo", "amount": 1, "client_address": CLIENT}
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"amount": 1, "clientAddress": CLIENT},
            {"title": "Logo", "amount": -1, "clientAddress": CLIENT},
            {"title": "Logo", "amount": "10", "clientAddress": CLIENT},
            {"title": "Logo", "amount": 1},
            {"title": "  ", "amount": 1, "clientAddress": CLIENT},
        ],
    )
    async def test_invalid_body(self, client: httpx.AsyncClient, body: dict) -> None:
        response = await client.post("/api/jobs", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_get(self, client: httpx.AsyncClient) -> None:
        job = await _create(client)
        response = await client.get(f"/api/jobs/{job['id']}")
        assert response.status_code == 200
        assert response.json() == job

    @pytest.mark.asyncio
    async def test_not_found(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/jobs/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "NOT_FOUND", "message": "Job not found: missing"}

    @pytest.mark.asyncio
    async def test_status_and_events(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)

        status = (await client.get(f"/api/jobs/{job_id}/status")).json()
        events = (await client.get(f"/api/jobs/{job_id}/events")).json()

        assert status == {
            "jobId": job_id,
            "status": "ACCEPTED",
            "version": 2,
            "allowedActions": ["deposit_confirm", "submit", "dispute"],
        }
        assert [e["eventType"] for e in events] == ["JOB_CREATED", "FREELANCER_ASSIGNED"]
        assert events[0]["oldStatus"] is None


class TestLifecycleErrors:
    @pytest.mark.asyncio
    async def test_double_accept_conflict(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        response = await client.post(
            f"/api/jobs/{job_id}/accept", json={"freelancerAddress": STRANGER}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_submit_by_stranger_forbidden(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        response = await client.post(
            f"/api/jobs/{job_id}/submit",
            json={"freelancerAddress": STRANGER, "workReference": "ipfs://x"},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"
        assert (await client.get(f"/api/jobs/{job_id}")).json()["status"] == "ACCEPTED"

    @pytest.mark.asyncio
    async def test_missing_field(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        response = await client.post(
            f"/api/jobs/{job_id}/submit", json={"freelancerAddress": FREELANCER}
        )
        assert response.status_code == 400


class TestEscrowFlows:
    @pytest.mark.asyncio
    async def test_deposit_scenario(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)

        prepared = await client.post(
            f"/api/jobs/{job_id}/deposit/prepare",
            json={"clientAddress": CLIENT, "amountMajorUnits": 10},
        )
        confirmed = await client.post(
            f"/api/jobs/{job_id}/deposit/confirm",
            json={"clientAddress": CLIENT, "transactionRef": "0xabc"},
        )

        assert prepared.status_code == 200
        assert prepared.json() == {"kind": "transfer", "destination": ESCROW, "amount": 10_000_000}
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "FUNDED"
        assert confirmed.json()["escrow"]["transactionRefs"] == ["0xabc"]

    @pytest.mark.asyncio
    async def test_fractional_amount(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        response = await client.post(
            f"/api/jobs/{job_id}/deposit/prepare",
            json={"clientAddress": CLIENT, "amountMajorUnits": 0.1},
        )
        assert response.json()["amount"] == 100_000

    @pytest.mark.asyncio
    async def test_deposit_confirm_by_freelancer(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        response = await client.post(
            f"/api/jobs/{job_id}/deposit/confirm",
            json={"clientAddress": FREELANCER, "transactionRef": "0xabc"},
        )
        assert response.status_code == 403
        job = (await client.get(f"/api/jobs/{job_id}")).json()
        assert job["escrow"]["transactionRefs"] == []

    @pytest.mark.asyncio
    async def test_release_prepare_before_accept(self, client: httpx.AsyncClient) -> None:
        job = await _create(client)
        response = await client.post(
            f"/api/jobs/{job['id']}/release/prepare", json={"clientAddress": CLIENT}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_TRANSITION"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_round_trip_then_dispute(self, client: httpx.AsyncClient) -> None:
        job_id = await _accepted(client)
        await client.post(
            f"/api/jobs/{job_id}/deposit/confirm",
            json={"clientAddress": CLIENT, "transactionRef": "0xabc"},
        )
        await client.post(
            f"/api/jobs/{job_id}/submit",
            json={"freelancerAddress": FREELANCER, "workReference": "ipfs://work"},
        )
        payout = await client.post(
            f"/api/jobs/{job_id}/release/prepare", json={"clientAddress": CLIENT}
        )
        released = await client.post(
            f"/api/jobs/{job_id}/release/confirm",
            json={"clientAddress": CLIENT, "transactionRef": "ooFinal"},
        )
        disputed = await client.post(
            f"/api/jobs/{job_id}/dispute",
            json={"identity": FREELANCER, "reason": "follow-up unpaid"},
        )

        assert payout.json()["destination"] == FREELANCER
        assert released.json()["status"] == "RELEASED"
        assert released.json()["release"]["transactionRef"] == "ooFinal"
        assert disputed.status_code == 200
        assert disputed.json()["status"] == "DISPUTED"
        assert disputed.json()["dispute"]["raisedBy"] == FREELANCER


class TestMisconfigured:
    @pytest.mark.asyncio
    async def test_missing_escrow_address(self) -> None:
        app = create_app(_settings(escrow_address=""))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            job_id = await _accepted(ac)
            response = await ac.post(
                f"/api/jobs/{job_id}/deposit/prepare",
                json={"clientAddress": CLIENT, "amountMajorUnits": 10},
            )

        assert response.status_code == 503
        assert response.json() == {
            "error": "MISCONFIGURED",
            "message": "ESCROW_ADDRESS not configured on server",
        }

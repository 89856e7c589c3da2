"""Service applications and the contract lifecycle."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from portal.services import probe
from portal.services.probe import ProbeOutcome
from tests.conftest import API


def _iso(dt: datetime) -> str:
    return dt.isoformat()


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


async def _contract(client: AsyncClient, participants, *, valid_from, valid_until, status="draft"):
    return await client.post(
        f"{API}/contracts",
        json={
            "title": "Seismic data sharing",
            "providerId": participants["provider"],
            "consumerId": participants["consumer"],
            "contractType": "data_sharing",
            "status": status,
            "terms": {"usage": "internal"},
            "validFrom": _iso(valid_from),
            "validUntil": _iso(valid_until),
        },
    )


async def test_validity_window_must_be_ordered(client: AsyncClient, participants, now):
    resp = await _contract(client, participants, valid_from=now, valid_until=now - timedelta(days=1))
    assert resp.status_code == 400


async def test_unknown_party_rejected(client: AsyncClient, participants, now):
    resp = await client.post(
        f"{API}/contracts",
        json={
            "title": "Broken",
            "providerId": "ghost",
            "consumerId": participants["consumer"],
            "contractType": "nda",
            "validFrom": _iso(now),
            "validUntil": _iso(now + timedelta(days=30)),
        },
    )
    assert resp.status_code == 400


async def test_sign_and_terminate(client: AsyncClient, participants, now):
    contract = (
        await _contract(client, participants, valid_from=now - timedelta(days=1), valid_until=now + timedelta(days=30))
    ).json()["data"]
    assert contract["status"] == "draft"

    # Drafts cannot be signed
    resp = await client.post(f"{API}/contracts/{contract['id']}/sign")
    assert resp.status_code == 400

    await client.put(f"{API}/contracts/{contract['id']}", json={"status": "pending"})
    resp = await client.post(f"{API}/contracts/{contract['id']}/sign")
    assert resp.status_code == 200
    signed = resp.json()["data"]
    assert signed["status"] == "active"
    assert signed["signedAt"] is not None

    active = (await client.get(f"{API}/contracts/active")).json()["data"]
    assert [c["id"] for c in active] == [contract["id"]]

    resp = await client.post(f"{API}/contracts/{contract['id']}/terminate")
    assert resp.json()["data"]["status"] == "terminated"

    resp = await client.post(f"{API}/contracts/{contract['id']}/terminate")
    assert resp.status_code == 400


async def test_expired_listing(client: AsyncClient, participants, now):
    past = (
        await _contract(
            client,
            participants,
            valid_from=now - timedelta(days=60),
            valid_until=now - timedelta(days=1),
            status="active",
        )
    ).json()["data"]
    await _contract(client, participants, valid_from=now, valid_until=now + timedelta(days=5), status="active")

    expired = (await client.get(f"{API}/contracts/expired")).json()["data"]
    assert [c["id"] for c in expired] == [past["id"]]
    active = (await client.get(f"{API}/contracts/active")).json()["data"]
    assert past["id"] not in [c["id"] for c in active]


async def test_update_rechecks_validity(client: AsyncClient, participants, now):
    contract = (
        await _contract(client, participants, valid_from=now, valid_until=now + timedelta(days=10))
    ).json()["data"]
    resp = await client.put(
        f"{API}/contracts/{contract['id']}", json={"validUntil": _iso(now - timedelta(days=1))}
    )
    assert resp.status_code == 400


async def test_service_application_health(client: AsyncClient, monkeypatch):
    async def fake_probe(url, **kwargs):
        return ProbeOutcome(success=True, message="Endpoint responded with HTTP 200", status_code=200)

    monkeypatch.setattr(probe, "probe_endpoint", fake_probe)

    app = (
        await client.post(
            f"{API}/service-applications",
            json={"name": "Well viewer", "endpoint": "http://viewer.local/health"},
        )
    ).json()["data"]
    assert app["healthStatus"] == "unknown"

    resp = await client.post(f"{API}/service-applications/{app['id']}/health")
    assert resp.status_code == 200
    assert resp.json()["data"]["success"] is True

    refreshed = (await client.get(f"{API}/service-applications/{app['id']}")).json()["data"]
    assert refreshed["healthStatus"] == "healthy"
    assert refreshed["lastHealthCheck"] is not None


async def test_service_application_without_endpoint(client: AsyncClient):
    app = (await client.post(f"{API}/service-applications", json={"name": "Offline"})).json()["data"]
    resp = await client.post(f"{API}/service-applications/{app['id']}/health")
    assert resp.status_code == 400

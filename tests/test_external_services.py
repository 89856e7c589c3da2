"""External services: connection tests, adaptor sync lifecycle, audit ingestion and stats."""

import pytest
from httpx import AsyncClient

from portal.services import probe
from portal.services.probe import ProbeOutcome, auth_headers
from tests.conftest import API


async def _service(client: AsyncClient, **overrides) -> dict:
    body = {
        "name": "OSDU adaptor",
        "serviceType": "OGC_OSDU_ADAPTOR",
        "endpoint": "https://osdu.example.id/api",
        "authType": "API_KEY",
        "credentials": {"apiKey": "secret"},
        **overrides,
    }
    resp = await client.post(f"{API}/external-services", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_auth_headers():
    headers, auth = auth_headers("API_KEY", {"apiKey": "k1", "headerName": "X-Key"})
    assert headers == {"X-Key": "k1"} and auth is None

    headers, _ = auth_headers("OAUTH2", {"accessToken": "tok"})
    assert headers["Authorization"] == "Bearer tok"

    headers, auth = auth_headers("BASIC", {"username": "u", "password": "p"})
    assert headers == {} and auth is not None

    assert auth_headers("NONE", None) == ({}, None)


async def test_credentials_are_never_returned(client: AsyncClient):
    service = await _service(client)
    assert "credentials" not in service
    fetched = (await client.get(f"{API}/external-services/{service['id']}")).json()["data"]
    assert "credentials" not in fetched


@pytest.mark.parametrize("success, expected", [(True, "active"), (False, "error")])
async def test_connection_test_sets_status(client: AsyncClient, monkeypatch, success, expected):
    seen = {}

    async def fake_probe(url, *, headers=None, auth=None):
        seen["headers"] = headers
        return ProbeOutcome(success=success, message="probe")

    monkeypatch.setattr(probe, "probe_endpoint", fake_probe)
    service = await _service(client)

    resp = await client.post(f"{API}/external-services/{service['id']}/test")
    assert resp.json()["data"]["success"] is success
    assert seen["headers"] == {"X-Api-Key": "secret"}

    refreshed = (await client.get(f"{API}/external-services/{service['id']}")).json()["data"]
    assert refreshed["status"] == expected
    assert (refreshed["lastSync"] is not None) is success


async def test_summary_groups_by_type_and_status(client: AsyncClient):
    await _service(client)
    await _service(client, name="Second adaptor", status="active")
    await _service(client, name="Broker", serviceType="IDS_BROKER")

    summary = {row["serviceType"]: row for row in (await client.get(f"{API}/external-services/summary")).json()["data"]}
    assert summary["OGC_OSDU_ADAPTOR"]["total"] == 2
    assert summary["OGC_OSDU_ADAPTOR"]["byStatus"] == {"inactive": 1, "active": 1}
    assert summary["IDS_BROKER"]["total"] == 1


async def test_sync_only_for_adaptors(client: AsyncClient):
    broker = await _service(client, serviceType="IDS_BROKER")
    resp = await client.post(f"{API}/external-services/{broker['id']}/sync", json={})
    assert resp.status_code == 400


async def test_sync_lifecycle(client: AsyncClient):
    service = await _service(client)
    sid = service["id"]

    resp = await client.post(f"{API}/external-services/{sid}/sync", json={"syncType": "INCREMENTAL"})
    assert resp.status_code == 201
    first = resp.json()["data"]
    assert first["status"] == "in_progress"

    current = (await client.get(f"{API}/external-services/{sid}")).json()["data"]
    assert current["status"] == "syncing"

    # One sync at a time
    assert (await client.post(f"{API}/external-services/{sid}/sync", json={})).status_code == 409

    resp = await client.post(
        f"{API}/external-services/{sid}/sync/{first['id']}/complete", json={"recordsProcessed": 120}
    )
    assert resp.json()["data"]["status"] == "completed"
    assert resp.json()["data"]["recordsProcessed"] == 120
    current = (await client.get(f"{API}/external-services/{sid}")).json()["data"]
    assert current["status"] == "active"

    # Finished syncs cannot finish again
    resp = await client.post(f"{API}/external-services/{sid}/sync/{first['id']}/fail", json={"errors": "late"})
    assert resp.status_code == 409

    second = (await client.post(f"{API}/external-services/{sid}/sync", json={})).json()["data"]
    resp = await client.post(
        f"{API}/external-services/{sid}/sync/{second['id']}/fail", json={"errors": ["timeout"]}
    )
    assert resp.json()["data"]["errors"] == ["timeout"]
    current = (await client.get(f"{API}/external-services/{sid}")).json()["data"]
    assert current["status"] == "error"

    logs = (await client.get(f"{API}/external-services/{sid}/sync")).json()["data"]
    assert {log["id"] for log in logs} == {first["id"], second["id"]}

    actions = [e["action"] for e in (await client.get(f"{API}/external-services/{sid}/audit")).json()["data"]]
    assert sorted(actions) == ["SYNC_COMPLETE", "SYNC_FAILED", "SYNC_START", "SYNC_START"]

    stats = (await client.get(f"{API}/external-services/{sid}/stats")).json()["data"]
    assert stats["periodDays"] == 30
    assert stats["sync"]["totalSyncs"] == 2
    assert stats["sync"]["completedSyncs"] == 1
    assert stats["sync"]["failedSyncs"] == 1
    assert stats["sync"]["totalRecordsProcessed"] == 120
    assert stats["sync"]["successRate"] == 50.0
    assert stats["sync"]["currentlySyncing"] is False


async def test_audit_ingestion_and_stats(client: AsyncClient):
    service = await _service(client, serviceType="DATA_CATALOG")
    sid = service["id"]
    for status, elapsed in ((200, 100.0), (302, 50.0), (500, 30.0)):
        resp = await client.post(
            f"{API}/external-services/{sid}/audit",
            json={"action": "QUERY", "requestMethod": "GET", "responseStatus": status, "responseTime": elapsed},
            headers={"X-Forwarded-For": "10.1.2.3, 10.0.0.1", "User-Agent": "adaptor/1.0"},
        )
        assert resp.status_code == 201
    entry = resp.json()["data"]
    assert entry["ipAddress"] == "10.1.2.3"
    assert entry["userAgent"] == "adaptor/1.0"

    entries = (await client.get(f"{API}/external-services/{sid}/audit", params={"action": "QUERY", "limit": 2})).json()["data"]
    assert len(entries) == 2

    audit = (await client.get(f"{API}/external-services/{sid}/stats")).json()["data"]["audit"]
    assert audit["totalRequests"] == 3
    assert audit["successfulRequests"] == 2
    assert audit["failedRequests"] == 1
    assert audit["averageResponseTime"] == 60.0
    assert audit["successRate"] == 66.67


async def test_unknown_service_is_404(client: AsyncClient):
    assert (await client.get(f"{API}/external-services/missing/stats")).status_code == 404

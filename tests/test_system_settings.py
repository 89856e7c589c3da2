"""Data sources, key/value configs and network settings."""

import asyncio

import pytest
from httpx import AsyncClient

from portal.services import probe
from portal.services.probe import ProbeOutcome
from tests.conftest import API

DS = f"{API}/data-sources"
CFG = f"{API}/configs"
NET = f"{API}/network-settings"


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

async def _source(client: AsyncClient, **overrides) -> dict:
    body = {
        "name": "Production DB",
        "type": "postgresql",
        "host": "db.kkks.local",
        "port": 5433,
        "database": "wells",
        "username": "reader",
        "password": "s3cret",
        "schema": "public",
        "table": "well_header",
        **overrides,
    }
    resp = await client.post(DS, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_data_source_crud(client: AsyncClient):
    source = await _source(client)
    assert source["status"] == "inactive"
    assert source["schema"] == "public"
    assert source["table"] == "well_header"
    assert source["hasPassword"] is True
    assert "password" not in source

    resp = await client.put(f"{DS}/{source['id']}", json={"table": "well_survey", "status": "active"})
    updated = resp.json()["data"]
    assert updated["table"] == "well_survey"
    assert updated["hasPassword"] is True

    await _source(client, name="Catalogue", type="api", host=None, connectionString="https://catalog.local/api")
    listed = (await client.get(DS, params={"type": "api"})).json()
    assert [s["name"] for s in listed["data"]] == ["Catalogue"]
    assert (await client.get(DS, params={"status": "active"})).json()["meta"]["total"] == 1

    assert (await client.delete(f"{DS}/{source['id']}")).status_code == 204
    assert (await client.get(f"{DS}/{source['id']}")).status_code == 404


async def test_database_source_connects_over_tcp(client: AsyncClient, monkeypatch):
    calls = []

    async def fake_socket(host, port):
        calls.append((host, port))
        return ProbeOutcome(success=True, message=f"Connected to {host}:{port}")

    monkeypatch.setattr(probe, "probe_socket", fake_socket)
    explicit = await _source(client)
    from_url = await _source(
        client, name="Replica", type="mysql", host=None, port=None,
        connectionString="mysql://reader@replica.kkks.local/wells",
    )

    resp = await client.post(f"{DS}/{explicit['id']}/test")
    assert resp.json()["data"] == {
        "success": True,
        "message": "Connected to db.kkks.local:5433",
        "statusCode": None,
        "responseTimeMs": None,
    }
    await client.post(f"{DS}/{from_url['id']}/test")
    assert calls == [("db.kkks.local", 5433), ("replica.kkks.local", 3306)]

    refreshed = (await client.get(f"{DS}/{explicit['id']}")).json()["data"]
    assert refreshed["status"] == "active"
    assert refreshed["lastTested"] is not None


async def test_failed_api_check_marks_source_error(client: AsyncClient, monkeypatch):
    seen = {}

    async def fake_endpoint(url, *, headers=None, auth=None):
        seen["url"] = url
        return ProbeOutcome(success=False, message="Endpoint returned HTTP 503", status_code=503)

    monkeypatch.setattr(probe, "probe_endpoint", fake_endpoint)
    source = await _source(client, name="Catalogue", type="api", host="catalog.local", port=8080)

    result = (await client.post(f"{DS}/{source['id']}/test")).json()["data"]
    assert result["success"] is False
    assert result["statusCode"] == 503
    assert seen["url"] == "http://catalog.local:8080"
    assert (await client.get(f"{DS}/{source['id']}")).json()["data"]["status"] == "error"


async def test_untestable_sources(client: AsyncClient):
    files = await _source(client, name="Drop folder", type="file", host=None)
    assert (await client.post(f"{DS}/{files['id']}/test")).status_code == 400

    hostless = await _source(client, name="Unconfigured", host=None)
    resp = await client.post(f"{DS}/{hostless['id']}/test")
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Data source has no host to test"
    assert (await client.get(f"{DS}/{hostless['id']}")).json()["data"]["status"] == "inactive"


async def test_socket_check_against_local_listener():
    server = await asyncio.start_server(lambda reader, writer: writer.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        outcome = await probe.probe_socket("127.0.0.1", port)
    assert outcome.success is True
    assert outcome.message == f"Connected to 127.0.0.1:{port}"


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------

async def _config(client: AsyncClient, **overrides) -> dict:
    body = {"key": "broker.url", "value": "https://broker.local", "category": "network", **overrides}
    resp = await client.post(CFG, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_secret_values_are_masked(client: AsyncClient):
    plain = await _config(client)
    secret = await _config(client, key="broker.api_key", value="k-123", isSecret=True)
    assert plain["value"] == "https://broker.local"
    assert plain["type"] == "string"
    assert secret["value"] == "***"

    listed = (await client.get(CFG)).json()["data"]
    assert [(c["key"], c["value"]) for c in listed] == [("broker.api_key", "***"), ("broker.url", "https://broker.local")]

    assert [c["key"] for c in (await client.get(CFG, params={"secrets": "true"})).json()["data"]] == ["broker.api_key"]
    assert [c["key"] for c in (await client.get(CFG, params={"secrets": "false"})).json()["data"]] == ["broker.url"]
    assert (await client.get(CFG, params={"category": "storage"})).json()["data"] == []

    fetched = (await client.get(f"{CFG}/{secret['id']}")).json()["data"]
    assert fetched["value"] == "***"


@pytest.mark.parametrize(
    "body",
    [
        {"key": "has space", "value": "x"},
        {"key": "k", "value": "x"},
        {"key": "retries", "value": "three", "type": "number"},
        {"key": "enabled", "value": "yes", "type": "boolean"},
        {"key": "limits", "value": "{not json", "type": "json"},
    ],
)
async def test_invalid_configs(client: AsyncClient, body):
    assert (await client.post(CFG, json=body)).status_code == 400


async def test_config_keys_are_unique(client: AsyncClient):
    first = await _config(client)
    other = await _config(client, key="broker.timeout", value="30", type="number")
    assert (await client.post(CFG, json={"key": "broker.url", "value": "x"})).status_code == 409
    resp = await client.put(f"{CFG}/{other['id']}", json={"key": "broker.url"})
    assert resp.status_code == 409

    # A deleted key can be reused
    assert (await client.delete(f"{CFG}/{first['id']}")).status_code == 204
    assert (await client.get(f"{CFG}/{first['id']}")).status_code == 404
    await _config(client, value="https://broker2.local")


async def test_update_checks_merged_type(client: AsyncClient):
    entry = await _config(client, key="broker.timeout", value="30", type="number")
    assert (await client.put(f"{CFG}/{entry['id']}", json={"value": "soon"})).status_code == 400
    resp = await client.put(f"{CFG}/{entry['id']}", json={"value": "true", "type": "boolean"})
    assert resp.json()["data"]["type"] == "boolean"


async def test_upsert_by_key(client: AsyncClient):
    resp = await client.put(f"{CFG}/key/sync.interval", json={"value": "15", "type": "number"})
    assert resp.status_code == 201
    resp = await client.put(f"{CFG}/key/sync.interval", json={"value": "30", "type": "number"})
    assert resp.status_code == 200
    assert resp.json()["data"]["value"] == "30"

    fetched = (await client.get(f"{CFG}/key/sync.interval")).json()["data"]
    assert fetched["value"] == "30"
    assert (await client.get(f"{CFG}/key/missing.key")).status_code == 404
    assert (await client.put(f"{CFG}/key/x", json={"value": "1"})).status_code == 400


async def test_config_changes_reach_compliance_log(client: AsyncClient):
    secret = await _config(client, key="broker.api_key", value="k-123", isSecret=True)
    await client.put(f"{CFG}/{secret['id']}", json={"value": "k-456"})
    await client.delete(f"{CFG}/{secret['id']}")

    entries = (
        await client.get(f"{API}/audit/compliance", params={"eventType": "SYSTEM_CONFIGURATION", "order": "asc"})
    ).json()["data"]
    assert [e["action"] for e in entries] == ["CONFIG_CREATED", "CONFIG_UPDATED", "CONFIG_DELETED"]
    assert {e["entityId"] for e in entries} == {secret["id"]}
    assert {e["securityLevel"] for e in entries} == {"CONFIDENTIAL"}
    # Secret values never reach the log
    assert entries[1]["previousState"]["value"] == "***"
    assert entries[1]["currentState"]["value"] == "***"


# ---------------------------------------------------------------------------
# Network settings
# ---------------------------------------------------------------------------

async def test_network_setting_requires_known_provider(client: AsyncClient):
    resp = await client.post(NET, json={"providerId": "ghost", "apiEndpoint": "https://kkks.local/ids"})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == ["providerId 'ghost' does not exist"]


async def test_network_setting_crud(client: AsyncClient, participants):
    resp = await client.post(
        NET, json={"providerId": participants["provider"], "apiEndpoint": "https://kkks.local/ids"}
    )
    assert resp.status_code == 201
    setting = resp.json()["data"]
    assert setting["protocol"] == "HTTPS"
    assert setting["status"] == "active"
    assert setting["providerName"] == "KKKS Alpha"

    await client.post(
        NET,
        json={"providerId": participants["consumer"], "apiEndpoint": "idscp://skk.local:8086", "protocol": "IDSCP2"},
    )
    listed = (await client.get(NET, params={"protocol": "IDSCP2"})).json()["data"]
    assert [(s["providerName"], s["protocol"]) for s in listed] == [("SKK Migas", "IDSCP2")]
    assert (await client.get(NET, params={"providerId": participants["provider"]})).json()["meta"]["total"] == 1

    resp = await client.put(f"{NET}/{setting['id']}", json={"protocol": "HTTP", "providerId": "ghost"})
    assert resp.status_code == 400
    resp = await client.put(f"{NET}/{setting['id']}", json={"protocol": "HTTP"})
    assert resp.json()["data"]["protocol"] == "HTTP"

    assert (await client.delete(f"{NET}/{setting['id']}")).status_code == 204
    assert (await client.get(f"{NET}/{setting['id']}")).status_code == 404


async def test_network_check_records_status(client: AsyncClient, participants, monkeypatch):
    async def unreachable(url, *, headers=None, auth=None):
        return ProbeOutcome(success=False, message="Connection failed: ConnectError")

    monkeypatch.setattr(probe, "probe_endpoint", unreachable)
    setting = (
        await client.post(NET, json={"providerId": participants["provider"], "apiEndpoint": "https://kkks.local/ids"})
    ).json()["data"]
    assert setting["lastChecked"] is None

    result = (await client.post(f"{NET}/{setting['id']}/check")).json()["data"]
    assert result["result"]["success"] is False
    assert result["setting"]["status"] == "error"
    assert result["setting"]["lastChecked"] is not None
    assert result["setting"]["providerName"] == "KKKS Alpha"

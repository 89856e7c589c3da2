"""Participants and the connector catalogue: resources, requests, brokers, routes, containers."""

from httpx import AsyncClient

from tests.conftest import API


async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_participant_crud(client: AsyncClient):
    resp = await client.post(
        f"{API}/participants",
        json={"email": "ops@kkks.id", "name": "KKKS Ops", "role": "provider", "organization": "KKKS"},
    )
    assert resp.status_code == 201
    participant = resp.json()["data"]
    assert participant["isActive"] is True
    assert participant["clientId"] == "default"

    dup = await client.post(f"{API}/participants", json={"email": "ops@kkks.id", "name": "Again"})
    assert dup.status_code == 409
    assert dup.json()["error"]["code"] == "CONFLICT"

    resp = await client.put(f"{API}/participants/{participant['id']}", json={"name": "KKKS Operations"})
    assert resp.json()["data"]["name"] == "KKKS Operations"

    resp = await client.get(f"{API}/participants", params={"role": "provider"})
    body = resp.json()
    assert body["meta"] == {"total": 1, "page": 1, "limit": 20, "pages": 1}

    assert (await client.delete(f"{API}/participants/{participant['id']}")).status_code == 204
    assert (await client.get(f"{API}/participants/{participant['id']}")).status_code == 404


async def test_sort_by_name_in_either_case(client: AsyncClient, participants):
    resp = await client.get(f"{API}/participants", params={"sort": "name", "order": "asc"})
    assert [p["name"] for p in resp.json()["data"]] == ["KKKS Alpha", "Portal Admin", "SKK Migas"]

    resp = await client.get(f"{API}/participants", params={"sort": "createdAt", "order": "asc"})
    assert resp.status_code == 200
    assert resp.json()["meta"]["total"] == 3


async def test_unsortable_keys_fall_back_to_creation_order(client: AsyncClient, participants):
    for key in ("metadata", "__table__", "nope", "registry"):
        resp = await client.get(f"{API}/participants", params={"sort": key})
        assert resp.status_code == 200, key
        assert resp.json()["meta"]["total"] == 3


async def test_invalid_body_is_400(client: AsyncClient):
    resp = await client.post(f"{API}/participants", json={"name": "No email", "role": "pirate"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert {d["field"] for d in error["details"]} >= {"email", "role"}


async def test_resource_requires_known_provider(client: AsyncClient, participants):
    resp = await client.post(
        f"{API}/resources",
        json={"providerId": "missing", "name": "Blocks", "type": "GeoJSON"},
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"{API}/resources",
        json={
            "providerId": participants["provider"],
            "name": "Blocks",
            "type": "GeoJSON",
            "metadata": {"crs": "EPSG:4326"},
        },
    )
    assert resp.status_code == 201
    resource = resp.json()["data"]
    assert resource["accessPolicy"] == "restricted"
    assert resource["metadata"] == {"crs": "EPSG:4326"}

    resp = await client.get(f"{API}/resources", params={"type": "Seismic"})
    assert resp.json()["meta"]["total"] == 0


async def test_data_request_status_flow(client: AsyncClient, participants):
    resource = (
        await client.post(
            f"{API}/resources",
            json={"providerId": participants["provider"], "name": "Wells", "type": "CSV"},
        )
    ).json()["data"]

    resp = await client.post(
        f"{API}/requests",
        json={
            "requesterId": participants["consumer"],
            "providerId": participants["provider"],
            "resourceId": resource["id"],
            "requestType": "Production",
            "purpose": "Quarterly reporting",
        },
    )
    assert resp.status_code == 201
    request = resp.json()["data"]
    assert request["status"] == "pending"

    resp = await client.patch(f"{API}/requests/{request['id']}/status", json={"status": "approved"})
    assert resp.json()["data"]["status"] == "approved"

    resp = await client.patch(f"{API}/requests/{request['id']}/status", json={"status": "lost"})
    assert resp.status_code == 400

    resp = await client.get(f"{API}/requests", params={"status": "approved"})
    assert [r["id"] for r in resp.json()["data"]] == [request["id"]]


async def test_data_request_unknown_resource(client: AsyncClient, participants):
    resp = await client.post(
        f"{API}/requests",
        json={
            "requesterId": participants["consumer"],
            "providerId": participants["provider"],
            "resourceId": "nope",
            "requestType": "GeoJSON",
        },
    )
    assert resp.status_code == 400


async def test_broker_and_route(client: AsyncClient, participants):
    resp = await client.post(f"{API}/brokers", json={"name": "Metadata broker", "url": "https://broker.local"})
    assert resp.status_code == 201
    assert resp.json()["data"]["validationStatus"] == "pending"

    resp = await client.post(
        f"{API}/routes",
        json={
            "name": "KKKS to SKK",
            "providerId": participants["provider"],
            "consumerId": participants["consumer"],
        },
    )
    assert resp.status_code == 201
    route = resp.json()["data"]
    assert route["status"] == "active"

    resp = await client.get(f"{API}/routes", params={"consumerId": participants["consumer"]})
    assert resp.json()["meta"]["total"] == 1


async def test_container_actions_append_log(client: AsyncClient):
    container = (
        await client.post(f"{API}/containers", json={"name": "connector", "serviceName": "ids-connector"})
    ).json()["data"]
    assert container["status"] == "stopped"

    resp = await client.post(f"{API}/containers/{container['id']}/actions", json={"action": "start"})
    started = resp.json()["data"]
    assert started["status"] == "running"
    assert started["lastRestarted"] is not None
    assert started["logs"].startswith("Container started at ")

    resp = await client.post(f"{API}/containers/{container['id']}/actions", json={"action": "stop"})
    stopped = resp.json()["data"]
    assert stopped["status"] == "stopped"
    assert len(stopped["logs"].splitlines()) == 2
    assert stopped["logs"].splitlines()[1].startswith("Container stopped at ")

    resp = await client.post(f"{API}/containers/{container['id']}/actions", json={"action": "explode"})
    assert resp.status_code == 400

    resp = await client.put(
        f"{API}/containers/{container['id']}/metrics", json={"cpuUsage": 12.5, "memoryUsage": 256}
    )
    assert resp.json()["data"]["cpuUsage"] == 12.5

"""Request audit trail: entity inference, row recording and the read endpoint."""

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from portal.middleware.audit import AuditMiddleware, parse_entity
from tests.conftest import API

UUID = "3f2b8c1e-9a4d-4e57-8b0c-2d6f1a9e7c53"


@pytest.mark.parametrize(
    "path, expected",
    [
        (f"/api/v1/contracts/{UUID}/sign", ("contracts", UUID)),
        ("/api/v1/mdm/wells", ("mdm", None)),
        (f"/api/v1/mdm/wells/{UUID}", ("mdm", UUID)),
        ("/api/v2/participants", ("participants", None)),
        ("/api/v1/", ("unknown", None)),
        ("/health", ("health", None)),
    ],
)
def test_parse_entity(path, expected):
    assert parse_entity(path) == expected


def _request(method: str, path: str) -> Request:
    return Request(
        {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [(b"user-agent", b"pytest"), (b"x-forwarded-for", b"10.9.8.7")],
            "client": ("127.0.0.1", 5000),
            "server": ("test", 80),
            "scheme": "http",
        }
    )


async def test_list_is_empty_by_default(client: AsyncClient):
    # Request auditing is switched off for the test app
    await client.post(f"{API}/brokers", json={"name": "Broker", "url": "https://broker.local"})
    listed = (await client.get(f"{API}/audit-trail")).json()
    assert listed["data"] == []
    assert listed["meta"]["total"] == 0


async def test_recorded_rows_are_listed(client: AsyncClient):
    middleware = AuditMiddleware(app=None)
    await middleware._record(_request("POST", f"{API}/contracts/{UUID}/sign"), 200, 12.5)
    await middleware._record(_request("DELETE", f"{API}/brokers/{UUID}"), 204, 3.0)

    listed = (await client.get(f"{API}/audit-trail")).json()
    assert listed["meta"]["total"] == 2

    deletes = (await client.get(f"{API}/audit-trail", params={"action": "DELETE"})).json()["data"]
    assert len(deletes) == 1
    row = deletes[0]
    assert row["entityType"] == "brokers"
    assert row["entityId"] == UUID
    assert row["statusCode"] == 204
    assert row["ipAddress"] == "10.9.8.7"
    assert row["userAgent"] == "pytest"
    assert row["description"] == f"DELETE {API}/brokers/{UUID} -> 204 (3.0ms)"

    signed = (await client.get(f"{API}/audit-trail", params={"entityType": "contracts"})).json()["data"]
    assert [r["action"] for r in signed] == ["CREATE"]

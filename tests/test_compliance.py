"""Compliance audit log: recording, filtering, integrity and reports."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.domain.compliance import ComplianceAuditLog
from portal.services.compliance import ComplianceService
from tests.conftest import API

LOGS = f"{API}/audit/compliance"


def _window(**shift) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "startDate": (now - timedelta(days=1)).isoformat(),
        "endDate": (now + timedelta(days=1)).isoformat(),
        **shift,
    }


async def _log(client: AsyncClient, **overrides) -> dict:
    body = {
        "eventType": "RESOURCE_DOWNLOAD",
        "action": "DOWNLOAD",
        "entityType": "Resource",
        "entityId": "res-1",
        "userId": "user-1",
        **overrides,
    }
    resp = await client.post(LOGS, json=body, headers={"X-Forwarded-For": "10.1.2.3, 172.16.0.1"})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_record_event(client: AsyncClient):
    entry = await _log(client, riskScore=40, metadata={"ticket": "INC-7"})
    assert entry["ipAddress"] == "10.1.2.3"
    assert entry["securityLevel"] == "INTERNAL"
    assert entry["dataClassification"] == "INTERNAL"
    assert entry["complianceFlags"] == ["ISO_27001", "PP_NO_5_2021_MIGAS"]
    assert entry["metadata"] == {"ticket": "INC-7", "apiCreated": True}
    assert len(entry["integrityHash"]) == 64

    fetched = (await client.get(f"{LOGS}/{entry['id']}")).json()["data"]
    assert fetched["integrityHash"] == entry["integrityHash"]
    assert (await client.get(f"{LOGS}/missing")).status_code == 404


async def test_security_incidents_are_flagged(client: AsyncClient):
    entry = await _log(client, eventType="SECURITY_INCIDENT", action="BRUTE_FORCE", riskScore=90)
    assert entry["complianceFlags"][0] == "SECURITY_INCIDENT"


async def test_invalid_events_rejected(client: AsyncClient):
    assert (await client.post(LOGS, json={"eventType": "COFFEE_BREAK", "action": "x", "entityType": "y"})).status_code == 400
    resp = await client.post(
        LOGS, json={"eventType": "USER_LOGIN", "action": "LOGIN", "entityType": "User", "riskScore": 101}
    )
    assert resp.status_code == 400


async def test_list_filters(client: AsyncClient, session: AsyncSession):
    await _log(client)
    await _log(client, eventType="USER_LOGIN", action="LOGIN", entityType="User", securityLevel="CONFIDENTIAL")
    await ComplianceService(session, "default").record(
        event_type="RESOURCE_ACCESS", action="VIEW", entity_type="Resource", compliance_flags=["ISO_27001"]
    )
    await session.commit()

    everything = (await client.get(LOGS)).json()
    assert everything["meta"]["total"] == 3

    logins = (await client.get(LOGS, params={"eventType": "USER_LOGIN"})).json()["data"]
    assert [e["action"] for e in logins] == ["LOGIN"]
    confidential = (await client.get(LOGS, params={"securityLevel": "CONFIDENTIAL"})).json()["data"]
    assert [e["eventType"] for e in confidential] == ["USER_LOGIN"]
    by_user = (await client.get(LOGS, params={"userId": "user-1"})).json()
    assert by_user["meta"]["total"] == 2

    migas = (await client.get(LOGS, params={"complianceFlag": "PP_NO_5_2021_MIGAS"})).json()
    assert migas["meta"]["total"] == 2

    assert (await client.get(LOGS, params=_window())).json()["meta"]["total"] == 3
    future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    assert (await client.get(LOGS, params={"startDate": future})).json()["meta"]["total"] == 0


async def test_tampered_entry_fails_verification(client: AsyncClient, session: AsyncSession):
    intact = await _log(client)
    tampered = await _log(client, action="UPLOAD", eventType="RESOURCE_UPLOAD")
    assert (await client.get(f"{LOGS}/{tampered['id']}/verify")).json()["data"] == {
        "id": tampered["id"],
        "integrityVerified": True,
    }

    await session.execute(
        update(ComplianceAuditLog).where(ComplianceAuditLog.id == tampered["id"]).values(action="DELETE")
    )
    await session.commit()

    assert (await client.get(f"{LOGS}/{tampered['id']}/verify")).json()["data"]["integrityVerified"] is False
    assert (await client.get(f"{LOGS}/{intact['id']}/verify")).json()["data"]["integrityVerified"] is True

    report = (await client.get(f"{LOGS}/report", params=_window())).json()["data"]
    assert report["integrityVerification"] == {
        "totalLogsVerified": 2,
        "integrityPassed": 1,
        "integrityFailed": 1,
        "integrityRate": 50.0,
    }
    assert {s["status"] for s in report["complianceStandards"].values()} == {"NON_COMPLIANT"}
    verified = {e["id"]: e["integrityVerified"] for e in report["auditLogs"]}
    assert verified == {intact["id"]: True, tampered["id"]: False}


async def test_report_summary(client: AsyncClient, session: AsyncSession):
    await _log(client, riskScore=20)
    await _log(client, eventType="SECURITY_INCIDENT", action="BRUTE_FORCE", riskScore=90)
    await _log(client, eventType="USER_LOGIN", action="LOGIN", entityType="User")
    await ComplianceService(session, "default").record(
        event_type="RESOURCE_ACCESS", action="VIEW", entity_type="Resource", compliance_flags=["ISO_27001"]
    )
    await session.commit()

    report = (await client.get(f"{LOGS}/report", params=_window())).json()["data"]
    assert report["reportMetadata"]["format"] == "ISO_27001"
    assert report["reportMetadata"]["compliance"] == "ISO/IEC 27001:2013 Information Security Management"
    assert report["summary"] == {
        "totalEvents": 4,
        "eventsByType": {"RESOURCE_DOWNLOAD": 1, "SECURITY_INCIDENT": 1, "USER_LOGIN": 1, "RESOURCE_ACCESS": 1},
        "securityIncidents": 1,
        "averageRiskScore": 55.0,
        "highRiskEvents": 1,
    }
    assert len(report["auditLogs"]) == 4
    assert set(report["complianceStandards"]) == {"ISO_27001", "PP_NO_5_2021"}
    assert report["complianceStandards"]["ISO_27001"]["status"] == "COMPLIANT"

    migas = (await client.get(f"{LOGS}/report", params=_window(format="PP_NO_5_2021"))).json()["data"]
    assert migas["reportMetadata"]["compliance"] == "PP No. 5/2021 tentang Pengelolaan Data Migas"
    assert migas["summary"]["totalEvents"] == 4
    assert len(migas["auditLogs"]) == 3
    assert "VIEW" not in {e["action"] for e in migas["auditLogs"]}


async def test_report_needs_a_valid_period(client: AsyncClient):
    assert (await client.get(f"{LOGS}/report")).status_code == 400
    now = datetime.now(timezone.utc)
    resp = await client.get(
        f"{LOGS}/report", params={"startDate": now.isoformat(), "endDate": (now - timedelta(days=1)).isoformat()}
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "startDate must be earlier than endDate"
    assert (await client.get(f"{LOGS}/report", params=_window(format="SOX"))).status_code == 400


async def test_empty_report_is_compliant(client: AsyncClient):
    report = (await client.get(f"{LOGS}/report", params=_window())).json()["data"]
    assert report["summary"]["totalEvents"] == 0
    assert report["summary"]["averageRiskScore"] is None
    assert report["integrityVerification"]["integrityRate"] == 100.0
    assert report["complianceStandards"]["PP_NO_5_2021"]["status"] == "COMPLIANT"

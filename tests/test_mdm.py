"""MDM endpoints: per-domain CRUD, references, key checks, stats, import and export."""

import csv
import io
import json

import pytest
from httpx import AsyncClient
from starlette.datastructures import UploadFile as StarletteUploadFile

from portal.core.config import settings
from tests.conftest import API

MDM = f"{API}/mdm"

BLOCK = {"type": "Polygon", "coordinates": [[[106.0, -6.0], [107.0, -6.0], [107.0, -7.0], [106.0, -6.0]]]}
POINT = {"type": "Point", "coordinates": [106.5, -6.5]}


def working_area_body(**overrides) -> dict:
    return {
        "wkId": "WK-ALPHA",
        "namaWk": "Alpha Block",
        "statusWk": "ACTIVE",
        "lokasi": "ONSHORE",
        "jenisKontrak": "PSC",
        "effectiveDate": "2015-01-01",
        "holding": "Pertamina",
        "faseWk": "EKSPLOITASI",
        "kewenangan": "SKK Migas",
        "shape": BLOCK,
        **overrides,
    }


def field_body(**overrides) -> dict:
    return {
        "fieldId": "FLD-01",
        "fieldName": "Alpha Field",
        "wkId": "WK-ALPHA",
        "fieldType": "OIL",
        "status": "PRODUCTION",
        "operator": "Pertamina",
        "estimatedReserves": 120.5,
        "shape": POINT,
        **overrides,
    }


def well_body(**overrides) -> dict:
    return {
        "uwi": "UWI-0001",
        "wkId": "WK-ALPHA",
        "fieldId": "FLD-01",
        "wellName": "Alpha-1",
        "operator": "Pertamina",
        "currentClass": "DEVELOPMENT",
        "statusType": "PRODUCE",
        "environmentType": "LAND",
        "profileType": "VERTICAL",
        "surfaceLongitude": 106.5,
        "surfaceLatitude": -6.5,
        "spudDate": "2020-01-01",
        "finalDrillDate": "2020-01-31",
        "totalDepth": 2500,
        "shape": POINT,
        **overrides,
    }


@pytest.fixture
async def wk(client: AsyncClient) -> dict:
    resp = await client.post(f"{MDM}/working-areas", json=working_area_body())
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
async def field(client: AsyncClient, wk) -> dict:
    resp = await client.post(f"{MDM}/fields", json=field_body())
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def test_create_working_area(client: AsyncClient, wk):
    assert wk["wkId"] == "WK-ALPHA"
    assert wk["crsEpsg"] == 4326
    assert wk["shape"] == BLOCK

    fetched = (await client.get(f"{MDM}/working-areas/{wk['id']}")).json()["data"]
    assert fetched["effectiveDate"] == "2015-01-01"


async def test_rule_errors_are_reported_together(client: AsyncClient):
    resp = await client.post(
        f"{MDM}/working-areas", json=working_area_body(wkId="wk alpha", lokasi="SPACE", holding="")
    )
    assert resp.status_code == 400
    details = resp.json()["error"]["details"]
    assert details == [
        "HOLDING is required and cannot be empty",
        "WK_ID must contain only uppercase letters, numbers, underscores, and hyphens",
        "LOKASI must be one of: ONSHORE, OFFSHORE, ONSHORE_OFFSHORE",
    ]


async def test_duplicate_business_key_is_409(client: AsyncClient, wk):
    resp = await client.post(f"{MDM}/working-areas", json=working_area_body(namaWk="Copy"))
    assert resp.status_code == 409
    assert resp.json()["error"]["message"] == 'Working area with WK_ID "WK-ALPHA" already exists'


async def test_unknown_references_are_400(client: AsyncClient, wk):
    resp = await client.post(f"{MDM}/fields", json=field_body(wkId="WK-NOPE"))
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == ['Working Area with WK_ID "WK-NOPE" does not exist']

    resp = await client.post(f"{MDM}/wells", json=well_body(fieldId="FLD-NOPE"))
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == ['Field with FIELD_ID "FLD-NOPE" does not exist']


async def test_update_merges_with_stored_values(client: AsyncClient, wk):
    resp = await client.put(f"{MDM}/working-areas/{wk['id']}", json={"namaWk": "Alpha Renamed"})
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["namaWk"] == "Alpha Renamed"
    assert updated["holding"] == "Pertamina"

    resp = await client.put(f"{MDM}/working-areas/{wk['id']}", json={"expireDate": "2010-01-01"})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == ["Expire date cannot be earlier than effective date"]


async def test_working_area_list_counts_children(client: AsyncClient, wk, field):
    assert (await client.post(f"{MDM}/wells", json=well_body())).status_code == 201
    assert (
        await client.post(
            f"{MDM}/seismic-surveys",
            json={
                "seisAcqtnSurveyId": "SS-2D-01",
                "acqtnSurveyName": "Alpha 2D",
                "wkId": "WK-ALPHA",
                "seisDimension": "2D",
                "environment": "ONSHORE",
                "shotBy": "BGP",
                "shape": {"type": "LineString", "coordinates": [[106.1, -6.1], [106.9, -6.9]]},
            },
        )
    ).status_code == 201

    listed = (await client.get(f"{MDM}/working-areas")).json()
    assert listed["meta"]["total"] == 1
    assert listed["data"][0]["counts"] == {"fields": 1, "wells": 1, "seismicSurveys": 1, "facilities": 0}

    assert (await client.get(f"{MDM}/working-areas", params={"status": "TERMINATED"})).json()["meta"]["total"] == 0
    assert (await client.get(f"{MDM}/working-areas", params={"search": "alpha"})).json()["meta"]["total"] == 1


async def test_field_filters(client: AsyncClient, wk, field):
    await client.post(f"{MDM}/fields", json=field_body(fieldId="FLD-02", fieldType="GAS", isOffshore=True))

    offshore = (await client.get(f"{MDM}/fields", params={"isOffshore": "true"})).json()["data"]
    assert [f["fieldId"] for f in offshore] == ["FLD-02"]
    gas = (await client.get(f"{MDM}/fields", params={"fieldType": "GAS", "wkId": "WK-ALPHA"})).json()
    assert gas["meta"]["total"] == 1


async def test_delete_refused_while_referenced(client: AsyncClient, wk, field):
    resp = await client.delete(f"{MDM}/working-areas/{wk['id']}")
    assert resp.status_code == 409
    assert "1 fields" in resp.json()["error"]["message"]

    # Renaming a referenced key is refused as well
    resp = await client.put(f"{MDM}/working-areas/{wk['id']}", json={"wkId": "WK-BETA"})
    assert resp.status_code == 409

    assert (await client.delete(f"{MDM}/fields/{field['id']}")).status_code == 204
    assert (await client.delete(f"{MDM}/working-areas/{wk['id']}")).status_code == 204
    assert (await client.get(f"{MDM}/working-areas/{wk['id']}")).status_code == 404

    # Deleted keys stay reserved
    assert (await client.post(f"{MDM}/working-areas", json=working_area_body())).status_code == 409


async def test_key_check(client: AsyncClient, wk):
    url = f"{MDM}/working-areas/validate"
    taken = (await client.post(url, json={"wkId": "WK-ALPHA"})).json()["data"]
    assert taken == {"valid": False, "error": 'WK_ID "WK-ALPHA" already exists', "message": None}

    own = (await client.post(url, json={"wkId": "WK-ALPHA", "excludeId": wk["id"]})).json()["data"]
    assert own["valid"] is True

    bad = (await client.post(url, json={"wk_id": "wk-1"})).json()["data"]
    assert bad["valid"] is False

    free = (await client.post(url, json={"wkId": "WK-GAMMA"})).json()["data"]
    assert free["message"] == 'WK_ID "WK-GAMMA" is available'

    assert (await client.post(url, json={})).status_code == 400


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

async def test_domain_stats(client: AsyncClient, wk, field):
    await client.post(f"{MDM}/wells", json=well_body())

    wk_stats = (await client.get(f"{MDM}/working-areas/stats")).json()["data"]
    assert wk_stats["total"] == 1
    assert wk_stats["byStatus"] == {"ACTIVE": 1}
    assert wk_stats["related"] == {"fields": 1, "wells": 1, "seismicSurveys": 0, "facilities": 0}

    field_stats = (await client.get(f"{MDM}/fields/stats")).json()["data"]
    assert field_stats["onshore"] == 1
    assert field_stats["totalEstimatedReserves"] == 120.5

    well_stats = (await client.get(f"{MDM}/wells/stats")).json()["data"]
    assert well_stats["active"] == 1
    assert well_stats["byWorkingArea"] == [{"wkId": "WK-ALPHA", "namaWk": "Alpha Block", "count": 1}]
    assert well_stats["bySpudYear"] == {"2020": 1}
    assert well_stats["depth"] == {"average": 2500.0, "min": 2500.0, "max": 2500.0}
    assert well_stats["drillingDays"]["average"] == 30.0

    empty = (await client.get(f"{MDM}/facilities/stats")).json()["data"]
    assert empty["total"] == 0


# ---------------------------------------------------------------------------
# Central validation
# ---------------------------------------------------------------------------

async def test_central_validate(client: AsyncClient, wk):
    resp = await client.post(
        f"{MDM}/validate",
        json={"domain": "well", "data": well_body(fieldId=None, wkId="WK-NOPE")},
    )
    result = resp.json()["data"]
    assert result["isValid"] is False
    assert result["errors"] == ['Working Area with WK_ID "WK-NOPE" does not exist']
    assert result["warnings"] == ["Well is not linked to a field"]
    assert result["summary"] == {"domain": "well", "operation": "create", "status": "INVALID", "errorCount": 1}

    # Existing key only matters on create
    resp = await client.post(
        f"{MDM}/validate", json={"domain": "workingArea", "data": working_area_body(), "operation": "update"}
    )
    assert resp.json()["data"]["isValid"] is True
    resp = await client.post(f"{MDM}/validate", json={"domain": "workingArea", "data": working_area_body()})
    assert resp.json()["data"]["errors"] == ['WK_ID "WK-ALPHA" already exists']

    resp = await client.post(f"{MDM}/validate", json={"domain": "pipeline", "data": {}})
    assert resp.status_code == 400


async def test_central_validate_reports_type_errors(client: AsyncClient):
    resp = await client.post(
        f"{MDM}/validate", json={"domain": "field", "data": field_body(estimatedReserves="lots")}
    )
    errors = resp.json()["data"]["errors"]
    assert len(errors) == 1
    assert errors[0].startswith("ESTIMATED_RESERVES: ")


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------

def _csv(header: list[str], rows: list[list]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


async def _import(client: AsyncClient, domain: str, content: bytes, filename="data.csv", content_type="text/csv"):
    return await client.post(
        f"{MDM}/import",
        files={"file": (filename, content, content_type)},
        data={"domain": domain},
    )


async def test_import_reports_failed_rows(client: AsyncClient, wk):
    shape = json.dumps(POINT)
    content = _csv(
        ["FIELD_ID", "FIELD_NAME", "WK_ID", "FIELD_TYPE", "STATUS", "OPERATOR", "isOffshore", "SHAPE"],
        [
            ["FLD-A", "Field A", "WK-ALPHA", "OIL", "PRODUCTION", "Pertamina", "true", shape],
            ["FLD-B", "Field B", "WK-ALPHA", "WATER", "PRODUCTION", "Pertamina", "", shape],
            ["FLD-A", "Field A again", "WK-ALPHA", "GAS", "PRODUCTION", "Pertamina", "", shape],
            ["FLD-C", "Field C", "WK-NOPE", "GAS", "PRODUCTION", "Pertamina", "", shape],
        ],
    )
    resp = await _import(client, "field", content)
    assert resp.status_code == 200, resp.text
    result = resp.json()["data"]
    assert result["processedRecords"] == 1
    assert result["failedRecords"] == 3
    assert [e["row"] for e in result["errors"]] == [3, 4, 5]
    assert result["errors"][0]["errors"] == ["FIELD_TYPE must be one of: OIL, GAS, OIL_GAS, CONDENSATE"]
    assert result["errors"][1]["errors"] == ['Field with FIELD_ID "FLD-A" already exists']

    imported = (await client.get(f"{MDM}/fields")).json()["data"]
    assert [(f["fieldId"], f["isOffshore"], f["shape"]) for f in imported] == [("FLD-A", True, POINT)]


async def test_import_rejects_bad_uploads(client: AsyncClient, monkeypatch):
    content = _csv(["WK_ID"], [["WK-1"]])
    assert (await _import(client, "mine", content)).status_code == 400
    assert (await _import(client, "workingArea", b"{}", "data.json", "application/json")).status_code == 400
    assert (await _import(client, "workingArea", _csv(["NAMA_WK"], [["x"]]))).status_code == 400
    assert (await _import(client, "workingArea", _csv(["WK_ID"], []))).status_code == 400

    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    resp = await _import(client, "workingArea", content)
    assert resp.status_code == 413


async def test_import_reads_no_further_than_the_limit(client: AsyncClient, monkeypatch):
    sizes = []
    original = StarletteUploadFile.read

    async def recording_read(self, size: int = -1) -> bytes:
        sizes.append(size)
        return await original(self, size)

    monkeypatch.setattr(StarletteUploadFile, "read", recording_read)
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    rows = [[f"WK-{i}"] for i in range(5000)]
    resp = await _import(client, "workingArea", _csv(["WK_ID"], rows))
    assert resp.status_code == 413
    assert resp.json()["error"]["message"] == "File size too large. Maximum size is 0MB"
    assert sizes == [1]


# ---------------------------------------------------------------------------
# Compliance export
# ---------------------------------------------------------------------------

async def test_export_json(client: AsyncClient, wk):
    resp = await client.post(f"{MDM}/export", json={"domains": ["workingArea", "field"]})
    report = resp.json()["data"]
    assert report["reportType"] == "Compliance"
    by_domain = {d["domain"]: d for d in report["domains"]}
    assert by_domain["workingArea"]["totalRecords"] == 1
    assert by_domain["workingArea"]["complianceRate"] == 100.0
    assert by_domain["field"] == {
        "domain": "field",
        "totalRecords": 0,
        "compliantRecords": 0,
        "issueRecords": 0,
        "complianceRate": 0.0,
        "topIssues": [],
    }


async def test_export_csv(client: AsyncClient, wk):
    resp = await client.post(f"{MDM}/export", json={"format": "csv", "domains": ["workingArea"]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="MDM_Compliance_Report_' in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["MDM Data Quality Report"]
    assert rows[-1][:6] == ["workingArea", "Working Areas", "1", "1", "0", "100.0%"]

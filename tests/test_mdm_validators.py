"""Master-data rule checks, independent of the database."""

from datetime import date

import pytest

from portal.services.mdm.validators import (
    collect_warnings,
    iter_positions,
    parse_geometry,
    validate_record,
)

JAVA_BLOCK = {"type": "Polygon", "coordinates": [[[106.0, -6.0], [107.0, -6.0], [107.0, -7.0], [106.0, -6.0]]]}


def working_area(**overrides) -> dict:
    return {
        "wk_id": "WK-ALPHA",
        "nama_wk": "Alpha",
        "status_wk": "ACTIVE",
        "lokasi": "ONSHORE",
        "jenis_kontrak": "PSC",
        "effective_date": date(2015, 1, 1),
        "holding": "Pertamina",
        "fase_wk": "EKSPLOITASI",
        "kewenangan": "SKK Migas",
        "shape": JAVA_BLOCK,
        **overrides,
    }


def well(**overrides) -> dict:
    return {
        "uwi": "UWI-0001",
        "wk_id": "WK-ALPHA",
        "well_name": "Alpha-1",
        "operator": "Pertamina",
        "current_class": "DEVELOPMENT",
        "status_type": "PRODUCE",
        "environment_type": "LAND",
        "profile_type": "VERTICAL",
        "surface_longitude": 106.5,
        "surface_latitude": -6.5,
        "shape": {"type": "Point", "coordinates": [106.5, -6.5]},
        **overrides,
    }


def test_valid_working_area_has_no_errors():
    assert validate_record("workingArea", working_area()) == []


def test_mandatory_fields_use_column_labels():
    errors = validate_record("field", {"field_name": "  "})
    assert "FIELD_ID is required and cannot be empty" in errors
    assert "FIELD_NAME is required and cannot be empty" in errors
    assert "SHAPE is required and cannot be empty" in errors


def test_business_id_format():
    errors = validate_record("workingArea", working_area(wk_id="wk alpha"))
    assert errors == ["WK_ID must contain only uppercase letters, numbers, underscores, and hyphens"]


def test_enumerations():
    errors = validate_record("workingArea", working_area(lokasi="SPACE"))
    assert errors == ["LOKASI must be one of: ONSHORE, OFFSHORE, ONSHORE_OFFSHORE"]


@pytest.mark.parametrize(
    "shape, message",
    [
        ("{not json", "Geometry must be valid JSON"),
        ({"type": "Polygon"}, "Geometry must be valid GeoJSON with type and coordinates"),
        (
            {"type": "Point", "coordinates": [106.0, -6.0]},
            "Working Area geometry should be Polygon or MultiPolygon",
        ),
        (
            {"type": "Polygon", "coordinates": [[[200.0, 0.0], [201.0, 0.0], [200.0, 1.0]]]},
            "Geometry coordinates must be valid WGS84 (longitude -180 to 180, latitude -90 to 90)",
        ),
        (
            {"type": "Polygon", "coordinates": [[[10.0, 50.0], [11.0, 50.0], [10.0, 51.0]]]},
            "Working Area geometry must be within Indonesia bounds (95°E to 141°E, 6°N to 11°S)",
        ),
    ],
)
def test_working_area_geometry(shape, message):
    assert message in validate_record("workingArea", working_area(shape=shape))


def test_geometry_given_as_json_text():
    geometry, error = parse_geometry('{"type": "Point", "coordinates": [1, 2]}')
    assert error is None
    assert geometry["type"] == "Point"


def test_iter_positions_flattens_nesting():
    multi = [[[[1, 2], [3, 4]]], [[[5, 6]]]]
    assert list(iter_positions(multi)) == [(1.0, 2.0), (3.0, 4.0), (5.0, 6.0)]


def test_well_business_rules():
    errors = validate_record(
        "well",
        well(
            surface_longitude=150.0,
            surface_latitude=-20.0,
            total_depth=0,
            spud_date=date(2020, 5, 1),
            final_drill_date=date(2020, 4, 1),
        ),
    )
    assert errors == [
        "Surface Longitude must be within Indonesia range (95°E to 141°E)",
        "Surface Latitude must be within Indonesia range (6°N to 11°S)",
        "Total Depth must be a positive number",
        "Final Drill Date cannot be earlier than Spud Date",
    ]


def test_facility_type_specific_rules():
    base = {
        "facility_id": "FAC-01",
        "facility_name": "Trunkline",
        "wk_id": "WK-ALPHA",
        "operator": "Pertamina",
        "status": "OPERATIONAL",
        "shape": {"type": "LineString", "coordinates": [[106, -6], [107, -6]]},
    }
    pipeline = validate_record("facility", {**base, "facility_type": "PIPELINE", "diameter": 0, "length": 12.5})
    assert pipeline == ["Pipeline diameter must be positive"]

    platform = validate_record("facility", {**base, "facility_type": "PLATFORM", "water_depth": -3})
    assert platform == ["Platform water depth cannot be negative"]

    # Pipeline rules do not apply to other types
    assert validate_record("facility", {**base, "facility_type": "TERMINAL", "diameter": 0}) == []


def test_date_order_rules():
    assert validate_record(
        "workingArea", working_area(expire_date=date(2010, 1, 1))
    ) == ["Expire date cannot be earlier than effective date"]


def test_warnings():
    assert collect_warnings("well", well(crs_epsg=32748)) == [
        "CRS EPSG:32748 is not WGS84 (EPSG:4326)",
        "Well is not linked to a field",
    ]
    assert collect_warnings("well", well(field_id="FLD-01")) == []
    assert collect_warnings("facility", {}) == ["Facility has no point coordinates"]

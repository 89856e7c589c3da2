"""Rule validation for master data records.

Every check works on a plain ``{column: value}`` dict and returns a list
of human-readable messages, so the same rules back create/update, the
central ``/mdm/validate`` endpoint, CSV import and the compliance export.
Foreign-key checks need the database and live in the service layer.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from datetime import date
from typing import Any

ID_PATTERN = re.compile(r"^[A-Z0-9_-]+$")

# Indonesia bounding box
LON_MIN, LON_MAX = 95.0, 141.0
LAT_MIN, LAT_MAX = -11.0, 6.0

MANDATORY: dict[str, tuple[str, ...]] = {
    "workingArea": (
        "wk_id", "nama_wk", "status_wk", "lokasi", "jenis_kontrak",
        "effective_date", "holding", "fase_wk", "kewenangan", "shape",
    ),
    "field": ("field_id", "field_name", "wk_id", "field_type", "status", "operator", "shape"),
    "well": (
        "uwi", "wk_id", "well_name", "operator", "current_class", "status_type",
        "environment_type", "profile_type", "surface_longitude", "surface_latitude", "shape",
    ),
    "seismicSurvey": (
        "seis_acqtn_survey_id", "acqtn_survey_name", "wk_id", "seis_dimension",
        "environment", "shot_by", "shape",
    ),
    "facility": ("facility_id", "facility_name", "facility_type", "wk_id", "operator", "status", "shape"),
}

BUSINESS_KEYS = {
    "workingArea": "wk_id",
    "field": "field_id",
    "well": "uwi",
    "seismicSurvey": "seis_acqtn_survey_id",
    "facility": "facility_id",
}

ENUMS: dict[str, dict[str, tuple[str, ...]]] = {
    "workingArea": {"lokasi": ("ONSHORE", "OFFSHORE", "ONSHORE_OFFSHORE")},
    "field": {
        "field_type": ("OIL", "GAS", "OIL_GAS", "CONDENSATE"),
        "status": ("DISCOVERY", "APPRAISAL", "DEVELOPMENT", "PRODUCTION", "ABANDONED"),
    },
    "well": {},
    "seismicSurvey": {
        "seis_dimension": ("2D", "3D"),
        "environment": ("ONSHORE", "OFFSHORE", "TRANSITION_ZONE"),
    },
    "facility": {
        "facility_type": (
            "PIPELINE", "PLATFORM", "FLOATING_FACILITY", "PROCESSING_PLANT", "INJECTION_FACILITY",
            "COMPRESSION_STATION", "PUMPING_STATION", "METERING_STATION", "TERMINAL", "STORAGE_TANK",
        ),
        "status": (
            "PLANNED", "UNDER_CONSTRUCTION", "OPERATIONAL", "SUSPENDED", "ABANDONED", "DECOMMISSIONED",
        ),
    },
}


def label(column: str) -> str:
    return column.upper()


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list)):
        return not value
    return False


def parse_geometry(shape: Any) -> tuple[dict | None, str | None]:
    """Return (geometry, error). Strings are decoded as JSON first."""
    if isinstance(shape, str):
        try:
            shape = json.loads(shape)
        except ValueError:
            return None, "Geometry must be valid JSON"
    if not isinstance(shape, dict) or "type" not in shape or "coordinates" not in shape:
        return None, "Geometry must be valid GeoJSON with type and coordinates"
    return shape, None


def iter_positions(coordinates: Any) -> Iterator[tuple[float, float]]:
    """Yield every (lon, lat) pair of a nested GeoJSON coordinate array."""
    if (
        isinstance(coordinates, (list, tuple))
        and len(coordinates) >= 2
        and all(isinstance(c, (int, float)) for c in coordinates[:2])
    ):
        yield float(coordinates[0]), float(coordinates[1])
        return
    if isinstance(coordinates, (list, tuple)):
        for item in coordinates:
            yield from iter_positions(item)


# ---------------------------------------------------------------------------
# Rule groups
# ---------------------------------------------------------------------------

def check_mandatory(domain: str, data: dict[str, Any]) -> list[str]:
    return [
        f"{label(col)} is required and cannot be empty"
        for col in MANDATORY[domain]
        if is_empty(data.get(col))
    ]


def check_id_format(domain: str, data: dict[str, Any]) -> list[str]:
    key = BUSINESS_KEYS[domain]
    value = data.get(key)
    if is_empty(value) or ID_PATTERN.match(str(value)):
        return []
    return [f"{label(key)} must contain only uppercase letters, numbers, underscores, and hyphens"]


def check_enums(domain: str, data: dict[str, Any]) -> list[str]:
    errors = []
    for col, allowed in ENUMS[domain].items():
        value = data.get(col)
        if not is_empty(value) and value not in allowed:
            errors.append(f"{label(col)} must be one of: {', '.join(allowed)}")
    return errors


def check_geometry(domain: str, data: dict[str, Any]) -> list[str]:
    if is_empty(data.get("shape")):
        return []
    geometry, error = parse_geometry(data["shape"])
    if error:
        return [error]
    if domain != "workingArea":
        return []

    errors = []
    if geometry["type"] not in ("Polygon", "MultiPolygon"):
        errors.append("Working Area geometry should be Polygon or MultiPolygon")
    positions = list(iter_positions(geometry["coordinates"]))
    if any(not (-180 <= lon <= 180 and -90 <= lat <= 90) for lon, lat in positions):
        errors.append("Geometry coordinates must be valid WGS84 (longitude -180 to 180, latitude -90 to 90)")
    elif any(not (LON_MIN <= lon <= LON_MAX and LAT_MIN <= lat <= LAT_MAX) for lon, lat in positions):
        errors.append("Working Area geometry must be within Indonesia bounds (95°E to 141°E, 6°N to 11°S)")
    return errors


def _before(earlier: Any, later: Any) -> bool:
    return isinstance(earlier, date) and isinstance(later, date) and later < earlier


def _number(value: Any) -> float | None:
    return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None


def check_business_rules(domain: str, data: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if domain == "well":
        lon, lat = _number(data.get("surface_longitude")), _number(data.get("surface_latitude"))
        if lon is not None and not LON_MIN <= lon <= LON_MAX:
            errors.append("Surface Longitude must be within Indonesia range (95°E to 141°E)")
        if lat is not None and not LAT_MIN <= lat <= LAT_MAX:
            errors.append("Surface Latitude must be within Indonesia range (6°N to 11°S)")
        depth = _number(data.get("total_depth"))
        if depth is not None and depth <= 0:
            errors.append("Total Depth must be a positive number")
        if _before(data.get("spud_date"), data.get("final_drill_date")):
            errors.append("Final Drill Date cannot be earlier than Spud Date")

    elif domain == "field":
        reserves = _number(data.get("estimated_reserves"))
        if reserves is not None and reserves < 0:
            errors.append("Estimated Reserves cannot be negative")

    elif domain == "seismicSurvey":
        if _before(data.get("start_date"), data.get("completed_date")):
            errors.append("Completed date cannot be earlier than start date")

    elif domain == "facility":
        if _before(data.get("installation_date"), data.get("commissioning_date")):
            errors.append("Commissioning date cannot be earlier than installation date")
        if data.get("facility_type") == "PIPELINE":
            for col, name in (("diameter", "diameter"), ("length", "length")):
                value = _number(data.get(col))
                if value is not None and value <= 0:
                    errors.append(f"Pipeline {name} must be positive")
        if data.get("facility_type") == "PLATFORM":
            water_depth = _number(data.get("water_depth"))
            if water_depth is not None and water_depth < 0:
                errors.append("Platform water depth cannot be negative")
            wells = _number(data.get("no_of_well"))
            if wells is not None and wells < 0:
                errors.append("Platform number of wells cannot be negative")

    elif domain == "workingArea":
        if _before(data.get("effective_date"), data.get("expire_date")):
            errors.append("Expire date cannot be earlier than effective date")
    return errors


def validate_record(domain: str, data: dict[str, Any]) -> list[str]:
    """All rule errors for one record, in a stable order."""
    return [
        *check_mandatory(domain, data),
        *check_id_format(domain, data),
        *check_enums(domain, data),
        *check_geometry(domain, data),
        *check_business_rules(domain, data),
    ]


def collect_warnings(domain: str, data: dict[str, Any]) -> list[str]:
    warnings = []
    epsg = data.get("crs_epsg")
    if epsg not in (None, 4326):
        warnings.append(f"CRS EPSG:{epsg} is not WGS84 (EPSG:4326)")
    if domain == "well" and is_empty(data.get("field_id")):
        warnings.append("Well is not linked to a field")
    if domain == "facility" and data.get("longitude") is None and data.get("latitude") is None:
        warnings.append("Facility has no point coordinates")
    return warnings

"""Cross-domain MDM operations: central validation, CSV import, compliance export."""

from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import utcnow
from portal.core.config import settings
from portal.core.exceptions import ConflictError, PayloadTooLargeError, ValidationError
from portal.schemas.mdm import (
    DomainReport,
    ExportReport,
    ImportResult,
    ImportRowError,
    MdmExportRequest,
    MdmValidateRequest,
    MdmValidateResponse,
    ValidationSummary,
)
from portal.services.mdm.service import SERVICES, MdmService
from portal.services.mdm.validators import collect_warnings, label, validate_record

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel", "text/plain"}

DOMAIN_NAMES = {
    "workingArea": "Working Areas",
    "seismicSurvey": "Seismic Surveys",
    "well": "Wells",
    "field": "Fields",
    "facility": "Facilities",
}


def _service(session: AsyncSession, client_id: str, domain: str) -> MdmService:
    try:
        return SERVICES[domain](session, client_id)
    except KeyError:
        raise ValidationError(
            f"Invalid domain. Must be one of: {', '.join(SERVICES)}"
        ) from None


# ---------------------------------------------------------------------------
# Central validation
# ---------------------------------------------------------------------------

async def validate_payload(
    session: AsyncSession, client_id: str, request: MdmValidateRequest
) -> MdmValidateResponse:
    service = _service(session, client_id, request.domain)
    values, errors = service.coerce(request.data)
    warnings: list[str] = []
    if not errors:
        errors = validate_record(request.domain, values)
        warnings = collect_warnings(request.domain, values)
    if not errors:
        key_value = values[service.key]
        if request.operation == "create" and await service.repo.key_taken(key_value):
            errors.append(f'{label(service.key)} "{key_value}" already exists')
        errors.extend(await service.check_references(values))

    return MdmValidateResponse(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        summary=ValidationSummary(
            domain=request.domain,
            operation=request.operation,
            status="INVALID" if errors else "VALID",
            error_count=len(errors),
        ),
    )


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------

def header_map(schema: type[BaseModel], headers: list[str]) -> dict[str, str]:
    """Map CSV headers (``WK_ID``, ``wkId`` or ``wk_id``) to column names."""
    lookup: dict[str, str] = {}
    for name, field in schema.model_fields.items():
        for spelling in (name, field.alias or name):
            lookup[spelling.lower()] = name
            lookup[spelling.replace("_", "").lower()] = name
    mapped = {}
    for header in headers:
        key = (header or "").strip().lower()
        column = lookup.get(key) or lookup.get(key.replace("_", ""))
        if column:
            mapped[header] = column
    return mapped


def _check_upload(filename: str, content_type: str | None, content: bytes) -> str:
    if not filename.lower().endswith(".csv") and (content_type or "").split(";")[0] not in CSV_CONTENT_TYPES:
        raise ValidationError("Invalid file type. Please upload a CSV file")
    if len(content) > settings.max_upload_size_bytes:
        raise PayloadTooLargeError(
            f"File size too large. Maximum size is {settings.max_upload_size_mb}MB"
        )
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded") from None


async def import_csv(
    session: AsyncSession,
    client_id: str,
    domain: str,
    filename: str,
    content_type: str | None,
    content: bytes,
) -> ImportResult:
    service = _service(session, client_id, domain)
    text = _check_upload(filename, content_type, content)

    reader = csv.DictReader(io.StringIO(text))
    columns = header_map(service.schema, reader.fieldnames or [])
    if service.key not in columns.values():
        raise ValidationError(f"CSV header must include {label(service.key)}")

    processed = 0
    failures: list[ImportRowError] = []
    # Row numbers match the spreadsheet: the header is row 1
    for row_number, row in enumerate(reader, start=2):
        raw = {
            column: (row.get(header) or "").strip() or None
            for header, column in columns.items()
        }
        values, errors = service.coerce(raw)
        if not errors:
            try:
                await service.create_from(values)
            except ValidationError as exc:
                errors = exc.errors or [exc.message]
            except ConflictError as exc:
                errors = [exc.message]
        if errors:
            failures.append(ImportRowError(row=row_number, errors=errors))
        else:
            processed += 1

    if processed == 0 and not failures:
        raise ValidationError("CSV file contains no data rows")
    logger.info(
        "MDM import %s into %s: %d processed, %d failed", filename, domain, processed, len(failures)
    )
    return ImportResult(
        domain=domain,
        filename=filename,
        processed_records=processed,
        failed_records=len(failures),
        errors=failures,
    )


# ---------------------------------------------------------------------------
# Compliance export
# ---------------------------------------------------------------------------

async def compliance_report(
    session: AsyncSession, client_id: str, request: MdmExportRequest
) -> ExportReport:
    reports = []
    for domain in request.domains:
        service = _service(session, client_id, domain)
        issues: Counter[str] = Counter()
        compliant = 0
        records = await service.repo.find_all()
        for record in records:
            errors = validate_record(domain, service.columns(record))
            if errors:
                issues.update(errors)
            else:
                compliant += 1
        total = len(records)
        reports.append(
            DomainReport(
                domain=domain,
                total_records=total,
                compliant_records=compliant,
                issue_records=total - compliant,
                compliance_rate=round(compliant / total * 100, 2) if total else 0.0,
                top_issues=[message for message, _ in issues.most_common(5)],
            )
        )
    return ExportReport(generated_at=utcnow(), report_type=request.report_type, domains=reports)


def report_filename(report_type: str, generated_at: datetime) -> str:
    stamp = generated_at.strftime("%Y-%m-%dT%H-%M-%S")
    return f"MDM_{report_type}_Report_{stamp}.csv"


def report_csv(report: ExportReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["MDM Data Quality Report"])
    writer.writerow(["Generated", report.generated_at.isoformat()])
    writer.writerow(["Report Type", report.report_type])
    writer.writerow([])
    writer.writerow(["Domain", "Name", "Total Records", "Compliant Records", "Issue Records",
                     "Compliance Rate", "Top Issues"])
    for item in report.domains:
        writer.writerow([
            item.domain,
            DOMAIN_NAMES.get(item.domain, item.domain),
            item.total_records,
            item.compliant_records,
            item.issue_records,
            f"{item.compliance_rate}%",
            "; ".join(item.top_issues),
        ])
    return buffer.getvalue()

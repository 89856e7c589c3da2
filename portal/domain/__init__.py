"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  participant.py      — data-space parties (providers, consumers, admins)
  connector.py        — resources, data requests, brokers, routes, containers
  contract.py         — service applications and data-usage contracts
  external_service.py — external services, adaptor sync + audit logs
  clearing_house.py   — transactions, validations, negotiations, payments, audit log
  license.py          — licenses and usage logs
  mdm.py              — master data: working areas, fields, wells, seismic, facilities
  audit.py            — immutable request audit trail
  compliance.py       — tamper-evident compliance audit log
  system.py           — data sources, key/value configs, network settings
  mixins.py           — shared TimestampMixin, TenantMixin
"""

from portal.domain.audit import AuditTrail
from portal.domain.clearing_house import (
    ClearingHouseTransaction,
    ContractNegotiation,
    TransactionAuditLog,
    TransactionPayment,
    TransactionValidation,
)
from portal.domain.compliance import ComplianceAuditLog
from portal.domain.connector import Broker, Container, DataRequest, DataRoute, Resource
from portal.domain.contract import Contract, ServiceApplication
from portal.domain.external_service import AdaptorAuditLog, AdaptorSyncLog, ExternalService
from portal.domain.license import License, LicenseUsageLog
from portal.domain.mdm import Facility, Field, SeismicSurvey, Well, WorkingArea
from portal.domain.participant import Participant
from portal.domain.system import ConfigEntry, DataSource, NetworkSetting

__all__ = [
    "AdaptorAuditLog",
    "AdaptorSyncLog",
    "AuditTrail",
    "Broker",
    "ClearingHouseTransaction",
    "ComplianceAuditLog",
    "ConfigEntry",
    "Container",
    "Contract",
    "ContractNegotiation",
    "DataRequest",
    "DataRoute",
    "DataSource",
    "ExternalService",
    "Facility",
    "Field",
    "License",
    "LicenseUsageLog",
    "NetworkSetting",
    "Participant",
    "Resource",
    "SeismicSurvey",
    "ServiceApplication",
    "TransactionAuditLog",
    "TransactionPayment",
    "TransactionValidation",
    "Well",
    "WorkingArea",
]

"""Services package — all business logic lives here, never in routers.

Files:
  participant.py       — REFERENCE service pattern
  connector.py         — resources, data requests, brokers, routes, containers
  contract.py          — service applications and contracts
  external_service.py  — external services, sync jobs, adaptor audit
  clearing_house.py    — transaction workflow, integrity-hashed audit log
  license.py           — license tokens, activation, feature validation
  audit.py             — request audit trail queries
  compliance.py        — hashed compliance audit log and reports
  system.py            — data sources, configs, network settings
  probe.py             — outbound HTTP (httpx) and TCP probes
  mdm/                 — master data management

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""

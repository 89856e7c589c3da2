"""v1 router package — all /api/v1/* endpoints live here.

Files:
  participants.py         — participants (reference router pattern)
  resources.py            — data resources
  requests.py             — data requests and their status workflow
  brokers.py, routes.py   — brokers and data routes
  containers.py           — connector containers, lifecycle actions, metrics
  service_applications.py — service applications and health probes
  contracts.py            — contracts, signing, termination
  external_services.py    — external services, connection tests, sync jobs, adaptor audit
  clearing_house.py       — transactions, validations, negotiations, payments
  license.py              — license issue/activation/validation and usage log
  mdm.py                  — master data domains, validation, CSV import, compliance export
  data_sources.py         — data sources and connection tests
  configs.py              — key/value configuration, secrets masked
  network_settings.py     — participant network endpoints and reachability checks
  audit_trail.py          — request audit trail (read-only)
  compliance.py           — compliance audit log, integrity checks, compliance report

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to portal/services/.
"""

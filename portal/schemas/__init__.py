"""Pydantic schemas package.

Folder intent:
  common.py           — CamelModel base, HealthResponse, probe result (all schemas inherit CamelModel)
  participant.py      — participants
  connector.py        — resources, data requests, brokers, routes, containers
  contract.py         — service applications and contracts
  external_service.py — external services, sync jobs, adaptor audit log, stats
  clearing_house.py   — transactions, validations, negotiations, payments, stats
  license.py          — licenses, activation, status, validation, usage
  mdm.py              — master data bodies, validation, import/export reports
  audit.py            — request audit trail
  compliance.py       — compliance audit log and reports
  system.py           — data sources, configs, network settings
"""

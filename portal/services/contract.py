"""Service-application and contract services."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.exceptions import NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.contract import Contract, ServiceApplication
from portal.repositories.connector import ResourceRepository
from portal.repositories.contract import ContractRepository, ServiceApplicationRepository
from portal.repositories.participant import ParticipantRepository
from portal.schemas.contract import (
    ContractCreate,
    ContractUpdate,
    ServiceApplicationCreate,
    ServiceApplicationUpdate,
)
from portal.services import probe
from portal.services.probe import ProbeOutcome

logger = logging.getLogger(__name__)


class ServiceApplicationService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ServiceApplicationRepository(session, client_id)

    async def list_applications(self, pagination: PaginationParams, status: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"status": status},
        )

    async def get_application(self, app_id: str) -> ServiceApplication:
        application = await self._repo.get_by_id(app_id)
        if not application:
            raise NotFoundError("Service application", app_id)
        return application

    async def create_application(self, data: ServiceApplicationCreate) -> ServiceApplication:
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_application(
        self, app_id: str, data: ServiceApplicationUpdate
    ) -> ServiceApplication:
        await self.get_application(app_id)
        updated = await self._repo.update(
            app_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_application(self, app_id: str) -> None:
        if not await self._repo.soft_delete(app_id):
            raise NotFoundError("Service application", app_id)

    async def check_health(self, app_id: str) -> ProbeOutcome:
        """Probe the application endpoint and persist the outcome."""
        application = await self.get_application(app_id)
        if not application.endpoint:
            raise ValidationError("Service application has no endpoint configured")

        outcome = await probe.probe_endpoint(application.endpoint)
        await self._repo.update(
            app_id,
            health_status="healthy" if outcome.success else "unhealthy",
            last_health_check=utcnow(),
        )
        logger.info("Health check %s: %s", application.name, outcome.message)
        return outcome


class ContractService:
    """Contract lifecycle: draft -> pending -> active -> terminated / expired."""

    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ContractRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)
        self._apps = ServiceApplicationRepository(session, client_id)
        self._resources = ResourceRepository(session, client_id)

    async def list_contracts(
        self,
        pagination: PaginationParams,
        *,
        provider_id: str | None = None,
        consumer_id: str | None = None,
        status: str | None = None,
        contract_type: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={
                "provider_id": provider_id,
                "consumer_id": consumer_id,
                "status": status,
                "contract_type": contract_type,
            },
        )

    async def get_contract(self, contract_id: str) -> Contract:
        contract = await self._repo.get_by_id(contract_id)
        if not contract:
            raise NotFoundError("Contract", contract_id)
        return contract

    async def _check_references(
        self,
        provider_id: str | None = None,
        consumer_id: str | None = None,
        service_application_id: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        errors = []
        for label, value in (("providerId", provider_id), ("consumerId", consumer_id)):
            if value and not await self._participants.exists(value):
                errors.append(f"{label} '{value}' does not exist")
        if service_application_id and not await self._apps.exists(service_application_id):
            errors.append(f"serviceApplicationId '{service_application_id}' does not exist")
        if resource_id and not await self._resources.exists(resource_id):
            errors.append(f"resourceId '{resource_id}' does not exist")
        if errors:
            raise ValidationError("Unknown contract reference", errors=errors)

    @staticmethod
    def _check_validity(valid_from, valid_until) -> None:
        if as_utc(valid_until) <= as_utc(valid_from):
            raise ValidationError("validUntil must be later than validFrom")

    async def create_contract(self, data: ContractCreate) -> Contract:
        self._check_validity(data.valid_from, data.valid_until)
        await self._check_references(
            data.provider_id, data.consumer_id, data.service_application_id, data.resource_id
        )
        values = data.model_dump(exclude_none=True)
        values["valid_from"] = as_utc(data.valid_from)
        values["valid_until"] = as_utc(data.valid_until)
        contract = await self._repo.create(**values)
        logger.info("Contract %s created (%s)", contract.id, contract.contract_type)
        return contract

    async def update_contract(self, contract_id: str, data: ContractUpdate) -> Contract:
        contract = await self.get_contract(contract_id)
        values = data.model_dump(exclude_none=True, exclude_unset=True)
        for key in ("valid_from", "valid_until"):
            if key in values:
                values[key] = as_utc(values[key])
        self._check_validity(
            values.get("valid_from", contract.valid_from),
            values.get("valid_until", contract.valid_until),
        )
        await self._check_references(
            service_application_id=data.service_application_id, resource_id=data.resource_id
        )
        updated = await self._repo.update(contract_id, **values)
        return updated  # type: ignore[return-value]

    async def delete_contract(self, contract_id: str) -> None:
        if not await self._repo.soft_delete(contract_id):
            raise NotFoundError("Contract", contract_id)

    async def active_contracts(self) -> list[Contract]:
        return await self._repo.list_active(utcnow())

    async def expired_contracts(self) -> list[Contract]:
        return await self._repo.list_expired(utcnow())

    async def sign_contract(self, contract_id: str) -> Contract:
        contract = await self.get_contract(contract_id)
        if contract.status != "pending":
            raise ValidationError(
                f"Only pending contracts can be signed (current status: {contract.status})"
            )
        updated = await self._repo.update(contract_id, status="active", signed_at=utcnow())
        logger.info("Contract %s signed", contract_id)
        return updated  # type: ignore[return-value]

    async def terminate_contract(self, contract_id: str) -> Contract:
        contract = await self.get_contract(contract_id)
        if contract.status != "active":
            raise ValidationError(
                f"Only active contracts can be terminated (current status: {contract.status})"
            )
        updated = await self._repo.update(contract_id, status="terminated")
        logger.info("Contract %s terminated", contract_id)
        return updated  # type: ignore[return-value]

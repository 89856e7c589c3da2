"""Services for the connector catalogue.

Resources, data requests, brokers, routes and containers share the same
CRUD shape; references to participants and resources are checked here so
a dangling id is reported as a 400 instead of a database error.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.clock import as_utc, utcnow
from portal.core.exceptions import NotFoundError, ValidationError
from portal.core.pagination import PaginationParams
from portal.domain.connector import Broker, Container, DataRequest, DataRoute, Resource
from portal.repositories.connector import (
    BrokerRepository,
    ContainerRepository,
    DataRequestRepository,
    DataRouteRepository,
    ResourceRepository,
)
from portal.repositories.participant import ParticipantRepository
from portal.schemas.connector import (
    BrokerCreate,
    BrokerUpdate,
    ContainerCreate,
    ContainerMetrics,
    ContainerUpdate,
    DataRequestCreate,
    DataRequestUpdate,
    DataRouteCreate,
    DataRouteUpdate,
    ResourceCreate,
    ResourceUpdate,
)

logger = logging.getLogger(__name__)


async def _require_participants(repo: ParticipantRepository, **ids: str | None) -> None:
    """Raise 400 for every referenced participant id that does not exist."""
    missing = [
        f"{label} '{value}' does not exist"
        for label, value in ids.items()
        if value and not await repo.exists(value)
    ]
    if missing:
        raise ValidationError("Unknown participant reference", errors=missing)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

class ResourceService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ResourceRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)

    async def list_resources(
        self,
        pagination: PaginationParams,
        *,
        type: str | None = None,
        access_policy: str | None = None,
        provider_id: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"type": type, "access_policy": access_policy, "provider_id": provider_id},
        )

    async def get_resource(self, resource_id: str) -> Resource:
        resource = await self._repo.get_by_id(resource_id)
        if not resource:
            raise NotFoundError("Resource", resource_id)
        return resource

    async def create_resource(self, data: ResourceCreate) -> Resource:
        await _require_participants(self._participants, providerId=data.provider_id)
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_resource(self, resource_id: str, data: ResourceUpdate) -> Resource:
        await self.get_resource(resource_id)
        await _require_participants(self._participants, providerId=data.provider_id)
        updated = await self._repo.update(
            resource_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_resource(self, resource_id: str) -> None:
        if not await self._repo.soft_delete(resource_id):
            raise NotFoundError("Resource", resource_id)


# ---------------------------------------------------------------------------
# Data requests
# ---------------------------------------------------------------------------

class DataRequestService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = DataRequestRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)
        self._resources = ResourceRepository(session, client_id)

    async def list_requests(
        self,
        pagination: PaginationParams,
        *,
        status: str | None = None,
        request_type: str | None = None,
        requester_id: str | None = None,
        provider_id: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={
                "status": status,
                "request_type": request_type,
                "requester_id": requester_id,
                "provider_id": provider_id,
            },
        )

    async def get_request(self, request_id: str) -> DataRequest:
        request = await self._repo.get_by_id(request_id)
        if not request:
            raise NotFoundError("Request", request_id)
        return request

    async def create_request(self, data: DataRequestCreate) -> DataRequest:
        await _require_participants(
            self._participants, requesterId=data.requester_id, providerId=data.provider_id
        )
        if not await self._resources.exists(data.resource_id):
            raise ValidationError(f"Resource '{data.resource_id}' does not exist")
        request = await self._repo.create(**data.model_dump(exclude_none=True))
        logger.info("Data request %s created by %s", request.id, request.requester_id)
        return request

    async def update_request(self, request_id: str, data: DataRequestUpdate) -> DataRequest:
        await self.get_request(request_id)
        updated = await self._repo.update(
            request_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def set_status(self, request_id: str, status: str) -> DataRequest:
        request = await self.get_request(request_id)
        previous = request.status
        updated = await self._repo.update(request_id, status=status)
        logger.info("Data request %s: %s -> %s", request_id, previous, status)
        return updated  # type: ignore[return-value]

    async def delete_request(self, request_id: str) -> None:
        if not await self._repo.soft_delete(request_id):
            raise NotFoundError("Request", request_id)


# ---------------------------------------------------------------------------
# Brokers
# ---------------------------------------------------------------------------

class BrokerService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = BrokerRepository(session, client_id)
        self._requests = DataRequestRepository(session, client_id)

    async def list_brokers(self, pagination: PaginationParams, validation_status: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"validation_status": validation_status},
        )

    async def get_broker(self, broker_id: str) -> Broker:
        broker = await self._repo.get_by_id(broker_id)
        if not broker:
            raise NotFoundError("Broker", broker_id)
        return broker

    async def create_broker(self, data: BrokerCreate) -> Broker:
        if data.request_id and not await self._requests.exists(data.request_id):
            raise ValidationError(f"Request '{data.request_id}' does not exist")
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_broker(self, broker_id: str, data: BrokerUpdate) -> Broker:
        await self.get_broker(broker_id)
        updated = await self._repo.update(
            broker_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_broker(self, broker_id: str) -> None:
        if not await self._repo.soft_delete(broker_id):
            raise NotFoundError("Broker", broker_id)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

class DataRouteService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = DataRouteRepository(session, client_id)
        self._participants = ParticipantRepository(session, client_id)
        self._resources = ResourceRepository(session, client_id)

    async def list_routes(
        self,
        pagination: PaginationParams,
        *,
        status: str | None = None,
        provider_id: str | None = None,
        consumer_id: str | None = None,
    ):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"status": status, "provider_id": provider_id, "consumer_id": consumer_id},
        )

    async def get_route(self, route_id: str) -> DataRoute:
        route = await self._repo.get_by_id(route_id)
        if not route:
            raise NotFoundError("Route", route_id)
        return route

    async def create_route(self, data: DataRouteCreate) -> DataRoute:
        await _require_participants(
            self._participants, providerId=data.provider_id, consumerId=data.consumer_id
        )
        if data.resource_id and not await self._resources.exists(data.resource_id):
            raise ValidationError(f"Resource '{data.resource_id}' does not exist")
        values = data.model_dump(exclude_none=True)
        if "valid_until" in values:
            values["valid_until"] = as_utc(values["valid_until"])
        return await self._repo.create(**values)

    async def update_route(self, route_id: str, data: DataRouteUpdate) -> DataRoute:
        await self.get_route(route_id)
        values = data.model_dump(exclude_none=True, exclude_unset=True)
        if "valid_until" in values:
            values["valid_until"] = as_utc(values["valid_until"])
        updated = await self._repo.update(route_id, **values)
        return updated  # type: ignore[return-value]

    async def delete_route(self, route_id: str) -> None:
        if not await self._repo.soft_delete(route_id):
            raise NotFoundError("Route", route_id)


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

_ACTION_STATUS = {"start": "running", "stop": "stopped", "restart": "running"}
_ACTION_PAST = {"start": "started", "stop": "stopped", "restart": "restarted"}


class ContainerService:
    def __init__(self, session: AsyncSession, client_id: str):
        self._repo = ContainerRepository(session, client_id)

    async def list_containers(self, pagination: PaginationParams, status: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort_column,
            order=pagination.order,
            filters={"status": status},
        )

    async def get_container(self, container_id: str) -> Container:
        container = await self._repo.get_by_id(container_id)
        if not container:
            raise NotFoundError("Container", container_id)
        return container

    async def create_container(self, data: ContainerCreate) -> Container:
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_container(self, container_id: str, data: ContainerUpdate) -> Container:
        await self.get_container(container_id)
        updated = await self._repo.update(
            container_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_container(self, container_id: str) -> None:
        if not await self._repo.soft_delete(container_id):
            raise NotFoundError("Container", container_id)

    async def perform_action(self, container_id: str, action: str) -> Container:
        """Apply start/stop/restart and append one line to the container log."""
        if action not in _ACTION_STATUS:
            raise ValidationError(
                f"Invalid action '{action}'. Must be one of: start, stop, restart"
            )
        container = await self.get_container(container_id)
        now = utcnow()
        line = f"Container {_ACTION_PAST[action]} at {now.isoformat()}"
        values: dict = {
            "status": _ACTION_STATUS[action],
            "logs": f"{container.logs}\n{line}" if container.logs else line,
        }
        if action in ("start", "restart"):
            values["last_restarted"] = now
        updated = await self._repo.update(container_id, **values)
        logger.info("Container %s %s", container_id, _ACTION_PAST[action])
        return updated  # type: ignore[return-value]

    async def update_metrics(self, container_id: str, data: ContainerMetrics) -> Container:
        await self.get_container(container_id)
        updated = await self._repo.update(container_id, **data.model_dump(exclude_none=True))
        return updated  # type: ignore[return-value]

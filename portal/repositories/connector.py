"""Repositories for the connector catalogue (resources, requests, brokers, routes, containers)."""

from portal.domain.connector import Broker, Container, DataRequest, DataRoute, Resource
from portal.repositories.base import BaseRepository


class ResourceRepository(BaseRepository[Resource]):
    model = Resource


class DataRequestRepository(BaseRepository[DataRequest]):
    model = DataRequest


class BrokerRepository(BaseRepository[Broker]):
    model = Broker


class DataRouteRepository(BaseRepository[DataRoute]):
    model = DataRoute


class ContainerRepository(BaseRepository[Container]):
    model = Container

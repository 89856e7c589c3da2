"""Schemas for data sources, configs and network settings."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from portal.schemas.common import CamelModel, ProbeResult, metadata_field

DataSourceType = Literal["postgresql", "mysql", "oracle", "mongodb", "api", "file"]
SourceStatus = Literal["active", "inactive", "error"]
ConfigType = Literal["string", "number", "boolean", "json"]
NetworkProtocol = Literal["HTTP", "HTTPS", "IDSCP2", "MQTT"]

SECRET_MASK = "***"


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

class DataSourceCreate(CamelModel):
    name: str = Field(min_length=1)
    type: DataSourceType
    host: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    database: str | None = None
    username: str | None = None
    password: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    table_name: str | None = Field(default=None, alias="table")
    query: str | None = None
    connection_string: str | None = None
    status: SourceStatus = "inactive"
    metadata: dict[str, Any] | None = None


class DataSourceUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    type: DataSourceType | None = None
    host: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    database: str | None = None
    username: str | None = None
    password: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    table_name: str | None = Field(default=None, alias="table")
    query: str | None = None
    connection_string: str | None = None
    status: SourceStatus | None = None
    metadata: dict[str, Any] | None = None


class DataSourceOut(CamelModel):
    """The password is write-only; ``hasPassword`` says whether one is stored."""

    id: str
    name: str
    type: str
    host: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    has_password: bool = False
    schema_name: str | None = Field(
        default=None, validation_alias=AliasChoices("schema_name", "schema"), serialization_alias="schema"
    )
    table_name: str | None = Field(
        default=None, validation_alias=AliasChoices("table_name", "table"), serialization_alias="table"
    )
    query: str | None = None
    connection_string: str | None = None
    status: str
    last_tested: datetime | None = None
    metadata: Any = metadata_field()
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_source(cls, source: Any) -> "DataSourceOut":
        out = cls.model_validate(source)
        out.has_password = bool(source.password)
        return out


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------

def _check_key(value: str) -> str:
    if " " in value:
        raise ValueError("Key cannot contain spaces")
    return value


class ConfigCreate(CamelModel):
    key: str = Field(min_length=2, max_length=255)
    value: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    type: ConfigType = "string"
    is_secret: bool = False

    @field_validator("key")
    @classmethod
    def _key(cls, value: str) -> str:
        return _check_key(value)


class ConfigUpdate(CamelModel):
    key: str | None = Field(default=None, min_length=2, max_length=255)
    value: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = None
    type: ConfigType | None = None
    is_secret: bool | None = None

    @field_validator("key")
    @classmethod
    def _key(cls, value: str | None) -> str | None:
        return _check_key(value) if value is not None else value


class ConfigUpsert(CamelModel):
    value: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    type: ConfigType = "string"
    is_secret: bool = False


class ConfigOut(CamelModel):
    id: str
    key: str
    value: str
    description: str | None = None
    category: str | None = None
    type: str
    is_secret: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def masked(cls, entry: Any) -> "ConfigOut":
        out = cls.model_validate(entry)
        if out.is_secret:
            out.value = SECRET_MASK
        return out


# ---------------------------------------------------------------------------
# Network settings
# ---------------------------------------------------------------------------

class NetworkSettingCreate(CamelModel):
    provider_id: str
    api_endpoint: str = Field(min_length=1)
    protocol: NetworkProtocol = "HTTPS"
    status: SourceStatus = "active"


class NetworkSettingUpdate(CamelModel):
    provider_id: str | None = None
    api_endpoint: str | None = Field(default=None, min_length=1)
    protocol: NetworkProtocol | None = None
    status: SourceStatus | None = None


class NetworkSettingOut(CamelModel):
    id: str
    provider_id: str
    provider_name: str | None = None
    api_endpoint: str
    protocol: str
    status: str
    last_checked: datetime | None = None
    created_at: datetime
    updated_at: datetime


class NetworkCheck(CamelModel):
    setting: NetworkSettingOut
    result: ProbeResult


from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "IDS Migas Portal"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"

    # MDM CSV import
    max_upload_size_mb: int = 10

    # Database (PostgreSQL via asyncpg in production, SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./portal_dev.db",
        alias="DATABASE_URL",
    )
    auto_create_schema: bool = Field(
        default=True, alias="AUTO_CREATE_SCHEMA",
    )  # Alembic owns the schema outside development

    # Multi-tenancy default
    default_client_id: str = Field(default="default", alias="DEFAULT_CLIENT_ID")

    # Licensing
    license_secret: str = Field(
        default="default-license-secret", alias="LICENSE_SECRET",
    )  # HMAC key for license hashes
    license_expiry_warning_days: int = Field(
        default=30, alias="LICENSE_EXPIRY_WARNING_DAYS",
    )

    # Outbound health probes (service applications, external services)
    health_check_timeout: float = Field(default=5.0, alias="HEALTH_CHECK_TIMEOUT")

    # Request audit trail
    audit_requests: bool = Field(default=True, alias="AUDIT_REQUESTS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

settings = Settings()

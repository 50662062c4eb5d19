"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ONE_WEEK_MS = 7 * 24 * 60 * 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    database_pool_size: int = Field(
        default=10,
        description="Connections kept open in the database pool",
        gt=0,
    )
    database_max_overflow: int = Field(
        default=5,
        description="Connections allowed above database_pool_size under load",
        ge=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Write stderr logs as JSON lines",
    )

    # Kafka
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Comma-separated list of Kafka bootstrap servers",
    )
    kafka_client_id: str = Field(
        default="dataset-export",
        description="Client ID reported to the Kafka brokers",
    )
    kafka_export_created_topic: str = Field(
        default="export_service_export_created",
        description="Topic carrying export-created trigger events",
    )
    kafka_consumer_group: str = Field(
        default="export_service",
        description="Consumer group of the export processing workers",
    )
    kafka_request_timeout_ms: int = Field(
        default=30000,
        description="Kafka request timeout in milliseconds",
        gt=0,
    )

    # Image service
    image_service_url: str = Field(
        default="http://localhost:20000",
        description="Base URL of the image dataset service",
    )
    user_service_url: str = Field(
        default="http://localhost:20001",
        description="Base URL of the user service used to resolve display names",
    )
    image_service_timeout: float = Field(
        default=30.0,
        description="Image and user service request timeout in seconds",
        gt=0,
    )
    image_list_batch_size: int = Field(
        default=100,
        description="Images requested per page when fetching an export's dataset",
        gt=0,
        le=1000,
    )

    # Export processing
    export_expire_time_ms: int = Field(
        default=ONE_WEEK_MS,
        description="How long a finished export stays downloadable, in milliseconds",
        gt=0,
    )
    export_scratch_dir: str | None = Field(
        default=None,
        description="Parent directory for per-export scratch directories (system temp dir when unset)",
    )
    republish_after_ms: int = Field(
        default=10 * 60 * 1000,
        description="Age after which a still-REQUESTED export has its trigger event republished",
        gt=0,
    )

    # S3-Compatible Object Storage
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3 endpoint URL (MinIO, R2, ...); AWS default when unset",
    )
    s3_access_key_id: str | None = Field(
        default=None,
        description="S3 access key",
    )
    s3_secret_access_key: str | None = Field(
        default=None,
        description="S3 secret key",
    )
    s3_region: str = Field(
        default="us-east-1",
        description="S3 region name",
    )
    s3_export_bucket: str = Field(
        default="exports",
        description="Bucket holding finished export files",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    default_list_limit: int = Field(
        default=10,
        description="Page size used when an export listing does not specify a limit",
        gt=0,
    )

    @property
    def kafka_bootstrap_server_list(self) -> list[str]:
        """Parse bootstrap servers string into a list."""
        return [s.strip() for s in self.kafka_bootstrap_servers.split(",") if s.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]

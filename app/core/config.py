import json
from typing import Literal, TypeAlias

from opentelemetry.sdk.resources import Resource
from pydantic import AnyHttpUrl, PostgresDsn, field_validator
from pydantic_settings import BaseSettings

# Lists configurable from the environment
ConfigurableList: TypeAlias = str | list[str] | list[AnyHttpUrl]


def parse_list_from_env(value: ConfigurableList, field_name: str = "field") -> list[str]:
    """
    Parse a list coming from an environment variable.

    Supported formats:
    - Python list: ['val1', 'val2']
    - JSON: '["val1", "val2"]'
    - Comma separated: "val1,val2,val3"
    - Empty string: "" -> []

    Args:
        value: Raw value (string or list)
        field_name: Field name used in error messages

    Returns:
        Parsed list of strings

    Raises:
        ValueError: If the format is invalid
    """
    if isinstance(value, list):
        return value
    elif isinstance(value, str):
        value = value.strip()
        if value.startswith("[") and value.endswith("]"):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise ValueError(f"Invalid JSON format for {field_name}: {value}")
        elif value:
            return [item.strip() for item in value.split(",") if item.strip()]
        else:
            return []
    raise ValueError(f"Invalid value for {field_name}: {value}")


class Settings(BaseSettings):
    PROJECT_NAME: str = "dental-directory"
    PROJECT_SLUG: str = "directory"
    VERSION: str = "0.1.0"
    DESCRIPTION: str = "Directory of verified dental professionals with admin approval workflow"

    API_VERSIONS: list[str] = ["v1"]
    API_LATEST_VERSION: str = "v1"

    # Environnement
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False

    # Keycloak (identity store)
    KEYCLOAK_SERVER_URL: str
    KEYCLOAK_REALM: str
    KEYCLOAK_CLIENT_ID: str
    KEYCLOAK_CLIENT_SECRET: str | None = None

    # Login envelope
    LOGIN_TIMEOUT_SECONDS: float = 30.0
    LOGIN_MAX_ATTEMPTS: int = 3
    LOGIN_RETRY_BASE_DELAY: float = 1.0

    # Notifications (best-effort webhooks)
    NOTIFICATION_APPROVAL_WEBHOOK_URL: AnyHttpUrl | None = None
    NOTIFICATION_REGISTRATION_WEBHOOK_URL: AnyHttpUrl | None = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # OpenTelemetry
    OTEL_SERVICE_NAME: str
    OTEL_EXPORTER_OTLP_ENDPOINT: str
    OTEL_EXPORTER_OTLP_PROTOCOL: str
    OTEL_EXPORTER_OTLP_INSECURE: bool
    OTEL_LOG_LEVEL: str = "info"
    OTEL_LOGS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_TRACES_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_METRICS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_PYTHON_LOG_LEVEL: str = "info"
    OTEL_PYTHON_LOGGING_AUTO_INSTRUMENTATION_ENABLED: bool = True
    OTEL_PYTHON_LOG_CORRELATION: bool = True
    OTEL_PYTHON_LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] [%(filename)s:%(lineno)d] [trace_id=%(otelTraceID)s span_id=%(otelSpanID)s resource.service.name=%(otelServiceName)s trace_sampled=%(otelTraceSampled)s] - %(message)s"

    # CORS
    # Ex: ALLOWED_ORIGINS='["http://localhost:5173","https://dentistas.example.com.br"]'
    ALLOWED_ORIGINS: ConfigurableList = []
    TRUSTED_HOSTS: ConfigurableList = ["localhost", "127.0.0.1"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: ConfigurableList) -> list[str]:
        """
        ALLOWED_ORIGINS accepts:
        - comma separated string: "http://localhost:5173,https://app.example.com"
        - JSON list: '["http://localhost:5173","https://app.example.com"]'
        - an already parsed Python list
        """
        return parse_list_from_env(v, "ALLOWED_ORIGINS")

    @field_validator("TRUSTED_HOSTS", mode="before")
    @classmethod
    def assemble_trusted_hosts(cls, v: ConfigurableList) -> list[str]:
        """Parse TRUSTED_HOSTS from the environment."""
        return parse_list_from_env(v, "TRUSTED_HOSTS")

    # Database
    SQLALCHEMY_DATABASE_URI: PostgresDsn

    # Redis (domain events)
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_DB: int = 0

    @property
    def OTEL_RESOURCE_ATTRIBUTES(self) -> Resource:  # noqa: N802
        """OpenTelemetry resource with the service attributes."""
        return Resource(
            attributes={
                "service.name": self.OTEL_SERVICE_NAME,
                "service.version": self.VERSION,
                "service.environment": self.ENVIRONMENT,
                "service.debug": str(self.DEBUG).lower(),
            }
        )

    def get_api_prefix(self, version: str | None = None) -> str:
        """
        Get API prefix for a specific version.

        Args:
            version: API version (e.g., "v1"). Defaults to latest.

        Returns:
            API prefix string (e.g., "/api/v1")
        """
        version = version or self.API_LATEST_VERSION
        return f"/api/{version}"

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


settings = Settings()

"""Environment-driven settings for the payment gateway.

The process builds one `GatewaySettings` at startup (see `load_settings`) and
passes it down explicitly. Behaviour that differs between development and
production (CORS policy, log level) is derived from this object only.
"""

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _package_version() -> str:
    try:
        return version("paygate")
    except PackageNotFoundError:
        return "0.0.0"


class GatewaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    stripe_secret_key: str
    stripe_api_version: str = "2023-08-16"
    environment: Literal["dev", "prod"] = "dev"
    allowed_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = "INFO"
    service_name: str = "payment-gateway"
    app_version: str = Field(default_factory=_package_version)
    processor_timeout_seconds: float = Field(default=30.0, gt=0)
    max_body_bytes: int = Field(default=10 * 1024, gt=0)
    shutdown_grace_seconds: int = Field(default=10, ge=0)
    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("stripe_secret_key")
    @classmethod
    def _check_secret_key(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("sk_", "rk_")):
            raise ValueError("STRIPE_SECRET_KEY must be a secret (sk_) or restricted (rk_) key")
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return {"production": "prod", "development": "dev"}.get(value, value)
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        # Comma-separated in the environment, e.g. "https://a.example,https://b.example".
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _require_origins_in_prod(self):
        if self.environment == "prod" and not self.allowed_origins:
            raise ValueError("ALLOWED_ORIGINS must list at least one origin in prod")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    def cors_origins(self) -> list[str]:
        """Origins handed to the CORS middleware: allow-list in prod, any in dev."""

        if self.is_production:
            return list(self.allowed_origins)
        return ["*"]


def load_settings(**overrides) -> GatewaySettings:
    """Build settings from the environment; raises `pydantic.ValidationError` when invalid."""

    return GatewaySettings(**overrides)

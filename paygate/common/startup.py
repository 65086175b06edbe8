"""Startup-time helpers for safe config logging."""

from paygate.common.config import GatewaySettings
from paygate.common.logging import logger


SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def _safe_value(name: str, value) -> str:
    """Return a printable value with simple redaction for secret-like names."""

    if value is None:
        return "<unset>"
    if any(secret in name.upper() for secret in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(settings: GatewaySettings) -> dict[str, str]:
    """Log the effective configuration for quick troubleshooting."""

    config = {
        name.upper(): _safe_value(name, value)
        for name, value in settings.model_dump().items()
    }
    logger.info("startup_config=%s", config)
    return config

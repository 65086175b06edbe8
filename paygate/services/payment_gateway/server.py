"""Process entrypoint: load config, build the Stripe-backed app, serve it.

Uvicorn owns signal handling: SIGTERM/SIGINT stop the listener, in-flight
requests get `shutdown_grace_seconds` to finish, then the process exits 0.
"""

import sys

import uvicorn
from pydantic import ValidationError

from paygate.common.config import load_settings
from paygate.common.logging import configure_logging, logger
from paygate.common.startup import log_startup_config
from paygate.common.tracing import setup_tracing
from paygate.services.payment_gateway.main import create_app
from paygate.services.payment_gateway.processor import StripeProcessor


def build_app():
    """Load settings from the environment and return a ready-to-serve app."""

    settings = load_settings()
    configure_logging(settings.service_name, settings.log_level)
    log_startup_config(settings)
    setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
    processor = StripeProcessor(
        settings.stripe_secret_key,
        api_version=settings.stripe_api_version,
        timeout_seconds=settings.processor_timeout_seconds,
    )
    return settings, create_app(settings, processor)


def main() -> int:
    try:
        settings, app = build_app()
    except ValidationError as exc:
        configure_logging("payment-gateway")
        logger.critical("invalid configuration, refusing to start: %s", exc)
        return 1

    logger.info("server listening host=%s port=%s", settings.host, settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )
    logger.info("server closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())

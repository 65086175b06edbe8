"""HTTP surface for payment intent creation.

`create_app` wires settings and a `PaymentProcessor` into a FastAPI app; the
processor is never a module global, so tests can pass in a fake.
"""

import json
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paygate.common.config import GatewaySettings
from paygate.common.logging import logger, request_id_ctx
from paygate.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from paygate.common.tracing import instrument_app
from paygate.services.payment_gateway.processor import PaymentProcessor
from paygate.services.payment_gateway.schemas import ErrorResponse, PaymentIntentResponse
from paygate.services.payment_gateway.service import GatewayError, PayloadTooLarge, PaymentGatewayService


UNMATCHED_ROUTE = "unmatched"


def get_gateway_service(request: Request) -> PaymentGatewayService:
    return request.app.state.gateway_service


async def read_limited_body(request: Request, limit: int) -> bytes:
    """Read the body, raising `PayloadTooLarge` as soon as it exceeds `limit` bytes."""

    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge("Payload Too Large")

    chunks = []
    received = 0
    # Chunked uploads carry no Content-Length; count as they arrive.
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLarge("Payload Too Large")
        chunks.append(chunk)
    return b"".join(chunks)


def create_app(settings: GatewaySettings, processor: PaymentProcessor) -> FastAPI:
    """Build the gateway app around an already-constructed processor."""

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        """Log lifecycle and release the processor's connections on shutdown."""

        logger.info("gateway starting environment=%s version=%s", settings.environment, settings.app_version)
        yield
        logger.info("gateway draining complete, closing processor client")
        await processor.close()

    app = FastAPI(title="Payment Intent Gateway", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway_service = PaymentGatewayService(
        processor,
        app_version=settings.app_version,
        service_name=settings.service_name,
    )
    instrument_app(app)

    @app.middleware("http")
    async def request_middleware(request: Request, call_next):
        """Per-request id, access log and metrics; the catch-all 500 boundary."""

        request_id = request.headers.get("x-request-id") or str(uuid4())
        request_id_ctx.set(request_id)
        logger.info("%s %s", request.method, request.url.path, extra={"method": request.method, "path": request.url.path})

        start = perf_counter()
        # Unrouted paths share one label so 404 scans cannot grow the registry.
        route = UNMATCHED_ROUTE
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Server Error method=%s path=%s", request.method, request.url.path)
            response = JSONResponse(status_code=500, content={"error": "Internal Server Error"})
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=request.method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=request.method,
            status_code=str(status_code),
        ).inc()
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(_: Request, exc: GatewayError):
        return JSONResponse(status_code=exc.status_code, content=exc.body())

    @app.get("/health")
    def health():
        """Liveness probe; never touches the processor."""

        return {"status": "healthy"}

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.post(
        "/payment/create",
        status_code=201,
        response_model=PaymentIntentResponse,
        responses={code: {"model": ErrorResponse} for code in (400, 413, 415, 500)},
    )
    async def create_payment(
        request: Request,
        service: PaymentGatewayService = Depends(get_gateway_service),
    ):
        """Create a payment intent and return its client secret."""

        async def load_body():
            raw = await read_limited_body(request, settings.max_body_bytes)
            if not raw.strip():
                return {}
            return json.loads(raw)

        return await service.create_payment_intent(request.headers.get("content-type"), load_body)

    return app

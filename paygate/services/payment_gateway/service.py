"""Payment intent creation: validation, the remote call and error mapping.

Every failure mode maps to exactly one `GatewayError` subclass, which carries
the HTTP status and body the request boundary returns.
"""

import math
import time

from pydantic import ValidationError as PydanticValidationError

from paygate.common.logging import logger
from paygate.common.metrics import payment_intents_total, processor_latency_seconds
from paygate.services.payment_gateway.processor import PaymentProcessor, ProcessorError
from paygate.services.payment_gateway.schemas import PaymentIntentResponse, PaymentRequest

AMOUNT_ERROR = "Amount must be a number of at least 50 cents"
CURRENCY_ERROR = "Currency must be a string"
INTEGRATION_CHECK = "accept_a_payment"


class GatewayError(Exception):
    """Base class for errors rendered directly as an HTTP response."""

    status_code = 500

    def __init__(self, message: str, code: str | None = None, type: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type

    def body(self) -> dict:
        payload = {"error": self.message}
        if self.code is not None:
            payload["code"] = self.code
        if self.type is not None:
            payload["type"] = self.type
        return payload


class UnsupportedMediaType(GatewayError):
    status_code = 415


class PayloadTooLarge(GatewayError):
    status_code = 413


class ValidationError(GatewayError):
    status_code = 400


class RemoteValidationError(GatewayError):
    status_code = 400


class RemoteServiceError(GatewayError):
    status_code = 500


def is_json_media_type(content_type: str | None) -> bool:
    """True for `application/json` and `application/*+json`, parameters ignored."""

    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/json":
        return True
    return media_type.startswith("application/") and media_type.endswith("+json")


def round_half_up(amount: float) -> int:
    # Processor wants integer minor units; .5 goes up, not to even.
    return int(math.floor(amount + 0.5))


def parse_payment_request(body) -> PaymentRequest:
    """Validate a decoded JSON body; anything that is not an object has no amount."""

    if not isinstance(body, dict):
        raise ValidationError(AMOUNT_ERROR)
    try:
        return PaymentRequest.model_validate(body)
    except PydanticValidationError as exc:
        fields = {error["loc"][0] for error in exc.errors() if error["loc"]}
        if "amount" in fields or not fields:
            raise ValidationError(AMOUNT_ERROR) from exc
        raise ValidationError(CURRENCY_ERROR) from exc


class PaymentGatewayService:
    """Creates payment intents through an injected `PaymentProcessor`."""

    def __init__(self, processor: PaymentProcessor, app_version: str, service_name: str = "payment-gateway") -> None:
        self.processor = processor
        self.app_version = app_version
        self.service_name = service_name

    def metadata(self) -> dict[str, str]:
        return {"integration_check": INTEGRATION_CHECK, "app_version": self.app_version}

    async def create_payment_intent(self, content_type: str | None, body_loader) -> PaymentIntentResponse:
        """Run the full create flow for one request.

        `body_loader` is an awaitable factory returning the decoded JSON body;
        it is only invoked after the content type has been accepted.
        """

        if not is_json_media_type(content_type):
            payment_intents_total.labels(service=self.service_name, outcome="rejected").inc()
            raise UnsupportedMediaType("Unsupported Media Type")

        body = await body_loader()
        try:
            req = parse_payment_request(body)
        except ValidationError as exc:
            payment_intents_total.labels(service=self.service_name, outcome="rejected").inc()
            logger.info("payment request rejected reason=%s", exc.message)
            raise

        amount = round_half_up(req.amount)
        currency = req.currency_or_default
        started = time.perf_counter()
        try:
            intent = await self.processor.create_payment_intent(amount, currency, self.metadata())
        except ProcessorError as exc:
            logger.exception(
                "processor error message=%s code=%s type=%s http_status=%s",
                exc.message,
                exc.code,
                exc.type,
                exc.http_status,
            )
            if exc.invalid_request:
                payment_intents_total.labels(service=self.service_name, outcome="remote_invalid").inc()
                raise RemoteValidationError(exc.message, code=exc.code, type=exc.type) from exc
            payment_intents_total.labels(service=self.service_name, outcome="remote_error").inc()
            raise RemoteServiceError(exc.message, code=exc.code, type=exc.type) from exc
        finally:
            processor_latency_seconds.labels(service=self.service_name).observe(
                max(0.0, time.perf_counter() - started)
            )

        payment_intents_total.labels(service=self.service_name, outcome="created").inc()
        return PaymentIntentResponse(
            clientSecret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            id=intent.id,
        )

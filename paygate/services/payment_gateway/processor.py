"""Remote payment-processor capability.

The gateway only depends on `PaymentProcessor`; `StripeProcessor` is the
production implementation and tests hand in their own.
"""

from dataclasses import dataclass
from typing import Protocol

import stripe

from paygate.common.logging import logger


@dataclass(frozen=True)
class PaymentIntent:
    """The subset of a created payment intent the gateway echoes back."""

    id: str
    client_secret: str
    amount: int
    currency: str


class ProcessorError(Exception):
    """A failed remote call, classified by whether our input was at fault."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        type: str | None = None,
        http_status: int | None = None,
        invalid_request: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type
        self.http_status = http_status
        self.invalid_request = invalid_request


class PaymentProcessor(Protocol):
    async def create_payment_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> PaymentIntent: ...

    async def close(self) -> None: ...


def classify_stripe_error(exc: stripe.StripeError) -> ProcessorError:
    """Translate a Stripe SDK error into a `ProcessorError`."""

    error_type = type(exc).__name__
    return ProcessorError(
        exc.user_message or str(exc) or error_type,
        code=exc.code,
        type=error_type,
        http_status=exc.http_status,
        invalid_request=isinstance(exc, stripe.InvalidRequestError),
    )


class StripeProcessor:
    """Creates payment intents through the Stripe API."""

    def __init__(
        self,
        secret_key: str,
        api_version: str,
        timeout_seconds: float,
        client: stripe.StripeClient | None = None,
    ) -> None:
        self._http_client = None
        if client is None:
            self._http_client = stripe.HTTPXClient(timeout=timeout_seconds)
            client = stripe.StripeClient(
                secret_key,
                stripe_version=api_version,
                max_network_retries=0,
                http_client=self._http_client,
            )
        self.client = client

    async def create_payment_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> PaymentIntent:
        try:
            intent = await self.client.payment_intents.create_async(
                params={"amount": amount, "currency": currency, "metadata": metadata}
            )
        except stripe.StripeError as exc:
            raise classify_stripe_error(exc) from exc
        logger.info("payment intent created id=%s amount=%s currency=%s", intent.id, intent.amount, intent.currency)
        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
        )

    async def close(self) -> None:
        """Release the pooled HTTP connections, if this instance owns them."""

        if self._http_client is not None:
            await self._http_client.close_async()

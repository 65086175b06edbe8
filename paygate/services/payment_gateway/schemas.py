"""Request/response schemas for the payment gateway endpoints."""

from pydantic import BaseModel, ConfigDict, Field


MIN_AMOUNT = 50
DEFAULT_CURRENCY = "usd"


class PaymentRequest(BaseModel):
    """Payload accepted by `POST /payment/create`.

    `amount` is in minor currency units. Strings and booleans are rejected
    rather than coerced, and non-finite numbers never pass.
    """

    model_config = ConfigDict(extra="ignore")

    amount: float = Field(strict=True, ge=MIN_AMOUNT, allow_inf_nan=False)
    currency: str | None = Field(default=None, strict=True)

    @property
    def currency_or_default(self) -> str:
        return self.currency if self.currency is not None else DEFAULT_CURRENCY


class PaymentIntentResponse(BaseModel):
    """Successful creation result handed back to the client SDK."""

    clientSecret: str
    amount: int
    currency: str
    id: str


class ErrorResponse(BaseModel):
    """Error body; `code` and `type` only appear for processor failures."""

    error: str
    code: str | None = None
    type: str | None = None

"""Shared fixtures: settings, a recording fake processor and an app client."""

import pytest
from fastapi.testclient import TestClient

from paygate.common.config import GatewaySettings
from paygate.services.payment_gateway.main import create_app
from paygate.services.payment_gateway.processor import PaymentIntent


class FakeProcessor:
    """Records every call and echoes the requested amount/currency back."""

    def __init__(self, error: Exception | None = None, intent_id: str = "pi_1", client_secret: str = "secret_1"):
        self.error = error
        self.intent_id = intent_id
        self.client_secret = client_secret
        self.calls = []
        self.closed = False

    async def create_payment_intent(self, amount, currency, metadata):
        self.calls.append({"amount": amount, "currency": currency, "metadata": metadata})
        if self.error is not None:
            raise self.error
        return PaymentIntent(
            id=self.intent_id,
            client_secret=self.client_secret,
            amount=amount,
            currency=currency,
        )

    async def close(self):
        self.closed = True


@pytest.fixture
def make_settings():
    """Factory for test settings; keyword overrides win over the defaults."""

    def factory(**overrides) -> GatewaySettings:
        values = {"stripe_secret_key": "sk_test_123", "app_version": "1.2.3", "_env_file": None}
        values.update(overrides)
        return GatewaySettings(**values)

    return factory


@pytest.fixture
def make_processor():
    """Factory for `FakeProcessor`, optionally primed with an error to raise."""

    return FakeProcessor


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def processor(make_processor):
    return make_processor()


@pytest.fixture
def client(settings, processor):
    with TestClient(create_app(settings, processor)) as test_client:
        yield test_client

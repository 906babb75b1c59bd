import os

# Sem arquivo de log durante os testes
os.environ.setdefault("LOG_DIR", "")

import inspect
from typing import Callable, Dict, List, Tuple

import httpx
import pytest

from loveframe_payments.app.models.schemas import (
    Environment,
    PaymentFactoryConfig,
    ProviderConfig,
    ProviderType,
)
from loveframe_payments.app.services.payment_factory import PaymentFactory
from loveframe_payments.app.services.payment_service import PaymentService

ABACATEPAY_HOST = "api.abacatepay.com"
STRIPE_HOST = "api.stripe.com"
MERCADOPAGO_HOST = "api.mercadopago.com"

VISA_CARD = "4111111111111111"
MASTER_CARD = "5555555555554444"


class FakeGateway:
    """
    Upstream falso para `httpx.MockTransport`: responde por (método, host, path)
    e guarda todas as requisições recebidas. Rotas não cadastradas dão 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str, str], Callable] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, host: str, path: str, json=None, status_code: int = 200, handler=None):
        if handler is None:
            def handler(request, _json=json, _status=status_code):
                return httpx.Response(_status, json=_json)
        self.routes[(method.upper(), host, path)] = handler
        return self

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.host, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def calls_to(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


def make_provider_configs(environment: Environment = Environment.development, timeout: float = 5.0):
    return {
        ProviderType.abacatepay: ProviderConfig(api_key="abc_test_key", environment=environment, timeout=timeout),
        ProviderType.stripe: ProviderConfig(
            api_key="sk_test_key", public_key="pk_test_key", environment=environment, timeout=timeout
        ),
        ProviderType.mercadopago: ProviderConfig(
            api_key="TEST-0000-mercadopago-token", public_key="TEST-public", environment=environment, timeout=timeout
        ),
    }


def make_factory(gateway: FakeGateway, **config_overrides) -> PaymentFactory:
    config_data = {
        "providers": make_provider_configs(),
        "default_pix_provider": ProviderType.abacatepay,
        "default_card_provider": ProviderType.stripe,
    }
    config_data.update(config_overrides)
    return PaymentFactory(PaymentFactoryConfig(**config_data), transport=httpx.MockTransport(gateway))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def transport(gateway):
    return httpx.MockTransport(gateway)


@pytest.fixture
def factory(gateway):
    return make_factory(gateway)


@pytest.fixture
def service(factory):
    return PaymentService(factory)


@pytest.fixture
def card_payload():
    return {
        "number": VISA_CARD,
        "expiry_month": "12",
        "expiry_year": "2030",
        "cvv": "123",
        "holder_name": "MARIA SILVA",
    }

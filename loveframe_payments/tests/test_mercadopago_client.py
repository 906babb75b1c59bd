import json
from decimal import Decimal

import httpx
import pytest

from conftest import MASTER_CARD, MERCADOPAGO_HOST
from loveframe_payments.app.core.exceptions import EnvironmentViolation, UpstreamError
from loveframe_payments.app.models.schemas import (
    CardPaymentRequest,
    Environment,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentStatus,
    PixPaymentRequest,
    ProviderConfig,
    SimulationAction,
)
from loveframe_payments.app.services.gateways.mercadopago_client import MercadoPagoClient

PIX_PAYMENT = {
    "id": 123456789,
    "status": "pending",
    "transaction_amount": 29.9,
    "description": "Plan X",
    "payment_method_id": "pix",
    "date_created": "2026-10-19T12:00:00.000-03:00",
    "date_of_expiration": "2026-10-19T12:30:00.000-03:00",
    "point_of_interaction": {
        "transaction_data": {
            "qr_code": "00020126580014br.gov.bcb.pix",
            "qr_code_base64": "iVBORw0KGgo=",
        }
    },
}


def make_client(gateway, environment=Environment.development):
    config = ProviderConfig(api_key="TEST-0000-mercadopago-token", environment=environment)
    return MercadoPagoClient(config, transport=httpx.MockTransport(gateway))


def test_client_declares_all_methods():
    client = MercadoPagoClient(ProviderConfig(api_key="TEST-0000-mercadopago-token"))
    assert all(client.supports(m) for m in PaymentMethod)


# ========== PIX ==========

@pytest.mark.asyncio
async def test_create_pix_payment(gateway):
    gateway.add("POST", MERCADOPAGO_HOST, "/v1/payments", json=PIX_PAYMENT, status_code=201)

    response = await make_client(gateway).create_pix_payment(
        PixPaymentRequest(
            amount=Decimal("29.90"),
            description="Plan X",
            metadata={"email": "maria@example.com", "cpf": "123.456.789-09"},
            expiration_minutes=30,
        )
    )

    sent = gateway.requests[0]
    body = json.loads(sent.content)
    assert sent.headers["X-Idempotency-Key"]
    assert body["payment_method_id"] == "pix"
    assert body["transaction_amount"] == 29.9
    assert body["payer"] == {
        "email": "maria@example.com",
        "identification": {"type": "CPF", "number": "12345678909"},
    }
    assert "date_of_expiration" in body

    assert response.id == "123456789"
    assert response.amount == Decimal("29.90")
    assert response.status == PaymentStatus.pending
    assert response.copy_paste_code == "00020126580014br.gov.bcb.pix"
    assert response.qr_code == "data:image/png;base64,iVBORw0KGgo="


@pytest.mark.asyncio
async def test_create_pix_without_code_is_an_upstream_error(gateway):
    payment = dict(PIX_PAYMENT, point_of_interaction={})
    gateway.add("POST", MERCADOPAGO_HOST, "/v1/payments", json=payment)

    with pytest.raises(UpstreamError):
        await make_client(gateway).create_pix_payment(PixPaymentRequest(amount=10, description="Plan X"))


# ========== CARTÃO ==========

@pytest.mark.asyncio
async def test_process_card_payment_tokenizes_then_charges(gateway, card_payload):
    gateway.add("POST", MERCADOPAGO_HOST, "/v1/card_tokens", json={"id": "tok_abc"})
    gateway.add(
        "POST",
        MERCADOPAGO_HOST,
        "/v1/payments",
        json={
            "id": 987,
            "status": "approved",
            "transaction_amount": 100.0,
            "installments": 4,
            "payment_method_id": "master",
            "payment_type_id": "credit_card",
            "authorization_code": "AUTH01",
        },
    )
    card = dict(card_payload, number=MASTER_CARD, expiry_month="3", expiry_year="30")

    response = await make_client(gateway).process_card_payment(
        CardPaymentRequest(amount=100, description="Plan X", card=card, installments=4)
    )

    token_body = json.loads(gateway.requests[0].content)
    assert token_body["card_number"] == MASTER_CARD
    assert token_body["expiration_month"] == 3
    assert token_body["expiration_year"] == 2030

    payment_body = json.loads(gateway.requests[1].content)
    assert payment_body["token"] == "tok_abc"
    assert payment_body["payment_method_id"] == "master"
    assert payment_body["installments"] == 4
    assert MASTER_CARD not in gateway.requests[1].content.decode()

    assert gateway.requests[0].headers["X-Idempotency-Key"] != gateway.requests[1].headers["X-Idempotency-Key"]
    assert response.id == "987"
    assert response.status == PaymentStatus.completed
    assert response.installments == 4
    assert response.authorization_code == "AUTH01"


@pytest.mark.asyncio
async def test_card_token_failure_stops_before_charge(gateway, card_payload):
    gateway.add("POST", MERCADOPAGO_HOST, "/v1/card_tokens", json={"message": "invalid card"}, status_code=400)

    with pytest.raises(UpstreamError):
        await make_client(gateway).process_card_payment(
            CardPaymentRequest(amount=100, description="Plan X", card=card_payload)
        )

    assert [r.url.path for r in gateway.requests] == ["/v1/card_tokens"]


# ========== STATUS ==========

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payment, status, method",
    [
        ({"status": "approved", "payment_method_id": "pix"}, PaymentStatus.completed, PaymentMethod.pix),
        ({"status": "in_process", "payment_type_id": "credit_card"}, PaymentStatus.processing, PaymentMethod.credit_card),
        ({"status": "rejected", "payment_type_id": "debit_card"}, PaymentStatus.failed, PaymentMethod.debit_card),
        ({"status": "charged_back"}, PaymentStatus.cancelled, PaymentMethod.credit_card),
        ({"status": "mystery"}, PaymentStatus.pending, PaymentMethod.credit_card),
    ],
)
async def test_check_payment_status(gateway, payment, status, method):
    gateway.add(
        "GET",
        MERCADOPAGO_HOST,
        "/v1/payments/555",
        json=dict(payment, id=555, transaction_amount=29.9, date_approved="2026-10-19T12:01:00.000-03:00"),
    )

    result = await make_client(gateway).check_payment_status("555")

    assert result.id == "555"
    assert result.status == status
    assert result.method == method
    assert result.amount == Decimal("29.90")


# ========== SIMULAÇÃO ==========

@pytest.mark.asyncio
@pytest.mark.parametrize("action, target", [(SimulationAction.approve, "approved"), (SimulationAction.reject, "rejected")])
async def test_simulate_payment_updates_status(gateway, action, target):
    gateway.add("PUT", MERCADOPAGO_HOST, "/v1/payments/555", json={"id": 555, "status": target})

    result = await make_client(gateway).simulate_payment(PaymentSimulationRequest(payment_id="555", action=action))

    assert result.success is True
    assert json.loads(gateway.requests[0].content) == {"status": target}
    assert "X-Idempotency-Key" not in gateway.requests[0].headers


@pytest.mark.asyncio
async def test_simulate_payment_blocked_in_production(gateway):
    client = make_client(gateway, environment=Environment.production)

    with pytest.raises(EnvironmentViolation):
        await client.simulate_payment(PaymentSimulationRequest(payment_id="555"))

    assert gateway.requests == []


# ========== UTILITÁRIOS ==========

def test_installment_policy():
    client = MercadoPagoClient(ProviderConfig(api_key="TEST-0000-mercadopago-token"))
    options = client.get_installment_options(Decimal("100"))

    assert all(o.interest_rate == 0 for o in options[:3])
    assert options[3].total_amount == Decimal("101.99")
    assert options[3].interest_rate == Decimal("1.99")


@pytest.mark.asyncio
async def test_is_available(gateway):
    gateway.add("GET", MERCADOPAGO_HOST, "/v1/payment_methods", json=[{"id": "pix"}])
    assert await make_client(gateway).is_available() is True

    gateway.add("GET", MERCADOPAGO_HOST, "/v1/payment_methods", json={"message": "down"}, status_code=503)
    assert await make_client(gateway).is_available() is False

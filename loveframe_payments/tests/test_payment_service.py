from decimal import Decimal

import httpx
import pytest

from conftest import ABACATEPAY_HOST, MERCADOPAGO_HOST, STRIPE_HOST, make_factory, make_provider_configs
from loveframe_payments.app.core.exceptions import (
    AllProvidersFailedError,
    CapabilityError,
    EnvironmentViolation,
    PaymentNotFoundError,
    ProviderTimeoutError,
    UpstreamError,
)
from loveframe_payments.app.models.schemas import (
    CardPaymentRequest,
    Environment,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentStatus,
    PixPaymentRequest,
    ProviderType,
)
from loveframe_payments.app.services.gateways import MercadoPagoClient
from loveframe_payments.app.services.payment_service import PaymentService

PIX_CREATED = {
    "error": None,
    "data": {
        "id": "pix_char_123",
        "amount": 2990,
        "status": "PENDING",
        "brCode": "00020101021226950014br.gov.bcb.pix",
        "brCodeBase64": "iVBORw0KGgo=",
    },
}


# ========== PIX ==========

@pytest.mark.asyncio
async def test_plan_x_pix_payment_is_pending_with_same_amount(gateway, service):
    gateway.add("POST", ABACATEPAY_HOST, "/v1/pixQrCode/create", json=PIX_CREATED)

    response = await service.create_pix_payment(PixPaymentRequest(amount=29.90, description="Plan X"))

    assert response.amount == Decimal("29.90")
    assert response.status == PaymentStatus.pending
    assert response.description == "Plan X"


@pytest.mark.asyncio
async def test_creation_uses_default_provider_while_failover_skips_it(gateway, service):
    gateway.add("GET", ABACATEPAY_HOST, "/v1/health", json={}, status_code=503)
    gateway.add("GET", MERCADOPAGO_HOST, "/v1/payment_methods", json=[])
    gateway.add("POST", ABACATEPAY_HOST, "/v1/pixQrCode/create", json=PIX_CREATED)

    await service.create_pix_payment(PixPaymentRequest(amount=10, description="Plan X"))
    working = await service.get_working_provider(PaymentMethod.pix)

    create_calls = [r for r in gateway.requests if r.method == "POST"]
    assert [r.url.host for r in create_calls] == [ABACATEPAY_HOST]
    assert isinstance(working, MercadoPagoClient)


@pytest.mark.asyncio
async def test_pix_creation_without_pix_provider_is_capability_error(gateway):
    service = PaymentService(make_factory(gateway, default_pix_provider=ProviderType.stripe))

    with pytest.raises(CapabilityError):
        await service.create_pix_payment(PixPaymentRequest(amount=10, description="Plan X"))

    assert gateway.requests == []


# ========== CARTÃO ==========

@pytest.mark.asyncio
async def test_card_payment_uses_default_card_provider(gateway, service, card_payload):
    gateway.add("POST", STRIPE_HOST, "/v1/payment_methods", json={"id": "pm_1"})
    gateway.add("POST", STRIPE_HOST, "/v1/payment_intents", json={"id": "pi_1", "amount": 5000, "status": "processing"})

    response = await service.process_card_payment(
        CardPaymentRequest(amount=50, description="Plan X", card=card_payload)
    )

    assert response.status == PaymentStatus.processing
    assert response.amount == Decimal("50.00")


# ========== STATUS ==========

@pytest.mark.asyncio
async def test_unknown_payment_across_three_404s_is_single_aggregate_error(gateway, service):
    # nenhuma rota cadastrada: os três gateways respondem 404
    with pytest.raises(PaymentNotFoundError) as exc_info:
        await service.check_payment_status("does-not-exist")

    errors = exc_info.value.errors
    assert set(errors) == {"abacatepay", "stripe", "mercadopago"}
    assert all(isinstance(e, UpstreamError) and e.status_code == 404 for e in errors.values())
    assert len(gateway.requests) == 3


def add_status_routes(gateway, payment_id, handler):
    gateway.add("GET", ABACATEPAY_HOST, "/v1/pixQrCode/check", handler=handler)
    gateway.add("GET", STRIPE_HOST, f"/v1/payment_intents/{payment_id}", handler=handler)
    gateway.add("GET", MERCADOPAGO_HOST, f"/v1/payments/{payment_id}", handler=handler)


def read_timeout(request):
    raise httpx.ReadTimeout("timed out", request=request)


@pytest.mark.asyncio
async def test_status_lookup_all_timeouts_is_retriable_failure(gateway, service):
    add_status_routes(gateway, "pay_1", read_timeout)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await service.check_payment_status("pay_1")

    assert not isinstance(exc_info.value, PaymentNotFoundError)
    assert all(isinstance(e, ProviderTimeoutError) for e in exc_info.value.errors.values())


@pytest.mark.asyncio
async def test_status_lookup_mixed_not_found_and_timeout_is_not_a_miss(gateway, service):
    gateway.add("GET", STRIPE_HOST, "/v1/payment_intents/pay_1", handler=read_timeout)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await service.check_payment_status("pay_1")

    assert not isinstance(exc_info.value, PaymentNotFoundError)
    assert exc_info.value.errors["abacatepay"].status_code == 404


@pytest.mark.asyncio
async def test_status_lookup_abacatepay_error_envelope_counts_as_miss(gateway, service):
    gateway.add("GET", ABACATEPAY_HOST, "/v1/pixQrCode/check", json={"error": "Not found", "data": None})

    with pytest.raises(PaymentNotFoundError):
        await service.check_payment_status("pay_1")


@pytest.mark.asyncio
async def test_status_without_method_returns_first_success(gateway, service):
    gateway.add(
        "GET",
        STRIPE_HOST,
        "/v1/payment_intents/pi_1",
        json={"id": "pi_1", "amount": 2990, "status": "succeeded"},
    )

    status = await service.check_payment_status("pi_1")

    assert status.status == PaymentStatus.completed
    assert [r.url.host for r in gateway.requests] == [ABACATEPAY_HOST, STRIPE_HOST]


@pytest.mark.asyncio
async def test_status_with_method_goes_straight_to_provider(gateway, service):
    gateway.add(
        "GET",
        ABACATEPAY_HOST,
        "/v1/pixQrCode/check",
        json={"error": None, "data": {"id": "pix_1", "status": "PAID", "amount": 2990}},
    )

    status = await service.check_payment_status("pix_1", PaymentMethod.pix)

    assert status.status == PaymentStatus.completed
    assert len(gateway.requests) == 1


# ========== VALIDAÇÃO / PARCELAS ==========

def test_validate_card_uses_provider_or_builtin(gateway, service):
    assert service.validate_card("4111 1111 1111 1111")
    assert not service.validate_card("4111 1111 1111 1112")

    no_card = PaymentService(
        make_factory(gateway, providers={ProviderType.abacatepay: make_provider_configs()[ProviderType.abacatepay]})
    )
    assert no_card.validate_card("4111-1111-1111-1111")
    assert not no_card.validate_card("1234")


def test_installments_follow_card_provider_policy(gateway, service):
    stripe_options = service.get_installment_options(Decimal("100"))
    assert stripe_options[6].interest_rate == Decimal("2.99")

    mp_service = PaymentService(make_factory(gateway, default_card_provider=ProviderType.mercadopago))
    assert mp_service.get_installment_options(Decimal("100"))[3].interest_rate == Decimal("1.99")


def test_installments_fall_back_to_builtin_schedule(gateway):
    service = PaymentService(
        make_factory(gateway, providers={ProviderType.abacatepay: make_provider_configs()[ProviderType.abacatepay]})
    )

    options = service.get_installment_options("100")

    assert len(options) == 12
    assert all(o.interest_rate == 0 for o in options[:6])
    assert options[6].interest_rate == Decimal("2.50")


# ========== SIMULAÇÃO ==========

@pytest.mark.asyncio
@pytest.mark.parametrize("method", [None, PaymentMethod.pix, PaymentMethod.credit_card])
async def test_simulation_blocked_in_production_without_network(gateway, method):
    service = PaymentService(make_factory(gateway), environment=Environment.production)

    with pytest.raises(EnvironmentViolation):
        await service.simulate_payment(PaymentSimulationRequest(payment_id="pix_1"), method)

    assert gateway.requests == []


@pytest.mark.asyncio
async def test_simulation_environment_defaults_to_factory_config(gateway):
    factory = make_factory(gateway, environment=Environment.production)

    with pytest.raises(EnvironmentViolation):
        await PaymentService(factory).simulate_payment(PaymentSimulationRequest(payment_id="pix_1"))


@pytest.mark.asyncio
async def test_simulation_without_hint_tries_capable_providers_in_order(gateway, service):
    gateway.add("POST", ABACATEPAY_HOST, "/v1/pixQrCode/simulate-payment", json={}, status_code=500)
    gateway.add("PUT", MERCADOPAGO_HOST, "/v1/payments/pix_1", json={"status": "approved"})

    result = await service.simulate_payment(PaymentSimulationRequest(payment_id="pix_1"))

    assert result.success is True
    assert [r.url.host for r in gateway.requests] == [ABACATEPAY_HOST, MERCADOPAGO_HOST]


@pytest.mark.asyncio
async def test_simulation_all_failing_raises_aggregate(gateway, service):
    with pytest.raises(AllProvidersFailedError) as exc_info:
        await service.simulate_payment(PaymentSimulationRequest(payment_id="pix_1"))

    assert set(exc_info.value.errors) == {"abacatepay", "mercadopago"}


@pytest.mark.asyncio
async def test_simulation_with_hint_requires_capability(gateway, service):
    with pytest.raises(CapabilityError) as exc_info:
        await service.simulate_payment(PaymentSimulationRequest(payment_id="pi_1"), PaymentMethod.credit_card)

    assert exc_info.value.provider == "stripe"
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_simulation_without_capable_provider(gateway):
    service = PaymentService(
        make_factory(
            gateway,
            providers={ProviderType.stripe: make_provider_configs()[ProviderType.stripe]},
        )
    )

    with pytest.raises(CapabilityError):
        await service.simulate_payment(PaymentSimulationRequest(payment_id="pi_1"))


# ========== SAÚDE ==========

@pytest.mark.asyncio
async def test_health_pass_through(gateway, service):
    gateway.add("GET", ABACATEPAY_HOST, "/v1/health", json={})
    gateway.add("GET", STRIPE_HOST, "/v1/charges", json={}, status_code=401)
    gateway.add("GET", MERCADOPAGO_HOST, "/v1/payment_methods", json=[])

    assert await service.check_providers_health() == {
        ProviderType.abacatepay: True,
        ProviderType.stripe: False,
        ProviderType.mercadopago: True,
    }

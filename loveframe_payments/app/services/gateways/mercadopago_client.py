# loveframe_payments/app/services/gateways/mercadopago_client.py

from decimal import Decimal
from typing import Any, Dict, List

from ...core.exceptions import EnvironmentViolation, UpstreamError
from ...interfaces import (
    CardPaymentCapable,
    CardValidationCapable,
    InstallmentCapable,
    PixPaymentCapable,
    SimulationCapable,
)
from ...models.schemas import (
    CardPaymentRequest,
    CardPaymentResponse,
    Environment,
    InstallmentOption,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentSimulationResponse,
    PaymentStatus,
    PaymentStatusResponse,
    PixPaymentRequest,
    PixPaymentResponse,
    ProviderType,
    SimulationAction,
)
from ...utilities.constants import MERCADOPAGO_BASE_URL
from ...utilities.helpers import as_data_uri, build_qr_code_data_uri, generate_idempotency_key, to_decimal
from ...utilities.logging_config import logger
from ..validators import compute_installment_options, is_valid_card_number
from .base import BaseGatewayClient, map_gateway_status, parse_datetime
from .payment_payload_mapper import (
    map_to_mercadopago_card_payload,
    map_to_mercadopago_card_token_payload,
    map_to_mercadopago_pix_payload,
)

MERCADOPAGO_STATUS_MAP = {
    "pending": PaymentStatus.pending,
    "in_process": PaymentStatus.processing,
    "in_mediation": PaymentStatus.processing,
    "authorized": PaymentStatus.processing,
    "approved": PaymentStatus.completed,
    "rejected": PaymentStatus.failed,
    "cancelled": PaymentStatus.cancelled,
    "refunded": PaymentStatus.cancelled,
    "charged_back": PaymentStatus.cancelled,
}

# Política do Mercado Pago: 3x sem juros, 1,99% a.m. depois
MERCADOPAGO_INTEREST_FREE_INSTALLMENTS = 3
MERCADOPAGO_MONTHLY_INTEREST_RATE = Decimal("0.0199")


class MercadoPagoClient(
    BaseGatewayClient,
    PixPaymentCapable,
    CardPaymentCapable,
    CardValidationCapable,
    InstallmentCapable,
    SimulationCapable,
):
    """
    Gateway multi-método: PIX e cartão pelo mesmo endpoint `/v1/payments`,
    discriminados por `payment_method_id`. Valores em reais.
    """

    name = "MercadoPago"
    provider_type = ProviderType.mercadopago
    supported_methods = (PaymentMethod.pix, PaymentMethod.credit_card, PaymentMethod.debit_card)
    default_base_url = MERCADOPAGO_BASE_URL

    def _headers(self, method: str) -> Dict[str, str]:
        headers = super()._headers(method)
        if method in ("POST", "PUT"):
            headers["Content-Type"] = "application/json"
        if method == "POST":
            headers["X-Idempotency-Key"] = generate_idempotency_key()
        return headers

    def map_status(self, raw_status: Any) -> PaymentStatus:
        return map_gateway_status(raw_status, MERCADOPAGO_STATUS_MAP, self.provider_type.value)

    @staticmethod
    def _method_of(payment: Dict[str, Any]) -> PaymentMethod:
        if payment.get("payment_method_id") == "pix":
            return PaymentMethod.pix
        if payment.get("payment_type_id") == "debit_card":
            return PaymentMethod.debit_card
        return PaymentMethod.credit_card

    async def is_available(self) -> bool:
        return await self._probe("/v1/payment_methods", lambda r: r.is_success)

    # ========== PIX ==========

    async def create_pix_payment(self, request: PixPaymentRequest) -> PixPaymentResponse:
        logger.info(f"🚀 Criando cobrança PIX Mercado Pago: {request.amount}")
        payment = await self._request("POST", "/v1/payments", json=map_to_mercadopago_pix_payload(request))

        transaction_data = (payment.get("point_of_interaction") or {}).get("transaction_data") or {}
        copy_paste = transaction_data.get("qr_code")
        if not copy_paste:
            raise UpstreamError(
                "Mercado Pago não retornou o código PIX",
                provider=self.provider_type.value,
                body=str(payment),
            )
        qr_code = as_data_uri(transaction_data.get("qr_code_base64")) or build_qr_code_data_uri(copy_paste)

        response = PixPaymentResponse(
            id=str(payment["id"]),
            qr_code=qr_code,
            copy_paste_code=copy_paste,
            amount=to_decimal(payment.get("transaction_amount", request.amount)),
            description=payment.get("description") or request.description,
            status=self.map_status(payment.get("status")),
            created_at=parse_datetime(payment.get("date_created")),
            expires_at=parse_datetime(payment.get("date_of_expiration")),
            metadata=payment.get("metadata") or request.metadata,
        )
        logger.info(f"✅ PIX Mercado Pago criado: {response.id} | status={response.status.value}")
        return response

    # ========== CARTÃO ==========

    async def _create_card_token(self, request: CardPaymentRequest) -> str:
        token = await self._request("POST", "/v1/card_tokens", json=map_to_mercadopago_card_token_payload(request.card))
        if not token.get("id"):
            raise UpstreamError("Mercado Pago não retornou o token do cartão", provider=self.provider_type.value)
        return token["id"]

    async def process_card_payment(self, request: CardPaymentRequest) -> CardPaymentResponse:
        logger.info(f"💳 Processando cartão Mercado Pago: {request.amount} em {request.installments or 1}x")

        card_token = await self._create_card_token(request)
        payment = await self._request("POST", "/v1/payments", json=map_to_mercadopago_card_payload(request, card_token))

        response = CardPaymentResponse(
            id=str(payment["id"]),
            amount=to_decimal(payment.get("transaction_amount", request.amount)),
            description=payment.get("description") or request.description,
            status=self.map_status(payment.get("status")),
            created_at=parse_datetime(payment.get("date_created")),
            installments=int(payment.get("installments") or request.installments or 1),
            authorization_code=payment.get("authorization_code"),
            metadata=payment.get("metadata") or request.metadata,
        )
        logger.info(f"✅ Pagamento Mercado Pago {response.id} | status={response.status.value}")
        return response

    # ========== STATUS ==========

    async def check_payment_status(self, payment_id: str) -> PaymentStatusResponse:
        payment = await self._request("GET", f"/v1/payments/{payment_id}")

        return PaymentStatusResponse(
            id=str(payment.get("id") or payment_id),
            status=self.map_status(payment.get("status")),
            paid_at=parse_datetime(payment.get("date_approved")),
            amount=to_decimal(payment.get("transaction_amount") or 0),
            method=self._method_of(payment),
            metadata=payment.get("metadata"),
        )

    # ========== SIMULAÇÃO ==========

    async def simulate_payment(self, request: PaymentSimulationRequest) -> PaymentSimulationResponse:
        if self.config.environment == Environment.production:
            raise EnvironmentViolation("Simulação não permitida em produção", provider=self.provider_type.value)

        target = "approved" if request.action == SimulationAction.approve else "rejected"
        await self._request("PUT", f"/v1/payments/{request.payment_id}", json={"status": target})

        logger.info(f"🧪 Pagamento Mercado Pago {request.payment_id} forçado para {target}")
        return PaymentSimulationResponse(success=True, message=f"Payment {target} successfully")

    # ========== UTILITÁRIOS ==========

    def validate_card(self, card_number: str) -> bool:
        return is_valid_card_number(card_number)

    def get_installment_options(self, amount: Decimal) -> List[InstallmentOption]:
        return compute_installment_options(
            amount,
            interest_free_installments=MERCADOPAGO_INTEREST_FREE_INSTALLMENTS,
            monthly_rate=MERCADOPAGO_MONTHLY_INTEREST_RATE,
        )

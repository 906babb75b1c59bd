# loveframe_payments/app/services/gateways/stripe_client.py

from decimal import Decimal
from typing import Any, Dict, List, Optional

from ...core.exceptions import PaymentError, UpstreamError
from ...interfaces import CardPaymentCapable, CardValidationCapable, InstallmentCapable
from ...models.schemas import (
    CardPaymentRequest,
    CardPaymentResponse,
    InstallmentOption,
    PaymentMethod,
    PaymentStatus,
    PaymentStatusResponse,
    ProviderType,
)
from ...utilities.constants import STRIPE_API_VERSION, STRIPE_BASE_URL
from ...utilities.helpers import from_cents
from ...utilities.logging_config import logger
from ..validators import compute_installment_options, is_valid_card_number
from .base import BaseGatewayClient, map_gateway_status, parse_datetime
from .payment_payload_mapper import (
    map_to_stripe_payment_intent_payload,
    map_to_stripe_payment_method_payload,
)

STRIPE_STATUS_MAP = {
    "requires_payment_method": PaymentStatus.pending,
    "requires_confirmation": PaymentStatus.pending,
    "requires_action": PaymentStatus.pending,
    "processing": PaymentStatus.processing,
    "requires_capture": PaymentStatus.processing,
    "succeeded": PaymentStatus.completed,
    "canceled": PaymentStatus.cancelled,
}

# Política de parcelamento do Stripe: 6x sem juros, 2,99% a.m. depois
STRIPE_INTEREST_FREE_INSTALLMENTS = 6
STRIPE_MONTHLY_INTEREST_RATE = Decimal("0.0299")


class StripeClient(BaseGatewayClient, CardPaymentCapable, CardValidationCapable, InstallmentCapable):
    """
    Gateway de cartão. Fluxo em duas etapas: cria o PaymentMethod (tokenização)
    e depois o PaymentIntent confirmado. Requisições em form-urlencoded.
    """

    name = "Stripe"
    provider_type = ProviderType.stripe
    supported_methods = (PaymentMethod.credit_card, PaymentMethod.debit_card)
    default_base_url = STRIPE_BASE_URL

    def _headers(self, method: str) -> Dict[str, str]:
        headers = super()._headers(method)
        headers["Stripe-Version"] = STRIPE_API_VERSION
        if method == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"
        return headers

    def map_status(self, raw_status: Any) -> PaymentStatus:
        return map_gateway_status(raw_status, STRIPE_STATUS_MAP, self.provider_type.value)

    async def is_available(self) -> bool:
        # Qualquer resposta que não seja 401 ou 5xx indica API acessível com a chave atual
        return await self._probe("/charges?limit=1", lambda r: r.status_code != 401 and r.status_code < 500)

    # ========== CARTÃO ==========

    async def _create_payment_method(self, request: CardPaymentRequest) -> str:
        payment_method = await self._request(
            "POST", "/payment_methods", data=map_to_stripe_payment_method_payload(request.card)
        )
        payment_method_id = payment_method.get("id")
        if not payment_method_id:
            raise UpstreamError("Stripe não retornou o id do PaymentMethod", provider=self.provider_type.value)
        return payment_method_id

    async def process_card_payment(self, request: CardPaymentRequest) -> CardPaymentResponse:
        logger.info(f"💳 Processando cartão Stripe: {request.amount} em {request.installments or 1}x")

        try:
            payment_method_id = await self._create_payment_method(request)
            intent = await self._request(
                "POST",
                "/payment_intents",
                data=map_to_stripe_payment_intent_payload(request, payment_method_id),
            )
        except PaymentError as e:
            logger.error(f"❌ Falha no pagamento Stripe: {e}")
            raise

        response = CardPaymentResponse(
            id=str(intent["id"]),
            amount=from_cents(intent.get("amount")),
            description=intent.get("description") or request.description,
            status=self.map_status(intent.get("status")),
            created_at=parse_datetime(intent.get("created")),
            installments=self._applied_installments(intent, request.installments),
            authorization_code=self._charge_id(intent),
            metadata=intent.get("metadata") or request.metadata,
        )
        logger.info(f"✅ Pagamento Stripe {response.id} | status={response.status.value}")
        return response

    @staticmethod
    def _applied_installments(intent: Dict[str, Any], requested: Optional[int]) -> int:
        plan = (
            ((intent.get("payment_method_options") or {}).get("card") or {}).get("installments") or {}
        ).get("plan") or {}
        return int(plan.get("count") or requested or 1)

    @staticmethod
    def _first_charge(intent: Dict[str, Any]) -> Dict[str, Any]:
        charges = (intent.get("charges") or {}).get("data") or []
        return charges[0] if charges else {}

    def _charge_id(self, intent: Dict[str, Any]) -> Optional[str]:
        latest = intent.get("latest_charge")
        if isinstance(latest, dict):
            return latest.get("id")
        return latest or self._first_charge(intent).get("id")

    # ========== STATUS ==========

    async def check_payment_status(self, payment_id: str) -> PaymentStatusResponse:
        intent = await self._request("GET", f"/payment_intents/{payment_id}")
        charge = intent.get("latest_charge") if isinstance(intent.get("latest_charge"), dict) else self._first_charge(intent)

        return PaymentStatusResponse(
            id=str(intent.get("id") or payment_id),
            status=self.map_status(intent.get("status")),
            paid_at=parse_datetime(charge.get("created")) if charge.get("paid", True) else None,
            amount=from_cents(intent.get("amount")),
            method=PaymentMethod.credit_card,
            metadata=intent.get("metadata"),
        )

    # ========== UTILITÁRIOS ==========

    def validate_card(self, card_number: str) -> bool:
        return is_valid_card_number(card_number)

    def get_installment_options(self, amount: Decimal) -> List[InstallmentOption]:
        return compute_installment_options(
            amount,
            interest_free_installments=STRIPE_INTEREST_FREE_INSTALLMENTS,
            monthly_rate=STRIPE_MONTHLY_INTEREST_RATE,
        )

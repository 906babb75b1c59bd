# loveframe_payments/app/services/gateways/abacatepay_client.py

from decimal import Decimal
from typing import Any, Dict

from ...core.exceptions import CapabilityError, EnvironmentViolation, UpstreamError
from ...interfaces import CouponCapable, PixPaymentCapable, SimulationCapable
from ...models.schemas import (
    CouponValidation,
    Environment,
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
from ...utilities.constants import ABACATEPAY_BASE_URL
from ...utilities.helpers import as_data_uri, build_qr_code_data_uri, from_cents
from ...utilities.logging_config import logger
from .base import BaseGatewayClient, map_gateway_status, parse_datetime
from .payment_payload_mapper import map_to_abacatepay_pix_payload

ABACATEPAY_STATUS_MAP = {
    "pending": PaymentStatus.pending,
    "processing": PaymentStatus.processing,
    "completed": PaymentStatus.completed,
    "paid": PaymentStatus.completed,
    "failed": PaymentStatus.failed,
    "error": PaymentStatus.failed,
    "rejected": PaymentStatus.failed,
    "cancelled": PaymentStatus.cancelled,
    "canceled": PaymentStatus.cancelled,
    "expired": PaymentStatus.cancelled,
    "refunded": PaymentStatus.cancelled,
}


class AbacatePayClient(BaseGatewayClient, PixPaymentCapable, SimulationCapable, CouponCapable):
    """Gateway exclusivamente PIX. Valores trafegam em centavos."""

    name = "AbacatePay"
    provider_type = ProviderType.abacatepay
    supported_methods = (PaymentMethod.pix,)
    default_base_url = ABACATEPAY_BASE_URL

    def _headers(self, method: str) -> Dict[str, str]:
        headers = super()._headers(method)
        if method in ("POST", "PUT"):
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _unwrap(response: Dict[str, Any]) -> Dict[str, Any]:
        """A AbacatePay responde `{"error": ..., "data": {...}}`."""
        if response.get("error"):
            raise UpstreamError(
                f"AbacatePay API error: {response['error']}",
                provider=ProviderType.abacatepay.value,
                status_code=200,
                body=str(response),
            )
        data = response.get("data")
        return data if isinstance(data, dict) else response

    def map_status(self, raw_status: Any) -> PaymentStatus:
        return map_gateway_status(raw_status, ABACATEPAY_STATUS_MAP, self.provider_type.value)

    # ========== DISPONIBILIDADE ==========

    async def is_available(self) -> bool:
        return await self._probe("/health", lambda r: r.is_success)

    # ========== PIX ==========

    async def create_pix_payment(self, request: PixPaymentRequest) -> PixPaymentResponse:
        payload = map_to_abacatepay_pix_payload(request)
        logger.info(f"🚀 Criando cobrança PIX AbacatePay: {request.amount} ({payload['amount']} centavos)")

        data = self._unwrap(await self._request("POST", "/pixQrCode/create", json=payload))

        copy_paste = data.get("brCode") or data.get("copy_paste_code") or data.get("copyPasteCode") or ""
        qr_code = as_data_uri(data.get("brCodeBase64") or data.get("qr_code") or data.get("qrCode"))
        if not qr_code and copy_paste:
            qr_code = build_qr_code_data_uri(copy_paste)

        response = PixPaymentResponse(
            id=str(data["id"]),
            qr_code=qr_code,
            copy_paste_code=copy_paste,
            amount=from_cents(data["amount"]) if data.get("amount") is not None else request.amount,
            description=data.get("description") or request.description,
            status=self.map_status(data.get("status")),
            created_at=parse_datetime(data.get("createdAt") or data.get("created_at")),
            expires_at=parse_datetime(data.get("expiresAt") or data.get("expires_at")),
            metadata=data.get("metadata") or request.metadata,
        )
        logger.info(f"✅ PIX AbacatePay criado: {response.id} | status={response.status.value}")
        return response

    # ========== STATUS ==========

    async def check_payment_status(self, payment_id: str) -> PaymentStatusResponse:
        data = self._unwrap(await self._request("GET", "/pixQrCode/check", params={"id": payment_id}))

        return PaymentStatusResponse(
            id=str(data.get("id") or payment_id),
            status=self.map_status(data.get("status")),
            paid_at=parse_datetime(data.get("paidAt") or data.get("paid_at")),
            amount=from_cents(data.get("amount")),
            method=PaymentMethod.pix,
            metadata=data.get("metadata"),
        )

    # ========== SIMULAÇÃO ==========

    async def simulate_payment(self, request: PaymentSimulationRequest) -> PaymentSimulationResponse:
        if self.config.environment == Environment.production:
            raise EnvironmentViolation("Simulação não permitida em produção", provider=self.provider_type.value)
        if request.action != SimulationAction.approve:
            raise CapabilityError("AbacatePay só simula aprovação de pagamentos", provider=self.provider_type.value)

        # A AbacatePay espera o id na query string e um corpo JSON (mesmo vazio)
        await self._request("POST", "/pixQrCode/simulate-payment", params={"id": request.payment_id}, json={})
        logger.info(f"🧪 Pagamento AbacatePay simulado: {request.payment_id}")
        return PaymentSimulationResponse(success=True, message="Payment simulated successfully")

    # ========== CUPONS ==========

    async def validate_coupon(self, code: str) -> CouponValidation:
        """
        Procura o cupom na listagem da AbacatePay (comparação sem diferenciar
        maiúsculas) e verifica status e limite de resgates.
        """
        normalized = code.strip().upper()
        response = await self._request("GET", "/coupon/list")
        coupons = response.get("data") or []

        coupon = next((c for c in coupons if str(c.get("id", "")).upper() == normalized), None)
        if not coupon:
            return CouponValidation(valid=False, code=normalized, error="Cupom não encontrado")

        if coupon.get("status") != "ACTIVE":
            return CouponValidation(valid=False, code=normalized, error="Cupom inativo ou expirado")

        max_redeems = coupon.get("maxRedeems", -1)
        if max_redeems != -1 and coupon.get("redeemsCount", 0) >= max_redeems:
            return CouponValidation(valid=False, code=normalized, error="Cupom esgotado (limite de resgates atingido)")

        discount_type = "fixed" if coupon.get("discountKind") == "FIXED" else "percentage"
        # PERCENTAGE vem como 20 (= 20%); FIXED vem em centavos
        discount = Decimal(str(coupon.get("discount", 0))) / 100

        logger.info(f"✅ Cupom validado: {normalized} ({discount_type} {discount})")
        return CouponValidation(
            valid=True,
            code=normalized,
            discount=discount,
            discount_type=discount_type,
            details={
                "notes": coupon.get("notes"),
                "max_redeems": max_redeems,
                "redeems_count": coupon.get("redeemsCount"),
            },
        )

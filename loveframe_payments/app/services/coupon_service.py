# loveframe_payments/app/services/coupon_service.py

from decimal import Decimal
from typing import Dict, Optional

from ..core.exceptions import PaymentError
from ..interfaces import CouponCapable
from ..models.schemas import CouponValidation, ProviderType
from ..utilities.constants import LOCAL_COUPONS
from ..utilities.logging_config import logger
from .payment_factory import PaymentFactory


class CouponService:
    """
    Validação de cupons de desconto pela AbacatePay, com tabela local
    de contingência quando o gateway falha ou não está configurado.
    """

    def __init__(self, factory: PaymentFactory, local_coupons: Optional[Dict[str, Decimal]] = None):
        self.factory = factory
        self.local_coupons = LOCAL_COUPONS if local_coupons is None else local_coupons

    def _validate_locally(self, code: str, reason: str) -> CouponValidation:
        discount = self.local_coupons.get(code)
        if discount is None:
            return CouponValidation(valid=False, code=code, error="Cupom inválido", source="local")

        logger.info(f"🎟️ Cupom {code} aceito pela tabela local ({reason})")
        return CouponValidation(
            valid=True,
            code=code,
            discount=discount,
            discount_type="percentage",
            source="local",
            details={"fallback_reason": reason},
        )

    async def validate_coupon(self, code: str) -> CouponValidation:
        normalized = (code or "").strip().upper()
        if not normalized:
            return CouponValidation(valid=False, code=normalized, error="Código do cupom é obrigatório", source="local")

        try:
            provider = self.factory.get_provider(ProviderType.abacatepay)
        except PaymentError as e:
            logger.warning(f"⚠️ AbacatePay não configurada para cupons: {e}")
            return self._validate_locally(normalized, "gateway não configurado")

        if not isinstance(provider, CouponCapable):
            return self._validate_locally(normalized, "gateway sem suporte a cupons")

        try:
            return await provider.validate_coupon(normalized)
        except PaymentError as e:
            logger.error(f"❌ Falha ao validar cupom {normalized} na AbacatePay: {e}")
            return self._validate_locally(normalized, "gateway indisponível")

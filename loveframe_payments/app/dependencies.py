# loveframe_payments/app/dependencies.py

from functools import lru_cache

from .core.config import build_payment_config, settings
from .services import CouponService, PaymentFactory, PaymentService


# ========== FACTORY FUNCTIONS ==========
# Uma instância por processo; testes substituem via app.dependency_overrides.

@lru_cache()
def get_payment_factory() -> PaymentFactory:
    return PaymentFactory(build_payment_config(settings))


@lru_cache()
def get_payment_service() -> PaymentService:
    factory = get_payment_factory()
    return PaymentService(factory, environment=settings.ENVIRONMENT)


@lru_cache()
def get_coupon_service() -> CouponService:
    return CouponService(get_payment_factory())


def reset_dependencies() -> None:
    """Descarta as instâncias em cache (ex.: após trocar variáveis de ambiente)."""
    get_coupon_service.cache_clear()
    get_payment_service.cache_clear()
    get_payment_factory.cache_clear()

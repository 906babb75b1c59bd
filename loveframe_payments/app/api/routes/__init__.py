# loveframe_payments/app/api/routes/__init__.py

from .payments import router as payments_router
from .coupons import router as coupons_router
from .health import router as health_router


__all__ = [
    "payments_router",
    "coupons_router",
    "health_router",
]

# loveframe_payments/app/services/__init__.py

from .payment_factory import PaymentFactory, select_first_healthy
from .payment_service import PaymentService
from .status_poller import PaymentStatusPoller
from .coupon_service import CouponService
from .validators import (
    is_valid_card_number,
    detect_card_brand,
    compute_installment_options,
)

__all__ = [
    "PaymentFactory",
    "select_first_healthy",
    "PaymentService",
    "PaymentStatusPoller",
    "CouponService",
    "is_valid_card_number",
    "detect_card_brand",
    "compute_installment_options",
]

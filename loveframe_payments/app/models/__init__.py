from .schemas import (
    PaymentMethod,
    PaymentStatus,
    TERMINAL_STATUSES,
    ProviderType,
    SimulationAction,
    Environment,
    PixPaymentRequest,
    PixPaymentResponse,
    CardData,
    CardPaymentRequest,
    CardPaymentResponse,
    PaymentStatusResponse,
    InstallmentOption,
    PaymentSimulationRequest,
    PaymentSimulationResponse,
    CouponValidation,
    ProviderConfig,
    PaymentFactoryConfig,
)

__all__ = [
    "PaymentMethod",
    "PaymentStatus",
    "TERMINAL_STATUSES",
    "ProviderType",
    "SimulationAction",
    "Environment",
    "PixPaymentRequest",
    "PixPaymentResponse",
    "CardData",
    "CardPaymentRequest",
    "CardPaymentResponse",
    "PaymentStatusResponse",
    "InstallmentOption",
    "PaymentSimulationRequest",
    "PaymentSimulationResponse",
    "CouponValidation",
    "ProviderConfig",
    "PaymentFactoryConfig",
]

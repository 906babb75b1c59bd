# loveframe_payments/app/interfaces/__init__.py

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Tuple

from ..models.schemas import (
    CardPaymentRequest,
    CardPaymentResponse,
    CouponValidation,
    InstallmentOption,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentSimulationResponse,
    PaymentStatusResponse,
    PixPaymentRequest,
    PixPaymentResponse,
    ProviderType,
)


# ========== INTERFACE BASE DE PROVEDOR ==========

class PaymentProvider(ABC):
    """Contrato mínimo de todo provedor de pagamento."""

    name: str
    provider_type: ProviderType
    supported_methods: Tuple[PaymentMethod, ...] = ()

    def supports(self, method: PaymentMethod) -> bool:
        return PaymentMethod(method) in self.supported_methods

    @abstractmethod
    async def is_available(self) -> bool: ...

    @abstractmethod
    async def check_payment_status(self, payment_id: str) -> PaymentStatusResponse: ...


# ========== CAPACIDADES POR FAMÍLIA DE MÉTODO ==========
# Cada adapter declara o que suporta herdando explicitamente destas classes.

class PixPaymentCapable(ABC):
    """Provedor que cria cobranças PIX."""

    @abstractmethod
    async def create_pix_payment(self, request: PixPaymentRequest) -> PixPaymentResponse: ...


class CardPaymentCapable(ABC):
    """Provedor que processa pagamentos com cartão."""

    @abstractmethod
    async def process_card_payment(self, request: CardPaymentRequest) -> CardPaymentResponse: ...


class CardValidationCapable(ABC):
    @abstractmethod
    def validate_card(self, card_number: str) -> bool: ...


class InstallmentCapable(ABC):
    @abstractmethod
    def get_installment_options(self, amount: Decimal) -> List[InstallmentOption]: ...


class SimulationCapable(ABC):
    """Provedor que força um pagamento para aprovado/rejeitado fora de produção."""

    @abstractmethod
    async def simulate_payment(self, request: PaymentSimulationRequest) -> PaymentSimulationResponse: ...


class CouponCapable(ABC):
    @abstractmethod
    async def validate_coupon(self, code: str) -> CouponValidation: ...

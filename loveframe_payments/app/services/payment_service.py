# loveframe_payments/app/services/payment_service.py

from decimal import Decimal
from typing import Dict, List, Optional, Union

from ..core.exceptions import (
    AllProvidersFailedError,
    CapabilityError,
    EnvironmentViolation,
    PaymentError,
    PaymentNotFoundError,
    ProviderConnectionError,
    UpstreamError,
)
from ..interfaces import CardValidationCapable, InstallmentCapable, PaymentProvider, SimulationCapable
from ..models.schemas import (
    CardPaymentRequest,
    CardPaymentResponse,
    Environment,
    InstallmentOption,
    PaymentMethod,
    PaymentSimulationRequest,
    PaymentSimulationResponse,
    PaymentStatusResponse,
    PixPaymentRequest,
    PixPaymentResponse,
    ProviderType,
)
from ..utilities.logging_config import logger
from .payment_factory import PaymentFactory
from .validators import compute_installment_options, is_valid_card_number


def _is_lookup_miss(error: Exception) -> bool:
    """404 do gateway ou envelope de erro da AbacatePay (HTTP 200): o provedor respondeu e não conhece o id."""
    if isinstance(error, ProviderConnectionError) or not isinstance(error, UpstreamError):
        return False
    return error.status_code == 404 or (error.provider == ProviderType.abacatepay.value and error.status_code == 200)


class PaymentService:
    """
    Ponto único de entrada da aplicação para pagamentos.

    Resolve o provedor via `PaymentFactory` e delega. Criação de cobrança usa
    sempre o provedor padrão da família (sem failover automático); consultas
    sem dica de método percorrem todos os provedores configurados.
    """

    def __init__(self, factory: PaymentFactory, environment: Optional[Environment] = None):
        self.factory = factory
        self.environment = Environment(environment or factory.config.environment)

    # ========== PIX ==========

    async def create_pix_payment(self, request: PixPaymentRequest) -> PixPaymentResponse:
        provider = self.factory.get_pix_provider()
        return await provider.create_pix_payment(request)

    # ========== CARTÃO ==========

    async def process_card_payment(self, request: CardPaymentRequest) -> CardPaymentResponse:
        provider = self.factory.get_card_provider()
        return await provider.process_card_payment(request)

    # ========== STATUS ==========

    async def check_payment_status(
        self, payment_id: str, method: Optional[PaymentMethod] = None
    ) -> PaymentStatusResponse:
        if method:
            provider = self.factory.get_provider_for_method(method)
            return await provider.check_payment_status(payment_id)

        # IDs são opacos: tenta cada provedor configurado, na ordem
        errors: Dict[str, Exception] = {}
        for provider_type in self.factory.get_available_providers():
            try:
                provider = self.factory.get_provider(provider_type)
                return await provider.check_payment_status(payment_id)
            except PaymentError as e:
                logger.warning(f"⚠️ Status de {payment_id} não obtido via {provider_type.value}: {e}")
                errors[provider_type.value] = e

        if all(_is_lookup_miss(e) for e in errors.values()):
            raise PaymentNotFoundError(f"Pagamento {payment_id} não encontrado em nenhum provedor", errors=errors)
        raise AllProvidersFailedError(
            f"Não foi possível consultar o pagamento {payment_id}; tente novamente", errors=errors
        )

    # ========== VALIDAÇÃO / PARCELAS ==========

    def _card_provider_or_none(self) -> Optional[PaymentProvider]:
        try:
            return self.factory.get_card_provider()
        except PaymentError as e:
            logger.warning(f"⚠️ Provedor de cartão indisponível, usando regra padrão: {e}")
            return None

    def validate_card(self, card_number: str) -> bool:
        provider = self._card_provider_or_none()
        if isinstance(provider, CardValidationCapable):
            return provider.validate_card(card_number)
        return is_valid_card_number(card_number)

    def get_installment_options(self, amount: Union[Decimal, float, str]) -> List[InstallmentOption]:
        provider = self._card_provider_or_none()
        if isinstance(provider, InstallmentCapable):
            return provider.get_installment_options(Decimal(str(amount)))
        return compute_installment_options(amount)

    # ========== SIMULAÇÃO ==========

    async def simulate_payment(
        self, request: PaymentSimulationRequest, method: Optional[PaymentMethod] = None
    ) -> PaymentSimulationResponse:
        if self.environment == Environment.production:
            logger.error(f"🚫 Simulação bloqueada em produção: {request.payment_id}")
            raise EnvironmentViolation("Simulação de pagamento não permitida em produção")

        if method:
            provider = self.factory.get_provider_for_method(method)
            if not isinstance(provider, SimulationCapable):
                raise CapabilityError(
                    f"Provedor {provider.name} não suporta simulação", provider=provider.provider_type.value
                )
            return await provider.simulate_payment(request)

        errors: Dict[str, Exception] = {}
        capable_found = False
        for provider_type in self.factory.get_available_providers():
            try:
                provider = self.factory.get_provider(provider_type)
            except PaymentError as e:
                errors[provider_type.value] = e
                continue
            if not isinstance(provider, SimulationCapable):
                continue

            capable_found = True
            try:
                return await provider.simulate_payment(request)
            except PaymentError as e:
                logger.warning(f"⚠️ Simulação falhou via {provider_type.value}: {e}")
                errors[provider_type.value] = e

        if not capable_found:
            raise CapabilityError("Nenhum provedor configurado suporta simulação de pagamento")
        raise AllProvidersFailedError(f"Simulação de {request.payment_id} falhou em todos os provedores", errors=errors)

    # ========== SAÚDE ==========

    async def get_working_provider(self, method: PaymentMethod) -> Optional[PaymentProvider]:
        return await self.factory.get_working_provider(method)

    async def check_providers_health(self) -> Dict[ProviderType, bool]:
        return await self.factory.check_providers_health()

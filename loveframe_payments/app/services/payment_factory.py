# loveframe_payments/app/services/payment_factory.py

import asyncio
import threading
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Type

import httpx

from ..core.exceptions import CapabilityError, ConfigurationError
from ..interfaces import CardPaymentCapable, PaymentProvider, PixPaymentCapable
from ..models.schemas import PaymentFactoryConfig, PaymentMethod, ProviderConfig, ProviderType
from ..utilities.logging_config import logger
from .gateways import AbacatePayClient, MercadoPagoClient, StripeClient

Probe = Callable[[PaymentProvider], Awaitable[bool]]


async def select_first_healthy(providers: Iterable[PaymentProvider], probe: Probe) -> Optional[PaymentProvider]:
    """
    Sonda os provedores em ordem, um de cada vez, e devolve o primeiro saudável.
    Exceção na sonda conta como indisponível. Retorna None se nenhum responder.
    """
    for provider in providers:
        try:
            if await probe(provider):
                return provider
        except Exception as e:
            logger.warning(f"⚠️ Provedor {provider.name} indisponível: {e}")
    return None


async def _probe_availability(provider: PaymentProvider) -> bool:
    return await provider.is_available()


class PaymentFactory:
    """
    Registro dos gateways configurados.

    Cada adapter é criado uma única vez por tipo e mantido em cache até uma
    reconfiguração explícita (`update_provider_config` / `clear_cache`).
    """

    _GATEWAYS: Dict[ProviderType, Type[PaymentProvider]] = {
        ProviderType.abacatepay: AbacatePayClient,
        ProviderType.stripe: StripeClient,
        ProviderType.mercadopago: MercadoPagoClient,
    }

    def __init__(self, config: PaymentFactoryConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        self._instances: Dict[ProviderType, PaymentProvider] = {}
        self._lock = threading.Lock()

    # ========== CRIAÇÃO ==========

    def _create_provider(self, provider_type: ProviderType) -> PaymentProvider:
        provider_config = self.config.providers.get(provider_type)
        if provider_config is None:
            raise ConfigurationError(
                f"Configuração do provedor {provider_type.value} não encontrada",
                provider=provider_type.value,
            )

        gateway_class = self._GATEWAYS.get(provider_type)
        if gateway_class is None:
            raise ConfigurationError(f"Provedor desconhecido: {provider_type.value}", provider=provider_type.value)

        logger.info(f"🔧 Criando adapter {gateway_class.__name__}")
        return gateway_class(provider_config, transport=self._transport)

    @staticmethod
    def _resolve_type(provider_type) -> ProviderType:
        try:
            return ProviderType(provider_type)
        except ValueError:
            raise ConfigurationError(f"Provedor desconhecido: {provider_type}", provider=str(provider_type))

    def get_provider(self, provider_type: ProviderType) -> PaymentProvider:
        provider_type = self._resolve_type(provider_type)
        provider = self._instances.get(provider_type)
        if provider is not None:
            return provider

        with self._lock:
            if provider_type not in self._instances:
                self._instances[provider_type] = self._create_provider(provider_type)
            return self._instances[provider_type]

    # ========== RESOLUÇÃO POR MÉTODO ==========

    def get_pix_provider(self, preferred: Optional[ProviderType] = None) -> PixPaymentCapable:
        provider_type = self._resolve_type(preferred or self.config.default_pix_provider)
        provider = self.get_provider(provider_type)

        if not isinstance(provider, PixPaymentCapable) or not provider.supports(PaymentMethod.pix):
            raise CapabilityError(f"Provedor {provider_type.value} não suporta PIX", provider=provider_type.value)
        return provider

    def get_card_provider(self, preferred: Optional[ProviderType] = None) -> CardPaymentCapable:
        provider_type = self._resolve_type(preferred or self.config.default_card_provider)
        provider = self.get_provider(provider_type)

        supports_card = any(provider.supports(m) for m in (PaymentMethod.credit_card, PaymentMethod.debit_card))
        if not isinstance(provider, CardPaymentCapable) or not supports_card:
            raise CapabilityError(f"Provedor {provider_type.value} não suporta cartão", provider=provider_type.value)
        return provider

    def get_provider_for_method(self, method: PaymentMethod) -> PaymentProvider:
        method = PaymentMethod(method)
        if method == PaymentMethod.pix:
            return self.get_pix_provider()
        return self.get_card_provider()

    # ========== CONSULTA ==========

    def get_available_providers(self) -> List[ProviderType]:
        """Provedores configurados, na ordem da configuração, independente de saúde."""
        return list(self.config.providers.keys())

    def get_supported_methods(self) -> List[PaymentMethod]:
        methods: List[PaymentMethod] = []
        for provider_type in self.get_available_providers():
            try:
                provider = self.get_provider(provider_type)
            except ConfigurationError as e:
                logger.warning(f"⚠️ Falha ao carregar provedor {provider_type.value}: {e}")
                continue
            for method in provider.supported_methods:
                if method not in methods:
                    methods.append(method)
        return methods

    # ========== SAÚDE / FAILOVER ==========

    async def _safe_health(self, provider_type: ProviderType) -> bool:
        try:
            return bool(await self.get_provider(provider_type).is_available())
        except Exception as e:
            logger.warning(f"⚠️ Health check falhou para {provider_type.value}: {e}")
            return False

    async def check_providers_health(self) -> Dict[ProviderType, bool]:
        provider_types = self.get_available_providers()
        results = await asyncio.gather(*(self._safe_health(t) for t in provider_types))
        return dict(zip(provider_types, results))

    def _candidates(self, method: PaymentMethod) -> List[PaymentProvider]:
        candidates = []
        for provider_type in self.get_available_providers():
            try:
                provider = self.get_provider(provider_type)
            except ConfigurationError as e:
                logger.warning(f"⚠️ Provedor {provider_type.value} ignorado no failover: {e}")
                continue
            if provider.supports(method):
                candidates.append(provider)
        return candidates

    async def get_working_provider(self, method: PaymentMethod) -> Optional[PaymentProvider]:
        method = PaymentMethod(method)
        provider = await select_first_healthy(self._candidates(method), _probe_availability)
        if provider is None:
            logger.warning(f"⚠️ Nenhum provedor disponível para {method.value}")
        else:
            logger.info(f"✅ Provedor disponível para {method.value}: {provider.name}")
        return provider

    # ========== RECONFIGURAÇÃO ==========

    def update_provider_config(self, provider_type: ProviderType, config: ProviderConfig) -> None:
        provider_type = self._resolve_type(provider_type)
        with self._lock:
            self.config.providers = {**self.config.providers, provider_type: config}
            self._instances.pop(provider_type, None)
        logger.info(f"🔄 Configuração do provedor {provider_type.value} atualizada")

    def clear_cache(self) -> None:
        with self._lock:
            self._instances.clear()
        logger.info("🧹 Cache de provedores limpo")

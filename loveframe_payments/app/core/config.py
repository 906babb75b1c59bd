from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from loguru import logger

from ..models.schemas import Environment, PaymentFactoryConfig, ProviderConfig, ProviderType
from ..utilities import constants


class Settings(BaseSettings):
    """Configurações globais da aplicação carregadas de variáveis de ambiente."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # 🔹 Aplicação
    APP_NAME: str = "LoveFrame Payments API"
    ENVIRONMENT: Environment = Environment.development
    DEBUG: bool = False

    # 🔹 Logs
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # 🔹 Gateways
    GATEWAY_TIMEOUT: float = Field(constants.GATEWAY_TIMEOUT, gt=0)
    DEFAULT_PIX_PROVIDER: ProviderType = ProviderType(constants.DEFAULT_PIX_PROVIDER)
    DEFAULT_CARD_PROVIDER: ProviderType = ProviderType(constants.DEFAULT_CARD_PROVIDER)

    # 🔹 AbacatePay (PIX)
    ABACATEPAY_API_KEY: Optional[str] = None
    ABACATEPAY_BASE_URL: str = constants.ABACATEPAY_BASE_URL

    # 🔹 Stripe (cartão)
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PUBLISHABLE_KEY: Optional[str] = None
    STRIPE_BASE_URL: str = constants.STRIPE_BASE_URL

    # 🔹 Mercado Pago (PIX e cartão)
    MERCADOPAGO_ACCESS_TOKEN: Optional[str] = None
    MERCADOPAGO_PUBLIC_KEY: Optional[str] = None
    MERCADOPAGO_BASE_URL: str = constants.MERCADOPAGO_BASE_URL

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def normalize_environment(cls, v):
        # Qualquer valor diferente de "production" roda como desenvolvimento
        if isinstance(v, str):
            return Environment.production if v.strip().lower() == "production" else Environment.development
        return v


def build_payment_config(settings: Settings) -> PaymentFactoryConfig:
    """
    Monta a configuração da camada de pagamentos a partir das settings.
    Só entram os provedores com credencial preenchida.
    """
    environment = settings.ENVIRONMENT
    timeout = settings.GATEWAY_TIMEOUT
    providers = {}

    if settings.ABACATEPAY_API_KEY:
        providers[ProviderType.abacatepay] = ProviderConfig(
            api_key=settings.ABACATEPAY_API_KEY,
            base_url=settings.ABACATEPAY_BASE_URL,
            environment=environment,
            timeout=timeout,
        )

    if settings.STRIPE_SECRET_KEY:
        providers[ProviderType.stripe] = ProviderConfig(
            api_key=settings.STRIPE_SECRET_KEY,
            public_key=settings.STRIPE_PUBLISHABLE_KEY,
            base_url=settings.STRIPE_BASE_URL,
            environment=environment,
            timeout=timeout,
        )

    if settings.MERCADOPAGO_ACCESS_TOKEN:
        providers[ProviderType.mercadopago] = ProviderConfig(
            api_key=settings.MERCADOPAGO_ACCESS_TOKEN,
            public_key=settings.MERCADOPAGO_PUBLIC_KEY,
            base_url=settings.MERCADOPAGO_BASE_URL,
            environment=environment,
            timeout=timeout,
        )

    return PaymentFactoryConfig(
        providers=providers,
        default_pix_provider=settings.DEFAULT_PIX_PROVIDER,
        default_card_provider=settings.DEFAULT_CARD_PROVIDER,
        environment=environment,
    )


def validate_payment_config(config: PaymentFactoryConfig) -> List[str]:
    """Retorna avisos legíveis sobre a configuração; lista vazia = tudo certo."""
    errors: List[str] = []
    providers = config.providers

    def has_key(provider_type: ProviderType) -> bool:
        provider = providers.get(provider_type)
        return bool(provider and provider.api_key)

    if not (has_key(ProviderType.abacatepay) or has_key(ProviderType.mercadopago)):
        errors.append("Nenhum provedor PIX configurado. Configure AbacatePay ou Mercado Pago.")

    if not (has_key(ProviderType.stripe) or has_key(ProviderType.mercadopago)):
        errors.append("Nenhum provedor de cartão configurado. Configure Stripe ou Mercado Pago.")

    if has_key(ProviderType.abacatepay) and not providers[ProviderType.abacatepay].api_key.startswith("abc_"):
        errors.append('Formato inválido da API key da AbacatePay. Deve começar com "abc_".')

    if has_key(ProviderType.stripe) and not providers[ProviderType.stripe].api_key.startswith("sk_"):
        errors.append('Formato inválido da secret key do Stripe. Deve começar com "sk_".')

    if has_key(ProviderType.mercadopago) and len(providers[ProviderType.mercadopago].api_key) < 10:
        errors.append("Formato inválido do access token do Mercado Pago.")

    for default_name, provider_type in (
        ("PIX", config.default_pix_provider),
        ("cartão", config.default_card_provider),
    ):
        if providers and provider_type not in providers:
            errors.append(f"Provedor padrão de {default_name} ({provider_type.value}) não está configurado.")

    return errors


# ✅ Instância de configurações
try:
    settings = Settings()
except ValidationError as e:
    logger.error(f"❌ Erro na configuração: {e}")
    raise

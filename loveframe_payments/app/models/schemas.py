from pydantic import BaseModel, ConfigDict, Field, SecretStr, StringConstraints, field_validator
from typing import Annotated, Any, Dict, Optional
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime

from enum import Enum

from ..utilities.constants import GATEWAY_TIMEOUT, MAX_INSTALLMENTS


class PaymentMethod(str, Enum):
    pix = "pix"
    credit_card = "credit_card"
    debit_card = "debit_card"

    @property
    def is_card(self) -> bool:
        return self in (PaymentMethod.credit_card, PaymentMethod.debit_card)


class PaymentStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({PaymentStatus.completed, PaymentStatus.failed, PaymentStatus.cancelled})


class ProviderType(str, Enum):
    abacatepay = "abacatepay"
    stripe = "stripe"
    mercadopago = "mercadopago"


class SimulationAction(str, Enum):
    approve = "approve"
    reject = "reject"


class Environment(str, Enum):
    development = "development"
    production = "production"


# Tipos de dados validados
DescriptionType = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
InstallmentsType = Annotated[int, Field(ge=1, le=MAX_INSTALLMENTS, description="Número de parcelas (1-12)")]
Metadata = Dict[str, Any]


def _normalize_amount(v: Any) -> Decimal:
    try:
        decimal_value = Decimal(str(v)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except Exception as e:
        raise ValueError(f"Valor inválido para amount: {v}. Erro: {e}")
    if decimal_value <= 0:
        raise ValueError("O valor de 'amount' deve ser maior que 0.")
    return decimal_value


class _Snapshot(BaseModel):
    """Base imutável para requisições e respostas de pagamento."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)


# ========== PIX ==========

class PixPaymentRequest(_Snapshot):
    amount: Decimal
    description: DescriptionType
    customer_id: Optional[str] = None
    metadata: Optional[Metadata] = None
    expiration_minutes: Optional[int] = Field(default=None, gt=0)

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v):
        return _normalize_amount(v)


class PixPaymentResponse(_Snapshot):
    id: str
    qr_code: Optional[str] = None
    copy_paste_code: str
    amount: Decimal
    description: str
    status: PaymentStatus
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[Metadata] = None


# ========== CARTÃO ==========

class CardData(_Snapshot):
    """
    Dados do cartão. Número e CVV são SecretStr: nunca aparecem em repr ou logs,
    e são apenas repassados ao gateway.
    """
    number: SecretStr
    expiry_month: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^(0?[1-9]|1[0-2])$")]
    expiry_year: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^(\d{2}|\d{4})$")]
    cvv: SecretStr
    holder_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]

    @field_validator("expiry_month", "expiry_year", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        return str(v) if v is not None else v


class CardPaymentRequest(_Snapshot):
    amount: Decimal
    description: DescriptionType
    card: CardData
    customer_id: Optional[str] = None
    installments: Optional[InstallmentsType] = None
    metadata: Optional[Metadata] = None

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v):
        return _normalize_amount(v)


class CardPaymentResponse(_Snapshot):
    id: str
    amount: Decimal
    description: str
    status: PaymentStatus
    created_at: Optional[datetime] = None
    installments: int = 1
    authorization_code: Optional[str] = None
    metadata: Optional[Metadata] = None


# ========== STATUS / PARCELAS / SIMULAÇÃO ==========

class PaymentStatusResponse(_Snapshot):
    id: str
    status: PaymentStatus
    paid_at: Optional[datetime] = None
    amount: Decimal
    method: PaymentMethod
    metadata: Optional[Metadata] = None


class InstallmentOption(_Snapshot):
    installments: int
    installment_amount: Decimal
    total_amount: Decimal
    interest_rate: Decimal = Decimal("0")


class PaymentSimulationRequest(_Snapshot):
    payment_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    action: SimulationAction = SimulationAction.approve


class PaymentSimulationResponse(_Snapshot):
    success: bool
    message: Optional[str] = None


class CouponValidation(_Snapshot):
    """
    Resultado da validação de cupom. `discount` é fração (0.20 = 20%) para
    cupons percentuais e valor em reais para cupons fixos.
    """
    valid: bool
    code: str
    discount: Optional[Decimal] = None
    discount_type: Optional[str] = None
    error: Optional[str] = None
    source: str = "abacatepay"
    details: Optional[Dict[str, Any]] = None


# ========== CONFIGURAÇÃO ==========

class ProviderConfig(_Snapshot):
    """
    Credenciais e parâmetros de conexão de um provedor.
    """
    api_key: str
    public_key: Optional[str] = None
    base_url: Optional[str] = None
    environment: Environment = Environment.development
    timeout: float = Field(default=GATEWAY_TIMEOUT, gt=0)


class PaymentFactoryConfig(BaseModel):
    """
    Configuração completa da camada de pagamentos: provedores configurados (em ordem)
    e os provedores padrão para PIX e cartão.
    """
    providers: Dict[ProviderType, ProviderConfig] = Field(default_factory=dict)
    default_pix_provider: ProviderType = ProviderType.abacatepay
    default_card_provider: ProviderType = ProviderType.stripe
    environment: Environment = Environment.development

from decimal import Decimal

# 🔹 Timeout padrão para os gateways (em segundos)
GATEWAY_TIMEOUT = 30.0

# 🔹 Provedores padrão por família de método
DEFAULT_PIX_PROVIDER = "abacatepay"
DEFAULT_CARD_PROVIDER = "stripe"

# 🔹 URLs padrão dos gateways
ABACATEPAY_BASE_URL = "https://api.abacatepay.com/v1"
STRIPE_BASE_URL = "https://api.stripe.com/v1"
MERCADOPAGO_BASE_URL = "https://api.mercadopago.com"

STRIPE_API_VERSION = "2023-10-16"

# 🔹 Parcelamento
MAX_INSTALLMENTS = 12
DEFAULT_INTEREST_FREE_INSTALLMENTS = 6
DEFAULT_MONTHLY_INTEREST_RATE = Decimal("0.025")

# 🔹 Limites do número do cartão (após remover espaços e hífens)
CARD_NUMBER_MIN_LENGTH = 13
CARD_NUMBER_MAX_LENGTH = 19

# 🔹 Cupons aceitos localmente quando a AbacatePay não responde
LOCAL_COUPONS = {
    "LOVEFRAME10": Decimal("0.10"),
    "LOVEFRAME20": Decimal("0.20"),
    "LANCAMENTO": Decimal("0.50"),
}

# 🔹 Polling de status
POLL_INTERVAL_SECONDS = 5.0
POLL_MAX_DURATION_SECONDS = 300.0

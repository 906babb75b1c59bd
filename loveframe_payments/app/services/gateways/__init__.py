from .abacatepay_client import AbacatePayClient
from .stripe_client import StripeClient
from .mercadopago_client import MercadoPagoClient
from .base import BaseGatewayClient, map_gateway_status

__all__ = [
    "AbacatePayClient",
    "StripeClient",
    "MercadoPagoClient",
    "BaseGatewayClient",
    "map_gateway_status",
]

from .logging_config import logger
from .helpers import (
    generate_idempotency_key,
    to_decimal,
    to_cents,
    from_cents,
    clean_card_number,
    mask_card_number,
    build_qr_code_data_uri,
)
from .constants import GATEWAY_TIMEOUT, MAX_INSTALLMENTS

__all__ = [
    "logger",
    "generate_idempotency_key",
    "to_decimal",
    "to_cents",
    "from_cents",
    "clean_card_number",
    "mask_card_number",
    "build_qr_code_data_uri",
    "GATEWAY_TIMEOUT",
    "MAX_INSTALLMENTS",
]

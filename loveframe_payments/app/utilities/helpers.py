import uuid
import re
import base64
from io import BytesIO
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

import qrcode

CENT = Decimal("0.01")


def generate_idempotency_key() -> str:
    """
    Gera uma chave de idempotência única para requisições POST.
    """
    return str(uuid.uuid4())


def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Normaliza um valor monetário para Decimal com 2 casas.
    """
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Union[Decimal, float, int, str]) -> int:
    """
    Converte um valor em reais para centavos inteiros.
    """
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: Union[int, float, str, None]) -> Decimal:
    """
    Converte centavos inteiros para reais.
    """
    if cents is None:
        return Decimal("0.00")
    return (Decimal(str(cents)) / 100).quantize(CENT, rounding=ROUND_HALF_UP)


def clean_card_number(card_number: str) -> str:
    """Remove espaços e hífens do número do cartão."""
    return re.sub(r"[\s-]", "", card_number or "")


def mask_card_number(card_number: str) -> str:
    """
    Mascara o número do cartão mantendo apenas os 4 últimos dígitos.
    """
    return re.sub(r"\d(?=\d{4})", "*", clean_card_number(card_number))


def build_qr_code_data_uri(payload: str) -> str:
    """
    Gera um PNG em base64 (data URI) a partir do código copia-e-cola do PIX.
    """
    img = qrcode.make(payload)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return f"data:image/png;base64,{base64.b64encode(buf.getvalue()).decode()}"


def as_data_uri(image_base64: Optional[str]) -> Optional[str]:
    """Garante o prefixo data URI em imagens base64 retornadas pelos gateways."""
    if not image_base64:
        return None
    if image_base64.startswith("data:"):
        return image_base64
    return f"data:image/png;base64,{image_base64}"


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove campos vazios (None) de um payload."""
    return {k: v for k, v in data.items() if v is not None}

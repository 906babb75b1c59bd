# loveframe_payments/app/services/gateways/payment_payload_mapper.py

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ...models.schemas import CardData, CardPaymentRequest, PixPaymentRequest
from ...utilities.helpers import clean_card_number, drop_none, to_cents
from ..validators import detect_card_brand

COUPON_METADATA_KEYS = ("coupon_code", "couponCode")


def split_coupon_code(metadata: Optional[Dict[str, Any]]) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """
    Retira o código de cupom do metadata. Devolve (cupom, cópia do metadata sem o cupom);
    o dicionário original não é alterado.
    """
    if metadata is None:
        return None, None

    remaining = dict(metadata)
    coupon = None
    for key in COUPON_METADATA_KEYS:
        value = remaining.pop(key, None)
        if value and not coupon:
            coupon = str(value).strip().upper()
    return coupon, remaining


# ========== ABACATEPAY ==========

def map_to_abacatepay_pix_payload(request: PixPaymentRequest) -> Dict[str, Any]:
    """
    Mapeia a requisição PIX para o formato da AbacatePay.
    - `amount` em centavos.
    - `expires_in` em segundos, a partir de `expiration_minutes`.
    - cupom do metadata vai para o campo `coupon_code`.
    """
    coupon_code, metadata = split_coupon_code(request.metadata)

    payload = {
        "amount": to_cents(request.amount),
        "description": request.description,
        "customer_id": request.customer_id,
        "expires_in": request.expiration_minutes * 60 if request.expiration_minutes else None,
        "coupon_code": coupon_code,
        "metadata": metadata,
    }
    return drop_none(payload)


# ========== STRIPE ==========

def flatten_form(data: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Achata dicionários aninhados no formato de formulário do Stripe:
    {"card": {"number": "4242"}} -> {"card[number]": "4242"}.
    """
    form: Dict[str, str] = {}
    for key, value in data.items():
        form_key = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            form.update(flatten_form(value, form_key))
        elif isinstance(value, bool):
            form[form_key] = "true" if value else "false"
        else:
            form[form_key] = str(value)
    return form


def map_to_stripe_payment_method_payload(card: CardData) -> Dict[str, str]:
    payload = {
        "type": "card",
        "card": {
            "number": clean_card_number(card.number.get_secret_value()),
            "exp_month": card.expiry_month,
            "exp_year": card.expiry_year,
            "cvc": card.cvv.get_secret_value(),
        },
        "billing_details": {"name": card.holder_name},
    }
    return flatten_form(payload)


def map_to_stripe_payment_intent_payload(request: CardPaymentRequest, payment_method_id: str) -> Dict[str, str]:
    """
    Monta o PaymentIntent já confirmado. Parcelas acima de 1 usam o plano
    `fixed_count` mensal do Stripe.
    """
    payload: Dict[str, Any] = {
        "amount": to_cents(request.amount),
        "currency": "brl",
        "description": request.description,
        "payment_method": payment_method_id,
        "confirm": True,
        "metadata": dict(request.metadata or {}),
    }

    if request.installments and request.installments > 1:
        payload["payment_method_options"] = {
            "card": {
                "installments": {
                    "enabled": True,
                    "plan": {"count": request.installments, "interval": "month", "type": "fixed_count"},
                }
            }
        }

    return flatten_form(payload)


# ========== MERCADO PAGO ==========

def _mercadopago_payer(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    metadata = metadata or {}
    payer: Dict[str, Any] = {"email": metadata.get("email")}

    document = "".join(filter(str.isdigit, str(metadata.get("cpf") or metadata.get("document") or "")))
    if document:
        payer["identification"] = {"type": "CNPJ" if len(document) > 11 else "CPF", "number": document}
    if metadata.get("customer_name"):
        payer["first_name"] = metadata["customer_name"]

    return drop_none(payer)


def map_to_mercadopago_pix_payload(request: PixPaymentRequest) -> Dict[str, Any]:
    """
    Cobrança PIX no Mercado Pago: valor em reais (não centavos) e
    `payment_method_id = "pix"`.
    """
    payload: Dict[str, Any] = {
        "transaction_amount": float(request.amount),
        "description": request.description,
        "payment_method_id": "pix",
        "payer": _mercadopago_payer(request.metadata),
        "external_reference": request.customer_id,
        "metadata": dict(request.metadata) if request.metadata else None,
    }

    if request.expiration_minutes:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=request.expiration_minutes)
        payload["date_of_expiration"] = expires_at.isoformat(timespec="milliseconds")

    return drop_none(payload)


def map_to_mercadopago_card_token_payload(card: CardData) -> Dict[str, Any]:
    return {
        "card_number": clean_card_number(card.number.get_secret_value()),
        "expiration_month": int(card.expiry_month),
        "expiration_year": int(card.expiry_year if len(card.expiry_year) == 4 else f"20{card.expiry_year}"),
        "security_code": card.cvv.get_secret_value(),
        "cardholder": {"name": card.holder_name},
    }


def map_to_mercadopago_card_payload(request: CardPaymentRequest, card_token: str) -> Dict[str, Any]:
    payload = {
        "transaction_amount": float(request.amount),
        "description": request.description,
        "installments": request.installments or 1,
        "payment_method_id": detect_card_brand(request.card.number.get_secret_value()),
        "token": card_token,
        "payer": _mercadopago_payer(request.metadata),
        "external_reference": request.customer_id,
        "metadata": dict(request.metadata) if request.metadata else None,
    }
    return drop_none(payload)

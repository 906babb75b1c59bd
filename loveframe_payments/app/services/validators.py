# loveframe_payments/app/services/validators.py

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import List, Union

from ..models.schemas import InstallmentOption
from ..utilities.constants import (
    CARD_NUMBER_MAX_LENGTH,
    CARD_NUMBER_MIN_LENGTH,
    DEFAULT_INTEREST_FREE_INSTALLMENTS,
    DEFAULT_MONTHLY_INTEREST_RATE,
    MAX_INSTALLMENTS,
)
from ..utilities.helpers import CENT, clean_card_number, to_decimal


# ========== VALIDAÇÃO DE CARTÃO ==========

def luhn_checksum_ok(digits: str) -> bool:
    """Algoritmo de Luhn sobre uma string só de dígitos."""
    total = 0
    for i, char in enumerate(reversed(digits)):
        digit = int(char)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_valid_card_number(card_number: str) -> bool:
    """
    Valida o número do cartão: remove espaços e hífens, exige apenas dígitos,
    comprimento entre 13 e 19 e checksum de Luhn. Nunca levanta exceção.
    """
    if not isinstance(card_number, str):
        return False

    cleaned = clean_card_number(card_number)
    if not cleaned.isdigit() or not cleaned.isascii():
        return False
    if not CARD_NUMBER_MIN_LENGTH <= len(cleaned) <= CARD_NUMBER_MAX_LENGTH:
        return False

    return luhn_checksum_ok(cleaned)


_BRAND_PREFIXES = (
    # Elo e Hipercard antes de Visa/Master: alguns BINs se sobrepõem
    ("elo", ("401178", "401179", "431274", "438935", "451416", "457393", "457631", "457632",
             "504175", "506699", "5067", "509", "627780", "636297", "636368", "650", "6516", "6550")),
    ("hipercard", ("606282", "3841")),
    ("amex", ("34", "37")),
    ("diners", ("300", "301", "302", "303", "304", "305", "36", "38")),
    ("master", ("51", "52", "53", "54", "55", "2221", "2222", "2223", "2224", "2225", "2226",
                "2227", "2228", "2229", "223", "224", "225", "226", "227", "228", "229", "23",
                "24", "25", "26", "270", "271", "2720")),
    ("visa", ("4",)),
)


def detect_card_brand(card_number: str, default: str = "visa") -> str:
    """Identifica a bandeira pelo BIN, no formato de `payment_method_id` do Mercado Pago."""
    cleaned = clean_card_number(card_number)
    for brand, prefixes in _BRAND_PREFIXES:
        if cleaned.startswith(prefixes):
            return brand
    return default


# ========== PARCELAMENTO ==========

def compute_installment_options(
    amount: Union[Decimal, float, str],
    interest_free_installments: int = DEFAULT_INTEREST_FREE_INSTALLMENTS,
    monthly_rate: Decimal = DEFAULT_MONTHLY_INTEREST_RATE,
    max_installments: int = MAX_INSTALLMENTS,
) -> List[InstallmentOption]:
    """
    Monta a tabela de parcelas de 1 até `max_installments`.

    Até `interest_free_installments` não há juros. Acima disso o total é
    composto mensalmente pela taxa fixa sobre as parcelas excedentes:
    total = amount * (1 + taxa) ** (n - limite_sem_juros).

    O valor da parcela é arredondado para cima no centavo, de modo que
    parcela * n nunca fica abaixo do valor original.
    """
    amount = to_decimal(amount)
    rate = Decimal(str(monthly_rate))
    options: List[InstallmentOption] = []

    for n in range(1, max_installments + 1):
        if n <= interest_free_installments:
            total = amount
            interest_rate = Decimal("0")
        else:
            total = (amount * (1 + rate) ** (n - interest_free_installments)).quantize(CENT, rounding=ROUND_HALF_UP)
            interest_rate = (rate * 100).quantize(CENT, rounding=ROUND_HALF_UP)

        installment_amount = (total / n).quantize(CENT, rounding=ROUND_CEILING)
        options.append(
            InstallmentOption(
                installments=n,
                installment_amount=installment_amount,
                total_amount=total,
                interest_rate=interest_rate,
            )
        )

    return options

"""
Conversão entre texto monetário digitado e valores exatos (Decimal).

O campo de moeda do formulário funciona como uma "máscara de centavos":
cada dígito digitado empurra os anteriores para a esquerda, então
"10000" vira R$ 100,00.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from babel.numbers import format_currency as babel_format_currency
from django.conf import settings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _currency_code() -> str:
    return getattr(settings, "CURRENCY_CODE", "BRL")


def _currency_locale() -> str:
    return getattr(settings, "CURRENCY_LOCALE", "pt_BR")


def format_amount(value) -> str:
    """Decimal/int/str -> 'R$ 1.234,56' no locale configurado."""
    if value is None or value == "":
        value = ZERO
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        amount = ZERO
    return babel_format_currency(amount, _currency_code(), locale=_currency_locale())


def format_currency(raw_digits) -> str:
    """
    Texto livre -> moeda formatada.
    Todo caractere que não é dígito é descartado e o restante é lido como
    centavos. Entrada vazia ou sem dígitos vira R$ 0,00.
    """
    digits = re.sub(r"\D", "", str(raw_digits or ""))
    cents = int(digits) if digits else 0
    return format_amount(Decimal(cents) / 100)


def parse_currency(display) -> Decimal:
    """
    'R$ 1.234,56' -> Decimal('1234.56').
    Mantém apenas dígitos e o separador decimal (vírgula); pontos de milhar e
    símbolo são descartados.
    """
    text = re.sub(r"[^\d,]", "", str(display or ""))
    if not re.search(r"\d", text):
        return ZERO
    integer_part, sep, fraction = text.rpartition(",")
    if not sep:
        integer_part, fraction = fraction, ""
    integer_part = integer_part.replace(",", "") or "0"
    fraction = (fraction + "00")[:2] if fraction else "00"
    return Decimal(f"{integer_part}.{fraction}").quantize(CENT)


def to_cents(value) -> int:
    return int((Decimal(str(value)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

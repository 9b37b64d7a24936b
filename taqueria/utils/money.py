"""
Money helpers.

Every amount is a ``Decimal`` with exactly two fraction digits. Binary
floats are refused so that repeated sums never drift.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from taqueria.exceptions import ValidationError

CENT = Decimal('0.01')
ZERO = Decimal('0.00')

# Largest amount a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal('99999999.99')

MONEY_PATTERN = re.compile(r"^-?\d+(?:\.\d{1,2})?$")

MoneyLike = Union[Decimal, int, str]


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: MoneyLike, field: str = 'monto') -> Decimal:
    """
    Coerce ``value`` into a two-digit Decimal.

    Accepts Decimal, int and numeric strings. Floats, booleans, None,
    non-finite numbers and amounts beyond MAX_AMOUNT raise ValidationError.
    """
    if value is None or isinstance(value, (bool, float)):
        raise ValidationError(f'Valor inválido para {field}: {value!r}')
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f'Valor inválido para {field}: {value!r}')
    else:
        raise ValidationError(f'Valor inválido para {field}: {value!r}')
    
    if not amount.is_finite():
        raise ValidationError(f'Valor inválido para {field}: {value!r}')
    try:
        amount = round2(amount)
    except InvalidOperation:
        raise ValidationError(f'Valor fuera de rango para {field}: {value!r}')
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f'Valor fuera de rango para {field}: {value!r}')
    return amount


def parse_money(text: str) -> Decimal:
    """
    Parse a user-typed amount such as ``"185"``, ``"185.5"`` or ``"$1,185.50"``.

    Raises:
        ValidationError: if the text is empty or not a plain amount.
    """
    if text is None or not str(text).strip():
        raise ValidationError('Formato inválido. Usá 1234.56')
    
    cleaned = str(text).strip().replace('$', '').replace(',', '').strip()
    if not MONEY_PATTERN.match(cleaned):
        raise ValidationError('Formato inválido. Usá 1234.56')
    return to_money(cleaned)


def money_str(value: Decimal) -> str:
    """Plain two-digit string for JSON payloads (``"1234.50"``)."""
    return f"{round2(value):.2f}"


def format_money(value: Decimal) -> str:
    """
    Display format with currency sign and thousands separator.

    Examples:
        format_money(Decimal('1234.5')) -> "$1,234.50"
        format_money(Decimal('-15')) -> "-$15.00"
    """
    amount = round2(value)
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"

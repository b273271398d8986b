"""
Native currency unit helpers
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from .exceptions import InvalidAmount

DECIMALS = 18
UNIT = 10 ** DECIMALS  # base units per whole native unit


def parse_amount(value: Union[str, int, Decimal]) -> int:
    """Convert a whole-unit decimal ("0.05") into integer base units"""
    if isinstance(value, bool):
        raise InvalidAmount(f"Not an amount: {value!r}")

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmount(f"Not an amount: {value!r}")

    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(f"Not an amount: {value!r}")

    scaled = amount.scaleb(DECIMALS)
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"Amount {value} is finer than one base unit")

    return int(scaled)


def format_amount(amount: int) -> str:
    """Render integer base units as a whole-unit decimal string"""
    whole, frac = divmod(amount, UNIT)
    if frac == 0:
        return str(whole)
    return f"{whole}.{frac:0{DECIMALS}d}".rstrip('0')

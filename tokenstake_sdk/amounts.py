"""
Conversion between display amounts and on-chain base units.
"""
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Union

from .exceptions import InvalidAmount

DEFAULT_DECIMALS = 18

AmountLike = Union[str, int, float, Decimal]


def _to_decimal(display_amount: AmountLike) -> Decimal:
    if isinstance(display_amount, bool):
        raise InvalidAmount("Invalid token amount!")
    if isinstance(display_amount, float):
        # repr keeps what the user typed, Decimal(float) would not
        display_amount = repr(display_amount)
    try:
        value = Decimal(str(display_amount).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount("Invalid token amount!")
    if not value.is_finite():
        raise InvalidAmount("Invalid token amount!")
    return value


def to_base_units(
    display_amount: AmountLike,
    decimals: int = DEFAULT_DECIMALS,
    allow_zero: bool = False
) -> int:
    """
    Scale a human-entered amount to integer base units.

    Digits beyond ``decimals`` are truncated.

    Args:
        display_amount: Amount as typed by the user (e.g. "12.5")
        decimals: Token decimals
        allow_zero: Accept zero, e.g. for pool limits that are unset

    Returns:
        Integer amount in base units

    Raises:
        InvalidAmount: If the input is non-numeric, negative or zero
            (unless ``allow_zero``)
    """
    value = _to_decimal(display_amount)
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidAmount("Invalid token amount!")

    with localcontext() as ctx:
        ctx.prec = 80
        scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
    if scaled <= 0 and not (allow_zero and value == 0):
        raise InvalidAmount("Invalid token amount!")
    return int(scaled)


def to_display_units(base_amount: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Inverse of to_base_units, for presentation only"""
    with localcontext() as ctx:
        ctx.prec = 80
        return Decimal(int(base_amount)) / (Decimal(10) ** decimals)


def format_amount(base_amount: int, symbol: str, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Render a base-unit amount as "1,234.5 SYM".

    Zero renders as "N/A", the way pools without a minimum stake are shown.
    """
    if not base_amount:
        return "N/A"
    value = to_display_units(base_amount, decimals)
    whole = value.to_integral_value(rounding=ROUND_DOWN)
    text = f"{int(whole):,}"
    fraction = value - whole
    if fraction:
        text += format(fraction, "f")[1:]
    return f"{text} {symbol}"

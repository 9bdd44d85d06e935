"""Fixed-point decimal arithmetic — 18 fractional digits, pure functions.

All market quantities (collateral, bids, option balances, prices and fee
rates) are Decimals quantized to ``PRECISION``. Intermediate products and
quotients are computed in a wide private context so that only the final
quantize step rounds.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Context, Decimal

from binary_market.errors import ArithmeticPreconditionError, InsufficientFundsError

DECIMALS = 18
UNIT = Decimal("1")
ZERO = Decimal("0")
PRECISION = Decimal(1).scaleb(-DECIMALS)

_CONTEXT = Context(prec=78)


def to_unit(value: int | str | float | Decimal) -> Decimal:
    """Coerce *value* to an 18-dp Decimal, rounding half-up.

    Floats go through ``str`` so 0.01 stays 0.01.
    """
    if isinstance(value, float):
        value = str(value)
    return _CONTEXT.create_decimal(value).quantize(PRECISION, rounding=ROUND_HALF_UP, context=_CONTEXT)


def _quantize(value: Decimal, rounding: str) -> Decimal:
    return value.quantize(PRECISION, rounding=rounding, context=_CONTEXT)


def multiply_decimal(x: Decimal, y: Decimal) -> Decimal:
    """x * y, truncated to 18 dp."""
    return _quantize(_CONTEXT.multiply(x, y), ROUND_DOWN)


def multiply_decimal_round(x: Decimal, y: Decimal) -> Decimal:
    """x * y, rounded half-up to 18 dp."""
    return _quantize(_CONTEXT.multiply(x, y), ROUND_HALF_UP)


def divide_decimal(x: Decimal, y: Decimal) -> Decimal:
    """x / y, truncated to 18 dp."""
    if y == 0:
        raise ArithmeticPreconditionError("Division by zero")
    return _quantize(_CONTEXT.divide(x, y), ROUND_DOWN)


def divide_decimal_round(x: Decimal, y: Decimal) -> Decimal:
    """x / y, rounded half-up to 18 dp."""
    if y == 0:
        raise ArithmeticPreconditionError("Division by zero")
    return _quantize(_CONTEXT.divide(x, y), ROUND_HALF_UP)


def sub_to_zero(a: Decimal, b: Decimal) -> Decimal:
    """Clamped subtraction: a - b when a >= b, otherwise 0."""
    if a >= b:
        return a - b
    return ZERO


def checked_sub(a: Decimal, b: Decimal, reason: str = "Subtraction overflow") -> Decimal:
    """a - b, raising InsufficientFundsError when the result would be negative."""
    if b > a:
        raise InsufficientFundsError(reason)
    return a - b


def require_non_negative(value: Decimal) -> Decimal:
    """Return *value* unchanged, rejecting negative amounts."""
    if value < 0:
        raise ArithmeticPreconditionError(f"Amount must be non-negative: {value}")
    return value


def to_amount(value: int | str | float | Decimal) -> Decimal:
    """``to_unit`` for caller-supplied quantities: bids, refunds, transfers."""
    return require_non_negative(to_unit(value))

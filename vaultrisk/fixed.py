"""18-decimal fixed-point helpers on plain Python integers.

Ratios, factors and exponents are integers scaled by :data:`WAD`. Products
and quotients are floored. Transcendental functions (``exp`` and fractional
powers) are evaluated with :mod:`decimal` under a private context so
results never depend on binary floating point or on the caller's decimal
context.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_EVEN, Context, Decimal, InvalidOperation
from typing import Union

from .errors import InvalidData

__all__ = [
    "WAD",
    "to_wad",
    "from_wad",
    "to_float",
    "mul_wad",
    "div_wad",
    "units_to_wad",
    "exp_wad",
    "pow_wad",
    "iroot",
]

WAD = 10**18

_CONTEXT = Context(prec=60, rounding=ROUND_HALF_EVEN)
_WAD_DEC = Decimal(WAD)

Number = Union[int, str, Decimal, float]


def to_wad(value: Number) -> int:
    """Convert a human decimal (``"0.25"``, ``1``, ``Decimal("1.86")``) to WAD."""

    if isinstance(value, bool):
        raise InvalidData("boolean is not a numeric value")
    if isinstance(value, int):
        return value * WAD
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidData(f"not a decimal number: {value!r}") from exc
    if not parsed.is_finite():
        raise InvalidData(f"not a finite number: {value!r}")
    return int(_CONTEXT.multiply(parsed, _WAD_DEC).to_integral_value(rounding=ROUND_FLOOR))


def from_wad(value: int) -> Decimal:
    return _CONTEXT.divide(Decimal(value), _WAD_DEC)


def to_float(value: int) -> float:
    """Lossy conversion used only for reports and display."""

    return float(from_wad(value))


def mul_wad(a: int, b: int) -> int:
    return a * b // WAD


def div_wad(a: int, b: int) -> int:
    if b == 0:
        raise InvalidData("division by zero")
    return a * WAD // b


def units_to_wad(amount: int, decimals: int) -> int:
    """Express a native-unit amount as WAD-scaled whole units."""

    if decimals < 0 or decimals > 36:
        raise InvalidData(f"unsupported decimals: {decimals}")
    return amount * WAD // 10**decimals


def _floor(value: Decimal) -> int:
    return int(_CONTEXT.multiply(value, _WAD_DEC).to_integral_value(rounding=ROUND_FLOOR))


def exp_wad(x: int) -> int:
    """``e**x`` for a signed WAD exponent."""

    return _floor(_CONTEXT.exp(from_wad(x)))


def pow_wad(base: int, exponent: int) -> int:
    """``base**exponent`` with both operands in WAD; ``0**0 == 1``."""

    if base < 0:
        raise InvalidData("negative base")
    if exponent == 0 or base == WAD:
        return WAD
    if base == 0:
        if exponent < 0:
            raise InvalidData("zero base with negative exponent")
        return 0
    if exponent % WAD == 0:
        # integral exponents stay exact
        power = exponent // WAD
        if power > 0:
            return base**power // WAD ** (power - 1)
        return WAD ** (1 - power) // base**-power
    return _floor(_CONTEXT.power(from_wad(base), from_wad(exponent)))


def iroot(value: int, n: int) -> int:
    """Floor of the exact ``n``-th root of a non-negative integer."""

    if value < 0:
        raise InvalidData("root of a negative value")
    if n < 1:
        raise InvalidData(f"invalid root degree: {n}")
    if value < 2 or n == 1:
        return value
    x = 1 << -(-value.bit_length() // n)
    while True:
        y = ((n - 1) * x + value // x ** (n - 1)) // n
        if y >= x:
            return x
        x = y

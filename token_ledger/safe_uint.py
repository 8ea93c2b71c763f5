"""
token_ledger.safe_uint
======================

Checked unsigned-integer helpers for ledger arithmetic.

- U256-oriented arithmetic; Python ints never wrap, so every result is
  range-checked explicitly.
- Inputs outside [0, U256_MAX] raise InvalidAmount; results outside it raise
  ArithmeticOverflow.
- bool is rejected even though it is an int subclass.
"""

from __future__ import annotations

from typing import Final

from .errors import ArithmeticOverflow, InvalidAmount

U256_MAX: Final[int] = 2**256 - 1


def is_u256(x: object) -> bool:
    """True iff `x` is a plain int in [0, U256_MAX]."""
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U256_MAX


def require_u256(*xs: object) -> None:
    for x in xs:
        if not is_u256(x):
            raise InvalidAmount(value=x)


def u256_add(x: int, y: int) -> int:
    """Checked add: raise on overflow."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise ArithmeticOverflow(op="add")
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: raise on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        raise ArithmeticOverflow(op="sub")
    return x - y


__all__ = ["U256_MAX", "is_u256", "require_u256", "u256_add", "u256_sub"]

"""
token_ledger.checks
===================

Validation and normalisation shared by the ledger, the snapshot loader and
the CLI. Nothing here touches ledger state.

Conventions
-----------
Accounts are raw, non-empty `bytes`. Any hex or label presentation is a CLI
concern. The single-byte ZERO_ADDRESS is reserved as the "from" side of the
initial supply event and can never hold a balance.

Symbols/Names:
  - Symbols: 1..11 printable ASCII, stored upper-cased (e.g., "TKN").
  - Names:   1..64 printable ASCII, mixed case allowed.
"""

from __future__ import annotations

from typing import Final

from .errors import InvalidAddress, InvalidMetadata
from .safe_uint import require_u256

ZERO_ADDRESS: Final[bytes] = b"\x00"

MAX_NAME_LEN: Final[int] = 64
MAX_SYMBOL_LEN: Final[int] = 11
MAX_DECIMALS: Final[int] = 36


def require_address(addr: object, *, width: int = 0) -> bytes:
    """
    Ensure `addr` is non-empty bytes (of exactly `width` bytes when width > 0)
    and not the reserved zero sentinel. Returns the address as immutable bytes.
    """
    if not isinstance(addr, (bytes, bytearray)) or len(addr) == 0:
        raise InvalidAddress(value=addr)
    b = bytes(addr)
    if b == ZERO_ADDRESS:
        raise InvalidAddress("zero address is reserved", value=b)
    if width and len(b) != width:
        raise InvalidAddress(f"address must be {width} bytes", value=b)
    return b


def require_amount(n: object) -> int:
    """Ensure `n` is an integer amount in [0, 2**256-1]."""
    require_u256(n)
    return int(n)  # type: ignore[call-overload]


def is_printable_ascii(s: str) -> bool:
    return bool(s) and all(32 <= ord(c) <= 126 for c in s)


def require_name(name: object) -> str:
    if not isinstance(name, str) or not is_printable_ascii(name) or len(name) > MAX_NAME_LEN:
        raise InvalidMetadata(f"name must be 1..{MAX_NAME_LEN} printable ASCII chars", field_name="name")
    return name


def require_symbol(sym: object) -> str:
    """Validate a ticker symbol and return it upper-cased."""
    if not isinstance(sym, str) or not is_printable_ascii(sym) or len(sym) > MAX_SYMBOL_LEN:
        raise InvalidMetadata(f"symbol must be 1..{MAX_SYMBOL_LEN} printable ASCII chars", field_name="symbol")
    return sym.upper()


def clamp_decimals(n: int) -> int:
    """Clamp decimals to [0, 36]."""
    if n < 0:
        return 0
    if n > MAX_DECIMALS:
        return MAX_DECIMALS
    return n


__all__ = [
    "ZERO_ADDRESS",
    "MAX_NAME_LEN",
    "MAX_SYMBOL_LEN",
    "MAX_DECIMALS",
    "require_address",
    "require_amount",
    "require_name",
    "require_symbol",
    "is_printable_ascii",
    "clamp_decimals",
]

"""
token_ledger.errors — typed rejections raised by the token ledger.

Every failed precondition surfaces to the caller as one of these exceptions.
None of them is retried automatically and none leaves partial state behind:
the ledger reverts its write journal before the exception propagates.

Hierarchy
---------
LedgerError (base)
 ├─ InvalidAmount          : amount is not an int in [0, 2**256 - 1]
 ├─ InvalidAddress         : account is not usable as a ledger key
 ├─ InvalidMetadata        : display name / symbol rejected
 ├─ InsufficientBalance    : debit exceeds the account balance
 ├─ InsufficientAllowance  : delegated debit exceeds the granted allowance
 ├─ ArithmeticOverflow     : checked U256 add/sub left the valid range
 └─ SnapshotError          : persisted state is malformed or inconsistent

These classes import nothing from the rest of the package so they can be used
from the lowest-level helpers (safe_uint, checks) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'INSUFFICIENT_BALANCE').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _hex(b: Any) -> Any:
    if isinstance(b, (bytes, bytearray)):
        return "0x" + bytes(b).hex()
    return b


class InvalidAmount(LedgerError):
    def __init__(self, message: str = "invalid amount", *, value: Any = None):
        data = None if value is None else {"value": repr(value)}
        super().__init__(message=message, code="INVALID_AMOUNT", data=data)


class InvalidAddress(LedgerError):
    def __init__(self, message: str = "invalid address", *, value: Any = None):
        data = None if value is None else {"value": repr(_hex(value))}
        super().__init__(message=message, code="INVALID_ADDRESS", data=data)


class InvalidMetadata(LedgerError):
    def __init__(self, message: str = "invalid token metadata", *, field_name: Optional[str] = None):
        data = None if field_name is None else {"field": field_name}
        super().__init__(message=message, code="INVALID_METADATA", data=data)


class InsufficientBalance(LedgerError):
    """
    Attempted debit exceeds the available balance.

    Usage:
        raise InsufficientBalance(account=owner, balance=90, required=100)
    """
    def __init__(
        self,
        message: str = "insufficient balance",
        *,
        account: Optional[bytes] = None,
        balance: Optional[int] = None,
        required: Optional[int] = None,
    ):
        d: Dict[str, Any] = {}
        if account is not None:
            d["account"] = _hex(account)
        if balance is not None:
            d["balance"] = int(balance)
        if required is not None:
            d["required"] = int(required)
        super().__init__(message=message, code="INSUFFICIENT_BALANCE", data=d or None)


class InsufficientAllowance(LedgerError):
    """Attempted delegated debit exceeds the allowance granted by the owner."""
    def __init__(
        self,
        message: str = "insufficient allowance",
        *,
        owner: Optional[bytes] = None,
        spender: Optional[bytes] = None,
        allowance: Optional[int] = None,
        required: Optional[int] = None,
    ):
        d: Dict[str, Any] = {}
        if owner is not None:
            d["owner"] = _hex(owner)
        if spender is not None:
            d["spender"] = _hex(spender)
        if allowance is not None:
            d["allowance"] = int(allowance)
        if required is not None:
            d["required"] = int(required)
        super().__init__(message=message, code="INSUFFICIENT_ALLOWANCE", data=d or None)


class ArithmeticOverflow(LedgerError):
    def __init__(self, message: str = "u256 arithmetic out of range", *, op: Optional[str] = None):
        data = None if op is None else {"op": op}
        super().__init__(message=message, code="ARITHMETIC_OVERFLOW", data=data)


class SnapshotError(LedgerError):
    def __init__(self, message: str = "bad ledger snapshot", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="BAD_SNAPSHOT", data=data)


__all__ = [
    "LedgerError",
    "InvalidAmount",
    "InvalidAddress",
    "InvalidMetadata",
    "InsufficientBalance",
    "InsufficientAllowance",
    "ArithmeticOverflow",
    "SnapshotError",
]

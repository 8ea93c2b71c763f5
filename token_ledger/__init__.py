"""
token_ledger — fixed-supply ERC-20 style token ledger.

This module exposes a small, stable façade:

- TokenLedger(initial_supply, owner, *, name=None, symbol=None, decimals=None)
    Create a ledger; the whole supply starts on `owner`.
- The error taxonomy (LedgerError and subclasses).
- Campaign / FuzzConfig / run_campaign for property-based fuzzing.
- dump_state / load_state for JSON persistence.

Example:
    from token_ledger import TokenLedger, InsufficientBalance

    led = TokenLedger(10_000, b"O")
    led.transfer(b"O", b"R", 100)
    assert led.balance_of(b"R") == 100
"""

from __future__ import annotations

from .errors import (ArithmeticOverflow, InsufficientAllowance,
                     InsufficientBalance, InvalidAddress, InvalidAmount,
                     InvalidMetadata, LedgerError, SnapshotError)
from .events import EVT_APPROVAL, EVT_TRANSFER, Event, EventLog
from .fuzz import Campaign, CampaignResult, FuzzConfig, run_campaign
from .ledger import TokenLedger
from .snapshot import dump_state, load_state
from .version import __version__


def version() -> str:
    """Return the token_ledger semantic version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "TokenLedger",
    "LedgerError",
    "InvalidAmount",
    "InvalidAddress",
    "InvalidMetadata",
    "InsufficientBalance",
    "InsufficientAllowance",
    "ArithmeticOverflow",
    "SnapshotError",
    "Event",
    "EventLog",
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "Campaign",
    "CampaignResult",
    "FuzzConfig",
    "run_campaign",
    "dump_state",
    "load_state",
]

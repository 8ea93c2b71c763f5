"""
Named ledger invariants.

Each property is a predicate over a ledger returning True when it holds.
They are checked by the fuzzing campaign after every call and reused by the
test suite.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional

from .ledger import TokenLedger

Property = Callable[[TokenLedger], bool]


def total_supply_conserved(ledger: TokenLedger) -> bool:
    return sum(ledger.balances().values()) == ledger.total_supply()


def balances_non_negative(ledger: TokenLedger) -> bool:
    return all(v >= 0 for v in ledger.balances().values())


def balances_within_supply(ledger: TokenLedger) -> bool:
    supply = ledger.total_supply()
    return all(v <= supply for v in ledger.balances().values())


def allowances_non_negative(ledger: TokenLedger) -> bool:
    return all(v >= 0 for v in ledger.allowances().values())


DEFAULT_PROPERTIES: Dict[str, Property] = {
    "total_supply_conserved": total_supply_conserved,
    "balances_non_negative": balances_non_negative,
    "balances_within_supply": balances_within_supply,
    "allowances_non_negative": allowances_non_negative,
}


def check_all(ledger: TokenLedger, properties: Optional[Mapping[str, Property]] = None) -> List[str]:
    """Return the names of the properties that do not hold, in registry order."""
    props = DEFAULT_PROPERTIES if properties is None else properties
    return [name for name, prop in props.items() if not prop(ledger)]


__all__ = [
    "Property",
    "DEFAULT_PROPERTIES",
    "check_all",
    "total_supply_conserved",
    "balances_non_negative",
    "balances_within_supply",
    "allowances_non_negative",
]

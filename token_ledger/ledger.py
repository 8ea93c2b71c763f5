"""
ERC-20 style fixed-supply token ledger
======================================

In-process ledger holding balances and allowances for a fungible token whose
total supply is fixed at creation. Every mutating call names its `caller`
explicitly; there is no ambient sender.

Highlights
----------
- Explicit `caller` parameters for mutating calls.
- All-or-nothing operations: writes are staged in a `Journal` and reverted
  when any precondition fails.
- One re-entrant lock per ledger: operations are applied atomically and in a
  total order, and notifications are dispatched in that same order.
- Events recorded in `ledger.events`:
    - "Transfer" {"from": bytes, "to": bytes, "value": int}
    - "Approval" {"owner": bytes, "spender": bytes, "value": int}
- U256-checked math via `token_ledger.safe_uint` (no silent wrap).

Public interface
----------------
# metadata / queries (pure)
name, symbol, decimals
total_supply() -> int
balance_of(account: bytes) -> int
allowance(owner: bytes, spender: bytes) -> int

# state-changing (explicit caller)
TokenLedger(initial_supply: int, owner: bytes, *, name=None, symbol=None, decimals=None)
transfer(caller: bytes, to: bytes, amount: int) -> bool
approve(owner: bytes, spender: bytes, amount: int) -> bool
transfer_from(caller: bytes, owner: bytes, to: bytes, amount: int) -> bool
increase_allowance(owner: bytes, spender: bytes, added: int) -> bool
decrease_allowance(owner: bytes, spender: bytes, subtracted: int) -> bool

Notes
-----
- There is no mint or burn: total supply never changes after construction.
- Conservation (sum of balances == total supply) is checked by the test suite
  and by `token_ledger.fuzz`, not asserted here.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .checks import (ZERO_ADDRESS, clamp_decimals, require_address,
                     require_amount, require_name, require_symbol)
from .config import LedgerConfig, load_config
from .errors import (InsufficientAllowance, InsufficientBalance,
                     InvalidMetadata, LedgerError)
from .events import EVT_APPROVAL, EVT_TRANSFER, EventLog
from .journal import Journal, Key
from .safe_uint import u256_add, u256_sub

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Journal key layout
# ------------------------------------------------------------------------------

BAL = "bal"  # (BAL, account)          -> balance
ALLOW = "allow"  # (ALLOW, owner, spender) -> allowance


_Pending = List[Tuple[str, Dict[str, Any]]]


def key_balance(addr: bytes) -> Key:
    return (BAL, addr)


def key_allow(owner: bytes, spender: bytes) -> Key:
    return (ALLOW, owner, spender)


class TokenLedger:
    """
    Fixed-supply fungible token ledger.

    Construction is the one-time initialization: the whole `initial_supply`
    is credited to `owner` and the allowance table starts empty. Metadata
    defaults come from `token_ledger.config`.
    """

    def __init__(
        self,
        initial_supply: int,
        owner: bytes,
        *,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        decimals: Optional[int] = None,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        cfg = config or load_config()
        self._address_width = cfg.address_bytes

        supply = require_amount(initial_supply)
        owner_b = self._addr(owner)

        if decimals is None:
            decimals = cfg.default_decimals
        if not isinstance(decimals, int) or isinstance(decimals, bool):
            raise InvalidMetadata("decimals must be an int", field_name="decimals")

        self._name = require_name(cfg.default_name if name is None else name)
        self._symbol = require_symbol(cfg.default_symbol if symbol is None else symbol)
        self._decimals = clamp_decimals(decimals)
        self._total_supply = supply
        self._owner = owner_b

        self._lock = threading.RLock()
        self._state: Dict[Key, int] = {}
        self._journal = Journal(self._state)
        self._events = EventLog()

        if supply > 0:
            self._state[key_balance(owner_b)] = supply
            self._events.emit(EVT_TRANSFER, {"from": ZERO_ADDRESS, "to": owner_b, "value": supply})

        log.info(
            "ledger initialized: %s (%s) supply=%d owner=0x%s",
            self._name,
            self._symbol,
            supply,
            owner_b.hex(),
        )

    # --------------------------------------------------------------------------
    # Metadata (pure)
    # --------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def decimals(self) -> int:
        return self._decimals

    @property
    def owner(self) -> bytes:
        """Account that received the initial supply."""
        return self._owner

    @property
    def address_width(self) -> int:
        return self._address_width

    @property
    def events(self) -> EventLog:
        return self._events

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: bytes) -> int:
        addr = self._addr(account)
        with self._lock:
            return self._journal.get(key_balance(addr))

    def allowance(self, owner: bytes, spender: bytes) -> int:
        o = self._addr(owner)
        s = self._addr(spender)
        with self._lock:
            return self._journal.get(key_allow(o, s))

    def balances(self) -> Dict[bytes, int]:
        """Copy of every non-zero balance."""
        with self._lock:
            return {k[1]: v for k, v in self._journal.items(BAL)}  # type: ignore[misc]

    def allowances(self) -> Dict[Tuple[bytes, bytes], int]:
        """Copy of every non-zero allowance keyed by (owner, spender)."""
        with self._lock:
            return {(k[1], k[2]): v for k, v in self._journal.items(ALLOW)}  # type: ignore[misc]

    def holders(self) -> List[bytes]:
        """Accounts with a non-zero balance, in byte order."""
        return sorted(self.balances())

    # --------------------------------------------------------------------------
    # Mutations (explicit caller)
    # --------------------------------------------------------------------------

    def transfer(self, caller: bytes, to: bytes, amount: int) -> bool:
        src = self._addr(caller)
        dst = self._addr(to)
        value = require_amount(amount)

        def apply() -> None:
            self._move(src, dst, value)

        self._run("transfer", apply, [(EVT_TRANSFER, {"from": src, "to": dst, "value": value})])
        return True

    def approve(self, owner: bytes, spender: bytes, amount: int) -> bool:
        o = self._addr(owner)
        s = self._addr(spender)
        value = require_amount(amount)

        def apply() -> None:
            self._journal.set(key_allow(o, s), value)

        self._run("approve", apply, [(EVT_APPROVAL, {"owner": o, "spender": s, "value": value})])
        return True

    def transfer_from(self, caller: bytes, owner: bytes, to: bytes, amount: int) -> bool:
        """
        Spender (`caller`) moves `amount` from `owner` to `to` against the
        allowance `owner` granted it. The balance check runs before the
        allowance check.
        """
        spender = self._addr(caller)
        src = self._addr(owner)
        dst = self._addr(to)
        value = require_amount(amount)

        def apply() -> None:
            bal = self._journal.get(key_balance(src))
            if bal < value:
                raise InsufficientBalance(account=src, balance=bal, required=value)
            allow_key = key_allow(src, spender)
            current = self._journal.get(allow_key)
            if current < value:
                raise InsufficientAllowance(owner=src, spender=spender, allowance=current, required=value)
            self._journal.set(allow_key, u256_sub(current, value))
            self._move(src, dst, value)

        self._run("transfer_from", apply, [(EVT_TRANSFER, {"from": src, "to": dst, "value": value})])
        return True

    def increase_allowance(self, owner: bytes, spender: bytes, added: int) -> bool:
        o = self._addr(owner)
        s = self._addr(spender)
        delta = require_amount(added)
        result: List[int] = []

        def apply() -> None:
            allow_key = key_allow(o, s)
            new = u256_add(self._journal.get(allow_key), delta)
            self._journal.set(allow_key, new)
            result.append(new)

        self._run("increase_allowance", apply, lambda: [(EVT_APPROVAL, {"owner": o, "spender": s, "value": result[0]})])
        return True

    def decrease_allowance(self, owner: bytes, spender: bytes, subtracted: int) -> bool:
        o = self._addr(owner)
        s = self._addr(spender)
        delta = require_amount(subtracted)
        result: List[int] = []

        def apply() -> None:
            allow_key = key_allow(o, s)
            current = self._journal.get(allow_key)
            if current < delta:
                raise InsufficientAllowance(owner=o, spender=s, allowance=current, required=delta)
            new = current - delta
            self._journal.set(allow_key, new)
            result.append(new)

        self._run("decrease_allowance", apply, lambda: [(EVT_APPROVAL, {"owner": o, "spender": s, "value": result[0]})])
        return True

    # --------------------------------------------------------------------------
    # Internals
    # --------------------------------------------------------------------------

    def _addr(self, value: Any) -> bytes:
        return require_address(value, width=self._address_width)

    def _move(self, src: bytes, dst: bytes, value: int) -> None:
        """Debit `src` then credit `dst`; the credit re-reads so src == dst nets to zero."""
        src_key = key_balance(src)
        bal = self._journal.get(src_key)
        if bal < value:
            raise InsufficientBalance(account=src, balance=bal, required=value)
        self._journal.set(src_key, u256_sub(bal, value))
        dst_key = key_balance(dst)
        self._journal.set(dst_key, u256_add(self._journal.get(dst_key), value))

    def _run(self, op: str, apply: Callable[[], None], events: Union[_Pending, Callable[[], _Pending]]) -> None:
        """
        Apply `apply` inside one journal transaction under the ledger lock, then
        record the notifications. `events` is a list of (name, args) pairs or a
        callable producing one after `apply` succeeded.
        """
        with self._lock:
            try:
                with self._journal.transaction():
                    apply()
            except LedgerError as exc:
                log.debug("%s rejected: %s", op, exc.code)
                raise
            pending = events() if callable(events) else events
            for name, args in pending:
                self._events.emit(name, args)
            log.debug("%s ok: %s", op, pending)

    # --------------------------------------------------------------------------
    # Restore (used by token_ledger.snapshot)
    # --------------------------------------------------------------------------

    @classmethod
    def _restore(
        cls,
        *,
        name: str,
        symbol: str,
        decimals: int,
        owner: bytes,
        total_supply: int,
        balances: Mapping[bytes, int],
        allowances: Mapping[Tuple[bytes, bytes], int],
        config: Optional[LedgerConfig] = None,
    ) -> "TokenLedger":
        """
        Rebuild a ledger from already-validated persisted state. Creates the
        instance with zero supply so no initial event is recorded, then installs
        the tables directly.
        """
        led = cls(0, owner, name=name, symbol=symbol, decimals=decimals, config=config)
        led._total_supply = require_amount(total_supply)
        for addr, v in balances.items():
            if v:
                led._state[key_balance(led._addr(addr))] = require_amount(v)
        for (o, s), v in allowances.items():
            if v:
                led._state[key_allow(led._addr(o), led._addr(s))] = require_amount(v)
        return led


__all__ = ["TokenLedger", "key_balance", "key_allow"]

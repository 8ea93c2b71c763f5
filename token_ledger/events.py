"""
token_ledger.events — Transfer / Approval notifications recorded by a ledger.

Events carry a name and a small args mapping whose values are bytes
(accounts) or non-negative ints up to 256 bits (amounts). Recorded args are
read-only mappings, so subscribers cannot rewrite the log they observe.

Payloads emitted by TokenLedger:
    "Transfer" {"from": bytes, "to": bytes, "value": int}
    "Approval" {"owner": bytes, "spender": bytes, "value": int}

The log can also be rendered as canonical receipt events (`for_receipt`)
and round-tripped through JSON-friendly dicts (`to_dicts` / `load_dicts`).
"""

from __future__ import annotations

import logging
import re
import threading
from types import MappingProxyType
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

EVT_TRANSFER = "Transfer"
EVT_APPROVAL = "Approval"

MAX_EVENT_NAME_LEN = 64
MAX_KEY_LEN = 64
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # bytes | int, checked at emit time

Subscriber = Callable[["Event"], None]


@dataclass(frozen=True)
class Event:
    """A notification recorded by the ledger. `seq` is its position in the log."""

    seq: int
    name: str
    args: Mapping[str, ArgValue]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form: bytes become 0x-hex strings."""
        return {
            "seq": self.seq,
            "name": self.name,
            "args": {k: ("0x" + v.hex() if isinstance(v, bytes) else v) for k, v in self.args.items()},
        }


@dataclass
class CanonicalEvent:
    """
    Canonical event representation for receipts:

        name: "0x" + hex-encoded ASCII event name
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer
    """

    name: str
    args: Sequence[Mapping[str, Any]]


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name or len(name) > MAX_EVENT_NAME_LEN:
        raise ValueError(f"invalid event name: {name!r}")
    return name


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or len(key) > MAX_KEY_LEN or not _KEY_RE.match(key):
        raise ValueError(f"invalid event key: {key!r}")
    return key


def _check_value(value: Any) -> ArgValue:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    # bool is a subclass of int, so check it before int.
    if isinstance(value, bool):
        raise ValueError("boolean event args are not supported")
    if isinstance(value, int):
        if value < 0 or value.bit_length() > MAX_INT_BITS:
            raise ValueError("event int arg out of range")
        return int(value)
    raise ValueError(f"unsupported event arg type: {type(value).__name__}")


class EventLog:
    """
    Ordered, append-only record of the notifications a ledger has emitted,
    with optional subscribers.

    Subscribers run synchronously in emit order. A subscriber that raises is
    logged and skipped; it never affects the ledger or the other subscribers.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subs: List[Tuple[Optional[str], Subscriber]] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self.events)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def by_name(self, name: str) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def emit(self, name: str, args: Mapping[str, Any]) -> Event:
        checked = {_check_key(k): _check_value(v) for k, v in args.items()}
        with self._lock:
            ev = Event(seq=len(self._events), name=_check_name(name), args=MappingProxyType(checked))
            self._events.append(ev)
            subs = list(self._subs)
        for wanted, cb in subs:
            if wanted is not None and wanted != ev.name:
                continue
            try:
                cb(ev)
            except Exception:
                log.exception("event subscriber %r failed on %s #%d", cb, ev.name, ev.seq)
        return ev

    def subscribe(self, callback: Subscriber, name: Optional[str] = None) -> Callable[[], None]:
        """
        Register `callback` for every event (or only events called `name`).
        Returns a function that removes the subscription.
        """
        entry = (name, callback)
        with self._lock:
            self._subs.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._subs.remove(entry)
                except ValueError:
                    pass

        return _unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    # --- encodings ------------------------------------------------------------

    def for_receipt(self) -> List[CanonicalEvent]:
        """Convert the log into canonical receipt events."""
        out: List[CanonicalEvent] = []
        for ev in self._events:
            enc_args: List[Dict[str, Any]] = []
            for k, v in ev.args.items():
                if isinstance(v, bytes):
                    enc_args.append({"k": k, "t": "b", "v": "0x" + v.hex()})
                else:
                    enc_args.append({"k": k, "t": "i", "v": int(v)})
            out.append(CanonicalEvent(name="0x" + ev.name.encode("ascii").hex(), args=tuple(enc_args)))
        return out

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def load_dicts(self, items: Iterable[Mapping[str, Any]]) -> None:
        """
        Append events previously produced by `to_dicts()`. 0x-prefixed string
        args are decoded back to bytes. Subscribers are not notified.
        """
        with self._lock:
            for item in items:
                args: Dict[str, ArgValue] = {}
                for k, v in dict(item["args"]).items():
                    if isinstance(v, str) and v.startswith("0x"):
                        v = bytes.fromhex(v[2:])
                    args[_check_key(k)] = _check_value(v)
                ev = Event(seq=len(self._events), name=_check_name(item["name"]), args=MappingProxyType(args))
                self._events.append(ev)


__all__ = [
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "Event",
    "CanonicalEvent",
    "EventLog",
    "Subscriber",
]

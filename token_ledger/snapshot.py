"""
token_ledger.snapshot — JSON persistence for a ledger.

Layout (version 1):

    {
      "version": 1,
      "name": "Token", "symbol": "TKN", "decimals": 18,
      "owner": "0x4f",
      "total_supply": 10000,
      "balances": {"0x4f": 9900, "0x52": 100},
      "allowances": [{"owner": "0x4f", "spender": "0x53", "value": 50}],
      "events": [{"seq": 0, "name": "Transfer", "args": {...}}, ...]
    }

Accounts are 0x-hex. Amounts are plain JSON integers (Python's json keeps
arbitrary precision). Zero balances and allowances are not persisted.

Loading re-validates every account and amount and re-checks that the
balances sum to the total supply; any problem raises SnapshotError.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import LedgerConfig
from .errors import LedgerError, SnapshotError
from .ledger import TokenLedger

log = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def _unhex(s: Any, *, where: str) -> bytes:
    if not isinstance(s, str) or not s.startswith("0x"):
        raise SnapshotError("account must be a 0x-hex string", data={"where": where, "value": repr(s)})
    try:
        return bytes.fromhex(s[2:])
    except ValueError as exc:
        raise SnapshotError("account is not valid hex", data={"where": where, "value": s}) from exc


def dump_state(ledger: TokenLedger, *, include_events: bool = True) -> Dict[str, Any]:
    """Serialize `ledger` to a JSON-safe dict."""
    balances = ledger.balances()
    allowances = ledger.allowances()
    out: Dict[str, Any] = {
        "version": FORMAT_VERSION,
        "name": ledger.name,
        "symbol": ledger.symbol,
        "decimals": ledger.decimals,
        "owner": _hex(ledger.owner),
        "total_supply": ledger.total_supply(),
        "balances": {_hex(a): v for a, v in sorted(balances.items())},
        "allowances": [
            {"owner": _hex(o), "spender": _hex(s), "value": v}
            for (o, s), v in sorted(allowances.items())
        ],
    }
    if include_events:
        out["events"] = ledger.events.to_dicts()
    return out


def load_state(data: Mapping[str, Any], *, config: Optional[LedgerConfig] = None) -> TokenLedger:
    """Rebuild a ledger from `dump_state()` output."""
    if not isinstance(data, Mapping):
        raise SnapshotError("snapshot must be a JSON object")
    version = data.get("version")
    if version != FORMAT_VERSION:
        raise SnapshotError("unsupported snapshot version", data={"version": version})

    try:
        total = data["total_supply"]
        owner = _unhex(data["owner"], where="owner")
        raw_balances = data.get("balances", {})
        raw_allowances = data.get("allowances", [])
        balances: Dict[bytes, int] = {
            _unhex(a, where="balances"): v for a, v in dict(raw_balances).items()
        }
        allowances: Dict[Tuple[bytes, bytes], int] = {}
        for entry in raw_allowances:
            key = (_unhex(entry["owner"], where="allowances"), _unhex(entry["spender"], where="allowances"))
            allowances[key] = entry["value"]
        name = data["name"]
        symbol = data["symbol"]
        decimals = data["decimals"]
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError("malformed snapshot", data={"error": str(exc)}) from exc

    if not isinstance(total, int) or isinstance(total, bool):
        raise SnapshotError("total_supply must be an integer")
    held = 0
    for v in balances.values():
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise SnapshotError("balances must be non-negative integers")
        held += v
    if held != total:
        raise SnapshotError(
            "balances do not sum to total supply",
            data={"total_supply": total, "sum_balances": held},
        )

    try:
        ledger = TokenLedger._restore(
            name=name,
            symbol=symbol,
            decimals=decimals,
            owner=owner,
            total_supply=total,
            balances=balances,
            allowances=allowances,
            config=config,
        )
        ledger.events.load_dicts(data.get("events", []))
    except SnapshotError:
        raise
    except LedgerError as exc:
        raise SnapshotError("snapshot contains invalid values", data=exc.to_dict()) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError("malformed snapshot events", data={"error": str(exc)}) from exc

    log.debug("loaded ledger snapshot: %d holders, %d allowances", len(balances), len(allowances))
    return ledger


def save(path: Path, ledger: TokenLedger) -> None:
    """Write `ledger` to `path` atomically (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(dump_state(ledger), indent=2), encoding="utf-8")
    os.replace(tmp, path)
    log.debug("saved ledger snapshot to %s", path)


def load(path: Path, *, config: Optional[LedgerConfig] = None) -> TokenLedger:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotError("state file is not valid JSON", data={"path": str(path)}) from exc
    except OSError as exc:
        raise SnapshotError("state file cannot be read", data={"path": str(path), "error": str(exc)}) from exc
    return load_state(data, config=config)


__all__ = ["FORMAT_VERSION", "dump_state", "load_state", "save", "load"]

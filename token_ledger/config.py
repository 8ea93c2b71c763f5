"""
token_ledger.config — token metadata defaults, account width, state-file
location, logging level and fuzzing knobs.

This module has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (TOKEN_LEDGER_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - TOKEN_LEDGER_NAME            (str)    default: "Token"
  - TOKEN_LEDGER_SYMBOL          (str)    default: "TKN"
  - TOKEN_LEDGER_DECIMALS        (int)    default: 18        (clamped to 0..36)
  - TOKEN_LEDGER_ADDRESS_BYTES   (int)    default: 0         (0 = any width)
  - TOKEN_LEDGER_STATE           (path)   default: ~/.token-ledger/state.json
  - TOKEN_LEDGER_LOG_LEVEL       (str)    default: WARNING
  - TOKEN_LEDGER_FUZZ_SEQUENCES  (int)    default: 50
  - TOKEN_LEDGER_FUZZ_FLOWS      (int)    default: 100
  - TOKEN_LEDGER_FUZZ_SEED       (int)    default: unset (fresh seed per run)

Usage:
    from token_ledger.config import load_config
    CFG = load_config()
    if CFG.address_bytes: ...

`load_config()` is cached; tests that tweak the environment call
`load_config.cache_clear()` afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_STATE_PATH = Path.home() / ".token-ledger" / "state.json"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# ----------------------------- helpers ---------------------------------------


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_opt_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw, 0)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if not raw:
        return default
    return Path(raw).expanduser()


def _env_level(name: str, default: str) -> str:
    val = _env_str(name, default).upper()
    return val if val in _LOG_LEVELS else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    # Token metadata defaults
    default_name: str
    default_symbol: str
    default_decimals: int

    # Required account width in bytes (0 accepts any non-empty width)
    address_bytes: int

    # CLI state file
    state_path: Path

    log_level: str

    # Fuzzing campaign defaults
    fuzz_sequences: int
    fuzz_flows: int
    fuzz_seed: Optional[int]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "default_name": self.default_name,
            "default_symbol": self.default_symbol,
            "default_decimals": self.default_decimals,
            "address_bytes": self.address_bytes,
            "state_path": str(self.state_path),
            "log_level": self.log_level,
            "fuzz_sequences": self.fuzz_sequences,
            "fuzz_flows": self.fuzz_flows,
            "fuzz_seed": self.fuzz_seed,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + safe defaults.
    """
    return LedgerConfig(
        default_name=_env_str("TOKEN_LEDGER_NAME", "Token"),
        default_symbol=_env_str("TOKEN_LEDGER_SYMBOL", "TKN"),
        default_decimals=_env_int("TOKEN_LEDGER_DECIMALS", 18, min_v=0, max_v=36),
        address_bytes=_env_int("TOKEN_LEDGER_ADDRESS_BYTES", 0, min_v=0, max_v=64),
        state_path=_env_path("TOKEN_LEDGER_STATE", DEFAULT_STATE_PATH),
        log_level=_env_level("TOKEN_LEDGER_LOG_LEVEL", "WARNING"),
        fuzz_sequences=_env_int("TOKEN_LEDGER_FUZZ_SEQUENCES", 50, min_v=1, max_v=100_000),
        fuzz_flows=_env_int("TOKEN_LEDGER_FUZZ_FLOWS", 100, min_v=1, max_v=100_000),
        fuzz_seed=_env_opt_int("TOKEN_LEDGER_FUZZ_SEED"),
    )


__all__ = ["LedgerConfig", "load_config", "DEFAULT_STATE_PATH"]

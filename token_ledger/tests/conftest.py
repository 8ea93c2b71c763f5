# -*- coding: utf-8 -*-
"""
Pytest fixtures for the token ledger tests.

- A clean configuration for every test: TOKEN_LEDGER_* variables are removed
  and the cached config is rebuilt, so a developer's shell cannot leak into
  assertions on defaults.
- Stable account labels used across the suite (O, R, S, R2 ... as bytes).
- A ledger holding 10,000 units on O.
"""
from __future__ import annotations

import os
from typing import Dict

import pytest

from token_ledger.config import load_config
from token_ledger.ledger import TokenLedger

SUPPLY = 10_000


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in list(os.environ):
        if name.startswith("TOKEN_LEDGER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TOKEN_LEDGER_STATE", str(tmp_path / "default-state.json"))
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def accounts() -> Dict[str, bytes]:
    return {label: label.encode("ascii") for label in ("O", "R", "S", "R2", "A", "B", "C")}


@pytest.fixture
def ledger(accounts: Dict[str, bytes]) -> TokenLedger:
    return TokenLedger(SUPPLY, accounts["O"])

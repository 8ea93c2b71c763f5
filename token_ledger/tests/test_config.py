from __future__ import annotations

from pathlib import Path

import pytest

from token_ledger.config import load_config


def _reload():
    load_config.cache_clear()
    return load_config()


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("TOKEN_LEDGER_STATE", raising=False)
    cfg = _reload()
    assert cfg.default_name == "Token"
    assert cfg.default_symbol == "TKN"
    assert cfg.default_decimals == 18
    assert cfg.address_bytes == 0
    assert cfg.state_path == Path.home() / ".token-ledger" / "state.json"
    assert cfg.log_level == "WARNING"
    assert (cfg.fuzz_sequences, cfg.fuzz_flows, cfg.fuzz_seed) == (50, 100, None)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setenv("TOKEN_LEDGER_NAME", "  Demo  ")
    monkeypatch.setenv("TOKEN_LEDGER_SYMBOL", "DMO")
    monkeypatch.setenv("TOKEN_LEDGER_DECIMALS", "6")
    monkeypatch.setenv("TOKEN_LEDGER_ADDRESS_BYTES", "0x14")
    monkeypatch.setenv("TOKEN_LEDGER_STATE", str(tmp_path / "s.json"))
    monkeypatch.setenv("TOKEN_LEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("TOKEN_LEDGER_FUZZ_SEED", "42")
    cfg = _reload()
    assert cfg.default_name == "Demo"
    assert cfg.default_symbol == "DMO"
    assert cfg.default_decimals == 6
    assert cfg.address_bytes == 20
    assert cfg.state_path == tmp_path / "s.json"
    assert cfg.log_level == "DEBUG"
    assert cfg.fuzz_seed == 42
    assert cfg.as_dict()["state_path"] == str(tmp_path / "s.json")


def test_bad_values_fall_back_or_clamp(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TOKEN_LEDGER_DECIMALS", "99")
    monkeypatch.setenv("TOKEN_LEDGER_ADDRESS_BYTES", "lots")
    monkeypatch.setenv("TOKEN_LEDGER_LOG_LEVEL", "chatty")
    monkeypatch.setenv("TOKEN_LEDGER_FUZZ_FLOWS", "0")
    monkeypatch.setenv("TOKEN_LEDGER_FUZZ_SEED", "nope")
    cfg = _reload()
    assert cfg.default_decimals == 36
    assert cfg.address_bytes == 0
    assert cfg.log_level == "WARNING"
    assert cfg.fuzz_flows == 1
    assert cfg.fuzz_seed is None


def test_cached_until_cleared(monkeypatch: pytest.MonkeyPatch):
    first = _reload()
    monkeypatch.setenv("TOKEN_LEDGER_SYMBOL", "NEW")
    assert load_config() is first
    assert _reload().default_symbol == "NEW"


def test_ledger_uses_config_defaults(monkeypatch: pytest.MonkeyPatch):
    from token_ledger.ledger import TokenLedger

    monkeypatch.setenv("TOKEN_LEDGER_SYMBOL", "cfg")
    monkeypatch.setenv("TOKEN_LEDGER_DECIMALS", "2")
    load_config.cache_clear()
    led = TokenLedger(1, b"O")
    assert (led.symbol, led.decimals) == ("CFG", 2)

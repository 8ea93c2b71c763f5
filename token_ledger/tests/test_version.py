from __future__ import annotations

import importlib
from importlib import metadata as importlib_metadata

import pytest

import token_ledger

# The package's version() function shadows the submodule attribute.
version_mod = importlib.import_module("token_ledger.version")


def test_installed_distribution_version(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(importlib_metadata, "version", lambda name: "9.9.9")
    assert version_mod.compute_version() == "9.9.9"


def test_falls_back_to_base_version(monkeypatch: pytest.MonkeyPatch):
    def missing(name: str) -> str:
        raise importlib_metadata.PackageNotFoundError(name)

    monkeypatch.setattr(importlib_metadata, "version", missing)
    assert version_mod.compute_version() == version_mod.BASE_VERSION


def test_package_facade():
    assert token_ledger.version() == token_ledger.__version__ == version_mod.__version__

"""
token_ledger.cli
================

Typer application behind the `token-ledger` console script.

    python -m token_ledger.cli --help
"""

from .main import app

__all__ = ["app"]

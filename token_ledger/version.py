"""token_ledger.version — installed distribution version with a source-tree fallback.

This module exposes:
- __version__: the 'token-ledger' distribution version, or BASE_VERSION when
  the package runs from an uninstalled checkout
- compute_version(): the lookup behind __version__
"""

from __future__ import annotations

from importlib import metadata as importlib_metadata

# Keep in step with pyproject.toml.
BASE_VERSION = "0.1.0"

DIST_NAME = "token-ledger"


def compute_version(dist_name: str = DIST_NAME) -> str:
    try:
        return importlib_metadata.version(dist_name)
    except importlib_metadata.PackageNotFoundError:
        return BASE_VERSION


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]

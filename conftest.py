import os

import pytest


def pytest_configure(config):
    # Register markers used across the repo without requiring external plugins.
    config.addinivalue_line(
        "markers", "slow: long-running thread or fuzzing test (skipped with TOKEN_LEDGER_SKIP_SLOW=1)"
    )


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config, items):
    """
    Skip slow suites when running in lightweight environments.

    The thread-hammering and fuzzing tests replay thousands of ledger calls.
    Setting TOKEN_LEDGER_SKIP_SLOW=1 marks them as skipped so the fast unit
    tests still run quickly.
    """
    if os.getenv("TOKEN_LEDGER_SKIP_SLOW", "").lower() not in ("1", "true", "yes"):
        return
    skip = pytest.mark.skip(reason="Slow suite skipped (TOKEN_LEDGER_SKIP_SLOW)")
    for item in items:
        if item.get_closest_marker("slow") is not None:
            item.add_marker(skip)

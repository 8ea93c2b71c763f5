"""
token_ledger.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a flat mapping of
tuple keys to non-negative ints (balances and allowances). Nested checkpoints
are a stack of overlays. Writes go to the top overlay; reads consult overlays
from top → base. `commit()` merges the top overlay into the next layer (or the
base mapping if it is the last layer). `revert()` discards the top overlay.

Intended usage
--------------
    j = Journal()
    with j.transaction():
        j.set((b"bal", addr), j.get((b"bal", addr)) + 5)
        ...                                 # raising here reverts everything

Notes
-----
- The journal does not enforce economic rules; the ledger validates before
  writing.
- A value of 0 is the same as absence; zero entries are dropped when an
  overlay reaches the base mapping.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, MutableMapping, Optional, Tuple

Key = Tuple[Hashable, ...]


@dataclass
class _Overlay:
    """A single journal layer: staged writes since the matching begin()."""

    writes: Dict[Key, int] = field(default_factory=dict)


class Journal:
    """
    A write journal with nested checkpoints.

    Parameters
    ----------
    base : MutableMapping[Key, int] | None
        The committed state. A fresh dict is used when omitted.
    """

    def __init__(self, base: Optional[MutableMapping[Key, int]] = None) -> None:
        self._base: MutableMapping[Key, int] = {} if base is None else base
        # Keep a single empty root overlay for convenience.
        self._layers: List[_Overlay] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the base mapping when
        only the root overlay remains.
        """
        if len(self._layers) > 1:
            top = self._layers.pop()
            self._layers[-1].writes.update(top.writes)
            return
        root = self._layers[0]
        for k, v in root.writes.items():
            if v:
                self._base[k] = v
            else:
                self._base.pop(k, None)
        self._layers[0] = _Overlay()

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    @contextmanager
    def transaction(self) -> Iterator["Journal"]:
        """
        All-or-nothing scope. On exception every write made inside the block is
        discarded and the exception propagates; on success the writes are merged
        into the enclosing transaction, or into the base when outermost.
        """
        outermost = len(self._layers) == 1
        marker = self.begin()
        try:
            yield self
        except BaseException:
            self.revert_to(marker - 1)
            raise
        self.commit()
        if outermost:
            self.commit()

    # --------------------------------------------------------------------- #
    # Reads & writes
    # --------------------------------------------------------------------- #

    def get(self, key: Key) -> int:
        for layer in reversed(self._layers):
            if key in layer.writes:
                return layer.writes[key]
        return self._base.get(key, 0)

    def set(self, key: Key, value: int) -> None:
        self._layers[-1].writes[key] = int(value)

    def items(self, prefix: Optional[Hashable] = None) -> Iterator[Tuple[Key, int]]:
        """
        Iterate visible non-zero (key, value) pairs with overlay precedence,
        optionally restricted to keys whose first element equals `prefix`.
        """
        visible: Dict[Key, int] = dict(self._base)
        for layer in self._layers:
            visible.update(layer.writes)
        for k, v in visible.items():
            if v and (prefix is None or k[0] == prefix):
                yield k, v


__all__ = ["Journal", "Key"]

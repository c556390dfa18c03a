"""Page replacement policies — choosing a victim frame.

When a page fault happens and no frame is free, one resident page must
go.  Which one is the **page replacement problem**.  Two classic answers
ship here:

- **FIFO** — evict the page that was loaded earliest.  Later hits do not
  matter; a heavily used page is thrown out just as readily as an idle
  one.  Simple, but subject to Belady's anomaly.
- **LRU** — evict the page whose last access is oldest.  Approximates
  the optimal algorithm by assuming the recent past predicts the near
  future.

Both are pure functions of the frame pool's metadata: they read the
``loaded_at`` / ``last_access`` timestamps and return an index, never
mutating anything.  Ties go to the lowest frame index so that every run
is deterministic.

Design: Strategy pattern
    The address translator is the *context*; ReplacementPolicy is the
    *strategy*.  Swapping FIFO for LRU never touches the translator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from py_vmsim.config import POLICY_NAMES, ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from py_vmsim.memory.frames import Frame


class ReplacementPolicy(Protocol):
    """Interface for page replacement algorithms."""

    name: str

    def select_victim(self, frames: Sequence[Frame]) -> int:
        """Choose which occupied frame to evict.

        Returns:
            The index of the victim frame.

        Raises:
            IndexError: If no frame is occupied.

        """
        ...  # pragma: no cover


def _oldest(frames: Sequence[Frame], key: Callable[[Frame], int]) -> int:
    """Return the index of the occupied frame with the smallest *key*.

    Ties are broken by the lower frame index.
    """
    occupied = [f for f in frames if not f.is_free]
    if not occupied:
        msg = "No pages to evict"
        raise IndexError(msg)
    victim = min(occupied, key=lambda f: (key(f), f.index))
    return victim.index


class FIFOPolicy:
    """First In, First Out — evict the page loaded longest ago."""

    name = "fifo"

    def select_victim(self, frames: Sequence[Frame]) -> int:
        """Return the frame with the smallest load tick."""
        return _oldest(frames, lambda f: f.loaded_at)


class LRUPolicy:
    """Least Recently Used — evict the page accessed longest ago."""

    name = "lru"

    def select_victim(self, frames: Sequence[Frame]) -> int:
        """Return the frame with the smallest last-access tick."""
        return _oldest(frames, lambda f: f.last_access)


_POLICIES: dict[str, type[FIFOPolicy] | type[LRUPolicy]] = {
    FIFOPolicy.name: FIFOPolicy,
    LRUPolicy.name: LRUPolicy,
}


def policy_for(name: str) -> ReplacementPolicy:
    """Return a fresh replacement policy by name.

    Raises:
        ConfigurationError: If *name* is not a known policy.

    """
    factory = _POLICIES.get(name.lower())
    if factory is None:
        msg = f"Unknown replacement policy {name!r} (expected one of {POLICY_NAMES})"
        raise ConfigurationError(msg)
    return factory()

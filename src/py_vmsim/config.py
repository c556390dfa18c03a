"""Simulation configuration — the fixed constants of one run.

Every run of the simulator is parameterised by a handful of integers:
how many physical frames exist, how large a page is, how long a time
slice lasts, and how many ticks a process lingers in the NEW and EXIT
states.  None of them may change once the first tick has run, so the
configuration is a **frozen dataclass** validated at construction.

The defaults reproduce the classroom setup the simulator was built
for: 7 frames of 3000 bytes, a quantum of 3 ticks, and LRU replacement.

Dwell times:
    The bootstrap process waits one tick longer in NEW than processes
    spawned later (``first_new_dwell`` vs ``new_dwell``) so that its
    first instruction lines up with the start of the printed trace.
    ``exit_dwell`` counts the termination tick itself as the first
    tick spent in EXIT.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

POLICY_NAMES = ("fifo", "lru")

_POSITIVE_FIELDS = (
    "num_frames",
    "page_size",
    "quantum",
    "first_new_dwell",
    "new_dwell",
    "exit_dwell",
    "max_ticks",
    "max_processes",
)


class ConfigurationError(ValueError):
    """Raise when a simulation parameter is invalid."""


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable parameters for one simulation run.

    Attributes:
        num_frames: Size of the physical frame pool.
        page_size: Logical bytes per page (shared by all processes).
        quantum: Round-robin time slice, in ticks.
        first_new_dwell: Ticks the bootstrap process spends in NEW.
        new_dwell: Ticks a spawned process spends in NEW.
        exit_dwell: Ticks a process spends in EXIT before destruction.
        max_ticks: Safety ceiling on the number of ticks.
        max_processes: Size of the process table; pids are never reused.
        policy: Page replacement policy name (``"fifo"`` or ``"lru"``).

    """

    num_frames: int = 7
    page_size: int = 3000
    quantum: int = 3
    first_new_dwell: int = 3
    new_dwell: int = 2
    exit_dwell: int = 4
    max_ticks: int = 100
    max_processes: int = 20
    policy: str = "lru"

    def __post_init__(self) -> None:
        """Reject non-positive sizes and unknown policy names."""
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{name} must be an integer, got {value!r}"
                raise ConfigurationError(msg)
            if value < 1:
                msg = f"{name} must be at least 1, got {value}"
                raise ConfigurationError(msg)
        if self.policy not in POLICY_NAMES:
            msg = f"Unknown replacement policy {self.policy!r} (expected one of {POLICY_NAMES})"
            raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain dict, e.g. a decoded JSON body.

        Missing keys keep their defaults.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.

        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown configuration keys: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return cls(**data)

    def replace(self, **changes: Any) -> SimulationConfig:
        """Return a validated copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a JSON-ready dict."""
        return dataclasses.asdict(self)

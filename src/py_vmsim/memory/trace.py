"""Trace replay — paging without a scheduler.

Before processes run real programs, the paging half of the simulator
can be exercised on its own by replaying a **reference string**: an
ordered list of ``(pid, address)`` pairs, one memory access per tick.
This is how page replacement is usually taught on paper — "given 3
frames and this reference string, which pages fault under FIFO?"

The replayer owns a fresh frame pool and translator for each replay.
An address outside a process's size is a segmentation fault: the
process dies on the spot, its frames return to the pool, and any
later reference it makes is skipped.

A ``(0, _)`` pair ends the trace early, mirroring the zero-terminated
tables that traces are usually shipped in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from py_vmsim.config import ConfigurationError
from py_vmsim.logging import LogLevel
from py_vmsim.memory.frames import FramePool
from py_vmsim.memory.replacement import policy_for
from py_vmsim.memory.translator import AddressTranslator

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from py_vmsim.logging import Logger
    from py_vmsim.memory.replacement import ReplacementPolicy


class AccessOutcome(StrEnum):
    """What happened to one reference in the trace."""

    HIT = "hit"
    FAULT = "fault"
    EVICT = "evict"
    SEGV = "segv"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TraceStep:
    """The result of replaying one reference.

    Attributes:
        tick: The tick at which the access happened (1-based).
        pid: The referencing process.
        address: The logical address referenced.
        outcome: Hit, fault, fault-with-eviction, segfault, or skipped.
        page: The page referenced (None for segfaults and skips).
        frame: The frame now holding the page (None if not resident).
        evicted: ``(pid, page)`` thrown out to make room, if any.
        resident: Sorted frame indices per live pid after the access.

    """

    tick: int
    pid: int
    address: int
    outcome: AccessOutcome
    page: int | None = None
    frame: int | None = None
    evicted: tuple[int, int] | None = None
    resident: dict[int, tuple[int, ...]] = field(default_factory=dict)


class TraceReplayer:
    """Replay ``(pid, address)`` reference strings against a frame pool."""

    def __init__(
        self,
        memory_sizes: Sequence[int],
        *,
        num_frames: int,
        page_size: int,
        policy: ReplacementPolicy | str,
        logger: Logger | None = None,
    ) -> None:
        """Create a replayer for ``len(memory_sizes)`` processes.

        Args:
            memory_sizes: Address-space size of each process; process
                ``i + 1`` gets ``memory_sizes[i]``.
            num_frames: Size of the frame pool.
            page_size: Logical bytes per page.
            policy: Replacement policy, or its name.
            logger: Optional event log.

        Raises:
            ConfigurationError: If there are no processes, a size is
                negative, or the pool / page size is not positive.

        """
        if not memory_sizes:
            msg = "Trace replay needs at least one process"
            raise ConfigurationError(msg)
        if any(size < 0 for size in memory_sizes):
            msg = f"Memory sizes must be non-negative, got {list(memory_sizes)}"
            raise ConfigurationError(msg)
        if num_frames < 1 or page_size < 1:
            msg = "num_frames and page_size must be at least 1"
            raise ConfigurationError(msg)
        self._memory_sizes = tuple(memory_sizes)
        self._num_frames = num_frames
        self._page_size = page_size
        self._policy = policy_for(policy) if isinstance(policy, str) else policy
        self._logger = logger

    @property
    def policy(self) -> ReplacementPolicy:
        """Return the replacement policy."""
        return self._policy

    def replay(self, trace: Iterable[tuple[int, int]]) -> list[TraceStep]:
        """Replay *trace* on a fresh frame pool.

        Returns:
            One ``TraceStep`` per reference consumed.

        """
        translator = AddressTranslator(
            FramePool(num_frames=self._num_frames),
            self._policy,
            page_size=self._page_size,
            logger=self._logger,
        )
        live: set[int] = set()
        for pid, size in enumerate(self._memory_sizes, start=1):
            translator.register(pid, memory_size=size)
            live.add(pid)

        steps: list[TraceStep] = []
        for tick, (pid, address) in enumerate(trace, start=1):
            if pid == 0:
                break
            steps.append(self._step(translator, live, tick=tick, pid=pid, address=address))
        return steps

    def _step(
        self,
        translator: AddressTranslator,
        live: set[int],
        *,
        tick: int,
        pid: int,
        address: int,
    ) -> TraceStep:
        """Replay a single reference."""
        if pid not in live:
            self._log(LogLevel.DEBUG, f"skipped reference by PID {pid}", tick=tick)
            return TraceStep(
                tick=tick,
                pid=pid,
                address=address,
                outcome=AccessOutcome.SKIPPED,
                resident=_resident(translator, live),
            )

        stats = translator.stats
        hits, evictions = stats.hits, stats.evictions
        before = translator.frames.frames
        if not translator.access(pid, address, tick):
            translator.release(pid, tick=tick)
            live.discard(pid)
            self._log(LogLevel.WARNING, f"PID {pid} terminated: SIGSEGV", tick=tick)
            return TraceStep(
                tick=tick,
                pid=pid,
                address=address,
                outcome=AccessOutcome.SEGV,
                resident=_resident(translator, live),
            )

        page = address // self._page_size
        frame = translator.frames.lookup(pid, page)
        evicted: tuple[int, int] | None = None
        if stats.hits > hits:
            outcome = AccessOutcome.HIT
        elif stats.evictions > evictions and frame is not None:
            outcome = AccessOutcome.EVICT
            old = before[frame]
            if old.pid is not None and old.page is not None:
                evicted = (old.pid, old.page)
        else:
            outcome = AccessOutcome.FAULT
        return TraceStep(
            tick=tick,
            pid=pid,
            address=address,
            outcome=outcome,
            page=page,
            frame=frame,
            evicted=evicted,
            resident=_resident(translator, live),
        )

    def _log(self, level: LogLevel, message: str, *, tick: int) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source="trace", tick=tick)


def _resident(translator: AddressTranslator, live: set[int]) -> dict[int, tuple[int, ...]]:
    """Return the frames of every live process."""
    return {pid: tuple(translator.frames_for(pid)) for pid in sorted(live)}

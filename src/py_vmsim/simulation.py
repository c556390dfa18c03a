"""Simulation driver — the clock, the snapshots, and the stop condition.

The ``Simulation`` wires every component together and is the only
thing callers need::

    sim = Simulation([Program.of(5000, 1000, 4000, 0)])
    for snapshot in sim.run():
        print(snapshot.tick, [p.label for p in snapshot.processes])

Construction builds the frame pool, the replacement policy, the address
translator, the program library, and the scheduler, then spawns the
bootstrap process from program 1.  Each ``tick()`` advances the clock by
one and returns a ``TickSnapshot``: an immutable record of every live
process (state or signal, plus the frames it owns) and every frame.

The snapshot is captured *mid-tick*, after the running instruction has
been prepared and before its effects are applied.  That is the moment
the trace describes: the process shown as RUN is the one executing this
tick, and a process that dies this tick is shown with its signal.

Rendering snapshots as text is left to the caller; ``to_dict()`` gives a
JSON-ready form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from py_vmsim.config import ConfigurationError, SimulationConfig
from py_vmsim.logging import LogLevel
from py_vmsim.memory.frames import FramePool
from py_vmsim.memory.replacement import policy_for
from py_vmsim.memory.translator import AddressTranslator
from py_vmsim.process.programs import ProgramLibrary
from py_vmsim.process.scheduler import Scheduler

if TYPE_CHECKING:
    from collections.abc import Iterable

    from py_vmsim.logging import Logger
    from py_vmsim.memory.translator import MemoryStats
    from py_vmsim.process.pcb import ProcessSignal, ProcessState
    from py_vmsim.process.programs import Program

BOOTSTRAP_PROGRAM_ID = 1


@dataclass(frozen=True)
class ProcessView:
    """One live process as seen in a snapshot."""

    pid: int
    program_id: int
    state: ProcessState
    signal: ProcessSignal | None
    label: str
    frames: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict."""
        return {
            "pid": self.pid,
            "program_id": self.program_id,
            "state": str(self.state),
            "signal": str(self.signal) if self.signal is not None else None,
            "label": self.label,
            "frames": list(self.frames),
        }


@dataclass(frozen=True)
class FrameView:
    """One physical frame as seen in a snapshot."""

    index: int
    pid: int | None
    page: int | None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict."""
        return {"index": self.index, "pid": self.pid, "page": self.page}


@dataclass(frozen=True)
class TickSnapshot:
    """The observable state of the system at one tick."""

    tick: int
    processes: tuple[ProcessView, ...]
    frames: tuple[FrameView, ...]

    def process(self, pid: int) -> ProcessView | None:
        """Return the view of *pid*, or None if it is not alive."""
        for view in self.processes:
            if view.pid == pid:
                return view
        return None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict."""
        return {
            "tick": self.tick,
            "processes": [p.to_dict() for p in self.processes],
            "frames": [f.to_dict() for f in self.frames],
        }


class Simulation:
    """Drive the scheduler tick by tick until every process is gone."""

    def __init__(
        self,
        programs: Iterable[Program],
        *,
        config: SimulationConfig | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Build the engine and spawn the bootstrap process.

        Args:
            programs: The program library; program 1 boots first.
            config: Run parameters (defaults to ``SimulationConfig()``).
            logger: Optional event log shared by every component.

        Raises:
            ConfigurationError: If there are no programs or the
                configuration is invalid.

        """
        self._config = config if config is not None else SimulationConfig()
        self._logger = logger
        library = ProgramLibrary(programs)
        self._frames = FramePool(num_frames=self._config.num_frames)
        self._translator = AddressTranslator(
            self._frames,
            policy_for(self._config.policy),
            page_size=self._config.page_size,
            logger=logger,
        )
        self._scheduler = Scheduler(
            config=self._config,
            translator=self._translator,
            library=library,
            logger=logger,
        )
        if self._scheduler.spawn(BOOTSTRAP_PROGRAM_ID, bootstrap=True) is None:
            msg = "Could not create the bootstrap process"
            raise ConfigurationError(msg)

        self._tick = 0
        self._snapshots: list[TickSnapshot] = []
        self._log(LogLevel.INFO, f"started with {len(library)} program(s), {self._config.policy}")

    @property
    def config(self) -> SimulationConfig:
        """Return the run configuration."""
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        """Return the scheduler."""
        return self._scheduler

    @property
    def translator(self) -> AddressTranslator:
        """Return the address translator."""
        return self._translator

    @property
    def frames(self) -> FramePool:
        """Return the physical frame pool."""
        return self._frames

    @property
    def current_tick(self) -> int:
        """Return the number of the last tick run (0 before the first)."""
        return self._tick

    @property
    def snapshots(self) -> list[TickSnapshot]:
        """Return every snapshot taken so far."""
        return list(self._snapshots)

    @property
    def stats(self) -> MemoryStats:
        """Return the memory hit/fault/eviction counters."""
        return self._translator.stats

    @property
    def finished(self) -> bool:
        """Return True once every process has been destroyed."""
        return self._scheduler.is_idle and not self._scheduler.processes

    @property
    def truncated(self) -> bool:
        """Return True if the tick ceiling was hit with work remaining."""
        return not self.finished and self._tick >= self._config.max_ticks

    def tick(self) -> TickSnapshot:
        """Advance the clock by one tick.

        Returns:
            The snapshot of this tick.

        Raises:
            RuntimeError: If the simulation has already finished.

        """
        if self.finished:
            msg = f"Simulation finished at tick {self._tick}"
            raise RuntimeError(msg)
        self._tick += 1
        taken: list[TickSnapshot] = []
        self._scheduler.tick(self._tick, observe=lambda: taken.append(self.snapshot()))
        snapshot = taken[0]
        self._snapshots.append(snapshot)
        if self.finished:
            self._log(LogLevel.INFO, "all processes finished")
        return snapshot

    def run(self) -> list[TickSnapshot]:
        """Tick until every process is gone or the tick ceiling is reached.

        Returns:
            The snapshots produced by this call.

        """
        produced: list[TickSnapshot] = []
        while not self.finished and self._tick < self._config.max_ticks:
            produced.append(self.tick())
        if self.truncated:
            self._log(LogLevel.WARNING, f"stopped at tick ceiling {self._config.max_ticks}")
        return produced

    def snapshot(self) -> TickSnapshot:
        """Capture the current state as a ``TickSnapshot``."""
        processes = tuple(
            ProcessView(
                pid=p.pid,
                program_id=p.program_id,
                state=p.state,
                signal=p.signal,
                label=p.label,
                frames=tuple(self._frames.owned_by(p.pid)),
            )
            for p in self._scheduler.processes.values()
        )
        frames = tuple(FrameView(index=f.index, pid=f.pid, page=f.page) for f in self._frames.frames)
        return TickSnapshot(tick=self._tick, processes=processes, frames=frames)

    def _log(self, level: LogLevel, message: str) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source="engine", tick=self._tick)

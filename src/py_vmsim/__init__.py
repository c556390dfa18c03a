"""py-vmsim — a tick-driven process and virtual-memory simulator.

The simulator teaches two classic operating-system topics at once:
round-robin CPU scheduling and demand paging.  A global clock advances
one tick at a time; every tick, processes move between the NEW, READY,
RUNNING, BLOCKED, and EXIT states, one process runs one instruction, and
memory accesses fault pages into a small shared pool of frames.

Re-exports the public entry points so callers can write::

    from py_vmsim import Program, Simulation, SimulationConfig
"""

from py_vmsim.config import ConfigurationError, SimulationConfig
from py_vmsim.logging import Logger, LogLevel
from py_vmsim.process import Process, ProcessSignal, ProcessState, Program
from py_vmsim.simulation import FrameView, ProcessView, Simulation, TickSnapshot

__all__ = [
    "ConfigurationError",
    "FrameView",
    "LogLevel",
    "Logger",
    "Process",
    "ProcessSignal",
    "ProcessState",
    "ProcessView",
    "Program",
    "Simulation",
    "SimulationConfig",
    "TickSnapshot",
]

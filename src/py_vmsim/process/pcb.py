"""Process and Process Control Block (PCB).

A process is a program in execution.  The simulator tracks each one via
a PCB holding its PID, state, program counter, program image, and the
timers the scheduler needs to move it between states.

Processes follow a strict state machine — each transition method
(admit, dispatch, preempt, block, wake, terminate) enforces that the
process is in the correct source state before moving it.

State machine::

    NEW → READY ⇄ RUNNING → EXIT
            ↑        ↓
            └─ BLOCKED

A process that dies abnormally carries a **signal** (SIGSEGV, SIGILL,
SIGEOF) for the tick in which it died, so that tick's snapshot can say
*why* the process went to EXIT.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_vmsim.process.programs import Program


class ProcessState(StrEnum):
    """Lifecycle states of a process.

    - NEW: just created, serving its admission delay.
    - READY: waiting in the ready queue for the CPU.
    - RUNNING: executing one instruction per tick.
    - BLOCKED: waiting for a simulated I/O timer.
    - EXIT: finished, lingering before destruction.
    """

    NEW = "new"
    READY = "ready"
    RUNNING = "running"
    BLOCKED = "blocked"
    EXIT = "exit"


class ProcessSignal(StrEnum):
    """Abnormal terminations, each with its own cause."""

    SIGSEGV = "SIGSEGV"  # address outside the declared memory size
    SIGILL = "SIGILL"  # jump target outside the program
    SIGEOF = "SIGEOF"  # ran past the last instruction without halting


class Process:
    """A simulated process (the Process Control Block).

    State transitions are enforced: calling dispatch() on a NEW process
    raises RuntimeError, because the scheduler must admit it first.
    """

    def __init__(
        self,
        *,
        pid: int,
        program_id: int,
        program: Program,
        new_dwell: int = 1,
    ) -> None:
        """Create a new process in the NEW state.

        Args:
            pid: Unique process identifier.
            program_id: Library id of the program being run.
            program: The immutable program image.
            new_dwell: Ticks to spend in NEW before admission.

        """
        self._pid = pid
        self._program_id = program_id
        self._program = program
        self._state = ProcessState.NEW
        self._new_dwell = new_dwell
        self.pc: int = 0
        self.time_in_state: int = 0
        self.remaining_quantum: int = 0
        self.wake_tick: int | None = None
        self.signal: ProcessSignal | None = None

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def program_id(self) -> int:
        """Return the library id of the running program."""
        return self._program_id

    @property
    def program(self) -> Program:
        """Return the program image."""
        return self._program

    @property
    def instructions(self) -> tuple[int, ...]:
        """Return the encoded instructions."""
        return self._program.instructions

    @property
    def program_length(self) -> int:
        """Return the number of instructions."""
        return len(self._program.instructions)

    @property
    def memory_size(self) -> int:
        """Return the declared logical address-space size."""
        return self._program.memory_size

    @property
    def state(self) -> ProcessState:
        """Return the current process state."""
        return self._state

    @property
    def new_dwell(self) -> int:
        """Return the number of ticks this process must spend in NEW."""
        return self._new_dwell

    def _transition(self, action: str, expected: ProcessState, target: ProcessState) -> None:
        """Enforce a state transition and restart the state timer.

        Raises:
            RuntimeError: If the process is not in the expected state.

        """
        if self._state is not expected:
            msg = f"Cannot {action}: process {self._pid} is {self._state}, expected {expected}"
            raise RuntimeError(msg)
        self._state = target
        self.time_in_state = 0

    def admit(self) -> None:
        """Transition NEW → READY."""
        self._transition("admit", ProcessState.NEW, ProcessState.READY)

    def dispatch(self, *, quantum: int) -> None:
        """Transition READY → RUNNING with a fresh time slice."""
        self._transition("dispatch", ProcessState.READY, ProcessState.RUNNING)
        self.remaining_quantum = quantum

    def preempt(self) -> None:
        """Transition RUNNING → READY when the time slice is used up."""
        self._transition("preempt", ProcessState.RUNNING, ProcessState.READY)
        self.remaining_quantum = 0

    def block(self, *, wake_tick: int) -> None:
        """Transition RUNNING → BLOCKED until *wake_tick*."""
        self._transition("block", ProcessState.RUNNING, ProcessState.BLOCKED)
        self.remaining_quantum = 0
        self.wake_tick = wake_tick

    def wake(self) -> None:
        """Transition BLOCKED → READY, stepping past the blocking instruction."""
        self._transition("wake", ProcessState.BLOCKED, ProcessState.READY)
        self.wake_tick = None
        self.pc += 1

    def terminate(self, signal: ProcessSignal | None = None) -> None:
        """Transition RUNNING → EXIT, optionally recording *signal*."""
        self._transition("terminate", ProcessState.RUNNING, ProcessState.EXIT)
        self.remaining_quantum = 0
        if signal is not None:
            self.signal = signal

    @property
    def label(self) -> str:
        """Return the short display label: the signal name or the state."""
        if self.signal is not None:
            return str(self.signal)
        if self._state is ProcessState.RUNNING:
            return "RUN"
        return self._state.name

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Process(pid={self._pid}, program={self._program_id}, "
            f"state={self._state}, pc={self.pc})"
        )

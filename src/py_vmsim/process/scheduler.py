"""Round-robin scheduler — owns every process and every queue.

The scheduler is the single owner of process state.  It keeps:

- a **registry** mapping pid → Process for every live process;
- four FIFO queues: **new**, **ready**, **blocked**, and **exit**;
- the **running slot** (at most one process);
- a one-slot **hand-off** for a process preempted at the end of a tick.

Every live process is in exactly one of those places, and the queue it
is in always matches its ``state``.

Tick order (fixed, and observable in the trace)::

    1. NEW      → READY     once the NEW dwell is served
    2. BLOCKED  → READY     once the wake tick arrives (pc += 1)
    3. hand-off → back of READY
    4. READY    → RUNNING   if the CPU is idle (fresh quantum)
    5. run one instruction  (snapshot taken between prepare and commit)
    6. charge the quantum   → hand-off when it reaches zero
    7. EXIT residency       → destroy, releasing frames

Step 3 comes after steps 1 and 2 on purpose: a preempted process goes
behind anything that became ready during the same tick.  That is what
makes the scheduler round-robin rather than "run the same process
again".
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from py_vmsim.logging import LogLevel
from py_vmsim.process.interpreter import Interpreter, Step, StepKind
from py_vmsim.process.pcb import Process, ProcessState

if TYPE_CHECKING:
    from collections.abc import Callable

    from py_vmsim.config import SimulationConfig
    from py_vmsim.logging import Logger
    from py_vmsim.memory.translator import AddressTranslator
    from py_vmsim.process.pcb import ProcessSignal
    from py_vmsim.process.programs import ProgramLibrary


class Scheduler:
    """The CPU scheduler and process table.

    The scheduler holds the address translator and hands it to the
    interpreter; the memory side never sees a Process.
    """

    def __init__(
        self,
        *,
        config: SimulationConfig,
        translator: AddressTranslator,
        library: ProgramLibrary,
        logger: Logger | None = None,
    ) -> None:
        """Create an empty scheduler.

        Args:
            config: Quantum, dwell times, and process table size.
            translator: The memory manager shared by all processes.
            library: Programs available to spawn.
            logger: Optional event log.

        """
        self._config = config
        self._translator = translator
        self._library = library
        self._logger = logger
        self._interpreter = Interpreter(translator)

        self._processes: dict[int, Process] = {}
        self._new: deque[Process] = deque()
        self._ready: deque[Process] = deque()
        self._blocked: deque[Process] = deque()
        self._exit: deque[Process] = deque()
        self._running: Process | None = None
        self._preempted: Process | None = None

        self._spawned = 0
        self._context_switches = 0

    # -- Inspection ------------------------------------------------------------

    @property
    def translator(self) -> AddressTranslator:
        """Return the address translator."""
        return self._translator

    @property
    def running(self) -> Process | None:
        """Return the process in the running slot, or None."""
        return self._running

    @property
    def processes(self) -> dict[int, Process]:
        """Return a copy of the registry (pid → Process), ordered by pid."""
        return dict(sorted(self._processes.items()))

    @property
    def new_processes(self) -> list[Process]:
        """Return the NEW queue, front first."""
        return list(self._new)

    @property
    def ready_processes(self) -> list[Process]:
        """Return the READY lane, front first.

        A process preempted last tick is listed at the back, which is
        where step 3 of the next tick will put it.
        """
        ready = list(self._ready)
        if self._preempted is not None:
            ready.append(self._preempted)
        return ready

    @property
    def blocked_processes(self) -> list[Process]:
        """Return the BLOCKED queue, front first."""
        return list(self._blocked)

    @property
    def exited_processes(self) -> list[Process]:
        """Return the EXIT queue, front first."""
        return list(self._exit)

    @property
    def context_switches(self) -> int:
        """Return the number of dispatches so far."""
        return self._context_switches

    @property
    def spawned(self) -> int:
        """Return the number of processes ever created."""
        return self._spawned

    @property
    def is_idle(self) -> bool:
        """Return True if no process is running, waiting, or lingering."""
        return (
            self._running is None
            and self._preempted is None
            and not self._new
            and not self._ready
            and not self._blocked
            and not self._exit
        )

    def membership(self) -> dict[ProcessState, list[int]]:
        """Return the pids in each lane, keyed by the state they imply."""
        running = [self._running.pid] if self._running is not None else []
        return {
            ProcessState.NEW: [p.pid for p in self._new],
            ProcessState.READY: [p.pid for p in self.ready_processes],
            ProcessState.RUNNING: running,
            ProcessState.BLOCKED: [p.pid for p in self._blocked],
            ProcessState.EXIT: [p.pid for p in self._exit],
        }

    # -- Process creation ------------------------------------------------------

    def spawn(self, program_id: int, *, tick: int = 0, bootstrap: bool = False) -> Process | None:
        """Create a process running *program_id* and queue it in NEW.

        Requests for unknown programs, or beyond the process table size,
        are dropped silently (logged at DEBUG) and return None.

        Args:
            program_id: 1-based id into the program library.
            tick: Current tick, for the log.
            bootstrap: True for the initial process, which uses the
                longer ``first_new_dwell``.

        """
        program = self._library.get(program_id)
        if program is None:
            self._log(LogLevel.DEBUG, f"spawn dropped: no program {program_id}", tick=tick)
            return None
        if self._spawned >= self._config.max_processes:
            self._log(
                LogLevel.DEBUG,
                f"spawn dropped: process table full ({self._config.max_processes})",
                tick=tick,
            )
            return None

        self._spawned += 1
        dwell = self._config.first_new_dwell if bootstrap else self._config.new_dwell
        process = Process(
            pid=self._spawned,
            program_id=program_id,
            program=program,
            new_dwell=dwell,
        )
        self._translator.register(process.pid, memory_size=program.memory_size)
        self._processes[process.pid] = process
        self._new.append(process)
        self._log(LogLevel.INFO, f"PID {process.pid} created from program {program_id}", tick=tick)
        return process

    # -- The tick --------------------------------------------------------------

    def tick(self, tick: int, *, observe: Callable[[], None] | None = None) -> Step | None:
        """Run one tick of the scheduler.

        Args:
            tick: The tick number being simulated.
            observe: Called once per tick after the running instruction
                has been prepared and before any lifecycle change is
                applied (the snapshot point).

        Returns:
            The step executed by the running process, or None if the
            CPU was idle.

        """
        self._admit_new(tick)
        self._wake_blocked(tick)
        self._requeue_preempted()
        self._dispatch(tick)

        process = self._running
        step = self._interpreter.prepare(process, tick) if process is not None else None
        if observe is not None:
            observe()
        if process is not None and step is not None:
            self._apply(process, step, tick)

        self._charge_quantum(tick)
        self._reap(tick)
        return step

    def _admit_new(self, tick: int) -> None:
        """Step 1: promote NEW processes that have served their dwell."""
        waiting: deque[Process] = deque()
        for process in self._new:
            process.time_in_state += 1
            if process.time_in_state >= process.new_dwell:
                process.admit()
                self._ready.append(process)
                self._log(LogLevel.DEBUG, f"PID {process.pid} admitted", tick=tick)
            else:
                waiting.append(process)
        self._new = waiting

    def _wake_blocked(self, tick: int) -> None:
        """Step 2: promote BLOCKED processes whose wake tick has arrived."""
        still_blocked: deque[Process] = deque()
        for process in self._blocked:
            if process.wake_tick is not None and tick >= process.wake_tick:
                process.wake()
                self._ready.append(process)
                self._log(LogLevel.DEBUG, f"PID {process.pid} woke up", tick=tick)
            else:
                still_blocked.append(process)
        self._blocked = still_blocked

    def _requeue_preempted(self) -> None:
        """Step 3: move last tick's preempted process to the back of READY."""
        if self._preempted is not None:
            self._ready.append(self._preempted)
            self._preempted = None

    def _dispatch(self, tick: int) -> None:
        """Step 4: give an idle CPU to the front of the ready queue."""
        if self._running is not None or not self._ready:
            return
        process = self._ready.popleft()
        process.dispatch(quantum=self._config.quantum)
        self._running = process
        self._context_switches += 1
        self._log(LogLevel.DEBUG, f"PID {process.pid} dispatched", tick=tick)

    def _apply(self, process: Process, step: Step, tick: int) -> None:
        """Step 5 (commit): apply the lifecycle effect of *step*."""
        self._interpreter.commit(process, step)
        match step.kind:
            case StepKind.HALT:
                self._terminate(process, None, tick)
            case StepKind.FAULT:
                self._terminate(process, step.signal, tick)
            case StepKind.BLOCK:
                # shows BLOCKED in exactly `operand` snapshots
                process.block(wake_tick=tick + step.operand + 1)
                self._blocked.append(process)
                self._running = None
                self._log(
                    LogLevel.DEBUG,
                    f"PID {process.pid} blocked until t={process.wake_tick}",
                    tick=tick,
                )
            case StepKind.SPAWN:
                self.spawn(step.operand, tick=tick)
            case _:
                pass

    def _terminate(self, process: Process, signal: ProcessSignal | None, tick: int) -> None:
        process.terminate(signal)
        self._exit.append(process)
        self._running = None
        if signal is None:
            self._log(LogLevel.INFO, f"PID {process.pid} halted", tick=tick)
        else:
            self._log(LogLevel.WARNING, f"PID {process.pid} terminated: {signal}", tick=tick)

    def _charge_quantum(self, tick: int) -> None:
        """Step 6: use up one tick of the running process's time slice."""
        process = self._running
        if process is None:
            return
        process.remaining_quantum -= 1
        if process.remaining_quantum <= 0:
            process.preempt()
            self._preempted = process
            self._running = None
            self._log(LogLevel.DEBUG, f"PID {process.pid} preempted", tick=tick)

    def _reap(self, tick: int) -> list[Process]:
        """Step 7: advance EXIT residency and destroy expired processes."""
        destroyed: list[Process] = []
        lingering: deque[Process] = deque()
        for process in self._exit:
            process.time_in_state += 1
            process.signal = None
            if process.time_in_state >= self._config.exit_dwell:
                destroyed.append(process)
            else:
                lingering.append(process)
        self._exit = lingering

        for process in destroyed:
            released = self._translator.release(process.pid, tick=tick)
            del self._processes[process.pid]
            self._log(
                LogLevel.INFO,
                f"PID {process.pid} destroyed, {len(released)} frame(s) reclaimed",
                tick=tick,
            )
        return destroyed

    def _log(self, level: LogLevel, message: str, *, tick: int) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source="scheduler", tick=tick)

"""Tests for the instruction interpreter.

``prepare`` detects every way an instruction can kill a process and
services memory accesses; ``commit`` moves the program counter.
"""

from py_vmsim.memory.frames import FramePool
from py_vmsim.memory.replacement import LRUPolicy
from py_vmsim.memory.translator import AddressTranslator
from py_vmsim.process.interpreter import Interpreter, StepKind
from py_vmsim.process.pcb import Process, ProcessSignal
from py_vmsim.process.programs import Program

PAGE_SIZE = 1000
TICK = 1


def _setup(*instructions: int, memory_size: int = 3000) -> tuple[Interpreter, Process]:
    translator = AddressTranslator(FramePool(num_frames=2), LRUPolicy(), page_size=PAGE_SIZE)
    process = Process(pid=1, program_id=1, program=Program.of(memory_size, *instructions))
    translator.register(1, memory_size=memory_size)
    process.admit()
    process.dispatch(quantum=3)
    return Interpreter(translator), process


class TestControlFlow:
    """Verify halts and jumps."""

    def test_halt(self) -> None:
        """0 halts without a signal and leaves the pc alone."""
        interpreter, process = _setup(0)
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        assert step.kind is StepKind.HALT
        assert process.signal is None
        assert process.pc == 0

    def test_jump_forward(self) -> None:
        """A forward jump moves the pc by its operand."""
        interpreter, process = _setup(2, 5, 0)
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        expected_pc = 2
        assert process.pc == expected_pc

    def test_jump_forward_past_end_is_sigill(self) -> None:
        """Jumping to the program length or beyond is illegal."""
        interpreter, process = _setup(2, 0)
        step = interpreter.prepare(process, TICK)
        assert step.kind is StepKind.FAULT
        assert step.signal is ProcessSignal.SIGILL
        assert process.signal is ProcessSignal.SIGILL

    def test_jump_backward(self) -> None:
        """A backward jump moves the pc back by value - 100."""
        interpreter, process = _setup(5, 5, 102)
        process.pc = 2
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        assert process.pc == 0

    def test_jump_backward_before_start_is_sigill(self) -> None:
        """Jumping to a negative pc is illegal."""
        interpreter, process = _setup(5, 102)
        process.pc = 1
        step = interpreter.prepare(process, TICK)
        assert step.signal is ProcessSignal.SIGILL

    def test_running_off_the_end_is_sigeof(self) -> None:
        """A pc past the last instruction raises SIGEOF."""
        interpreter, process = _setup(5)
        process.pc = 1
        step = interpreter.prepare(process, TICK)
        assert step.signal is ProcessSignal.SIGEOF
        assert step.instruction is None


class TestMemory:
    """Verify memory instructions."""

    def test_access_faults_page_in(self) -> None:
        """A valid access loads the page and advances the pc."""
        interpreter, process = _setup(3500, 0)
        step = interpreter.prepare(process, TICK)
        assert step.kind is StepKind.ADVANCE
        assert interpreter._translator.frames_for(1) == [0]
        interpreter.commit(process, step)
        assert process.pc == 1

    def test_out_of_bounds_is_sigsegv(self) -> None:
        """Address == memory_size is a segmentation fault."""
        interpreter, process = _setup(4000, memory_size=3000)
        step = interpreter.prepare(process, TICK)
        assert step.signal is ProcessSignal.SIGSEGV
        interpreter.commit(process, step)
        assert process.pc == 0


class TestOtherInstructions:
    """Verify spawn, block, and no-ops."""

    def test_spawn_advances_pc(self) -> None:
        """Spawn carries the program id and advances normally."""
        interpreter, process = _setup(203, 0)
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        expected_program = 3
        assert step.kind is StepKind.SPAWN
        assert step.operand == expected_program
        assert process.pc == 1

    def test_block_leaves_pc(self) -> None:
        """Block carries the duration and does not move the pc."""
        interpreter, process = _setup(-4, 0)
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        expected_duration = 4
        assert step.kind is StepKind.BLOCK
        assert step.operand == expected_duration
        assert process.pc == 0

    def test_noop_advances(self) -> None:
        """Unassigned values just advance the pc."""
        interpreter, process = _setup(500, 0)
        step = interpreter.prepare(process, TICK)
        interpreter.commit(process, step)
        assert step.kind is StepKind.ADVANCE
        assert process.pc == 1

"""Instruction interpreter — one instruction per tick.

Each tick the scheduler asks the interpreter to run the next
instruction of the RUNNING process.  Execution happens in two phases:

1. **prepare** — fetch, decode, and check.  Every way the instruction
   can kill the process (running off the end, a wild jump, a bad
   address) is detected here, and memory accesses are serviced here.
   Nothing about the process's lifecycle changes yet.
2. **commit** — move the program counter.  Lifecycle moves (EXIT,
   BLOCKED, spawning a child) belong to the scheduler, which owns the
   queues; the interpreter only tells it what to do via the ``Step``.

Splitting the phases means the tick snapshot can be taken between them,
with the fault already known but no queue touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from py_vmsim.process.instructions import Instruction, Opcode, decode
from py_vmsim.process.pcb import ProcessSignal

if TYPE_CHECKING:
    from py_vmsim.memory.translator import AddressTranslator
    from py_vmsim.process.pcb import Process


class StepKind(StrEnum):
    """What the scheduler must do after an instruction."""

    ADVANCE = "advance"  # pc += 1
    JUMP = "jump"  # pc = target
    SPAWN = "spawn"  # create a child, then pc += 1
    BLOCK = "block"  # RUNNING → BLOCKED
    HALT = "halt"  # RUNNING → EXIT
    FAULT = "fault"  # RUNNING → EXIT with a signal


@dataclass(frozen=True)
class Step:
    """The outcome of preparing one instruction.

    Attributes:
        kind: The follow-up action.
        instruction: The decoded instruction (None when the pc ran off
            the end of the program).
        target: Jump target for JUMP steps.
        signal: Termination signal for FAULT steps.

    """

    kind: StepKind
    instruction: Instruction | None = None
    target: int | None = None
    signal: ProcessSignal | None = None

    @property
    def operand(self) -> int:
        """Return the instruction operand (0 if there is none)."""
        return self.instruction.operand if self.instruction is not None else 0


class Interpreter:
    """Decode and execute the synthetic instruction set."""

    def __init__(self, translator: AddressTranslator) -> None:
        """Create an interpreter that routes memory accesses to *translator*."""
        self._translator = translator

    def prepare(self, process: Process, tick: int) -> Step:
        """Fetch, decode, and check the instruction at the process's pc.

        Memory accesses are performed against the translator.  A faulting
        step also records its signal on the process.
        """
        if process.pc >= process.program_length:
            return self._fault(process, ProcessSignal.SIGEOF)

        instruction = decode(process.instructions[process.pc])
        match instruction.opcode:
            case Opcode.HALT:
                return Step(StepKind.HALT, instruction)
            case Opcode.JUMP_FORWARD:
                target = process.pc + instruction.operand
                if target >= process.program_length:
                    return self._fault(process, ProcessSignal.SIGILL, instruction)
                return Step(StepKind.JUMP, instruction, target=target)
            case Opcode.JUMP_BACKWARD:
                target = process.pc - instruction.operand
                if target < 0:
                    return self._fault(process, ProcessSignal.SIGILL, instruction)
                return Step(StepKind.JUMP, instruction, target=target)
            case Opcode.SPAWN:
                return Step(StepKind.SPAWN, instruction)
            case Opcode.MEMORY:
                if not self._translator.access(process.pid, instruction.operand, tick):
                    return self._fault(process, ProcessSignal.SIGSEGV, instruction)
                return Step(StepKind.ADVANCE, instruction)
            case Opcode.BLOCK:
                return Step(StepKind.BLOCK, instruction)
            case _:
                return Step(StepKind.ADVANCE, instruction)

    @staticmethod
    def commit(process: Process, step: Step) -> None:
        """Move the program counter as *step* requires.

        HALT, FAULT, and BLOCK leave the pc where it is; a blocked
        process steps past its instruction when it wakes.
        """
        match step.kind:
            case StepKind.ADVANCE | StepKind.SPAWN:
                process.pc += 1
            case StepKind.JUMP:
                assert step.target is not None  # noqa: S101
                process.pc = step.target
            case _:
                pass

    @staticmethod
    def _fault(
        process: Process,
        signal: ProcessSignal,
        instruction: Instruction | None = None,
    ) -> Step:
        process.signal = signal
        return Step(StepKind.FAULT, instruction, signal=signal)

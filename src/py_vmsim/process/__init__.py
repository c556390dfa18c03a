"""Process subsystem — PCB, instructions, interpreter, and scheduling.

Re-exports public symbols so callers can write::

    from py_vmsim.process import Process, Program, Scheduler
"""

from py_vmsim.process.instructions import Instruction, Opcode, decode
from py_vmsim.process.interpreter import Interpreter, Step, StepKind
from py_vmsim.process.pcb import Process, ProcessSignal, ProcessState
from py_vmsim.process.programs import Program, ProgramLibrary
from py_vmsim.process.scheduler import Scheduler

__all__ = [
    "Instruction",
    "Interpreter",
    "Opcode",
    "Process",
    "ProcessSignal",
    "ProcessState",
    "Program",
    "ProgramLibrary",
    "Scheduler",
    "Step",
    "StepKind",
    "decode",
]

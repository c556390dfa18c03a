"""The synthetic instruction set.

Programs are sequences of plain integers.  The value ranges encode what
an instruction does, so decoding is a total function — every integer
means *something*, if only "do nothing".

Encoding::

    0              HALT           end the process cleanly
    1..100         JUMP_FORWARD   pc += value
    101..199       JUMP_BACKWARD  pc -= value - 100
    201..299       SPAWN          start program (value % 100)
    1000..15999    MEMORY         access address value - 1000
    < 0            BLOCK          wait on I/O for -value ticks
    anything else  NOOP
"""

from dataclasses import dataclass
from enum import StrEnum

JUMP_FORWARD_MAX = 100
JUMP_BACKWARD_MIN = 101
JUMP_BACKWARD_MAX = 199
SPAWN_MIN = 201
SPAWN_MAX = 299
MEMORY_MIN = 1000
MEMORY_MAX = 15999


class Opcode(StrEnum):
    """Decoded instruction kinds."""

    HALT = "halt"
    JUMP_FORWARD = "jump_forward"
    JUMP_BACKWARD = "jump_backward"
    SPAWN = "spawn"
    MEMORY = "memory"
    BLOCK = "block"
    NOOP = "noop"


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction.

    Attributes:
        opcode: What the instruction does.
        operand: Jump distance, program id, address, or block duration
            (0 for HALT and NOOP).
        raw: The encoded value.

    """

    opcode: Opcode
    operand: int
    raw: int


def decode(value: int) -> Instruction:
    """Decode an encoded instruction value."""
    if value == 0:
        return Instruction(Opcode.HALT, 0, value)
    if value < 0:
        return Instruction(Opcode.BLOCK, -value, value)
    if value <= JUMP_FORWARD_MAX:
        return Instruction(Opcode.JUMP_FORWARD, value, value)
    if JUMP_BACKWARD_MIN <= value <= JUMP_BACKWARD_MAX:
        return Instruction(Opcode.JUMP_BACKWARD, value - JUMP_FORWARD_MAX, value)
    if SPAWN_MIN <= value <= SPAWN_MAX:
        return Instruction(Opcode.SPAWN, value % 100, value)
    if MEMORY_MIN <= value <= MEMORY_MAX:
        return Instruction(Opcode.MEMORY, value - MEMORY_MIN, value)
    return Instruction(Opcode.NOOP, 0, value)

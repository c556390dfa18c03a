"""Program images and the program library.

A **program** is what a process runs: a declared address-space size and
an immutable sequence of integer-encoded instructions.  The library is
the fixed table of programs available for spawning; program ids are
1-based, so the ``SPAWN`` instruction ``203`` starts program 3.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_vmsim.config import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Program:
    """An immutable program image.

    Attributes:
        memory_size: Size of the logical address space, in bytes.
        instructions: The encoded instructions, in order.

    """

    memory_size: int
    instructions: tuple[int, ...]

    def __post_init__(self) -> None:
        """Normalise the instructions to a tuple and check every value is an integer."""
        if not _is_int(self.memory_size) or self.memory_size < 0:
            msg = f"memory_size must be a non-negative integer, got {self.memory_size!r}"
            raise ConfigurationError(msg)
        instructions = tuple(self.instructions)
        bad = [i for i in instructions if not _is_int(i)]
        if bad:
            msg = f"Instructions must be integers, got {bad!r}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "instructions", instructions)

    @classmethod
    def of(cls, memory_size: int, *instructions: int) -> Program:
        """Build a program from positional instructions."""
        return cls(memory_size=memory_size, instructions=instructions)

    def __len__(self) -> int:
        """Return the number of instructions."""
        return len(self.instructions)


class ProgramLibrary:
    """The fixed, 1-indexed table of programs available to spawn."""

    def __init__(self, programs: Iterable[Program]) -> None:
        """Create a library from *programs* (program 1 first).

        Raises:
            ConfigurationError: If no programs are given.

        """
        self._programs: tuple[Program, ...] = tuple(programs)
        if not self._programs:
            msg = "At least one program is required"
            raise ConfigurationError(msg)

    def get(self, program_id: int) -> Program | None:
        """Return program *program_id*, or None if there is no such program."""
        if 1 <= program_id <= len(self._programs):
            return self._programs[program_id - 1]
        return None

    def __contains__(self, program_id: object) -> bool:
        """Return True if *program_id* names a program."""
        return isinstance(program_id, int) and 1 <= program_id <= len(self._programs)

    def __len__(self) -> int:
        """Return the number of programs."""
        return len(self._programs)

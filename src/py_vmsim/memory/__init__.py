"""Memory subsystem — frame pool, replacement policies, and translation.

Re-exports public symbols so callers can write::

    from py_vmsim.memory import AddressTranslator, FramePool, LRUPolicy
"""

from py_vmsim.memory.frames import Frame, FramePool
from py_vmsim.memory.replacement import (
    FIFOPolicy,
    LRUPolicy,
    ReplacementPolicy,
    policy_for,
)
from py_vmsim.memory.trace import AccessOutcome, TraceReplayer, TraceStep
from py_vmsim.memory.translator import (
    AddressTranslator,
    MemoryStats,
    PageFaultError,
    PageTable,
)

__all__ = [
    "AccessOutcome",
    "AddressTranslator",
    "FIFOPolicy",
    "Frame",
    "FramePool",
    "LRUPolicy",
    "MemoryStats",
    "PageFaultError",
    "PageTable",
    "ReplacementPolicy",
    "TraceReplayer",
    "TraceStep",
    "policy_for",
]

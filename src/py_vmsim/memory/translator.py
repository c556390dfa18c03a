"""Address translation and demand paging.

Processes never see frames.  Each one owns a **logical address space**
of a fixed size, chopped into pages of ``page_size`` bytes.  The
translator turns a logical address into a page number and makes sure
that page is resident in some frame, faulting it in on demand.

Address translation::

    logical address  →  page = address // page_size
    page table[page] →  frame index (hit)
    not mapped       →  page fault → free frame or victim → map

Design choices:
    - **The frame pool is the ground truth.**  Per-process ``PageTable``
      objects are a lookup cache; every occupy, eviction and release
      updates both sides together, so they never disagree.
    - **Out-of-bounds is a return value, not an exception.**  The
      interpreter turns ``False`` into a SIGSEGV for the process; the
      engine itself carries on.
    - **Memory never calls the scheduler.**  The translator only knows
      pids and address-space sizes, which the scheduler registers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_vmsim.logging import LogLevel

if TYPE_CHECKING:
    from py_vmsim.logging import Logger
    from py_vmsim.memory.frames import FramePool
    from py_vmsim.memory.replacement import ReplacementPolicy


class PageFaultError(Exception):
    """Raised when a page has no frame mapping."""


class PageTable:
    """Map a process's page numbers to frame indices."""

    def __init__(self) -> None:
        """Create an empty page table."""
        self._entries: dict[int, int] = {}

    def map(self, *, page: int, frame: int) -> None:
        """Record that *page* now lives in *frame*."""
        self._entries[page] = frame

    def unmap(self, *, page: int) -> None:
        """Remove a page mapping (no-op if not mapped)."""
        self._entries.pop(page, None)

    def translate(self, page: int) -> int:
        """Return the frame holding *page*.

        Raises:
            PageFaultError: If the page is not mapped.

        """
        frame = self._entries.get(page)
        if frame is None:
            msg = f"Page {page} is not mapped"
            raise PageFaultError(msg)
        return frame

    def mappings(self) -> dict[int, int]:
        """Return all page→frame mappings."""
        return dict(self._entries)

    def __len__(self) -> int:
        """Return the number of mapped pages."""
        return len(self._entries)


@dataclass
class MemoryStats:
    """Running counters for the memory subsystem."""

    hits: int = 0
    faults: int = 0
    evictions: int = 0
    segfaults: int = 0

    def to_dict(self) -> dict[str, int]:
        """Return the counters as a JSON-ready dict."""
        return {
            "hits": self.hits,
            "faults": self.faults,
            "evictions": self.evictions,
            "segfaults": self.segfaults,
        }


class AddressTranslator:
    """Translate logical addresses and service page faults.

    The translator holds the frame pool and the replacement policy; the
    scheduler holds the translator and injects it wherever memory is
    touched.
    """

    def __init__(
        self,
        frames: FramePool,
        policy: ReplacementPolicy,
        *,
        page_size: int,
        logger: Logger | None = None,
    ) -> None:
        """Create a translator over *frames* using *policy* for eviction.

        Args:
            frames: The shared physical frame pool.
            policy: Victim selection strategy for full-pool faults.
            page_size: Logical bytes per page.
            logger: Optional event log.

        """
        self._frames = frames
        self._policy = policy
        self._page_size = page_size
        self._logger = logger
        self._limits: dict[int, int] = {}
        self._page_tables: dict[int, PageTable] = {}
        self._stats = MemoryStats()

    @property
    def frames(self) -> FramePool:
        """Return the underlying frame pool."""
        return self._frames

    @property
    def policy(self) -> ReplacementPolicy:
        """Return the replacement policy."""
        return self._policy

    @property
    def page_size(self) -> int:
        """Return the page size in bytes."""
        return self._page_size

    @property
    def stats(self) -> MemoryStats:
        """Return the hit/fault/eviction counters."""
        return self._stats

    def register(self, pid: int, *, memory_size: int) -> None:
        """Declare the address-space size of a new process.

        Raises:
            ValueError: If *pid* is already registered.

        """
        if pid in self._limits:
            msg = f"PID {pid} already has an address space"
            raise ValueError(msg)
        self._limits[pid] = memory_size
        self._page_tables[pid] = PageTable()

    def memory_size(self, pid: int) -> int:
        """Return the registered address-space size for *pid*.

        Raises:
            KeyError: If *pid* is not registered.

        """
        return self._limits[pid]

    def pages_for(self, pid: int) -> dict[int, int]:
        """Return the resident pages of *pid* as page→frame."""
        table = self._page_tables.get(pid)
        return table.mappings() if table is not None else {}

    def frames_for(self, pid: int) -> list[int]:
        """Return the sorted frame indices owned by *pid*."""
        return self._frames.owned_by(pid)

    def release(self, pid: int, *, tick: int = 0) -> list[int]:
        """Free all frames of *pid* and forget its address space.

        Unknown pids are a no-op.

        Returns:
            The indices of the released frames.

        """
        released = self._frames.release_all(pid)
        self._limits.pop(pid, None)
        self._page_tables.pop(pid, None)
        if released:
            self._log(LogLevel.DEBUG, f"released frames {released} of PID {pid}", tick=tick)
        return released

    def access(self, pid: int, logical_address: int, tick: int) -> bool:
        """Touch *logical_address* of *pid* at *tick*, faulting the page in.

        Returns:
            True if the access succeeded (hit or serviced fault), False if
            the address is outside the process's address space.

        Raises:
            KeyError: If *pid* is not registered.

        """
        limit = self._limits[pid]
        if logical_address < 0 or logical_address >= limit:
            self._stats.segfaults += 1
            self._log(
                LogLevel.WARNING,
                f"PID {pid} address {logical_address} outside [0, {limit})",
                tick=tick,
            )
            return False

        page = logical_address // self._page_size
        table = self._page_tables[pid]
        try:
            frame = table.translate(page)
        except PageFaultError:
            self._fault(pid, page, tick)
        else:
            self._frames.touch(frame, tick=tick)
            self._stats.hits += 1
        return True

    def _fault(self, pid: int, page: int, tick: int) -> None:
        """Bring ``(pid, page)`` into a frame, evicting if necessary."""
        self._stats.faults += 1
        index = self._frames.find_free()
        if index is None:
            index = self._policy.select_victim(self._frames.frames)
            self._evict(index, tick=tick)
        self._frames.occupy(index, pid=pid, page=page, tick=tick)
        self._page_tables[pid].map(page=page, frame=index)
        self._log(LogLevel.DEBUG, f"page fault: PID {pid} page {page} → F{index}", tick=tick)

    def _evict(self, index: int, *, tick: int) -> None:
        """Throw out whatever page frame *index* holds."""
        victim = self._frames[index]
        if victim.pid is None or victim.page is None:
            return
        owner = self._page_tables.get(victim.pid)
        if owner is not None:
            owner.unmap(page=victim.page)
        self._frames.release(index)
        self._stats.evictions += 1
        self._log(
            LogLevel.INFO,
            f"{self._policy.name} evicted PID {victim.pid} page {victim.page} from F{index}",
            tick=tick,
        )

    def _log(self, level: LogLevel, message: str, *, tick: int) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source="memory", tick=tick)

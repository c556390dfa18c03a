"""Tests for address translation and demand paging.

The translator maps a logical address to a page, checks it against the
process's declared size, and faults the page into a frame on demand —
evicting a victim chosen by the replacement policy when the pool is
full.  Per-process page tables must always agree with the frame pool.
"""

import pytest

from py_vmsim.memory.frames import FramePool
from py_vmsim.memory.replacement import FIFOPolicy, LRUPolicy
from py_vmsim.memory.translator import AddressTranslator, PageFaultError, PageTable

PAGE_SIZE = 1000
MEMORY_SIZE = 5000


def _translator(num_frames: int = 3, *, fifo: bool = False) -> AddressTranslator:
    policy = FIFOPolicy() if fifo else LRUPolicy()
    return AddressTranslator(FramePool(num_frames=num_frames), policy, page_size=PAGE_SIZE)


def _assert_consistent(translator: AddressTranslator, pids: list[int]) -> None:
    """Every page table entry matches the frame pool, and vice versa."""
    pool = translator.frames
    seen: set[tuple[int, int]] = set()
    for frame in pool.frames:
        if frame.is_free:
            continue
        assert frame.pid is not None
        assert frame.page is not None
        owner = (frame.pid, frame.page)
        assert owner not in seen
        seen.add(owner)
    for pid in pids:
        for page, index in translator.pages_for(pid).items():
            assert (pool[index].pid, pool[index].page) == (pid, page)
        assert sorted(translator.pages_for(pid).values()) == translator.frames_for(pid)


class TestPageTable:
    """Verify the per-process page table."""

    def test_map_and_translate(self) -> None:
        """Mapping a page should make it translatable."""
        table = PageTable()
        table.map(page=0, frame=4)
        expected_frame = 4
        assert table.translate(0) == expected_frame

    def test_translate_unmapped_raises(self) -> None:
        """Translating an unmapped page should raise PageFaultError."""
        with pytest.raises(PageFaultError, match="not mapped"):
            PageTable().translate(5)

    def test_unmap_unmapped_is_noop(self) -> None:
        """Unmapping a page that isn't mapped should be a no-op."""
        table = PageTable()
        table.unmap(page=99)
        assert len(table) == 0


class TestBounds:
    """Verify the address-space bound check."""

    def test_last_address_succeeds(self) -> None:
        """memory_size - 1 is the last valid address."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        assert translator.access(1, MEMORY_SIZE - 1, tick=1)

    def test_memory_size_is_out_of_bounds(self) -> None:
        """memory_size itself is one past the end."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        assert not translator.access(1, MEMORY_SIZE, tick=1)
        assert translator.frames.occupied == 0
        assert translator.stats.segfaults == 1

    def test_negative_address_rejected(self) -> None:
        """Negative addresses are never valid."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        assert not translator.access(1, -1, tick=1)

    def test_zero_sized_space_rejects_everything(self) -> None:
        """A process with no memory cannot access address 0."""
        translator = _translator()
        translator.register(1, memory_size=0)
        assert not translator.access(1, 0, tick=1)

    def test_unregistered_pid_raises(self) -> None:
        """Accessing memory for an unknown process is a programming error."""
        with pytest.raises(KeyError):
            _translator().access(9, 0, tick=1)

    def test_double_register_raises(self) -> None:
        """A pid gets exactly one address space."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        with pytest.raises(ValueError, match="already"):
            translator.register(1, memory_size=MEMORY_SIZE)


class TestFaultsAndHits:
    """Verify demand paging into free frames."""

    def test_fault_uses_first_free_frame(self) -> None:
        """The first fault should land in frame 0."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.access(1, 2500, tick=1)
        page = 2
        assert translator.pages_for(1) == {page: 0}
        assert translator.stats.faults == 1

    def test_hit_is_idempotent_for_occupancy(self) -> None:
        """A hit changes only the last-access tick of its frame."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.access(1, 10, tick=1)
        before = translator.frames.frames
        later = 4
        translator.access(1, 20, tick=later)
        after = translator.frames.frames
        assert [(f.pid, f.page, f.loaded_at) for f in after] == [
            (f.pid, f.page, f.loaded_at) for f in before
        ]
        assert after[0].last_access == later
        assert translator.stats.hits == 1
        assert translator.stats.faults == 1

    def test_same_page_of_two_processes_is_two_frames(self) -> None:
        """Pages are identified by (pid, page), not by page alone."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.register(2, memory_size=MEMORY_SIZE)
        translator.access(1, 0, tick=1)
        translator.access(2, 0, tick=2)
        assert translator.frames_for(1) == [0]
        assert translator.frames_for(2) == [1]


class TestEviction:
    """Verify replacement when the pool is full."""

    def test_eviction_unmaps_the_victim(self) -> None:
        """The evicted owner's page table must lose the page."""
        translator = _translator(num_frames=2, fifo=True)
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.register(2, memory_size=MEMORY_SIZE)
        translator.access(1, 0, tick=1)
        translator.access(2, 0, tick=2)
        translator.access(2, 1000, tick=3)
        assert translator.pages_for(1) == {}
        assert translator.pages_for(2) == {0: 1, 1: 0}
        assert translator.stats.evictions == 1
        _assert_consistent(translator, [1, 2])

    def test_evicted_page_refaults(self) -> None:
        """Accessing an evicted page again is a fresh fault."""
        translator = _translator(num_frames=1)
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.access(1, 0, tick=1)
        translator.access(1, 1000, tick=2)
        translator.access(1, 0, tick=3)
        expected_faults = 3
        assert translator.stats.faults == expected_faults
        assert translator.stats.hits == 0

    def test_long_reference_string_stays_consistent(self) -> None:
        """Page tables and frames agree after many mixed accesses."""
        translator = _translator(num_frames=3)
        for pid in (1, 2, 3):
            translator.register(pid, memory_size=MEMORY_SIZE)
        references = [(1, 0), (2, 1500), (3, 4999), (1, 3000), (2, 1500), (3, 0), (1, 0)]
        for tick, (pid, address) in enumerate(references, start=1):
            translator.access(pid, address, tick)
            _assert_consistent(translator, [1, 2, 3])
        assert translator.frames.occupied <= len(translator.frames)


class TestRelease:
    """Verify releasing a process's memory."""

    def test_release_frees_frames_and_forgets_bound(self) -> None:
        """After release the frames are free and the pid is unknown."""
        translator = _translator()
        translator.register(1, memory_size=MEMORY_SIZE)
        translator.access(1, 0, tick=1)
        translator.access(1, 1000, tick=2)
        assert translator.release(1) == [0, 1]
        assert translator.frames.occupied == 0
        with pytest.raises(KeyError):
            translator.memory_size(1)

    def test_release_unknown_pid_is_noop(self) -> None:
        """Releasing an unknown pid returns nothing."""
        assert _translator().release(5) == []

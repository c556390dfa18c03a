"""Frame pool — the fixed set of physical page frames.

Physical memory is divided into fixed-size **frames**.  Every frame is
either free or holds exactly one page of one process, identified by the
pair ``(pid, page)``.  Frames never move; only what they hold changes.

Each occupied frame remembers two timestamps, both in simulated ticks:

- ``loaded_at`` — when the resident page was brought in (FIFO reads it).
- ``last_access`` — when the page was last touched (LRU reads it).

The pool itself makes no replacement decisions.  It answers questions
(which frame is free? where is this page?) and records occupancy; the
address translator and the replacement policy decide what to evict.
"""

from __future__ import annotations

from dataclasses import dataclass

from py_vmsim.config import ConfigurationError


@dataclass(frozen=True)
class Frame:
    """An immutable view of one physical frame.

    Attributes:
        index: Position of the frame in the pool (0..N-1).
        pid: Owning process, or None when the frame is free.
        page: Logical page number held, or None when free.
        loaded_at: Tick at which the current page was loaded.
        last_access: Tick of the most recent access to the page.

    """

    index: int
    pid: int | None = None
    page: int | None = None
    loaded_at: int = -1
    last_access: int = -1

    @property
    def is_free(self) -> bool:
        """Return True if no page occupies this frame."""
        return self.pid is None


class FramePool:
    """A fixed-capacity array of physical frames.

    Frames are stored as immutable ``Frame`` records and replaced
    wholesale on every change, so a ``frames`` snapshot handed out
    earlier is never mutated behind the caller's back.
    """

    def __init__(self, *, num_frames: int) -> None:
        """Create a pool of *num_frames* free frames.

        Raises:
            ConfigurationError: If num_frames is less than 1.

        """
        if num_frames < 1:
            msg = f"Frame pool needs at least 1 frame, got {num_frames}"
            raise ConfigurationError(msg)
        self._frames: list[Frame] = [Frame(index=i) for i in range(num_frames)]

    @property
    def frames(self) -> tuple[Frame, ...]:
        """Return the current state of every frame, in index order."""
        return tuple(self._frames)

    @property
    def occupied(self) -> int:
        """Return the number of frames holding a page."""
        return sum(1 for f in self._frames if not f.is_free)

    @property
    def is_full(self) -> bool:
        """Return True if every frame holds a page."""
        return all(not f.is_free for f in self._frames)

    def __len__(self) -> int:
        """Return the pool capacity."""
        return len(self._frames)

    def __getitem__(self, index: int) -> Frame:
        """Return the frame at *index*."""
        return self._frames[index]

    def find_free(self) -> int | None:
        """Return the index of the first free frame, or None if full."""
        for frame in self._frames:
            if frame.is_free:
                return frame.index
        return None

    def lookup(self, pid: int, page: int) -> int | None:
        """Return the frame holding ``(pid, page)``, or None if not resident."""
        for frame in self._frames:
            if frame.pid == pid and frame.page == page:
                return frame.index
        return None

    def owned_by(self, pid: int) -> list[int]:
        """Return the sorted indices of every frame owned by *pid*."""
        return [f.index for f in self._frames if f.pid == pid]

    def occupy(self, index: int, *, pid: int, page: int, tick: int) -> None:
        """Load ``(pid, page)`` into frame *index* at *tick*.

        Both timestamps are set to *tick*.  Whatever the frame held
        before is overwritten; the caller is responsible for telling the
        previous owner.
        """
        self._frames[index] = Frame(
            index=index,
            pid=pid,
            page=page,
            loaded_at=tick,
            last_access=tick,
        )

    def touch(self, index: int, *, tick: int) -> None:
        """Record an access to frame *index* (a hit).

        Only ``last_access`` changes; occupancy and load time are kept.
        """
        frame = self._frames[index]
        self._frames[index] = Frame(
            index=index,
            pid=frame.pid,
            page=frame.page,
            loaded_at=frame.loaded_at,
            last_access=tick,
        )

    def release(self, index: int) -> None:
        """Mark frame *index* free."""
        self._frames[index] = Frame(index=index)

    def release_all(self, pid: int) -> list[int]:
        """Free every frame owned by *pid*.

        Returns:
            The indices of the released frames (empty for unknown pids).

        """
        released = self.owned_by(pid)
        for index in released:
            self.release(index)
        return released

"""Tests for the simulation event log.

The logger records structured entries for engine events — an audit
trail of which process was created, which page was evicted, and why a
process died, all stamped with the simulated tick.
"""

from py_vmsim.logging import LogEntry, Logger, LogLevel
from py_vmsim.process.programs import Program
from py_vmsim.simulation import Simulation


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_has_fields(self) -> None:
        """A log entry should store level, message, source, and tick."""
        tick = 7
        entry = LogEntry(level=LogLevel.INFO, message="page fault", source="memory", tick=tick)
        assert entry.level is LogLevel.INFO
        assert entry.message == "page fault"
        assert entry.source == "memory"
        assert entry.tick == tick

    def test_entry_str(self) -> None:
        """String representation should include level, tick, and message."""
        entry = LogEntry(level=LogLevel.WARNING, message="SIGSEGV", source="scheduler", tick=4)
        assert str(entry) == "[WARNING] t=4 scheduler: SIGSEGV"


class TestLogger:
    """Verify the logger."""

    def test_log_stores_entries(self) -> None:
        """Logged entries should be retrievable."""
        logger = Logger()
        logger.log(LogLevel.INFO, "started", source="engine")
        assert len(logger) == 1
        assert logger.entries[0].message == "started"

    def test_entries_are_ordered(self) -> None:
        """Entries should be in chronological order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="test", tick=1)
        logger.log(LogLevel.INFO, "second", source="test", tick=2)
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_filter_by_level(self) -> None:
        """Filtering should return only entries at or above the level."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "debug msg", source="test")
        logger.log(LogLevel.INFO, "info msg", source="test")
        logger.log(LogLevel.ERROR, "error msg", source="test")
        warnings_and_above = logger.filter(min_level=LogLevel.WARNING)
        assert len(warnings_and_above) == 1
        assert warnings_and_above[0].level is LogLevel.ERROR

    def test_filter_by_source(self) -> None:
        """Filtering by source should return matching entries."""
        logger = Logger()
        logger.log(LogLevel.INFO, "fault", source="memory")
        logger.log(LogLevel.INFO, "dispatch", source="scheduler")
        memory_logs = logger.filter(source="memory")
        assert len(memory_logs) == 1
        assert memory_logs[0].source == "memory"

    def test_filter_returns_a_copy(self) -> None:
        """Mutating a filter result must not touch the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "kept", source="test")
        logger.filter().clear()
        assert len(logger) == 1

    def test_clear(self) -> None:
        """Clearing should remove all entries."""
        logger = Logger()
        logger.log(LogLevel.INFO, "test", source="test")
        logger.clear()
        assert len(logger.entries) == 0


class TestSimulationLogging:
    """Verify that the engine logs its events."""

    def test_signal_is_logged_as_warning(self) -> None:
        """A process killed by a signal should produce a WARNING."""
        logger = Logger()
        sim = Simulation([Program.of(10, 1500)], logger=logger)
        sim.run()
        warnings = logger.filter(min_level=LogLevel.WARNING, source="scheduler")
        assert any("SIGSEGV" in e.message for e in warnings)

    def test_page_faults_are_logged(self) -> None:
        """Page faults should be logged by the memory component."""
        logger = Logger()
        sim = Simulation([Program.of(5000, 1000, 0)], logger=logger)
        sim.run()
        assert any("page fault" in e.message for e in logger.filter(source="memory"))

    def test_finish_is_logged(self) -> None:
        """The engine should log when every process is gone."""
        logger = Logger()
        sim = Simulation([Program.of(0, 0)], logger=logger)
        sim.run()
        assert any("finished" in e.message for e in logger.filter(source="engine"))

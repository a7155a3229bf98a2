"""The dashboard refresh loop."""

import logging
import time
from collections.abc import Callable
from typing import TextIO

from rhino.config import MIN_INTERVAL
from rhino.render import render
from rhino.snapshot import SnapshotBuilder
from rhino.terminal import TerminalController

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Synchronous, single-threaded refresh loop.

    Each cycle builds a snapshot, renders it, clears the terminal, writes the
    report and then sleeps for a fixed interval. The interval starts after the
    cycle's work finishes, so the period is work time plus sleep.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        terminal: TerminalController,
        stream: TextIO,
        interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the Dashboard.

        Args:
            builder: Produces one snapshot per cycle.
            terminal: Clears the screen before each report.
            stream: Where reports are written.
            interval: Seconds to sleep after each cycle. Default 1.0s.
            sleep: Sleep function, replaceable in tests.
        """
        self._builder = builder
        self._terminal = terminal
        self._stream = stream
        self._interval = max(MIN_INTERVAL, interval)
        self._sleep = sleep
        self._cycles = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def cycles(self) -> int:
        """Number of completed cycles."""
        return self._cycles

    def run_cycle(self) -> str:
        """Sample, render, clear and write one report. Returns the report."""
        snapshot = self._builder.build()
        # Render before clearing so the screen is blank for as short as possible
        report = render(snapshot)
        self._terminal.clear()
        self._stream.write(report)
        self._stream.flush()
        self._cycles += 1
        return report

    def run(self, max_cycles: int | None = None) -> None:
        """
        Run cycles until an error propagates, or `max_cycles` have completed.

        Raises:
            RhinoError: On a fatal GPU query or terminal failure.
        """
        logger.info("Dashboard started, refreshing every %.1fs", self._interval)
        while max_cycles is None or self._cycles < max_cycles:
            self.run_cycle()
            self._sleep(self._interval)

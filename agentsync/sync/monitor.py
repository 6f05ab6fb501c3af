"""Background drift polling.

A :class:`DriftMonitor` re-runs a drift check on a fixed interval while its
subject is attended. A tick that comes due while the previous check is still
running is skipped, never queued.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from agentsync.sync.drift import DriftReport

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15.0


class DriftMonitor:
    """Polls ``check`` every ``interval`` seconds in a daemon thread.

    Args:
        check: Produces a fresh report; must not raise.
        on_report: Receives every report produced.
        should_check: Gate evaluated before each tick (directory set, agents
            configured, no unsaved edits). Ticks are skipped while it is False.
        interval: Seconds between ticks.
    """

    def __init__(
        self,
        check: Callable[[], DriftReport],
        on_report: Callable[[DriftReport], None],
        should_check: Optional[Callable[[], bool]] = None,
        interval: float = DEFAULT_INTERVAL,
    ):
        self._check = check
        self._on_report = on_report
        self._should_check = should_check or (lambda: True)
        self.interval = interval
        self._stop = threading.Event()
        self._busy = threading.Lock()
        self._thread: threading.Thread | None = None
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="agentsync-drift", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def tick(self) -> DriftReport | None:
        """Run one check now unless one is already running or the gate is closed."""
        if not self._should_check():
            return None
        if not self._busy.acquire(blocking=False):
            self.skipped += 1
            logger.debug("Drift check still running, skipping tick")
            return None
        try:
            report = self._check()
        finally:
            self._busy.release()
        self._on_report(report)
        return report

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Drift monitor tick failed")
            if self._stop.wait(self.interval):
                break

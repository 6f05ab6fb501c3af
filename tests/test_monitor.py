"""Tests for the background drift monitor."""

import threading

from agentsync.sync.drift import DriftReport
from agentsync.sync.monitor import DriftMonitor


def test_tick_reports():
    reports = []
    monitor = DriftMonitor(check=lambda: DriftReport(project="p"), on_report=reports.append)

    report = monitor.tick()

    assert report is not None
    assert reports == [report]


def test_tick_skipped_while_check_running():
    entered = threading.Event()
    release = threading.Event()
    reports = []

    def slow_check():
        entered.set()
        release.wait(5)
        return DriftReport(project="p")

    monitor = DriftMonitor(check=slow_check, on_report=reports.append)
    worker = threading.Thread(target=monitor.tick)
    worker.start()
    assert entered.wait(5)

    assert monitor.tick() is None
    assert monitor.skipped == 1

    release.set()
    worker.join(5)
    assert len(reports) == 1


def test_tick_gated():
    calls = []
    monitor = DriftMonitor(
        check=lambda: calls.append(1) or DriftReport(project="p"),
        on_report=lambda r: None,
        should_check=lambda: False,
    )
    assert monitor.tick() is None
    assert calls == []
    assert monitor.skipped == 0


def test_start_and_stop():
    ticked = threading.Event()

    def check():
        ticked.set()
        return DriftReport(project="p")

    monitor = DriftMonitor(check=check, on_report=lambda r: None, interval=60)
    monitor.start()
    try:
        assert monitor.running
        assert ticked.wait(5)
    finally:
        monitor.stop(timeout=5)
    assert not monitor.running

# polling thread behaviour, with short intervals so tests stay fast

import threading
import time

import pytest

from conftest import bump_mtime, wait_for, write_lines

from tempavg.loader import ChangeResult
from tempavg.watcher import DEFAULT_POLL_INTERVAL, FileWatcher


class BusyLoader:
    # stands in for a loader that is stuck mid-reload
    source = "busy.csv"

    def __init__(self):
        self.checks = 0

    def is_idle(self):
        return False

    def check_changed(self):
        self.checks += 1
        return ChangeResult.UNCHANGED


def test_default_interval_is_five_seconds(loader):
    assert DEFAULT_POLL_INTERVAL == 5.0
    assert FileWatcher(loader)._poll_interval == 5.0


def test_rejects_non_positive_interval(loader):
    with pytest.raises(ValueError):
        FileWatcher(loader, poll_interval=0)


def test_poll_once_skips_while_loader_is_busy():
    busy = BusyLoader()
    watcher = FileWatcher(busy)
    assert watcher.poll_once() is None
    assert busy.checks == 0


def test_idle_guard_can_be_turned_off():
    busy = BusyLoader()
    watcher = FileWatcher(busy, idle_only=False)
    assert watcher.poll_once() is ChangeResult.UNCHANGED
    assert busy.checks == 1


def test_poll_once_reports_deletion(loader, source):
    loader.reload()
    source.unlink()
    assert FileWatcher(loader).poll_once() is ChangeResult.FILE_REMOVED


def test_watcher_picks_up_edits(loader, store, source):
    loader.reload()
    watcher = FileWatcher(loader, poll_interval=0.02)
    watcher.start()
    try:
        assert watcher.running
        write_lines(source, ["Szczecin;2018-05-01;19.5"])
        bump_mtime(source)
        assert wait_for(lambda: store.keys() == ["Szczecin"])
    finally:
        watcher.stop(timeout=2)
    assert not watcher.running
    assert watcher.poll_count > 0


def test_start_and_stop_are_idempotent(loader):
    watcher = FileWatcher(loader, poll_interval=0.02)
    watcher.stop()
    watcher.start()
    watcher.start()
    watcher.stop(timeout=2)
    watcher.stop()
    assert not watcher.running


def test_loop_survives_a_failing_check(loader, monkeypatch):
    calls = []

    def boom():
        calls.append(1)
        raise RuntimeError("stat exploded")

    monkeypatch.setattr(loader, "check_changed", boom)
    watcher = FileWatcher(loader, poll_interval=0.01)
    watcher.start()
    try:
        assert wait_for(lambda: len(calls) >= 3)
    finally:
        watcher.stop(timeout=2)


class SlowLoader:
    # every check takes a while and remembers which thread ran it
    source = "slow.csv"

    def __init__(self, delay):
        self.delay = delay
        self.threads = set()
        self.entered = threading.Event()

    def is_idle(self):
        return True

    def check_changed(self):
        self.threads.add(threading.current_thread())
        self.entered.set()
        time.sleep(self.delay)
        return ChangeResult.UNCHANGED


def test_start_after_timed_out_stop_does_not_run_two_loops():
    slow = SlowLoader(delay=0.3)
    watcher = FileWatcher(slow, poll_interval=0.01)
    assert watcher.start()
    assert slow.entered.wait(2)

    # the loop is still inside check_changed, so the join gives up
    watcher.stop(timeout=0.01)
    assert watcher.running
    assert watcher.stopping
    assert not watcher.start()

    time.sleep(0.5)
    watcher.stop(timeout=2)
    assert not watcher.running
    assert len(slow.threads) == 1

    # once the old loop is gone a fresh one can start
    assert watcher.start()
    assert wait_for(lambda: len(slow.threads) == 2)
    watcher.stop(timeout=2)
    assert not watcher.running

# file watcher: polls the loader for source file changes on a fixed interval
# the watcher owns the polling thread only, change detection and reloading live in CsvLoader
#
#   loader = CsvLoader("data/measurements.csv", store)
#   watcher = FileWatcher(loader, poll_interval=5.0)
#   watcher.start()
#   ...
#   watcher.stop()

from __future__ import annotations
import logging
import threading
from typing import Optional

from .loader import ChangeResult, CsvLoader

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
# heartbeat every 60 polls (~5 min at 5s interval)
HEARTBEAT_INTERVAL = 60

class FileWatcher:
    # runs loader.check_changed() every poll_interval seconds on a daemon thread

    def __init__(
        self,
        loader: CsvLoader,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        idle_only: bool = True,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive (got {poll_interval})")
        self._loader = loader
        self._poll_interval = poll_interval
        # skip a tick while a reload is running instead of piling up checks
        self._idle_only = idle_only
        # each run gets its own event so stopping one loop can never be undone by the next start()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._poll_count = 0

    @property
    def loader(self) -> CsvLoader:
        return self._loader

    @property
    def poll_count(self) -> int:
        return self._poll_count

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopping(self) -> bool:
        # stop() was asked for but the loop is still inside a check
        return self.running and self._stop_event.is_set()

    def start(self) -> bool:
        # returns False when a loop is already running or a stopped one has not exited yet
        if self.stopping:
            logger.warning(
                "file_watcher_start_refused_still_stopping",
                extra={"file.path": str(self._loader.source)},
            )
            return False
        if self.running:
            return False
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._poll_loop,
            args=(stop_event,),
            name="tempavg-file-watcher",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "file_watcher_started",
            extra={
                "file.path": str(self._loader.source),
                "poll.interval": self._poll_interval,
            },
        )
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            # keep the reference so start() knows the old loop is still around
            logger.warning("file_watcher_stop_timed_out", extra={"stop.timeout": timeout})
            return
        self._thread = None
        logger.info("file_watcher_stopped", extra={"poll.count": self._poll_count})

    def poll_once(self) -> Optional[ChangeResult]:
        # a single tick, None when it was skipped because a reload is running
        if self._idle_only and not self._loader.is_idle():
            logger.debug("file_watcher_tick_skipped_busy")
            return None
        result = self._loader.check_changed()
        if result is not ChangeResult.UNCHANGED:
            logger.debug("file_watcher_change", extra={"change": result.value})
        return result

    def _poll_loop(self, stop_event: threading.Event) -> None:
        # wait() doubles as the sleep and returns early once stop() is called
        while not stop_event.wait(self._poll_interval):
            try:
                self._poll_count += 1
                if self._poll_count % HEARTBEAT_INTERVAL == 0:
                    logger.info(
                        "file_watcher_heartbeat",
                        extra={
                            "poll.count": self._poll_count,
                            "file.path": str(self._loader.source),
                        },
                    )
                self.poll_once()
            except Exception as e:
                logger.error("file_watcher_check_error", extra={"error.message": str(e)})

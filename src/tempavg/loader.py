# orchestrates a full reload of the source file into the store
# owns the reload guard and the last seen modification time, nothing else mutates them
#
# state machine: IDLE -> RELOADING -> IDLE. a reload requested while another is in
# flight is dropped, not queued. failures are logged and never raised to callers,
# they only affect how fresh the served data is.

from __future__ import annotations
import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from .aggregator import aggregate
from .errors import MalformedRecordError, SourceUnavailableError
from .models import CityAggregates, Record
from .parser import parse_lines
from .store import TemperatureStore

logger = logging.getLogger(__name__)

class LoaderState(enum.Enum):
    IDLE = "idle"
    RELOADING = "reloading"

class ChangeResult(enum.Enum):
    RELOAD_TRIGGERED = "reload_triggered"
    UNCHANGED = "unchanged"
    FILE_REMOVED = "file_removed"

@dataclass(frozen=True)
class SkippedLine:
    line_number: Optional[int]
    reason: str

@dataclass
class ReloadReport:
    # what one reload pass did, returned to whoever asked for it and logged
    path: str
    file_present: bool = False
    cities: int = 0
    records: int = 0
    skipped: List[SkippedLine] = field(default_factory=list)
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

class CsvLoader:
    def __init__(
        self,
        source: Union[str, Path],
        store: TemperatureStore,
        skip_malformed: bool = False,
        atomic_swap: bool = False,
        encoding: str = "utf-8",
    ):
        self.source = Path(source)
        self.store = store
        # abort the pass on the first bad line unless told to skip and keep going
        self.skip_malformed = skip_malformed
        # swap a fully built result set in instead of clearing first
        self.atomic_swap = atomic_swap
        self.encoding = encoding

        self._guard = threading.Lock()
        self._state = LoaderState.IDLE
        self._last_modified = 0  # ns since epoch, 0 means "no file"

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def last_modified(self) -> int:
        return self._last_modified

    def is_idle(self) -> bool:
        return self._state is LoaderState.IDLE

    def reload(self) -> Optional[ReloadReport]:
        # non-blocking: a second caller while a reload runs is a no-op
        if not self._guard.acquire(blocking=False):
            logger.debug("reload_skipped_in_flight", extra={"file.path": str(self.source)})
            return None
        try:
            return self._reload_locked()
        finally:
            self._guard.release()

    def check_changed(self) -> ChangeResult:
        if not self._guard.acquire(blocking=False):
            # the running reload records a fresh timestamp when it ends
            return ChangeResult.UNCHANGED
        try:
            current = self._observe_mtime()
            if current:
                if current > self._last_modified:
                    logger.info(
                        "source_file_modified",
                        extra={"file.path": str(self.source), "file.mtime_ns": current},
                    )
                    self._reload_locked()
                    return ChangeResult.RELOAD_TRIGGERED
            elif self._last_modified > 0:
                # keep serving the last good data, just forget the timestamp
                logger.info("source_file_deleted", extra={"file.path": str(self.source)})
                self._last_modified = 0
                return ChangeResult.FILE_REMOVED
            return ChangeResult.UNCHANGED
        finally:
            self._guard.release()

    def _reload_locked(self) -> ReloadReport:
        self._state = LoaderState.RELOADING
        report = ReloadReport(path=str(self.source))
        started = time.perf_counter()
        # stamp taken before reading so an edit made mid-pass is picked up by the next check
        observed = self._observe_mtime()
        try:
            if not self.atomic_swap:
                self.store.clear()
            if observed:
                report.file_present = True
                logger.info("reload_started", extra={"file.path": str(self.source)})
                results = self._read_and_aggregate(report)
                self._publish(results)
                report.cities = len(results)
            elif self.atomic_swap:
                self.store.replace({})
        except SourceUnavailableError as e:
            report.error = str(e)
            logger.error("reload_source_unavailable", extra={"error.message": str(e)})
        except MalformedRecordError as e:
            report.error = str(e)
            logger.error(
                "reload_aborted_malformed_record",
                extra={"error.message": str(e), "file.line": e.line_number},
            )
        finally:
            self._last_modified = observed
            self._state = LoaderState.IDLE
            report.duration = time.perf_counter() - started

        if report.ok and report.file_present:
            logger.info(
                "reload_finished",
                extra={
                    "reload.cities": report.cities,
                    "reload.records": report.records,
                    "reload.skipped": len(report.skipped),
                    "reload.seconds": round(report.duration, 3),
                },
            )
        return report

    def _publish(self, results: Dict[str, CityAggregates]) -> None:
        if self.atomic_swap:
            self.store.replace(results)
            return
        # one put per city, each city's list lands whole
        for city, aggregates in results.items():
            self.store.put(city, aggregates)

    def _read_and_aggregate(self, report: ReloadReport) -> Dict[str, CityAggregates]:
        try:
            with self.source.open("r", encoding=self.encoding) as fh:
                return aggregate(self._records(fh, report))
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailableError(self.source, str(exc)) from exc

    def _records(self, lines: Iterable[str], report: ReloadReport) -> Iterator[Record]:
        on_error = self._skip_line(report) if self.skip_malformed else None
        for record in parse_lines(lines, on_error=on_error):
            report.records += 1
            yield record

    def _skip_line(self, report: ReloadReport) -> Callable[[MalformedRecordError], None]:
        def skip(e: MalformedRecordError) -> None:
            report.skipped.append(SkippedLine(e.line_number, e.reason))
            logger.warning(
                "malformed_record_skipped",
                extra={"file.line": e.line_number, "error.message": e.reason},
            )
        return skip

    def _observe_mtime(self) -> int:
        try:
            return self.source.stat().st_mtime_ns
        except FileNotFoundError:
            return 0
        except OSError as exc:
            # the file may still be there (permission denied and the like), so it is not
            # reported as removed; keep what we last recorded and let the next tick retry
            logger.warning(
                "source_stat_failed",
                extra={"file.path": str(self.source), "error.message": str(exc)},
            )
            return self._last_modified

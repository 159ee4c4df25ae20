# orchestration and business rules.
# lookup() is the only query callers need; TemperatureService wires one store, loader
# and watcher together and ties them to process start/stop

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from .config import Settings
from .errors import CityNotFoundError, InvalidCityError
from .loader import CsvLoader, ReloadReport
from .models import CityResult
from .store import TemperatureStore
from .watcher import FileWatcher

logger = logging.getLogger(__name__)

def lookup(store: TemperatureStore, city: Optional[str]) -> CityResult:
    # blank input is rejected before touching the store, so it never looks like NotFound
    if city is None or not city.strip():
        raise InvalidCityError()
    # keys are matched exactly as they appear in the file, no trimming or case folding
    aggregates = store.get(city)
    if aggregates is None:
        raise CityNotFoundError(city)
    return CityResult(city=city, data=aggregates)

def lookup_many(store: TemperatureStore, cities: Iterable[str]) -> Dict[str, Optional[CityResult]]:
    # missing cities map to None so a batch is not failed by one unknown name
    results: Dict[str, Optional[CityResult]] = {}
    for city in cities:
        try:
            results[city] = lookup(store, city)
        except CityNotFoundError:
            results[city] = None
    return results

class TemperatureService:
    def __init__(self, settings: Settings, store: Optional[TemperatureStore] = None):
        self.settings = settings
        self.store = store if store is not None else TemperatureStore()
        self.loader = CsvLoader(
            settings.source_file,
            self.store,
            skip_malformed=settings.skip_malformed,
            atomic_swap=settings.atomic_swap,
        )
        self.watcher = FileWatcher(
            self.loader,
            poll_interval=settings.poll_interval,
            idle_only=settings.watch_idle_only,
        )

    def start(self, watch: bool = True) -> Optional[ReloadReport]:
        # first load happens synchronously so the store is warm before serving
        report = self.loader.reload()
        if report is not None and not report.file_present:
            logger.warning(
                "source_file_missing_at_startup",
                extra={"file.path": str(self.settings.source_file)},
            )
        if watch:
            self.watcher.start()
        return report

    def stop(self) -> None:
        self.watcher.stop()
        self.store.clear()
        logger.info("temperature_service_stopped")

    def lookup(self, city: Optional[str]) -> CityResult:
        return lookup(self.store, city)

    def cities(self) -> List[str]:
        return self.store.keys()

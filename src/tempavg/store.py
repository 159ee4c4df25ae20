# in-memory lookup store: city -> ordered yearly averages
# one instance is built at startup and handed to the loader and the query side,
# every operation holds the lock for a single dict operation only so readers
# never wait on a reload's file i/o

from __future__ import annotations
import logging
import threading
from typing import Dict, List, Mapping, Optional

from .models import CityAggregates

logger = logging.getLogger(__name__)

class TemperatureStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, CityAggregates] = {}

    def get(self, city: str) -> Optional[CityAggregates]:
        with self._lock:
            return self._data.get(city)

    def put(self, city: str, aggregates: CityAggregates) -> None:
        # tuples are immutable, so a reader holding the old value is never affected
        with self._lock:
            self._data[city] = tuple(aggregates)

    def replace(self, results: Mapping[str, CityAggregates]) -> None:
        # build off to the side, then swap the reference in one step
        fresh = {city: tuple(aggs) for city, aggs in results.items()}
        with self._lock:
            self._data = fresh

    def clear(self) -> None:
        with self._lock:
            self._data = {}
        logger.debug("store_cleared")

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, city: object) -> bool:
        with self._lock:
            return city in self._data

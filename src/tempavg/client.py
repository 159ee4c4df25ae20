# OOP boundary for talking to a running tempavg server
# all http/retries live here, so callers only see CityResult values and our error types
# use a thread-local session per ThreadPoolExecutor worker

from __future__ import annotations
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import CityNotFoundError, InvalidCityError, TemperatureError
from .models import CityResult, YearlyAverage

class TemperatureAPIError(TemperatureError):
    # transport or protocol failure, as opposed to a city that is simply unknown
    pass

class TemperatureAPIClient:
    DEFAULT_BASE_URL = "http://127.0.0.1:8080"
    ANNUAL_AVERAGE_PATH = "/city/temperature/annual/average"
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        user_agent: str = "tempavg-client/0.1",
    ):
        self.base_url = (base_url or os.getenv("TEMPAVG_URL") or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent

        # each worker thread lazily obtains its own session through _session()
        self._local = threading.local()

        # retry policy for transient network or server issues, 4xx answers are final
        self._retry = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
        )

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})
        adapter = HTTPAdapter(max_retries=self._retry)
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
        return sess

    def get_annual_averages(self, city: str) -> CityResult:
        # same blank check as the server so we do not spend a round trip on it
        if not city or not city.strip():
            raise InvalidCityError()

        url = self.base_url + self.ANNUAL_AVERAGE_PATH
        try:
            resp = self._session().get(url, params={"city": city}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TemperatureAPIError(f"Request error for {city!r}: {exc}") from exc

        if resp.status_code == 404:
            raise CityNotFoundError(city)
        if resp.status_code == 400:
            raise InvalidCityError()
        if resp.status_code >= 400:
            snippet = (resp.text or "")[:300]
            raise TemperatureAPIError(f"HTTP {resp.status_code} for {city!r}. Body: {snippet}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise TemperatureAPIError(f"Invalid JSON for {city!r}: {exc}") from exc

        return parse_city_result(data)

def parse_city_result(data) -> CityResult:
    # server shape: {"city": ..., "data": [{"year": ..., "averageTemperature": ...}]}
    try:
        return CityResult(
            city=data["city"],
            data=tuple(
                YearlyAverage(year=str(d["year"]), average_temperature=float(d["averageTemperature"]))
                for d in data["data"]
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TemperatureAPIError(f"Unexpected API shape: {exc}") from exc

def fetch_all(client: TemperatureAPIClient, cities: Iterable[str], max_workers: int = 4) -> Dict[str, CityResult]:
    # one request per city on a small pool, unknown cities are left out of the result
    results: Dict[str, CityResult] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(client.get_annual_averages, city): city for city in cities}
        for fut in as_completed(futures):
            try:
                results[futures[fut]] = fut.result()
            except CityNotFoundError:
                continue
    return results

def missing(cities: Iterable[str], results: Dict[str, CityResult]) -> List[str]:
    return [c for c in cities if c not in results]

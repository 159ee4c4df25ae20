# error taxonomy shared by the core, the http surface and the cli
# only InvalidCityError and CityNotFoundError ever reach a lookup caller,
# reload failures are logged by the loader and stay in the background

from __future__ import annotations
from pathlib import Path
from typing import Optional, Union

class TemperatureError(RuntimeError):
    # common base so callers can catch everything coming from this package
    pass

class InvalidCityError(TemperatureError):
    def __init__(self, message: str = "City cannot be null or empty"):
        super().__init__(message)

class CityNotFoundError(TemperatureError):
    def __init__(self, city: str):
        self.city = city
        super().__init__(f"Data for city {city} was not found")

class MalformedRecordError(TemperatureError):
    # line_number is 1-based and None when the line was parsed on its own
    def __init__(self, reason: str, line: str, line_number: Optional[int] = None):
        self.reason = reason
        self.line = line
        self.line_number = line_number
        where = f"line {line_number}" if line_number is not None else "line"
        super().__init__(f"Malformed {where}: {reason} ({line[:80]!r})")

class SourceUnavailableError(TemperatureError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        super().__init__(f"Cannot read {self.path}: {reason}")

class ConfigError(TemperatureError):
    pass

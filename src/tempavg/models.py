# models and tiny stats helpers to keep data shapes explicit and reusable across the app

from __future__ import annotations
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Tuple

@dataclass(frozen=True)
class Record:
    # one parsed line of the source file, only lives during a reload pass
    city: str
    year: str
    temperature: float

@dataclass(frozen=True)
class YearlyAverage:
    # immutable value object for one city in one year
    year: str
    average_temperature: float

    def to_dict(self) -> Dict[str, object]:
        # camelCase keys are part of the public http payload
        return {"year": self.year, "averageTemperature": self.average_temperature}

# ordered by the first time each year shows up in the file, never sorted
CityAggregates = Tuple[YearlyAverage, ...]

@dataclass(frozen=True)
class CityResult:
    # output value object used by the api, the client and the cli
    city: str
    data: CityAggregates

    def to_dict(self) -> Dict[str, object]:
        return {"city": self.city, "data": [y.to_dict() for y in self.data]}

def mean(values: List[float]) -> float:
    # exact sum so the result does not depend on the order values arrive in
    # returns NaN on empty input to avoid zero division
    if not values:
        return float("nan")
    n = len(values)
    try:
        return math.fsum(values) / n
    except OverflowError:
        # finite inputs whose sum passes the float range, e.g. 1e308 + 1e308.
        # scaling each value down first keeps the sum in range and the mean itself always fits
        return math.fsum(v / (2 * n) for v in values) * 2

_TWO_PLACES = Decimal("0.01")
# from 2**52 up a double has no fractional bits left to round
_NO_FRACTION = float(2 ** 52)

def round_half_up(value: float, places: Decimal = _TWO_PLACES) -> float:
    # round() is banker's rounding on binary floats, go through the shortest decimal repr instead
    if not math.isfinite(value) or abs(value) >= _NO_FRACTION:
        return value
    return float(Decimal(repr(value)).quantize(places, rounding=ROUND_HALF_UP))

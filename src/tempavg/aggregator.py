# group records by city and year and reduce each group to a rounded mean
# plain dicts keep insertion order, so cities and each city's years come out in
# first-seen order; callers rely on that, it is never sorted by year

from __future__ import annotations
from typing import Dict, Iterable, List

from .models import CityAggregates, Record, YearlyAverage, mean, round_half_up

def group_temperatures(records: Iterable[Record]) -> Dict[str, Dict[str, List[float]]]:
    grouped: Dict[str, Dict[str, List[float]]] = {}
    for record in records:
        grouped.setdefault(record.city, {}).setdefault(record.year, []).append(
            record.temperature
        )
    return grouped

def average_by_year(years: Dict[str, List[float]]) -> CityAggregates:
    # a group only exists because a record created it, so it is never empty
    return tuple(
        YearlyAverage(year=year, average_temperature=round_half_up(mean(temps)))
        for year, temps in years.items()
    )

def aggregate(records: Iterable[Record]) -> Dict[str, CityAggregates]:
    return {
        city: average_by_year(years)
        for city, years in group_temperatures(records).items()
    }

# pure line parsing: "city;date;temperature" -> Record
# no shared state, safe to call from any thread

from __future__ import annotations
import math
from typing import Callable, Iterable, Iterator, Optional

from .errors import MalformedRecordError
from .models import Record

FIELD_SEPARATOR = ";"
DATE_SEPARATOR = "-"
FIELD_COUNT = 3

def parse_line(line: str, line_number: Optional[int] = None) -> Record:
    raw = line.rstrip("\r\n")
    parts = raw.split(FIELD_SEPARATOR)
    if len(parts) != FIELD_COUNT:
        raise MalformedRecordError(
            f"expected {FIELD_COUNT} fields, got {len(parts)}", raw, line_number
        )

    city, date, temperature = parts
    # only the leading segment of the date is kept, "2019-01-01" -> "2019"
    year = date.split(DATE_SEPARATOR)[0]

    try:
        value = float(temperature)
    except ValueError as exc:
        raise MalformedRecordError(
            f"temperature {temperature!r} is not a number", raw, line_number
        ) from exc

    # float() also takes "nan", "inf" and "1_0", none of which is a plain decimal reading
    if "_" in temperature or not math.isfinite(value):
        raise MalformedRecordError(
            f"temperature {temperature!r} is not a finite decimal number", raw, line_number
        )

    return Record(city=city, year=year, temperature=value)

def parse_lines(
    lines: Iterable[str],
    on_error: Optional[Callable[[MalformedRecordError], None]] = None,
) -> Iterator[Record]:
    # lazy, lines are numbered from 1
    # without on_error the first bad line ends the stream with its error,
    # with it the bad line is handed over and parsing carries on
    for number, line in enumerate(lines, start=1):
        try:
            record = parse_line(line, number)
        except MalformedRecordError as e:
            if on_error is None:
                raise
            on_error(e)
            continue
        yield record

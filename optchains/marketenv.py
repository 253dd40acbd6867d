"""Risk free rates from a default or a Treasury par yield curve file."""

from __future__ import annotations

import logging
import math
import re
from bisect import bisect_right
from collections.abc import Mapping
from datetime import datetime, timedelta
from os import PathLike
from pathlib import Path
from typing import Optional, TypeVar, Union

from optchains.timestamps import (
    NASDAQ_CLOSE,
    UTC,
    ExchangeClose,
    Timestamp,
    make_timestamp,
    serialize_timestamp,
)

_log = logging.getLogger(__name__)

SECONDS_PER_MONTH = 2_629_746
SECONDS_PER_YEAR = 31_556_952
DEFAULT_TOLERANCE = timedelta(seconds=1)

_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

Curve = dict[Timestamp, float]
YieldCurveMap = dict[Timestamp, Curve]
_V = TypeVar("_V")


def _leading_float(text: str) -> float:
    """Parse the number at the start of ``text``, ignoring what follows it."""
    match = _LEADING_FLOAT.match(text)
    if match is None:
        raise ValueError(f"No number at start of {text!r}")
    return float(match.group(1))


def _parse_tenor(column: str) -> timedelta:
    if column.startswith('"'):
        column = column[1:]
    if column.endswith('"'):
        column = column[:-1]
    if "Mo" in column:
        return timedelta(seconds=int(_leading_float(column) * SECONDS_PER_MONTH))
    if "Yr" in column:
        return timedelta(seconds=int(_leading_float(column) * SECONDS_PER_YEAR))
    _log.warning("Unknown tenor column: %s", column)
    return timedelta(0)


def read_yield_curve_csv(path: Union[str, PathLike]) -> YieldCurveMap:
    """Read a Treasury daily par yield curve CSV.

    Returns curve dates (midnight UTC) mapped to curves, each keyed by its
    maturity time (curve date plus tenor) with the par rate in percent.
    A missing or empty file gives an empty map; unparsable dates skip the
    row and unparsable rates skip the field.
    """
    file_path = Path(path)
    if not file_path.exists():
        _log.error("Yield curve file does not exist: %s", path)
        return {}
    try:
        with file_path.open(encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        _log.error("Failed to open yield curve file: %s (%s)", path, exc)
        return {}
    if not lines:
        _log.error("Yield curve file is empty: %s", path)
        return {}

    header, *rows = lines
    tenors = [_parse_tenor(column) for column in header.split(",")[1:]]

    yield_curves: YieldCurveMap = {}
    for line in rows:
        if not line:
            continue
        date_text, *fields = line.split(",")
        try:
            day = datetime.strptime(date_text.strip(), "%m/%d/%Y")
        except ValueError:
            _log.warning("Failed to parse date: %s", date_text)
            continue
        date_ts = make_timestamp(day.year, day.month, day.day, 0, 0, 0, UTC)
        curve: Curve = {}
        for tenor, rate_text in zip(tenors, fields):
            try:
                curve[date_ts + tenor] = _leading_float(rate_text)
            except ValueError as exc:
                _log.debug("Failed to parse rate: '%s', underlying error: %s", rate_text, exc)
        yield_curves[date_ts] = dict(sorted(curve.items()))
    return dict(sorted(yield_curves.items()))


def next_in_time_range(
    ts: Timestamp,
    mapping: Mapping[Timestamp, _V],
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> Optional[Timestamp]:
    """The key best matching ``ts``, or None for an empty mapping.

    That is the latest key not after ``ts`` plus ``tolerance``; if every key
    is later, the earliest key.
    """
    if not mapping:
        return None
    keys = sorted(mapping)
    index = bisect_right(keys, ts + tolerance)
    return keys[index - 1] if index > 0 else keys[0]


class MarketEnvironment:
    """Market parameters: a default risk free rate and an optional yield curve."""

    def __init__(
        self,
        default_rate: float,
        exchange_close: ExchangeClose = NASDAQ_CLOSE,
        yield_curve_csv: Optional[Union[str, PathLike]] = None,
    ) -> None:
        self.default_rate = default_rate
        self.exchange_close = exchange_close
        self.yield_curves: YieldCurveMap = (
            read_yield_curve_csv(yield_curve_csv) if yield_curve_csv else {}
        )

    def risk_free_rate(self, valuation_time: Timestamp, expiry_time: Timestamp) -> float:
        """Continuously compounded rate for the span from valuation to expiry.

        Without a yield curve the default rate is returned. Otherwise the
        curve nearest the valuation time is looked up at its own date shifted
        by the tenor, and the semiannual par rate converted.
        """
        if not self.yield_curves:
            return self.default_rate
        if expiry_time <= valuation_time:
            raise ValueError(
                f"Expiry time {serialize_timestamp(expiry_time)} not after "
                f"valuation time {serialize_timestamp(valuation_time)}"
            )
        curve_time = next_in_time_range(valuation_time, self.yield_curves)
        if curve_time is None:
            _log.error(
                "Found no valid entry in yield curve list for valuation time %s",
                serialize_timestamp(valuation_time),
            )
            return self.default_rate
        curve = self.yield_curves[curve_time]
        tenor = expiry_time - valuation_time
        lookup_time = curve_time + tenor
        point = next_in_time_range(lookup_time, curve)
        if point is None:
            _log.error(
                "Found no valid entry in best yield curve for lookup time %s shifted "
                "from expiry time %s",
                serialize_timestamp(lookup_time),
                serialize_timestamp(expiry_time),
            )
            return self.default_rate
        semiannual = curve[point] / 100.0
        return 2.0 * math.log(1.0 + semiannual / 2.0)
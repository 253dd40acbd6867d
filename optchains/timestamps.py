"""Nanosecond timestamps for market data and exchange close times."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as _date
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC = "UTC"
NYC = "America/New_York"

_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MICRO = 1_000
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)


def _zone(name: str) -> tzinfo:
    if name in ("UTC", "Z", "Etc/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone {name!r}") from exc


def _timedelta_to_nanos(delta: timedelta) -> int:
    return (delta // _ONE_MICROSECOND) * _NANOS_PER_MICRO


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time as nanoseconds since the Unix epoch (UTC).

    The default value, the epoch itself, stands for "no time".
    """

    nanos: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.nanos, int):
            raise TypeError("Timestamp nanos must be an integer")
        if self.nanos < 0:
            raise ValueError(f"Timestamp before the epoch: {self.nanos} ns")

    @classmethod
    def from_datetime(cls, moment: datetime) -> Timestamp:
        """Build a timestamp from an aware datetime; naive ones are taken as UTC."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return cls(_timedelta_to_nanos(moment - _EPOCH))

    def to_datetime(self, time_zone: str = UTC) -> datetime:
        """Return an aware datetime in the given zone, truncated to microseconds."""
        seconds, frac = divmod(self.nanos, _NANOS_PER_SECOND)
        moment = _EPOCH + timedelta(seconds=seconds, microseconds=frac // _NANOS_PER_MICRO)
        return moment.astimezone(_zone(time_zone))

    def __add__(self, other: object) -> Timestamp:
        if isinstance(other, timedelta):
            return Timestamp(self.nanos + _timedelta_to_nanos(other))
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: object):
        if isinstance(other, Timestamp):
            return timedelta(microseconds=(self.nanos - other.nanos) // _NANOS_PER_MICRO)
        if isinstance(other, timedelta):
            return Timestamp(self.nanos - _timedelta_to_nanos(other))
        return NotImplemented

    def __str__(self) -> str:
        return serialize_timestamp(self)


@dataclass(frozen=True)
class ExchangeClose:
    """Local closing time of an exchange."""

    hour: int
    minute: int
    time_zone: str = NYC


NASDAQ_CLOSE = ExchangeClose(16, 0, NYC)


def serialize_timestamp(ts: Timestamp) -> str:
    """Render a timestamp as ``yyyy-mm-dd HH:MM:SS.nnnnnnnnnZ``."""
    seconds, frac = divmod(ts.nanos, _NANOS_PER_SECOND)
    moment = _EPOCH + timedelta(seconds=seconds)
    return f"{moment:%Y-%m-%d %H:%M:%S}.{frac:09d}Z"


def make_timestamp(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    time_zone: str = UTC,
) -> Timestamp:
    """Build a timestamp from wall-clock fields in the given time zone."""
    moment = datetime(year, month, day, hour, minute, second, tzinfo=_zone(time_zone))
    return Timestamp.from_datetime(moment)


def make_timestamp_zulu(date: str | _date) -> Timestamp:
    """Midnight UTC of a ``yyyy-mm-dd`` date string or a date."""
    if isinstance(date, datetime):
        day = date.date()
    elif isinstance(date, _date):
        day = date
    else:
        try:
            day = _date.fromisoformat(date.strip())
        except (AttributeError, ValueError) as exc:
            raise ValueError(f"Invalid date {date!r}, expected yyyy-mm-dd") from exc
    return make_timestamp(day.year, day.month, day.day, 0, 0, 0, UTC)
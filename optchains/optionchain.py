"""Option chains built from consolidated best bid/offer messages."""

from __future__ import annotations

import logging
import math
from bisect import bisect_right
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from statistics import fmean
from typing import Callable

from optchains.instruments import (
    OptionInstruments,
    make_strike_key_to_instrument_id_map,
)
from optchains.osi import parse_osi, strike_from_key, strike_to_key
from optchains.timestamps import ExchangeClose, Timestamp, make_timestamp

_log = logging.getLogger(__name__)

PRICE_SCALING = 1_000_000_000
_NANOS_PER_MICRO = 1_000
_SECONDS_IN_YEAR = 365.25 * 24 * 60 * 60

PriceWeight = tuple[float, int]
RecordMap = dict[str, "Record"]
PutCallRecordMap = tuple[RecordMap, RecordMap]
RecordTimeline = dict[Timestamp, PutCallRecordMap]
CbboMap = dict[str, list["CbboMsg"]]

_NO_PRICE: PriceWeight = (math.nan, 0)


@dataclass(frozen=True)
class BidAskLevel:
    """One consolidated bid/ask level with fixed-point prices."""

    bid_px: int = 0
    ask_px: int = 0
    bid_sz: int = 0
    ask_sz: int = 0


@dataclass(frozen=True)
class CbboMsg:
    """A consolidated best bid/offer message for one instrument."""

    instrument_id: int
    ts_event: Timestamp = Timestamp()
    ts_recv: Timestamp = Timestamp()
    price: int = 0
    size: int = 0
    levels: tuple[BidAskLevel, ...] = field(default_factory=lambda: (BidAskLevel(),))


def _side_valid(side: PriceWeight) -> bool:
    price, size = side
    return size > 0 and math.isfinite(price)


@dataclass(frozen=True)
class Record:
    """Last trade and best bid/ask of one option; prices with their sizes."""

    price: PriceWeight = _NO_PRICE
    price_time: Timestamp = Timestamp()
    ask: PriceWeight = _NO_PRICE
    bid: PriceWeight = _NO_PRICE
    recv_time: Timestamp = Timestamp()
    comment: str = ""

    @classmethod
    def from_cbbo(cls, msg: CbboMsg) -> Record:
        """Build a record from the first level of a CBBO message."""
        level = msg.levels[0] if msg.levels else BidAskLevel()
        return cls(
            price=(msg.price / PRICE_SCALING, msg.size),
            price_time=msg.ts_event,
            ask=(level.ask_px / PRICE_SCALING, level.ask_sz),
            bid=(level.bid_px / PRICE_SCALING, level.bid_sz),
            recv_time=msg.ts_recv,
        )

    def bid_ask_valid(self) -> bool:
        """Both bid and ask carry a price and a size."""
        return _side_valid(self.bid) and _side_valid(self.ask)

    def any_bid_ask_valid(self) -> bool:
        """At least one of bid and ask carries a price and a size."""
        return _side_valid(self.bid) or _side_valid(self.ask)

    def mid_price(self) -> float:
        """Midpoint of bid and ask prices."""
        return (self.bid[0] + self.ask[0]) / 2.0

    def is_empty(self) -> bool:
        """True for a record holding no market data at all."""
        return (
            math.isnan(self.price[0])
            and math.isnan(self.ask[0])
            and math.isnan(self.bid[0])
            and self.price_time == Timestamp()
            and self.recv_time == Timestamp()
        )


def _should_replace(prev: Record, candidate: Record) -> bool:
    newer = candidate.recv_time > prev.recv_time
    return (candidate.bid_ask_valid() and (not prev.bid_ask_valid() or newer)) or (
        candidate.any_bid_ask_valid() and (not prev.any_bid_ask_valid() or newer)
    )


def _sorted_dict(mapping: Mapping) -> dict:
    return {key: mapping[key] for key in sorted(mapping)}


def map_cbbo_msgs_to_instruments(
    cbbo_msgs: Iterable[CbboMsg], id_to_osi: Mapping[str, str]
) -> CbboMap:
    """Group messages by instrument ID, keeping only mapped instruments."""
    grouped: CbboMap = {}
    for msg in cbbo_msgs:
        instrument_id = str(msg.instrument_id)
        if instrument_id in id_to_osi:
            grouped.setdefault(instrument_id, []).append(msg)
    return _sorted_dict(grouped)


def build_record_timeline(
    cbbo_map: Mapping[str, Sequence[CbboMsg]],
    id_to_osi: Mapping[str, str],
    slot_window: timedelta,
) -> RecordTimeline:
    """Sort quotes into time slots of ``slot_window``, keyed by strike key per side."""
    window_nanos = (slot_window // timedelta(microseconds=1)) * _NANOS_PER_MICRO
    if window_nanos <= 0:
        raise ValueError("Slot window must be positive")
    timeline: dict[Timestamp, PutCallRecordMap] = {}
    for instrument_id in sorted(cbbo_map):
        osi = id_to_osi.get(instrument_id)
        if osi is None:
            _log.error(
                "Missing OSI mapping in build_record_timeline for instrument %s",
                instrument_id,
            )
            continue
        option = parse_osi(osi)
        for msg in cbbo_map[instrument_id]:
            record = Record.from_cbbo(msg)
            if not record.any_bid_ask_valid():
                continue
            slot = Timestamp((record.recv_time.nanos // window_nanos) * window_nanos)
            puts, calls = timeline.setdefault(slot, ({}, {}))
            side = puts if option.is_put else calls
            prev = side.get(option.strike_key)
            if prev is None or _should_replace(prev, record):
                side[option.strike_key] = record
    return {
        slot: (_sorted_dict(timeline[slot][0]), _sorted_dict(timeline[slot][1]))
        for slot in sorted(timeline)
    }


def _merge_best(target: RecordMap, source: Mapping[str, Record]) -> None:
    for key, record in source.items():
        prev = target.get(key)
        if prev is None or _should_replace(prev, record):
            target[key] = record


def map_latest_best_in_timeline(timeline: Mapping[Timestamp, PutCallRecordMap]) -> PutCallRecordMap:
    """Collapse a timeline, oldest slot first, keeping the newest or most complete record."""
    puts: RecordMap = {}
    calls: RecordMap = {}
    for slot in sorted(timeline):
        slot_puts, slot_calls = timeline[slot]
        _merge_best(puts, slot_puts)
        _merge_best(calls, slot_calls)
    return _sorted_dict(puts), _sorted_dict(calls)


def find_instruments_missing_cbbo(
    cbbo_map: Mapping[str, Sequence[CbboMsg]], id_to_osi: Mapping[str, str]
) -> list[str]:
    """Instrument IDs without any message having both bid and ask sizes."""
    missing: list[str] = []
    for instrument_id in sorted(id_to_osi):
        msgs = cbbo_map.get(instrument_id)
        if msgs is None or not any(
            level.ask_sz > 0 and level.bid_sz > 0 for msg in msgs for level in msg.levels
        ):
            missing.append(instrument_id)
    return missing


@dataclass
class OptionChain:
    """Put and call records by strike key for one underlier, date and expiry."""

    underlier: str = ""
    valuation_date: str = ""
    expiry_date: str = ""
    puts: RecordMap = field(default_factory=dict)
    calls: RecordMap = field(default_factory=dict)
    missing_instrument_id_to_osi: dict[str, str] = field(default_factory=dict)

    def chain_time(self) -> Timestamp:
        """Latest receive time over all records; the epoch if there are none."""
        times = [record.recv_time for record in (*self.puts.values(), *self.calls.values())]
        return max(times, default=Timestamp())

    def expiry_time(self, exchange_close: ExchangeClose) -> Timestamp:
        """Exchange close on the expiry date."""
        try:
            year = int(self.expiry_date[0:4])
            month = int(self.expiry_date[5:7])
            day = int(self.expiry_date[8:10])
        except ValueError as exc:
            raise ValueError(f"Invalid expiry date {self.expiry_date!r}") from exc
        return make_timestamp(
            year, month, day, exchange_close.hour, exchange_close.minute, 0,
            exchange_close.time_zone,
        )

    def parity_rates(self, discount: float, relaxed: bool = False) -> dict[str, float]:
        """Underlier price implied by put-call parity per strike key.

        Only strikes where both put and call have valid quotes take part;
        ``relaxed`` accepts quotes with one valid side.
        """
        valid: Callable[[Record], bool] = (
            Record.any_bid_ask_valid if relaxed else Record.bid_ask_valid
        )
        rates: dict[str, float] = {}
        for key in sorted(self.puts.keys() & self.calls.keys()):
            put, call = self.puts[key], self.calls[key]
            if valid(put) and valid(call):
                rates[key] = call.mid_price() - put.mid_price() + strike_from_key(key) * discount
        return rates

    def _parity_rate_near_mean(self, discount: float, relaxed: bool) -> float:
        rates = self.parity_rates(discount, relaxed)
        if not rates:
            raise ValueError("No valid parity rates found.")
        keys = list(rates)
        upper = bisect_right(keys, strike_to_key(fmean(rates.values())))
        lower = max(upper - 2, 0)
        upper = min(upper + 2, len(keys))
        window = [rates[key] for key in keys[lower:upper]]
        if not window:
            raise ValueError("No valid parity rates found.")
        return fmean(window)

    def parity_rate(self, risk_free_rate: float, exchange_close: ExchangeClose) -> float:
        """Underlier price consistent with the put and call records.

        Averages the parity rates of the strikes around the overall mean;
        falls back to quotes with one valid side if no strike has both.
        """
        discount = discount_factor(self, risk_free_rate, exchange_close)
        try:
            return self._parity_rate_near_mean(discount, False)
        except ValueError as exc:
            _log.warning(
                "Failed to compute parity rate for symbol %s at valuation date %s and "
                "expiry date %s, retry with relaxed validity, error cause: %s",
                self.underlier, self.valuation_date, self.expiry_date, exc,
            )
        try:
            rate = self._parity_rate_near_mean(discount, True)
        except ValueError as exc:
            raise RuntimeError(
                f"Failed to compute parity rate for symbol {self.underlier} valuation date "
                f"{self.valuation_date} expiry date {self.expiry_date}, root cause {exc}"
            ) from exc
        _log.info(
            "Succeeded to compute parity rate %s for %s/%s on retry",
            rate, self.underlier, self.expiry_date,
        )
        return rate

    def parity_rate_quality_score(
        self, risk_free_rate: float, exchange_close: ExchangeClose
    ) -> float:
        """Variance of parity rates around their least-squares line over strikes."""
        discount = discount_factor(self, risk_free_rate, exchange_close)
        points = [
            (strike_from_key(key), rate)
            for key, rate in self.parity_rates(discount).items()
        ]
        return compute_variance_along_fitted_line(points, fit_least_squares_line(points))


def build_option_chain(
    record_maps: PutCallRecordMap, instruments: OptionInstruments
) -> OptionChain:
    """Assemble a chain from records and the instruments of its default chain.

    Instruments without a record are listed as missing and get empty records.
    """
    puts, calls = dict(record_maps[0]), dict(record_maps[1])
    put_call_map = instruments.default_put_call_map()
    id_to_osi = instruments.instrument_id_to_osi_map()
    for records, strike_map in (
        (puts, make_strike_key_to_instrument_id_map(put_call_map.puts)),
        (calls, make_strike_key_to_instrument_id_map(put_call_map.calls)),
    ):
        for key in records:
            instrument_id = strike_map.get(key)
            if instrument_id is not None:
                id_to_osi.pop(instrument_id, None)
    for osi in id_to_osi.values():
        option = parse_osi(osi)
        target = puts if option.is_put else calls
        if option.strike_key in target:
            _log.error(
                "Not blanking existing data in build_option_chain for strike key %s OSI id %s",
                option.strike_key, osi,
            )
        else:
            target[option.strike_key] = Record()
    return OptionChain(
        underlier=instruments.underlier(),
        valuation_date=instruments.valuation_date(),
        expiry_date=instruments.expiry_date(),
        puts=_sorted_dict(puts),
        calls=_sorted_dict(calls),
        missing_instrument_id_to_osi=_sorted_dict(id_to_osi),
    )


def discount_factor(
    chain: OptionChain, continuous_rate: float, exchange_close: ExchangeClose
) -> float:
    """Continuous discount factor from the chain time to expiry."""
    chain_time = chain.chain_time()
    expiry_time = chain.expiry_time(exchange_close)
    if expiry_time < chain_time:
        raise ValueError("Expiry time must be after chain time.")
    seconds = (expiry_time - chain_time) // timedelta(seconds=1)
    return math.exp(-continuous_rate * (seconds / _SECONDS_IN_YEAR))


def fit_least_squares_line(points: Sequence[tuple[float, float]]) -> tuple[float, float]:
    """Least-squares line through the points as (slope, intercept)."""
    if len(points) < 2:
        raise ValueError("Not enough data points to fit a line.")
    n = len(points)
    sum_x = sum(x for x, _ in points)
    sum_y = sum(y for _, y in points)
    sum_xy = sum(x * y for x, y in points)
    sum_x2 = sum(x * x for x, _ in points)
    denominator = n * sum_x2 - sum_x * sum_x
    if abs(denominator) < 1e-10:
        raise RuntimeError("Denominator is too small, cannot fit a line.")
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def compute_variance_along_fitted_line(
    points: Sequence[tuple[float, float]], line: tuple[float, float]
) -> float:
    """Mean squared distance of the points from the line."""
    if not points:
        raise ValueError("No data points to compute variance.")
    slope, intercept = line
    return fmean((y - (slope * x + intercept)) ** 2 for x, y in points)
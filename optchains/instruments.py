"""Mappings from OSI option symbols to instrument IDs per underlier and date."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date as _date
from typing import NamedTuple, Optional, Union

from optchains.osi import parse_osi
from optchains.timestamps import make_timestamp_zulu


@dataclass(frozen=True)
class MappingInterval:
    """A symbol mapping valid from ``start_date`` to ``end_date``."""

    start_date: Union[_date, str]
    end_date: Union[_date, str]
    symbol: str


class OsiInstrument(NamedTuple):
    """An OSI identifier with the instrument ID it maps to."""

    osi: str
    instrument_id: str


StrikeKeyMap = dict[str, OsiInstrument]


@dataclass
class StrikeKeyPutCallMap:
    """Strike keys to OSI/instrument pairs, for puts and for calls."""

    puts: StrikeKeyMap = field(default_factory=dict)
    calls: StrikeKeyMap = field(default_factory=dict)

    def side(self, put: bool) -> StrikeKeyMap:
        return self.puts if put else self.calls


@dataclass
class Unmapped:
    """Symbols that could not be placed into the instrument tree."""

    osi_identifiers: list[str] = field(default_factory=list)
    invalid_osi_identifiers: list[str] = field(default_factory=list)
    mappings: list[tuple[str, MappingInterval]] = field(default_factory=list)


Tree = dict[str, dict[str, dict[str, StrikeKeyPutCallMap]]]


def _first_key(mapping: Mapping[str, object]) -> Optional[str]:
    return min(mapping) if mapping else None


def make_osi_to_instrument_id_map(put_call_map: StrikeKeyPutCallMap) -> dict[str, str]:
    """OSI identifier to instrument ID for both puts and calls."""
    result: dict[str, str] = {}
    for side in (put_call_map.puts, put_call_map.calls):
        for pair in side.values():
            result[pair.osi] = pair.instrument_id
    return dict(sorted(result.items()))


def make_instrument_id_to_osi_map(put_call_map: StrikeKeyPutCallMap) -> dict[str, str]:
    """Instrument ID to OSI identifier for both puts and calls."""
    result: dict[str, str] = {}
    for side in (put_call_map.puts, put_call_map.calls):
        for pair in side.values():
            result[pair.instrument_id] = pair.osi
    return dict(sorted(result.items()))


def make_strike_key_to_instrument_id_map(strike_map: Mapping[str, OsiInstrument]) -> dict[str, str]:
    """Strike key to instrument ID for one side of a chain."""
    return {key: strike_map[key].instrument_id for key in sorted(strike_map)}


def _date_text(value: Union[_date, str]) -> str:
    return value.isoformat() if isinstance(value, _date) else str(value)


class OptionInstruments:
    """Option instruments by underlier, valuation date and expiry date."""

    def __init__(self, tree: Optional[Tree] = None, track_unmapped: Optional[bool] = None) -> None:
        self._tree: Tree = tree if tree is not None else {}
        if track_unmapped is None:
            track_unmapped = tree is None
        self.unmapped: Optional[Unmapped] = Unmapped() if track_unmapped else None

    def insert(self, mappings: Mapping[str, Sequence[MappingInterval]]) -> None:
        """Add OSI symbol to instrument ID mappings from a symbology resolution.

        The first interval of each symbol is used; its start date is the
        valuation date. Empty, invalid and surplus mappings are recorded in
        ``unmapped`` when tracking is on.
        """
        for osi_identifier, intervals in mappings.items():
            intervals = list(intervals)
            if not intervals:
                if self.unmapped is not None:
                    self.unmapped.osi_identifiers.append(osi_identifier)
                continue
            try:
                option = parse_osi(osi_identifier)
            except ValueError:
                if self.unmapped is not None:
                    self.unmapped.invalid_osi_identifiers.append(osi_identifier)
                continue
            first, *rest = intervals
            valuation_date = _date_text(first.start_date)
            put_call_map = (
                self._tree.setdefault(option.underlier, {})
                .setdefault(valuation_date, {})
                .setdefault(option.expiry_date, StrikeKeyPutCallMap())
            )
            put_call_map.side(option.is_put)[option.strike_key] = OsiInstrument(
                osi_identifier, first.symbol
            )
            if self.unmapped is not None:
                self.unmapped.mappings.extend((osi_identifier, extra) for extra in rest)

    def strike_key_put_call_map(
        self, underlier: str, date: str, expiry_date: str
    ) -> Optional[StrikeKeyPutCallMap]:
        """The put/call map for one chain, or None if absent."""
        return self._tree.get(underlier, {}).get(date, {}).get(expiry_date)

    def default_put_call_map(self) -> StrikeKeyPutCallMap:
        """The put/call map of the first underlier, date and expiry."""
        underlier = _first_key(self._tree)
        if underlier is not None:
            dates = self._tree[underlier]
            date = _first_key(dates)
            if date is not None:
                expiry = _first_key(dates[date])
                if expiry is not None:
                    return dates[date][expiry]
        raise ValueError("No default strike key put call map available.")

    def get(self, underlier: str, date: str, expiry_date: str) -> OptionInstruments:
        """Instruments restricted to one chain; empty if the chain is absent."""
        tree: Tree = {}
        found = self.strike_key_put_call_map(underlier, date, expiry_date)
        if found is not None:
            tree[underlier] = {date: {expiry_date: found}}
        return OptionInstruments(tree, track_unmapped=False)

    def _expiries(self, underlier: str, date: str) -> list[str]:
        return sorted(self._tree.get(underlier, {}).get(date, {}))

    def expiry_dates_for_dte(self, underlier: str, date: str, n_dte: int) -> list[str]:
        """Expiry dates from ``date`` up to ``n_dte`` days later, ascending."""
        expiries = self._expiries(underlier, date)
        if not expiries:
            return []
        of_date = make_timestamp_zulu(date)
        result: list[str] = []
        for expiry in expiries:
            of_expiry = make_timestamp_zulu(expiry)
            if of_expiry < of_date:
                continue
            hours = (of_expiry - of_date).total_seconds() // 3600
            if hours > n_dte * 24:
                break
            result.append(expiry)
        return result

    def next_expiry_date(self, underlier: str, date: str) -> list[str]:
        """The next expiry on or after ``date``; with a same-day expiry, also the one after."""
        expiries = self._expiries(underlier, date)
        if not expiries:
            return []
        of_date = make_timestamp_zulu(date)
        result: list[str] = []
        for expiry in expiries:
            if make_timestamp_zulu(expiry) < of_date:
                continue
            result.append(expiry)
            if expiry != date:
                break
        return result

    def _select(
        self, underlier: Optional[str], date: Optional[str], expiry_date: Optional[str]
    ) -> Optional[StrikeKeyPutCallMap]:
        if underlier is None and date is None and expiry_date is None:
            return self.default_put_call_map()
        return self.strike_key_put_call_map(underlier or "", date or "", expiry_date or "")

    def osi_to_instrument_id_map(
        self,
        underlier: Optional[str] = None,
        date: Optional[str] = None,
        expiry_date: Optional[str] = None,
    ) -> dict[str, str]:
        """OSI to instrument ID for a chain, or for the default chain without arguments."""
        found = self._select(underlier, date, expiry_date)
        return make_osi_to_instrument_id_map(found) if found is not None else {}

    def instrument_id_to_osi_map(
        self,
        underlier: Optional[str] = None,
        date: Optional[str] = None,
        expiry_date: Optional[str] = None,
    ) -> dict[str, str]:
        """Instrument ID to OSI for a chain, or for the default chain without arguments."""
        found = self._select(underlier, date, expiry_date)
        return make_instrument_id_to_osi_map(found) if found is not None else {}

    def underlier(self) -> str:
        """The first underlier."""
        first = _first_key(self._tree)
        if first is None:
            raise ValueError("No default underlier available.")
        return first

    def valuation_date(self) -> str:
        """The first valuation date of the first underlier."""
        first = _first_key(self._tree)
        if first is not None:
            date = _first_key(self._tree[first])
            if date is not None:
                return date
        raise ValueError("No default valuation date available.")

    def expiry_date(self) -> str:
        """The first expiry date of the default chain."""
        first = _first_key(self._tree)
        if first is not None:
            date = _first_key(self._tree[first])
            if date is not None:
                expiry = _first_key(self._tree[first][date])
                if expiry is not None:
                    return expiry
        raise ValueError("No default expiry date available.")

    def underliers(self) -> list[str]:
        return sorted(self._tree)

    def valuation_dates(self, underlier: str) -> list[str]:
        return sorted(self._tree.get(underlier, {}))

    def expiry_dates(self, underlier: str, valuation_date: str) -> list[str]:
        return self._expiries(underlier, valuation_date)

    def strike_keys(
        self, underlier: str, valuation_date: str, expiry_date: str, put: bool
    ) -> list[str]:
        found = self.strike_key_put_call_map(underlier, valuation_date, expiry_date)
        return sorted(found.side(put)) if found is not None else []

    def strikes(
        self, underlier: str, valuation_date: str, expiry_date: str, put: bool
    ) -> list[float]:
        """Strike prices of one side of a chain, in strike key order."""
        found = self.strike_key_put_call_map(underlier, valuation_date, expiry_date)
        if found is None:
            return []
        side = found.side(put)
        return [parse_osi(side[key].osi).strike for key in sorted(side)]


def _iter_pairs(mapping: Mapping[str, OsiInstrument]) -> Iterable[tuple[str, OsiInstrument]]:
    return ((key, mapping[key]) for key in sorted(mapping))
"""Parsing of OSI option symbols and strike keys."""

from __future__ import annotations

import re
from dataclasses import dataclass

_STRIKE_SCALE = 1000
_STRIKE_KEY_WIDTH = 8
_TAIL = re.compile(r"(\d{2})(\d{2})(\d{2})([CP])(\d{8})")
_TAIL_LENGTH = 15


def strike_to_key(strike: float) -> str:
    """Render a strike price as the 8-digit strike field of an OSI symbol."""
    return f"{round(strike * _STRIKE_SCALE):0{_STRIKE_KEY_WIDTH}d}"


def strike_from_key(key: str) -> float:
    """Convert an 8-digit strike key back to a strike price."""
    text = key.strip()
    if not text.lstrip("-").isdigit():
        raise ValueError(f"Invalid strike key {key!r}")
    return int(text) / _STRIKE_SCALE


@dataclass(frozen=True)
class OsiOption:
    """The parts of an OSI option symbol such as ``SPY   240607C00425000``."""

    identifier: str
    underlier: str
    expiry_date: str
    is_put: bool
    strike_key: str

    @property
    def is_call(self) -> bool:
        return not self.is_put

    @property
    def strike(self) -> float:
        return strike_from_key(self.strike_key)


def parse_osi(identifier: str) -> OsiOption:
    """Parse an OSI symbol: root padded with spaces, YYMMDD, C/P, 8-digit strike."""
    if len(identifier) <= _TAIL_LENGTH:
        raise ValueError(f"OSI identifier too short: {identifier!r}")
    root = identifier[:-_TAIL_LENGTH].strip()
    match = _TAIL.fullmatch(identifier[-_TAIL_LENGTH:])
    if not root or match is None:
        raise ValueError(f"Invalid OSI identifier: {identifier!r}")
    yy, mm, dd, kind, strike_key = match.groups()
    month, day = int(mm), int(dd)
    if not (1 <= month <= 12 and 1 <= day <= 31):
        raise ValueError(f"Invalid expiry date in OSI identifier: {identifier!r}")
    return OsiOption(
        identifier=identifier,
        underlier=root,
        expiry_date=f"20{yy}-{mm}-{dd}",
        is_put=kind == "P",
        strike_key=strike_key,
    )
"""Typed cells, column formats and headers for tabular output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from optchains.timestamps import UTC, Timestamp

DEFAULT_NULL = "{null}"

DEFAULT_INT_FORMAT = "d"
DEFAULT_UINT_FORMAT = "d"
DEFAULT_DOUBLE_FORMAT = "f"
DEFAULT_STRING_FORMAT = "s"
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H:%M:%S"
DEFAULT_FORMAT = ""

_NANOS_PER_SECOND = 1_000_000_000
_DIRECTIVE = re.compile(r"%(.)", re.DOTALL)


class DataType(Enum):
    """Source data types a column or cell can hold."""

    GENERIC = 0
    INT = 1
    UINT = 2
    DOUBLE = 3
    STRING = 4
    TIMESTAMP = 5

    def __str__(self) -> str:
        return self.name


class UInt(int):
    """An unsigned integer value, kept apart from plain signed integers."""

    def __new__(cls, value: Any = 0) -> UInt:
        number = int.__new__(cls, value)
        if number < 0:
            raise ValueError(f"Unsigned integer cannot be negative: {number}")
        return number

    def __repr__(self) -> str:
        return f"UInt({int(self)})"


_DEFAULT_SPECS = {
    DataType.INT: DEFAULT_INT_FORMAT,
    DataType.UINT: DEFAULT_UINT_FORMAT,
    DataType.DOUBLE: DEFAULT_DOUBLE_FORMAT,
    DataType.STRING: DEFAULT_STRING_FORMAT,
    DataType.TIMESTAMP: DEFAULT_TIMESTAMP_FORMAT,
    DataType.GENERIC: DEFAULT_FORMAT,
}


def data_type_of(value: Any) -> DataType:
    """The data type a value maps to; unknown kinds are GENERIC."""
    if isinstance(value, bool):
        return DataType.GENERIC
    if isinstance(value, UInt):
        return DataType.UINT
    if isinstance(value, int):
        return DataType.INT
    if isinstance(value, float):
        return DataType.DOUBLE
    if isinstance(value, str):
        return DataType.STRING
    if isinstance(value, Timestamp):
        return DataType.TIMESTAMP
    return DataType.GENERIC


@dataclass(frozen=True)
class Cell:
    """A single grid value of a supported type."""

    value: Any

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bool, int, float, str, Timestamp)):
            raise TypeError(f"Unsupported cell value type: {type(self.value).__name__}")

    @property
    def data_type(self) -> DataType:
        return data_type_of(self.value)

    def __str__(self) -> str:
        value = self.value
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(int(value))
        if isinstance(value, float):
            return f"{value:f}"
        return str(value)


def make_cell(value: Any) -> Cell:
    """Wrap a value into a cell, rejecting unsupported types."""
    if isinstance(value, Cell):
        return value
    return Cell(value)


class Format:
    """Turns cells into field strings; empty cells become the null text."""

    data_type: ClassVar[DataType] = DataType.GENERIC

    def __init__(self, null: str = DEFAULT_NULL) -> None:
        self.null = null

    def format_cell(self, cell: Optional[Cell]) -> str:
        if cell is None:
            return self.null
        return self._format(cell)

    def _format(self, cell: Cell) -> str:
        return str(cell)


def _format_timestamp_nanos(ts: Timestamp, spec: str) -> str:
    moment = ts.to_datetime(UTC)
    frac = ts.nanos % _NANOS_PER_SECOND

    def directive(match: re.Match) -> str:
        code = match.group(1)
        if code == "S":
            return f"{moment.second:02d}.{frac:09d}"
        if code == "T":
            return f"{moment:%H:%M}:{moment.second:02d}.{frac:09d}"
        return moment.strftime(match.group(0))

    return _DIRECTIVE.sub(directive, spec)


class GenericFormat(Format):
    """Formats cells of one data type with a format specification."""

    def __init__(self, fmt: Optional[str] = None, null: str = DEFAULT_NULL) -> None:
        super().__init__(null)
        self.spec = _DEFAULT_SPECS[self.data_type] if fmt is None else fmt

    def format_cell(self, cell: Optional[Cell]) -> str:
        if cell is not None and cell.data_type != self.data_type:
            raise RuntimeError("DataGrid: GenericFormat: cell type mismatch")
        return super().format_cell(cell)

    def _format(self, cell: Cell) -> str:
        if self.data_type is DataType.TIMESTAMP:
            return _format_timestamp_nanos(cell.value, self.spec)
        return format(cell.value, self.spec)


class IntFormat(GenericFormat):
    """Format for signed integer columns."""

    data_type = DataType.INT


class UIntFormat(GenericFormat):
    """Format for unsigned integer columns."""

    data_type = DataType.UINT


class DoubleFormat(GenericFormat):
    """Format for floating point columns."""

    data_type = DataType.DOUBLE


class StringFormat(GenericFormat):
    """Format for string columns."""

    data_type = DataType.STRING


class TimestampFormat(GenericFormat):
    """Format for timestamp columns in UTC with nanosecond seconds."""

    data_type = DataType.TIMESTAMP


class TimestampFormatSeconds(TimestampFormat):
    """Formats timestamps to whole seconds in a chosen time zone."""

    def __init__(
        self,
        fmt: str = DEFAULT_TIMESTAMP_FORMAT,
        time_zone: str = UTC,
        null: str = DEFAULT_NULL,
    ) -> None:
        super().__init__(fmt, null)
        Timestamp().to_datetime(time_zone)
        self.time_zone = time_zone

    def format_cell(self, cell: Optional[Cell]) -> str:
        return super().format_cell(cell)

    def _format(self, cell: Cell) -> str:
        return cell.value.to_datetime(self.time_zone).strftime(self.spec)


@dataclass
class Header:
    """A column definition: name, data type and format."""

    name: str = ""
    data_type: DataType = DataType.GENERIC
    fmt: Format = field(default_factory=Format)
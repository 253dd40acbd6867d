"""A small typed data frame for spreadsheet-style CSV output."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Optional, TextIO

from optchains.cells import Cell, DataType, Format, Header, make_cell

DEFAULT_SEPARATOR = ","
LINE_FEED = "\n"

Row = list[Optional[Cell]]


class DataGrid:
    """Rows of typed cells under a header row of named, formatted columns.

    Every data row has as many cells as there are headers; empty cells are
    ``None`` and serialize as the column format's null text.
    """

    def __init__(self) -> None:
        self._headers: list[Header] = []
        self._rows: list[Row] = []

    @property
    def headers(self) -> tuple[Header, ...]:
        """The header row."""
        return tuple(self._headers)

    @property
    def rows(self) -> tuple[tuple[Optional[Cell], ...], ...]:
        """The data rows, with ``None`` for empty cells."""
        return tuple(tuple(row) for row in self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    # -- rows -------------------------------------------------------------

    def add_row(self, *args: Any) -> int:
        """Append a row built from the values; return its index."""
        row = self._make_row(args)
        self._rows.append(row)
        return len(self._rows) - 1

    def insert_row(self, at: int, *args: Any) -> None:
        """Insert a row built from the values before row ``at``."""
        if not 0 <= at <= len(self._rows):
            raise IndexError("DataGrid: insertRow: index out of range")
        row = self._make_row(args)
        self._rows.insert(at, row)

    def _make_row(self, values: Iterable[Any]) -> Row:
        row: Row = [make_cell(value) for value in values]
        self._check_types(row)
        self._adjust_grid(row)
        return row

    def _check_types(self, row: Row) -> None:
        for index, (cell, header) in enumerate(zip(row, self._headers)):
            if cell is None or header.data_type is DataType.GENERIC:
                continue
            if cell.data_type != header.data_type:
                raise ValueError(
                    f"Header type mismatch. Row[{index}] = {cell.data_type}, "
                    f"Header[{index}] = {header.data_type}"
                )

    def _adjust_grid(self, row: Row) -> None:
        n_cols = len(self._headers)
        if len(row) < n_cols:
            row.extend([None] * (n_cols - len(row)))
        elif len(row) > n_cols:
            extra = row[n_cols:]
            self._headers.extend(
                Header("", cell.data_type if cell is not None else DataType.GENERIC)
                for cell in extra
            )
            for existing in self._rows:
                existing.extend([None] * len(extra))

    def _check_cell_index(self, row: int, col: int, action: str) -> None:
        if not 0 <= row < len(self._rows):
            raise IndexError(f"DataGrid: {action}: row index out of range")
        if not 0 <= col < len(self._rows[row]):
            raise IndexError(f"DataGrid: {action}: column index out of range")

    def set_value(self, row: int, col: int, value: Any) -> None:
        """Replace one cell, checking the value against the column type."""
        self._check_cell_index(row, col, "setValue")
        cell = make_cell(value)
        header_type = self._headers[col].data_type
        if header_type is not DataType.GENERIC and header_type != cell.data_type:
            raise ValueError(
                f"DataGrid: setValue: type mismatch. Trying to set value for "
                f"{cell.data_type}, but Header[{col}] is of type {header_type}"
            )
        self._rows[row][col] = cell

    def set_null(self, row: int, col: int) -> None:
        """Empty one cell."""
        self._check_cell_index(row, col, "setNull")
        self._rows[row][col] = None

    # -- columns ----------------------------------------------------------

    def insert_null_column(
        self, at: int, data_type: DataType = DataType.GENERIC, name: str = ""
    ) -> None:
        """Insert an empty column of the given type before column ``at``."""
        if not 0 <= at <= len(self._headers):
            raise IndexError("DataGrid: insertColumn: index out of range")
        self._headers.insert(at, Header(name, data_type))
        for row in self._rows:
            row.insert(at, None)

    def insert_column(self, at: int, value: Any, name: str = "") -> None:
        """Insert a column before ``at`` with every row set to ``value``."""
        if not 0 <= at <= len(self._headers):
            raise IndexError("DataGrid: insertColumn: index out of range")
        cell = make_cell(value)
        self._headers.insert(at, Header(name, cell.data_type))
        for row in self._rows:
            row.insert(at, cell)

    def add_column(self, value: Any, name: str = "") -> int:
        """Append a column with every row set to ``value``; return its index."""
        self.insert_column(len(self._headers), value, name)
        return len(self._headers) - 1

    def create_headers(self, headers: Iterable[tuple[str, DataType]]) -> None:
        """Append columns from (name, data type) pairs."""
        added = [Header(name, data_type) for name, data_type in headers]
        self._headers.extend(added)
        for row in self._rows:
            row.extend([None] * len(added))

    def col_types(self) -> list[DataType]:
        """Data types of the columns, in order."""
        return [header.data_type for header in self._headers]

    def set_col_name(self, at: int, name: str) -> None:
        """Rename one column."""
        if not 0 <= at < len(self._headers):
            raise IndexError("DataGrid: setColName: index out of range")
        self._headers[at].name = name

    def set_col_names(self, names: Iterable[str]) -> None:
        """Rename columns from the left; extra names or columns are left alone."""
        for header, name in zip(self._headers, names):
            header.name = name

    def col_names(self) -> list[str]:
        """Names of the columns, in order."""
        return [header.name for header in self._headers]

    # -- formats ----------------------------------------------------------

    def set_null_value(self, null: str, at: Optional[int] = None) -> None:
        """Set the text for empty cells in one column, or in all columns."""
        if at is None:
            for header in self._headers:
                header.fmt.null = null
            return
        if not 0 <= at < len(self._headers):
            raise IndexError("DataGrid: setNullValue: index out of range")
        self._headers[at].fmt.null = null

    def set_format(self, at: int, fmt: Format) -> None:
        """Set the format of one column; its type must match the column's."""
        if not 0 <= at < len(self._headers):
            raise IndexError("DataGrid: setFormat: index out of range")
        header = self._headers[at]
        if header.data_type != fmt.data_type:
            raise ValueError(
                f"DataGrid: setFormat: type mismatch. Trying to set format for "
                f"{fmt.data_type}, but Header[{at}] is of type {header.data_type}"
            )
        header.fmt = fmt

    def set_format_for_type(self, factory: Callable[[], Format]) -> None:
        """Give every column of the factory's format type a fresh format."""
        data_type = factory().data_type
        for header in self._headers:
            if header.data_type == data_type:
                header.fmt = factory()

    # -- output -----------------------------------------------------------

    def _format_row(self, row: Row) -> list[str]:
        return [header.fmt.format_cell(cell) for header, cell in zip(self._headers, row)]

    def string_grid(self) -> list[list[str]]:
        """All rows formatted as strings."""
        return [self._format_row(row) for row in self._rows]

    def serialize(
        self,
        out: TextIO,
        separator: str = DEFAULT_SEPARATOR,
        line_feed: str = LINE_FEED,
    ) -> None:
        """Write the data rows as CSV lines to ``out``."""
        for row in self._rows:
            out.write(separator.join(self._format_row(row)))
            out.write(line_feed)

    def serialize_header(
        self,
        out: TextIO,
        separator: str = DEFAULT_SEPARATOR,
        line_feed: str = LINE_FEED,
    ) -> None:
        """Write the column names as one CSV line to ``out``."""
        out.write(separator.join(self.col_names()))
        out.write(line_feed)
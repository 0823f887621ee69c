"""A1 address codec — zero-based (row, col) <-> ``"B3"`` and ``"A1:C5"`` ranges."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import NamedTuple

from openpyxl.utils import column_index_from_string, get_column_letter

from spreadsheet_convert.errors import MalformedAddressError

DEFAULT_RANGE = "A1:A1"

_CELL_RE = re.compile(r"^\$?([A-Za-z]{1,3})\$?([1-9]\d*)$")


class CellRange(NamedTuple):
    """Inclusive, zero-based rectangular range."""

    start_row: int
    start_col: int
    end_row: int
    end_col: int

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def column_count(self) -> int:
        return self.end_col - self.start_col + 1

    def iter_rows(self) -> Iterator[list[tuple[int, int, str]]]:
        """Yield one list of ``(row, col, address)`` per row, row-major."""
        for row in range(self.start_row, self.end_row + 1):
            yield [
                (row, col, encode_cell(row, col))
                for col in range(self.start_col, self.end_col + 1)
            ]


def encode_column(col: int) -> str:
    """0 -> ``"A"``, 25 -> ``"Z"``, 26 -> ``"AA"``."""
    if isinstance(col, bool) or not isinstance(col, int) or col < 0:
        raise MalformedAddressError(f"Invalid column index: {col!r}")
    try:
        return get_column_letter(col + 1)
    except ValueError as exc:
        raise MalformedAddressError(f"Column index out of range: {col}") from exc


def decode_column(letters: str) -> int:
    try:
        return column_index_from_string(letters.upper()) - 1
    except ValueError as exc:
        raise MalformedAddressError(f"Invalid column letters: {letters!r}") from exc


def encode_cell(row: int, col: int) -> str:
    if isinstance(row, bool) or not isinstance(row, int) or row < 0:
        raise MalformedAddressError(f"Invalid row index: {row!r}")
    return f"{encode_column(col)}{row + 1}"


def decode_cell(address: str) -> tuple[int, int]:
    """Parse ``"B3"`` (``$`` markers allowed) into zero-based ``(row, col)``."""
    match = _CELL_RE.match(address.strip())
    if match is None:
        raise MalformedAddressError(f"Malformed cell address: {address!r}")
    letters, digits = match.groups()
    return int(digits) - 1, decode_column(letters)


def decode_range(text: str | None) -> CellRange:
    """Parse ``"A1:C5"`` or a single cell; empty input means ``"A1:A1"``.

    Endpoints are normalized so that start <= end on both axes.
    """
    if text is None or not text.strip():
        text = DEFAULT_RANGE
    parts = text.split(":")
    if len(parts) == 1:
        parts = parts * 2
    if len(parts) != 2:
        raise MalformedAddressError(f"Malformed range: {text!r}")
    r1, c1 = decode_cell(parts[0])
    r2, c2 = decode_cell(parts[1])
    return CellRange(min(r1, r2), min(c1, c2), max(r1, r2), max(c1, c2))


def encode_range(cell_range: CellRange) -> str:
    start = encode_cell(cell_range.start_row, cell_range.start_col)
    end = encode_cell(cell_range.end_row, cell_range.end_col)
    return f"{start}:{end}"


def range_for_shape(row_count: int, column_count: int) -> str:
    """Range anchored at A1 for a synthesized ``row_count x column_count`` grid.

    An empty grid has no range of its own and maps to :data:`DEFAULT_RANGE`.
    """
    if row_count <= 0 or column_count <= 0:
        return DEFAULT_RANGE
    return encode_range(CellRange(0, 0, row_count - 1, column_count - 1))

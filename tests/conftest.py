from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Any

import pytest

from spreadsheet_convert.address import range_for_shape
from spreadsheet_convert.models import Cell, CellType, Sheet

SheetFactory = Callable[..., Sheet]


def _cell(value: Any) -> Cell:
    if value is None:
        return Cell.empty()
    if isinstance(value, bool):
        return Cell(value, CellType.BOOLEAN)
    if isinstance(value, (int, float)):
        return Cell(value, CellType.NUMBER)
    if isinstance(value, (datetime, date)):
        return Cell(value, CellType.DATE)
    return Cell(value, CellType.STRING)


@pytest.fixture
def make_sheet() -> SheetFactory:
    """Build a sheet from a grid of plain Python values."""

    def _make(name: str, grid: Sequence[Sequence[Any]]) -> Sheet:
        rows = [[_cell(v) for v in row] for row in grid]
        columns = len(rows[0]) if rows else 0
        return Sheet(
            name=name,
            rows=rows,
            range_address=range_for_shape(len(rows), columns),
            row_count=len(rows),
            column_count=columns,
        )

    return _make

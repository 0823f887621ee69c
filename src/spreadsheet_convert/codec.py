"""Workbook container codec — the boundary to openpyxl (and xlrd for ``.xls``).

:func:`open_container` turns a workbook file into plain Python structures
(sheet names, declared ranges, address -> raw cell lookups, document
properties). :func:`build_container` does the reverse for row-major value
grids. Nothing outside this module touches the spreadsheet libraries'
objects directly.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook as XlsxWorkbook
from openpyxl import load_workbook

from spreadsheet_convert.address import encode_cell, range_for_shape
from spreadsheet_convert.errors import UnsupportedInputFormatError

logger = logging.getLogger(__name__)

_GENERAL_FORMAT = "General"


@dataclass(frozen=True)
class RawCell:
    """A populated cell as the container stores it.

    ``type_code`` uses the single-letter codes of the container format:
    ``n`` numeric, ``s`` string, ``b`` boolean, ``d`` date, ``e`` error.
    """

    value: Any
    type_code: str = "s"
    formula: str | None = None
    number_format: str | None = None


@dataclass
class DocumentProperties:
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    application: str | None = None


@dataclass
class Container:
    sheet_names: list[str] = field(default_factory=list)
    ranges: dict[str, str] = field(default_factory=dict)
    cells: dict[str, dict[str, RawCell]] = field(default_factory=dict)
    properties: DocumentProperties | None = None
    active_sheet: str | None = None


# ── Reading ─────────────────────────────────────────────────────


def _formula_text(value: Any) -> str | None:
    text = getattr(value, "text", value)  # ArrayFormula keeps its source in .text
    if not isinstance(text, str) or not text.startswith("="):
        return None
    return text[1:]


def _open_xlsx(path: Path, *, formulas: bool, styles: bool) -> Container:
    wb = load_workbook(path, data_only=True)
    formula_wb = load_workbook(path, data_only=False) if formulas else None
    try:
        container = Container()
        for ws in wb.worksheets:
            name = ws.title
            container.sheet_names.append(name)
            container.ranges[name] = ws.calculate_dimension()

            formula_ws = formula_wb[name] if formula_wb is not None else None
            lookup: dict[str, RawCell] = {}
            for row in ws.iter_rows():
                for cell in row:
                    formula = None
                    if formula_ws is not None:
                        formula = _formula_text(formula_ws[cell.coordinate].value)
                    if cell.value is None and formula is None:
                        continue
                    number_format = None
                    if styles and cell.number_format != _GENERAL_FORMAT:
                        number_format = cell.number_format
                    lookup[cell.coordinate] = RawCell(
                        value=cell.value,
                        type_code=cell.data_type if cell.value is not None else "s",
                        formula=formula,
                        number_format=number_format,
                    )
            container.cells[name] = lookup

        if wb.active is not None:
            container.active_sheet = wb.active.title

        props = wb.properties
        container.properties = DocumentProperties(
            title=props.title,
            author=props.creator,
            subject=props.subject,
            created=props.created,
            modified=props.modified,
        )
        return container
    finally:
        wb.close()
        if formula_wb is not None:
            formula_wb.close()


def _open_xls(path: Path, *, styles: bool) -> Container:
    try:
        import xlrd
    except ImportError as exc:
        raise UnsupportedInputFormatError(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc

    book = xlrd.open_workbook(str(path), formatting_info=styles)
    try:
        container = Container()
        for sh in book.sheets():
            name = sh.name
            container.sheet_names.append(name)
            container.ranges[name] = range_for_shape(sh.nrows, sh.ncols)
            lookup: dict[str, RawCell] = {}
            for r in range(sh.nrows):
                for c in range(sh.ncols):
                    cell = sh.cell(r, c)
                    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                        continue
                    value: Any = cell.value
                    if cell.ctype == xlrd.XL_CELL_NUMBER:
                        code = "n"
                        if float(value).is_integer():
                            value = int(value)
                    elif cell.ctype == xlrd.XL_CELL_DATE:
                        code = "d"
                        value = xlrd.xldate_as_datetime(value, book.datemode)
                    elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                        code = "b"
                        value = bool(value)
                    elif cell.ctype == xlrd.XL_CELL_ERROR:
                        code = "e"
                        value = xlrd.error_text_from_code.get(value, "#ERR")
                    else:
                        code = "s"
                    number_format = None
                    if styles:
                        xf = book.xf_list[cell.xf_index]
                        fmt = book.format_map.get(xf.format_key)
                        if fmt is not None and fmt.format_str != _GENERAL_FORMAT:
                            number_format = fmt.format_str
                    lookup[encode_cell(r, c)] = RawCell(value, code, None, number_format)
            container.cells[name] = lookup
        return container
    finally:
        book.release_resources()


def open_container(path: Path, *, formulas: bool = False, styles: bool = False) -> Container:
    """Decode a workbook file into a :class:`Container`."""
    path = Path(path)
    logger.debug("Opening workbook container %s", path)
    if path.suffix.lower() == ".xls":
        if formulas:
            logger.debug("Formulas are not available for legacy .xls input")
        return _open_xls(path, styles=styles)
    return _open_xlsx(path, formulas=formulas, styles=styles)


# ── Writing ─────────────────────────────────────────────────────


def _xlsx_value(val: Any) -> Any:
    if isinstance(val, datetime) and val.tzinfo:
        return val.replace(tzinfo=None)
    return val


def build_container(grids: Mapping[str, Sequence[Sequence[Any]]], path: Path) -> Path:
    """Write one sheet per ``name -> row-major values`` entry to *path* (atomic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = XlsxWorkbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    for name, grid in grids.items():
        ws = wb.create_sheet(title=name)
        for r_idx, row_vals in enumerate(grid, 1):
            for c_idx, val in enumerate(row_vals, 1):
                if val is None:
                    continue
                cell = ws.cell(row=r_idx, column=c_idx, value=_xlsx_value(val))
                if isinstance(val, str) and cell.data_type == "f":
                    cell.data_type = "s"  # keep "=..." text literal

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    logger.debug("Wrote workbook container %s (%d sheets)", path, len(grids))
    return path

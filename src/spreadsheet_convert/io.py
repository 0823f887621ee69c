"""I/O helpers — ingestion adapters and atomic artifact writers."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd

from spreadsheet_convert import DELIMITED_EXTENSIONS, WORKBOOK_EXTENSIONS
from spreadsheet_convert.address import DEFAULT_RANGE, decode_range, range_for_shape
from spreadsheet_convert.codec import RawCell, open_container
from spreadsheet_convert.config import ParserConfig
from spreadsheet_convert.errors import (
    EmptyWorkbookError,
    InputFileNotFoundError,
    UnsupportedInputFormatError,
)
from spreadsheet_convert.inference import parse_token
from spreadsheet_convert.models import Cell, CellType, Sheet, Workbook, WorkbookMetadata

logger = logging.getLogger(__name__)

TEXT_SHEET_NAME = "Sheet1"

_TYPE_CODES: dict[str, CellType] = {
    "n": CellType.NUMBER,
    "d": CellType.DATE,
    "b": CellType.BOOLEAN,
    "e": CellType.ERROR,
}

# ── Loading ──────────────────────────────────────────────────────


def load_workbook_file(
    path: Path,
    config: ParserConfig | None = None,
    warnings: list[str] | None = None,
) -> Workbook:
    """Load any supported input into a :class:`Workbook`, chosen by extension.

    Raises
    ------
    InputFileNotFoundError
        If *path* does not exist.
    UnsupportedInputFormatError
        If the extension is not a workbook or delimited-text extension.
    EmptyWorkbookError
        If a workbook container declares no sheets.
    """
    path = Path(path)
    config = config or ParserConfig()
    if not path.exists():
        raise InputFileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise UnsupportedInputFormatError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix in WORKBOOK_EXTENSIONS:
        return read_container_workbook(path, config, warnings)
    if suffix in DELIMITED_EXTENSIONS:
        return read_delimited(
            path, DELIMITED_EXTENSIONS[suffix], chunk_size=config.csv_chunk_size
        )
    raise UnsupportedInputFormatError(
        f"Unsupported file format: {suffix or '(none)'!r}. Use .xlsx, .xlsm, .xls, .csv or .tsv"
    )


# ── Binary workbooks ─────────────────────────────────────────────


def _coerce_raw_value(value: Any, cell_type: CellType) -> tuple[Any, CellType]:
    if (
        cell_type is CellType.NUMBER
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    ):
        return value, cell_type
    if cell_type is CellType.BOOLEAN and isinstance(value, bool):
        return value, cell_type
    if cell_type is CellType.DATE and isinstance(value, (datetime, date, time)):
        return value, cell_type
    if cell_type is CellType.ERROR and value is not None:
        return str(value), cell_type
    if value is None or isinstance(value, str):
        return value, CellType.STRING
    return str(value), CellType.STRING


def _cell_from_raw(raw: RawCell, config: ParserConfig) -> Cell:
    cell_type = _TYPE_CODES.get(raw.type_code, CellType.STRING)
    value, cell_type = _coerce_raw_value(raw.value, cell_type)
    return Cell(
        value,
        cell_type,
        formula=raw.formula if config.preserve_formulas else None,
        format=raw.number_format if config.include_formatting else None,
    )


def _sheet_from_lookup(
    name: str, declared: str | None, lookup: dict[str, RawCell], config: ParserConfig
) -> Sheet:
    range_address = declared or DEFAULT_RANGE
    cell_range = decode_range(range_address)
    rows: list[list[Cell]] = []
    for coords in cell_range.iter_rows():
        row: list[Cell] = []
        for _r, _c, address in coords:
            raw = lookup.get(address)
            row.append(_cell_from_raw(raw, config) if raw is not None else Cell.empty())
        rows.append(row)
    return Sheet(
        name=name,
        rows=rows,
        range_address=range_address,
        row_count=cell_range.row_count,
        column_count=cell_range.column_count,
    )


def read_container_workbook(
    path: Path,
    config: ParserConfig | None = None,
    warnings: list[str] | None = None,
) -> Workbook:
    """Read ``.xlsx``/``.xlsm``/``.xls`` through the container codec."""
    config = config or ParserConfig()
    container = open_container(
        path, formulas=config.preserve_formulas, styles=config.include_formatting
    )
    if not container.sheet_names:
        raise EmptyWorkbookError("No sheets found in workbook")

    names = container.sheet_names if config.read_all_sheets else container.sheet_names[:1]
    workbook = Workbook()
    for name in names:
        lookup = container.cells.get(name, {})
        sheet = _sheet_from_lookup(name, container.ranges.get(name), lookup, config)
        if config.read_all_sheets and not sheet.populated:
            message = f"Sheet {name!r} is empty"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
        workbook.sheets[name] = sheet

    if container.active_sheet in workbook.sheets:
        workbook.active_sheet = container.active_sheet

    if config.include_metadata:
        props = container.properties
        metadata = WorkbookMetadata(sheet_names=list(container.sheet_names))
        if props is not None:
            metadata.title = props.title or None
            metadata.author = props.author or None
            metadata.subject = props.subject or None
            metadata.created = props.created
            metadata.modified = props.modified
            metadata.application = props.application or None
        workbook.metadata = metadata

    logger.debug("Read %d sheet(s) from %s", len(workbook.sheets), path)
    return workbook


# ── Delimited text ───────────────────────────────────────────────


def _is_blank(tokens: list[str], present: int) -> bool:
    return present <= 1 and all(t == "" for t in tokens)


def _iter_delimited_rows(
    path: Path, delimiter: str, chunk_size: int, encoding: str
) -> Iterator[list[Cell]]:
    try:
        reader = pd.read_csv(
            path,
            sep=delimiter,
            header=None,
            dtype=str,
            engine="c",
            encoding=encoding,
            encoding_errors="strict",
            na_filter=False,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            chunksize=chunk_size,
        )
    except pd.errors.EmptyDataError:
        return

    with reader:
        for chunk in reader:
            for record in chunk.itertuples(index=False, name=None):
                present = sum(1 for v in record if isinstance(v, str))
                tokens = [v.strip() if isinstance(v, str) else "" for v in record]
                if _is_blank(tokens, present):
                    continue
                yield [parse_token(t) for t in tokens]


def read_delimited(path: Path, delimiter: str = ",", *, chunk_size: int = 10_000) -> Workbook:
    """Stream CSV/TSV into a single ``Sheet1`` with per-cell type inference.

    The first row fixes ``column_count``; shorter rows are padded with empty
    cells. Decoding falls back from UTF-8 to latin-1.

    An empty file gives a zero-row sheet whose ``range_address`` is still
    ``"A1:A1"``; callers should trust ``row_count``/``column_count`` over the
    range for that case.
    """
    path = Path(path)
    try:
        rows = list(_iter_delimited_rows(path, delimiter, chunk_size, "utf-8-sig"))
    except UnicodeDecodeError as exc:
        logger.debug("%s is not valid UTF-8 (%s); retrying as latin-1", path, exc)
        rows = list(_iter_delimited_rows(path, delimiter, chunk_size, "latin-1"))

    column_count = len(rows[0]) if rows else 0
    sheet = Sheet(
        name=TEXT_SHEET_NAME,
        rows=rows,
        range_address=range_for_shape(len(rows), column_count),
        row_count=len(rows),
        column_count=column_count,
    )
    logger.debug("Read %d x %d delimited rows from %s", len(rows), column_count, path)
    return Workbook(sheets={TEXT_SHEET_NAME: sheet})


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)


def write_text(path: Path, text: str) -> Path:
    """Write *text* to *path* as UTF-8 (atomic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic)."""
    return write_text(path, dump_json(data) + "\n")

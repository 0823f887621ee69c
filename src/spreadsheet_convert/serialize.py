"""Serialization engine — Workbook -> JSON / YAML / CSV / TSV / Markdown / xlsx."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from spreadsheet_convert.codec import build_container
from spreadsheet_convert.errors import NoSheetDataError, UnsupportedOutputFormatError
from spreadsheet_convert.io import dump_json, write_text
from spreadsheet_convert.models import Sheet, Workbook
from spreadsheet_convert.report import render_markdown
from spreadsheet_convert.utils import stringify

logger = logging.getLogger(__name__)

TEXT_FORMATS: tuple[str, ...] = ("json", "yaml", "csv", "tsv", "markdown")
WORKBOOK_FORMATS: tuple[str, ...] = ("xlsx",)
_ALIASES = {"yml": "yaml", "md": "markdown"}
_DELIMITERS = {"csv": ",", "tsv": "\t"}


def normalize_format(fmt: str) -> str:
    key = fmt.strip().lower()
    return _ALIASES.get(key, key)


def select_sheet(workbook: Workbook, sheet_name: str | None = None) -> Sheet:
    """Return the named sheet, or the first declared one."""
    if sheet_name is not None:
        sheet = workbook.sheets.get(sheet_name)
        if sheet is None:
            raise NoSheetDataError(f"Sheet not found: {sheet_name!r}")
        return sheet
    sheet = workbook.first_sheet()
    if sheet is None:
        raise NoSheetDataError("No sheet data available")
    return sheet


# ── Renderers ───────────────────────────────────────────────────


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def render_delimited(
    workbook: Workbook, delimiter: str = ",", sheet_name: str | None = None
) -> str:
    """Every field double-quoted, rows joined by ``\\n``, no trailing newline."""
    sheet = select_sheet(workbook, sheet_name)
    return "\n".join(
        delimiter.join(_quote(stringify(cell.value)) for cell in row) for row in sheet.rows
    )


def render_json(workbook: Workbook) -> str:
    return dump_json(workbook.to_dict())


def render_yaml(workbook: Workbook) -> str:
    return yaml.safe_dump(
        workbook.to_dict(), sort_keys=False, allow_unicode=True, default_flow_style=False
    )


def render(
    workbook: Workbook,
    fmt: str,
    *,
    sheet_name: str | None = None,
    **markdown_options: Any,
) -> str:
    """Render *workbook* as text in one of :data:`TEXT_FORMATS`.

    ``markdown_options`` are passed to :func:`render_markdown` (``source_name``,
    ``file_size_bytes``, ``now``) and ignored by the other formats.
    """
    key = normalize_format(fmt)
    if key == "json":
        return render_json(workbook)
    if key == "yaml":
        return render_yaml(workbook)
    if key in _DELIMITERS:
        return render_delimited(workbook, _DELIMITERS[key], sheet_name)
    if key == "markdown":
        return render_markdown(workbook, sheet_name=sheet_name, **markdown_options)
    raise UnsupportedOutputFormatError(fmt)


def load_serialized(text: str, fmt: str) -> Workbook:
    """Rebuild a workbook from the JSON or YAML that :func:`render` produced."""
    key = normalize_format(fmt)
    if key == "json":
        payload = json.loads(text)
    elif key == "yaml":
        payload = yaml.safe_load(text)
    else:
        raise UnsupportedOutputFormatError(fmt)
    return Workbook.from_dict(payload or {})


# ── Files ───────────────────────────────────────────────────────


def write_workbook(workbook: Workbook, path: Path, sheet_name: str | None = None) -> Path:
    """Write raw values back to an ``.xlsx`` container.

    Only values survive; cell types, formulas and formats are dropped.
    """
    if sheet_name is not None:
        sheets = [select_sheet(workbook, sheet_name)]
    else:
        sheets = list(workbook.sheets.values())
    if not sheets:
        raise NoSheetDataError("No sheet data available")
    return build_container({sheet.name: sheet.values() for sheet in sheets}, path)


def write_file(
    workbook: Workbook,
    path: Path,
    fmt: str,
    *,
    sheet_name: str | None = None,
    **markdown_options: Any,
) -> Path:
    """Serialize *workbook* to *path* in *fmt* and return the path."""
    key = normalize_format(fmt)
    path = Path(path)
    if key in WORKBOOK_FORMATS:
        out = write_workbook(workbook, path, sheet_name)
    elif key in TEXT_FORMATS:
        out = write_text(path, render(workbook, key, sheet_name=sheet_name, **markdown_options))
    else:
        raise UnsupportedOutputFormatError(fmt)
    logger.debug("Wrote %s output to %s", key, out)
    return out

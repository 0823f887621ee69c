"""Markdown summary writer — a lossy, display-only view of a workbook."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import PurePath

from spreadsheet_convert import __version__
from spreadsheet_convert.errors import NoSheetDataError
from spreadsheet_convert.models import CellValue, Workbook
from spreadsheet_convert.utils import format_timestamp, stringify, utcnow

MAX_PREVIEW_ROWS = 20
MAX_CELL_CHARS = 50
_SHEET_LIST_LIMIT = 3


def _format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = num_bytes / 1024
    for unit in ("KB", "MB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _format_day(value: datetime | date) -> str:
    return value.strftime("%Y-%m-%d")


def _cell_text(value: CellValue) -> str:
    if value is None:
        return ""
    text = stringify(value)
    if len(text) > MAX_CELL_CHARS:
        text = text[:MAX_CELL_CHARS] + "..."
    return text.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def render_markdown(
    workbook: Workbook,
    *,
    sheet_name: str | None = None,
    source_name: str | None = None,
    file_size_bytes: int | None = None,
    now: datetime | None = None,
) -> str:
    """Return a Markdown summary: title, metadata block, per-sheet tables, footer.

    Sheets longer than :data:`MAX_PREVIEW_ROWS` are cut and the notice states
    the total row count. Cell text is truncated to :data:`MAX_CELL_CHARS`.
    """
    if sheet_name is not None and sheet_name not in workbook.sheets:
        raise NoSheetDataError(f"Sheet not found: {sheet_name!r}")
    names = [sheet_name] if sheet_name is not None else workbook.sheet_names
    sheets = list(workbook.sheets.values())
    title = source_name or sheet_name or "workbook"
    generated = format_timestamp(now or utcnow())

    lines: list[str] = [
        f"# Spreadsheet Summary: {title}",
        f"*Generated on: {generated}*",
        "",
        "## Metadata",
    ]

    # ── Metadata block ───────────────────────────────────────────
    total_rows = sum(s.row_count for s in sheets)
    max_columns = max((s.column_count for s in sheets), default=0)
    shown = ", ".join(workbook.sheet_names[:_SHEET_LIST_LIMIT])
    more = ", ..." if len(sheets) > _SHEET_LIST_LIMIT else ""
    if file_size_bytes is not None:
        lines.append(f"- **File Size:** {_format_size(file_size_bytes)}")
    lines.append(f"- **Sheets:** {len(sheets)} ({shown}{more})")
    lines.append(f"- **Total Rows:** {total_rows:,}")
    lines.append(f"- **Total Columns:** {max_columns}")
    meta = workbook.metadata
    if meta is not None:
        if meta.author:
            lines.append(f"- **Author:** {meta.author}")
        if meta.created:
            lines.append(f"- **Created:** {_format_day(meta.created)}")
        if meta.modified:
            lines.append(f"- **Modified:** {_format_day(meta.modified)}")
    if source_name:
        suffix = PurePath(source_name).suffix.lstrip(".").upper()
        if suffix:
            lines.append(f"- **Format:** {suffix}")
    lines.extend(["", "## Content", ""])

    # ── Per-sheet tables ─────────────────────────────────────────
    for name in names:
        sheet = workbook.sheets[name]
        if len(names) > 1:
            lines.extend([f"### Sheet: {name}", ""])

        if not sheet.rows:
            lines.extend(["*No data in this sheet*", ""])
            continue

        if len(sheet.rows) > MAX_PREVIEW_ROWS:
            lines.extend([
                f"*Showing first {MAX_PREVIEW_ROWS} rows of {len(sheet.rows):,} total rows*",
                "",
            ])

        display = sheet.rows[:MAX_PREVIEW_ROWS]
        width = max(len(row) for row in display)
        headers = [f"Column {i + 1}" for i in range(width)]
        lines.append(f"| {' | '.join(headers)} |")
        lines.append(f"| {' | '.join('---' for _ in headers)} |")
        for row in display:
            values = [_cell_text(row[i].value) if i < len(row) else "" for i in range(width)]
            lines.append(f"| {' | '.join(values)} |")
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by spreadsheet-convert v{__version__}*")
    return "\n".join(lines) + "\n"

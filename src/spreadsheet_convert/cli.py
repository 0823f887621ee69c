"""CLI entry point for spreadsheet-convert."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from spreadsheet_convert import __version__
from spreadsheet_convert.config import ParserConfig
from spreadsheet_convert.errors import SpreadsheetConvertError
from spreadsheet_convert.io import write_json
from spreadsheet_convert.models import ProcessingResult
from spreadsheet_convert.pipeline import (
    convert_file,
    extract_sheets,
    parse_file,
    validate_file,
)
from spreadsheet_convert.serialize import render

app = typer.Typer(
    name="sconvert",
    help="spreadsheet-convert — Convert workbooks and CSV/TSV into JSON, YAML, CSV, TSV or Markdown.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class OutputFormatOption(str, Enum):
    json = "json"
    yaml = "yaml"
    csv = "csv"
    tsv = "tsv"
    markdown = "markdown"
    xlsx = "xlsx"


class SheetFormatOption(str, Enum):
    csv = "csv"
    json = "json"
    yaml = "yaml"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"spreadsheet-convert v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(result: ProcessingResult, headline: str) -> NoReturn:
    if result.error_code is not None:
        headline = f"{headline} ({result.error_code.value})"
    _err(headline)
    for error in result.errors:
        console.print(f"  [red]-[/red] {error}")
    raise typer.Exit(code=1)


def _show_warnings(result: ProcessingResult, echo: Callable[..., None]) -> None:
    for warning in result.warnings:
        echo(f"  [yellow]![/yellow] {warning}")


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log pipeline progress to stderr.",
    ),
) -> None:
    """spreadsheet-convert CLI."""
    _configure_logging(verbose)


# ── convert command ──────────────────────────────────────────────


@app.command()
def convert(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to an .xlsx/.xlsm/.xls/.csv/.tsv file.",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o",
        help="Output file. Text formats print to stdout when omitted.",
    ),
    fmt: OutputFormatOption = typer.Option(
        OutputFormatOption.json, "--format", "-f",
        help="Output format.",
    ),
    sheet: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Sheet to emit for csv/tsv/markdown (default: first sheet / all sheets).",
    ),
    all_sheets: bool = typer.Option(
        True, "--all-sheets/--first-sheet",
        help="Read every sheet or only the first one.",
    ),
    formulas: bool = typer.Option(False, "--formulas", help="Keep cell formulas."),
    formatting: bool = typer.Option(False, "--formatting", help="Keep number formats."),
    metadata: bool = typer.Option(
        True, "--metadata/--no-metadata",
        help="Include workbook document properties.",
    ),
    safety: bool = typer.Option(
        True, "--safety/--no-safety",
        help="Run the safety gate before opening the file.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output.",
    ),
) -> None:
    """Convert a spreadsheet into another format."""
    echo = _printer(quiet)
    config = ParserConfig(
        read_all_sheets=all_sheets,
        include_metadata=metadata,
        safety_checks=safety,
        preserve_formulas=formulas,
        include_formatting=formatting,
    )

    if output is None:
        if fmt is OutputFormatOption.xlsx:
            _err("--output is required for xlsx output")
            raise typer.Exit(code=1)
        result = parse_file(input_file, config)
        if not result.success or result.data is None:
            _fail(result, "Failed to read file")
        try:
            text = render(
                result.data,
                fmt.value,
                sheet_name=sheet,
                source_name=input_file.name,
                file_size_bytes=input_file.stat().st_size,
            )
        except SpreadsheetConvertError as exc:
            _err(str(exc))
            raise typer.Exit(code=1)
        typer.echo(text, nl=not text.endswith("\n"))
        return

    if not quiet:
        console.print(Panel(
            f"[bold]spreadsheet-convert[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {output} ({fmt.value})",
            title="Convert", border_style="blue",
        ))
    result = convert_file(input_file, output, fmt.value, config, sheet_name=sheet)
    if not result.success:
        _fail(result, "Conversion failed")
    _show_warnings(result, echo)
    echo(f"[green]Done[/green] — {output} ({result.processing_time_ms} ms)")


# ── info command ─────────────────────────────────────────────────


@app.command()
def info(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to an .xlsx/.xlsm/.xls/.csv/.tsv file.",
    ),
    detailed: bool = typer.Option(
        False, "--detailed", "-d",
        help="Show per-sheet dimensions and ranges.",
    ),
) -> None:
    """Show document properties and sheets."""
    result = parse_file(input_file)
    if not result.success or result.data is None:
        _fail(result, "Failed to read file")

    console.print(f"[bold blue]{input_file.name}[/bold blue]")
    meta = result.metadata
    if meta is not None:
        for label, value in (
            ("Title", meta.title),
            ("Author", meta.author),
            ("Created", meta.created.date().isoformat() if meta.created else None),
            ("Modified", meta.modified.date().isoformat() if meta.modified else None),
            ("Application", meta.application),
        ):
            if value:
                console.print(f"[yellow]{label}:[/yellow] {value}")

    sheets = result.data.sheets
    console.print(f"[yellow]Sheets:[/yellow] {len(sheets)}")
    if not detailed:
        console.print(f"  {', '.join(sheets)}")
        return

    tbl = RichTable(title="Sheet Details", show_lines=True)
    tbl.add_column("Sheet", style="bold cyan")
    tbl.add_column("Rows", justify="right")
    tbl.add_column("Columns", justify="right")
    tbl.add_column("Range")
    for name, sheet_data in sheets.items():
        tbl.add_row(
            name, str(sheet_data.row_count), str(sheet_data.column_count), sheet_data.range_address
        )
    console.print(tbl)


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the file to screen.",
    ),
    report_path: Path | None = typer.Option(
        None, "--report", "-r",
        help="Also write the safety report as JSON to this path.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress the summary table.",
    ),
) -> None:
    """Screen a file with the safety gate and check that it parses.

    Exit 0 = OK, exit 1 = rejected or unreadable.
    """
    report = validate_file(input_file)
    result = parse_file(input_file) if report.is_safe else None
    if report_path is not None:
        written = write_json(report_path, report.to_dict())
        console.print(f"  Safety report -> {written}")

    passed = report.is_safe and result is not None and result.success
    if not quiet:
        tbl = RichTable(title="Validation Summary", show_lines=True)
        tbl.add_column("Check", style="bold")
        tbl.add_column("Result")
        tbl.add_row("Size", f"{report.file_size_bytes} bytes")
        tbl.add_row("SHA-256", report.content_hash or "-")
        if report.issues:
            for issue in report.issues:
                tbl.add_row("Issue", f"[red]{issue}[/red]")
        else:
            tbl.add_row("Issues", "[green]none[/green]")
        if result is not None:
            for error in result.errors:
                tbl.add_row("Error", f"[red]{error}[/red]")
            for warning in result.warnings:
                tbl.add_row("Warning", f"[yellow]{warning}[/yellow]")
            if result.data is not None:
                tbl.add_row("Sheets", str(len(result.data.sheets)))
        tbl.add_row("Status", "[green]PASS[/green]" if passed else "[red]FAIL[/red]")
        console.print(tbl)

    if not passed:
        raise typer.Exit(code=1)


# ── extract-sheets command ───────────────────────────────────────


@app.command("extract-sheets")
def extract_sheets_cmd(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to a workbook file.",
    ),
    out_dir: Path = typer.Option(
        Path("extracted"), "--out-dir", "-o",
        help="Directory for one file per sheet.",
    ),
    fmt: SheetFormatOption = typer.Option(
        SheetFormatOption.csv, "--format", "-f",
        help="Per-sheet output format.",
    ),
) -> None:
    """Write every sheet to its own file."""
    result = parse_file(input_file)
    if not result.success or result.data is None:
        _fail(result, "Extraction failed")
    try:
        written = extract_sheets(result.data, out_dir, fmt.value)
    except (SpreadsheetConvertError, OSError) as exc:
        _err(f"Extraction failed: {exc}")
        raise typer.Exit(code=1)
    for path in written:
        console.print(f"  Sheet -> {path}")
    console.print(f"[green]Extracted {len(written)} sheet(s)[/green] to {out_dir}")

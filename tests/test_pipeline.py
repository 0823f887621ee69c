from __future__ import annotations

import json
from pathlib import Path

import pytest
from openpyxl import Workbook as XlsxWorkbook

import spreadsheet_convert.pipeline as pipeline_mod
from spreadsheet_convert.config import ParserConfig
from spreadsheet_convert.errors import ErrorCode
from spreadsheet_convert.models import Workbook
from spreadsheet_convert.pipeline import convert_file, extract_sheets, parse_file, validate_file


def _write_csv(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_success_envelope(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "t.csv", "1,true\n2024-01-01,hello\n")

    result = parse_file(path)

    assert result.success
    assert result.errors == []
    assert result.data is not None
    assert result.data.sheets["Sheet1"].row_count == 2
    assert result.processing_time_ms is not None and result.processing_time_ms >= 0
    assert result.metadata is None


def test_unsafe_file_reports_every_issue(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "t.csv", "a,<script>\n")

    result = parse_file(path)

    assert not result.success
    assert result.data is None
    assert result.errors == ["Potential security risk detected: <script"]


def test_safety_checks_can_be_disabled(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "t.csv", "a,<script>\n")

    result = parse_file(path, ParserConfig(safety_checks=False))

    assert result.success
    assert result.data is not None
    assert result.data.sheets["Sheet1"].values() == [["a", "<script>"]]


def test_missing_file(tmp_path: Path) -> None:
    gated = parse_file(tmp_path / "missing.csv")
    ungated = parse_file(tmp_path / "missing.csv", ParserConfig(safety_checks=False))

    assert gated.errors == ["File does not exist"]
    assert len(ungated.errors) == 1
    assert ungated.errors[0].startswith("Parsing failed: Input file not found")


def test_unsupported_extension(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "notes.txt", "a\n")

    assert parse_file(path).errors == ["Unsupported file extension: .txt"]
    ungated = parse_file(path, ParserConfig(safety_checks=False))
    assert ungated.errors[0].startswith("Parsing failed: Unsupported file format: '.txt'")


def test_row_longer_than_first_row_fails(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "t.csv", "a,b\n1,2,3\n")

    result = parse_file(path)

    assert not result.success
    assert result.data is None
    assert result.errors[0].startswith("Parsing failed: ")


def test_unexpected_errors_are_wrapped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = _write_csv(tmp_path, "t.csv", "a\n")

    def _boom(*_args: object, **_kwargs: object) -> Workbook:
        raise RuntimeError("boom")

    monkeypatch.setattr(pipeline_mod, "load_workbook_file", _boom)

    assert parse_file(path).errors == ["Parsing failed: boom"]


def test_validate_file_only_runs_the_gate(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "t.csv", "a,b\n1,2,3\n")

    report = validate_file(path)

    assert report.is_safe
    assert report.file_size_bytes == path.stat().st_size


def test_warnings_propagate_from_workbooks(tmp_path: Path) -> None:
    book = XlsxWorkbook()
    book.active.title = "Data"
    book.active["A1"] = 1
    book.create_sheet("Blank")
    path = tmp_path / "w.xlsx"
    book.save(path)

    result = parse_file(path)

    assert result.success
    assert result.warnings == ["Sheet 'Blank' is empty"]
    assert result.metadata is not None
    assert result.metadata.sheet_names == ["Data", "Blank"]


def test_convert_to_json(tmp_path: Path) -> None:
    src = _write_csv(tmp_path, "t.csv", "1,true\n")
    out = tmp_path / "out" / "t.json"

    result = convert_file(src, out, "json")

    assert result.success
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["sheets"]["Sheet1"]["rows"][0][1] == {"value": True, "type": "boolean"}


def test_convert_to_markdown_names_the_source(tmp_path: Path) -> None:
    src = _write_csv(tmp_path, "t.csv", "1,true\n")
    out = tmp_path / "t.md"

    assert convert_file(src, out, "markdown").success
    text = out.read_text(encoding="utf-8")
    assert "# Spreadsheet Summary: t.csv" in text
    assert "- **Format:** CSV" in text


def test_convert_to_unknown_format_fails_cleanly(tmp_path: Path) -> None:
    src = _write_csv(tmp_path, "t.csv", "1\n")

    result = convert_file(src, tmp_path / "t.xml", "xml")

    assert not result.success
    assert result.data is None
    assert result.errors == ["Conversion failed: Unsupported output format: 'xml'"]


def test_convert_propagates_parse_failures(tmp_path: Path) -> None:
    result = convert_file(tmp_path / "missing.csv", tmp_path / "o.json", "json")

    assert result.errors == ["File does not exist"]
    assert not (tmp_path / "o.json").exists()


def test_extract_sheets_writes_one_file_per_sheet(make_sheet, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    wb = Workbook(
        sheets={
            "Q1 Sales": make_sheet("Q1 Sales", [[1, 2]]),
            "Notes": make_sheet("Notes", [["hi"]]),
        }
    )

    written = extract_sheets(wb, tmp_path / "sheets", "csv")

    assert [p.name for p in written] == ["Q1_Sales.csv", "Notes.csv"]
    assert written[0].read_text(encoding="utf-8") == '"1","2"'


def test_extract_sheets_as_json(make_sheet, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    wb = Workbook(sheets={"A": make_sheet("A", [[1]])})

    (path,) = extract_sheets(wb, tmp_path, "json")

    assert path.name == "A.json"
    assert list(json.loads(path.read_text(encoding="utf-8"))["sheets"]) == ["A"]


def test_failures_carry_the_error_code(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    src = _write_csv(tmp_path, "t.csv", "1\n")
    ungated = ParserConfig(safety_checks=False)

    assert parse_file(tmp_path / "missing.csv").error_code is ErrorCode.UNSAFE_FILE
    assert parse_file(tmp_path / "missing.csv", ungated).error_code is ErrorCode.FILE_NOT_FOUND
    assert (
        convert_file(src, tmp_path / "t.xml", "xml").error_code
        is ErrorCode.UNSUPPORTED_OUTPUT_FORMAT
    )
    assert parse_file(src).error_code is None

    def _boom(*_args: object, **_kwargs: object) -> Workbook:
        raise RuntimeError("boom")

    monkeypatch.setattr(pipeline_mod, "load_workbook_file", _boom)
    assert parse_file(src).error_code is ErrorCode.UNKNOWN

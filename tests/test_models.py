from __future__ import annotations

from datetime import date, datetime

import pytest

from spreadsheet_convert.errors import ErrorCode
from spreadsheet_convert.models import (
    Cell,
    CellType,
    ProcessingResult,
    SafetyReport,
    Sheet,
    Workbook,
    WorkbookMetadata,
)


def test_cell_rejects_value_that_disagrees_with_type() -> None:
    with pytest.raises(TypeError, match="does not match"):
        Cell("42", CellType.NUMBER)
    with pytest.raises(TypeError):
        Cell(True, CellType.NUMBER)
    with pytest.raises(TypeError):
        Cell(1, CellType.BOOLEAN)


def test_cell_accepts_string_type_names() -> None:
    cell = Cell(3.5, "number")  # type: ignore[arg-type]

    assert cell.type is CellType.NUMBER


def test_empty_cell() -> None:
    cell = Cell.empty()

    assert cell.is_empty
    assert cell.to_dict() == {"value": None, "type": "string"}


def test_cell_dict_includes_formula_and_format_only_when_set() -> None:
    plain = Cell(2, CellType.NUMBER).to_dict()
    rich = Cell(4, CellType.NUMBER, formula="A1*2", format="0.00").to_dict()

    assert "formula" not in plain and "format" not in plain
    assert rich == {"value": 4, "type": "number", "formula": "A1*2", "format": "0.00"}


def test_date_cell_round_trips_through_iso_text() -> None:
    for value in (datetime(2024, 1, 15, 10, 30), date(2024, 1, 15)):
        payload = Cell(value, CellType.DATE).to_dict()
        assert isinstance(payload["value"], str)
        assert Cell.from_dict(payload) == Cell(value, CellType.DATE)


def test_sheet_requires_rectangular_rows(make_sheet) -> None:  # type: ignore[no-untyped-def]
    sheet = make_sheet("S", [[1, 2], [3, 4]])
    assert sheet.row_count == 2
    assert sheet.column_count == 2
    assert sheet.range_address == "A1:B2"

    with pytest.raises(ValueError, match="row 1 has 1 cells"):
        Sheet(
            name="S",
            rows=[[Cell.empty(), Cell.empty()], [Cell.empty()]],
            row_count=2,
            column_count=2,
        )
    with pytest.raises(ValueError, match="row_count"):
        Sheet(name="S", rows=[], row_count=1, column_count=0)


def test_sheet_values_and_populated(make_sheet) -> None:  # type: ignore[no-untyped-def]
    sheet = make_sheet("S", [[1, None], ["x", True]])

    assert sheet.values() == [[1, None], ["x", True]]
    assert sheet.populated
    assert not make_sheet("E", [[None]]).populated


def test_workbook_keys_must_match_sheet_names(make_sheet) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValueError, match="does not match"):
        Workbook(sheets={"Other": make_sheet("S", [[1]])})


def test_workbook_preserves_declaration_order(make_sheet) -> None:  # type: ignore[no-untyped-def]
    wb = Workbook(sheets={n: make_sheet(n, [[1]]) for n in ("b", "a", "c")})

    assert wb.sheet_names == ["b", "a", "c"]
    assert wb.first_sheet() is wb.sheets["b"]
    assert Workbook().first_sheet() is None


def test_workbook_round_trips_through_dict(make_sheet) -> None:  # type: ignore[no-untyped-def]
    wb = Workbook(
        sheets={"S": make_sheet("S", [[1, "a"], [datetime(2024, 1, 1), None]])},
        metadata=WorkbookMetadata(author="Ada", sheet_names=["S"]),
        active_sheet="S",
    )

    payload = wb.to_dict()

    assert payload["activeSheet"] == "S"
    assert payload["sheets"]["S"]["rangeAddress"] == "A1:B2"
    assert Workbook.from_dict(payload) == wb


def test_metadata_omits_absent_fields() -> None:
    meta = WorkbookMetadata(author="Ada", created=datetime(2024, 1, 2, 3, 4, 5))

    assert meta.to_dict() == {"author": "Ada", "created": "2024-01-02T03:04:05"}
    assert WorkbookMetadata.from_dict(meta.to_dict()) == meta


def test_safety_report_is_safe_only_without_issues() -> None:
    report = SafetyReport(is_safe=True, content_hash="ab", file_size_bytes=10)

    assert report.to_dict() == {
        "isSafe": True,
        "issues": [],
        "contentHash": "ab",
        "fileSizeBytes": 10,
    }
    with pytest.raises(ValueError):
        SafetyReport(is_safe=True, issues=("bad",))
    with pytest.raises(TypeError):
        SafetyReport(is_safe=False, issues="bad")  # type: ignore[arg-type]


def test_safety_report_is_frozen() -> None:
    report = SafetyReport(is_safe=False, issues=["x"])

    assert report.issues == ("x",)
    with pytest.raises(AttributeError):
        report.is_safe = True  # type: ignore[misc]


def test_failed_result_cannot_carry_data(make_sheet) -> None:  # type: ignore[no-untyped-def]
    wb = Workbook(sheets={"S": make_sheet("S", [[1]])})

    with pytest.raises(ValueError, match="must not carry data"):
        ProcessingResult(success=False, data=wb)


def test_result_to_dict() -> None:
    result = ProcessingResult(success=False, errors=["nope"])

    assert result.to_dict() == {"success": False, "warnings": [], "errors": ["nope"]}


def test_formula_cells_count_as_populated() -> None:
    sheet = Sheet(
        name="S",
        rows=[[Cell(None, CellType.STRING, formula="A2*2")]],
        row_count=1,
        column_count=1,
    )

    assert sheet.populated


def test_failed_result_carries_error_code() -> None:
    result = ProcessingResult(success=False, errors=["gone"], error_code="file_not_found")  # type: ignore[arg-type]

    assert result.error_code is ErrorCode.FILE_NOT_FOUND
    assert result.to_dict()["errorCode"] == "file_not_found"
    with pytest.raises(ValueError, match="error_code"):
        ProcessingResult(success=True, error_code=ErrorCode.UNKNOWN)

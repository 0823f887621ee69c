"""Tabular model — workbook -> sheets -> rows -> cells, plus report envelopes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from numbers import Integral
from typing import Any, Union

from spreadsheet_convert.errors import ErrorCode

CellValue = Union[int, float, bool, datetime, date, time, str, None]


class CellType(str, Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STRING = "string"
    ERROR = "error"


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _value_matches(value: Any, cell_type: CellType) -> bool:
    if cell_type is CellType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if cell_type is CellType.BOOLEAN:
        return isinstance(value, bool)
    if cell_type is CellType.DATE:
        return isinstance(value, (datetime, date, time))
    if cell_type is CellType.ERROR:
        return isinstance(value, str)
    return value is None or isinstance(value, str)


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _parse_iso(text: str) -> datetime | date | time:
    for parser in (datetime.fromisoformat, date.fromisoformat, time.fromisoformat):
        try:
            return parser(text)
        except ValueError:
            continue
    raise ValueError(f"Not an ISO-8601 date/time: {text!r}")


# ── Cells / sheets / workbooks ──────────────────────────────────


@dataclass(frozen=True)
class Cell:
    """One (value, type) pair. ``type`` is authoritative and must agree with ``value``."""

    value: CellValue = None
    type: CellType = CellType.STRING
    formula: str | None = None
    format: str | None = None

    def __post_init__(self) -> None:
        cell_type = CellType(self.type)
        object.__setattr__(self, "type", cell_type)
        if not _value_matches(self.value, cell_type):
            raise TypeError(
                f"Cell value {self.value!r} does not match type {cell_type.value!r}"
            )

    @classmethod
    def empty(cls) -> Cell:
        return cls(None, CellType.STRING)

    @property
    def is_empty(self) -> bool:
        return self.value is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"value": _iso(self.value), "type": self.type.value}
        if self.formula is not None:
            payload["formula"] = self.formula
        if self.format is not None:
            payload["format"] = self.format
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cell:
        cell_type = CellType(data.get("type", CellType.STRING.value))
        value = data.get("value")
        if cell_type is CellType.DATE and isinstance(value, str):
            value = _parse_iso(value)
        return cls(value, cell_type, data.get("formula"), data.get("format"))


@dataclass
class Sheet:
    """One rectangular grid.

    Contract invariant: ``len(rows) == row_count`` and every row holds exactly
    ``column_count`` cells.
    """

    name: str
    rows: list[list[Cell]] = field(default_factory=list)
    range_address: str = "A1:A1"
    row_count: int = 0
    column_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("name must be a non-empty string")
        self.row_count = _to_non_negative_int(self.row_count, "row_count")
        self.column_count = _to_non_negative_int(self.column_count, "column_count")
        if len(self.rows) != self.row_count:
            raise ValueError("row_count must equal the number of rows")
        for idx, row in enumerate(self.rows):
            if len(row) != self.column_count:
                raise ValueError(
                    f"row {idx} has {len(row)} cells; column_count is {self.column_count}"
                )

    def values(self) -> list[list[CellValue]]:
        """Row-major raw values, type/formula/format dropped."""
        return [[c.value for c in row] for row in self.rows]

    @property
    def populated(self) -> bool:
        return any(
            not c.is_empty or c.formula is not None for row in self.rows for c in row
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "rows": [[c.to_dict() for c in row] for row in self.rows],
            "rangeAddress": self.range_address,
            "rowCount": self.row_count,
            "columnCount": self.column_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Sheet:
        rows = [[Cell.from_dict(c) for c in row] for row in data.get("rows", [])]
        return cls(
            name=data["name"],
            rows=rows,
            range_address=data.get("rangeAddress", "A1:A1"),
            row_count=data.get("rowCount", len(rows)),
            column_count=data.get("columnCount", len(rows[0]) if rows else 0),
        )


@dataclass
class WorkbookMetadata:
    """Document properties; only the fields the source exposes are set."""

    title: str | None = None
    author: str | None = None
    subject: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    application: str | None = None
    sheet_names: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key, attr in (
            ("title", "title"),
            ("author", "author"),
            ("subject", "subject"),
            ("created", "created"),
            ("modified", "modified"),
            ("application", "application"),
        ):
            value = getattr(self, attr)
            if value is not None:
                payload[key] = _iso(value)
        if self.sheet_names is not None:
            payload["sheetNames"] = list(self.sheet_names)
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkbookMetadata:
        created = data.get("created")
        modified = data.get("modified")
        return cls(
            title=data.get("title"),
            author=data.get("author"),
            subject=data.get("subject"),
            created=_parse_iso(created) if isinstance(created, str) else created,
            modified=_parse_iso(modified) if isinstance(modified, str) else modified,
            application=data.get("application"),
            sheet_names=data.get("sheetNames"),
        )


@dataclass
class Workbook:
    """Named sheets in declaration order plus optional metadata."""

    sheets: dict[str, Sheet] = field(default_factory=dict)
    metadata: WorkbookMetadata | None = None
    active_sheet: str | None = None

    def __post_init__(self) -> None:
        for key, sheet in self.sheets.items():
            if key != sheet.name:
                raise ValueError(f"sheet key {key!r} does not match sheet name {sheet.name!r}")

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)

    def first_sheet(self) -> Sheet | None:
        return next(iter(self.sheets.values()), None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sheets": {name: sheet.to_dict() for name, sheet in self.sheets.items()}
        }
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        if self.active_sheet is not None:
            payload["activeSheet"] = self.active_sheet
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Workbook:
        sheets = {name: Sheet.from_dict(s) for name, s in (data.get("sheets") or {}).items()}
        metadata = data.get("metadata")
        return cls(
            sheets=sheets,
            metadata=WorkbookMetadata.from_dict(metadata) if metadata is not None else None,
            active_sheet=data.get("activeSheet"),
        )


# ── Reports ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class SafetyReport:
    """Outcome of the pre-ingestion safety gate. ``is_safe`` iff no issues."""

    is_safe: bool
    issues: tuple[str, ...] = ()
    content_hash: str = ""
    file_size_bytes: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(_to_string_list(self.issues, "issues")))
        object.__setattr__(
            self, "file_size_bytes", _to_non_negative_int(self.file_size_bytes, "file_size_bytes")
        )
        if self.is_safe and self.issues:
            raise ValueError("is_safe must be False when issues are present")

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSafe": self.is_safe,
            "issues": list(self.issues),
            "contentHash": self.content_hash,
            "fileSizeBytes": self.file_size_bytes,
        }


@dataclass
class ProcessingResult:
    """Caller-visible result envelope. ``data`` is only set on success.

    ``error_code`` names the failure class of an unsuccessful run.
    """

    success: bool = False
    data: Workbook | None = None
    metadata: WorkbookMetadata | None = None
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    processing_time_ms: float | None = None
    error_code: ErrorCode | None = None

    def __post_init__(self) -> None:
        self.warnings = _to_string_list(self.warnings, "warnings")
        self.errors = _to_string_list(self.errors, "errors")
        if not self.success and self.data is not None:
            raise ValueError("failed results must not carry data")
        if self.error_code is not None:
            if self.success:
                raise ValueError("successful results must not carry an error_code")
            self.error_code = ErrorCode(self.error_code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        if self.processing_time_ms is not None:
            payload["processingTimeMs"] = self.processing_time_ms
        if self.error_code is not None:
            payload["errorCode"] = self.error_code.value
        return payload

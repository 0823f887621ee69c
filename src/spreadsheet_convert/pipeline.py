"""Top-level pipeline — safety gate, ingestion, serialization.

:func:`parse_file` and :func:`convert_file` never raise for expected
failures; they return a :class:`ProcessingResult` with ``success=False`` and
the reasons in ``errors``. No partial workbook is returned on failure.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from spreadsheet_convert.config import ParserConfig
from spreadsheet_convert.errors import (
    ErrorCode,
    SpreadsheetConvertError,
    UnknownProcessingError,
    UnsafeFileError,
)
from spreadsheet_convert.io import load_workbook_file
from spreadsheet_convert.models import ProcessingResult, SafetyReport, Workbook
from spreadsheet_convert.safety import SafetyGate
from spreadsheet_convert.serialize import normalize_format, write_file
from spreadsheet_convert.utils import safe_file_stem

logger = logging.getLogger(__name__)

_FILE_EXTENSIONS = {"markdown": "md"}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


def _failure(errors: list[str], warnings: list[str], code: ErrorCode) -> ProcessingResult:
    return ProcessingResult(success=False, warnings=warnings, errors=errors, error_code=code)


def validate_file(path: Path, config: ParserConfig | None = None) -> SafetyReport:
    """Run only the safety gate."""
    return SafetyGate(config or ParserConfig()).validate(path)


def load_checked(
    path: Path, config: ParserConfig | None = None, warnings: list[str] | None = None
) -> Workbook:
    """Gate then ingest *path*; raises on failure.

    Raises
    ------
    UnsafeFileError
        If safety checks are enabled and the gate reports issues.
    SpreadsheetConvertError
        For any ingestion failure.
    """
    config = config or ParserConfig()
    if config.safety_checks:
        report = SafetyGate(config).validate(path)
        if not report.is_safe:
            raise UnsafeFileError(report.issues)
    return load_workbook_file(path, config, warnings)


def parse_file(path: Path | str, config: ParserConfig | None = None) -> ProcessingResult:
    """Validate and ingest *path* into the result envelope."""
    path = Path(path)
    start = time.perf_counter()
    warnings: list[str] = []
    try:
        workbook = load_checked(path, config, warnings)
    except UnsafeFileError as exc:
        return _failure(list(exc.issues), warnings, exc.code)
    except SpreadsheetConvertError as exc:
        logger.debug("Parsing %s failed: %s", path, exc)
        return _failure([f"Parsing failed: {exc}"], warnings, exc.code)
    except Exception as exc:
        logger.debug("Unexpected error while parsing %s", path, exc_info=True)
        wrapped = UnknownProcessingError(exc)
        return _failure([f"Parsing failed: {wrapped}"], warnings, wrapped.code)

    return ProcessingResult(
        success=True,
        data=workbook,
        metadata=workbook.metadata,
        warnings=warnings,
        processing_time_ms=_elapsed_ms(start),
    )


def convert_file(
    input_path: Path | str,
    output_path: Path | str,
    fmt: str,
    config: ParserConfig | None = None,
    *,
    sheet_name: str | None = None,
) -> ProcessingResult:
    """Parse *input_path* and write it to *output_path* in *fmt*."""
    input_path = Path(input_path)
    start = time.perf_counter()
    result = parse_file(input_path, config)
    if not result.success or result.data is None:
        return result

    try:
        write_file(
            result.data,
            Path(output_path),
            fmt,
            sheet_name=sheet_name,
            source_name=input_path.name,
            file_size_bytes=input_path.stat().st_size,
        )
    except SpreadsheetConvertError as exc:
        return _failure([f"Conversion failed: {exc}"], result.warnings, exc.code)
    except Exception as exc:
        logger.debug("Unexpected error while writing %s", output_path, exc_info=True)
        wrapped = UnknownProcessingError(exc)
        return _failure([f"Conversion failed: {wrapped}"], result.warnings, wrapped.code)

    result.processing_time_ms = _elapsed_ms(start)
    return result


def extract_sheets(workbook: Workbook, out_dir: Path, fmt: str) -> list[Path]:
    """Write each sheet to its own file in *out_dir*; returns the paths in sheet order."""
    out_dir = Path(out_dir)
    key = normalize_format(fmt)
    ext = _FILE_EXTENSIONS.get(key, key)
    written: list[Path] = []
    for name, sheet in workbook.sheets.items():
        single = Workbook(sheets={name: sheet}, metadata=workbook.metadata)
        target = out_dir / f"{safe_file_stem(name)}.{ext}"
        written.append(write_file(single, target, key, sheet_name=name))
    return written

"""Error taxonomy for the ingestion and serialization pipeline.

Exception hierarchy::

    SpreadsheetConvertError (base)
    ├── InputFileNotFoundError
    ├── UnsafeFileError
    ├── UnsupportedInputFormatError
    ├── EmptyWorkbookError
    ├── MalformedAddressError
    ├── NoSheetDataError
    ├── UnsupportedOutputFormatError
    └── UnknownProcessingError

The safety gate never raises; every other stage fails fast with one of the
classes above and :func:`spreadsheet_convert.pipeline.parse_file` turns it
into the ``errors`` list of a :class:`~spreadsheet_convert.models.ProcessingResult`.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable codes, one per error class."""

    FILE_NOT_FOUND = "file_not_found"
    UNSAFE_FILE = "unsafe_file"
    UNSUPPORTED_INPUT_FORMAT = "unsupported_input_format"
    EMPTY_WORKBOOK = "empty_workbook"
    MALFORMED_ADDRESS = "malformed_address"
    NO_SHEET_DATA = "no_sheet_data"
    UNSUPPORTED_OUTPUT_FORMAT = "unsupported_output_format"
    UNKNOWN = "unknown"


class SpreadsheetConvertError(Exception):
    """Base class for every error raised by this package."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InputFileNotFoundError(SpreadsheetConvertError):
    code = ErrorCode.FILE_NOT_FOUND


class UnsafeFileError(SpreadsheetConvertError):
    """The safety gate rejected the input; ``issues`` lists every finding."""

    code = ErrorCode.UNSAFE_FILE

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = list(issues)
        super().__init__("; ".join(self.issues) or "File failed safety checks")


class UnsupportedInputFormatError(SpreadsheetConvertError):
    code = ErrorCode.UNSUPPORTED_INPUT_FORMAT


class EmptyWorkbookError(SpreadsheetConvertError):
    code = ErrorCode.EMPTY_WORKBOOK


class MalformedAddressError(SpreadsheetConvertError, ValueError):
    code = ErrorCode.MALFORMED_ADDRESS


class NoSheetDataError(SpreadsheetConvertError):
    code = ErrorCode.NO_SHEET_DATA


class UnsupportedOutputFormatError(SpreadsheetConvertError):
    code = ErrorCode.UNSUPPORTED_OUTPUT_FORMAT

    def __init__(self, fmt: str) -> None:
        self.fmt = fmt
        super().__init__(f"Unsupported output format: {fmt!r}")


class UnknownProcessingError(SpreadsheetConvertError):
    """Wraps a lower-level failure, keeping its original message."""

    code = ErrorCode.UNKNOWN

    def __init__(self, original: BaseException) -> None:
        self.original = original
        super().__init__(str(original) or type(original).__name__)

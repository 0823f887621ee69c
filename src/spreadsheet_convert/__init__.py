"""spreadsheet-convert — Normalize workbooks and delimited text into one model and re-serialize it."""

__version__ = "0.2.0"

WORKBOOK_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xls", ".xlsm"})
DELIMITED_EXTENSIONS: dict[str, str] = {".csv": ",", ".tsv": "\t"}

"""Immutable parser configuration threaded into every component."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

DEFAULT_MAX_FILE_SIZE_BYTES = 500 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {".xlsx", ".xls", ".xlsm", ".csv", ".tsv", ".ods"}
)
DEFAULT_SCAN_BYTES = 10_000
DEFAULT_CSV_CHUNK_SIZE = 10_000


def _to_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result <= 0:
        raise ValueError(f"{field_name} must be > 0")
    return result


def _to_extension_set(values: Iterable[Any], field_name: str) -> frozenset[str]:
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a collection of strings")
    normalized: set[str] = set()
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        ext = item.strip().lower()
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        if ext:
            normalized.add(ext)
    return frozenset(normalized)


@dataclass(frozen=True)
class ParserConfig:
    """Options consumed by the safety gate, the adapters and the pipeline.

    Instances are immutable; use :meth:`with_overrides` to derive a variant.
    """

    read_all_sheets: bool = True
    include_metadata: bool = True
    safety_checks: bool = True
    preserve_formulas: bool = False
    include_formatting: bool = False
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    allowed_extensions: frozenset[str] = field(
        default_factory=lambda: DEFAULT_ALLOWED_EXTENSIONS
    )
    scan_bytes: int = DEFAULT_SCAN_BYTES
    csv_chunk_size: int = DEFAULT_CSV_CHUNK_SIZE

    def __post_init__(self) -> None:
        # frozen: assign normalized values through object.__setattr__
        for name in ("max_file_size_bytes", "scan_bytes", "csv_chunk_size"):
            object.__setattr__(self, name, _to_positive_int(getattr(self, name), name))
        object.__setattr__(
            self,
            "allowed_extensions",
            _to_extension_set(self.allowed_extensions, "allowed_extensions"),
        )

    def with_overrides(self, **changes: Any) -> ParserConfig:
        return dataclasses.replace(self, **changes)

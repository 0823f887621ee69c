"""Shared helpers — hashing, timestamps, file names."""

from __future__ import annotations

import hashlib
import re
from datetime import date, datetime, time, timezone
from pathlib import Path


def sha256_file(path: Path, chunk_size: int = 65536) -> str:
    """Return the hex SHA-256 digest of *path*, streamed in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """``2024-01-02 03:04:05``: second precision, no zone suffix."""
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def safe_file_stem(name: str) -> str:
    """Replace everything but ASCII letters and digits with ``_``."""
    return re.sub(r"[^A-Za-z0-9]", "_", name) or "_"


def stringify(value: object) -> str:
    """Plain text for one cell value; ``None`` becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)

"""Type inference for raw text tokens from delimited input.

Order is fixed and first match wins: number, boolean, date, string. A token
such as ``"20240115"`` is therefore a number even though it reads like a
compact date.
"""

from __future__ import annotations

import math
import re
from datetime import datetime

import pandas as pd

from spreadsheet_convert.models import Cell, CellType

_INT_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_DATE_PATTERN_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_BOOLEANS = {"true": True, "false": False}


def parse_number(token: str) -> int | float | None:
    """Return the finite number *token* spells, else ``None``."""
    if not _NUMBER_RE.match(token):
        return None
    if _INT_RE.match(token):
        return int(token)
    value = float(token)
    if not math.isfinite(value):
        return None
    return value


def parse_boolean(token: str) -> bool | None:
    return _BOOLEANS.get(token.lower())


def parse_date(token: str) -> datetime | None:
    """Return a datetime when *token* contains ``YYYY-MM-DD`` and parses as a date."""
    if not _DATE_PATTERN_RE.search(token):
        return None
    try:
        parsed = pd.to_datetime(token, errors="coerce")
    except (ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def parse_token(token: str) -> Cell:
    """Classify one trimmed token and return the matching cell."""
    if token == "":
        return Cell.empty()

    number = parse_number(token)
    if number is not None:
        return Cell(number, CellType.NUMBER)

    boolean = parse_boolean(token)
    if boolean is not None:
        return Cell(boolean, CellType.BOOLEAN)

    moment = parse_date(token)
    if moment is not None:
        return Cell(moment, CellType.DATE)

    return Cell(token, CellType.STRING)


def infer_type(token: str) -> CellType:
    return parse_token(token).type

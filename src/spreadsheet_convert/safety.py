"""Pre-ingestion safety gate.

The gate checks the extension allow-list, the size ceiling and a short
content heuristic, and always hashes the whole file for audit purposes.

The content scan only looks for a handful of script/execution markers in the
first bytes of the file. It is a best-effort heuristic: a clean report does
not mean a file is safe to open, only that none of the known markers showed up.
"""

from __future__ import annotations

import logging
from pathlib import Path

from spreadsheet_convert.config import ParserConfig
from spreadsheet_convert.models import SafetyReport
from spreadsheet_convert.utils import sha256_file

logger = logging.getLogger(__name__)

SUSPICIOUS_PATTERNS: tuple[str, ...] = (
    "eval(",
    "exec(",
    "system(",
    "shell_exec(",
    "javascript:",
    "<script",
    "vbscript:",
    "activexobject",
)


def scan_content(head: bytes) -> list[str]:
    """Return the suspicious markers found in *head* (case-insensitive)."""
    text = head.decode("utf-8", errors="replace").lower()
    return [pattern for pattern in SUSPICIOUS_PATTERNS if pattern in text]


class SafetyGate:
    """Screens untrusted files before any adapter opens them."""

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or ParserConfig()

    def validate(self, path: Path | str) -> SafetyReport:
        """Return a :class:`SafetyReport`; never raises.

        Every check runs even after an earlier one fails, so ``issues`` lists
        all findings at once. A missing file stops early since nothing else
        can be measured.
        """
        path = Path(path)
        issues: list[str] = []
        try:
            if not path.is_file():
                report = SafetyReport(is_safe=False, issues=("File does not exist",))
                logger.warning("Safety gate rejected %s: file does not exist", path)
                return report

            ext = path.suffix.lower()
            if ext not in self.config.allowed_extensions:
                issues.append(f"Unsupported file extension: {ext or '(none)'}")

            file_size = path.stat().st_size
            limit = self.config.max_file_size_bytes
            if file_size > limit:
                issues.append(f"File too large: {file_size} bytes (max: {limit})")

            content_hash = sha256_file(path)

            with open(path, "rb") as fh:
                head = fh.read(self.config.scan_bytes)
            matches = scan_content(head)
            if matches:
                issues.append(
                    f"Potential security risk detected: {', '.join(matches)}"
                )
        except OSError as exc:
            logger.warning("Safety gate could not read %s: %s", path, exc)
            return SafetyReport(is_safe=False, issues=(f"Validation error: {exc}",))

        report = SafetyReport(
            is_safe=not issues,
            issues=tuple(issues),
            content_hash=content_hash,
            file_size_bytes=file_size,
        )
        if issues:
            logger.warning("Safety gate rejected %s: %s", path, "; ".join(issues))
        else:
            logger.debug("Safety gate passed %s (sha256=%s)", path, content_hash)
        return report

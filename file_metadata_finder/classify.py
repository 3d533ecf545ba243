from __future__ import annotations

from enum import Enum
from pathlib import Path


class FileKind(str, Enum):
    """Closed set of file kinds the scanner knows how to catalogue."""

    CSV = "csv"
    SPREADSHEET = "excel"
    PDF = "pdf"
    DOCX = "docx"
    EML = "eml"
    UNSUPPORTED = "unsupported"


EXTENSION_KINDS = {
    ".csv": FileKind.CSV,
    ".xlsx": FileKind.SPREADSHEET,
    ".xls": FileKind.SPREADSHEET,
    ".xlsm": FileKind.SPREADSHEET,
    ".xlsb": FileKind.SPREADSHEET,
    ".pdf": FileKind.PDF,
    ".docx": FileKind.DOCX,
    ".eml": FileKind.EML,
}


def classify_path(p: Path) -> FileKind:
    """Pick a file kind from the (case-insensitive) extension."""
    return EXTENSION_KINDS.get(p.suffix.lower(), FileKind.UNSUPPORTED)

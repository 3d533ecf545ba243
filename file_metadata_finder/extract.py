from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .hashing import column_similarity_hash
from .models import CsvMetadata, ExcelMetadata, SheetMetadata
from .privacy import redact_text

# Suppress noisy workbook reader logging
for name in ("openpyxl", "xlrd", "pyxlsb"):
    logging.getLogger(name).setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 524288
DEFAULT_MAX_COLUMNS = 255
HEADER_SCAN_ROWS = 5
SYNTHETIC_COLUMN = "Column1"
SYNTHETIC_MIN_INDEX = 3

EXCEL_ENGINES = {".xls": "xlrd", ".xlsb": "pyxlsb"}


class ExtractionError(Exception):
    """A single file could not be parsed; the scan skips it and carries on."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


# --- Column helpers -----------------------------------------------------


def stop_at_synthetic(columns: Sequence[str]) -> List[str]:
    """Cut the header at a parser-invented ``Column1`` past the third column."""
    out = []
    for idx, col in enumerate(columns):
        if idx >= SYNTHETIC_MIN_INDEX and col == SYNTHETIC_COLUMN:
            break
        out.append(col)
    return out


def limit_columns(columns: Sequence[str], max_columns: int) -> List[str]:
    """Apply the display limit; 0 means unlimited."""
    if max_columns and len(columns) > max_columns:
        return list(columns[:max_columns])
    return list(columns)


def header_columns(
    raw: Sequence[str], max_columns: int
) -> Tuple[List[str], Optional[List[str]], int]:
    """
    Redact and clip a raw header.

    Returns the columns to display, the full column list when the display
    limit cut it (else None) and the schema hash. The hash and the full list
    are taken before the display limit, so capping columns never changes them.
    """
    columns = stop_at_synthetic([redact_text(c) for c in raw])
    shown = limit_columns(columns, max_columns)
    full = columns if len(shown) < len(columns) else None
    return shown, full, column_similarity_hash(columns)


# --- CSV ----------------------------------------------------------------


def extract_csv_metadata(
    p: Path,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_columns: int = DEFAULT_MAX_COLUMNS,
) -> CsvMetadata:
    """Read the header and count data rows, stopping after ``max_rows``."""
    try:
        with p.open(newline="", encoding="utf-8-sig", errors="replace") as f:
            reader = csv.reader(f)
            header = next(reader, [])
            row_count = 0
            stopped_at = None
            for row in reader:
                if not row:
                    continue
                if row_count >= max_rows:
                    stopped_at = row_count
                    break
                row_count += 1
    except csv.Error as e:
        raise ExtractionError(p, f"unparseable CSV: {e}") from e

    columns, schema_columns, schema_hash = header_columns(header, max_columns)
    return CsvMetadata(
        columns=columns,
        schema_columns=schema_columns,
        row_count=row_count,
        column_similarity_hash=schema_hash,
        stopped_row_count_at=stopped_at,
    )


# --- Spreadsheets -------------------------------------------------------


def cell_text(value) -> str:
    """Render a workbook cell the way it reads on screen."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if value is pd.NaT:
        return ""
    return str(value).strip()


def _is_numeric(text: str) -> bool:
    return all(c.isdigit() or c == "." for c in text)


def header_score(cells: Sequence[str]) -> int:
    """Count of non-empty cells that are not purely numeric."""
    return sum(1 for c in cells if c and not _is_numeric(c))


def find_header_row(rows: Sequence[Sequence[str]]) -> Tuple[List[str], int]:
    """
    Pick the most header-like row among the first HEADER_SCAN_ROWS rows.

    Highest score wins, earliest row on a tie. When no row scores, the first
    row is used as-is. Returns the non-empty cells of the chosen row and its
    index.
    """
    if not rows:
        return [], 0
    best_idx, best_score = 0, 0
    for idx, cells in enumerate(rows[:HEADER_SCAN_ROWS]):
        score = header_score(cells)
        if score > best_score:
            best_idx, best_score = idx, score
    return [c for c in rows[best_idx] if c], best_idx


def summarize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_columns: int = DEFAULT_MAX_COLUMNS,
) -> SheetMetadata:
    rows = [
        [cell_text(v) for v in record]
        for record in df.head(HEADER_SCAN_ROWS).itertuples(index=False, name=None)
    ]
    raw_header, header_idx = find_header_row(rows)
    columns, schema_columns, schema_hash = header_columns(raw_header, max_columns)

    data_rows = max(0, len(df) - header_idx - 1)
    stopped_at = None
    if data_rows > max_rows:
        data_rows = stopped_at = max_rows

    return SheetMetadata(
        sheet_name=redact_text(str(sheet_name)),
        columns=columns,
        schema_columns=schema_columns,
        row_count=data_rows,
        column_similarity_hash=schema_hash,
        stopped_row_count_at=stopped_at,
    )


def extract_excel_metadata(
    p: Path,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_columns: int = DEFAULT_MAX_COLUMNS,
) -> ExcelMetadata:
    """Summarize every sheet of a workbook: header, row count, schema hash."""
    # Enough rows for any header position plus one row past the limit.
    nrows = HEADER_SCAN_ROWS + max_rows + 1
    sheets = []
    try:
        with pd.ExcelFile(p.as_posix(), engine=EXCEL_ENGINES.get(p.suffix.lower())) as xls:
            for name in xls.sheet_names:
                df = xls.parse(name, header=None, nrows=nrows, dtype=object)
                sheets.append(summarize_sheet(df, name, max_rows, max_columns))
    except OSError:
        raise
    except Exception as e:
        raise ExtractionError(p, f"unreadable workbook: {type(e).__name__}: {e}") from e
    return ExcelMetadata(sheets=sheets)


# --- Presence-only kinds ------------------------------------------------


def check_readable(p: Path) -> None:
    """Open the file and read one byte; raises OSError when that fails."""
    with p.open("rb") as f:
        f.read(1)

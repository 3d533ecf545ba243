from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .classify import FileKind, classify_path
from .config import Settings
from .extract import (
    ExtractionError,
    check_readable,
    extract_csv_metadata,
    extract_excel_metadata,
)
from .hashing import content_identity
from .models import DirectoryEntry, FileDetails
from .privacy import detect_nhs_numbers, redact_text

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Path], None]


@dataclass
class SkippedFile:
    path: str
    reason: str


@dataclass
class CrawlResult:
    directories: List[DirectoryEntry] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    redacted_names: int = 0

    @property
    def file_count(self) -> int:
        return sum(len(d.files) for d in self.directories)


def _log_walk_error(err: OSError) -> None:
    logger.warning("[crawl] cannot read %s: %s", redact_text(str(err.filename)), err.strerror)


def iter_candidates(root: Path) -> Iterator[Tuple[Path, FileKind]]:
    """
    Walk ``root`` recursively (sorted, symlinked dirs not followed) and yield
    every file with a supported extension together with its kind.

    Directories are always descended into; whether one shows up in the report
    is only decided once its files have been classified.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        dirnames.sort()
        for fname in sorted(filenames):
            p = Path(dirpath) / fname
            kind = classify_path(p)
            if kind is FileKind.UNSUPPORTED:
                continue
            # special files (pipes, devices) are dropped; broken symlinks fail in stat() and are skipped
            if p.exists() and not p.is_file():
                logger.debug("[crawl] not a regular file: %s", redact_text(str(p)))
                continue
            yield p, kind


def count_candidates(root: Path) -> int:
    return sum(1 for _ in iter_candidates(root))


def created_timestamp(st: os.stat_result) -> str:
    """Creation time where the platform records it, else mtime, as UTC minutes."""
    ts = getattr(st, "st_birthtime", None) or st.st_mtime
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M")


def process_file(p: Path, kind: FileKind, settings: Settings) -> FileDetails:
    """
    Build the catalogue record for one file.

    Raises OSError when the file cannot be opened and ExtractionError when a
    tabular file cannot be parsed.
    """
    st = p.stat()
    crc, size = content_identity(p, st.st_size, settings.enable_hash)

    csv_meta = excel_meta = None
    if kind is FileKind.CSV:
        csv_meta = extract_csv_metadata(p, settings.max_rows, settings.max_columns)
    elif kind is FileKind.SPREADSHEET:
        excel_meta = extract_excel_metadata(p, settings.max_rows, settings.max_columns)
    else:
        check_readable(p)

    return FileDetails(
        name=redact_text(p.name),
        created=created_timestamp(st),
        file_type=kind.value,
        file_size=size,
        crc32_hash=crc,
        csv_metadata=csv_meta,
        excel_metadata=excel_meta,
    )


def scan_directory(
    root: Path,
    settings: Settings,
    progress: Optional[ProgressCallback] = None,
) -> CrawlResult:
    """
    Catalogue every supported file under ``root``.

    Per-file failures are logged and recorded in ``skipped``; they never stop
    the walk. Directories without a single catalogued file are left out.
    """
    grouped: Dict[Path, List[FileDetails]] = {}
    skipped: List[SkippedFile] = []
    redacted_names = 0

    for p, kind in iter_candidates(root):
        reason = None
        try:
            grouped.setdefault(p.parent, []).append(process_file(p, kind, settings))
        except ExtractionError as e:
            reason = e.reason
        except OSError as e:
            reason = f"{type(e).__name__}: {e.strerror or e}"
        if reason is not None:
            skip = SkippedFile(path=redact_text(str(p)), reason=redact_text(reason))
            logger.warning("[crawl] skip %s (%s)", skip.path, skip.reason)
            skipped.append(skip)
        elif detect_nhs_numbers(p.name):
            redacted_names += 1
        if progress is not None:
            progress(p)

    directories = [
        DirectoryEntry(path=redact_text(str(parent)), files=files)
        for parent, files in grouped.items()
        if files
    ]
    directories.sort(key=lambda d: d.path)
    return CrawlResult(directories=directories, skipped=skipped, redacted_names=redacted_names)

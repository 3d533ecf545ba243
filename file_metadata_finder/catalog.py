from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from .config import Settings, get_settings
from .crawl import CrawlResult, ProgressCallback, scan_directory
from .fuzzy import build_fuzzy_similarity_groups
from .models import ScanResult
from .privacy import redact_text
from .similarity import build_crc32_table, build_similarity_table

logger = logging.getLogger(__name__)


class ScanError(RuntimeError):
    """Unrecoverable problem with the scan root or the output location."""


def check_root(root: Path) -> Path:
    if not root.exists():
        raise ScanError(f"Directory does not exist: {redact_text(str(root))}")
    if not root.is_dir():
        raise ScanError(f"Not a directory: {redact_text(str(root))}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ScanError(f"Directory is not readable: {redact_text(str(root))}")
    return root.resolve()


def check_output(output: Path) -> None:
    parent = output.resolve().parent
    if not parent.is_dir():
        raise ScanError(f"Output directory does not exist: {redact_text(str(parent))}")
    if not os.access(parent, os.W_OK):
        raise ScanError(f"Output directory is not writable: {redact_text(str(parent))}")
    if output.is_dir():
        raise ScanError(f"Output path is a directory: {redact_text(str(output))}")


def build_report(root: Path, crawl: CrawlResult, fuzzy_threshold: float) -> ScanResult:
    """Assemble the report once every file has been catalogued."""
    directories = crawl.directories
    return ScanResult(
        scan_directory=redact_text(str(root)),
        directories=directories,
        column_similarity_table=build_similarity_table(directories),
        crc32_similarity_table=build_crc32_table(directories),
        fuzzy_similarity_groups=build_fuzzy_similarity_groups(directories, fuzzy_threshold),
    )


def run_scan(
    root: Path,
    settings: Optional[Settings] = None,
    progress: Optional[ProgressCallback] = None,
) -> Tuple[ScanResult, CrawlResult]:
    settings = settings or get_settings()
    root = check_root(Path(root))
    crawl = scan_directory(root, settings, progress=progress)
    report = build_report(root, crawl, settings.fuzzy_threshold)
    logger.info(
        "[catalog] %d files in %d directories (%d skipped), %d schema / %d crc32 / %d fuzzy groups",
        crawl.file_count,
        len(report.directories),
        len(crawl.skipped),
        len(report.column_similarity_table),
        len(report.crc32_similarity_table),
        len(report.fuzzy_similarity_groups),
    )
    return report, crawl


def write_report(report: ScanResult, output: Path) -> Path:
    """Write the JSON report in one go; a failed write leaves no partial file."""
    output = Path(output)
    payload = report.to_json()
    try:
        fd, tmp = tempfile.mkstemp(prefix=".scan-", suffix=".json", dir=output.resolve().parent)
    except OSError as e:
        raise ScanError(
            f"Failed to create output file {redact_text(str(output))}: {redact_text(str(e))}"
        ) from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.chmod(tmp, 0o644)
        os.replace(tmp, output)
    except OSError as e:
        Path(tmp).unlink(missing_ok=True)
        raise ScanError(
            f"Failed to write output file {redact_text(str(output))}: {redact_text(str(e))}"
        ) from e
    return output

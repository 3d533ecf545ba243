"""
Command line entry point.

    file-metadata-finder --directory <root> [--output output.json]
        [--disable-hash] [--max-rows N] [--max-columns N]
        [--fuzzy-threshold F] [--config scan.yaml] [--no-progress] [-v]

Scans <root>, writes one JSON report and prints a short summary.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from tqdm import tqdm

from .catalog import ScanError, check_output, check_root, run_scan, write_report
from .config import load_settings
from .crawl import count_candidates

logger = logging.getLogger("file_metadata_finder")


def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except UnicodeEncodeError:
        msg = " ".join(str(a) for a in args)
        sys.stdout.write(
            msg.encode(sys.stdout.encoding, errors="replace").decode(
                sys.stdout.encoding
            )
            + "\n"
        )


def parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="file-metadata-finder",
        description="Catalogue CSV/Excel/PDF/DOCX/EML files with redacted names, schemas and similarity tables",
    )
    ap.add_argument("-d", "--directory", type=Path, required=True, help="Directory to scan")
    ap.add_argument("-o", "--output", type=Path, help="Output JSON file path (default: output.json)")
    ap.add_argument(
        "--disable-hash",
        action="store_true",
        help="Record file sizes instead of CRC32 hashes for files <= 128KB",
    )
    ap.add_argument("--max-rows", type=int, help="Maximum rows to count per CSV file or sheet (default: 524288)")
    ap.add_argument("--max-columns", type=int, help="Maximum columns to list per schema, 0 = unlimited (default: 255)")
    ap.add_argument(
        "--fuzzy-threshold",
        type=float,
        help="Fuzzy column-set similarity threshold 0.0-1.0, 0 disables (default: 0.8)",
    )
    ap.add_argument("--config", type=Path, help="YAML file with scan settings")
    ap.add_argument("--no-progress", action="store_true", help="Do not show a progress bar")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            args.config,
            output=args.output,
            enable_hash=False if args.disable_hash else None,
            max_rows=args.max_rows,
            max_columns=args.max_columns,
            fuzzy_threshold=args.fuzzy_threshold,
        )
    except (ValidationError, OSError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        root = check_root(args.directory)
        check_output(settings.output)
        safe_print(f"Scanning directory: {root}")
        safe_print(f"Output file: {settings.output}")

        if args.no_progress:
            report, crawl = run_scan(root, settings)
        else:
            total = count_candidates(root)
            safe_print(f"Found {total} files to process")
            with tqdm(total=total, unit="file") as bar:
                report, crawl = run_scan(root, settings, progress=lambda _p: bar.update(1))

        write_report(report, settings.output)
    except ScanError as e:
        logger.error("%s", e)
        return 1

    safe_print(
        f"\nCompleted! Found {len(report.directories)} directories with "
        f"{crawl.file_count} files ({len(crawl.skipped)} skipped)."
    )
    if crawl.redacted_names:
        safe_print(f"Redacted identifiers in {crawl.redacted_names} file names.")
    safe_print(f"Output written to: {settings.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

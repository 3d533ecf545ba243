from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .models import (
    Crc32HashEntry,
    CsvMetadata,
    DirectoryEntry,
    SheetMetadata,
    SimilarityHashEntry,
)


@dataclass(frozen=True)
class SchemaSource:
    """One schema-bearing unit: a CSV file or a single workbook sheet.

    ``columns`` is the full header used for comparison; ``display_columns``
    is the list the report shows after max_columns.
    """

    source: str
    columns: Tuple[str, ...]
    schema_hash: int
    display_columns: Optional[Tuple[str, ...]] = None

    @property
    def shown(self) -> Tuple[str, ...]:
        return self.columns if self.display_columns is None else self.display_columns


def file_source(directory: DirectoryEntry, name: str) -> str:
    return os.path.join(directory.path, name)


def _schema_columns(meta: Union[CsvMetadata, SheetMetadata]) -> Tuple[str, ...]:
    """Columns the schema is compared on: the full header, not the displayed one."""
    if meta.schema_columns is not None:
        return tuple(meta.schema_columns)
    return tuple(meta.columns)


def iter_schema_sources(directories: Sequence[DirectoryEntry]) -> Iterator[SchemaSource]:
    """Yield every schema in report order: CSVs as ``path``, sheets as ``path (sheet)``."""
    for d in directories:
        for f in d.files:
            path = file_source(d, f.name)
            if f.csv_metadata is not None:
                meta = f.csv_metadata
                yield SchemaSource(
                    path, _schema_columns(meta), meta.column_similarity_hash, tuple(meta.columns)
                )
            if f.excel_metadata is not None:
                for sheet in f.excel_metadata.sheets:
                    yield SchemaSource(
                        f"{path} ({sheet.sheet_name})",
                        _schema_columns(sheet),
                        sheet.column_similarity_hash,
                        tuple(sheet.columns),
                    )


def build_similarity_table(directories: Sequence[DirectoryEntry]) -> List[SimilarityHashEntry]:
    """Schema hashes shared by two or more sources, sorted by hash."""
    by_hash: Dict[int, Tuple[List[str], List[str]]] = {}
    for s in iter_schema_sources(directories):
        sources, _ = by_hash.setdefault(s.schema_hash, ([], list(s.shown)))
        sources.append(s.source)

    table = [
        SimilarityHashEntry(hash=h, example_columns=cols, sources=sources)
        for h, (sources, cols) in by_hash.items()
        if len(sources) > 1
    ]
    table.sort(key=lambda e: e.hash)
    return table


def build_crc32_table(directories: Sequence[DirectoryEntry]) -> List[Crc32HashEntry]:
    """Content hashes shared by two or more files, sorted by hash.

    Files identified by size only never take part.
    """
    by_hash: Dict[str, List[str]] = {}
    for d in directories:
        for f in d.files:
            if f.crc32_hash is not None:
                by_hash.setdefault(f.crc32_hash, []).append(file_source(d, f.name))

    table = [
        Crc32HashEntry(hash=h, sources=sources)
        for h, sources in by_hash.items()
        if len(sources) > 1
    ]
    table.sort(key=lambda e: e.hash)
    return table

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class CsvMetadata(_Record):
    columns: List[str] = Field(default_factory=list)
    row_count: int = 0
    column_similarity_hash: int
    stopped_row_count_at: Optional[int] = None
    # full header when max_columns cut the displayed list; never serialized
    schema_columns: Optional[List[str]] = Field(default=None, exclude=True)


class SheetMetadata(_Record):
    sheet_name: str
    columns: List[str] = Field(default_factory=list)
    row_count: int = 0
    column_similarity_hash: int
    stopped_row_count_at: Optional[int] = None
    schema_columns: Optional[List[str]] = Field(default=None, exclude=True)


class ExcelMetadata(_Record):
    sheets: List[SheetMetadata] = Field(default_factory=list)


class FileDetails(_Record):
    """One catalogued file. Every string field is already redacted."""

    name: str
    created: str
    file_type: str
    file_size: Optional[int] = None
    crc32_hash: Optional[str] = None
    csv_metadata: Optional[CsvMetadata] = None
    excel_metadata: Optional[ExcelMetadata] = None

    @model_validator(mode="after")
    def _one_content_identity(self) -> "FileDetails":
        if (self.file_size is None) == (self.crc32_hash is None):
            raise ValueError("exactly one of crc32_hash / file_size must be set")
        return self


class DirectoryEntry(_Record):
    path: str
    files: List[FileDetails] = Field(default_factory=list)


class SimilarityHashEntry(_Record):
    hash: int
    example_columns: List[str]
    sources: List[str]


class Crc32HashEntry(_Record):
    hash: str
    sources: List[str]


class FuzzySimilarityGroup(_Record):
    group_id: int
    similarity_score: float
    representative_columns: List[str]
    sources: List[str]


class ScanResult(_Record):
    scan_directory: str
    directories: List[DirectoryEntry] = Field(default_factory=list)
    column_similarity_table: List[SimilarityHashEntry] = Field(default_factory=list)
    crc32_similarity_table: List[Crc32HashEntry] = Field(default_factory=list)
    fuzzy_similarity_groups: List[FuzzySimilarityGroup] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)

from __future__ import annotations

import json
from pathlib import Path

import pytest

from file_metadata_finder.catalog import (
    ScanError,
    check_output,
    check_root,
    run_scan,
    write_report,
)
from file_metadata_finder.config import Settings

from .conftest import write_csv


def test_run_scan_end_to_end(sample_tree: Path, settings: Settings):
    report, crawl = run_scan(sample_tree, settings)
    assert report.scan_directory == str(sample_tree.resolve())

    names = [f.name for d in report.directories for f in d.files]
    assert "patient_[REDACTED].csv" in names
    assert not any("1234567890" in n for n in names)

    # the two customer files differ by name only, never by exact hash
    for entry in report.column_similarity_table:
        assert not any(s.endswith("cust_data.csv") for s in entry.sources)

    assert len(report.fuzzy_similarity_groups) == 1
    group = report.fuzzy_similarity_groups[0]
    assert [Path(s).name for s in group.sources] == ["cust_data.csv", "customers.csv"]
    assert group.similarity_score == 0.8


def test_report_json_shape(sample_tree: Path, settings: Settings):
    report, _ = run_scan(sample_tree, settings)
    data = json.loads(report.to_json())
    assert set(data) == {
        "scan_directory",
        "directories",
        "column_similarity_table",
        "crc32_similarity_table",
        "fuzzy_similarity_groups",
    }
    files = {f["name"]: f for d in data["directories"] for f in d["files"]}
    csv_entry = files["patient_[REDACTED].csv"]
    assert csv_entry["file_type"] == "csv"
    assert set(csv_entry["csv_metadata"]) == {"columns", "row_count", "column_similarity_hash"}
    assert csv_entry["csv_metadata"]["columns"] == ["ID", "Name", "NHS Number", "Age"]
    assert csv_entry["csv_metadata"]["row_count"] == 2
    assert "file_size" not in csv_entry and len(csv_entry["crc32_hash"]) == 8

    book = files["workbook.xlsx"]
    assert book["file_type"] == "excel"
    assert {s["sheet_name"] for s in book["excel_metadata"]["sheets"]} == {
        "Patients",
        "Appointments [REDACTED]",
    }
    assert files["email.eml"]["file_type"] == "eml"
    assert files["report.pdf"]["file_type"] == "pdf"
    assert files["document_[REDACTED].docx"]["file_type"] == "docx"
    assert "csv_metadata" not in files["report.pdf"]


def test_duplicate_files_land_in_crc32_table(tmp_path: Path, settings: Settings):
    write_csv(tmp_path / "a.csv", ["x", "y"], [["1", "2"]])
    write_csv(tmp_path / "b.csv", ["x", "y"], [["1", "2"]])
    write_csv(tmp_path / "c.csv", ["x", "y"], [["3", "4"]])
    report, _ = run_scan(tmp_path, settings)

    assert len(report.crc32_similarity_table) == 1
    assert [Path(s).name for s in report.crc32_similarity_table[0].sources] == ["a.csv", "b.csv"]
    assert len(report.column_similarity_table) == 1
    assert len(report.column_similarity_table[0].sources) == 3
    # exact duplicates only: nothing fuzzy to report
    assert report.fuzzy_similarity_groups == []


def test_fuzzy_threshold_zero(sample_tree: Path):
    report, _ = run_scan(sample_tree, Settings(fuzzy_threshold=0))
    assert report.fuzzy_similarity_groups == []


def test_txt_only_directory_is_not_reported(tmp_path: Path, settings: Settings):
    (tmp_path / "only").mkdir()
    (tmp_path / "only" / "notes.txt").write_text("x", encoding="utf-8")
    report, _ = run_scan(tmp_path, settings)
    assert report.directories == []


def test_check_root_errors(tmp_path: Path):
    with pytest.raises(ScanError):
        check_root(tmp_path / "missing")
    f = tmp_path / "file.csv"
    f.write_text("a\n", encoding="utf-8")
    with pytest.raises(ScanError):
        check_root(f)


def test_check_output_errors(tmp_path: Path):
    with pytest.raises(ScanError):
        check_output(tmp_path / "no" / "such" / "dir" / "out.json")
    with pytest.raises(ScanError):
        check_output(tmp_path)
    check_output(tmp_path / "out.json")


def test_write_report_is_complete_json(sample_tree: Path, tmp_path: Path, settings: Settings):
    report, _ = run_scan(sample_tree, settings)
    out = write_report(report, tmp_path / "out.json")
    assert json.loads(out.read_text(encoding="utf-8"))["scan_directory"] == report.scan_directory
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".scan-")] == []


def test_write_report_failure_raises_scan_error(sample_tree: Path, tmp_path: Path, settings: Settings):
    report, _ = run_scan(sample_tree, settings)
    with pytest.raises(ScanError):
        write_report(report, tmp_path / "missing_dir" / "out.json")


def test_output_errors_are_redacted(tmp_path: Path):
    with pytest.raises(ScanError) as exc:
        check_output(tmp_path / "ward 1234567890" / "out.json")
    assert "1234567890" not in str(exc.value)
    assert "[REDACTED]" in str(exc.value)

    target = tmp_path / "export_1234567890.json"
    target.mkdir()
    with pytest.raises(ScanError) as exc:
        check_output(target)
    assert "1234567890" not in str(exc.value)


def test_column_display_limit_does_not_change_fuzzy_groups(tmp_path: Path):
    write_csv(tmp_path / "a.csv", ["id", "name", "postcode", "ward"])
    write_csv(tmp_path / "b.csv", ["id", "name", "surname", "clinic"])

    report, _ = run_scan(tmp_path, Settings(max_columns=2))
    files = [f for d in report.directories for f in d.files]
    assert [f.csv_metadata.columns for f in files] == [["id", "name"], ["id", "name"]]
    # only 2 of 4 columns match, far below the 0.8 threshold
    assert report.fuzzy_similarity_groups == []
    assert "schema_columns" not in report.to_json()

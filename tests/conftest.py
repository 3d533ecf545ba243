from pathlib import Path

import pytest

from file_metadata_finder.config import Settings


def write_csv(path: Path, header: list[str], rows: list[list[str]] = ()) -> Path:
    lines = [",".join(header)] + [",".join(r) for r in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def make_docx(path: Path, text: str) -> None:
    import docx

    d = docx.Document()
    for line in text.split("\n"):
        d.add_paragraph(line)
    d.save(str(path))


def make_pdf(path: Path, text: str) -> None:
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas

    c = canvas.Canvas(str(path), pagesize=letter)
    width, height = letter
    y = height - 72
    for line in text.split("\n"):
        c.drawString(72, y, line[:1000])
        y -= 14
    c.save()


def make_xlsx(path: Path) -> None:
    import pandas as pd

    # 2 sheets: a patient list and an appointments log
    with pd.ExcelWriter(path) as w:
        pd.DataFrame(
            {
                "Patient ID": [1, 2, 3],
                "Surname": ["Doe", "Smith", "Jones"],
                "Ward": ["A", "B", "C"],
            }
        ).to_excel(w, index=False, sheet_name="Patients")
        pd.DataFrame(
            {
                "date": ["2024-01-02", "2024-01-03"],
                "clinic": ["North", "South"],
            }
        ).to_excel(w, index=False, sheet_name="Appointments 1234567890")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    root/
      patient_1234567890.csv   ID,Name,NHS Number,Age
      cust_data.csv            cust_id,cust_name
      customers.csv            customer_id,customer_name
      report.pdf
      document_5555555555.docx
      notes/readme.txt         (unsupported only)
      subdir/data.csv          Column1,Column2
      subdir/email.eml
      subdir/workbook.xlsx
    """
    root = tmp_path / "scan_root"
    root.mkdir()
    write_csv(
        root / "patient_1234567890.csv",
        ["ID", "Name", "NHS Number", "Age"],
        [["1", "John Doe", "9876543210", "45"], ["2", "Jane Smith", "111 222 3333", "32"]],
    )
    write_csv(root / "cust_data.csv", ["cust_id", "cust_name"], [["1", "Acme"]])
    write_csv(root / "customers.csv", ["customer_id", "customer_name"], [["7", "Globex"]])
    make_pdf(root / "report.pdf", "Quarterly report")
    make_docx(root / "document_5555555555.docx", "Referral letter")

    notes = root / "notes"
    notes.mkdir()
    (notes / "readme.txt").write_text("not catalogued", encoding="utf-8")

    sub = root / "subdir"
    sub.mkdir()
    write_csv(sub / "data.csv", ["Column1", "Column2"], [["Value1", "Value2"], ["Value3", "Value4"]])
    (sub / "email.eml").write_text("Subject: hello\n\nbody\n", encoding="utf-8")
    make_xlsx(sub / "workbook.xlsx")
    return root

"""Tests for the sales report template and XLSX/CSV exporters."""

import pytest

pytest.importorskip("openpyxl")

from openpyxl import load_workbook

from src.modules.sales.models import CategoryTotal, LineItem, Report
from src.report import (
    SalesReportTemplate,
    format_display_date,
    render_report_csv,
    report_rows,
    write_report_csv,
    write_report_xlsx,
)
from src.utils.exceptions import ExportError
from src.utils.xlsx_formatting import HEADER_FILL


@pytest.fixture
def sample_report():
    """Two-product report for one day."""
    return Report(
        location_label="Domani Providencia",
        period_start="2024-05-01",
        period_end="2024-05-01",
        total_excl_tax=11500,
        total_incl_tax=13400,
        items=[
            LineItem(
                name="Margherita",
                code="101",
                quantity=2,
                unit_price=5000,
                amount_excl_tax=10000,
                amount_incl_tax=11900,
                category="PIZZAS",
            ),
            LineItem(
                name='Coca Cola "Zero", 350cc',
                code="205",
                quantity=1,
                unit_price=1500,
                amount_excl_tax=1500,
                amount_incl_tax=1500,
                category="AGUAS JUGOS & BEBIDAS",
            ),
        ],
        by_category=[
            CategoryTotal("PIZZAS", 2, 11900),
            CategoryTotal("AGUAS JUGOS & BEBIDAS", 1, 1500),
        ],
    )


# ============================================================================
# TEMPLATE
# ============================================================================


def test_template_structure():
    """Test SalesReportTemplate has the fixed column layout."""
    template = SalesReportTemplate()
    assert template.get_column_names() == [
        "Menu item name",
        "Menu item code",
        "Menu item list price",
        "Quantity sold",
        "Sales total excl. tax",
        "Sales total incl. tax",
        "Category",
    ]
    assert template.TABLE_HEADER_ROW == 7
    assert [col.column_index for col in template.COLUMNS] == list(range(7))


def test_template_quoted_columns():
    """Only name and category are always quoted."""
    quoted = [col.name for col in SalesReportTemplate.COLUMNS if col.quoted]
    assert quoted == ["Menu item name", "Category"]


# ============================================================================
# ROWS
# ============================================================================


class TestReportRows:
    """Test the shared row layout."""

    def test_header_block(self, sample_report):
        rows = report_rows(sample_report)
        assert rows[0] == ["Location name", "Domani Providencia"]
        assert rows[1] == ["Begin date", "01/05/2024"]
        assert rows[2] == ["End date", "01/05/2024"]
        assert rows[3] == ["Total revenue excl. tax", 11500]
        assert rows[4] == ["Total revenue incl. tax", 13400]
        assert rows[5] == []
        assert rows[6][0] == "Menu item name"

    def test_item_rows_in_report_order(self, sample_report):
        rows = report_rows(sample_report)
        assert len(rows) == 9
        assert rows[7] == ["Margherita", "101", 5000, 2, 10000, 11900, "PIZZAS"]
        assert rows[8][0] == 'Coca Cola "Zero", 350cc'

    def test_empty_report(self):
        rows = report_rows(Report("Local", "2024-05-01", "2024-05-01"))
        assert len(rows) == 7
        assert rows[3] == ["Total revenue excl. tax", 0]

    def test_display_date(self):
        assert format_display_date("2024-12-31") == "31/12/2024"
        assert format_display_date("yesterday") == "yesterday"


# ============================================================================
# CSV
# ============================================================================


class TestRenderReportCsv:
    """Test CSV text rendering."""

    def test_bom_and_trailing_newline(self, sample_report):
        text = render_report_csv(sample_report)
        assert text.startswith("\ufeffLocation name,Domani Providencia\n")
        assert text.endswith("\n")
        assert "\r" not in text

    def test_header_and_blank_row(self, sample_report):
        lines = render_report_csv(sample_report).lstrip("\ufeff").split("\n")
        assert lines[1] == "Begin date,01/05/2024"
        assert lines[3] == "Total revenue excl. tax,11500"
        assert lines[5] == ""
        assert lines[6] == (
            "Menu item name,Menu item code,Menu item list price,Quantity sold,"
            "Sales total excl. tax,Sales total incl. tax,Category"
        )

    def test_name_and_category_always_quoted(self, sample_report):
        lines = render_report_csv(sample_report).lstrip("\ufeff").split("\n")
        assert lines[7] == '"Margherita",101,5000,2,10000,11900,"PIZZAS"'
        assert lines[8] == (
            '"Coca Cola ""Zero"", 350cc",205,1500,1,1500,1500,'
            '"AGUAS JUGOS & BEBIDAS"'
        )

    def test_location_with_comma_quoted(self):
        report = Report("Domani, Providencia", "2024-05-01", "2024-05-01")
        text = render_report_csv(report)
        assert text.startswith('\ufeffLocation name,"Domani, Providencia"\n')

    def test_write_report_csv(self, sample_report, tmp_path):
        path = write_report_csv(sample_report, tmp_path / "out" / "ventas.csv")
        raw = path.read_bytes()
        assert raw.startswith(b"\xef\xbb\xbf")
        assert raw.decode("utf-8") == render_report_csv(sample_report)

    def test_write_failure_raises(self, sample_report, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_report_csv(sample_report, blocker / "ventas.csv")


# ============================================================================
# XLSX
# ============================================================================


class TestWriteReportXlsx:
    """Test the formatted workbook."""

    def test_sheet_contents(self, sample_report, tmp_path):
        path = write_report_xlsx(sample_report, tmp_path / "ventas.xlsx")
        ws = load_workbook(path).active

        assert ws.title == "Ventas"
        assert ws["A1"].value == "Location name"
        assert ws["B1"].value == "Domani Providencia"
        assert ws["B2"].value == "01/05/2024"
        assert ws["B5"].value == 13400
        assert ws["A6"].value is None
        assert ws["A7"].value == "Menu item name"
        assert ws["A8"].value == "Margherita"
        assert ws["C8"].value == 5000
        assert ws["D8"].value == 2
        assert ws["G9"].value == "AGUAS JUGOS & BEBIDAS"
        assert ws.max_row == 9

    def test_formatting(self, sample_report, tmp_path):
        path = write_report_xlsx(sample_report, tmp_path / "ventas.xlsx")
        ws = load_workbook(path).active

        assert ws["A1"].font.bold
        assert ws["A7"].font.bold
        assert ws["A7"].fill.start_color.rgb.endswith(HEADER_FILL.start_color.rgb)
        assert ws.column_dimensions["A"].width == 35
        assert ws.column_dimensions["G"].width == 30
        assert ws["F8"].number_format == "#,##0"
        assert ws["B4"].number_format == "#,##0"

    def test_write_failure_raises(self, sample_report, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_report_xlsx(sample_report, blocker / "ventas.xlsx")

"""Tests for Schedule A report rendering."""

import csv
import io

import pytest

from schedule_a_core import ScheduleAReportBuilder, ScheduleAReportGenerator
from schedule_a_core.report_builder import ScheduleAContext


@pytest.fixture
def large_donor_report(config, large_donor_transactions, categories):
    context = ScheduleAContext(tax_year=2024, organization_id=42, public_charity_type=7)
    return ScheduleAReportBuilder(config).build(context, large_donor_transactions, categories)


def csv_rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestScheduleAReportGenerator:
    """Test suite for ScheduleAReportGenerator."""

    def test_text_report_sections(self, large_donor_report):
        text = ScheduleAReportGenerator().generate(large_donor_report)

        assert text.startswith("SCHEDULE A (FORM 990) PUBLIC SUPPORT REPORT")
        assert "Organization: 42" in text
        assert "PART II - SUPPORT SCHEDULE" in text
        assert "PART III - SUPPORT SCHEDULE" not in text
        assert "STATUS (Part II): DOES NOT QUALIFY (line18)" in text
        assert "CALCULATION AUDIT TRAIL" in text
        assert "END OF REPORT" in text

    def test_markdown_report(self, large_donor_report):
        markdown = ScheduleAReportGenerator().generate(large_donor_report, format="markdown")

        assert markdown.startswith("# Schedule A (Form 990) - Tax Year 2024")
        assert "\n## Summary\n" in markdown

    def test_markdown_header_follows_each_report(self, config, large_donor_report, categories):
        earlier = ScheduleAReportBuilder(config).build(ScheduleAContext(tax_year=2021), [], categories)
        generator = ScheduleAReportGenerator()

        generator.generate(large_donor_report, format="text")
        markdown = generator.generate(earlier, format="markdown")

        assert markdown.startswith("# Schedule A (Form 990) - Tax Year 2021")
        assert generator.generate(large_donor_report, format="markdown").startswith(
            "# Schedule A (Form 990) - Tax Year 2024"
        )

    def test_csv_matches_export_layout(self, large_donor_report):
        rows = csv_rows(ScheduleAReportGenerator().generate(large_donor_report, format="csv"))

        assert rows[0] == ["Schedule A (Form 990) - Public Charity Status and Public Support"]
        assert ["Organization: 42"] in rows
        assert ["Tax Year: 2024"] in rows
        assert ["Part I: Public Charity Status"] in rows
        assert ["", "2020", "2021", "2022", "2023", "2024", "Total"] in rows
        assert ["Line 1 - Gifts, grants, contributions, membership fees",
                "0.00", "0.00", "10000.00", "0.00", "0.00", "10000.00"] in rows
        assert ["Line 5 - Excess contributions (2% threshold)", "8000.00"] in rows
        assert ["Line 14 - Public support percentage 2024", "2.00%"] in rows
        assert ["Line 18 - Private foundation", "Yes"] in rows
        assert ["Meets 33 1/3% Threshold (Part II)", "No"] in rows
        assert not any(row and row[0].startswith("Part III") for row in rows)

    def test_csv_quotes_every_cell(self, large_donor_report):
        text = ScheduleAReportGenerator().generate(large_donor_report, format="csv")
        assert text.splitlines()[0] == '"Schedule A (Form 990) - Public Charity Status and Public Support"'

    def test_csv_part_iii_only_for_509a2(self, config, large_donor_transactions, categories):
        context = ScheduleAContext(tax_year=2024, public_charity_type=10)
        report = ScheduleAReportBuilder(config).build(context, large_donor_transactions, categories)

        rows = csv_rows(ScheduleAReportGenerator().generate(report, format="csv"))

        assert ["Part III - Section A: Public Support"] in rows
        assert ["Line 7b - Excess over greater of $5,000 or 1%",
                "0.00", "0.00", "5000.00", "0.00", "0.00", "5000.00"] in rows
        assert ["Public Support Percentage (Part III)", "5.00%"] in rows
        assert not any(row and row[0].startswith("Part II -") for row in rows)

    def test_both_parts_when_charity_type_unknown(self, config, large_donor_transactions, categories):
        report = ScheduleAReportBuilder(config).build(
            ScheduleAContext(tax_year=2024), large_donor_transactions, categories
        )

        text = ScheduleAReportGenerator().generate(report)

        assert "PART II - SUPPORT SCHEDULE" in text
        assert "PART III - SUPPORT SCHEDULE" in text
        assert "DATA QUALITY" in text

    def test_rendering_is_deterministic(self, large_donor_report):
        generator = ScheduleAReportGenerator()
        assert generator.generate(large_donor_report, format="csv") == generator.generate(
            large_donor_report, format="csv"
        )
        assert generator.generate(large_donor_report) == generator.generate(large_donor_report)

    def test_unknown_format_rejected(self, large_donor_report):
        with pytest.raises(ValueError, match="Unsupported report format"):
            ScheduleAReportGenerator().generate(large_donor_report, format="pdf")

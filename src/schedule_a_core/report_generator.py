"""Report generation for Schedule A public support schedules.

Renders a ScheduleAReport as plain text, Markdown, or CSV rows laid out
like the "Export CSV" action of the Schedule A report page.
"""

import csv
import io
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

import structlog

from .irs_thresholds import ZERO, format_amount
from .models import AuditSeverity, SupportPart
from .report_builder import ScheduleAReport

logger = structlog.get_logger()

PUBLIC_CHARITY_TYPES = {
    1: "A church, convention of churches, or association of churches (section 170(b)(1)(A)(i))",
    2: "A school (section 170(b)(1)(A)(ii))",
    3: "A hospital or cooperative hospital service organization (section 170(b)(1)(A)(iii))",
    4: "A medical research organization operated with a hospital (section 170(b)(1)(A)(iii))",
    5: "An organization for the benefit of a college or university owned by a governmental unit "
       "(section 170(b)(1)(A)(iv))",
    6: "A federal, state, or local government or governmental unit (section 170(b)(1)(A)(v))",
    7: "An organization that normally receives substantial support from a governmental unit "
       "or the general public (section 170(b)(1)(A)(vi))",
    8: "A community trust (section 170(b)(1)(A)(vi))",
    9: "An agricultural research organization (section 170(b)(1)(A)(ix))",
    10: "An organization receiving >33 1/3% from contributions and gross receipts; "
        "<=33 1/3% from investment income (section 509(a)(2))",
    11: "An organization organized exclusively to test for public safety (section 509(a)(4))",
    12: "A supporting organization (section 509(a)(3))",
}

REPORT_FORMATS = ("text", "markdown", "csv")


@dataclass
class ReportSection:
    """A section of the report."""
    title: str
    content: str
    subsections: list["ReportSection"] = field(default_factory=list)


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _row_total(values: Sequence[str]) -> str:
    return format_amount(sum((Decimal(v) for v in values), ZERO))


class ScheduleAReportGenerator:
    """
    Generate Schedule A public support reports.

    Reports include:
    - Header and Part I status
    - Part II support schedule and checkbox results
    - Part III support schedule and checkbox results
    - Summary
    - Data-quality warnings and the calculation audit trail
    """

    def __init__(self):
        """Initialize the report generator."""
        self._sections: list[ReportSection] = []

    def generate(self, report: ScheduleAReport, format: str = "text") -> str:
        """
        Generate a Schedule A report.

        Args:
            report: The built Schedule A report
            format: Output format ("text", "markdown", "csv")

        Returns:
            Formatted report string
        """
        if format not in REPORT_FORMATS:
            raise ValueError(f"Unsupported report format: {format}")

        logger.info("schedule_a_report_rendering", format=format, tax_year=report.tax_year)

        if format == "csv":
            return self._format_csv(report)

        self._sections = []
        self._add_header(report)
        if self._shows_part_ii(report):
            self._add_part_ii(report)
        if self._shows_part_iii(report):
            self._add_part_iii(report)
        self._add_summary(report)
        if report.warnings:
            self._add_warnings(report)
        if report.audit_log:
            self._add_audit_trail(report)

        if format == "markdown":
            return self._format_markdown(report)
        return self._format_text()

    @staticmethod
    def _shows_part_ii(report: ScheduleAReport) -> bool:
        return report.relevant_part != SupportPart.PART_III

    @staticmethod
    def _shows_part_iii(report: ScheduleAReport) -> bool:
        return report.relevant_part != SupportPart.PART_II

    def _add_header(self, report: ScheduleAReport) -> None:
        """Add report header."""
        lines = [
            "SCHEDULE A (FORM 990) PUBLIC SUPPORT REPORT",
            "=" * 43,
            "",
        ]
        if report.organization_id is not None:
            lines.append(f"Organization: {report.organization_id}")
        lines.append(f"Tax Year: {report.tax_year}")
        charity_type = report.data.part_i.public_charity_type
        if charity_type is not None:
            lines.append(f"Part I: Line {charity_type}: {PUBLIC_CHARITY_TYPES[charity_type]}")
        lines.append(f"Form Revision: {report.form_revision}")
        lines.append(f"Engine Version: {report.engine_version}")

        self._sections.append(ReportSection(title="Header", content="\n".join(lines)))

    def _table(self, years: Sequence[int], rows: Sequence[tuple[str, Sequence[str]]]) -> list[str]:
        header = f"{'Line':<34}" + "".join(f"{year:>14}" for year in years) + f"{'Total':>16}"
        lines = [header, "-" * len(header)]
        for label, values in rows:
            lines.append(
                f"{label:<34}"
                + "".join(f"{Decimal(v):>14,.2f}" for v in values)
                + f"{Decimal(_row_total(values)):>16,.2f}"
            )
        return lines

    def _add_part_ii(self, report: ScheduleAReport) -> None:
        """Add Part II sections A through C."""
        part = report.data.part_ii
        a, b, c = part.section_a, part.section_b, part.section_c

        lines = ["SECTION A. PUBLIC SUPPORT", ""]
        lines.extend(self._table(a.years, [
            ("1  Gifts, grants, contributions", a.line1),
            ("2  Tax revenues levied", a.line2),
            ("3  Government services furnished", a.line3),
            ("4  Total (lines 1-3)", a.line4),
        ]))
        lines.append(f"5  Excess contributions (2%)      ${Decimal(a.line5):>14,.2f}")
        lines.append(f"6  Public support (line 4 - 5)    ${Decimal(a.line6):>14,.2f}")
        lines.extend(["", "SECTION B. TOTAL SUPPORT", ""])
        lines.extend(self._table(b.years, [
            ("7  Amounts from line 4", b.line7),
            ("8  Investment income", b.line8),
            ("9  Unrelated business income", b.line9),
            ("10 Other income", b.line10),
        ]))
        lines.append(f"11 Total support (lines 7-10)     ${Decimal(b.line11):>14,.2f}")
        lines.append(f"12 Gross receipts (related)       ${Decimal(b.line12):>14,.2f}")
        lines.extend([
            "",
            "SECTION C. COMPUTATION OF PUBLIC SUPPORT PERCENTAGE",
            "",
            f"14 Public support percentage {report.tax_year}: {c.line14}%",
            f"15 Public support percentage {report.tax_year - 1}: {c.line15}%",
            "",
            f"13  First five years:                          {_yes_no(c.line13)}",
            f"16a 33 1/3% support test (current year):     {_yes_no(c.line16a)}",
            f"16b 33 1/3% support test (prior year):       {_yes_no(c.line16b)}",
            f"17a 10% facts-and-circumstances (current):   {_yes_no(c.line17a)}",
            f"17b 10% facts-and-circumstances (prior):     {_yes_no(c.line17b)}",
            f"18  Private foundation:                      {_yes_no(c.line18)}",
            "",
            "Checkbox path:",
        ])
        for step in report.part_ii_outcome.path:
            lines.append(f"  [{'x' if step.matched else ' '}] {step.line}: {step.reason}")

        self._sections.append(ReportSection(title="Part II - Support Schedule", content="\n".join(lines)))

    def _add_part_iii(self, report: ScheduleAReport) -> None:
        """Add Part III sections A through D."""
        part = report.data.part_iii
        a, b, c, d = part.section_a, part.section_b, part.section_c, part.section_d

        lines = ["SECTION A. PUBLIC SUPPORT", ""]
        lines.extend(self._table(a.years, [
            ("1  Gifts, grants, contributions", a.line1),
            ("2  Gross receipts (related)", a.line2),
            ("3  Non-UBI gross receipts", a.line3),
            ("4  Tax revenues levied", a.line4),
            ("5  Government services furnished", a.line5),
            ("6  Total (lines 1-5)", a.line6),
            ("7a Disqualified persons", a.line7a),
            ("7b Excess over $5,000 / 1%", a.line7b),
            ("7c Add lines 7a and 7b", a.line7c),
            ("8  Public support (line 6 - 7c)", a.line8),
        ]))
        lines.extend(["", "SECTION B. TOTAL SUPPORT", ""])
        lines.extend(self._table(b.years, [
            ("9  Amounts from line 6", b.line9),
            ("10a Investment income", b.line10a),
            ("10b UBTI", b.line10b),
            ("10c Add lines 10a and 10b", b.line10c),
            ("11 Net unrelated business income", b.line11),
            ("12 Other income", b.line12),
            ("13 Total support", b.line13),
        ]))
        lines.extend([
            "",
            "SECTIONS C/D. PERCENTAGES",
            "",
            f"15 Public support percentage {report.tax_year}: {c.line15}%",
            f"16 Public support percentage {report.tax_year - 1}: {c.line16}%",
            f"17 Investment income percentage {report.tax_year}: {d.line17}%",
            f"18 Investment income percentage {report.tax_year - 1}: {d.line18}%",
            "",
            f"14  First five years:                        {_yes_no(c.line14)}",
            f"19a Both tests pass (current year):          {_yes_no(d.line19a)}",
            f"19b Both tests pass (prior year):            {_yes_no(d.line19b)}",
            f"20  Private foundation:                      {_yes_no(d.line20)}",
            "",
            "Checkbox path:",
        ])
        for step in report.part_iii_outcome.path:
            lines.append(f"  [{'x' if step.matched else ' '}] {step.line}: {step.reason}")

        self._sections.append(ReportSection(title="Part III - Support Schedule", content="\n".join(lines)))

    def _add_summary(self, report: ScheduleAReport) -> None:
        """Add summary section."""
        s = report.data.summary
        if report.relevant_part == SupportPart.PART_III:
            status = "QUALIFIES" if report.qualifies else "DOES NOT QUALIFY"
            lines = [
                f"STATUS (Part III): {status} ({report.part_iii_outcome.checked_line})",
                "",
                f"Total Public Support:         ${Decimal(s.part_iii_public_support):,.2f}",
                f"Total Support:                ${Decimal(s.part_iii_total_support):,.2f}",
                f"Public Support Percentage:    {s.part_iii_public_support_percentage}%",
                f"Investment Income Percentage: {s.part_iii_investment_percentage}%",
                f"Meets 33 1/3% Threshold:      {_yes_no(s.part_iii_meets_threshold)}",
            ]
        else:
            status = "QUALIFIES" if report.qualifies else "DOES NOT QUALIFY"
            lines = [
                f"STATUS (Part II): {status} ({report.part_ii_outcome.checked_line})",
                "",
                f"Total Public Support:         ${Decimal(s.total_public_support):,.2f}",
                f"Total Support:                ${Decimal(s.total_support):,.2f}",
                f"Public Support Percentage:    {s.public_support_percentage}%",
                f"Meets 33 1/3% Threshold:      {_yes_no(s.meets_threshold)}",
                f"Meets 10% Facts and Circumstances: {_yes_no(s.meets_facts_and_circumstances)}",
            ]
        self._sections.append(ReportSection(title="Summary", content="\n".join(lines)))

    def _add_warnings(self, report: ScheduleAReport) -> None:
        """Add data-quality warnings section."""
        lines = []
        for warning in report.warnings:
            marker = "!" if warning.severity == AuditSeverity.WARNING else "i"
            lines.append(f"[{marker}] {warning.code}: {warning.message}")
            if warning.transaction_ids:
                ids = ", ".join(str(i) for i in warning.transaction_ids[:10])
                more = f" (+{len(warning.transaction_ids) - 10} more)" if len(warning.transaction_ids) > 10 else ""
                lines.append(f"    Transactions: {ids}{more}")
            if warning.suggested_action:
                lines.append(f"    Action: {warning.suggested_action}")
        self._sections.append(ReportSection(title="Data Quality", content="\n".join(lines)))

    def _add_audit_trail(self, report: ScheduleAReport) -> None:
        """Add audit trail section."""
        lines = [
            "CALCULATION AUDIT TRAIL",
            "-" * 80,
            "",
            f"{'Step':<40} {'Output':<25} {'Line':<12}",
            "-" * 80,
        ]
        for entry in report.audit_log:
            output_val = entry.output_value[:23] + ".." if len(entry.output_value) > 25 else entry.output_value
            lines.append(f"{entry.step:<40} {output_val:<25} {entry.line_number or '':<12}")
        lines.append("")
        lines.append(f"Total audit entries: {len(report.audit_log)}")
        self._sections.append(ReportSection(title="Audit Trail", content="\n".join(lines)))

    def _format_text(self) -> str:
        """Format report as plain text."""
        output = []

        for section in self._sections:
            if section.title != "Header":
                output.append("")
                output.append("=" * 60)
                output.append(section.title.upper())
                output.append("=" * 60)

            output.append(section.content)

        output.append("")
        output.append("=" * 60)
        output.append("END OF REPORT")
        output.append("=" * 60)
        output.append("")
        output.append("DISCLAIMER: This report is for informational purposes only and")
        output.append("does not constitute legal or tax advice. Review Schedule A figures")
        output.append("with a qualified tax professional before filing Form 990.")

        return "\n".join(output)

    def _format_markdown(self, report: ScheduleAReport) -> str:
        """Format report as Markdown."""
        output = []

        for section in self._sections:
            if section.title == "Header":
                output.append(f"# Schedule A (Form 990) - Tax Year {report.tax_year}\n")
                output.append("```")
                output.append(section.content)
                output.append("```")
            else:
                output.append(f"\n## {section.title}\n")
                output.append("```")
                output.append(section.content)
                output.append("```")

        output.append("\n---\n")
        output.append("**DISCLAIMER:** This report is for informational purposes only and ")
        output.append("does not constitute legal or tax advice.")

        return "\n".join(output)

    def _format_csv(self, report: ScheduleAReport) -> str:
        """Format report as CSV rows, every cell quoted."""
        data = report.data
        years = [str(year) for year in data.part_ii.section_a.years]
        rows: list[list[str]] = [
            ["Schedule A (Form 990) - Public Charity Status and Public Support"],
        ]
        if report.organization_id is not None:
            rows.append([f"Organization: {report.organization_id}"])
        rows.append([f"Tax Year: {report.tax_year}"])
        rows.append([])

        charity_type = data.part_i.public_charity_type
        if charity_type is not None:
            rows.append(["Part I: Public Charity Status"])
            rows.append([f"Line {charity_type}: {PUBLIC_CHARITY_TYPES[charity_type]}"])
            rows.append([])

        def add_row(label: str, values: Sequence[str]) -> None:
            rows.append([label, *values, _row_total(values)])

        if self._shows_part_ii(report):
            a, b, c = data.part_ii.section_a, data.part_ii.section_b, data.part_ii.section_c
            rows.append(["Part II - Section A: Public Support"])
            rows.append(["", *years, "Total"])
            add_row("Line 1 - Gifts, grants, contributions, membership fees", a.line1)
            add_row("Line 2 - Tax revenues", a.line2)
            add_row("Line 3 - Government services/facilities", a.line3)
            add_row("Line 4 - Total (Lines 1-3)", a.line4)
            rows.append(["Line 5 - Excess contributions (2% threshold)", a.line5])
            rows.append(["Line 6 - Public support (Line 4 - Line 5)", a.line6])
            rows.append([])
            rows.append(["Part II - Section B: Total Support"])
            rows.append(["", *years, "Total"])
            add_row("Line 7 - Amounts from Line 4", b.line7)
            add_row("Line 8 - Investment income", b.line8)
            add_row("Line 9 - Unrelated business income", b.line9)
            add_row("Line 10 - Other income", b.line10)
            rows.append(["Line 11 - Total support", b.line11])
            rows.append(["Line 12 - Gross receipts from related activities", b.line12])
            rows.append([])
            rows.append(["Part II - Section C: Public Support Percentage"])
            rows.append([f"Line 14 - Public support percentage {report.tax_year}", f"{c.line14}%"])
            rows.append(["Line 15 - Prior year percentage", f"{c.line15}%"])
            rows.append(["Line 13 - First five years", _yes_no(c.line13)])
            rows.append(["Line 16a - 33 1/3% support test (current year)", _yes_no(c.line16a)])
            rows.append(["Line 16b - 33 1/3% support test (prior year)", _yes_no(c.line16b)])
            rows.append(["Line 17a - 10% facts-and-circumstances test (current year)", _yes_no(c.line17a)])
            rows.append(["Line 17b - 10% facts-and-circumstances test (prior year)", _yes_no(c.line17b)])
            rows.append(["Line 18 - Private foundation", _yes_no(c.line18)])

        if self._shows_part_iii(report):
            a3, b3 = data.part_iii.section_a, data.part_iii.section_b
            c3, d3 = data.part_iii.section_c, data.part_iii.section_d
            if self._shows_part_ii(report):
                rows.append([])
            rows.append(["Part III - Section A: Public Support"])
            rows.append(["", *years, "Total"])
            add_row("Line 1 - Gifts, grants, contributions, membership fees", a3.line1)
            add_row("Line 2 - Gross receipts from related activities", a3.line2)
            add_row("Line 3 - Non-UBI gross receipts", a3.line3)
            add_row("Line 4 - Tax revenues", a3.line4)
            add_row("Line 5 - Government services/facilities", a3.line5)
            add_row("Line 6 - Total", a3.line6)
            add_row("Line 7a - Disqualified persons", a3.line7a)
            add_row("Line 7b - Excess over greater of $5,000 or 1%", a3.line7b)
            add_row("Line 7c - Total exclusions", a3.line7c)
            add_row("Line 8 - Public support", a3.line8)
            rows.append([])
            rows.append(["Part III - Section B: Total Support"])
            rows.append(["", *years, "Total"])
            add_row("Line 9 - Amounts from Line 6", b3.line9)
            add_row("Line 10a - Investment income", b3.line10a)
            add_row("Line 10b - Unrelated business taxable income", b3.line10b)
            add_row("Line 10c - Add lines 10a and 10b", b3.line10c)
            add_row("Line 11 - Net unrelated business income", b3.line11)
            add_row("Line 12 - Other income", b3.line12)
            add_row("Line 13 - Total support", b3.line13)
            rows.append([])
            rows.append(["Line 15 - Public support percentage", f"{c3.line15}%"])
            rows.append(["Line 16 - Prior year public support percentage", f"{c3.line16}%"])
            rows.append(["Line 17 - Investment income percentage", f"{d3.line17}%"])
            rows.append(["Line 18 - Prior year investment income percentage", f"{d3.line18}%"])
            rows.append(["Line 14 - First five years", _yes_no(c3.line14)])
            rows.append(["Line 19a - Both tests pass (current year)", _yes_no(d3.line19a)])
            rows.append(["Line 19b - Both tests pass (prior year)", _yes_no(d3.line19b)])
            rows.append(["Line 20 - Does not qualify", _yes_no(d3.line20)])

        s = data.summary
        rows.append([])
        rows.append(["Summary"])
        if report.relevant_part == SupportPart.PART_III:
            rows.append(["Total Public Support (Part III)", s.part_iii_public_support])
            rows.append(["Total Support (Part III)", s.part_iii_total_support])
            rows.append(["Public Support Percentage (Part III)", f"{s.part_iii_public_support_percentage}%"])
            rows.append(["Investment Income Percentage (Part III)", f"{s.part_iii_investment_percentage}%"])
            rows.append(["Meets 33 1/3% Threshold (Part III)", _yes_no(s.part_iii_meets_threshold)])
        else:
            rows.append(["Total Public Support (Part II)", s.total_public_support])
            rows.append(["Total Support (Part II)", s.total_support])
            rows.append(["Public Support Percentage (Part II)", f"{s.public_support_percentage}%"])
            rows.append(["Meets 33 1/3% Threshold (Part II)", _yes_no(s.meets_threshold)])

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerows(rows)
        return buffer.getvalue()

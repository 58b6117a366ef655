"""Support schedule totals and percentages per Schedule A (Form 990).

The calculator turns five YearAggregates plus the window's contributor
exclusions into the window-level figures of Parts II and III. It runs
once for the current window (tax year - 4 through tax year) and once for
the prior window (tax year - 5 through tax year - 1); the prior window is
recomputed from its own aggregates and exclusions, never relabeled.

All steps are logged for audit trail and preparer review.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from .contributors import ContributorExclusions
from .irs_thresholds import ZERO, calculate_percentage
from .models import AuditEntry, LineId, YearAggregate

logger = structlog.get_logger()


@dataclass(frozen=True)
class WindowTotals:
    """Window-level figures for one five-year support window."""
    years: tuple[int, ...]

    # Part II
    part_ii_line4_total: Decimal
    part_ii_line5: Decimal
    part_ii_line6: Decimal
    part_ii_line11: Decimal
    part_ii_line12: Decimal
    part_ii_public_support_percentage: Decimal

    # Part III
    part_iii_line6_total: Decimal
    part_iii_line7c_total: Decimal
    part_iii_line8_total: Decimal
    part_iii_line10c_total: Decimal
    part_iii_line13_total: Decimal
    part_iii_public_support_percentage: Decimal
    part_iii_investment_income_percentage: Decimal


@dataclass(frozen=True)
class SupportSchedule:
    """Current and prior window figures, named by form line."""
    current: WindowTotals
    prior: WindowTotals

    @property
    def part_ii_line14(self) -> Decimal:
        return self.current.part_ii_public_support_percentage

    @property
    def part_ii_line15(self) -> Decimal:
        return self.prior.part_ii_public_support_percentage

    @property
    def part_iii_line15(self) -> Decimal:
        return self.current.part_iii_public_support_percentage

    @property
    def part_iii_line16(self) -> Decimal:
        return self.prior.part_iii_public_support_percentage

    @property
    def part_iii_line17(self) -> Decimal:
        return self.current.part_iii_investment_income_percentage

    @property
    def part_iii_line18(self) -> Decimal:
        return self.prior.part_iii_investment_income_percentage


def sum_line(aggregates: Sequence[YearAggregate], line: LineId) -> Decimal:
    """Column (f) total of a line across a window."""
    return sum((agg.get(line) for agg in aggregates), ZERO)


def total_support(aggregates: Sequence[YearAggregate]) -> tuple[Decimal, Decimal]:
    """
    Total support of a window before any contributor exclusion.

    Neither total depends on lines 5 or 7a-7c, so it can be measured on
    raw aggregates and then used to set the exclusion thresholds.

    Returns:
        Tuple of (Part II line 11, Part III line 13 total)
    """
    part_ii = sum(
        (sum_line(aggregates, line) for line in (LineId.II_7, LineId.II_8, LineId.II_9, LineId.II_10)),
        ZERO,
    )
    part_iii = sum_line(aggregates, LineId.III_13)
    return part_ii, part_iii


class SupportScheduleCalculator:
    """
    Calculate Schedule A support totals and percentages.

    Percentages are rounded to two places half up. A window with no
    support yields 0.00 rather than an error.
    """

    def __init__(self):
        """Initialize the calculator."""
        self._audit_log: list[AuditEntry] = []

    @property
    def audit_log(self) -> list[AuditEntry]:
        return list(self._audit_log)

    def _log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None,
        line_number: Optional[str] = None,
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
            line_number=line_number,
        )
        self._audit_log.append(entry)
        logger.info(
            "schedule_a_calculation_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )

    def compute_window(
        self,
        aggregates: Sequence[YearAggregate],
        exclusions: ContributorExclusions,
        label: str = "current",
    ) -> WindowTotals:
        """
        Compute the window-level figures for one support window.

        Args:
            aggregates: Five YearAggregates (with exclusions applied)
            exclusions: Contributor exclusions computed for the same window
            label: "current" or "prior", used in audit step names

        Returns:
            WindowTotals for the window
        """
        years = tuple(agg.year for agg in aggregates)
        span = f"{years[0]}-{years[-1]}" if years else "empty"

        # Part II Section A: public support
        line4_total = sum_line(aggregates, LineId.II_4)
        line5 = exclusions.part_ii_line5
        line6 = line4_total - line5
        self._log_step(
            step=f"{label}_part_ii_public_support",
            input_value=f"line4_total={line4_total} - line5={line5}",
            output_value=str(line6),
            source=f"Schedule A Part II Section A ({span})",
            notes=f"2% threshold={exclusions.part_ii_threshold}",
            line_number="Line 6",
        )

        # Part II Section B: total support
        line11 = sum(
            (sum_line(aggregates, line) for line in (LineId.II_7, LineId.II_8, LineId.II_9, LineId.II_10)),
            ZERO,
        )
        line12 = sum_line(aggregates, LineId.II_12)
        self._log_step(
            step=f"{label}_part_ii_total_support",
            input_value=(
                f"line7={sum_line(aggregates, LineId.II_7)}, line8={sum_line(aggregates, LineId.II_8)}, "
                f"line9={sum_line(aggregates, LineId.II_9)}, line10={sum_line(aggregates, LineId.II_10)}"
            ),
            output_value=str(line11),
            source=f"Schedule A Part II Section B ({span})",
            line_number="Line 11",
        )

        part_ii_pct = calculate_percentage(line6, line11)
        self._log_step(
            step=f"{label}_part_ii_public_support_percentage",
            input_value=f"{line6} / {line11} * 100",
            output_value=str(part_ii_pct),
            source="Schedule A Part II Section C",
            notes="Zero total support reported as 0.00" if line11 <= ZERO else None,
            line_number="Line 14" if label == "current" else "Line 15",
        )

        # Part III Section A / B
        iii_line6 = sum_line(aggregates, LineId.III_6)
        iii_line7c = sum_line(aggregates, LineId.III_7C)
        iii_line8 = sum_line(aggregates, LineId.III_8)
        iii_line10c = sum_line(aggregates, LineId.III_10C)
        iii_line13 = sum_line(aggregates, LineId.III_13)
        self._log_step(
            step=f"{label}_part_iii_public_support",
            input_value=f"line6_total={iii_line6} - line7c_total={iii_line7c}",
            output_value=str(iii_line8),
            source=f"Schedule A Part III Section A ({span})",
            notes=f"7b threshold={exclusions.part_iii_threshold}",
            line_number="Line 8",
        )
        self._log_step(
            step=f"{label}_part_iii_total_support",
            input_value=f"line9 + line10c={iii_line10c} + line11 + line12",
            output_value=str(iii_line13),
            source=f"Schedule A Part III Section B ({span})",
            line_number="Line 13",
        )

        iii_public_pct = calculate_percentage(iii_line8, iii_line13)
        iii_investment_pct = calculate_percentage(iii_line10c, iii_line13)
        self._log_step(
            step=f"{label}_part_iii_percentages",
            input_value=f"public={iii_line8} / {iii_line13}, investment={iii_line10c} / {iii_line13}",
            output_value=f"public={iii_public_pct}, investment={iii_investment_pct}",
            source="Schedule A Part III Sections C/D",
            line_number="Lines 15/17" if label == "current" else "Lines 16/18",
        )

        return WindowTotals(
            years=years,
            part_ii_line4_total=line4_total,
            part_ii_line5=line5,
            part_ii_line6=line6,
            part_ii_line11=line11,
            part_ii_line12=line12,
            part_ii_public_support_percentage=part_ii_pct,
            part_iii_line6_total=iii_line6,
            part_iii_line7c_total=iii_line7c,
            part_iii_line8_total=iii_line8,
            part_iii_line10c_total=iii_line10c,
            part_iii_line13_total=iii_line13,
            part_iii_public_support_percentage=iii_public_pct,
            part_iii_investment_income_percentage=iii_investment_pct,
        )

    def compute(
        self,
        current_aggregates: Sequence[YearAggregate],
        current_exclusions: ContributorExclusions,
        prior_aggregates: Sequence[YearAggregate],
        prior_exclusions: ContributorExclusions,
    ) -> SupportSchedule:
        """
        Compute current and prior window figures.

        Args:
            current_aggregates: Years tax_year-4 .. tax_year
            current_exclusions: Exclusions measured on the current window
            prior_aggregates: Years tax_year-5 .. tax_year-1
            prior_exclusions: Exclusions measured on the prior window

        Returns:
            SupportSchedule with both windows
        """
        self._audit_log = []  # Reset audit log

        current = self.compute_window(current_aggregates, current_exclusions, label="current")
        prior = self.compute_window(prior_aggregates, prior_exclusions, label="prior")

        return SupportSchedule(current=current, prior=prior)

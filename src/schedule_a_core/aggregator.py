"""Yearly support aggregation for Schedule A Parts II and III.

Totals lines are never read from transactions: Part II line 4 is the sum
of lines 1-3 and Part III line 6 the sum of lines 1-5 for every year, by
construction.
"""

from decimal import Decimal
from typing import Iterable, Optional

from .classifier import ClassifiedTransaction
from .contributors import ContributorExclusions
from .irs_thresholds import ZERO
from .models import LineId, YearAggregate

# Lines filled directly from classified transactions
_TRANSACTION_LINES = (
    LineId.II_1, LineId.II_2, LineId.II_3,
    LineId.II_8, LineId.II_9, LineId.II_10, LineId.II_12,
    LineId.III_1, LineId.III_2, LineId.III_3, LineId.III_4, LineId.III_5,
    LineId.III_10A, LineId.III_10B, LineId.III_11, LineId.III_12,
)


class YearlySupportAggregator:
    """Sum classified amounts into the per-year lines of Parts II and III."""

    def aggregate(
        self,
        year: int,
        entries: Iterable[ClassifiedTransaction],
        exclusions: Optional[ContributorExclusions] = None,
    ) -> YearAggregate:
        """
        Build the YearAggregate for one calendar year.

        Args:
            year: Calendar year (one column of the schedule)
            entries: Classified support transactions (any years)
            exclusions: Part III lines 7a/7b for the window; omitted means
                no exclusions, which is how window totals are first measured

        Returns:
            YearAggregate with every LineId populated
        """
        raw = {line: ZERO for line in _TRANSACTION_LINES}
        for entry in entries:
            if entry.year != year:
                continue
            for line in entry.bucket.lines:
                raw[line] += entry.amount

        line7a = ZERO
        line7b = ZERO
        if exclusions is not None:
            line7a = exclusions.part_iii_line7a_by_year.get(year, ZERO)
            line7b = exclusions.part_iii_line7b_by_year.get(year, ZERO)

        return YearAggregate(year=year, lines=self._derive(raw, line7a, line7b))

    @staticmethod
    def _derive(raw: dict[LineId, Decimal], line7a: Decimal, line7b: Decimal) -> dict[LineId, Decimal]:
        lines = dict(raw)

        # Part II Section A / B
        lines[LineId.II_4] = raw[LineId.II_1] + raw[LineId.II_2] + raw[LineId.II_3]
        lines[LineId.II_7] = lines[LineId.II_4]

        # Part III Section A
        lines[LineId.III_6] = (
            raw[LineId.III_1] + raw[LineId.III_2] + raw[LineId.III_3]
            + raw[LineId.III_4] + raw[LineId.III_5]
        )
        lines[LineId.III_7A] = line7a
        lines[LineId.III_7B] = line7b
        lines[LineId.III_7C] = line7a + line7b
        lines[LineId.III_8] = lines[LineId.III_6] - lines[LineId.III_7C]

        # Part III Section B
        lines[LineId.III_9] = lines[LineId.III_6]
        lines[LineId.III_10C] = raw[LineId.III_10A] + raw[LineId.III_10B]
        lines[LineId.III_13] = (
            lines[LineId.III_9] + lines[LineId.III_10C]
            + raw[LineId.III_11] + raw[LineId.III_12]
        )

        return {line: lines[line] for line in LineId}

    def aggregate_window(
        self,
        years: Iterable[int],
        entries: Iterable[ClassifiedTransaction],
        exclusions: Optional[ContributorExclusions] = None,
    ) -> tuple[YearAggregate, ...]:
        """Aggregate every year of a window, oldest first."""
        entries = list(entries)
        return tuple(self.aggregate(year, entries, exclusions) for year in sorted(years))

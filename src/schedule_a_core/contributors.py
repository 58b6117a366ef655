"""Per-contributor exclusions for the Schedule A support tests.

Part II line 5 and Part III lines 7a/7b are defined against whole-window
totals, so contributions are first summed per contributor across all five
years and only then compared with the thresholds.

For Part III, which reports lines 7a-7c per year, each contributor's
excess is attributed to the years in which their cumulative giving
(ordered by date) rose above the threshold. The per-year amounts always
add up to the window total.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from .classifier import ClassifiedTransaction, ContributorKey
from .irs_thresholds import (
    ZERO,
    excess_contribution_threshold,
    part_iii_contributor_threshold,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class ContributorExclusions:
    """Contributor-based exclusions for one support window."""
    years: tuple[int, ...]
    part_ii_threshold: Decimal
    part_ii_line5: Decimal
    part_iii_threshold: Decimal
    part_iii_line7a_by_year: dict[int, Decimal] = field(default_factory=dict)
    part_iii_line7b_by_year: dict[int, Decimal] = field(default_factory=dict)
    excess_contributors: tuple[ContributorKey, ...] = ()

    @property
    def part_iii_line7a(self) -> Decimal:
        return sum(self.part_iii_line7a_by_year.values(), ZERO)

    @property
    def part_iii_line7b(self) -> Decimal:
        return sum(self.part_iii_line7b_by_year.values(), ZERO)

    @classmethod
    def none(cls, years: Sequence[int]) -> "ContributorExclusions":
        """No exclusions: every contribution counts in full."""
        return cls(
            years=tuple(years),
            part_ii_threshold=ZERO,
            part_ii_line5=ZERO,
            part_iii_threshold=ZERO,
            part_iii_line7a_by_year={year: ZERO for year in years},
            part_iii_line7b_by_year={year: ZERO for year in years},
        )


class ContributorAggregator:
    """
    Aggregate contributions per contributor and compute exclusions.

    Disqualified persons (officers, substantial contributors and other
    insiders) are supplied by the caller as contributor keys.
    """

    def __init__(self, disqualified_contributors: Iterable[ContributorKey] = ()):
        self.disqualified = frozenset(disqualified_contributors)

    def aggregate_contributors(
        self,
        entries: Iterable[ClassifiedTransaction],
        years: Sequence[int],
    ) -> dict[ContributorKey, Decimal]:
        """
        Total contribution-type amount per contributor across the window.

        Args:
            entries: Classified support transactions
            years: The window's calendar years

        Returns:
            Mapping of contributor key to window total, sorted by key
        """
        window = set(years)
        totals: dict[ContributorKey, Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            if entry.is_contribution and entry.year in window:
                totals[entry.contributor] += entry.amount
        return dict(sorted(totals.items()))

    def compute_exclusions(
        self,
        entries: Sequence[ClassifiedTransaction],
        years: Sequence[int],
        part_ii_total_support: Decimal,
        part_iii_total_support: Decimal,
    ) -> ContributorExclusions:
        """
        Compute Part II line 5 and Part III lines 7a/7b for a window.

        Args:
            entries: Classified support transactions, ordered by date
            years: The window's calendar years
            part_ii_total_support: Part II line 11 for the window
            part_iii_total_support: Part III line 13 total for the window

        Returns:
            ContributorExclusions for the window
        """
        years = tuple(years)
        window = set(years)
        totals = self.aggregate_contributors(entries, years)

        # Part III line 7a
        line7a_by_year = {year: ZERO for year in years}
        if part_iii_total_support > ZERO:
            for entry in entries:
                if entry.is_contribution and entry.year in window and entry.contributor in self.disqualified:
                    line7a_by_year[entry.year] += entry.amount

        # Part II line 5
        part_ii_threshold = excess_contribution_threshold(part_ii_total_support)
        line5 = ZERO
        excess_contributors: list[ContributorKey] = []
        if part_ii_total_support > ZERO:
            for key, total in totals.items():
                excess = total - part_ii_threshold
                if excess > ZERO:
                    line5 += excess
                    excess_contributors.append(key)

        # Part III line 7b
        part_iii_threshold = part_iii_contributor_threshold(part_iii_total_support)
        line7b_by_year = {year: ZERO for year in years}
        if part_iii_total_support > ZERO:
            over_threshold = {
                key for key, total in totals.items()
                if key not in self.disqualified and total > part_iii_threshold
            }
            self._allocate_excess(entries, window, over_threshold, part_iii_threshold, line7b_by_year)

        exclusions = ContributorExclusions(
            years=years,
            part_ii_threshold=part_ii_threshold,
            part_ii_line5=line5,
            part_iii_threshold=part_iii_threshold,
            part_iii_line7a_by_year=line7a_by_year,
            part_iii_line7b_by_year=line7b_by_year,
            excess_contributors=tuple(excess_contributors),
        )

        logger.info(
            "contributor_exclusions_computed",
            window=f"{years[0]}-{years[-1]}",
            contributors=len(totals),
            part_ii_threshold=str(part_ii_threshold),
            part_ii_line5=str(line5),
            part_iii_threshold=str(part_iii_threshold),
            part_iii_line7a=str(exclusions.part_iii_line7a),
            part_iii_line7b=str(exclusions.part_iii_line7b),
        )
        return exclusions

    @staticmethod
    def _allocate_excess(
        entries: Sequence[ClassifiedTransaction],
        window: set[int],
        contributors: set[ContributorKey],
        threshold: Decimal,
        by_year: dict[int, Decimal],
    ) -> None:
        """Spread each contributor's excess over the years it accrued in."""
        cumulative: dict[ContributorKey, Decimal] = defaultdict(lambda: ZERO)
        excess_so_far: dict[ContributorKey, Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            if not entry.is_contribution or entry.year not in window or entry.contributor not in contributors:
                continue
            cumulative[entry.contributor] += entry.amount
            excess_now = max(cumulative[entry.contributor] - threshold, ZERO)
            by_year[entry.year] += excess_now - excess_so_far[entry.contributor]
            excess_so_far[entry.contributor] = excess_now

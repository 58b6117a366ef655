"""Schedule A report assembly.

ScheduleAReportBuilder validates the caller contract, runs the pipeline
(classify -> aggregate -> exclusions -> calculate -> decide) over the
current and prior support windows and assembles the ScheduleAData
consumed by the report UI and exporters.

The result depends only on (transactions, categories, context): the same
snapshot always serializes to the same bytes, so callers may cache it per
(organization_id, tax_year) until the transaction set changes.
"""

from typing import Iterable, Optional, Sequence

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field

from .aggregator import YearlySupportAggregator
from .calculator import SupportSchedule, SupportScheduleCalculator, total_support
from .classifier import ClassifiedTransaction, TransactionClassifier
from .config import ScheduleAConfig, load_config
from .contributors import ContributorAggregator, ContributorExclusions
from .exceptions import ValidationError
from .irs_thresholds import (
    ENGINE_VERSION,
    FACTS_AND_CIRCUMSTANCES_THRESHOLD,
    INVESTMENT_INCOME_CEILING,
    PUBLIC_SUPPORT_THRESHOLD,
    SCHEDULE_A_FORM_REVISION,
    ZERO,
    current_window,
    format_amount,
    prior_window,
)
from .models import (
    AuditEntry,
    AuditSeverity,
    AuditWarning,
    Category,
    LineId,
    PartI,
    PartII,
    PartIII,
    PartIISectionA,
    PartIISectionB,
    PartIISectionC,
    PartIIISectionA,
    PartIIISectionB,
    PartIIISectionC,
    PartIIISectionD,
    QualificationOutcome,
    ScheduleAData,
    ScheduleASummary,
    SupportPart,
    Transaction,
    YearAggregate,
)
from .qualification import QualificationDecider, QualificationInputs

logger = structlog.get_logger()

# Part I lines that are completed through Part II / Part III
PART_II_CHARITY_TYPES = frozenset({5, 7, 8})
PART_III_CHARITY_TYPES = frozenset({10})


class ScheduleAContext(BaseModel):
    """Caller-supplied context for one Schedule A request.

    Flags left as None are treated as False by the qualification chains.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tax_year: int = Field(alias="taxYear")
    organization_id: Optional[int] = Field(default=None, alias="organizationId")
    first_five_years: Optional[bool] = Field(default=None, alias="firstFiveYears")
    facts_and_circumstances: Optional[bool] = Field(default=None, alias="factsAndCircumstances")
    formation_year: Optional[int] = Field(default=None, alias="formationYear")
    public_charity_type: Optional[int] = Field(default=None, ge=1, le=12, alias="publicCharityType")
    disqualified_contributors: frozenset[str] = Field(
        default_factory=frozenset,
        alias="disqualifiedContributors",
        description="Contributor keys (e.g. 'donor:12') of disqualified persons",
    )

    @property
    def relevant_part(self) -> Optional[SupportPart]:
        """Part the organization completes, if its Part I line is known."""
        if self.public_charity_type in PART_II_CHARITY_TYPES:
            return SupportPart.PART_II
        if self.public_charity_type in PART_III_CHARITY_TYPES:
            return SupportPart.PART_III
        return None


class ScheduleAReport(BaseModel):
    """ScheduleAData plus the reasoning that produced it."""

    model_config = ConfigDict(frozen=True)

    organization_id: Optional[int] = None
    tax_year: int
    data: ScheduleAData
    part_ii_outcome: QualificationOutcome
    part_iii_outcome: QualificationOutcome
    relevant_part: Optional[SupportPart] = None
    current_window: tuple[YearAggregate, ...]
    prior_window: tuple[YearAggregate, ...]
    warnings: list[AuditWarning] = Field(default_factory=list)
    audit_log: list[AuditEntry] = Field(default_factory=list)
    engine_version: str = ENGINE_VERSION
    form_revision: str = SCHEDULE_A_FORM_REVISION

    @property
    def qualifies(self) -> bool:
        """Qualification for the part the organization completes (Part II by default)."""
        if self.relevant_part == SupportPart.PART_III:
            return self.part_iii_outcome.qualifies
        return self.part_ii_outcome.qualifies


def _amounts(aggregates: Sequence[YearAggregate], line: LineId) -> tuple[str, ...]:
    return tuple(format_amount(agg.get(line)) for agg in aggregates)


class ScheduleAReportBuilder:
    """
    Build Schedule A support schedules from a ledger snapshot.

    A builder holds configuration only and can be reused across requests
    and threads; per-request state lives in locals and fresh calculators.
    """

    def __init__(self, config: Optional[ScheduleAConfig] = None):
        """
        Initialize the builder.

        Args:
            config: Engine configuration (default: loaded from environment)
        """
        self.config = config or load_config()
        self.aggregator = YearlySupportAggregator()
        self.decider = QualificationDecider()

    def _validate(self, context: ScheduleAContext) -> None:
        """Reject requests that break the caller contract."""
        if context.tax_year < self.config.min_tax_year:
            raise ValidationError(
                f"Tax year {context.tax_year} is before the earliest supported year {self.config.min_tax_year}",
                field="tax_year",
                value=context.tax_year,
                constraint=f"tax_year >= {self.config.min_tax_year}",
            )
        if context.formation_year is not None and context.tax_year < context.formation_year:
            raise ValidationError(
                f"Tax year {context.tax_year} precedes the organization's formation in {context.formation_year}",
                field="tax_year",
                value=context.tax_year,
                constraint=f"tax_year >= formation_year ({context.formation_year})",
            )
        latest_year = self.config.latest_tax_year
        if context.tax_year > latest_year:
            raise ValidationError(
                f"Tax year {context.tax_year} has not started yet",
                field="tax_year",
                value=context.tax_year,
                constraint=f"tax_year <= {latest_year}",
            )

    def _run_window(
        self,
        years: Sequence[int],
        entries: Sequence[ClassifiedTransaction],
        contributors: ContributorAggregator,
    ) -> tuple[tuple[YearAggregate, ...], ContributorExclusions]:
        """Aggregate a window, measure its support, then apply exclusions."""
        base = self.aggregator.aggregate_window(years, entries)
        part_ii_total, part_iii_total = total_support(base)
        exclusions = contributors.compute_exclusions(entries, years, part_ii_total, part_iii_total)
        return self.aggregator.aggregate_window(years, entries, exclusions), exclusions

    def build(
        self,
        context: ScheduleAContext,
        transactions: Iterable[Transaction],
        categories: Iterable[Category],
    ) -> ScheduleAReport:
        """
        Build the complete Schedule A report.

        Args:
            context: Tax year, organization flags and disqualified persons
            transactions: Transactions covering tax_year-5 through tax_year
            categories: The organization's categories

        Returns:
            ScheduleAReport wrapping the ScheduleAData

        Raises:
            ValidationError: On caller-contract violations
        """
        self._validate(context)

        with structlog.contextvars.bound_contextvars(
            organization_id=context.organization_id,
            tax_year=context.tax_year,
        ):
            current_years = current_window(context.tax_year)
            prior_years = prior_window(context.tax_year)

            classifier = TransactionClassifier(categories, self.config.contributor_fallback)
            entries, warnings = classifier.classify_all(
                transactions, years=sorted(set(prior_years) | set(current_years))
            )

            contributors = ContributorAggregator(context.disqualified_contributors)
            current_aggs, current_excl = self._run_window(current_years, entries, contributors)
            prior_aggs, prior_excl = self._run_window(prior_years, entries, contributors)

            calculator = SupportScheduleCalculator()
            schedule = calculator.compute(current_aggs, current_excl, prior_aggs, prior_excl)

            inputs = QualificationInputs(
                part_ii_line14=schedule.part_ii_line14,
                part_ii_line15=schedule.part_ii_line15,
                part_iii_line15=schedule.part_iii_line15,
                part_iii_line16=schedule.part_iii_line16,
                part_iii_line17=schedule.part_iii_line17,
                part_iii_line18=schedule.part_iii_line18,
                first_five_years=bool(context.first_five_years),
                facts_and_circumstances=bool(context.facts_and_circumstances),
            )
            part_ii_outcome, part_iii_outcome = self.decider.decide(inputs)

            warnings.extend(self._context_warnings(context, entries, schedule))

            data = self._assemble(context, current_aggs, schedule, part_ii_outcome, part_iii_outcome)

            logger.info(
                "schedule_a_built",
                part_ii_checked=part_ii_outcome.checked_line,
                part_iii_checked=part_iii_outcome.checked_line,
                public_support_percentage=str(schedule.part_ii_line14),
                warnings=len(warnings),
            )

        return ScheduleAReport(
            organization_id=context.organization_id,
            tax_year=context.tax_year,
            data=data,
            part_ii_outcome=part_ii_outcome,
            part_iii_outcome=part_iii_outcome,
            relevant_part=context.relevant_part,
            current_window=current_aggs,
            prior_window=prior_aggs,
            warnings=warnings,
            audit_log=calculator.audit_log if self.config.record_audit_log else [],
        )

    def _context_warnings(
        self,
        context: ScheduleAContext,
        entries: Sequence[ClassifiedTransaction],
        schedule: SupportSchedule,
    ) -> list[AuditWarning]:
        warnings: list[AuditWarning] = []

        if schedule.current.part_ii_line11 <= ZERO and schedule.current.part_iii_line13_total <= ZERO:
            warnings.append(AuditWarning(
                code="NO_SUPPORT",
                message=(
                    f"No support recorded for {schedule.current.years[0]}-{schedule.current.years[-1]}; "
                    "percentages are reported as 0.00"
                ),
                suggested_action="Confirm the transaction history covers the five-year window",
            ))

        known = {entry.contributor for entry in entries if entry.is_contribution}
        unknown = sorted(context.disqualified_contributors - known)
        if unknown:
            warnings.append(AuditWarning(
                code="UNMATCHED_DISQUALIFIED_PERSON",
                message=f"{len(unknown)} disqualified contributor key(s) matched no contributions: {', '.join(unknown)}",
                severity=AuditSeverity.INFO,
                suggested_action="Check the keys use the donor:/client:/vendor: form",
            ))

        if context.first_five_years is None:
            warnings.append(AuditWarning(
                code="FIRST_FIVE_YEARS_NOT_PROVIDED",
                message="First-five-years status not provided; treated as not in the first five years",
                severity=AuditSeverity.INFO,
            ))
        if context.facts_and_circumstances is None:
            warnings.append(AuditWarning(
                code="FACTS_AND_CIRCUMSTANCES_NOT_PROVIDED",
                message="Facts-and-circumstances determination not provided; treated as not met",
                severity=AuditSeverity.INFO,
            ))
        return warnings

    def _assemble(
        self,
        context: ScheduleAContext,
        aggregates: Sequence[YearAggregate],
        schedule: SupportSchedule,
        part_ii_outcome: QualificationOutcome,
        part_iii_outcome: QualificationOutcome,
    ) -> ScheduleAData:
        """Convert Decimal figures into the decimal-string output contract."""
        years = tuple(agg.year for agg in aggregates)
        current = schedule.current
        ii_flags = part_ii_outcome.flags
        iii_flags = part_iii_outcome.flags

        part_ii = PartII(
            section_a=PartIISectionA(
                years=years,
                line1=_amounts(aggregates, LineId.II_1),
                line2=_amounts(aggregates, LineId.II_2),
                line3=_amounts(aggregates, LineId.II_3),
                line4=_amounts(aggregates, LineId.II_4),
                line5=format_amount(current.part_ii_line5),
                line6=format_amount(current.part_ii_line6),
            ),
            section_b=PartIISectionB(
                years=years,
                line7=_amounts(aggregates, LineId.II_7),
                line8=_amounts(aggregates, LineId.II_8),
                line9=_amounts(aggregates, LineId.II_9),
                line10=_amounts(aggregates, LineId.II_10),
                line11=format_amount(current.part_ii_line11),
                line12=format_amount(current.part_ii_line12),
            ),
            section_c=PartIISectionC(
                line13=ii_flags["line13"],
                line14=str(schedule.part_ii_line14),
                line15=str(schedule.part_ii_line15),
                line16a=ii_flags["line16a"],
                line16b=ii_flags["line16b"],
                line17a=ii_flags["line17a"],
                line17b=ii_flags["line17b"],
                line18=ii_flags["line18"],
            ),
        )

        part_iii = PartIII(
            section_a=PartIIISectionA(
                years=years,
                line1=_amounts(aggregates, LineId.III_1),
                line2=_amounts(aggregates, LineId.III_2),
                line3=_amounts(aggregates, LineId.III_3),
                line4=_amounts(aggregates, LineId.III_4),
                line5=_amounts(aggregates, LineId.III_5),
                line6=_amounts(aggregates, LineId.III_6),
                line7a=_amounts(aggregates, LineId.III_7A),
                line7b=_amounts(aggregates, LineId.III_7B),
                line7c=_amounts(aggregates, LineId.III_7C),
                line8=_amounts(aggregates, LineId.III_8),
            ),
            section_b=PartIIISectionB(
                years=years,
                line9=_amounts(aggregates, LineId.III_9),
                line10a=_amounts(aggregates, LineId.III_10A),
                line10b=_amounts(aggregates, LineId.III_10B),
                line10c=_amounts(aggregates, LineId.III_10C),
                line11=_amounts(aggregates, LineId.III_11),
                line12=_amounts(aggregates, LineId.III_12),
                line13=_amounts(aggregates, LineId.III_13),
            ),
            section_c=PartIIISectionC(
                line14=iii_flags["line14"],
                line15=str(schedule.part_iii_line15),
                line16=str(schedule.part_iii_line16),
            ),
            section_d=PartIIISectionD(
                line17=str(schedule.part_iii_line17),
                line18=str(schedule.part_iii_line18),
                line19a=iii_flags["line19a"],
                line19b=iii_flags["line19b"],
                line20=iii_flags["line20"],
            ),
        )

        summary = ScheduleASummary(
            total_public_support=format_amount(current.part_ii_line6),
            total_support=format_amount(current.part_ii_line11),
            public_support_percentage=str(schedule.part_ii_line14),
            meets_threshold=schedule.part_ii_line14 >= PUBLIC_SUPPORT_THRESHOLD,
            meets_facts_and_circumstances=(
                schedule.part_ii_line14 >= FACTS_AND_CIRCUMSTANCES_THRESHOLD
                and bool(context.facts_and_circumstances)
            ),
            part_iii_public_support=format_amount(current.part_iii_line8_total),
            part_iii_total_support=format_amount(current.part_iii_line13_total),
            part_iii_public_support_percentage=str(schedule.part_iii_line15),
            part_iii_investment_percentage=str(schedule.part_iii_line17),
            part_iii_meets_threshold=(
                schedule.part_iii_line15 > PUBLIC_SUPPORT_THRESHOLD
                and schedule.part_iii_line17 <= INVESTMENT_INCOME_CEILING
            ),
        )

        return ScheduleAData(
            part_i=PartI(public_charity_type=context.public_charity_type),
            part_ii=part_ii,
            part_iii=part_iii,
            summary=summary,
        )


def build_schedule_a(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    tax_year: int,
    *,
    organization_id: Optional[int] = None,
    first_five_years: Optional[bool] = None,
    facts_and_circumstances: Optional[bool] = None,
    formation_year: Optional[int] = None,
    public_charity_type: Optional[int] = None,
    disqualified_contributors: Iterable[str] = (),
    config: Optional[ScheduleAConfig] = None,
) -> ScheduleAReport:
    """
    Build a Schedule A report in one call.

    Raises:
        ValidationError: If the context breaks the caller contract
    """
    try:
        context = ScheduleAContext(
            tax_year=tax_year,
            organization_id=organization_id,
            first_five_years=first_five_years,
            facts_and_circumstances=facts_and_circumstances,
            formation_year=formation_year,
            public_charity_type=public_charity_type,
            disqualified_contributors=frozenset(disqualified_contributors),
        )
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        raise ValidationError(
            f"Invalid Schedule A request: {first.get('msg')}",
            field=".".join(str(part) for part in first.get("loc", ())),
            value=first.get("input"),
        ) from e
    return ScheduleAReportBuilder(config).build(context, transactions, categories)

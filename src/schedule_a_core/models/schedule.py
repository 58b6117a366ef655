"""Support schedule models for Schedule A (Form 990).

Internal stages exchange Decimal-valued models (YearAggregate,
QualificationOutcome). The consumer-facing ScheduleAData carries decimal
strings only and serializes with the camelCase keys the report UI and
exporters read.

Reference: https://www.irs.gov/pub/irs-pdf/f990sa.pdf
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# LINE IDENTIFIERS
# =============================================================================

class LineId(str, Enum):
    """Per-year line identifiers of Part II and Part III.

    Window-level scalars (Part II lines 5, 6, 11, the percentages) are not
    line ids; they are derived by the calculator.
    """
    # Part II Section A
    II_1 = "partII.line1"
    II_2 = "partII.line2"
    II_3 = "partII.line3"
    II_4 = "partII.line4"
    # Part II Section B
    II_7 = "partII.line7"
    II_8 = "partII.line8"
    II_9 = "partII.line9"
    II_10 = "partII.line10"
    II_12 = "partII.line12"

    # Part III Section A
    III_1 = "partIII.line1"
    III_2 = "partIII.line2"
    III_3 = "partIII.line3"
    III_4 = "partIII.line4"
    III_5 = "partIII.line5"
    III_6 = "partIII.line6"
    III_7A = "partIII.line7a"
    III_7B = "partIII.line7b"
    III_7C = "partIII.line7c"
    III_8 = "partIII.line8"
    # Part III Section B
    III_9 = "partIII.line9"
    III_10A = "partIII.line10a"
    III_10B = "partIII.line10b"
    III_10C = "partIII.line10c"
    III_11 = "partIII.line11"
    III_12 = "partIII.line12"
    III_13 = "partIII.line13"


class SupportPart(str, Enum):
    """Schedule A part that carries a support test."""
    PART_II = "II"
    PART_III = "III"


# =============================================================================
# YEAR AGGREGATES
# =============================================================================

class YearAggregate(BaseModel):
    """Line values for one calendar year of a support window."""

    model_config = ConfigDict(frozen=True)

    year: int
    lines: dict[LineId, Decimal]

    def get(self, line: LineId) -> Decimal:
        """Value of a line, zero when absent."""
        return self.lines.get(line, Decimal("0"))


# =============================================================================
# QUALIFICATION
# =============================================================================

class RuleEvaluation(BaseModel):
    """One step of a qualification checkbox chain."""

    model_config = ConfigDict(frozen=True)

    line: str
    matched: bool
    reason: str


class QualificationOutcome(BaseModel):
    """Result of walking a Part II or Part III checkbox chain.

    Exactly one line in `flags` is True: the checked line. `path` lists
    every rule evaluated up to and including the checked one.
    """

    model_config = ConfigDict(frozen=True)

    part: SupportPart
    checked_line: str
    qualifies: bool
    flags: dict[str, bool]
    path: list[RuleEvaluation]


# =============================================================================
# SCHEDULE A DATA (OUTPUT CONTRACT)
# =============================================================================

def _line_camel(name: str) -> str:
    """camelCase that keeps line letters lowercase: section_a -> sectionA, line16a -> line16a."""
    head, *rest = name.split("_")
    return head + "".join(word[:1].upper() + word[1:] for word in rest)


class _OutputModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=_line_camel,
        populate_by_name=True,
    )


class PartI(_OutputModel):
    """Part I echo: the public charity type line the caller checked."""
    public_charity_type: Optional[int] = None


class PartIISectionA(_OutputModel):
    years: tuple[int, ...]
    line1: tuple[str, ...]
    line2: tuple[str, ...]
    line3: tuple[str, ...]
    line4: tuple[str, ...]
    line5: str
    line6: str


class PartIISectionB(_OutputModel):
    years: tuple[int, ...]
    line7: tuple[str, ...]
    line8: tuple[str, ...]
    line9: tuple[str, ...]
    line10: tuple[str, ...]
    line11: str
    line12: str


class PartIISectionC(_OutputModel):
    line13: bool
    line14: str
    line15: str
    line16a: bool
    line16b: bool
    line17a: bool
    line17b: bool
    line18: bool


class PartII(_OutputModel):
    section_a: PartIISectionA
    section_b: PartIISectionB
    section_c: PartIISectionC


class PartIIISectionA(_OutputModel):
    years: tuple[int, ...]
    line1: tuple[str, ...]
    line2: tuple[str, ...]
    line3: tuple[str, ...]
    line4: tuple[str, ...]
    line5: tuple[str, ...]
    line6: tuple[str, ...]
    line7a: tuple[str, ...]
    line7b: tuple[str, ...]
    line7c: tuple[str, ...]
    line8: tuple[str, ...]


class PartIIISectionB(_OutputModel):
    years: tuple[int, ...]
    line9: tuple[str, ...]
    line10a: tuple[str, ...]
    line10b: tuple[str, ...]
    line10c: tuple[str, ...]
    line11: tuple[str, ...]
    line12: tuple[str, ...]
    line13: tuple[str, ...]


class PartIIISectionC(_OutputModel):
    line14: bool
    line15: str
    line16: str


class PartIIISectionD(_OutputModel):
    line17: str
    line18: str
    line19a: bool
    line19b: bool
    line20: bool


class PartIII(_OutputModel):
    section_a: PartIIISectionA
    section_b: PartIIISectionB
    section_c: PartIIISectionC
    section_d: PartIIISectionD


class ScheduleASummary(_OutputModel):
    """Headline figures for the report card and CSV summary block."""
    total_public_support: str
    total_support: str
    public_support_percentage: str
    meets_threshold: bool
    meets_facts_and_circumstances: bool
    part_iii_public_support: str = Field(alias="partIIIPublicSupport")
    part_iii_total_support: str = Field(alias="partIIITotalSupport")
    part_iii_public_support_percentage: str = Field(alias="partIIIPublicSupportPercentage")
    part_iii_investment_percentage: str = Field(alias="partIIIInvestmentPercentage")
    part_iii_meets_threshold: bool = Field(alias="partIIIMeetsThreshold")


class ScheduleAData(_OutputModel):
    """Complete Schedule A support data for one organization and tax year.

    Parts IV and V (supporting organizations) are not computed and are
    always None.
    """
    part_i: PartI = Field(alias="partI")
    part_ii: PartII = Field(alias="partII")
    part_iii: PartIII = Field(alias="partIII")
    part_iv: None = Field(default=None, alias="partIV")
    part_v: None = Field(default=None, alias="partV")
    summary: ScheduleASummary

    def to_json(self) -> str:
        """Serialize with the consumer-facing camelCase keys."""
        return self.model_dump_json(by_alias=True)


# Cacheable per (organization_id, tax_year) until the transaction set changes.
ScheduleAResult = ScheduleAData

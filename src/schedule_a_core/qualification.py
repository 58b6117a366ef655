"""Public charity qualification per the Schedule A checkbox chains.

Both Part II and Part III end in a list of boxes where the form says
"check this box and stop here". The decider evaluates the rules in form
order and the first match is the only box checked; every later box is
left unchecked. The last rule of each chain always matches, so exactly
one box is checked per part.

Missing caller flags (first five years, facts and circumstances) are
treated as False: the decider never manufactures a qualification.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

import structlog

from .exceptions import ScheduleAError
from .irs_thresholds import (
    FACTS_AND_CIRCUMSTANCES_THRESHOLD,
    INVESTMENT_INCOME_CEILING,
    PUBLIC_SUPPORT_THRESHOLD,
)
from .models import QualificationOutcome, RuleEvaluation, SupportPart

logger = structlog.get_logger()


@dataclass(frozen=True)
class QualificationInputs:
    """Everything the checkbox chains read."""
    part_ii_line14: Decimal
    part_ii_line15: Decimal
    part_iii_line15: Decimal
    part_iii_line16: Decimal
    part_iii_line17: Decimal
    part_iii_line18: Decimal
    first_five_years: bool = False
    facts_and_circumstances: bool = False


@dataclass(frozen=True)
class _Rule:
    line: str
    qualifies: bool
    test: Callable[[QualificationInputs], bool]
    describe: Callable[[QualificationInputs], str]


PART_II_RULES: tuple[_Rule, ...] = (
    _Rule(
        "line13", True,
        lambda q: q.first_five_years,
        lambda q: f"first five years as a 501(c)(3) organization: {q.first_five_years}",
    ),
    _Rule(
        "line16a", True,
        lambda q: q.part_ii_line14 >= PUBLIC_SUPPORT_THRESHOLD,
        lambda q: f"line 14 {q.part_ii_line14}% >= {PUBLIC_SUPPORT_THRESHOLD}%",
    ),
    _Rule(
        "line16b", True,
        lambda q: q.part_ii_line15 >= PUBLIC_SUPPORT_THRESHOLD,
        lambda q: f"line 15 {q.part_ii_line15}% >= {PUBLIC_SUPPORT_THRESHOLD}%",
    ),
    _Rule(
        "line17a", True,
        lambda q: q.part_ii_line14 >= FACTS_AND_CIRCUMSTANCES_THRESHOLD and q.facts_and_circumstances,
        lambda q: (
            f"line 14 {q.part_ii_line14}% >= {FACTS_AND_CIRCUMSTANCES_THRESHOLD}% "
            f"and facts-and-circumstances test met: {q.facts_and_circumstances}"
        ),
    ),
    _Rule(
        "line17b", True,
        lambda q: q.part_ii_line15 >= FACTS_AND_CIRCUMSTANCES_THRESHOLD and q.facts_and_circumstances,
        lambda q: (
            f"line 15 {q.part_ii_line15}% >= {FACTS_AND_CIRCUMSTANCES_THRESHOLD}% "
            f"and facts-and-circumstances test met: {q.facts_and_circumstances}"
        ),
    ),
    _Rule(
        "line18", False,
        lambda q: True,
        lambda q: "no earlier box applies: private foundation",
    ),
)

PART_III_RULES: tuple[_Rule, ...] = (
    _Rule(
        "line14", True,
        lambda q: q.first_five_years,
        lambda q: f"first five years as a 501(c)(3) organization: {q.first_five_years}",
    ),
    _Rule(
        "line19a", True,
        lambda q: q.part_iii_line15 > PUBLIC_SUPPORT_THRESHOLD and q.part_iii_line17 <= INVESTMENT_INCOME_CEILING,
        lambda q: (
            f"line 15 {q.part_iii_line15}% > {PUBLIC_SUPPORT_THRESHOLD}% "
            f"and line 17 {q.part_iii_line17}% <= {INVESTMENT_INCOME_CEILING}%"
        ),
    ),
    _Rule(
        "line19b", True,
        lambda q: q.part_iii_line16 > PUBLIC_SUPPORT_THRESHOLD and q.part_iii_line18 <= INVESTMENT_INCOME_CEILING,
        lambda q: (
            f"line 16 {q.part_iii_line16}% > {PUBLIC_SUPPORT_THRESHOLD}% "
            f"and line 18 {q.part_iii_line18}% <= {INVESTMENT_INCOME_CEILING}%"
        ),
    ),
    _Rule(
        "line20", False,
        lambda q: True,
        lambda q: "no earlier box applies: private foundation",
    ),
)


def _walk(part: SupportPart, rules: tuple[_Rule, ...], inputs: QualificationInputs) -> QualificationOutcome:
    path: list[RuleEvaluation] = []
    checked: Optional[_Rule] = None
    for rule in rules:
        matched = rule.test(inputs)
        path.append(RuleEvaluation(line=rule.line, matched=matched, reason=rule.describe(inputs)))
        if matched:
            checked = rule
            break

    if checked is None:
        raise ScheduleAError(f"Part {part.value} checkbox chain has no terminal rule")

    outcome = QualificationOutcome(
        part=part,
        checked_line=checked.line,
        qualifies=checked.qualifies,
        flags={rule.line: rule.line == checked.line for rule in rules},
        path=path,
    )
    logger.info(
        "qualification_decided",
        part=part.value,
        checked_line=checked.line,
        qualifies=checked.qualifies,
        rules_evaluated=len(path),
    )
    return outcome


class QualificationDecider:
    """Walk the Part II and Part III checkbox chains."""

    def decide_part_ii(self, inputs: QualificationInputs) -> QualificationOutcome:
        """Part II: lines 13, 16a, 16b, 17a, 17b, 18."""
        return _walk(SupportPart.PART_II, PART_II_RULES, inputs)

    def decide_part_iii(self, inputs: QualificationInputs) -> QualificationOutcome:
        """Part III: lines 14, 19a, 19b, 20."""
        return _walk(SupportPart.PART_III, PART_III_RULES, inputs)

    def decide(self, inputs: QualificationInputs) -> tuple[QualificationOutcome, QualificationOutcome]:
        """Both parts, Part II first."""
        return self.decide_part_ii(inputs), self.decide_part_iii(inputs)

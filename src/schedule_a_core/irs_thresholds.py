"""IRS Schedule A (Form 990) thresholds and rounding conventions.

Sources:
- Schedule A (Form 990): https://www.irs.gov/pub/irs-pdf/f990sa.pdf
- Instructions: https://www.irs.gov/instructions/i990sa

All comparisons are made on percentages already rounded to two places,
which is how the form displays lines 14/15 (Part II) and 15-18 (Part III).
"""

from decimal import ROUND_HALF_UP, Decimal


# =============================================================================
# VERSION TRACKING
# =============================================================================

SCHEDULE_A_FORM_REVISION = "2024"
ENGINE_VERSION = "schedule-a-core-0.1"


# =============================================================================
# SUPPORT WINDOW
# =============================================================================

SUPPORT_WINDOW_YEARS = 5


def current_window(tax_year: int) -> tuple[int, ...]:
    """Years (a)-(e) of the support schedule ending in the tax year."""
    return tuple(range(tax_year - SUPPORT_WINDOW_YEARS + 1, tax_year + 1))


def prior_window(tax_year: int) -> tuple[int, ...]:
    """Window used for the prior-year percentages (Part II line 15, Part III lines 16/18)."""
    return current_window(tax_year - 1)


# =============================================================================
# QUALIFICATION THRESHOLDS
# =============================================================================

PUBLIC_SUPPORT_THRESHOLD = Decimal("33.33")  # 33 1/3% as displayed on the form
FACTS_AND_CIRCUMSTANCES_THRESHOLD = Decimal("10")
INVESTMENT_INCOME_CEILING = Decimal("33.33")


# =============================================================================
# CONTRIBUTOR EXCLUSIONS
# =============================================================================

# Part II line 5: contributions above 2% of total support (line 11, column f)
EXCESS_CONTRIBUTION_RATE = Decimal("0.02")

# Part III line 7b: receipts above the greater of $5,000 or 1% of total support
PART_III_CONTRIBUTOR_RATE = Decimal("0.01")
PART_III_CONTRIBUTOR_FLOOR = Decimal("5000")


# =============================================================================
# ROUNDING
# =============================================================================

ZERO = Decimal("0")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def round_cents(amount: Decimal) -> Decimal:
    """Round a dollar amount to cents, half up."""
    rounded = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    # Normalize negative zero so "-0.00" never reaches the output
    return rounded if rounded != ZERO else ZERO.quantize(CENTS)


def calculate_percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Percentage of numerator over denominator, rounded to 2 places half up.

    A zero or negative denominator yields 0.00: a window without support
    still produces a (failing) schedule.
    """
    if denominator <= ZERO:
        return ZERO.quantize(CENTS)
    return round_cents(numerator / denominator * HUNDRED)


def format_amount(amount: Decimal) -> str:
    """Decimal string fixed to two places, e.g. '20000.00'."""
    return str(round_cents(amount))


def excess_contribution_threshold(total_support: Decimal) -> Decimal:
    """Part II line 5 per-contributor threshold (2% of total support)."""
    if total_support <= ZERO:
        return ZERO
    return round_cents(total_support * EXCESS_CONTRIBUTION_RATE)


def part_iii_contributor_threshold(total_support: Decimal) -> Decimal:
    """Part III line 7b per-contributor threshold: max($5,000, 1% of total support)."""
    if total_support <= ZERO:
        return ZERO
    return max(PART_III_CONTRIBUTOR_FLOOR, round_cents(total_support * PART_III_CONTRIBUTOR_RATE))

"""Transaction classification into Schedule A support lines.

Each transaction is routed through its category's classification to a
LineBucket: the Part II and Part III lines it feeds. Both parts are
populated from the same bucket so either can be presented without a
second pass over the ledger.

Dirty data never aborts a report: a missing or unknown category, or a
category chain without any classification, routes the transaction to
other income and records a warning.
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

import structlog

from .config import ContributorFallback
from .exceptions import ValidationError
from .models import (
    AuditWarning,
    Category,
    LineId,
    SupportClassification,
    Transaction,
    TransactionType,
)

logger = structlog.get_logger()


class LineBucket(NamedTuple):
    """Support lines fed by one classification."""
    classification: SupportClassification
    lines: tuple[LineId, ...]

    @property
    def is_support(self) -> bool:
        return bool(self.lines)


# =============================================================================
# BUCKET TABLE
# =============================================================================
# Fixed mapping; not configurable at call time.

LINE_BUCKETS: dict[SupportClassification, LineBucket] = {
    SupportClassification.CONTRIBUTION: LineBucket(
        SupportClassification.CONTRIBUTION, (LineId.II_1, LineId.III_1)
    ),
    SupportClassification.GOVERNMENT_TAX_REVENUE: LineBucket(
        SupportClassification.GOVERNMENT_TAX_REVENUE, (LineId.II_2, LineId.III_4)
    ),
    SupportClassification.GOVERNMENT_SERVICE_FURNISHED: LineBucket(
        SupportClassification.GOVERNMENT_SERVICE_FURNISHED, (LineId.II_3, LineId.III_5)
    ),
    SupportClassification.INVESTMENT_INCOME: LineBucket(
        SupportClassification.INVESTMENT_INCOME, (LineId.II_8, LineId.III_10A)
    ),
    SupportClassification.UNRELATED_BUSINESS_INCOME: LineBucket(
        SupportClassification.UNRELATED_BUSINESS_INCOME, (LineId.II_9, LineId.III_10B)
    ),
    SupportClassification.PROGRAM_SERVICE_GROSS_RECEIPT: LineBucket(
        SupportClassification.PROGRAM_SERVICE_GROSS_RECEIPT, (LineId.II_12, LineId.III_2)
    ),
    SupportClassification.OTHER_INCOME: LineBucket(
        SupportClassification.OTHER_INCOME, (LineId.II_10, LineId.III_12)
    ),
    SupportClassification.NON_SUPPORT: LineBucket(SupportClassification.NON_SUPPORT, ()),
}

DEFAULT_CLASSIFICATION = SupportClassification.OTHER_INCOME


def bucket_for(classification: Optional[SupportClassification]) -> LineBucket:
    """Bucket for a classification, defaulting unclassified to other income."""
    return LINE_BUCKETS[classification or DEFAULT_CLASSIFICATION]


# =============================================================================
# CONTRIBUTOR IDENTITY
# =============================================================================

ContributorKey = str

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_REFERENCE_NOISE = re.compile(r"\b(?:ref|conf|confirmation|check|chk|no|id)?\s*#?\d{4,}\b")


def normalize_description(description: str) -> str:
    """Lowercase, drop long reference numbers and punctuation, collapse spaces."""
    text = description.lower()
    text = _REFERENCE_NOISE.sub(" ", text)
    text = _NON_ALNUM.sub(" ", text)
    return " ".join(text.split())


def contributor_key(
    transaction: Transaction,
    fallback: ContributorFallback = ContributorFallback.DESCRIPTION,
) -> ContributorKey:
    """Identity of the payer behind a transaction.

    Donor, client and vendor references win in that order. Without one,
    the normalized description is used, unless the fallback policy is
    DISTINCT or the description is empty, in which case the transaction
    is its own contributor and never aggregates with anything else.
    """
    if transaction.donor_id is not None:
        return f"donor:{transaction.donor_id}"
    if transaction.client_id is not None:
        return f"client:{transaction.client_id}"
    if transaction.vendor_id is not None:
        return f"vendor:{transaction.vendor_id}"

    if fallback == ContributorFallback.DESCRIPTION:
        normalized = normalize_description(transaction.description)
        if normalized:
            return f"desc:{normalized}"
    return f"txn:{transaction.id}"


# =============================================================================
# CLASSIFIED TRANSACTIONS
# =============================================================================

@dataclass(frozen=True)
class ClassifiedTransaction:
    """A transaction paired with its bucket and contributor identity."""
    transaction_id: int
    date_ordinal: int
    year: int
    amount: Decimal
    bucket: LineBucket
    contributor: ContributorKey

    @property
    def is_contribution(self) -> bool:
        return self.bucket.classification == SupportClassification.CONTRIBUTION


class TransactionClassifier:
    """
    Classify ledger transactions into Schedule A support buckets.

    The classifier holds an immutable category lookup built once per
    snapshot. `classify` itself is pure; `classify_all` also collects
    data-quality warnings for the report.
    """

    def __init__(
        self,
        categories: Iterable[Category],
        contributor_fallback: ContributorFallback = ContributorFallback.DESCRIPTION,
    ):
        """
        Build the category lookup.

        Args:
            categories: Every category of the organization
            contributor_fallback: Identity policy for receipts without a reference id

        Raises:
            ValidationError: If two categories share an id but disagree
        """
        self.contributor_fallback = contributor_fallback
        self._categories: dict[int, Category] = {}
        for category in categories:
            existing = self._categories.get(category.id)
            if existing is not None and existing != category:
                raise ValidationError(
                    f"Category id {category.id} appears twice with different definitions",
                    field="categories",
                    value=category.id,
                    constraint="category ids must be unique",
                )
            self._categories[category.id] = category

    def resolve_category(self, transaction: Transaction) -> Optional[Category]:
        """Look up the transaction's category, None when missing or unknown."""
        if transaction.category_id is None:
            return None
        return self._categories.get(transaction.category_id)

    def resolve_classification(self, category: Optional[Category]) -> Optional[SupportClassification]:
        """Nearest classification on the category's ancestor chain."""
        seen: set[int] = set()
        current = category
        while current is not None and current.id not in seen:
            if current.classification is not None:
                return current.classification
            seen.add(current.id)
            if current.parent_category_id is None:
                break
            current = self._categories.get(current.parent_category_id)
        return None

    def classify(self, transaction: Transaction, category: Optional[Category]) -> LineBucket:
        """
        Map a transaction to its support bucket.

        Expenses never count as support. Income without a resolvable
        classification goes to other income.
        """
        if transaction.type == TransactionType.EXPENSE:
            return LINE_BUCKETS[SupportClassification.NON_SUPPORT]
        return bucket_for(self.resolve_classification(category))

    def classify_all(
        self,
        transactions: Iterable[Transaction],
        years: Optional[Iterable[int]] = None,
    ) -> tuple[list[ClassifiedTransaction], list[AuditWarning]]:
        """
        Classify a snapshot, keeping only support transactions.

        Args:
            transactions: Ledger transactions for the organization
            years: If given, transactions dated outside these years are skipped

        Returns:
            Tuple of (classified support transactions ordered by date then id,
            warnings)
        """
        year_filter = set(years) if years is not None else None
        classified: list[ClassifiedTransaction] = []
        unknown_category: list[int] = []
        uncategorized: list[int] = []
        unclassified: dict[int, list[int]] = defaultdict(list)
        unrecognized: dict[int, list[int]] = defaultdict(list)
        outside_window = 0

        for txn in transactions:
            if year_filter is not None and txn.year not in year_filter:
                outside_window += 1
                continue

            category = self.resolve_category(txn)
            bucket = self.classify(txn, category)
            if not bucket.is_support:
                continue

            if txn.category_id is None:
                uncategorized.append(txn.id)
            elif category is None:
                unknown_category.append(txn.id)
            elif category.unrecognized_classification is not None:
                unrecognized[category.id].append(txn.id)
            elif self.resolve_classification(category) is None:
                unclassified[category.id].append(txn.id)

            classified.append(
                ClassifiedTransaction(
                    transaction_id=txn.id,
                    date_ordinal=txn.date.toordinal(),
                    year=txn.year,
                    amount=txn.amount,
                    bucket=bucket,
                    contributor=contributor_key(txn, self.contributor_fallback),
                )
            )

        classified.sort(key=lambda c: (c.date_ordinal, c.transaction_id))

        warnings: list[AuditWarning] = []
        if uncategorized:
            warnings.append(AuditWarning(
                code="UNCATEGORIZED_INCOME",
                message=f"{len(uncategorized)} income transaction(s) have no category and were reported as other income",
                transaction_ids=tuple(sorted(uncategorized)),
                suggested_action="Assign a category with a Schedule A classification",
            ))
        if unknown_category:
            warnings.append(AuditWarning(
                code="UNKNOWN_CATEGORY",
                message=f"{len(unknown_category)} income transaction(s) reference unknown categories and were reported as other income",
                transaction_ids=tuple(sorted(unknown_category)),
                suggested_action="Reload categories or re-categorize the transactions",
            ))
        for category_id in sorted(unclassified):
            txn_ids = unclassified[category_id]
            name = self._categories[category_id].name
            warnings.append(AuditWarning(
                code="UNCLASSIFIED_CATEGORY",
                message=f"Category '{name}' has no Schedule A classification; {len(txn_ids)} transaction(s) reported as other income",
                transaction_ids=tuple(sorted(txn_ids)),
                suggested_action=f"Classify category '{name}' (id {category_id})",
            ))
        for category_id in sorted(unrecognized):
            txn_ids = unrecognized[category_id]
            category = self._categories[category_id]
            warnings.append(AuditWarning(
                code="UNRECOGNIZED_CLASSIFICATION",
                message=(
                    f"Category '{category.name}' has unrecognized classification "
                    f"'{category.unrecognized_classification}'; {len(txn_ids)} transaction(s) treated as unclassified"
                ),
                transaction_ids=tuple(sorted(txn_ids)),
                suggested_action=f"Reclassify category '{category.name}' (id {category_id})",
            ))

        logger.info(
            "transactions_classified",
            support_transactions=len(classified),
            outside_window=outside_window,
            warnings=len(warnings),
        )
        return classified, warnings

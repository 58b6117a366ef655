"""Data models for schedule-a-core.

This package provides:
- Ledger inputs: transactions and classified categories (financial.py)
- Support schedule structures and the ScheduleAData output (schedule.py)
- Calculation audit entries and data-quality warnings (audit.py)
"""

from schedule_a_core.models.financial import (
    Category,
    SupportClassification,
    Transaction,
    TransactionType,
)
from schedule_a_core.models.schedule import (
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
    RuleEvaluation,
    ScheduleAData,
    ScheduleAResult,
    ScheduleASummary,
    SupportPart,
    YearAggregate,
)
from schedule_a_core.models.audit import (
    AuditEntry,
    AuditSeverity,
    AuditWarning,
)

__all__ = [
    # Ledger inputs
    "Category",
    "SupportClassification",
    "Transaction",
    "TransactionType",
    # Support schedule
    "LineId",
    "SupportPart",
    "YearAggregate",
    "RuleEvaluation",
    "QualificationOutcome",
    # Output contract
    "PartI",
    "PartII",
    "PartIII",
    "PartIISectionA",
    "PartIISectionB",
    "PartIISectionC",
    "PartIIISectionA",
    "PartIIISectionB",
    "PartIIISectionC",
    "PartIIISectionD",
    "ScheduleAData",
    "ScheduleAResult",
    "ScheduleASummary",
    # Audit
    "AuditEntry",
    "AuditSeverity",
    "AuditWarning",
]

"""Audit trail models for Schedule A calculations.

Entries carry no timestamps so that two runs over the same snapshot
produce identical reports.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditSeverity(str, Enum):
    """Severity levels for data-quality warnings."""
    INFO = "info"
    WARNING = "warning"


class AuditEntry(BaseModel):
    """Audit log entry for calculation transparency."""

    model_config = ConfigDict(frozen=True)

    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None
    line_number: Optional[str] = None  # Schedule A line reference


class AuditWarning(BaseModel):
    """Data-quality issue detected while building a schedule.

    Warnings never stop the computation; they flag inputs a preparer
    should review (unclassified categories, unknown category ids, ...).

    Attributes:
        code: Machine-readable warning code (e.g., "UNCLASSIFIED_CATEGORY")
        message: Human-readable warning message
        severity: Warning severity level
        transaction_ids: Transactions affected, in ascending order
        suggested_action: Recommended action to resolve the warning
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    severity: AuditSeverity = AuditSeverity.WARNING
    transaction_ids: tuple[int, ...] = ()
    suggested_action: Optional[str] = None

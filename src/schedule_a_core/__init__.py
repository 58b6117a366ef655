"""Schedule A Core - Form 990 Schedule A public support calculations."""

__version__ = "0.1.0"

from .exceptions import ConfigurationError, ScheduleAError, ValidationError
from .models import Category, ScheduleAData, Transaction
from .report_builder import (
    ScheduleAContext,
    ScheduleAReport,
    ScheduleAReportBuilder,
    build_schedule_a,
)
from .report_generator import ScheduleAReportGenerator

__all__ = [
    "Category",
    "ConfigurationError",
    "ScheduleAContext",
    "ScheduleAData",
    "ScheduleAError",
    "ScheduleAReport",
    "ScheduleAReportBuilder",
    "ScheduleAReportGenerator",
    "Transaction",
    "ValidationError",
    "build_schedule_a",
]

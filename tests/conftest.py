"""Shared fixtures for schedule-a-core tests."""

import itertools
import logging
from decimal import Decimal
from typing import Callable, Optional

import pytest
import structlog

from schedule_a_core.config import ScheduleAConfig
from schedule_a_core.models import Category, SupportClassification, Transaction

DONATIONS = 1
PROGRAM_FEES = 2
INTEREST = 3
GOVERNMENT_GRANTS = 4
MERCHANDISE = 5
MISC_INCOME = 6
GALA_TICKETS = 7  # child of DONATIONS, no classification of its own
RENT = 8
UNSORTED = 9
GOVERNMENT_SERVICES = 10


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a test (e.g. the CLI) installed."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


@pytest.fixture
def config() -> ScheduleAConfig:
    return ScheduleAConfig(env="test")


@pytest.fixture
def categories() -> list[Category]:
    """A small chart of accounts covering every classification."""
    return [
        Category(id=DONATIONS, name="Donations", classification=SupportClassification.CONTRIBUTION),
        Category(id=PROGRAM_FEES, name="Program Fees",
                 classification=SupportClassification.PROGRAM_SERVICE_GROSS_RECEIPT),
        Category(id=INTEREST, name="Interest", classification=SupportClassification.INVESTMENT_INCOME),
        Category(id=GOVERNMENT_GRANTS, name="County Tax Levy",
                 classification=SupportClassification.GOVERNMENT_TAX_REVENUE),
        Category(id=MERCHANDISE, name="Merchandise",
                 classification=SupportClassification.UNRELATED_BUSINESS_INCOME),
        Category(id=MISC_INCOME, name="Miscellaneous", classification=SupportClassification.OTHER_INCOME),
        Category(id=GALA_TICKETS, name="Gala Tickets", parent_category_id=DONATIONS),
        Category(id=RENT, name="Rent", classification=SupportClassification.NON_SUPPORT),
        Category(id=UNSORTED, name="Unsorted"),
        Category(id=GOVERNMENT_SERVICES, name="Donated Facilities",
                 classification=SupportClassification.GOVERNMENT_SERVICE_FURNISHED),
    ]


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for transactions with sequential ids."""
    ids = itertools.count(1)

    def _make(
        date: str,
        amount: str,
        category_id: Optional[int] = DONATIONS,
        *,
        type: str = "income",
        description: str = "",
        donor_id: Optional[int] = None,
        client_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
    ) -> Transaction:
        return Transaction(
            id=next(ids),
            date=date,
            amount=Decimal(amount),
            type=type,
            category_id=category_id,
            description=description,
            donor_id=donor_id,
            client_id=client_id,
            vendor_id=vendor_id,
        )

    return _make


@pytest.fixture
def small_donor_transactions(make_txn) -> list[Transaction]:
    """$20,000 a year for 2020-2024 from ten distinct $2,000 donors each year."""
    transactions = []
    for year in range(2020, 2025):
        for i in range(10):
            transactions.append(
                make_txn(f"{year}-0{(i % 9) + 1}-15", "2000", donor_id=year * 100 + i)
            )
    return transactions


@pytest.fixture
def large_donor_transactions(make_txn) -> list[Transaction]:
    """One $10,000 gift against $100,000 of total support in 2022."""
    return [
        make_txn("2022-05-01", "10000", donor_id=1),
        make_txn("2022-06-30", "90000", INTEREST, description="Brokerage dividends"),
    ]

#!/usr/bin/env python3
"""
Schedule A Public Support Demonstration

This script demonstrates the complete Schedule A workflow:
1. Create a categorized ledger snapshot for a small community nonprofit
2. Build the Part II / Part III support schedules
3. Generate text, Markdown and CSV reports

Run: python examples/schedule_a_demo.py
"""

from decimal import Decimal

from schedule_a_core import (
    Category,
    ScheduleAContext,
    ScheduleAReportBuilder,
    ScheduleAReportGenerator,
    Transaction,
)
from schedule_a_core.config import load_config
from schedule_a_core.logging_config import configure_logging
from schedule_a_core.models import SupportClassification


def create_sample_categories() -> list[Category]:
    """Chart of accounts with Schedule A classifications."""
    return [
        Category(id=1, name="Individual Donations", classification=SupportClassification.CONTRIBUTION),
        Category(id=2, name="Gala Tickets", parent_category_id=1),
        Category(id=3, name="Foundation Grants", classification=SupportClassification.CONTRIBUTION),
        Category(id=4, name="After-School Program Fees",
                 classification=SupportClassification.PROGRAM_SERVICE_GROSS_RECEIPT),
        Category(id=5, name="Bank Interest", classification=SupportClassification.INVESTMENT_INCOME),
        Category(id=6, name="Thrift Shop Sales", classification=SupportClassification.UNRELATED_BUSINESS_INCOME),
        Category(id=7, name="Rent", classification=SupportClassification.NON_SUPPORT),
        Category(id=8, name="Uncategorized Deposits"),
    ]


def create_sample_transactions() -> list[Transaction]:
    """Six years of receipts (2019-2024) with one large foundation grant."""
    transactions = []
    next_id = 1

    def add(date: str, amount: str, category_id: int, **kwargs) -> None:
        nonlocal next_id
        transactions.append(
            Transaction(id=next_id, date=date, amount=Decimal(amount), type=kwargs.pop("type", "income"),
                        category_id=category_id, **kwargs)
        )
        next_id += 1

    for year in range(2019, 2025):
        # Forty small individual gifts a year
        for donor in range(40):
            add(f"{year}-{(donor % 12) + 1:02d}-10", "250", 1, donor_id=donor + 1)
        add(f"{year}-10-05", "3500", 2, description="Autumn gala door sales")
        add(f"{year}-09-01", "6000", 4, client_id=900 + year)
        add(f"{year}-12-31", "420.55", 5, description="Interest - operating account")
        add(f"{year}-06-30", "1800", 6, description="Thrift shop")
        add(f"{year}-01-01", "14400", 7, type="expense", vendor_id=55)

    # One foundation gives heavily in 2022
    add("2022-04-15", "25000", 3, donor_id=5000, description="Hudson Valley Community Foundation")
    add("2024-11-20", "300", 8, description="Mobile deposit ref 88812345")
    return transactions


def main():
    """Run the Schedule A demo."""
    print("=" * 70)
    print("SCHEDULE A CORE - Public Support Test Demo")
    print("=" * 70)
    print()

    config = load_config()
    configure_logging(config)

    # Step 1: Ledger snapshot
    print("Step 1: Creating sample ledger snapshot...")
    categories = create_sample_categories()
    transactions = create_sample_transactions()
    print(f"  - Categories: {len(categories)}")
    print(f"  - Transactions: {len(transactions)}")
    print()

    # Step 2: Build the schedule
    print("Step 2: Building Schedule A for tax year 2024...")
    context = ScheduleAContext(
        tax_year=2024,
        organization_id=1,
        first_five_years=False,
        facts_and_circumstances=False,
        public_charity_type=7,
        disqualified_contributors={"donor:1"},
    )
    report = ScheduleAReportBuilder(config).build(context, transactions, categories)
    summary = report.data.summary
    print(f"  - Public Support (line 6): ${Decimal(summary.total_public_support):,.2f}")
    print(f"  - Total Support (line 11): ${Decimal(summary.total_support):,.2f}")
    print(f"  - Line 14: {report.data.part_ii.section_c.line14}%")
    print(f"  - Line 15: {report.data.part_ii.section_c.line15}%")
    print(f"  - Box checked: {report.part_ii_outcome.checked_line}")
    print(f"  - Qualifies: {report.qualifies}")
    print(f"  - Warnings: {len(report.warnings)}")
    print()

    # Step 3: Reports
    print("Step 3: Generating reports...")
    generator = ScheduleAReportGenerator()
    report_text = generator.generate(report)
    print()
    print(report_text)

    print()
    print("-" * 70)
    print("Saving reports...")

    with open("schedule_a_report.md", "w") as f:
        f.write(generator.generate(report, format="markdown"))
    print("  - Saved: schedule_a_report.md")

    with open("schedule_a_2024.csv", "w", newline="") as f:
        f.write(generator.generate(report, format="csv"))
    print("  - Saved: schedule_a_2024.csv")

    with open("schedule_a_2024.json", "w") as f:
        f.write(report.data.to_json())
    print("  - Saved: schedule_a_2024.json")

    print()
    print("=" * 70)
    print("Demo complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()

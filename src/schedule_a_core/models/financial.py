"""Transaction and category models consumed by the Schedule A engine.

Both models are owned by the external transaction store; the engine only
reads them. Category classification, not the category name, decides
which support-schedule lines a transaction lands on.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class TransactionType(str, Enum):
    """Direction of a ledger transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class SupportClassification(str, Enum):
    """Schedule A revenue classification attached to a category.

    These map one-to-one onto the fixed Part II / Part III bucket table
    in schedule_a_core.classifier.
    """
    CONTRIBUTION = "contribution"
    GOVERNMENT_TAX_REVENUE = "government_tax_revenue"
    GOVERNMENT_SERVICE_FURNISHED = "government_service_furnished"
    INVESTMENT_INCOME = "investment_income"
    UNRELATED_BUSINESS_INCOME = "unrelated_business_income"
    PROGRAM_SERVICE_GROSS_RECEIPT = "program_service_gross_receipt"
    OTHER_INCOME = "other_income"
    NON_SUPPORT = "non_support"


class Transaction(BaseModel):
    """A single categorized ledger transaction.

    Income amounts are normally positive; a negative income amount
    (refund, reversal) reduces the line it is classified to.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "id": 1042,
                    "date": "2024-03-15",
                    "description": "Spring appeal - J. Rivera",
                    "amount": "250.00",
                    "type": "income",
                    "categoryId": 7,
                    "donorId": 88,
                }
            ]
        },
    )

    id: int = Field(description="Transaction id in the ledger")
    date: dt.date = Field(description="Posting date; the calendar year selects the support column")
    amount: Decimal = Field(description="Signed transaction amount")
    type: TransactionType = Field(description="income or expense")
    category_id: Optional[int] = Field(
        default=None,
        alias="categoryId",
        description="Category reference; unknown or missing ids classify as other income",
    )
    description: str = Field(default="", description="Ledger description / payer memo")
    donor_id: Optional[int] = Field(default=None, alias="donorId")
    client_id: Optional[int] = Field(default=None, alias="clientId")
    vendor_id: Optional[int] = Field(default=None, alias="vendorId")

    @computed_field
    @property
    def year(self) -> int:
        """Calendar year used for the support schedule column."""
        return self.date.year

    @field_validator("date", mode="before")
    @classmethod
    def truncate_datetime(cls, v):
        """Accept timestamps from the store and keep only the date."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return dt.datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount_to_decimal(cls, v):
        """Strip string amounts; route floats through str to avoid binary noise."""
        if isinstance(v, str):
            return v.strip()
        if isinstance(v, float):
            return Decimal(str(v))
        return v


class Category(BaseModel):
    """A ledger category with its Schedule A classification.

    A category without a classification inherits its parent's; the
    classifier falls back to other income when no ancestor has one.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    parent_category_id: Optional[int] = Field(default=None, alias="parentCategoryId")
    classification: Optional[SupportClassification] = None
    unrecognized_classification: Optional[str] = Field(
        default=None,
        alias="unrecognizedClassification",
        description="Classification value from the store that this engine does not know",
    )

    @model_validator(mode="before")
    @classmethod
    def set_aside_unknown_classification(cls, data):
        """Treat an unknown classification as unclassified instead of rejecting the category."""
        if not isinstance(data, dict):
            return data
        value = data.get("classification")
        if value is None or isinstance(value, SupportClassification):
            return data
        known = {c.value for c in SupportClassification}
        if isinstance(value, str) and value.strip().lower() in known:
            return {**data, "classification": value.strip().lower()}
        return {**data, "classification": None, "unrecognized_classification": str(value)}

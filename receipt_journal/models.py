"""Pydantic models for journal entries and extracted receipt fields"""
import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class EntryType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class LineItem(BaseModel):
    description: str
    quantity: float = 1
    unitPrice: float
    total: float
    vatRate: float = 0.0
    category: str = "General Expenses"

    class Config:
        frozen = True
        allow_inf_nan = False


class LedgerLine(BaseModel):
    type: EntryType
    account: str
    amount: float = Field(ge=0)
    description: str = ""

    class Config:
        frozen = True
        allow_inf_nan = False

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        # Models sometimes answer "Debit" / "CREDIT"
        if isinstance(value, str):
            return value.strip().lower()
        return value


class VatBreakdown(BaseModel):
    netAmount: float
    vatAmount: float
    grossAmount: float
    vatRate: float

    class Config:
        frozen = True
        allow_inf_nan = False


class JournalEntry(BaseModel):
    date: str  # DD/MM/YYYY
    merchant: str
    description: str = ""
    reference: str = "N/A"
    lineItems: List[LineItem] = []
    entries: List[LedgerLine]
    vatBreakdown: VatBreakdown
    totalDebit: float
    totalCredit: float

    class Config:
        frozen = True
        allow_inf_nan = False

    def debit_total(self) -> float:
        return sum(line.amount for line in self.entries if line.type == EntryType.DEBIT)

    def credit_total(self) -> float:
        return sum(line.amount for line in self.entries if line.type == EntryType.CREDIT)

    def is_balanced(self, tolerance: float = 0.01) -> bool:
        """True when the ledger lines and the declared totals all agree"""
        debit = self.debit_total()
        credit = self.credit_total()
        return (
            abs(debit - credit) <= tolerance
            and abs(self.totalDebit - self.totalCredit) <= tolerance
            and abs(self.totalDebit - debit) <= tolerance
        )


class Category(BaseModel):
    account: str
    description: str

    class Config:
        frozen = True


class ExtractedFields(BaseModel):
    amount: Decimal
    date: Optional[datetime.date] = None
    merchant: Optional[str] = None
    defaults: List[str] = []  # fields that fell back to a documented default

    class Config:
        frozen = True

"""Deterministic journal entry builder used when the model path is unavailable"""
import logging
from datetime import date
from typing import Optional

from .config import EngineConfig
from .field_extractor import UNKNOWN_MERCHANT
from .models import Category, EntryType, ExtractedFields, JournalEntry, LedgerLine, LineItem, VatBreakdown
from .vat import rate_percent_token


logger = logging.getLogger(__name__)

VAT_ACCOUNT = "VAT Input Tax"
PAYMENT_ACCOUNT = "Cash/Bank Account"
FALLBACK_REFERENCE = "AUTO-GENERATED"


def build_fallback_entry(
    extracted: ExtractedFields,
    category: Category,
    vat: VatBreakdown,
    config: EngineConfig,
    today: Optional[date] = None,
) -> JournalEntry:
    """
    Assemble a balanced entry from extracted fields.

    Debits are the net expense plus, when present, input VAT; the single
    credit is the gross payment. Since net + VAT == gross in the
    breakdown, both totals are the gross amount.
    """
    merchant = extracted.merchant or UNKNOWN_MERCHANT
    entry_date = extracted.date or today or date.today()

    entries = [
        LedgerLine(
            type=EntryType.DEBIT,
            account=category.account,
            amount=vat.netAmount,
            description=category.description,
        )
    ]
    if vat.vatAmount > 0:
        entries.append(LedgerLine(
            type=EntryType.DEBIT,
            account=VAT_ACCOUNT,
            amount=vat.vatAmount,
            description=f"VAT {rate_percent_token(vat.vatRate)}",
        ))
    entries.append(LedgerLine(
        type=EntryType.CREDIT,
        account=PAYMENT_ACCOUNT,
        amount=vat.grossAmount,
        description="Payment",
    ))

    logger.info("Fallback entry for %s: %s -> %s", merchant, vat.grossAmount, category.account)

    return JournalEntry(
        date=entry_date.strftime(config.date_format),
        description=f"{merchant} - {category.description}",
        reference=FALLBACK_REFERENCE,
        merchant=merchant,
        entries=entries,
        lineItems=[
            LineItem(
                description=category.description,
                quantity=1,
                unitPrice=vat.netAmount,
                total=vat.netAmount,
                vatRate=vat.vatRate,
                category=category.account,
            )
        ],
        vatBreakdown=vat,
        totalDebit=vat.grossAmount,
        totalCredit=vat.grossAmount,
    )

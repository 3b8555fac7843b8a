"""Tests for the deterministic journal entry builder"""
from datetime import date
from decimal import Decimal

import pytest

from receipt_journal.classifier import DEFAULT_CATEGORY
from receipt_journal.fallback import build_fallback_entry
from receipt_journal.models import Category, EntryType, ExtractedFields
from receipt_journal.vat import compute_vat


MEALS = Category(account="Meals & Entertainment", description="Restaurant/Food expense")


def test_fallback_without_vat(engine_config):
    """Test two balanced lines when no VAT applies"""
    extracted = ExtractedFields(amount=Decimal("25.50"), date=date(2024, 1, 15), merchant="Test Merchant")
    vat = compute_vat(extracted.amount, "Test Merchant", engine_config.vat_rate)

    entry = build_fallback_entry(extracted, DEFAULT_CATEGORY, vat, engine_config)

    assert [line.type for line in entry.entries] == [EntryType.DEBIT, EntryType.CREDIT]
    assert entry.entries[0].account == "General Expenses"
    assert entry.entries[0].amount == pytest.approx(25.50)
    assert entry.entries[1].account == "Cash/Bank Account"
    assert entry.entries[1].amount == pytest.approx(25.50)
    assert entry.totalDebit == entry.totalCredit == pytest.approx(25.50)
    assert entry.vatBreakdown.vatRate == 0
    assert entry.date == "15/01/2024"
    assert entry.reference == "AUTO-GENERATED"
    assert entry.description == "Test Merchant - Expense Transaction (OCR processed)"


def test_fallback_with_vat(engine_config):
    """Test an input VAT debit is added when VAT is present"""
    extracted = ExtractedFields(amount=Decimal("119.00"), merchant="Corner Bistro")
    vat = compute_vat(extracted.amount, "VAT 19%", engine_config.vat_rate)

    entry = build_fallback_entry(extracted, MEALS, vat, engine_config, today=date(2024, 6, 1))

    assert len(entry.entries) == 3
    expense, vat_line, payment = entry.entries
    assert (expense.account, expense.amount) == ("Meals & Entertainment", pytest.approx(100.00))
    assert (vat_line.account, vat_line.amount) == ("VAT Input Tax", pytest.approx(19.00))
    assert vat_line.description == "VAT 19%"
    assert payment.type == EntryType.CREDIT
    assert payment.amount == pytest.approx(119.00)
    assert entry.totalDebit == entry.totalCredit == pytest.approx(119.00)
    assert entry.is_balanced()
    assert entry.date == "01/06/2024"


def test_fallback_line_item_mirrors_net_expense(engine_config):
    """Test the single synthetic line item"""
    extracted = ExtractedFields(amount=Decimal("119.00"), merchant="Corner Bistro")
    vat = compute_vat(extracted.amount, "vat", engine_config.vat_rate)

    entry = build_fallback_entry(extracted, MEALS, vat, engine_config)

    assert len(entry.lineItems) == 1
    item = entry.lineItems[0]
    assert item.quantity == 1
    assert item.unitPrice == item.total == pytest.approx(100.00)
    assert item.vatRate == pytest.approx(0.19)
    assert item.category == "Meals & Entertainment"


def test_fallback_defaults_date_to_today(engine_config):
    """Test the current date is used when none was extracted"""
    extracted = ExtractedFields(amount=Decimal("5"), merchant="Kiosk")
    vat = compute_vat(extracted.amount, "", engine_config.vat_rate)

    entry = build_fallback_entry(extracted, DEFAULT_CATEGORY, vat, engine_config)

    assert entry.date == date.today().strftime("%d/%m/%Y")


def test_fallback_unknown_merchant(engine_config):
    """Test a missing merchant uses the sentinel"""
    extracted = ExtractedFields(amount=Decimal("5"))
    vat = compute_vat(extracted.amount, "", engine_config.vat_rate)

    entry = build_fallback_entry(extracted, DEFAULT_CATEGORY, vat, engine_config)

    assert entry.merchant == "Unknown Merchant"


@pytest.mark.parametrize("amount", ["0", "0.01", "7.77", "10.005", "999.99", "12345.67"])
@pytest.mark.parametrize("text", ["VAT", ""])
def test_fallback_always_balances(engine_config, amount, text):
    """Test debits equal credits for any amount"""
    extracted = ExtractedFields(amount=Decimal(amount), merchant="Shop")
    vat = compute_vat(extracted.amount, text, engine_config.vat_rate)

    entry = build_fallback_entry(extracted, DEFAULT_CATEGORY, vat, engine_config)

    assert entry.is_balanced()
    assert entry.totalDebit == pytest.approx(vat.grossAmount)

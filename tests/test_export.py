"""Tests for CSV export"""
import csv
import io

from receipt_journal.export import export_filename, journal_entry_to_csv
from receipt_journal.models import JournalEntry


def test_export_ledger_rows(sample_journal_entry_data):
    """Test header fields are joined with each ledger line"""
    entry = JournalEntry.model_validate(sample_journal_entry_data)

    text = journal_entry_to_csv(entry).decode("utf-8")
    ledger_block = text.split("\n\nLine Items\n")[0]
    rows = list(csv.reader(io.StringIO(ledger_block)))

    assert rows[0] == ["Date", "Merchant", "Description", "Reference", "Account", "Account Description", "Type", "Amount"]
    assert len(rows) == 4
    assert rows[1] == [
        "15/03/2024",
        "Corner Bistro",
        "Corner Bistro - Business lunch",
        "R-1042",
        "Meals & Entertainment",
        "Lunch",
        "debit",
        "100.00",
    ]
    assert rows[3][6:] == ["credit", "119.00"]


def test_export_line_items_block(sample_journal_entry_data):
    """Test the separate line items block"""
    entry = JournalEntry.model_validate(sample_journal_entry_data)

    text = journal_entry_to_csv(entry).decode("utf-8")
    items_block = text.split("\n\nLine Items\n")[1]
    rows = list(csv.reader(io.StringIO(items_block)))

    assert rows[0] == ["Description", "Quantity", "Unit Price", "Total", "Category", "VAT Rate"]
    assert rows[1] == ["Lunch menu", "2", "50.00", "100.00", "Meals & Entertainment", "19%"]


def test_export_quotes_commas(sample_journal_entry_data):
    """Test values containing commas stay in one column"""
    sample_journal_entry_data["merchant"] = "Smith, Jones & Co"
    entry = JournalEntry.model_validate(sample_journal_entry_data)

    rows = list(csv.reader(io.StringIO(journal_entry_to_csv(entry).decode("utf-8"))))

    assert rows[1][1] == "Smith, Jones & Co"
    assert len(rows[1]) == 8


def test_export_without_line_items(sample_journal_entry_data):
    """Test the line items block is omitted when empty"""
    sample_journal_entry_data["lineItems"] = []
    entry = JournalEntry.model_validate(sample_journal_entry_data)

    assert b"Line Items" not in journal_entry_to_csv(entry)


def test_export_filename(sample_journal_entry_data):
    """Test merchant names are made filename-safe"""
    sample_journal_entry_data["merchant"] = "Café / Bar #1"
    entry = JournalEntry.model_validate(sample_journal_entry_data)

    assert export_filename(entry) == "journal_entry_Caf_Bar_1.csv"

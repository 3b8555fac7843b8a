"""CSV export of a journal entry"""
import csv
import io
import re

from .models import JournalEntry


LEDGER_HEADER = ["Date", "Merchant", "Description", "Reference", "Account", "Account Description", "Type", "Amount"]
LINE_ITEM_HEADER = ["Description", "Quantity", "Unit Price", "Total", "Category", "VAT Rate"]


def _money(value: float) -> str:
    return f"{value:.2f}"


def journal_entry_to_csv(entry: JournalEntry) -> bytes:
    """Header fields joined with each ledger line, then a line items block"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    writer.writerow(LEDGER_HEADER)
    for line in entry.entries:
        writer.writerow([
            entry.date,
            entry.merchant,
            entry.description,
            entry.reference,
            line.account,
            line.description,
            line.type.value,
            _money(line.amount),
        ])

    if entry.lineItems:
        buffer.write("\n\nLine Items\n")
        writer.writerow(LINE_ITEM_HEADER)
        for item in entry.lineItems:
            writer.writerow([
                item.description,
                f"{item.quantity:g}",
                _money(item.unitPrice),
                _money(item.total),
                item.category,
                f"{item.vatRate * 100:.0f}%",
            ])

    return buffer.getvalue().encode("utf-8")


def export_filename(entry: JournalEntry) -> str:
    merchant = re.sub(r"[^A-Za-z0-9]+", "_", entry.merchant).strip("_") or "receipt"
    return f"journal_entry_{merchant}.csv"

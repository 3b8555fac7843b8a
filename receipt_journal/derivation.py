"""Journal entry derivation: LLM first, deterministic fallback second"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from .classifier import classify
from .config import EngineConfig
from .errors import JournalValidationError
from .fallback import build_fallback_entry
from .field_extractor import extract, serialize_ocr
from .generation import derive_via_model
from .models import Category, EntryType, JournalEntry
from .vat import compute_vat, is_plausible_amount, nearly_equal_money


logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = "fallback"


def validate_entry(entry: JournalEntry) -> List[str]:
    """Return the balance and required-field problems of an entry (empty if none)"""
    problems = []

    if not entry.date.strip():
        problems.append("date is missing")
    if not entry.merchant.strip():
        problems.append("merchant is missing")

    types = {line.type for line in entry.entries}
    if EntryType.DEBIT not in types:
        problems.append("no debit entries")
    if EntryType.CREDIT not in types:
        problems.append("no credit entries")

    vat = entry.vatBreakdown
    amounts = [line.amount for line in entry.entries] + [
        entry.totalDebit, entry.totalCredit, vat.netAmount, vat.vatAmount, vat.grossAmount,
    ]
    if not all(is_plausible_amount(amount) for amount in amounts):
        problems.append("amounts out of range")

    debit = entry.debit_total()
    credit = entry.credit_total()
    if not nearly_equal_money(debit, credit):
        problems.append(f"debits {debit:.2f} do not equal credits {credit:.2f}")
    if not nearly_equal_money(entry.totalDebit, entry.totalCredit):
        problems.append(f"totalDebit {entry.totalDebit:.2f} != totalCredit {entry.totalCredit:.2f}")
    if not nearly_equal_money(entry.totalDebit, debit):
        problems.append(f"totalDebit {entry.totalDebit:.2f} != sum of debits {debit:.2f}")
    if not nearly_equal_money(entry.totalCredit, credit):
        problems.append(f"totalCredit {entry.totalCredit:.2f} != sum of credits {credit:.2f}")

    if not nearly_equal_money(vat.netAmount + vat.vatAmount, vat.grossAmount):
        problems.append(
            f"VAT breakdown {vat.netAmount:.2f} + {vat.vatAmount:.2f} != {vat.grossAmount:.2f}"
        )

    return problems


def build_fallback_from_ocr(ocr: Any, config: EngineConfig, today: Optional[date] = None) -> JournalEntry:
    extracted = extract(ocr, config)
    ocr_text = serialize_ocr(ocr)
    category = classify(
        f"{extracted.merchant} {ocr_text}",
        rules=config.category_rules,
        default=Category(account=config.default_account, description=config.default_description),
    )
    vat = compute_vat(extracted.amount, ocr_text, config.vat_rate)
    return build_fallback_entry(extracted, category, vat, config, today=today)


async def derive_journal_entry(ocr: Any, config: EngineConfig) -> Dict[str, Any]:
    """
    Derive a journal entry for an OCR result.

    The LLM path is tried first. Any failure there, including an entry
    that does not balance, falls back to the deterministic builder. The
    returned entry has always passed validate_entry; JournalValidationError
    is raised otherwise.

    Returns:
        Dict with the entry and the provider that produced it
    """
    entry = None
    provider = FALLBACK_PROVIDER

    try:
        result = await derive_via_model(ocr, config)
    except Exception as e:
        logger.warning("LLM derivation failed, falling back: %s", e)
    else:
        problems = validate_entry(result["entry"])
        if problems:
            logger.warning("LLM entry from %s rejected: %s", result["provider"], "; ".join(problems))
        else:
            entry = result["entry"]
            provider = result["provider"]

    if entry is None:
        entry = build_fallback_from_ocr(ocr, config)
        problems = validate_entry(entry)
        if problems:
            logger.error("Fallback entry failed validation: %s", "; ".join(problems))
            raise JournalValidationError(problems)

    logger.info("Journal entry derived via %s", provider)
    return {"entry": entry, "provider": provider}


async def derive(ocr: Any, config: EngineConfig) -> JournalEntry:
    result = await derive_journal_entry(ocr, config)
    return result["entry"]

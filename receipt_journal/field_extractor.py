"""Amount, date and merchant extraction from loosely structured OCR results

OCR vendors do not agree on a schema, so every lookup here is defensive:
structured keys are tried first, then regex scans over the serialized
result, and finally a documented default. Nothing in this module raises.
"""
import json
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .config import EngineConfig
from .models import ExtractedFields
from .vat import is_plausible_amount


logger = logging.getLogger(__name__)

AMOUNT_KEYS = ("total", "totalAmount", "amount")
DATE_KEYS = ("date", "dateISO", "purchaseDate")
MERCHANT_KEYS = ("establishment", "merchantName", "vendor", "merchant")

UNKNOWN_MERCHANT = "Unknown Merchant"

AMOUNT_TOKEN = re.compile(r"\d[\d,]*(?:\.\d{1,2})?")
DATE_TOKEN = re.compile(
    r"(?<!\d)(\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}|\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})(?!\d)"
)

# Tried in order; the first match inside the length window wins.
MERCHANT_PATTERNS = (
    re.compile(r"[A-Z][A-Z \t&]+[A-Z]"),
    re.compile(r":\s*\"([A-Za-z][^\"]*)\""),
    re.compile(r"^([A-Z][A-Za-z \t]+)", re.MULTILINE),
)
MERCHANT_MIN_LEN = 4
MERCHANT_MAX_LEN = 49

# Day-first, matching the DD/MM/YYYY locale; month-first only as a rescue.
DATE_FORMATS = ("%d/%m/%Y", "%d/%m/%y", "%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d")


def serialize_ocr(ocr: Any) -> str:
    """Flatten an OCR result to text for substring and regex scans"""
    if isinstance(ocr, str):
        return ocr
    return json.dumps(ocr, default=str, ensure_ascii=False)


def _lookup(ocr: Any, keys: Iterable[str]) -> Iterable[Any]:
    if not isinstance(ocr, dict):
        return
    for key in keys:
        value = ocr.get(key)
        if value is not None:
            yield value


def _to_decimal(text: str) -> Optional[Decimal]:
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not is_plausible_amount(value):
        logger.debug("Ignoring implausible amount %s", text)
        return None
    return value


def _numeric_field(ocr: Any) -> Optional[Decimal]:
    for value in _lookup(ocr, AMOUNT_KEYS):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if value > 0:
            parsed = _to_decimal(str(value))
            if parsed is not None:
                return parsed
    return None


def _numeric_text_field(ocr: Any) -> Optional[Decimal]:
    for value in _lookup(ocr, AMOUNT_KEYS):
        if not isinstance(value, str):
            continue
        cleaned = re.sub(r"[^\d.]", "", value)
        if cleaned:
            parsed = _to_decimal(cleaned)
            if parsed is not None:
                return parsed
    return None


def scan_max_amount(text: str) -> Optional[Decimal]:
    """Largest decimal-looking token in text, usually the grand total"""
    amounts = []
    for token in AMOUNT_TOKEN.findall(text):
        parsed = _to_decimal(token.replace(",", ""))
        if parsed is not None:
            amounts.append(parsed)
    return max(amounts) if amounts else None


def extract_amount(ocr: Any) -> Optional[Decimal]:
    """Gross amount from known keys, then a max scan; None when nothing is numeric"""
    amount = _numeric_field(ocr)
    if amount is not None:
        logger.debug("Amount from numeric field: %s", amount)
        return amount

    amount = _numeric_text_field(ocr)
    if amount is not None:
        logger.debug("Amount parsed from text field: %s", amount)
        return amount

    amount = scan_max_amount(serialize_ocr(ocr))
    if amount is not None:
        logger.info("Amount from text search (max token): %s", amount)
    return amount


def parse_date(value: str) -> Optional[date]:
    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    candidate = re.split(r"[\sT]", text, maxsplit=1)[0]
    normalized = re.sub(r"[-.]", "/", candidate)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(normalized, fmt).date()
        except ValueError:
            continue
    return None


def extract_date(ocr: Any) -> Optional[date]:
    for value in _lookup(ocr, DATE_KEYS):
        if isinstance(value, str):
            parsed = parse_date(value)
            if parsed is not None:
                logger.debug("Date from field: %s", value)
                return parsed

    for token in DATE_TOKEN.findall(serialize_ocr(ocr)):
        parsed = parse_date(token)
        if parsed is not None:
            logger.info("Date from text search: %s", token)
            return parsed
    return None


def extract_merchant(ocr: Any) -> Optional[str]:
    for value in _lookup(ocr, MERCHANT_KEYS):
        if isinstance(value, str) and value.strip():
            return value.strip()

    text = serialize_ocr(ocr)
    for pattern in MERCHANT_PATTERNS:
        for match in pattern.finditer(text):
            raw = match.group(1) if pattern.groups else match.group(0)
            candidate = raw.strip().strip("'\"").strip()
            if MERCHANT_MIN_LEN <= len(candidate) <= MERCHANT_MAX_LEN:
                logger.info("Merchant from pattern matching: %s", candidate)
                return candidate
    return None


def extract(ocr: Any, config: EngineConfig) -> ExtractedFields:
    """Resolve amount, date and merchant, substituting defaults where needed"""
    defaults = []

    amount = extract_amount(ocr)
    if amount is None:
        logger.warning("No amount found in OCR result, using default %s", config.default_amount)
        amount = config.default_amount
        defaults.append("amount")

    receipt_date = extract_date(ocr)
    if receipt_date is None:
        logger.warning("No date found in OCR result")
        defaults.append("date")

    merchant = extract_merchant(ocr)
    if merchant is None:
        logger.warning("No merchant found in OCR result, using %r", UNKNOWN_MERCHANT)
        merchant = UNKNOWN_MERCHANT
        defaults.append("merchant")

    return ExtractedFields(
        amount=amount,
        date=receipt_date,
        merchant=merchant,
        defaults=defaults,
    )

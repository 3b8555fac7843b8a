"""VAT detection and net/VAT/gross splitting"""
import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .models import VatBreakdown


logger = logging.getLogger(__name__)

# -------------------- Money helpers --------------------
CENT = Decimal("0.01")

# Anything above this is a reference number or a misread, not a receipt total
MAX_AMOUNT = Decimal("999999999.99")

VAT_TOKENS = ("vat", "tax")


def is_plausible_amount(x) -> bool:
    value = Decimal(str(x))
    return value.is_finite() and abs(value) <= MAX_AMOUNT


def q_money(x) -> Decimal:
    value = Decimal(str(x))
    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {x}")
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def nearly_equal_money(a, b, tol: Decimal = CENT) -> bool:
    try:
        qa, qb = q_money(a), q_money(b)
    except ValueError:
        return False
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, qa.adjusted() + 3, qb.adjusted() + 3)
        return abs(qa - qb) <= tol


def rate_percent_token(rate: Decimal) -> str:
    """0.19 -> "19%", 0.055 -> "5.5%" """
    percent = (Decimal(str(rate)) * 100).normalize()
    return f"{percent:f}%"


def has_vat_indicator(ocr_text: str, standard_rate: Decimal) -> bool:
    text = (ocr_text or "").lower()
    tokens = VAT_TOKENS + (rate_percent_token(standard_rate),)
    return any(token in text for token in tokens)


def compute_vat(gross_amount, ocr_text: str, standard_rate: Decimal) -> VatBreakdown:
    """
    Split a gross amount into net and VAT.

    VAT is only assumed when the OCR text shows an explicit indicator;
    otherwise the whole amount is net and the rate is 0. Rounding happens
    once, here, and the VAT share is taken as gross - net after rounding so
    the three figures always add up.
    """
    gross = Decimal(str(gross_amount))
    if not gross.is_finite() or gross < 0:
        raise ValueError(f"Gross amount must be finite and not negative, got {gross}")
    rate = Decimal(str(standard_rate))

    if has_vat_indicator(ocr_text, rate) and rate > 0:
        net = gross / (1 + rate)
        applied_rate = rate
        logger.info("VAT indicator found, splitting %s at %s", gross, rate)
    else:
        net = gross
        applied_rate = Decimal("0")
        logger.info("No VAT indicator found, treating %s as net", gross)

    gross_out = q_money(gross)
    net_out = q_money(net)
    vat_out = gross_out - net_out

    return VatBreakdown(
        netAmount=float(net_out),
        vatAmount=float(vat_out),
        grossAmount=float(gross_out),
        vatRate=float(applied_rate),
    )

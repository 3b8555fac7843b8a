"""Keyword rules mapping merchant names and receipt text to expense accounts"""
import logging
from typing import Optional, Sequence

from .config import DEFAULT_CATEGORY_RULES, CategoryRule
from .models import Category


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = Category(
    account="General Expenses",
    description="Expense Transaction (OCR processed)",
)


def classify(
    text: str,
    rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES,
    default: Optional[Category] = None,
) -> Category:
    """
    Return the category of the first rule with a keyword in text.

    Rules are evaluated in the order given and never re-sorted, so a
    specific rule declared early beats a generic one declared later.
    """
    haystack = (text or "").lower()
    for rule in rules:
        for keyword in rule.keywords:
            if keyword.lower() in haystack:
                logger.debug("Matched %r -> %s", keyword, rule.account)
                return Category(account=rule.account, description=rule.description)
    return default or DEFAULT_CATEGORY

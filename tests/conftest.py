"""Pytest configuration and fixtures"""
import pytest

from receipt_journal.config import EngineConfig


@pytest.fixture
def engine_config():
    """Engine config with the LLM path disabled"""
    return EngineConfig(llm_providers=())


@pytest.fixture
def llm_config():
    """Engine config with both LLM providers and a short timeout"""
    return EngineConfig(
        llm_providers=("ollama", "gemini"),
        llm_timeout=2.0,
        gemini_api_key="test-key",
    )


@pytest.fixture
def plain_receipt_ocr():
    """OCR result without any VAT indicator"""
    return {"total": 25.50, "establishment": "Test Merchant"}


@pytest.fixture
def vat_receipt_ocr():
    """OCR result showing VAT 19%"""
    return {
        "establishment": "Corner Cafe",
        "total": 119.00,
        "date": "2024-03-15",
        "summaryItems": [{"desc": "VAT 19%", "lineTotal": 19.00}],
    }


@pytest.fixture
def sample_journal_entry_data():
    """A balanced journal entry as an LLM would return it"""
    return {
        "date": "15/03/2024",
        "description": "Corner Bistro - Business lunch",
        "reference": "R-1042",
        "merchant": "Corner Bistro",
        "entries": [
            {"type": "debit", "account": "Meals & Entertainment", "amount": 100.00, "description": "Lunch"},
            {"type": "debit", "account": "VAT Input Tax", "amount": 19.00, "description": "VAT 19%"},
            {"type": "credit", "account": "Cash/Bank Account", "amount": 119.00, "description": "Card"},
        ],
        "lineItems": [
            {
                "description": "Lunch menu",
                "quantity": 2,
                "unitPrice": 50.00,
                "total": 100.00,
                "vatRate": 0.19,
                "category": "Meals & Entertainment",
            }
        ],
        "vatBreakdown": {"netAmount": 100.00, "vatAmount": 19.00, "grossAmount": 119.00, "vatRate": 0.19},
        "totalDebit": 119.00,
        "totalCredit": 119.00,
    }

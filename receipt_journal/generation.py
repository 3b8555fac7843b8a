"""LLM journal entry generation with Ollama + Gemini providers"""
import asyncio
import json
import logging
import re
from typing import Any, Dict

import ollama
from google import genai
from pydantic import ValidationError

from .config import EngineConfig
from .errors import GenerationError
from .field_extractor import serialize_ocr
from .models import JournalEntry
from .vat import rate_percent_token


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are an expert accountant. You must respond with ONLY valid JSON, "
    "no additional text or formatting."
)


JOURNAL_PROMPT = """
Analyze this receipt/invoice OCR data and return ONLY a JSON object (no other text) for a double-entry journal entry.

OCR Data: {ocr_data}

ANALYSIS INSTRUCTIONS:
1. MERCHANT ANALYSIS: Identify the merchant/vendor name and choose specific expense accounts:
   - Restaurants/Cafes -> "Meals & Entertainment"
   - Gas Stations -> "Fuel & Transportation"
   - Office Supply Stores -> "Office Supplies"
   - Hotels -> "Travel & Accommodation"
   - Supermarkets -> "Office Refreshments" or "Staff Welfare"
   - Technology/Software -> "IT & Software"
   - Professional Services -> "Professional Fees"
   - Utilities -> "Utilities"
   - Default -> "General Expenses"

2. LINE ITEMS: List the individual items/services. Use separate debit entries when items belong to different expense accounts.

3. VAT HANDLING: Do NOT assume VAT exists.
   - ONLY include VAT if there is a separate VAT line, a tax column, or an explicit VAT amount on the receipt
   - If no VAT is shown, set vatAmount to 0.00 and vatRate to 0.00 and omit the VAT debit entry
   - Do NOT calculate or assume {vat_percent} VAT unless it is explicitly stated
   - When no VAT is present the total amount is the net amount

Requirements:
- Date format: DD/MM/YYYY
- Currency: {currency}
- Total debits MUST equal total credits, and both must equal the gross amount paid
- Credit the full gross amount to "Cash/Bank Account"
- "type" is either "debit" or "credit"; amounts are non-negative numbers

Return exactly this JSON structure with no additional text:
{{
  "date": "DD/MM/YYYY",
  "description": "Merchant name - Brief description",
  "reference": "Invoice/receipt number or N/A",
  "merchant": "Merchant/Vendor name",
  "entries": [
    {{"type": "debit", "account": "Specific Expense Account Name", "amount": 0.00, "description": "Item/service description"}},
    {{"type": "debit", "account": "VAT Input Tax", "amount": 0.00, "description": "VAT (only if explicitly shown)"}},
    {{"type": "credit", "account": "Cash/Bank Account", "amount": 0.00, "description": "Payment method"}}
  ],
  "lineItems": [
    {{"description": "Item/service name", "quantity": 1, "unitPrice": 0.00, "total": 0.00, "vatRate": 0.00, "category": "Expense category"}}
  ],
  "vatBreakdown": {{"netAmount": 0.00, "vatAmount": 0.00, "grossAmount": 0.00, "vatRate": 0.00}},
  "totalDebit": 0.00,
  "totalCredit": 0.00
}}
"""


FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def build_prompt(ocr: Any, config: EngineConfig) -> str:
    return JOURNAL_PROMPT.format(
        ocr_data=serialize_ocr(ocr),
        vat_percent=rate_percent_token(config.vat_rate),
        currency=config.currency,
    )


def _loads_object(text: str) -> Dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def parse_json_response(text: str) -> Dict[str, Any]:
    """Parse a JSON object from LLM output, recovering from markdown and prose"""
    if not text or not text.strip():
        raise GenerationError("Empty model response")

    try:
        return _loads_object(text)
    except ValueError:
        logger.debug("Direct JSON parse failed, stripping code fences")

    cleaned = FENCE_PATTERN.sub("", text)
    try:
        return _loads_object(cleaned)
    except ValueError:
        logger.debug("Parse after fence stripping failed, locating outermost braces")

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace == -1 or last_brace < first_brace:
        raise GenerationError("No JSON object found in model response")

    try:
        return _loads_object(cleaned[first_brace:last_brace + 1])
    except ValueError as e:
        raise GenerationError(f"Invalid JSON in model response: {e}")


def to_journal_entry(data: Dict[str, Any]) -> JournalEntry:
    try:
        return JournalEntry.model_validate(data)
    except ValidationError as e:
        raise GenerationError(f"Model response does not match the journal entry schema: {e}")


async def ollama_generate(prompt: str, config: EngineConfig) -> str:
    """Run the prompt against a local Ollama model"""
    client = ollama.Client(host=config.ollama_host, timeout=config.llm_timeout)
    response = await asyncio.to_thread(
        client.chat,
        model=config.ollama_model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        options={"temperature": 0.1},
    )
    return response["message"]["content"]


async def gemini_generate(prompt: str, config: EngineConfig) -> str:
    """Run the prompt against the Gemini API"""
    if not config.gemini_api_key:
        raise GenerationError("GEMINI_API_KEY not set", provider="gemini")

    client = genai.Client(
        api_key=config.gemini_api_key,
        http_options={"timeout": int(config.llm_timeout * 1000)},  # milliseconds
    )
    response = await asyncio.to_thread(
        client.models.generate_content,
        model=config.gemini_model,
        contents=[prompt],
        config={"system_instruction": SYSTEM_PROMPT, "temperature": 0.1},
    )

    text = response.text
    if not text:
        raise GenerationError("No response from Gemini", provider="gemini")
    return text


def _provider(name: str):
    providers = {
        "ollama": ollama_generate,
        "gemini": gemini_generate,
    }
    if name not in providers:
        raise GenerationError(f"Unknown provider: {name}", provider=name)
    return providers[name]


async def _generate_with(name: str, prompt: str, config: EngineConfig) -> JournalEntry:
    try:
        text = await asyncio.wait_for(_provider(name)(prompt, config), timeout=config.llm_timeout)
    except GenerationError:
        raise
    except asyncio.TimeoutError:
        raise GenerationError(f"{name} timed out after {config.llm_timeout}s", provider=name)
    except Exception as e:
        raise GenerationError(f"{name} request failed: {e}", provider=name)

    logger.debug("Raw %s response: %s", name, text)
    return to_journal_entry(parse_json_response(text))


async def derive_via_model(ocr: Any, config: EngineConfig) -> Dict[str, Any]:
    """
    Derive a journal entry with the configured LLM providers.

    Providers are tried in order. Returns the parsed entry and the name of
    the provider that produced it; raises GenerationError if none did.
    """
    if not config.llm_providers:
        raise GenerationError("No LLM provider configured")

    prompt = build_prompt(ocr, config)
    last_error = None
    for name in config.llm_providers:
        try:
            entry = await _generate_with(name, prompt, config)
        except GenerationError as e:
            logger.warning("LLM provider %s failed: %s", name, e)
            last_error = e
            continue
        return {"entry": entry, "provider": name}

    raise GenerationError(f"All LLM providers failed. Last error: {last_error}")

"""Process-wide engine configuration, loaded once from the environment"""
import os
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from .errors import ConfigError


KNOWN_PROVIDERS = ("ollama", "gemini")


class CategoryRule(BaseModel):
    keywords: Tuple[str, ...]
    account: str
    description: str

    class Config:
        frozen = True


# Order matters: the first matching rule wins.
DEFAULT_CATEGORY_RULES = (
    CategoryRule(
        keywords=("restaurant", "cafe", "food"),
        account="Meals & Entertainment",
        description="Restaurant/Food expense",
    ),
    CategoryRule(
        keywords=("gas", "fuel", "petrol"),
        account="Fuel & Transportation",
        description="Fuel expense",
    ),
    CategoryRule(
        keywords=("office", "supplies", "stationery"),
        account="Office Supplies",
        description="Office supplies",
    ),
    CategoryRule(
        keywords=("hotel", "accommodation"),
        account="Travel & Accommodation",
        description="Travel expense",
    ),
    CategoryRule(
        keywords=("software", "subscription", "tech"),
        account="IT & Software",
        description="Software/IT expense",
    ),
)


class EngineConfig(BaseModel):
    vat_rate: Decimal = Field(default=Decimal("0.19"), ge=0)
    default_amount: Decimal = Field(default=Decimal("10.00"), ge=0)
    date_format: str = "%d/%m/%Y"
    currency: str = "EUR"
    category_rules: Tuple[CategoryRule, ...] = DEFAULT_CATEGORY_RULES
    default_account: str = "General Expenses"
    default_description: str = "Expense Transaction (OCR processed)"
    llm_providers: Tuple[str, ...] = KNOWN_PROVIDERS
    llm_timeout: float = Field(default=30.0, gt=0)
    ollama_model: str = "qwen3"
    ollama_host: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_api_key: Optional[str] = None

    class Config:
        frozen = True


def _decimal_env(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def _providers_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    providers = tuple(p.strip().lower() for p in raw.split(",") if p.strip())
    unknown = [p for p in providers if p not in KNOWN_PROVIDERS]
    if unknown:
        raise ConfigError(f"Unknown LLM provider(s) in {name}: {', '.join(unknown)}")
    return providers


def load_config() -> EngineConfig:
    """Build the engine configuration from environment variables"""
    defaults = EngineConfig()

    timeout_raw = os.getenv("LLM_TIMEOUT_SECONDS")
    try:
        timeout = float(timeout_raw) if timeout_raw else defaults.llm_timeout
    except ValueError:
        raise ConfigError(f"LLM_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}")
    if timeout <= 0:
        raise ConfigError("LLM_TIMEOUT_SECONDS must be positive")

    return EngineConfig(
        vat_rate=_decimal_env("VAT_STANDARD_RATE", defaults.vat_rate),
        default_amount=_decimal_env("DEFAULT_AMOUNT", defaults.default_amount),
        date_format=os.getenv("DATE_FORMAT", defaults.date_format),
        currency=os.getenv("CURRENCY", defaults.currency),
        llm_providers=_providers_env("LLM_PROVIDERS", defaults.llm_providers),
        llm_timeout=timeout,
        ollama_model=os.getenv("OLLAMA_MODEL", defaults.ollama_model),
        ollama_host=os.getenv("OLLAMA_HOST") or None,
        gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
    )

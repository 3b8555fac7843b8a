"""Exception types raised by the derivation engine"""
from typing import List, Optional


class DerivationError(Exception):
    """Base class for journal entry derivation failures"""


class GenerationError(DerivationError):
    """The generative model produced no usable journal entry"""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class JournalValidationError(DerivationError):
    """A produced journal entry breaks the balance or required-field rules"""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class ConfigError(ValueError):
    """Invalid engine configuration"""

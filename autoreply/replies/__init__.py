"""Reply generation: prompts, provider credentials and completion calls."""

from .generator import GenerationResult, GenerationStatus, ReplyGenerator
from .prompts import ReplyPromptBuilder
from .providers import ProviderCredentials, ProviderRegistry

__all__ = [
    "GenerationResult",
    "GenerationStatus",
    "ProviderCredentials",
    "ProviderRegistry",
    "ReplyGenerator",
    "ReplyPromptBuilder",
]

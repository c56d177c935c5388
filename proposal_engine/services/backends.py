"""Backend selection from settings."""

from proposal_engine.core.config import Settings
from proposal_engine.core.errors import ConfigurationError
from proposal_engine.core.providers import LLMBackend
from proposal_engine.services.openai_service import OpenAIBackend
from proposal_engine.services.watsonx_service import WatsonxBackend


def build_backend(settings: Settings) -> LLMBackend:
    """Return the backend named by LLM_BACKEND."""
    backend = settings.LLM_BACKEND.strip().lower()
    if backend == "watsonx":
        return WatsonxBackend(settings)
    if backend == "openai":
        return OpenAIBackend(settings)
    raise ConfigurationError(f"Unknown LLM_BACKEND: {settings.LLM_BACKEND}")

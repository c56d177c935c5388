"""Provider interfaces the scoring core and request flows depend on.

Concrete implementations live in ``proposal_engine.services``; tests use
deterministic fakes.
"""

from dataclasses import asdict, dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class GenerationParameters:
    """Decoding parameters for a text generation request."""

    decoding_method: str = "greedy"
    max_new_tokens: int = 1000
    min_new_tokens: int = 100
    repetition_penalty: float = 1.2
    temperature: float | None = None
    stop_sequences: tuple[str, ...] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Snake_case JSON payload with unset optionals omitted."""
        return {
            k: list(v) if isinstance(v, tuple) else v
            for k, v in asdict(self).items()
            if v is not None
        }


class TokenProvider(Protocol):
    async def get_token(self, api_key: str) -> str: ...


class EmbeddingProvider(Protocol):
    async def embed(self, texts: list[str]) -> list[list[float]]: ...


class TextGenerationProvider(Protocol):
    async def generate(self, prompt: str, parameters: GenerationParameters) -> str: ...


@dataclass(frozen=True)
class ProviderSession:
    """Providers bound to one request's credentials."""

    embedder: EmbeddingProvider
    generator: TextGenerationProvider
    model_version: str


class LLMBackend(Protocol):
    """Opens a request-scoped session; credential exchange happens here."""

    name: str

    async def open_session(self) -> ProviderSession: ...

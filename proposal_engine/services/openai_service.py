"""OpenAI embeddings and chat generation backend.

The OpenAI API key is itself the bearer credential, so opening a session needs
no token exchange. The SDK client is synchronous and runs in a worker thread.
"""

import asyncio

import openai
from openai import OpenAI

from proposal_engine.core.config import Settings
from proposal_engine.core.errors import (
    ConfigurationError,
    EmbeddingProviderError,
    GenerationProviderError,
    ProviderError,
)
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import GenerationParameters, ProviderSession
from proposal_engine.core.retry import RetryPolicy, call_with_retry

logger = get_logger(__name__)


def _map_error(e: openai.APIError, error_cls: type[ProviderError], what: str) -> ProviderError:
    if isinstance(e, openai.APIStatusError):
        return error_cls(f"{what} failed", status=e.status_code, body=e.body)
    return error_cls(f"{what} request failed: {e}")


class OpenAIEmbeddingProvider:
    """Embeds texts with an OpenAI embedding model."""

    def __init__(self, client: OpenAI, model: str, retry: RetryPolicy | None = None):
        self.client = client
        self.model = model
        self.retry = retry or RetryPolicy()

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self.client.embeddings.create(model=self.model, input=texts)
        except openai.APIError as e:
            raise _map_error(e, EmbeddingProviderError, "Embedding") from e

        embeddings = [list(item.embedding) for item in response.data]
        if len(embeddings) != len(texts):
            raise EmbeddingProviderError(f"Expected {len(texts)} embeddings, got {len(embeddings)}")
        return embeddings

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate one embedding per text, in input order.

        Raises:
            EmbeddingProviderError: If the OpenAI call fails
        """
        if not texts:
            return []

        embeddings = await call_with_retry(
            lambda: asyncio.to_thread(self._embed_sync, texts), self.retry, "Embedding"
        )
        logger.info(
            f"Generated {len(embeddings)} embeddings using {self.model}",
            extra={"extra_data": {"model": self.model, "count": len(embeddings)}},
        )
        return embeddings


class OpenAIGenerationProvider:
    """Generates text with an OpenAI chat model."""

    def __init__(self, client: OpenAI, model: str, retry: RetryPolicy | None = None):
        self.client = client
        self.model = model
        self.retry = retry or RetryPolicy()

    def _generate_sync(self, prompt: str, parameters: GenerationParameters) -> str:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": parameters.max_new_tokens,
        }
        # Greedy decoding maps to temperature 0 unless one is given
        if parameters.temperature is not None:
            kwargs["temperature"] = parameters.temperature
        elif parameters.decoding_method == "greedy":
            kwargs["temperature"] = 0
        if parameters.stop_sequences:
            kwargs["stop"] = list(parameters.stop_sequences)

        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise _map_error(e, GenerationProviderError, "Text generation") from e

        return response.choices[0].message.content or ""

    async def generate(self, prompt: str, parameters: GenerationParameters) -> str:
        """
        Generate text for a prompt.

        Raises:
            GenerationProviderError: If the OpenAI call fails
        """
        return await call_with_retry(
            lambda: asyncio.to_thread(self._generate_sync, prompt, parameters),
            self.retry,
            "Text generation",
        )


class OpenAIBackend:
    """Opens request-scoped OpenAI sessions from settings."""

    name = "openai"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.retry = RetryPolicy(
            max_retries=settings.PROVIDER_MAX_RETRIES,
            initial_delay=settings.PROVIDER_RETRY_INITIAL_DELAY,
        )

    def _get_client(self) -> OpenAI:
        return OpenAI(
            api_key=self.settings.OPENAI_API_KEY,
            base_url=self.settings.OPENAI_BASE_URL,
            timeout=self.settings.PROVIDER_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def open_session(self) -> ProviderSession:
        """
        Bind providers to a fresh client.

        Raises:
            ConfigurationError: If OPENAI_API_KEY is missing
        """
        if not self.settings.OPENAI_API_KEY:
            raise ConfigurationError("Missing OPENAI_API_KEY")

        client = self._get_client()
        return ProviderSession(
            embedder=OpenAIEmbeddingProvider(client, self.settings.OPENAI_EMBEDDING_MODEL, self.retry),
            generator=OpenAIGenerationProvider(client, self.settings.OPENAI_GENERATION_MODEL, self.retry),
            model_version=self.settings.OPENAI_GENERATION_MODEL,
        )

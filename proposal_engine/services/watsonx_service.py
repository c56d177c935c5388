"""IBM watsonx.ai service for token exchange, embeddings and text generation.

Async httpx wrapper around the IAM token endpoint and the watsonx.ai REST API.
Every call has an explicit timeout; transport failures and non-2xx responses
are mapped to the typed provider errors, and transient ones are retried.
"""

from typing import Any

import httpx

from proposal_engine.core.config import Settings
from proposal_engine.core.errors import (
    AuthError,
    ConfigurationError,
    EmbeddingProviderError,
    GenerationProviderError,
    ProviderError,
)
from proposal_engine.core.logging import get_logger
from proposal_engine.core.providers import GenerationParameters, ProviderSession
from proposal_engine.core.retry import RetryPolicy, call_with_retry

logger = get_logger(__name__)

IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


async def _post(
    url: str,
    error_cls: type[ProviderError],
    what: str,
    timeout: float,
    **kwargs: Any,
) -> Any:
    """POST and return the decoded JSON body, raising ``error_cls`` on failure."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, **kwargs)
    except httpx.HTTPError as e:
        raise error_cls(f"{what} request failed: {e}") from e

    if response.status_code >= 400:
        body = _response_body(response)
        logger.error(f"{what} failed: status={response.status_code} body={body}")
        raise error_cls(f"{what} failed", status=response.status_code, body=body)

    try:
        return response.json()
    except ValueError as e:
        raise error_cls(f"{what} returned invalid JSON", status=response.status_code) from e


class IAMTokenProvider:
    """Exchanges an IBM Cloud API key for a bearer token."""

    def __init__(self, token_url: str, timeout: float = 10.0, retry: RetryPolicy | None = None):
        self.token_url = token_url
        self.timeout = timeout
        self.retry = retry or RetryPolicy()

    async def get_token(self, api_key: str) -> str:
        """
        Get an IAM access token.

        Args:
            api_key: IBM Cloud API key

        Returns:
            Bearer token

        Raises:
            AuthError: If the exchange fails
        """

        async def _exchange() -> str:
            data = await _post(
                self.token_url,
                AuthError,
                "IAM token exchange",
                self.timeout,
                data={"grant_type": IAM_GRANT_TYPE, "apikey": api_key},
                headers={"Accept": "application/json"},
            )
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise AuthError("IAM token exchange returned no access_token", body=data)
            return token

        return await call_with_retry(_exchange, self.retry, "IAM token exchange")


class WatsonxEmbeddingProvider:
    """Embeds texts with a watsonx.ai embedding model."""

    def __init__(
        self,
        token: str,
        project_id: str,
        base_url: str,
        model_id: str,
        version: str = "2023-10-25",
        timeout: float = 60.0,
        retry: RetryPolicy | None = None,
    ):
        self.token = token
        self.project_id = project_id
        self.url = f"{base_url.rstrip('/')}/ml/v1/text/embeddings?version={version}"
        self.model_id = model_id
        self.timeout = timeout
        self.retry = retry or RetryPolicy()

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate one embedding per text, in input order.

        Raises:
            EmbeddingProviderError: If the call fails or the response is malformed
        """
        if not texts:
            return []

        async def _call() -> list[list[float]]:
            data = await _post(
                self.url,
                EmbeddingProviderError,
                "Embedding",
                self.timeout,
                json={"inputs": texts, "model_id": self.model_id, "project_id": self.project_id},
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self.token}",
                },
            )
            try:
                vectors = [list(result["embedding"]) for result in data["results"]]
            except (KeyError, TypeError) as e:
                raise EmbeddingProviderError("Embedding response missing results", body=data) from e
            if len(vectors) != len(texts):
                raise EmbeddingProviderError(
                    f"Expected {len(texts)} embeddings, got {len(vectors)}", body=data
                )
            return vectors

        vectors = await call_with_retry(_call, self.retry, "Embedding")
        logger.info(
            f"Generated {len(vectors)} embeddings using {self.model_id}",
            extra={"extra_data": {"model": self.model_id, "count": len(vectors)}},
        )
        return vectors


class WatsonxGenerationProvider:
    """Generates text with a watsonx.ai foundation model."""

    def __init__(
        self,
        token: str,
        project_id: str,
        base_url: str,
        model_id: str,
        version: str = "2023-05-29",
        timeout: float = 60.0,
        retry: RetryPolicy | None = None,
    ):
        self.token = token
        self.project_id = project_id
        self.url = f"{base_url.rstrip('/')}/ml/v1/text/generation?version={version}"
        self.model_id = model_id
        self.timeout = timeout
        self.retry = retry or RetryPolicy()

    async def generate(self, prompt: str, parameters: GenerationParameters) -> str:
        """
        Generate text for a prompt.

        Raises:
            GenerationProviderError: If the call fails or the response is malformed
        """

        async def _call() -> str:
            data = await _post(
                self.url,
                GenerationProviderError,
                "Text generation",
                self.timeout,
                json={
                    "input": prompt,
                    "parameters": parameters.to_payload(),
                    "model_id": self.model_id,
                    "project_id": self.project_id,
                },
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self.token}",
                },
            )
            try:
                return data["results"][0]["generated_text"]
            except (KeyError, IndexError, TypeError) as e:
                raise GenerationProviderError("Generation response missing generated_text", body=data) from e

        text = await call_with_retry(_call, self.retry, "Text generation")
        logger.info(f"Generated {len(text)} chars using {self.model_id}")
        return text


class WatsonxBackend:
    """Opens request-scoped watsonx.ai sessions from settings."""

    name = "watsonx"

    def __init__(self, settings: Settings, token_provider: IAMTokenProvider | None = None):
        self.settings = settings
        self.retry = RetryPolicy(
            max_retries=settings.PROVIDER_MAX_RETRIES,
            initial_delay=settings.PROVIDER_RETRY_INITIAL_DELAY,
        )
        self.token_provider = token_provider or IAMTokenProvider(
            settings.IBM_IAM_TOKEN_URL,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            retry=self.retry,
        )

    async def open_session(self) -> ProviderSession:
        """
        Exchange the API key for a token and bind providers to it.

        Raises:
            ConfigurationError: If IBM_API_KEY or IBM_PROJECT_ID is missing
            AuthError: If the token exchange fails
        """
        settings = self.settings
        if not settings.IBM_API_KEY or not settings.IBM_PROJECT_ID:
            raise ConfigurationError("Missing IBM_API_KEY or IBM_PROJECT_ID")

        token = await self.token_provider.get_token(settings.IBM_API_KEY)

        return ProviderSession(
            embedder=WatsonxEmbeddingProvider(
                token,
                settings.IBM_PROJECT_ID,
                settings.WATSONX_URL,
                settings.EMBEDDING_MODEL,
                version=settings.WATSONX_EMBEDDINGS_VERSION,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                retry=self.retry,
            ),
            generator=WatsonxGenerationProvider(
                token,
                settings.IBM_PROJECT_ID,
                settings.WATSONX_URL,
                settings.GENERATION_MODEL,
                version=settings.WATSONX_GENERATION_VERSION,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                retry=self.retry,
            ),
            model_version=settings.MODEL_VERSION,
        )

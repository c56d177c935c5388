"""Typed errors raised by providers, flows and request validation."""

from typing import Any


class ProposalEngineError(Exception):
    """Base error carrying an optional upstream status and payload."""

    def __init__(self, message: str, status: int | None = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status {self.status})"


class ConfigurationError(ProposalEngineError):
    """Raised when required credentials or identifiers are missing."""


class MalformedInputError(ProposalEngineError):
    """Raised when a request body is missing required fields."""


class ProviderError(ProposalEngineError):
    """Raised when an upstream LLM provider call fails."""

    @property
    def is_transient(self) -> bool:
        """Network failures, rate limits and 5xx responses are worth retrying."""
        return self.status is None or self.status == 429 or self.status >= 500


class AuthError(ProviderError):
    """Raised when the API key to bearer token exchange fails."""


class EmbeddingProviderError(ProviderError):
    """Raised when the embeddings endpoint fails or returns a malformed result."""


class GenerationProviderError(ProviderError):
    """Raised when the text generation endpoint fails."""

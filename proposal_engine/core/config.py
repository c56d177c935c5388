"""Configuration management for the Proposal Engine."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass

DEFAULT_CORPUS_PATH = Path(__file__).resolve().parent.parent / "data" / "synthetic_proposals.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    PROPOSAL_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    PORT: int = Field(default=3001, description="HTTP port for the API server")
    CORS_ALLOW_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Backend selection
    LLM_BACKEND: str = Field(default="watsonx", description="LLM backend: watsonx or openai")

    # IBM watsonx.ai configuration (required for the watsonx backend)
    IBM_API_KEY: str | None = Field(default=None, description="IBM Cloud API key")
    IBM_PROJECT_ID: str | None = Field(default=None, description="watsonx.ai project identifier")
    IBM_IAM_TOKEN_URL: str = Field(
        default="https://iam.cloud.ibm.com/identity/token", description="IAM token exchange endpoint"
    )
    WATSONX_URL: str = Field(
        default="https://us-south.ml.cloud.ibm.com", description="watsonx.ai regional base URL"
    )
    WATSONX_EMBEDDINGS_VERSION: str = Field(default="2023-10-25", description="Embeddings API version")
    WATSONX_GENERATION_VERSION: str = Field(default="2023-05-29", description="Generation API version")
    EMBEDDING_MODEL: str = Field(
        default="ibm/granite-embedding-278m-multilingual", description="watsonx embedding model"
    )
    GENERATION_MODEL: str = Field(
        default="ibm/granite-3-8b-instruct", description="watsonx text generation model"
    )
    MODEL_VERSION: str = Field(
        default="granite-3-8b-instruct", description="Model label reported in analysis metadata"
    )

    # OpenAI configuration (required for the openai backend)
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    OPENAI_BASE_URL: str | None = Field(default=None, description="Optional OpenAI-compatible base URL")
    OPENAI_EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    OPENAI_GENERATION_MODEL: str = Field(default="gpt-4o-mini", description="OpenAI chat model")

    # Historical corpus
    HISTORICAL_CORPUS_PATH: Path = Field(
        default=DEFAULT_CORPUS_PATH, description="JSON file with labelled historical proposals"
    )

    # Scoring configuration
    OUTCOME_TOP_K: int = Field(default=3, ge=0, description="Nearest neighbours used for outcome voting")
    OUTCOME_SMOOTHING: float = Field(default=1.0, ge=0, description="Laplace pseudo-count per outcome")
    OUTCOME_THRESHOLD: float = Field(
        default=0.5, ge=0, le=1, description="Win probability decision threshold"
    )
    PRACTICES_TOP_K: int = Field(default=5, ge=0, description="Best practices injected into critiques")

    # Provider call policy
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=60.0, description="Timeout per provider request")
    PROVIDER_MAX_RETRIES: int = Field(default=2, description="Retries on transient provider errors")
    PROVIDER_RETRY_INITIAL_DELAY: float = Field(
        default=1.0, description="Initial backoff delay in seconds"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If environment variables have invalid values
    """
    return Settings()

"""Tests for the watsonx.ai service with mocked httpx."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from proposal_engine.core.config import Settings
from proposal_engine.core.errors import (
    AuthError,
    ConfigurationError,
    EmbeddingProviderError,
    GenerationProviderError,
)
from proposal_engine.core.providers import GenerationParameters
from proposal_engine.core.retry import NO_RETRY, RetryPolicy
from proposal_engine.services.watsonx_service import (
    IAM_GRANT_TYPE,
    IAMTokenProvider,
    WatsonxBackend,
    WatsonxEmbeddingProvider,
    WatsonxGenerationProvider,
)


def _response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    response.text = text
    return response


def _mock_client(MockClient, **responses) -> AsyncMock:
    client_instance = AsyncMock()
    for name, value in responses.items():
        setattr(client_instance, name, value)
    MockClient.return_value.__aenter__ = AsyncMock(return_value=client_instance)
    MockClient.return_value.__aexit__ = AsyncMock(return_value=None)
    return client_instance


def _settings(**overrides) -> Settings:
    values = {
        "IBM_API_KEY": "key-123",
        "IBM_PROJECT_ID": "proj-1",
        "PROVIDER_MAX_RETRIES": 0,
        "PROVIDER_TIMEOUT_SECONDS": 5.0,
    }
    values.update(overrides)
    return Settings(**values)


class TestIAMTokenProvider:
    @pytest.mark.asyncio
    async def test_exchanges_api_key(self):
        with patch("httpx.AsyncClient") as MockClient:
            client = _mock_client(MockClient, post=AsyncMock(return_value=_response(payload={"access_token": "tok"})))

            token = await IAMTokenProvider("https://iam.example/token", retry=NO_RETRY).get_token("key-123")

        assert token == "tok"
        call = client.post.call_args
        assert call.args[0] == "https://iam.example/token"
        assert call.kwargs["data"] == {"grant_type": IAM_GRANT_TYPE, "apikey": "key-123"}

    @pytest.mark.asyncio
    async def test_non_2xx_raises_auth_error(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(return_value=_response(400, payload={"errorCode": "BXNIM0415E"})))

            with pytest.raises(AuthError) as exc_info:
                await IAMTokenProvider("https://iam.example/token", retry=NO_RETRY).get_token("bad")

        assert exc_info.value.status == 400
        assert exc_info.value.body == {"errorCode": "BXNIM0415E"}

    @pytest.mark.asyncio
    async def test_missing_access_token(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(return_value=_response(payload={})))

            with pytest.raises(AuthError, match="no access_token"):
                await IAMTokenProvider("https://iam.example/token", retry=NO_RETRY).get_token("key")


class TestWatsonxEmbeddingProvider:
    def _provider(self, **kwargs) -> WatsonxEmbeddingProvider:
        return WatsonxEmbeddingProvider(
            "tok", "proj-1", "https://wx.example/", "ibm/embed", retry=kwargs.pop("retry", NO_RETRY), **kwargs
        )

    @pytest.mark.asyncio
    async def test_embeds_in_order(self):
        payload = {"results": [{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}]}
        with patch("httpx.AsyncClient") as MockClient:
            client = _mock_client(MockClient, post=AsyncMock(return_value=_response(payload=payload)))

            vectors = await self._provider().embed(["a", "b"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        call = client.post.call_args
        assert call.args[0] == "https://wx.example/ml/v1/text/embeddings?version=2023-10-25"
        assert call.kwargs["json"] == {"inputs": ["a", "b"], "model_id": "ibm/embed", "project_id": "proj-1"}
        assert call.kwargs["headers"]["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self):
        with patch("httpx.AsyncClient") as MockClient:
            assert await self._provider().embed([]) == []
            MockClient.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_body(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(return_value=_response(401, text="expired token")))

            with pytest.raises(EmbeddingProviderError) as exc_info:
                await self._provider().embed(["a"])

        assert exc_info.value.status == 401
        assert exc_info.value.body == "expired token"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_provider_error(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(side_effect=httpx.ReadTimeout("timed out")))

            with pytest.raises(EmbeddingProviderError) as exc_info:
                await self._provider().embed(["a"])

        assert exc_info.value.status is None
        assert exc_info.value.is_transient

    @pytest.mark.asyncio
    async def test_count_mismatch(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(return_value=_response(payload={"results": [{"embedding": [1.0]}]})))

            with pytest.raises(EmbeddingProviderError, match="Expected 2 embeddings"):
                await self._provider().embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        ok = _response(payload={"results": [{"embedding": [1.0]}]})
        with patch("httpx.AsyncClient") as MockClient, patch(
            "proposal_engine.core.retry.asyncio.sleep", new=AsyncMock()
        ):
            client = _mock_client(MockClient, post=AsyncMock(side_effect=[_response(503, text="busy"), ok]))

            vectors = await self._provider(retry=RetryPolicy(max_retries=1, initial_delay=0.1)).embed(["a"])

        assert vectors == [[1.0]]
        assert client.post.await_count == 2


class TestWatsonxGenerationProvider:
    @pytest.mark.asyncio
    async def test_generates_text(self):
        payload = {"results": [{"generated_text": "## Summary\nHello"}]}
        provider = WatsonxGenerationProvider("tok", "proj-1", "https://wx.example", "ibm/granite", retry=NO_RETRY)
        params = GenerationParameters(max_new_tokens=50, min_new_tokens=5, temperature=0.7)

        with patch("httpx.AsyncClient") as MockClient:
            client = _mock_client(MockClient, post=AsyncMock(return_value=_response(payload=payload)))

            text = await provider.generate("Write", params)

        assert text == "## Summary\nHello"
        body = client.post.call_args.kwargs["json"]
        assert body["input"] == "Write"
        assert body["model_id"] == "ibm/granite"
        assert body["parameters"] == {
            "decoding_method": "greedy",
            "max_new_tokens": 50,
            "min_new_tokens": 5,
            "repetition_penalty": 1.2,
            "temperature": 0.7,
        }
        assert client.post.call_args.args[0] == "https://wx.example/ml/v1/text/generation?version=2023-05-29"

    @pytest.mark.asyncio
    async def test_stop_sequences_sent_as_list(self):
        payload = {"results": [{"generated_text": "done"}]}
        provider = WatsonxGenerationProvider("tok", "proj-1", "https://wx.example", "ibm/granite", retry=NO_RETRY)

        with patch("httpx.AsyncClient") as MockClient:
            client = _mock_client(MockClient, post=AsyncMock(return_value=_response(payload=payload)))

            await provider.generate("Write", GenerationParameters(stop_sequences=("END", "##")))

        assert client.post.call_args.kwargs["json"]["parameters"]["stop_sequences"] == ["END", "##"]

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        provider = WatsonxGenerationProvider("tok", "proj-1", "https://wx.example", "ibm/granite", retry=NO_RETRY)

        with patch("httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, post=AsyncMock(return_value=_response(payload={"results": []})))

            with pytest.raises(GenerationProviderError, match="generated_text"):
                await provider.generate("Write", GenerationParameters())


class TestWatsonxBackend:
    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        backend = WatsonxBackend(_settings(IBM_API_KEY=None))

        with pytest.raises(ConfigurationError, match="IBM_API_KEY"):
            await backend.open_session()

    @pytest.mark.asyncio
    async def test_session_binds_token_and_settings(self):
        token_provider = MagicMock()
        token_provider.get_token = AsyncMock(return_value="tok-9")
        backend = WatsonxBackend(_settings(EMBEDDING_MODEL="ibm/e", GENERATION_MODEL="ibm/g"), token_provider)

        session = await backend.open_session()

        token_provider.get_token.assert_awaited_once_with("key-123")
        assert session.embedder.token == "tok-9"
        assert session.embedder.model_id == "ibm/e"
        assert session.generator.model_id == "ibm/g"
        assert session.generator.project_id == "proj-1"
        assert session.model_version == "granite-3-8b-instruct"

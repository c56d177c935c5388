"""Tests for provider retry with exponential backoff."""

from unittest.mock import AsyncMock, patch

import pytest

from proposal_engine.core.errors import AuthError, EmbeddingProviderError, GenerationProviderError
from proposal_engine.core.retry import RetryPolicy, call_with_retry, is_transient


def test_transient_classification():
    assert is_transient(EmbeddingProviderError("timeout"))
    assert is_transient(GenerationProviderError("busy", status=503))
    assert is_transient(EmbeddingProviderError("slow down", status=429))
    assert not is_transient(AuthError("bad key", status=400))
    assert not is_transient(ValueError("bug"))


def test_delay_doubles():
    policy = RetryPolicy(max_retries=3, initial_delay=0.5)
    assert [policy.delay_for(i) for i in range(3)] == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_retries_transient_then_succeeds():
    fn = AsyncMock(side_effect=[GenerationProviderError("busy", status=503), "ok"])

    with patch("proposal_engine.core.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
        result = await call_with_retry(fn, RetryPolicy(max_retries=2, initial_delay=1.0), "test")

    assert result == "ok"
    assert fn.await_count == 2
    mock_sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    error = EmbeddingProviderError("down", status=502)
    fn = AsyncMock(side_effect=error)

    with patch("proposal_engine.core.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
        with pytest.raises(EmbeddingProviderError) as exc_info:
            await call_with_retry(fn, RetryPolicy(max_retries=2, initial_delay=1.0), "test")

    assert exc_info.value is error
    assert fn.await_count == 3
    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_non_transient_not_retried():
    fn = AsyncMock(side_effect=AuthError("bad key", status=401))

    with patch("proposal_engine.core.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
        with pytest.raises(AuthError):
            await call_with_retry(fn, RetryPolicy(max_retries=5), "test")

    assert fn.await_count == 1
    mock_sleep.assert_not_awaited()

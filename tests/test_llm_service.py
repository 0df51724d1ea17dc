from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from forge.core.errors import UpstreamError
from forge.services.llm_service import LLMService


def fake_client(content="{}"):
    completion = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion)
    return client


async def call(service, **overrides):
    kwargs = dict(
        system_prompt="system",
        user_message="user",
        response_format={"type": "json_object"},
        temperature=0.2,
        purpose="test",
    )
    kwargs.update(overrides)
    return await service.complete(**kwargs)


@pytest.mark.asyncio
async def test_no_token_cap_unless_requested():
    service = LLMService()
    service._client = fake_client('{"ok": true}')

    content = await call(service)

    assert content == '{"ok": true}'
    assert "max_tokens" not in service._client.chat.completions.create.call_args.kwargs


@pytest.mark.asyncio
async def test_token_cap_is_forwarded():
    service = LLMService()
    service._client = fake_client()

    await call(service, max_tokens=256)

    assert service._client.chat.completions.create.call_args.kwargs["max_tokens"] == 256


@pytest.mark.asyncio
async def test_missing_content_becomes_empty_string():
    service = LLMService()
    service._client = fake_client(content=None)

    assert await call(service) == ""


@pytest.mark.asyncio
async def test_provider_error_is_upstream_error():
    service = LLMService()
    service._client = fake_client()
    service._client.chat.completions.create.side_effect = openai.OpenAIError("rate limited")

    with pytest.raises(UpstreamError) as excinfo:
        await call(service)

    assert excinfo.value.message == "AI service error: rate limited"


@pytest.mark.asyncio
async def test_unconfigured_client():
    service = LLMService()
    service._client = None

    with pytest.raises(UpstreamError):
        await call(service)

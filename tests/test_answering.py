from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError

from docwatch.config import SysParams
from docwatch.core.schema import ContextPayload, ConversationTurn
from docwatch.exceptions import ProviderError
from docwatch.rag.answering import OpenAIAnsweringService, load_prompts

PROMPTS = {
    "answer_generation": {
        "system_prompt": "Reply in JSON.",
        "context_template": "Excerpts:\n{context}",
    }
}


def _client(text: str = '{"summary": "ok"}') -> MagicMock:
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=SimpleNamespace(output_text=text))
    return client


def _payload() -> ContextPayload:
    return ContextPayload(
        history=[ConversationTurn(role="user", content="hi"), ConversationTurn(role="assistant", content="hello")],
        context_block="[Source: A]\ntext",
    )


def test_packaged_prompts_load():
    prompts = load_prompts()
    assert "{context}" in prompts["answer_generation"]["context_template"]
    assert prompts["answer_generation"]["system_prompt"].strip()


@pytest.mark.asyncio
async def test_answer_sends_context_history_and_file_search():
    client = _client()
    params = SysParams(model_name="gpt-test", temperature=0.1, num_top_files=7)
    service = OpenAIAnsweringService(params=params, prompts=PROMPTS, client=client)

    text = await service.answer(_payload(), index_id="vs_1")

    assert text == '{"summary": "ok"}'
    kwargs = client.responses.create.await_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["instructions"] == "Reply in JSON."
    assert kwargs["input"] == [
        {"role": "system", "content": "Excerpts:\n[Source: A]\ntext"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]
    assert kwargs["tools"] == [{"type": "file_search", "vector_store_ids": ["vs_1"], "max_num_results": 7}]


@pytest.mark.asyncio
async def test_answer_without_index_has_no_tools():
    client = _client()
    service = OpenAIAnsweringService(params=SysParams(), prompts=PROMPTS, client=client)

    await service.answer(_payload())

    assert "tools" not in client.responses.create.await_args.kwargs


@pytest.mark.asyncio
async def test_api_failure_becomes_provider_error():
    client = MagicMock()
    client.responses.create = AsyncMock(
        side_effect=APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))
    )
    service = OpenAIAnsweringService(params=SysParams(), prompts=PROMPTS, client=client)

    with pytest.raises(ProviderError):
        await service.answer(_payload())

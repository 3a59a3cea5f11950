from __future__ import annotations

import logging
from typing import Optional, Protocol

import yaml
from langfuse.openai import openai

from docwatch import config
from docwatch.core.schema import ContextPayload
from docwatch.exceptions import ProviderError

LOGGER = logging.getLogger(__name__)


def load_prompts(path=config.PROMPT_PATH):
    """Loads prompts from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class AnsweringService(Protocol):
    async def answer(self, payload: ContextPayload, index_id: Optional[str] = None) -> str: ...


class OpenAIAnsweringService:
    """
    Sends assembled context plus history to the Responses API and returns the raw
    reply text. When an index id is given, the model can also search that vector
    store through the file_search tool.
    """

    def __init__(
        self,
        params: config.SysParams | None = None,
        prompts: dict | None = None,
        client=None,
    ):
        self.params = params or config.SysParams.from_env()
        self.prompts = prompts or load_prompts()
        self.async_client = client or openai.AsyncClient(
            api_key=config.OPENAI_API_KEY, timeout=self.params.provider_timeout
        )

    def build_input(self, payload: ContextPayload) -> list[dict]:
        template = self.prompts["answer_generation"]["context_template"]
        messages = [{"role": "system", "content": template.format(context=payload.context_block)}]
        messages.extend(turn.to_message() for turn in payload.history)
        return messages

    async def answer(self, payload: ContextPayload, index_id: Optional[str] = None) -> str:
        request = {
            "model": self.params.model_name,
            "instructions": self.prompts["answer_generation"]["system_prompt"],
            "input": self.build_input(payload),
            "temperature": self.params.temperature,
        }
        if index_id:
            request["tools"] = [{
                "type": "file_search",
                "vector_store_ids": [index_id],
                "max_num_results": self.params.num_top_files,
            }]

        try:
            response = await self.async_client.responses.create(**request)
        except openai.OpenAIError as err:
            raise ProviderError(f"Answering request failed: {err}") from err

        LOGGER.debug("Answering service replied with %d characters", len(response.output_text or ""))
        return response.output_text or ""

from typing import Protocol

from langfuse.openai import openai
import backoff

from docwatch import config
from docwatch.exceptions import ProviderError


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """One vector per text, same order."""
        ...


class OpenAIEmbedding:
    """
    Thin wrapper around the OpenAI v1 client (`pip install openai>=1.0`).

    Usage:
        embedder = OpenAIEmbedding(model="text-embedding-3-small")
        vectors  = embedder.embed(["hello", "world"])
    """
    def __init__(
        self,
        model: str = config.EMBED_MODEL,
        timeout: float = config.PROVIDER_TIMEOUT_SECONDS,
        client=None,
    ):
        self.model  = model
        self.client = client or openai.OpenAI(api_key=config.OPENAI_API_KEY, timeout=timeout)

    # back-off on rate limiting only; other failures surface immediately
    @backoff.on_exception(backoff.expo,
                          openai.RateLimitError,
                          max_tries=config.EMBED_MAX_TRIES)
    def _create(self, texts: list[str]):
        return self.client.embeddings.create(
            model=self.model,
            input=texts,
        )

    def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Returns one embedding vector per text, in the same order.
        """
        if not texts:
            return []
        try:
            resp = self._create(texts)
        except openai.OpenAIError as err:
            raise ProviderError(f"Embedding request failed: {err}") from err

        # v1 returns resp.data[i].embedding, not necessarily sorted by index
        data = sorted(resp.data, key=lambda d: d.index)
        if len(data) != len(texts):
            raise ProviderError(
                f"Embedding provider returned {len(data)} vectors for {len(texts)} texts"
            )
        return [list(d.embedding) for d in data]

from __future__ import annotations

import logging
from typing import List, Protocol

from langfuse.openai import openai

from docwatch import config
from docwatch.exceptions import RemoteIndexError

LOGGER = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class RemoteIndexService(Protocol):
    def list_members(self, index_id: str) -> List[str]: ...

    def add_member(self, index_id: str, doc_id: str) -> None:
        """Block until the document is ready in the index."""
        ...

    def remove_member(self, index_id: str, doc_id: str) -> None: ...


class ManagedIndexService(RemoteIndexService, Protocol):
    """A remote index that can also be created and fed raw files."""

    def create_index(self, name: str) -> str: ...

    def upload_file(self, file_name: str, data: bytes) -> str: ...


class OpenAIVectorStoreIndex:
    """
    Manages OpenAI vector store operations: creating stores, uploading files and
    attaching/detaching them. All direct calls to the vector store API live here.
    """

    def __init__(self, client=None, timeout: float = config.PROVIDER_TIMEOUT_SECONDS):
        self.client = client or openai.OpenAI(api_key=config.OPENAI_API_KEY, timeout=timeout)

    # ------------------------------------------------------------------
    # Index lifecycle
    # ------------------------------------------------------------------

    def create_index(self, name: str) -> str:
        try:
            store = self.client.vector_stores.create(name=name)
        except openai.OpenAIError as err:
            raise RemoteIndexError(f"Could not create vector store '{name}': {err}") from err
        LOGGER.info("Created vector store %s for '%s'", store.id, name)
        return store.id

    def upload_file(self, file_name: str, data: bytes) -> str:
        """Upload raw bytes to the files API and return the new file id."""
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValueError(f"{file_name} exceeds the 20MB upload limit.")
        try:
            uploaded = self.client.files.create(file=(file_name, data), purpose="assistants")
        except openai.OpenAIError as err:
            raise RemoteIndexError(f"Could not upload '{file_name}': {err}") from err
        LOGGER.info("Uploaded %s as %s", file_name, uploaded.id)
        return uploaded.id

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def list_members(self, index_id: str) -> List[str]:
        # the cursor page auto-paginates on iteration
        return [f.id for f in self.client.vector_stores.files.list(vector_store_id=index_id)]

    def add_member(self, index_id: str, doc_id: str) -> None:
        result = self.client.vector_stores.files.create_and_poll(
            vector_store_id=index_id,
            file_id=doc_id,
        )
        if result.status != "completed":
            detail = getattr(result.last_error, "message", None) or result.status
            raise RemoteIndexError(f"File {doc_id} did not become ready: {detail}")

    def remove_member(self, index_id: str, doc_id: str) -> None:
        self.client.vector_stores.files.delete(doc_id, vector_store_id=index_id)

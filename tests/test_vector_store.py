from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from docwatch.exceptions import RemoteIndexError
from docwatch.rag.vector_store import MAX_UPLOAD_BYTES, OpenAIVectorStoreIndex


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


def test_list_members_iterates_all_pages(client):
    client.vector_stores.files.list.return_value = iter([SimpleNamespace(id="f1"), SimpleNamespace(id="f2")])

    assert OpenAIVectorStoreIndex(client=client).list_members("vs_1") == ["f1", "f2"]
    client.vector_stores.files.list.assert_called_once_with(vector_store_id="vs_1")


def test_add_member_waits_for_completion(client):
    client.vector_stores.files.create_and_poll.return_value = SimpleNamespace(status="completed", last_error=None)

    OpenAIVectorStoreIndex(client=client).add_member("vs_1", "f1")

    client.vector_stores.files.create_and_poll.assert_called_once_with(vector_store_id="vs_1", file_id="f1")


def test_add_member_failed_status_raises(client):
    client.vector_stores.files.create_and_poll.return_value = SimpleNamespace(
        status="failed", last_error=SimpleNamespace(message="unsupported file")
    )

    with pytest.raises(RemoteIndexError, match="unsupported file"):
        OpenAIVectorStoreIndex(client=client).add_member("vs_1", "f1")


def test_remove_member(client):
    OpenAIVectorStoreIndex(client=client).remove_member("vs_1", "f1")
    client.vector_stores.files.delete.assert_called_once_with("f1", vector_store_id="vs_1")


def test_create_index_and_upload(client):
    client.vector_stores.create.return_value = SimpleNamespace(id="vs_new")
    client.files.create.return_value = SimpleNamespace(id="file_9")
    index = OpenAIVectorStoreIndex(client=client)

    assert index.create_index("Acme") == "vs_new"
    assert index.upload_file("report.pdf", b"%PDF") == "file_9"
    client.files.create.assert_called_once_with(file=("report.pdf", b"%PDF"), purpose="assistants")


def test_upload_rejects_oversized_files(client):
    with pytest.raises(ValueError):
        OpenAIVectorStoreIndex(client=client).upload_file("big.pdf", b"0" * (MAX_UPLOAD_BYTES + 1))
    client.files.create.assert_not_called()

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import FakeRemoteIndex
from docwatch.exceptions import RemoteIndexError
from docwatch.rag.index_sync import RemoteIndexSync


def test_reconcile_adds_missing_and_removes_extra():
    remote = FakeRemoteIndex(members=["B", "C"])

    result = RemoteIndexSync(remote).reconcile("vs_1", {"A", "B"})

    assert result.added == ["A"]
    assert result.removed == ["C"]
    assert sorted(remote.members) == ["A", "B"]


def test_reconcile_twice_is_a_no_op_the_second_time():
    remote = FakeRemoteIndex(members=["B", "C"])
    sync = RemoteIndexSync(remote)

    sync.reconcile("vs_1", {"A", "B"})
    second = sync.reconcile("vs_1", {"A", "B"})

    assert second.added == [] and second.removed == []
    assert remote.added == ["A"]
    assert remote.removed == ["C"]


def test_empty_desired_set_clears_index():
    remote = FakeRemoteIndex(members=["A", "B"])

    result = RemoteIndexSync(remote).reconcile("vs_1", set())

    assert result.removed == ["A", "B"]
    assert remote.members == []


def test_additions_happen_before_removals():
    calls = []
    service = MagicMock()
    service.list_members.return_value = ["old"]
    service.add_member.side_effect = lambda index_id, doc_id: calls.append(("add", doc_id))
    service.remove_member.side_effect = lambda index_id, doc_id: calls.append(("remove", doc_id))

    RemoteIndexSync(service).reconcile("vs_1", {"new1", "new2"})

    assert calls == [("add", "new1"), ("add", "new2"), ("remove", "old")]


def test_partial_failure_is_reported_not_swallowed():
    remote = FakeRemoteIndex(members=["C", "D"], failing={"A", "D"})

    with pytest.raises(RemoteIndexError) as excinfo:
        RemoteIndexSync(remote).reconcile("vs_1", {"A", "B"})

    err = excinfo.value
    assert err.added == ["B"]
    assert err.removed == ["C"]
    assert set(err.failed) == {"A", "D"}
    assert err.partial


def test_listing_failure_aborts_before_any_mutation():
    service = MagicMock()
    service.list_members.side_effect = ConnectionError("boom")

    with pytest.raises(RemoteIndexError) as excinfo:
        RemoteIndexSync(service).reconcile("vs_1", {"A"})

    assert not excinfo.value.partial
    service.add_member.assert_not_called()

"""Reconcile a remote index's membership with a desired document set.

The remote member list is fetched fresh on every call and treated as ground
truth. Additions run first, one at a time, each returning only once the remote
side reports the document ready; removals follow. Individual failures do not
stop the pass: they are collected and raised together at the end as a
``RemoteIndexError`` that also lists what was applied.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, List

from docwatch.core.schema import ReconcileResult
from docwatch.exceptions import RemoteIndexError
from docwatch.rag.vector_store import RemoteIndexService

LOGGER = logging.getLogger(__name__)


class RemoteIndexSync:
    def __init__(self, service: RemoteIndexService):
        self.service = service

    def reconcile(self, index_id: str, desired_ids: AbstractSet[str]) -> ReconcileResult:
        try:
            current = list(self.service.list_members(index_id))
        except Exception as err:
            raise RemoteIndexError(f"Could not list members of index {index_id}: {err}") from err

        current_set = set(current)
        desired = set(desired_ids)
        to_add = sorted(desired - current_set)
        to_remove = [doc_id for doc_id in current if doc_id not in desired]

        added: List[str] = []
        removed: List[str] = []
        failed: Dict[str, str] = {}

        for doc_id in to_add:
            try:
                self.service.add_member(index_id, doc_id)
            except Exception as err:
                LOGGER.error("Failed to add %s to index %s: %s", doc_id, index_id, err)
                failed[doc_id] = str(err)
            else:
                added.append(doc_id)
        LOGGER.info("Added %d new files to index %s", len(added), index_id)

        for doc_id in to_remove:
            try:
                self.service.remove_member(index_id, doc_id)
            except Exception as err:
                LOGGER.error("Failed to remove %s from index %s: %s", doc_id, index_id, err)
                failed[doc_id] = str(err)
            else:
                removed.append(doc_id)
                LOGGER.info("Removed file %s from index %s", doc_id, index_id)
        LOGGER.info("Removed %d files from index %s", len(removed), index_id)

        if failed:
            raise RemoteIndexError(
                f"Reconciliation of index {index_id} failed for {len(failed)} of "
                f"{len(to_add) + len(to_remove)} documents",
                added=added,
                removed=removed,
                failed=failed,
            )
        return ReconcileResult(added=added, removed=removed)

import asyncio
import logging
import re
from typing import Any, Mapping, Optional, Sequence, Union

from docwatch import config
from docwatch.rag.answering import AnsweringService
from docwatch.rag.context import ConversationContextBuilder, extract_summary, parse_reply
from docwatch.rag.index_sync import RemoteIndexSync
from docwatch.rag.search import SimilaritySearch
from docwatch.rag.vector_store import ManagedIndexService

LOGGER = logging.getLogger(__name__)

FileObjects = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]


def sanitize_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9-_]", "_", name)


def _extract_field(data: FileObjects, key: str) -> list[str]:
    if isinstance(data, Mapping):
        data = [data]
    if not data:
        return []
    return [item[key] for item in data if isinstance(item, Mapping) and item.get(key)]


def extract_file_ids(data: FileObjects) -> list[str]:
    return _extract_field(data, "file_id")


def extract_file_names(data: FileObjects) -> list[str]:
    return _extract_field(data, "file_name")


def compose_user_input(company_name: str, user_prompt: str, file_names: list[str]) -> str:
    files = ",".join(f"- {name}" for name in file_names)
    return f"Company: {company_name}\n\n{user_prompt}\n\nFiles:\n{files}"


class ConversationSession:
    """
    Per-conversation state: the remote index backing it, the history window and
    a lock so overlapping requests on one session run one at a time.
    """

    def __init__(self, name: str, history_length: int = config.HISTORY_LENGTH, index_id: Optional[str] = None):
        self.name = name
        self.index_id = index_id
        self.context = ConversationContextBuilder(max_length=history_length)
        self.lock = asyncio.Lock()


class RagPipeline:
    """
    An asynchronous RAG pipeline: keeps the session's remote index in step with
    its files, retrieves web excerpts, asks the answering service and records
    the parsed answer in history.
    """
    def __init__(
        self,
        search: SimilaritySearch,
        answering: AnsweringService,
        remote: ManagedIndexService,
        params: config.SysParams | None = None,
    ):
        self.search = search
        self.answering = answering
        self.remote = remote
        self.index_sync = RemoteIndexSync(remote)
        self.params = params or config.SysParams.from_env()

    def new_session(self, name: str) -> ConversationSession:
        return ConversationSession(sanitize_name(name), history_length=self.params.history_length)

    async def ensure_index(self, session: ConversationSession) -> str:
        if not session.index_id:
            session.index_id = await asyncio.to_thread(self.remote.create_index, session.name)
        return session.index_id

    async def run(self, session: ConversationSession, user_prompt: str, file_objects: FileObjects = None) -> dict:
        """Runs the full pipeline and returns the parsed JSON reply."""
        file_ids = extract_file_ids(file_objects)
        file_names = extract_file_names(file_objects)

        async with session.lock:
            index_id = await self.ensure_index(session)
            result = await asyncio.to_thread(self.index_sync.reconcile, index_id, set(file_ids))
            LOGGER.info("Index %s in sync (+%d / -%d)", index_id, len(result.added), len(result.removed))

            current_input = compose_user_input(session.name, user_prompt, file_names)
            LOGGER.info("YOU: %s", current_input)

            checkpoint = session.context.checkpoint()
            session.context.append_user_turn(current_input)
            try:
                retrieved = await asyncio.to_thread(self.search.search, user_prompt, self.params.num_top_links)
                payload = session.context.build_context(retrieved)
                raw = await self.answering.answer(payload, index_id=index_id)
                reply = parse_reply(raw)
                summary = extract_summary(reply)
            except Exception:
                session.context.rollback(checkpoint)
                raise

            session.context.append_assistant_turn(summary)
            LOGGER.info("-->> ANSWER: %s", summary)
            return reply

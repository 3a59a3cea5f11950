"""Error taxonomy shared by the ingestion, retrieval and answering layers."""

from __future__ import annotations


class DocwatchError(Exception):
    """Base class for every error raised by docwatch."""


class FetchError(DocwatchError):
    """A page could not be loaded (network failure, navigation timeout)."""


class RenderError(DocwatchError):
    """A page loaded but its title/visible text could not be extracted."""


class ProviderError(DocwatchError):
    """An embedding or answering model call failed (quota, auth, timeout)."""


class ParseError(DocwatchError):
    """The answering service reply holds no usable JSON object."""


class RemoteIndexError(DocwatchError):
    """Reconciliation of a remote index failed fully or partially.

    ``added`` and ``removed`` list the ids that were applied before/around the
    failure; ``failed`` maps each id that could not be processed to its error.
    """

    def __init__(
        self,
        message: str,
        added: list[str] | None = None,
        removed: list[str] | None = None,
        failed: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.added = list(added or [])
        self.removed = list(removed or [])
        self.failed = dict(failed or {})

    @property
    def partial(self) -> bool:
        return bool(self.added or self.removed)

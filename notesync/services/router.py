"""
Identity Router.

Maps every note id to the one adapter that owns it. Classification is
pure: it looks only at the id's prefix.
"""

from collections.abc import Mapping

from notesync.adapters.base import NoteAdapter
from notesync.core.exceptions import InvalidIdentifierError
from notesync.schemas.identity import Namespace, parse_note_id
from notesync.schemas.note import NEW_NOTE_SENTINEL


class IdentityRouter:
    """
    Dispatch table from namespace to adapter.

    Construction fails unless every namespace has exactly one adapter and
    each adapter sits under the namespace it declares.

    Usage:
        router = IdentityRouter({
            Namespace.GUEST: guest,
            Namespace.PENDING: pending,
            Namespace.REMOTE: remote,
        })
        adapter = router.route("local-9f1c")
    """

    def __init__(self, adapters: Mapping[Namespace, NoteAdapter]) -> None:
        missing = [ns.value for ns in Namespace if ns not in adapters]
        if missing:
            raise ValueError(f"No adapter for namespace(s): {', '.join(missing)}")
        for namespace, adapter in adapters.items():
            if adapter.namespace is not namespace:
                raise ValueError(
                    f"{type(adapter).__name__} serves {adapter.namespace.value}, "
                    f"not {namespace.value}"
                )
        self._adapters = dict(adapters)

    @staticmethod
    def is_new(note_id: str | None) -> bool:
        return note_id == NEW_NOTE_SENTINEL

    @staticmethod
    def classify(note_id: str | None) -> Namespace:
        """
        Namespace implied by an id.

        Raises:
            InvalidIdentifierError: For empty or malformed ids, and for the
                `new` sentinel, which never names a stored note
        """
        if note_id == NEW_NOTE_SENTINEL:
            raise InvalidIdentifierError(f"{NEW_NOTE_SENTINEL!r} is not a stored note id")
        return parse_note_id(note_id).namespace

    def adapter(self, namespace: Namespace) -> NoteAdapter:
        return self._adapters[namespace]

    def route(self, note_id: str | None) -> NoteAdapter:
        return self._adapters[self.classify(note_id)]

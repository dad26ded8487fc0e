"""
simple-crud — Path-Keyed Repository
====================================

What:  Maps (request path, optional body) to document store calls.
How:   The request path is an opaque key compared by exact string equality on
       the `path` field. Writes first look the key up to choose between insert
       and replace/update.
Who:   Called by the request dispatcher; calls the DocumentStore.

Operations:
    get(path)                        → stored document | {"No item found", 404}
    create_or_overwrite(path, body)  → insert or full replace, {"Ok", 200}
    create_or_merge(path, body)      → insert or operator update, {"Ok", 200} | {<store error>, 400}
    delete(path)                     → {"Deleted count: N", 200}

Store failures other than a rejected update propagate as StoreError and end
the current request with a 500.
"""

import logging
from typing import Any, Dict, Optional, Union

from simplecrud.exceptions import WriteError
from simplecrud.schemas.envelope import Envelope, make_response
from simplecrud.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

Result = Union[Dict[str, Any], Envelope]


def with_path(path: str, body: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of `body` with the reserved `path` field set to the key."""
    document = dict(body or {})
    document["path"] = path
    return document


class PathRepository:
    """
    CRUD on documents keyed by request path.

    Stateless apart from the shared store handle; safe for concurrent use.
    The lookup before each write is a separate store call, so two writers
    racing on a brand-new path can both try to insert. The unique `path`
    constraint rejects the loser with DuplicateKeyError.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, path: str) -> Result:
        document = await self.store.find_one(path)
        if document is None:
            return make_response("No item found", 404)
        return document

    async def create_or_overwrite(self, path: str, body: Optional[Dict[str, Any]]) -> Result:
        """PUT semantics: the stored document becomes exactly `body` plus `path`."""
        document = with_path(path, body)
        if await self.store.find_one(path) is None:
            await self.store.insert_one(path, document)
        else:
            await self.store.replace_one(path, document)
        return make_response("Ok", 200)

    async def create_or_merge(self, path: str, body: Optional[Dict[str, Any]]) -> Result:
        """
        POST semantics.

        Absent path: same as create_or_overwrite().
        Existing path: `body` is handed to the store unchanged as the update
        document, so it must use update operators ({"$set": {...}}). A
        rejected update is reported as a 400 carrying the store's message.
        """
        if await self.store.find_one(path) is None:
            await self.store.insert_one(path, with_path(path, body))
            return make_response("Ok", 200)

        try:
            await self.store.update_one(path, body or {})
        except WriteError as e:
            logger.warning("Update of %s rejected: %s", path, e.message)
            return make_response(e.message, 400)
        return make_response("Ok", 200)

    async def delete(self, path: str) -> Result:
        deleted = await self.store.delete_one(path)
        return make_response(f"Deleted count: {deleted}", 200)

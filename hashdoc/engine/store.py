"""
HashDoc Document Store — Save, fetch, merge and remove documents in Redis.

Each public operation is one atomic MULTI/EXEC batch (merge is a single
HSET). Lookups are by key only: single, batch, or the full id listing of a
persistent collection.

Persistent collections track every key in ``{dbname}:ids``. Ephemeral
collections do not, and honour ``ttl`` / ``expire_at`` hints on save.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, List, Mapping, Optional, Sequence, Union

from hashdoc.documents.models import Document, DocumentFactory
from hashdoc.engine.codec import flatten, inflate
from hashdoc.engine.commands import CommandRunner
from hashdoc.engine.connection import ConnectionManager
from hashdoc.engine.errors import DocumentDestroyedError

logger = logging.getLogger("hashdoc.engine.store")


def _positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


class DocumentStore(CommandRunner):
    """
    Storage engine for one collection.

    Documents are read through ``key``, ``to_json()``, ``ttl`` and
    ``expire_at``; new documents are built by ``factory`` from decoded
    fields.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        dbname: str,
        ephemeral: bool = False,
        factory: Optional[DocumentFactory] = None,
    ):
        super().__init__(manager, dbname)
        self._ephemeral = ephemeral
        self._factory = factory or Document.from_storage

    @property
    def ephemeral(self) -> bool:
        return self._ephemeral

    # ── Decoding ──

    def inflate(self, payload: Optional[Mapping[Any, Any]]) -> Any:
        """Build a document from a stored hash; None when the hash is empty."""
        return inflate(payload, self._factory)

    def _build(self, payload: Optional[Mapping[Any, Any]], ttl: Any) -> Any:
        document = self.inflate(payload)
        if document is None or not self._ephemeral:
            return document

        # TTL reply is -1 when the key has no expiry
        if isinstance(ttl, int) and ttl >= 0:
            document.ttl = ttl
            document.expire_at = math.floor(time.time() + ttl)
        else:
            document.ttl = None
            document.expire_at = None
        return document

    # ── Writes ──

    async def save(self, document: Any) -> Any:
        """
        Write every field of ``document`` (full overwrite of the given
        fields), register its key and store its attachments atomically.
        Returns the reply to the primary HSET.
        """
        key = self._require_key(getattr(document, "key", None), "save")
        payload = flatten(document.to_json())
        hkey = self.hash_key(key)

        def build(pipe: Any) -> None:
            pipe.hset(hkey, mapping=payload.body)
            if not self._ephemeral:
                pipe.sadd(self.ids_key(), key)
            if payload.attachments:
                pipe.hset(self.attachment_key(key), mapping=payload.attachments)
            if self._ephemeral:
                ttl = getattr(document, "ttl", None)
                expire_at = getattr(document, "expire_at", None)
                if _positive_number(ttl):
                    pipe.expire(hkey, math.ceil(ttl))
                elif _positive_number(expire_at):
                    pipe.expireat(hkey, math.floor(expire_at))

        replies = await self._batch("save", build, key=key)
        logger.debug(f"Saved {hkey} ({len(payload.body)} fields, {len(payload.attachments)} attachments)")
        return replies[0]

    update = save

    async def merge(self, key: str, attributes: Mapping[str, Any]) -> Any:
        """Write only ``attributes`` into an existing hash. Other fields stay."""
        key = self._require_key(key, "merge")
        body = flatten(attributes).body
        if not body:
            return 0
        hkey = self.hash_key(key)
        return await self._call(
            "merge", lambda client: client.hset(hkey, mapping=body), key=key
        )

    async def remove(self, document: Any) -> Any:
        """
        Delete the primary hash, the attachment hash and the id-set entry
        in one batch. Returns the reply to the primary DEL.
        """
        key = self._require_key(getattr(document, "key", None), "remove")
        if getattr(document, "destroyed", False):
            raise DocumentDestroyedError(
                "document has already been destroyed",
                dbname=self._dbname,
                key=key,
                operation="remove",
            )

        def build(pipe: Any) -> None:
            pipe.delete(self.hash_key(key))
            pipe.delete(self.attachment_key(key))
            if not self._ephemeral:
                pipe.srem(self.ids_key(), key)

        replies = await self._batch("remove", build, key=key)
        if hasattr(document, "destroyed"):
            document.destroyed = True
        return replies[0]

    async def destroy_many(self, items: Optional[Sequence[Union[str, Any]]]) -> int:
        """
        Remove many documents, given as keys or handles, in one batch.
        Returns how many primary hashes were deleted. Empty input does nothing.
        """
        if not items:
            return 0
        ids = [
            self._require_key(item if isinstance(item, str) else getattr(item, "key", None), "destroy")
            for item in items
        ]

        def build(pipe: Any) -> None:
            if not self._ephemeral:
                pipe.srem(self.ids_key(), *ids)
            pipe.delete(*[self.hash_key(k) for k in ids])
            pipe.delete(*[self.attachment_key(k) for k in ids])

        replies = await self._batch("destroy_many", build)
        logger.debug(f"Destroyed {len(ids)} documents in {self._dbname}")
        return replies[-2]

    # ── Reads ──

    async def get(self, key: Union[str, Sequence[str]]) -> Any:
        """Fetch one document (None when absent), or a list for a list of keys."""
        if isinstance(key, (list, tuple)):
            return await self.get_batch(key)

        key = self._require_key(key, "get")
        hkey = self.hash_key(key)

        def build(pipe: Any) -> None:
            pipe.hgetall(hkey)
            pipe.ttl(hkey)

        replies = await self._batch("get", build, key=key)
        return self._build(replies[0], replies[1])

    async def get_batch(self, keylist: Sequence[str]) -> List[Any]:
        """
        Fetch many documents in one round trip. Absent keys are skipped;
        the remaining documents keep their relative input order.
        """
        if not keylist:
            return []
        hkeys = [self.hash_key(self._require_key(k, "get")) for k in keylist]

        def build(pipe: Any) -> None:
            for hkey in hkeys:
                pipe.hgetall(hkey)
                pipe.ttl(hkey)

        replies = await self._batch("get_batch", build)

        results = []
        for i in range(0, len(replies) - 1, 2):
            document = self._build(replies[i], replies[i + 1])
            if document is not None:
                results.append(document)
        return results

    async def all(self) -> List[str]:
        """Every key in a persistent collection; always empty when ephemeral."""
        if self._ephemeral:
            return []
        ids_key = self.ids_key()
        members = await self._call("all", lambda client: client.smembers(ids_key))
        return sorted(members or ())


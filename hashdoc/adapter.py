"""
HashDoc Redis Adapter — One configured collection backed by Redis hashes.

Usage:
    adapter = RedisAdapter()
    adapter.on("log", print)
    adapter.configure({"host": "localhost", "port": 6379}, Document)
    await adapter.wait_ready()

    await adapter.save(Document("1", {"name": "first"}))
    doc = await adapter.get("1")

``configure`` must be called from inside a running event loop.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from hashdoc.documents.models import DocumentFactory
from hashdoc.engine.attachments import AttachmentStore
from hashdoc.engine.config import AdapterConfig, build_config
from hashdoc.engine.connection import ConnectionManager
from hashdoc.engine.events import EventChannel
from hashdoc.engine.store import DocumentStore

logger = logging.getLogger("hashdoc.adapter")


def _model_factory(model: Any) -> Optional[DocumentFactory]:
    if model is None:
        return None
    factory = getattr(model, "from_storage", None)
    if factory is None and callable(model):
        return model
    return factory


class RedisAdapter:
    """
    Storage adapter for one collection.

    Owns the ConnectionManager and the engines built on it; nothing is
    shared between adapters.
    """

    def __init__(self):
        self.events = EventChannel()
        self.config: Optional[AdapterConfig] = None
        self.dbname: Optional[str] = None
        self.ephemeral = False
        self._manager: Optional[ConnectionManager] = None
        self._documents: Optional[DocumentStore] = None
        self._attachments: Optional[AttachmentStore] = None

    def configure(
        self,
        options: Union[Mapping[str, Any], AdapterConfig, None],
        model: Any = None,
        *,
        factory: Optional[DocumentFactory] = None,
        client_factory: Optional[Callable[[str, int], Any]] = None,
    ) -> "RedisAdapter":
        """
        Bind the adapter to a collection and open the connection.

        Args:
            options: host, port, dbname, ephemeral (dict or AdapterConfig).
            model: Document class; its ``plural`` names the collection when
                no dbname is given and its ``from_storage`` builds documents.
            factory: Overrides the model's document factory.
            client_factory: Builds redis clients; defaults to redis.asyncio.
        """
        self.config = build_config(options)
        self.dbname = self.config.resolve_dbname(model)
        self.ephemeral = self.config.ephemeral

        self._manager = ConnectionManager(
            self.config.host,
            self.config.port,
            db=self.config.db,
            socket_timeout=self.config.socket_timeout,
            socket_connect_timeout=self.config.socket_connect_timeout,
            client_factory=client_factory,
            events=self.events,
        )
        self._documents = DocumentStore(
            self._manager,
            self.dbname,
            ephemeral=self.ephemeral,
            factory=factory or _model_factory(model),
        )
        self._attachments = AttachmentStore(self._manager, self.dbname)

        logger.info(
            f"Configured collection '{self.dbname}' "
            f"({'ephemeral' if self.ephemeral else 'persistent'}) @ {self._manager.address}"
        )
        self._manager.connect()
        return self

    # ── Events & connection ──

    def on(self, event: str, listener: Callable[..., Any]) -> Callable[..., Any]:
        return self.events.on(event, listener)

    def off(self, event: str, listener: Optional[Callable[..., Any]] = None) -> None:
        self.events.off(event, listener)

    @property
    def connection(self) -> ConnectionManager:
        if self._manager is None:
            raise RuntimeError("adapter is not configured")
        return self._manager

    @property
    def redis(self) -> Any:
        """The current redis client."""
        return self.connection.client

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        await self.connection.wait_ready(timeout)

    async def close(self) -> None:
        if self._manager is not None:
            await self._manager.close()

    @property
    def documents(self) -> DocumentStore:
        if self._documents is None:
            raise RuntimeError("adapter is not configured")
        return self._documents

    @property
    def attachments(self) -> AttachmentStore:
        if self._attachments is None:
            raise RuntimeError("adapter is not configured")
        return self._attachments

    # ── Keys ──

    def hash_key(self, key: str) -> str:
        return self.documents.hash_key(key)

    def attachment_key(self, key: str) -> str:
        return self.documents.attachment_key(key)

    def ids_key(self) -> str:
        return self.documents.ids_key()

    # ── Documents ──

    async def provision(self) -> None:
        """Redis needs no schema; kept for object-model compatibility."""
        return None

    async def all(self) -> List[str]:
        return await self.documents.all()

    async def save(self, document: Any) -> Any:
        return await self.documents.save(document)

    update = save

    async def get(self, key: Union[str, Sequence[str]]) -> Any:
        return await self.documents.get(key)

    async def get_batch(self, keylist: Sequence[str]) -> List[Any]:
        return await self.documents.get_batch(keylist)

    async def merge(self, key: str, attributes: Mapping[str, Any]) -> Any:
        return await self.documents.merge(key, attributes)

    async def remove(self, document: Any) -> Any:
        return await self.documents.remove(document)

    async def destroy_many(self, items: Optional[Sequence[Any]]) -> int:
        return await self.documents.destroy_many(items)

    def inflate(self, payload: Optional[Mapping[Any, Any]]) -> Any:
        return self.documents.inflate(payload)

    # ── Attachments ──

    async def attachment(self, key: str, name: str) -> Any:
        return await self.attachments.get(key, name)

    async def save_attachment(self, document: Any, attachment: Any) -> Any:
        return await self.attachments.set(document, attachment)

    async def remove_attachment(self, document: Any, name: str) -> bool:
        return await self.attachments.delete(document, name)

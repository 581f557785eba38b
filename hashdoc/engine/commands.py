"""
HashDoc Command Runner — Executes single commands and atomic batches.

Shared by the document engine and the attachment store. Every redis error
is re-raised as HashDocTransportError; connection-level errors are also
reported to the ConnectionManager so it starts a recovery cycle.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from hashdoc.engine import keys
from hashdoc.engine.connection import ConnectionManager
from hashdoc.engine.errors import HashDocTransportError, MissingKeyError

logger = logging.getLogger("hashdoc.engine.commands")


class CommandRunner:
    """Base for components that talk to one collection's keyspace."""

    def __init__(self, manager: ConnectionManager, dbname: str):
        self._manager = manager
        self._dbname = dbname

    @property
    def dbname(self) -> str:
        return self._dbname

    # ── Keys ──

    def _require_key(self, key: Any, operation: str) -> str:
        if not key:
            raise MissingKeyError(
                f"cannot {operation} a document without a key",
                dbname=self._dbname,
                operation=operation,
            )
        return str(key)

    def hash_key(self, key: str) -> str:
        return keys.hash_key(self._dbname, key)

    def attachment_key(self, key: str) -> str:
        return keys.attachment_key(self._dbname, key)

    def ids_key(self) -> str:
        return keys.ids_key(self._dbname)

    # ── Execution ──

    def _transport_error(
        self,
        err: RedisError,
        client: Any,
        operation: str,
        key: Optional[str],
        command_count: Optional[int] = None,
    ) -> HashDocTransportError:
        retryable = isinstance(err, (RedisConnectionError, RedisTimeoutError))
        if retryable:
            self._manager.handle_error(err, client)
        logger.debug(f"{operation} on {self._dbname} failed: {err}")
        return HashDocTransportError(
            f"{operation} failed: {err}",
            dbname=self._dbname,
            key=key,
            operation=operation,
            command_count=command_count,
            retryable=retryable,
        )

    def _client_for(self, operation: str, key: Optional[str]) -> Any:
        """The current client; fails when the connection was never opened or is closed."""
        client = self._manager.client
        if client is None:
            raise HashDocTransportError(
                f"{operation} failed: no open connection to redis @ {self._manager.address}",
                dbname=self._dbname,
                key=key,
                operation=operation,
                retryable=False,
            )
        return client

    async def _batch(
        self,
        operation: str,
        build: Callable[[Any], None],
        key: Optional[str] = None,
    ) -> List[Any]:
        """
        Queue commands with ``build(pipe)`` and run them as one MULTI/EXEC.
        Either every reply comes back or the first error is raised.
        """
        client = self._client_for(operation, key)
        command_count = None
        try:
            pipe = client.pipeline(transaction=True)
            build(pipe)
            command_count = len(pipe)
            replies = await pipe.execute()
        except RedisError as e:
            raise self._transport_error(e, client, operation, key, command_count) from e
        logger.debug(f"{operation} on {self._dbname}: {command_count} commands executed")
        return replies

    async def _call(
        self,
        operation: str,
        command: Callable[[Any], Awaitable[Any]],
        key: Optional[str] = None,
    ) -> Any:
        """Run a single command against the current client."""
        client = self._client_for(operation, key)
        try:
            return await command(client)
        except RedisError as e:
            raise self._transport_error(e, client, operation, key) from e

"""
HashDoc Connection Manager — One long-lived Redis connection with auto-recovery.

States:
    CONNECTING  → client created, readiness probe (PING) in flight
    READY       → probe succeeded; attempt counter reset
    RECOVERING  → a failure was seen; reconnect scheduled after backoff

Failures are reported by the probe and by the document engine whenever a
command hits a transport error. Only the first failure of a cycle counts:
while a retry is pending further reports are ignored, and reports about a
client that has since been replaced are dropped. A readiness signal that
arrives while a retry is pending is dropped as well.

Commands are never queued. Anything issued while the connection is down
fails with the client's own error.

Lifecycle notifications go out on an EventChannel:
    "log"   — human-readable string on (re)connect and on captured errors
    "ready" — no arguments, once per successful (re)connect
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from enum import Enum
from typing import Any, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from hashdoc.engine.events import EventChannel

logger = logging.getLogger("hashdoc.engine.connection")

MIN_BACKOFF_MS = 10
MAX_BACKOFF_MS = 10000


class ConnectionState(str, Enum):
    """State of the managed store connection."""
    CONNECTING = "connecting"
    READY = "ready"
    RECOVERING = "recovering"


def exponential_backoff(attempt: int, rand: Callable[[], float] = random.random) -> int:
    """Jittered exponential delay in milliseconds, capped at 10 seconds."""
    return min(math.floor(rand() * math.pow(2, attempt) + MIN_BACKOFF_MS), MAX_BACKOFF_MS)


class ConnectionManager:
    """
    Owns the single Redis client used by one collection.

    Must be connected from inside a running asyncio event loop; the
    readiness probe and the retry timer are scheduled on that loop.

    Usage:
        manager = ConnectionManager("localhost", 6379)
        manager.events.on("log", print)
        manager.connect()
        await manager.wait_ready()
        await manager.client.hgetall("models:1")
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        *,
        db: int = 0,
        socket_timeout: Optional[float] = 5,
        socket_connect_timeout: Optional[float] = 5,
        client_factory: Optional[Callable[[str, int], Any]] = None,
        events: Optional[EventChannel] = None,
        rand: Callable[[], float] = random.random,
    ):
        self._host = host
        self._port = port
        self._db = db
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._client_factory = client_factory
        self._rand = rand
        self.events = events or EventChannel()

        self._client: Any = None
        self._state = ConnectionState.CONNECTING
        self._attempts = 0
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._probe_task: Optional[asyncio.Task] = None
        self._ready: Optional[asyncio.Event] = None
        self._closed = False

    # ── Connection lifecycle ──

    def _create_client(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory(self._host, self._port)
        return aioredis.Redis(
            host=self._host,
            port=self._port,
            db=self._db,
            decode_responses=True,
            socket_timeout=self._socket_timeout,
            socket_connect_timeout=self._socket_connect_timeout,
        )

    def connect(self) -> None:
        """Open a fresh client and start probing it for readiness."""
        loop = asyncio.get_running_loop()
        self._retry_handle = None
        self._closed = False
        if self._ready is None:
            self._ready = asyncio.Event()
        self._ready.clear()

        stale = self._client
        self._client = self._create_client()
        self._state = ConnectionState.CONNECTING
        logger.debug(f"Connecting to redis @ {self.address} (attempt {self._attempts})")

        if stale is not None and stale is not self._client:
            loop.create_task(self._discard(stale))
        self._probe_task = loop.create_task(self._probe(self._client))

    async def _probe(self, client: Any) -> None:
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            self.handle_error(e, client)
            return
        self._handle_ready(client)

    async def _discard(self, client: Any) -> None:
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.debug(f"Closing stale redis client failed: {e}")

    def _handle_ready(self, client: Any) -> None:
        if client is not self._client or self._state is ConnectionState.READY:
            return
        # the pending reconnect will replace this client
        if self._retry_handle is not None:
            return
        self._attempts = 0
        self._state = ConnectionState.READY
        if self._ready is not None:
            self._ready.set()

        message = f"redis @ {self.address} ready"
        logger.info(message)
        self.events.emit("log", message)
        self.events.emit("ready")

    def handle_error(self, err: BaseException, client: Any = None) -> bool:
        """
        Report a transport failure. Returns True when it started a
        recovery cycle, False when it was ignored.
        """
        if self._closed:
            return False
        if client is not None and client is not self._client:
            return False
        if self._retry_handle is not None:
            return False

        message = f"error caught: {err}"
        logger.warning(message)
        self.events.emit("log", message)

        self._attempts += 1
        self._state = ConnectionState.RECOVERING
        if self._ready is not None:
            self._ready.clear()

        delay_ms = exponential_backoff(self._attempts, self._rand)
        logger.debug(f"Reconnecting to redis @ {self.address} in {delay_ms}ms")
        self._retry_handle = asyncio.get_running_loop().call_later(
            delay_ms / 1000.0, self.connect
        )
        return True

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        """Block until the connection reaches READY."""
        if self._ready is None:
            raise RuntimeError("connect() has not been called")
        await asyncio.wait_for(self._ready.wait(), timeout=timeout)

    async def close(self) -> None:
        """Stop retrying and release the client."""
        self._closed = True
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
        self._probe_task = None
        if self._client is not None:
            await self._discard(self._client)
            self._client = None
        self._state = ConnectionState.CONNECTING
        logger.info(f"Closed redis connection @ {self.address}")

    # ── Introspection ──

    @property
    def client(self) -> Any:
        """The current client. May not be ready yet."""
        return self._client

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def retry_pending(self) -> bool:
        return self._retry_handle is not None

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

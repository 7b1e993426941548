"""In-process fan-out of order events to admin dashboards over server-sent events.

The registry lives in this process only: a client connected to another worker
never sees events broadcast here, and nothing is replayed after a reconnect.
Sync route handlers run in FastAPI's threadpool, so ``broadcast`` may be called
off the event loop; every queue put is marshalled back onto the loop that owns
the queue.
"""
import json
import time
import asyncio
import logging
import itertools
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional

from . import config
from .models import serialize

log = logging.getLogger("burgerhouse.realtime")

CONNECTED_COMMENT = ": connected\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_event(event: str, data: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(serialize(data), separators=(',', ':'))}\n\n"


def heartbeat_comment(now_ms: Optional[int] = None) -> str:
    return f": heartbeat {now_ms if now_ms is not None else int(time.time() * 1000)}\n\n"


class SSEClient:
    def __init__(self, client_id: int, loop: asyncio.AbstractEventLoop, maxsize: int):
        self.id = client_id
        self.loop = loop
        self.queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=maxsize)
        self.connected_at = time.time()
        self.dropped = False

    def __repr__(self):
        return f"<SSEClient id={self.id} pending={self.queue.qsize()} dropped={self.dropped}>"


class OrderBroadcaster:
    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or config.SSE_CLIENT_QUEUE
        self._clients: Dict[int, SSEClient] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    # ---------------- Registry ----------------
    def register(self) -> SSEClient:
        """Must be called from the event loop that will consume the stream."""
        loop = asyncio.get_running_loop()
        client = SSEClient(next(self._ids), loop, self.queue_size)
        with self._lock:
            self._clients[client.id] = client
        log.info("SSE client %d connected (%d open)", client.id, self.client_count())
        return client

    def unregister(self, client: SSEClient) -> None:
        with self._lock:
            removed = self._clients.pop(client.id, None)
        if removed is not None:
            log.info("SSE client %d disconnected (%d open)", client.id, self.client_count())

    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def clients(self) -> List[SSEClient]:
        with self._lock:
            return list(self._clients.values())

    # ---------------- Delivery ----------------
    def _drop(self, client: SSEClient, reason: str) -> None:
        client.dropped = True
        log.warning("Dropping SSE client %d: %s", client.id, reason)
        self.unregister(client)

    def _put(self, client: SSEClient, payload: str) -> None:
        if client.dropped:
            return
        try:
            client.queue.put_nowait(payload)
        except asyncio.QueueFull:
            self._drop(client, "queue full")

    def broadcast(self, event: str, data: Any) -> int:
        """Queue one event for every connected client.

        Returns the number of deliveries made or scheduled. A put scheduled onto
        another loop can still drop its client when that queue is full, so the
        count is an upper bound on what was actually queued.
        """
        payload = format_event(event, data)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        delivered = 0
        for client in self.clients():
            if client.loop is running:
                self._put(client, payload)
                if not client.dropped:
                    delivered += 1
                continue
            try:
                client.loop.call_soon_threadsafe(self._put, client, payload)
            except RuntimeError:
                self._drop(client, "event loop closed")
                continue
            delivered += 1
        log.debug("broadcast %s to %d client(s)", event, delivered)
        return delivered

    async def stream(
        self,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        heartbeat: Optional[float] = None,
    ):
        """Register a client and yield SSE text for it until it goes away.

        Registration happens on first iteration so a response that is never
        streamed leaves nothing behind in the registry.
        """
        period = heartbeat if heartbeat is not None else config.SSE_HEARTBEAT_SECONDS
        client = self.register()
        try:
            yield CONNECTED_COMMENT
            while not client.dropped:
                if is_disconnected is not None and await is_disconnected():
                    break
                try:
                    payload = await asyncio.wait_for(client.queue.get(), timeout=period)
                except asyncio.TimeoutError:
                    yield heartbeat_comment()
                    continue
                yield payload
        finally:
            self.unregister(client)


broadcaster = OrderBroadcaster()


def broadcast_event(event: str, data: Any) -> int:
    return broadcaster.broadcast(event, data)

"""Live event emitter -- one periodic task per streaming connection.

Every ``interval`` seconds a connection's task picks a random record, gives it
a fresh id and the current timestamp, and hands the JSON to the connection's
sink. The task is the only thing that ticks for that connection, so there is
never more than one tick in flight. Closing the connection cancels the task;
a sink that raises, or an empty dataset, closes the connection.
"""
import asyncio
import json
import logging
import random
import time
import uuid
from typing import Awaitable, Callable

from telemetry_gate.domain.dataset import Dataset

log = logging.getLogger("telemetry_gate.stream")

DEFAULT_INTERVAL_S = 1.5

Sink = Callable[[str], Awaitable[None]]


class StreamConnection:
    """One open stream: its id, its sink and the task feeding it."""

    def __init__(self, sink: Sink):
        self.id = uuid.uuid4().hex
        self.sink = sink
        self.task: asyncio.Task | None = None
        self.frames_sent = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    def cancel(self) -> None:
        self._closed = True
        if self.task is not None and not self.task.done():
            self.task.cancel()

    async def wait_closed(self) -> None:
        """Wait until the task has fully exited."""
        if self.task is None:
            return
        try:
            await self.task
        except asyncio.CancelledError:
            pass


class LiveEventEmitter:
    def __init__(
        self,
        dataset: Dataset,
        interval: float = DEFAULT_INTERVAL_S,
        rng: random.Random | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._dataset = dataset
        self._interval = interval
        self._rng = rng or random.Random()
        self._connections: dict[str, StreamConnection] = {}

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def next_frame(self) -> str:
        """A serialized live event: a sampled record stamped with a new id and now."""
        record = self._dataset.sample(self._rng)
        live = record.refreshed(str(uuid.uuid4()), int(time.time() * 1000))
        return json.dumps(live.to_dict())

    def open(self, sink: Sink) -> StreamConnection:
        """Start ticking into ``sink``. Must be called from a running event loop."""
        connection = StreamConnection(sink)
        connection.task = asyncio.get_running_loop().create_task(self._run(connection))
        self._connections[connection.id] = connection
        log.info("stream=%s event=open active=%d", connection.id, len(self._connections))
        return connection

    def close(self, connection: StreamConnection) -> None:
        """Cancel the connection's task. Idempotent."""
        connection.cancel()
        if self._connections.pop(connection.id, None) is not None:
            log.info(
                "stream=%s event=close frames=%d active=%d",
                connection.id, connection.frames_sent, len(self._connections),
            )

    def close_all(self) -> None:
        for connection in list(self._connections.values()):
            self.close(connection)

    async def _run(self, connection: StreamConnection) -> None:
        try:
            while not connection.closed:
                await asyncio.sleep(self._interval)
                if connection.closed:
                    break
                try:
                    frame = self.next_frame()
                except LookupError:
                    log.warning("stream=%s event=no_records, closing", connection.id)
                    break
                try:
                    await connection.sink(frame)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    # A failed write means the client went away.
                    log.debug("stream=%s event=sink_failed reason=%r", connection.id, exc)
                    break
                connection.frames_sent += 1
        finally:
            connection.mark_closed()
            self._connections.pop(connection.id, None)

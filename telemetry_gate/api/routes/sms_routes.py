"""SMS data routes -- filtered reads and the live event stream."""
import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from telemetry_gate.application.live_emitter import LiveEventEmitter
from telemetry_gate.infrastructure.auth.dependencies import (
    require_session,
    require_session_or_api_key,
)

router = APIRouter(prefix="/api", tags=["sms"])

log = logging.getLogger("telemetry_gate.stream")

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


def parse_limit(raw: str | None) -> int:
    """Absent, non-numeric or non-positive -> DEFAULT_LIMIT; capped at MAX_LIMIT."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if value <= 0:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


@router.get("/sms")
@router.get("/data")
def api_sms(
    request: Request,
    country: str | None = Query(None),
    status: str | None = Query(None),
    limit: str | None = Query(None),
    _principal: str = Depends(require_session_or_api_key),
):
    """Filtered slice of the dataset. Filters are case-insensitive."""
    rows = request.app.state.dataset.filter(country, status)
    return [r.to_dict() for r in rows[:parse_limit(limit)]]


async def live_frames(emitter: LiveEventEmitter):
    """SSE payloads for one client, bound to one emitter connection.

    The connection opens on the first iteration and closes when the generator
    is closed or cancelled, which is how a client disconnect reaches us. When
    the emitter ends the connection itself, the generator finishes too.
    """
    outbox: asyncio.Queue = asyncio.Queue()

    async def sink(frame: str) -> None:
        # At most one undelivered frame; newer frames are dropped, not queued.
        if outbox.qsize():
            log.debug("frame dropped, client not keeping up")
            return
        outbox.put_nowait(frame)

    connection = emitter.open(sink)
    connection.task.add_done_callback(lambda _task: outbox.put_nowait(None))
    try:
        while True:
            frame = await outbox.get()
            if frame is None:
                break
            yield {"data": frame}
    finally:
        emitter.close(connection)


@router.get("/sms/stream")
async def api_sms_stream(request: Request, _principal: str = Depends(require_session)):
    """Server-sent events: one synthetic live record every STREAM_INTERVAL seconds."""
    emitter: LiveEventEmitter = request.app.state.emitter
    return EventSourceResponse(live_frames(emitter), headers={"Cache-Control": "no-cache"}, sep="\n")

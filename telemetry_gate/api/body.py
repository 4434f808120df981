"""JSON request bodies, decoded inside dependencies.

Routes declare their body dependency after their guards, so an
unauthenticated or locked-out caller is rejected before the body is read.
"""
import json

from fastapi import Request


async def read_json(request: Request):
    """Decoded JSON body, or None when the body is empty.

    Raises ValueError when the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    return json.loads(raw)

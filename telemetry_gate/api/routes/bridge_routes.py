"""Query bridge route."""
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from telemetry_gate.api.body import read_json
from telemetry_gate.application.query_bridge import BridgeQuery
from telemetry_gate.domain.errors import BadRequestError
from telemetry_gate.infrastructure.auth.dependencies import require_session

router = APIRouter(prefix="/api/mcp", tags=["bridge"])


async def bridge_query(request: Request) -> BridgeQuery:
    """The request body as a BridgeQuery; an empty body is the default query."""
    try:
        data = await read_json(request)
    except ValueError:
        raise BadRequestError("Invalid JSON body")
    if data is None:
        return BridgeQuery()
    if not isinstance(data, dict):
        raise BadRequestError("Query must be a JSON object")
    try:
        return BridgeQuery.model_validate(data)
    except ValidationError as exc:
        raise BadRequestError(f"Invalid query: {exc.errors()[0]['msg']}")


@router.post("/query")
def api_mcp_query(
    request: Request,
    _principal: str = Depends(require_session),
    query: BridgeQuery = Depends(bridge_query),
):
    """Forward to the external endpoint, or aggregate locally when none is set.

    A failing upstream surfaces as 502 {error, details}; nothing is retried.
    """
    return request.app.state.bridge.execute(query)

"""Query bridge -- forward a structured query or answer it locally.

Architecture
------------
Client -> POST /api/mcp/query
       -> RemoteBridge: POST <MCP_URL> {prompt, resource, filters}
          (Authorization: Bearer <MCP_API_KEY> when set)
       -> LocalBridge:  filter + aggregate the in-memory dataset

Which variant runs is decided once, by ``build_bridge``, from configuration.
Both return ``{"source": "external" | "local", "data": ...}``. The remote
variant never retries; any transport error, timeout, non-2xx status or
non-JSON body becomes a BridgeError.
"""
import logging

import requests
from pydantic import BaseModel, Field, field_validator

from telemetry_gate.domain.dataset import Dataset
from telemetry_gate.domain.enums import BridgeResource, DeliveryStatus
from telemetry_gate.domain.errors import BridgeError

log = logging.getLogger("telemetry_gate.bridge")

RAW_ROW_LIMIT = 200
_BODY_EXCERPT = 500


class BridgeFilters(BaseModel):
    country: str | None = None
    status: str | None = None

    @field_validator("country", "status", mode="before")
    @classmethod
    def _upper(cls, value):
        if value is None:
            return None
        value = str(value).strip().upper()
        return value or None


class BridgeQuery(BaseModel):
    prompt: str = ""
    resource: BridgeResource = BridgeResource.RAW
    filters: BridgeFilters = Field(default_factory=BridgeFilters)

    @field_validator("prompt", mode="before")
    @classmethod
    def _prompt_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("resource", mode="before")
    @classmethod
    def _resource(cls, value):
        return BridgeResource.parse(value)

    @field_validator("filters", mode="before")
    @classmethod
    def _filters(cls, value):
        return value if value is not None else {}

    def to_payload(self) -> dict:
        return {
            "prompt": self.prompt,
            "resource": self.resource.value,
            "filters": self.filters.model_dump(exclude_none=True),
        }


class LocalBridge:
    """Answers queries from the dataset when no external endpoint is set."""

    source = "local"

    def __init__(self, dataset: Dataset):
        self._dataset = dataset

    def execute(self, query: BridgeQuery) -> dict:
        rows = self._dataset.filter(query.filters.country, query.filters.status)
        if query.resource is BridgeResource.KPIS:
            data = compute_kpis(rows)
        else:
            data = [r.to_dict() for r in rows[:RAW_ROW_LIMIT]]
        return {"source": self.source, "data": data}


class RemoteBridge:
    """Forwards queries to the external analytics endpoint."""

    source = "external"

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def execute(self, query: BridgeQuery) -> dict:
        try:
            resp = self._session.post(
                self._url,
                json=query.to_payload(),
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            log.error("bridge timeout after %ss: %s", self._timeout, exc)
            raise BridgeError(f"Timed out after {self._timeout}s: {exc}") from exc
        except requests.RequestException as exc:
            log.error("bridge transport failure: %s", exc)
            raise BridgeError(str(exc)) from exc

        if not resp.ok:
            body = resp.text[:_BODY_EXCERPT]
            log.error("bridge upstream status=%s body=%r", resp.status_code, body)
            raise BridgeError(
                f"Upstream HTTP {resp.status_code}: {body}",
                upstream_status=resp.status_code,
                upstream_body=body,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            body = resp.text[:_BODY_EXCERPT]
            log.error("bridge upstream returned non-JSON body=%r", body)
            raise BridgeError(
                f"Upstream returned invalid JSON: {exc}",
                upstream_status=resp.status_code,
                upstream_body=body,
            ) from exc
        return {"source": self.source, "data": data}


def compute_kpis(rows) -> dict:
    """Counts per status and mean latency. avgLatency is 0 for no rows."""
    total = len(rows)
    delivered = failed = blocked = 0
    latency_sum = 0
    for r in rows:
        if r.status is DeliveryStatus.DELIVERED:
            delivered += 1
        elif r.status is DeliveryStatus.FAILED:
            failed += 1
        elif r.status is DeliveryStatus.BLOCKED:
            blocked += 1
        latency_sum += r.latency_ms
    return {
        "total": total,
        "delivered": delivered,
        "failed": failed,
        "blocked": blocked,
        "avgLatency": latency_sum / total if total else 0,
    }


def build_bridge(settings, dataset: Dataset):
    """Pick the bridge variant once, from configuration."""
    if settings.mcp_url:
        log.info("query bridge mode=external url=%s", settings.mcp_url)
        return RemoteBridge(settings.mcp_url, settings.mcp_api_key, settings.mcp_timeout)
    log.info("query bridge mode=local (MCP_URL not set)")
    return LocalBridge(dataset)

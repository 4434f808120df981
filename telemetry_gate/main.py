"""Entry point. Builds the dataset, the auth gate, the emitter and the bridge,
wires them into the routes and serves the demo UI.

Bridge strategy:
  - If MCP_URL is set  -> queries are forwarded to the external endpoint.
  - Otherwise          -> queries are answered from the local dataset.
"""
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(BASE_DIR)
load_dotenv(os.path.join(PROJECT_DIR, ".env"))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse

from telemetry_gate.api.errors import install_error_handlers
from telemetry_gate.api.routes.auth_routes import router as auth_router
from telemetry_gate.api.routes.bridge_routes import router as bridge_router
from telemetry_gate.api.routes.sms_routes import router as sms_router
from telemetry_gate.application.auth_gate import AuthenticationGate
from telemetry_gate.application.live_emitter import LiveEventEmitter
from telemetry_gate.application.query_bridge import RemoteBridge, build_bridge
from telemetry_gate.config import Settings
from telemetry_gate.domain.dataset import Dataset
from telemetry_gate.infrastructure.audit import AuditLog
from telemetry_gate.infrastructure.auth.bruteforce import LockoutTracker
from telemetry_gate.infrastructure.auth.session_token import SessionTokens
from telemetry_gate.infrastructure.seed import build_dataset

STATIC_DIR = os.path.join(BASE_DIR, "static")

log = logging.getLogger("telemetry_gate.startup")


def create_app(
    settings: Settings | None = None,
    dataset: Dataset | None = None,
    bridge=None,
) -> FastAPI:
    """Build a fully wired application.

    ``dataset`` and ``bridge`` may be injected (tests); otherwise they are
    built from ``settings``.
    """
    settings = settings or Settings.from_env()
    dataset = dataset if dataset is not None else build_dataset(settings.dataset_size, settings.dataset_seed)
    bridge = bridge or build_bridge(settings, dataset)
    tracker = LockoutTracker()
    gate = AuthenticationGate(
        tracker,
        SessionTokens(settings.session_secret, settings.session_max_age),
        settings.demo_username,
        settings.demo_password,
        audit=AuditLog(settings.audit_log_path),
    )
    emitter = LiveEventEmitter(dataset, interval=settings.stream_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("telemetry gate up: %d records, bridge=%s", dataset.size, bridge.source)
        yield
        log.info("shutting down, closing %d live streams", emitter.active_count)
        emitter.close_all()

    app = FastAPI(
        title="Telemetry Gate",
        description="Login-gated synthetic SMS telemetry with live stream and query bridge.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dataset = dataset
    app.state.gate = gate
    app.state.emitter = emitter
    app.state.bridge = bridge

    # Credentialed CORS cannot use a literal "*"; echo the origin instead.
    wildcard = settings.allowed_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if wildcard else settings.allowed_origins,
        allow_origin_regex=".*" if wildcard else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(auth_router)
    app.include_router(sms_router)
    app.include_router(bridge_router)

    @app.get("/", include_in_schema=False)
    def serve_frontend():
        """Serve index.html."""
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path, headers={"Cache-Control": "no-store"})
        return {"message": "Telemetry Gate API is running. No frontend found."}

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        return "ok"

    @app.get("/health")
    def health():
        result = {
            "status": "online",
            "bridge": bridge.source,
            "records": dataset.size,
            "active_streams": emitter.active_count,
            "tracked_lockouts": tracker.size,
        }
        if isinstance(bridge, RemoteBridge):
            result["bridge_url"] = bridge.url
        return result

    return app


"""Runtime configuration read from the environment.

Env vars (all optional):
    SESSION_SECRET   -- session signing key; random per process when unset
    SESSION_MAX_AGE  -- session lifetime in seconds (default 3600)
    MCP_URL          -- external query endpoint; unset selects local mode
    MCP_API_KEY      -- bearer credential sent to MCP_URL
    MCP_TIMEOUT      -- seconds before the external call gives up (default 10)
    DEMO_API_KEY     -- static key accepted in X-API-Key for data reads
    DEMO_USERNAME    -- demo principal login (default "demo")
    DEMO_PASSWORD    -- demo principal password (default "demo123")
    PORT             -- listen port (default 3000)
    LOG_LEVEL        -- DEBUG, INFO, WARNING, ERROR (default INFO)
    STREAM_INTERVAL  -- seconds between live frames (default 1.5)
    DATASET_SIZE     -- synthetic records generated at startup (default 500)
    DATASET_SEED     -- RNG seed for a reproducible dataset
    AUDIT_LOG_PATH   -- JSON-lines audit file; unset disables auditing
    ALLOWED_ORIGINS  -- comma-separated CORS origins (default "*")
"""
import logging
import os
import secrets
from typing import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from telemetry_gate.domain.errors import InternalError

log = logging.getLogger("telemetry_gate.startup")

_ENV_FIELDS = {
    "SESSION_SECRET": "session_secret",
    "SESSION_MAX_AGE": "session_max_age",
    "MCP_URL": "mcp_url",
    "MCP_API_KEY": "mcp_api_key",
    "MCP_TIMEOUT": "mcp_timeout",
    "DEMO_API_KEY": "demo_api_key",
    "DEMO_USERNAME": "demo_username",
    "DEMO_PASSWORD": "demo_password",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
    "STREAM_INTERVAL": "stream_interval",
    "DATASET_SIZE": "dataset_size",
    "DATASET_SEED": "dataset_seed",
    "AUDIT_LOG_PATH": "audit_log_path",
    "ALLOWED_ORIGINS": "allowed_origins",
}


class Settings(BaseModel):
    session_secret: str = Field(default_factory=lambda: secrets.token_hex(32))
    session_max_age: int = Field(3600, gt=0)
    mcp_url: str | None = None
    mcp_api_key: str | None = None
    mcp_timeout: float = Field(10.0, gt=0)
    demo_api_key: str | None = None
    demo_username: str = "demo"
    demo_password: str = "demo123"
    port: int = Field(3000, gt=0, lt=65536)
    log_level: str = "INFO"
    stream_interval: float = Field(1.5, gt=0)
    dataset_size: int = Field(500, ge=0)
    dataset_seed: int | None = None
    audit_log_path: str | None = None
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("mcp_url")
    @classmethod
    def _http_url(cls, value: str | None) -> str | None:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("MCP_URL must be an http(s) URL")
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            origins = [o.strip() for o in value.split(",") if o.strip()]
            return origins or ["*"]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def remote_bridge(self) -> bool:
        return bool(self.mcp_url)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Blank values count as unset. Raises InternalError on malformed values.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = environ.get(env_name)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()
        try:
            settings = cls(**values)
        except ValidationError as exc:
            raise InternalError(f"Invalid configuration: {exc}") from exc
        if "session_secret" not in values:
            log.warning(
                "SESSION_SECRET not set -- using a random per-process secret. "
                "Sessions will not survive a restart or span instances."
            )
        return settings

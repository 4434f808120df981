"""Telemetry Gate - simple launcher."""
import uvicorn

from telemetry_gate.config import Settings
from telemetry_gate.log_config import configure_logging
from telemetry_gate.main import create_app

if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)

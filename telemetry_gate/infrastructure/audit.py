"""Append-only audit logger for authentication events.

Writes newline-delimited JSON entries to the configured file. A path of None
turns the logger into a no-op. Thread-safe via an instance lock.
"""
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

log = logging.getLogger("telemetry_gate.audit")


class AuditLog:
    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._path is not None

    def log_event(self, action: str, identity: str | None, payload: dict | None = None) -> None:
        if self._path is None:
            return
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "identity": identity,
            "payload": payload or {},
        }
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            # An unwritable audit file must not turn a login into a 500.
            log.warning("audit write failed action=%s: %s", action, exc)

"""Synthetic SMS dataset generation.

Fills records from small fixed pools. Pass a seeded ``random.Random`` for a
reproducible dataset; otherwise every process start gets a new one.
"""
import random
import time

from telemetry_gate.domain.dataset import Dataset
from telemetry_gate.domain.enums import DeliveryStatus
from telemetry_gate.domain.record import SmsRecord

COUNTRIES = ("US", "GB", "DE", "FR", "BR", "IN", "MX", "CO", "ES", "IT")
CARRIERS = ("TeleOne", "GlobalTel", "SkyMobile", "ProNet")
MESSAGE = "Hello from the telemetry demo"

MIN_LATENCY_MS = 100
LATENCY_SPREAD_MS = 3000
HISTORY_MS = 1000 * 60 * 60 * 24 * 7  # one week


def generate_records(size: int = 500, rng: random.Random | None = None, now_ms: int | None = None) -> list:
    """Build ``size`` records with ids 1..size and timestamps in the past week."""
    rng = rng or random.Random()
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    statuses = list(DeliveryStatus)
    records = []
    for record_id in range(1, size + 1):
        records.append(SmsRecord(
            record_id=record_id,
            country=rng.choice(COUNTRIES),
            carrier=rng.choice(CARRIERS),
            status=rng.choice(statuses),
            latency_ms=MIN_LATENCY_MS + rng.randrange(LATENCY_SPREAD_MS),
            message=MESSAGE,
            timestamp=now_ms - rng.randrange(HISTORY_MS),
        ))
    return records


def build_dataset(size: int = 500, seed: int | None = None) -> Dataset:
    return Dataset(generate_records(size, random.Random(seed)))

"""Enums shared across the domain."""
from enum import Enum


class DeliveryStatus(str, Enum):
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    BLOCKED = "BLOCKED"
    PENDING = "PENDING"


class BridgeResource(str, Enum):
    """What a bridge query asks for. Anything unrecognised is treated as RAW."""
    KPIS = "kpis"
    RAW = "raw"

    @classmethod
    def parse(cls, value) -> "BridgeResource":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.KPIS.value:
            return cls.KPIS
        return cls.RAW

"""SMS telemetry record -- one row of the synthetic dataset."""
from telemetry_gate.domain.enums import DeliveryStatus


class SmsRecord:
    """Immutable delivery record. Created once at startup, shared read-only."""

    __slots__ = ("_id", "_country", "_carrier", "_status", "_latency_ms", "_message", "_timestamp")

    def __init__(
        self,
        record_id: int | str,
        country: str,
        carrier: str,
        status: DeliveryStatus,
        latency_ms: int,
        message: str,
        timestamp: int,
    ):
        if not 100 <= latency_ms < 3100:
            raise ValueError("latency_ms must be in [100, 3100)")
        self._id = record_id
        self._country = country.upper()
        self._carrier = carrier
        self._status = DeliveryStatus(status)
        self._latency_ms = latency_ms
        self._message = message
        self._timestamp = timestamp

    @property
    def id(self) -> int | str:
        return self._id

    @property
    def country(self) -> str:
        return self._country

    @property
    def carrier(self) -> str:
        return self._carrier

    @property
    def status(self) -> DeliveryStatus:
        return self._status

    @property
    def latency_ms(self) -> int:
        return self._latency_ms

    @property
    def message(self) -> str:
        return self._message

    @property
    def timestamp(self) -> int:
        """Epoch milliseconds."""
        return self._timestamp

    def refreshed(self, record_id: str, timestamp: int) -> "SmsRecord":
        """Copy with a new id and timestamp, used to fake a live event."""
        return SmsRecord(
            record_id=record_id,
            country=self._country,
            carrier=self._carrier,
            status=self._status,
            latency_ms=self._latency_ms,
            message=self._message,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "country": self._country,
            "carrier": self._carrier,
            "status": self._status.value,
            "latency_ms": self._latency_ms,
            "message": self._message,
            "timestamp": self._timestamp,
        }

    def __repr__(self) -> str:
        return f"SmsRecord(id={self._id!r}, country={self._country!r}, status={self._status.value!r})"

"""Read-only collection of SMS records shared by every request."""
import random
from typing import Iterable

from telemetry_gate.domain.record import SmsRecord


def _normalise(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value.upper() or None


class Dataset:
    """Immutable after construction. Safe to read from any thread or task."""

    def __init__(self, records: Iterable[SmsRecord]):
        self._records: tuple[SmsRecord, ...] = tuple(records)

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[SmsRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def filter(self, country: str | None = None, status: str | None = None) -> list[SmsRecord]:
        """Records matching ``country`` and ``status``, compared uppercased.

        Empty or missing filters match everything.
        """
        country = _normalise(country)
        status = _normalise(status)
        out = []
        for record in self._records:
            if country and record.country != country:
                continue
            if status and record.status.value != status:
                continue
            out.append(record)
        return out

    def sample(self, rng: random.Random | None = None) -> SmsRecord:
        if not self._records:
            raise LookupError("dataset is empty")
        return (rng or random).choice(self._records)

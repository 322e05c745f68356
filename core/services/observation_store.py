"""
Observation sources and record ingestion.

Key patterns:
- Protocol-based sources (any store with the two list methods plugs in)
- Result type for expected failures (a malformed record is not exceptional)
- Tolerant batch loading: bad records are logged and skipped
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar, cast

import structlog
from pydantic import ValidationError

from core.domain.models import Measurement, ObservationEntry

logger = structlog.get_logger(__name__)

# Parse outcome types
ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """Outcome of parsing one record: the model, or the error that rejected it."""

    def __init__(self, value: ValueT | None, error: ErrorT | None) -> None:
        self._value = value
        self._error = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value, None)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(None, error)

    def is_ok(self) -> bool:
        return self._error is None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return cast(ValueT, self._value)

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("result holds a parsed value, not an error")
        return self._error


class ObservationStore(Protocol):
    """
    Protocol for anything that can hand over an observation snapshot.

    The engine never writes back; a store only needs to list what it holds.
    """

    source_name: str

    async def list_entries(self) -> Sequence[ObservationEntry]: ...

    async def list_measurements(self) -> Sequence[Measurement]: ...


def parse_entry(record: Mapping[str, Any]) -> Result[ObservationEntry, ValidationError]:
    """Validate one raw store record into an ``ObservationEntry``."""
    try:
        return Result.ok(ObservationEntry.model_validate(record))
    except ValidationError as e:
        return Result.err(e)


def parse_measurement(record: Mapping[str, Any]) -> Result[Measurement, ValidationError]:
    try:
        return Result.ok(Measurement.model_validate(record))
    except ValidationError as e:
        return Result.err(e)


def _record_id(record: Mapping[str, Any]) -> str | None:
    raw = record.get("id") if isinstance(record, Mapping) else None
    return None if raw is None else str(raw)


def load_entries(records: Iterable[Mapping[str, Any]]) -> list[ObservationEntry]:
    """Parse a batch of raw records, skipping the ones that fail validation."""
    entries: list[ObservationEntry] = []
    for record in records:
        result = parse_entry(record)
        if result.is_ok():
            entries.append(result.unwrap())
        else:
            logger.warning(
                "record_rejected",
                record_id=_record_id(record),
                kind="entry",
                errors=result.unwrap_err().error_count(),
            )
    return entries


def load_measurements(records: Iterable[Mapping[str, Any]]) -> list[Measurement]:
    measurements: list[Measurement] = []
    for record in records:
        result = parse_measurement(record)
        if result.is_ok():
            measurements.append(result.unwrap())
        else:
            logger.warning(
                "record_rejected",
                record_id=_record_id(record),
                kind="measurement",
                errors=result.unwrap_err().error_count(),
            )
    return measurements


class InMemoryObservationStore:
    """Snapshot store backed by plain lists (exports, fixtures, demos)."""

    def __init__(
        self,
        entries: Iterable[ObservationEntry] = (),
        measurements: Iterable[Measurement] = (),
        source_name: str = "memory",
    ) -> None:
        self.source_name = source_name
        self._entries = list(entries)
        self._measurements = list(measurements)

    @classmethod
    def from_records(
        cls,
        entries: Iterable[Mapping[str, Any]],
        measurements: Iterable[Mapping[str, Any]] = (),
        source_name: str = "memory",
    ) -> "InMemoryObservationStore":
        return cls(load_entries(entries), load_measurements(measurements), source_name)

    async def list_entries(self) -> Sequence[ObservationEntry]:
        return tuple(self._entries)

    async def list_measurements(self) -> Sequence[Measurement]:
        return tuple(self._measurements)

"""Record sinks: where newly de-duplicated extracted records go."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class RecordSink(Protocol):
    """Anything that accepts one extracted record at a time."""

    def emit(self, record: str) -> None: ...


Emitter = Callable[[str], None]


class ListSink:
    """Keep emitted records in memory, in emission order."""

    def __init__(self) -> None:
        self.records: list[str] = []

    def emit(self, record: str) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)


class LoggingSink:
    """Write each record to a logger (the CLI default when no output dir is set)."""

    def __init__(self, logger) -> None:
        self._logger = logger

    def emit(self, record: str) -> None:
        self._logger.info("record: %s", record)


def as_emitter(sink: RecordSink | Emitter | None) -> Emitter | None:
    """Normalize a sink object or plain callable into an emit function."""

    if sink is None:
        return None
    if isinstance(sink, RecordSink):
        return sink.emit
    if callable(sink):
        return sink
    raise TypeError(f"Unsupported record sink: {type(sink)!r}")


__all__ = ["Emitter", "ListSink", "LoggingSink", "RecordSink", "as_emitter"]

"""
linktrue.state.events — pluggable event sinks.

The registry hands every notification of a *committed* operation to an
`EventSink`. Three backends ship here:

- InMemoryEventSink: fast, test/dev friendly; keeps all records in RAM.
- JsonlEventSink: append-only JSONL file; a durable audit log.
- NullEventSink: no-op sink for setups that ignore events.

Ordering
--------
Records are appended in emission order. `seq` is the registry's count of
committed write operations (1-based); `log_index` is the 0-based position of
the event within that operation. (seq, log_index) strictly increases.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import (Any, Dict, Iterable, List, Optional, Protocol,
                    runtime_checkable)

from ..types.events import ProfileEvent, event_from_dict

# =============================================================================
# Public data model
# =============================================================================


@dataclass(frozen=True)
class EventRecord:
    """
    An event plus its emission context.

    Fields
    ------
    seq : int
        Sequence number of the committed operation that emitted it.
    log_index : int
        0-based index of the event inside that operation.
    caller : str
        Address that invoked the operation.
    event : ProfileEvent
        The payload.
    """

    seq: int
    log_index: int
    caller: str
    event: ProfileEvent

    @property
    def name(self) -> str:
        return self.event.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "log_index": self.log_index,
            "caller": self.caller,
            **self.event.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EventRecord":
        return cls(
            seq=int(d["seq"]),
            log_index=int(d["log_index"]),
            caller=str(d["caller"]),
            event=event_from_dict(d),
        )


# =============================================================================
# Sink interface
# =============================================================================


@runtime_checkable
class EventSink(Protocol):
    def append(self, event: ProfileEvent, *, seq: int, log_index: int, caller: str) -> EventRecord:
        """Append a single event with its context. Returns the stored record."""

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        caller: Optional[str] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in emission order."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources (files, buffers)."""


def _record_matches(
    rec: EventRecord,
    name: Optional[str],
    caller: Optional[str],
    from_seq: Optional[int],
    to_seq: Optional[int],
) -> bool:
    if name is not None and rec.name != name:
        return False
    if caller is not None and rec.caller != caller:
        return False
    if from_seq is not None and rec.seq < from_seq:
        return False
    if to_seq is not None and rec.seq > to_seq:
        return False
    return True


# =============================================================================
# In-memory sink
# =============================================================================


class InMemoryEventSink(EventSink):
    """
    A simple, thread-safe in-memory sink. Suitable for tests and the CLI's
    single-shot runs; do not use unbounded in long-lived services.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def records(self) -> List[EventRecord]:
        with self._lock:
            return list(self._records)

    def append(self, event: ProfileEvent, *, seq: int, log_index: int, caller: str) -> EventRecord:
        rec = EventRecord(seq=seq, log_index=log_index, caller=caller, event=event)
        with self._lock:
            self._records.append(rec)
        return rec

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        caller: Optional[str] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        with self._lock:
            snapshot = list(self._records)
        n = 0
        for rec in snapshot:
            if not _record_matches(rec, name, caller, from_seq, to_seq):
                continue
            if limit is not None and n >= limit:
                break
            yield rec
            n += 1

    def flush(self) -> None:
        return

    def close(self) -> None:
        with self._lock:
            self._records.clear()


# =============================================================================
# JSONL sink (durable)
# =============================================================================


class JsonlEventSink(EventSink):
    """
    Append-only JSONL sink. Each line is one EventRecord:

        {"seq": 3, "log_index": 0, "caller": "0x…",
         "event": "ProfileUpdated", "args": {"key": "x", "value": "2"}}

    `flush()` fsyncs the file descriptor. One instance should own the file.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = os.fspath(path)
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        self._fh = open(self._path, "a+", encoding="utf-8", buffering=1)  # line-buffered
        self._lock = threading.RLock()
        self._log = logging.getLogger(__name__)

    @property
    def path(self) -> str:
        return self._path

    def last_seq(self) -> int:
        """Highest seq already in the file (0 when empty)."""
        last = 0
        for rec in self.get_events():
            last = max(last, rec.seq)
        return last

    def append(self, event: ProfileEvent, *, seq: int, log_index: int, caller: str) -> EventRecord:
        rec = EventRecord(seq=seq, log_index=log_index, caller=caller, event=event)
        line = json.dumps(rec.to_dict(), separators=(",", ":"))
        with self._lock:
            self._fh.write(line + "\n")
        return rec

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        caller: Optional[str] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        with self._lock:
            self._fh.flush()
            self._fh.seek(0)
            lines = self._fh.readlines()
        count = 0
        for line in lines:
            if not line.strip():
                continue
            try:
                rec = EventRecord.from_dict(json.loads(line))
            except (ValueError, KeyError, TypeError) as e:
                self._log.warning("Skipping malformed event line: %s (%r)", line[:120], e)
                continue
            if not _record_matches(rec, name, caller, from_seq, to_seq):
                continue
            if limit is not None and count >= limit:
                break
            yield rec
            count += 1

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()
            os.fsync(self._fh.fileno())

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()


# =============================================================================
# Null sink
# =============================================================================


class NullEventSink(EventSink):
    """A sink that drops everything."""

    def append(self, event: ProfileEvent, *, seq: int, log_index: int, caller: str) -> EventRecord:
        return EventRecord(seq=seq, log_index=log_index, caller=caller, event=event)

    def get_events(
        self,
        *,
        name: Optional[str] = None,
        caller: Optional[str] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        return iter(())

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


__all__ = [
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
]

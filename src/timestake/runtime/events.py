# src/timestake/runtime/events.py
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

Json = Dict[str, Any]

log = logging.getLogger("timestake.events")


def _now_ms() -> int:
    return int(time.time() * 1000)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a single JSONL log event."""
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.info(" ".join(parts))


@dataclass(frozen=True)
class PoolEvent:
    seq: int
    name: str
    fields: Json = field(default_factory=dict)
    ts: int = 0

    def to_json(self) -> Json:
        return {"seq": self.seq, "event": self.name, "ts": self.ts, **self.fields}


class EventLog:
    """Append-only audit trail of committed pool notifications.

    Subscribers are called synchronously after commit, once every event of the
    operation is recorded. They observe the pool but must not submit operations
    from inside the callback. A subscriber that raises is logged and skipped;
    the operation it observed has already committed.
    """

    def __init__(self, *, logger: logging.Logger = log) -> None:
        self._events: List[PoolEvent] = []
        self._subscribers: List[Callable[[PoolEvent], None]] = []
        self._lock = threading.Lock()
        self._logger = logger

    def subscribe(self, fn: Callable[[PoolEvent], None]) -> None:
        self._subscribers.append(fn)

    def _record(self, raw: Json, ts: int) -> PoolEvent:
        fields = {k: v for k, v in raw.items() if k != "event"}
        with self._lock:
            ev = PoolEvent(seq=len(self._events) + 1, name=str(raw.get("event", "")), fields=fields, ts=int(ts))
            self._events.append(ev)
        log_event(self._logger, ev.name, seq=ev.seq, ts=ev.ts, **fields)
        return ev

    def _notify(self, ev: PoolEvent) -> None:
        for fn in list(self._subscribers):
            try:
                fn(ev)
            except Exception as exc:
                log_event(self._logger, "subscriber_failed", seq=ev.seq, name=ev.name, error=repr(exc))

    def emit(self, raw: Json, *, ts: int) -> PoolEvent:
        ev = self._record(raw, ts)
        self._notify(ev)
        return ev

    def emit_all(self, raws: List[Json], *, ts: int) -> List[PoolEvent]:
        """Record every event of one operation, then notify subscribers in order."""
        evs = [self._record(raw, ts) for raw in raws]
        for ev in evs:
            self._notify(ev)
        return evs

    def list(self, *, since_seq: int = 0, limit: int = 100) -> List[PoolEvent]:
        with self._lock:
            out = [e for e in self._events if e.seq > int(since_seq)]
        return out[: max(int(limit), 0)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


__all__ = ["log_event", "PoolEvent", "EventLog"]

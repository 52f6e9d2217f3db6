"""Lightweight trace recorder for discovery and routing decisions.

- Zero overhead when disabled (``record`` is a log call and nothing else).
- ContextVar-based, so discovery and routing code need no extra plumbing.
- Every record is also emitted on the ``envboot.trace`` logger at DEBUG.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("envboot.trace")

_ACTIVE_RECORDER: ContextVar["TraceRecorder | None"] = ContextVar("_ACTIVE_RECORDER", default=None)


@dataclass(frozen=True)
class TraceRecord:
    event: str
    meta: Dict[str, Any]

    def format(self) -> str:
        details = " ".join(f"{k}={v}" for k, v in sorted(self.meta.items()))
        return f"{self.event} {details}".rstrip()


class TraceRecorder:
    """Collects trace records in emission order."""

    def __init__(self) -> None:
        self._records: List[TraceRecord] = []

    @property
    def records(self) -> List[TraceRecord]:
        return list(self._records)

    def add(self, event: str, **meta: Any) -> TraceRecord:
        rec = TraceRecord(event=event, meta=dict(meta))
        self._records.append(rec)
        return rec

    def events(self, event: str) -> List[TraceRecord]:
        return [r for r in self._records if r.event == event]

    def to_dict(self) -> Dict[str, Any]:
        return {"records": [asdict(r) for r in self._records]}


@contextmanager
def enable_tracing(recorder: TraceRecorder) -> Iterator[TraceRecorder]:
    token = _ACTIVE_RECORDER.set(recorder)
    try:
        yield recorder
    finally:
        _ACTIVE_RECORDER.reset(token)


def record(event: str, **meta: Any) -> None:
    recorder = _ACTIVE_RECORDER.get()
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(TraceRecord(event=event, meta=dict(meta)).format())
    if recorder is not None:
        recorder.add(event, **meta)


def get_active_recorder() -> Optional[TraceRecorder]:
    return _ACTIVE_RECORDER.get()


__all__ = ["TraceRecord", "TraceRecorder", "enable_tracing", "record", "get_active_recorder"]

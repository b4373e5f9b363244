"""
Per-cycle timing for hotspot syncs and recommendation requests.

A sync cycle or a recommendations request opens a trace with ``traced()``.
Inside it, ``trace.stage(name)`` times a step ("fetch", "merge", "persist"
for a sync; "locate", "weather", "rank" for a request) and the HTTP clients
report every attempt through ``record_call()``, which does nothing when no
trace is open. Closing the trace logs one ``[trace-summary]`` line.

    with traced("sync") as trace:
        with trace.stage("fetch"):
            points = remote.fetch_all()   # -> record_call("remote_hotspots", "ok", ...)
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CallRecord:
    """One outbound attempt, or a cache hit that replaced one."""
    service: str            # "remote_hotspots" | "open_meteo"
    outcome: str            # "ok", "timeout", "server_error", "cache_hit", ...
    elapsed_ms: int = 0
    status_code: int = 0
    stage: str = ""


@dataclass
class StageRecord:
    name: str
    elapsed_ms: int
    error: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error)


class TraceContext:
    def __init__(self, kind: str, trace_id: Optional[str] = None):
        self.kind = kind
        self.trace_id = trace_id or f"{kind}-{uuid.uuid4().hex[:8]}"
        self.stages: List[StageRecord] = []
        self.calls: List[CallRecord] = []
        self._active_stage = ""
        self._started = time.monotonic()

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the block as ``name``; an exception marks the stage failed and propagates."""
        self._active_stage = name
        t0 = time.monotonic()
        error = ""
        try:
            yield
        except Exception as e:
            error = f"{type(e).__name__}: {str(e)[:200]}"
            raise
        finally:
            self._active_stage = ""
            rec = StageRecord(name, int((time.monotonic() - t0) * 1000), error)
            self.stages.append(rec)
            logger.debug("[trace] %s stage=%s %dms %s", self.trace_id, name, rec.elapsed_ms,
                         error or "ok")

    def add_call(self, service: str, outcome: str, elapsed_ms: int = 0, status_code: int = 0):
        self.calls.append(CallRecord(service, outcome, elapsed_ms, status_code, self._active_stage))

    def calls_for(self, service: str) -> List[CallRecord]:
        return [c for c in self.calls if c.service == service]

    @property
    def failed_stage(self) -> Optional[str]:
        return next((s.name for s in self.stages if s.failed), None)

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "kind": self.kind,
            "elapsed_ms": int((time.monotonic() - self._started) * 1000),
            "stages": [s.name for s in self.stages],
            "failed_stage": self.failed_stage,
            "calls": len(self.calls),
            "cache_hits": sum(1 for c in self.calls if c.outcome == "cache_hit"),
        }

    def log_summary(self):
        s = self.summary_dict()
        logger.info(
            "[trace-summary] trace=%s stages=%s calls=%d cache_hits=%d failed=%s total_ms=%d",
            s["trace_id"],
            ",".join(s["stages"]) or "-",
            s["calls"],
            s["cache_hits"],
            s["failed_stage"] or "-",
            s["elapsed_ms"],
        )


_local = threading.local()


def current_trace() -> Optional[TraceContext]:
    return getattr(_local, "trace", None)


@contextmanager
def traced(kind: str, trace_id: Optional[str] = None) -> Iterator[TraceContext]:
    """Open a trace for this thread; the previous one is restored on exit."""
    previous = current_trace()
    trace = TraceContext(kind, trace_id)
    _local.trace = trace
    try:
        yield trace
    finally:
        trace.log_summary()
        _local.trace = previous


def record_call(service: str, outcome: str, elapsed_ms: int = 0, status_code: int = 0):
    trace = current_trace()
    if trace is not None:
        trace.add_call(service, outcome, elapsed_ms, status_code)

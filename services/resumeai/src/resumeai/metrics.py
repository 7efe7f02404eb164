from __future__ import annotations

import threading

from common.utils import now_utc_iso
from pydantic import BaseModel, Field


class RouteStats(BaseModel):
    count: int = 0
    statuses: dict[str, int] = Field(default_factory=dict)
    latency_ms_sum: float = 0.0
    latency_ms_max: float = 0.0

    def record(self, status_code: int, duration_ms: float) -> None:
        self.count += 1
        family = f"{status_code // 100}xx"
        self.statuses[family] = self.statuses.get(family, 0) + 1
        self.latency_ms_sum += duration_ms
        self.latency_ms_max = max(self.latency_ms_max, duration_ms)

    def summary(self) -> dict[str, float | int]:
        return {
            "count": self.count,
            **self.statuses,
            "latency_ms_avg": round(self.latency_ms_sum / self.count, 3) if self.count else 0.0,
            "latency_ms_max": round(self.latency_ms_max, 3),
        }


class MetricsSnapshot(BaseModel):
    generated_at: str
    totals: dict[str, int]
    endpoints: dict[str, dict[str, float | int]]
    events: dict[str, int]


class MetricsStore:
    """Request counters keyed by route template, plus named pipeline event counters."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._routes: dict[str, RouteStats] = {}
        self._events: dict[str, int] = {}

    def observe(self, *, method: str, path: str, status_code: int, duration_ms: float) -> None:
        with self._lock:
            stats = self._routes.setdefault(f"{method} {path}", RouteStats())
            stats.record(status_code, duration_ms)

    def increment(self, event: str, amount: int = 1) -> None:
        with self._lock:
            self._events[event] = self._events.get(event, 0) + amount

    def event_count(self, event: str) -> int:
        with self._lock:
            return self._events.get(event, 0)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            requests = sum(stats.count for stats in self._routes.values())
            errors = sum(
                stats.statuses.get("4xx", 0) + stats.statuses.get("5xx", 0)
                for stats in self._routes.values()
            )
            return MetricsSnapshot(
                generated_at=now_utc_iso(),
                totals={"requests": requests, "errors": errors},
                endpoints={key: stats.summary() for key, stats in self._routes.items()},
                events=dict(self._events),
            )

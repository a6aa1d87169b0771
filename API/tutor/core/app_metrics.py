"""In-memory request metrics for the tutoring API: counts, errors and latency per route."""
from __future__ import annotations

import time
from collections import Counter, deque
from threading import Lock

from starlette.requests import Request
from starlette.responses import Response

_LATENCY_WINDOW = 500
_ERROR_RATE_ALERT_THRESHOLD = 0.10
# Generation dominates latency; a local 7B model routinely needs several seconds.
_LATENCY_P95_ALERT_MS = 30000

_lock = Lock()
_request_count = 0
_error_count = 0
_route_counts: Counter[str] = Counter()
_latencies: deque[float] = deque(maxlen=_LATENCY_WINDOW)


def record_request(route: str, duration_sec: float, is_error: bool) -> None:
    global _request_count, _error_count
    with _lock:
        _request_count += 1
        if is_error:
            _error_count += 1
        _route_counts[route] += 1
        _latencies.append(duration_sec)


def _percentile(sorted_values: list[float], fraction: float) -> float | None:
    if not sorted_values:
        return None
    return round(sorted_values[int((len(sorted_values) - 1) * fraction)], 2)


def get_metrics() -> dict:
    with _lock:
        total = _request_count
        errors = _error_count
        routes = dict(_route_counts)
        latencies_ms = sorted(lat * 1000 for lat in _latencies)

    error_rate = (errors / total) if total else 0.0
    p95 = _percentile(latencies_ms, 0.95)
    alerts: list[str] = []
    if total and error_rate >= _ERROR_RATE_ALERT_THRESHOLD:
        alerts.append("high_error_rate")
    if p95 is not None and p95 >= _LATENCY_P95_ALERT_MS:
        alerts.append("high_latency_p95")

    return {
        "request_count": total,
        "error_count": errors,
        "error_rate": round(error_rate, 4),
        "routes": routes,
        "latency_ms_p50": _percentile(latencies_ms, 0.50),
        "latency_ms_p95": p95,
        "alerts": alerts,
    }


def reset_metrics() -> None:
    global _request_count, _error_count
    with _lock:
        _request_count = 0
        _error_count = 0
        _route_counts.clear()
        _latencies.clear()


async def metrics_middleware(request: Request, call_next) -> Response:
    """Time every API request; /health and /metrics are not counted."""
    path = request.url.path
    if path == "/health" or path.startswith("/metrics"):
        return await call_next(request)
    start = time.perf_counter()
    response = await call_next(request)
    route = request.scope.get("route")
    record_request(getattr(route, "path", path), time.perf_counter() - start, response.status_code >= 400)
    return response

"""In-memory relevance gate metrics: which path each retrieval took and how similar the kept content was."""
from __future__ import annotations

from collections import Counter, deque
from threading import Lock

OUTCOMES = ("mismatch", "exact", "cross", "empty", "error")
_SIMILARITY_WINDOW = 200

_lock = Lock()
_outcomes: Counter[str] = Counter()
_similarities: deque[float] = deque(maxlen=_SIMILARITY_WINDOW)


def record_retrieval(outcome: str, best_similarity: float | None = None) -> None:
    with _lock:
        _outcomes[outcome] += 1
        if best_similarity is not None:
            _similarities.append(max(0.0, min(1.0, float(best_similarity))))


def get_retrieval_metrics() -> dict:
    with _lock:
        outcomes = {name: _outcomes.get(name, 0) for name in OUTCOMES}
        values = list(_similarities)
    total = sum(outcomes.values())
    return {
        "retrieval_count": total,
        "outcomes": outcomes,
        "content_hit_ratio": round((outcomes["exact"] + outcomes["cross"]) / total, 4) if total else None,
        "avg_best_similarity": round(sum(values) / len(values), 4) if values else None,
    }


def reset_retrieval_metrics() -> None:
    with _lock:
        _outcomes.clear()
        _similarities.clear()

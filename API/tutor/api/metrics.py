from fastapi import APIRouter

from tutor.core.app_metrics import get_metrics
from tutor.core.resilience import get_breakers_status
from tutor.core.retrieval_metrics import get_retrieval_metrics

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/app")
async def app_metrics():
    """Request latency (p50/p95), error rate, relevance gate outcomes and Ollama breaker state."""
    out = get_metrics()
    out["retrieval"] = get_retrieval_metrics()
    retrieval = out["retrieval"]
    if retrieval["retrieval_count"] >= 5 and retrieval["outcomes"]["error"] / retrieval["retrieval_count"] > 0.5:
        out["alerts"] = list(out.get("alerts", [])) + ["retrieval_failing"]
    out["breakers"] = get_breakers_status()
    if any(b.get("state") == "open" for b in out["breakers"].values()):
        out["alerts"] = list(out.get("alerts", [])) + ["ollama_circuit_open"]
    return out

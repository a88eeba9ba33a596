"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.roster.api.http.deps import get_record_store
from src.roster.core.storage import RecordStore
from src.roster.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Basic health check endpoint - checks if app is running.

    This is a liveness probe that returns 200 OK as long as the application
    process is running. It does not check dependencies.
    """
    return {"status": "healthy", "service": "roster-api"}


@router.get("/ready", response_model=None)
def readiness(
    store: RecordStore = Depends(get_record_store),
) -> dict[str, Any] | JSONResponse:
    """Readiness check reporting the record store state.

    Returns 503 while the most recent write of the roster file failed: the
    service keeps answering from memory, but changes are not durable.
    Recent persistence warnings are included either way.
    """
    with store.lock:
        record_count = len(store.records)
        unreadable_count = len(store.unreadable)

    body = {
        "status": "degraded" if store.degraded else "ready",
        "environment": get_config().app.environment,
        "checks": {
            "storage": {
                "status": "unhealthy" if store.degraded else "healthy",
                "location": store.location,
                "records": record_count,
                "unreadable": unreadable_count,
                "failures": store.failure_count,
                "recent_warnings": [w.to_dict() for w in store.recent_warnings],
            }
        },
    }

    if store.degraded:
        return JSONResponse(status_code=503, content=body)
    return body

"""Health and metrics endpoints."""

from fastapi import APIRouter

from callqual.api.deps import ControllerDep

router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/metrics")
async def metrics(controller: ControllerDep):
    """Basic pipeline metrics for observability."""
    return {
        "service": "callqual",
        "version": "0.1.0",
        "provider": controller.orchestrator.provider.name,
        "queue_depth": controller.queue.depth,
        "workers_running": controller.queue.running,
    }

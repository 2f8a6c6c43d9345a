from fastapi import APIRouter
from ...models.schemas import HealthResponse
from ...services.gateway import gateway

router = APIRouter(tags=["Health"])

@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns service status, adapter connection state, and push listener count.
    """
    adapter = gateway.adapter
    return HealthResponse(
        status="healthy" if adapter and adapter.is_connected else "degraded",
        adapter=adapter.name if adapter else "none",
        connected=adapter.is_connected if adapter else False,
        active_subscribers=len(gateway.active_subscribers),
    )

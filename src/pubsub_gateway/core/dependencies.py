"""FastAPI dependencies for common request handling."""

from fastapi import HTTPException, status

from ..services.gateway import PubSubGateway, gateway


async def get_gateway() -> PubSubGateway:
    """
    Dependency that hands out the gateway once its adapter is usable.

    Usage:
        @router.get("/endpoint", response_class=PlainTextResponse)
        async def my_endpoint(service: PubSubGateway = Depends(get_gateway)):
            return await service.do_something()
    """
    if not gateway.adapter:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pub/Sub adapter not initialized",
        )

    if not gateway.adapter.is_connected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pub/Sub adapter not connected",
        )

    return gateway

from fastapi import APIRouter
from ...models.schemas import SubscriberInfo, SubscriberListResponse
from ...services.gateway import gateway

router = APIRouter(tags=["Admin"])

@router.get("/subscribers", response_model=SubscriberListResponse)
async def list_subscribers() -> SubscriberListResponse:
    """
    List the push listeners registered through /subscribe.

    Note: This endpoint should be protected in production.
    """
    subscribers = gateway.active_subscribers
    return SubscriberListResponse(
        count=len(subscribers),
        subscribers=[
            SubscriberInfo(
                subscription=subscription_name,
                cancelled=handle.cancelled(),
            )
            for subscription_name, handle in subscribers
        ],
    )

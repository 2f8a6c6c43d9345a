from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ...core.dependencies import get_gateway
from ...services.gateway import PubSubGateway

router = APIRouter(tags=["Resources"], default_response_class=PlainTextResponse)


@router.post("/createTopic")
async def create_topic(
    topic_name: str = Query(..., alias="topicName"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """Create a topic; reports failure when the backend creates nothing."""
    return await service.create_topic(topic_name)


@router.post("/createSubscription")
async def create_subscription(
    topic_name: str = Query(..., alias="topicName"),
    subscription_name: str = Query(..., alias="subscriptionName"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """Create a subscription bound to an existing topic."""
    return await service.create_subscription(topic_name, subscription_name)


@router.post("/deleteTopic")
async def delete_topic(
    topic_name: str = Query(..., alias="topic"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    return await service.delete_topic(topic_name)


@router.post("/deleteSubscription")
async def delete_subscription(
    subscription_name: str = Query(..., alias="subscription"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    return await service.delete_subscription(subscription_name)

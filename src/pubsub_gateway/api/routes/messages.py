import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ...core.dependencies import get_gateway
from ...services.gateway import PubSubGateway

router = APIRouter(tags=["Messages"], default_response_class=PlainTextResponse)
logger = logging.getLogger(__name__)


@router.get("/postMessage")
async def post_message(
    topic_name: str = Query(..., alias="topicName"),
    message: str = Query(...),
    count: int = Query(..., ge=0, description="Number of suffixed copies to publish"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """
    Publish count messages to a topic without waiting for delivery.

    Payload i (1-based) is the message text followed by i.
    """
    return await service.publish(topic_name, message, count)


@router.get("/pull")
async def pull(
    subscription_name: str = Query(..., alias="subscription1"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """
    Pull a small batch from one subscription and acknowledge it.

    Returns the listing of acknowledged messages, or "Acking failed" when
    the batched acknowledgement did not complete.
    """
    return await service.pull(subscription_name)


@router.get("/multipull")
async def multipull(
    subscription_name1: str = Query(..., alias="subscription1"),
    subscription_name2: str = Query(..., alias="subscription2"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """Pull from two subscriptions, merge, and acknowledge the merged set."""
    return await service.multi_pull(subscription_name1, subscription_name2)


@router.get("/subscribe")
async def subscribe(
    subscription_name: str = Query(..., alias="subscription"),
    service: PubSubGateway = Depends(get_gateway),
) -> str:
    """
    Attach a push listener that logs and acknowledges every message.

    The listener keeps running after the response is sent.
    """
    result = await service.subscribe(subscription_name)
    logger.info(f"Push listener attached to {subscription_name}")
    return result

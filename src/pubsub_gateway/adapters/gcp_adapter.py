"""
Google Cloud Pub/Sub adapter for the Pub/Sub Gateway.

This adapter implements the PubSubAdapter interface on top of the
google-cloud-pubsub publisher and subscriber clients. The clients handle
batching, retries, flow control and leasing; blocking admin, pull and ack
calls are moved off the event loop onto worker threads.
"""
import asyncio
import logging
from collections import defaultdict
from concurrent.futures import Future
from typing import Dict, Iterable, List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import pubsub_v1

from .base import (
    AcknowledgeError,
    MessageCallback,
    PublishError,
    PubSubAdapter,
    PulledMessage,
    ResourceExistsError,
    ResourceNotFoundError,
    SubscriberHandle,
    SubscriptionError,
    Topic,
)

logger = logging.getLogger(__name__)


class GooglePubSubAdapter(PubSubAdapter):
    """
    Google Cloud Pub/Sub adapter.

    Resource names given to the adapter are short names; they are expanded
    to projects/<project>/topics/<name> and
    projects/<project>/subscriptions/<name> paths. Set PUBSUB_EMULATOR_HOST
    to target the local emulator; the client library picks it up itself.
    """

    def __init__(self, project_id: str):
        """
        Initialize the Google Pub/Sub adapter.

        Args:
            project_id: Google Cloud project owning the topics and subscriptions
        """
        self._project_id = project_id
        self._publisher: Optional[pubsub_v1.PublisherClient] = None
        self._subscriber: Optional[pubsub_v1.SubscriberClient] = None

    async def connect(self) -> None:
        """Create the publisher and subscriber clients."""
        if self._publisher is not None and self._subscriber is not None:
            logger.warning("Google Pub/Sub clients already created")
            return

        logger.info(f"Connecting to Google Pub/Sub for project {self._project_id}")

        try:
            self._publisher = pubsub_v1.PublisherClient()
            self._subscriber = pubsub_v1.SubscriberClient()
        except Exception as e:
            logger.error(f"Failed to create Google Pub/Sub clients: {e}")
            self._publisher = None
            self._subscriber = None
            raise ConnectionError(
                f"Failed to connect to Google Pub/Sub for project {self._project_id}: {e}"
            ) from e

    async def disconnect(self) -> None:
        """Flush pending publishes and close the clients."""
        if self._publisher is not None:
            try:
                await asyncio.to_thread(self._publisher.stop)
            except Exception as e:
                logger.warning(f"Error stopping publisher: {e}")
            self._publisher = None

        if self._subscriber is not None:
            try:
                self._subscriber.close()
            except Exception as e:
                logger.warning(f"Error closing subscriber: {e}")
            self._subscriber = None

        logger.info("Google Pub/Sub clients closed")

    async def create_topic(self, name: str) -> Optional[Topic]:
        publisher = self._require_publisher()
        topic_path = publisher.topic_path(self._project_id, name)

        try:
            topic = await asyncio.to_thread(
                publisher.create_topic, request={"name": topic_path}
            )
        except gcp_exceptions.AlreadyExists:
            logger.warning(f"Topic {topic_path} already exists")
            return None

        logger.info(f"Created topic {topic.name}")
        return Topic(name=name, path=topic.name)

    async def delete_topic(self, name: str) -> None:
        publisher = self._require_publisher()
        topic_path = publisher.topic_path(self._project_id, name)

        try:
            await asyncio.to_thread(
                publisher.delete_topic, request={"topic": topic_path}
            )
        except gcp_exceptions.NotFound as e:
            raise ResourceNotFoundError(f"Topic not found: {topic_path}") from e

        logger.info(f"Deleted topic {topic_path}")

    async def create_subscription(self, name: str, topic_name: str) -> None:
        publisher = self._require_publisher()
        subscriber = self._require_subscriber()
        topic_path = publisher.topic_path(self._project_id, topic_name)
        subscription_path = subscriber.subscription_path(self._project_id, name)

        try:
            await asyncio.to_thread(
                subscriber.create_subscription,
                request={"name": subscription_path, "topic": topic_path},
            )
        except gcp_exceptions.NotFound as e:
            raise ResourceNotFoundError(f"Topic not found: {topic_path}") from e
        except gcp_exceptions.AlreadyExists as e:
            raise ResourceExistsError(
                f"Subscription already exists: {subscription_path}"
            ) from e

        logger.info(f"Created subscription {subscription_path} on {topic_path}")

    async def delete_subscription(self, name: str) -> None:
        subscriber = self._require_subscriber()
        subscription_path = subscriber.subscription_path(self._project_id, name)

        try:
            await asyncio.to_thread(
                subscriber.delete_subscription,
                request={"subscription": subscription_path},
            )
        except gcp_exceptions.NotFound as e:
            raise ResourceNotFoundError(
                f"Subscription not found: {subscription_path}"
            ) from e

        logger.info(f"Deleted subscription {subscription_path}")

    def publish(self, topic_name: str, data: bytes) -> "Future[str]":
        """
        Hand a message to the batching publisher.

        The client returns immediately; the future resolves with the
        server-assigned message ID or the publish error.
        """
        publisher = self._require_publisher()
        topic_path = publisher.topic_path(self._project_id, topic_name)

        try:
            return publisher.publish(topic_path, data)
        except RuntimeError as e:
            # Raised once the publisher has been stopped
            raise PublishError(f"Failed to publish to {topic_path}: {e}") from e

    async def pull(
        self,
        subscription_name: str,
        max_messages: int,
        return_immediately: bool = True,
    ) -> List[PulledMessage]:
        subscriber = self._require_subscriber()
        subscription_path = subscriber.subscription_path(self._project_id, subscription_name)

        response = await asyncio.to_thread(
            subscriber.pull,
            request={
                "subscription": subscription_path,
                "max_messages": max_messages,
                "return_immediately": return_immediately,
            },
        )

        messages = [
            PulledMessage(
                subscription=subscription_path,
                message_id=received.message.message_id,
                data=received.message.data,
                ack_id=received.ack_id,
            )
            for received in response.received_messages
        ]
        logger.debug(f"Pulled {len(messages)} message(s) from {subscription_path}")
        return messages

    async def acknowledge(self, messages: Iterable[PulledMessage]) -> None:
        subscriber = self._require_subscriber()

        # Acknowledge requests are scoped to one subscription
        ack_ids: Dict[str, List[str]] = defaultdict(list)
        for message in messages:
            ack_ids[message.subscription].append(message.ack_id)

        def acknowledge_batch() -> None:
            for subscription_path, ids in ack_ids.items():
                subscriber.acknowledge(
                    request={"subscription": subscription_path, "ack_ids": ids}
                )

        try:
            await asyncio.to_thread(acknowledge_batch)
        except gcp_exceptions.GoogleAPICallError as e:
            raise AcknowledgeError(f"Failed to acknowledge messages: {e}") from e

    async def subscribe(
        self,
        subscription_name: str,
        callback: MessageCallback,
    ) -> SubscriberHandle:
        """
        Open a streaming pull on the subscription.

        Returns the StreamingPullFuture; cancelling it stops the listener.
        """
        subscriber = self._require_subscriber()
        subscription_path = subscriber.subscription_path(self._project_id, subscription_name)

        try:
            future = subscriber.subscribe(subscription_path, callback=callback)
        except Exception as e:
            raise SubscriptionError(
                f"Failed to subscribe to {subscription_path}: {e}"
            ) from e

        logger.info(f"Streaming pull open on {subscription_path}")
        return future

    @property
    def is_connected(self) -> bool:
        """Check if both clients exist."""
        return self._publisher is not None and self._subscriber is not None

    def _require_publisher(self) -> pubsub_v1.PublisherClient:
        if self._publisher is None:
            raise ConnectionError("Google Pub/Sub adapter not connected")
        return self._publisher

    def _require_subscriber(self) -> pubsub_v1.SubscriberClient:
        if self._subscriber is None:
            raise ConnectionError("Google Pub/Sub adapter not connected")
        return self._subscriber

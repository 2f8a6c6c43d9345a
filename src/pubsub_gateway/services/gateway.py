import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Iterable, List, Optional, Tuple

from ..core.config import check_required_settings, settings
from ..adapters.base import PubSubAdapter, PulledMessage, ReceivedMessage, SubscriberHandle
from ..adapters.gcp_adapter import GooglePubSubAdapter
from ..adapters.memory_adapter import MemoryAdapter
from ..models.results import AckFailed, NoMessages, PullResult, PullSucceeded

logger = logging.getLogger(__name__)


class PubSubGateway:
    """
    Maps gateway requests onto the configured Pub/Sub adapter.
    Singleton-like service that owns the adapter lifecycle and the push
    listeners registered through it.
    """

    def __init__(self):
        self.adapter: Optional[PubSubAdapter] = None
        # (subscription name, handle) for every push listener registered
        self._subscribers: List[Tuple[str, SubscriberHandle]] = []
        self._subscribers_lock = threading.Lock()

    def _get_adapter(self) -> PubSubAdapter:
        """Factory function to create the appropriate adapter based on configuration."""
        adapter_type = settings.pubsub_adapter.lower()

        if adapter_type == "pubsub":
            check_required_settings(["gcp_project_id"])
            return GooglePubSubAdapter(project_id=settings.gcp_project_id)
        elif adapter_type == "memory":
            return MemoryAdapter()
        else:
            raise ValueError(f"Unknown adapter type: {adapter_type}")

    async def initialize(self, adapter: Optional[PubSubAdapter] = None) -> None:
        """Create (unless given) and connect the adapter."""
        self.adapter = adapter or self._get_adapter()
        logger.info(f"Starting Pub/Sub Gateway with {self.adapter.name}")

        try:
            await self.adapter.connect()
            logger.info(f"Pub/Sub Gateway ready on port {settings.service_port}")
        except Exception as e:
            logger.error(f"Failed to connect adapter: {e}")
            # Continue anyway for graceful degradation in dev mode
            if not settings.debug:
                raise

    async def shutdown(self) -> None:
        """Stop every push listener and disconnect the adapter."""
        logger.info("Shutting down Pub/Sub Gateway")

        with self._subscribers_lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()

        for subscription_name, handle in subscribers:
            try:
                handle.cancel()
            except Exception as e:
                logger.warning(f"Error stopping listener on {subscription_name}: {e}")

        if self.adapter:
            await self.adapter.disconnect()

        logger.info("Pub/Sub Gateway shutdown complete")

    @property
    def active_subscribers(self) -> List[Tuple[str, SubscriberHandle]]:
        """Snapshot of the retained push listeners."""
        with self._subscribers_lock:
            return list(self._subscribers)

    async def create_topic(self, topic_name: str) -> str:
        topic = await self._require_adapter().create_topic(topic_name)
        if topic is None:
            return "Topic creation failed."
        return "Topic creation successful."

    async def create_subscription(self, topic_name: str, subscription_name: str) -> str:
        await self._require_adapter().create_subscription(subscription_name, topic_name)
        return "Subscription creation successful."

    async def publish(self, topic_name: str, message: str, count: int) -> str:
        """
        Publish count copies of message, suffixed 1..count.

        The publish futures are not awaited; failures only reach the log.
        """
        adapter = self._require_adapter()

        for i in range(1, count + 1):
            future = adapter.publish(topic_name, f"{message}{i}".encode("utf-8"))
            future.add_done_callback(self._log_publish_failure(topic_name))

        logger.info(f"Dispatched {count} message(s) to topic {topic_name}")
        return "Messages published asynchronously; status unknown."

    async def pull(self, subscription_name: str) -> str:
        messages = await self._require_adapter().pull(
            subscription_name, settings.pull_max_messages, True
        )
        result = await self._acknowledge(messages)
        return result.render()

    async def multi_pull(self, subscription_name1: str, subscription_name2: str) -> str:
        adapter = self._require_adapter()
        first = await adapter.pull(subscription_name1, settings.multipull_max_messages, True)
        second = await adapter.pull(subscription_name2, settings.multipull_max_messages, True)

        # Merge by message equality, keeping first-seen order
        merged = list(dict.fromkeys([*first, *second]))
        result = await self._acknowledge(merged)
        return result.render()

    async def subscribe(self, subscription_name: str) -> str:
        handle = await self._require_adapter().subscribe(
            subscription_name, self._make_listener(subscription_name)
        )

        with self._subscribers_lock:
            self._subscribers.append((subscription_name, handle))

        return "Subscribed."

    async def delete_topic(self, topic_name: str) -> str:
        await self._require_adapter().delete_topic(topic_name)
        return "Topic deleted successfully."

    async def delete_subscription(self, subscription_name: str) -> str:
        await self._require_adapter().delete_subscription(subscription_name)
        return "Subscription deleted successfully."

    def _require_adapter(self) -> PubSubAdapter:
        if not self.adapter:
            raise RuntimeError("Pub/Sub adapter not initialized")

        if not self.adapter.is_connected:
            raise RuntimeError("Pub/Sub adapter not connected")

        return self.adapter

    async def _acknowledge(self, messages: Iterable[PulledMessage]) -> PullResult:
        """Acknowledge the whole pulled set as one batch, bounded by the ack timeout."""
        messages = list(messages)
        if not messages:
            return NoMessages()

        try:
            await asyncio.wait_for(
                self._require_adapter().acknowledge(messages),
                timeout=settings.ack_timeout_seconds,
            )
        except Exception as e:
            logger.warning("Acking failed.", exc_info=True)
            return AckFailed(reason=str(e) or e.__class__.__name__)

        return PullSucceeded(messages=messages)

    @staticmethod
    def _make_listener(subscription_name: str):
        def on_message(message: ReceivedMessage) -> None:
            payload = message.data.decode("utf-8", errors="replace")
            logger.info(f"Message received from {subscription_name} subscription: {payload}")
            message.ack()

        return on_message

    @staticmethod
    def _log_publish_failure(topic_name: str):
        def on_done(future: "Future[str]") -> None:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                logger.warning(f"Publish to {topic_name} failed: {error}")

        return on_done


# Global instance
gateway = PubSubGateway()

"""
In-memory adapter for the Pub/Sub Gateway.

This adapter is primarily used for:
- Local development without Google Cloud credentials
- Unit testing
- Demo purposes

Topics fan messages out to every bound subscription. A subscription with a
push listener hands messages to its listeners synchronously during publish;
otherwise they wait in a backlog until pulled. Delivered messages stay leased
until acknowledged.
"""
import itertools
import logging
import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from .base import (
    AcknowledgeError,
    MessageCallback,
    PubSubAdapter,
    PulledMessage,
    ResourceExistsError,
    ResourceNotFoundError,
    SubscriptionError,
    Topic,
)

logger = logging.getLogger(__name__)

# (message_id, data)
_Entry = Tuple[str, bytes]


class MemoryMessage:
    """A message handed to a push listener by the memory adapter."""

    def __init__(
        self,
        adapter: "MemoryAdapter",
        subscription: str,
        message_id: str,
        data: bytes,
        ack_id: str,
    ):
        self._adapter = adapter
        self._subscription = subscription
        self._ack_id = ack_id
        self.message_id = message_id
        self.data = data

    def ack(self) -> None:
        self._adapter._settle(self._subscription, self._ack_id, requeue=False)

    def nack(self) -> None:
        self._adapter._settle(self._subscription, self._ack_id, requeue=True)

    def __repr__(self) -> str:
        return f"MemoryMessage(message_id={self.message_id!r}, data={self.data!r})"


class MemorySubscriberHandle:
    """Handle for a push listener registered on the memory adapter."""

    def __init__(self, adapter: "MemoryAdapter", subscription: str, callback: MessageCallback):
        self._adapter = adapter
        self._cancelled = False
        self.subscription = subscription
        self.callback = callback

    def cancel(self) -> bool:
        if self._cancelled:
            return False
        self._cancelled = True
        self._adapter._remove_listener(self)
        return True

    def cancelled(self) -> bool:
        return self._cancelled


class MemoryAdapter(PubSubAdapter):
    """
    In-memory Pub/Sub adapter for development and testing.

    Features:
    - Topic fan-out to bound subscriptions
    - Leases with ack/nack semantics
    - Round-robin delivery across listeners of one subscription
    - No persistence (state lives for the adapter's lifetime)
    """

    def __init__(self):
        """Initialize the memory adapter."""
        self._connected = False
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._topics: Dict[str, Topic] = {}
        # Subscription name -> {"topic", "backlog", "leased", "listeners", "cursor"}
        self._subscriptions: Dict[str, Dict[str, Any]] = {}

    async def connect(self) -> None:
        """Mark adapter as connected."""
        if self._connected:
            logger.warning("Memory adapter already connected")
            return

        self._connected = True
        logger.info("Memory adapter connected (in-memory mode)")

    async def disconnect(self) -> None:
        """Disconnect and drop all topics and subscriptions."""
        with self._lock:
            for sub in self._subscriptions.values():
                for handle in list(sub["listeners"]):
                    handle.cancel()
            self._subscriptions.clear()
            self._topics.clear()
        self._connected = False
        logger.info("Memory adapter disconnected")

    async def create_topic(self, name: str) -> Optional[Topic]:
        self._ensure_connected()
        with self._lock:
            if name in self._topics:
                logger.warning(f"Topic {name} already exists")
                return None
            topic = Topic(name=name, path=name)
            self._topics[name] = topic

        logger.info(f"Created topic {name}")
        return topic

    async def delete_topic(self, name: str) -> None:
        self._ensure_connected()
        with self._lock:
            if name not in self._topics:
                raise ResourceNotFoundError(f"Topic not found: {name}")
            del self._topics[name]
            # Subscriptions outlive their topic but receive nothing further
            for sub in self._subscriptions.values():
                if sub["topic"] == name:
                    sub["topic"] = None

        logger.info(f"Deleted topic {name}")

    async def create_subscription(self, name: str, topic_name: str) -> None:
        self._ensure_connected()
        with self._lock:
            if topic_name not in self._topics:
                raise ResourceNotFoundError(f"Topic not found: {topic_name}")
            if name in self._subscriptions:
                raise ResourceExistsError(f"Subscription already exists: {name}")
            self._subscriptions[name] = {
                "topic": topic_name,
                "backlog": deque(),
                "leased": {},
                "listeners": [],
                "cursor": 0,
            }

        logger.info(f"Created subscription {name} on topic {topic_name}")

    async def delete_subscription(self, name: str) -> None:
        self._ensure_connected()
        with self._lock:
            sub = self._subscriptions.pop(name, None)
            if sub is None:
                raise ResourceNotFoundError(f"Subscription not found: {name}")
            for handle in list(sub["listeners"]):
                handle._cancelled = True

        logger.info(f"Deleted subscription {name}")

    def publish(self, topic_name: str, data: bytes) -> "Future[str]":
        """
        Publish a message to every subscription bound to the topic.

        Failures are reported through the returned future, never raised.
        """
        future: "Future[str]" = Future()

        if not self._connected:
            future.set_exception(ConnectionError("Memory adapter not connected"))
            return future

        with self._lock:
            if topic_name not in self._topics:
                future.set_exception(ResourceNotFoundError(f"Topic not found: {topic_name}"))
                return future

            message_id = str(next(self._ids))
            targets = [
                sub_name
                for sub_name, sub in self._subscriptions.items()
                if sub["topic"] == topic_name
            ]
            for sub_name in targets:
                self._subscriptions[sub_name]["backlog"].append((message_id, data))

        logger.debug(f"Published message {message_id} to {topic_name} ({len(targets)} subscriptions)")
        future.set_result(message_id)

        for sub_name in targets:
            self._dispatch(sub_name)

        return future

    async def pull(
        self,
        subscription_name: str,
        max_messages: int,
        return_immediately: bool = True,
    ) -> List[PulledMessage]:
        self._ensure_connected()
        pulled: List[PulledMessage] = []

        with self._lock:
            sub = self._get_subscription(subscription_name)
            backlog: Deque[_Entry] = sub["backlog"]
            while backlog and len(pulled) < max_messages:
                message_id, data = backlog.popleft()
                ack_id = uuid4().hex
                sub["leased"][ack_id] = (message_id, data)
                pulled.append(
                    PulledMessage(
                        subscription=subscription_name,
                        message_id=message_id,
                        data=data,
                        ack_id=ack_id,
                    )
                )

        logger.debug(f"Pulled {len(pulled)} message(s) from {subscription_name}")
        return pulled

    async def acknowledge(self, messages: Iterable[PulledMessage]) -> None:
        self._ensure_connected()
        batch = list(messages)

        with self._lock:
            # Validate the whole batch before settling any of it
            for message in batch:
                if message.subscription not in self._subscriptions:
                    raise AcknowledgeError(
                        f"Subscription not found: {message.subscription}"
                    )
            for message in batch:
                # Unknown ack IDs are ignored, as expired leases are by Pub/Sub
                self._subscriptions[message.subscription]["leased"].pop(message.ack_id, None)

        logger.debug(f"Acknowledged {len(batch)} message(s)")

    async def subscribe(
        self,
        subscription_name: str,
        callback: MessageCallback,
    ) -> MemorySubscriberHandle:
        self._ensure_connected()
        with self._lock:
            if subscription_name not in self._subscriptions:
                raise SubscriptionError(f"Subscription not found: {subscription_name}")
            handle = MemorySubscriberHandle(self, subscription_name, callback)
            self._subscriptions[subscription_name]["listeners"].append(handle)

        logger.info(f"Listener registered on {subscription_name}")
        self._dispatch(subscription_name)
        return handle

    @property
    def is_connected(self) -> bool:
        """Check if adapter is connected."""
        return self._connected

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise ConnectionError("Memory adapter not connected")

    def _get_subscription(self, name: str) -> Dict[str, Any]:
        sub = self._subscriptions.get(name)
        if sub is None:
            raise ResourceNotFoundError(f"Subscription not found: {name}")
        return sub

    def _dispatch(self, subscription_name: str) -> None:
        """
        Hand the current backlog of a subscription to its listeners.

        Each backlog entry is offered once per call, so a listener that nacks
        does not loop forever on the same message.
        """
        with self._lock:
            sub = self._subscriptions.get(subscription_name)
            if sub is None or not sub["listeners"]:
                return
            deliveries = []
            for _ in range(len(sub["backlog"])):
                message_id, data = sub["backlog"].popleft()
                ack_id = uuid4().hex
                sub["leased"][ack_id] = (message_id, data)
                listener = sub["listeners"][sub["cursor"] % len(sub["listeners"])]
                sub["cursor"] += 1
                deliveries.append(
                    (
                        listener,
                        MemoryMessage(self, subscription_name, message_id, data, ack_id),
                    )
                )

        for listener, message in deliveries:
            try:
                listener.callback(message)
            except Exception as e:
                logger.error(f"Listener error on subscription {subscription_name}: {e}")

    def _settle(self, subscription_name: str, ack_id: str, requeue: bool) -> None:
        with self._lock:
            sub = self._subscriptions.get(subscription_name)
            if sub is None:
                return
            entry = sub["leased"].pop(ack_id, None)
            if entry is not None and requeue:
                sub["backlog"].append(entry)

    def _remove_listener(self, handle: MemorySubscriberHandle) -> None:
        with self._lock:
            sub = self._subscriptions.get(handle.subscription)
            if sub is not None and handle in sub["listeners"]:
                sub["listeners"].remove(handle)
